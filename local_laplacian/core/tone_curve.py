"""Per-reference-level tone curves for local Laplacian remapping.

A tone curve is a 256-entry lookup table built around one reference
intensity ``r``. Deviations ``d = x - r`` smaller than the detail radius
are treated as texture and reshaped by a power curve; larger deviations
are treated as edges and scaled linearly beyond the radius:

detail: $offset = sign(d) \\cdot radius \\cdot (|d| / radius)^p$, with $p = 3^{-detail/100}$
edge:   $offset = d + sign(d) \\cdot (edge / 100) \\cdot (|d| - radius)$

Small deviations that the curve would amplify are pulled back toward the
identity with a smoothstep weight, which keeps sensor noise from being
boosted along with real detail.
"""

import numpy as np
from typing import Union

from local_laplacian.core.buffers import as_buffer

CURVE_SIZE = 256
STRENGTH_LIMIT = 100.0

ArrayOrFloat = Union[np.ndarray, float]


def smoothstep(x: ArrayOrFloat, a: float, b: float) -> ArrayOrFloat:
    """Hermite step from 0 (x <= a) to 1 (x >= b).

    Between the edges: $t^2 (3 - 2t)$ with $t = (x - a) / (b - a)$.
    """
    x_arr = np.asarray(x, dtype=np.float64)
    if b <= a:
        result = np.where(x_arr <= a, 0.0, 1.0)
    else:
        t = np.clip((x_arr - a) / (b - a), 0.0, 1.0)
        result = t * t * (3.0 - 2.0 * t)
        result = np.where(x_arr <= a, 0.0, np.where(x_arr >= b, 1.0, result))
    if np.ndim(x) == 0:
        return float(result)
    return result


def detail_exponent(detail_strength: float) -> float:
    """Power applied to normalized deviations inside the detail radius."""
    return 3.0 ** (-detail_strength / STRENGTH_LIMIT)


def validate_curve_parameters(
    reference_level: float,
    detail_radius: float,
    noise_reduction_amount: float,
    detail_strength: float,
    edge_strength: float
) -> None:
    """Rejects parameters outside the domain where the curve is defined.

    Raises:
        ValueError: If any parameter is out of range.
    """
    if not 0 <= reference_level <= 255:
        raise ValueError(f"reference_level must be in [0, 255], got {reference_level}")
    if detail_radius < 0:
        raise ValueError(f"detail_radius must be >= 0, got {detail_radius}")
    if noise_reduction_amount < 0:
        raise ValueError(
            f"noise_reduction_amount must be >= 0, got {noise_reduction_amount}"
        )
    if not -STRENGTH_LIMIT <= detail_strength <= STRENGTH_LIMIT:
        raise ValueError(f"detail_strength must be in [-100, 100], got {detail_strength}")
    if not -STRENGTH_LIMIT <= edge_strength <= STRENGTH_LIMIT:
        raise ValueError(f"edge_strength must be in [-100, 100], got {edge_strength}")


def curve_offsets(
    deviations: np.ndarray,
    detail_radius: float,
    noise_reduction_amount: float,
    detail_strength: float,
    edge_strength: float
) -> np.ndarray:
    """Remapped offsets for signed deviations from the reference level.

    Args:
        deviations: Signed deviations ``x - r``.
        detail_radius: Split between detail and edge regimes.
        noise_reduction_amount: Deviations up to this size may be smoothed.
        detail_strength: Detail enhancement in [-100, 100].
        edge_strength: Edge enhancement in [-100, 100].

    Returns:
        Float offsets, same shape as ``deviations``.
    """
    d = np.asarray(deviations, dtype=np.float64)
    magnitude = np.abs(d)
    sign = np.sign(d)

    offsets = np.empty_like(d)

    in_detail = magnitude <= detail_radius
    if detail_radius > 0:
        p = detail_exponent(detail_strength)
        ratio = magnitude[in_detail] / detail_radius
        offsets[in_detail] = sign[in_detail] * detail_radius * ratio ** p
    else:
        # Only d == 0 can fall inside a zero radius
        offsets[in_detail] = 0.0

    in_edge = ~in_detail
    offsets[in_edge] = d[in_edge] + sign[in_edge] * (edge_strength / STRENGTH_LIMIT) * (
        magnitude[in_edge] - detail_radius
    )

    if noise_reduction_amount > 0:
        amplified = (magnitude <= noise_reduction_amount) & (np.abs(offsets) > magnitude)
        if np.any(amplified):
            w = smoothstep(magnitude[amplified], noise_reduction_amount / 2.0, noise_reduction_amount)
            offsets[amplified] = w * offsets[amplified] + (1.0 - w) * d[amplified]

    return offsets


def build_tone_curve(
    reference_level: int,
    detail_radius: float,
    noise_reduction_amount: float,
    detail_strength: float,
    edge_strength: float
) -> np.ndarray:
    """Builds the 256-entry lookup table for one reference level.

    Args:
        reference_level: Intensity the curve is centred on.
        detail_radius: Deviations up to this size are detail, larger are edges.
        noise_reduction_amount: Radius of the noise-reduction blend.
        detail_strength: -100 smooths detail, 0 keeps it, 100 enhances it.
        edge_strength: -100 flattens edges, 0 keeps them, 100 doubles them.

    Returns:
        Read-only uint8 array of 256 output intensities.

    Raises:
        ValueError: If any parameter is out of range.
    """
    validate_curve_parameters(
        reference_level, detail_radius, noise_reduction_amount,
        detail_strength, edge_strength
    )

    x = np.arange(CURVE_SIZE, dtype=np.float64)
    offsets = curve_offsets(
        x - reference_level,
        detail_radius,
        noise_reduction_amount,
        detail_strength,
        edge_strength
    )

    curve = np.clip(np.rint(reference_level + offsets), 0, 255).astype(np.uint8)
    curve.setflags(write=False)
    return curve


def is_identity(curve: np.ndarray) -> bool:
    return bool(np.array_equal(curve, np.arange(CURVE_SIZE)))


def apply_tone_curve(image: np.ndarray, curve: np.ndarray) -> np.ndarray:
    """Applies a tone curve to every pixel of a buffer.

    Args:
        image: uint8 luminance buffer.
        curve: 256-entry uint8 lookup table.

    Returns:
        New remapped uint8 buffer.
    """
    if curve.shape != (CURVE_SIZE,):
        raise ValueError(f"Tone curve must have {CURVE_SIZE} entries, got {curve.shape}")
    image = as_buffer(image, copy=False)
    return np.take(curve.astype(np.uint8, copy=False), image)
