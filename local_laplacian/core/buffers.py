"""8-bit luminance buffer helpers.

A buffer is a 2D ``uint8`` numpy array of shape (height, width). Every
operation here works in a wider dtype, rounds to nearest and clips back
into [0, 255] so that nothing ever wraps around.
"""

import numpy as np

NEUTRAL = 128


def as_buffer(data: np.ndarray, copy: bool = True) -> np.ndarray:
    """Validates ``data`` as a luminance buffer and returns an owned copy.

    Args:
        data: 2D array of intensities. Integer arrays must already lie in
            [0, 255]; float arrays are rounded and clipped.
        copy: If False, a valid uint8 input is returned as is.

    Returns:
        2D uint8 array.

    Raises:
        ValueError: If the array is not 2D, is empty, or has integer
            values outside [0, 255].
    """
    data = np.asarray(data)
    if data.ndim != 2:
        raise ValueError(f"Luminance buffer must be 2D, got shape {data.shape}")
    if data.size == 0:
        raise ValueError("Luminance buffer is empty")

    if data.dtype == np.uint8:
        return data.copy() if copy else data

    if np.issubdtype(data.dtype, np.integer):
        if data.min() < 0 or data.max() > 255:
            raise ValueError("Integer luminance values must lie in [0, 255]")
        return data.astype(np.uint8)

    if np.issubdtype(data.dtype, np.floating) or data.dtype == np.bool_:
        return to_uint8(data)

    raise ValueError(f"Unsupported buffer dtype: {data.dtype}")


def to_uint8(values: np.ndarray) -> np.ndarray:
    """Rounds to nearest and clips into the 8-bit range."""
    return np.clip(np.rint(values), 0, 255).astype(np.uint8)


def neutral_like(buffer: np.ndarray) -> np.ndarray:
    """A buffer of the same shape holding the zero difference value 128."""
    return np.full(buffer.shape, NEUTRAL, dtype=np.uint8)


def grain_merge(base: np.ndarray, layer: np.ndarray) -> np.ndarray:
    """Additive merge of a bias-128 layer onto a base buffer.

    The formula: $out = clip(base + layer - 128, 0, 255)$

    Args:
        base: Base intensities.
        layer: Difference signal centred at 128.

    Returns:
        Merged uint8 buffer.
    """
    merged = base.astype(np.int16) + layer.astype(np.int16) - NEUTRAL
    return np.clip(merged, 0, 255).astype(np.uint8)


def grain_extract(base: np.ndarray, other: np.ndarray) -> np.ndarray:
    """Difference of two buffers biased by 128, the inverse of ``grain_merge``.

    The formula: $out = clip(base - other + 128, 0, 255)$
    """
    diff = base.astype(np.int16) - other.astype(np.int16) + NEUTRAL
    return np.clip(diff, 0, 255).astype(np.uint8)


def scale_about_neutral(buffer: np.ndarray, factor: float) -> np.ndarray:
    """Scales a buffer's signed content about the neutral value 128.

    Used for weighting Laplacian levels and for the contrast window
    mappings: $out = 128 + factor \\cdot (in - 128)$.
    """
    if factor == 1.0:
        return buffer.copy()
    scaled = NEUTRAL + factor * (buffer.astype(np.float32) - NEUTRAL)
    return to_uint8(scaled)


def compress_to_window(buffer: np.ndarray, lo: int, hi: int) -> np.ndarray:
    """Compresses a full-range buffer into the contrast window [lo, hi].

    The mapping is anchored at neutral grey so that 128 stays 128 and the
    window stretch in ``stretch_from_window`` is its inverse up to
    quantization.

    Args:
        buffer: Full-range uint8 buffer.
        lo: Lower window bound (inclusive).
        hi: Upper window bound (inclusive).

    Returns:
        uint8 buffer with every value inside [lo, hi].
    """
    factor = window_factor(lo, hi)
    compressed = scale_about_neutral(buffer, factor)
    return np.clip(compressed, lo, hi).astype(np.uint8)


def stretch_from_window(buffer: np.ndarray, lo: int, hi: int) -> np.ndarray:
    """Stretches a window-compressed buffer back to the full range."""
    factor = window_factor(lo, hi)
    if factor == 0:
        return buffer.copy()
    return scale_about_neutral(buffer, 1.0 / factor)


def window_factor(lo: int, hi: int) -> float:
    """Contraction factor of the window [lo, hi] relative to [0, 255].

    Raises:
        ValueError: If the window is not a valid sub-range of [0, 255].
    """
    if not (0 <= lo <= hi <= 255):
        raise ValueError(f"Invalid contrast window: [{lo}, {hi}]")
    return (hi - lo) / 255.0


def select_where(
    target: np.ndarray,
    source: np.ndarray,
    mask: np.ndarray
) -> None:
    """Overwrites ``target`` with ``source`` wherever ``mask`` is set."""
    np.copyto(target, source, where=mask)
