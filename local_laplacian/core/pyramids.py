"""Gaussian and Laplacian pyramid construction and reconstruction.

A pyramid is an ordered list of 8-bit buffers, index 0 being the full
resolution image and every following level half the size of the previous
one (rounded up). The same structure is either a Gaussian pyramid, whose
levels hold intensities, or a Laplacian pyramid, whose levels except the
coarsest hold the difference to the upsampled coarser level biased by 128:

$L_i = clip(G_i - Expand(G_{i+1}) + 128)$

Reconstruction runs from the coarsest level down:

$G_i = clip(Expand(G_{i+1}) + L_i - 128)$

All operations are pure and return new pyramids.
"""

import logging
import numpy as np
from typing import Iterator, List, Optional

from local_laplacian.core.buffers import NEUTRAL, as_buffer, grain_extract, grain_merge
from local_laplacian.core.filters import expand_image, half_size, reduce_image

logger = logging.getLogger(__name__)

GAUSSIAN = "gaussian"
LAPLACIAN = "laplacian"

DEFAULT_MIN_SIZE = 2


class Pyramid:
    """Ordered sequence of progressively half-resolution buffers.

    Attributes:
        levels: Buffers from finest (index 0) to coarsest.
        kind: Either ``"gaussian"`` or ``"laplacian"``.
    """

    def __init__(self, levels: List[np.ndarray], kind: str = GAUSSIAN) -> None:
        if kind not in (GAUSSIAN, LAPLACIAN):
            raise ValueError(f"Unknown pyramid kind: {kind}")
        if not levels:
            raise ValueError("A pyramid needs at least one level")
        for k in range(len(levels) - 1):
            expected = half_size(levels[k].shape)
            if levels[k + 1].shape != expected:
                raise ValueError(
                    f"Level {k + 1} has shape {levels[k + 1].shape}, "
                    f"expected {expected}"
                )
        self.levels = levels
        self.kind = kind

    def __len__(self) -> int:
        return len(self.levels)

    def __getitem__(self, index: int) -> np.ndarray:
        return self.levels[index]

    def __iter__(self) -> Iterator[np.ndarray]:
        return iter(self.levels)

    def __repr__(self) -> str:
        shapes = ", ".join(f"{lvl.shape[1]}x{lvl.shape[0]}" for lvl in self.levels)
        return f"Pyramid(kind={self.kind!r}, levels=[{shapes}])"

    @property
    def is_laplacian(self) -> bool:
        return self.kind == LAPLACIAN

    @property
    def coarsest(self) -> np.ndarray:
        return self.levels[-1]

    def copy(self) -> "Pyramid":
        """Deep copy; the new pyramid shares no buffers with this one."""
        return Pyramid([lvl.copy() for lvl in self.levels], self.kind)


def pyramid_level_count(width: int, height: int, min_size: int = DEFAULT_MIN_SIZE) -> int:
    """Number of levels ``build_gaussian_pyramid`` produces for a size.

    Halving stops before a level would have either dimension at or below
    ``min_size``, so a buffer that is already that small gives one level.
    """
    if width < 1 or height < 1:
        raise ValueError(f"Invalid buffer size: {width}x{height}")
    count = 1
    h, w = height, width
    while True:
        h, w = half_size((h, w))
        if h <= min_size or w <= min_size:
            return count
        count += 1


def build_gaussian_pyramid(
    image: np.ndarray,
    min_size: int = DEFAULT_MIN_SIZE
) -> Pyramid:
    """Builds a Gaussian pyramid down to ``min_size``.

    The pyramid is constructed by iteratively applying:
    $G_{i+1} = Reduce(G_i)$

    Level 0 is an owned copy of the input, without any resampling.

    Args:
        image: 2D luminance buffer.
        min_size: Halving stops before a dimension would drop to this size.

    Returns:
        Gaussian ``Pyramid`` with at least one level.
    """
    if min_size < 1:
        raise ValueError(f"min_size must be >= 1, got {min_size}")

    level = as_buffer(image)
    height, width = level.shape
    num_levels = pyramid_level_count(width, height, min_size)

    levels = [level]
    for _ in range(num_levels - 1):
        level = reduce_image(level)
        levels.append(level)

    return Pyramid(levels, GAUSSIAN)


def to_laplacian(gaussian: Pyramid) -> Pyramid:
    """Converts a Gaussian pyramid into a Laplacian pyramid.

    For each level except the coarsest, the upsampled next Gaussian level is
    subtracted and the signed difference is stored biased by 128. Differences
    outside [-128, 127] are clipped, an accepted loss for 8-bit data.

    Args:
        gaussian: Gaussian pyramid; left untouched.

    Returns:
        New Laplacian ``Pyramid``.

    Raises:
        ValueError: If ``gaussian`` is already a Laplacian pyramid.
    """
    if gaussian.is_laplacian:
        raise ValueError("Pyramid is already Laplacian")

    levels = []
    for i in range(len(gaussian) - 1):
        fine = gaussian[i]
        expanded = expand_image(gaussian[i + 1], fine.shape)
        levels.append(grain_extract(fine, expanded))

    # Top level stays plain intensity
    levels.append(gaussian.coarsest.copy())

    return Pyramid(levels, LAPLACIAN)


def from_laplacian(laplacian: Pyramid) -> Pyramid:
    """Rebuilds the Gaussian pyramid from a Laplacian pyramid.

    Args:
        laplacian: Laplacian pyramid; left untouched.

    Returns:
        New Gaussian ``Pyramid`` whose level 0 is the reconstructed image.
    """
    if not laplacian.is_laplacian:
        raise ValueError("Pyramid is not Laplacian")

    current = laplacian.coarsest.copy()
    rebuilt = [current]
    for i in range(len(laplacian) - 2, -1, -1):
        detail = laplacian[i]
        expanded = expand_image(current, detail.shape)
        current = _merge_level(expanded, detail)
        rebuilt.append(current)

    rebuilt.reverse()
    return Pyramid(rebuilt, GAUSSIAN)


def _merge_level(expanded: np.ndarray, detail: np.ndarray) -> np.ndarray:
    # Float levels (weighted pyramids) are merged without rounding
    if detail.dtype == np.uint8:
        return grain_merge(expanded, detail)
    return expanded.astype(np.float32) + detail - NEUTRAL


def collapse(pyramid: Pyramid) -> np.ndarray:
    """Reconstructs the full resolution buffer from a pyramid.

    A Laplacian pyramid is collapsed through ``from_laplacian``. A Gaussian
    pyramid already holds the full resolution image at level 0, which is
    returned as a copy.

    Args:
        pyramid: Pyramid of either kind.

    Returns:
        Buffer with the shape of level 0: uint8 for 8-bit pyramids, float32
        for pyramids whose levels are float (see ``weight_pyramid``).
    """
    if not pyramid.is_laplacian:
        return pyramid[0].copy()

    result = from_laplacian(pyramid)[0]
    logger.debug(f"Collapsed {len(pyramid)}-level pyramid to {result.shape[1]}x{result.shape[0]}")
    return result


def build_laplacian_pyramid(
    image: np.ndarray,
    min_size: int = DEFAULT_MIN_SIZE,
    gaussian: Optional[Pyramid] = None
) -> Pyramid:
    """Convenience wrapper: Gaussian pyramid of ``image`` converted to Laplacian.

    Args:
        image: 2D luminance buffer.
        min_size: Minimum level size, see ``build_gaussian_pyramid``.
        gaussian: Pre-built Gaussian pyramid of ``image`` to reuse.
    """
    if gaussian is None:
        gaussian = build_gaussian_pyramid(image, min_size)
    return to_laplacian(gaussian)
