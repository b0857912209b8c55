"""Local Laplacian remapping: the level-selection compositing loop.

For every reference intensity ``r`` of the contrast window the luminance is
remapped with the tone curve centred on ``r`` and decomposed into a
Laplacian pyramid. Each coefficient of the output pyramid is then taken
from the remapped pyramid whose ``r`` equals the source Gaussian pyramid's
value at that position, so every pixel's contrast is shaped by a curve
centred on its own intensity rather than on a neighbour's.
"""

import logging
import numpy as np
from typing import Callable, List, Optional, Set

from local_laplacian.core.buffers import (
    as_buffer,
    compress_to_window,
    neutral_like,
    select_where,
    window_factor,
)
from local_laplacian.core.pyramids import (
    DEFAULT_MIN_SIZE,
    LAPLACIAN,
    Pyramid,
    build_gaussian_pyramid,
    to_laplacian,
)
from local_laplacian.core.tone_curve import (
    apply_tone_curve,
    build_tone_curve,
    validate_curve_parameters,
)

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int], None]
StopCallback = Callable[[], bool]


class ToneMappingCancelled(RuntimeError):
    """Raised when a run is aborted through its ``should_stop`` callback."""


class RemappingEngine:
    """Builds the remapped Laplacian pyramid for one contrast window.

    The engine is stateless between runs; all per-run buffers are created
    inside ``run`` and dropped once the result pyramid is returned.
    """

    def __init__(
        self,
        detail_radius: float,
        noise_reduction_amount: float,
        detail_strength: float,
        edge_strength: float,
        min_size: int = DEFAULT_MIN_SIZE
    ) -> None:
        """Initialize engine with curve parameters.

        Args:
            detail_radius: Detail/edge split, in full-range intensity units.
            noise_reduction_amount: Noise-reduction radius, full-range units.
            detail_strength: Detail enhancement in [-100, 100].
            edge_strength: Edge enhancement in [-100, 100].
            min_size: Pyramid minimum level size.

        Raises:
            ValueError: If any parameter is out of range.
        """
        validate_curve_parameters(
            0, detail_radius, noise_reduction_amount, detail_strength, edge_strength
        )
        self.detail_radius = float(detail_radius)
        self.noise_reduction_amount = float(noise_reduction_amount)
        self.detail_strength = float(detail_strength)
        self.edge_strength = float(edge_strength)
        self.min_size = min_size

        logger.debug(
            f"RemappingEngine initialized: radius={self.detail_radius}, "
            f"noise={self.noise_reduction_amount}, detail={self.detail_strength}, "
            f"edge={self.edge_strength}"
        )

    def run(
        self,
        luminance: np.ndarray,
        lo: int = 0,
        hi: int = 255,
        progress: Optional[ProgressCallback] = None,
        should_stop: Optional[StopCallback] = None
    ) -> Pyramid:
        """Remaps ``luminance`` over the reference levels ``lo..hi``.

        Args:
            luminance: uint8 luminance buffer.
            lo: First reference level (inclusive).
            hi: Last reference level (inclusive).
            progress: Called with ``r - lo`` after every reference level.
            should_stop: Polled before every reference level; returning True
                aborts the run.

        Returns:
            Laplacian pyramid in the window-compressed intensity scale.

        Raises:
            ValueError: If the window or the buffer is invalid.
            ToneMappingCancelled: If ``should_stop`` requested an abort.
        """
        factor = window_factor(lo, hi)
        source = compress_to_window(as_buffer(luminance), lo, hi)
        radius = self.detail_radius * factor
        noise = self.noise_reduction_amount * factor

        gaussian = build_gaussian_pyramid(source, self.min_size)
        accumulator = self._init_accumulator(gaussian)
        present = self._present_levels(gaussian)

        logger.info(
            f"Remapping {source.shape[1]}x{source.shape[0]} luminance over "
            f"[{lo}, {hi}] with {len(gaussian)} pyramid levels"
        )

        for r in range(lo, hi + 1):
            if should_stop is not None and should_stop():
                logger.warning(f"Remapping cancelled at reference level {r}")
                raise ToneMappingCancelled(f"Cancelled at reference level {r}")

            if r in present:
                curve = build_tone_curve(
                    r, radius, noise, self.detail_strength, self.edge_strength
                )
                remapped = apply_tone_curve(source, curve)
                laplacian = to_laplacian(build_gaussian_pyramid(remapped, self.min_size))
                self._composite(accumulator, gaussian, laplacian, r)

            if progress is not None:
                progress(r - lo)

        return accumulator

    @staticmethod
    def _init_accumulator(gaussian: Pyramid) -> Pyramid:
        """Neutral Laplacian pyramid carrying the source's coarsest level."""
        levels: List[np.ndarray] = [neutral_like(lvl) for lvl in gaussian.levels[:-1]]
        levels.append(gaussian.coarsest.copy())
        return Pyramid(levels, LAPLACIAN)

    @staticmethod
    def _present_levels(gaussian: Pyramid) -> Set[int]:
        """Intensities occurring in any level that gets composited."""
        present: Set[int] = set()
        for lvl in gaussian.levels[:-1]:
            present.update(int(v) for v in np.unique(lvl))
        return present

    @staticmethod
    def _composite(
        accumulator: Pyramid,
        gaussian: Pyramid,
        laplacian: Pyramid,
        reference_level: int
    ) -> None:
        """Copies ``laplacian`` cells where the source Gaussian equals the level.

        Every cell matches exactly one reference level, so each accumulator
        cell is written once over a full run.
        """
        for k in range(len(accumulator) - 1):
            mask = gaussian[k] == reference_level
            if mask.any():
                select_where(accumulator.levels[k], laplacian[k], mask)
