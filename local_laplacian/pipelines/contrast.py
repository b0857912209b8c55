"""Contrast-window blending to keep large-scale contrast from clipping.

Normal-contrast mode runs the remapping twice: once over the full range
and once over the compressed window [64, 191], whose pyramid cannot clip
at the extremes but resolves fine detail with less precision. The two
pyramids are crossfaded per level, fine levels from the full-range pass
and coarse levels from the compressed pass:

$B_i = w_i \\cdot P_i + (1 - w_i) \\cdot C_i$, with $w_i = 1 - smoothstep(i, 0, n/3 - 1)$

Both weighted pyramids are collapsed separately in float, the compressed
result is stretched back to full range, and the two are grain-merged with
a single rounding at the very end.
"""

import logging
import numpy as np
from typing import List, Optional, Tuple

from local_laplacian.core.buffers import NEUTRAL, as_buffer, to_uint8, window_factor
from local_laplacian.core.pyramids import Pyramid, collapse
from local_laplacian.core.tone_curve import smoothstep
from local_laplacian.pipelines.remapping import (
    ProgressCallback,
    RemappingEngine,
    StopCallback,
)

logger = logging.getLogger(__name__)

FULL_WINDOW = (0, 255)
LOW_CONTRAST_WINDOW = (64, 191)


def blend_weights(num_levels: int) -> List[float]:
    """Weight of the full-range pyramid at every level index.

    The compressed pyramid receives the complement. Level 0 always comes
    entirely from the full-range pass.
    """
    edge = num_levels / 3.0 - 1.0
    return [1.0 - smoothstep(float(i), 0.0, edge) for i in range(num_levels)]


def weight_pyramid(pyramid: Pyramid, weights: List[float]) -> Pyramid:
    """Scales every level's content about the neutral value by its weight.

    The coarsest level is weighted the same way, so collapsing the weighted
    pyramid yields $128 + \\sum_i w_i (L_i - 128)$. Levels are returned as
    float32 and are not rounded.
    """
    if len(weights) != len(pyramid):
        raise ValueError(
            f"Got {len(weights)} weights for a {len(pyramid)}-level pyramid"
        )
    levels = [
        NEUTRAL + np.float32(w) * (lvl.astype(np.float32) - NEUTRAL)
        for lvl, w in zip(pyramid.levels, weights)
    ]
    return Pyramid(levels, pyramid.kind)


class ContrastBlender:
    """Runs the full-range and compressed passes and merges them."""

    def __init__(
        self,
        engine: RemappingEngine,
        low_window: Tuple[int, int] = LOW_CONTRAST_WINDOW
    ) -> None:
        self.engine = engine
        self.low_window = low_window

    @property
    def total_steps(self) -> int:
        """Number of progress calls ``blend`` makes."""
        lo, hi = self.low_window
        return (FULL_WINDOW[1] - FULL_WINDOW[0] + 1) + (hi - lo + 1)

    def blend(
        self,
        luminance: np.ndarray,
        progress: Optional[ProgressCallback] = None,
        should_stop: Optional[StopCallback] = None
    ) -> np.ndarray:
        """Computes the blended, full-range adjustment buffer.

        Args:
            luminance: uint8 luminance buffer.
            progress: Called once per reference level of both passes; the
                second pass continues counting after the first.
            should_stop: Cancellation poll forwarded to the engine.

        Returns:
            Full resolution uint8 adjustment buffer.
        """
        luminance = as_buffer(luminance)
        lo, hi = self.low_window
        primary_steps = FULL_WINDOW[1] - FULL_WINDOW[0] + 1

        second_progress = None
        if progress is not None:
            def second_progress(step: int) -> None:
                progress(primary_steps + step)

        logger.info("Contrast blend: full-range pass")
        primary = self.engine.run(luminance, *FULL_WINDOW, progress=progress, should_stop=should_stop)

        logger.info(f"Contrast blend: compressed pass over [{lo}, {hi}]")
        compressed = self.engine.run(luminance, lo, hi, progress=second_progress, should_stop=should_stop)

        return self.merge(primary, compressed)

    def merge(self, primary: Pyramid, compressed: Pyramid) -> np.ndarray:
        """Crossfades two remapped pyramids level by level and collapses them.

        Args:
            primary: Full-range Laplacian pyramid.
            compressed: Laplacian pyramid in the ``low_window`` scale.

        Returns:
            Full resolution uint8 buffer.
        """
        if len(primary) != len(compressed):
            raise ValueError(
                f"Pyramid level mismatch: {len(primary)} vs {len(compressed)}"
            )

        weights = blend_weights(len(primary))
        logger.debug(f"Contrast blend weights: {[round(w, 3) for w in weights]}")

        primary_part = collapse(weight_pyramid(primary, weights))
        compressed_part = collapse(weight_pyramid(compressed, [1.0 - w for w in weights]))

        factor = window_factor(*self.low_window)
        if factor > 0:
            compressed_part = NEUTRAL + (compressed_part - NEUTRAL) / np.float32(factor)

        return to_uint8(primary_part + compressed_part - NEUTRAL)
