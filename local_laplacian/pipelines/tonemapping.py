"""Tone-mapping pipeline orchestration.

This module wires the pieces together:
1. Derive detail radius, noise-reduction amount and contrast window
2. Run the remapping engine (twice with contrast blending in normal mode)
3. Collapse the result and stretch the window back to full range
4. Hand the adjustment back to the host with its offset
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from local_laplacian.config import ToneMapConfig
from local_laplacian.core.buffers import as_buffer, stretch_from_window
from local_laplacian.core.pyramids import collapse
from local_laplacian.pipelines.contrast import ContrastBlender
from local_laplacian.pipelines.remapping import (
    ProgressCallback,
    RemappingEngine,
    StopCallback,
)
from local_laplacian.utils.color import (
    Offset,
    Selection,
    composite_value,
    extract_luminance,
)

logger = logging.getLogger(__name__)


@dataclass
class ToneMapResult:
    """Adjustment buffer and where it goes in the source image."""

    adjustment: np.ndarray
    offset: Offset = (0, 0)

    @property
    def shape(self) -> Tuple[int, int]:
        return self.adjustment.shape


class ToneMapper:
    """Runs local Laplacian tone mapping on a luminance buffer.

    Stateless between calls apart from the configuration it was built with.
    """

    def __init__(self, config: Optional[ToneMapConfig] = None) -> None:
        """Initialize tone mapper with configuration.

        Args:
            config: ToneMapConfig instance; defaults are used when omitted

        Raises:
            ValueError: If the configuration is invalid
        """
        config = config or ToneMapConfig()
        config.validate()
        self.config = config
        self.engine = RemappingEngine(
            detail_radius=config.detail_radius,
            noise_reduction_amount=config.noise_reduction_amount,
            detail_strength=config.detail_strength,
            edge_strength=config.edge_strength,
            min_size=config.min_size,
        )
        self.blender = ContrastBlender(self.engine) if config.uses_contrast_blend else None
        logger.info(f"ToneMapper initialized: {config}")

    @property
    def total_steps(self) -> int:
        """Number of progress reports one ``process`` call makes."""
        if self.blender is not None:
            return self.blender.total_steps
        lo, hi = self.config.window
        return hi - lo + 1

    def process(
        self,
        luminance: np.ndarray,
        progress: Optional[ProgressCallback] = None,
        should_stop: Optional[StopCallback] = None
    ) -> np.ndarray:
        """Tone-maps a luminance buffer.

        Args:
            luminance: uint8 luminance buffer.
            progress: Called with the running step number.
            should_stop: Cancellation poll; see ``RemappingEngine.run``.

        Returns:
            Full resolution uint8 adjustment buffer.
        """
        luminance = as_buffer(luminance)
        lo, hi = self.config.window

        logger.info(
            f"Tone mapping {luminance.shape[1]}x{luminance.shape[0]} buffer "
            f"in {self.config.mode} mode"
        )

        if self.blender is not None:
            result = self.blender.blend(luminance, progress=progress, should_stop=should_stop)
        else:
            pyramid = self.engine.run(luminance, lo, hi, progress=progress, should_stop=should_stop)
            result = collapse(pyramid)

        return stretch_from_window(result, lo, hi)


def total_steps(mode: str) -> int:
    """Progress reports made by a run in ``mode``."""
    return ToneMapper(ToneMapConfig(mode=mode)).total_steps


def tone_map_image(
    image: np.ndarray,
    config: Optional[ToneMapConfig] = None,
    selection: Optional[Selection] = None,
    progress: Optional[ProgressCallback] = None,
    should_stop: Optional[StopCallback] = None
) -> ToneMapResult:
    """Extracts luminance from ``image`` and tone-maps it.

    Args:
        image: uint8 grey, BGR or BGRA image.
        config: Tone-mapping parameters.
        selection: Optional (x, y, width, height) rectangle to process.
        progress: Progress callback.
        should_stop: Cancellation poll.

    Returns:
        ToneMapResult with the adjustment and its offset in ``image``.
    """
    luminance, offset = extract_luminance(image, selection)
    mapper = ToneMapper(config)
    adjustment = mapper.process(luminance, progress=progress, should_stop=should_stop)
    return ToneMapResult(adjustment=adjustment, offset=offset)


def apply_adjustment(image: np.ndarray, result: ToneMapResult) -> np.ndarray:
    """Composites a tone-mapping result back onto the original image."""
    return composite_value(image, result.adjustment, result.offset)

