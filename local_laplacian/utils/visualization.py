"""Visualization functions for pyramids and tone curves.

This module provides tools for visualizing:
- Gaussian and Laplacian pyramid levels of a luminance buffer
- Remapped (result) Laplacian pyramids
- Tone curves for a set of reference levels
"""

import logging
from pathlib import Path
from typing import Dict, Union

import matplotlib.pyplot as plt
import numpy as np

from local_laplacian.core.pyramids import (
    DEFAULT_MIN_SIZE,
    Pyramid,
    build_gaussian_pyramid,
    to_laplacian,
)
from local_laplacian.utils.io import ensure_output_directory

logger = logging.getLogger(__name__)


def _plot_row(axes, pyramid: Pyramid, prefix: str) -> None:
    for i, ax in enumerate(axes):
        if i < len(pyramid):
            ax.imshow(pyramid[i], cmap='gray', vmin=0, vmax=255)
            ax.set_title(f'{prefix}{i}')
        ax.axis('off')


def create_and_save_pyramid_viz(
    image: np.ndarray,
    filename: Union[str, Path],
    min_size: int = DEFAULT_MIN_SIZE
) -> None:
    """Creates and saves a visualization of Gaussian and Laplacian pyramids.

    The visualization shows:
    - Top row: Gaussian pyramid levels (G0, G1, ..., GN)
    - Bottom row: Laplacian pyramid levels (L0, L1, ..., LN)

    Laplacian levels are shown in their bias-128 encoding, so mid-grey
    means no detail.

    Args:
        image: Luminance buffer to build pyramids from.
        filename: Output filename for the visualization.
        min_size: Pyramid minimum level size.
    """
    g_pyr = build_gaussian_pyramid(image, min_size)
    l_pyr = to_laplacian(g_pyr)
    save_pyramid_rows({'G': g_pyr, 'L': l_pyr}, filename)


def save_pyramid_rows(
    rows: Dict[str, Pyramid],
    filename: Union[str, Path],
    title: str = ''
) -> None:
    """Saves one figure row per pyramid, levels left to right.

    Args:
        rows: Label prefix to pyramid, in display order.
        filename: Output filename for the visualization.
        title: Optional figure title; defaults to the filename.
    """
    n_cols = max(len(p) for p in rows.values())
    fig, axes = plt.subplots(len(rows), n_cols, figsize=(4 * n_cols, 3 * len(rows)), squeeze=False)
    fig.suptitle(title or f'Pyramid Analysis: {Path(filename).name}', fontsize=16)

    for row_axes, (prefix, pyramid) in zip(axes, rows.items()):
        _plot_row(row_axes, pyramid, prefix)

    plt.tight_layout()
    ensure_output_directory(filename)
    logger.info(f"Saving pyramid visualization to: {filename}")
    plt.savefig(filename)
    plt.close(fig)


def save_tone_curve_plot(
    curves: Dict[int, np.ndarray],
    filename: Union[str, Path],
    title: str = 'Tone Curves'
) -> None:
    """Plots tone curves keyed by reference level against the identity.

    Args:
        curves: Reference level to 256-entry lookup table.
        filename: Output filename for the plot.
        title: Title for the plot.
    """
    x = np.arange(256)
    fig, ax = plt.subplots(figsize=(7, 7))
    ax.plot(x, x, color='lightgray', linestyle='--', label='identity')
    for reference_level, curve in sorted(curves.items()):
        ax.plot(x, curve, label=f'r={reference_level}')
        ax.axvline(reference_level, color='gray', alpha=0.2)

    ax.set_xlim(0, 255)
    ax.set_ylim(0, 255)
    ax.set_xlabel('Input intensity')
    ax.set_ylabel('Output intensity')
    ax.set_title(title)
    ax.legend(loc='upper left')

    plt.tight_layout()
    ensure_output_directory(filename)
    logger.info(f"Saving tone curve plot to: {filename}")
    plt.savefig(filename)
    plt.close(fig)
