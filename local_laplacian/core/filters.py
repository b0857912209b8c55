"""Resampling operations used for pyramid construction and collapse.

Both directions use the same bilinear kernel (``cv2.INTER_LINEAR``) on
8-bit data. Keeping one fixed kernel for build and collapse is what makes
the Laplacian round trip exact: the upsampled coarse level computed while
decomposing is bit-identical to the one computed while reconstructing.
"""

import cv2
import numpy as np
from typing import Tuple

INTERPOLATION = cv2.INTER_LINEAR


def half_size(shape: Tuple[int, int]) -> Tuple[int, int]:
    """Returns the (height, width) of the next coarser pyramid level.

    Each dimension is halved and rounded up: $ceil(n / 2)$.
    """
    h, w = shape[:2]
    return (h + 1) // 2, (w + 1) // 2


def reduce_image(image: np.ndarray) -> np.ndarray:
    """Reduces image size by half using bilinear interpolation.

    For even dimensions every output pixel is the average of a 2x2 block,
    which is the blur the Gaussian pyramid relies on. Odd dimensions are
    rounded up so no source row or column is dropped.

    Args:
        image: uint8 buffer.

    Returns:
        Reduced uint8 buffer with dimensions ceil(h/2) x ceil(w/2).
    """
    new_h, new_w = half_size(image.shape)
    return cv2.resize(image, (new_w, new_h), interpolation=INTERPOLATION)


def expand_image(image: np.ndarray, output_shape: Tuple[int, int]) -> np.ndarray:
    """Expands image to ``output_shape`` using bilinear interpolation.

    Args:
        image: uint8 buffer of a coarse level.
        output_shape: (height, width) of the finer level to match exactly.

    Returns:
        Expanded uint8 buffer of shape ``output_shape``.
    """
    target_h, target_w = output_shape[:2]
    if image.shape[:2] == (target_h, target_w):
        return image.copy()
    return cv2.resize(image, (target_w, target_h), interpolation=INTERPOLATION)
