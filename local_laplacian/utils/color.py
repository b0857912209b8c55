"""Luminance extraction and value-channel compositing.

The tone mapper only sees single-channel buffers. These helpers sit on
either side of it: they reduce a colour image to its HSV value channel
(optionally inside a selection rectangle) and later apply the adjusted
value back while keeping each pixel's hue and saturation.
"""

import logging
from typing import Optional, Tuple

import cv2
import numpy as np

logger = logging.getLogger(__name__)

Selection = Tuple[int, int, int, int]
Offset = Tuple[int, int]


def clip_selection(shape: Tuple[int, ...], selection: Optional[Selection]) -> Selection:
    """Intersects a selection rectangle with the image bounds.

    Args:
        shape: Image shape (height, width[, channels]).
        selection: (x, y, width, height), or None for the whole image.

    Returns:
        Clipped (x, y, width, height).

    Raises:
        ValueError: If the selection does not overlap the image.
    """
    img_h, img_w = shape[:2]
    if selection is None:
        return 0, 0, img_w, img_h

    x, y, w, h = (int(v) for v in selection)
    x0, y0 = max(0, x), max(0, y)
    x1, y1 = min(img_w, x + w), min(img_h, y + h)
    if x1 <= x0 or y1 <= y0:
        raise ValueError(f"Selection {selection} does not overlap the {img_w}x{img_h} image")
    return x0, y0, x1 - x0, y1 - y0


def value_channel(image: np.ndarray) -> np.ndarray:
    """HSV value of an 8-bit image: the maximum of its colour channels."""
    if image.ndim == 2:
        return image.copy()
    if image.ndim == 3 and image.shape[2] == 1:
        return image[..., 0].copy()
    if image.ndim == 3 and image.shape[2] in (3, 4):
        bgr = image[..., :3]
        return cv2.cvtColor(np.ascontiguousarray(bgr), cv2.COLOR_BGR2HSV)[..., 2]
    raise ValueError(f"Unsupported image shape: {image.shape}")


def extract_luminance(
    image: np.ndarray,
    selection: Optional[Selection] = None
) -> Tuple[np.ndarray, Offset]:
    """Produces the luminance buffer and its offset within ``image``.

    Args:
        image: uint8 grey, BGR or BGRA image (alpha is ignored).
        selection: Optional (x, y, width, height) rectangle.

    Returns:
        Tuple of (uint8 luminance buffer, (x, y) offset).
    """
    if image.dtype != np.uint8:
        raise ValueError(f"Expected an 8-bit image, got {image.dtype}")

    x, y, w, h = clip_selection(image.shape, selection)
    region = image[y:y + h, x:x + w]
    luminance = value_channel(region)

    logger.debug(f"Extracted {w}x{h} luminance at offset ({x}, {y})")
    return luminance, (x, y)


def replace_value(region: np.ndarray, new_value: np.ndarray) -> np.ndarray:
    """Sets the HSV value of every pixel, preserving hue and saturation.

    Colour pixels are scaled by $V_{new} / V_{old}$, which leaves the channel
    ratios (and so hue and saturation) unchanged. Black pixels carry no hue
    and become neutral grey at the new value.

    Args:
        region: uint8 BGR or BGRA pixels.
        new_value: uint8 target value channel of the same height and width.

    Returns:
        New uint8 array shaped like ``region``; alpha is copied through.
    """
    out = region.copy()
    bgr = region[..., :3].astype(np.float32)
    old_value = bgr.max(axis=2)
    target = new_value.astype(np.float32)

    ratio = np.divide(target, old_value, out=np.zeros_like(target), where=old_value > 0)
    scaled = bgr * ratio[..., None]

    black = old_value == 0
    scaled[black] = target[black][:, None]

    out[..., :3] = np.clip(np.rint(scaled), 0, 255).astype(np.uint8)
    return out


def composite_value(
    image: np.ndarray,
    adjustment: np.ndarray,
    offset: Offset = (0, 0)
) -> np.ndarray:
    """Applies an adjustment buffer as a "replace value" layer.

    Args:
        image: Original uint8 grey, BGR or BGRA image.
        adjustment: uint8 luminance adjustment buffer.
        offset: (x, y) position of the adjustment within ``image``.

    Returns:
        New composited image; pixels outside the adjustment are unchanged.

    Raises:
        ValueError: If the adjustment does not fit at ``offset``.
    """
    x, y = offset
    h, w = adjustment.shape[:2]
    img_h, img_w = image.shape[:2]
    if x < 0 or y < 0 or x + w > img_w or y + h > img_h:
        raise ValueError(
            f"Adjustment {w}x{h} at ({x}, {y}) does not fit the {img_w}x{img_h} image"
        )

    result = image.copy()
    region = image[y:y + h, x:x + w]

    if image.ndim == 2:
        result[y:y + h, x:x + w] = adjustment
    elif image.ndim == 3 and image.shape[2] == 1:
        result[y:y + h, x:x + w, 0] = adjustment
    else:
        result[y:y + h, x:x + w] = replace_value(region, adjustment)

    return result
