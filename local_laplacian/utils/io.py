"""Utility functions for image I/O and logging setup."""

import logging
import sys
from pathlib import Path
from typing import Union

import cv2
import numpy as np

logger = logging.getLogger(__name__)


def setup_logging(level: int = logging.INFO) -> None:
    """Configure logging for the application.

    Args:
        level: Logging level (default: INFO)
    """
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )


def load_image(image_path: Union[str, Path]) -> np.ndarray:
    """Load an 8-bit image, keeping its channels (grey, BGR or BGRA).

    Args:
        image_path: Path to image file

    Returns:
        uint8 image array

    Raises:
        FileNotFoundError: If image file doesn't exist
        ValueError: If the file cannot be decoded
    """
    image_path = Path(image_path)
    if not image_path.exists():
        raise FileNotFoundError(f"Image file not found: {image_path}")

    image = cv2.imread(str(image_path), cv2.IMREAD_UNCHANGED)
    if image is None:
        raise ValueError(f"Failed to decode image: {image_path}")

    if image.dtype != np.uint8:
        logger.warning(f"Converting {image.dtype} image to 8-bit: {image_path}")
        image = cv2.normalize(image, None, 0, 255, cv2.NORM_MINMAX).astype(np.uint8)

    logger.info(f"Loaded {image.shape[1]}x{image.shape[0]} image from: {image_path}")
    return image


def save_image(image: np.ndarray, output_path: Union[str, Path]) -> Path:
    """Write an image, creating the output directory if needed.

    Raises:
        ValueError: If OpenCV cannot encode the image
    """
    output_path = Path(output_path)
    ensure_output_directory(output_path)
    if not cv2.imwrite(str(output_path), image):
        raise ValueError(f"Failed to write image: {output_path}")
    logger.info(f"Saved image to: {output_path}")
    return output_path


def ensure_output_directory(output_path: Union[str, Path]) -> Path:
    """Ensure output directory exists, create if needed.

    Args:
        output_path: Path to output file

    Returns:
        Path object for the output directory
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    return output_path.parent
