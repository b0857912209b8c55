import matplotlib
import numpy as np
import pytest

matplotlib.use("Agg")


@pytest.fixture
def smooth_buffer() -> np.ndarray:
    """64x48 gradient with a gentle ripple; no pyramid difference ever clips."""
    h, w = 48, 64
    y, x = np.mgrid[0:h, 0:w].astype(np.float32)
    values = 40 + 150 * x / (w - 1) + 20 * np.sin(y / 5.0) * np.cos(x / 7.0)
    return np.clip(np.rint(values), 0, 255).astype(np.uint8)


@pytest.fixture
def step_buffer() -> np.ndarray:
    """64x64 hard step: left half 50, right half 200."""
    buffer = np.full((64, 64), 50, dtype=np.uint8)
    buffer[:, 32:] = 200
    return buffer


@pytest.fixture
def checker_buffer() -> np.ndarray:
    """32x32 one-pixel checkerboard of 123/133 around mid-grey."""
    y, x = np.mgrid[0:32, 0:32]
    return np.where((x + y) % 2 == 0, 133, 123).astype(np.uint8)


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(1234)
