import numpy as np
import pytest

from local_laplacian.utils.color import (
    clip_selection,
    composite_value,
    extract_luminance,
    replace_value,
    value_channel,
)


def test_value_channel_is_channel_maximum(rng: np.random.Generator) -> None:
    bgr = rng.integers(0, 256, size=(6, 5, 3)).astype(np.uint8)
    assert np.array_equal(value_channel(bgr), bgr.max(axis=2))


def test_value_channel_ignores_alpha() -> None:
    bgra = np.zeros((2, 2, 4), dtype=np.uint8)
    bgra[..., 1] = 40
    bgra[..., 3] = 255
    assert np.all(value_channel(bgra) == 40)


def test_value_channel_rejects_two_channels() -> None:
    with pytest.raises(ValueError):
        value_channel(np.zeros((2, 2, 2), dtype=np.uint8))


def test_clip_selection() -> None:
    assert clip_selection((10, 20), None) == (0, 0, 20, 10)
    assert clip_selection((10, 20), (2, 3, 5, 4)) == (2, 3, 5, 4)
    assert clip_selection((10, 20, 3), (-5, 8, 10, 10)) == (0, 8, 5, 2)


def test_clip_selection_without_overlap_raises() -> None:
    with pytest.raises(ValueError):
        clip_selection((10, 20), (25, 0, 5, 5))
    with pytest.raises(ValueError):
        clip_selection((10, 20), (0, 0, 0, 5))


def test_extract_luminance_from_grey() -> None:
    grey = np.arange(20, dtype=np.uint8).reshape(4, 5)
    luminance, offset = extract_luminance(grey)
    assert offset == (0, 0)
    assert np.array_equal(luminance, grey)
    luminance[0, 0] = 99
    assert grey[0, 0] == 0


def test_extract_luminance_with_selection() -> None:
    image = np.zeros((10, 12, 3), dtype=np.uint8)
    image[2:5, 3:7, 2] = 200
    luminance, offset = extract_luminance(image, (3, 2, 4, 3))
    assert offset == (3, 2)
    assert luminance.shape == (3, 4)
    assert np.all(luminance == 200)


def test_extract_luminance_rejects_wide_dtypes() -> None:
    with pytest.raises(ValueError):
        extract_luminance(np.zeros((4, 4), dtype=np.uint16))


def test_replace_value_preserves_channel_ratios() -> None:
    region = np.array([[[20, 40, 80]]], dtype=np.uint8)
    out = replace_value(region, np.array([[160]], dtype=np.uint8))
    assert out.tolist() == [[[40, 80, 160]]]


def test_replace_value_turns_black_into_grey() -> None:
    region = np.zeros((1, 2, 3), dtype=np.uint8)
    out = replace_value(region, np.array([[90, 0]], dtype=np.uint8))
    assert out.tolist() == [[[90, 90, 90], [0, 0, 0]]]


def test_replace_value_keeps_alpha() -> None:
    region = np.array([[[10, 20, 40, 77]]], dtype=np.uint8)
    out = replace_value(region, np.array([[20]], dtype=np.uint8))
    assert out.tolist() == [[[5, 10, 20, 77]]]


def test_composite_value_only_touches_rectangle() -> None:
    image = np.full((6, 6, 3), 50, dtype=np.uint8)
    adjustment = np.full((2, 3), 100, dtype=np.uint8)
    result = composite_value(image, adjustment, (1, 2))

    assert np.all(result[2:4, 1:4] == 100)
    mask = np.ones((6, 6), dtype=bool)
    mask[2:4, 1:4] = False
    assert np.all(result[mask] == 50)
    assert np.all(image == 50)


def test_composite_value_on_grey() -> None:
    image = np.zeros((4, 4), dtype=np.uint8)
    result = composite_value(image, np.full((2, 2), 7, dtype=np.uint8), (2, 2))
    assert result[3, 3] == 7
    assert result[0, 0] == 0


def test_composite_value_out_of_bounds_raises() -> None:
    image = np.zeros((4, 4, 3), dtype=np.uint8)
    with pytest.raises(ValueError):
        composite_value(image, np.zeros((2, 2), dtype=np.uint8), (3, 0))
