import numpy as np
import pytest

from local_laplacian.core.filters import expand_image, half_size, reduce_image
from local_laplacian.core.pyramids import (
    GAUSSIAN,
    LAPLACIAN,
    Pyramid,
    build_gaussian_pyramid,
    build_laplacian_pyramid,
    collapse,
    from_laplacian,
    pyramid_level_count,
    to_laplacian,
)


def test_half_size_rounds_up() -> None:
    assert half_size((21, 37)) == (11, 19)
    assert half_size((4, 4)) == (2, 2)
    assert half_size((1, 1)) == (1, 1)


def test_reduce_and_expand_shapes() -> None:
    image = np.full((21, 37), 90, dtype=np.uint8)
    reduced = reduce_image(image)
    assert reduced.shape == (11, 19)
    assert np.all(reduced == 90)
    assert expand_image(reduced, (21, 37)).shape == (21, 37)


def test_reduce_averages_two_by_two_blocks() -> None:
    image = np.array([[10, 30, 50, 50],
                      [10, 30, 50, 50]], dtype=np.uint8)
    assert reduce_image(image).tolist() == [[20, 50]]


@pytest.mark.parametrize("width, height, expected", [
    (64, 64, 5),
    (37, 21, 4),
    (4, 4, 1),
    (2, 100, 1),
    (1, 1, 1),
    (6, 6, 2),
])
def test_pyramid_level_count(width: int, height: int, expected: int) -> None:
    assert pyramid_level_count(width, height) == expected


def test_build_gaussian_pyramid_level_shapes() -> None:
    image = np.zeros((21, 37), dtype=np.uint8)
    pyramid = build_gaussian_pyramid(image)
    assert pyramid.kind == GAUSSIAN
    assert [lvl.shape for lvl in pyramid] == [(21, 37), (11, 19), (6, 10), (3, 5)]


def test_degenerate_buffer_gives_single_level() -> None:
    image = np.arange(12, dtype=np.uint8).reshape(2, 6)
    pyramid = build_gaussian_pyramid(image)
    assert len(pyramid) == 1
    assert np.array_equal(pyramid[0], image)


def test_level_zero_is_an_owned_copy(smooth_buffer: np.ndarray) -> None:
    pyramid = build_gaussian_pyramid(smooth_buffer)
    original = smooth_buffer.copy()
    smooth_buffer[:] = 0
    assert np.array_equal(pyramid[0], original)


def test_laplacian_round_trip_is_exact(smooth_buffer: np.ndarray) -> None:
    gaussian = build_gaussian_pyramid(smooth_buffer)
    laplacian = to_laplacian(gaussian)
    assert laplacian.kind == LAPLACIAN
    assert np.array_equal(collapse(laplacian), smooth_buffer)


def test_from_laplacian_rebuilds_every_level(smooth_buffer: np.ndarray) -> None:
    gaussian = build_gaussian_pyramid(smooth_buffer)
    rebuilt = from_laplacian(to_laplacian(gaussian))
    assert rebuilt.kind == GAUSSIAN
    for original, restored in zip(gaussian, rebuilt):
        assert np.array_equal(original, restored)


def test_laplacian_of_flat_image_is_neutral() -> None:
    laplacian = build_laplacian_pyramid(np.full((32, 32), 77, dtype=np.uint8))
    for level in laplacian.levels[:-1]:
        assert np.all(level == 128)
    assert np.all(laplacian.coarsest == 77)


def test_round_trip_with_clipping_stays_in_range(rng: np.random.Generator) -> None:
    noise = rng.integers(0, 256, size=(40, 40)).astype(np.uint8)
    restored = collapse(build_laplacian_pyramid(noise))
    assert restored.dtype == np.uint8
    assert restored.shape == noise.shape


def test_to_laplacian_does_not_mutate_input(smooth_buffer: np.ndarray) -> None:
    gaussian = build_gaussian_pyramid(smooth_buffer)
    before = gaussian.copy()
    to_laplacian(gaussian)
    for a, b in zip(gaussian, before):
        assert np.array_equal(a, b)


def test_collapse_of_gaussian_returns_finest_level(smooth_buffer: np.ndarray) -> None:
    gaussian = build_gaussian_pyramid(smooth_buffer)
    result = collapse(gaussian)
    assert np.array_equal(result, smooth_buffer)
    assert result is not gaussian[0]


def test_kind_mismatch_raises(smooth_buffer: np.ndarray) -> None:
    gaussian = build_gaussian_pyramid(smooth_buffer)
    with pytest.raises(ValueError):
        from_laplacian(gaussian)
    with pytest.raises(ValueError):
        to_laplacian(to_laplacian(gaussian))


def test_pyramid_rejects_inconsistent_levels() -> None:
    with pytest.raises(ValueError):
        Pyramid([np.zeros((8, 8), np.uint8), np.zeros((3, 3), np.uint8)])
    with pytest.raises(ValueError):
        Pyramid([])
    with pytest.raises(ValueError):
        Pyramid([np.zeros((8, 8), np.uint8)], kind="wavelet")


def test_copy_shares_no_buffers(smooth_buffer: np.ndarray) -> None:
    gaussian = build_gaussian_pyramid(smooth_buffer)
    duplicate = gaussian.copy()
    duplicate.levels[0][:] = 0
    assert np.array_equal(gaussian[0], smooth_buffer)


def test_collapse_of_float_levels_is_unrounded() -> None:
    levels = [np.full((8, 8), 128.25, np.float32), np.full((4, 4), 100.5, np.float32)]
    result = collapse(Pyramid(levels, LAPLACIAN))
    assert result.dtype == np.float32
    assert np.allclose(result, 100.75)


def test_collapse_matches_from_laplacian(smooth_buffer: np.ndarray) -> None:
    laplacian = build_laplacian_pyramid(smooth_buffer)
    assert np.array_equal(collapse(laplacian), from_laplacian(laplacian)[0])
