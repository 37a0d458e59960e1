"""Tests for the shared weighting law and work partitioning."""

from __future__ import annotations

import numpy as np

from knn_denoise.utils.tiling import blocks_per_grid, iter_tiles
from knn_denoise.utils.weights import color_distance, fast_expf, knn_weight, lerp, window_offsets


def test_window_offsets_cover_the_square() -> None:
    offsets = window_offsets(3)
    assert len(offsets) == 49
    assert len(set(offsets)) == 49
    assert offsets[0] == (-3, -3)
    assert (0, 0) in offsets
    assert window_offsets(0) == [(0, 0)]


def test_color_distance_ignores_fourth_channel() -> None:
    a = np.array([0.0, 0.0, 0.0, 5.0], dtype=np.float32)
    b = np.array([1.0, 2.0, 0.5, -5.0], dtype=np.float32)
    assert color_distance(a, b) == np.float32(5.25)


def test_center_weight_is_exactly_one() -> None:
    assert knn_weight(0.0, 0, 0, 0.32, 1.0 / 49.0) == 1.0
    assert knn_weight(0.0, 0, 0, 100.0, 1.0 / 49.0, fast_exp=True) == 1.0


def test_center_dominates_other_offsets() -> None:
    rng = np.random.default_rng(3)
    for i, j in window_offsets(3):
        if (i, j) == (0, 0):
            continue
        distance = np.float32(rng.random() * 3.0)
        assert knn_weight(distance, i, j, 0.32, 1.0 / 49.0) < 1.0


def test_weight_depends_on_squared_radius_only() -> None:
    inv_area = 1.0 / 49.0
    assert knn_weight(0.1, 1, 2, 2.0, inv_area) == knn_weight(0.1, -2, 1, 2.0, inv_area)
    assert knn_weight(0.1, 3, 0, 2.0, inv_area) == knn_weight(0.1, 0, -3, 2.0, inv_area)


def test_identity_window_weights_exceed_reference_threshold() -> None:
    weights = [knn_weight(0.0, i, j, 0.32, 1.0 / 49.0) for i, j in window_offsets(3)]
    assert min(weights) > 0.032


def test_fast_exp_tolerance() -> None:
    x = -np.linspace(0.0, 10.0, 1001, dtype=np.float32)
    np.testing.assert_allclose(fast_expf(x), np.exp(x.astype(np.float64)), rtol=2e-6)
    fast = knn_weight(np.float32(0.37), 2, 1, 9.7, 1.0 / 49.0, fast_exp=True)
    exact = knn_weight(np.float32(0.37), 2, 1, 9.7, 1.0 / 49.0)
    np.testing.assert_allclose(fast, exact, rtol=2e-6)


def test_lerp_endpoints() -> None:
    assert lerp(2.0, 6.0, 0.0) == 2.0
    assert lerp(2.0, 6.0, 1.0) == 6.0
    assert lerp(2.0, 6.0, 0.25) == 3.0


def test_blocks_per_grid_covers_image() -> None:
    assert blocks_per_grid(640, 480, (16, 16)) == (40, 30)
    assert blocks_per_grid(17, 1, (16, 16)) == (2, 1)
    assert blocks_per_grid(0, 0, (16, 16)) == (0, 0)


def test_tiles_cover_every_pixel_once() -> None:
    coverage = np.zeros((21, 13), dtype=int)
    for x0, x1, y0, y1 in iter_tiles(13, 21, 8):
        coverage[y0:y1, x0:x1] += 1
    np.testing.assert_array_equal(coverage, 1)
    assert list(iter_tiles(0, 5, 8)) == []
