"""Tests for the texture-style sampler."""

from __future__ import annotations

import numpy as np
import pytest

from knn_denoise import AddressMode, FilterMode, Sampler2D


def ramp_image(height: int = 3, width: int = 4) -> np.ndarray:
    img = np.zeros((height, width, 4), dtype=np.float32)
    img[..., 0] = np.arange(width, dtype=np.float32)[np.newaxis, :]
    img[..., 1] = np.arange(height, dtype=np.float32)[:, np.newaxis]
    return img


def test_texel_centers_return_texels_exactly() -> None:
    img = ramp_image()
    sampler = Sampler2D(img)
    u, v = np.meshgrid(np.arange(4) + 0.5, np.arange(3) + 0.5)
    np.testing.assert_array_equal(sampler.sample(u, v), img)


def test_linear_filtering_blends_neighbours() -> None:
    sampler = Sampler2D(ramp_image())
    color = sampler.sample(1.0, 1.5)
    np.testing.assert_allclose(color[:2], [0.5, 1.0])
    color = sampler.sample(2.25, 2.0)
    np.testing.assert_allclose(color[:2], [1.75, 1.5])


def test_clamp_repeats_edge_texels() -> None:
    sampler = Sampler2D(ramp_image())
    np.testing.assert_array_equal(sampler.sample(-3.5, 0.5)[:2], [0.0, 0.0])
    np.testing.assert_array_equal(sampler.sample(10.5, 7.5)[:2], [3.0, 2.0])


def test_wrap_tiles_the_image() -> None:
    sampler = Sampler2D(ramp_image(), address_mode=AddressMode.WRAP)
    np.testing.assert_array_equal(sampler.sample(-0.5, 0.5)[:2], [3.0, 0.0])
    np.testing.assert_array_equal(sampler.sample(4.5, 3.5)[:2], [0.0, 0.0])


def test_point_filtering_picks_nearest_texel() -> None:
    sampler = Sampler2D(ramp_image(), filter_mode=FilterMode.POINT)
    np.testing.assert_array_equal(sampler.sample(1.9, 2.1)[:2], [1.0, 2.0])


def test_single_pixel_resolves_every_offset() -> None:
    img = np.array([[[0.2, 0.4, 0.6, 0.0]]], dtype=np.float32)
    sampler = Sampler2D(img)
    offsets = np.arange(-3, 4, dtype=np.float32) + 0.5
    u, v = np.meshgrid(offsets, offsets)
    samples = sampler.sample(u, v)
    assert samples.shape == (7, 7, 4)
    np.testing.assert_array_equal(samples, np.broadcast_to(img[0, 0], (7, 7, 4)))


def test_rgb_input_gets_zero_fourth_channel() -> None:
    sampler = Sampler2D(np.ones((2, 2, 3)))
    assert sampler.texels.dtype == np.float32
    np.testing.assert_array_equal(sampler.texels[..., 3], 0.0)


def test_from_frame_normalizes_bgr() -> None:
    frame = np.zeros((1, 1, 3), dtype=np.uint8)
    frame[0, 0] = (255, 0, 51)  # BGR
    sampler = Sampler2D.from_frame(frame)
    np.testing.assert_allclose(sampler.texels[0, 0], [0.2, 0.0, 1.0, 0.0], rtol=1e-6)


def test_rejects_bad_shapes() -> None:
    with pytest.raises(ValueError):
        Sampler2D(np.zeros((4, 4)))
    with pytest.raises(ValueError):
        Sampler2D(np.zeros((4, 4, 2)))
