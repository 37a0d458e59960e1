"""Shared fixtures. The CUDA kernels run on numba's simulator unless a GPU run is forced."""

from __future__ import annotations

import os

# Must be set before numba is first imported
os.environ.setdefault("NUMBA_ENABLE_CUDASIM", "1")

import numpy as np
import pytest

from knn_denoise import KNNConfig, Sampler2D

RED = np.array([1.0, 0.0, 0.0, 0.0], dtype=np.float32)
BLUE = np.array([0.0, 0.0, 1.0, 0.0], dtype=np.float32)


def solid_image(height: int, width: int, color: np.ndarray) -> np.ndarray:
    return np.broadcast_to(color, (height, width, 4)).astype(np.float32)


def edge_image(height: int, width: int, noise: float = 0.0, seed: int = 0) -> np.ndarray:
    """Left half dull red, right half dull blue, optional gaussian noise."""
    img = np.zeros((height, width, 4), dtype=np.float32)
    img[:, : width // 2, :3] = (0.8, 0.1, 0.1)
    img[:, width // 2 :, :3] = (0.1, 0.1, 0.8)
    if noise:
        rng = np.random.default_rng(seed)
        img[..., :3] += rng.normal(0.0, noise, size=(height, width, 3)).astype(np.float32)
    return np.clip(img, 0.0, 1.0)


@pytest.fixture
def config() -> KNNConfig:
    return KNNConfig(tile_size=8, workers=2, threads_per_block=(8, 8))


@pytest.fixture
def noisy_image() -> np.ndarray:
    rng = np.random.default_rng(1234)
    img = np.zeros((12, 10, 4), dtype=np.float32)
    img[..., :3] = rng.random((12, 10, 3), dtype=np.float32)
    return img


@pytest.fixture
def noisy_sampler(noisy_image: np.ndarray) -> Sampler2D:
    return Sampler2D(noisy_image)
