"""
Configuration for the KNN denoise filter.

Reference constants of the algorithm plus a dataclass collecting them per
invocation, so that both backends (CUDA kernels and the numpy CPU path) read
the same values.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

import numpy as np

KNN_WINDOW_RADIUS = 3
KNN_WEIGHT_THRESHOLD = 0.032
KNN_LERP_THRESHOLD = 0.6  # fraction of the window area

KNN_NOISE = 0.32
DEFAULT_NOISE_SCALE = 1.0 / (KNN_NOISE * KNN_NOISE)
DEFAULT_LERP = 0.2

THREADS_PER_BLOCK = (16, 16)
TILE_SIZE = 64


class AddressMode(Enum):
    """How texel indices outside the image are resolved."""

    CLAMP = "clamp"  # repeat the edge texel
    WRAP = "wrap"    # tile the image


class FilterMode(Enum):
    """Texture filtering between texel centers."""

    POINT = "point"    # nearest texel
    LINEAR = "linear"  # bilinear interpolation


@dataclass
class KNNConfig:
    """
    Algorithm constants and dispatch settings for one filter invocation.

    The defaults are the reference values of the filter.
    """

    # Algorithm
    window_radius: int = KNN_WINDOW_RADIUS
    weight_threshold: float = KNN_WEIGHT_THRESHOLD
    lerp_threshold: float = KNN_LERP_THRESHOLD
    fast_exp: bool = False  # hardware-style approximate exponential

    # Sampler
    address_mode: AddressMode = AddressMode.CLAMP
    filter_mode: FilterMode = FilterMode.LINEAR

    # Dispatch
    tile_size: int = TILE_SIZE  # CPU tile edge in pixels
    workers: Optional[int] = None  # CPU thread pool size
    threads_per_block: Tuple[int, int] = THREADS_PER_BLOCK  # GPU block shape

    def __post_init__(self) -> None:
        # Accept the plain string values as well, e.g. from the command line
        self.address_mode = AddressMode(self.address_mode)
        self.filter_mode = FilterMode(self.filter_mode)

    @property
    def window_diameter(self) -> int:
        return 2 * self.window_radius + 1

    @property
    def window_area(self) -> int:
        return self.window_diameter * self.window_diameter

    @property
    def inv_window_area(self) -> float:
        return 1.0 / self.window_area

    def validate(self) -> None:
        """Validate configuration parameters."""

        if self.window_radius < 0:
            raise ValueError(f"Window radius {self.window_radius} must be >= 0")

        if not (0.0 <= self.weight_threshold < 1.0):
            raise ValueError(f"Weight threshold {self.weight_threshold} out of range [0, 1)")

        if not (0.0 <= self.lerp_threshold <= 1.0):
            raise ValueError(f"Lerp threshold {self.lerp_threshold} out of range [0, 1]")

        if self.tile_size <= 0:
            raise ValueError(f"Tile size {self.tile_size} must be positive")

        if self.workers is not None and self.workers <= 0:
            raise ValueError(f"Workers {self.workers} must be positive")

        if len(self.threads_per_block) != 2 or min(self.threads_per_block) <= 0:
            raise ValueError(f"Threads per block {self.threads_per_block} must be two positive ints")


def validate_parameters(noise_scale: float, lerp_base: float) -> None:
    """Check the per-invocation tuning values before launching a filter."""

    if not math.isfinite(noise_scale):
        raise ValueError(f"Noise scale {noise_scale} must be finite")

    if abs(noise_scale) > np.finfo(np.float32).max:
        raise ValueError(f"Noise scale {noise_scale} does not fit in float32")

    if not (0.0 <= lerp_base <= 1.0):
        raise ValueError(f"Lerp base {lerp_base} out of range [0, 1]")
