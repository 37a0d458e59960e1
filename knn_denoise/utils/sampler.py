"""
Texture-style 2D sampler over a float RGBA image.

Mirrors what a CUDA texture object does for unnormalized coordinates: texel k
has its center at k + 0.5, linear filtering blends the four nearest texels and
the address mode decides what lies beyond the edges.
"""

import numpy as np

from knn_denoise.config import AddressMode, FilterMode
from knn_denoise.utils.colors import frame_to_rgba


class Sampler2D:
    """
    Read-only sampler over an (H, W, 4) float32 image.
    """

    def __init__(self, image, address_mode=AddressMode.CLAMP, filter_mode=FilterMode.LINEAR):
        image = np.asarray(image)
        if image.ndim != 3 or image.shape[2] not in (3, 4):
            raise ValueError(f"Sampler2D expects an (H, W, 3|4) image, got shape {image.shape}")

        texels = np.zeros((image.shape[0], image.shape[1], 4), dtype=np.float32)
        texels[..., :image.shape[2]] = image
        self.texels = texels
        self.address_mode = AddressMode(address_mode)
        self.filter_mode = FilterMode(filter_mode)

    @classmethod
    def from_frame(cls, frame, address_mode=AddressMode.CLAMP, filter_mode=FilterMode.LINEAR):
        """Build a sampler from an 8-bit BGR frame as returned by cv2.imread."""
        return cls(frame_to_rgba(frame), address_mode, filter_mode)

    @property
    def height(self):
        return self.texels.shape[0]

    @property
    def width(self):
        return self.texels.shape[1]

    def _address(self, index, size):
        if self.address_mode is AddressMode.WRAP:
            return np.mod(index, size)
        return np.clip(index, 0, size - 1)

    def fetch(self, ix, iy):
        """Integer texel lookup with the address mode applied."""
        ix = self._address(np.asarray(ix, dtype=np.int64), self.width)
        iy = self._address(np.asarray(iy, dtype=np.int64), self.height)
        return self.texels[iy, ix]

    def sample(self, u, v):
        """
        Sample at continuous coordinates (u along the width, v along the height).

        u and v may be scalars or arrays of the same shape; the result has an
        extra trailing axis of 4 channels.
        """
        u = np.asarray(u, dtype=np.float32)
        v = np.asarray(v, dtype=np.float32)

        if self.filter_mode is FilterMode.POINT:
            return self.fetch(np.floor(u), np.floor(v))

        xb = u - np.float32(0.5)
        yb = v - np.float32(0.5)
        x0 = np.floor(xb)
        y0 = np.floor(yb)
        ax = (xb - x0)[..., np.newaxis]
        ay = (yb - y0)[..., np.newaxis]
        one = np.float32(1.0)

        t00 = self.fetch(x0, y0)
        t10 = self.fetch(x0 + 1, y0)
        t01 = self.fetch(x0, y0 + 1)
        t11 = self.fetch(x0 + 1, y0 + 1)

        return (t00 * ((one - ax) * (one - ay))
                + t10 * (ax * (one - ay))
                + t01 * ((one - ax) * ay)
                + t11 * (ax * ay))
