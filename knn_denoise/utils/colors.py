"""
Color conversion and packing helpers.

Packed colors are uint32 with R in the low byte: R | G << 8 | B << 16, alpha byte zero.
"""

import cv2
import numpy as np


def quantize(channel):
    # Truncates like an int cast of c * 255 after clamping to [0, 1]; NaN packs as 0
    channel = np.nan_to_num(np.asarray(channel, dtype=np.float32), nan=0.0)
    return (np.clip(channel, 0.0, 1.0) * np.float32(255.0)).astype(np.uint32) & np.uint32(0xFF)


def pack_colors(rgb):
    """
    Pack float colors in [0, 1] with shape (..., 3) into uint32.

    The alpha byte is always zero.
    """
    rgb = np.asarray(rgb, dtype=np.float32)
    r = quantize(rgb[..., 0])
    g = quantize(rgb[..., 1])
    b = quantize(rgb[..., 2])
    return r | (g << 8) | (b << 16)



def unpack_colors(packed):
    """Split packed uint32 colors into an (..., 4) uint8 array in RGBA order."""
    packed = np.asarray(packed, dtype=np.uint32)
    channels = [(packed >> shift) & 0xFF for shift in (0, 8, 16, 24)]
    return np.stack(channels, axis=-1).astype(np.uint8)


def frame_to_rgba(frame):
    """Convert an 8-bit BGR frame to float32 RGBA in [0, 1] with a zero 4th channel."""
    frame = np.ascontiguousarray(frame)
    if frame.ndim == 2:
        frame = cv2.cvtColor(frame, cv2.COLOR_GRAY2BGR)
    rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB).astype(np.float32) / np.float32(255.0)
    rgba = np.zeros((frame.shape[0], frame.shape[1], 4), dtype=np.float32)
    rgba[..., :3] = rgb
    return rgba


def packed_to_frame(packed):
    """Convert a packed output buffer back to an 8-bit BGR frame for OpenCV."""
    rgba = unpack_colors(packed)
    return cv2.cvtColor(np.ascontiguousarray(rgba[..., :3]), cv2.COLOR_RGB2BGR)
