"""
Host side of the CUDA backend: upload, launch configuration, timing, download.
"""

import logging
from datetime import datetime

import numpy as np
from numba import cuda

from knn_denoise.config import AddressMode, FilterMode, KNNConfig, validate_parameters
from knn_denoise.Filters.KNNDiagnostic import knn_diagnostic, knn_diagnostic_fast
from knn_denoise.Filters.KNNFilter import knn_filter, knn_filter_fast
from knn_denoise.utils.tiling import blocks_per_grid

filter_logger = logging.getLogger("KNNFilter")
diagnostic_logger = logging.getLogger("KNNDiagnostic")


def _as_rgba(image):
    image = np.asarray(image, dtype=np.float32)
    if image.ndim != 3 or image.shape[2] not in (3, 4):
        raise ValueError(f"Expected an (H, W, 3|4) image, got shape {image.shape}")
    if image.shape[2] == 4:
        return np.ascontiguousarray(image)
    rgba = np.zeros((image.shape[0], image.shape[1], 4), dtype=np.float32)
    rgba[..., :3] = image
    return rgba


def _launch(kernel, logger, image, noise_scale, lerp_base, config, stream):
    config = config or KNNConfig()
    config.validate()
    validate_parameters(noise_scale, lerp_base)

    frame = _as_rgba(image)
    height, width = frame.shape[0], frame.shape[1]
    if width == 0 or height == 0:
        # Empty domain, nothing to launch
        return np.zeros((height, width), dtype=np.uint32)

    # Copy the data to the GPU and allocate the packed output
    d_frame = cuda.to_device(frame, stream=stream)
    d_output = cuda.device_array((height, width), dtype=np.uint32, stream=stream)

    threads_per_block = tuple(config.threads_per_block)
    grid = blocks_per_grid(width, height, threads_per_block)

    # Create CUDA events for timing
    start_event = cuda.event()
    end_event = cuda.event()
    start_event.record(stream)

    kernel[grid, threads_per_block, stream](
        d_frame,
        d_output,
        np.float32(noise_scale),
        np.float32(lerp_base),
        config.window_radius,
        np.float32(config.weight_threshold),
        np.float32(config.lerp_threshold),
        config.address_mode is AddressMode.WRAP,
        config.filter_mode is FilterMode.LINEAR,
    )

    end_event.record(stream)
    end_event.synchronize()
    elapsed_time_ms = start_event.elapsed_time(end_event)

    # Copy the result back to the host
    output = d_output.copy_to_host(stream=stream)
    logger.debug(f"Timestamp: {datetime.now()}, grid: {grid}, block: {threads_per_block}, EXECUTION TIME ms: {elapsed_time_ms}")
    return output


def apply_knn_filter(image, noise_scale, lerp_base, config=None, stream=0):
    """
    Run the KNN denoise kernel over a float RGBA (or RGB) image in [0, 1].

    Returns a (height, width) uint32 buffer of packed colors.
    """
    kernel = knn_filter_fast if config is not None and config.fast_exp else knn_filter
    return _launch(kernel, filter_logger, image, noise_scale, lerp_base, config, stream)


def apply_knn_diagnostic(image, noise_scale, lerp_base, config=None, stream=0):
    """Run the diagnostic kernel; red marks the averaging regime, blue the other."""
    kernel = knn_diagnostic_fast if config is not None and config.fast_exp else knn_diagnostic
    return _launch(kernel, diagnostic_logger, image, noise_scale, lerp_base, config, stream)
