"""
CPU implementation of the KNN denoise filter and its diagnostic pass.

Each tile of the image is processed as one vectorized numpy task: the window
offsets are looped over, every pixel of the tile is handled at once. Tiles go
to a thread pool and write disjoint slices of the output buffer.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime

import numpy as np

from knn_denoise.config import KNNConfig, validate_parameters
from knn_denoise.utils.colors import pack_colors
from knn_denoise.utils.tiling import iter_tiles
from knn_denoise.utils.weights import color_distance, knn_weight, lerp, window_offsets

filter_logger = logging.getLogger("KNNFilter")
diagnostic_logger = logging.getLogger("KNNDiagnostic")


def _tile_coordinates(x0, x1, y0, y1):
    # Texel centers of the tile
    xs = np.arange(x0, x1, dtype=np.float32) + np.float32(0.5)
    ys = np.arange(y0, y1, dtype=np.float32) + np.float32(0.5)
    return np.meshgrid(xs, ys)


def _knn_tile(sampler, tile, noise_scale, config, accumulate):
    u, v = _tile_coordinates(*tile)
    center = sampler.sample(u, v)[..., :3]

    sum_clr = np.zeros_like(center)
    sum_weights = np.zeros(center.shape[:-1], dtype=np.float32)
    matches = np.zeros(center.shape[:-1], dtype=np.int32)

    for i, j in window_offsets(config.window_radius):
        clr = sampler.sample(u + np.float32(j), v + np.float32(i))[..., :3]
        weight = knn_weight(color_distance(center, clr), i, j, noise_scale,
                            config.inv_window_area, config.fast_exp)
        if accumulate:
            sum_clr += clr * weight[..., np.newaxis]
            sum_weights += weight
        matches += weight > np.float32(config.weight_threshold)

    match_fraction = matches.astype(np.float32) / np.float32(config.window_area)
    return center, sum_clr, sum_weights, match_fraction


def _filter_tile(sampler, tile, noise_scale, lerp_base, config):
    center, sum_clr, sum_weights, match_fraction = _knn_tile(sampler, tile, noise_scale, config, True)

    # The center texel has weight 1, so sum_weights > 0
    average = sum_clr / sum_weights[..., np.newaxis]

    lerp_c = np.float32(lerp_base)
    lerp_q = np.where(match_fraction > np.float32(config.lerp_threshold), lerp_c, np.float32(1.0) - lerp_c)
    result = lerp(average, center, lerp_q[..., np.newaxis])
    return pack_colors(result), average, match_fraction, lerp_q


def _diagnostic_tile(sampler, tile, noise_scale, config):
    _, _, _, match_fraction = _knn_tile(sampler, tile, noise_scale, config, False)
    lerp_q = (match_fraction > np.float32(config.lerp_threshold)).astype(np.float32)
    rgb = np.stack([lerp_q, np.zeros_like(lerp_q), np.float32(1.0) - lerp_q], axis=-1)
    return pack_colors(rgb)


def _run_tiles(work, width, height, config):
    tiles = list(iter_tiles(width, height, config.tile_size))
    if config.workers == 1 or len(tiles) <= 1:
        return [(tile, work(tile)) for tile in tiles]
    with ThreadPoolExecutor(max_workers=config.workers) as pool:
        return list(zip(tiles, pool.map(work, tiles)))


def knn_filter(sampler, width, height, noise_scale, lerp_base, config=None, return_intermediate=False):
    """
    Denoise the image behind `sampler` into a (height, width) uint32 buffer of
    packed colors.

    With return_intermediate=True a dict is returned holding the packed
    "output" together with the per-pixel "average" color, "match_fraction"
    and chosen "lerp_q".
    """
    config = config or KNNConfig()
    config.validate()
    validate_parameters(noise_scale, lerp_base)

    output = np.zeros((height, width), dtype=np.uint32)
    average = np.zeros((height, width, 3), dtype=np.float32)
    match_fraction = np.zeros((height, width), dtype=np.float32)
    lerp_q = np.zeros((height, width), dtype=np.float32)

    start_time = time.time()
    results = _run_tiles(lambda tile: _filter_tile(sampler, tile, noise_scale, lerp_base, config),
                         width, height, config)
    for (x0, x1, y0, y1), (packed, avg, fraction, q) in results:
        output[y0:y1, x0:x1] = packed
        average[y0:y1, x0:x1] = avg
        match_fraction[y0:y1, x0:x1] = fraction
        lerp_q[y0:y1, x0:x1] = q
    elapsed_time_ms = (time.time() - start_time) * 1000

    filter_logger.debug(f"Timestamp: {datetime.now()}, {width}x{height}, tiles: {len(results)}, EXECUTION TIME ms: {elapsed_time_ms}")

    if return_intermediate:
        return {
            "output": output,
            "average": average,
            "match_fraction": match_fraction,
            "lerp_q": lerp_q,
        }
    return output


def knn_diagnostic(sampler, width, height, noise_scale, lerp_base, config=None):
    """
    Two-color map of the blend regime knn_filter picks per pixel: red where
    the window is averaged with lerp_base, blue where 1 - lerp_base is used.

    lerp_base does not change the map; it is accepted so both passes share a
    signature.
    """
    config = config or KNNConfig()
    config.validate()
    validate_parameters(noise_scale, lerp_base)

    output = np.zeros((height, width), dtype=np.uint32)

    start_time = time.time()
    results = _run_tiles(lambda tile: _diagnostic_tile(sampler, tile, noise_scale, config),
                         width, height, config)
    for (x0, x1, y0, y1), packed in results:
        output[y0:y1, x0:x1] = packed
    elapsed_time_ms = (time.time() - start_time) * 1000

    diagnostic_logger.debug(f"Timestamp: {datetime.now()}, {width}x{height}, tiles: {len(results)}, EXECUTION TIME ms: {elapsed_time_ms}")

    return output
