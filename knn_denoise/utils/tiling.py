"""
Work partitioning: CUDA launch grids and CPU tiles.
"""

import math


def blocks_per_grid(width, height, threads_per_block):
    """
    Number of blocks along x (width) and y (height) needed to cover the image
    with one thread per pixel.
    """
    # To cover the whole image take the frame size and divide it by the threads in each block
    blocks_x = math.ceil(width / threads_per_block[0])
    blocks_y = math.ceil(height / threads_per_block[1])
    return (blocks_x, blocks_y)


def iter_tiles(width, height, tile_size):
    """
    Yield (x0, x1, y0, y1) tiles in row-major order; together they cover every
    pixel exactly once.
    """
    for y0 in range(0, height, tile_size):
        for x0 in range(0, width, tile_size):
            yield (x0, min(x0 + tile_size, width), y0, min(y0 + tile_size, height))
