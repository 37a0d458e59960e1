from numba import cuda, float32
import math


@cuda.jit(device=True)
def address(index, size, wrap):
    """
    Resolve a texel index outside [0, size) by wrapping or clamping
    """
    if wrap:
        return index % size
    # Clamp to image boundaries with min/max instead of if conditions
    return min(max(index, 0), size - 1)


@cuda.jit(device=True)
def tex2d(image, u, v, wrap, linear):
    """
    Sample the RGB channels of a float RGBA image at continuous coordinates,
    the way a CUDA texture with unnormalized coordinates does
    """
    height = image.shape[0]
    width = image.shape[1]

    if linear:
        # Texel k has its center at k + 0.5
        xb = u - float32(0.5)
        yb = v - float32(0.5)
    else:
        xb = u
        yb = v

    ix = int(math.floor(xb))
    iy = int(math.floor(yb))
    ax = xb - float32(ix)
    ay = yb - float32(iy)
    if not linear:
        ax = float32(0.0)
        ay = float32(0.0)

    x0 = address(ix, width, wrap)
    x1 = address(ix + 1, width, wrap)
    y0 = address(iy, height, wrap)
    y1 = address(iy + 1, height, wrap)

    w00 = (float32(1.0) - ax) * (float32(1.0) - ay)
    w10 = ax * (float32(1.0) - ay)
    w01 = (float32(1.0) - ax) * ay
    w11 = ax * ay

    r = image[y0, x0, 0] * w00 + image[y0, x1, 0] * w10 + image[y1, x0, 0] * w01 + image[y1, x1, 0] * w11
    g = image[y0, x0, 1] * w00 + image[y0, x1, 1] * w10 + image[y1, x0, 1] * w01 + image[y1, x1, 1] * w11
    b = image[y0, x0, 2] * w00 + image[y0, x1, 2] * w10 + image[y1, x0, 2] * w01 + image[y1, x1, 2] * w11
    return r, g, b


@cuda.jit(device=True)
def vec_len(r0, g0, b0, r1, g1, b1):
    # Squared distance in RGB space
    return (r1 - r0) * (r1 - r0) + (g1 - g0) * (g1 - g0) + (b1 - b0) * (b1 - b0)


@cuda.jit(device=True)
def lerpf(a, b, c):
    return a + (b - a) * c


@cuda.jit(device=True)
def quantize(c):
    if c != c:
        # NaN from an overflowed weight sum packs as 0
        return 0
    return int(min(max(c, float32(0.0)), float32(1.0)) * float32(255.0)) & 0xFF


@cuda.jit(device=True)
def make_color(r, g, b, a):
    """
    Pack four channels in [0, 1] into R | G << 8 | B << 16 | A << 24
    """
    return (quantize(a) << 24) | (quantize(b) << 16) | (quantize(g) << 8) | quantize(r)
