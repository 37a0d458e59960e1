from numba import cuda, float32
import math

from knn_denoise.Filters.DeviceFunctions import tex2d, vec_len, lerpf, make_color


def compile_knn_filter(fastmath=False):
    """
    Build the KNN denoise kernel. With fastmath=True the exponential is
    lowered to the hardware approximation (__expf).
    """

    @cuda.jit(fastmath=fastmath)
    def knn_filter(image, dst, noise, lerp_c, radius, weight_threshold, lerp_threshold, wrap, linear):
        x, y = cuda.grid(2)
        if x >= dst.shape[1] or y >= dst.shape[0]:
            # Outside of image bounds
            return

        window_area = float32((2 * radius + 1) * (2 * radius + 1))
        inv_window_area = float32(1.0) / window_area

        # Sample at the texel center
        fx = float32(x) + float32(0.5)
        fy = float32(y) + float32(0.5)

        # Center of the KNN window
        r00, g00, b00 = tex2d(image, fx, fy, wrap, linear)

        # Result accumulator
        r = float32(0.0)
        g = float32(0.0)
        b = float32(0.0)
        # Total sum of pixel weights
        sum_weights = float32(0.0)
        # Window texels whose weight exceeds the threshold
        matches = 0

        for i in range(-radius, radius + 1):
            for j in range(-radius, radius + 1):
                r_ij, g_ij, b_ij = tex2d(image, fx + float32(j), fy + float32(i), wrap, linear)
                distance_ij = vec_len(r00, g00, b00, r_ij, g_ij, b_ij)

                # Derive final weight from color and geometric distance
                weight_ij = float32(math.exp(-(distance_ij * noise + float32(i * i + j * j) * inv_window_area)))

                r += r_ij * weight_ij
                g += g_ij * weight_ij
                b += b_ij * weight_ij
                sum_weights += weight_ij

                if weight_ij > weight_threshold:
                    matches += 1

        # Normalize result color by sum of weights
        r = r / sum_weights
        g = g / sum_weights
        b = b / sum_weights

        # Choose the lerp quotient from how many texels exceeded the weight threshold
        match_fraction = float32(matches) / window_area
        if match_fraction > lerp_threshold:
            lerp_q = lerp_c
        else:
            lerp_q = float32(1.0) - lerp_c

        r = lerpf(r, r00, lerp_q)
        g = lerpf(g, g00, lerp_q)
        b = lerpf(b, b00, lerp_q)

        dst[y, x] = make_color(r, g, b, float32(0.0))

    return knn_filter


knn_filter = compile_knn_filter()
knn_filter_fast = compile_knn_filter(fastmath=True)
