from numba import cuda, float32
import math

from knn_denoise.Filters.DeviceFunctions import tex2d, vec_len, make_color


def compile_knn_diagnostic(fastmath=False):
    """
    Build the diagnostic kernel: same weights as the KNN filter, no color
    accumulation, the chosen regime is written as red (averaging with lerp_c)
    or blue.
    """

    @cuda.jit(fastmath=fastmath)
    def knn_diagnostic(image, dst, noise, lerp_c, radius, weight_threshold, lerp_threshold, wrap, linear):
        x, y = cuda.grid(2)
        if x >= dst.shape[1] or y >= dst.shape[0]:
            return

        window_area = float32((2 * radius + 1) * (2 * radius + 1))
        inv_window_area = float32(1.0) / window_area

        fx = float32(x) + float32(0.5)
        fy = float32(y) + float32(0.5)
        r00, g00, b00 = tex2d(image, fx, fy, wrap, linear)

        matches = 0
        for i in range(-radius, radius + 1):
            for j in range(-radius, radius + 1):
                r_ij, g_ij, b_ij = tex2d(image, fx + float32(j), fy + float32(i), wrap, linear)
                distance_ij = vec_len(r00, g00, b00, r_ij, g_ij, b_ij)
                weight_ij = float32(math.exp(-(distance_ij * noise + float32(i * i + j * j) * inv_window_area)))
                if weight_ij > weight_threshold:
                    matches += 1

        match_fraction = float32(matches) / window_area
        if match_fraction > lerp_threshold:
            lerp_q = float32(1.0)
        else:
            lerp_q = float32(0.0)

        dst[y, x] = make_color(lerp_q, float32(0.0), float32(1.0) - lerp_q, float32(0.0))

    return knn_diagnostic


knn_diagnostic = compile_knn_diagnostic()
knn_diagnostic_fast = compile_knn_diagnostic(fastmath=True)
