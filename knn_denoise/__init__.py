"""KNN Denoise.

Edge-preserving KNN image denoising: a weighted average over a square window,
blended back against the original pixel depending on how much of the window
looks like it. Runs as numba CUDA kernels or as a tiled numpy CPU pass.
"""

from knn_denoise.config import (
    AddressMode,
    FilterMode,
    KNNConfig,
    validate_parameters,
)
from knn_denoise.cpu.KNNFilter import knn_diagnostic, knn_filter
from knn_denoise.utils.sampler import Sampler2D

__all__ = [
    "AddressMode",
    "FilterMode",
    "KNNConfig",
    "Sampler2D",
    "denoise_frame",
    "knn_diagnostic",
    "knn_filter",
    "validate_parameters",
]

__version__ = "1.0.0"


def denoise_frame(frame, noise_scale, lerp_base, config=None, backend="cpu", diagnostic=False):
    """
    Filter an 8-bit BGR frame (as loaded by OpenCV) and return the packed
    uint32 output buffer.

    backend is "cpu" or "gpu"; diagnostic=True returns the regime map instead
    of the denoised image.
    """
    config = config or KNNConfig()

    if backend == "gpu":
        from knn_denoise.Filters.KNNLauncher import apply_knn_diagnostic, apply_knn_filter

        sampler = Sampler2D.from_frame(frame, config.address_mode, config.filter_mode)
        launch = apply_knn_diagnostic if diagnostic else apply_knn_filter
        return launch(sampler.texels, noise_scale, lerp_base, config)

    if backend != "cpu":
        raise ValueError(f"Unknown backend {backend!r}, expected 'cpu' or 'gpu'")

    sampler = Sampler2D.from_frame(frame, config.address_mode, config.filter_mode)
    run = knn_diagnostic if diagnostic else knn_filter
    return run(sampler, sampler.width, sampler.height, noise_scale, lerp_base, config)
