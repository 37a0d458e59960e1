#!/usr/bin/python3
"""
Command line driver: load an image, run the KNN filter and its diagnostic
pass, save both, log execution time and distortion.
"""

import argparse
import logging
import os  # Used to get the image name
import sys
import time
from datetime import datetime  # Used in the logs to timestamp the execution

import cv2
import matplotlib.pyplot as plt

from knn_denoise import denoise_frame
from knn_denoise.config import (
    DEFAULT_LERP,
    DEFAULT_NOISE_SCALE,
    KNN_LERP_THRESHOLD,
    KNN_WEIGHT_THRESHOLD,
    KNN_WINDOW_RADIUS,
    THREADS_PER_BLOCK,
    TILE_SIZE,
    AddressMode,
    KNNConfig,
    validate_parameters,
)
from knn_denoise.utils.colors import packed_to_frame
from knn_denoise.utils.metrics import measure_distortion

filter_logger = logging.getLogger("KNNFilter")
diagnostic_logger = logging.getLogger("KNNDiagnostic")


def get_image_name(image_path):
    return os.path.splitext(os.path.basename(image_path))[0]


def build_parser():
    parser = argparse.ArgumentParser(prog="knn-denoise", description="Edge-preserving KNN image denoising")
    parser.add_argument("input", help="Path of the image to denoise")
    parser.add_argument("--output", help="Where to write the denoised image (default: <results-dir>/<name>_knn.png)")
    parser.add_argument("--diagnostic-output", help="Where to write the regime map (default: <results-dir>/<name>_knn_diagnostic.png)")
    parser.add_argument("--backend", choices=["cpu", "gpu"], default="cpu")
    parser.add_argument("--noise-scale", type=float, default=DEFAULT_NOISE_SCALE, help="Sensitivity of the weights to color distance")
    parser.add_argument("--lerp", type=float, default=DEFAULT_LERP, help="Base blend fraction in [0, 1]")
    parser.add_argument("--radius", type=int, default=KNN_WINDOW_RADIUS)
    parser.add_argument("--weight-threshold", type=float, default=KNN_WEIGHT_THRESHOLD)
    parser.add_argument("--lerp-threshold", type=float, default=KNN_LERP_THRESHOLD)
    parser.add_argument("--address-mode", choices=[mode.value for mode in AddressMode], default=AddressMode.CLAMP.value)
    parser.add_argument("--fast-exp", action="store_true", help="Use the approximate exponential")
    parser.add_argument("--tile-size", type=int, default=TILE_SIZE, help="CPU tile edge in pixels")
    parser.add_argument("--workers", type=int, default=None, help="CPU worker threads")
    parser.add_argument("--block-size", type=int, default=THREADS_PER_BLOCK[0], help="GPU threads per block along each axis")
    parser.add_argument("--results-dir", help="Directory for outputs and logs (default: results/<backend>)")
    parser.add_argument("--show", action="store_true", help="Display input, output and regime map")
    return parser


def config_from_args(args):
    return KNNConfig(
        window_radius=args.radius,
        weight_threshold=args.weight_threshold,
        lerp_threshold=args.lerp_threshold,
        fast_exp=args.fast_exp,
        address_mode=AddressMode(args.address_mode),
        tile_size=args.tile_size,
        workers=args.workers,
        threads_per_block=(args.block_size, args.block_size),
    )


def show_results(frame, filtered_frame, diagnostic_frame):
    plt.figure(figsize=(15, 5))
    for position, (title, image) in enumerate(
        [("Input", frame), ("KNN denoised", filtered_frame), ("Regime (red: averaged)", diagnostic_frame)], start=1
    ):
        plt.subplot(1, 3, position)
        plt.imshow(cv2.cvtColor(image, cv2.COLOR_BGR2RGB))
        plt.title(title)
        plt.axis("off")
    plt.tight_layout()
    plt.show()


def main(argv=None):
    args = build_parser().parse_args(argv)

    # Configure logging for each filter
    logging.basicConfig(level=logging.INFO)

    config = config_from_args(args)
    try:
        config.validate()
        validate_parameters(args.noise_scale, args.lerp)
    except ValueError as e:
        filter_logger.error(f"Invalid parameters: {e}")
        return 1

    frame = cv2.imread(args.input, cv2.IMREAD_COLOR)
    if frame is None:
        filter_logger.error(f"Cannot read image {args.input}")
        return 1

    results_dir = args.results_dir or os.path.join("results", args.backend)  # Directory to store the results
    if not os.path.exists(results_dir):
        os.makedirs(results_dir)  # Create the results directory if it does not exist

    image_name = get_image_name(args.input)
    output_path = args.output or os.path.join(results_dir, f"{image_name}_knn.png")
    diagnostic_path = args.diagnostic_output or os.path.join(results_dir, f"{image_name}_knn_diagnostic.png")

    filter_handler = logging.FileHandler(os.path.join(results_dir, f"{image_name}_filter_knn.log"), "w")
    diagnostic_handler = logging.FileHandler(os.path.join(results_dir, f"{image_name}_filter_knn_diagnostic.log"), "w")
    filter_logger.addHandler(filter_handler)
    diagnostic_logger.addHandler(diagnostic_handler)

    try:
        start_time = time.time()
        packed = denoise_frame(frame, args.noise_scale, args.lerp, config, backend=args.backend)
        elapsed_time_ms = (time.time() - start_time) * 1000
        filtered_frame = packed_to_frame(packed)
        mse, psnr = measure_distortion(frame, filtered_frame)
        filter_logger.info(f"Timestamp: {datetime.now()}, EXECUTION TIME ms: {elapsed_time_ms}, MSE: {mse}, PSNR: {psnr}")

        start_time = time.time()
        packed = denoise_frame(frame, args.noise_scale, args.lerp, config, backend=args.backend, diagnostic=True)
        elapsed_time_ms = (time.time() - start_time) * 1000
        diagnostic_frame = packed_to_frame(packed)
        diagnostic_logger.info(f"Timestamp: {datetime.now()}, EXECUTION TIME ms: {elapsed_time_ms}")

        cv2.imwrite(output_path, filtered_frame)
        cv2.imwrite(diagnostic_path, diagnostic_frame)
    finally:
        filter_logger.removeHandler(filter_handler)
        diagnostic_logger.removeHandler(diagnostic_handler)
        filter_handler.close()
        diagnostic_handler.close()

    if args.show:
        show_results(frame, filtered_frame, diagnostic_frame)

    return 0


if __name__ == "__main__":
    sys.exit(main())
