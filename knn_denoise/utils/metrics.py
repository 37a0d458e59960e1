import math

import cv2
import numpy as np


def measure_distortion(original_frame, filtered_frame):
    """
    Mean squared error and PSNR (dB) between two 8-bit BGR frames, computed on
    their grayscale versions.
    """
    if (original_frame.shape[0] != filtered_frame.shape[0]) or (original_frame.shape[1] != filtered_frame.shape[1]):
        # Resize the original frame to match the dimensions of the filtered frame
        original_frame = cv2.resize(original_frame, (filtered_frame.shape[1], filtered_frame.shape[0]))

    # Convert frames to grayscale
    original_gray = cv2.cvtColor(original_frame, cv2.COLOR_BGR2GRAY).astype(np.float64)
    filtered_gray = cv2.cvtColor(filtered_frame, cv2.COLOR_BGR2GRAY).astype(np.float64)

    mse = float(np.mean((original_gray - filtered_gray) ** 2))

    if mse == 0:
        psnr = float("inf")
    else:
        psnr = 20 * math.log10(255.0 / math.sqrt(mse))

    return mse, psnr
