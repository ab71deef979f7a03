# SynthScan - Copyright (C) 2013-2026 SynthScan Developers.
# This file is part of SynthScan.
# See the file 'docs/LICENSE.txt' for license terms.

"""
Image filtering utilities for forensic analysis.
"""

import numpy as np
from scipy.ndimage import correlate, uniform_filter


SOBEL_X = np.array([[-1, 0, 1],
                    [-2, 0, 2],
                    [-1, 0, 1]], dtype=np.float64)

SOBEL_Y = np.array([[-1, -2, -1],
                    [0, 0, 0],
                    [1, 2, 1]], dtype=np.float64)


def get_intensity(image_array):
    """
    Unweighted mean of the red, green and blue channels.

    Alpha (a 4th channel) is ignored.

    Args:
        image_array: NumPy array of image data (H, W, C) or (H, W)

    Returns:
        float32 NumPy array (H, W) with values in [0, 255]
    """
    if image_array.ndim == 2:
        return image_array.astype(np.float32)

    rgb = image_array[:, :, :3].astype(np.float32)
    return (rgb[:, :, 0] + rgb[:, :, 1] + rgb[:, :, 2]) / np.float32(3)


def sobel_magnitude(gray):
    """
    Sobel gradient magnitude at interior pixels.

    Args:
        gray: 2D NumPy array, at least 3x3

    Returns:
        float64 array of shape (H-2, W-2), sqrt(gx^2 + gy^2) per pixel
    """
    data = gray.astype(np.float64)
    # Border handling only touches the outer ring, which is cut away.
    gx = correlate(data, SOBEL_X, mode="constant", cval=0.0)[1:-1, 1:-1]
    gy = correlate(data, SOBEL_Y, mode="constant", cval=0.0)[1:-1, 1:-1]
    return np.sqrt(gx * gx + gy * gy)


def box_blur(gray):
    """
    3x3 unweighted mean blur of interior pixels.

    The 1-pixel border of the output is left at zero.

    Args:
        gray: 2D NumPy array, at least 3x3

    Returns:
        float64 array with the same shape as gray
    """
    data = gray.astype(np.float64)
    blur = np.zeros_like(data)
    blur[1:-1, 1:-1] = uniform_filter(data, size=3, mode="constant", cval=0.0)[1:-1, 1:-1]
    return blur
