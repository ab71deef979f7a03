# SynthScan - Copyright (C) 2013-2026 SynthScan Developers.
# This file is part of SynthScan.
# See the file 'docs/LICENSE.txt' for license terms.

"""
Statistical analysis utilities for forensic detection.
"""

import numpy as np


def calculate_histogram(data, bins=16, value_range=(0, 256)):
    """
    Count values into equal-width bins.

    Values equal to the upper bound land in the last bin.

    Args:
        data: NumPy array
        bins: Number of histogram bins
        value_range: (low, high) covered by the bins

    Returns:
        int64 array of bin counts
    """
    low, high = value_range
    values = np.asarray(data, dtype=np.float64).ravel()
    idx = np.floor((values - low) / (high - low) * bins).astype(np.int64)
    idx = np.clip(idx, 0, bins - 1)
    return np.bincount(idx, minlength=bins)


def calculate_entropy(data, bins=256):
    """
    Calculate Shannon entropy of data.
    
    Args:
        data: NumPy array
        bins: Number of histogram bins
        
    Returns:
        Entropy value in bits (float)
    """
    hist = calculate_histogram(data, bins=bins)
    hist = hist[hist > 0]  # Remove zero bins
    if hist.size <= 1:
        return 0.0
    prob = hist / hist.sum()
    entropy = -np.sum(prob * np.log2(prob))
    return float(entropy)


def normalized_entropy(data, bins=16):
    """
    Shannon entropy divided by its maximum, log2(bins).

    Returns:
        Value in [0, 1]
    """
    return calculate_entropy(data, bins=bins) / np.log2(bins)
