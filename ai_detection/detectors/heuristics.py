"""
Pixel-statistics heuristics for AI-generated images.

Three independent scores computed from the full resolution grayscale
buffer, each normalized to [0, 1]:

- frequency spectrum: mean Sobel gradient magnitude over interior pixels
- noise residual: mean absolute difference between the image and its
  3x3 box blur
- color histogram: Shannon entropy of a 16-bin intensity histogram

The scores are deterministic for a given buffer. They are reported next
to the classifier probability and do not drive the verdict.
"""

import logging

import numpy as np

from lib.exceptions import ImageTooSmallError
from lib.forensics.filters import box_blur, sobel_magnitude
from lib.forensics.statistics import normalized_entropy
from synthscan import settings

from .base import HeuristicScores
from .preprocess import MIN_SIDE, GrayscaleBuffer


logger = logging.getLogger(__name__)


def _require_interior(gray: GrayscaleBuffer) -> None:
    if gray.width < MIN_SIDE or gray.height < MIN_SIDE:
        raise ImageTooSmallError(
            f"Heuristics need at least {MIN_SIDE}x{MIN_SIDE} pixels, "
            f"got {gray.width}x{gray.height}"
        )


def frequency_spectrum_score(gray: GrayscaleBuffer) -> float:
    """
    Edge energy: Sobel magnitude averaged over (w-2)*(h-2), divided by 255.

    A single Sobel response can reach 4*sqrt(2)*255, so very hard edges
    would score above 1. The score is capped at 1.0.
    """
    _require_interior(gray)
    magnitude = sobel_magnitude(gray.as_2d())
    avg = magnitude.sum() / ((gray.width - 2) * (gray.height - 2))
    return min(1.0, float(avg / 255))


def noise_residual_score(gray: GrayscaleBuffer) -> float:
    """
    Residual against a 3x3 box blur, divided by pixel count * 255.

    The blur is only computed for interior pixels, so every border pixel
    is compared against zero and contributes its full intensity.
    """
    _require_interior(gray)
    data = gray.as_2d().astype(np.float64)
    # The blur is held at float32 precision, like the grayscale buffer.
    blur = box_blur(data).astype(np.float32).astype(np.float64)
    residual = np.abs(data - blur).sum()
    return float(residual / (len(gray) * 255))


def color_histogram_score(gray: GrayscaleBuffer, bins: int = None) -> float:
    """Entropy of the intensity histogram over [0, 256), divided by log2(bins)."""
    bins = bins or settings.HISTOGRAM_BINS
    if len(gray) == 0:
        raise ImageTooSmallError("Heuristics need a non-empty image")
    return float(normalized_entropy(gray.values, bins=bins))


def compute_heuristics(gray: GrayscaleBuffer) -> HeuristicScores:
    """Run all three scores on one grayscale buffer."""
    return HeuristicScorer().score(gray)


class HeuristicScorer:
    """Runs the three scores; the pipeline holds one per analyzer."""

    name = "Heuristic Scorer"

    def __init__(self, bins: int = None):
        self.bins = bins or settings.HISTOGRAM_BINS

    def score(self, gray: GrayscaleBuffer) -> HeuristicScores:
        scores = HeuristicScores(
            frequency_spectrum=frequency_spectrum_score(gray),
            noise_residual=noise_residual_score(gray),
            color_histogram=color_histogram_score(gray, bins=self.bins),
        )
        logger.debug("Heuristics for %dx%d: %s", gray.width, gray.height, scores)
        return scores
