"""
Heuristic threshold evaluation.

Scores a labelled validation set laid out as::

    <root>/real/*.jpg
    <root>/ai/*.png

and sweeps a single-score threshold from 0.00 to 1.00 to find the cut
with the best accuracy. An image is predicted ``real`` when its score is
above the threshold.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence, Tuple

from ai_detection.detectors.heuristics import HeuristicScorer
from ai_detection.detectors.preprocess import decode_image, to_grayscale

logger = logging.getLogger(__name__)

LABELS = ("real", "ai")
METRICS = ("frequency_spectrum", "noise_residual", "color_histogram")


@dataclass(frozen=True)
class Sample:
    label: str
    path: Path


@dataclass(frozen=True)
class ScoredSample:
    label: str
    path: Path
    score: float


def load_dataset(root) -> List[Sample]:
    """Collect labelled files under root/real and root/ai, skipping dotfiles."""
    root = Path(root)
    samples = []
    for label in LABELS:
        directory = root / label
        if not directory.is_dir():
            logger.warning("Missing dataset directory: %s", directory)
            continue
        for path in sorted(directory.iterdir()):
            if path.name.startswith(".") or not path.is_file():
                continue
            samples.append(Sample(label=label, path=path))
    return samples


def score_samples(samples: Sequence[Sample], metric: str = "noise_residual") -> List[ScoredSample]:
    """Compute one heuristic score per sample. Unreadable files are skipped."""
    if metric not in METRICS:
        raise ValueError(f"Unknown metric '{metric}', must be one of {METRICS}")

    scorer = HeuristicScorer()
    scored = []
    for sample in samples:
        try:
            image = decode_image(sample.path.read_bytes())
            scores = scorer.score(to_grayscale(image))
        except Exception as e:
            logger.warning("Skipping %s: %s", sample.path, e)
            continue
        scored.append(ScoredSample(sample.label, sample.path, getattr(scores, metric)))
    return scored


def best_threshold(scored: Sequence[ScoredSample], step: float = 0.01) -> Tuple[float, float]:
    """
    Sweep thresholds in [0, 1] and return (threshold, accuracy).

    Ties keep the lowest threshold. Returns (0.0, 0.0) for no samples.
    """
    if not scored:
        return 0.0, 0.0

    best_acc = 0.0
    best_th = 0.0
    steps = int(round(1.0 / step))
    for i in range(steps + 1):
        th = i * step
        correct = sum(
            1 for s in scored
            if ("real" if s.score > th else "ai") == s.label
        )
        acc = correct / len(scored)
        if acc > best_acc:
            best_acc = acc
            best_th = th
    return best_th, best_acc


def evaluate(root, metric: str = "noise_residual") -> dict:
    """Load, score and sweep a dataset directory."""
    samples = load_dataset(root)
    if not samples:
        logger.warning("No validation images found in %s", root)
        return {"samples": 0, "threshold": None, "accuracy": None, "metric": metric}

    scored = score_samples(samples, metric=metric)
    threshold, accuracy = best_threshold(scored)
    return {
        "samples": len(scored),
        "threshold": threshold,
        "accuracy": accuracy,
        "metric": metric,
    }
