"""
Score fusion and verdict.

The verdict comes from the classifier probability alone. Heuristic
scores and the camera metadata flag are copied into the result unchanged
so callers can display them next to the verdict.
"""

from synthscan import settings

from .base import ClassifierOutput, DetectionResult, HeuristicScores, Verdict


def verdict(probability: float, threshold: float = None) -> Verdict:
    """AI-generated iff probability is strictly above the threshold."""
    if threshold is None:
        threshold = settings.VERDICT_THRESHOLD
    if probability > threshold:
        return Verdict.AI_GENERATED
    return Verdict.NOT_AI_GENERATED


def fuse(classifier: ClassifierOutput, camera_info_present: bool,
         heuristics: HeuristicScores, threshold: float = None) -> DetectionResult:
    """Assemble the DetectionResult for one request."""
    return DetectionResult(
        probability=classifier.probability,
        camera_info_present=bool(camera_info_present),
        frequency_spectrum=heuristics.frequency_spectrum,
        noise_residual=heuristics.noise_residual,
        color_histogram=heuristics.color_histogram,
        final_verdict=verdict(classifier.probability, threshold),
    )
