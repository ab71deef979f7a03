"""
Result records shared by the detection stages.

Every stage returns one of these immutable records. The orchestrator
merges them into a single DetectionResult per analysis request.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Tuple


class Verdict(str, Enum):
    """Final binary label."""
    AI_GENERATED = "AI-generated"
    NOT_AI_GENERATED = "not AI-generated"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class HeuristicScores:
    """
    Pixel-statistics scores, each in [0, 1].

    Attributes:
        frequency_spectrum: mean Sobel gradient magnitude / 255
        noise_residual: mean |gray - box blur| / 255
        color_histogram: 16-bin intensity entropy / log2(16)
    """
    frequency_spectrum: float
    noise_residual: float
    color_histogram: float

    def to_dict(self) -> Dict:
        return {
            'frequencySpectrum': self.frequency_spectrum,
            'noiseResidual': self.noise_residual,
            'colorHistogram': self.color_histogram,
        }


@dataclass(frozen=True)
class ClassifierOutput:
    """Softmax probability of the positive class plus the raw scores."""
    probability: float
    scores: Tuple[float, ...] = field(default=(), compare=False)


@dataclass(frozen=True)
class DetectionResult:
    """
    Terminal record of one analysis request.

    The verdict is derived from ``probability`` alone; the heuristic
    scores are reported for display and do not feed into it.
    """
    probability: float
    camera_info_present: bool
    frequency_spectrum: float
    noise_residual: float
    color_histogram: float
    final_verdict: Verdict

    @property
    def heuristics(self) -> HeuristicScores:
        return HeuristicScores(
            frequency_spectrum=self.frequency_spectrum,
            noise_residual=self.noise_residual,
            color_histogram=self.color_histogram,
        )

    @property
    def is_ai_generated(self) -> bool:
        return self.final_verdict is Verdict.AI_GENERATED

    def to_dict(self) -> Dict:
        """Convert to the wire shape (camelCase keys)."""
        return {
            'probability': self.probability,
            'cameraInfoPresent': self.camera_info_present,
            'frequencySpectrum': self.frequency_spectrum,
            'noiseResidual': self.noise_residual,
            'colorHistogram': self.color_histogram,
            'finalVerdict': self.final_verdict.value,
        }
