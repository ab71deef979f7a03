"""
SynthScan AI Detection Module

Classifier, pixel heuristics and metadata checks for estimating whether
an image is AI-generated.
"""

__version__ = "1.0.0"
__all__ = ["detectors", "evaluation"]
