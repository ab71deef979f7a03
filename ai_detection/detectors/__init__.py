"""
AI Detection - Classifier + Heuristics Pipeline

Each stage lives in its own module; ImageAnalyzer chains them for one
request and reports progress along the way.
"""

from .base import ClassifierOutput, DetectionResult, HeuristicScores, Verdict
from .classifier import ClassifierAdapter, ModelHandle, get_model_handle, softmax
from .heuristics import HeuristicScorer, compute_heuristics
from .metadata import MetadataInspector
from .orchestrator import ImageAnalyzer, analyze
from .preprocess import DecodedRaster, EncodedBytes, GrayscaleBuffer, ImageSample

__all__ = [
    'ClassifierOutput', 'DetectionResult', 'HeuristicScores', 'Verdict',
    'ClassifierAdapter', 'ModelHandle', 'get_model_handle', 'softmax',
    'HeuristicScorer', 'compute_heuristics', 'MetadataInspector',
    'ImageAnalyzer', 'analyze',
    'DecodedRaster', 'EncodedBytes', 'GrayscaleBuffer', 'ImageSample',
]
