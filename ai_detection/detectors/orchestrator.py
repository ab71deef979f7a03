"""
Single-request analysis pipeline.

Runs the stages in order and reports progress after each one::

    decode -> classify -> heuristics -> metadata -> fuse

Decode and classifier failures abort the request by raising. Metadata
failures never do. The optional progress callback is informational; if
it raises, the error is logged and the analysis carries on.
"""

import logging
from typing import Callable, Optional

from lib.exceptions import SynthScanException

from .base import DetectionResult
from .classifier import ClassifierAdapter, get_model_handle
from .fusion import fuse
from .heuristics import HeuristicScorer
from .metadata import MetadataInspector
from .preprocess import (
    EncodedBytes, as_source, check_dimensions, classifier_grid, load_sample,
    to_grayscale,
)


logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, int], None]

# (step label, percent) in emission order.
LOADING_MODEL = ("Loading model", 10)
MODEL_LOADED = ("Model loaded", 30)
COMPUTING_HEURISTICS = ("Computing heuristics", 60)
PARSING_METADATA = ("Parsing EXIF data", 80)
ANALYSIS_COMPLETE = ("Analysis complete", 100)

STEPS = (LOADING_MODEL, MODEL_LOADED, COMPUTING_HEURISTICS, PARSING_METADATA,
         ANALYSIS_COMPLETE)


class ProgressReporter:
    """Forwards steps to a callback, never letting percentages go backwards."""

    def __init__(self, callback: Optional[ProgressCallback] = None):
        self.callback = callback
        self.last = 0

    def __call__(self, step):
        label, percent = step
        percent = max(self.last, min(100, int(percent)))
        self.last = percent
        if self.callback is None:
            return
        try:
            self.callback(label, percent)
        except Exception as e:
            logger.warning(f"Progress callback failed at '{label}': {e}")


class ImageAnalyzer:
    """
    Orchestrates the detection stages for one image at a time.

    An analyzer holds no per-request state and can be shared by several
    runner threads; the classifier model behind it is loaded once.
    """

    def __init__(self, classifier: Optional[ClassifierAdapter] = None,
                 scorer: Optional[HeuristicScorer] = None,
                 inspector: Optional[MetadataInspector] = None,
                 model_path=None):
        """
        Args:
            classifier: adapter to use; built from model_path otherwise
            scorer: heuristic scorer, default HeuristicScorer()
            inspector: metadata inspector, default MetadataInspector()
            model_path: classifier artifact, defaults to settings.MODEL_PATH
        """
        self.classifier = classifier or ClassifierAdapter(get_model_handle(model_path))
        self.scorer = scorer or HeuristicScorer()
        self.inspector = inspector or MetadataInspector()
        self.inspector.check_deps()
        logger.debug("Analyzer initialized with %s, %s, %s",
                     self.classifier.name, self.scorer.name, self.inspector.name)

    def analyze(self, payload, progress: Optional[ProgressCallback] = None) -> DetectionResult:
        """
        Analyze one image.

        Args:
            payload: encoded bytes, data URI, or a DecodableSource
            progress: optional callable(step, percent)

        Returns:
            DetectionResult

        Raises:
            ImageDecodeError: unreadable, empty or too small image
            ClassifierError: model load or inference failure
        """
        report = ProgressReporter(progress)

        source = as_source(payload)
        sample = load_sample(source)
        check_dimensions(sample)

        report(LOADING_MODEL)
        self.classifier.load()
        report(MODEL_LOADED)

        grid = classifier_grid(sample, size=self.classifier.grid_size)
        classifier_output = self.classifier.classify(grid)

        report(COMPUTING_HEURISTICS)
        heuristics = self.scorer.score(to_grayscale(sample))

        report(PARSING_METADATA)
        camera_info_present = False
        if isinstance(source, EncodedBytes):
            camera_info_present = self.inspector.camera_info_present(source.data)

        result = fuse(classifier_output, camera_info_present, heuristics)
        report(ANALYSIS_COMPLETE)

        logger.info("Analysis complete: p=%.4f verdict=%s camera=%s",
                    result.probability, result.final_verdict, result.camera_info_present)
        return result


def analyze(payload, progress: Optional[ProgressCallback] = None, model_path=None) -> DetectionResult:
    """Convenience wrapper around a one-off ImageAnalyzer."""
    return ImageAnalyzer(model_path=model_path).analyze(payload, progress=progress)


def is_fatal(error: BaseException) -> bool:
    """Errors the pipeline raises on purpose, as opposed to bugs."""
    return isinstance(error, SynthScanException)
