# SynthScan - Copyright (C) 2013-2026 SynthScan Developers.
# This file is part of SynthScan.
# See the file 'docs/LICENSE.txt' for license terms.

class SynthScanException(Exception):
    """Base SynthScan exception."""
    pass

class ImageDecodeError(SynthScanException):
    """The payload could not be decoded into an image."""
    pass

class ImageTooSmallError(ImageDecodeError):
    """The image is too small for the 3x3 heuristic kernels."""
    pass

class ClassifierError(SynthScanException):
    """An error occurred when running the classifier."""
    pass

class ModelLoadError(ClassifierError):
    """The classifier artifact could not be loaded on any backend."""
    pass

class AnalysisFailed(SynthScanException):
    """An analysis request ended with a terminal error."""

    def __init__(self, error):
        super().__init__(error)
        self.error = error

class AnalysisTimeout(SynthScanException):
    """No terminal message arrived within the caller's timeout."""
    pass
