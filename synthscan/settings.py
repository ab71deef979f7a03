# SynthScan - Copyright (C) 2026 SynthScan Developers.
# This file is part of SynthScan.
# See the file 'docs/LICENSE.txt' for license terms.

import os

# Actual SynthScan release.
SYNTHSCAN_VERSION = "0.3.0"

# ── Classifier ────────────────────────────────────────────────────

# Path to the pretrained classifier artifact. The backend is picked from
# the suffix: ".onnx" runs on onnxruntime, ".pt"/".pth"/".ts" are loaded
# as TorchScript.
MODEL_PATH = os.path.join(os.getcwd(), "models", "mnist-8.onnx")

# Where `synthscan model` fetches the artifact from when it is missing.
MODEL_URL = (
    "https://github.com/onnx/models/raw/main/validated/vision/"
    "classification/mnist/model/mnist-8.onnx"
)

# Side of the square grayscale grid fed to the classifier.
GRID_SIZE = 28

# Pillow resampling filter used for the classifier grid. One of
# "nearest", "box", "bilinear", "bicubic", "lanczos".
GRID_RESAMPLE = "box"

# onnxruntime execution providers, in order of preference. Providers not
# compiled into the installed onnxruntime are skipped.
EXECUTION_PROVIDERS = ["CUDAExecutionProvider", "CPUExecutionProvider"]

# Torch device for TorchScript artifacts ("cuda" or "cpu"). Falls back to
# CPU when CUDA is not available.
DEVICE = "cuda"

# Index of the raw score treated as the positive ("AI-generated") class.
POSITIVE_CLASS_INDEX = 0

# ── Verdict ───────────────────────────────────────────────────────

# Probabilities strictly above this are labelled AI-generated.
VERDICT_THRESHOLD = 0.5

# ── Heuristics ────────────────────────────────────────────────────

# Number of equal-width intensity bins for the histogram entropy score.
HISTOGRAM_BINS = 16

# ── Processing ────────────────────────────────────────────────────

# Number of analysis runner threads. Each runner is single-threaded and
# handles one request at a time.
WORKER_COUNT = 1

# Max decoded image size (in pixels). Bigger images are rejected as a
# decode failure. Default is 89.5 megapixels (Pillow's own default).
MAX_IMAGE_PIXELS = 89478485

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '%(asctime)s %(levelname)s %(module)s %(message)s'
        },
        'simple': {
            'format': '%(asctime)s %(levelname)s %(message)s'
        },
        'processing': {
            'format': "%(asctime)s [%(levelname)s] %(name)s - %(message)s"
        },
    },
    'handlers': {
        'console': {
            'level': 'DEBUG',
            'class': 'logging.StreamHandler',
            'formatter': 'simple',
            },
        'processing': {
            'level': 'DEBUG',
            'class': 'logging.StreamHandler',
            'formatter': 'processing',
            },
    },
    'loggers': {
        'synthscan': {
            'handlers': ['console'],
            'level': 'INFO',
            'propagate': False,
            },
        'lib': {
            'handlers': ['processing'],
            'level': 'INFO',
            'propagate': False,
            },
        'ai_detection': {
            'handlers': ['processing'],
            'level': 'INFO',
            'propagate': False,
            },
    }
}

# Hack to import local settings.
try:
    LOCAL_SETTINGS
except NameError:
    try:
        from .local_settings import *
    except ImportError:
        pass
