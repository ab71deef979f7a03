# SynthScan - Copyright (C) 2026 SynthScan Developers.
# This file is part of SynthScan.
# See the file 'docs/LICENSE.txt' for license terms.

"""Shared fixtures: synthetic images and a fake classifier backend."""

import numpy as np
from PIL import Image

from ai_detection.detectors.classifier import ClassifierAdapter, InferenceBackend, ModelHandle
from ai_detection.detectors.preprocess import GrayscaleBuffer, ImageSample
from lib.utils import image2str


class FakeBackend(InferenceBackend):
    """Returns fixed raw scores and records the inputs it saw."""

    name = "fake"

    def __init__(self, scores=(2.0, 1.0)):
        self.scores = np.array([scores], dtype=np.float32)
        self.calls = []

    def run(self, grid):
        self.calls.append(grid)
        return self.scores


def fake_classifier(scores=(2.0, 1.0)):
    """ClassifierAdapter backed by a FakeBackend."""
    backend = FakeBackend(scores)
    handle = ModelHandle("fake.onnx", loader=lambda path: backend)
    return ClassifierAdapter(handle, grid_size=28, positive_index=0)


def rgba(width, height, value=(0, 0, 0, 0)):
    """Uniform RGBA array."""
    arr = np.zeros((height, width, 4), dtype=np.uint8)
    arr[:, :] = value
    return arr


def gray_buffer(rows):
    """GrayscaleBuffer from a 2D list of intensities."""
    arr = np.asarray(rows, dtype=np.float32)
    return GrayscaleBuffer(width=arr.shape[1], height=arr.shape[0], values=arr.ravel())


def sample(arr):
    return ImageSample.from_array(arr)


def png_bytes(arr):
    """Encode an (H, W, 3|4) uint8 array as PNG."""
    return image2str(Image.fromarray(np.asarray(arr, dtype=np.uint8)), "PNG")


def jpeg_with_exif(make=None, model=None, size=(16, 16)):
    """Small JPEG carrying the given Make/Model EXIF tags."""
    img = Image.new("RGB", size, (120, 80, 40))
    exif = Image.Exif()
    if make is not None:
        exif[271] = make
    if model is not None:
        exif[272] = model
    return image2str(img, "JPEG", exif=exif.tobytes())


def noise_image(width, height, seed=0):
    rng = np.random.default_rng(seed)
    arr = rng.integers(0, 256, size=(height, width, 3), dtype=np.uint8)
    return arr
