# SynthScan - Copyright (C) 2026 SynthScan Developers.
# This file is part of SynthScan.
# See the file 'docs/LICENSE.txt' for license terms.

import unittest
from unittest.mock import patch

import numpy as np

from ai_detection.detectors.base import Verdict
from ai_detection.detectors.classifier import ClassifierAdapter, ModelHandle
from ai_detection.detectors.metadata import MetadataInspector
from ai_detection.detectors.orchestrator import STEPS, ImageAnalyzer, ProgressReporter, is_fatal
from ai_detection.detectors.preprocess import DecodedRaster
from lib.exceptions import ImageDecodeError, ImageTooSmallError, ModelLoadError
from lib.utils import bytes2data_uri
from tests.helpers import fake_classifier, jpeg_with_exif, noise_image, png_bytes, rgba, sample


class ImageAnalyzerTestCase(unittest.TestCase):

    def setUp(self):
        self.classifier = fake_classifier((2.0, 1.0))
        self.analyzer = ImageAnalyzer(classifier=self.classifier)

    def test_black_image(self):
        result = self.analyzer.analyze(DecodedRaster(sample(rgba(28, 28))))
        self.assertAlmostEqual(result.probability, 0.7310585786, places=6)
        self.assertFalse(result.camera_info_present)
        self.assertEqual(result.frequency_spectrum, 0.0)
        self.assertEqual(result.noise_residual, 0.0)
        self.assertEqual(result.color_histogram, 0.0)
        self.assertEqual(result.final_verdict, Verdict.AI_GENERATED)

    def test_not_ai(self):
        analyzer = ImageAnalyzer(classifier=fake_classifier((0.0, 3.0)))
        result = analyzer.analyze(png_bytes(noise_image(40, 30)))
        self.assertLess(result.probability, 0.5)
        self.assertEqual(result.final_verdict, Verdict.NOT_AI_GENERATED)

    def test_progress_steps(self):
        steps = []
        self.analyzer.analyze(png_bytes(noise_image(32, 32)),
                              progress=lambda step, pct: steps.append((step, pct)))
        self.assertEqual(steps, list(STEPS))
        percents = [pct for _, pct in steps]
        self.assertEqual(percents, sorted(percents))
        self.assertEqual(percents[-1], 100)

    def test_encoded_bytes_and_data_uri_agree(self):
        data = png_bytes(noise_image(33, 21, seed=7))
        a = self.analyzer.analyze(data)
        b = self.analyzer.analyze(bytes2data_uri(data))
        self.assertEqual(a, b)

    def test_raster_matches_encoded(self):
        arr = noise_image(30, 30, seed=2)
        from_png = self.analyzer.analyze(png_bytes(arr))
        from_raster = self.analyzer.analyze(sample(arr))
        self.assertEqual(from_png, from_raster)

    def test_camera_info(self):
        result = self.analyzer.analyze(jpeg_with_exif(make="Canon", size=(32, 32)))
        self.assertTrue(result.camera_info_present)

    def test_camera_info_does_not_change_verdict(self):
        with_camera = self.analyzer.analyze(jpeg_with_exif(make="Canon", size=(32, 32)))
        without = self.analyzer.analyze(jpeg_with_exif(size=(32, 32)))
        self.assertEqual(with_camera.final_verdict, without.final_verdict)

    def test_classifier_sees_normalized_grid(self):
        self.analyzer.analyze(png_bytes(noise_image(64, 48)))
        grid = self.classifier.handle.get().calls[-1]
        self.assertEqual(grid.shape, (1, 1, 28, 28))
        self.assertGreaterEqual(grid.min(), 0.0)
        self.assertLessEqual(grid.max(), 1.0)

    def test_decode_failure(self):
        steps = []
        with self.assertRaises(ImageDecodeError):
            self.analyzer.analyze(b"not an image", progress=lambda s, p: steps.append(s))
        self.assertEqual(steps, [])

    def test_too_small(self):
        with self.assertRaises(ImageTooSmallError):
            self.analyzer.analyze(png_bytes(noise_image(2, 2)))

    def test_model_load_failure(self):
        def loader(path):
            raise ModelLoadError("no model")

        analyzer = ImageAnalyzer(classifier=ClassifierAdapter(ModelHandle("m.onnx", loader=loader)))
        steps = []
        with self.assertRaises(ModelLoadError):
            analyzer.analyze(png_bytes(noise_image(8, 8)), progress=lambda s, p: steps.append(s))
        self.assertEqual(steps, ["Loading model"])

    def test_failing_callback_is_tolerated(self):
        def callback(step, pct):
            raise RuntimeError("display closed")

        result = self.analyzer.analyze(png_bytes(noise_image(16, 16)), progress=callback)
        self.assertEqual(result.final_verdict, Verdict.AI_GENERATED)

    def test_deterministic(self):
        data = png_bytes(noise_image(50, 40, seed=11))
        self.assertEqual(self.analyzer.analyze(data), self.analyzer.analyze(data))

    def test_dependencies_checked_on_init(self):
        with patch.object(MetadataInspector, "check_deps", return_value=True) as check:
            ImageAnalyzer(classifier=fake_classifier())
        check.assert_called_once_with()


class ProgressReporterTestCase(unittest.TestCase):

    def test_never_decreases(self):
        seen = []
        report = ProgressReporter(lambda s, p: seen.append(p))
        report(("a", 40))
        report(("b", 20))
        report(("c", 150))
        self.assertEqual(seen, [40, 40, 100])

    def test_without_callback(self):
        report = ProgressReporter()
        report(("a", 10))
        self.assertEqual(report.last, 10)


class IsFatalTestCase(unittest.TestCase):

    def test_classification(self):
        self.assertTrue(is_fatal(ImageDecodeError("x")))
        self.assertTrue(is_fatal(ModelLoadError("x")))
        self.assertFalse(is_fatal(ZeroDivisionError()))
        self.assertFalse(is_fatal(np.linalg.LinAlgError()))
