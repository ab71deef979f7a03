# SynthScan - Copyright (C) 2026 SynthScan Developers.
# This file is part of SynthScan.
# See the file 'docs/LICENSE.txt' for license terms.

import io
import json
import os
import shutil
import tempfile
import unittest
from contextlib import redirect_stdout
from unittest.mock import patch

from synthscan import cli, settings
from tests.helpers import fake_classifier, noise_image, png_bytes


class CliTestCase(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, self.tmp)
        self.image = os.path.join(self.tmp, "photo.png")
        with open(self.image, "wb") as f:
            f.write(png_bytes(noise_image(24, 24)))

    def run_cli(self, *argv):
        out = io.StringIO()
        with redirect_stdout(out):
            code = cli.main(list(argv))
        return code, out.getvalue()

    def test_analyze_json(self):
        with patch("ai_detection.detectors.orchestrator.ClassifierAdapter",
                   return_value=fake_classifier((2.0, 1.0))):
            code, out = self.run_cli("analyze", self.image, "--json")
        self.assertEqual(code, 0)
        payload = json.loads(out.strip().splitlines()[-1])
        self.assertEqual(payload["finalVerdict"], "AI-generated")
        self.assertIn("noiseResidual", payload)

    def test_analyze_text(self):
        with patch("ai_detection.detectors.orchestrator.ClassifierAdapter",
                   return_value=fake_classifier((0.0, 2.0))):
            code, out = self.run_cli("analyze", self.image)
        self.assertEqual(code, 0)
        self.assertIn("Analysis complete", out)
        self.assertIn("not AI-generated", out)

    def test_missing_model(self):
        code, out = self.run_cli("analyze", self.image, "--json",
                                 "--model", os.path.join(self.tmp, "missing.onnx"))
        self.assertEqual(code, 1)
        self.assertIn("Model file not found", json.loads(out)["error"])

    def test_missing_image(self):
        code, out = self.run_cli("analyze", os.path.join(self.tmp, "nope.png"), "--json")
        self.assertEqual(code, 1)
        self.assertIn("error", json.loads(out))

    def test_evaluate_empty(self):
        code, out = self.run_cli("evaluate", self.tmp, "--json")
        self.assertEqual(code, 1)
        self.assertEqual(json.loads(out)["samples"], 0)

    def test_model_verify(self):
        missing = os.path.join(self.tmp, "models", "mnist-8.onnx")
        code, out = self.run_cli("model", "--verify", "--model", missing)
        self.assertEqual(code, 1)
        self.assertIn("not downloaded", out)

        code, _ = self.run_cli("model", "--verify", "--model", self.image)
        self.assertEqual(code, 0)

    def test_version(self):
        out = io.StringIO()
        with redirect_stdout(out), self.assertRaises(SystemExit) as ctx:
            cli.main(["--version"])
        self.assertEqual(ctx.exception.code, 0)
        self.assertIn(settings.SYNTHSCAN_VERSION, out.getvalue())
