# SynthScan - Copyright (C) 2026 SynthScan Developers.
# This file is part of SynthScan.
# See the file 'docs/LICENSE.txt' for license terms.

import os
import shutil
import tempfile
import unittest
from pathlib import Path

from ai_detection.download_models import clean_model, download_model, sizeof_fmt, verify_model


class DownloadModelTestCase(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, self.tmp)
        self.source = os.path.join(self.tmp, "upstream.onnx")
        with open(self.source, "wb") as f:
            f.write(b"\x08\x03model-bytes")
        self.url = Path(self.source).as_uri()
        self.dest = os.path.join(self.tmp, "models", "mnist-8.onnx")

    def test_download_then_cached(self):
        path, downloaded = download_model(self.dest, self.url)
        self.assertTrue(downloaded)
        with open(path, "rb") as f:
            self.assertEqual(f.read(), b"\x08\x03model-bytes")

        path, downloaded = download_model(self.dest, self.url)
        self.assertFalse(downloaded)
        self.assertFalse(os.path.exists(self.dest + ".part"))

    def test_failed_download_leaves_nothing(self):
        missing = Path(os.path.join(self.tmp, "nope.onnx")).as_uri()
        with self.assertRaises(OSError):
            download_model(self.dest, missing)
        self.assertFalse(os.path.exists(self.dest))
        self.assertFalse(os.path.exists(self.dest + ".part"))

    def test_verify_and_clean(self):
        self.assertFalse(verify_model(self.dest))
        download_model(self.dest, self.url)
        self.assertTrue(verify_model(self.dest))
        self.assertTrue(clean_model(self.dest))
        self.assertFalse(clean_model(self.dest))
        self.assertFalse(verify_model(self.dest))

    def test_sizeof_fmt(self):
        self.assertEqual(sizeof_fmt(512), "512.0 B")
        self.assertEqual(sizeof_fmt(26 * 1024), "26.0 KB")
