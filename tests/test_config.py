import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from gigradar import config
from gigradar.classify.prompts import DEFAULT_PROFILE, build_system_prompt


class EnvConfigTests(unittest.TestCase):
    def test_defaults(self):
        with mock.patch.dict(os.environ, {}, clear=True):
            self.assertEqual(config.batch_size(), 8)
            self.assertEqual(config.classifier_model(), config.DEFAULT_MODEL)
            self.assertEqual(config.classifier_max_tokens(), 4096)
            self.assertEqual(config.admin_token(), "")

    def test_batch_size_override_and_floor(self):
        with mock.patch.dict(os.environ, {"GIGRADAR_BATCH_SIZE": "3"}):
            self.assertEqual(config.batch_size(), 3)
        with mock.patch.dict(os.environ, {"GIGRADAR_BATCH_SIZE": "0"}):
            self.assertEqual(config.batch_size(), 1)
        with mock.patch.dict(os.environ, {"GIGRADAR_BATCH_SIZE": "  "}):
            self.assertEqual(config.batch_size(), 8)


class ProfileTests(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)

    def write(self, name, text):
        path = Path(self.tmp.name) / name
        path.write_text(text, encoding="utf-8")
        return path

    def test_no_profile_configured(self):
        with mock.patch.dict(os.environ, {}, clear=True):
            self.assertEqual(config.load_profile(), {})

    def test_yaml_profile(self):
        path = self.write("profile.yaml", "stack:\n  - Go\n  - Rust\nrate: $90/hr\n")
        profile = config.load_profile(path)
        self.assertEqual(profile, {"stack": ["Go", "Rust"], "rate": "$90/hr"})

        prompt = build_system_prompt(profile)
        self.assertIn("- stack: Go, Rust", prompt)
        self.assertIn("- rate: $90/hr", prompt)
        self.assertIn('{"jobs": [{"title": str', prompt)

    def test_profile_from_env(self):
        path = self.write("env.yaml", "rate: $70/hr\n")
        with mock.patch.dict(os.environ, {"GIGRADAR_PROFILE": str(path)}):
            self.assertEqual(config.load_profile(), {"rate": "$70/hr"})

    def test_profile_must_be_mapping(self):
        path = self.write("list.yaml", "- one\n- two\n")
        with self.assertRaises(ValueError):
            config.load_profile(path)

    def test_default_prompt_profile(self):
        self.assertIn("min fixed budget: " + DEFAULT_PROFILE["min_fixed_budget"], build_system_prompt())

    def test_load_paste(self):
        path = self.write("paste.txt", "Posted 1 hour ago\nTitle line here\n")
        self.assertEqual(config.load_paste(path), "Posted 1 hour ago\nTitle line here\n")


if __name__ == "__main__":
    unittest.main()
