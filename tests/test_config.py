"""Tests for configuration loading and saving."""

import json
import shutil
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from tripjournal.attributes import Color
from tripjournal.config import JournalConfig, config_path, load_config, save_config, validate_setting


class TestConfig(unittest.TestCase):

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.path = Path(self.temp_dir) / "config.json"

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_defaults_when_missing(self):
        config = load_config(self.path)
        self.assertEqual(config, JournalConfig())
        self.assertEqual(config.accent, Color(255, 128, 0))

    def test_save_and_load(self):
        config = JournalConfig(data_dir="/tmp/journal", accent_color=(0, 0, 255), pdf_font_size=14)
        self.assertTrue(save_config(config, self.path))
        self.assertEqual(load_config(self.path), config)
        self.assertFalse(self.path.with_suffix(".tmp").exists())

    def test_invalid_values_ignored(self):
        self.path.write_text(json.dumps({
            "pdf_font_size": 500,
            "accent_color": [1, 2],
            "pdf_font_name": "Times",
            "colour": "blue",
        }), encoding='utf-8')
        with self.assertLogs('tripjournal.config', level='WARNING') as logs:
            config = load_config(self.path)
        self.assertEqual(config.pdf_font_name, "Times")
        self.assertEqual(config.pdf_font_size, 12)
        self.assertEqual(config.accent_color, (255, 128, 0))
        self.assertEqual(len(logs.output), 3)

    def test_bad_json(self):
        self.path.write_text("{", encoding='utf-8')
        with self.assertLogs('tripjournal.config', level='WARNING'):
            self.assertEqual(load_config(self.path), JournalConfig())

    def test_validate_setting(self):
        self.assertTrue(validate_setting('data_dir', None))
        self.assertTrue(validate_setting('accent_color', [0, 128, 255]))
        self.assertFalse(validate_setting('accent_color', [0, 128, 256]))
        self.assertFalse(validate_setting('pdf_font_size', True))
        self.assertFalse(validate_setting('unknown', 1))

    def test_config_path_uses_platformdirs(self):
        with patch('tripjournal.config.platformdirs.user_config_dir', return_value=self.temp_dir):
            self.assertEqual(config_path(), self.path)


if __name__ == '__main__':
    unittest.main()
