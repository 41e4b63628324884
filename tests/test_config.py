import os
import unittest
from unittest import mock

import store_case  # noqa: F401  (puts src/ on sys.path)

from utils import config
from views.base_screen import STYLESHEET


class ConfigTestCase(unittest.TestCase):
    def test_accessors_do_not_reread_dotenv(self):
        with mock.patch.object(config, "load_dotenv") as load_dotenv:
            for _ in range(3):
                config.low_stock_threshold()
                config.db_path()
            load_dotenv.assert_not_called()

    def test_env_values_and_defaults(self):
        with mock.patch.dict(os.environ, {"STORE_LOW_STOCK_THRESHOLD": "8"}):
            self.assertEqual(config.low_stock_threshold(), 8)
        with mock.patch.dict(os.environ, {"STORE_LOW_STOCK_THRESHOLD": "lots"}):
            self.assertEqual(config.low_stock_threshold(), 5)
        with mock.patch.dict(os.environ, {"DEBUG": "1", "STORE_LOG_LEVEL": "warning"}):
            self.assertEqual(config.log_level(), "DEBUG")
        with mock.patch.dict(os.environ, {"DEBUG": "", "STORE_LOG_LEVEL": "warning"}):
            self.assertEqual(config.log_level(), "WARNING")


class StylesheetTestCase(unittest.TestCase):
    def test_stylesheet_lives_in_views_package(self):
        from main import StoreApp

        self.assertTrue(STYLESHEET.is_file())
        self.assertEqual(STYLESHEET.parent.parent.name, "views")
        self.assertEqual(StoreApp.CSS_PATH, STYLESHEET)
