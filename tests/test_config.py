import logging
import unittest

from thai_lotto.config import LOG_HANDLER_NAME, setup_logging


class TestSetupLogging(unittest.TestCase):
    def setUp(self):
        self.root = logging.getLogger()
        self.level = self.root.level
        self.handlers = list(self.root.handlers)

    def tearDown(self):
        for h in list(self.root.handlers):
            if h not in self.handlers:
                self.root.removeHandler(h)
        self.root.setLevel(self.level)

    def _ours(self):
        return [h for h in self.root.handlers if h.get_name() == LOG_HANDLER_NAME]

    def test_handler_installed_once(self):
        setup_logging("INFO")
        setup_logging("DEBUG")
        self.assertEqual(len(self._ours()), 1)
        self.assertEqual(self.root.level, logging.DEBUG)

    def test_foreign_handlers_left_alone(self):
        other = logging.NullHandler()
        self.root.addHandler(other)
        setup_logging("WARNING")
        self.assertIn(other, self.root.handlers)
        self.assertEqual(len(self._ours()), 1)


if __name__ == "__main__":
    unittest.main()
