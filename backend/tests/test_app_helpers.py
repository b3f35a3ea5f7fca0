from __future__ import annotations

import sys
import unittest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[2]))

from backend.app.main import _normalize_request_id, exception_summary


class AppHelperTests(unittest.TestCase):
    def test_exception_summary_is_single_line_and_truncated(self):
        exc = ValueError("line one\nline two\tend")
        self.assertEqual(exception_summary(exc), "ValueError: line one line two end")
        self.assertEqual(exception_summary(ValueError("x" * 10), max_len=4), "ValueError: xxxx…")

    def test_exception_summary_hides_message_when_disabled(self):
        self.assertEqual(exception_summary(RuntimeError("secret dsn"), max_len=0), "RuntimeError")
        self.assertEqual(exception_summary(RuntimeError()), "RuntimeError")

    def test_normalize_request_id(self):
        self.assertEqual(_normalize_request_id("  abc-123 "), "abc-123")
        self.assertIsNone(_normalize_request_id(None))
        self.assertIsNone(_normalize_request_id("   "))
        self.assertIsNone(_normalize_request_id("a" * 65))
        self.assertIsNone(_normalize_request_id("bad\nid"))


if __name__ == "__main__":
    unittest.main()
