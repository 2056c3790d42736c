"""
Test suite for lib/utils.py
"""

import os
import tempfile
import unittest
from unittest.mock import patch

from lib.utils import jsonDumps, load_dotenv, nextMonotonicMs, nowMs, roundCoordinate


class TestUtils(unittest.TestCase):

    def test_now_ms_is_milliseconds(self):
        with patch("lib.utils.time.time", return_value=1697644800.1234):
            self.assertEqual(nowMs(), 1697644800123)

    def test_next_monotonic_ms_without_previous(self):
        with patch("lib.utils.time.time", return_value=1000.0):
            self.assertEqual(nextMonotonicMs(), 1000000)

    def test_next_monotonic_ms_clock_advanced(self):
        with patch("lib.utils.time.time", return_value=1000.0):
            self.assertEqual(nextMonotonicMs(999000), 1000000)

    def test_next_monotonic_ms_clock_stalled_or_behind(self):
        """Same or earlier clock reading still yields a strictly greater value"""
        with patch("lib.utils.time.time", return_value=1000.0):
            self.assertEqual(nextMonotonicMs(1000000), 1000001)
            self.assertEqual(nextMonotonicMs(2000000), 2000001)

    def test_json_dumps_compact_by_default(self):
        self.assertEqual(jsonDumps({"b": 1, "a": "ş"}), '{"a":"ş","b":1}')

    def test_json_dumps_pretty_with_indent(self):
        self.assertEqual(jsonDumps({"a": 1}, indent=2), '{\n  "a": 1\n}')

    def test_round_coordinate(self):
        self.assertEqual(roundCoordinate(41.013823), 41.0138)
        self.assertEqual(roundCoordinate("28.94966"), 28.9497)  # type: ignore[arg-type]
        self.assertEqual(roundCoordinate(-0.12574, digits=2), -0.13)


class TestLoadDotenv(unittest.TestCase):

    def setUp(self):
        self.tempDir = tempfile.TemporaryDirectory()
        self.path = os.path.join(self.tempDir.name, ".env")

    def tearDown(self):
        self.tempDir.cleanup()

    def test_missing_file(self):
        self.assertEqual(load_dotenv(self.path), {})

    def test_parse_file(self):
        with open(self.path, "wt") as f:
            f.write('# comment\n\nWEATHER_TEST_KEY="abc=def"\nWEATHER_TEST_OTHER = plain\nbroken line\n')

        with patch.dict(os.environ, {}, clear=False):
            result = load_dotenv(self.path)
            self.assertEqual(result, {"WEATHER_TEST_KEY": "abc=def", "WEATHER_TEST_OTHER": "plain"})
            self.assertEqual(os.environ["WEATHER_TEST_KEY"], "abc=def")

    def test_existing_environment_wins(self):
        with open(self.path, "wt") as f:
            f.write("WEATHER_TEST_KEY=from_file\n")

        with patch.dict(os.environ, {"WEATHER_TEST_KEY": "from_env"}):
            load_dotenv(self.path)
            self.assertEqual(os.environ["WEATHER_TEST_KEY"], "from_env")

    def test_no_populate(self):
        with open(self.path, "wt") as f:
            f.write("WEATHER_TEST_ONLY_FILE=1\n")

        with patch.dict(os.environ, {}, clear=False):
            self.assertEqual(load_dotenv(self.path, populateEnv=False), {"WEATHER_TEST_ONLY_FILE": "1"})
            self.assertNotIn("WEATHER_TEST_ONLY_FILE", os.environ)


if __name__ == "__main__":
    unittest.main()
