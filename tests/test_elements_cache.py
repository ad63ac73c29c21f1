"""
Tests for TLE parsing and the orbital elements cache.

Run with:
    python -m pytest tests/test_elements_cache.py -v
"""

import unittest
from unittest import mock

import requests

from telemetry_service.config import FALLBACK_ISS_TLE
from telemetry_service.elements_cache import ElementsCache, parse_tle_text
from telemetry_service.errors import MalformedResponse

from fakes import ISS_LINE1, ISS_LINE2, ISS_NAME, ISS_TLE_TEXT


def _response(text="", status_error=None):
    response = mock.Mock()
    response.text = text
    response.raise_for_status.side_effect = status_error
    return response


class TestParseTleText(unittest.TestCase):
    """Parsing of CelesTrak 3-line responses."""

    def test_parse_three_line_response(self):
        elements = parse_tle_text(ISS_TLE_TEXT)

        self.assertEqual(elements.name, ISS_NAME)
        self.assertEqual(elements.line1, ISS_LINE1)
        self.assertEqual(elements.line2, ISS_LINE2)
        self.assertAlmostEqual(elements.inclination_deg, 51.6416, places=4)
        self.assertAlmostEqual(elements.mean_motion_rev_per_day, 15.49541986, places=6)

    def test_blank_lines_are_collapsed(self):
        elements = parse_tle_text(f"{ISS_NAME}\n\n{ISS_LINE1}\n\n{ISS_LINE2}\n")
        self.assertEqual(elements.line2, ISS_LINE2)

    def test_fewer_than_three_lines_is_malformed(self):
        with self.assertRaises(MalformedResponse):
            parse_tle_text(f"{ISS_LINE1}\n{ISS_LINE2}\n")

    def test_empty_body_is_malformed(self):
        with self.assertRaises(MalformedResponse):
            parse_tle_text("")

    def test_wrong_line_markers_are_malformed(self):
        with self.assertRaises(MalformedResponse):
            parse_tle_text(f"{ISS_NAME}\nNo GP data found\nfor this query\n")


class TestElementsCache(unittest.TestCase):
    """Refresh semantics: atomic replace on success, keep state on failure."""

    def setUp(self):
        self.cache = ElementsCache(url="https://example.test/tle", timeout=15, use_fallback=False)

    def test_unavailable_before_first_refresh(self):
        self.assertIsNone(self.cache.current())

    @mock.patch("telemetry_service.elements_cache.requests.get")
    def test_refresh_success(self, mock_get):
        mock_get.return_value = _response(ISS_TLE_TEXT)

        self.assertTrue(self.cache.refresh())

        mock_get.assert_called_once_with("https://example.test/tle", timeout=15)
        self.assertEqual(self.cache.current().line1, ISS_LINE1)

    @mock.patch("telemetry_service.elements_cache.requests.get")
    def test_malformed_refresh_keeps_previous(self, mock_get):
        mock_get.return_value = _response(ISS_TLE_TEXT)
        self.cache.refresh()
        previous = self.cache.current()

        mock_get.return_value = _response("ISS (ZARYA)\n")
        self.assertFalse(self.cache.refresh())
        self.assertIs(self.cache.current(), previous)

    @mock.patch("telemetry_service.elements_cache.requests.get")
    def test_network_failure_keeps_absence(self, mock_get):
        mock_get.side_effect = requests.exceptions.ConnectionError("unreachable")

        self.assertFalse(self.cache.refresh())
        self.assertIsNone(self.cache.current())

    @mock.patch("telemetry_service.elements_cache.requests.get")
    def test_http_error_is_not_fatal(self, mock_get):
        mock_get.return_value = _response(status_error=requests.exceptions.HTTPError("503"))

        self.assertFalse(self.cache.refresh())
        self.assertIsNone(self.cache.current())

    @mock.patch("telemetry_service.elements_cache.requests.get")
    def test_refresh_replaces_wholesale(self, mock_get):
        mock_get.return_value = _response(ISS_TLE_TEXT)
        self.cache.refresh()
        first = self.cache.current()

        mock_get.return_value = _response(ISS_TLE_TEXT)
        self.cache.refresh()

        self.assertIsNot(self.cache.current(), first)
        self.assertEqual(self.cache.current().line1, first.line1)

    def test_fallback_seed(self):
        cache = ElementsCache(use_fallback=True)
        self.assertEqual(cache.current().line1, FALLBACK_ISS_TLE['line1'])


if __name__ == "__main__":
    unittest.main()
