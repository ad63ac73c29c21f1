"""
Tests for the live position fetcher.

Run with:
    python -m pytest tests/test_position_fetcher.py -v
"""

import unittest
from unittest import mock

import requests

from telemetry_service.errors import MalformedResponse
from telemetry_service.position_fetcher import PositionFetcher, parse_position

WHERETHEISS_PAYLOAD = {
    "name": "iss",
    "id": 25544,
    "latitude": 51.2,
    "longitude": 179.5,
    "altitude": 420.1,
    "velocity": 27576.0,
    "visibility": "daylight",
    "units": "kilometers",
}


def _response(payload=None, status_error=None, json_error=None):
    response = mock.Mock()
    response.raise_for_status.side_effect = status_error
    if json_error is not None:
        response.json.side_effect = json_error
    else:
        response.json.return_value = payload
    return response


class TestParsePosition(unittest.TestCase):

    def test_kilometers_payload_velocity_is_converted(self):
        sample = parse_position(WHERETHEISS_PAYLOAD)

        self.assertEqual(sample.latitude, 51.2)
        self.assertEqual(sample.longitude, 179.5)
        self.assertEqual(sample.altitude_km, 420.1)
        self.assertAlmostEqual(sample.velocity_kms, 7.66, places=2)

    def test_payload_without_units_is_taken_as_is(self):
        sample = parse_position({"latitude": 1, "longitude": 2, "altitude": 3, "velocity": 7.66})
        self.assertEqual(sample.velocity_kms, 7.66)

    def test_missing_field(self):
        payload = dict(WHERETHEISS_PAYLOAD)
        del payload["velocity"]
        with self.assertRaises(MalformedResponse):
            parse_position(payload)

    def test_non_numeric_field(self):
        with self.assertRaises(MalformedResponse):
            parse_position(dict(WHERETHEISS_PAYLOAD, latitude="north"))

    def test_non_object_payload(self):
        with self.assertRaises(MalformedResponse):
            parse_position([51.2, 179.5])


class TestPositionFetcher(unittest.TestCase):
    """Every failure mode maps to None; nothing escapes."""

    def setUp(self):
        self.fetcher = PositionFetcher(url="https://example.test/iss", timeout=15)

    @mock.patch("telemetry_service.position_fetcher.requests.get")
    def test_success(self, mock_get):
        mock_get.return_value = _response(WHERETHEISS_PAYLOAD)

        sample = self.fetcher.fetch_current()

        mock_get.assert_called_once_with("https://example.test/iss", timeout=15)
        self.assertEqual(sample.latitude, 51.2)

    @mock.patch("telemetry_service.position_fetcher.requests.get")
    def test_timeout(self, mock_get):
        mock_get.side_effect = requests.exceptions.Timeout("read timed out")
        self.assertIsNone(self.fetcher.fetch_current())

    @mock.patch("telemetry_service.position_fetcher.requests.get")
    def test_connection_error(self, mock_get):
        mock_get.side_effect = requests.exceptions.ConnectionError("unreachable")
        self.assertIsNone(self.fetcher.fetch_current())

    @mock.patch("telemetry_service.position_fetcher.requests.get")
    def test_http_error_status(self, mock_get):
        mock_get.return_value = _response(status_error=requests.exceptions.HTTPError("429"))
        self.assertIsNone(self.fetcher.fetch_current())

    @mock.patch("telemetry_service.position_fetcher.requests.get")
    def test_invalid_json(self, mock_get):
        mock_get.return_value = _response(json_error=ValueError("Expecting value"))
        self.assertIsNone(self.fetcher.fetch_current())

    @mock.patch("telemetry_service.position_fetcher.requests.get")
    def test_missing_fields(self, mock_get):
        mock_get.return_value = _response({"latitude": 51.2})
        self.assertIsNone(self.fetcher.fetch_current())


if __name__ == "__main__":
    unittest.main()
