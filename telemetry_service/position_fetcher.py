"""
Live position source client.

Queries wheretheiss.at once per broadcast cycle. Any failure is reported
as None: the caller skips the cycle, nothing is retried here.
"""

from typing import Any, Dict, Optional

import requests

from telemetry_service.config import config
from telemetry_service.errors import MalformedResponse, SourceUnavailable
from telemetry_service.logging_config import get_logger
from telemetry_service.models import PositionSample

logger = get_logger(__name__)

REQUIRED_FIELDS = ("latitude", "longitude", "altitude", "velocity")


def parse_position(payload: Any) -> PositionSample:
    """
    Build a PositionSample from a wheretheiss.at JSON payload.

    Raises:
        MalformedResponse: payload is not an object or a field is missing
            or non-numeric
    """
    if not isinstance(payload, dict):
        raise MalformedResponse("Position payload is not a JSON object")

    missing = [field for field in REQUIRED_FIELDS if payload.get(field) is None]
    if missing:
        raise MalformedResponse(f"Position payload missing fields: {', '.join(missing)}")

    try:
        values: Dict[str, float] = {field: float(payload[field]) for field in REQUIRED_FIELDS}
    except (TypeError, ValueError) as e:
        raise MalformedResponse(f"Non-numeric position field: {e}")

    velocity = values["velocity"]
    if payload.get("units") == "kilometers":
        velocity /= 3600.0  # km/h

    return PositionSample(
        latitude=values["latitude"],
        longitude=values["longitude"],
        altitude_km=values["altitude"],
        velocity_kms=velocity,
    )


class PositionFetcher:
    """Single-request fetcher with a bounded timeout."""

    def __init__(self, url: str = config.POSITION_URL, timeout: float = config.HTTP_TIMEOUT_SECONDS):
        self.url = url
        self.timeout = timeout

    def fetch_current(self) -> Optional[PositionSample]:
        """Return the current position, or None if no data this cycle."""
        try:
            return parse_position(self._get_json())
        except SourceUnavailable as e:
            logger.error("position_fetch_failed", kind="SourceUnavailable", error=str(e))
        except MalformedResponse as e:
            logger.error("position_fetch_failed", kind="MalformedResponse", error=str(e))
        return None

    def _get_json(self) -> Any:
        try:
            response = requests.get(self.url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise SourceUnavailable(f"Position request to {self.url} failed: {e}")

        try:
            return response.json()
        except ValueError as e:
            raise MalformedResponse(f"Position response is not JSON: {e}")
