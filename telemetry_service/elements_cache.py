"""
Orbital Elements Cache

Holds the most recently fetched ISS two-line element set. The set is
refreshed from CelesTrak on a long cycle; a failed refresh is logged and the
previous set (or its absence) is kept.
"""

import re
import threading
from typing import Optional

import requests

from telemetry_service.config import FALLBACK_ISS_TLE, config
from telemetry_service.errors import MalformedResponse, SourceUnavailable
from telemetry_service.logging_config import get_logger
from telemetry_service.models import OrbitalElements

logger = get_logger(__name__)


def parse_tle_text(text: str) -> OrbitalElements:
    """
    Parse a CelesTrak 3-line TLE response.

    Args:
        text: Response body. Line 1 is the object name, lines 2 and 3 are
            the element lines.

    Returns:
        OrbitalElements built from the response

    Raises:
        MalformedResponse: fewer than 3 lines, or element lines sgp4 rejects
    """
    lines = [line.rstrip() for line in re.split(r'[\r\n]+', text.strip())]
    if len(lines) < 3:
        raise MalformedResponse(f"Expected at least 3 TLE lines, got {len(lines)}")

    name, line1, line2 = lines[0].strip(), lines[1], lines[2]
    if not line1.startswith('1 ') or not line2.startswith('2 '):
        raise MalformedResponse("TLE element lines must start with '1 ' and '2 '")

    elements = OrbitalElements(name=name, line1=line1, line2=line2)
    try:
        elements.satrec()
    except (ValueError, IndexError) as e:
        raise MalformedResponse(f"sgp4 rejected TLE lines: {e}")

    return elements


class ElementsCache:
    """
    Single-slot cache of the current orbital element set.

    Readers get an immutable OrbitalElements instance or None; refresh
    replaces the instance wholesale.
    """

    def __init__(self, url: str = config.TLE_URL, timeout: float = config.HTTP_TIMEOUT_SECONDS,
                 use_fallback: bool = config.USE_FALLBACK_TLE):
        self.url = url
        self.timeout = timeout
        self._lock = threading.Lock()
        self._elements: Optional[OrbitalElements] = None

        if use_fallback:
            self._elements = OrbitalElements(
                name=FALLBACK_ISS_TLE['name'],
                line1=FALLBACK_ISS_TLE['line1'],
                line2=FALLBACK_ISS_TLE['line2'],
            )
            logger.warning("using_fallback_tle", name=self._elements.name)

    def refresh(self) -> bool:
        """Fetch and install a new element set. Returns True on success."""
        try:
            elements = parse_tle_text(self._download())
        except SourceUnavailable as e:
            logger.error("tle_fetch_failed", kind="SourceUnavailable", error=str(e))
            return False
        except MalformedResponse as e:
            logger.error("tle_fetch_failed", kind="MalformedResponse", error=str(e))
            return False

        with self._lock:
            self._elements = elements

        logger.info("tle_refreshed", name=elements.name, line1=elements.line1)
        return True

    def current(self) -> Optional[OrbitalElements]:
        """Return the cached element set, or None while unavailable."""
        with self._lock:
            return self._elements

    def _download(self) -> str:
        try:
            response = requests.get(self.url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise SourceUnavailable(f"TLE request to {self.url} failed: {e}")
        return response.text
