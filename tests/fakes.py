"""
Test doubles shared by the test modules.
"""

import threading
from datetime import datetime, timezone

from telemetry_service.attributes import IlluminationOracle
from telemetry_service.models import OrbitalElements, PositionSample

# ISS TLE data (as of September 2023)
ISS_NAME = "ISS (ZARYA)"
ISS_LINE1 = "1 25544U 98067A   23259.57580000  .00012022  00000-0  21844-3 0  9995"
ISS_LINE2 = "2 25544  51.6416 220.9944 0004263 122.0101 312.2755 15.49541986415598"
ISS_EPOCH = datetime(2023, 9, 16, 13, 49, 9, tzinfo=timezone.utc)

# Same orbit with mean motion rounded to 15.49 rev/day
ISS_LINE2_1549 = "2 25544  51.6416 220.9944 0004263 122.0101 312.2755 15.49000000415598"

ISS_TLE_TEXT = f"{ISS_NAME}\r\n{ISS_LINE1}\r\n{ISS_LINE2}\r\n"


def iss_elements(line2: str = ISS_LINE2) -> OrbitalElements:
    return OrbitalElements(name=ISS_NAME, line1=ISS_LINE1, line2=line2)


def sample(lat: float = 51.2, lng: float = 179.5, altitude: float = 420.1,
           velocity: float = 7.66) -> PositionSample:
    return PositionSample(latitude=lat, longitude=lng, altitude_km=altitude, velocity_kms=velocity)


class FakeOracle(IlluminationOracle):
    """Deterministic solar geometry."""

    def __init__(self, elevation_deg: float = 10.0, sunlit: bool = True, error: Exception = None):
        self.elevation_deg = elevation_deg
        self.sunlit = sunlit
        self.error = error
        self.calls = []

    def solar_elevation_deg(self, latitude, longitude, when):
        self.calls.append(("elevation", latitude, longitude, when))
        if self.error:
            raise self.error
        return self.elevation_deg

    def is_sunlit(self, elements, when):
        self.calls.append(("sunlit", elements, when))
        if self.error:
            raise self.error
        return self.sunlit


class FakeTransport:
    """Stands in for a WebSocket connection."""

    def __init__(self, fail: bool = False, block: threading.Event = None):
        self.sent = []
        self.connected = True
        self.closed = False
        self.fail = fail
        self.block = block

    def send(self, payload):
        if self.block is not None:
            self.block.wait(timeout=5)
        if self.fail or not self.connected:
            raise ConnectionError("transport closed")
        self.sent.append(payload)

    def close(self):
        self.closed = True
        self.connected = False


class FakeElementsCache:
    def __init__(self, elements=None):
        self.elements = elements
        self.refreshes = 0

    def current(self):
        return self.elements

    def refresh(self):
        self.refreshes += 1
        return self.elements is not None


class FakeFetcher:
    def __init__(self, *samples, barrier: threading.Barrier = None):
        self.samples = list(samples)
        self.barrier = barrier
        self.calls = 0

    def fetch_current(self):
        self.calls += 1
        if self.barrier is not None:
            self.barrier.wait()
        return self.samples.pop(0) if self.samples else None


class FakePropagator:
    def __init__(self, track=None, barrier: threading.Barrier = None):
        self.track = track if track is not None else [(51.2, 179.5), (51.1, -179.7)]
        self.barrier = barrier
        self.calls = []

    def track_since(self, elements, center_time=None):
        self.calls.append((elements, center_time))
        if self.barrier is not None:
            self.barrier.wait()
        if elements is None:
            return []
        return list(self.track)
