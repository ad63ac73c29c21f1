"""
Relay Configuration and Constants

This module contains the runtime configuration of the telemetry relay, the
physical constants used by the ground-track conversion, and a fallback ISS
TLE.

Configuration:
    Every setting is read from an environment variable of the same name when
    the module is imported. Components take explicit arguments and use these
    values only as defaults, so tests can build them with any settings.

Fallback TLE Data:
    Hardcoded ISS TLE used only when USE_FALLBACK_TLE is enabled, so a
    ground track can be produced before the first CelesTrak fetch succeeds.

    IMPORTANT: Update this TLE data periodically for accuracy.
    LEO element sets go stale within days.

    Sources for updated TLEs:
    - Space-Track.org (requires free registration)
    - CelesTrak.org (public access)
"""

import os
from typing import Dict, Any

# WGS-84 ellipsoid used for the geodetic ground track
WGS84_EQUATORIAL_RADIUS_KM: float = 6378.137
WGS84_FLATTENING: float = 1.0 / 298.257223563

MINUTES_PER_DAY: float = 1440.0

# Fallback ISS TLE
# Last updated: 2025-08-18
FALLBACK_ISS_TLE: Dict[str, Any] = {
    'name': 'ISS (ZARYA)',
    'norad_id': 25544,
    'line1': '1 25544U 98067A   25230.51041667  .00002182  00000-0  13103-3 0  9991',
    'line2': '2 25544  51.6416  45.1234 0002329  75.6910 284.4861 15.50000000123456',
}


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ('1', 'true', 'yes')


class RelayConfig:
    PORT = int(os.getenv('PORT', '3000'))
    POSITION_URL = os.getenv('POSITION_URL', 'https://api.wheretheiss.at/v1/satellites/25544')
    TLE_URL = os.getenv('TLE_URL', 'https://celestrak.org/NORAD/elements/gp.php?CATNR=25544&FORMAT=tle')
    HTTP_TIMEOUT_SECONDS = float(os.getenv('HTTP_TIMEOUT_SECONDS', '15'))
    TLE_REFRESH_HOURS = float(os.getenv('TLE_REFRESH_HOURS', '6'))
    BROADCAST_INTERVAL_SECONDS = float(os.getenv('BROADCAST_INTERVAL_SECONDS', '2'))
    TRACK_STEPS_BEFORE = int(os.getenv('TRACK_STEPS_BEFORE', '90'))
    TRACK_STEPS_AFTER = int(os.getenv('TRACK_STEPS_AFTER', '90'))
    TRACK_STEP_MINUTES = float(os.getenv('TRACK_STEP_MINUTES', '1'))
    CREW_COUNT = int(os.getenv('CREW_COUNT', '7'))
    DAYLIGHT_THRESHOLD_DEG = float(os.getenv('DAYLIGHT_THRESHOLD_DEG', '-6.0'))  # civil twilight
    SEND_TIMEOUT_SECONDS = float(os.getenv('SEND_TIMEOUT_SECONDS', '5'))
    EPHEMERIS_FILE = os.getenv('EPHEMERIS_FILE', 'de421.bsp')
    EPHEMERIS_DIR = os.getenv('EPHEMERIS_DIR', os.path.join(os.path.expanduser('~'), '.skyfield'))
    STATIC_DIR = os.getenv('STATIC_DIR', os.path.join(os.getcwd(), 'public'))
    USE_FALLBACK_TLE = _env_bool('USE_FALLBACK_TLE', 'false')
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()


config = RelayConfig()
