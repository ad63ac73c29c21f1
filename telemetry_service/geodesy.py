"""
Frame conversions for ground tracks.

SGP4 reports positions in the TEME frame. A ground track needs geodetic
latitude/longitude, so positions are rotated into ECEF by Greenwich
sidereal time and then converted to WGS-84 geodetic coordinates.

All functions accept numpy arrays so a whole propagation window is
converted in one pass.
"""

import numpy as np

from telemetry_service.config import WGS84_EQUATORIAL_RADIUS_KM, WGS84_FLATTENING


def gmst_radians(jd: np.ndarray, fr: np.ndarray) -> np.ndarray:
    """
    Greenwich Mean Sidereal Time (IAU 1982 model).

    Args:
        jd: Julian day (whole part, as returned by sgp4.api.jday)
        fr: Fraction of day

    Returns:
        GMST in radians, normalized to [0, 2*pi)
    """
    T = (np.asarray(jd) - 2451545.0 + np.asarray(fr)) / 36525.0

    gmst_sec = (
        67310.54841 +
        (876600.0 * 3600.0 + 8640184.812866) * T +
        0.093104 * T * T -
        6.2e-6 * T * T * T
    )

    return (gmst_sec % 86400.0) * (2.0 * np.pi / 86400.0)


def teme_to_ecef(r_teme: np.ndarray, gmst: np.ndarray) -> np.ndarray:
    """
    Rotate TEME positions into ECEF.

    Args:
        r_teme: Positions, shape (N, 3), km
        gmst: Sidereal angle per position, shape (N,), radians

    Returns:
        ECEF positions, shape (N, 3), km
    """
    r_teme = np.atleast_2d(r_teme)
    cos_g = np.cos(gmst)
    sin_g = np.sin(gmst)

    return np.column_stack([
        cos_g * r_teme[:, 0] + sin_g * r_teme[:, 1],
        -sin_g * r_teme[:, 0] + cos_g * r_teme[:, 1],
        r_teme[:, 2],
    ])


def ecef_to_geodetic(r_ecef: np.ndarray, iterations: int = 5):
    """
    ECEF to WGS-84 geodetic conversion using Bowring's method.

    Args:
        r_ecef: Positions, shape (N, 3), km
        iterations: Fixed number of latitude refinements

    Returns:
        Tuple of (latitude_deg, longitude_deg, altitude_km) arrays
    """
    a = WGS84_EQUATORIAL_RADIUS_KM
    f = WGS84_FLATTENING
    b = a * (1.0 - f)
    e2 = 2.0 * f - f * f
    ep2 = e2 / (1.0 - e2)

    r_ecef = np.atleast_2d(r_ecef)
    x, y, z = r_ecef[:, 0], r_ecef[:, 1], r_ecef[:, 2]

    lon = np.arctan2(y, x)
    p = np.hypot(x, y)

    theta = np.arctan2(z * a, p * b)
    for _ in range(iterations):
        sin_theta = np.sin(theta)
        cos_theta = np.cos(theta)
        lat = np.arctan2(
            z + ep2 * b * sin_theta ** 3,
            p - e2 * a * cos_theta ** 3,
        )
        # parametric latitude for the next refinement
        theta = np.arctan2((1.0 - f) * np.sin(lat), np.cos(lat))

    sin_lat = np.sin(lat)
    cos_lat = np.cos(lat)
    N = a / np.sqrt(1.0 - e2 * sin_lat * sin_lat)
    with np.errstate(divide='ignore', invalid='ignore'):
        alt = np.where(
            np.abs(cos_lat) > 1e-10,
            p / cos_lat - N,
            np.abs(z) - b,
        )

    return np.degrees(lat), np.degrees(lon), alt
