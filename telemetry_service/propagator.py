"""
Ground-track propagation.

Propagates the cached element set with SGP4 over a window centered on a
given time and converts each step to geodetic latitude/longitude.
"""

from datetime import datetime, timedelta, timezone
from typing import List, Optional

import numpy as np
from sgp4.api import jday

from telemetry_service.config import MINUTES_PER_DAY, config
from telemetry_service.errors import PropagationFailure
from telemetry_service.geodesy import ecef_to_geodetic, gmst_radians, teme_to_ecef
from telemetry_service.logging_config import get_logger
from telemetry_service.models import GroundTrackPoint, OrbitalElements

logger = get_logger(__name__)


# SGP4 error code meanings
SGP4_ERROR_CODES = {
    0: "No error",
    1: "Mean eccentricity < 0.0 or > 1.0",
    2: "Mean motion < 0.0",
    3: "Perturbed eccentricity < 0.0 or > 1.0",
    4: "Semi-latus rectum < 0.0",
    5: "Satellite has decayed",
    6: "Satellite has decayed (low altitude)",
}


def _to_jd_fr(when: datetime):
    if when.tzinfo is not None:
        when = when.astimezone(timezone.utc)
    seconds = when.second + when.microsecond / 1e6
    return jday(when.year, when.month, when.day, when.hour, when.minute, seconds)


class GroundTrackPropagator:
    """
    SGP4 ground-track generator.

    A window of ``steps_before + steps_after + 1`` points is produced, one
    per step, ordered by increasing time. Steps SGP4 cannot solve are
    dropped; the rest of the window is still returned.
    """

    def __init__(self, steps_before: int = config.TRACK_STEPS_BEFORE,
                 steps_after: int = config.TRACK_STEPS_AFTER,
                 step: timedelta = timedelta(minutes=config.TRACK_STEP_MINUTES)):
        self.steps_before = steps_before
        self.steps_after = steps_after
        self.step = step

    def track_since(self, elements: Optional[OrbitalElements],
                    center_time: Optional[datetime] = None) -> List[GroundTrackPoint]:
        """
        Propagate the ground track around center_time.

        Args:
            elements: Element set, or None while unavailable
            center_time: Middle of the window (default: now, UTC)

        Returns:
            List of (latitude, longitude) in degrees; empty when elements
            are unavailable or no step could be propagated
        """
        if elements is None:
            return []

        if center_time is None:
            center_time = datetime.now(timezone.utc)

        try:
            return self._propagate_window(elements, center_time)
        except PropagationFailure as e:
            logger.error("track_propagation_failed", error=str(e))
            return []

    def _propagate_window(self, elements: OrbitalElements, center_time: datetime) -> List[GroundTrackPoint]:
        try:
            satellite = elements.satrec()
        except (ValueError, IndexError) as e:
            raise PropagationFailure(f"Cannot load element set: {e}")

        jd0, fr0 = _to_jd_fr(center_time)
        step_minutes = self.step.total_seconds() / 60.0
        offsets = np.arange(-self.steps_before, self.steps_after + 1, dtype=float) * step_minutes

        jd = np.full(offsets.shape, jd0)
        fr = fr0 + offsets / MINUTES_PER_DAY

        errors, r_teme, _ = satellite.sgp4_array(jd, fr)
        r_teme = np.asarray(r_teme)

        ok = (np.asarray(errors) == 0) & np.all(np.isfinite(r_teme), axis=1)
        failed = int(ok.size - np.count_nonzero(ok))
        if failed:
            codes = sorted({int(code) for code in np.asarray(errors)[~ok] if code})
            logger.warning(
                "track_steps_skipped",
                skipped=failed,
                total=int(ok.size),
                reasons=[SGP4_ERROR_CODES.get(code, f"Unknown error code {code}") for code in codes],
            )
        if not ok.any():
            raise PropagationFailure(f"All {ok.size} steps failed")

        r_ecef = teme_to_ecef(r_teme[ok], gmst_radians(jd[ok], fr[ok]))
        lat, lon, _ = ecef_to_geodetic(r_ecef)

        return [(float(la), float(lo)) for la, lo in zip(lat, lon)]
