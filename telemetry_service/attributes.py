"""
Derived Attribute Calculator

Combines the current position sample with the orbital element set:

- illumination: Daylight/Night from solar elevation at the sub-satellite point
- visibility: Visible/Not Visible from whether the satellite itself is sunlit
- inclination: orbital plane inclination in degrees
- orbital period: minutes per revolution, 1440 / mean motion (rev/day)

Solar geometry comes from an IlluminationOracle. The production oracle uses
Skyfield with the JPL DE421 ephemeris; tests substitute a fake.
"""

import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Optional

from skyfield.api import EarthSatellite, Loader, wgs84

from telemetry_service.config import MINUTES_PER_DAY, config
from telemetry_service.logging_config import get_logger
from telemetry_service.models import (
    DAYLIGHT,
    NIGHT,
    NOT_VISIBLE,
    VISIBLE,
    DerivedAttributes,
    OrbitalElements,
    PositionSample,
)

logger = get_logger(__name__)


class IlluminationOracle(ABC):
    """Source of solar geometry for the calculator."""

    @abstractmethod
    def solar_elevation_deg(self, latitude: float, longitude: float, when: datetime) -> float:
        """Elevation of the Sun above the horizon at a ground location."""

    @abstractmethod
    def is_sunlit(self, elements: OrbitalElements, when: datetime) -> bool:
        """Whether the satellite described by elements is in sunlight."""


class SkyfieldIlluminationOracle(IlluminationOracle):
    """
    Skyfield-backed oracle.

    The ephemeris file is loaded (and downloaded if missing) on first use,
    not at construction, so building the service never touches the network.
    """

    def __init__(self, ephemeris_file: str = config.EPHEMERIS_FILE,
                 directory: str = config.EPHEMERIS_DIR):
        self.ephemeris_file = ephemeris_file
        self._loader = Loader(directory, verbose=False)
        self._ts = self._loader.timescale()
        self._eph = None
        self._lock = threading.Lock()

    @property
    def ephemeris(self):
        with self._lock:
            if self._eph is None:
                self._eph = self._loader(self.ephemeris_file)
                logger.info("ephemeris_loaded", file=self.ephemeris_file)
            return self._eph

    def solar_elevation_deg(self, latitude: float, longitude: float, when: datetime) -> float:
        eph = self.ephemeris
        observer = eph['earth'] + wgs84.latlon(latitude, longitude)
        t = self._ts.from_datetime(when)
        alt, _, _ = observer.at(t).observe(eph['sun']).apparent().altaz()
        return float(alt.degrees)

    def is_sunlit(self, elements: OrbitalElements, when: datetime) -> bool:
        satellite = EarthSatellite.from_satrec(elements.satrec(), self._ts)
        t = self._ts.from_datetime(when)
        return bool(satellite.at(t).is_sunlit(self.ephemeris))


class DerivedAttributeCalculator:
    """Computes DerivedAttributes for one (elements, sample) pair."""

    def __init__(self, oracle: Optional[IlluminationOracle] = None,
                 daylight_threshold_deg: float = config.DAYLIGHT_THRESHOLD_DEG):
        self.oracle = oracle if oracle is not None else SkyfieldIlluminationOracle()
        self.daylight_threshold_deg = daylight_threshold_deg

    def compute(self, elements: Optional[OrbitalElements], sample: Optional[PositionSample],
                when: Optional[datetime] = None) -> DerivedAttributes:
        """
        Compute attributes, or an empty set if elements or sample is missing.

        Args:
            elements: Element set from the same cycle as the sample
            sample: Current position sample
            when: Evaluation time (default: now, UTC)
        """
        if elements is None or sample is None:
            return DerivedAttributes()

        if when is None:
            when = datetime.now(timezone.utc)
        elif when.tzinfo is None:
            when = when.replace(tzinfo=timezone.utc)

        illumination, visibility = self._solar_state(elements, sample, when)

        return DerivedAttributes(
            illumination=illumination,
            visibility=visibility,
            inclination_deg=elements.inclination_deg,
            orbital_period_min=MINUTES_PER_DAY / elements.mean_motion_rev_per_day,
        )

    def classify_illumination(self, solar_elevation_deg: float) -> str:
        return DAYLIGHT if solar_elevation_deg > self.daylight_threshold_deg else NIGHT

    def _solar_state(self, elements, sample, when):
        try:
            elevation = self.oracle.solar_elevation_deg(sample.latitude, sample.longitude, when)
            sunlit = self.oracle.is_sunlit(elements, when)
        except Exception as e:
            # ephemeris download or load failure; retried next cycle
            logger.error("illumination_oracle_failed", error=str(e))
            return None, None

        return self.classify_illumination(elevation), VISIBLE if sunlit else NOT_VISIBLE
