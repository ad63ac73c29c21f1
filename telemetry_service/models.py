"""
Telemetry data model.

pydantic models for everything that flows through the relay: the cached
orbital element set, the per-cycle position sample, the derived attributes,
and the published snapshot with its wire serialisation.
"""

import json
import math
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr
from sgp4.api import Satrec

from telemetry_service.config import MINUTES_PER_DAY

GroundTrackPoint = Tuple[float, float]

DAYLIGHT = "Daylight"
NIGHT = "Night"
VISIBLE = "Visible"
NOT_VISIBLE = "Not Visible"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OrbitalElements(BaseModel):
    """Two-line element set as fetched, immutable once built."""
    model_config = ConfigDict(frozen=True)

    name: str = ""
    line1: str
    line2: str
    fetched_at: datetime = Field(default_factory=_utcnow)

    _satrec: Optional[Satrec] = PrivateAttr(default=None)

    def satrec(self) -> Satrec:
        """Load the element lines into an sgp4 satellite record, parsed once per instance."""
        if self._satrec is None:
            self._satrec = Satrec.twoline2rv(self.line1, self.line2)
        return self._satrec

    @property
    def inclination_deg(self) -> float:
        return math.degrees(self.satrec().inclo)

    @property
    def mean_motion_rev_per_day(self) -> float:
        # no_kozai is rad/min
        return self.satrec().no_kozai * MINUTES_PER_DAY / (2.0 * math.pi)


class PositionSample(BaseModel):
    """Instantaneous position reported by the live position source."""
    model_config = ConfigDict(frozen=True)

    latitude: float
    longitude: float
    altitude_km: float
    velocity_kms: float
    timestamp: datetime = Field(default_factory=_utcnow)


class DerivedAttributes(BaseModel):
    """Attributes computed from a position sample and the element set."""
    model_config = ConfigDict(frozen=True)

    illumination: Optional[str] = None
    visibility: Optional[str] = None
    inclination_deg: Optional[float] = None
    orbital_period_min: Optional[float] = None

    @property
    def is_empty(self) -> bool:
        return all(value is None for value in self.model_dump().values())

    def to_wire(self) -> Dict[str, Any]:
        wire = {
            "daylight": self.illumination,
            "visibility": self.visibility,
            "inclination": self.inclination_deg,
            "period": self.orbital_period_min,
        }
        return {key: value for key, value in wire.items() if value is not None}


class TelemetrySnapshot(BaseModel):
    """The single published unit. Built once per successful cycle."""
    model_config = ConfigDict(frozen=True)

    sample: PositionSample
    track: List[GroundTrackPoint] = Field(default_factory=list)
    attributes: DerivedAttributes = Field(default_factory=DerivedAttributes)
    crew_count: int = 7
    created_at: datetime = Field(default_factory=_utcnow)

    def to_wire(self) -> Dict[str, Any]:
        """Build the push-channel message: ``{"iss": {...}}``."""
        iss = {
            "orbitPoints": [[lat, lng] for lat, lng in self.track],
            "lat": self.sample.latitude,
            "lng": self.sample.longitude,
            "altitude": self.sample.altitude_km,
            "velocity": self.sample.velocity_kms,
        }
        iss.update(self.attributes.to_wire())
        iss["crewCount"] = self.crew_count
        return {"iss": iss}

    def to_json(self) -> str:
        return json.dumps(self.to_wire())
