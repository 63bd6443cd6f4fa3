from __future__ import annotations

import logging
import re
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)

_HHMM_RE = re.compile(r"^(\d{1,2}):(\d{2})$")


class PlanLocation(BaseModel):
    name: str = Field(..., min_length=1)
    lat: float = Field(..., ge=-90.0, le=90.0)
    lng: float = Field(..., ge=-180.0, le=180.0)


class UserLocation(BaseModel):
    lat: float | None = Field(default=None, ge=-90.0, le=90.0)
    lng: float | None = Field(default=None, ge=-180.0, le=180.0)


class PlanRequest(BaseModel):
    locations: list[PlanLocation] = Field(default_factory=list)
    days: int | None = Field(default=None, ge=1, le=30)
    user_location: UserLocation | None = Field(default=None, alias="userLocation")
    user_theme: str | None = Field(default=None, alias="userTheme", max_length=500)

    model_config = {"populate_by_name": True}


class PlannedStop(BaseModel):
    name: str
    lat: float
    lng: float
    reason: str = ""
    start_time: str
    end_time: str
    stay_duration: str = ""
    transport_detail: str = ""

    @field_validator("start_time", "end_time")
    @classmethod
    def _clock_time(cls, value: str) -> str:
        """Accept ``H:MM`` or ``HH:MM`` and normalise to ``HH:MM``."""
        match = _HHMM_RE.match(value.strip())
        if not match or int(match.group(1)) > 23 or int(match.group(2)) > 59:
            raise ValueError(f"expected HH:MM, got {value!r}")
        return f"{int(match.group(1)):02d}:{match.group(2)}"


class PlannedDay(BaseModel):
    day: int = Field(..., ge=1)
    theme: str = ""
    places: list[PlannedStop] = Field(default_factory=list)

    @field_validator("places", mode="before")
    @classmethod
    def _drop_unusable_stops(cls, value: Any) -> Any:
        """Skip stops missing coordinates or clock times instead of rejecting the whole plan."""
        if not isinstance(value, list):
            return value
        kept: list[PlannedStop] = []
        for raw in value:
            try:
                kept.append(PlannedStop.model_validate(raw))
            except ValidationError:
                logger.warning("Dropping unusable itinerary stop %r", raw, exc_info=True)
        return kept


class Itinerary(BaseModel):
    title: str
    days: list[PlannedDay]
