from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class CallerLocation(BaseModel):
    model_config = ConfigDict(frozen=True)

    lat: float = Field(..., ge=-90.0, le=90.0)
    lng: float = Field(..., ge=-180.0, le=180.0)


class SearchRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    query: str = Field(..., min_length=1)
    limit: int = Field(default=5, ge=1)
    caller_location: CallerLocation | None = None

    @property
    def biased(self) -> bool:
        return self.caller_location is not None


class BoundingBox(BaseModel):
    model_config = ConfigDict(frozen=True)

    left: float
    top: float
    right: float
    bottom: float

    def to_viewbox(self) -> str:
        """Render as the provider's ``viewbox`` parameter (``left,top,right,bottom``)."""
        return f"{self.left},{self.top},{self.right},{self.bottom}"


class FetchPlan(BaseModel):
    model_config = ConfigDict(frozen=True)

    query: str
    fetch_limit: int = Field(..., ge=1)
    viewbox: BoundingBox | None = None


class Candidate(BaseModel):
    name: str
    full_name: str
    lat: float | None = None
    lng: float | None = None
    type: str | None = None
    importance: float = 0.0


class ScoredCandidate(Candidate):
    distance: float | None = Field(default=None, ge=0.0, description="Kilometres from the caller")
    score: float | None = None
