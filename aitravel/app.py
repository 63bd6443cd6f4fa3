from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .analytics.aggregator import compute_analytics
from .analytics.store import get_events
from .geocode.errors import GeocodeError
from .geocode.models import ScoredCandidate
from .geocode.normalizer import normalize
from .geocode.service import search_locations
from .itinerary.models import Itinerary, PlanRequest
from .itinerary.planner import ItineraryError, generate_itinerary

logger = logging.getLogger(__name__)

app = FastAPI(title="AITravel API", version="1.0.0")


# ── Error handlers ───────────────────────────────────────────────────────


@app.exception_handler(GeocodeError)
def geocode_error_handler(request: Request, exc: GeocodeError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(ItineraryError)
def itinerary_error_handler(request: Request, exc: ItineraryError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(Exception)
def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error on %s", request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"error": str(exc) or "Internal Server Error"})


# ── Public endpoints ─────────────────────────────────────────────────────


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get(
    "/api/geocode",
    response_model=list[ScoredCandidate],
    response_model_exclude_none=True,
)
def geocode(
    q: str | None = None,
    limit: str | None = None,
    lat: str | None = None,
    lng: str | None = None,
) -> list[ScoredCandidate]:
    # Raw strings: malformed limit/lat/lng fall back to defaults instead of a 422
    search_request = normalize(q, limit, lat, lng)
    return search_locations(search_request)


@app.post("/api/plan", response_model=Itinerary)
def plan(body: PlanRequest) -> Itinerary:
    return generate_itinerary(body)


# ── Telemetry ────────────────────────────────────────────────────────────


@app.get("/analytics")
def analytics() -> dict:
    return compute_analytics(get_events())
