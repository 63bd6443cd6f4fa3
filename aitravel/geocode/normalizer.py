from __future__ import annotations

import logging
import math

from .config import DEFAULT_GEOCODE_CONFIG, GeocodeConfig
from .errors import InvalidRequest
from .models import BoundingBox, CallerLocation, FetchPlan, SearchRequest

logger = logging.getLogger(__name__)

QUERY_REQUIRED_MESSAGE = "Query parameter required"


def _parse_limit(raw_limit: str | int | None, config: GeocodeConfig) -> int:
    if raw_limit is None:
        return config.default_limit
    try:
        limit = int(str(raw_limit).strip())
    except ValueError:
        return config.default_limit
    if limit < 1:
        return config.default_limit
    if config.max_limit is not None and limit > config.max_limit:
        logger.info("Clamping requested limit %d to configured maximum %d", limit, config.max_limit)
        return config.max_limit
    return limit


def _parse_coordinate(raw: str | float | None) -> float | None:
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    return value if math.isfinite(value) else None


def _parse_caller_location(
    raw_lat: str | float | None,
    raw_lng: str | float | None,
) -> CallerLocation | None:
    """Both coordinates must be present, numeric and in range; anything less means no bias."""
    lat = _parse_coordinate(raw_lat)
    lng = _parse_coordinate(raw_lng)
    if lat is None or lng is None:
        return None
    if not (-90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0):
        logger.info("Ignoring out-of-range caller location (%s, %s)", lat, lng)
        return None
    return CallerLocation(lat=lat, lng=lng)


def normalize(
    raw_query: str | None,
    raw_limit: str | int | None = None,
    raw_lat: str | float | None = None,
    raw_lng: str | float | None = None,
    config: GeocodeConfig = DEFAULT_GEOCODE_CONFIG,
) -> SearchRequest:
    """
    Turn raw query-string values into a validated SearchRequest.

    Raises InvalidRequest when the query text is missing or empty. Every
    other malformed value falls back to a default instead of failing.
    """
    if raw_query is None or not raw_query.strip():
        raise InvalidRequest(QUERY_REQUIRED_MESSAGE)

    return SearchRequest(
        query=raw_query,
        limit=_parse_limit(raw_limit, config),
        caller_location=_parse_caller_location(raw_lat, raw_lng),
    )


def build_fetch_plan(
    request: SearchRequest,
    config: GeocodeConfig = DEFAULT_GEOCODE_CONFIG,
) -> FetchPlan:
    """Decide how many raw candidates to ask for and which viewbox to hint."""
    location = request.caller_location
    if location is None:
        return FetchPlan(query=request.query, fetch_limit=request.limit)

    # Over-fetch so enough local candidates survive re-ranking and truncation
    fetch_limit = max(request.limit * config.fetch_multiplier, config.min_biased_fetch)
    d = config.bias_half_width_deg
    viewbox = BoundingBox(
        left=location.lng - d,
        top=location.lat + d,
        right=location.lng + d,
        bottom=location.lat - d,
    )
    return FetchPlan(query=request.query, fetch_limit=fetch_limit, viewbox=viewbox)
