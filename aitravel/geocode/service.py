from __future__ import annotations

import logging
import time

from ..analytics.store import record_event
from .config import DEFAULT_GEOCODE_CONFIG, GeocodeConfig
from .errors import GeocodeError
from .fetcher import fetch_candidates
from .models import ScoredCandidate, SearchRequest
from .normalizer import build_fetch_plan
from .ranker import rank

logger = logging.getLogger(__name__)


def search_locations(
    request: SearchRequest,
    config: GeocodeConfig = DEFAULT_GEOCODE_CONFIG,
) -> list[ScoredCandidate]:
    """Run plan -> fetch -> rank -> truncate for one normalized request."""
    start_time = time.time()
    plan = build_fetch_plan(request, config)

    try:
        raw_candidates = fetch_candidates(plan, config)
    except GeocodeError as exc:
        elapsed_ms = round((time.time() - start_time) * 1000, 1)
        logger.error(
            "Geocoding failed for query %r (biased=%s, fetch_limit=%d): %s",
            request.query,
            request.biased,
            plan.fetch_limit,
            exc.message,
        )
        record_event("search", {
            "query": request.query,
            "limit": request.limit,
            "biased": request.biased,
            "fetch_limit": plan.fetch_limit,
            "results_returned": 0,
            "response_time_ms": elapsed_ms,
            "error": type(exc).__name__,
        })
        raise

    results = rank(raw_candidates, request.caller_location, request.limit, config)

    elapsed_ms = round((time.time() - start_time) * 1000, 1)
    logger.info(
        "Search %r (biased=%s): %d candidates fetched, %d returned in %.1f ms",
        request.query,
        request.biased,
        len(raw_candidates),
        len(results),
        elapsed_ms,
    )
    record_event("search", {
        "query": request.query,
        "limit": request.limit,
        "biased": request.biased,
        "fetch_limit": plan.fetch_limit,
        "total_candidates": len(raw_candidates),
        "results_returned": len(results),
        "response_time_ms": elapsed_ms,
        "error": None,
    })
    return results
