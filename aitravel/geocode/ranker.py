from __future__ import annotations

import math
from typing import Any

import numpy as np

from .config import DEFAULT_GEOCODE_CONFIG, GeocodeConfig
from .models import CallerLocation, Candidate, ScoredCandidate


def haversine_km(
    lat1: float | np.ndarray,
    lon1: float | np.ndarray,
    lat2: float | np.ndarray,
    lon2: float | np.ndarray,
    radius_km: float = DEFAULT_GEOCODE_CONFIG.earth_radius_km,
) -> float | np.ndarray:
    """
    Great-circle distance on a spherical earth, in kilometres.

    Accepts scalars or numpy arrays (broadcast). NaN inputs yield NaN.
    """
    phi1 = np.radians(lat1)
    phi2 = np.radians(lat2)
    d_phi = np.radians(np.subtract(lat2, lat1))
    d_lambda = np.radians(np.subtract(lon2, lon1))

    a = np.sin(d_phi / 2) ** 2 + np.cos(phi1) * np.cos(phi2) * np.sin(d_lambda / 2) ** 2
    # Float error can push a slightly past 1 near antipodal points
    a = np.clip(a, 0.0, 1.0)
    distance = 2 * radius_km * np.arctan2(np.sqrt(a), np.sqrt(1 - a))
    if np.ndim(distance) == 0:
        return float(distance)
    return distance


def _to_float(value: Any) -> float | None:
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    return result if math.isfinite(result) else None


def project_candidate(raw: dict[str, Any]) -> Candidate:
    """Map one raw provider object onto the Candidate shape."""
    full_name = str(raw.get("display_name") or "")
    name = raw.get("name") or full_name.split(",")[0]
    category = raw.get("type")
    return Candidate(
        name=str(name),
        full_name=full_name,
        lat=_to_float(raw.get("lat")),
        lng=_to_float(raw.get("lon")),
        type=None if category is None else str(category),
        importance=_to_float(raw.get("importance")) or 0.0,
    )


def score_candidate(
    importance: float,
    distance_km: float | None,
    config: GeocodeConfig = DEFAULT_GEOCODE_CONFIG,
) -> float:
    """
    Blend importance with distance.

    Candidates inside the local radius get a boost larger than any possible
    importance, so the local tier always outranks the global tier. Inside
    the tier, nearer wins on equal importance.
    """
    score = importance
    if distance_km is not None and distance_km < config.local_radius_km:
        score += config.local_boost
        score -= distance_km / config.distance_divisor
    return score


def rank(
    raw_candidates: list[dict[str, Any]],
    caller_location: CallerLocation | None,
    limit: int,
    config: GeocodeConfig = DEFAULT_GEOCODE_CONFIG,
) -> list[ScoredCandidate]:
    """
    Order provider results for the caller and truncate to ``limit``.

    Without a caller location the provider order is kept and no distance or
    score is computed. Ties keep provider order (stable sort).
    """
    candidates = [project_candidate(raw) for raw in raw_candidates]

    if caller_location is None:
        return [ScoredCandidate(**c.model_dump()) for c in candidates[:limit]]

    lats = np.array([np.nan if c.lat is None else c.lat for c in candidates], dtype=float)
    lngs = np.array([np.nan if c.lng is None else c.lng for c in candidates], dtype=float)
    distances = haversine_km(
        caller_location.lat,
        caller_location.lng,
        lats,
        lngs,
        radius_km=config.earth_radius_km,
    )

    scored: list[ScoredCandidate] = []
    for candidate, dist in zip(candidates, np.atleast_1d(distances)):
        distance_km = None if np.isnan(dist) else float(dist)
        scored.append(
            ScoredCandidate(
                **candidate.model_dump(),
                distance=distance_km,
                score=score_candidate(candidate.importance, distance_km, config),
            )
        )

    # sorted() keeps equal scores in provider order, also with reverse=True
    scored = sorted(scored, key=lambda c: c.score, reverse=True)
    return scored[:limit]
