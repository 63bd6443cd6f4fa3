from __future__ import annotations

import logging
from typing import Any

import httpx

from .config import DEFAULT_GEOCODE_CONFIG, GeocodeConfig
from .errors import UpstreamError, UpstreamUnavailable
from .models import FetchPlan

logger = logging.getLogger(__name__)


def _build_params(plan: FetchPlan) -> dict[str, str]:
    params = {
        "format": "json",
        "q": plan.query,
        "limit": str(plan.fetch_limit),
        "addressdetails": "1",
    }
    if plan.viewbox is not None:
        # Advisory only: the provider may still return matches outside the box
        params["viewbox"] = plan.viewbox.to_viewbox()
        params["bounded"] = "0"
    return params


def build_client(config: GeocodeConfig = DEFAULT_GEOCODE_CONFIG) -> httpx.Client:
    """Client bound to an IPv4 local address so resolution never picks IPv6."""
    return httpx.Client(
        transport=httpx.HTTPTransport(local_address="0.0.0.0"),
        headers={"User-Agent": config.user_agent, "Accept": "application/json"},
        timeout=config.timeout,
    )


def fetch_candidates(
    plan: FetchPlan,
    config: GeocodeConfig = DEFAULT_GEOCODE_CONFIG,
    client: httpx.Client | None = None,
) -> list[dict[str, Any]]:
    """
    Issue exactly one search call to the geocoding provider.

    Returns the provider's raw result objects. A payload that is not a list
    of objects degrades to an empty list instead of raising.
    """
    owns_client = client is None
    http = client if client is not None else build_client(config)
    try:
        response = http.get(config.base_url, params=_build_params(plan))
    except httpx.TransportError as exc:
        raise UpstreamUnavailable(f"Geocoding provider unreachable: {exc}") from exc
    except httpx.RequestError as exc:
        # e.g. DecodingError on a corrupt gzip body
        raise UpstreamError(f"Geocoding provider sent an unreadable response: {exc}") from exc
    finally:
        if owns_client:
            http.close()

    if response.status_code >= 400:
        raise UpstreamError(f"API returned status {response.status_code}")

    try:
        data = response.json()
    except ValueError as exc:
        raise UpstreamError("Geocoding provider returned a non-JSON body") from exc

    if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
        logger.warning(
            "Unexpected geocoding payload of type %s for query %r; returning no candidates",
            type(data).__name__,
            plan.query,
        )
        return []
    return data
