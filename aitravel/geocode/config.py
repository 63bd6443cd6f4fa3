from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")


def _optional_int(name: str) -> int | None:
    raw = os.getenv(name, "").strip()
    return int(raw) if raw.isdigit() and int(raw) > 0 else None


@dataclass(frozen=True)
class GeocodeConfig:
    base_url: str = os.getenv("GEOCODE_BASE_URL", "https://nominatim.openstreetmap.org/search")
    user_agent: str = os.getenv("GEOCODE_USER_AGENT", "AITravel-App/1.0")
    timeout: float = float(os.getenv("GEOCODE_TIMEOUT_SEC", "10"))
    max_limit: int | None = _optional_int("GEOCODE_MAX_LIMIT")

    default_limit: int = 5
    fetch_multiplier: int = 5
    min_biased_fetch: int = 20
    bias_half_width_deg: float = 1.0  # ~100 km

    local_radius_km: float = 50.0
    local_boost: float = 2.0
    distance_divisor: float = 100.0
    earth_radius_km: float = 6371.0


DEFAULT_GEOCODE_CONFIG = GeocodeConfig()
