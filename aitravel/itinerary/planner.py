from __future__ import annotations

import json
import logging
import time

from groq import Groq
from pydantic import ValidationError

from ..analytics.store import record_event
from ..llm.config import DEFAULT_LLM_CONFIG, LLMConfig
from .models import Itinerary, PlanRequest

logger = logging.getLogger(__name__)

MISSING_INPUT_MESSAGE = "Please provide locations or a travel theme"
MISSING_KEY_MESSAGE = "No LLM API key configured; itinerary generation is unavailable"
DEFAULT_THEME = "popular sightseeing"


class ItineraryError(Exception):
    def __init__(self, message: str, status_code: int = 500) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


# ---------------------------------------------------------------------------
# Prompts
# ---------------------------------------------------------------------------

SYSTEM_PROMPT = (
    "You are a professional travel planner. You MUST output valid JSON only. "
    "No markdown. All text content (reasons, themes, titles) MUST be in {language}."
)

_JSON_SHAPE = """\
{
  "title": "itinerary title",
  "days": [
    {
      "day": 1,
      "theme": "theme of the day",
      "places": [
        {
          "name": "place name",
          "lat": 35.0,
          "lng": 135.0,
          "reason": "why this stop",
          "start_time": "10:00",
          "end_time": "12:00",
          "stay_duration": "2 hours",
          "transport_detail": "how to get here from the previous stop"
        }
      ]
    }
  ]
}"""

_CLUSTERING_RULE = """\
1. City clustering (critical):
   - First work out which city or region each place belongs to.
   - Places in the same city MUST be scheduled on consecutive days.
   - Never bounce between cities (e.g. Kyoto -> Osaka -> Kyoto is forbidden).
   - Move between cities at most once per pair of cities."""

_THEME_RULE = """\
1. Recommendations: choose places that fit the theme. Plan 3-4 well-reviewed \
places per day, keeping the distance between consecutive stops reasonable."""

_TIMING_RULES = """\
2. Timing (important):
   - Each day starts around 09:00 or 10:00.
   - Estimate a sensible stay for each place (e.g. museum 2 hours, park 1 hour).
   - Estimate point-to-point travel time and accumulate it into each stop's \
arrival (start_time) and departure (end_time).
   - Times must be consistent: previous end_time + travel time = next start_time.
   - Across days, the last stop of day N and the first stop of day N+1 must connect sensibly.
3. Give a reason for every place.
4. Transport: describe how to travel from the previous stop to this one \
(the first stop of a day may say "start").
5. Return raw JSON only, no markdown fences.
6. The JSON MUST match this structure (all times as "HH:MM"):"""


def _days_instruction(days: int | None) -> str:
    if days:
        return f"Plan a {days}-day trip."
    return (
        "Choose the number of days automatically (1-7) from the number of places and "
        "how spread out they are: more days if the list is long, a short highlight "
        "trip if it is short."
    )


def build_plan_prompt(request: PlanRequest) -> str:
    """Assemble the user prompt for either route optimisation or theme-based planning."""
    lines = ["Plan a trip from the information below.", ""]

    if request.locations:
        lines.append("The user has chosen these places:")
        for loc in request.locations:
            lines.append(f"- {loc.name} ({loc.lat}, {loc.lng})")
        user_loc = request.user_location
        if user_loc is not None and user_loc.lat is not None and user_loc.lng is not None:
            lines.append(
                f"User's current position: ({user_loc.lat}, {user_loc.lng}). "
                "Where reasonable, make the first stop of day 1 close to it."
            )
        if request.user_theme:
            lines.append(f"User's preferred theme / notes: {request.user_theme}")
        rule = _CLUSTERING_RULE
    else:
        lines.append("The user has not chosen any places; recommend them from the theme.")
        lines.append(f'Travel theme: "{request.user_theme or DEFAULT_THEME}"')
        rule = _THEME_RULE

    lines += [
        "",
        "Requirements:",
        f"0. {_days_instruction(request.days)}",
        rule,
        _TIMING_RULES,
        _JSON_SHAPE,
    ]
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# LLM call
# ---------------------------------------------------------------------------


def generate_itinerary(
    request: PlanRequest,
    config: LLMConfig = DEFAULT_LLM_CONFIG,
) -> Itinerary:
    """
    Ask the LLM for a day-by-day plan and validate it.

    Raises ItineraryError with status 400 when there is nothing to plan,
    503 when no LLM is configured, and 500 when the call or its output fails.
    """
    if not request.locations and not request.user_theme:
        raise ItineraryError(MISSING_INPUT_MESSAGE, status_code=400)

    if not config.enabled or not config.api_key:
        logger.warning("GROQ_API_KEY is not set; refusing itinerary request")
        raise ItineraryError(MISSING_KEY_MESSAGE, status_code=503)

    start_time = time.time()
    error: str | None = None
    try:
        logger.info("Requesting itinerary from %s for %d locations", config.model, len(request.locations))
        client = Groq(api_key=config.api_key, timeout=config.timeout)
        response = client.chat.completions.create(
            model=config.model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT.format(language=config.language)},
                {"role": "user", "content": build_plan_prompt(request)},
            ],
            max_tokens=config.max_tokens,
            temperature=config.temperature,
            response_format={"type": "json_object"},
        )

        content = response.choices[0].message.content
        if not content:
            raise ItineraryError("No content generated")

        return Itinerary.model_validate(json.loads(content))

    except ItineraryError as exc:
        error = type(exc).__name__
        logger.error("Itinerary generation failed: %s", exc.message)
        raise
    except (json.JSONDecodeError, ValidationError) as exc:
        error = type(exc).__name__
        logger.error("LLM returned an unusable itinerary", exc_info=True)
        raise ItineraryError(f"Invalid itinerary returned by the model: {exc}") from exc
    except Exception as exc:
        error = type(exc).__name__
        logger.error("Itinerary LLM call failed", exc_info=True)
        raise ItineraryError(str(exc) or "Failed to generate itinerary") from exc
    finally:
        record_event("plan", {
            "locations": len(request.locations),
            "days": request.days,
            "theme": request.user_theme,
            "response_time_ms": round((time.time() - start_time) * 1000, 1),
            "error": error,
        })
