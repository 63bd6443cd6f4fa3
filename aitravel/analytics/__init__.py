"""
Search telemetry.

Responsibilities:
- Record one event per location search and itinerary request.
- Summarise recorded events for the /analytics endpoint.
"""
