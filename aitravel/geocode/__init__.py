"""
Location search with proximity-aware re-ranking.

Responsibilities:
- Normalize raw query parameters into a SearchRequest and a FetchPlan.
- Fetch raw candidates from the upstream geocoding provider.
- Score candidates by importance and distance to the caller.
- Return a stable, truncated ordering ready for API serialisation.
"""
