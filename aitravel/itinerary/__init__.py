"""
Itinerary planning.

Responsibilities:
- Accept a list of chosen locations and/or a free-text travel theme.
- Build a planning prompt with clustering and timing rules.
- Call the Groq LLM and validate its day-by-day JSON plan.
"""
