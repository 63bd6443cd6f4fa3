"""
LLM integration layer.

Responsibilities:
- Manage Groq API configuration and credentials.
- Provide the settings used by the itinerary planner.
"""
