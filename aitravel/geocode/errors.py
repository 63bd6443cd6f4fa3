from __future__ import annotations


class GeocodeError(Exception):
    """Base class for location search failures surfaced to API callers."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidRequest(GeocodeError):
    status_code = 400


class UpstreamUnavailable(GeocodeError):
    """The geocoding provider could not be reached (connection, timeout, TLS)."""


class UpstreamError(GeocodeError):
    """The geocoding provider answered with an error status or a non-JSON body."""
