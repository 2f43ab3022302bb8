"""Error taxonomy for upstream access and aggregation.

Every error raised to the handler layer derives from SportsDataError and
carries a human-readable ``message``. Per-item failures inside a fan-out
are never raised; they are logged and the item is omitted.
"""


class SportsDataError(Exception):
    """Base class for all sports data failures."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class UpstreamUnavailable(SportsDataError):
    """Network or HTTP failure talking to the upstream API."""

    def __init__(self, message: str, url: str | None = None, status_code: int | None = None):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class MalformedUpstreamPayload(SportsDataError):
    """Payload parsed but lacks the shape downstream code depends on."""


class EmptyRosterError(SportsDataError):
    """No teams could be established for a league by any path."""
