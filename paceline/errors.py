"""Exceptions raised by paceline collaborators.

Section builders catch these at the section boundary and render ``--``;
nothing here is allowed to fail the host's statusline pipeline.
"""


class PacelineError(Exception):
    """Base class for all paceline errors."""


class CredentialsError(PacelineError):
    """No OAuth token or API key could be found."""


class APIError(PacelineError):
    """HTTP transport failure, non-200 status or undecodable body."""


class RateLimitUnavailable(PacelineError):
    """Neither a fresh cache, the API nor a stale cache produced data."""


class DaemonRunningError(PacelineError):
    """Another daemon instance holds the lock."""


class SetupError(PacelineError):
    """The settings file could not be read, parsed or written."""
