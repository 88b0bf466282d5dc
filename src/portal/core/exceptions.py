"""Domain errors surfaced through the HTTP API.

Every error carries a stable ``kind`` that the API returns as
``{"error": kind}`` and the HTTP status it maps to.
"""


class PortalError(Exception):
    """Base class for errors the API reports to callers."""

    kind = "internal_error"
    status_code = 500

    def __init__(self, message: str | None = None):
        super().__init__(message or self.kind)


class Unauthenticated(PortalError):
    """No session credential was presented."""

    kind = "unauthenticated"
    status_code = 401


class InvalidCredential(PortalError):
    """The credential's signature or one of its claims failed to verify."""

    kind = "invalid_credential"
    status_code = 401


class Forbidden(PortalError):
    """Authenticated, but not allowed (non-member or non-moderator)."""

    kind = "forbidden"
    status_code = 403


class InvalidState(PortalError):
    """OAuth ``state`` did not match the value stored in the browser."""

    kind = "invalid_state"
    status_code = 400


class AlreadyPending(PortalError):
    """The user already has an application under review."""

    kind = "already_pending"
    status_code = 409


class UpstreamUnavailable(PortalError):
    """A provider or chat platform call failed on a gating path."""

    kind = "upstream_unavailable"
    status_code = 502


class InvalidSignature(PortalError):
    """A chat interaction request was not signed by the platform."""

    kind = "invalid_signature"
    status_code = 401
