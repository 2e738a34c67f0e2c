"""
ocop_client.auth.errors

Error taxonomy for the session lifecycle.

Responsibilities:
- Classify login failures (`ErrorKind`) for tests and diagnostics.
- Provide the exception types raised by `SessionManager.login`.
"""

from __future__ import annotations

import enum

DEFAULT_LOGIN_FAILURE = "Login failed"


class ErrorKind(enum.StrEnum):
    invalid_credentials = "invalid_credentials"
    network_failure = "network_failure"
    server_error = "server_error"


class SessionError(Exception):
    """Anything `SessionManager.login` raises; catch this to handle every outcome."""


class AuthError(SessionError):
    """
    Base login failure. `reason` is always a human-readable message, so callers can
    render it without looking at `kind`.
    """

    kind: ErrorKind = ErrorKind.server_error

    def __init__(self, reason: str | None = None) -> None:
        self.reason = reason or DEFAULT_LOGIN_FAILURE
        super().__init__(self.reason)


class InvalidCredentials(AuthError):
    kind = ErrorKind.invalid_credentials


class NetworkFailure(AuthError):
    kind = ErrorKind.network_failure


class ServerError(AuthError):
    kind = ErrorKind.server_error


_BY_KIND: dict[ErrorKind, type[AuthError]] = {
    ErrorKind.invalid_credentials: InvalidCredentials,
    ErrorKind.network_failure: NetworkFailure,
    ErrorKind.server_error: ServerError,
}


def error_for(kind: ErrorKind, reason: str | None) -> AuthError:
    return _BY_KIND[kind](reason)


class SessionSuperseded(SessionError):
    """
    Raised to a `login` caller whose response arrived after a newer login/logout/check.
    The response was discarded and session state was left untouched.
    """


# --- Module Notes -----------------------------------------------------------
# `check_auth` never raises these: reconciliation failures downgrade to anonymous.
