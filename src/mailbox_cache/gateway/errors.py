"""Classification of gateway failures into user-facing error state."""

from __future__ import annotations

import socket

from mailbox_cache.exceptions import (
    AuthenticationError,
    GatewayConnectionError,
    MailboxNotFoundError,
    NetworkError,
)
from mailbox_cache.models import ErrorKind, LoadError

GUIDANCE: dict[ErrorKind, str] = {
    ErrorKind.CONNECTION: "Cannot connect to the email server. Please try again.",
    ErrorKind.AUTHENTICATION: (
        "Authentication failed. Please check your email and password. If you use "
        "2-Factor Authentication, you may need to generate an App Password."
    ),
    ErrorKind.NETWORK: "A network error occurred. Please check your internet connection.",
    ErrorKind.NOT_FOUND: "The mailbox no longer exists on the server. Please refresh the folder list.",
    ErrorKind.UNKNOWN: "Failed to load emails.",
}

# Checked in order; the first matching marker decides the kind.
_MESSAGE_MARKERS: tuple[tuple[ErrorKind, tuple[str, ...]], ...] = (
    (
        ErrorKind.AUTHENTICATION,
        ("authenticationfailed", "invalid credentials", "authentication", "auth failed"),
    ),
    (ErrorKind.NETWORK, ("enotfound", "econnreset", "eai_again", "ehostunreach", "getaddrinfo")),
    (ErrorKind.CONNECTION, ("econnrefused", "timed out", "timeout", "connection")),
    (ErrorKind.NOT_FOUND, ("nonexistent", "not found", "no such mailbox")),
)


def _kind_from_type(exc: BaseException) -> ErrorKind | None:
    if isinstance(exc, AuthenticationError):
        return ErrorKind.AUTHENTICATION
    if isinstance(exc, MailboxNotFoundError):
        return ErrorKind.NOT_FOUND
    if isinstance(exc, (NetworkError, socket.gaierror, ConnectionResetError)):
        return ErrorKind.NETWORK
    if isinstance(exc, (GatewayConnectionError, ConnectionError, TimeoutError)):
        return ErrorKind.CONNECTION
    return None


def classify_error(exc: BaseException) -> LoadError:
    """Map a failure to a ``LoadError`` carrying guidance text.

    Typed exceptions win; otherwise the message is searched for well-known
    IMAP and socket error markers.

    Args:
        exc: The exception raised by the gateway.

    Returns:
        LoadError: Classified error state.
    """

    message = str(exc) or exc.__class__.__name__
    kind = _kind_from_type(exc)

    if kind is None:
        lowered = message.lower()
        kind = next(
            (
                candidate
                for candidate, markers in _MESSAGE_MARKERS
                if any(marker in lowered for marker in markers)
            ),
            ErrorKind.UNKNOWN,
        )

    return LoadError(kind=kind, message=message, guidance=GUIDANCE[kind])
