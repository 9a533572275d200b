"""Unit tests for gateway error classification."""

import socket

import pytest

from mailbox_cache.exceptions import (
    AuthenticationError,
    GatewayConnectionError,
    GatewayError,
    MailboxNotFoundError,
    NetworkError,
)
from mailbox_cache.gateway import GUIDANCE, classify_error
from mailbox_cache.models import ErrorKind


@pytest.mark.parametrize(
    ("exc", "kind"),
    [
        (AuthenticationError("token expired"), ErrorKind.AUTHENTICATION),
        (GatewayConnectionError("server busy"), ErrorKind.CONNECTION),
        (NetworkError("no route"), ErrorKind.NETWORK),
        (MailboxNotFoundError("gone"), ErrorKind.NOT_FOUND),
        (TimeoutError(), ErrorKind.CONNECTION),
        (ConnectionRefusedError("refused"), ErrorKind.CONNECTION),
        (ConnectionResetError("reset by peer"), ErrorKind.NETWORK),
        (socket.gaierror("Name or service not known"), ErrorKind.NETWORK),
    ],
)
def test_typed_failures(exc, kind) -> None:
    assert classify_error(exc).kind is kind


@pytest.mark.parametrize(
    ("message", "kind"),
    [
        ("connect ECONNREFUSED 10.0.0.1:993", ErrorKind.CONNECTION),
        ("Command failed: AUTHENTICATIONFAILED", ErrorKind.AUTHENTICATION),
        ("Invalid credentials (Failure)", ErrorKind.AUTHENTICATION),
        ("getaddrinfo ENOTFOUND imap.example.com", ErrorKind.NETWORK),
        ("read ECONNRESET", ErrorKind.NETWORK),
        ("Operation timed out", ErrorKind.CONNECTION),
        ("[NONEXISTENT] Unknown Mailbox: Archive", ErrorKind.NOT_FOUND),
        ("something odd happened", ErrorKind.UNKNOWN),
    ],
)
def test_message_markers(message, kind) -> None:
    error = classify_error(GatewayError(message))

    assert error.kind is kind
    assert error.message == message
    assert error.guidance == GUIDANCE[kind]


def test_empty_message_falls_back_to_type_name() -> None:
    assert classify_error(RuntimeError()).message == "RuntimeError"
