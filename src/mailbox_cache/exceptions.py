"""Custom exceptions for Mailbox Cache."""


class MailboxCacheError(Exception):
    """Base exception for all Mailbox Cache errors."""


class GatewayError(MailboxCacheError):
    """Exception raised for mail gateway failures that have no narrower type."""


class GatewayConnectionError(GatewayError):
    """Exception raised when the gateway cannot reach the mail server."""


class AuthenticationError(GatewayError):
    """Exception raised when account credentials or tokens are rejected."""


class NetworkError(GatewayError):
    """Exception raised for DNS or connection-reset level failures."""


class MailboxNotFoundError(GatewayError):
    """Exception raised when the requested mailbox does not exist."""


class ConfigurationError(MailboxCacheError):
    """Exception raised for configuration related errors."""


class ValidationError(MailboxCacheError):
    """Exception raised for invalid requests, such as out-of-range pages."""


class LeaseError(MailboxCacheError):
    """Exception raised when a load lease is released by someone other than its holder."""
