"""Mail gateway contract, error classification and the in-memory gateway."""

from .base import MailGateway, NewMailCallback, Unsubscribe
from .errors import GUIDANCE, classify_error
from .memory import InMemoryGateway, seed_headers

__all__ = [
    "GUIDANCE",
    "InMemoryGateway",
    "MailGateway",
    "NewMailCallback",
    "Unsubscribe",
    "classify_error",
    "seed_headers",
]
