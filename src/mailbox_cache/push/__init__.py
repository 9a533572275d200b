"""Push-update handling for newly arrived mail."""

from .listener import PushUpdateListener

__all__ = ["PushUpdateListener"]
