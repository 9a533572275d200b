"""Checkbox, open-row and keyboard-cursor state for the message list."""

from .machine import SelectionMachine

__all__ = ["SelectionMachine"]
