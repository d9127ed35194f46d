"""taskdeck: console task board backed by a remote task API."""

__version__ = "0.1.0"
