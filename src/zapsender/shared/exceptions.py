"""
Application exception hierarchy.
"""

from pathlib import Path


class ZapSenderError(Exception):
    """Base exception for the application."""


class ContactSourceError(ZapSenderError):
    """The contact file cannot be opened or read. Always fatal."""

    def __init__(self, message: str, path: str | Path | None = None) -> None:
        super().__init__(message)
        self.path = Path(path) if path is not None else None
