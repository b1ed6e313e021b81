"""Exceptions for ptree."""

from typing import Any


class PtreeError(Exception):
    """Base exception for ptree errors."""

    def __init__(self, message: str, details: Any | None = None) -> None:
        self.message = message
        self.details = details
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} ({self.details})"
        return self.message


class ScanError(PtreeError):
    """The process table could not be enumerated at all."""
