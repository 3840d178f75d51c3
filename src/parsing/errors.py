"""Structured parsing errors for the table extractors."""

from __future__ import annotations
from typing import Any


class ParsingError(Exception):
    """Base class for parsing related issues."""

    def __init__(self, message: str, *, context: dict[str, Any] | None = None):
        super().__init__(message)
        self.context = context or {}


class DocumentParseError(ParsingError):
    """Raised when a fetched source document cannot be turned into a tree."""
