"""Exceptions raised by the catalog read path."""

from __future__ import annotations


class InvalidFilterError(ValueError):
    """A filter request is structurally malformed (e.g. ``page="abc"``)."""

    def __init__(self, message: str, details: list[dict[str, str]] | None = None) -> None:
        super().__init__(message)
        self.details = details or []


class CatalogUnavailableError(RuntimeError):
    """The record store failed while answering a read (timeout, lost connection)."""
