"""Failures surfaced by the record store instead of silent fallbacks."""

from __future__ import annotations


class RecordStoreError(Exception):
    """Base class for record store failures."""


class RecordNotFound(RecordStoreError, KeyError):
    """The requested row does not exist."""

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message.
        return str(self.args[0]) if self.args else "Record not found."


class RecordConflict(RecordStoreError):
    """A write collided with an existing unique value."""


class StoreUnavailable(RecordStoreError):
    """The database could not be reached or failed the operation."""


class RecordInvalid(RecordStoreError, ValueError):
    """A write carried values the schema cannot store."""
