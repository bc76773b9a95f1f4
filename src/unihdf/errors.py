"""Exceptions raised by unihdf.

All errors carry a human-readable message. The subclasses distinguish the kinds
of failure a caller may want to handle differently (e.g. a listing tool skipping
nodes with unsupported element types, but aborting on unreadable files).
"""
from __future__ import annotations

from typing import TypeVar

E = TypeVar("E", bound="UnihdfError")


class UnihdfError(Exception):
    """Base class of all errors raised by unihdf."""

    def wrap(self: E, context: str) -> E:
        """Return an error of the same kind with the context prepended to the message."""
        return type(self)(f"{context}: {self}")


class UnrecognizedFormatError(UnihdfError):
    """Neither HDF4 nor HDF5 claims the file."""


class NotFoundError(UnihdfError, LookupError):
    """Named file, group, dataset or attribute does not exist."""


class UnsupportedTypeError(UnihdfError):
    """Element type cannot be classified or converted."""


class UnsupportedCompoundTypeError(UnsupportedTypeError):
    """Element type is a compound (struct-like) type."""


class UnsupportedOperationError(UnihdfError):
    """Operation does not apply to this backend (e.g. groups in HDF4)."""


class MetadataError(UnihdfError):
    """An introspection call of the backend failed."""


class ReadError(UnihdfError):
    """A data transfer call of the backend failed."""


__all__ = [
    "UnihdfError",
    "UnrecognizedFormatError",
    "NotFoundError",
    "UnsupportedTypeError",
    "UnsupportedCompoundTypeError",
    "UnsupportedOperationError",
    "MetadataError",
    "ReadError",
]
