"""Helpers for path resolution and error translation."""
from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Optional, Tuple

from pyhdf.error import HDF4Error

from .errors import UnihdfError

H5_ERRORS = (KeyError, OSError, RuntimeError, ValueError, TypeError)
"""Exception types raised by the low-level h5py API (KeyError: object not found)."""

BACKEND_ERRORS = (HDF4Error, *H5_ERRORS)
"""Anything either backend raises on failure."""


def split_path(path: str) -> Tuple[str, Optional[str]]:
    """Split a path at the first separator into head segment and remainder.

    Leading separators are ignored. The remainder is None for a single segment.
    """
    head, sep, tail = path.lstrip("/").partition("/")
    return head, (tail if sep else None)


@contextmanager
def error_context(context: str) -> Iterator[None]:
    """Re-raise unihdf errors with context prepended to the message, keeping their kind."""
    try:
        yield
    except UnihdfError as err:
        raise err.wrap(context) from err
