"""Backend-tagged native resource handles.

Every open file, group, dataset and attribute is identified by exactly one
`Handle`, which knows which backend produced it and how to release it.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Optional, Tuple

from h5py import h5i
from typing_extensions import Final

logger = logging.getLogger(__name__)


class Backend(Enum):
    """Supported storage backends, in the order they are probed."""

    HDF4 = "hdf4"
    HDF5 = "hdf5"


class HandleKind(Enum):
    """Kind of native object a handle refers to."""

    FILE = "file"
    GROUP = "group"
    DATASET = "dataset"
    ATTRIBUTE = "attribute"


INVALID: Final[int] = -1
"""Raw value of a handle that must not be passed to any close call."""


def _raw_value(backend: Backend, native: Any) -> int:
    if backend is Backend.HDF5:
        return native.id  # hid_t of the h5py identifier object
    # pyhdf keeps the SD/SDS identifier in `_id` and sets it to None once closed
    return INVALID if native._id is None else native._id


def _h5_dec_ref(native: Any) -> None:
    if native.valid:
        h5i.dec_ref(native)


_RELEASE: Final[Dict[Tuple[Backend, HandleKind], Callable[[Any], None]]] = {
    (Backend.HDF4, HandleKind.FILE): lambda sd: sd.end(),
    (Backend.HDF4, HandleKind.DATASET): lambda sds: sds.endaccess(),
    # attributes are not separate objects in HDF4, nothing to close
    (Backend.HDF4, HandleKind.ATTRIBUTE): lambda attr: None,
    (Backend.HDF5, HandleKind.FILE): lambda fid: fid.close(),
    (Backend.HDF5, HandleKind.GROUP): _h5_dec_ref,
    (Backend.HDF5, HandleKind.DATASET): _h5_dec_ref,
    (Backend.HDF5, HandleKind.ATTRIBUTE): _h5_dec_ref,
}


@dataclass
class Handle:
    """A native handle tagged with the backend and object kind it belongs to."""

    backend: Backend
    kind: HandleKind
    native: Any = field(repr=False)
    raw: int = INVALID

    @classmethod
    def from_native(
        cls, backend: Backend, kind: HandleKind, native: Any, raw: Optional[int] = None
    ) -> Handle:
        """Wrap a freshly opened pyhdf or h5py object.

        The raw value is taken from the native object unless given
        (HDF4 attributes are identified by their index).
        """
        if (backend, kind) not in _RELEASE:
            raise ValueError(f"No {kind.value} handles exist in {backend.value}")
        if raw is None:
            raw = _raw_value(backend, native)
        return cls(backend, kind, native, raw)

    def is_valid(self) -> bool:
        return self.raw >= 0

    def release(self) -> None:
        """Close the native object (does nothing if the handle is invalid)."""
        if not self.is_valid():
            return
        logger.debug(
            "Releasing %s %s handle %d", self.backend.value, self.kind.value, self.raw
        )
        try:
            _RELEASE[(self.backend, self.kind)](self.native)
        finally:
            self.raw = INVALID
            self.native = None


def release_all(*handles: Handle) -> None:
    """Release handles in the given order, logging failures.

    Used as garbage collection finalizer of accessors, where exceptions
    cannot propagate to anyone.
    """
    for handle in handles:
        try:
            handle.release()
        except Exception as err:  # pyhdf raises HDF4Error, h5py various builtins
            logger.warning("Failed to release %s: %s", handle, err)
