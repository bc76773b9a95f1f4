"""Attributes attached to files, groups and datasets."""
from __future__ import annotations

import logging
import weakref
from typing import Any, List, Optional, Tuple

import numpy as np
from h5py import h5a, h5t
from pyhdf.error import HDF4Error

from .cast import convert
from .config import DEFAULT_OPTIONS, ReadOptions
from .errors import MetadataError, NotFoundError, ReadError, UnsupportedTypeError
from .handle import Backend, Handle, HandleKind, release_all
from .models import AttributeInfo
from .types import (
    CanonicalType,
    DTypeLike,
    canonical_of,
    classify_hdf4,
    classify_hdf5,
    classify_or_unknown,
    fixed_string_type,
    hdf5_element_count,
    resolve_dtype,
    type_name,
)
from .util import BACKEND_ERRORS, H5_ERRORS

logger = logging.getLogger(__name__)

TERMINATOR = b"\x00"


class Attribute:
    """A named attribute, with element type and count discovered at open time.

    Instances are created by `open_attribute` of a file, group or dataset.
    The native attribute is released when the instance is garbage collected
    or leaves a `with` block.
    """

    def __init__(
        self,
        owner: Handle,
        name: str,
        *,
        options: ReadOptions = DEFAULT_OPTIONS,
        parent: Any = None,
    ):
        self._name = name
        # the accessor owning `owner` must outlive this one (HDF4 closes children)
        self._parent = parent
        self._options = options
        self._type_error: Optional[UnsupportedTypeError] = None
        # HDF5 only: dataspace shape, string character set and variable length flag
        self._shape: Tuple[int, ...] = ()
        self._cset: int = h5t.CSET_ASCII
        self._vlen = False

        if owner.backend is Backend.HDF4:
            self._handle = self._open_hdf4(owner)
        else:
            self._handle = self._open_hdf5(owner)
        self._finalizer = weakref.finalize(self, release_all, self._handle)
        logger.debug("Opened attribute '%s' (%s)", name, type_name(self._type))

    def _open_hdf4(self, owner: Handle) -> Handle:
        attr = owner.native.attr(self._name)
        try:
            index = attr.index()
        except HDF4Error as err:
            raise NotFoundError(f"Can't find attribute named '{self._name}'") from err
        try:
            _, code, count = attr.info()
        except HDF4Error as err:
            raise MetadataError(f"Can't get info of attribute '{self._name}'") from err

        self._type, self._type_error = classify_or_unknown(classify_hdf4, code)
        self._num_elements = count
        return Handle.from_native(Backend.HDF4, HandleKind.ATTRIBUTE, attr, raw=index)

    def _open_hdf5(self, owner: Handle) -> Handle:
        name = self._name.encode("utf-8")
        try:
            if not h5a.exists(owner.native, name):
                raise NotFoundError(f"Can't find attribute named '{self._name}'")
            aid = h5a.open(owner.native, name)
        except KeyError as err:
            raise NotFoundError(f"Can't find attribute named '{self._name}'") from err
        except H5_ERRORS as err:
            raise MetadataError(f"Can't open attribute '{self._name}': {err}") from err

        handle = Handle.from_native(Backend.HDF5, HandleKind.ATTRIBUTE, aid)
        try:
            tid = aid.get_type()
            space = aid.get_space()
            self._type, self._type_error = classify_or_unknown(classify_hdf5, tid)
            # None for empty (null) dataspaces
            self._shape = space.get_simple_extent_dims() or ()
            npoints = space.get_simple_extent_npoints()

            if self._type is CanonicalType.STRING:
                self._cset = tid.get_cset()
                self._vlen = tid.is_variable_str()
            if self._vlen:
                values = _read_vlen(aid, self._shape) if npoints else []
                self._num_elements = len(values[0]) if values else 0
            else:
                self._num_elements = hdf5_element_count(self._type, tid, space)
        except H5_ERRORS as err:
            handle.release()
            msg = f"Can't get info of attribute '{self._name}': {err}"
            raise MetadataError(msg) from err
        return handle

    def __enter__(self) -> Attribute:
        return self

    def __exit__(self, ex_type, ex_value, ex_traceback) -> None:
        self._finalizer()

    def __repr__(self) -> str:
        return f"<{type(self).__name__} '{self._name}' ({type_name(self._type)})>"

    @property
    def name(self) -> str:
        return self._name

    @property
    def type(self) -> CanonicalType:
        return self._type

    @property
    def num_elements(self) -> int:
        """Number of values (for strings: byte length of the string)."""
        return self._num_elements

    @property
    def rank(self) -> int:
        return 1

    @property
    def dimensions(self) -> List[int]:
        """Attributes are one-dimensional: `[num_elements]`."""
        return [self._num_elements]

    def is_string(self) -> bool:
        return self._type is CanonicalType.STRING

    def info(self) -> AttributeInfo:
        return AttributeInfo(
            name=self._name,
            type=self._type,
            num_elements=self._num_elements,
            type_error=str(self._type_error) if self._type_error else None,
        )

    # ---- reading ----

    def read(self, dtype: Optional[DTypeLike] = None) -> np.ndarray:
        """Read all values as 1-D array, converted to `dtype` (default: stored type).

        String attributes are returned as one-byte characters, followed by a
        terminating NUL for each string. Reference attributes have no
        retrievable values and return an empty array.
        """
        if self._type is CanonicalType.UNKNOWN:
            msg = f"Can't read attribute '{self._name}': {self._type_error}"
            raise UnsupportedTypeError(msg)
        self._guard_open()
        if self._type is CanonicalType.REFERENCE:
            return np.empty(0, dtype=np.uint8)

        target = resolve_dtype(self._type if dtype is None else dtype)
        if self.is_string():
            if canonical_of(target) is not CanonicalType.STRING:
                msg = f"Can't read string attribute '{self._name}' as {target}"
                raise UnsupportedTypeError(msg)
            return self._read_chars()
        if self._num_elements == 0:
            return np.empty(0, dtype=target)

        try:
            if self._handle.backend is Backend.HDF4:
                return self._read_hdf4(target)
            return self._read_hdf5(target)
        except BACKEND_ERRORS as err:
            raise ReadError(f"Error reading attribute '{self._name}': {err}") from err

    def read_as_string(self) -> str:
        """Read a string attribute as text, without the terminator."""
        if not self.is_string():
            msg = f"Attribute '{self._name}' is not a string ({type_name(self._type)})"
            raise UnsupportedTypeError(msg)
        raw = self._read_chars().tobytes()
        # like a C string, the text ends at the first NUL
        text = raw.split(TERMINATOR, 1)[0]
        encoding = "utf-8" if self._cset == h5t.CSET_UTF8 else None
        return self._options.decode(text, encoding)

    def _read_hdf4(self, target: np.dtype) -> np.ndarray:
        stored = np.asarray(self._handle.native.get(), dtype=self._type.dtype)
        stored = stored.reshape(-1)
        if canonical_of(target) is self._type:
            return stored.astype(target, copy=False)
        return convert(stored, self._type, np.empty(stored.shape, dtype=target))

    def _read_hdf5(self, target: np.dtype) -> np.ndarray:
        # HDF5 converts to the requested memory type itself
        out = np.empty(self._shape, dtype=target)
        self._handle.native.read(out, mtype=h5t.py_create(target))
        return out.reshape(-1)

    def _read_chars(self) -> np.ndarray:
        """Return characters of all strings, each followed by a NUL terminator."""
        self._guard_open()
        try:
            if self._handle.backend is Backend.HDF4:
                # pyhdf returns CHAR8 values as text with one character per byte
                raw = self._handle.native.get().encode("latin-1") + TERMINATOR
                return np.frombuffer(raw, dtype="S1").copy()
            if self._vlen:
                values = _read_vlen(self._handle.native, self._shape)
                raw = b"".join(value + TERMINATOR for value in values)
                return np.frombuffer(raw, dtype="S1").copy()

            size = self._num_elements + 1
            buf = np.zeros(self._shape, dtype=f"S{size}")
            cset = h5t.CSET_UTF8 if self._cset == h5t.CSET_UTF8 else h5t.CSET_ASCII
            self._handle.native.read(buf, mtype=fixed_string_type(size, cset))
            return buf.reshape(-1).view("S1")
        except BACKEND_ERRORS as err:
            raise ReadError(f"Error reading attribute '{self._name}': {err}") from err

    def _guard_open(self) -> None:
        if not self._handle.is_valid():
            raise ReadError(f"Attribute '{self._name}' is closed")


def _read_vlen(aid: h5a.AttrID, shape: Tuple[int, ...]) -> List[bytes]:
    """Read variable-length strings of an HDF5 attribute as encoded bytes."""
    dtype = aid.dtype
    buf = np.zeros(shape, dtype=dtype)
    aid.read(buf, mtype=h5t.py_create(dtype))
    return [v.encode("utf-8") if isinstance(v, str) else v for v in buf.flat]


def hdf4_attribute_names(obj) -> List[str]:
    """Names of the attributes of an HDF4 SD interface or dataset, by index."""
    info = obj.info()
    # SD.info() is (n_datasets, n_attrs), SDS.info() has n_attrs last
    n_attrs = info[-1]
    return [obj.attr(i).info()[0] for i in range(n_attrs)]


def hdf5_attribute_names(loc) -> List[str]:
    """Names of the attributes of an HDF5 object, skipping empty names."""
    names = []
    for i in range(h5a.get_num_attrs(loc)):
        name = h5a.open(loc, index=i).name
        if name:
            names.append(name.decode("utf-8"))
    return names
