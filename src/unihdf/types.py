"""Canonical element types and their translation to HDF4 and HDF5 native types.

Every element type found in a file is classified into exactly one
`CanonicalType` before any data is read. The translation tables below are
immutable and shared by the whole process.
"""
from __future__ import annotations

from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Mapping, Optional, Tuple, Union

import numpy as np
from h5py import h5s, h5t
from pyhdf import hdfext
from pyhdf.SD import SDC
from typing_extensions import Final

from .errors import UnsupportedCompoundTypeError, UnsupportedTypeError


class CanonicalType(Enum):
    """Backend-independent element type tag."""

    UINT8 = "uint8"
    INT8 = "int8"
    UINT16 = "uint16"
    INT16 = "int16"
    UINT32 = "uint32"
    INT32 = "int32"
    UINT64 = "uint64"
    INT64 = "int64"
    FLOAT32 = "float32"
    FLOAT64 = "float64"
    STRING = "string"
    REFERENCE = "reference"
    UNKNOWN = "unknown"

    @property
    def dtype(self) -> Optional[np.dtype]:
        """In-memory numpy element type (None if there is no such thing)."""
        return _DTYPES.get(self)

    @property
    def is_numeric(self) -> bool:
        return self in NUMERIC_TYPES


_DTYPES: Final[Mapping[CanonicalType, np.dtype]] = MappingProxyType(
    {
        CanonicalType.UINT8: np.dtype(np.uint8),
        CanonicalType.INT8: np.dtype(np.int8),
        CanonicalType.UINT16: np.dtype(np.uint16),
        CanonicalType.INT16: np.dtype(np.int16),
        CanonicalType.UINT32: np.dtype(np.uint32),
        CanonicalType.INT32: np.dtype(np.int32),
        CanonicalType.UINT64: np.dtype(np.uint64),
        CanonicalType.INT64: np.dtype(np.int64),
        CanonicalType.FLOAT32: np.dtype(np.float32),
        CanonicalType.FLOAT64: np.dtype(np.float64),
        CanonicalType.STRING: np.dtype("S1"),
    }
)

NUMERIC_TYPES: Final[Tuple[CanonicalType, ...]] = tuple(
    ct for ct in _DTYPES if ct is not CanonicalType.STRING
)
"""The ten numeric canonical types, in declaration order."""

_BY_KIND_AND_SIZE: Final[Mapping[Tuple[str, int], CanonicalType]] = MappingProxyType(
    {(_DTYPES[ct].kind, _DTYPES[ct].itemsize): ct for ct in NUMERIC_TYPES}
)

DTypeLike = Union[CanonicalType, np.dtype, type, str]
"""Anything that can name a requested output element type."""


def type_name(ct: CanonicalType) -> str:
    """Return the display name of a canonical type."""
    return ct.value


def canonical_of(dtype_like: DTypeLike) -> CanonicalType:
    """Return the canonical type of a requested output element type.

    Byte order is ignored, any one-byte-per-character string type is `STRING`.
    """
    if isinstance(dtype_like, CanonicalType):
        return dtype_like
    dt = np.dtype(dtype_like)
    if dt.kind == "S":
        return CanonicalType.STRING
    try:
        return _BY_KIND_AND_SIZE[(dt.kind, dt.itemsize)]
    except KeyError:
        raise UnsupportedTypeError(f"No canonical type for numpy type '{dt}'") from None


def resolve_dtype(dtype_like: DTypeLike) -> np.dtype:
    """Return the numpy element type for a requested output element type."""
    if isinstance(dtype_like, CanonicalType):
        if dtype_like.dtype is None:
            msg = f"Elements of type '{type_name(dtype_like)}' cannot be read into memory"
            raise UnsupportedTypeError(msg)
        return dtype_like.dtype
    dt = np.dtype(dtype_like)
    canonical_of(dt)  # reject anything we cannot classify
    return dt


# ---- HDF4 ----

HDF4_TO_CANONICAL: Final[Mapping[int, CanonicalType]] = MappingProxyType(
    {
        SDC.UCHAR8: CanonicalType.UINT8,
        SDC.INT8: CanonicalType.INT8,
        SDC.UINT16: CanonicalType.UINT16,
        SDC.INT16: CanonicalType.INT16,
        SDC.UINT32: CanonicalType.UINT32,
        SDC.INT32: CanonicalType.INT32,
        hdfext.DFNT_UINT64: CanonicalType.UINT64,
        hdfext.DFNT_INT64: CanonicalType.INT64,
        SDC.FLOAT32: CanonicalType.FLOAT32,
        SDC.FLOAT64: CanonicalType.FLOAT64,
    }
)
"""Bijective part of the HDF4 table.

The unsigned 8-bit canonical type is written as the unsigned char code, so
character arrays (CHAR8) can be told apart from byte arrays on read.
"""

_HDF4_READ_ONLY: Final[Mapping[int, CanonicalType]] = MappingProxyType(
    {
        SDC.UINT8: CanonicalType.UINT8,
        SDC.CHAR8: CanonicalType.STRING,
    }
)

CANONICAL_TO_HDF4: Final[Mapping[CanonicalType, int]] = MappingProxyType(
    {
        **{ct: code for code, ct in HDF4_TO_CANONICAL.items()},
        CanonicalType.STRING: SDC.CHAR8,
    }
)


def classify_hdf4(code: int) -> CanonicalType:
    """Return canonical type for an HDF4 number type code."""
    ct = HDF4_TO_CANONICAL.get(code) or _HDF4_READ_ONLY.get(code)
    if ct is None:
        raise UnsupportedTypeError(f"Unsupported HDF4 number type code: {code}")
    return ct


def to_hdf4(ct: CanonicalType) -> int:
    """Return HDF4 number type code for a canonical type."""
    try:
        return CANONICAL_TO_HDF4[ct]
    except KeyError:
        msg = f"Type '{type_name(ct)}' has no HDF4 number type"
        raise UnsupportedTypeError(msg) from None


# ---- HDF5 ----

_HDF5_INTEGERS: Final[Mapping[Tuple[int, bool], CanonicalType]] = MappingProxyType(
    {
        (1, False): CanonicalType.UINT8,
        (1, True): CanonicalType.INT8,
        (2, False): CanonicalType.UINT16,
        (2, True): CanonicalType.INT16,
        (4, False): CanonicalType.UINT32,
        (4, True): CanonicalType.INT32,
        (8, False): CanonicalType.UINT64,
        (8, True): CanonicalType.INT64,
    }
)

_HDF5_FLOATS: Final[Mapping[int, CanonicalType]] = MappingProxyType(
    {4: CanonicalType.FLOAT32, 8: CanonicalType.FLOAT64}
)

CANONICAL_TO_HDF5: Final[Mapping[CanonicalType, h5t.TypeID]] = MappingProxyType(
    {
        CanonicalType.UINT8: h5t.NATIVE_UINT8,
        CanonicalType.INT8: h5t.NATIVE_INT8,
        CanonicalType.UINT16: h5t.NATIVE_UINT16,
        CanonicalType.INT16: h5t.NATIVE_INT16,
        CanonicalType.UINT32: h5t.NATIVE_UINT32,
        CanonicalType.INT32: h5t.NATIVE_INT32,
        CanonicalType.UINT64: h5t.NATIVE_UINT64,
        CanonicalType.INT64: h5t.NATIVE_INT64,
        CanonicalType.FLOAT32: h5t.NATIVE_FLOAT,
        CanonicalType.FLOAT64: h5t.NATIVE_DOUBLE,
    }
)


def classify_hdf5(tid: Any) -> CanonicalType:
    """Return canonical type for an HDF5 datatype identifier."""
    cls = tid.get_class()
    if cls == h5t.REFERENCE:
        return CanonicalType.REFERENCE
    if cls == h5t.STRING:
        return CanonicalType.STRING
    if cls == h5t.INTEGER:
        size = tid.get_size()
        signed = tid.get_sign() != h5t.SGN_NONE
        if (size, signed) not in _HDF5_INTEGERS:
            raise UnsupportedTypeError(f"Unsupported HDF5 integer size: {size} bytes")
        return _HDF5_INTEGERS[(size, signed)]
    if cls == h5t.FLOAT:
        size = tid.get_size()
        if size not in _HDF5_FLOATS:
            raise UnsupportedTypeError(f"Unsupported HDF5 float size: {size} bytes")
        return _HDF5_FLOATS[size]
    if cls == h5t.COMPOUND:
        raise UnsupportedCompoundTypeError("HDF5 compound types are not supported")
    raise UnsupportedTypeError(f"Unsupported HDF5 type class: {cls}")


def to_hdf5(ct: CanonicalType) -> h5t.TypeID:
    """Return native HDF5 memory type for a numeric canonical type."""
    try:
        return CANONICAL_TO_HDF5[ct]
    except KeyError:
        msg = f"Type '{type_name(ct)}' has no native HDF5 type"
        raise UnsupportedTypeError(msg) from None


def fixed_string_type(length: int, cset: int = h5t.CSET_ASCII) -> h5t.TypeID:
    """Return a fixed-size, null-terminated HDF5 string type."""
    tid = h5t.C_S1.copy()
    tid.set_size(length)
    tid.set_strpad(h5t.STR_NULLTERM)
    tid.set_cset(cset)
    return tid


def hdf5_element_count(ct: CanonicalType, tid: Any, space: h5s.SpaceID) -> int:
    """Return the logical element count of an HDF5 attribute or dataset.

    References count as a single element regardless of storage.
    For fixed-size strings this is the declared byte length of one string.
    """
    if ct is CanonicalType.REFERENCE:
        return 1
    if ct is CanonicalType.STRING:
        return tid.get_size()
    return space.get_simple_extent_npoints()


def classify_or_unknown(
    classify: Callable[[Any], CanonicalType], native_type: Any
) -> Tuple[CanonicalType, Optional[UnsupportedTypeError]]:
    """Classify a native type, capturing failure as `UNKNOWN` plus the reason.

    Objects with unsupported element types can still be opened and inspected,
    only reading their data fails.
    """
    try:
        return classify(native_type), None
    except UnsupportedTypeError as err:
        return CanonicalType.UNKNOWN, err
