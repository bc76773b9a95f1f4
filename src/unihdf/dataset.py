"""Datasets: N-dimensional arrays with strided (hyperslab) reads."""
from __future__ import annotations

import logging
import math
import weakref
from typing import Any, List, Optional, Sequence, Tuple

import h5py
import numpy as np
from h5py import h5d, h5s, h5t
from pyhdf.error import HDF4Error

from .attribute import Attribute, hdf4_attribute_names, hdf5_attribute_names
from .cast import convert
from .config import DEFAULT_OPTIONS, ReadOptions
from .errors import MetadataError, NotFoundError, ReadError, UnsupportedTypeError
from .handle import Backend, Handle, HandleKind, release_all
from .models import DatasetInfo
from .types import (
    CanonicalType,
    DTypeLike,
    canonical_of,
    classify_hdf4,
    classify_hdf5,
    classify_or_unknown,
    resolve_dtype,
    type_name,
)
from .util import BACKEND_ERRORS, H5_ERRORS

logger = logging.getLogger(__name__)

Selection = Tuple[List[int], List[int], List[int]]


class Dataset:
    """A named N-dimensional array, with shape and element type discovered at open time.

    Instances are created by `open_dataset` of a file or group.
    The native dataset is released when the instance is garbage collected
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
        # in-memory element type of string datasets
        self._string_dtype: Optional[np.dtype] = None
        self._null = False

        if owner.backend is Backend.HDF4:
            self._handle = self._open_hdf4(owner)
        else:
            self._handle = self._open_hdf5(owner)
        self._finalizer = weakref.finalize(self, release_all, self._handle)
        logger.debug(
            "Opened dataset '%s' (%s, %s)", name, type_name(self._type), self._dims
        )

    def _open_hdf4(self, owner: Handle) -> Handle:
        sd = owner.native
        try:
            index = sd.nametoindex(self._name)
        except HDF4Error as err:
            raise NotFoundError(f"Can't find dataset named '{self._name}'") from err
        try:
            sds = sd.select(index)
        except HDF4Error as err:
            raise MetadataError(f"Can't open dataset '{self._name}': {err}") from err

        handle = Handle.from_native(Backend.HDF4, HandleKind.DATASET, sds)
        try:
            _, rank, dims, code, _ = sds.info()
        except HDF4Error as err:
            handle.release()
            raise MetadataError(f"Can't get info of dataset '{self._name}'") from err

        # pyhdf returns a plain int for one-dimensional datasets
        self._dims = [dims] if rank == 1 and isinstance(dims, int) else list(dims)
        self._type, self._type_error = classify_or_unknown(classify_hdf4, code)
        if self._type is CanonicalType.STRING:
            self._string_dtype = self._type.dtype
        return handle

    def _open_hdf5(self, owner: Handle) -> Handle:
        name = self._name.encode("utf-8")
        try:
            # HDF5 versions differ in the error raised for missing links
            if name not in owner.native:
                raise NotFoundError(f"Can't find dataset named '{self._name}'")
            dsid = h5d.open(owner.native, name)
        except KeyError as err:
            raise NotFoundError(f"Can't find dataset named '{self._name}'") from err
        except H5_ERRORS as err:
            raise MetadataError(f"Can't open dataset '{self._name}': {err}") from err

        handle = Handle.from_native(Backend.HDF5, HandleKind.DATASET, dsid)
        try:
            space = dsid.get_space()
            # a null dataspace has no extent and no values
            self._null = space.get_simple_extent_type() == h5s.NULL
            self._dims = list(space.get_simple_extent_dims() or ())
            tid = dsid.get_type()
            self._type, self._type_error = classify_or_unknown(classify_hdf5, tid)
            if self._type is CanonicalType.STRING:
                self._string_dtype = _hdf5_string_dtype(tid)
        except H5_ERRORS as err:
            handle.release()
            msg = f"Can't get info of dataset '{self._name}': {err}"
            raise MetadataError(msg) from err
        return handle

    def __enter__(self) -> Dataset:
        return self

    def __exit__(self, ex_type, ex_value, ex_traceback) -> None:
        self._finalizer()

    def __repr__(self) -> str:
        dims = "x".join(map(str, self._dims)) or "scalar"
        return f"<{type(self).__name__} '{self._name}' ({type_name(self._type)}, {dims})>"

    @property
    def name(self) -> str:
        return self._name

    @property
    def dimensions(self) -> List[int]:
        """Extent of each dimension (a copy, in storage order)."""
        return list(self._dims)

    @property
    def rank(self) -> int:
        return len(self._dims)

    @property
    def type(self) -> CanonicalType:
        return self._type

    @property
    def num_elements(self) -> int:
        return 0 if self._null else math.prod(self._dims)

    def info(self) -> DatasetInfo:
        return DatasetInfo(
            name=self._name,
            type=self._type,
            dimensions=self._dims,
            num_elements=self.num_elements,
            attributes=self.get_attribute_names(),
            type_error=str(self._type_error) if self._type_error else None,
        )

    # ---- attributes ----

    def get_attribute_names(self) -> List[str]:
        """Return names of all attributes of this dataset, in storage order."""
        self._guard_open()
        try:
            if self._handle.backend is Backend.HDF4:
                return hdf4_attribute_names(self._handle.native)
            return hdf5_attribute_names(self._handle.native)
        except BACKEND_ERRORS as err:
            msg = f"Can't list attributes of dataset '{self._name}': {err}"
            raise MetadataError(msg) from err

    def open_attribute(self, name: str) -> Attribute:
        self._guard_open()
        return Attribute(self._handle, name, options=self._options, parent=self)

    # ---- reading ----

    def raw_read(
        self,
        start: Sequence[int],
        stride: Sequence[int],
        count: Sequence[int],
        buffer: np.ndarray,
    ) -> None:
        """Read the selected elements into `buffer`, in row-major order.

        The selection covers `count[i]` elements along dimension `i`, beginning
        at `start[i]` and spaced `stride[i]` apart. `buffer` must be a writable
        C-contiguous array of exactly `prod(count)` elements. HDF4 delivers only
        the stored element type, HDF5 converts to the element type of `buffer`.
        """
        start, stride, count = self._check_selection(start, stride, count)
        _check_buffer(buffer, math.prod(count))
        self._guard_open()
        if self._type is CanonicalType.UNKNOWN:
            msg = f"Can't read dataset '{self._name}': {self._type_error}"
            raise ReadError(msg) from self._type_error
        if self._type is CanonicalType.REFERENCE:
            raise ReadError(f"Can't read references of dataset '{self._name}'")
        if self._null:
            raise ReadError(f"Dataset '{self._name}' has no values (null dataspace)")

        try:
            if self._handle.backend is Backend.HDF4:
                self._raw_read_hdf4(start, stride, count, buffer)
            else:
                self._raw_read_hdf5(start, stride, count, buffer)
        except BACKEND_ERRORS as err:
            raise ReadError(f"Error reading dataset '{self._name}': {err}") from err

    def _raw_read_hdf4(
        self, start: List[int], stride: List[int], count: List[int], buffer: np.ndarray
    ) -> None:
        stored = self._memory_dtype()
        if buffer.dtype != stored:
            msg = f"HDF4 reads need a buffer of type {stored}, got {buffer.dtype}"
            raise UnsupportedTypeError(msg)
        data = self._handle.native.get(start=start, count=count, stride=stride)
        buffer.reshape(-1)[...] = np.asarray(data, dtype=stored).reshape(-1)

    def _raw_read_hdf5(
        self, start: List[int], stride: List[int], count: List[int], buffer: np.ndarray
    ) -> None:
        dsid = self._handle.native
        # get_space returns a fresh copy, so the selection does not stick
        fspace = dsid.get_space()
        if self._dims:
            fspace.select_hyperslab(tuple(start), tuple(count), tuple(stride))
            mspace = h5s.create_simple(tuple(count))
        else:
            mspace = h5s.create(h5s.SCALAR)
        mtype = h5t.py_create(buffer.dtype)
        dsid.read(mspace, fspace, buffer, mtype=mtype)

    def read(
        self,
        start: Sequence[int],
        stride: Sequence[int],
        count: Sequence[int],
        dtype: Optional[DTypeLike] = None,
        out: Optional[np.ndarray] = None,
    ) -> np.ndarray:
        """Read a strided selection as array of shape `count`.

        Values are converted to `dtype` (default: the stored type). If `out`
        is given, the values are written into it and `out` is returned.
        """
        if out is not None:
            if dtype is not None and np.dtype(out.dtype) != self._target_dtype(dtype):
                raise ValueError(f"dtype {dtype} does not match output array {out.dtype}")
            target = self._target_dtype(out.dtype)
        else:
            target = self._target_dtype(dtype)
            out = np.empty(tuple(count), dtype=target)

        needs_cast = (
            self._handle.backend is Backend.HDF4
            and self._type.is_numeric
            and canonical_of(target) is not self._type
        )
        if not needs_cast:
            self.raw_read(start, stride, count, out)
            return out

        # HDF4 has no type conversion on read
        stored = np.empty(tuple(count), dtype=self._memory_dtype())
        self.raw_read(start, stride, count, stored)
        return convert(stored, self._type, out)

    def read_all(self, dtype: Optional[DTypeLike] = None) -> np.ndarray:
        """Read the whole dataset as array of shape `dimensions`."""
        if self.num_elements == 0:
            self._guard_open()
            shape = (0,) if self._null else self._dims
            return np.empty(shape, dtype=self._target_dtype(dtype))
        rank = self.rank
        return self.read([0] * rank, [1] * rank, self._dims, dtype=dtype)

    def _memory_dtype(self) -> np.dtype:
        if self._string_dtype is not None:
            return self._string_dtype
        if self._type.dtype is None:
            reason = self._type_error or f"no {type_name(self._type)} values"
            msg = f"Can't read dataset '{self._name}': {reason}"
            raise ReadError(msg)
        return self._type.dtype

    def _target_dtype(self, dtype: Optional[DTypeLike]) -> np.dtype:
        if dtype is None:
            return self._memory_dtype()
        if self._type is CanonicalType.STRING:
            # fixed (bytes) or variable length (object) strings
            if dtype is not CanonicalType.STRING and np.dtype(dtype).kind not in "SO":
                msg = f"Can't read string dataset '{self._name}' as {dtype}"
                raise UnsupportedTypeError(msg)
            return self._memory_dtype()
        target = resolve_dtype(dtype)
        if canonical_of(target) is CanonicalType.STRING:
            msg = f"Can't read {type_name(self._type)} dataset '{self._name}' as {dtype}"
            raise UnsupportedTypeError(msg)
        return target

    def _check_selection(
        self, start: Sequence[int], stride: Sequence[int], count: Sequence[int]
    ) -> Selection:
        start, stride, count = list(start), list(stride), list(count)
        if not len(start) == len(stride) == len(count) == self.rank:
            msg = (
                f"Selection of rank {len(start)}/{len(stride)}/{len(count)} "
                f"(start/stride/count) does not match dataset rank {self.rank}"
            )
            raise ValueError(msg)
        if any(c <= 0 for c in count):
            raise ValueError(f"Counts must be positive: {count}")
        if any(s <= 0 for s in stride):
            raise ValueError(f"Strides must be positive: {stride}")
        if any(s < 0 for s in start):
            raise ValueError(f"Start offsets must not be negative: {start}")
        return start, stride, count

    def _guard_open(self) -> None:
        if not self._handle.is_valid():
            raise ReadError(f"Dataset '{self._name}' is closed")


def _check_buffer(buffer: np.ndarray, size: int) -> None:
    if not isinstance(buffer, np.ndarray):
        raise TypeError(f"Buffer must be a numpy array, got {type(buffer).__name__}")
    if buffer.size != size:
        raise ValueError(f"Buffer holds {buffer.size} elements, selection has {size}")
    if not (buffer.flags.c_contiguous and buffer.flags.writeable):
        raise ValueError("Buffer must be writable and C-contiguous")


def _hdf5_string_dtype(tid: h5t.TypeID) -> np.dtype:
    if tid.is_variable_str():
        encoding = "utf-8" if tid.get_cset() == h5t.CSET_UTF8 else "ascii"
        return h5py.string_dtype(encoding)
    return np.dtype(f"S{tid.get_size()}")
