"""Opening files of either format through a single entry point."""
from __future__ import annotations

import logging
import os
import weakref
from pathlib import Path
from typing import List, Optional, Union

from h5py import h5f
from pyhdf.error import HDF4Error
from pyhdf.HDF import ishdf
from pyhdf.SD import SD, SDC

from .attribute import Attribute, hdf4_attribute_names
from .config import DEFAULT_OPTIONS, ReadOptions
from .dataset import Dataset
from .errors import (
    MetadataError,
    NotFoundError,
    ReadError,
    UnrecognizedFormatError,
    UnsupportedOperationError,
)
from .group import Group
from .handle import Backend, Handle, HandleKind, release_all
from .util import H5_ERRORS

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def detect_backend(path: PathLike) -> Backend:
    """Return the backend able to read the file at `path`.

    HDF4 is probed first, then HDF5.
    """
    filename = os.fspath(path)
    if not os.path.isfile(filename):
        raise NotFoundError(f"No such file: '{filename}'")
    if ishdf(filename):
        return Backend.HDF4
    try:
        if h5f.is_hdf5(os.fsencode(filename)):
            return Backend.HDF5
    except H5_ERRORS as err:
        raise UnrecognizedFormatError(f"Can't probe '{filename}': {err}") from err
    raise UnrecognizedFormatError(f"'{filename}' is neither an HDF4 nor an HDF5 file")


class File:
    """An HDF4 or HDF5 file opened for reading.

    The format is detected automatically. HDF4 files are flat: they contain
    datasets and global attributes, but no groups. For HDF5 files, datasets
    and groups are resolved relative to the root group `/`.

    Every accessor opened from a file holds its own native handle, but HDF4
    invalidates all of them when the file is closed, so keep the file open
    while using them.
    """

    def __init__(
        self,
        path: PathLike,
        mode: str = "r",
        options: Optional[ReadOptions] = None,
    ):
        if mode != "r":
            msg = f"Only read mode 'r' is supported, got '{mode}'"
            raise UnsupportedOperationError(msg)
        self._filename = os.fspath(path)
        self._options = options or DEFAULT_OPTIONS
        self._backend = detect_backend(self._filename)
        self._root: Optional[Group] = None

        if self._backend is Backend.HDF4:
            try:
                sd = SD(self._filename, SDC.READ)
            except HDF4Error as err:
                raise ReadError(f"Can't open HDF4 file '{self._filename}': {err}") from err
            self._handle = Handle.from_native(Backend.HDF4, HandleKind.FILE, sd)
            handles = [self._handle]
        else:
            try:
                fid = h5f.open(os.fsencode(self._filename), h5f.ACC_RDONLY)
            except H5_ERRORS as err:
                raise ReadError(f"Can't open HDF5 file '{self._filename}': {err}") from err
            self._handle = Handle.from_native(Backend.HDF5, HandleKind.FILE, fid)
            try:
                self._root = Group(self._handle, "/", path="/", options=self._options)
            except Exception:
                self._handle.release()
                raise
            # the root group goes before the file
            handles = [self._root._handle, self._handle]

        self._finalizer = weakref.finalize(self, release_all, *handles)
        logger.debug("Opened %s file '%s'", self._backend.value, self._filename)

    def __enter__(self) -> File:
        return self

    def __exit__(self, ex_type, ex_value, ex_traceback) -> None:
        self._finalizer()

    def __repr__(self) -> str:
        return f"<{type(self).__name__} '{self._filename}' ({self._backend.value})>"

    @property
    def filename(self) -> str:
        return self._filename

    @property
    def backend(self) -> Backend:
        return self._backend

    @property
    def options(self) -> ReadOptions:
        return self._options

    # ---- listing ----

    def get_dataset_names(self) -> List[str]:
        """Return names of the datasets at the top level of the file."""
        self._guard_open()
        if self._root is not None:
            return self._root.get_dataset_names()
        try:
            return _hdf4_dataset_names(self._handle.native)
        except HDF4Error as err:
            msg = f"Can't list datasets of '{self._filename}': {err}"
            raise MetadataError(msg) from err

    def get_group_names(self) -> List[str]:
        """Return names of the top level groups (always empty for HDF4)."""
        self._guard_open()
        if self._root is None:
            return []
        return self._root.get_group_names()

    def get_attribute_names(self) -> List[str]:
        """Return names of the file attributes (HDF4 global or HDF5 root attributes)."""
        self._guard_open()
        if self._root is not None:
            return self._root.get_attribute_names()
        try:
            return hdf4_attribute_names(self._handle.native)
        except HDF4Error as err:
            raise MetadataError(f"Can't list attributes of '{self._filename}'") from err

    # ---- opening ----

    def open_group(self, path: str) -> Group:
        self._guard_open()
        if self._root is None:
            raise UnsupportedOperationError(
                f"Can't open group '{path}': HDF4 files have no groups"
            )
        return self._root.open_group(path)

    def open_dataset(self, path: str) -> Dataset:
        """Open a dataset by name (HDF4) or by path relative to the root (HDF5)."""
        self._guard_open()
        if self._root is not None:
            return self._root.open_dataset(path)
        return Dataset(self._handle, path, options=self._options, parent=self)

    def open_attribute(self, name: str) -> Attribute:
        self._guard_open()
        if self._root is not None:
            return self._root.open_attribute(name)
        return Attribute(self._handle, name, options=self._options, parent=self)

    def _guard_open(self) -> None:
        if not self._handle.is_valid():
            raise ReadError(f"File '{self._filename}' is closed")


def _hdf4_dataset_names(sd: SD) -> List[str]:
    names = []
    for index in range(sd.info()[0]):
        sds = sd.select(index)
        try:
            names.append(sds.info()[0])
        finally:
            sds.endaccess()
    return names
