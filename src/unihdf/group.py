"""Groups of the HDF5 hierarchy and resolution of nested paths."""
from __future__ import annotations

import logging
import weakref
from typing import Any, List, Optional

from h5py import h5g

from .attribute import Attribute, hdf5_attribute_names
from .config import DEFAULT_OPTIONS, ReadOptions
from .dataset import Dataset
from .errors import MetadataError, NotFoundError, ReadError, UnsupportedOperationError
from .handle import Backend, Handle, HandleKind, release_all
from .util import H5_ERRORS, error_context, split_path

logger = logging.getLogger(__name__)


def join_path(parent: str, name: str) -> str:
    """Return the absolute path of a child node."""
    return f"{parent.rstrip('/')}/{name}"


class Group:
    """A group of an HDF5 file (HDF4 files have no groups).

    Paths passed to `open_group` and `open_dataset` may be nested
    (e.g. `"a/b/c"`); every group along the way is opened and released again.
    """

    def __init__(
        self,
        owner: Handle,
        name: str,
        *,
        path: Optional[str] = None,
        options: ReadOptions = DEFAULT_OPTIONS,
        parent: Any = None,
    ):
        if owner.backend is not Backend.HDF5:
            raise UnsupportedOperationError("HDF4 files have no groups")
        if not name:
            raise NotFoundError("Empty group name")
        self._name = name
        self._path = path or name
        self._options = options
        self._parent = parent

        encoded = name.encode("utf-8")
        try:
            # HDF5 versions differ in the error raised for missing links
            if encoded not in owner.native:
                raise NotFoundError(f"Can't find group named '{name}'")
            gid = h5g.open(owner.native, encoded)
        except KeyError as err:
            raise NotFoundError(f"Can't find group named '{name}'") from err
        except H5_ERRORS as err:
            raise MetadataError(f"Can't open group '{name}': {err}") from err

        self._handle = Handle.from_native(Backend.HDF5, HandleKind.GROUP, gid)
        self._finalizer = weakref.finalize(self, release_all, self._handle)
        logger.debug("Opened group '%s'", self._path)

    def __enter__(self) -> Group:
        return self

    def __exit__(self, ex_type, ex_value, ex_traceback) -> None:
        self._finalizer()

    def __repr__(self) -> str:
        return f"<{type(self).__name__} '{self._path}'>"

    @property
    def name(self) -> str:
        return self._name

    @property
    def path(self) -> str:
        """Absolute path of the group inside the file."""
        return self._path

    # ---- listing ----

    def _member_names(self, objtype: int) -> List[str]:
        self._guard_open()
        gid = self._handle.native
        try:
            return [
                gid.get_objname_by_idx(i).decode("utf-8")
                for i in range(gid.get_num_objs())
                if gid.get_objtype_by_idx(i) == objtype
            ]
        except H5_ERRORS as err:
            msg = f"Can't list members of group '{self._path}': {err}"
            raise MetadataError(msg) from err

    def get_group_names(self) -> List[str]:
        """Return names of the immediate child groups, in storage order."""
        return self._member_names(h5g.GROUP)

    def get_dataset_names(self) -> List[str]:
        """Return names of the immediate child datasets, in storage order."""
        return self._member_names(h5g.DATASET)

    def get_attribute_names(self) -> List[str]:
        self._guard_open()
        try:
            return hdf5_attribute_names(self._handle.native)
        except H5_ERRORS as err:
            msg = f"Can't list attributes of group '{self._path}': {err}"
            raise MetadataError(msg) from err

    # ---- opening ----

    def open_group(self, path: str) -> Group:
        """Open a (possibly nested) child group."""
        self._guard_open()
        head, rest = split_path(path)
        with error_context(f"Can't resolve '{path}' in '{self._path}'"):
            child = self._child_group(head)
            if rest is None:
                return child
            with child:
                return child.open_group(rest)

    def open_dataset(self, path: str) -> Dataset:
        """Open a dataset, which may be nested in child groups."""
        self._guard_open()
        head, rest = split_path(path)
        with error_context(f"Can't resolve '{path}' in '{self._path}'"):
            if rest is None:
                return Dataset(self._handle, head, options=self._options, parent=self)
            with self._child_group(head) as child:
                return child.open_dataset(rest)

    def open_attribute(self, name: str) -> Attribute:
        self._guard_open()
        return Attribute(self._handle, name, options=self._options, parent=self)

    def _child_group(self, name: str) -> Group:
        path = join_path(self._path, name)
        return Group(self._handle, name, path=path, options=self._options, parent=self)

    def _guard_open(self) -> None:
        if not self._handle.is_valid():
            raise ReadError(f"Group '{self._path}' is closed")
