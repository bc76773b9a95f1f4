"""Protocols formalizing what files, groups and datasets can contain.

Files and groups hold datasets and groups, datasets and groups hold
attributes. An HDF4 file has no groups, but still answers the group listing
(with an empty list) so that callers can treat all files alike.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, List, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .attribute import Attribute
    from .dataset import Dataset
    from .group import Group


@runtime_checkable
class HasDatasets(Protocol):  # pragma: no cover
    """Something datasets can be opened from."""

    def get_dataset_names(self) -> List[str]:
        """Names of the immediate child datasets."""

    def open_dataset(self, path: str) -> Dataset:
        """Open a dataset by (possibly slash-delimited) path."""


@runtime_checkable
class HasGroups(Protocol):  # pragma: no cover
    """Something groups can be opened from."""

    def get_group_names(self) -> List[str]:
        """Names of the immediate child groups."""

    def open_group(self, path: str) -> Group:
        """Open a group by (possibly slash-delimited) path."""


@runtime_checkable
class HasAttributes(Protocol):  # pragma: no cover
    """Something attributes are attached to."""

    def get_attribute_names(self) -> List[str]:
        """Names of the attached attributes."""

    def open_attribute(self, name: str) -> Attribute:
        """Open an attribute by name."""


__all__ = ["HasDatasets", "HasGroups", "HasAttributes"]
