"""unihdf package: one read API over HDF4 and HDF5 files."""
import importlib_metadata
from typing_extensions import Final

from .attribute import Attribute
from .config import DEFAULT_OPTIONS, ReadOptions
from .dataset import Dataset
from .errors import (
    MetadataError,
    NotFoundError,
    ReadError,
    UnihdfError,
    UnrecognizedFormatError,
    UnsupportedCompoundTypeError,
    UnsupportedOperationError,
    UnsupportedTypeError,
)
from .file import File, detect_backend
from .group import Group
from .handle import Backend
from .models import AttributeInfo, DatasetInfo
from .types import CanonicalType, type_name

# Set version, will use version from pyproject.toml if defined
__version__: Final[str] = importlib_metadata.version(__package__ or __name__)

__all__ = [
    "Attribute",
    "AttributeInfo",
    "Backend",
    "CanonicalType",
    "DEFAULT_OPTIONS",
    "Dataset",
    "DatasetInfo",
    "File",
    "Group",
    "MetadataError",
    "NotFoundError",
    "ReadError",
    "ReadOptions",
    "UnihdfError",
    "UnrecognizedFormatError",
    "UnsupportedCompoundTypeError",
    "UnsupportedOperationError",
    "UnsupportedTypeError",
    "detect_backend",
    "type_name",
]
