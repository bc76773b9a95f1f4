"""Serializable descriptors of datasets and attributes."""
from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field
from typing_extensions import Annotated

from .types import CanonicalType


class AttributeInfo(BaseModel):
    """Metadata discovered when opening an attribute."""

    name: str
    type: CanonicalType
    num_elements: Annotated[int, Field(ge=0)]
    """Number of values, or byte length of the string for string attributes."""

    type_error: Optional[str] = None
    """Why the element type could not be classified (if type is unknown)."""

    @property
    def rank(self) -> int:
        return 1

    @property
    def dimensions(self) -> List[int]:
        return [self.num_elements]


class DatasetInfo(BaseModel):
    """Metadata discovered when opening a dataset."""

    name: str
    type: CanonicalType
    dimensions: List[Annotated[int, Field(ge=0)]]
    num_elements: Annotated[int, Field(ge=0)]
    attributes: List[str] = []

    type_error: Optional[str] = None
    """Why the element type could not be classified (if type is unknown)."""

    @property
    def rank(self) -> int:
        return len(self.dimensions)
