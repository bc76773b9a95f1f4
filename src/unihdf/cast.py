"""Element-wise numeric conversion of data read in its stored type.

HDF4 cannot coerce element types while reading, so data is read in the stored
type and then converted here. Conversion behaves like a C cast: floats are
truncated toward zero and narrowing integer conversions wrap around.
"""
from __future__ import annotations

import numpy as np

from .errors import UnsupportedTypeError
from .types import NUMERIC_TYPES, CanonicalType, type_name


def convert(src: np.ndarray, src_type: CanonicalType, out: np.ndarray) -> np.ndarray:
    """Cast every element of `src` (stored as `src_type`) into `out`.

    Returns `out`, which must hold as many elements as `src`.
    """
    if src_type not in NUMERIC_TYPES:
        msg = f"Cannot convert elements of type '{type_name(src_type)}'"
        raise UnsupportedTypeError(msg)
    if out.size != src.size:
        msg = f"Conversion target holds {out.size} elements, expected {src.size}"
        raise ValueError(msg)

    with np.errstate(invalid="ignore", over="ignore"):
        converted = src.reshape(out.shape).astype(out.dtype, casting="unsafe")
    out[...] = converted
    return out
