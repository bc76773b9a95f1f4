import math

import numpy as np
import pytest
from hypothesis import given
from hypothesis import strategies as st

from unihdf.cast import convert
from unihdf.errors import UnsupportedTypeError
from unihdf.types import CanonicalType


@given(st.lists(st.integers(-(2**31), 2**31 - 1), min_size=1, max_size=50))
def test_integer_narrowing_wraps(values):
    src = np.array(values, dtype=np.int32)
    out = convert(src, CanonicalType.INT32, np.empty(len(values), dtype=np.int16))
    expected = [((v + 2**15) % 2**16) - 2**15 for v in values]
    assert out.tolist() == expected


@given(
    st.lists(
        st.floats(-1e6, 1e6, allow_nan=False, allow_infinity=False, width=64),
        min_size=1,
        max_size=50,
    )
)
def test_float_to_int_truncates_toward_zero(values):
    src = np.array(values, dtype=np.float64)
    out = convert(src, CanonicalType.FLOAT64, np.empty(len(values), dtype=np.int32))
    assert out.tolist() == [math.trunc(v) for v in values]


@given(st.lists(st.integers(0, 255), min_size=1, max_size=50))
def test_widening_is_exact(values):
    src = np.array(values, dtype=np.uint8)
    out = convert(src, CanonicalType.UINT8, np.empty(len(values), dtype=np.float64))
    assert out.tolist() == [float(v) for v in values]


def test_convert_fills_out_shape():
    src = np.arange(6, dtype=np.int16)
    out = np.zeros((2, 3), dtype=np.float32)
    res = convert(src, CanonicalType.INT16, out)
    assert res is out
    assert out[1].tolist() == [3.0, 4.0, 5.0]


def test_convert_rejects_non_numeric_and_size_mismatch():
    with pytest.raises(UnsupportedTypeError):
        convert(np.zeros(2, "S1"), CanonicalType.STRING, np.empty(2, np.uint8))
    with pytest.raises(UnsupportedTypeError):
        convert(np.zeros(2, np.uint8), CanonicalType.UNKNOWN, np.empty(2, np.uint8))
    with pytest.raises(ValueError):
        convert(np.zeros(3, np.uint8), CanonicalType.UINT8, np.empty(2, np.uint8))
