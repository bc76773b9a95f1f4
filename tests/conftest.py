import secrets
from pathlib import Path

import h5py
import numpy as np
import pytest
from pyhdf.SD import SD, SDC

from unihdf.handle import Backend

GRID = np.arange(12, dtype=np.int16).reshape(4, 3)
TEMPS = np.array([1.5, -2.7, 3.9, 250.6, -0.4], dtype=np.float32)
WIDE = np.array([1, 261, -1, 70000], dtype=np.int32)
BYTES = np.array([0, 127, 128, 255], dtype=np.uint8)
TITLE = "Test file"


@pytest.fixture(scope="session")
def data_dir(tmp_path_factory):
    """Create a fresh temporary directory for the files created in the tests."""
    return tmp_path_factory.mktemp("unihdf_tests")


@pytest.fixture
def tmp_file_path(data_dir) -> Path:
    """Return a fresh file path (the file does not exist yet)."""
    return Path(data_dir / secrets.token_hex(4))


def write_hdf4(path: Path):
    """Write the sample file in HDF4 format (flat: datasets and global attributes)."""
    sd = SD(str(path), SDC.WRITE | SDC.CREATE)
    sd.attr("title").set(SDC.CHAR8, TITLE)
    sd.attr("version").set(SDC.INT32, [1, 2])

    grid = sd.create("grid", SDC.INT16, list(GRID.shape))
    grid.set(GRID)
    grid.attr("units").set(SDC.CHAR8, "K")
    grid.attr("scale").set(SDC.FLOAT64, 0.5)
    grid.attr("valid_range").set(SDC.INT32, [0, 11])
    grid.endaccess()

    for name, code, data in [
        ("temps", SDC.FLOAT32, TEMPS),
        ("wide", SDC.INT32, WIDE),
        ("bytes", SDC.UCHAR8, BYTES),
    ]:
        sds = sd.create(name, code, len(data))
        sds.set(data)
        sds.endaccess()
    sd.end()


def write_hdf5(path: Path):
    """Write the sample file in HDF5 format, plus HDF5-only content."""
    with h5py.File(path, "w") as f:
        f.attrs["title"] = np.bytes_(TITLE)
        f.attrs["version"] = np.array([1, 2], dtype=np.int32)

        grid = f.create_dataset("grid", data=GRID)
        grid.attrs["units"] = np.bytes_("K")
        grid.attrs["scale"] = np.float64(0.5)
        grid.attrs["valid_range"] = np.array([0, 11], dtype=np.int32)

        f.create_dataset("temps", data=TEMPS)
        f.create_dataset("wide", data=WIDE)
        f.create_dataset("bytes", data=BYTES)

        # not expressible in the HDF4 sample
        f.attrs["comment"] = "variable length"
        f.attrs["greeting"] = "Grüße"
        f.attrs["grid_ref"] = grid.ref
        f.attrs["nothing"] = h5py.Empty("f")
        f.attrs["pair"] = np.zeros(1, dtype=[("a", "i4"), ("b", "f8")])
        f.create_dataset("scalar", data=np.float64(42.0))
        f.create_dataset("big", data=np.array([1, 2**40], dtype=np.uint64))
        f.create_dataset("names", data=np.array([b"ab", b"cd"], dtype="S2"))
        f.create_dataset("records", data=np.zeros(3, dtype=[("a", "i4"), ("b", "f8")]))
        f.create_dataset("empty", shape=(0,), dtype=np.int32)
        f.create_dataset("void", data=h5py.Empty("f4"))

        g2 = f.create_group("g1/g2")
        f["g1"].attrs["level"] = np.int8(1)
        inner = g2.create_dataset("ds", data=np.arange(6, dtype=np.uint8).reshape(2, 3))
        inner.attrs["note"] = np.bytes_("inner")


@pytest.fixture(scope="session")
def hdf4_path(data_dir) -> Path:
    path = Path(data_dir / "sample.hdf")
    write_hdf4(path)
    return path


@pytest.fixture(scope="session")
def hdf5_path(data_dir) -> Path:
    path = Path(data_dir / "sample.h5")
    write_hdf5(path)
    return path


@pytest.fixture(scope="function", params=list(iter(Backend)))
def backend(request):
    """Provide the different backend enum values."""
    return request.param


@pytest.fixture
def sample_path(backend, hdf4_path, hdf5_path) -> Path:
    """Return the sample file written in the format of the current backend."""
    return hdf4_path if backend is Backend.HDF4 else hdf5_path


@pytest.fixture
def sample_file(sample_path):
    """Return the opened sample file, closed after the test."""
    from unihdf import File

    with File(sample_path) as f:
        yield f


@pytest.fixture
def h5file(hdf5_path):
    from unihdf import File

    with File(hdf5_path) as f:
        yield f


@pytest.fixture
def h4file(hdf4_path):
    from unihdf import File

    with File(hdf4_path) as f:
        yield f
