import pytest

from unihdf import Backend, File, detect_backend
from unihdf.errors import (
    NotFoundError,
    ReadError,
    UnrecognizedFormatError,
    UnsupportedOperationError,
)
from unihdf.protocols import HasAttributes, HasDatasets, HasGroups


def test_detect_backend(hdf4_path, hdf5_path):
    assert detect_backend(hdf4_path) is Backend.HDF4
    assert detect_backend(hdf5_path) is Backend.HDF5


def test_open(sample_path, backend):
    with File(sample_path) as f:
        assert f.backend is backend
        assert f.filename == str(sample_path)
        assert str(sample_path) in repr(f)


def test_missing_file(tmp_file_path):
    with pytest.raises(NotFoundError):
        File(tmp_file_path)


def test_unrecognized_format(tmp_file_path):
    tmp_file_path.write_text("neither HDF4 nor HDF5")
    with pytest.raises(UnrecognizedFormatError):
        File(tmp_file_path)


def test_only_read_mode(sample_path):
    for mode in ["w", "a", "r+"]:
        with pytest.raises(UnsupportedOperationError):
            File(sample_path, mode)


def test_hdf4_has_no_groups(h4file):
    assert h4file.get_group_names() == []
    with pytest.raises(UnsupportedOperationError):
        h4file.open_group("anything")


def test_hdf4_paths_are_verbatim(h4file):
    with pytest.raises(NotFoundError):
        h4file.open_dataset("/grid")


def test_file_satisfies_protocols(sample_file):
    assert isinstance(sample_file, HasGroups)
    assert isinstance(sample_file, HasDatasets)
    assert isinstance(sample_file, HasAttributes)


def test_closing_file(sample_path):
    f = File(sample_path)
    with f:
        assert f.get_dataset_names()
    with pytest.raises(ReadError):
        f.get_dataset_names()
    # closing twice is harmless
    f.__exit__(None, None, None)
