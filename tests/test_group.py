import pytest

from unihdf import Group
from unihdf.errors import NotFoundError, ReadError, UnihdfError
from unihdf.protocols import HasAttributes, HasDatasets, HasGroups


def test_root_listing(h5file):
    assert h5file.get_group_names() == ["g1"]
    assert set(h5file.get_dataset_names()) == {
        "big",
        "bytes",
        "empty",
        "grid",
        "names",
        "records",
        "scalar",
        "temps",
        "void",
        "wide",
    }


def test_nested_groups(h5file):
    with h5file.open_group("g1") as g1:
        assert g1.name == "g1"
        assert g1.path == "/g1"
        assert g1.get_group_names() == ["g2"]
        assert g1.get_dataset_names() == []

        with g1.open_group("g2") as g2:
            assert g2.path == "/g1/g2"
            assert g2.get_group_names() == []
            assert g2.get_dataset_names() == ["ds"]


def test_nested_paths(h5file):
    with h5file.open_group("g1/g2") as g2:
        assert g2.name == "g2"
        assert g2.path == "/g1/g2"

    with h5file.open_dataset("g1/g2/ds") as ds:
        assert ds.dimensions == [2, 3]
        assert ds.read([1, 0], [1, 2], [1, 2]).tolist() == [[3, 5]]
        with ds.open_attribute("note") as attr:
            assert attr.read_as_string() == "inner"

    # leading separator is ignored
    with h5file.open_dataset("/g1/g2/ds") as ds:
        assert ds.name == "ds"


def test_missing_nested_path_names_full_path(h5file):
    with pytest.raises(NotFoundError) as e:
        h5file.open_dataset("g1/g2/missing")
    msg = str(e.value)
    assert "g1/g2/missing" in msg
    assert "/g1/g2" in msg
    assert "missing" in msg

    with pytest.raises(NotFoundError) as e:
        h5file.open_group("g1/nope/deeper")
    assert "g1/nope/deeper" in str(e.value)
    assert "nope" in str(e.value)


def test_dataset_is_not_a_group(h5file):
    with pytest.raises(UnihdfError):
        h5file.open_dataset("g1")


def test_open_group_yields_independent_handles(h5file):
    a = h5file.open_group("g1")
    b = h5file.open_group("g1")
    with a:
        pass
    # b is unaffected by closing a
    assert b.get_group_names() == ["g2"]
    with pytest.raises(ReadError):
        a.get_group_names()
    with b:
        pass


def test_group_satisfies_protocols(h5file):
    with h5file.open_group("g1") as g1:
        assert isinstance(g1, Group)
        assert isinstance(g1, HasGroups)
        assert isinstance(g1, HasDatasets)
        assert isinstance(g1, HasAttributes)


@pytest.mark.parametrize("path", ["nope", "g1/nope", "g1/g2/nope"])
def test_missing_group(h5file, path):
    with pytest.raises(NotFoundError) as e:
        h5file.open_group(path)
    assert path in str(e.value)


def test_missing_group_below_group(h5file):
    with h5file.open_group("g1") as g1:
        with pytest.raises(NotFoundError):
            g1.open_group("g3")
        with pytest.raises(NotFoundError):
            g1.open_dataset("nope")
        with pytest.raises(NotFoundError):
            g1.open_attribute("nope")
