import json

from typer.testing import CliRunner

from unihdf import __version__
from unihdf.cli import app

runner = CliRunner()


def test_self_info():
    result = runner.invoke(app, ["self", "info"])
    assert result.exit_code == 0
    assert __version__ in result.stdout
    assert "h5py" in result.stdout


def test_ls(sample_path):
    result = runner.invoke(app, ["ls", str(sample_path)])
    assert result.exit_code == 0
    out = result.stdout
    assert "grid int16 (4x3)" in out
    assert "@title: string[9] = 'Test file'" in out
    assert "@valid_range: int32[2] = [0, 11]" in out


def test_ls_without_attributes(sample_path):
    result = runner.invoke(app, ["ls", "--no-attributes", str(sample_path)])
    assert result.exit_code == 0
    assert "grid" in result.stdout
    assert "@" not in result.stdout


def test_ls_nested_and_failures(hdf5_path):
    result = runner.invoke(app, ["ls", str(hdf5_path)])
    assert result.exit_code == 0
    out = result.stdout
    assert "/g1/g2/" in out
    assert "ds uint8 (2x3)" in out
    assert "@grid_ref: reference[1] = <reference>" in out
    # unreadable attribute is reported, listing goes on
    assert "compound" in out
    assert "temps" in out
    assert "void float32 (null)" in out


def test_ls_unrecognized(tmp_file_path):
    tmp_file_path.write_text("plain text")
    result = runner.invoke(app, ["ls", str(tmp_file_path)])
    assert result.exit_code == 1
    assert "neither" in result.stdout


def test_mean(sample_path):
    result = runner.invoke(app, ["mean", str(sample_path), "grid"])
    assert result.exit_code == 0
    assert float(result.stdout) == 5.5


def test_mean_missing_dataset(sample_path):
    result = runner.invoke(app, ["mean", str(sample_path), "nope"])
    assert result.exit_code == 1
    assert "nope" in result.stdout


def test_info_dataset(sample_path):
    result = runner.invoke(app, ["info", str(sample_path), "grid"])
    assert result.exit_code == 0
    desc = json.loads(result.stdout)
    assert desc["type"] == "int16"
    assert desc["dimensions"] == [4, 3]
    assert desc["num_elements"] == 12


def test_info_attributes(sample_path):
    result = runner.invoke(app, ["info", str(sample_path), "grid", "-a", "units"])
    assert result.exit_code == 0
    assert json.loads(result.stdout)["type"] == "string"

    result = runner.invoke(app, ["info", str(sample_path), "--attribute", "version"])
    assert result.exit_code == 0
    desc = json.loads(result.stdout)
    assert desc == {"name": "version", "type": "int32", "num_elements": 2, "type_error": None}


def test_info_needs_target(sample_path):
    result = runner.invoke(app, ["info", str(sample_path)])
    assert result.exit_code == 2
