"""Commands listing and reading file contents."""
import logging
from pathlib import Path
from typing import Optional

import numpy as np
import typer
from rich import print, print_json
from rich.markup import escape

from ..attribute import Attribute
from ..errors import UnihdfError
from ..file import File
from ..group import join_path
from ..protocols import HasAttributes, HasDatasets, HasGroups
from ..types import CanonicalType, type_name

MAX_VALUES = 8
"""Number of attribute values shown before the listing is abbreviated."""

_FILE_ARG = typer.Argument(..., exists=True, dir_okay=False, help="HDF4 or HDF5 file.")
_VERBOSE = typer.Option(False, "--verbose", "-v", help="Log opening and closing.")


def _setup_logging(verbose: bool):
    if verbose:
        logging.basicConfig(level=logging.DEBUG)


def _fail(err: UnihdfError, indent: str = ""):
    print(f"{indent}[red]{escape(str(err))}[/red]")


def _open_file(path: Path) -> File:
    try:
        return File(path)
    except UnihdfError as err:
        _fail(err)
        raise typer.Exit(1)


def format_value(attr: Attribute) -> str:
    """Return a short textual rendition of the attribute value."""
    if attr.is_string():
        return repr(attr.read_as_string())
    if attr.type is CanonicalType.REFERENCE:
        return "<reference>"
    values = attr.read().tolist()
    shown = ", ".join(map(str, values[:MAX_VALUES]))
    if len(values) > MAX_VALUES:
        shown += ", ..."
    return f"[{shown}]"


def _print_attributes(node: HasAttributes, indent: str):
    for name in node.get_attribute_names():
        try:
            with node.open_attribute(name) as attr:
                desc = f"{type_name(attr.type)}[{attr.num_elements}]"
                value = format_value(attr)
            print(f"{indent}@{escape(name)}: {escape(desc)} = {escape(value)}")
        except UnihdfError as err:
            _fail(err, indent)


def _walk(node, path: str, depth: int, attributes: bool):
    indent = "  " * depth
    if attributes and isinstance(node, HasAttributes):
        _print_attributes(node, indent)

    if isinstance(node, HasDatasets):
        for name in node.get_dataset_names():
            try:
                with node.open_dataset(name) as ds:
                    empty = "scalar" if ds.num_elements else "null"
                    dims = "x".join(map(str, ds.dimensions)) or empty
                    print(f"{indent}[b]{escape(name)}[/b] {type_name(ds.type)} ({dims})")
                    if attributes:
                        _print_attributes(ds, indent + "  ")
            except UnihdfError as err:
                _fail(err, indent)

    if isinstance(node, HasGroups):
        for name in node.get_group_names():
            child_path = join_path(path, name)
            try:
                with node.open_group(name) as group:
                    print(f"{indent}[blue]{escape(child_path)}/[/blue]")
                    _walk(group, child_path, depth + 1, attributes)
            except UnihdfError as err:
                _fail(err, indent)


def ls(
    path: Path = _FILE_ARG,
    attributes: bool = typer.Option(
        True, "--attributes/--no-attributes", help="Show attributes and their values."
    ),
    verbose: bool = _VERBOSE,
):
    """Recursively list groups, datasets and attributes of a file."""
    _setup_logging(verbose)
    with _open_file(path) as file:
        print(f"[b]{escape(file.filename)}[/b] ({file.backend.value})")
        _walk(file, "/", 0, attributes)


def mean(
    path: Path = _FILE_ARG,
    dataset: str = typer.Argument(..., help="Dataset path inside the file."),
    verbose: bool = _VERBOSE,
):
    """Print the average of all values of a numeric dataset."""
    _setup_logging(verbose)
    with _open_file(path) as file:
        try:
            with file.open_dataset(dataset) as ds:
                values = ds.read_all(np.float64)
        except UnihdfError as err:
            _fail(err)
            raise typer.Exit(1)
    if values.size == 0:
        print("[red]Dataset is empty[/red]")
        raise typer.Exit(1)
    print(float(values.mean()))


def info(
    path: Path = _FILE_ARG,
    dataset: Optional[str] = typer.Argument(
        None, help="Dataset path inside the file (omit for file attributes)."
    ),
    attribute: Optional[str] = typer.Option(
        None, "--attribute", "-a", help="Describe this attribute instead."
    ),
    verbose: bool = _VERBOSE,
):
    """Describe a dataset or an attribute as JSON."""
    _setup_logging(verbose)
    if dataset is None and attribute is None:
        print("[red]Give a dataset, an attribute (--attribute) or both[/red]")
        raise typer.Exit(2)

    with _open_file(path) as file:
        try:
            if dataset is None:
                with file.open_attribute(attribute) as attr:
                    desc = attr.info()
            else:
                with file.open_dataset(dataset) as ds:
                    if attribute is None:
                        desc = ds.info()
                    else:
                        with ds.open_attribute(attribute) as attr:
                            desc = attr.info()
        except UnihdfError as err:
            _fail(err)
            raise typer.Exit(1)
    print_json(desc.model_dump_json())
