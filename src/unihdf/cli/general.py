import platform

import importlib_metadata
import typer
from rich import print

from unihdf import __version__

app = typer.Typer()


@app.command("info")
def info():
    """Show information about the system, Python environment and HDF libraries."""
    import h5py

    un = platform.uname()
    print(f"[b]System:[/b] {un.system} {un.release} {un.version}")
    print(
        f"[b]Python:[/b] {platform.python_version()} ({platform.python_implementation()})"
    )
    print("[b]Env:[/b]")
    print("unihdf", __version__)
    for dist in ["h5py", "pyhdf", "numpy"]:
        print(dist, importlib_metadata.version(dist))
    print("HDF5 library", h5py.version.hdf5_version)
