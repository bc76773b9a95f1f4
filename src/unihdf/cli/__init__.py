"""unihdf CLI for inspecting HDF4 and HDF5 files."""
import typer

from . import browse, general

app = typer.Typer()
app.add_typer(general.app, name="self")
app.command("ls")(browse.ls)
app.command("mean")(browse.mean)
app.command("info")(browse.info)
