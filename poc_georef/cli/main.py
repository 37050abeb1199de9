"""Main Typer CLI application for georeferencing tools."""

import logging

import typer

app = typer.Typer(
    help="Calibrate raster images against real-world coordinates with a 3-point affine fit",
    no_args_is_help=True,
)

points_app = typer.Typer(help="Reference point commands", no_args_is_help=True)
transform_app = typer.Typer(help="Coordinate transform commands", no_args_is_help=True)

app.add_typer(points_app, name="points")
app.add_typer(transform_app, name="transform")


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Configure logging for every command."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def _register_commands() -> None:
    """
    Import command modules to register commands with their respective apps.

    Commands use decorators like @points_app.command() which register
    themselves when the module is imported.
    """
    from poc_georef.cli import points, transform

    # Avoid "imported but unused" warnings by explicitly using the module
    _ = points
    _ = transform


_register_commands()


if __name__ == "__main__":
    app()
