"""Transform CLI commands."""

from pathlib import Path
from typing import Optional

import typer

from poc_georef.affine import AffineTransform, residuals, solve
from poc_georef.cli.main import transform_app
from poc_georef.cli.session_file import DEFAULT_SESSION_FILE, load_config, load_reference_set
from poc_georef.coordinates import ImagePoint, RealPoint
from poc_georef.errors import DegenerateConfigurationError
from poc_georef.reference_points import ReferenceSet
from poc_georef.types import PixelsFloat, RealUnits


def _solve_or_exit(reference_set: ReferenceSet, config: Optional[Path]) -> AffineTransform:
    georef_config = load_config(config)
    try:
        transform = solve(reference_set, georef_config.min_relative_area)
    except DegenerateConfigurationError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    if transform is None:
        typer.echo(
            f"Transform unavailable: at least 3 reference points are needed "
            f"({len(reference_set)} loaded)",
            err=True,
        )
        raise typer.Exit(1)
    return transform


@transform_app.command("show")
def show_command(
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="YAML configuration file"),
    session: Path = typer.Option(DEFAULT_SESSION_FILE, "--session", "-s", help="Session JSON file"),
) -> None:
    """Print the fitted coefficients, GDAL geotransform and per-point residuals."""
    reference_set = load_reference_set(session)
    transform = _solve_or_exit(reference_set, config)

    fx, fy, ix, iy = transform.forward_x, transform.forward_y, transform.inverse_x, transform.inverse_y
    typer.echo("Forward (real → image):")
    typer.echo(f"  image_x = {fx.a:.10g}·rx + {fx.b:.10g}·ry + {fx.c:.10g}")
    typer.echo(f"  image_y = {fy.a:.10g}·rx + {fy.b:.10g}·ry + {fy.c:.10g}")
    typer.echo("Inverse (image → real):")
    typer.echo(f"  real_x = {ix.a:.10g}·ix + {ix.b:.10g}·iy + {ix.c:.10g}")
    typer.echo(f"  real_y = {iy.a:.10g}·ix + {iy.b:.10g}·iy + {iy.c:.10g}")
    typer.echo("GDAL geotransform: " + ", ".join(f"{v:.10g}" for v in transform.to_geotransform()))

    typer.echo("Residuals:")
    for residual in residuals(transform, reference_set):
        tag = "fit" if residual.used_in_fit else "check"
        typer.echo(
            f"  Point {residual.index + 1} [{tag}]: {residual.image_error_px:.3f} px, "
            f"{residual.real_error:.6g} real units"
        )


@transform_app.command("to-real")
def to_real_command(
    x: float = typer.Option(..., help="Image x (column) in pixels"),
    y: float = typer.Option(..., help="Image y (row) in pixels"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="YAML configuration file"),
    session: Path = typer.Option(DEFAULT_SESSION_FILE, "--session", "-s", help="Session JSON file"),
) -> None:
    """
    Convert an image coordinate to real-world coordinates.

    Example:
        georef transform to-real --x 60 --y 60
    """
    transform = _solve_or_exit(load_reference_set(session), config)
    decimals = load_config(config).prefill_decimals
    real = transform.image_to_real(ImagePoint(PixelsFloat(x), PixelsFloat(y))).rounded(decimals)
    typer.echo(f"{real.x:.{decimals}f}, {real.y:.{decimals}f}")


@transform_app.command("to-image")
def to_image_command(
    x: float = typer.Option(..., help="Real-world x"),
    y: float = typer.Option(..., help="Real-world y"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="YAML configuration file"),
    session: Path = typer.Option(DEFAULT_SESSION_FILE, "--session", "-s", help="Session JSON file"),
) -> None:
    """
    Convert a real-world coordinate to image pixels.

    Example:
        georef transform to-image --x 50 --y 50
    """
    transform = _solve_or_exit(load_reference_set(session), config)
    image = transform.real_to_image(RealPoint(RealUnits(x), RealUnits(y)))
    typer.echo(f"{image.x:.1f}, {image.y:.1f}")
