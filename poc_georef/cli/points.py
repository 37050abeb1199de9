"""Reference point CLI commands."""

from pathlib import Path
from typing import List, Optional

import typer

from poc_georef.cli.main import points_app
from poc_georef.cli.session_file import (
    DEFAULT_SESSION_FILE,
    load_config,
    load_reference_set,
    resolve_point_id,
)
from poc_georef.coordinates import ImagePoint, RealPoint
from poc_georef.errors import GeorefError
from poc_georef.reference_points import TRANSFORM_POINT_COUNT
from poc_georef.tabular import read_rows, rows_to_pairs, write_rows
from poc_georef.types import PixelsFloat, RealUnits


@points_app.command("add")
def add_command(
    image_x: float = typer.Option(..., help="Image x (column) in pixels"),
    image_y: float = typer.Option(..., help="Image y (row) in pixels"),
    real_x: float = typer.Option(..., help="Real-world x (e.g. longitude)"),
    real_y: float = typer.Option(..., help="Real-world y (e.g. latitude)"),
    session: Path = typer.Option(DEFAULT_SESSION_FILE, "--session", "-s", help="Session JSON file"),
) -> None:
    """
    Add a reference point.

    Example:
        georef points add --image-x 10 --image-y 10 --real-x 0 --real-y 0
    """
    reference_set = load_reference_set(session)
    try:
        index = reference_set.add(
            ImagePoint(PixelsFloat(image_x), PixelsFloat(image_y)),
            RealPoint(RealUnits(real_x), RealUnits(real_y)),
        )
    except GeorefError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    reference_set.save(session)
    point = reference_set[index]
    typer.echo(f"Added point {index + 1} ({point.id[:8]})")


@points_app.command("edit")
def edit_command(
    point_id: str = typer.Option(..., "--id", help="Point id (or unique prefix)"),
    real_x: float = typer.Option(..., help="New real-world x"),
    real_y: float = typer.Option(..., help="New real-world y"),
    image_x: Optional[float] = typer.Option(None, help="New image x (default: unchanged)"),
    image_y: Optional[float] = typer.Option(None, help="New image y (default: unchanged)"),
    session: Path = typer.Option(DEFAULT_SESSION_FILE, "--session", "-s", help="Session JSON file"),
) -> None:
    """
    Edit a reference point's real-world value (and optionally its image location).

    Example:
        georef points edit --id 3fa2 --real-x 12.5 --real-y 40.1
    """
    if (image_x is None) != (image_y is None):
        typer.echo("Error: --image-x and --image-y must be given together", err=True)
        raise typer.Exit(1)

    reference_set = load_reference_set(session)
    resolved = resolve_point_id(reference_set, point_id)
    current = reference_set.get(resolved)
    image = current.image if image_x is None else ImagePoint(PixelsFloat(image_x), PixelsFloat(image_y))

    try:
        reference_set.edit_by_id(resolved, image, RealPoint(RealUnits(real_x), RealUnits(real_y)))
    except GeorefError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    reference_set.save(session)
    typer.echo(f"Updated point {reference_set.index_of(resolved) + 1} ({resolved[:8]})")


@points_app.command("delete")
def delete_command(
    point_id: str = typer.Option(..., "--id", help="Point id (or unique prefix)"),
    session: Path = typer.Option(DEFAULT_SESSION_FILE, "--session", "-s", help="Session JSON file"),
) -> None:
    """
    Delete a reference point. Later points move up one position.

    Example:
        georef points delete --id 3fa2
    """
    reference_set = load_reference_set(session)
    resolved = resolve_point_id(reference_set, point_id)
    reference_set.delete_by_id(resolved)
    reference_set.save(session)
    typer.echo(f"Deleted point {resolved[:8]}, {len(reference_set)} remaining")


@points_app.command("list")
def list_command(
    session: Path = typer.Option(DEFAULT_SESSION_FILE, "--session", "-s", help="Session JSON file"),
) -> None:
    """List reference points in order; the first three define the transform."""
    reference_set = load_reference_set(session)
    if len(reference_set) == 0:
        typer.echo("No reference points")
        return

    for index, point in enumerate(reference_set):
        marker = "*" if index < TRANSFORM_POINT_COUNT else " "
        typer.echo(
            f"{marker} Point {index + 1} [{point.id[:8]}] "
            f"image=({point.image.x:.1f}, {point.image.y:.1f}) → "
            f"real=({point.real.x}, {point.real.y})"
        )


@points_app.command("clear")
def clear_command(
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
    session: Path = typer.Option(DEFAULT_SESSION_FILE, "--session", "-s", help="Session JSON file"),
) -> None:
    """Remove every reference point from the session."""
    reference_set = load_reference_set(session)
    if not yes:
        typer.confirm(f"Remove all {len(reference_set)} reference points?", abort=True)
    reference_set.clear()
    reference_set.save(session)
    typer.echo("Cleared all reference points")


@points_app.command("import")
def import_command(
    csv_file: Path = typer.Option(..., "--csv", help="CSV file with reference points"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="YAML configuration file"),
    session: Path = typer.Option(DEFAULT_SESSION_FILE, "--session", "-s", help="Session JSON file"),
) -> None:
    """
    Append reference points from a CSV file.

    Column names come from the configuration's import_columns. Rows with a
    missing or non-numeric value are skipped.

    Example:
        georef points import --csv survey.csv
    """
    georef_config = load_config(config)
    try:
        rows = read_rows(csv_file)
    except FileNotFoundError:
        typer.echo(f"Error: CSV file not found: {csv_file}", err=True)
        raise typer.Exit(1)

    reference_set = load_reference_set(session)
    added = reference_set.bulk_load(rows_to_pairs(rows, georef_config.import_columns))
    reference_set.save(session)

    skipped = len(rows) - added
    typer.echo(f"Imported {added} reference points" + (f" ({skipped} rows skipped)" if skipped else ""))


@points_app.command("export")
def export_command(
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Output CSV file"),
    point_ids: Optional[List[str]] = typer.Option(
        None, "--id", help="Point id (or unique prefix) to export; repeat for more (default: all)"
    ),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="YAML configuration file"),
    session: Path = typer.Option(DEFAULT_SESSION_FILE, "--session", "-s", help="Session JSON file"),
) -> None:
    """
    Export reference points to CSV.

    Example:
        georef points export --output selected_points.csv --id 3fa2 --id 9c01
    """
    georef_config = load_config(config)
    reference_set = load_reference_set(session)

    if point_ids:
        selected = reference_set.select_ids(resolve_point_id(reference_set, pid) for pid in point_ids)
    else:
        selected = list(reference_set)

    if output is None:
        output = Path(georef_config.export_filename)

    write_rows(selected, output, georef_config.export_columns)
    typer.echo(f"Exported {len(selected)} reference points to {output}")
