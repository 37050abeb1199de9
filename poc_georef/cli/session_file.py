"""Helpers shared by the CLI commands: session file and config loading."""

import json
from pathlib import Path
from typing import Optional

import typer

from poc_georef.config import GeorefConfig, get_default_config
from poc_georef.reference_points import ReferenceSet

DEFAULT_SESSION_FILE = Path("georef_session.json")


def load_reference_set(session: Path) -> ReferenceSet:
    """Load the session file, or start an empty set if it does not exist yet."""
    if not session.exists():
        return ReferenceSet()
    try:
        return ReferenceSet.load(session)
    except (json.JSONDecodeError, KeyError, ValueError) as e:
        typer.echo(f"Error: Invalid session file {session}: {e}", err=True)
        raise typer.Exit(1)


def load_config(config: Optional[Path]) -> GeorefConfig:
    if config is None:
        return get_default_config()
    try:
        return GeorefConfig.from_yaml(str(config))
    except (FileNotFoundError, ValueError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


def resolve_point_id(reference_set: ReferenceSet, point_id: str) -> str:
    """Accept a full point id or a unique prefix of one (as printed by `points list`)."""
    if point_id in reference_set:
        return point_id
    matches = [p.id for p in reference_set if p.id.startswith(point_id)]
    if len(matches) == 1:
        return matches[0]
    if not matches:
        typer.echo(f"Error: No reference point with id {point_id!r}", err=True)
    else:
        typer.echo(f"Error: Id prefix {point_id!r} is ambiguous ({len(matches)} matches)", err=True)
    raise typer.Exit(1)
