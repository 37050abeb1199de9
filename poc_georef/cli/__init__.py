"""CLI module for georeferencing tools.

Provides the `georef` command-line interface for managing reference points and
converting coordinates with the fitted transform.
"""

from poc_georef.cli.main import app

__all__ = ["app"]
