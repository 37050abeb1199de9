"""
Configuration for the georeferencing tools.

Loaded from a YAML file with a top-level ``georef`` section:

    georef:
      min_relative_area: 1.0e-9
      max_display_width_fraction: 0.9
      max_display_height_fraction: 0.7
      prefill_decimals: 6
      export_filename: selected_points.csv
      import_columns:
        image_x: "coulmn[pixel]"
        image_y: "row[pixel]"
        real_x: "Longitude [DD]"
        real_y: "Latitude [DD]"
      export_columns:
        image_x: imageX
        image_y: imageY
        real_x: realX
        real_y: realY
"""

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict
import logging
import math

import yaml

from poc_georef.affine import DEFAULT_MIN_RELATIVE_AREA

logger = logging.getLogger(__name__)

COLUMN_KEYS = ("image_x", "image_y", "real_x", "real_y")

# Header names written by the existing field-survey spreadsheets; the
# "coulmn" misspelling is part of that format.
DEFAULT_IMPORT_COLUMNS: Dict[str, str] = {
    "image_x": "coulmn[pixel]",
    "image_y": "row[pixel]",
    "real_x": "Longitude [DD]",
    "real_y": "Latitude [DD]",
}

DEFAULT_EXPORT_COLUMNS: Dict[str, str] = {
    "image_x": "imageX",
    "image_y": "imageY",
    "real_x": "realX",
    "real_y": "realY",
}


@dataclass
class GeorefConfig:
    """Runtime configuration.

    Attributes:
        min_relative_area: Collinearity threshold for the affine solve.
        max_display_width_fraction: Fraction of the window width the image may fill.
        max_display_height_fraction: Fraction of the window height the image may fill.
        prefill_decimals: Decimal places of pre-filled real-world estimates.
        export_filename: Default file name for CSV export.
        import_columns: CSV header names read on import, keyed by coordinate.
        export_columns: CSV header names written on export, keyed by coordinate.
    """
    min_relative_area: float = DEFAULT_MIN_RELATIVE_AREA
    max_display_width_fraction: float = 0.9
    max_display_height_fraction: float = 0.7
    prefill_decimals: int = 6
    export_filename: str = "selected_points.csv"
    import_columns: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_IMPORT_COLUMNS))
    export_columns: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_EXPORT_COLUMNS))

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        """Check every field.

        Raises:
            ValueError: If any value is out of range or malformed.
        """
        if not (isinstance(self.min_relative_area, (int, float))
                and math.isfinite(self.min_relative_area) and self.min_relative_area > 0):
            raise ValueError(
                f"min_relative_area must be a positive number, got {self.min_relative_area!r}"
            )

        for name in ("max_display_width_fraction", "max_display_height_fraction"):
            value = getattr(self, name)
            if not (isinstance(value, (int, float)) and 0 < value <= 1):
                raise ValueError(f"{name} must be in (0, 1], got {value!r}")

        if isinstance(self.prefill_decimals, bool) or not isinstance(self.prefill_decimals, int) \
                or not 0 <= self.prefill_decimals <= 15:
            raise ValueError(f"prefill_decimals must be an integer in [0, 15], got {self.prefill_decimals!r}")

        if not isinstance(self.export_filename, str) or not self.export_filename.strip():
            raise ValueError("export_filename must be a non-empty string")

        for name in ("import_columns", "export_columns"):
            columns = getattr(self, name)
            if not isinstance(columns, dict):
                raise ValueError(f"{name} must be a mapping, got {type(columns).__name__}")
            missing = [key for key in COLUMN_KEYS if key not in columns]
            if missing:
                raise ValueError(f"{name} is missing keys: {', '.join(missing)}")
            unknown = [key for key in columns if key not in COLUMN_KEYS]
            if unknown:
                raise ValueError(
                    f"{name} has unknown keys: {', '.join(unknown)}. "
                    f"Valid keys: {', '.join(COLUMN_KEYS)}"
                )
            for key, header in columns.items():
                if not isinstance(header, str) or not header:
                    raise ValueError(f"{name}.{key} must be a non-empty string, got {header!r}")
            if len(set(columns.values())) != len(columns):
                raise ValueError(f"{name} header names must be distinct")

    @classmethod
    def from_yaml(cls, path: str) -> 'GeorefConfig':
        """Load configuration from YAML file.

        Args:
            path: Path to YAML configuration file

        Returns:
            GeorefConfig instance loaded from file

        Raises:
            FileNotFoundError: If configuration file does not exist
            ValueError: If configuration file is malformed or contains invalid values
        """
        config_path = Path(path)

        if not config_path.exists():
            raise FileNotFoundError(
                f"Configuration file not found: {path}\n"
                f"Please create a configuration file or use get_default_config()"
            )

        try:
            with open(config_path, 'r') as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Failed to parse YAML configuration file: {e}") from e

        if not data:
            raise ValueError(
                f"Configuration file is empty: {path}\n"
                f"Expected a 'georef' section"
            )

        if not isinstance(data, dict) or 'georef' not in data:
            raise ValueError(
                f"Configuration file missing 'georef' section: {path}\n"
                f"Expected structure: georef:\n  min_relative_area: ...\n  ..."
            )

        return cls.from_dict(data['georef'] or {})

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> 'GeorefConfig':
        """Create configuration from a dictionary.

        Unknown keys are logged and ignored. Column mappings are merged over
        the defaults, so a file may override a single header.

        Raises:
            ValueError: If the dictionary is malformed or contains invalid values
        """
        if not isinstance(config, dict):
            raise ValueError(f"'georef' section must be a mapping, got {type(config).__name__}")

        known = {f.name for f in fields(cls)}
        for key in config:
            if key not in known:
                logger.warning(f"Ignoring unknown configuration key '{key}'")

        kwargs: Dict[str, Any] = {k: v for k, v in config.items() if k in known}

        for name, defaults in (("import_columns", DEFAULT_IMPORT_COLUMNS),
                               ("export_columns", DEFAULT_EXPORT_COLUMNS)):
            if name in kwargs:
                overrides = kwargs[name]
                if not isinstance(overrides, dict):
                    raise ValueError(f"{name} must be a mapping, got {type(overrides).__name__}")
                kwargs[name] = {**defaults, **overrides}

        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary (the contents of the 'georef' section)."""
        return {
            'min_relative_area': self.min_relative_area,
            'max_display_width_fraction': self.max_display_width_fraction,
            'max_display_height_fraction': self.max_display_height_fraction,
            'prefill_decimals': self.prefill_decimals,
            'export_filename': self.export_filename,
            'import_columns': dict(self.import_columns),
            'export_columns': dict(self.export_columns),
        }

    def to_yaml(self, path: str) -> None:
        """Save configuration to YAML file."""
        with open(path, 'w') as f:
            yaml.safe_dump({'georef': self.to_dict()}, f, sort_keys=False)


def get_default_config() -> GeorefConfig:
    """Get default configuration."""
    return GeorefConfig()
