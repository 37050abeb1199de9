"""CSV import and export of calibration pairs.

Import reads header-keyed rows and extracts the four coordinates under
configurable column names; rows with a missing or non-numeric field are
skipped. Export writes one row per reference point as
(imageX, imageY, realX, realY) by default.
"""

from __future__ import annotations

import csv
import io
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Tuple, Union

from poc_georef.config import DEFAULT_EXPORT_COLUMNS, DEFAULT_IMPORT_COLUMNS
from poc_georef.coordinates import ImagePoint, RealPoint
from poc_georef.errors import InvalidInputError
from poc_georef.reference_points import ReferencePoint
from poc_georef.types import PixelsFloat, RealUnits
from poc_georef.validation import coerce_coordinate

logger = logging.getLogger(__name__)

Row = Dict[str, str]


def read_rows(source: Union[str, Path]) -> List[Row]:
    """Parse CSV into a list of header-keyed rows.

    Args:
        source: A path to a CSV file, or CSV text. A ``str`` containing a
            newline is treated as text, anything else as a path.

    Returns:
        One dict per non-empty data row.

    Raises:
        FileNotFoundError: If ``source`` is a path that does not exist.
    """
    if isinstance(source, str) and "\n" in source:
        text = source
    else:
        text = Path(source).read_text(encoding="utf-8-sig")

    reader = csv.DictReader(io.StringIO(text))
    rows = []
    for row in reader:
        # Blank lines (or lines holding only delimiters) carry no data
        if not any((value or "").strip() for value in row.values() if isinstance(value, str)):
            continue
        rows.append(row)
    logger.debug(f"Parsed {len(rows)} CSV rows")
    return rows


def row_to_pair(row: Mapping[str, object], columns: Mapping[str, str]) -> Tuple[ImagePoint, RealPoint]:
    """Extract one calibration pair from a row.

    Raises:
        InvalidInputError: If a column is missing or its value is not a finite number.
    """
    values = {}
    for key in ("image_x", "image_y", "real_x", "real_y"):
        header = columns[key]
        if header not in row or row[header] is None:
            raise InvalidInputError(f"missing column '{header}'")
        values[key] = coerce_coordinate(row[header], header)

    return (
        ImagePoint(PixelsFloat(values["image_x"]), PixelsFloat(values["image_y"])),
        RealPoint(RealUnits(values["real_x"]), RealUnits(values["real_y"])),
    )


def rows_to_pairs(
    rows: Iterable[Mapping[str, object]],
    columns: Optional[Mapping[str, str]] = None,
) -> List[Tuple[ImagePoint, RealPoint]]:
    """Extract calibration pairs from rows, skipping invalid ones.

    Args:
        rows: Header-keyed rows (e.g. from :func:`read_rows`).
        columns: Header names keyed by image_x/image_y/real_x/real_y
            (default: the field-survey spreadsheet headers).

    Returns:
        Valid (ImagePoint, RealPoint) pairs in row order.
    """
    columns = columns or DEFAULT_IMPORT_COLUMNS
    pairs = []
    for line, row in enumerate(rows, start=1):
        try:
            pairs.append(row_to_pair(row, columns))
        except InvalidInputError as e:
            logger.warning(f"Skipping CSV row {line}: {e}")
    return pairs


def points_to_rows(
    points: Iterable[ReferencePoint],
    columns: Optional[Mapping[str, str]] = None,
) -> List[Dict[str, float]]:
    """Flatten reference points into export rows."""
    columns = columns or DEFAULT_EXPORT_COLUMNS
    return [
        {
            columns["image_x"]: point.image.x,
            columns["image_y"]: point.image.y,
            columns["real_x"]: point.real.x,
            columns["real_y"]: point.real.y,
        }
        for point in points
    ]


def write_rows(
    points: Iterable[ReferencePoint],
    path: Optional[Union[str, Path]] = None,
    columns: Optional[Mapping[str, str]] = None,
) -> str:
    """Serialize reference points to CSV.

    Args:
        points: Points to export, in the order they should appear.
        path: If given, the CSV is also written to this file.
        columns: Export header names (default: imageX, imageY, realX, realY).

    Returns:
        The CSV text (header row included even when there are no points).
    """
    columns = columns or DEFAULT_EXPORT_COLUMNS
    fieldnames = [columns[key] for key in ("image_x", "image_y", "real_x", "real_y")]

    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=fieldnames, lineterminator="\n")
    writer.writeheader()
    rows = points_to_rows(points, columns)
    writer.writerows(rows)
    text = buffer.getvalue()

    if path is not None:
        output_path = Path(path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(text, encoding="utf-8")
        logger.info(f"Exported {len(rows)} reference points to {output_path}")

    return text
