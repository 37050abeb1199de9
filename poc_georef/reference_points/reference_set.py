"""Ordered, editable collection of reference points."""

from __future__ import annotations

import json
import logging
import operator
from pathlib import Path
from typing import Any, Iterable, Iterator, Protocol, Sequence

from poc_georef.coordinates import ImagePoint, RealPoint
from poc_georef.errors import IndexOutOfRangeError, InvalidInputError, UnknownPointError
from poc_georef.reference_points.reference_point import ReferencePoint
from poc_georef.validation import detect_duplicate_points, validate_point_pair

logger = logging.getLogger(__name__)

# Number of leading points that define the affine transform
TRANSFORM_POINT_COUNT = 3


class FileSystem(Protocol):
    """Protocol for file system operations."""

    def read_text(self, path: str | Path) -> str:
        """Read text from a file."""
        ...

    def write_text(self, path: str | Path, content: str) -> None:
        """Write text to a file."""
        ...


class DefaultFileSystem:
    """Default file system implementation."""

    def read_text(self, path: str | Path) -> str:
        """Read text from a file."""
        return Path(path).read_text(encoding="utf-8")

    def write_text(self, path: str | Path, content: str) -> None:
        """Write text to a file."""
        Path(path).write_text(content, encoding="utf-8")


def _get_fs(fs: FileSystem | None) -> FileSystem:
    """Return the provided filesystem or the default."""
    return fs if fs is not None else DefaultFileSystem()


def _as_point(value: Any, point_type: type, label: str) -> Any:
    """Accept a typed point or a raw (x, y) pair."""
    if isinstance(value, point_type):
        return value
    try:
        x, y = value
    except (TypeError, ValueError):
        raise InvalidInputError(f"{label} coordinate must be an (x, y) pair, got {value!r}") from None
    return point_type(x, y)


class ReferenceSet:
    """Ordered collection of calibration pairs.

    Insertion order matters only in that the first three entries define the
    current affine transform. Positional indices shift down when an earlier
    point is deleted; hosts that need to remember a point across deletes
    should hold its ``id`` and use the ``*_by_id`` operations.

    The set is not thread-safe. Hosts with several writers must serialize
    mutating calls against solve/map calls themselves.
    """

    def __init__(self, points: Iterable[ReferencePoint] | None = None):
        self._points: list[ReferencePoint] = list(points) if points is not None else []

    def __len__(self) -> int:
        return len(self._points)

    def __iter__(self) -> Iterator[ReferencePoint]:
        return iter(list(self._points))

    def __getitem__(self, index: int) -> ReferencePoint:
        return self._points[self._check_index(index)]

    def __repr__(self) -> str:
        return f"ReferenceSet({len(self._points)} points)"

    @property
    def points(self) -> tuple[ReferencePoint, ...]:
        """Snapshot of the stored points in order."""
        return tuple(self._points)

    def first(self, count: int = TRANSFORM_POINT_COUNT) -> tuple[ReferencePoint, ...]:
        """Return the first ``count`` points (fewer if the set is smaller)."""
        return tuple(self._points[:count])

    def _check_index(self, index: Any) -> int:
        # Negative indices are rejected so a stale "-1" never edits the last point
        if isinstance(index, bool):
            raise IndexOutOfRangeError(index, len(self._points))
        try:
            position = operator.index(index)
        except TypeError:
            raise IndexOutOfRangeError(index, len(self._points)) from None
        if not 0 <= position < len(self._points):
            raise IndexOutOfRangeError(index, len(self._points))
        return position

    def _pairs(self) -> list[tuple[ImagePoint, RealPoint]]:
        return [(p.image, p.real) for p in self._points]

    def add(self, image: ImagePoint, real: RealPoint) -> int:
        """Append a new reference point.

        Args:
            image: Image coordinate in pixels.
            real: Real-world coordinate.

        Returns:
            Index of the new point.

        Raises:
            InvalidInputError: If any coordinate component is not a finite number.
        """
        image, real = validate_point_pair(image, real)
        detect_duplicate_points(image, real, self._pairs())
        point = ReferencePoint(image=image, real=real)
        self._points.append(point)
        logger.info(
            f"Added reference point {len(self._points)} ({point.id}) "
            f"image=({image.x:.1f}, {image.y:.1f}) real=({real.x}, {real.y})"
        )
        return len(self._points) - 1

    def edit(self, index: int, image: ImagePoint, real: RealPoint) -> ReferencePoint:
        """Replace the coordinates of the point at ``index``.

        The point keeps its id and creation time.

        Returns:
            The updated ReferencePoint.

        Raises:
            IndexOutOfRangeError: If ``index`` does not exist (set unchanged).
            InvalidInputError: If any coordinate component is not a finite number.
        """
        index = self._check_index(index)
        image, real = validate_point_pair(image, real)
        updated = self._points[index].with_coordinates(image, real)
        self._points[index] = updated
        logger.info(f"Edited reference point {index + 1} ({updated.id}) real=({real.x}, {real.y})")
        return updated

    def delete(self, index: int) -> ReferencePoint:
        """Remove the point at ``index``; later points shift down by one.

        Returns:
            The removed ReferencePoint.

        Raises:
            IndexOutOfRangeError: If ``index`` does not exist (set unchanged).
        """
        index = self._check_index(index)
        removed = self._points.pop(index)
        logger.info(f"Deleted reference point {index + 1} ({removed.id}), {len(self._points)} remaining")
        return removed

    def select(self, indices: Iterable[int]) -> list[ReferencePoint]:
        """Return the points at ``indices`` in set order.

        Indices that no longer exist are skipped silently.
        """
        wanted = set(indices)
        return [p for i, p in enumerate(self._points) if i in wanted]

    def bulk_load(self, pairs: Iterable[Sequence[Any]]) -> int:
        """Append many (image, real) pairs in one operation.

        Each side may be an ImagePoint/RealPoint or a raw ``(x, y)`` pair.
        Every pair is validated like :meth:`add`; invalid pairs are logged and
        skipped without aborting the batch. Duplicates are kept with a warning.

        Returns:
            Number of pairs added.
        """
        added = 0
        skipped = 0
        for position, pair in enumerate(pairs):
            try:
                try:
                    raw_image, raw_real = pair
                except (TypeError, ValueError):
                    raise InvalidInputError(f"expected an (image, real) pair, got {pair!r}") from None
                image = _as_point(raw_image, ImagePoint, "image")
                real = _as_point(raw_real, RealPoint, "real")
                image, real = validate_point_pair(image, real)
            except InvalidInputError as e:
                skipped += 1
                logger.warning(f"Skipping pair {position + 1} in bulk load: {e}")
                continue
            detect_duplicate_points(image, real, self._pairs())
            self._points.append(ReferencePoint(image=image, real=real))
            added += 1

        logger.info(f"Bulk loaded {added} reference points ({skipped} skipped)")
        return added

    def clear(self) -> None:
        """Remove every point."""
        self._points.clear()
        logger.info("Cleared all reference points")

    # Stable-id operations

    def index_of(self, point_id: str) -> int:
        """Resolve a stable id to its current index.

        Raises:
            UnknownPointError: If no point has this id.
        """
        for i, point in enumerate(self._points):
            if point.id == point_id:
                return i
        raise UnknownPointError(point_id, len(self._points))

    def get(self, point_id: str) -> ReferencePoint:
        """Look up a point by id.

        Raises:
            UnknownPointError: If no point has this id.
        """
        return self._points[self.index_of(point_id)]

    def __contains__(self, point_id: object) -> bool:
        return any(p.id == point_id for p in self._points)

    def edit_by_id(self, point_id: str, image: ImagePoint, real: RealPoint) -> ReferencePoint:
        """Edit the point with ``point_id`` (see :meth:`edit`)."""
        return self.edit(self.index_of(point_id), image, real)

    def delete_by_id(self, point_id: str) -> ReferencePoint:
        """Delete the point with ``point_id`` (see :meth:`delete`)."""
        return self.delete(self.index_of(point_id))

    def select_ids(self, point_ids: Iterable[str]) -> list[ReferencePoint]:
        """Return the points with the given ids in set order; unknown ids are skipped."""
        wanted = set(point_ids)
        return [p for p in self._points if p.id in wanted]

    # Serialization

    def to_dict(self) -> dict[str, Any]:
        """Convert the set to a dictionary for JSON serialization.

        Returns:
            Dictionary with an ordered ``points`` list.
        """
        return {"points": [point.to_dict() for point in self._points]}

    def to_json(self, indent: int = 2) -> str:
        """Convert the set to a JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    def save(self, path: str | Path, fs: FileSystem | None = None) -> None:
        """Save the set to a JSON file.

        Args:
            path: Path to output JSON file.
            fs: File system implementation (default: DefaultFileSystem).
        """
        _get_fs(fs).write_text(path, self.to_json())
        logger.info(f"Saved {len(self._points)} reference points to {path}")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ReferenceSet:
        """Create a set from a dictionary.

        Raises:
            KeyError: If required keys are missing.
            ValueError: If data format is invalid or a coordinate is not finite.
        """
        if not isinstance(data, dict):
            raise ValueError(f"Reference set data must be a mapping, got {type(data).__name__}")
        entries = data.get("points", [])
        if not isinstance(entries, list):
            raise ValueError(f"'points' must be a list, got {type(entries).__name__}")
        for position, point_data in enumerate(entries):
            if not isinstance(point_data, dict):
                raise ValueError(f"Point {position + 1} must be a mapping, got {type(point_data).__name__}")
        points = [ReferencePoint.from_dict(point_data) for point_data in entries]
        for point in points:
            validate_point_pair(point.image, point.real)
        ids = [p.id for p in points]
        if len(set(ids)) != len(ids):
            raise ValueError("Reference point ids must be unique")
        return cls(points)

    @classmethod
    def from_json(cls, json_str: str) -> ReferenceSet:
        """Create a set from a JSON string.

        Raises:
            json.JSONDecodeError: If JSON is invalid.
            KeyError: If required keys are missing.
            ValueError: If data format is invalid.
        """
        return cls.from_dict(json.loads(json_str))

    @classmethod
    def load(cls, path: str | Path, fs: FileSystem | None = None) -> ReferenceSet:
        """Load a set from a JSON file.

        Raises:
            FileNotFoundError: If file doesn't exist.
            json.JSONDecodeError: If JSON is invalid.
            KeyError: If required keys are missing.
            ValueError: If data format is invalid.
        """
        reference_set = cls.from_json(_get_fs(fs).read_text(path))
        logger.info(f"Loaded {len(reference_set)} reference points from {path}")
        return reference_set
