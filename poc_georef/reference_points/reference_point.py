"""Reference point: one confirmed image ↔ real-world correspondence."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from poc_georef.coordinates import ImagePoint, RealPoint
from poc_georef.types import PixelsFloat, RealUnits


def new_point_id() -> str:
    """Generate an opaque, stable identifier for a new reference point."""
    return uuid.uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _float_field(data: dict[str, Any], key: str) -> float:
    try:
        return float(data[key])
    except TypeError:
        raise ValueError(f"{key} must be a number, got {data[key]!r}") from None


@dataclass(frozen=True)
class ReferencePoint:
    """A user-confirmed correspondence between a pixel and a real-world location.

    Reference points are immutable. Editing replaces the stored instance with
    a new one carrying the same ``id`` and ``created_at`` (see
    :meth:`with_coordinates`), so ids held by a host stay valid across edits
    and across deletes of other points.

    Attributes:
        image: Location in the image, in pixels.
        real: Location in real-world units.
        id: Opaque identifier assigned at creation (uuid4 hex).
        created_at: Creation time (timezone-aware, UTC).
    """

    image: ImagePoint
    real: RealPoint
    id: str = field(default_factory=new_point_id)
    created_at: datetime = field(default_factory=_utcnow)

    def with_coordinates(self, image: ImagePoint, real: RealPoint) -> ReferencePoint:
        """Return a copy with new coordinates, keeping id and creation time."""
        return ReferencePoint(image=image, real=real, id=self.id, created_at=self.created_at)

    def to_dict(self) -> dict[str, Any]:
        """Convert ReferencePoint to a dictionary for JSON serialization.

        Returns:
            Dictionary with id, image_x, image_y, real_x, real_y and
            created_at (ISO 8601) keys.
        """
        return {
            "id": self.id,
            "image_x": self.image.x,
            "image_y": self.image.y,
            "real_x": self.real.x,
            "real_y": self.real.y,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ReferencePoint:
        """Create ReferencePoint from a dictionary.

        ``id`` and ``created_at`` are optional; missing values are generated.
        Naive timestamps are taken to be UTC.

        Raises:
            KeyError: If a coordinate key is missing from data.
            ValueError: If data types are invalid.
        """
        created_at = data.get("created_at")
        if created_at is None:
            timestamp = _utcnow()
        else:
            timestamp = datetime.fromisoformat(str(created_at))
            if timestamp.tzinfo is None:
                timestamp = timestamp.replace(tzinfo=timezone.utc)

        return cls(
            image=ImagePoint(PixelsFloat(_float_field(data, "image_x")), PixelsFloat(_float_field(data, "image_y"))),
            real=RealPoint(RealUnits(_float_field(data, "real_x")), RealUnits(_float_field(data, "real_y"))),
            id=str(data["id"]) if data.get("id") else new_point_id(),
            created_at=timestamp,
        )
