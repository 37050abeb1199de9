"""Tagged coordinate types for image space and real-world space."""

from dataclasses import dataclass

from poc_georef.types import PixelsFloat, RealUnits


@dataclass(frozen=True)
class ImagePoint:
    """Pixel coordinates in the calibrated image.

    Origin is the top-left corner of the full-resolution image, independent of
    any display scaling.

    Attributes:
        x: Pixel x coordinate (column).
        y: Pixel y coordinate (row).
    """

    x: PixelsFloat
    y: PixelsFloat

    @property
    def to_pixel(self) -> tuple[int, int]:
        """Convert to integer pixel coordinates.

        Returns:
            Tuple of (x, y) rounded to nearest integer.
        """
        return (round(self.x), round(self.y))

    def as_tuple(self) -> tuple[float, float]:
        return (self.x, self.y)


@dataclass(frozen=True)
class RealPoint:
    """Real-world coordinates (e.g. longitude/latitude, easting/northing).

    Attributes:
        x: Real-world x coordinate (e.g. longitude or easting).
        y: Real-world y coordinate (e.g. latitude or northing).
    """

    x: RealUnits
    y: RealUnits

    def as_tuple(self) -> tuple[float, float]:
        return (self.x, self.y)

    def rounded(self, decimals: int) -> "RealPoint":
        """Return a copy rounded to ``decimals`` places (for form pre-fill)."""
        return RealPoint(RealUnits(round(self.x, decimals)), RealUnits(round(self.y, decimals)))
