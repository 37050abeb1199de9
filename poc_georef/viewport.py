"""Display viewport: maps between on-screen coordinates and image pixels.

Hosts usually show the image scaled to fit the window. Clicks arrive in
display coordinates and must be divided by the display scale before they are
used as image coordinates; markers go the other way.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from poc_georef.coordinates import ImagePoint
from poc_georef.errors import InvalidInputError
from poc_georef.image_source import ImageInfo
from poc_georef.types import PixelsFloat, Unitless


@dataclass(frozen=True)
class DisplayViewport:
    """Uniform scale between display and image coordinates.

    Attributes:
        scale: Display pixels per image pixel.
    """

    scale: Unitless = Unitless(1.0)

    def __post_init__(self):
        if not (math.isfinite(self.scale) and self.scale > 0):
            raise InvalidInputError(f"Display scale must be a positive finite number, got {self.scale}")

    @classmethod
    def fit(cls, image: ImageInfo, max_width: float, max_height: float) -> DisplayViewport:
        """Largest uniform scale that fits the image inside max_width × max_height."""
        return cls(Unitless(min(max_width / image.width, max_height / image.height)))

    @classmethod
    def fit_window(
        cls,
        image: ImageInfo,
        window_width: float,
        window_height: float,
        width_fraction: float = 0.9,
        height_fraction: float = 0.7,
    ) -> DisplayViewport:
        """Fit the image to a fraction of the host window (90% × 70% by default)."""
        return cls.fit(image, window_width * width_fraction, window_height * height_fraction)

    def display_to_image(self, display_x: float, display_y: float) -> ImagePoint:
        return ImagePoint(PixelsFloat(display_x / self.scale), PixelsFloat(display_y / self.scale))

    def image_to_display(self, point: ImagePoint) -> tuple[float, float]:
        return (point.x * self.scale, point.y * self.scale)

    def display_size(self, image: ImageInfo) -> tuple[int, int]:
        """Size of the scaled image on screen, truncated to whole pixels."""
        return (int(image.width * self.scale), int(image.height * self.scale))
