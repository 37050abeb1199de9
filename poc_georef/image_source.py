"""Image metadata for the raster being calibrated.

The core only needs the image's pixel dimensions; decoding is delegated to
OpenCV so any format it reads (JPEG, PNG, TIFF, ...) can be calibrated.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import cv2
import numpy as np

from poc_georef.coordinates import ImagePoint
from poc_georef.types import Pixels

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImageInfo:
    """Dimensions of a loaded image.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        path: Source file, if the image was loaded from disk.
    """

    width: Pixels
    height: Pixels
    path: Optional[Path] = None

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Image dimensions must be positive, got {self.width}x{self.height}")

    def contains(self, point: ImagePoint) -> bool:
        """True if ``point`` lies within the image bounds."""
        return 0 <= point.x <= self.width and 0 <= point.y <= self.height

    @classmethod
    def from_array(cls, image: np.ndarray, path: Optional[Path] = None) -> ImageInfo:
        """Build from a decoded image array of shape (height, width[, channels])."""
        if image.ndim < 2:
            raise ValueError(f"Expected an image array with at least 2 dimensions, got shape {image.shape}")
        height, width = image.shape[:2]
        return cls(width=Pixels(int(width)), height=Pixels(int(height)), path=path)

    @classmethod
    def from_file(cls, path: str | Path) -> ImageInfo:
        """Read an image from disk and return its dimensions.

        Raises:
            FileNotFoundError: If the file does not exist.
            ValueError: If OpenCV cannot decode the file.
        """
        image_path = Path(path)
        if not image_path.exists():
            raise FileNotFoundError(f"Image file not found: {image_path}")

        image = cv2.imread(str(image_path), cv2.IMREAD_UNCHANGED)
        if image is None:
            raise ValueError(f"Could not decode image: {image_path}")

        info = cls.from_array(image, path=image_path)
        logger.info(f"Loaded image {image_path.name} ({info.width}x{info.height})")
        return info
