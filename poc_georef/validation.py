"""
Reference point validation module.

Provides validation functions for calibration pairs before they enter a
ReferenceSet: finiteness of every coordinate, coercion of host-supplied
values (CSV cells arrive as strings), and duplicate detection.
"""

import logging
import math
import numbers
from typing import Any, Iterable, Optional, Tuple

from poc_georef.coordinates import ImagePoint, RealPoint
from poc_georef.errors import InvalidInputError
from poc_georef.types import PixelsFloat, RealUnits

logger = logging.getLogger(__name__)


PIXEL_EPSILON = 0.5  # Default epsilon for pixel coordinate comparison (pixels)
REAL_EPSILON = 1e-9  # Default epsilon for real-world coordinate comparison


def is_valid_finite_number(value: Any) -> bool:
    """Check if a value is a valid finite number (int, float, or numpy numeric).

    Booleans are rejected even though ``bool`` is a subclass of ``int``.

    Args:
        value: Value to check

    Returns:
        True if value is a valid finite number, False otherwise
    """
    if isinstance(value, bool) or not isinstance(value, numbers.Number):
        return False

    if isinstance(value, complex):
        return False

    try:
        if math.isnan(value) or math.isinf(value):
            return False
    except (TypeError, ValueError):
        return False

    return True


def coerce_coordinate(value: Any, field_name: str) -> float:
    """Convert a host-supplied coordinate value to a finite float.

    Accepts numbers and numeric strings (surrounding whitespace allowed).

    Args:
        value: Raw value (number or string)
        field_name: Field name used in the error message

    Returns:
        The value as a float

    Raises:
        InvalidInputError: If the value is missing, non-numeric, NaN or infinite
    """
    if isinstance(value, str):
        text = value.strip()
        if not text:
            raise InvalidInputError(f"{field_name} is empty")
        try:
            value = float(text)
        except ValueError:
            raise InvalidInputError(f"{field_name} must be a number, got {text!r}") from None

    if not is_valid_finite_number(value):
        if isinstance(value, numbers.Number) and not isinstance(value, bool):
            raise InvalidInputError(
                f"{field_name} must be a finite number, "
                f"got {value} (NaN and Infinity are not allowed)"
            )
        raise InvalidInputError(
            f"{field_name} must be a number, got {type(value).__name__}"
        )

    return float(value)


def validate_image_point(point: Any) -> ImagePoint:
    """Validate an image coordinate and return it with float components.

    Raises:
        InvalidInputError: If either component is not a finite number
    """
    if not isinstance(point, ImagePoint):
        raise InvalidInputError(f"image coordinate must be an ImagePoint, got {type(point).__name__}")
    return ImagePoint(
        PixelsFloat(coerce_coordinate(point.x, "image x")),
        PixelsFloat(coerce_coordinate(point.y, "image y")),
    )


def validate_real_point(point: Any) -> RealPoint:
    """Validate a real-world coordinate and return it with float components.

    Raises:
        InvalidInputError: If either component is not a finite number
    """
    if not isinstance(point, RealPoint):
        raise InvalidInputError(f"real coordinate must be a RealPoint, got {type(point).__name__}")
    return RealPoint(
        RealUnits(coerce_coordinate(point.x, "real x")),
        RealUnits(coerce_coordinate(point.y, "real y")),
    )


def validate_point_pair(image: Any, real: Any) -> Tuple[ImagePoint, RealPoint]:
    """Validate both halves of a calibration pair.

    Returns:
        Tuple of (ImagePoint, RealPoint) with float components

    Raises:
        InvalidInputError: If any of the four components is not a finite number
    """
    return validate_image_point(image), validate_real_point(real)


def find_duplicate(
    image: ImagePoint,
    real: RealPoint,
    existing: Iterable[Tuple[ImagePoint, RealPoint]],
    pixel_epsilon: float = PIXEL_EPSILON,
    real_epsilon: float = REAL_EPSILON,
) -> Optional[int]:
    """Return the position of an existing pair equal to (image, real) within epsilon.

    Two pairs are duplicates only if BOTH their image and real coordinates
    are within the epsilon thresholds of each other.
    """
    for i, (other_image, other_real) in enumerate(existing):
        pixel_duplicate = (
            abs(image.x - other_image.x) < pixel_epsilon and
            abs(image.y - other_image.y) < pixel_epsilon
        )
        real_duplicate = (
            abs(real.x - other_real.x) < real_epsilon and
            abs(real.y - other_real.y) < real_epsilon
        )
        if pixel_duplicate and real_duplicate:
            return i
    return None


def detect_duplicate_points(
    image: ImagePoint,
    real: RealPoint,
    existing: Iterable[Tuple[ImagePoint, RealPoint]],
    pixel_epsilon: float = PIXEL_EPSILON,
    real_epsilon: float = REAL_EPSILON,
) -> bool:
    """Log a warning when (image, real) duplicates an existing pair.

    Duplicates are allowed (the user may deliberately re-click a landmark),
    but a duplicate among the first three points makes the transform
    degenerate, so it is worth flagging early.

    Returns:
        True if a duplicate was found
    """
    position = find_duplicate(image, real, existing, pixel_epsilon, real_epsilon)
    if position is None:
        return False
    logger.warning(
        f"Reference point image=({image.x:.1f}, {image.y:.1f}) real=({real.x}, {real.y}) "
        f"duplicates existing point {position + 1}"
    )
    return True
