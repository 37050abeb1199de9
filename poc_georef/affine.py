"""
Three-point affine georeferencing engine.

Derives a 2D affine map between image pixel coordinates and real-world
coordinates from the first three reference points of a ReferenceSet, and
applies it in both directions.

Each direction is an exact fit obtained by solving one 3×3 linear system with
two right-hand sides (one per output axis):

    [x0 y0 1] [a]   [t0]
    [x1 y1 1] [b] = [t1]        output = a·x + b·y + c
    [x2 y2 1] [c]   [t2]

Forward (real → image) uses real coordinates as rows and image coordinates as
right-hand sides; inverse (image → real) is the mirror construction. Both are
solved independently from the same three points, so they are true inverses up
to floating-point error.

Only the first three points are used. Additional points are ignored by the fit;
:func:`residuals` reports how well they agree with it.

Usage Example:
    >>> reference_set = ReferenceSet()
    >>> reference_set.bulk_load([
    ...     ((10, 10), (0, 0)),
    ...     ((110, 10), (100, 0)),
    ...     ((10, 110), (0, 100)),
    ... ])
    3
    >>> transform = solve(reference_set)
    >>> map_image_to_real(transform, ImagePoint(60, 60)).rounded(6)
    RealPoint(x=50.0, y=50.0)
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from poc_georef.coordinates import ImagePoint, RealPoint
from poc_georef.errors import DegenerateConfigurationError
from poc_georef.reference_points import TRANSFORM_POINT_COUNT, ReferencePoint, ReferenceSet
from poc_georef.types import PixelsFloat, RealUnits

logger = logging.getLogger(__name__)

# Minimum |det M| / (longest triangle edge)^2 accepted as non-collinear.
# The measure is scale-free: an equilateral triangle scores ~0.87 whether its
# points are in pixels, meters or decimal degrees.
DEFAULT_MIN_RELATIVE_AREA = 1e-9


@dataclass(frozen=True)
class AffineCoefficients:
    """Coefficients of one output axis: ``output = a·u + b·v + c``."""

    a: float
    b: float
    c: float

    def apply(self, u: float, v: float) -> float:
        return self.a * u + self.b * v + self.c

    def as_tuple(self) -> Tuple[float, float, float]:
        return (self.a, self.b, self.c)


@dataclass(frozen=True)
class AffineTransform:
    """Bidirectional affine map between image space and real-world space.

    Derived on demand from the first three reference points, never stored.

    Attributes:
        forward_x: real → image x coefficients.
        forward_y: real → image y coefficients.
        inverse_x: image → real x coefficients.
        inverse_y: image → real y coefficients.
        source_ids: Ids of the three reference points the map was fitted to.
    """

    forward_x: AffineCoefficients
    forward_y: AffineCoefficients
    inverse_x: AffineCoefficients
    inverse_y: AffineCoefficients
    source_ids: Tuple[str, ...] = ()

    def real_to_image(self, point: RealPoint) -> ImagePoint:
        return ImagePoint(
            PixelsFloat(self.forward_x.apply(point.x, point.y)),
            PixelsFloat(self.forward_y.apply(point.x, point.y)),
        )

    def image_to_real(self, point: ImagePoint) -> RealPoint:
        return RealPoint(
            RealUnits(self.inverse_x.apply(point.x, point.y)),
            RealUnits(self.inverse_y.apply(point.x, point.y)),
        )

    @property
    def forward_matrix(self) -> np.ndarray:
        """3x3 homogeneous matrix mapping [real_x, real_y, 1] to [image_x, image_y, 1]."""
        return np.array(
            [self.forward_x.as_tuple(), self.forward_y.as_tuple(), (0.0, 0.0, 1.0)],
            dtype=np.float64,
        )

    @property
    def inverse_matrix(self) -> np.ndarray:
        """3x3 homogeneous matrix mapping [image_x, image_y, 1] to [real_x, real_y, 1]."""
        return np.array(
            [self.inverse_x.as_tuple(), self.inverse_y.as_tuple(), (0.0, 0.0, 1.0)],
            dtype=np.float64,
        )

    def to_geotransform(self) -> Tuple[float, float, float, float, float, float]:
        """Express the image → real map as a GDAL 6-parameter GeoTransform.

        GDAL's convention is ``Xgeo = GT[0] + P*GT[1] + L*GT[2]`` and
        ``Ygeo = GT[3] + P*GT[4] + L*GT[5]`` with P the column and L the row,
        which is exactly the inverse coefficient layout reordered.

        Note that GDAL references pixel corners; the calibration uses the
        clicked coordinate as-is.
        """
        ix, iy = self.inverse_x, self.inverse_y
        return (ix.c, ix.a, ix.b, iy.c, iy.a, iy.b)


@dataclass(frozen=True)
class PointResidual:
    """Disagreement between a reference point and the current transform."""

    index: int
    point_id: str
    image_error_px: float
    real_error: float
    used_in_fit: bool


def relative_area(points: np.ndarray) -> float:
    """Scale-free collinearity measure for three 2D points.

    Returns |det [[x, y, 1], ...]| divided by the squared longest edge of the
    triangle. The determinant is computed from coordinate differences to avoid
    cancellation when points sit far from the origin (e.g. geographic
    coordinates). Returns 0.0 when all three points coincide.
    """
    d1 = points[1] - points[0]
    d2 = points[2] - points[0]
    det = d1[0] * d2[1] - d2[0] * d1[1]
    edges = (d1, d2, points[2] - points[1])
    longest_sq = max(float(e[0] * e[0] + e[1] * e[1]) for e in edges)
    if longest_sq == 0.0:
        return 0.0
    return abs(float(det)) / longest_sq


def solve_affine_coefficients(
    sources: np.ndarray,
    targets: np.ndarray,
    space: str,
    min_relative_area: float = DEFAULT_MIN_RELATIVE_AREA,
) -> Tuple[AffineCoefficients, AffineCoefficients]:
    """Solve ``M · coeffs = targets`` for both target axes.

    Args:
        sources: 3x2 array of source coordinates (rows of M).
        targets: 3x2 array of target coordinates (the two right-hand sides).
        space: Name of the source space, used in the degeneracy error.
        min_relative_area: Degeneracy threshold (see :func:`relative_area`).

    Returns:
        Tuple of (x coefficients, y coefficients) for the target axes.

    Raises:
        DegenerateConfigurationError: If the source points are collinear or
            coincident, or the solve produced non-finite coefficients.
    """
    sources = np.asarray(sources, dtype=np.float64)
    targets = np.asarray(targets, dtype=np.float64)
    if sources.shape != (3, 2) or targets.shape != (3, 2):
        raise ValueError(
            f"Expected 3x2 source and target arrays, got {sources.shape} and {targets.shape}"
        )

    area = relative_area(sources)
    if not area >= min_relative_area:
        raise DegenerateConfigurationError(space, area, min_relative_area)

    # Solve in coordinates centered on the source centroid, which keeps M
    # well conditioned for large offsets, then move the constant term back.
    centroid = sources.mean(axis=0)
    centered = sources - centroid
    M = np.column_stack([centered, np.ones(3)])
    try:
        solution = np.linalg.solve(M, targets)
    except np.linalg.LinAlgError as e:
        raise DegenerateConfigurationError(space, area, min_relative_area) from e

    if not np.all(np.isfinite(solution)):
        raise DegenerateConfigurationError(space, area, min_relative_area)

    coefficients = []
    for axis in range(2):
        a, b, c_centered = solution[:, axis]
        c = c_centered - a * centroid[0] - b * centroid[1]
        coefficients.append(AffineCoefficients(float(a), float(b), float(c)))

    logger.debug(f"Solved {space}-space affine fit (relative area {area:.3g}): {coefficients}")
    return coefficients[0], coefficients[1]


def solve_from_points(
    points: Sequence[ReferencePoint],
    min_relative_area: float = DEFAULT_MIN_RELATIVE_AREA,
) -> AffineTransform:
    """Fit a transform to exactly the given three reference points.

    Raises:
        ValueError: If ``points`` does not hold exactly three points.
        DegenerateConfigurationError: If the points are collinear in either space.
    """
    if len(points) != TRANSFORM_POINT_COUNT:
        raise ValueError(f"Need exactly {TRANSFORM_POINT_COUNT} points, got {len(points)}")

    image = np.array([[p.image.x, p.image.y] for p in points], dtype=np.float64)
    real = np.array([[p.real.x, p.real.y] for p in points], dtype=np.float64)

    forward_x, forward_y = solve_affine_coefficients(real, image, "real", min_relative_area)
    inverse_x, inverse_y = solve_affine_coefficients(image, real, "image", min_relative_area)

    return AffineTransform(
        forward_x=forward_x,
        forward_y=forward_y,
        inverse_x=inverse_x,
        inverse_y=inverse_y,
        source_ids=tuple(p.id for p in points),
    )


def solve(
    reference_set: ReferenceSet,
    min_relative_area: float = DEFAULT_MIN_RELATIVE_AREA,
) -> Optional[AffineTransform]:
    """Derive the current transform from the first three reference points.

    Args:
        reference_set: Calibration pairs; only the first three are used.
        min_relative_area: Degeneracy threshold (see :func:`relative_area`).

    Returns:
        The AffineTransform, or None while fewer than three points exist
        (a normal state during initial calibration).

    Raises:
        DegenerateConfigurationError: If the first three points are collinear
            in image or real-world space.
    """
    if len(reference_set) < TRANSFORM_POINT_COUNT:
        logger.debug(
            f"Transform unavailable: {len(reference_set)} of {TRANSFORM_POINT_COUNT} "
            f"reference points"
        )
        return None
    return solve_from_points(reference_set.first(TRANSFORM_POINT_COUNT), min_relative_area)


def map_real_to_image(transform: AffineTransform, real_point: RealPoint) -> ImagePoint:
    """Map a real-world coordinate to image pixels using the forward coefficients."""
    return transform.real_to_image(real_point)


def map_image_to_real(transform: AffineTransform, image_point: ImagePoint) -> RealPoint:
    """Map an image coordinate to real-world units using the inverse coefficients."""
    return transform.image_to_real(image_point)


def residuals(transform: AffineTransform, reference_set: ReferenceSet) -> List[PointResidual]:
    """Report how far each reference point is from the transform's prediction.

    Points used for the fit have (near) zero residual; larger residuals on the
    remaining points indicate inconsistent calibration data or a non-affine
    image.
    """
    report = []
    for index, point in enumerate(reference_set):
        predicted_image = transform.real_to_image(point.real)
        predicted_real = transform.image_to_real(point.image)
        report.append(
            PointResidual(
                index=index,
                point_id=point.id,
                image_error_px=math.hypot(predicted_image.x - point.image.x, predicted_image.y - point.image.y),
                real_error=math.hypot(predicted_real.x - point.real.x, predicted_real.y - point.real.y),
                used_in_fit=point.id in transform.source_ids,
            )
        )
    return report
