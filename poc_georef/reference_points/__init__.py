"""Reference point storage: calibration pairs and the ordered set behind the transform."""

from poc_georef.reference_points.reference_point import ReferencePoint
from poc_georef.reference_points.reference_set import (
    TRANSFORM_POINT_COUNT,
    DefaultFileSystem,
    FileSystem,
    ReferenceSet,
)

__all__ = ["ReferencePoint", "ReferenceSet", "FileSystem", "DefaultFileSystem", "TRANSFORM_POINT_COUNT"]
