"""
Image Georeferencing Package.

This package calibrates an arbitrary raster image against a real-world
coordinate system from clicked landmarks, then converts between image pixel
coordinates and real-world coordinates in both directions.

The core is a three-point affine engine: the first three reference points of
a ReferenceSet define two 3×3 linear systems per direction, whose solutions
are the forward (real → image) and inverse (image → real) coefficients.

Example Usage:
    >>> from poc_georef import ImagePoint, RealPoint, ReferenceSet, solve
    >>>
    >>> reference_set = ReferenceSet()
    >>> reference_set.add(ImagePoint(10, 10), RealPoint(0, 0))
    0
    >>> reference_set.add(ImagePoint(110, 10), RealPoint(100, 0))
    1
    >>> reference_set.add(ImagePoint(10, 110), RealPoint(0, 100))
    2
    >>> transform = solve(reference_set)
    >>> transform.image_to_real(ImagePoint(60, 60)).rounded(6)
    RealPoint(x=50.0, y=50.0)

Available Classes:
    Core:
        - ImagePoint / RealPoint: Tagged coordinates for the two spaces
        - ReferencePoint: One confirmed image ↔ real correspondence
        - ReferenceSet: Ordered, editable collection of reference points
        - AffineTransform: Forward and inverse coefficient triples
        - solve / map_real_to_image / map_image_to_real: The engine

    Host layer:
        - CalibrationSession: Interactive session state (form, selection, CSV)
        - GeorefConfig: YAML-backed configuration
"""

from poc_georef.affine import (
    AffineCoefficients,
    AffineTransform,
    PointResidual,
    map_image_to_real,
    map_real_to_image,
    residuals,
    solve,
)
from poc_georef.config import GeorefConfig, get_default_config
from poc_georef.coordinates import ImagePoint, RealPoint
from poc_georef.errors import (
    DegenerateConfigurationError,
    GeorefError,
    IndexOutOfRangeError,
    InvalidInputError,
    UnknownPointError,
)
from poc_georef.reference_points import ReferencePoint, ReferenceSet
from poc_georef.session import CalibrationSession, FormMode

__all__ = [
    # Coordinates and storage
    'ImagePoint',
    'RealPoint',
    'ReferencePoint',
    'ReferenceSet',

    # Engine
    'AffineCoefficients',
    'AffineTransform',
    'PointResidual',
    'solve',
    'map_real_to_image',
    'map_image_to_real',
    'residuals',

    # Errors
    'GeorefError',
    'InvalidInputError',
    'IndexOutOfRangeError',
    'UnknownPointError',
    'DegenerateConfigurationError',

    # Host layer
    'CalibrationSession',
    'FormMode',
    'GeorefConfig',
    'get_default_config',
]

__version__ = '0.1.0'
