"""
Unit type annotations for type-safe numeric parameters.

This module defines NewType aliases for the units used across the poc_georef
codebase. They are zero-overhead type hints that help catch unit mismatches
(pixels passed where real-world units are expected) at static analysis time
while remaining transparent at runtime.

Usage Example:
    >>> from poc_georef.types import PixelsFloat, RealUnits
    >>>
    >>> def pixel_size(span_px: PixelsFloat, span_real: RealUnits) -> Unitless:
    ...     pass
"""

from typing import NewType

# Image coordinate units
Pixels = NewType('Pixels', int)
"""Image dimensions in whole pixels (e.g., width, height)"""

PixelsFloat = NewType('PixelsFloat', float)
"""Floating-point image coordinates in pixels (e.g., a clicked sub-pixel location)"""

# Real-world units
RealUnits = NewType('RealUnits', float)
"""Real-world coordinate in whatever unit the calibration uses
(decimal degrees, meters, feet). The engine never interprets the unit."""

# Dimensionless quantities
Unitless = NewType('Unitless', float)
"""Dimensionless scalar (e.g., display scale factor, relative area, ratios)"""
