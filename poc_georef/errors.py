"""Exception hierarchy for the georeferencing core.

Every error raised by poc_georef derives from :class:`GeorefError`, so a host
can catch the whole family at its UI boundary. Each class also derives from
the matching builtin (``ValueError``, ``IndexError``, ``KeyError``) so plain
Python callers keep working.

An unavailable transform (fewer than three reference points) is not an error:
``poc_georef.affine.solve`` returns ``None`` for it.
"""

from __future__ import annotations


class GeorefError(Exception):
    """Base class for all georeferencing errors."""


class InvalidInputError(GeorefError, ValueError):
    """A coordinate was missing, non-numeric, NaN or infinite."""


class IndexOutOfRangeError(GeorefError, IndexError):
    """A positional reference did not match any stored reference point."""

    def __init__(self, index: int, size: int):
        self.index = index
        self.size = size
        super().__init__(f"Reference point index {index} out of range (set has {size} points)")


class UnknownPointError(IndexOutOfRangeError, KeyError):
    """A stable point id did not match any stored reference point."""

    def __init__(self, point_id: str, size: int):
        self.point_id = point_id
        self.index = -1
        self.size = size
        GeorefError.__init__(self, f"Unknown reference point id {point_id!r} (set has {size} points)")

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return str(self.args[0])


class DegenerateConfigurationError(GeorefError, ValueError):
    """The three calibration points are collinear or coincident.

    Attributes:
        space: Which coordinate space was degenerate, ``"image"`` or ``"real"``.
        relative_area: Scale-free measure of how far the points are from
            collinear (0 means exactly collinear).
    """

    def __init__(self, space: str, relative_area: float, threshold: float):
        self.space = space
        self.relative_area = relative_area
        self.threshold = threshold
        super().__init__(
            f"The first three reference points are collinear in {space} space "
            f"(relative area {relative_area:.3g} < {threshold:.3g}). "
            f"Pick a third point that is not on the line through the other two."
        )
