#!/usr/bin/env python3
"""
Calibration session: the host-facing boundary of the georeferencing core.

A CalibrationSession owns everything an interactive calibration needs: one
ReferenceSet, the loaded image's dimensions, the display viewport, the state
of the add/edit form, the export selection and any staged CSV rows.

Core errors (invalid input, stale ids, degenerate point configurations) are
caught here, logged, and turned into ``None``/``False`` results so that the
host never has to deal with an exception to keep running. Without a
transform, manual entry of real-world coordinates still works.

Typical workflow:
    >>> session = CalibrationSession()
    >>> session.load_image("land.jpg")
    >>> session.stage_csv("survey.csv")
    >>> session.load_staged_rows()          # at least three pairs
    3
    >>> estimate = session.click(412.0, 233.5)   # display coordinates
    >>> session.save_real_coordinates(estimate.x, estimate.y)
    >>> session.toggle_selection(session.reference_set[3].id)
    >>> session.export_selected("selected_points.csv")

Design Principles:
    - Edit mode and the export selection hold stable point ids, not indices,
      so deleting another point never retargets them
    - The transform is recomputed on demand; the last successfully solved
      transform is kept separately for hosts that want to keep showing it
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, List, Optional, Set, Union

from poc_georef.affine import AffineTransform, solve
from poc_georef.config import GeorefConfig, get_default_config
from poc_georef.coordinates import ImagePoint, RealPoint
from poc_georef.errors import DegenerateConfigurationError, GeorefError
from poc_georef.image_source import ImageInfo
from poc_georef.reference_points import TRANSFORM_POINT_COUNT, ReferencePoint, ReferenceSet
from poc_georef.tabular import Row, read_rows, rows_to_pairs, write_rows
from poc_georef.types import RealUnits
from poc_georef.validation import coerce_coordinate
from poc_georef.viewport import DisplayViewport

logger = logging.getLogger(__name__)


class FormMode(Enum):
    """What saving the coordinate form does."""

    ADD = "add"
    """Append a new reference point at the pending image location."""

    EDIT = "edit"
    """Replace the real-world value of an existing point."""


@dataclass(frozen=True)
class Marker:
    """Overlay marker for one reference point, in display coordinates.

    Attributes:
        label: 1-based position in the reference set.
        point_id: Stable id of the reference point.
        display_x: Marker x on screen.
        display_y: Marker y on screen.
        selected: Whether the point is selected for export.
    """

    label: int
    point_id: str
    display_x: float
    display_y: float
    selected: bool


class CalibrationSession:
    """
    Session state for one interactive calibration.

    Attributes:
        config: Runtime configuration.
        reference_set: The calibration pairs.
        image: Dimensions of the loaded image (None until one is loaded).
        viewport: Display scaling in effect.
        mode: Current form mode.
        editing_id: Id of the point being edited (EDIT mode only).
        pending_image_point: Image location awaiting a real-world value.
        selection: Ids of points selected for export.
        last_good_transform: Most recent transform that solved successfully.
    """

    def __init__(
        self,
        reference_set: Optional[ReferenceSet] = None,
        config: Optional[GeorefConfig] = None,
    ):
        self.config = config if config is not None else get_default_config()
        self.reference_set = reference_set if reference_set is not None else ReferenceSet()
        self.image: Optional[ImageInfo] = None
        self.viewport = DisplayViewport()
        self.mode = FormMode.ADD
        self.editing_id: Optional[str] = None
        self.pending_image_point: Optional[ImagePoint] = None
        self.selection: Set[str] = set()
        self.last_good_transform: Optional[AffineTransform] = None
        self._staged_rows: List[Row] = []

    # Image and display

    def set_image(
        self,
        image: ImageInfo,
        window_width: Optional[float] = None,
        window_height: Optional[float] = None,
    ) -> DisplayViewport:
        """Record the loaded image and refit the viewport to the host window.

        Without window dimensions, or when the window has no usable size
        (e.g. minimized), the image is shown at scale 1.
        """
        self.image = image
        if window_width is not None and window_height is not None:
            try:
                self.viewport = DisplayViewport.fit_window(
                    image,
                    window_width,
                    window_height,
                    self.config.max_display_width_fraction,
                    self.config.max_display_height_fraction,
                )
            except GeorefError as e:
                logger.warning(f"Cannot fit image to a {window_width}x{window_height} window: {e}")
                self.viewport = DisplayViewport()
        else:
            self.viewport = DisplayViewport()
        logger.info(f"Image set to {image.width}x{image.height}, display scale {self.viewport.scale:.4f}")
        return self.viewport

    def load_image(
        self,
        path: Union[str, Path],
        window_width: Optional[float] = None,
        window_height: Optional[float] = None,
    ) -> Optional[ImageInfo]:
        """Load an image from disk. Returns None (and logs) if it cannot be read.

        Existing reference points are kept; they are redrawn on the new image.
        """
        try:
            image = ImageInfo.from_file(path)
        except (FileNotFoundError, ValueError) as e:
            logger.warning(f"Could not load image: {e}")
            return None
        self.set_image(image, window_width, window_height)
        return image

    def markers(self) -> List[Marker]:
        """Overlay markers for every reference point, labelled 1..n."""
        markers = []
        for index, point in enumerate(self.reference_set):
            display_x, display_y = self.viewport.image_to_display(point.image)
            markers.append(Marker(
                label=index + 1,
                point_id=point.id,
                display_x=display_x,
                display_y=display_y,
                selected=point.id in self.selection,
            ))
        return markers

    # Transform

    def transform(self) -> Optional[AffineTransform]:
        """Current transform, or None when unavailable or degenerate.

        A successful solve updates :attr:`last_good_transform`; a degenerate
        configuration leaves it untouched.
        """
        try:
            transform = solve(self.reference_set, self.config.min_relative_area)
        except DegenerateConfigurationError as e:
            logger.warning(str(e))
            return None
        if transform is not None:
            self.last_good_transform = transform
        return transform

    def image_to_real(self, point: ImagePoint) -> Optional[RealPoint]:
        transform = self.transform()
        return transform.image_to_real(point) if transform is not None else None

    def real_to_image(self, point: RealPoint) -> Optional[ImagePoint]:
        transform = self.transform()
        return transform.real_to_image(point) if transform is not None else None

    # Add / edit form

    def click(self, display_x: float, display_y: float) -> Optional[RealPoint]:
        """Handle a click on the displayed image.

        Calibration starts from imported points, so clicks are refused until
        at least three reference points exist. Outside edit mode the form is
        reset to add a new point.

        Returns:
            The pre-filled real-world estimate for the clicked location, or
            None if the click was refused or no transform is available.
        """
        if len(self.reference_set) < TRANSFORM_POINT_COUNT:
            logger.warning(
                f"Load at least {TRANSFORM_POINT_COUNT} reference points before clicking "
                f"({len(self.reference_set)} loaded)"
            )
            return None

        if self.mode is not FormMode.EDIT:
            self.editing_id = None

        self.pending_image_point = self.viewport.display_to_image(display_x, display_y)
        logger.debug(
            f"Clicked image point ({self.pending_image_point.x:.1f}, {self.pending_image_point.y:.1f})"
        )
        return self.prefill()

    def prefill(self) -> Optional[RealPoint]:
        """Real-world estimate for the pending image point, rounded for the form."""
        if self.pending_image_point is None:
            logger.warning("No image point selected")
            return None
        estimate = self.image_to_real(self.pending_image_point)
        if estimate is None:
            return None
        return estimate.rounded(self.config.prefill_decimals)

    def begin_edit(self, point_id: str) -> Optional[ReferencePoint]:
        """Switch the form to edit the point with ``point_id``.

        The point's image location becomes the pending point, so saving
        without another click keeps it unchanged.

        Returns:
            The point being edited (for pre-filling the form), or None if the
            id is unknown.
        """
        try:
            point = self.reference_set.get(point_id)
        except GeorefError as e:
            logger.warning(str(e))
            return None
        self.mode = FormMode.EDIT
        self.editing_id = point_id
        self.pending_image_point = point.image
        return point

    def save_real_coordinates(self, real_x: Any, real_y: Any) -> Optional[ReferencePoint]:
        """Save the form: add a new point or update the one being edited.

        Args:
            real_x: Real-world x as entered (number or numeric string).
            real_y: Real-world y as entered (number or numeric string).

        Returns:
            The stored point, or None if the values were invalid, no image
            point was pending, or the edited point no longer exists.
        """
        try:
            real = RealPoint(
                RealUnits(coerce_coordinate(real_x, "real x")),
                RealUnits(coerce_coordinate(real_y, "real y")),
            )
        except GeorefError as e:
            logger.warning(f"Please enter valid real-world coordinates: {e}")
            return None

        if self.pending_image_point is None:
            logger.warning("No image point selected")
            return None

        try:
            if self.mode is FormMode.EDIT and self.editing_id is not None:
                saved = self.reference_set.edit_by_id(self.editing_id, self.pending_image_point, real)
            else:
                index = self.reference_set.add(self.pending_image_point, real)
                saved = self.reference_set[index]
        except GeorefError as e:
            logger.warning(f"Could not save reference point: {e}")
            return None

        self.cancel_form()
        return saved

    def cancel_form(self) -> None:
        """Discard the pending point and return to add mode."""
        self.pending_image_point = None
        self.mode = FormMode.ADD
        self.editing_id = None

    # Deletion and selection

    def delete_point(self, point_id: str) -> bool:
        """Delete a point by id. Returns False if the id is unknown."""
        try:
            self.reference_set.delete_by_id(point_id)
        except GeorefError as e:
            logger.warning(str(e))
            return False
        self.selection.discard(point_id)
        if self.editing_id == point_id:
            self.cancel_form()
        return True

    def clear(self) -> None:
        """Remove every point and reset form and selection state."""
        self.reference_set.clear()
        self.selection.clear()
        self._staged_rows = []
        self.cancel_form()

    def toggle_selection(self, point_id: str) -> bool:
        """Toggle a point's export selection.

        Returns:
            True if the point is now selected, False if it is now unselected
            or the id is unknown.
        """
        if point_id in self.selection:
            self.selection.discard(point_id)
            return False
        if point_id not in self.reference_set:
            logger.warning(f"Cannot select unknown reference point id {point_id!r}")
            return False
        self.selection.add(point_id)
        return True

    @property
    def has_selection(self) -> bool:
        """True if any existing point is selected (hosts show the export button)."""
        return bool(self.selected_points())

    def selected_points(self) -> List[ReferencePoint]:
        """Selected points in reference-set order; stale ids are skipped."""
        return self.reference_set.select_ids(self.selection)

    # CSV import / export

    def stage_csv(self, source: Union[str, Path]) -> int:
        """Parse a CSV file (or text) and hold its rows until :meth:`load_staged_rows`.

        Returns:
            Number of rows staged (0 if the file could not be read).
        """
        try:
            self._staged_rows = read_rows(source)
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Could not read CSV: {e}")
            self._staged_rows = []
        return len(self._staged_rows)

    @property
    def staged_row_count(self) -> int:
        return len(self._staged_rows)

    def load_staged_rows(self) -> int:
        """Add the staged CSV rows as reference points.

        Rows with a missing or non-numeric field are skipped. The staged rows
        are kept, so loading twice appends them twice.

        Returns:
            Number of points added.
        """
        if not self._staged_rows:
            logger.warning("No CSV data to load. Stage a CSV file first.")
            return 0
        pairs = rows_to_pairs(self._staged_rows, self.config.import_columns)
        return self.reference_set.bulk_load(pairs)

    def export_selected(self, path: Optional[Union[str, Path]] = None) -> str:
        """CSV of the selected points, written to ``path`` when given."""
        return write_rows(self.selected_points(), path, self.config.export_columns)

    # Persistence

    def save(self, path: Union[str, Path]) -> None:
        """Persist the reference set to JSON."""
        self.reference_set.save(path)

    @classmethod
    def load(cls, path: Union[str, Path], config: Optional[GeorefConfig] = None) -> CalibrationSession:
        """Create a session from a saved reference set.

        Raises:
            FileNotFoundError: If the file doesn't exist.
            ValueError: If the file is not a valid reference set.
        """
        return cls(reference_set=ReferenceSet.load(path), config=config)
