"""Data models for Boxmark annotations."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from PyQt6.QtCore import QPointF

from .errors import FormatError

logger = logging.getLogger(__name__)


class BoxPart(str, Enum):
    """Region of a box under the pointer."""

    CENTRAL_AREA = "central_area"
    CORNER_TOP_LEFT = "corner_top_left"
    CORNER_TOP_RIGHT = "corner_top_right"
    CORNER_BOTTOM_LEFT = "corner_bottom_left"
    CORNER_BOTTOM_RIGHT = "corner_bottom_right"
    EDGE_LEFT = "edge_left"
    EDGE_RIGHT = "edge_right"
    EDGE_TOP = "edge_top"
    EDGE_BOTTOM = "edge_bottom"

    @property
    def is_corner(self) -> bool:
        return self in CORNER_PARTS

    @property
    def is_edge(self) -> bool:
        return self in EDGE_PARTS

    @property
    def is_horizontal_edge(self) -> bool:
        """True for the top and bottom edges, which move along y."""
        return self in (BoxPart.EDGE_TOP, BoxPart.EDGE_BOTTOM)


CORNER_PARTS = (
    BoxPart.CORNER_TOP_LEFT,
    BoxPart.CORNER_TOP_RIGHT,
    BoxPart.CORNER_BOTTOM_RIGHT,
    BoxPart.CORNER_BOTTOM_LEFT,
)

EDGE_PARTS = (
    BoxPart.EDGE_LEFT,
    BoxPart.EDGE_RIGHT,
    BoxPart.EDGE_TOP,
    BoxPart.EDGE_BOTTOM,
)

_OPPOSITE_CORNER = {
    BoxPart.CORNER_TOP_LEFT: BoxPart.CORNER_BOTTOM_RIGHT,
    BoxPart.CORNER_BOTTOM_RIGHT: BoxPart.CORNER_TOP_LEFT,
    BoxPart.CORNER_TOP_RIGHT: BoxPart.CORNER_BOTTOM_LEFT,
    BoxPart.CORNER_BOTTOM_LEFT: BoxPart.CORNER_TOP_RIGHT,
}


@dataclass
class Box:
    """
    Data model for a single annotated rectangle.

    Geometry is held in center/size form so that width and height stay
    non-negative whichever way a corner or edge is dragged. Coordinates are
    in image pixels with the origin at the top-left.
    """

    center_x: float = math.nan
    center_y: float = math.nan
    width: float = math.nan
    height: float = math.nan
    class_id: int = 0

    @classmethod
    def from_center(
        cls,
        center_x: float,
        center_y: float,
        width: float,
        height: float,
        class_id: int = 0
    ) -> Box:
        """Create a box from center coordinates and size."""
        return cls(center_x, center_y, abs(width), abs(height), class_id)

    @classmethod
    def empty(cls, class_id: int = 0) -> Box:
        """Create a box with undefined geometry, awaiting its first extent."""
        return cls(class_id=class_id)

    # === Extents ===

    @property
    def x_min(self) -> float:
        return self.center_x - self.width / 2

    @property
    def x_max(self) -> float:
        return self.center_x + self.width / 2

    @property
    def y_min(self) -> float:
        return self.center_y - self.height / 2

    @property
    def y_max(self) -> float:
        return self.center_y + self.height / 2

    def center(self) -> QPointF:
        return QPointF(self.center_x, self.center_y)

    def size(self) -> Tuple[float, float]:
        return (self.width, self.height)

    def is_degenerate(self) -> bool:
        """True if width or height is zero or undefined."""
        return not (self.width > 0 and self.height > 0)

    # === Corners and edges ===

    def top_left(self) -> QPointF:
        return QPointF(self.x_min, self.y_min)

    def top_right(self) -> QPointF:
        return QPointF(self.x_max, self.y_min)

    def bottom_right(self) -> QPointF:
        return QPointF(self.x_max, self.y_max)

    def bottom_left(self) -> QPointF:
        return QPointF(self.x_min, self.y_max)

    def corners(self) -> Tuple[QPointF, QPointF, QPointF, QPointF]:
        """
        Get the four corners.

        Returns:
            Tuple of (top_left, top_right, bottom_right, bottom_left)
        """
        return (self.top_left(), self.top_right(), self.bottom_right(), self.bottom_left())

    def corner(self, part: BoxPart) -> QPointF:
        """Get the corner named by a corner part."""
        if part == BoxPart.CORNER_TOP_LEFT:
            return self.top_left()
        if part == BoxPart.CORNER_TOP_RIGHT:
            return self.top_right()
        if part == BoxPart.CORNER_BOTTOM_RIGHT:
            return self.bottom_right()
        if part == BoxPart.CORNER_BOTTOM_LEFT:
            return self.bottom_left()
        raise ValueError(f"Not a corner part: {part}")

    def opposite_corner(self, part: BoxPart) -> QPointF:
        """Get the corner diagonally opposite to the given corner part."""
        if part not in _OPPOSITE_CORNER:
            raise ValueError(f"Not a corner part: {part}")
        return self.corner(_OPPOSITE_CORNER[part])

    def edge_midpoint(self, part: BoxPart) -> QPointF:
        """Get the midpoint of the edge named by an edge part."""
        if part == BoxPart.EDGE_LEFT:
            return QPointF(self.x_min, self.center_y)
        if part == BoxPart.EDGE_RIGHT:
            return QPointF(self.x_max, self.center_y)
        if part == BoxPart.EDGE_TOP:
            return QPointF(self.center_x, self.y_min)
        if part == BoxPart.EDGE_BOTTOM:
            return QPointF(self.center_x, self.y_max)
        raise ValueError(f"Not an edge part: {part}")

    def contains(self, point: QPointF) -> bool:
        """Check if a point lies inside the box, borders included."""
        return (
            self.x_min <= point.x() <= self.x_max and
            self.y_min <= point.y() <= self.y_max
        )

    # === Mutation ===

    def set_from_corners(self, p1: QPointF, p2: QPointF) -> None:
        """
        Span the box exactly between two points, in any order.

        Args:
            p1: One corner
            p2: The diagonally opposite corner
        """
        self.center_x = (p1.x() + p2.x()) / 2
        self.center_y = (p1.y() + p2.y()) / 2
        self.width = abs(p1.x() - p2.x())
        self.height = abs(p1.y() - p2.y())

    def set_edge(self, part: BoxPart, value: float) -> None:
        """
        Move a single edge, keeping the opposite edge fixed.

        Args:
            part: Edge to move
            value: New x (left/right) or y (top/bottom) coordinate
        """
        if part in (BoxPart.EDGE_LEFT, BoxPart.EDGE_RIGHT):
            fixed = self.x_max if part == BoxPart.EDGE_LEFT else self.x_min
            self.width = abs(fixed - value)
            self.center_x = (fixed + value) / 2
        elif part in (BoxPart.EDGE_TOP, BoxPart.EDGE_BOTTOM):
            fixed = self.y_max if part == BoxPart.EDGE_TOP else self.y_min
            self.height = abs(fixed - value)
            self.center_y = (fixed + value) / 2
        else:
            raise ValueError(f"Not an edge part: {part}")

    def set_center(self, point: QPointF) -> None:
        """Translate the box so its center lands on a point."""
        self.center_x = point.x()
        self.center_y = point.y()

    def to_normalized_label(
        self,
        img_width: int,
        img_height: int
    ) -> Tuple[int, float, float, float, float]:
        """
        Convert the box to YOLO normalized form.

        Args:
            img_width: Image width in pixels
            img_height: Image height in pixels

        Returns:
            Tuple of (class_id, x_center, y_center, width, height), the last
            four normalized to [0, 1] for a box inside the image

        Raises:
            FormatError: If the image dimensions are not positive
        """
        if not (img_width > 0 and img_height > 0):
            raise FormatError(f"Degenerate image dimensions: {img_width}x{img_height}")

        return (
            self.class_id,
            self.center_x / img_width,
            self.center_y / img_height,
            self.width / img_width,
            self.height / img_height,
        )


def distance(p1: QPointF, p2: QPointF) -> float:
    """Euclidean distance between two points."""
    return math.hypot(p1.x() - p2.x(), p1.y() - p2.y())


def clamp_class_id(class_id: Optional[int]) -> int:
    """Coerce a class id to a non-negative integer."""
    if class_id is None or class_id < 0:
        logger.warning(f"Invalid class id {class_id}, using 0")
        return 0
    return int(class_id)
