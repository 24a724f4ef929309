"""Hit-testing of box parts under a pointer."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Iterable, Optional

from PyQt6.QtCore import QPointF

from .models import CORNER_PARTS, Box, BoxPart, distance

if TYPE_CHECKING:
    from .box_store import BoxHandle, BoxStore

logger = logging.getLogger(__name__)

# Pixel distance within which a pointer is considered on a corner or edge
DEFAULT_CATCH_RADIUS = 20.0


@dataclass(frozen=True)
class HitResult:
    """A box part found under the pointer."""

    index: int
    part: BoxPart
    handle: Optional[BoxHandle] = None


def _edge_hit_distance(
    box: Box,
    part: BoxPart,
    point: QPointF,
    half_radius: float
) -> Optional[float]:
    """
    Distance from the point to an edge midpoint, if the point is on the edge.

    The point must be within half the catch radius of the edge line and
    inside the edge's perpendicular span.
    """
    x, y = point.x(), point.y()

    if part in (BoxPart.EDGE_LEFT, BoxPart.EDGE_RIGHT):
        line = box.x_min if part == BoxPart.EDGE_LEFT else box.x_max
        on_edge = abs(line - x) < half_radius and box.y_min <= y <= box.y_max
    else:
        line = box.y_min if part == BoxPart.EDGE_TOP else box.y_max
        on_edge = abs(line - y) < half_radius and box.x_min <= x <= box.x_max

    if not on_edge:
        return None
    return distance(point, box.edge_midpoint(part))


def classify(
    box: Box,
    point: QPointF,
    catch_radius: float = DEFAULT_CATCH_RADIUS
) -> Optional[BoxPart]:
    """
    Classify a point relative to a box.

    Corner and edge catch zones overlap near the corners, so every candidate
    is scored by its distance to the part's anchor (zero for the interior,
    the corner itself, or the edge midpoint) and the closest one wins. Ties
    keep the earlier candidate.

    Args:
        box: Box to test against
        point: Pointer position in image coordinates
        catch_radius: Corner catch distance; edges use half of it

    Returns:
        The part under the point, or None
    """
    best: Optional[BoxPart] = None
    best_distance = float("inf")

    if box.contains(point):
        best = BoxPart.CENTRAL_AREA
        best_distance = 0.0

    for part in CORNER_PARTS:
        d = distance(point, box.corner(part))
        if d < catch_radius and d < best_distance:
            best = part
            best_distance = d

    half_radius = catch_radius / 2
    for part in (BoxPart.EDGE_LEFT, BoxPart.EDGE_RIGHT, BoxPart.EDGE_TOP, BoxPart.EDGE_BOTTOM):
        d = _edge_hit_distance(box, part, point, half_radius)
        if d is not None and d < best_distance:
            best = part
            best_distance = d

    return best


def find_hit(
    boxes: Iterable[Box],
    point: QPointF,
    catch_radius: float = DEFAULT_CATCH_RADIUS
) -> Optional[HitResult]:
    """
    Find the first box in collection order with a part under the point.

    Earlier boxes take priority when boxes overlap.

    Args:
        boxes: Boxes in collection order
        point: Pointer position in image coordinates
        catch_radius: Catch radius passed to classify()

    Returns:
        HitResult for the first match, or None
    """
    for index, box in enumerate(boxes):
        part = classify(box, point, catch_radius)
        if part is not None:
            return HitResult(index=index, part=part)
    return None


def find_hit_in_store(
    store: BoxStore,
    point: QPointF,
    catch_radius: float = DEFAULT_CATCH_RADIUS
) -> Optional[HitResult]:
    """Run find_hit() over a BoxStore, attaching the handle of the hit box."""
    hit = find_hit(store, point, catch_radius)
    if hit is None:
        return None
    return replace(hit, handle=store.handle_at(hit.index))
