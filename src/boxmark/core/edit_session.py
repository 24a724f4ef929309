"""Box editing state machine driven by pointer events."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterable, List, Optional, Union

from PyQt6.QtCore import QPointF, Qt

from .box_store import BoxHandle, BoxStore
from .hit_testing import DEFAULT_CATCH_RADIUS, HitResult, find_hit_in_store
from .models import Box, BoxPart, clamp_class_id

logger = logging.getLogger(__name__)


# === Edit modes ===

@dataclass(frozen=True)
class Idle:
    """No interaction in progress."""


@dataclass(frozen=True)
class Creating:
    """
    A new box is spanned from an anchor corner.

    A press-drag-release spans it in one gesture. Creation started with
    begin_creation() waits for two clicks instead: the first release only
    places the anchor, the second click sets the opposite corner.
    """

    target: BoxHandle
    anchor: Optional[QPointF] = None
    awaiting_second_click: bool = False


@dataclass(frozen=True)
class ResizingCorner:
    """One corner is dragged while the opposite corner stays put."""

    target: BoxHandle
    part: BoxPart
    fixed_corner: QPointF


@dataclass(frozen=True)
class ResizingEdge:
    """One edge is dragged while the other three stay put."""

    target: BoxHandle
    part: BoxPart


@dataclass(frozen=True)
class Moving:
    """The whole box follows the pointer, keeping the grab offset from its center."""

    target: BoxHandle
    grab_offset: QPointF


EditMode = Union[Idle, Creating, ResizingCorner, ResizingEdge, Moving]

IDLE = Idle()


# === Input events ===

class PointerEventKind(str, Enum):
    """Kind of pointer event fed into an EditSession."""

    DOWN = "down"
    MOVE = "move"
    UP = "up"


@dataclass(frozen=True)
class PointerEvent:
    """
    Pointer event in image coordinates.

    The position has already been mapped from widget to image space;
    within_image tells whether it fell inside the image bounds.
    """

    kind: PointerEventKind
    position: QPointF
    button: Qt.MouseButton = Qt.MouseButton.NoButton
    within_image: bool = True


class EditSession:
    """
    Interaction engine for the boxes of a single image.

    Owns the box collection, the current edit mode, the selection and the
    hover result. Every call runs to completion on the caller's thread.
    """

    PRIMARY_BUTTON = Qt.MouseButton.LeftButton

    def __init__(
        self,
        boxes: Optional[Iterable[Box]] = None,
        catch_radius: float = DEFAULT_CATCH_RADIUS,
        active_class_id: int = 0
    ) -> None:
        """
        Initialize the session.

        Args:
            boxes: Initial boxes, e.g. decoded from a label file
            catch_radius: Corner/edge catch radius in image pixels
            active_class_id: Class id given to newly created boxes
        """
        self.store = BoxStore(boxes)
        self.catch_radius = catch_radius
        self.active_class_id = clamp_class_id(active_class_id)
        self.mode: EditMode = IDLE
        self.selected: Optional[BoxHandle] = None
        self.hover: Optional[HitResult] = None

    # === Read access for renderers ===

    @property
    def boxes(self) -> List[Box]:
        """Boxes in collection order."""
        return self.store.boxes()

    @property
    def is_editing(self) -> bool:
        return not isinstance(self.mode, Idle)

    @property
    def selected_box(self) -> Optional[Box]:
        return self.store.get(self.selected)

    @property
    def selected_index(self) -> Optional[int]:
        return self.store.index_of(self.selected)

    @property
    def target(self) -> Optional[BoxHandle]:
        """Handle of the box under active interaction."""
        if isinstance(self.mode, Idle):
            return None
        return self.mode.target

    @property
    def target_index(self) -> Optional[int]:
        return self.store.index_of(self.target)

    # === Pointer events ===

    def pointer_down(self, point: QPointF) -> None:
        """Start an interaction, or place the anchor of a pending creation."""
        self.selected = None
        mode = self.mode

        if isinstance(mode, Idle):
            self._start_interaction(point)
        elif isinstance(mode, Creating):
            box = self._resolve_target()
            if box is None:
                return
            if mode.anchor is None:
                self.mode = replace(mode, anchor=QPointF(point))
            else:
                box.set_from_corners(mode.anchor, point)

    def pointer_move(self, point: QPointF) -> None:
        """Update the geometry of the box under interaction."""
        self.update_hover(point)
        mode = self.mode
        if isinstance(mode, Idle):
            return

        box = self._resolve_target()
        if box is None:
            return

        if isinstance(mode, Creating):
            if mode.anchor is not None:
                box.set_from_corners(mode.anchor, point)
        elif isinstance(mode, ResizingCorner):
            box.set_from_corners(mode.fixed_corner, point)
        elif isinstance(mode, ResizingEdge):
            value = point.y() if mode.part.is_horizontal_edge else point.x()
            box.set_edge(mode.part, value)
        elif isinstance(mode, Moving):
            box.set_center(point - mode.grab_offset)

    def pointer_up(self, point: QPointF) -> None:
        """Finish the current interaction."""
        mode = self.mode
        if isinstance(mode, Idle):
            return

        if isinstance(mode, Creating):
            if mode.anchor is None:
                return
            box = self.store.get(mode.target)
            if box is not None and box.is_degenerate() and mode.awaiting_second_click:
                # First click placed the anchor, the next click finishes the box
                self.mode = replace(mode, awaiting_second_click=False)
                self.update_hover(point)
                return
            if box is not None and box.is_degenerate():
                self.store.remove(mode.target)
                logger.debug("Discarded box without extent")
            elif box is not None:
                logger.debug(f"Created box {box}")

        self.mode = IDLE
        self.update_hover(point)

    def process(self, events: Iterable[PointerEvent]) -> None:
        """
        Feed a batch of pointer events collected since the last frame.

        Only the primary button drives the session. Presses outside the
        image are dropped; releases and moves are always delivered so a
        drag that leaves the image still ends.
        """
        for event in events:
            if event.kind == PointerEventKind.MOVE:
                self.pointer_move(event.position)
            elif event.button != self.PRIMARY_BUTTON:
                continue
            elif event.kind == PointerEventKind.DOWN:
                if event.within_image:
                    self.pointer_down(event.position)
            elif event.kind == PointerEventKind.UP:
                self.pointer_up(event.position)

    def update_hover(self, point: QPointF) -> Optional[HitResult]:
        """Refresh and return the box part under the pointer."""
        self.hover = find_hit_in_store(self.store, point, self.catch_radius)
        return self.hover

    # === Commands ===

    def begin_creation(self) -> Optional[BoxHandle]:
        """
        Start a box whose anchor is placed by the next pointer press.

        Returns:
            Handle of the pending box, or None if an edit is already active
        """
        if self.is_editing:
            return None
        self.selected = None
        handle = self.store.add(Box.empty(self.active_class_id))
        self.mode = Creating(target=handle, anchor=None, awaiting_second_click=True)
        return handle

    def cancel(self) -> None:
        """Abort the current interaction, dropping a box still being created."""
        mode = self.mode
        if isinstance(mode, Creating):
            self.store.remove(mode.target)
        self.mode = IDLE

    def delete(self, handle: Optional[BoxHandle]) -> bool:
        """
        Delete a box.

        An interaction targeting the deleted box is aborted.

        Args:
            handle: Handle of the box to delete

        Returns:
            True if a box was deleted
        """
        if self.store.remove(handle) is None:
            return False

        if self.selected == handle:
            self.selected = None
        if self.target == handle:
            logger.info("Deleted box was being edited, aborting edit")
            self.mode = IDLE
        self.hover = None
        return True

    def delete_selected(self) -> bool:
        """Delete the selected box, if any."""
        if self.selected is None:
            return False
        return self.delete(self.selected)

    def load_boxes(self, boxes: Iterable[Box]) -> None:
        """Replace all boxes and reset the interaction state."""
        self.store.clear()
        for box in boxes:
            self.store.add(box)
        self.mode = IDLE
        self.selected = None
        self.hover = None

    def clear(self) -> None:
        self.load_boxes([])

    def set_active_class(self, class_id: int) -> None:
        """Set the class id given to newly created boxes."""
        self.active_class_id = clamp_class_id(class_id)

    def set_selected_class(self, class_id: int) -> bool:
        """Change the class of the selected box."""
        box = self.selected_box
        if box is None:
            return False
        box.class_id = clamp_class_id(class_id)
        return True

    # === Helpers ===

    def _start_interaction(self, point: QPointF) -> None:
        """Pick an interaction from what lies under the pointer."""
        hit = find_hit_in_store(self.store, point, self.catch_radius)

        if hit is None:
            handle = self.store.add(Box.empty(self.active_class_id))
            self.mode = Creating(target=handle, anchor=QPointF(point))
            return

        box = self.store.get(hit.handle)
        if hit.part == BoxPart.CENTRAL_AREA:
            self.mode = Moving(target=hit.handle, grab_offset=point - box.center())
            self.selected = hit.handle
        elif hit.part.is_corner:
            self.mode = ResizingCorner(
                target=hit.handle,
                part=hit.part,
                fixed_corner=box.opposite_corner(hit.part)
            )
        else:
            self.mode = ResizingEdge(target=hit.handle, part=hit.part)

    def _resolve_target(self) -> Optional[Box]:
        """Resolve the mode's target, dropping back to idle if it is stale."""
        box = self.store.get(self.target)
        if box is None and self.is_editing:
            logger.warning("Edit target no longer exists, returning to idle")
            self.mode = IDLE
        return box
