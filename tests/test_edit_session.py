"""Tests for the box editing state machine."""

import pytest
from PyQt6.QtCore import QPointF, Qt

from boxmark.core.edit_session import (
    Creating, EditSession, Idle, Moving, PointerEvent, PointerEventKind,
    ResizingCorner, ResizingEdge
)
from boxmark.core.models import Box, BoxPart


@pytest.fixture
def session():
    """Session holding one box spanning (40, 40) to (60, 60)."""
    return EditSession([Box.from_center(50, 50, 20, 20, class_id=1)])


def drag(session, start, *points):
    session.pointer_down(QPointF(*start))
    for point in points:
        session.pointer_move(QPointF(*point))


class TestCreating:
    """Tests for creating boxes."""

    def test_click_drag_creates_box(self):
        session = EditSession(active_class_id=4)

        drag(session, (10, 10), (20, 30), (30, 50))
        assert isinstance(session.mode, Creating)
        session.pointer_up(QPointF(30, 50))

        assert isinstance(session.mode, Idle)
        assert len(session.boxes) == 1
        box = session.boxes[0]
        assert box.center() == QPointF(20, 30)
        assert box.size() == (20, 40)
        assert box.class_id == 4

    def test_click_without_drag_is_discarded(self):
        session = EditSession()

        session.pointer_down(QPointF(10, 10))
        session.pointer_up(QPointF(10, 10))

        assert session.boxes == []
        assert isinstance(session.mode, Idle)

    def test_zero_width_drag_is_discarded(self):
        session = EditSession()

        drag(session, (10, 10), (10, 50))
        session.pointer_up(QPointF(10, 50))

        assert session.boxes == []

    def test_begin_creation_then_drag(self):
        """begin_creation() leaves the anchor to the next press."""
        session = EditSession()
        handle = session.begin_creation()

        session.pointer_move(QPointF(5, 5))
        assert session.store.get(handle).is_degenerate()

        session.pointer_down(QPointF(10, 10))
        session.pointer_move(QPointF(30, 30))
        session.pointer_up(QPointF(30, 30))

        assert len(session.boxes) == 1
        assert session.boxes[0].size() == (20, 20)

    def test_click_then_click_creation(self):
        session = EditSession(active_class_id=2)
        session.begin_creation()

        session.pointer_down(QPointF(10, 10))
        session.pointer_up(QPointF(10, 10))
        assert isinstance(session.mode, Creating)

        session.pointer_down(QPointF(30, 30))
        session.pointer_up(QPointF(30, 30))

        assert isinstance(session.mode, Idle)
        assert len(session.boxes) == 1
        box = session.boxes[0]
        assert box.top_left() == QPointF(10, 10)
        assert box.bottom_right() == QPointF(30, 30)
        assert box.class_id == 2

    def test_second_click_on_anchor_discards_box(self):
        session = EditSession()
        session.begin_creation()

        for _ in range(2):
            session.pointer_down(QPointF(10, 10))
            session.pointer_up(QPointF(10, 10))

        assert session.boxes == []
        assert isinstance(session.mode, Idle)

    def test_press_while_creating_sets_extent(self):
        session = EditSession()
        session.pointer_down(QPointF(0, 0))

        session.pointer_down(QPointF(8, 6))

        assert session.boxes[0].size() == (8, 6)

    def test_new_box_does_not_select(self, session):
        drag(session, (200, 200), (220, 220))
        session.pointer_up(QPointF(220, 220))

        assert session.selected is None

    def test_begin_creation_refused_while_editing(self, session):
        session.pointer_down(QPointF(50, 50))

        assert session.begin_creation() is None

    def test_cancel_drops_pending_box(self):
        session = EditSession()
        drag(session, (0, 0), (10, 10))

        session.cancel()

        assert session.boxes == []
        assert isinstance(session.mode, Idle)


class TestResizing:
    """Tests for corner and edge dragging."""

    def test_corner_drag_keeps_opposite_corner(self, session):
        session.pointer_down(QPointF(38, 38))

        assert isinstance(session.mode, ResizingCorner)
        assert session.mode.part == BoxPart.CORNER_TOP_LEFT
        assert session.mode.fixed_corner == QPointF(60, 60)

        session.pointer_move(QPointF(0, 0))
        box = session.boxes[0]
        assert box.center() == QPointF(30, 30)
        assert box.size() == (60, 60)

    def test_corner_drag_past_opposite_corner(self, session):
        drag(session, (38, 38), (80, 90))
        box = session.boxes[0]

        assert box.top_left() == QPointF(60, 60)
        assert box.size() == (20, 30)

    def test_edge_drag(self, session):
        session.pointer_down(QPointF(36, 50))

        assert isinstance(session.mode, ResizingEdge)
        assert session.mode.part == BoxPart.EDGE_LEFT

        session.pointer_move(QPointF(10, 999))
        box = session.boxes[0]
        assert box.width == 50
        assert box.x_max == 60
        assert box.center_x == 35
        assert (box.y_min, box.y_max) == (40, 60)

    def test_bottom_edge_uses_y(self, session):
        drag(session, (50, 64), (0, 100))
        box = session.boxes[0]

        assert (box.y_min, box.y_max) == (40, 100)
        assert (box.x_min, box.x_max) == (40, 60)

    def test_release_returns_to_idle(self, session):
        drag(session, (38, 38), (0, 0))
        session.pointer_up(QPointF(500, 500))

        assert isinstance(session.mode, Idle)
        assert session.boxes[0].size() == (60, 60)


class TestMoving:
    """Tests for moving boxes."""

    def test_move_keeps_grab_offset(self, session):
        session.pointer_down(QPointF(45, 55))

        assert isinstance(session.mode, Moving)
        assert session.mode.grab_offset == QPointF(-5, 5)

        session.pointer_move(QPointF(105, 15))
        box = session.boxes[0]
        assert box.center() == QPointF(110, 10)
        assert box.size() == (20, 20)

    def test_move_selects_box(self, session):
        session.pointer_down(QPointF(50, 50))

        assert session.selected == session.store.handle_at(0)
        assert session.selected_index == 0
        assert session.selected_box.class_id == 1

    def test_press_clears_selection(self, session):
        session.pointer_down(QPointF(50, 50))
        session.pointer_up(QPointF(50, 50))

        session.pointer_down(QPointF(38, 38))

        assert session.selected is None

    def test_press_during_drag_is_ignored(self, session):
        session.pointer_down(QPointF(50, 50))
        mode = session.mode

        session.pointer_down(QPointF(300, 300))

        assert session.mode == mode
        assert len(session.boxes) == 1

    def test_first_box_wins_on_overlap(self):
        session = EditSession([
            Box.from_center(50, 50, 100, 100, class_id=0),
            Box.from_center(50, 50, 10, 10, class_id=1),
        ])

        session.pointer_down(QPointF(50, 50))

        assert session.selected_box.class_id == 0


class TestDeletion:
    """Tests for deletion and stale identities."""

    def test_delete_selected(self, session):
        session.pointer_down(QPointF(50, 50))
        session.pointer_up(QPointF(50, 50))

        assert session.delete_selected() is True
        assert session.boxes == []
        assert session.selected is None

    def test_delete_without_selection(self, session):
        assert session.delete_selected() is False
        assert len(session.boxes) == 1

    def test_delete_aborts_active_drag(self, session):
        session.pointer_down(QPointF(50, 50))

        session.delete_selected()
        session.pointer_move(QPointF(80, 80))

        assert isinstance(session.mode, Idle)
        assert session.boxes == []

    def test_delete_other_box_keeps_drag(self):
        session = EditSession([
            Box.from_center(50, 50, 20, 20, class_id=0),
            Box.from_center(200, 200, 20, 20, class_id=1),
        ])
        first = session.store.handle_at(0)
        session.pointer_down(QPointF(200, 200))

        session.delete(first)
        session.pointer_move(QPointF(210, 200))

        assert isinstance(session.mode, Moving)
        assert session.boxes[0].center() == QPointF(210, 200)
        assert session.selected_index == 0

    def test_stale_target_falls_back_to_idle(self, session):
        session.pointer_down(QPointF(38, 38))
        session.store.remove(session.target)

        session.pointer_move(QPointF(0, 0))

        assert isinstance(session.mode, Idle)


class TestProcess:
    """Tests for batch event processing."""

    def test_batch_creates_box(self):
        session = EditSession()
        left = Qt.MouseButton.LeftButton

        session.process([
            PointerEvent(PointerEventKind.DOWN, QPointF(0, 0), left),
            PointerEvent(PointerEventKind.MOVE, QPointF(10, 10)),
            PointerEvent(PointerEventKind.UP, QPointF(10, 10), left),
        ])

        assert len(session.boxes) == 1
        assert isinstance(session.mode, Idle)

    def test_other_buttons_ignored(self):
        session = EditSession()

        session.process([
            PointerEvent(PointerEventKind.DOWN, QPointF(0, 0), Qt.MouseButton.RightButton),
        ])

        assert isinstance(session.mode, Idle)
        assert session.boxes == []

    def test_press_outside_image_ignored(self):
        session = EditSession()

        session.process([
            PointerEvent(PointerEventKind.DOWN, QPointF(-5, 0), Qt.MouseButton.LeftButton, False),
        ])

        assert isinstance(session.mode, Idle)

    def test_release_outside_image_ends_drag(self, session):
        left = Qt.MouseButton.LeftButton

        session.process([
            PointerEvent(PointerEventKind.DOWN, QPointF(50, 50), left),
            PointerEvent(PointerEventKind.MOVE, QPointF(-20, 50), within_image=False),
            PointerEvent(PointerEventKind.UP, QPointF(-20, 50), left, False),
        ])

        assert isinstance(session.mode, Idle)
        assert session.boxes[0].center() == QPointF(-20, 50)


class TestHoverAndClasses:
    """Tests for hover feedback and class assignment."""

    def test_hover_tracks_part(self, session):
        session.pointer_move(QPointF(64, 50))

        assert session.hover.part == BoxPart.EDGE_RIGHT
        assert session.hover.index == 0

        session.pointer_move(QPointF(300, 300))
        assert session.hover is None

    def test_set_selected_class(self, session):
        session.pointer_down(QPointF(50, 50))

        assert session.set_selected_class(7) is True
        assert session.boxes[0].class_id == 7

    def test_negative_class_clamped(self):
        session = EditSession()
        session.set_active_class(-3)

        assert session.active_class_id == 0

    def test_load_boxes_resets_state(self, session):
        session.pointer_down(QPointF(50, 50))

        session.load_boxes([Box.from_center(1, 1, 2, 2)])

        assert isinstance(session.mode, Idle)
        assert session.selected is None
        assert len(session.boxes) == 1
