"""Annotation canvas widget driving an EditSession."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from PyQt6.QtCore import Qt, QPointF, QRectF, QSizeF, pyqtSignal
from PyQt6.QtGui import (
    QColor, QFont, QKeyEvent, QKeySequence, QMouseEvent, QPainter, QPen, QPixmap,
    QWheelEvent
)
from PyQt6.QtWidgets import QWidget

from ..core.config import AppConfig, ClassCatalog, load_class_catalog
from ..core.edit_session import (
    Creating, EditSession, Moving, PointerEvent, PointerEventKind, ResizingCorner, ResizingEdge
)
from ..core.errors import FormatError
from ..core.models import Box, BoxPart
from ..core.viewport import Viewport
from ..core.yolo_format import YOLOLabelReader, YOLOLabelWriter, get_annotation_path

logger = logging.getLogger(__name__)

_PART_CURSORS = {
    BoxPart.EDGE_TOP: Qt.CursorShape.SizeVerCursor,
    BoxPart.EDGE_BOTTOM: Qt.CursorShape.SizeVerCursor,
    BoxPart.EDGE_LEFT: Qt.CursorShape.SizeHorCursor,
    BoxPart.EDGE_RIGHT: Qt.CursorShape.SizeHorCursor,
    BoxPart.CORNER_TOP_LEFT: Qt.CursorShape.SizeFDiagCursor,
    BoxPart.CORNER_BOTTOM_RIGHT: Qt.CursorShape.SizeFDiagCursor,
    BoxPart.CORNER_TOP_RIGHT: Qt.CursorShape.SizeBDiagCursor,
    BoxPart.CORNER_BOTTOM_LEFT: Qt.CursorShape.SizeBDiagCursor,
    BoxPart.CENTRAL_AREA: Qt.CursorShape.PointingHandCursor,
}


def cursor_for_part(part: Optional[BoxPart]) -> Qt.CursorShape:
    """Cursor shape shown while hovering a box part."""
    if part is None:
        return Qt.CursorShape.ArrowCursor
    return _PART_CURSORS[part]


def cursor_for_session(session: EditSession) -> Qt.CursorShape:
    """Cursor shape for the session state; an active edit overrides hover."""
    mode = session.mode
    if isinstance(mode, Creating):
        return Qt.CursorShape.CrossCursor
    if isinstance(mode, (ResizingCorner, ResizingEdge)):
        return cursor_for_part(mode.part)
    if isinstance(mode, Moving):
        return Qt.CursorShape.SizeAllCursor
    return cursor_for_part(session.hover.part if session.hover else None)


class AnnotationCanvas(QWidget):
    """
    Canvas showing one image and its boxes.

    Maps widget positions into image space, forwards primary-button
    events into the EditSession and loads/saves the image's YOLO labels.
    """

    # Signals
    boxes_changed = pyqtSignal()
    labels_saved = pyqtSignal(str)
    load_failed = pyqtSignal(str)
    active_class_changed = pyqtSignal(int)

    ZOOM_FACTOR = 1.15

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        parent: Optional[QWidget] = None
    ) -> None:
        """Initialize the canvas."""
        super().__init__(parent)
        self.config = config or AppConfig()
        self.session = EditSession(
            catch_radius=self.config.catch_radius,
            active_class_id=self.config.default_class_id
        )
        self.viewport = Viewport()
        self.pixmap: Optional[QPixmap] = None
        self.image_path: Optional[Path] = None
        self.classes = ClassCatalog()

        self._reader = YOLOLabelReader()
        self._writer = YOLOLabelWriter()

        self.setMouseTracking(True)
        self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)

    # === Image and labels ===

    @property
    def image_width(self) -> int:
        return int(self.viewport.image_size.width())

    @property
    def image_height(self) -> int:
        return int(self.viewport.image_size.height())

    def set_image(self, pixmap: QPixmap, image_path: Optional[Path] = None) -> bool:
        """
        Show an image and load its labels.

        Args:
            pixmap: Decoded image
            image_path: Image file path, used to locate the label file

        Returns:
            True if the labels were loaded (or there were none)
        """
        self.pixmap = pixmap
        self.image_path = Path(image_path) if image_path else None
        self.viewport.image_size = QSizeF(pixmap.size())
        self.viewport.fit(self.width(), self.height())
        self.session.clear()

        self.classes = (
            load_class_catalog(self.image_path.parent) if self.image_path else ClassCatalog()
        )
        ok = self.reload_labels()
        self.update()
        return ok

    def load_image(self, image_path: Path) -> bool:
        """Decode an image file and show it."""
        pixmap = QPixmap(str(image_path))
        if pixmap.isNull():
            message = f"Could not load image: {image_path}"
            logger.error(message)
            self.load_failed.emit(message)
            return False
        return self.set_image(pixmap, image_path)

    def reload_labels(self) -> bool:
        """Replace the boxes with the contents of the image's label file."""
        if self.image_path is None:
            return True

        txt_path = get_annotation_path(self.image_path)
        try:
            boxes = self._reader.read(txt_path, self.image_width, self.image_height)
        except (FormatError, OSError) as e:
            self.session.clear()
            self.load_failed.emit(f"Could not load labels from {txt_path}: {e}")
            return False

        self.session.load_boxes(boxes)
        self.boxes_changed.emit()
        return True

    def save_labels(self) -> bool:
        """Write the boxes to the image's label file."""
        if self.image_path is None:
            logger.warning("No image loaded, nothing to save")
            return False

        txt_path = get_annotation_path(self.image_path)
        if not self._writer.write(txt_path, self.session.boxes, self.image_width, self.image_height):
            return False
        self.labels_saved.emit(str(txt_path))
        return True

    def set_active_class(self, class_id: int) -> None:
        self.session.set_active_class(class_id)
        self.session.set_selected_class(class_id)
        self.active_class_changed.emit(self.session.active_class_id)
        self.update()

    def delete_selected(self) -> bool:
        """Delete the selected box."""
        if not self.session.delete_selected():
            return False
        logger.info("Deleted annotation")
        self._after_edit()
        return True

    def begin_creation(self) -> bool:
        """Start a box placed by two clicks."""
        if self.session.begin_creation() is None:
            return False
        self.setCursor(cursor_for_session(self.session))
        return True

    # === Events ===

    def mousePressEvent(self, event: QMouseEvent) -> None:
        """Handle mouse press events."""
        self.setFocus()
        self._dispatch(PointerEventKind.DOWN, event)

    def mouseMoveEvent(self, event: QMouseEvent) -> None:
        """Handle mouse move events."""
        self._dispatch(PointerEventKind.MOVE, event)

    def mouseReleaseEvent(self, event: QMouseEvent) -> None:
        """Handle mouse release events."""
        was_editing = self.session.is_editing
        self._dispatch(PointerEventKind.UP, event)
        if was_editing and not self.session.is_editing:
            self._after_edit()

    def keyPressEvent(self, event: QKeyEvent) -> None:
        """Handle key press events."""
        if self._matches_key_sequence(event, self.config.delete_annotation_key):
            self.delete_selected()
        elif self._matches_key_sequence(event, self.config.save_annotations_key):
            self.save_labels()
        elif self._matches_key_sequence(event, self.config.cancel_edit_key):
            self.session.cancel()
            self.update()
        elif self._matches_key_sequence(event, self.config.create_annotation_key):
            self.begin_creation()
        elif Qt.Key.Key_1.value <= event.key() <= Qt.Key.Key_9.value:
            # Keys 1-9 pick classes 0-8
            self.set_active_class(event.key() - Qt.Key.Key_1.value)
        else:
            super().keyPressEvent(event)

    def wheelEvent(self, event: QWheelEvent) -> None:
        """Zoom around the cursor with Ctrl+wheel."""
        if event.modifiers() == Qt.KeyboardModifier.ControlModifier:
            delta = event.angleDelta().y()
            zoom_factor = self.ZOOM_FACTOR if delta > 0 else 1 / self.ZOOM_FACTOR
            if self.viewport.zoom_at(zoom_factor, event.position()):
                self.update()
            event.accept()
        else:
            super().wheelEvent(event)

    def resizeEvent(self, event) -> None:
        """Refit the image to the new widget size."""
        super().resizeEvent(event)
        self.viewport.fit(self.width(), self.height())

    def paintEvent(self, event) -> None:
        """Paint the image and boxes."""
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)

        if self.pixmap and not self.pixmap.isNull():
            target = QRectF(
                self.viewport.offset,
                self.viewport.image_size * self.viewport.scale
            )
            painter.drawPixmap(target, self.pixmap, QRectF(self.pixmap.rect()))

        selected = self.session.selected_box
        for box in self.session.boxes:
            if not box.is_degenerate():
                self._draw_box(painter, box, box is selected)
        painter.end()

    # === Helpers ===

    def _dispatch(self, kind: PointerEventKind, event: QMouseEvent) -> None:
        position, within = self.viewport.to_image(event.position())
        button = event.button() if kind != PointerEventKind.MOVE else Qt.MouseButton.NoButton
        self.session.process([PointerEvent(kind, position, button, within)])
        self.setCursor(cursor_for_session(self.session))
        self.update()

    def _after_edit(self) -> None:
        self.boxes_changed.emit()
        if self.config.autosave:
            self.save_labels()

    def _draw_box(self, painter: QPainter, box: Box, selected: bool) -> None:
        """Draw a single box with its class name."""
        color = QColor(self.config.selected_box_color if selected else self.config.box_color)
        top_left = self.viewport.to_widget(box.top_left())
        bottom_right = self.viewport.to_widget(box.bottom_right())
        rect = QRectF(top_left, bottom_right)

        painter.setPen(QPen(color, self.config.line_thickness))
        if selected:
            painter.setBrush(QColor(color.red(), color.green(), color.blue(), 64))
        else:
            painter.setBrush(Qt.BrushStyle.NoBrush)
        painter.drawRect(rect)

        name = self.classes.name_of(box.class_id)
        painter.setFont(QFont("Arial", self.config.font_size))
        painter.drawText(top_left + QPointF(2, -4), name)

    def _matches_key_sequence(self, event: QKeyEvent, key_sequence_str: str) -> bool:
        """Check if a key event matches a configured key sequence string."""
        if not key_sequence_str:
            return False

        key = event.key()
        if key in (Qt.Key.Key_Control, Qt.Key.Key_Shift, Qt.Key.Key_Alt, Qt.Key.Key_Meta):
            return False

        modifiers = event.modifiers()
        combined = key
        for modifier in (
            Qt.KeyboardModifier.ControlModifier,
            Qt.KeyboardModifier.ShiftModifier,
            Qt.KeyboardModifier.AltModifier,
            Qt.KeyboardModifier.MetaModifier,
        ):
            if modifiers & modifier:
                combined |= modifier.value

        return QKeySequence(combined) == QKeySequence(key_sequence_str)
