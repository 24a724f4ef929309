"""Mapping between widget and image coordinates."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Tuple

from PyQt6.QtCore import QPointF, QSizeF

logger = logging.getLogger(__name__)


@dataclass
class Viewport:
    """
    Placement of the image on the canvas.

    Attributes:
        scale: Displayed pixels per image pixel
        offset: Widget position of the image's top-left corner
        image_size: Image size in pixels
    """

    MIN_SCALE = 0.05
    MAX_SCALE = 40.0

    scale: float = 1.0
    offset: QPointF = field(default_factory=QPointF)
    image_size: QSizeF = field(default_factory=QSizeF)

    def to_image(self, pos: QPointF) -> Tuple[QPointF, bool]:
        """
        Map a widget position into image coordinates.

        Returns:
            Tuple of (image position, whether it lies within the image)
        """
        image_pos = (pos - self.offset) / self.scale
        within = (
            0 <= image_pos.x() <= self.image_size.width() and
            0 <= image_pos.y() <= self.image_size.height()
        )
        return image_pos, within

    def to_widget(self, pos: QPointF) -> QPointF:
        """Map an image position into widget coordinates."""
        return pos * self.scale + self.offset

    def zoom_at(self, factor: float, anchor: QPointF) -> bool:
        """
        Multiply the scale, keeping the image point under the anchor fixed.

        Args:
            factor: Scale multiplier
            anchor: Widget position that stays over the same image point

        Returns:
            True if the scale changed
        """
        scale = min(max(self.scale * factor, self.MIN_SCALE), self.MAX_SCALE)
        if scale == self.scale:
            logger.debug(f"Zoom limit reached at scale {scale}")
            return False

        image_pos, _ = self.to_image(anchor)
        self.scale = scale
        self.offset = anchor - image_pos * scale
        return True

    def fit(self, widget_width: float, widget_height: float) -> None:
        """Scale and center the image to fit a widget of the given size."""
        if self.image_size.isEmpty():
            return
        scale = min(
            widget_width / self.image_size.width(),
            widget_height / self.image_size.height()
        )
        self.scale = min(max(scale, self.MIN_SCALE), self.MAX_SCALE)
        self.offset = QPointF(
            (widget_width - self.image_size.width() * self.scale) / 2,
            (widget_height - self.image_size.height() * self.scale) / 2
        )
