"""Tests for widget/image coordinate mapping."""

from PyQt6.QtCore import QPointF, QSizeF

from boxmark.core.viewport import Viewport


def make_viewport():
    return Viewport(scale=2.0, offset=QPointF(10, 20), image_size=QSizeF(100, 50))


class TestViewport:
    """Tests for Viewport."""

    def test_to_image(self):
        position, within = make_viewport().to_image(QPointF(30, 40))

        assert position == QPointF(10, 10)
        assert within is True

    def test_outside_image(self):
        position, within = make_viewport().to_image(QPointF(5, 20))

        assert position == QPointF(-2.5, 0)
        assert within is False

    def test_image_border_is_within(self):
        _, within = make_viewport().to_image(QPointF(210, 120))

        assert within is True

    def test_to_widget(self):
        assert make_viewport().to_widget(QPointF(10, 10)) == QPointF(30, 40)

    def test_fit_centers_image(self):
        viewport = Viewport(image_size=QSizeF(200, 100))

        viewport.fit(400, 400)

        assert viewport.scale == 2.0
        assert viewport.offset == QPointF(0, 100)

    def test_fit_without_image(self):
        viewport = Viewport()

        viewport.fit(400, 400)

        assert viewport.scale == 1.0

    def test_zoom_keeps_anchor_fixed(self):
        viewport = make_viewport()
        anchor = QPointF(30, 40)

        assert viewport.zoom_at(2.0, anchor) is True

        assert viewport.scale == 4.0
        assert viewport.offset == QPointF(-10, 0)
        assert viewport.to_image(anchor)[0] == QPointF(10, 10)

    def test_zoom_limits(self):
        viewport = Viewport(scale=Viewport.MAX_SCALE)

        assert viewport.zoom_at(2.0, QPointF(0, 0)) is False
        assert viewport.zoom_at(0.5, QPointF(0, 0)) is True
        assert viewport.scale == Viewport.MAX_SCALE / 2
