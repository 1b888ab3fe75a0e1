"""
Tests for ViewTransform
"""
import pytest

from fracturelab import config
from fracturelab.services.editor import Point, ViewTransform


class TestViewTransform:
    """Tests for coordinate mapping, pan and zoom"""

    def test_identity_by_default(self):
        """Test default view maps points to themselves"""
        view = ViewTransform()

        assert view.to_screen(Point(12, 34)) == Point(12, 34)
        assert view.to_canvas(Point(12, 34)) == Point(12, 34)

    def test_round_trip(self):
        """Test to_canvas inverts to_screen"""
        view = ViewTransform(offset_x=15, offset_y=-7, scale=2.5)
        point = view.to_canvas(view.to_screen(Point(40, 60)))

        assert point.x == pytest.approx(40)
        assert point.y == pytest.approx(60)

    def test_pan(self):
        """Test pan shifts the offset"""
        view = ViewTransform()
        view.pan(10, -5)

        assert (view.offset_x, view.offset_y) == (10, -5)

    def test_zoom_in_scales_by_step(self):
        """Test one notch multiplies the scale by the zoom step"""
        view = ViewTransform()
        view.zoom_at(Point(0, 0), 1)

        assert view.scale == pytest.approx(config.ZOOM_STEP)

    def test_zoom_keeps_anchor_fixed(self):
        """Test the canvas point under the pointer stays under it"""
        view = ViewTransform(offset_x=20, offset_y=30, scale=1.5)
        pointer = Point(200, 120)
        before = view.to_canvas(pointer)

        view.zoom_at(pointer, 3)
        after = view.to_canvas(pointer)

        assert after.x == pytest.approx(before.x)
        assert after.y == pytest.approx(before.y)

    def test_zoom_in_then_out_is_identity(self):
        """Test zooming in then out at the same point restores scale and offset"""
        view = ViewTransform(offset_x=-40, offset_y=25, scale=1.3)
        pointer = Point(123, 77)

        view.zoom_at(pointer, 1)
        view.zoom_at(pointer, -1)

        assert view.scale == pytest.approx(1.3)
        assert view.offset_x == pytest.approx(-40)
        assert view.offset_y == pytest.approx(25)

    def test_zoom_is_clamped(self):
        """Test scale never leaves [MIN_SCALE, MAX_SCALE]"""
        view = ViewTransform()
        view.zoom_at(Point(0, 0), 500)
        assert view.scale == config.MAX_SCALE

        view.zoom_at(Point(0, 0), -1000)
        assert view.scale == config.MIN_SCALE

    def test_reset(self):
        """Test reset restores the identity view"""
        view = ViewTransform(offset_x=5, offset_y=6, scale=3)
        view.reset()

        assert view == ViewTransform()
