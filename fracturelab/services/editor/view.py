"""
View transform for the editor canvas (pan offset + uniform zoom)

Only rendering is affected; stored geometry is never rewritten by pan/zoom.
"""
from dataclasses import dataclass

from fracturelab import config
from .geometry import Point


@dataclass
class ViewTransform:
    """
    Maps canvas coordinates to screen coordinates: screen = canvas * scale + offset

    Attributes:
        offset_x: Horizontal pan offset in screen pixels
        offset_y: Vertical pan offset in screen pixels
        scale: Uniform zoom factor (always > 0)
    """
    offset_x: float = 0.0
    offset_y: float = 0.0
    scale: float = 1.0

    def to_screen(self, point: Point) -> Point:
        return Point(point.x * self.scale + self.offset_x, point.y * self.scale + self.offset_y)

    def to_canvas(self, point: Point) -> Point:
        return Point((point.x - self.offset_x) / self.scale, (point.y - self.offset_y) / self.scale)

    def pan(self, dx: float, dy: float) -> None:
        """Shift the view by a relative pointer motion"""
        self.offset_x += dx
        self.offset_y += dy

    def zoom_at(self, pointer: Point, notches: float = 1.0, step: float = config.ZOOM_STEP) -> None:
        """
        Zoom by step**notches keeping the canvas point under pointer fixed

        Positive notches zoom in, negative zoom out. The resulting scale is
        clamped to [MIN_SCALE, MAX_SCALE].
        """
        anchor = self.to_canvas(pointer)
        new_scale = self.scale * (step ** notches)
        new_scale = min(max(new_scale, config.MIN_SCALE), config.MAX_SCALE)

        self.scale = new_scale
        self.offset_x = pointer.x - anchor.x * new_scale
        self.offset_y = pointer.y - anchor.y * new_scale

    def reset(self) -> None:
        self.offset_x = 0.0
        self.offset_y = 0.0
        self.scale = 1.0
