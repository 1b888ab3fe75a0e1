"""
Selection/Transform Controller

Tracks the selected rectangle, exposes its resize handles and turns handle
and body drags into GeometryStore mutations.
"""
from typing import Dict, Optional

from fracturelab import config
from .geometry import GeometryStore, Point, Rectangle

# Handle name -> (horizontal edge, vertical edge) it controls
# -1 = left/top edge, 1 = right/bottom edge, 0 = not affected
HANDLES = {
    "top-left": (-1, -1),
    "top": (0, -1),
    "top-right": (1, -1),
    "right": (1, 0),
    "bottom-right": (1, 1),
    "bottom": (0, 1),
    "bottom-left": (-1, 1),
    "left": (-1, 0),
}


def bound_box(old: Rectangle, new: Rectangle, min_size: float = config.MIN_BOX_SIZE) -> Rectangle:
    """Reject a proposed box smaller than min_size in favour of the previous one"""
    if new.width < min_size or new.height < min_size:
        return old
    return new


class SelectionController:
    """Selection, drag-move and handle resize on top of a GeometryStore"""

    def __init__(self, store: GeometryStore):
        self.store = store
        self._drag_id: Optional[str] = None
        self._grab_offset: Optional[Point] = None
        self._transform_id: Optional[str] = None
        self._transform_handle: Optional[str] = None
        self._transform_start: Optional[Point] = None
        self._transform_origin: Optional[Rectangle] = None
        self._transform_current: Optional[Rectangle] = None

    @property
    def selected_id(self) -> Optional[str]:
        return self.store.selected_id

    @property
    def is_dragging(self) -> bool:
        return self._drag_id is not None

    @property
    def is_transforming(self) -> bool:
        return self._transform_id is not None

    def select(self, rect_id: Optional[str]) -> None:
        self.store.select(rect_id)

    def click(self, point: Point) -> Optional[str]:
        """Select the rectangle under point, or deselect on empty canvas"""
        hit = self.store.hit_test(point)
        self.store.select(hit)
        return hit

    def delete_selected(self) -> bool:
        if self.store.selected_id is None:
            return False
        return self.store.delete_rectangle(self.store.selected_id)

    # ------------------------------------------------------------------
    # Handles
    # ------------------------------------------------------------------
    def handles(self) -> Dict[str, Point]:
        """Handle positions (canvas space) of the selected rectangle"""
        rect = self.store.get_rectangle(self.store.selected_id) if self.store.selected_id else None
        if rect is None:
            return {}
        cx = rect.x + rect.width / 2
        cy = rect.y + rect.height / 2
        xs = {-1: rect.x, 0: cx, 1: rect.x + rect.width}
        ys = {-1: rect.y, 0: cy, 1: rect.y + rect.height}
        return {name: Point(xs[hx], ys[hy]) for name, (hx, hy) in HANDLES.items()}

    def handle_at(self, point: Point, tolerance: float) -> Optional[str]:
        for name, pos in self.handles().items():
            if abs(pos.x - point.x) <= tolerance and abs(pos.y - point.y) <= tolerance:
                return name
        return None

    # ------------------------------------------------------------------
    # Resize
    # ------------------------------------------------------------------
    def begin_transform(self, handle: str, point: Point) -> bool:
        rect = self.store.get_rectangle(self.store.selected_id) if self.store.selected_id else None
        if rect is None or handle not in HANDLES:
            return False
        self._transform_id = rect.id
        self._transform_handle = handle
        self._transform_start = point
        self._transform_origin = Rectangle(rect.x, rect.y, rect.width, rect.height)
        self._transform_current = Rectangle(rect.x, rect.y, rect.width, rect.height)
        return True

    def transform_to(self, point: Point) -> Optional[Rectangle]:
        if not self.is_transforming:
            return None
        hx, hy = HANDLES[self._transform_handle]
        dx = point.x - self._transform_start.x
        dy = point.y - self._transform_start.y
        origin = self._transform_origin

        x, width = origin.x, origin.width
        if hx < 0:
            x, width = origin.x + dx, origin.width - dx
        elif hx > 0:
            width = origin.width + dx

        y, height = origin.y, origin.height
        if hy < 0:
            y, height = origin.y + dy, origin.height - dy
        elif hy > 0:
            height = origin.height + dy

        proposed = Rectangle(x, y, width, height)
        box = bound_box(self._transform_current, proposed, self.store.min_size)
        self._transform_current = box
        return self.store.resize_rectangle(
            self._transform_id, box.width, box.height, origin=Point(box.x, box.y)
        )

    def end_transform(self) -> None:
        self._transform_id = None
        self._transform_handle = None
        self._transform_start = None
        self._transform_origin = None
        self._transform_current = None

    # ------------------------------------------------------------------
    # Drag-move
    # ------------------------------------------------------------------
    def begin_drag(self, rect_id: str, point: Point) -> bool:
        """Start relocating a rectangle. Dragging always selects it."""
        rect = self.store.get_rectangle(rect_id)
        if rect is None:
            return False
        self.store.select(rect_id)
        self._drag_id = rect_id
        self._grab_offset = Point(point.x - rect.x, point.y - rect.y)
        return True

    def drag_to(self, point: Point) -> Optional[Rectangle]:
        if not self.is_dragging:
            return None
        position = Point(point.x - self._grab_offset.x, point.y - self._grab_offset.y)
        return self.store.move_rectangle(self._drag_id, position)

    def end_drag(self) -> None:
        self._drag_id = None
        self._grab_offset = None
