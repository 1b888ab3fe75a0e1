"""
Drawing Surface

Renders the background image with rectangles and detection boxes overlaid,
and translates pointer/wheel events into geometry and view mutations.
"""
import math
from dataclasses import dataclass
from typing import Optional, Tuple

from PIL import Image, ImageDraw, ImageFont

from fracturelab import config
from .geometry import GeometryStore, Point, Tool
from .selection import SelectionController
from .view import ViewTransform

PRIMARY_BUTTON = 0
MIDDLE_BUTTON = 1

RECTANGLE_COLOR = "white"
SELECTED_COLOR = "#1e90ff"
DETECTION_COLOR = "red"
LABEL_COLOR = "white"
EMPTY_COLOR = (32, 32, 32)
STROKE_WIDTH = 2


@dataclass
class PointerEvent:
    """Pointer event in screen coordinates (dx/dy = movement since last event)"""
    x: float
    y: float
    button: int = PRIMARY_BUTTON
    dx: float = 0.0
    dy: float = 0.0


@dataclass
class WheelEvent:
    """Wheel event; negative delta_y scrolls up (zoom in)"""
    x: float
    y: float
    delta_y: float


def _ordered(x1: float, y1: float, x2: float, y2: float) -> Tuple[float, float, float, float]:
    return (min(x1, x2), min(y1, y2), max(x1, x2), max(y1, y2))


class DrawingSurface:
    """
    Canvas-level view of the editor

    The background is the post-inference result image if present, otherwise
    the selected image. Until one is loaded, render() returns None and
    pointer events are ignored.
    """

    def __init__(
        self,
        store: GeometryStore,
        selection: SelectionController,
        view: Optional[ViewTransform] = None,
        handle_size: float = config.HANDLE_SIZE,
    ):
        self.store = store
        self.selection = selection
        self.view = view or ViewTransform()
        self.handle_size = handle_size
        self.image: Optional[Image.Image] = None
        self.processed_image: Optional[Image.Image] = None
        self._panning = False
        self._press_hit: Optional[str] = None

    # ------------------------------------------------------------------
    # Images
    # ------------------------------------------------------------------
    @property
    def background(self) -> Optional[Image.Image]:
        return self.processed_image if self.processed_image is not None else self.image

    @property
    def is_loaded(self) -> bool:
        return self.background is not None

    @property
    def detection_scale(self) -> float:
        """Factor from original-image space to canvas space"""
        if self.image is None or self.background is None:
            return 1.0
        bg_width, bg_height = self.background.size
        width, height = self.image.size
        if not width or not height:
            return 1.0
        return min(bg_width / width, bg_height / height)

    def set_image(self, image: Optional[Image.Image], processed: Optional[Image.Image] = None) -> None:
        """Set the selected image (None = still loading) and optional result image"""
        self.image = image
        self.processed_image = processed
        self._panning = False
        self._press_hit = None

    def set_processed_image(self, processed: Optional[Image.Image]) -> None:
        self.processed_image = processed

    # ------------------------------------------------------------------
    # Pointer protocol
    # ------------------------------------------------------------------
    def _canvas_point(self, event) -> Point:
        return self.view.to_canvas(Point(event.x, event.y))

    def pointer_down(self, event: PointerEvent) -> bool:
        if not self.is_loaded:
            return False
        if event.button == MIDDLE_BUTTON:
            self._panning = True
            return True
        if event.button != PRIMARY_BUTTON or self._panning:
            return False

        point = self._canvas_point(event)
        handle = self.selection.handle_at(point, self.handle_size / self.view.scale)
        if handle is not None:
            return self.selection.begin_transform(handle, point)

        if self.store.tool == Tool.BOUNDING_BOX:
            self._press_hit = self.store.hit_test(point)
            self.store.start_rectangle(point)
            return True

        hit = self.store.hit_test(point)
        if hit is not None:
            self.selection.begin_drag(hit, point)
        else:
            self.store.select(None)
        return True

    def pointer_move(self, event: PointerEvent) -> bool:
        if not self.is_loaded:
            return False
        if self._panning:
            self.view.pan(event.dx, event.dy)
            return True

        point = self._canvas_point(event)
        if self.selection.is_transforming:
            self.selection.transform_to(point)
        elif self.store.is_drawing:
            self.store.update_drawing_rectangle(point)
        elif self.selection.is_dragging:
            self.selection.drag_to(point)
        else:
            return False
        return True

    def pointer_up(self, event: PointerEvent) -> bool:
        if not self.is_loaded:
            return False
        if event.button == MIDDLE_BUTTON:
            self._panning = False
            return True

        if self.selection.is_transforming:
            self.selection.end_transform()
        elif self.selection.is_dragging:
            self.selection.end_drag()
        elif self.store.is_drawing:
            committed = self.store.commit_rectangle()
            if committed is None:
                # A discarded draw is a click: select what was under the press
                self.store.select(self._press_hit)
            self._press_hit = None
        else:
            return False
        return True

    def wheel(self, event: WheelEvent) -> bool:
        if not self.is_loaded or event.delta_y == 0:
            return False
        notches = 1 if event.delta_y < 0 else -1
        self.view.zoom_at(Point(event.x, event.y), notches)
        return True

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------
    def _paste_background(self, canvas: Image.Image, background: Image.Image) -> None:
        width, height = background.size
        scale, ox, oy = self.view.scale, self.view.offset_x, self.view.offset_y

        # Visible region of the background in canvas space
        left = max(0.0, -ox / scale)
        top = max(0.0, -oy / scale)
        right = min(float(width), (canvas.width - ox) / scale)
        bottom = min(float(height), (canvas.height - oy) / scale)
        if right <= left or bottom <= top:
            return

        box = (int(left), int(top), math.ceil(right), math.ceil(bottom))
        crop = background.crop(box)
        size = (
            max(1, round((box[2] - box[0]) * scale)),
            max(1, round((box[3] - box[1]) * scale)),
        )
        canvas.paste(crop.resize(size), (round(box[0] * scale + ox), round(box[1] * scale + oy)))

    def render(self) -> Optional[Image.Image]:
        """Composite the current scene, or None while the image is loading"""
        background = self.background
        if background is None:
            return None

        background = background.convert("RGB")
        canvas = Image.new("RGB", background.size, EMPTY_COLOR)
        self._paste_background(canvas, background)

        draw = ImageDraw.Draw(canvas)
        font = ImageFont.load_default()

        for rect in self.store.rectangles:
            x1, y1, x2, y2 = rect.corners
            p1 = self.view.to_screen(Point(x1, y1))
            p2 = self.view.to_screen(Point(x2, y2))
            color = SELECTED_COLOR if rect.id == self.store.selected_id else RECTANGLE_COLOR
            draw.rectangle(_ordered(p1.x, p1.y, p2.x, p2.y), outline=color, width=STROKE_WIDTH)

        half = self.handle_size / 2
        for pos in self.selection.handles().values():
            p = self.view.to_screen(pos)
            draw.rectangle((p.x - half, p.y - half, p.x + half, p.y + half), fill="white", outline=SELECTED_COLOR)

        factor = self.detection_scale
        for box in self.store.detections:
            x1, y1, x2, y2 = (v * factor for v in box.corners)
            p1 = self.view.to_screen(Point(x1, y1))
            p2 = self.view.to_screen(Point(x2, y2))
            bounds = _ordered(p1.x, p1.y, p2.x, p2.y)
            draw.rectangle(bounds, outline=DETECTION_COLOR, width=STROKE_WIDTH)
            draw.text((bounds[0], max(0, bounds[1] - 14)), box.caption, fill=LABEL_COLOR, font=font)

        return canvas
