"""
Editor Controller - single entry point for the bounding-box editor

Owns the geometry store, view transform, selection controller, drawing
surface, result panel and session, and routes canvas/keyboard events to them.
Pages talk to this object instead of wiring individual callbacks.
"""
import logging
from typing import Any, Callable, Dict, Iterable, Optional

from PIL import Image

from fracturelab import config
from fracturelab.services.inference.types import InferenceResponse, ModelResult
from .geometry import GeometryStore, Point, Tool
from .results import ResultPanel
from .selection import SelectionController
from .session import EditorSession, InferenceTicket
from .surface import DrawingSurface, PointerEvent, WheelEvent
from .view import ViewTransform

logger = logging.getLogger(__name__)

DELETE_KEYS = ("Delete",)

ImageLoader = Callable[[str], Image.Image]


def event_from_dict(data: Dict[str, Any]):
    """
    Convert a canvas component event dict to an event object

    Returns:
        (event type, event) where event is a PointerEvent, WheelEvent or key string
    """
    event_type = data.get("type")
    try:
        if event_type in ("pointerdown", "pointermove", "pointerup"):
            return event_type, PointerEvent(
                x=float(data.get("x", 0)),
                y=float(data.get("y", 0)),
                button=int(data.get("button", 0)),
                dx=float(data.get("dx", 0)),
                dy=float(data.get("dy", 0)),
            )
        if event_type == "wheel":
            return event_type, WheelEvent(
                x=float(data.get("x", 0)),
                y=float(data.get("y", 0)),
                delta_y=float(data.get("deltaY", 0)),
            )
    except (TypeError, ValueError) as e:
        # null coordinates arrive as None
        raise ValueError(f"Malformed {event_type} event: {e}") from e
    if event_type == "keydown":
        return event_type, str(data.get("key", ""))
    raise ValueError(f"Unknown canvas event type: {event_type!r}")


class EditorController:
    """Facade over the editor components"""

    def __init__(self, min_size: float = config.MIN_BOX_SIZE):
        self.store = GeometryStore(min_size=min_size)
        self.view = ViewTransform()
        self.selection = SelectionController(self.store)
        self.surface = DrawingSurface(self.store, self.selection, self.view)
        self.results = ResultPanel(self.store)
        self.session = EditorSession(self.store)

    # ------------------------------------------------------------------
    # Tools
    # ------------------------------------------------------------------
    @property
    def tool(self) -> Optional[Tool]:
        return self.store.tool

    def set_tool(self, tool: Optional[Tool]) -> None:
        self.store.tool = tool

    def toggle_bounding_box_tool(self) -> None:
        self.set_tool(None if self.store.tool == Tool.BOUNDING_BOX else Tool.BOUNDING_BOX)

    def clear_all(self) -> None:
        self.store.clear_all()

    # ------------------------------------------------------------------
    # Image lifecycle
    # ------------------------------------------------------------------
    def select_image(self, image_id: Any, keep_rectangles: bool = False) -> None:
        """Start a new image session; the image is loading until image_loaded()"""
        self.session.select_image(image_id, keep_rectangles=keep_rectangles)
        self.surface.set_image(None)
        self.view.reset()

    def image_loaded(self, image: Image.Image) -> None:
        self.surface.set_image(image)
        self.session.image_loaded()

    # ------------------------------------------------------------------
    # Inference
    # ------------------------------------------------------------------
    def begin_inference(self) -> InferenceTicket:
        return self.session.begin_inference()

    def _show_result_image(self, result: Optional[ModelResult], image_loader: Optional[ImageLoader]) -> None:
        if result is None or not result.ok or not result.result_image or image_loader is None:
            self.surface.set_processed_image(None)
            return
        try:
            self.surface.set_processed_image(image_loader(result.result_image))
        except (ValueError, OSError) as e:
            # requests.RequestException is an OSError
            logger.warning(f"Could not load result image for {result.model_name}: {e}")
            self.surface.set_processed_image(None)

    def apply_inference(
        self,
        ticket: InferenceTicket,
        response: InferenceResponse,
        image_loader: Optional[ImageLoader] = None,
    ) -> bool:
        """Apply a response if still current; returns False for stale responses"""
        if not self.session.apply_inference(ticket, response):
            return False
        self._show_result_image(self.session.current_result, image_loader)
        return True

    def select_result(self, model_name: str, image_loader: Optional[ImageLoader] = None) -> ModelResult:
        result = self.session.select_result(model_name)
        self._show_result_image(result, image_loader)
        return result

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------
    def handle_key(self, key: str) -> Optional[str]:
        """
        Route a key press

        Delete removes the checked detection boxes when any are checked,
        otherwise the selected rectangle. Exactly one action fires per press.

        Returns:
            Name of the action performed, or None
        """
        if key not in DELETE_KEYS:
            return None
        if self.results.can_delete:
            self.results.delete_checked()
            return "delete_checked"
        if self.selection.delete_selected():
            return "delete_selected"
        return None

    def dispatch(self, data: Dict[str, Any]) -> bool:
        """Apply one canvas event dict. Returns True if it changed anything."""
        event_type, event = event_from_dict(data)
        if event_type == "pointerdown":
            return self.surface.pointer_down(event)
        if event_type == "pointermove":
            return self.surface.pointer_move(event)
        if event_type == "pointerup":
            return self.surface.pointer_up(event)
        if event_type == "wheel":
            return self.surface.wheel(event)
        return self.handle_key(event) is not None

    def dispatch_all(self, events: Iterable[Dict[str, Any]]) -> int:
        """Apply a batch of canvas events in order. Returns how many had an effect."""
        handled = 0
        for data in events:
            try:
                if self.dispatch(data):
                    handled += 1
            except ValueError as e:
                logger.warning(f"Ignoring canvas event {data!r}: {e}")
        return handled

    # ------------------------------------------------------------------
    # View
    # ------------------------------------------------------------------
    def _center(self) -> Point:
        background = self.surface.background
        if background is None:
            return Point(0, 0)
        return Point(background.width / 2, background.height / 2)

    def zoom_in(self) -> None:
        self.view.zoom_at(self._center(), 1)

    def zoom_out(self) -> None:
        self.view.zoom_at(self._center(), -1)

    def reset_view(self) -> None:
        self.view.reset()

    def render(self) -> Optional[Image.Image]:
        return self.surface.render()
