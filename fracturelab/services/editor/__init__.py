"""
Bounding-box Editor

Geometry, view, selection, rendering and result-list logic for reviewing
model detections and drawing rectangles on an image.

Usage:
    from fracturelab.services.editor import EditorController, Point, Tool

    editor = EditorController()
    editor.select_image(image_id=42)
    editor.image_loaded(pil_image)

    # Draw a rectangle
    editor.set_tool(Tool.BOUNDING_BOX)
    editor.store.start_rectangle(Point(100, 100))
    editor.store.update_drawing_rectangle(Point(150, 180))
    editor.store.commit_rectangle()

    # Apply an inference response (stale responses are dropped)
    ticket = editor.begin_inference()
    editor.apply_inference(ticket, gateway.run(request))

    # Render the scene
    scene = editor.render()

    # Use the editor canvas (in Streamlit app)
    from fracturelab.services.editor import editor_canvas
    result = editor_canvas(editor, key="canvas")
"""
from .geometry import (
    Point,
    Tool,
    Rectangle,
    DetectionBox,
    GeometryStore,
)
from .view import ViewTransform
from .selection import SelectionController, bound_box
from .surface import DrawingSurface, PointerEvent, WheelEvent
from .results import ResultPanel, ResultEntry

# Lazy imports: the session/controller depend on the inference types, and the
# canvas depends on Streamlit
_lazy = {
    "EditorSession": "session",
    "EditorState": "session",
    "InferenceTicket": "session",
    "EditorController": "controller",
    "editor_canvas": "canvas",
    "parse_canvas_result": "canvas",
}


def __getattr__(name):
    """Lazy load session, controller and Streamlit canvas components."""
    if name in _lazy:
        import importlib
        module = importlib.import_module(f".{_lazy[name]}", __name__)
        return getattr(module, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "Point",
    "Tool",
    "Rectangle",
    "DetectionBox",
    "GeometryStore",
    "ViewTransform",
    "SelectionController",
    "bound_box",
    "DrawingSurface",
    "PointerEvent",
    "WheelEvent",
    "ResultPanel",
    "ResultEntry",
    "EditorSession",
    "EditorState",
    "InferenceTicket",
    "EditorController",
    "editor_canvas",
    "parse_canvas_result",
]
