"""
Geometry Store

In-memory collection of user-drawn rectangles (canvas space) and a separate,
read-only collection of model-produced detection boxes (original-image space).
Selection and the checked set for bulk deletion live here too, so every view
of the editor agrees on the same invariants after each mutation.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Set, Tuple

from fracturelab import config


@dataclass
class Point:
    """2D point with x, y coordinates"""
    x: float
    y: float

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y}

    @classmethod
    def from_dict(cls, data: Dict[str, float]) -> "Point":
        return cls(x=data["x"], y=data["y"])


class Tool(str, Enum):
    """Editor tools selectable from the toolbar"""
    BOUNDING_BOX = "bounding_box"


@dataclass
class Rectangle:
    """
    User-drawn bounding box in canvas coordinates

    Attributes:
        x: Left edge
        y: Top edge
        width: Width (may be negative while a draw is in progress)
        height: Height (may be negative while a draw is in progress)
        id: Identifier, unique for the lifetime of the store
        kind: Variant tag shared with DetectionBox
    """
    x: float
    y: float
    width: float
    height: float
    id: str = ""
    kind: str = field(default="rectangle", init=False)

    @property
    def corners(self) -> Tuple[float, float, float, float]:
        """Corner coordinates (x1, y1, x2, y2)"""
        return (self.x, self.y, self.x + self.width, self.y + self.height)

    def contains(self, point: Point) -> bool:
        x1, y1, x2, y2 = self.corners
        return min(x1, x2) <= point.x <= max(x1, x2) and min(y1, y2) <= point.y <= max(y1, y2)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind,
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Rectangle":
        return cls(
            x=data["x"],
            y=data["y"],
            width=data["width"],
            height=data["height"],
            id=data.get("id", ""),
        )


@dataclass
class DetectionBox(Rectangle):
    """
    Model-produced bounding box in original-image coordinates

    Attributes:
        label: Class predicted by the model (serialized as "class")
        confidence: Model confidence in [0, 1]
    """
    label: str = ""
    confidence: float = 0.0
    kind: str = field(default="detection", init=False)

    @classmethod
    def from_xyxy(cls, bbox: Sequence[float], label: str, confidence: float, id: str = "") -> "DetectionBox":
        """Create a detection box from [x1, y1, x2, y2] corner coordinates"""
        if len(bbox) != 4:
            raise ValueError(f"bbox_xyxy must have 4 values, got {len(bbox)}")
        x1, y1, x2, y2 = (float(v) for v in bbox)
        return cls(
            x=x1,
            y=y1,
            width=x2 - x1,
            height=y2 - y1,
            id=id,
            label=str(label),
            confidence=float(confidence),
        )

    @property
    def caption(self) -> str:
        """Label text drawn next to the box, e.g. 'fracture (87.00%)'"""
        return f"{self.label} ({self.confidence * 100:.2f}%)"

    def to_detection(self) -> Dict[str, Any]:
        """Wire format used by the inference service and saved annotations"""
        return {
            "bbox_xyxy": list(self.corners),
            "class": self.label,
            "confidence": self.confidence,
        }

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["class"] = self.label
        data["confidence"] = self.confidence
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DetectionBox":
        return cls(
            x=data["x"],
            y=data["y"],
            width=data["width"],
            height=data["height"],
            id=data.get("id", ""),
            label=data.get("class", ""),
            confidence=data.get("confidence", 0.0),
        )


class GeometryStore:
    """
    Mutable geometry shared by the drawing surface, selection controller and
    result panel.

    Subscribers registered with subscribe() are called with an event name
    after every mutation.
    """

    def __init__(self, min_size: float = config.MIN_BOX_SIZE):
        self.min_size = min_size
        self.tool: Optional[Tool] = None
        self.rectangles: List[Rectangle] = []
        self.detections: List[DetectionBox] = []
        self.checked: Set[str] = set()
        self.selected_id: Optional[str] = None
        self.drawing_id: Optional[str] = None
        self._origin: Optional[Point] = None
        self._next_id = 1
        self._subscribers: List[Callable[[str], None]] = []

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------
    def subscribe(self, callback: Callable[[str], None]) -> Callable[[], None]:
        """Register a change callback. Returns a function that unsubscribes it."""
        self._subscribers.append(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _notify(self, event: str) -> None:
        for callback in list(self._subscribers):
            callback(event)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------
    @property
    def is_drawing(self) -> bool:
        return self.drawing_id is not None

    def get_rectangle(self, rect_id: str) -> Optional[Rectangle]:
        """Get a rectangle by ID"""
        for rect in self.rectangles:
            if rect.id == rect_id:
                return rect
        return None

    def get_detection(self, box_id: str) -> Optional[DetectionBox]:
        """Get a detection box by ID"""
        for box in self.detections:
            if box.id == box_id:
                return box
        return None

    def hit_test(self, point: Point) -> Optional[str]:
        """Return the ID of the topmost committed rectangle under point"""
        for rect in reversed(self.rectangles):
            if rect.id != self.drawing_id and rect.contains(point):
                return rect.id
        return None

    # ------------------------------------------------------------------
    # Drawing
    # ------------------------------------------------------------------
    def start_rectangle(self, point: Point) -> Optional[str]:
        """
        Begin a zero-size rectangle at point

        Returns:
            New rectangle ID, or None when the bounding-box tool is not active
            or another rectangle is already being drawn
        """
        if self.tool != Tool.BOUNDING_BOX or self.is_drawing:
            return None

        rect = Rectangle(x=point.x, y=point.y, width=0, height=0, id=f"rect{self._next_id}")
        self._next_id += 1
        self.rectangles.append(rect)
        self.drawing_id = rect.id
        self._origin = Point(point.x, point.y)
        self._notify("draw_start")
        return rect.id

    def update_drawing_rectangle(self, point: Point) -> None:
        """Resize the rectangle being drawn so its far corner follows point"""
        rect = self.get_rectangle(self.drawing_id) if self.is_drawing else None
        if rect is None:
            return
        rect.width = point.x - self._origin.x
        rect.height = point.y - self._origin.y
        self._notify("draw_update")

    def commit_rectangle(self) -> Optional[Rectangle]:
        """
        Finish the current draw

        Negative extents are normalized by flipping the origin. Rectangles
        smaller than min_size in either dimension are discarded.

        Returns:
            The committed rectangle, or None if nothing was committed
        """
        rect = self.get_rectangle(self.drawing_id) if self.is_drawing else None
        self.drawing_id = None
        self._origin = None
        if rect is None:
            return None

        if abs(rect.width) < self.min_size or abs(rect.height) < self.min_size:
            self.rectangles.remove(rect)
            self._notify("draw_discard")
            return None

        if rect.width < 0:
            rect.x += rect.width
            rect.width = -rect.width
        if rect.height < 0:
            rect.y += rect.height
            rect.height = -rect.height
        self._notify("add")
        return rect

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------
    def move_rectangle(self, rect_id: str, position: Point) -> Optional[Rectangle]:
        """Move a rectangle's top-left corner to position. Size is unchanged."""
        rect = self.get_rectangle(rect_id)
        if rect is None:
            return None
        rect.x = position.x
        rect.y = position.y
        self._notify("move")
        return rect

    def resize_rectangle(
        self,
        rect_id: str,
        width: float,
        height: float,
        origin: Optional[Point] = None,
    ) -> Optional[Rectangle]:
        """Apply a transform-handle resize. Width and height are floored at min_size."""
        rect = self.get_rectangle(rect_id)
        if rect is None:
            return None
        if origin is not None:
            rect.x = origin.x
            rect.y = origin.y
        rect.width = max(self.min_size, width)
        rect.height = max(self.min_size, height)
        self._notify("resize")
        return rect

    def delete_rectangle(self, rect_id: str) -> bool:
        """Remove a rectangle by ID. Returns True if found and removed."""
        rect = self.get_rectangle(rect_id)
        if rect is None:
            return False
        self.rectangles.remove(rect)
        if self.selected_id == rect_id:
            self.selected_id = None
        if self.drawing_id == rect_id:
            self.drawing_id = None
            self._origin = None
        self._notify("delete")
        return True

    def clear_all(self) -> None:
        """Remove every user rectangle"""
        self.rectangles = []
        self.selected_id = None
        self.drawing_id = None
        self._origin = None
        self._notify("clear")

    def select(self, rect_id: Optional[str]) -> None:
        """Select a rectangle by ID, or clear the selection with None"""
        if rect_id is not None and self.get_rectangle(rect_id) is None:
            raise KeyError(f"Unknown rectangle: {rect_id}")
        if rect_id == self.selected_id:
            return
        self.selected_id = rect_id
        self._notify("select")

    # ------------------------------------------------------------------
    # Detection boxes
    # ------------------------------------------------------------------
    def replace_detection_boxes(self, boxes: Iterable[DetectionBox]) -> None:
        """Replace all detection boxes and clear the checked set"""
        self.detections = list(boxes)
        self.checked = set()
        self._notify("detections")

    def remove_detection_box(self, box_id: str) -> bool:
        """Remove one detection box. Returns True if found and removed."""
        return self.remove_checked_detection_boxes([box_id]) > 0

    def set_checked(self, box_id: str, checked: bool) -> None:
        """Mark or unmark a detection box for bulk deletion"""
        if self.get_detection(box_id) is None:
            raise KeyError(f"Unknown detection box: {box_id}")
        if checked:
            self.checked.add(box_id)
        else:
            self.checked.discard(box_id)
        self._notify("check")

    def remove_checked_detection_boxes(self, ids: Optional[Iterable[str]] = None) -> int:
        """
        Remove detection boxes and purge them from the checked set

        Args:
            ids: IDs to remove (default: the current checked set)

        Returns:
            Number of boxes removed
        """
        ids = set(self.checked if ids is None else ids)
        before = len(self.detections)
        self.detections = [box for box in self.detections if box.id not in ids]
        self.checked -= ids
        removed = before - len(self.detections)
        if removed:
            self._notify("detections")
        return removed

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------
    def to_dict(self) -> Dict[str, Any]:
        return {
            "tool": self.tool.value if self.tool else None,
            "rectangles": [r.to_dict() for r in self.rectangles],
            "detections": [d.to_dict() for d in self.detections],
            "checked": sorted(self.checked),
            "selectedId": self.selected_id,
            "drawingId": self.drawing_id,
        }
