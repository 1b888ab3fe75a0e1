"""
Result Panel - list view over the live detection boxes
"""
import json
from dataclasses import dataclass
from typing import List

from .geometry import DetectionBox, GeometryStore


@dataclass
class ResultEntry:
    """One row of the result panel"""
    id: str
    label: str
    confidence: float
    corners: tuple
    checked: bool = False

    @property
    def confidence_text(self) -> str:
        return f"{self.confidence * 100:.2f}%"

    @property
    def caption(self) -> str:
        return f"{self.label} ({self.confidence_text})"

    @property
    def coordinates_text(self) -> str:
        return "[" + ", ".join(f"{v:.2f}" for v in self.corners) + "]"

    @classmethod
    def from_box(cls, box: DetectionBox, checked: bool = False) -> "ResultEntry":
        return cls(
            id=box.id,
            label=box.label,
            confidence=box.confidence,
            corners=box.corners,
            checked=checked,
        )


class ResultPanel:
    """Checkbox list of detection boxes with a bulk delete action"""

    def __init__(self, store: GeometryStore):
        self.store = store

    def entries(self) -> List[ResultEntry]:
        return [ResultEntry.from_box(box, box.id in self.store.checked) for box in self.store.detections]

    def toggle(self, box_id: str, checked: bool) -> None:
        self.store.set_checked(box_id, checked)

    @property
    def can_delete(self) -> bool:
        return bool(self.store.checked)

    def delete_checked(self) -> int:
        """Remove all checked boxes. Returns the number removed."""
        if not self.can_delete:
            return 0
        return self.store.remove_checked_detection_boxes(set(self.store.checked))

    def summary(self) -> str:
        """Natural-language description of the live detections"""
        from fracturelab.services.inference.summary import summarize_detections
        return summarize_detections(self.store.detections)

    def as_text(self) -> str:
        """Detections as pretty JSON, for copying out of the panel"""
        return json.dumps([box.to_detection() for box in self.store.detections], indent=2)
