"""
Type definitions for the remote inference service
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from fracturelab.services.editor.geometry import DetectionBox


class InferenceError(Exception):
    """Raised internally when an inference response cannot be used"""


def threshold_from_percent(percent: float) -> float:
    """Convert a 0-100 slider value to the [0, 1] threshold sent on the wire"""
    return min(max(float(percent), 0.0), 100.0) / 100.0


@dataclass
class InferenceRequest:
    """
    A request to run one or more models against an image

    Attributes:
        model_names: Models to run
        image_url: URL of the image to analyse
        confidence_threshold: Minimum confidence in [0, 1]
    """
    model_names: List[str]
    image_url: str
    confidence_threshold: float = 0.5

    def __post_init__(self):
        if isinstance(self.model_names, str):
            self.model_names = [self.model_names]
        if not self.model_names:
            raise ValueError("At least one model name is required")
        if not 0.0 <= self.confidence_threshold <= 1.0:
            raise ValueError(f"confidence_threshold must be in [0, 1], got {self.confidence_threshold}")

    def to_payload(self) -> Dict[str, Any]:
        """JSON body for POST /run_inference"""
        payload: Dict[str, Any] = {}
        if len(self.model_names) == 1:
            payload["model_name"] = self.model_names[0]
        else:
            payload["model_names"] = list(self.model_names)
        payload["imageUrl"] = self.image_url
        payload["confidenceThreshold"] = self.confidence_threshold
        return payload


@dataclass
class ModelResult:
    """
    Outcome of one model's inference, plus the reviewer's rating and comment

    Attributes:
        model_name: Model that produced the result
        detections: Detection boxes in original-image coordinates
        result_image: Reference (URL or data URL) to the rendered result image
        error: Error message when the model failed
        rating: Reviewer rating, 0 (unrated) to 5
        comment: Reviewer comment
        is_saved: Whether the current result has been persisted
    """
    model_name: str
    detections: List[DetectionBox] = field(default_factory=list)
    result_image: Optional[str] = None
    error: Optional[str] = None
    rating: int = 0
    comment: str = ""
    is_saved: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None

    def detections_payload(self) -> List[Dict[str, Any]]:
        return [box.to_detection() for box in self.detections]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "model_name": self.model_name,
            "detections": self.detections_payload(),
            "resultImage": self.result_image,
            "error": self.error,
            "rating": self.rating,
            "comment": self.comment,
            "isSaved": self.is_saved,
        }


@dataclass
class InferenceResponse:
    """Per-model results of a single request"""
    results: List[ModelResult] = field(default_factory=list)

    @property
    def successes(self) -> List[ModelResult]:
        return [r for r in self.results if r.ok]

    @property
    def failures(self) -> List[ModelResult]:
        return [r for r in self.results if not r.ok]

    def get(self, model_name: str) -> Optional[ModelResult]:
        for result in self.results:
            if result.model_name == model_name:
                return result
        return None

    @classmethod
    def failed(cls, model_names: List[str], message: str) -> "InferenceResponse":
        """Response in which every requested model carries the same error"""
        return cls(results=[ModelResult(model_name=name, error=message) for name in model_names])
