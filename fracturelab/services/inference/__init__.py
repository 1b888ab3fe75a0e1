"""
Inference Service

Client for the remote fracture-detection service.

Usage:
    from fracturelab.services.inference import InferenceGateway, InferenceRequest

    gateway = InferenceGateway(base_url="http://localhost:8000")
    request = InferenceRequest(
        model_names=["yolov8-fracture"],
        image_url="https://example.org/xray.png",
        confidence_threshold=0.5,
    )
    response = gateway.run(request)       # blocking
    future = gateway.submit(request)      # on a worker thread

    for result in response.results:
        print(result.model_name, result.error or summarize_detections(result.detections))
"""
from .types import (
    InferenceError,
    InferenceRequest,
    InferenceResponse,
    ModelResult,
    threshold_from_percent,
)
from .client import InferenceGateway, parse_detections, parse_response
from .summary import summarize_detections, NO_DETECTIONS

__all__ = [
    "InferenceError",
    "InferenceRequest",
    "InferenceResponse",
    "ModelResult",
    "threshold_from_percent",
    "InferenceGateway",
    "parse_detections",
    "parse_response",
    "summarize_detections",
    "NO_DETECTIONS",
]
