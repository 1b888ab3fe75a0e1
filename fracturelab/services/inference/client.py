"""
Inference Gateway - HTTP client for the remote detection service

Failures never escape run(): transport errors, non-2xx statuses and
malformed bodies are turned into per-model error strings so one failing
model cannot break the result panel.
"""
import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Dict, List, Optional

import requests

from fracturelab import config
from fracturelab.services.editor.geometry import DetectionBox
from .types import InferenceError, InferenceRequest, InferenceResponse, ModelResult

logger = logging.getLogger(__name__)


def parse_detections(raw: Any) -> List[DetectionBox]:
    """
    Convert wire detections to DetectionBox objects

    Each detection is {"bbox_xyxy": [x1, y1, x2, y2], "class": str, "confidence": float}.

    Raises:
        InferenceError: If the list or any detection is malformed
    """
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise InferenceError(f"detections must be a list, got {type(raw).__name__}")

    boxes = []
    for index, detection in enumerate(raw):
        try:
            box = DetectionBox.from_xyxy(
                detection["bbox_xyxy"],
                label=detection["class"],
                confidence=detection["confidence"],
                id=f"inference_{index}",
            )
        except (KeyError, TypeError, ValueError) as e:
            raise InferenceError(f"detection {index} is malformed: {e}") from e
        if not 0.0 <= box.confidence <= 1.0:
            raise InferenceError(f"detection {index} has confidence {box.confidence} outside [0, 1]")
        boxes.append(box)
    return boxes


def _parse_model_result(model_name: str, data: Dict[str, Any], image_key: str) -> ModelResult:
    if data.get("error"):
        return ModelResult(model_name=model_name, error=str(data["error"]))
    try:
        detections = parse_detections(data.get("detections"))
    except InferenceError as e:
        return ModelResult(model_name=model_name, error=f"Malformed inference response: {e}")
    return ModelResult(model_name=model_name, detections=detections, result_image=data.get(image_key))


def parse_response(body: Any, model_names: List[str]) -> InferenceResponse:
    """
    Parse a /run_inference response body

    Accepts the multi-model form {"modelResults": [...]} and the single-model
    form {"originalImage": ..., "detections": [...]}. Requested models missing
    from the body get an error result.

    Raises:
        InferenceError: If the body is not a usable response at all
    """
    if not isinstance(body, dict):
        raise InferenceError("response body is not a JSON object")

    if "modelResults" in body:
        entries = body["modelResults"]
        if not isinstance(entries, list):
            raise InferenceError("modelResults must be a list")
        by_name = {}
        for entry in entries:
            if isinstance(entry, dict) and entry.get("model_name"):
                by_name[entry["model_name"]] = _parse_model_result(entry["model_name"], entry, "resultImage")
        results = [
            by_name.get(name) or ModelResult(model_name=name, error="No result returned for this model")
            for name in model_names
        ]
        # Keep results for models the service added on its own
        results.extend(r for name, r in by_name.items() if name not in model_names)
        return InferenceResponse(results=results)

    if "detections" in body:
        if len(model_names) != 1:
            raise InferenceError("single-model response returned for a multi-model request")
        return InferenceResponse(results=[_parse_model_result(model_names[0], body, "originalImage")])

    raise InferenceError("response has neither 'modelResults' nor 'detections'")


class InferenceGateway:
    """
    Client for POST /run_inference

    run() blocks and returns an InferenceResponse; submit() runs it on a
    worker thread and returns a Future so the UI can pick up the result on a
    later rerun.
    """

    def __init__(
        self,
        base_url: str = config.INFERENCE_API_ENDPOINT,
        timeout: float = config.INFERENCE_TIMEOUT,
        max_workers: int = config.INFERENCE_WORKERS,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the gateway

        Args:
            base_url: Base URL of the inference service
            timeout: Request timeout in seconds
            max_workers: Worker threads used by submit()
            session: Optional requests session (default: a new one)
        """
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()
        self.headers = {'Content-Type': 'application/json'}
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="inference")

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/run_inference"

    def run(self, request: InferenceRequest) -> InferenceResponse:
        """Run inference and return per-model results (never raises for service errors)"""
        logger.info(f"Running inference: models={request.model_names} image={request.image_url}")
        try:
            response = self.session.post(
                self.endpoint,
                headers=self.headers,
                json=request.to_payload(),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"Inference request failed: {e}")
            return InferenceResponse.failed(request.model_names, f"Inference request failed: {e}")

        if not response.ok:
            logger.error(f"Inference API error: {response.status_code} - {response.text[:200]}")
            return InferenceResponse.failed(
                request.model_names, f"Inference request failed (HTTP {response.status_code})"
            )

        try:
            result = parse_response(response.json(), request.model_names)
        except (ValueError, InferenceError) as e:
            # response.json() raises a ValueError subclass on invalid JSON
            logger.error(f"Malformed inference response: {e}")
            return InferenceResponse.failed(request.model_names, f"Malformed inference response: {e}")

        logger.info(
            f"Inference completed: {len(result.successes)} succeeded, {len(result.failures)} failed"
        )
        return result

    def submit(self, request: InferenceRequest) -> Future:
        """Run inference on a worker thread"""
        return self._executor.submit(self.run, request)

    def close(self) -> None:
        self._executor.shutdown(wait=False)
        self.session.close()
