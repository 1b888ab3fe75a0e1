"""
Editor Session - per-image state machine and inference bookkeeping

    IDLE -> IMAGE_LOADING -> READY -> INFERENCE_RUNNING -> READY

Inference requests are tagged with an InferenceTicket. A response is applied
only if its ticket is the latest one issued for the image that is still
selected; anything else is a stale response and is dropped.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional

from fracturelab.services.inference.types import InferenceResponse, ModelResult
from .geometry import GeometryStore

logger = logging.getLogger(__name__)

MAX_RATING = 5


class EditorState(str, Enum):
    IDLE = "idle"
    IMAGE_LOADING = "image_loading"
    READY = "ready"
    INFERENCE_RUNNING = "inference_running"


@dataclass(frozen=True)
class InferenceTicket:
    """Tag identifying which image and request a response belongs to"""
    image_id: Any
    request_id: int


class EditorSession:
    """Tracks the selected image, model results and the session state"""

    def __init__(self, store: GeometryStore):
        self.store = store
        self.state = EditorState.IDLE
        self.image_id: Any = None
        self.results: List[ModelResult] = []
        self.selected_result_model: Optional[str] = None
        self.has_inference_run = False
        self._next_request_id = 1
        self._latest_request_id: Optional[int] = None

    # ------------------------------------------------------------------
    # Image lifecycle
    # ------------------------------------------------------------------
    def select_image(self, image_id: Any, keep_rectangles: bool = False) -> None:
        """Switch to a new image, discarding detections and the checked set"""
        self.image_id = image_id
        self.state = EditorState.IMAGE_LOADING
        self.results = []
        self.selected_result_model = None
        self.has_inference_run = False
        self._latest_request_id = None
        self.store.replace_detection_boxes([])
        if not keep_rectangles:
            self.store.clear_all()

    def image_loaded(self) -> None:
        if self.state == EditorState.IMAGE_LOADING:
            self.state = EditorState.READY

    # ------------------------------------------------------------------
    # Inference
    # ------------------------------------------------------------------
    def begin_inference(self) -> InferenceTicket:
        """Issue a ticket for a new request against the current image"""
        if self.state in (EditorState.IDLE, EditorState.IMAGE_LOADING):
            raise RuntimeError(f"Cannot run inference while {self.state.value}")
        ticket = InferenceTicket(image_id=self.image_id, request_id=self._next_request_id)
        self._next_request_id += 1
        self._latest_request_id = ticket.request_id
        self.state = EditorState.INFERENCE_RUNNING
        return ticket

    def is_current(self, ticket: InferenceTicket) -> bool:
        return ticket.image_id == self.image_id and ticket.request_id == self._latest_request_id

    def apply_inference(self, ticket: InferenceTicket, response: InferenceResponse) -> bool:
        """
        Apply a response if its ticket is still current

        Returns:
            True if applied, False if the response was stale and dropped
        """
        if not self.is_current(ticket):
            logger.debug(f"Dropping stale inference response {ticket} (current image {self.image_id})")
            return False

        self.results = list(response.results)
        self.has_inference_run = True
        self.state = EditorState.READY

        first = next((r for r in self.results if r.ok), None) or (self.results[0] if self.results else None)
        self.selected_result_model = first.model_name if first else None
        self.store.replace_detection_boxes(first.detections if first and first.ok else [])
        return True

    def fail_inference(self, ticket: InferenceTicket, model_names: List[str], message: str) -> bool:
        """Record an unexpected failure for every requested model (if still current)"""
        return self.apply_inference(ticket, InferenceResponse.failed(model_names, message))

    # ------------------------------------------------------------------
    # Model results
    # ------------------------------------------------------------------
    @property
    def current_result(self) -> Optional[ModelResult]:
        for result in self.results:
            if result.model_name == self.selected_result_model:
                return result
        return None

    def select_result(self, model_name: str) -> ModelResult:
        """Show another model's result; edits to the current one are kept"""
        target = next((r for r in self.results if r.model_name == model_name), None)
        if target is None:
            raise KeyError(f"No result for model: {model_name}")

        self.sync_current_detections()

        self.selected_result_model = model_name
        self.store.replace_detection_boxes(target.detections if target.ok else [])
        return target

    def sync_current_detections(self) -> None:
        """
        Copy the (possibly edited) store detections back into the current result

        A result whose detections changed since it was saved is unsaved again.
        """
        current = self.current_result
        if current is None or not current.ok:
            return
        detections = list(self.store.detections)
        if detections != current.detections:
            current.detections = detections
            current.is_saved = False

    def set_rating(self, rating: int) -> None:
        if not 0 <= rating <= MAX_RATING:
            raise ValueError(f"Rating must be between 0 and {MAX_RATING}, got {rating}")
        current = self.current_result
        if current is not None and current.rating != rating:
            current.rating = rating
            current.is_saved = False

    def set_comment(self, comment: str) -> None:
        current = self.current_result
        if current is not None and current.comment != comment:
            current.comment = comment
            current.is_saved = False

    def mark_saved(self, model_name: str) -> None:
        for result in self.results:
            if result.model_name == model_name:
                result.is_saved = True

    @property
    def has_unsaved_results(self) -> bool:
        """An inference has run and no successful result has been saved yet"""
        successes = [r for r in self.results if r.ok]
        return self.has_inference_run and bool(successes) and not any(r.is_saved for r in successes)
