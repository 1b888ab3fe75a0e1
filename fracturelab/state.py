"""
Application state management for FractureLab

Contains dataclasses for session state that persists across Streamlit reruns.
"""
from concurrent.futures import Future
from dataclasses import dataclass, field
from typing import List, Optional

from fracturelab import config
from fracturelab.services.annotation import ImageGallery, ImageRecord, User
from fracturelab.services.editor import EditorController, InferenceTicket


@dataclass
class AppState:
    """Signed-in user and navigation"""
    user: Optional[User] = None
    current_page: str = "Label"


@dataclass
class ReviewState:
    """State of one review page (image, editor and in-flight inference)"""
    editor: EditorController = field(default_factory=EditorController)
    image: Optional[ImageRecord] = None
    random_images: List[ImageRecord] = field(default_factory=list)
    selected_models: List[str] = field(default_factory=list)
    threshold: int = config.DEFAULT_CONFIDENCE_THRESHOLD
    # In-flight inference
    pending_future: Optional[Future] = None
    pending_ticket: Optional[InferenceTicket] = None
    pending_models: List[str] = field(default_factory=list)
    # Image waiting on the unsaved-results confirmation
    pending_image: Optional[ImageRecord] = None
    # Last canvas event batch applied (prevents replaying a batch on rerun)
    last_batch_id: Optional[str] = None


@dataclass
class GalleryState:
    """Application state for the gallery tab"""
    gallery: ImageGallery = field(default_factory=lambda: ImageGallery([]))


def init_session_state():
    """Initialize session state if not already done"""
    import streamlit as st

    if "app_state" not in st.session_state:
        st.session_state.app_state = AppState()

    if "label_state" not in st.session_state:
        st.session_state.label_state = ReviewState()

    if "inference_state" not in st.session_state:
        st.session_state.inference_state = ReviewState()

    if "gallery_state" not in st.session_state:
        st.session_state.gallery_state = GalleryState()


def reset_session_state():
    """Drop all per-user state (used on sign out)"""
    import streamlit as st

    # Stop the worker threads and HTTP session of this session's inference client
    inference_gateway = st.session_state.get("inference_gateway")
    if inference_gateway is not None:
        inference_gateway.close()
        del st.session_state["inference_gateway"]

    for key in ("app_state", "label_state", "inference_state", "gallery_state"):
        if key in st.session_state:
            del st.session_state[key]
    init_session_state()
