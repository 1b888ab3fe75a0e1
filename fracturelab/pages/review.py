"""
Review helpers shared by the Label and Inference pages

Image selection (with the unsaved-results guard), inference submission and
polling, the editor toolbar/canvas, the result panel and saving results.
"""
import logging
from typing import List, Optional

import streamlit as st

from fracturelab import config
from fracturelab.state import AppState, ReviewState
from fracturelab.services.annotation import (
    AnnotationRecord,
    DataGateway,
    GatewayError,
    ImageRecord,
    JsonFileGateway,
    SaveOutcome,
    User,
)
from fracturelab.services.editor import Tool, editor_canvas, parse_canvas_result
from fracturelab.services.editor.session import EditorState
from fracturelab.services.images import load_image
from fracturelab.services.inference import (
    InferenceGateway,
    InferenceRequest,
    ModelResult,
    threshold_from_percent,
)

logger = logging.getLogger(__name__)

DUPLICATE_NOTICE = "Result has already been saved."


def get_app_state() -> AppState:
    """Get application state from session state"""
    return st.session_state.app_state


def get_gateway() -> DataGateway:
    """Data gateway shared by all pages of this session"""
    if "data_gateway" not in st.session_state:
        st.session_state.data_gateway = JsonFileGateway()
    return st.session_state.data_gateway


def get_inference_gateway() -> InferenceGateway:
    """Inference client shared by all pages of this session"""
    if "inference_gateway" not in st.session_state:
        st.session_state.inference_gateway = InferenceGateway()
    return st.session_state.inference_gateway


# ============================================================================
# Image selection
# ============================================================================

def load_review_image(state: ReviewState, image: ImageRecord, keep_rectangles: bool = False) -> bool:
    """Switch the editor to an image and load its pixels"""
    state.image = image
    state.pending_image = None
    state.last_batch_id = None
    state.editor.select_image(image.id, keep_rectangles=keep_rectangles)

    try:
        pixels = load_image(image.url)
    except (ValueError, OSError) as e:
        # requests.RequestException is an OSError
        logger.error(f"Failed to load image {image.id} from {image.url}: {e}")
        st.error(f"Could not load image {image.file_name}: {e}")
        return False

    state.editor.image_loaded(pixels)
    return True


def request_image(state: ReviewState, image: ImageRecord) -> bool:
    """
    Ask to switch to an image

    If the current image has inference results that were never saved, the
    switch is parked in state.pending_image until the user confirms.

    Returns:
        True if the image was switched immediately
    """
    if state.image is not None and state.image.id == image.id:
        return False
    state.editor.session.sync_current_detections()
    if state.editor.session.has_unsaved_results:
        state.pending_image = image
        return False
    return load_review_image(state, image)


def render_unsaved_guard(gateway: DataGateway, state: ReviewState, user: User) -> bool:
    """
    Render the unsaved-results confirmation if a switch is pending

    Returns:
        True if the confirmation is showing
    """
    if state.pending_image is None:
        return False

    st.warning(
        f"The results for {state.image.file_name if state.image else 'this image'} have not been saved. "
        f"Save them before opening {state.pending_image.file_name}?"
    )
    col1, col2, col3 = st.columns(3)

    with col1:
        if st.button("Save", type="primary", key="guard_save"):
            saved = [save_result(gateway, state, user, result) for result in state.editor.session.results if result.ok]
            if all(saved):
                load_review_image(state, state.pending_image)
                st.rerun()

    with col2:
        if st.button("Don't Save", key="guard_discard"):
            load_review_image(state, state.pending_image)
            st.rerun()

    with col3:
        if st.button("Cancel", key="guard_cancel"):
            state.pending_image = None
            st.rerun()

    return True


def render_random_picks(gateway: DataGateway, state: ReviewState, key_prefix: str):
    """Render a row of randomly picked images to open"""
    header_col, shuffle_col = st.columns([4, 1])
    with header_col:
        st.markdown("**Random picks**")
    with shuffle_col:
        shuffle = st.button("Shuffle", key=f"{key_prefix}_shuffle")

    if shuffle or not state.random_images:
        try:
            state.random_images = gateway.random_images(config.RANDOM_IMAGE_COUNT)
        except GatewayError as e:
            st.error(f"Could not load images: {e}")
            return

    if not state.random_images:
        st.info("No images available.")
        return

    cols = st.columns(len(state.random_images))
    for col, image in zip(cols, state.random_images):
        with col:
            st.image(image.url, width=config.THUMBNAIL_WIDTH)
            is_current = state.image is not None and state.image.id == image.id
            if st.button(
                image.file_name,
                type="primary" if is_current else "secondary",
                key=f"{key_prefix}_pick_{image.id}",
            ):
                request_image(state, image)
                st.rerun()


# ============================================================================
# Inference
# ============================================================================

def start_inference(state: ReviewState, model_names: List[str]) -> bool:
    """Submit an inference request for the current image"""
    if state.image is None or not model_names:
        return False

    request = InferenceRequest(
        model_names=list(model_names),
        image_url=state.image.url,
        confidence_threshold=threshold_from_percent(state.threshold),
    )
    state.pending_ticket = state.editor.begin_inference()
    state.pending_models = list(model_names)
    state.pending_future = get_inference_gateway().submit(request)
    return True


def poll_inference(state: ReviewState) -> Optional[bool]:
    """
    Wait for the in-flight inference and apply it

    Returns:
        True if a response was applied, False if it was stale and dropped,
        None if nothing was pending
    """
    future, ticket = state.pending_future, state.pending_ticket
    if future is None or ticket is None:
        return None

    if not state.editor.session.is_current(ticket):
        future.cancel()
        state.pending_future = None
        state.pending_ticket = None
        logger.debug(f"Dropping inference for {ticket}: image changed")
        return False

    # Pending fields stay set until the future resolves; an interrupted rerun
    # waits on the same future
    with st.spinner(f"Running inference with {', '.join(state.pending_models)}..."):
        try:
            response = future.result()
        except Exception as e:
            logger.exception("Inference worker failed")
            state.pending_future = None
            state.pending_ticket = None
            state.editor.session.fail_inference(ticket, state.pending_models, f"Inference failed: {e}")
            st.error(f"Inference failed: {e}")
            return True

    state.pending_future = None
    state.pending_ticket = None

    if not state.editor.apply_inference(ticket, response, image_loader=load_image):
        return False

    succeeded, failed = len(response.successes), len(response.failures)
    message = f"{succeeded} model(s) succeeded, {failed} failed."
    if failed:
        st.warning(message)
    else:
        st.success(message)
    return True


def render_threshold_slider(state: ReviewState, key: str):
    state.threshold = st.slider(
        "Confidence threshold (%)",
        min_value=0,
        max_value=100,
        value=state.threshold,
        key=key,
    )


# ============================================================================
# Editor
# ============================================================================

def render_editor_toolbar(state: ReviewState, key_prefix: str):
    """Render tool and view controls"""
    editor = state.editor
    col1, col2, col3, col4, col5 = st.columns(5)

    with col1:
        if st.button(
            "Bounding Box",
            type="primary" if editor.tool == Tool.BOUNDING_BOX else "secondary",
            use_container_width=True,
            key=f"{key_prefix}_tool_bbox",
        ):
            editor.toggle_bounding_box_tool()
            st.rerun()

    with col2:
        if st.button("Clear All", use_container_width=True, key=f"{key_prefix}_clear"):
            editor.clear_all()
            st.rerun()

    with col3:
        if st.button("Zoom In", use_container_width=True, key=f"{key_prefix}_zoom_in"):
            editor.zoom_in()
            st.rerun()

    with col4:
        if st.button("Zoom Out", use_container_width=True, key=f"{key_prefix}_zoom_out"):
            editor.zoom_out()
            st.rerun()

    with col5:
        if st.button("Reset View", use_container_width=True, key=f"{key_prefix}_reset_view"):
            editor.reset_view()
            st.rerun()


def render_editor_canvas(state: ReviewState, key_prefix: str):
    """Render the canvas and apply the event batch it reports"""
    editor = state.editor
    if editor.session.state == EditorState.IMAGE_LOADING:
        st.info("Loading image...")
        return

    result = editor_canvas(editor, key=f"{key_prefix}_canvas_{state.image.id if state.image else 'none'}")
    events, batch_id = parse_canvas_result(result)

    # Skip if we already processed this batch (prevents infinite loop)
    if not events or (batch_id is not None and batch_id == state.last_batch_id):
        return

    state.last_batch_id = batch_id
    if editor.dispatch_all(events):
        editor.session.sync_current_detections()
        st.rerun()


def render_result_panel(state: ReviewState, key_prefix: str):
    """Render the detection list with checkboxes and bulk delete"""
    panel = state.editor.results
    st.markdown("### Detections")

    entries = panel.entries()
    if not entries:
        st.info("No detections. Run inference or draw boxes on the image.")
        return

    st.caption(panel.summary())

    for entry in entries:
        checked = st.checkbox(
            f"{entry.caption} {entry.coordinates_text}",
            value=entry.checked,
            key=f"{key_prefix}_check_{entry.id}",
        )
        if checked != entry.checked:
            panel.toggle(entry.id, checked)
            st.rerun()

    if st.button("Delete Selected", disabled=not panel.can_delete, key=f"{key_prefix}_delete_checked"):
        removed = panel.delete_checked()
        state.editor.session.sync_current_detections()
        st.success(f"Deleted {removed} detection(s)")
        st.rerun()

    with st.expander("Copy Result"):
        st.code(panel.as_text(), language="json")


# ============================================================================
# Rating & saving
# ============================================================================

def save_result(gateway: DataGateway, state: ReviewState, user: User, result: ModelResult) -> bool:
    """Persist a reviewed model result. Returns True on success (including duplicates)."""
    if state.image is None:
        return False

    state.editor.session.sync_current_detections()
    try:
        model = gateway.get_model_by_name(result.model_name)
        if model is None:
            st.error(f"Unknown model: {result.model_name}")
            return False

        record = AnnotationRecord(
            image_id=state.image.id,
            model_id=model.id,
            by_user_id=user.id,
            detections=result.detections_payload(),
            rating=result.rating,
            comment=result.comment,
        )
        outcome = gateway.save_annotation(record)
    except GatewayError as e:
        st.error(f"Failed to save result: {e}")
        return False

    state.editor.session.mark_saved(result.model_name)
    if outcome == SaveOutcome.DUPLICATE:
        st.info(DUPLICATE_NOTICE)
    elif outcome == SaveOutcome.UPDATED:
        st.success(f"Updated saved result for {result.model_name}")
    else:
        st.success(f"Saved result for {result.model_name}")
    return True


def render_rating(gateway: DataGateway, state: ReviewState, user: User, result: ModelResult, key_prefix: str):
    """Render rating, comment and save controls for one model result"""
    session = state.editor.session
    is_current = session.selected_result_model == result.model_name

    rating = st.slider(
        "Rating",
        min_value=0,
        max_value=5,
        value=result.rating,
        key=f"{key_prefix}_rating_{result.model_name}",
    )
    comment = st.text_area(
        "Comment",
        value=result.comment,
        key=f"{key_prefix}_comment_{result.model_name}",
        height=80,
    )
    if rating != result.rating or comment != result.comment:
        if is_current:
            session.set_rating(rating)
            session.set_comment(comment)
        else:
            result.rating = rating
            result.comment = comment
            result.is_saved = False

    if result.is_saved:
        st.caption("Saved")

    if st.button("Save Result", type="primary", key=f"{key_prefix}_save_{result.model_name}"):
        save_result(gateway, state, user, result)
