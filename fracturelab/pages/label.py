"""
Label Page - review one model's detections on an X-ray and edit the boxes

Features:
- Random image picks and dataset browsing
- Interactive canvas for drawing, moving and resizing rectangles
- Inference with a single model, detections shown as read-only boxes
- Result panel with checkboxes and bulk delete
- Rating, comment and save
"""
import logging
from typing import List, Optional

import streamlit as st

from fracturelab.state import ReviewState
from fracturelab.services.annotation import DataGateway, GatewayError, ModelInfo, User
from fracturelab.services.editor.session import EditorState
from fracturelab.pages.review import (
    get_app_state,
    get_gateway,
    poll_inference,
    render_editor_canvas,
    render_editor_toolbar,
    render_random_picks,
    render_rating,
    render_result_panel,
    render_threshold_slider,
    render_unsaved_guard,
    request_image,
    start_inference,
)

logger = logging.getLogger(__name__)

KEY = "label"


def get_label_state() -> ReviewState:
    """Get label page state from session state"""
    return st.session_state.label_state


def render_dataset_sidebar(gateway: DataGateway, state: ReviewState):
    """Render dataset and image pickers in sidebar"""
    st.sidebar.header("Images")

    try:
        datasets = gateway.list_datasets()
    except GatewayError as e:
        st.sidebar.error(f"Could not load datasets: {e}")
        return

    dataset_names = ["All datasets"] + [d.dataset_name for d in datasets]
    selected = st.sidebar.selectbox("Dataset", dataset_names, key=f"{KEY}_dataset")
    dataset_id = None
    if selected != "All datasets":
        dataset_id = next(d.id for d in datasets if d.dataset_name == selected)

    try:
        images = gateway.list_images(dataset_id)
    except GatewayError as e:
        st.sidebar.error(f"Could not load images: {e}")
        return

    if not images:
        st.sidebar.info("No images in this dataset.")
        return

    labels = [""] + [f"{image.id}: {image.file_name}" for image in images]
    st.sidebar.selectbox(
        "Image",
        labels,
        key=f"{KEY}_image",
        on_change=on_image_choice,
        args=(state, images, labels),
    )


def on_image_choice(state: ReviewState, images, labels: List[str]):
    """Open the image picked in the sidebar selectbox"""
    choice = st.session_state[f"{KEY}_image"]
    if choice:
        request_image(state, images[labels.index(choice) - 1])


def render_model_picker(gateway: DataGateway, state: ReviewState) -> Optional[str]:
    """Render the model selectbox; returns the chosen model name"""
    try:
        models: List[ModelInfo] = gateway.list_models()
        default = gateway.default_model()
    except GatewayError as e:
        st.error(f"Could not load models: {e}")
        return None

    if not models:
        st.warning("No models registered.")
        return None

    names = [m.model_name for m in models]
    if state.selected_models and state.selected_models[0] in names:
        index = names.index(state.selected_models[0])
    elif default is not None:
        index = names.index(default.model_name)
    else:
        index = 0

    model_name = st.selectbox("Model", names, index=index, key=f"{KEY}_model")
    state.selected_models = [model_name]
    return model_name


def render_inference_controls(gateway: DataGateway, state: ReviewState):
    """Render model picker, threshold and the Run Inference button"""
    col1, col2, col3 = st.columns([2, 2, 1])

    with col1:
        model_name = render_model_picker(gateway, state)

    with col2:
        render_threshold_slider(state, key=f"{KEY}_threshold")

    with col3:
        ready = state.editor.session.state == EditorState.READY
        if st.button(
            "Run Inference",
            type="primary",
            disabled=not ready or model_name is None,
            key=f"{KEY}_run",
        ):
            start_inference(state, [model_name])
            st.rerun()


def render_model_result(gateway: DataGateway, state: ReviewState, user: User):
    """Render error or rating controls for the current model result"""
    result = state.editor.session.current_result
    if result is None:
        return

    st.divider()
    st.markdown(f"### {result.model_name}")
    if not result.ok:
        st.error(result.error)
        return

    render_rating(gateway, state, user, result, key_prefix=KEY)


def render_label_page():
    """Main label page render function"""
    state = get_label_state()
    user = get_app_state().user
    gateway = get_gateway()

    st.title("Label")

    # Sidebar: image pickers
    render_dataset_sidebar(gateway, state)

    # Apply finished inference before drawing anything that depends on it
    poll_inference(state)

    if render_unsaved_guard(gateway, state, user):
        return

    with st.expander("Random picks", expanded=state.image is None):
        render_random_picks(gateway, state, key_prefix=KEY)

    if state.image is None:
        st.info("Pick an image to start reviewing.")
        return

    st.markdown(f"**{state.image.file_name}**")
    if state.image.dataset_name:
        st.caption(state.image.dataset_name)

    render_inference_controls(gateway, state)

    st.divider()

    canvas_col, panel_col = st.columns([3, 1])

    with canvas_col:
        render_editor_toolbar(state, key_prefix=KEY)
        render_editor_canvas(state, key_prefix=KEY)

    with panel_col:
        render_result_panel(state, key_prefix=KEY)
        render_model_result(gateway, state, user)
