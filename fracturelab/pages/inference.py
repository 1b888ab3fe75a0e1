"""
Inference Page - compare several models on the same image

Runs any subset of the registered models in one request, shows one tab per
model (result image and summary, or the error) and lets the reviewer rate,
edit and save each result.
"""
from typing import List

import streamlit as st
from PIL import Image

from fracturelab.state import ReviewState
from fracturelab.services.annotation import DataGateway, GatewayError, User
from fracturelab.services.editor.session import EditorState
from fracturelab.services.images import load_image
from fracturelab.services.inference import ModelResult, summarize_detections
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
    start_inference,
)

KEY = "inference"


@st.cache_data(show_spinner=False, max_entries=32)
def load_result_image(reference: str) -> Image.Image:
    """Download and decode a result image once per reference"""
    return load_image(reference)


def get_inference_state() -> ReviewState:
    """Get inference page state from session state"""
    return st.session_state.inference_state


def render_model_selection(gateway: DataGateway, state: ReviewState) -> List[str]:
    """Render model multiselect with a Select all toggle"""
    try:
        names = [m.model_name for m in gateway.list_models()]
    except GatewayError as e:
        st.error(f"Could not load models: {e}")
        return []

    if not names:
        st.warning("No models registered.")
        return []

    select_all = st.checkbox("Select all", value=False, key=f"{KEY}_select_all")
    if select_all:
        selected = list(names)
        st.caption(", ".join(names))
    else:
        default = [name for name in state.selected_models if name in names]
        selected = st.multiselect("Models", names, default=default, key=f"{KEY}_models")

    state.selected_models = list(selected)
    return state.selected_models


def render_run_button(state: ReviewState, model_names: List[str]):
    ready = state.editor.session.state == EditorState.READY
    if st.button(
        f"Run {len(model_names)} model(s)" if model_names else "Run Inference",
        type="primary",
        disabled=not ready or not model_names,
        key=f"{KEY}_run",
    ):
        start_inference(state, model_names)
        st.rerun()


def render_result_card(gateway: DataGateway, state: ReviewState, user: User, result: ModelResult):
    """Render one model's result inside its tab"""
    if not result.ok:
        st.error(result.error)
        return

    if result.result_image:
        try:
            st.image(load_result_image(result.result_image))
        except (ValueError, OSError) as e:
            st.warning(f"Could not load result image: {e}")

    is_current = state.editor.session.selected_result_model == result.model_name
    boxes = state.editor.store.detections if is_current else result.detections
    st.markdown(summarize_detections(boxes))
    st.caption(f"{len(boxes)} detection(s)")

    if not is_current:
        if st.button("Edit on canvas", key=f"{KEY}_edit_{result.model_name}"):
            state.editor.select_result(result.model_name, image_loader=load_result_image)
            st.rerun()

    render_rating(gateway, state, user, result, key_prefix=KEY)


def render_result_tabs(gateway: DataGateway, state: ReviewState, user: User):
    """Render one tab per model result"""
    results = state.editor.session.results
    if not results:
        return

    succeeded = sum(1 for r in results if r.ok)
    st.subheader(f"Results ({succeeded}/{len(results)} succeeded)")

    tabs = st.tabs([r.model_name for r in results])
    for tab, result in zip(tabs, results):
        with tab:
            render_result_card(gateway, state, user, result)


def render_inference_page():
    """Main inference page render function"""
    state = get_inference_state()
    user = get_app_state().user
    gateway = get_gateway()

    st.title("Inference")

    poll_inference(state)

    if render_unsaved_guard(gateway, state, user):
        return

    with st.expander("Random picks", expanded=state.image is None):
        render_random_picks(gateway, state, key_prefix=KEY)

    if state.image is None:
        st.info("Pick an image to run models on.")
        return

    st.markdown(f"**{state.image.file_name}**")

    col1, col2 = st.columns([3, 2])
    with col1:
        model_names = render_model_selection(gateway, state)
    with col2:
        render_threshold_slider(state, key=f"{KEY}_threshold")
        render_run_button(state, model_names)

    st.divider()

    render_result_tabs(gateway, state, user)

    current = state.editor.session.current_result
    if current is not None:
        st.divider()
        st.markdown(f"### Editing: {current.model_name}")

    canvas_col, panel_col = st.columns([3, 1])
    with canvas_col:
        render_editor_toolbar(state, key_prefix=KEY)
        render_editor_canvas(state, key_prefix=KEY)
    with panel_col:
        render_result_panel(state, key_prefix=KEY)
