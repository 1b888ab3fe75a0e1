"""
FractureLab - fracture detection review and annotation

Main application entry point with sidebar navigation.
"""
import streamlit as st

from fracturelab import config
from fracturelab.logging_utils import setup_logging
from fracturelab.state import init_session_state, reset_session_state
from fracturelab.pages import (
    render_login_page,
    render_label_page,
    render_inference_page,
    render_gallery_page,
)

PAGES = {
    "Label": render_label_page,
    "Inference": render_inference_page,
    "Gallery": render_gallery_page,
}

_logging_configured = False


def configure_logging():
    """Install log handlers once per process"""
    global _logging_configured
    if not _logging_configured:
        setup_logging(log_dir=config.LOG_DIR, level=config.LOG_LEVEL)
        _logging_configured = True


def render_sidebar() -> str:
    """Render navigation and account controls; returns the selected page"""
    app_state = st.session_state.app_state
    names = list(PAGES)

    st.sidebar.title("FractureLab")
    page = st.sidebar.radio(
        "Navigation",
        names,
        index=names.index(app_state.current_page) if app_state.current_page in names else 0,
        label_visibility="collapsed",
    )
    app_state.current_page = page

    st.sidebar.divider()
    st.sidebar.caption(f"Signed in as {app_state.user.email}")
    if st.sidebar.button("Sign Out"):
        reset_session_state()
        st.rerun()
    st.sidebar.divider()

    return page


def main():
    """Main application entry point"""
    # Page config
    st.set_page_config(
        page_title="FractureLab",
        page_icon="",
        layout="wide",
    )

    configure_logging()

    # Initialize session state
    init_session_state()

    if st.session_state.app_state.user is None:
        render_login_page()
        return

    page = render_sidebar()
    PAGES[page]()


if __name__ == "__main__":
    main()
