"""
Tests for session state helpers
"""
from unittest.mock import MagicMock, patch

import pytest

from fracturelab.state import AppState, ReviewState, init_session_state, reset_session_state


class SessionState(dict):
    def __getattr__(self, name):
        try:
            return self[name]
        except KeyError as e:
            raise AttributeError(name) from e

    def __setattr__(self, name, value):
        self[name] = value


@pytest.fixture
def session_state():
    state = SessionState()
    with patch("streamlit.session_state", state):
        yield state


class TestInitSessionState:
    """Tests for init_session_state()"""

    def test_creates_missing_state(self, session_state):
        init_session_state()

        assert set(session_state) == {"app_state", "label_state", "inference_state", "gallery_state"}

    def test_keeps_existing_state(self, session_state):
        label_state = ReviewState(selected_models=["yolov8-fracture"])
        session_state.label_state = label_state

        init_session_state()

        assert session_state.label_state is label_state


class TestResetSessionState:
    """Tests for reset_session_state()"""

    def test_drops_user(self, session_state):
        session_state.app_state = AppState(current_page="Gallery")

        reset_session_state()

        assert session_state.app_state.current_page == "Label"

    def test_closes_inference_gateway(self, session_state):
        gateway = MagicMock()
        session_state.inference_gateway = gateway

        reset_session_state()

        gateway.close.assert_called_once_with()
        assert "inference_gateway" not in session_state

    def test_without_inference_gateway(self, session_state):
        reset_session_state()

        assert "inference_gateway" not in session_state
