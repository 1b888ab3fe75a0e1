"""
Shared pytest fixtures for page tests
"""
from concurrent.futures import Future
from contextlib import ExitStack
from unittest.mock import MagicMock, patch

import pytest
from PIL import Image

from fracturelab.state import AppState, GalleryState, ReviewState
from fracturelab.services.annotation import JsonFileGateway
from fracturelab.services.editor import DetectionBox
from fracturelab.services.inference import InferenceResponse, ModelResult


TEST_IMAGE_WIDTH = 400
TEST_IMAGE_HEIGHT = 300

PAGE_MODULES = (
    "fracturelab.pages.review",
    "fracturelab.pages.label",
    "fracturelab.pages.inference",
    "fracturelab.pages.gallery",
    "fracturelab.pages.login",
)


class SessionState(dict):
    """Dict with attribute access, like st.session_state"""

    def __getattr__(self, name):
        try:
            return self[name]
        except KeyError as e:
            raise AttributeError(name) from e

    def __setattr__(self, name, value):
        self[name] = value


def _columns(spec, **kwargs):
    count = spec if isinstance(spec, int) else len(spec)
    return [MagicMock() for _ in range(count)]


def _select(label, options, index=0, **kwargs):
    options = list(options)
    return options[index] if options else None


@pytest.fixture
def mock_streamlit():
    """Mock Streamlit module for UI testing; widgets return their defaults."""
    mock_st = MagicMock()

    # Mock sidebar
    mock_st.sidebar = MagicMock()
    mock_st.sidebar.button = MagicMock(return_value=False)
    mock_st.sidebar.selectbox = MagicMock(side_effect=_select)
    mock_st.sidebar.radio = MagicMock(side_effect=_select)

    # Mock main UI elements
    mock_st.button = MagicMock(return_value=False)
    mock_st.checkbox = MagicMock(side_effect=lambda label, value=False, **kw: value)
    mock_st.slider = MagicMock(side_effect=lambda label, min_value=None, max_value=None, value=None, **kw: value)
    mock_st.text_area = MagicMock(side_effect=lambda label, value="", **kw: value)
    mock_st.text_input = MagicMock(side_effect=lambda label, value="", **kw: value)
    mock_st.selectbox = MagicMock(side_effect=_select)
    mock_st.multiselect = MagicMock(side_effect=lambda label, options, default=None, **kw: list(default or []))
    mock_st.columns = MagicMock(side_effect=_columns)
    mock_st.tabs = MagicMock(side_effect=lambda labels: [MagicMock() for _ in labels])
    mock_st.rerun = MagicMock()

    # Mock session state
    mock_st.session_state = SessionState()

    return mock_st


@pytest.fixture
def patched_pages(mock_streamlit):
    """Patch st in every page module with the same mock"""
    with ExitStack() as stack:
        for module in PAGE_MODULES:
            stack.enter_context(patch(f"{module}.st", mock_streamlit))
        yield mock_streamlit


@pytest.fixture
def sample_pixels():
    """Create simple test image"""
    return Image.new("RGB", (TEST_IMAGE_WIDTH, TEST_IMAGE_HEIGHT), color="black")


@pytest.fixture
def mock_load_image(sample_pixels):
    """Patch image loading so no files or URLs are touched"""
    with patch("fracturelab.pages.review.load_image", return_value=sample_pixels) as loader:
        yield loader


@pytest.fixture
def gateway(tmp_path):
    """Seeded JsonFileGateway with one user, two models and three images"""
    data = JsonFileGateway(base_path=tmp_path / "gateway")
    data.add_model("yolov8-fracture", "YOLOv8")
    data.add_model("faster-rcnn", "Faster R-CNN")
    wrist = data.add_dataset("wrist")
    data.add_image("http://img/1.png", "wrist_001.png", dataset_id=wrist.id)
    data.add_image("http://img/2.png", "wrist_002.png", dataset_id=wrist.id)
    data.add_image("http://img/3.png", "wrist_003.png", dataset_id=wrist.id)
    return data


@pytest.fixture
def user(gateway):
    return gateway.check_and_create_user("reviewer@example.org", auth_id="reviewer@example.org")


@pytest.fixture
def inference_gateway():
    """Mock InferenceGateway whose submit() returns pre-set futures"""
    return MagicMock()


@pytest.fixture
def session_state(mock_streamlit, gateway, user, inference_gateway):
    """Populate the mock session state like init_session_state() does"""
    state = mock_streamlit.session_state
    state.app_state = AppState(user=user)
    state.label_state = ReviewState()
    state.inference_state = ReviewState()
    state.gallery_state = GalleryState()
    state.data_gateway = gateway
    state.inference_gateway = inference_gateway
    return state


@pytest.fixture
def loaded_state(patched_pages, mock_load_image, gateway):
    """ReviewState with image 1 loaded"""
    from fracturelab.pages.review import load_review_image

    state = ReviewState()
    load_review_image(state, gateway.get_image(1))
    return state


@pytest.fixture
def sample_response():
    """Response with one successful model"""
    return InferenceResponse(results=[
        ModelResult(
            model_name="yolov8-fracture",
            detections=[
                DetectionBox.from_xyxy([10, 20, 60, 90], "fracture", 0.87, id="inference_0"),
                DetectionBox.from_xyxy([100, 100, 150, 160], "fracture", 0.5, id="inference_1"),
            ],
        ),
    ])


@pytest.fixture
def completed_future():
    """Factory for an already-resolved Future"""
    def _make(response):
        future = Future()
        future.set_result(response)
        return future
    return _make


# Helper fixtures for verifying UI components by label


@pytest.fixture
def find_button():
    """
    Find button call by its label in mock Streamlit button calls.

    Returns:
        Function (mock_st, label) -> call args, or None if not found
    """
    def _find(mock_st, label):
        for call in mock_st.button.call_args_list:
            if call[0][0] == label:  # First positional arg is the label
                return call
        return None
    return _find


@pytest.fixture
def click():
    """Make st.button return True for the given labels only"""
    def _click(mock_st, *labels):
        mock_st.button.side_effect = lambda label, *args, **kwargs: label in labels
    return _click
