"""
Shared pytest fixtures for editor tests
"""
import pytest
from PIL import Image

from fracturelab.services.editor import (
    DetectionBox,
    GeometryStore,
    Point,
    SelectionController,
    Tool,
)
from fracturelab.services.editor.controller import EditorController


TEST_IMAGE_WIDTH = 400
TEST_IMAGE_HEIGHT = 300


@pytest.fixture
def store():
    """Create an empty GeometryStore with the default minimum size"""
    return GeometryStore(min_size=20)


@pytest.fixture
def drawing_store(store):
    """Create a GeometryStore with the bounding-box tool active"""
    store.tool = Tool.BOUNDING_BOX
    return store


@pytest.fixture
def store_with_rectangle(drawing_store):
    """Create a store holding one committed 100x50 rectangle at (10, 10)"""
    drawing_store.start_rectangle(Point(10, 10))
    drawing_store.update_drawing_rectangle(Point(110, 60))
    drawing_store.commit_rectangle()
    return drawing_store


@pytest.fixture
def selection(store_with_rectangle):
    """Create a SelectionController with rect1 selected"""
    controller = SelectionController(store_with_rectangle)
    controller.select("rect1")
    return controller


@pytest.fixture
def sample_detections():
    """Create three detection boxes"""
    return [
        DetectionBox.from_xyxy([10, 20, 60, 90], "fracture", 0.87, id="inference_0"),
        DetectionBox.from_xyxy([100, 100, 150, 160], "fracture", 0.5, id="inference_1"),
        DetectionBox.from_xyxy([200, 40, 260, 120], "cast", 0.9, id="inference_2"),
    ]


@pytest.fixture
def sample_image():
    """Create simple test image"""
    return Image.new("RGB", (TEST_IMAGE_WIDTH, TEST_IMAGE_HEIGHT), color="black")


@pytest.fixture
def editor(sample_image):
    """Create an EditorController with an image loaded"""
    controller = EditorController(min_size=20)
    controller.select_image(image_id=1)
    controller.image_loaded(sample_image)
    return controller
