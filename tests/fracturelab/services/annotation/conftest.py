"""
Shared pytest fixtures for annotation tests
"""
import pytest
from datetime import datetime
from PIL import Image

from fracturelab.services.annotation import AnnotationRecord, ImageRecord, JsonFileGateway


@pytest.fixture
def temp_gateway(tmp_path):
    """Create a JsonFileGateway in a temporary directory"""
    return JsonFileGateway(base_path=tmp_path / "gateway")


@pytest.fixture
def seeded_gateway(temp_gateway):
    """Gateway with two models, two datasets and three images"""
    temp_gateway.add_model("yolov8-fracture", "YOLOv8")
    temp_gateway.add_model("faster-rcnn", "Faster R-CNN")
    wrist = temp_gateway.add_dataset("wrist")
    ankle = temp_gateway.add_dataset("ankle")
    temp_gateway.add_image("http://img/1.png", "wrist_001.png", dataset_id=wrist.id, width=512, height=512)
    temp_gateway.add_image("http://img/2.png", "wrist_002.png", dataset_id=wrist.id, width=512, height=512)
    temp_gateway.add_image("http://img/3.png", "ankle_001.png", dataset_id=ankle.id, width=640, height=480)
    return temp_gateway


@pytest.fixture
def sample_record():
    """Create an annotation record for image 1, model 1, user 1"""
    return AnnotationRecord(
        image_id=1,
        model_id=1,
        by_user_id=1,
        detections=[{"bbox_xyxy": [10.0, 20.0, 60.0, 90.0], "class": "fracture", "confidence": 0.87}],
        rating=4,
        comment="Clear distal radius fracture",
    )


@pytest.fixture
def sample_image_file(tmp_path):
    """Create a PNG file on disk"""
    path = tmp_path / "xray.png"
    Image.new("RGB", (64, 48), color="gray").save(path)
    return path


@pytest.fixture
def gallery_images():
    """Create 30 image records with distinct timestamps"""
    images = []
    for i in range(30):
        images.append(ImageRecord(
            id=i + 1,
            url=f"http://img/{i + 1}.png",
            file_name=f"{'wrist' if i % 2 == 0 else 'ankle'}_{i:03d}.png",
            dataset_id=1 if i % 2 == 0 else 2,
            created_at=datetime(2024, 1, 1 + i),
            modified_at=datetime(2024, 3, 30 - i),
        ))
    return images
