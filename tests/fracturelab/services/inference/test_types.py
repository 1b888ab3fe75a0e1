"""
Tests for inference request/response types
"""
import pytest

from fracturelab.services.editor import DetectionBox
from fracturelab.services.inference import (
    InferenceRequest,
    InferenceResponse,
    ModelResult,
    threshold_from_percent,
)


class TestThreshold:
    """Tests for threshold_from_percent()"""

    @pytest.mark.parametrize("percent,expected", [(50, 0.5), (0, 0.0), (100, 1.0), (-10, 0.0), (150, 1.0)])
    def test_converts_and_clamps(self, percent, expected):
        assert threshold_from_percent(percent) == pytest.approx(expected)


class TestInferenceRequest:
    """Tests for InferenceRequest"""

    def test_single_model_payload(self):
        request = InferenceRequest(model_names="yolo", image_url="http://img/1.png", confidence_threshold=0.5)

        assert request.to_payload() == {
            "model_name": "yolo",
            "imageUrl": "http://img/1.png",
            "confidenceThreshold": 0.5,
        }

    def test_multi_model_payload(self):
        request = InferenceRequest(model_names=["yolo", "rcnn"], image_url="http://img/1.png")

        assert request.to_payload()["model_names"] == ["yolo", "rcnn"]
        assert "model_name" not in request.to_payload()

    def test_requires_model(self):
        with pytest.raises(ValueError):
            InferenceRequest(model_names=[], image_url="http://img/1.png")

    def test_threshold_must_be_fraction(self):
        with pytest.raises(ValueError):
            InferenceRequest(model_names=["yolo"], image_url="http://img/1.png", confidence_threshold=50)


class TestInferenceResponse:
    """Tests for ModelResult and InferenceResponse"""

    def test_successes_and_failures(self):
        response = InferenceResponse(results=[
            ModelResult(model_name="yolo"),
            ModelResult(model_name="rcnn", error="boom"),
        ])

        assert [r.model_name for r in response.successes] == ["yolo"]
        assert [r.model_name for r in response.failures] == ["rcnn"]
        assert response.get("missing") is None

    def test_failed(self):
        response = InferenceResponse.failed(["yolo", "rcnn"], "Inference request failed: timeout")

        assert [r.error for r in response.results] == ["Inference request failed: timeout"] * 2

    def test_model_result_to_dict(self):
        result = ModelResult(
            model_name="yolo",
            detections=[DetectionBox.from_xyxy([1, 2, 3, 4], "fracture", 0.5)],
            rating=3,
        )
        data = result.to_dict()

        assert data["detections"] == [{"bbox_xyxy": [1.0, 2.0, 3.0, 4.0], "class": "fracture", "confidence": 0.5}]
        assert data["rating"] == 3
        assert data["isSaved"] is False
