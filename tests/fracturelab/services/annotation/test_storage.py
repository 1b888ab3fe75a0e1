"""
Tests for DataGateway rules and the JsonFileGateway backend
"""
import json
import random
from unittest.mock import patch

import pytest

from fracturelab.services.annotation import (
    AnnotationRecord,
    GatewayError,
    JsonFileGateway,
    SaveOutcome,
)


class TestJsonFileGatewayInit:
    """Tests for JsonFileGateway initialization"""

    def test_creates_directory(self, tmp_path):
        """Test gateway creates its base directory"""
        base_path = tmp_path / "new_gateway"
        JsonFileGateway(base_path=base_path)

        assert base_path.exists()

    def test_default_path(self, tmp_path):
        """Test gateway uses the configured directory when none provided"""
        with patch("fracturelab.config.GATEWAY_DIR", tmp_path / "configured"):
            gateway = JsonFileGateway()

        assert gateway.base_path == tmp_path / "configured"

    def test_empty_tables(self, temp_gateway):
        """Test a fresh gateway has no rows"""
        assert temp_gateway.list_models() == []
        assert temp_gateway.list_images() == []
        assert temp_gateway.list_datasets() == []


class TestCatalogue:
    """Tests for models, datasets and images"""

    def test_models(self, seeded_gateway):
        models = seeded_gateway.list_models()

        assert [m.model_name for m in models] == ["yolov8-fracture", "faster-rcnn"]
        assert seeded_gateway.get_model_by_name("faster-rcnn").id == 2
        assert seeded_gateway.get_model_by_name("missing") is None

    def test_default_model_is_id_1(self, seeded_gateway):
        assert seeded_gateway.default_model().model_name == "yolov8-fracture"

    def test_list_images_by_dataset(self, seeded_gateway):
        wrist = seeded_gateway.list_images(dataset_id=1)

        assert [img.file_name for img in wrist] == ["wrist_001.png", "wrist_002.png"]
        assert wrist[0].dataset_name == "wrist"

    def test_get_image(self, seeded_gateway):
        assert seeded_gateway.get_image(3).file_name == "ankle_001.png"
        assert seeded_gateway.get_image(99) is None

    def test_add_image_unknown_dataset(self, temp_gateway):
        with pytest.raises(ValueError):
            temp_gateway.add_image("http://img/1.png", "a.png", dataset_id=7)

    def test_random_images(self, seeded_gateway):
        """Test random picks are distinct and capped by the number of images"""
        picks = seeded_gateway.random_images(count=6, rng=random.Random(0))

        assert len(picks) == 3
        assert len({img.id for img in picks}) == 3

    def test_random_images_count(self, seeded_gateway):
        assert len(seeded_gateway.random_images(count=2, rng=random.Random(1))) == 2

    def test_import_image(self, temp_gateway, sample_image_file):
        """Test importing copies the file and records its size"""
        dataset = temp_gateway.add_dataset("wrist")
        image = temp_gateway.import_image(sample_image_file, dataset_id=dataset.id)

        assert (image.width, image.height) == (64, 48)
        assert (temp_gateway.images_dir / "xray.png").exists()
        assert image.url.endswith("xray.png")

    def test_import_image_name_collision(self, temp_gateway, sample_image_file):
        temp_gateway.import_image(sample_image_file)
        second = temp_gateway.import_image(sample_image_file)

        assert second.file_name == "xray_1.png"


class TestUsers:
    """Tests for check_and_create_user()"""

    def test_creates_editor(self, temp_gateway):
        user = temp_gateway.check_and_create_user("reviewer@example.org", auth_id="auth-1")

        assert user.id == 1
        assert user.role == "editor"

    def test_returns_existing(self, temp_gateway):
        first = temp_gateway.check_and_create_user("reviewer@example.org", auth_id="auth-1")
        second = temp_gateway.check_and_create_user("reviewer@example.org", auth_id="auth-1")

        assert first.id == second.id
        assert len(json.loads((temp_gateway.base_path / "users.json").read_text())) == 1

    def test_table_uses_hosted_column_names(self, temp_gateway):
        temp_gateway.check_and_create_user("reviewer@example.org", auth_id="auth-1")
        row = json.loads((temp_gateway.base_path / "users.json").read_text())[0]

        assert row["user_email"] == "reviewer@example.org"
        assert row["user_role"] == "editor"


class TestSaveAnnotation:
    """Tests for save_annotation() outcomes"""

    def test_insert(self, temp_gateway, sample_record):
        assert temp_gateway.save_annotation(sample_record) == SaveOutcome.INSERTED
        assert sample_record.id == 1
        assert len(temp_gateway.list_annotations()) == 1

    def test_identical_is_duplicate(self, temp_gateway, sample_record):
        """Test saving identical content again writes nothing"""
        temp_gateway.save_annotation(sample_record)
        again = AnnotationRecord(
            image_id=1,
            model_id=1,
            by_user_id=1,
            detections=list(sample_record.detections),
            rating=sample_record.rating,
            comment=sample_record.comment,
        )

        assert temp_gateway.save_annotation(again) == SaveOutcome.DUPLICATE
        assert len(temp_gateway.list_annotations()) == 1

    def test_changed_content_updates_in_place(self, temp_gateway, sample_record):
        temp_gateway.save_annotation(sample_record)
        edited = AnnotationRecord(image_id=1, model_id=1, by_user_id=1, detections=[], rating=2)

        assert temp_gateway.save_annotation(edited) == SaveOutcome.UPDATED

        rows = temp_gateway.list_annotations()
        assert len(rows) == 1
        assert rows[0].id == 1
        assert rows[0].detections == []
        assert rows[0].rating == 2

    def test_rating_change_is_not_duplicate(self, temp_gateway, sample_record):
        temp_gateway.save_annotation(sample_record)
        rerated = AnnotationRecord(
            image_id=1, model_id=1, by_user_id=1, detections=list(sample_record.detections), rating=5,
            comment=sample_record.comment,
        )

        assert temp_gateway.save_annotation(rerated) == SaveOutcome.UPDATED

    def test_other_author_inserts(self, temp_gateway, sample_record):
        temp_gateway.save_annotation(sample_record)
        other = AnnotationRecord(image_id=1, model_id=1, by_user_id=2, detections=list(sample_record.detections))

        assert temp_gateway.save_annotation(other) == SaveOutcome.INSERTED
        assert len(temp_gateway.list_annotations()) == 2

    def test_corrupt_table_raises_gateway_error(self, temp_gateway, sample_record):
        (temp_gateway.base_path / "model_anno.json").write_text("{not json", encoding="utf-8")

        with pytest.raises(GatewayError):
            temp_gateway.save_annotation(sample_record)

    def test_update_missing_raises(self, temp_gateway, sample_record):
        sample_record.id = 42

        with pytest.raises(GatewayError):
            temp_gateway.update_annotation(sample_record)
