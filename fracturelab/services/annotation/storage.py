"""
Data Gateway

Users, models, datasets, images and saved annotations, behind one interface.
DataGateway holds the rules (user check-and-create, duplicate/update handling
on save); subclasses only provide table access.

JsonFileGateway directory structure:
    data/gateway/
        users.json
        models.json
        datasets.json
        images.json
        model_anno.json
        images/
            image1.png
"""
import json
import logging
import random
import shutil
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from PIL import Image

from fracturelab import config
from .models import AnnotationRecord, Dataset, ImageRecord, ModelInfo, SaveOutcome, User

logger = logging.getLogger(__name__)


class GatewayError(Exception):
    """Raised when the backing store cannot be read or written"""


class DataGateway(ABC):
    """Session/data interface consumed by the pages"""

    # ------------------------------------------------------------------
    # Table access (implemented by subclasses)
    # ------------------------------------------------------------------
    @abstractmethod
    def list_models(self) -> List[ModelInfo]:
        ...

    @abstractmethod
    def list_datasets(self) -> List[Dataset]:
        ...

    @abstractmethod
    def list_images(self, dataset_id: Optional[int] = None) -> List[ImageRecord]:
        ...

    @abstractmethod
    def find_user(self, auth_id: str) -> Optional[User]:
        ...

    @abstractmethod
    def insert_user(self, email: str, auth_id: str, role: str) -> User:
        ...

    @abstractmethod
    def find_annotations(self, image_id: int, model_id: int, user_id: int) -> List[AnnotationRecord]:
        ...

    @abstractmethod
    def insert_annotation(self, record: AnnotationRecord) -> AnnotationRecord:
        ...

    @abstractmethod
    def update_annotation(self, record: AnnotationRecord) -> AnnotationRecord:
        ...

    # ------------------------------------------------------------------
    # Rules shared by all backends
    # ------------------------------------------------------------------
    def get_image(self, image_id: int) -> Optional[ImageRecord]:
        for image in self.list_images():
            if image.id == image_id:
                return image
        return None

    def get_model_by_name(self, model_name: str) -> Optional[ModelInfo]:
        for model in self.list_models():
            if model.model_name == model_name:
                return model
        return None

    def default_model(self) -> Optional[ModelInfo]:
        """Model with the configured default ID, if present"""
        for model in self.list_models():
            if model.id == config.DEFAULT_MODEL_ID:
                return model
        return None

    def random_images(self, count: int = config.RANDOM_IMAGE_COUNT, rng: Optional[random.Random] = None) -> List[ImageRecord]:
        """Pick up to count distinct images at random"""
        images = self.list_images()
        rng = rng or random.Random()
        return rng.sample(images, min(count, len(images)))

    def check_and_create_user(self, email: str, auth_id: str) -> User:
        """Return the user for auth_id, registering a new editor if needed"""
        user = self.find_user(auth_id)
        if user is not None:
            return user
        logger.info(f"Registering new user {email}")
        return self.insert_user(email=email, auth_id=auth_id, role="editor")

    def save_annotation(self, record: AnnotationRecord) -> SaveOutcome:
        """
        Save a reviewer's annotation

        - Same image, model, author and identical content: nothing is written
        - Same image, model and author with different content: updated in place
        - Otherwise: inserted

        Raises:
            GatewayError: If the backing store fails
        """
        existing = self.find_annotations(record.image_id, record.model_id, record.by_user_id)
        key = record.payload_key()
        if any(e.payload_key() == key for e in existing):
            return SaveOutcome.DUPLICATE

        if existing:
            record.id = existing[0].id
            record.created_at = existing[0].created_at
            record.updated_at = datetime.now()
            self.update_annotation(record)
            logger.info(f"Updated annotation {record.id} (image={record.image_id}, model={record.model_id})")
            return SaveOutcome.UPDATED

        self.insert_annotation(record)
        logger.info(f"Inserted annotation {record.id} (image={record.image_id}, model={record.model_id})")
        return SaveOutcome.INSERTED


class JsonFileGateway(DataGateway):
    """
    DataGateway backed by one JSON file per table

    Rows are stored in the same shape as the hosted tables so exported files
    can be loaded by either backend.
    """

    TABLES = ("users", "models", "datasets", "images", "model_anno")

    def __init__(self, base_path: Path = None):
        """
        Initialize the gateway

        Args:
            base_path: Directory holding the table files (default: config.GATEWAY_DIR)
        """
        if base_path is None:
            base_path = config.GATEWAY_DIR
        self.base_path = Path(base_path)
        self.base_path.mkdir(parents=True, exist_ok=True)

    def _table_path(self, table: str) -> Path:
        """Get the JSON file path for a table"""
        if table not in self.TABLES:
            raise ValueError(f"Unknown table: {table}")
        return self.base_path / f"{table}.json"

    @property
    def images_dir(self) -> Path:
        return self.base_path / "images"

    def _read(self, table: str) -> List[Dict[str, Any]]:
        path = self._table_path(table)
        if not path.exists():
            return []
        try:
            with open(path, "r", encoding="utf-8") as f:
                rows = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to read {path}: {e}")
            raise GatewayError(f"Failed to read {table}: {e}") from e
        if not isinstance(rows, list):
            raise GatewayError(f"Table {table} is not a list")
        return rows

    def _write(self, table: str, rows: List[Dict[str, Any]]) -> None:
        path = self._table_path(table)
        tmp_path = path.with_suffix(".json.tmp")
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(rows, f, indent=2, ensure_ascii=False)
            tmp_path.replace(path)
        except OSError as e:
            logger.error(f"Failed to write {path}: {e}")
            raise GatewayError(f"Failed to write {table}: {e}") from e

    @staticmethod
    def _next_id(rows: List[Dict[str, Any]]) -> int:
        return max((row["id"] for row in rows), default=0) + 1

    # ------------------------------------------------------------------
    # Catalogue
    # ------------------------------------------------------------------
    def list_models(self) -> List[ModelInfo]:
        return [ModelInfo.from_dict(row) for row in self._read("models")]

    def list_datasets(self) -> List[Dataset]:
        return [Dataset.from_dict(row) for row in self._read("datasets")]

    def list_images(self, dataset_id: Optional[int] = None) -> List[ImageRecord]:
        images = [ImageRecord.from_dict(row) for row in self._read("images")]
        if dataset_id is not None:
            images = [image for image in images if image.dataset_id == dataset_id]
        return images

    def add_model(self, model_name: str, model_description: str = "") -> ModelInfo:
        rows = self._read("models")
        model = ModelInfo(id=self._next_id(rows), model_name=model_name, model_description=model_description)
        rows.append(model.to_dict())
        self._write("models", rows)
        return model

    def add_dataset(self, dataset_name: str) -> Dataset:
        rows = self._read("datasets")
        dataset = Dataset(id=self._next_id(rows), dataset_name=dataset_name)
        rows.append(dataset.to_dict())
        self._write("datasets", rows)
        return dataset

    def add_image(
        self,
        url: str,
        file_name: str,
        dataset_id: Optional[int] = None,
        description: Optional[str] = None,
        width: int = 0,
        height: int = 0,
    ) -> ImageRecord:
        rows = self._read("images")
        dataset_name = None
        if dataset_id is not None:
            dataset = next((d for d in self.list_datasets() if d.id == dataset_id), None)
            if dataset is None:
                raise ValueError(f"Unknown dataset: {dataset_id}")
            dataset_name = dataset.dataset_name

        image = ImageRecord(
            id=self._next_id(rows),
            url=url,
            file_name=file_name,
            description=description,
            dataset_id=dataset_id,
            dataset_name=dataset_name,
            width=width,
            height=height,
        )
        rows.append(image.to_dict())
        self._write("images", rows)
        return image

    def import_image(self, source_path: Path, dataset_id: Optional[int] = None, description: Optional[str] = None) -> ImageRecord:
        """
        Copy a local image into the gateway's image directory and register it

        Args:
            source_path: Path to source image
            dataset_id: Dataset to add the image to
            description: Optional description

        Returns:
            The new image record (url is the absolute path of the copy)
        """
        source_path = Path(source_path)
        with Image.open(source_path) as img:
            width, height = img.size

        self.images_dir.mkdir(parents=True, exist_ok=True)
        dest_path = self.images_dir / source_path.name

        # Handle name collisions
        counter = 1
        while dest_path.exists():
            dest_path = self.images_dir / f"{source_path.stem}_{counter}{source_path.suffix}"
            counter += 1

        shutil.copy2(source_path, dest_path)
        return self.add_image(
            url=str(dest_path.resolve()),
            file_name=dest_path.name,
            dataset_id=dataset_id,
            description=description,
            width=width,
            height=height,
        )

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------
    def find_user(self, auth_id: str) -> Optional[User]:
        for row in self._read("users"):
            if row["auth_id"] == auth_id:
                return User.from_dict(row)
        return None

    def insert_user(self, email: str, auth_id: str, role: str) -> User:
        rows = self._read("users")
        user = User(id=self._next_id(rows), email=email, auth_id=auth_id, role=role)
        rows.append(user.to_dict())
        self._write("users", rows)
        return user

    # ------------------------------------------------------------------
    # Annotations
    # ------------------------------------------------------------------
    def find_annotations(self, image_id: int, model_id: int, user_id: int) -> List[AnnotationRecord]:
        return [
            AnnotationRecord.from_dict(row)
            for row in self._read("model_anno")
            if row["image_id"] == image_id and row["model_id"] == model_id and row["by_user_id"] == user_id
        ]

    def list_annotations(self) -> List[AnnotationRecord]:
        return [AnnotationRecord.from_dict(row) for row in self._read("model_anno")]

    def insert_annotation(self, record: AnnotationRecord) -> AnnotationRecord:
        rows = self._read("model_anno")
        record.id = self._next_id(rows)
        rows.append(record.to_dict())
        self._write("model_anno", rows)
        return record

    def update_annotation(self, record: AnnotationRecord) -> AnnotationRecord:
        rows = self._read("model_anno")
        for index, row in enumerate(rows):
            if row["id"] == record.id:
                rows[index] = record.to_dict()
                self._write("model_anno", rows)
                return record
        raise GatewayError(f"Annotation {record.id} not found")
