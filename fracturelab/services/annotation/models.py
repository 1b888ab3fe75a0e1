"""
Annotation Data Models

Dataclasses for users, models, datasets, images and saved model annotations.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional
import json


def _parse_time(value: Optional[str]) -> datetime:
    return datetime.fromisoformat(value) if value else datetime.now()


@dataclass
class User:
    """
    Signed-in reviewer

    Attributes:
        id: Internal user ID
        email: Login email
        auth_id: Identifier issued by the authentication provider
        role: User role ("editor" for self-registered users)
    """
    id: int
    email: str
    auth_id: str
    role: str = "editor"
    created_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_email": self.email,
            "auth_id": self.auth_id,
            "user_role": self.role,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "User":
        return cls(
            id=data["id"],
            email=data["user_email"],
            auth_id=data["auth_id"],
            role=data.get("user_role", "editor"),
            created_at=_parse_time(data.get("created_at")),
        )


@dataclass
class ModelInfo:
    """Detection model offered by the inference service"""
    id: int
    model_name: str
    model_description: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "model_name": self.model_name, "model_description": self.model_description}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ModelInfo":
        return cls(
            id=data["id"],
            model_name=data["model_name"],
            model_description=data.get("model_description", ""),
        )


@dataclass
class Dataset:
    """Named group of images"""
    id: int
    dataset_name: str

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "dataset_name": self.dataset_name}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Dataset":
        return cls(id=data["id"], dataset_name=data["dataset_name"])


@dataclass
class ImageRecord:
    """
    Image available for review

    Attributes:
        id: Image ID
        url: Where the image can be fetched from (also sent to the inference service)
        file_name: Original file name
        description: Optional free-text description
        dataset_id: Dataset the image belongs to
        dataset_name: Name of that dataset
        width: Image width in pixels (0 if unknown)
        height: Image height in pixels (0 if unknown)
    """
    id: int
    url: str
    file_name: str
    description: Optional[str] = None
    dataset_id: Optional[int] = None
    dataset_name: Optional[str] = None
    width: int = 0
    height: int = 0
    created_at: datetime = field(default_factory=datetime.now)
    modified_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "url": self.url,
            "file_name": self.file_name,
            "description": self.description,
            "dataset_id": self.dataset_id,
            "dataset_name": self.dataset_name,
            "width": self.width,
            "height": self.height,
            "created_at": self.created_at.isoformat(),
            "modified_at": self.modified_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ImageRecord":
        return cls(
            id=data["id"],
            url=data["url"],
            file_name=data["file_name"],
            description=data.get("description"),
            dataset_id=data.get("dataset_id"),
            dataset_name=data.get("dataset_name"),
            width=data.get("width", 0),
            height=data.get("height", 0),
            created_at=_parse_time(data.get("created_at")),
            modified_at=_parse_time(data.get("modified_at")),
        )


class SaveOutcome(str, Enum):
    """Result of DataGateway.save_annotation"""
    INSERTED = "inserted"
    UPDATED = "updated"
    DUPLICATE = "duplicate"


@dataclass
class AnnotationRecord:
    """
    A reviewer's saved judgement of one model's result on one image

    Attributes:
        image_id: Reviewed image
        model_id: Model whose result was reviewed
        by_user_id: Reviewer
        detections: Detections as edited, in wire format
            ({"bbox_xyxy": [...], "class": ..., "confidence": ...})
        rating: 0 (unrated) to 5
        comment: Free-text comment
        id: Record ID, assigned when first stored
    """
    image_id: int
    model_id: int
    by_user_id: int
    detections: List[Dict[str, Any]] = field(default_factory=list)
    rating: int = 0
    comment: str = ""
    id: Optional[int] = None
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    def payload_key(self) -> str:
        """Canonical form of the reviewed content, used for duplicate detection"""
        return json.dumps(
            {"detections": self.detections, "rating": self.rating, "comment": self.comment},
            sort_keys=True,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "image_id": self.image_id,
            "model_id": self.model_id,
            "by_user_id": self.by_user_id,
            "anno_json": self.detections,
            "rating": self.rating,
            "comment": self.comment,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AnnotationRecord":
        return cls(
            id=data.get("id"),
            image_id=data["image_id"],
            model_id=data["model_id"],
            by_user_id=data["by_user_id"],
            detections=data.get("anno_json", []),
            rating=data.get("rating", 0),
            comment=data.get("comment", ""),
            created_at=_parse_time(data.get("created_at")),
            updated_at=_parse_time(data.get("updated_at")),
        )
