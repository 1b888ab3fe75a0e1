"""
Annotation Service

Provides data models, the data gateway and image browsing for reviewing
model detections.

Usage:
    from fracturelab.services.annotation import JsonFileGateway, AnnotationRecord

    gateway = JsonFileGateway(base_path="data/gateway")
    user = gateway.check_and_create_user("reviewer@example.org", auth_id="reviewer@example.org")

    # Register catalogue entries
    model = gateway.add_model("yolov8-fracture", "YOLOv8 trained on wrist X-rays")
    dataset = gateway.add_dataset("wrist")
    image = gateway.import_image(Path("xray.png"), dataset_id=dataset.id)

    # Save a reviewed result
    record = AnnotationRecord(image_id=image.id, model_id=model.id, by_user_id=user.id,
                              detections=[...], rating=4, comment="Good")
    outcome = gateway.save_annotation(record)  # INSERTED, UPDATED or DUPLICATE

    # Browse images
    from fracturelab.services.annotation import ImageGallery
    gallery = ImageGallery(gateway.list_images())
    gallery.set_search("wrist")
    page = gallery.current_page()
"""
from .models import (
    User,
    ModelInfo,
    Dataset,
    ImageRecord,
    AnnotationRecord,
    SaveOutcome,
)
from .storage import DataGateway, JsonFileGateway, GatewayError
from .gallery import ImageGallery, SORT_OPTIONS

__all__ = [
    "User",
    "ModelInfo",
    "Dataset",
    "ImageRecord",
    "AnnotationRecord",
    "SaveOutcome",
    "DataGateway",
    "JsonFileGateway",
    "GatewayError",
    "ImageGallery",
    "SORT_OPTIONS",
]
