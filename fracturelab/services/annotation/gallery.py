"""
Image Gallery - search, filter, sort and paginate image records
"""
import math
from typing import Iterable, List, Optional

from fracturelab import config
from .models import ImageRecord

SORT_OPTIONS = ("newest", "oldest", "updated", "filename")


class ImageGallery:
    """Paged view over a list of images"""

    def __init__(self, images: Iterable[ImageRecord], per_page: int = config.IMAGES_PER_PAGE):
        if per_page < 1:
            raise ValueError(f"per_page must be positive, got {per_page}")
        self.images = list(images)
        self.per_page = per_page
        self.search_term = ""
        self.dataset_id: Optional[int] = None
        self.sort_by = "newest"
        self.page = 1

    def filtered(self) -> List[ImageRecord]:
        """Images matching the dataset filter and search term, in sort order"""
        images = self.images
        if self.dataset_id is not None:
            images = [img for img in images if img.dataset_id == self.dataset_id]
        term = self.search_term.strip().lower()
        if term:
            images = [img for img in images if term in img.file_name.lower()]

        if self.sort_by == "newest":
            return sorted(images, key=lambda img: img.created_at, reverse=True)
        if self.sort_by == "oldest":
            return sorted(images, key=lambda img: img.created_at)
        if self.sort_by == "updated":
            return sorted(images, key=lambda img: img.modified_at, reverse=True)
        return sorted(images, key=lambda img: img.file_name.lower())

    @property
    def total_pages(self) -> int:
        return max(1, math.ceil(len(self.filtered()) / self.per_page))

    def current_page(self) -> List[ImageRecord]:
        start = (self.page - 1) * self.per_page
        return self.filtered()[start:start + self.per_page]

    def set_search(self, term: str) -> None:
        self.search_term = term or ""
        self.page = 1

    def set_dataset(self, dataset_id: Optional[int]) -> None:
        self.dataset_id = dataset_id
        self.page = 1

    def set_sort(self, sort_by: str) -> None:
        if sort_by not in SORT_OPTIONS:
            raise ValueError(f"Unknown sort option: {sort_by}")
        self.sort_by = sort_by

    def go_to(self, page: int) -> None:
        self.page = min(max(1, page), self.total_pages)

    def next_page(self) -> None:
        self.go_to(self.page + 1)

    def prev_page(self) -> None:
        self.go_to(self.page - 1)
