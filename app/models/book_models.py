"""
Book Models
-----------
Pydantic models for collection books, wishlist books and volumes returned by
the Google Books catalog.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator

from app.models.base_models import CamelModel


DEFAULT_AUTHOR = "Unknown author"


def _clean_tags(tags: Optional[List[str]]) -> List[str]:
    cleaned = []
    for tag in tags or []:
        tag = tag.strip()
        if tag and tag not in cleaned:
            cleaned.append(tag)
    return cleaned


# ============================================================================
# CATALOG
# ============================================================================


class CatalogBook(CamelModel):
    """A volume from the external catalog, flattened to the fields we keep."""

    google_book_id: str
    title: str
    author: str = DEFAULT_AUTHOR
    description: Optional[str] = None
    thumbnail: Optional[str] = None
    tags: List[str] = Field(default_factory=list)


# ============================================================================
# COLLECTION
# ============================================================================


class BookResponse(CamelModel):
    id: int
    google_book_id: Optional[str] = None
    title: str
    author: Optional[str] = None
    description: Optional[str] = None
    thumbnail: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    read_count: int = 0
    is_active: bool = True
    added_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None


class BookCreateRequest(CamelModel):
    """Manually entered book."""

    title: str = Field(..., min_length=1, max_length=255)
    author: Optional[str] = Field(default=None, max_length=255)
    description: Optional[str] = None
    thumbnail: Optional[str] = Field(default=None, max_length=512)
    tags: List[str] = Field(default_factory=list)
    google_book_id: Optional[str] = Field(default=None, max_length=64)

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Title is required")
        return v.strip()

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: List[str]) -> List[str]:
        return _clean_tags(v)


class BookUpdateRequest(CamelModel):
    """Partial update; omitted fields are left unchanged."""

    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    author: Optional[str] = Field(default=None, max_length=255)
    description: Optional[str] = None
    thumbnail: Optional[str] = Field(default=None, max_length=512)
    tags: Optional[List[str]] = None
    finished_at: Optional[datetime] = None

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return None if v is None else _clean_tags(v)


class BookStatusResponse(CamelModel):
    google_book_id: str
    exists_active: bool
    exists_inactive: bool


# ============================================================================
# WISHLIST
# ============================================================================


class WishlistBookResponse(CamelModel):
    id: int
    google_book_id: Optional[str] = None
    title: str
    author: Optional[str] = None
    description: Optional[str] = None
    thumbnail: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    added_at: Optional[datetime] = None
