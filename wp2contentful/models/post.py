from __future__ import annotations

from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class ImageReference(BaseModel):
    """One image used by a post: its featured image or an ``<img>`` in the body."""

    model_config = ConfigDict(frozen=True)

    source_url: str
    alt_text: str
    title: str
    owner_post_id: int
    is_featured: bool = False
    media_id: Optional[int] = None


class NormalizedPost(BaseModel):
    """
    Canonical representation of a WordPress post once tags, categories and
    images have been resolved against the fetched auxiliary collections.
    """

    model_config = ConfigDict(frozen=True)

    source_id: int
    source_type: str = "post"
    title: str = ""
    slug: str = ""
    raw_html_content: str = ""
    publish_date_utc: Optional[str] = None
    featured_media_id: int = 0
    featured_image_ref: Optional[ImageReference] = None
    tag_names: Tuple[str, ...] = Field(default_factory=tuple)
    category_names: Tuple[str, ...] = Field(default_factory=tuple)
    images: Tuple[ImageReference, ...] = Field(default_factory=tuple)
