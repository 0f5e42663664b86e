"""
Normalization of raw WordPress posts.

A raw post only carries numeric references to its tags, categories and
featured media.  :func:`normalize_post` resolves them against a
:class:`~wp2contentful.extractors.resource_index.ResourceIndex`, collects
every image the post uses and returns an immutable
:class:`~wp2contentful.models.post.NormalizedPost`.  Missing references are
logged and left out; they never make normalization fail.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, Iterable, List, Optional

from wp2contentful.models.post import ImageReference, NormalizedPost
from wp2contentful.utils.labels import normalize_label

from .resource_index import ResourceIndex

logger = logging.getLogger(__name__)

_IMG_TAG_RE = re.compile(r"""<img\s[^>]*?src\s*=\s*['"]([^'"]*?)['"][^>]*?>""")
_ALT_RE = re.compile(r'alt="([^"]*)"')


def _rendered(value: Any) -> str:
    # WordPress wraps title/content as {"rendered": "..."}
    if isinstance(value, dict):
        rendered = value.get("rendered")
        return rendered if isinstance(rendered, str) else ""
    return value if isinstance(value, str) else ""


def _as_int(value: Any, default: int = 0) -> int:
    if isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _id_list(value: Any) -> List[Any]:
    return list(value) if isinstance(value, (list, tuple)) else []


def resolve_labels(label_ids: Iterable[Any], kind: str, index: ResourceIndex, post_slug: str = "") -> List[str]:
    """
    Map tag or category ids to their names, keeping the order of
    ``label_ids``.  Ids that do not resolve are skipped.
    """
    names: List[str] = []
    for label_id in label_ids:
        record = index.lookup(kind, label_id)
        raw_name = record.get("name") if record else None
        name = normalize_label(raw_name) if isinstance(raw_name, str) else ""
        if name:
            names.append(name)
        else:
            logger.warning("Warning: %s with ID %s not found (post '%s')", kind, label_id, post_slug)
    return names


def extract_body_images(html: str, post_id: int) -> List[ImageReference]:
    """Return one ImageReference per ``<img src=...>`` tag, in document order."""
    images: List[ImageReference] = []
    default_alt = f"Image from post {post_id}"
    for match in _IMG_TAG_RE.finditer(html or ""):
        alt_match = _ALT_RE.search(match.group(0))
        alt = alt_match.group(1) if alt_match and alt_match.group(1) else default_alt
        images.append(
            ImageReference(
                source_url=match.group(1),
                alt_text=alt,
                title=alt,
                owner_post_id=post_id,
                is_featured=False,
            )
        )
    return images


def resolve_featured_image(
    featured_media_id: int, post_id: int, index: ResourceIndex, post_slug: str = ""
) -> Optional[ImageReference]:
    if featured_media_id <= 0:
        return None
    media = index.lookup("media", featured_media_id)
    source_url = media.get("source_url") if media else None
    if not isinstance(source_url, str) or not source_url:
        logger.warning(
            "Warning: Featured media with ID %s not found for post: %s", featured_media_id, post_slug
        )
        return None
    alt = media.get("alt_text")
    text = alt if isinstance(alt, str) and alt.strip() else f"Featured image for post {post_id}"
    return ImageReference(
        source_url=source_url,
        alt_text=text,
        title=text,
        owner_post_id=post_id,
        is_featured=True,
        media_id=featured_media_id,
    )


def normalize_post(raw_post: Dict[str, Any], index: ResourceIndex) -> NormalizedPost:
    post_id = _as_int(raw_post.get("id"))
    slug = raw_post.get("slug") if isinstance(raw_post.get("slug"), str) else ""
    content = _rendered(raw_post.get("content"))
    date_gmt = raw_post.get("date_gmt")
    featured_media_id = _as_int(raw_post.get("featured_media"))

    featured = resolve_featured_image(featured_media_id, post_id, index, slug)
    images = ([featured] if featured else []) + extract_body_images(content, post_id)

    return NormalizedPost(
        source_id=post_id,
        source_type=raw_post.get("type") if isinstance(raw_post.get("type"), str) else "post",
        title=normalize_label(_rendered(raw_post.get("title"))),
        slug=slug,
        raw_html_content=content,
        publish_date_utc=f"{date_gmt}+00:00" if isinstance(date_gmt, str) and date_gmt else None,
        featured_media_id=max(featured_media_id, 0),
        featured_image_ref=featured,
        tag_names=tuple(resolve_labels(_id_list(raw_post.get("tags")), "tags", index, slug)),
        category_names=tuple(resolve_labels(_id_list(raw_post.get("categories")), "categories", index, slug)),
        images=tuple(images),
    )


def normalize_posts(raw_posts: Iterable[Any], index: ResourceIndex) -> List[NormalizedPost]:
    posts: List[NormalizedPost] = []
    for raw_post in raw_posts:
        if not isinstance(raw_post, dict):
            logger.error("Skipping malformed post record of type %s", type(raw_post).__name__)
            continue
        logger.info("Parsing %s", raw_post.get("slug") or raw_post.get("id"))
        posts.append(normalize_post(raw_post, index))
    return posts
