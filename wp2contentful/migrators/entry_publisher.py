"""
Entry stage of the migration.

Entry fields are produced from a static table of :class:`FieldMapping`
rows, one per destination field, so the payload shape lives in one place.
Entries are then created and published concurrently, each failure isolated
to its own entry.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

import requests

from wp2contentful.models.asset import AssetMap, file_name_from_url
from wp2contentful.models.entry import EntryPayload, EntryResult
from wp2contentful.models.post import NormalizedPost
from wp2contentful.parsers.content_converter import convert
from wp2contentful.utils.errors import MigrationError, describe_exception, report_error, report_ok
from wp2contentful.utils.labels import join_labels

from .batch import run_batch
from .contentful_migrator import ContentfulClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PayloadContext:
    asset_map: AssetMap
    content_format: str
    locale: str


@dataclass(frozen=True)
class FieldMapping:
    """
    How one NormalizedPost attribute becomes one entry field.  A mapping is
    skipped when ``include_if`` rejects the source value or when
    ``transform`` returns ``None``.
    """

    source_field: str
    destination_field: str
    transform: Callable[[Any, NormalizedPost, PayloadContext], Any]
    include_if: Callable[[Any], bool] = lambda value: True


def _identity(value: Any, post: NormalizedPost, ctx: PayloadContext) -> Any:
    return value


def _join(value: Any, post: NormalizedPost, ctx: PayloadContext) -> str:
    return join_labels(value)


def _convert_content(value: Any, post: NormalizedPost, ctx: PayloadContext) -> Any:
    return convert(value, ctx.content_format, ctx.asset_map.url_for)


def featured_anchor_file_name(post: NormalizedPost) -> Optional[str]:
    """File name of the image that backs the featured link, falling back to the first image."""
    anchor = post.featured_image_ref or (post.images[0] if post.images else None)
    if anchor is None:
        return None
    return file_name_from_url(anchor.source_url) or None


def _featured_link(value: Any, post: NormalizedPost, ctx: PayloadContext) -> Optional[Dict[str, Any]]:
    file_name = featured_anchor_file_name(post)
    asset_id = ctx.asset_map.asset_id_for(file_name) if file_name else None
    if not asset_id:
        logger.warning("Featured image for '%s' has no published asset (%s); omitting it", post.slug, file_name)
        report_error("FEATURED_IMAGE_MISSING", {"slug": post.slug, "file_name": file_name})
        return None
    return {"sys": {"type": "Link", "linkType": "Asset", "id": asset_id}}


FIELD_MAPPINGS = (
    FieldMapping("title", "postTitle", _identity),
    FieldMapping("slug", "slug", _identity),
    FieldMapping("raw_html_content", "content", _convert_content),
    FieldMapping("publish_date_utc", "publishDate", _identity),
    FieldMapping("featured_media_id", "featuredImage", _featured_link, include_if=lambda value: value > 0),
    FieldMapping("tag_names", "tags", _join),
    FieldMapping("category_names", "categories", _join),
)


def build_entry_payload(
    post: NormalizedPost,
    *,
    asset_map: AssetMap,
    content_format: str,
    locale: str,
) -> EntryPayload:
    ctx = PayloadContext(asset_map=asset_map, content_format=content_format, locale=locale)
    fields: Dict[str, Dict[str, Any]] = {}
    for mapping in FIELD_MAPPINGS:
        raw = getattr(post, mapping.source_field)
        if not mapping.include_if(raw):
            continue
        value = mapping.transform(raw, post, ctx)
        if value is None:
            continue
        fields[mapping.destination_field] = {locale: value}
    return EntryPayload(slug=post.slug, title=post.title, fields=fields)


def build_entry_payloads(
    posts: Iterable[NormalizedPost],
    *,
    asset_map: AssetMap,
    content_format: str,
    locale: str,
) -> List[EntryPayload]:
    return [
        build_entry_payload(post, asset_map=asset_map, content_format=content_format, locale=locale)
        for post in posts
    ]


def publish_entries(
    client: ContentfulClient,
    payloads: Sequence[EntryPayload],
    *,
    content_type: str,
    max_workers: int = 4,
) -> List[EntryResult]:
    """Create and publish every entry; results keep payload order."""

    def worker(idx: int, payload: EntryPayload) -> EntryResult:
        context = {"slug": payload.slug, "title": payload.title}
        entry_id: Optional[str] = None
        stage = "ENTRY_CREATE"
        try:
            entry = client.create_entry(content_type, payload.fields)
            entry_id = (entry.get("sys") or {}).get("id")
            stage = "ENTRY_PUBLISH"
            client.publish_entry(entry)
        except (requests.RequestException, MigrationError, ValueError) as e:
            detail = describe_exception(e)
            logger.error("Error creating entry for '%s' (%s): %s", payload.slug, stage, detail)
            report_error(stage, {**context, "entry_id": entry_id}, e)
            return EntryResult(slug=payload.slug, entry_id=entry_id, error=detail)

        logger.info("Published entry '%s' (%d/%d)", payload.slug, idx + 1, len(payloads))
        report_ok("ENTRY_PUBLISHED", context, {"entry_id": entry_id})
        return EntryResult(slug=payload.slug, entry_id=entry_id, published=True)

    outcomes = run_batch(payloads, worker, max_workers=max_workers)
    return [
        outcome if outcome is not None else EntryResult(slug=payload.slug, error="unhandled worker error")
        for payload, outcome in zip(payloads, outcomes)
    ]
