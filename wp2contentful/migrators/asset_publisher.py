"""
Asset stage of the migration.

Every image referenced by a normalized post becomes one Contentful asset,
uploaded by reference from its WordPress URL.  Assets are created,
processed and published concurrently; a failure only affects the asset it
happened to and is recorded in the error ledger.  Once every upload has
settled, :func:`build_asset_map` combines the upload results with the
published-asset listing into the lookup used by the entry stage.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence

import requests

from wp2contentful.models.asset import (
    AssetMap,
    AssetRequest,
    AssetResult,
    PublishedAsset,
    file_name_from_url,
    guess_content_type,
)
from wp2contentful.models.post import NormalizedPost
from wp2contentful.utils.errors import MigrationError, describe_exception, report_error, report_ok

from .batch import run_batch
from .contentful_migrator import ContentfulClient

logger = logging.getLogger(__name__)


def _text_or(value: Any, default: str) -> str:
    return value if isinstance(value, str) and value.strip() else default


def build_asset_requests(posts: Iterable[NormalizedPost], *, dedupe: bool = False) -> List[AssetRequest]:
    """
    One request per image, in post order then image order.  With
    ``dedupe`` only the first request for each file name is kept.
    """
    requests_: List[AssetRequest] = []
    seen = set()
    for post in posts:
        for n, image in enumerate(post.images, start=1):
            file_name = file_name_from_url(image.source_url)
            if not file_name:
                logger.warning("Skipping image without a file name in post '%s': %s", post.slug, image.source_url)
                continue
            if dedupe and file_name in seen:
                continue
            seen.add(file_name)
            default = f"Image {n} from {post.slug}"
            requests_.append(
                AssetRequest(
                    file_name=file_name,
                    source_url=image.source_url,
                    title=_text_or(image.title, default),
                    description=_text_or(image.alt_text, default),
                    content_type=guess_content_type(file_name),
                    owner_slug=post.slug,
                )
            )
    return requests_


def _absolute_url(url: Optional[str]) -> Optional[str]:
    if url and url.startswith("//"):
        return f"https:{url}"
    return url or None


def published_asset_from_item(item: Dict[str, Any], locale: str) -> Optional[PublishedAsset]:
    """
    Build a PublishedAsset from a Contentful asset payload.  Accepts both
    localized (``file[locale]``) and flat ``file`` field shapes.
    """
    asset_id = (item.get("sys") or {}).get("id")
    if not asset_id:
        return None
    file_field = (item.get("fields") or {}).get("file") or {}
    if "fileName" not in file_field and "url" not in file_field:
        localized = file_field.get(locale)
        if localized is None and file_field:
            localized = next(iter(file_field.values()))
        file_field = localized if isinstance(localized, dict) else {}
    url = _absolute_url(file_field.get("url"))
    file_name = file_field.get("fileName") or file_name_from_url(url or "")
    if not file_name:
        return None
    return PublishedAsset(asset_id=asset_id, file_name=file_name, url=url)


def publish_assets(
    client: ContentfulClient,
    asset_requests: Sequence[AssetRequest],
    *,
    locale: str,
    max_workers: int = 4,
) -> List[AssetResult]:
    """Create, process and publish every asset; results keep request order."""

    def worker(idx: int, req: AssetRequest) -> AssetResult:
        context = {"file_name": req.file_name, "post": req.owner_slug, "source_url": req.source_url}
        stage = "ASSET_CREATE"
        try:
            asset = client.create_asset(req.to_fields(locale))
            stage = "ASSET_PROCESS"
            asset = client.process_asset(asset)
            stage = "ASSET_PUBLISH"
            published = client.publish_asset(asset) or asset
        except (requests.RequestException, MigrationError, ValueError) as e:
            detail = describe_exception(e)
            logger.error("Error uploading asset %s (%s): %s", req.file_name, stage, detail)
            report_error(stage, context, e)
            return AssetResult(request=req, error=detail)

        result = published_asset_from_item(published, locale) or published_asset_from_item(asset, locale)
        if result is None:
            asset_id = (asset.get("sys") or {}).get("id", "")
            result = PublishedAsset(asset_id=asset_id, file_name=req.file_name)
        logger.info("Published asset %s (%d/%d)", req.file_name, idx + 1, len(asset_requests))
        report_ok("ASSET_PUBLISHED", context, {"asset_id": result.asset_id})
        return AssetResult(request=req, asset=result)

    outcomes = run_batch(asset_requests, worker, max_workers=max_workers)
    return [
        outcome if outcome is not None else AssetResult(request=req, error="unhandled worker error")
        for req, outcome in zip(asset_requests, outcomes)
    ]


def build_asset_map(
    results: Iterable[AssetResult],
    published_items: Iterable[Dict[str, Any]],
    *,
    locale: str,
) -> AssetMap:
    """
    Upload results come first, in upload order, with their URL taken from
    the published listing when it has one.  Listing entries for file names
    no upload produced are added afterwards.
    """
    listed: List[PublishedAsset] = []
    for item in published_items or ():
        asset = published_asset_from_item(item, locale)
        if asset is not None:
            listed.append(asset)
    listed_by_id = {asset.asset_id: asset for asset in listed}

    ordered: List[PublishedAsset] = []
    for result in results:
        if not result.ok:
            continue
        asset = result.asset
        match = listed_by_id.get(asset.asset_id)
        if match is not None and match.url:
            asset = PublishedAsset(asset_id=asset.asset_id, file_name=asset.file_name, url=match.url)
        ordered.append(asset)
    ordered.extend(listed)
    return AssetMap(ordered)
