"""
High-level orchestration of the WordPress → Contentful migration.

This module defines a :class:`MigrationTool` class that ties together the
extractors, parsers, migrators and utilities into a complete pipeline:

1. destination checks (space, environment, content type and its fields)
2. fetch posts, tags, categories and media from the WordPress REST API
3. normalize posts and write a JSON snapshot of them
4. publish one asset per referenced image
5. build the file name → asset map from the upload results and the
   published-asset listing
6. publish one entry per post
7. log a summary

Every stage receives what it needs from the previous one as a return value.
With ``migration.dry_run`` enabled the run stops after the snapshot and a
conversion preview, before anything is written to Contentful.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, List, Optional

import requests

from wp2contentful.config import MigrationConfig
from wp2contentful.extractors.post_normalizer import normalize_posts
from wp2contentful.extractors.resource_index import ResourceIndex
from wp2contentful.extractors.wordpress_extractor import AUX_KINDS, SourceData, fetch_wordpress_data
from wp2contentful.migrators.asset_publisher import build_asset_map, build_asset_requests, publish_assets
from wp2contentful.migrators.contentful_migrator import ContentfulClient, RateLimiter
from wp2contentful.migrators.entry_publisher import build_entry_payloads, publish_entries
from wp2contentful.models.asset import AssetMap, AssetResult
from wp2contentful.models.entry import EntryResult
from wp2contentful.models.post import NormalizedPost
from wp2contentful.parsers.content_converter import convert
from wp2contentful.utils.errors import ContentTypeMissingError, SourceDataError
from wp2contentful.utils.pre_flight_checks import (
    PreFlightCheckError,
    check_content_type_fields,
    describe_required_fields,
    run_contentful_pre_flight_checks,
)

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_CONFIG_ERROR = 2
EXIT_CONNECTIVITY = 3
EXIT_SOURCE_DATA = 4


class MigrationTool:
    """
    Runs one migration with a validated :class:`MigrationConfig`.  The
    Contentful client and the WordPress session can be injected; otherwise
    they are built from the configuration.
    """

    def __init__(
        self,
        config: MigrationConfig,
        *,
        client: Optional[ContentfulClient] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.config = config
        self.session = session or requests.Session()
        if client is None:
            cf = config.contentful
            mig = config.migration
            client = ContentfulClient(
                cf.access_token,
                cf.space_id,
                cf.environment,
                base_url=cf.base_url,
                limiter=RateLimiter(mig.requests_per_minute),
                timeout=cf.timeout,
                max_retries=mig.max_retries,
                poll_interval=mig.processing_poll_interval,
                max_polls=mig.processing_max_polls,
            )
        self.client = client

    def log_message(self, message: str, level: str = "INFO") -> None:
        logger.log(getattr(logging, level.upper(), logging.INFO), message)

    # --- Stages ---

    def check_destination(self) -> Dict[str, Any]:
        cf = self.config.contentful
        content_type = run_contentful_pre_flight_checks(self.client, cf.content_type)
        check_content_type_fields(content_type, cf.content_format)
        return content_type

    def fetch_source(self) -> SourceData:
        wp = self.config.wordpress
        data = fetch_wordpress_data(
            self.session,
            wp.endpoint,
            post_limit=wp.import_post_count,
            aux_limit=wp.aux_fetch_limit,
            page_size=wp.page_size,
            timeout=wp.timeout,
        )
        if not data.posts.success and data.posts.error:
            raise SourceDataError(f"Could not read posts from WordPress: {data.posts.error}")
        return data

    def normalize(self, data: SourceData) -> List[NormalizedPost]:
        index = ResourceIndex.from_source(data)
        self.log_message(
            "Indexed " + ", ".join(f"{index.count(kind)} {kind}" for kind in AUX_KINDS)
        )
        return normalize_posts(data.posts.items, index)

    def write_snapshot(self, posts: List[NormalizedPost]) -> Optional[str]:
        """Write the normalized posts as JSON. Failures are logged and do not stop the run."""
        path = self.config.migration.snapshot_path
        try:
            directory = os.path.dirname(path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                json.dump([post.model_dump(mode="json") for post in posts], f, ensure_ascii=False, indent=2)
        except OSError as e:
            self.log_message(f"Could not write snapshot to {path}: {e}", "WARNING")
            return None
        self.log_message(f"Wrote snapshot of {len(posts)} posts to {path}")
        return path

    def preview(self, posts: List[NormalizedPost]) -> None:
        content_format = self.config.contentful.content_format
        for post in posts:
            convert(post.raw_html_content, content_format)
            self.log_message(
                f"Dry-run: would publish '{post.slug}' with {len(post.images)} images, "
                f"tags [{', '.join(post.tag_names)}], categories [{', '.join(post.category_names)}]"
            )

    def publish_asset_stage(self, posts: List[NormalizedPost]) -> List[AssetResult]:
        asset_requests = build_asset_requests(posts, dedupe=self.config.migration.dedupe_assets)
        self.log_message(f"Uploading {len(asset_requests)} assets")
        return publish_assets(
            self.client,
            asset_requests,
            locale=self.config.contentful.locale,
            max_workers=self.config.migration.max_workers,
        )

    def build_map(self, results: List[AssetResult]) -> AssetMap:
        try:
            published = self.client.list_published_assets()
        except requests.RequestException as e:
            self.log_message(f"Could not list published assets, using upload results only: {e}", "WARNING")
            published = []
        return build_asset_map(results, published, locale=self.config.contentful.locale)

    def publish_entry_stage(self, posts: List[NormalizedPost], asset_map: AssetMap) -> List[EntryResult]:
        cf = self.config.contentful
        payloads = build_entry_payloads(
            posts, asset_map=asset_map, content_format=cf.content_format, locale=cf.locale
        )
        self.log_message(f"Creating {len(payloads)} entries")
        return publish_entries(
            self.client,
            payloads,
            content_type=cf.content_type,
            max_workers=self.config.migration.max_workers,
        )

    def summarize(self, assets: List[AssetResult], entries: List[EntryResult]) -> Dict[str, int]:
        summary = {
            "assets_published": sum(1 for r in assets if r.ok),
            "assets_failed": sum(1 for r in assets if not r.ok),
            "entries_published": sum(1 for r in entries if r.ok),
            "entries_failed": sum(1 for r in entries if not r.ok),
        }
        self.log_message(
            f"Assets: {summary['assets_published']} published, {summary['assets_failed']} failed. "
            f"Entries: {summary['entries_published']} published, {summary['entries_failed']} failed."
        )
        for result in entries:
            if not result.ok:
                self.log_message(f"Entry '{result.slug}' was not migrated: {result.error}", "WARNING")
        return summary

    # --- Driver ---

    def run(self) -> int:
        """Run the whole pipeline and return the process exit code."""
        cf = self.config.contentful
        self.log_message(
            f"Starting WordPress to Contentful migration ({self.config.wordpress.endpoint} -> "
            f"space {cf.space_id}/{cf.environment}, content type '{cf.content_type}', {cf.content_format})"
        )

        try:
            self.check_destination()
        except ContentTypeMissingError as e:
            self.log_message(str(e), "ERROR")
            self.log_message(f"Available content types: {', '.join(e.available) or '(none)'}", "ERROR")
            self.log_message("Create it with these fields: " + "; ".join(describe_required_fields(cf.content_format)), "ERROR")
            return EXIT_CONFIG_ERROR
        except PreFlightCheckError as e:
            self.log_message(f"Pre-flight check failed: {e}", "ERROR")
            return EXIT_CONNECTIVITY

        try:
            data = self.fetch_source()
        except SourceDataError as e:
            self.log_message(str(e), "ERROR")
            return EXIT_SOURCE_DATA

        posts = self.normalize(data)
        if data.posts.items and not posts:
            self.log_message(
                f"None of the {len(data.posts.items)} post records from WordPress could be read.", "ERROR"
            )
            return EXIT_SOURCE_DATA
        if not posts:
            self.log_message("No posts to migrate.")
            return EXIT_OK
        self.log_message(f"Found {len(posts)} posts to migrate")
        self.write_snapshot(posts)

        if self.config.migration.dry_run:
            self.preview(posts)
            self.log_message("Dry-run complete; nothing was written to Contentful.")
            return EXIT_OK

        asset_results = self.publish_asset_stage(posts)
        asset_map = self.build_map(asset_results)
        entry_results = self.publish_entry_stage(posts, asset_map)
        self.summarize(asset_results, entry_results)
        self.log_message("Migration process finished.")
        return EXIT_OK
