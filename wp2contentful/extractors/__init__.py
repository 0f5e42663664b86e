"""
Extractors for the WordPress REST API.

This subpackage fetches the post, tag, category and media collections and
turns each raw post into the normalized internal representation used by the
Contentful publishers.  Normalized posts have resolved label names and an
ordered list of every image they reference, making it easier to convert
them to Contentful assets and entries.
"""

from .post_normalizer import normalize_post, normalize_posts
from .resource_index import ResourceIndex
from .wordpress_extractor import FetchResult, SourceData, fetch_up_to, fetch_wordpress_data

__all__ = [
    "FetchResult",
    "ResourceIndex",
    "SourceData",
    "fetch_up_to",
    "fetch_wordpress_data",
    "normalize_post",
    "normalize_posts",
]
