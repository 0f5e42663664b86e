"""
Pipeline data records.

Posts are normalized once and never mutated afterwards; assets and entries
carry the state of one upload each.
"""

from .asset import AssetMap, AssetRequest, AssetResult, PublishedAsset, file_name_from_url
from .entry import EntryPayload, EntryResult
from .post import ImageReference, NormalizedPost

__all__ = [
    "AssetMap",
    "AssetRequest",
    "AssetResult",
    "EntryPayload",
    "EntryResult",
    "ImageReference",
    "NormalizedPost",
    "PublishedAsset",
    "file_name_from_url",
]
