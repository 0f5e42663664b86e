from __future__ import annotations

import mimetypes
import posixpath
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, Optional
from urllib.parse import unquote, urlparse

from pydantic import BaseModel, ConfigDict
from requests.utils import requote_uri

DEFAULT_CONTENT_TYPE = "image/jpeg"


def file_name_from_url(url: str) -> str:
    """
    Return the file name used to identify an image across the pipeline: the
    last segment of the URL path, percent-decoded, without query string.
    """
    if not url:
        return ""
    path = urlparse(url.strip()).path
    return unquote(posixpath.basename(path.rstrip("/")))


def guess_content_type(file_name: str) -> str:
    content_type, _ = mimetypes.guess_type(file_name)
    return content_type or DEFAULT_CONTENT_TYPE


class AssetRequest(BaseModel):
    """An asset to create in Contentful, uploaded by reference from the source URL."""

    model_config = ConfigDict(frozen=True)

    file_name: str
    source_url: str
    title: str
    description: str
    content_type: str = DEFAULT_CONTENT_TYPE
    owner_slug: str = ""

    def to_fields(self, locale: str) -> Dict[str, Any]:
        return {
            "title": {locale: self.title},
            "description": {locale: self.description},
            "file": {
                locale: {
                    "contentType": self.content_type,
                    "fileName": self.file_name,
                    "upload": requote_uri(self.source_url),
                }
            },
        }


class PublishedAsset(BaseModel):
    model_config = ConfigDict(frozen=True)

    asset_id: str
    file_name: str
    url: Optional[str] = None


class AssetResult(BaseModel):
    """Outcome of one asset upload; ``asset`` is ``None`` when it failed."""

    model_config = ConfigDict(frozen=True)

    request: AssetRequest
    asset: Optional[PublishedAsset] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.asset is not None


class AssetMap:
    """
    Read-only lookup from source file name to the published Contentful asset.

    When several assets share a file name the first one registered wins, so
    callers register upload results in upload order before anything else.
    """

    def __init__(self, assets: Iterable[PublishedAsset] = ()) -> None:
        by_name: Dict[str, PublishedAsset] = {}
        for asset in assets:
            if asset.file_name and asset.file_name not in by_name:
                by_name[asset.file_name] = asset
        self._by_name = MappingProxyType(by_name)

    def get(self, file_name: str) -> Optional[PublishedAsset]:
        return self._by_name.get(file_name)

    def asset_id_for(self, file_name: str) -> Optional[str]:
        asset = self._by_name.get(file_name)
        return asset.asset_id if asset else None

    def url_for(self, file_name: str) -> Optional[str]:
        asset = self._by_name.get(file_name)
        return asset.url if asset else None

    def __contains__(self, file_name: object) -> bool:
        return file_name in self._by_name

    def __iter__(self) -> Iterator[str]:
        return iter(self._by_name)

    def __len__(self) -> int:
        return len(self._by_name)
