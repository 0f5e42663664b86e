from __future__ import annotations

from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Optional

from .wordpress_extractor import AUX_KINDS, SourceData


def _coerce_id(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


class ResourceIndex:
    """
    Lookup over the fetched tags, categories and media, keyed by kind and
    WordPress numeric id.  A miss returns ``None``; deciding what to do about
    it is up to the caller.
    """

    def __init__(self, collections: Mapping[str, Iterable[Dict[str, Any]]]) -> None:
        index: Dict[str, Mapping[int, Dict[str, Any]]] = {}
        for kind, records in collections.items():
            by_id: Dict[int, Dict[str, Any]] = {}
            for record in records or ():
                if not isinstance(record, dict):
                    continue
                record_id = _coerce_id(record.get("id"))
                if record_id is not None and record_id not in by_id:
                    by_id[record_id] = record
            index[kind] = MappingProxyType(by_id)
        self._index = MappingProxyType(index)

    @classmethod
    def from_source(cls, data: SourceData) -> "ResourceIndex":
        return cls({kind: data.resources(kind) for kind in AUX_KINDS})

    def lookup(self, kind: str, resource_id: Any) -> Optional[Dict[str, Any]]:
        records = self._index.get(kind)
        record_id = _coerce_id(resource_id)
        if records is None or record_id is None:
            return None
        return records.get(record_id)

    def count(self, kind: str) -> int:
        return len(self._index.get(kind, {}))
