from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class EntryPayload(BaseModel):
    """Localized field map for one Contentful entry, built from a NormalizedPost."""

    slug: str
    title: str = ""
    fields: Dict[str, Dict[str, Any]] = Field(default_factory=dict)


class EntryResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    slug: str
    entry_id: Optional[str] = None
    published: bool = False
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.published
