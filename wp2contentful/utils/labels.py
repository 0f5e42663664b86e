from __future__ import annotations

from html import unescape
import re
from typing import Iterable


LABEL_SEPARATOR = ", "


def normalize_label(value: str) -> str:
    """Unescape HTML entities and collapse inner whitespace.

    Preserves original casing but trims leading/trailing spaces
    and converts sequences of whitespace to a single space.
    """
    if not value:
        return ""
    text = unescape(value).strip()
    # Collapse multiple whitespace to single space
    text = re.sub(r"\s+", " ", text)
    return text


def join_labels(labels: Iterable[str]) -> str:
    """
    Collapse a list of tag or category names into the single delimited
    string stored in the Contentful Symbol field.
    """
    return LABEL_SEPARATOR.join(label for label in labels if label)
