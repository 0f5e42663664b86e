from __future__ import annotations

from typing import Any, Dict, List, Optional

HEADING_TYPES = {1: "heading-1", 2: "heading-2", 3: "heading-3"}
BLOCK_TYPES = {"paragraph", "blockquote", *HEADING_TYPES.values()}


# --- Builders for Contentful Rich Text nodes ---

def document(nodes: List[Dict[str, Any]]) -> Dict[str, Any]:
    return {"nodeType": "document", "data": {}, "content": nodes or []}


def text_node(value: str, marks: Optional[List[Dict[str, Any]]] = None) -> Dict[str, Any]:
    return {"nodeType": "text", "value": value or "", "marks": marks or [], "data": {}}


def paragraph(text_nodes: Optional[List[Dict[str, Any]]] = None) -> Dict[str, Any]:
    return {"nodeType": "paragraph", "data": {}, "content": text_nodes or []}


def heading(level: int, text_nodes: Optional[List[Dict[str, Any]]] = None) -> Dict[str, Any]:
    lvl = max(1, min(3, int(level or 1)))
    return {"nodeType": HEADING_TYPES[lvl], "data": {}, "content": text_nodes or []}


def blockquote(nodes: List[Dict[str, Any]]) -> Dict[str, Any]:
    return {"nodeType": "blockquote", "data": {}, "content": nodes}


# --- Minimal validator ---

def validate_rich_text(doc: Dict[str, Any]) -> Dict[str, Any]:
    """
    Ensure the document follows basic Rich Text expectations.
    - Root is a 'document' with a 'content' list.
    - Stray text nodes at the root are wrapped in a paragraph.
    - Unknown block types are dropped.
    """
    nodes = doc.get("content") if isinstance(doc, dict) else None
    if not isinstance(nodes, list):
        return document([])

    fixed: List[Dict[str, Any]] = []
    for n in nodes:
        if not isinstance(n, dict):
            continue
        t = n.get("nodeType")
        if t == "text":
            fixed.append(paragraph([n]))
        elif t in BLOCK_TYPES:
            fixed.append(n)
    return document(fixed)
