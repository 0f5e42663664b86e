from __future__ import annotations

import re
from typing import Any, Callable, Dict, List, Optional, Union

from bs4 import BeautifulSoup
from markdownify import MarkdownConverter as MarkdownifyConverter

from wp2contentful.models.asset import file_name_from_url

from .rich_text_schema import blockquote, document, heading, paragraph, text_node, validate_rich_text

MODE_MARKDOWN = "markdown"
MODE_RICHTEXT = "richtext"
MODES = (MODE_MARKDOWN, MODE_RICHTEXT)

AssetUrlResolver = Callable[[str], Optional[str]]

_CAPTION_RE = re.compile(r"\[/?caption[^\]]*\]", re.IGNORECASE)
_LANGUAGE_RE = re.compile(r"language-(\S+)")
_EMPTY_IMAGE_RE = re.compile(r"!\\?\[[^\]]*?\\?\]\((?:\s*|undefined|None)\)")
_BLANK_LINES_RE = re.compile(r"\n{3,}")

# Longest prefix first: "### x" also starts with "# "
_LINE_PREFIXES = (
    ("### ", 3),
    ("## ", 2),
    ("# ", 1),
)


class PostMarkdownConverter(MarkdownifyConverter):
    """
    markdownify converter for WordPress post bodies.

    Code blocks become fenced blocks tagged with the ``language-xxx`` class
    of the ``<code>`` element.  Images are rewritten to the URL returned by
    ``asset_url_resolver`` for their file name; images it cannot resolve are
    dropped.  Literal text is escaped, so a paragraph starting with ``#`` or
    ``>`` is not read back as a heading or quote.
    """

    def __init__(self, asset_url_resolver: Optional[AssetUrlResolver] = None, **kwargs):
        options = {
            "heading_style": "ATX",
            "bullets": "-",
            "escape_misc": True,
        }
        options.update(kwargs)
        super().__init__(**options)
        self.asset_url_resolver = asset_url_resolver

    def convert_pre(self, el, text, parent_tags=None, **kwargs):
        code_el = el.find("code")
        source = code_el if code_el is not None else el
        language = ""
        for cls in (source.get("class") or []):
            match = _LANGUAGE_RE.match(cls)
            if match:
                language = match.group(1)
                break
        code = source.get_text().strip("\n")
        return f"\n\n```{language}\n{code}\n```\n\n"

    def convert_img(self, el, text, parent_tags=None, **kwargs):
        src = el.get("src") or ""
        if not src or self.asset_url_resolver is None:
            return ""
        url = self.asset_url_resolver(file_name_from_url(src))
        if not url:
            return ""
        alt = el.get("alt") or ""
        return f"![{alt}]({url})"


def _clean_html(html: str) -> str:
    cleaned = _CAPTION_RE.sub("", html or "")
    soup = BeautifulSoup(cleaned, "html.parser")
    for bad in soup.find_all(["script", "style"]):
        bad.decompose()
    return str(soup)


def html_to_markdown(html: str, asset_url_resolver: Optional[AssetUrlResolver] = None) -> str:
    converter = PostMarkdownConverter(asset_url_resolver=asset_url_resolver)
    markdown = converter.convert(_clean_html(html)).replace("\xa0", " ")
    markdown = _EMPTY_IMAGE_RE.sub("", markdown)
    markdown = _BLANK_LINES_RE.sub("\n\n", markdown)
    return markdown.strip()


def _line_to_block(line: str) -> Dict[str, Any]:
    for prefix, level in _LINE_PREFIXES:
        if line.startswith(prefix):
            return heading(level, [text_node(line[len(prefix):].strip())])
    if line.startswith("> "):
        return blockquote([paragraph([text_node(line[2:].strip())])])
    return paragraph([text_node(line)])


def markdown_to_rich_text(markdown: str) -> Dict[str, Any]:
    """
    Build a Rich Text document with one block per non-empty Markdown line.

    Only headings (levels 1-3) and single-line quotes are recognized; every
    other line, list items and code included, becomes a plain paragraph.
    """
    blocks: List[Dict[str, Any]] = []
    for raw_line in (markdown or "").splitlines():
        line = raw_line.strip()
        if not line or line == ">":
            continue
        blocks.append(_line_to_block(line))
    return validate_rich_text(document(blocks))


def convert(
    html: str,
    mode: str,
    asset_url_resolver: Optional[AssetUrlResolver] = None,
) -> Union[str, Dict[str, Any]]:
    """
    Convert a post body to the destination format.

    ``mode`` is ``"markdown"`` for a flat Markdown string or ``"richtext"``
    for a Rich Text document.
    """
    if mode not in MODES:
        raise ValueError(f"Unknown content format {mode!r}; expected one of {', '.join(MODES)}")
    markdown = html_to_markdown(html, asset_url_resolver)
    if mode == MODE_MARKDOWN:
        return markdown
    return markdown_to_rich_text(markdown)
