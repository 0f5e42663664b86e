"""
Parsers for converting WordPress HTML into Contentful body formats.

The converter produces either flat Markdown or a shallow Rich Text
document, rewriting image references to the URLs of published assets.
"""

from .content_converter import MODE_MARKDOWN, MODE_RICHTEXT, convert, html_to_markdown, markdown_to_rich_text

__all__ = ["MODE_MARKDOWN", "MODE_RICHTEXT", "convert", "html_to_markdown", "markdown_to_rich_text"]
