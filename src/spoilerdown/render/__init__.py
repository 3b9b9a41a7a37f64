"""Markdown rendering: line-break normalization, tree building and HTML output."""

from spoilerdown.render.html import HtmlSerializer, render_html
from spoilerdown.render.linebreaks import normalize_line_breaks
from spoilerdown.render.nodes import (
    Block,
    Document,
    EmbedWidget,
    Inline,
    RawHtml,
    RenderedDocument,
    SpoilerWrapper,
    Text,
    flatten_text,
)
from spoilerdown.render.pipeline import MarkdownRenderer, create_markdown, render_markdown

__all__ = [
    "Block",
    "Document",
    "EmbedWidget",
    "HtmlSerializer",
    "Inline",
    "MarkdownRenderer",
    "RawHtml",
    "RenderedDocument",
    "SpoilerWrapper",
    "Text",
    "create_markdown",
    "flatten_text",
    "normalize_line_breaks",
    "render_html",
    "render_markdown",
]
