"""Markdown render pipeline.

Order of operations for one render pass:

1. Extract embeds (skipped when embeds are disabled).
2. Normalize single newlines into hard breaks.
3. Parse with markdown-it and walk the syntax tree.

Paragraphs, headings, list items, blockquotes and generic containers are
converted by the handlers below, which split text nodes around embed
placeholders and detect spoiler notation. Every other block type is
rendered by markdown-it's default renderer; placeholders that end up in
code, escaped HTML, link text or tables are turned back into the embed syntax
the author wrote.
"""

from __future__ import annotations

import re
from dataclasses import replace
from html import escape
from typing import TYPE_CHECKING, Any

from markdown_it import MarkdownIt
from markdown_it.tree import SyntaxTreeNode
from mdit_py_plugins.container import container_plugin

from spoilerdown.embeds.extractor import ParsedDocument, extract_embeds
from spoilerdown.embeds.reinsert import reinsert_placeholders
from spoilerdown.embeds.types import PresentationMode
from spoilerdown.observability.logging import get_logger
from spoilerdown.render.linebreaks import normalize_line_breaks
from spoilerdown.render.nodes import (
    Block,
    Document,
    EmbedWidget,
    Inline,
    Node,
    RawHtml,
    RenderedDocument,
    SpoilerWrapper,
    Text,
    flatten_text,
)
from spoilerdown.spoilers.detector import (
    SpoilerBlock,
    SpoilerNotation,
    detect_container_spoiler,
    match_blockquote_marker,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from markdown_it.token import Token

log = get_logger(__name__)

SPOILER_CONTAINER = "spoiler"

_BREAKS = ("softbreak", "hardbreak")
_MARKER_ONLY = re.compile(r"^\[!SPOILER(?:\s+Chapter\s+\d+)?\]", re.IGNORECASE)
_DIV_OPEN = re.compile(r"^\s*<div\b([^>]*)>", re.IGNORECASE)
_DIV_CLOSE = re.compile(r"</div\s*>\s*$", re.IGNORECASE)
_DIV_CLOSE_ONLY = re.compile(r"^\s*(?:</div\s*>\s*)+$", re.IGNORECASE)
_DIV_TAG_OPEN = re.compile(r"<div\b", re.IGNORECASE)
_DIV_TAG_CLOSE = re.compile(r"</div\s*>", re.IGNORECASE)
_CLASS_ATTR = re.compile(r"""\bclass\s*=\s*(?:"([^"]*)"|'([^']*)')""", re.IGNORECASE)


def _escaped_html_inline(
    self: Any, tokens: Sequence[Token], idx: int, options: Any, env: Any
) -> str:
    return escape(tokens[idx].content, quote=False)


def _escaped_html_block(
    self: Any, tokens: Sequence[Token], idx: int, options: Any, env: Any
) -> str:
    content = tokens[idx].content.rstrip("\n")
    return f"<p>{escape(content, quote=False)}</p>\n"


def create_markdown() -> MarkdownIt:
    """Create the markdown-it parser used for every render.

    Author HTML is shown as text; only ``<div class=...>`` containers are
    recognised, by the tree walk rather than the renderer.
    """
    md = MarkdownIt("commonmark")
    md.enable(["table", "strikethrough"])
    container_plugin(md, SPOILER_CONTAINER)
    md.add_render_rule("html_inline", _escaped_html_inline)
    md.add_render_rule("html_block", _escaped_html_block)
    return md


def _div_balance(html: str) -> int:
    """Opening ``<div>`` tags minus closing ones."""
    return len(_DIV_TAG_OPEN.findall(html)) - len(_DIV_TAG_CLOSE.findall(html))


def _class_of(div_attrs: str) -> str | None:
    match = _CLASS_ATTR.search(div_attrs)
    if match is None:
        return None
    return match.group(1) if match.group(1) is not None else match.group(2)


def _strip_leading(nodes: Sequence[Node], count: int) -> tuple[list[Node], int]:
    """Drop the first ``count`` characters (as flattened) from a node list."""
    out: list[Node] = []
    for i, node in enumerate(nodes):
        if count <= 0:
            out.extend(nodes[i:])
            break
        if isinstance(node, Text):
            if len(node.value) <= count:
                count -= len(node.value)
                continue
            out.append(Text(node.value[count:]))
            count = 0
        elif isinstance(node, Inline) and node.kind in _BREAKS:
            count -= 1
        elif isinstance(node, Inline) and node.kind == "code_inline":
            if len(node.content) <= count:
                count -= len(node.content)
                continue
            out.append(replace(node, content=node.content[count:]))
            count = 0
        elif isinstance(node, Inline | Block):
            children, count = _strip_leading(node.children, count)
            if children:
                out.append(replace(node, children=children))
        else:
            out.extend(nodes[i:])
            count = 0
            break
    return out, count


def _lstrip(nodes: list[Node]) -> list[Node]:
    """Remove leading whitespace and line breaks from an inline node list."""
    while nodes:
        first = nodes[0]
        if isinstance(first, Inline) and first.kind in _BREAKS:
            nodes = nodes[1:]
            continue
        if isinstance(first, Text):
            value = first.value.lstrip()
            if not value:
                nodes = nodes[1:]
                continue
            return [Text(value), *nodes[1:]]
        break
    return nodes


class _RenderPass:
    """State for converting one parsed document into a tree."""

    def __init__(
        self,
        md: MarkdownIt,
        parsed: ParsedDocument,
        mode: PresentationMode,
        *,
        standalone_cards: bool,
    ) -> None:
        self.md = md
        self.parsed = parsed
        self.mode = mode
        self.standalone_cards = standalone_cards
        self.env: dict[str, Any] = {}
        self._widget_counter = 0
        self._handlers: dict[str, Callable[[SyntaxTreeNode], Node]] = {
            "paragraph": self._paragraph,
            "heading": self._heading,
            "bullet_list": self._list,
            "ordered_list": self._list,
            "list_item": self._list_item,
            "blockquote": self._blockquote,
            f"container_{SPOILER_CONTAINER}": self._container,
        }

    def run(self, text: str) -> Document:
        root = SyntaxTreeNode(self.md.parse(text, self.env))
        return Document(children=self._blocks(root.children))

    # -- block level -------------------------------------------------------

    def _blocks(self, nodes: Sequence[SyntaxTreeNode]) -> list[Node]:
        out: list[Node] = []
        i = 0
        while i < len(nodes):
            node = nodes[i]
            if node.type == "html_block":
                converted, consumed = self._html_block(nodes, i)
                out.append(converted)
                i += consumed
                continue
            handler = self._handlers.get(node.type, self._default)
            out.append(handler(node))
            i += 1
        return out

    def _default(self, node: SyntaxTreeNode) -> Node:
        rendered = self.md.renderer.render(node.to_tokens(), self.md.options, self.env)
        return RawHtml(self.parsed.restore(rendered, escape_html=True))

    def _paragraph(self, node: SyntaxTreeNode) -> Node:
        inline = node.children[0] if node.children else None
        children = self._inline(inline.children if inline else [], live=True)
        attrs: dict[str, Any] = {}
        if node.hidden:
            attrs["tight"] = True
        widgets = [c for c in children if isinstance(c, EmbedWidget)]
        if widgets:
            attrs["has_embeds"] = True
            if self.standalone_cards and self.mode is not PresentationMode.COMPACT:
                self._promote_standalone(children, widgets)
        return Block("paragraph", children, attrs)

    def _promote_standalone(self, children: list[Node], widgets: list[EmbedWidget]) -> None:
        """A paragraph holding nothing but one embed renders it as a full card."""
        if len(widgets) != 1:
            return
        others = [c for c in children if c is not widgets[0]]
        if all(isinstance(c, Text) and not c.value.strip() for c in others):
            widgets[0].mode = PresentationMode.FULL

    def _heading(self, node: SyntaxTreeNode) -> Node:
        inline = node.children[0] if node.children else None
        children = self._inline(inline.children if inline else [], live=True)
        return Block("heading", children, {"level": int(node.tag[1])})

    def _list(self, node: SyntaxTreeNode) -> Node:
        attrs: dict[str, Any] = {}
        start = node.attrs.get("start")
        if start is not None:
            attrs["start"] = start
        return Block(node.type, self._blocks(node.children), attrs)

    def _list_item(self, node: SyntaxTreeNode) -> Node:
        return Block("list_item", self._blocks(node.children))

    def _blockquote(self, node: SyntaxTreeNode) -> Node:
        children = self._blocks(node.children)
        text = flatten_text(children)
        match = match_blockquote_marker(text)
        if match is None:
            return Block("blockquote", children)

        marker = _MARKER_ONLY.match(text)
        marker_len = marker.end() if marker else 0
        stripped, _ = _strip_leading(children, marker_len)
        if stripped and isinstance(stripped[0], Block):
            first = stripped[0]
            first_children = _lstrip(first.children)
            if first_children:
                stripped[0] = replace(first, children=first_children)
            else:
                stripped = stripped[1:]

        chapter = int(match.group(1)) if match.group(1) else None
        block = SpoilerBlock(
            chapter_threshold=chapter,
            inner_text=match.group(2),
            notation=SpoilerNotation.BLOCKQUOTE,
        )
        log.debug("spoiler_detected", notation=block.notation, chapter=chapter)
        quote = Block("blockquote", stripped, {"class": "spoiler"})
        return SpoilerWrapper(block, [quote])

    def _container(self, node: SyntaxTreeNode) -> Node:
        info = (node.info or "").strip()
        title = info[len(SPOILER_CONTAINER) :].strip() if info.startswith(SPOILER_CONTAINER) else info
        children = self._blocks(node.children)
        attrs: dict[str, Any] = {"class": SPOILER_CONTAINER}
        if title:
            attrs["title"] = title
        container = Block("container", children, attrs)
        return self._wrap_container(container, f"{info}\n{flatten_text(children)}")

    def _html_block(self, nodes: Sequence[SyntaxTreeNode], index: int) -> tuple[Node, int]:
        """Convert ``<div class=...>`` blocks to containers; other HTML is shown as text.

        CommonMark ends an HTML block at a blank line, so a div whose body is
        separated by blank lines arrives as an opening html_block, ordinary
        blocks, then a closing ``</div>`` html_block. Those are regrouped here,
        counting nested divs so an inner ``</div>`` does not end the outer one.
        """
        node = nodes[index]
        content = node.content
        opening = _DIV_OPEN.match(content)
        class_name = _class_of(opening.group(1)) if opening else None
        if opening is None or class_name is None:
            return self._default(node), 1

        body = content[opening.end() :]
        depth = _div_balance(content)
        if depth == 0 and _DIV_CLOSE.search(body):
            body = _DIV_CLOSE.sub("", body)
            inner = SyntaxTreeNode(self.md.parse(body, self.env)).children
            consumed = 1
        elif depth > 0:
            end = index + 1
            while end < len(nodes):
                if nodes[end].type == "html_block":
                    depth += _div_balance(nodes[end].content)
                    if depth <= 0:
                        break
                end += 1
            if depth != 0 or not _DIV_CLOSE_ONLY.match(nodes[end].content):
                return self._default(node), 1
            inner = list(nodes[index + 1 : end])
            if body.strip():
                inner = [*SyntaxTreeNode(self.md.parse(body, self.env)).children, *inner]
            consumed = end - index + 1
        else:
            return self._default(node), 1

        children = self._blocks(inner)
        container = Block("container", children, {"class": class_name})
        return self._wrap_container(container, flatten_text(children)), consumed

    def _wrap_container(self, container: Block, text: str) -> Node:
        block = detect_container_spoiler(text, container.attrs.get("class"))
        if block is None:
            return container
        log.debug("spoiler_detected", notation=block.notation, chapter=block.chapter_threshold)
        return SpoilerWrapper(block, [container])

    # -- inline level ------------------------------------------------------

    def _inline(self, nodes: Sequence[SyntaxTreeNode], *, live: bool) -> list[Node]:
        out: list[Node] = []
        restore = self.parsed.restore
        for node in nodes:
            kind = node.type
            if kind == "text":
                out.extend(self._text(node.content, live=live))
            elif kind in _BREAKS:
                out.append(Inline(kind))
            elif kind == "code_inline":
                out.append(Inline(kind, content=restore(node.content)))
            elif kind == "html_inline":
                out.append(Inline(kind, content=restore(node.content)))
            elif kind == "link":
                attrs = {
                    "href": restore(str(node.attrs.get("href", ""))),
                    "title": restore(str(node.attrs.get("title", ""))),
                }
                out.append(Inline(kind, self._inline(node.children, live=False), attrs))
            elif kind == "image":
                attrs = {
                    "src": restore(str(node.attrs.get("src", ""))),
                    "title": restore(str(node.attrs.get("title", ""))),
                    "alt": restore(node.content or ""),
                }
                out.append(Inline(kind, attrs=attrs))
            elif kind in ("em", "strong", "s"):
                out.append(Inline(kind, self._inline(node.children, live=live)))
            elif node.content:
                out.extend(self._text(node.content, live=live))
        return out

    def _text(self, value: str, *, live: bool) -> list[Node]:
        if not value:
            return []
        if not live or not self.parsed.embeds:
            return [Text(self.parsed.restore(value))]
        out: list[Node] = []
        for segment in reinsert_placeholders(value, self.parsed.embeds):
            if isinstance(segment, str):
                out.append(Text(segment))
            else:
                out.append(EmbedWidget(f"embed-{self._widget_counter}", segment, self.mode))
                self._widget_counter += 1
        return out


class MarkdownRenderer:
    """Renders content strings into document trees.

    Args:
        compact_mode: Render embeds as compact chips instead of inline chips.
        standalone_cards: Render a paragraph holding only one embed as a full card.
        md: Pre-configured parser; defaults to ``create_markdown()``.
    """

    def __init__(
        self,
        *,
        compact_mode: bool = False,
        standalone_cards: bool = False,
        md: MarkdownIt | None = None,
    ) -> None:
        self.compact_mode = compact_mode
        self.standalone_cards = standalone_cards
        self._md = md or create_markdown()

    def render(self, content: str, *, enable_embeds: bool = True) -> RenderedDocument:
        """Run one render pass.

        Args:
            content: Raw user-authored content.
            enable_embeds: When False, embed syntax is left as plain text.

        Returns:
            RenderedDocument holding the tree and the extraction result.
        """
        content = content.replace("\r\n", "\n").replace("\r", "\n")
        if enable_embeds:
            parsed = extract_embeds(content)
        else:
            parsed = ParsedDocument(rewritten_text=content)

        mode = PresentationMode.COMPACT if self.compact_mode else PresentationMode.INLINE
        render_pass = _RenderPass(self._md, parsed, mode, standalone_cards=self.standalone_cards)
        tree = render_pass.run(normalize_line_breaks(parsed.rewritten_text))

        log.debug(
            "markdown_rendered",
            blocks=len(tree.children),
            embeds=len(parsed.embeds),
            widgets=len(tree.embed_widgets()),
            spoilers=len(tree.spoilers()),
            enable_embeds=enable_embeds,
        )
        return RenderedDocument(tree=tree, parsed=parsed, enable_embeds=enable_embeds)


def render_markdown(
    content: str,
    *,
    enable_embeds: bool = True,
    compact_mode: bool = False,
    standalone_cards: bool = False,
) -> RenderedDocument:
    """Render ``content`` into a document tree with a one-off renderer."""
    renderer = MarkdownRenderer(compact_mode=compact_mode, standalone_cards=standalone_cards)
    return renderer.render(content, enable_embeds=enable_embeds)
