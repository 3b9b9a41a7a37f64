"""Serialize a document tree to HTML.

Embed widgets are rendered by their preview (or as a loading skeleton when
none has been created yet), and spoiler wrappers by the gate's decision.
"""

from __future__ import annotations

from html import escape
from typing import TYPE_CHECKING, Protocol

from spoilerdown.preview.presentation import render_loading
from spoilerdown.render.nodes import (
    Block,
    Document,
    EmbedWidget,
    Inline,
    RawHtml,
    SpoilerWrapper,
    Text,
)
from spoilerdown.spoilers.gate import GateDecision, SpoilerGate, StaticProgress

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from spoilerdown.render.nodes import Node


class WidgetRenderer(Protocol):
    def render(self) -> str: ...


_INLINE_TAGS = {"em": "em", "strong": "strong", "s": "s"}


class HtmlSerializer:
    """Turns a Document into an HTML string.

    Args:
        previews: Widget key to preview; missing keys render as loading.
        gate: Spoiler gate; defaults to a reader at chapter 0.
    """

    def __init__(
        self,
        previews: Mapping[str, WidgetRenderer] | None = None,
        gate: SpoilerGate | None = None,
    ) -> None:
        self.previews = previews or {}
        self.gate = gate or SpoilerGate(StaticProgress())

    def serialize(self, document: Document) -> str:
        return self._blocks(document.children)

    def _blocks(self, nodes: Sequence[Node]) -> str:
        return "".join(self._block(node) for node in nodes)

    def _block(self, node: Node) -> str:
        if isinstance(node, RawHtml):
            return node.html
        if isinstance(node, SpoilerWrapper):
            return self._spoiler(node)
        if isinstance(node, Block):
            return self._structural(node)
        return self._inline([node])

    def _structural(self, block: Block) -> str:
        kind = block.kind
        if kind == "paragraph":
            content = self._inline(block.children)
            if block.attrs.get("tight"):
                return content
            # Block-level cards are not valid inside <p>.
            if block.attrs.get("has_embeds"):
                return f'<div class="sd-paragraph">{content}</div>\n'
            return f"<p>{content}</p>\n"
        if kind == "heading":
            level = block.attrs.get("level", 1)
            return f"<h{level}>{self._inline(block.children)}</h{level}>\n"
        if kind == "bullet_list":
            return f"<ul>\n{self._blocks(block.children)}</ul>\n"
        if kind == "ordered_list":
            start = block.attrs.get("start")
            start_attr = f' start="{start}"' if start is not None else ""
            return f"<ol{start_attr}>\n{self._blocks(block.children)}</ol>\n"
        if kind == "list_item":
            parts = [self._block(child) for child in block.children]
            # Tight paragraphs carry no newline of their own; separate them from what follows.
            for i, child in enumerate(block.children[:-1]):
                if isinstance(child, Block) and child.attrs.get("tight"):
                    parts[i] += "\n"
            return f"<li>{''.join(parts)}</li>\n"
        if kind == "blockquote":
            css = block.attrs.get("class")
            class_attr = f' class="{escape(css)}"' if css else ""
            return f"<blockquote{class_attr}>\n{self._blocks(block.children)}</blockquote>\n"
        if kind == "container":
            attrs = f' class="{escape(block.attrs.get("class", ""))}"'
            if block.attrs.get("title"):
                attrs += f' data-title="{escape(block.attrs["title"])}"'
            return f"<div{attrs}>\n{self._blocks(block.children)}</div>\n"
        raise ValueError(f"Unknown block kind: {kind}")

    def _spoiler(self, wrapper: SpoilerWrapper) -> str:
        block = wrapper.block
        decision = self.gate.decide(block)
        chapter_attr = (
            f' data-chapter="{block.chapter_threshold}"' if block.chapter_threshold is not None else ""
        )
        content = self._blocks(wrapper.children)
        if decision is GateDecision.REVEAL:
            return f'<div class="sd-spoiler sd-revealed"{chapter_attr}>\n{content}</div>\n'

        overlay = (
            f'<button type="button" class="sd-spoiler-overlay" '
            f'title="{escape(self.gate.overlay_hint(block))}">'
            f"<strong>{escape(self.gate.overlay_label(block))}</strong>"
            "<span>Click to reveal</span></button>\n"
        )
        if decision is GateDecision.HIDE:
            return f'<div class="sd-spoiler sd-hidden"{chapter_attr}>\n{overlay}</div>\n'
        return (
            f'<div class="sd-spoiler sd-blurred"{chapter_attr}>\n'
            f'<div class="sd-spoiler-content" aria-hidden="true">\n{content}</div>\n'
            f"{overlay}</div>\n"
        )

    def _widget(self, widget: EmbedWidget) -> str:
        preview = self.previews.get(widget.key)
        if preview is not None:
            return preview.render()
        descriptor = widget.descriptor
        return render_loading(descriptor.type, descriptor.entity_id, widget.mode)

    def _inline(self, nodes: Sequence[Node]) -> str:
        parts: list[str] = []
        for node in nodes:
            if isinstance(node, Text):
                parts.append(escape(node.value, quote=False))
            elif isinstance(node, EmbedWidget):
                parts.append(self._widget(node))
            elif isinstance(node, Inline):
                parts.append(self._inline_markup(node))
            else:
                parts.append(self._block(node))
        return "".join(parts)

    def _inline_markup(self, node: Inline) -> str:
        kind = node.kind
        if kind in _INLINE_TAGS:
            tag = _INLINE_TAGS[kind]
            return f"<{tag}>{self._inline(node.children)}</{tag}>"
        if kind == "softbreak":
            return "\n"
        if kind == "hardbreak":
            return "<br />\n"
        if kind == "code_inline":
            return f"<code>{escape(node.content, quote=False)}</code>"
        if kind == "html_inline":
            return escape(node.content, quote=False)
        if kind == "link":
            title = node.attrs.get("title")
            title_attr = f' title="{escape(title)}"' if title else ""
            href = escape(node.attrs.get("href", ""))
            return f'<a href="{href}"{title_attr}>{self._inline(node.children)}</a>'
        if kind == "image":
            title = node.attrs.get("title")
            title_attr = f' title="{escape(title)}"' if title else ""
            return (
                f'<img src="{escape(node.attrs.get("src", ""))}" '
                f'alt="{escape(node.attrs.get("alt", ""))}"{title_attr} />'
            )
        raise ValueError(f"Unknown inline kind: {kind}")


def render_html(
    document: Document,
    previews: Mapping[str, WidgetRenderer] | None = None,
    gate: SpoilerGate | None = None,
) -> str:
    """Serialize ``document`` to HTML. See HtmlSerializer."""
    return HtmlSerializer(previews, gate).serialize(document)
