"""Document tree produced by the render pipeline.

The tree is a plain value: block and inline nodes, pre-rendered HTML for
block types rendered by markdown-it's defaults, embed widgets standing in
for resolved entities, and spoiler wrappers around gated blocks.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from spoilerdown.embeds.extractor import EmbedDescriptor, ParsedDocument
    from spoilerdown.embeds.types import PresentationMode
    from spoilerdown.spoilers.detector import SpoilerBlock


@dataclass
class Text:
    """Literal text."""

    value: str


@dataclass
class EmbedWidget:
    """Slot for one entity preview.

    Attributes:
        key: Unique within a render pass; one resolver is created per key.
        descriptor: Embed the widget displays.
        mode: Presentation mode for the preview.
    """

    key: str
    descriptor: EmbedDescriptor
    mode: PresentationMode


@dataclass
class Inline:
    """Inline markup: em, strong, s, code_inline, link, image, breaks, html_inline."""

    kind: str
    children: list[Node] = field(default_factory=list)
    attrs: dict[str, Any] = field(default_factory=dict)
    content: str = ""


@dataclass
class Block:
    """Block node: paragraph, heading, list, list item, blockquote, container."""

    kind: str
    children: list[Node] = field(default_factory=list)
    attrs: dict[str, Any] = field(default_factory=dict)


@dataclass
class RawHtml:
    """Block rendered by markdown-it's default renderer (fences, tables, rules)."""

    html: str


@dataclass
class SpoilerWrapper:
    """A detected spoiler block and the content it gates."""

    block: SpoilerBlock
    children: list[Node] = field(default_factory=list)


Node = Text | EmbedWidget | Inline | Block | RawHtml | SpoilerWrapper


@dataclass
class Document:
    """Root of a rendered document."""

    children: list[Node] = field(default_factory=list)

    def walk(self) -> Iterator[Node]:
        """Yield every node depth-first in document order."""
        stack: list[Node] = list(reversed(self.children))
        while stack:
            node = stack.pop()
            yield node
            if isinstance(node, Inline | Block | SpoilerWrapper):
                stack.extend(reversed(node.children))

    def embed_widgets(self) -> list[EmbedWidget]:
        """All embed widgets in document order."""
        return [n for n in self.walk() if isinstance(n, EmbedWidget)]

    def spoilers(self) -> list[SpoilerWrapper]:
        """All spoiler wrappers in document order."""
        return [n for n in self.walk() if isinstance(n, SpoilerWrapper)]


@dataclass(frozen=True)
class RenderedDocument:
    """Output of one render pass.

    Attributes:
        tree: The document tree.
        parsed: Extraction result the tree was built from.
        enable_embeds: Whether embeds were extracted for this pass.
    """

    tree: Document
    parsed: ParsedDocument
    enable_embeds: bool = True


def flatten_text(nodes: list[Node]) -> str:
    """Plain-text view of a node list, embeds shown by label or syntax."""
    parts: list[str] = []
    for node in nodes:
        if isinstance(node, Text):
            parts.append(node.value)
        elif isinstance(node, EmbedWidget):
            parts.append(node.descriptor.display_text or node.descriptor.source)
        elif isinstance(node, Inline):
            if node.kind in ("softbreak", "hardbreak"):
                parts.append("\n")
            elif node.kind == "code_inline":
                parts.append(node.content)
            else:
                parts.append(flatten_text(node.children))
        elif isinstance(node, Block | SpoilerWrapper):
            text = flatten_text(node.children)
            if parts and text:
                parts.append("\n\n")
            parts.append(text)
    return "".join(parts)
