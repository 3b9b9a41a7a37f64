"""Split rendered text back into literal text and embed descriptors."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from spoilerdown.embeds.extractor import EmbedDescriptor


def reinsert_placeholders(
    text: str,
    embeds: Iterable[EmbedDescriptor],
) -> list[str | EmbedDescriptor]:
    """Split ``text`` around the placeholders of ``embeds``.

    Descriptors are tried in order; each one whose placeholder occurs in the
    not-yet-consumed text splits it into a literal prefix and the descriptor.
    Placeholder-looking text with no matching descriptor stays literal.

    Args:
        text: Content of a single text node.
        embeds: Descriptors of the current document, in extraction order.

    Returns:
        Ordered segments with no empty literals between or around embeds.
        Text without placeholders comes back as a one-element list.
    """
    segments: list[str | EmbedDescriptor] = []
    remaining = text

    for descriptor in embeds:
        index = remaining.find(descriptor.placeholder)
        if index == -1:
            continue
        if index > 0:
            segments.append(remaining[:index])
        segments.append(descriptor)
        remaining = remaining[index + len(descriptor.placeholder) :]

    if remaining or not segments:
        segments.append(remaining)
    return segments
