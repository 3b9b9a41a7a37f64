"""Embed extraction: ``{{type:id}}`` / ``{{type:id:label}}`` to placeholders.

The markdown engine knows nothing about embed syntax, so embeds are cut out
before parsing and replaced with opaque placeholder tokens. Placeholders are
plain ASCII letters and digits, which markdown-it passes through untouched,
and they carry a salt chosen so they never occur in the source content.

Malformed syntax (unknown type, non-numeric or zero id, unbalanced braces)
is left in place and renders as ordinary text.
"""

from __future__ import annotations

import html
import re
from dataclasses import dataclass, field

from spoilerdown.embeds.types import ENTITY_TYPES, EntityType
from spoilerdown.errors import EmbedSyntaxError
from spoilerdown.observability.logging import get_logger

log = get_logger(__name__)

_TYPE_ALTERNATION = "|".join(t.value for t in EntityType)

EMBED_PATTERN = re.compile(r"\{\{(" + _TYPE_ALTERNATION + r"):([0-9]+)(?::([^}]+))?\}\}")

_PLACEHOLDER_STEM = "SPOILERDOWNEMBED"


@dataclass(frozen=True)
class EmbedDescriptor:
    """One embed found in the source content.

    Attributes:
        id: Per-extraction identifier (``entity-embed-N``).
        type: Entity type named by the embed.
        entity_id: Positive entity id.
        display_text: Optional label overriding the fetched title.
        placeholder: Token substituted for the embed in the rewritten text.
        source: The embed syntax exactly as written.
    """

    id: str
    type: EntityType
    entity_id: int
    display_text: str | None
    placeholder: str
    source: str = ""


@dataclass(frozen=True)
class ParsedDocument:
    """Result of extraction: rewritten text plus descriptors in source order."""

    rewritten_text: str
    embeds: tuple[EmbedDescriptor, ...] = ()
    by_placeholder: dict[str, EmbedDescriptor] = field(
        init=False, repr=False, compare=False, hash=False
    )

    def __post_init__(self) -> None:
        object.__setattr__(self, "by_placeholder", {e.placeholder: e for e in self.embeds})

    def restore(self, text: str, *, escape_html: bool = False) -> str:
        """Put the original embed syntax back in place of any placeholders.

        Used for code, raw HTML and other content where a live widget cannot go.

        Args:
            text: Text that may contain placeholders.
            escape_html: HTML-escape the restored syntax (for already-rendered HTML).
        """
        if not self.by_placeholder:
            return text
        # Placeholders end in a delimiter, so no alternative is a prefix of another.
        pattern = re.compile("|".join(re.escape(p) for p in self.by_placeholder))

        def _source(match: re.Match[str]) -> str:
            source = self.by_placeholder[match.group(0)].source
            return html.escape(source) if escape_html else source

        return pattern.sub(_source, text)


def _placeholder_prefix(content: str) -> str:
    """Pick a placeholder prefix that does not occur anywhere in ``content``."""
    salt = 0
    prefix = f"{_PLACEHOLDER_STEM}Q"
    while prefix in content:
        salt += 1
        prefix = f"{_PLACEHOLDER_STEM}{salt}Q"
    return prefix


def extract_embeds(content: str) -> ParsedDocument:
    """Replace embed syntax with placeholders.

    Args:
        content: Raw user-authored text.

    Returns:
        ParsedDocument with the rewritten text and one descriptor per
        valid embed, in left-to-right order.
    """
    if "{{" not in content:
        return ParsedDocument(rewritten_text=content)

    prefix = _placeholder_prefix(content)
    embeds: list[EmbedDescriptor] = []

    def _replace(match: re.Match[str]) -> str:
        type_name, raw_id, label = match.groups()
        entity_id = int(raw_id)
        if entity_id <= 0:
            return match.group(0)

        index = len(embeds)
        display_text = label.strip() if label is not None else None
        descriptor = EmbedDescriptor(
            id=f"entity-embed-{index}",
            type=EntityType(type_name),
            entity_id=entity_id,
            display_text=display_text or None,
            placeholder=f"{prefix}{index}E",
            source=match.group(0),
        )
        embeds.append(descriptor)
        return descriptor.placeholder

    rewritten = EMBED_PATTERN.sub(_replace, content)

    if embeds:
        log.debug("embeds_extracted", count=len(embeds), prefix=prefix)
    return ParsedDocument(rewritten_text=rewritten, embeds=tuple(embeds))


def format_embed(entity_type: EntityType | str, entity_id: int, label: str | None = None) -> str:
    """Build canonical embed syntax.

    Args:
        entity_type: One of the eight embed types.
        entity_id: Positive entity id.
        label: Optional display text; may not contain ``}``.

    Returns:
        Embed string such as ``{{arc:5:Tower Arc}}``.

    Raises:
        EmbedSyntaxError: If any part would not round-trip through extraction.
    """
    try:
        kind = EntityType(entity_type)
    except ValueError as e:
        supported = ", ".join(t.value for t in EntityType)
        raise EmbedSyntaxError(
            f"Unknown embed type '{entity_type}'. Supported: {supported}"
        ) from e
    if isinstance(entity_id, bool) or not isinstance(entity_id, int) or entity_id <= 0:
        raise EmbedSyntaxError(f"Embed id must be a positive integer, got {entity_id!r}")
    if label is None or not label.strip():
        return f"{{{{{kind.value}:{entity_id}}}}}"
    if "}" in label:
        raise EmbedSyntaxError("Embed label may not contain '}'")
    return f"{{{{{kind.value}:{entity_id}:{label.strip()}}}}}"


@dataclass(frozen=True)
class EmbedExample:
    """A syntax example shown in help output."""

    code: str
    description: str


def _examples() -> dict[EntityType, list[EmbedExample]]:
    samples: dict[EntityType, tuple[int, str | None]] = {
        EntityType.CHARACTER: (1, "Baku Madarame"),
        EntityType.ARC: (5, "Tower Arc"),
        EntityType.GAMBLE: (12, "Air Poker"),
        EntityType.GUIDE: (3, "Gambling Rules Guide"),
        EntityType.ORGANIZATION: (2, "Kakerou"),
        EntityType.CHAPTER: (150, "The Final Gamble"),
        EntityType.VOLUME: (20, "The Conclusion"),
        EntityType.QUOTE: (45, None),
    }
    examples: dict[EntityType, list[EmbedExample]] = {}
    for kind, (sample_id, sample_label) in samples.items():
        label = ENTITY_TYPES[kind].label.lower()
        rows = [EmbedExample(format_embed(kind, sample_id), f"Basic {label} embed")]
        if sample_label:
            rows.append(
                EmbedExample(
                    format_embed(kind, sample_id, sample_label),
                    f"{ENTITY_TYPES[kind].label} with custom text",
                )
            )
        examples[kind] = rows
    return examples


EMBED_EXAMPLES: dict[EntityType, list[EmbedExample]] = _examples()
