"""Embed syntax: the closed type table, extraction and placeholder reinsertion."""

from spoilerdown.embeds.extractor import (
    EMBED_EXAMPLES,
    EMBED_PATTERN,
    EmbedDescriptor,
    EmbedExample,
    ParsedDocument,
    extract_embeds,
    format_embed,
)
from spoilerdown.embeds.reinsert import reinsert_placeholders
from spoilerdown.embeds.types import (
    ENTITY_TYPES,
    EntityType,
    EntityTypeInfo,
    PresentationMode,
    parse_entity_type,
    type_info,
    url_for,
)

__all__ = [
    "EMBED_EXAMPLES",
    "EMBED_PATTERN",
    "ENTITY_TYPES",
    "EmbedDescriptor",
    "EmbedExample",
    "EntityType",
    "EntityTypeInfo",
    "ParsedDocument",
    "PresentationMode",
    "extract_embeds",
    "format_embed",
    "parse_entity_type",
    "reinsert_placeholders",
    "type_info",
    "url_for",
]
