"""Closed table of embeddable entity types.

Everything that varies by embed type (label, icon, accent colour, link
template, API endpoint, description fields, media support) lives in
``ENTITY_TYPES``. Adding a type means adding one enum member and one row.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class EntityType(StrEnum):
    """The eight entity kinds that may be referenced with ``{{type:id}}``."""

    CHARACTER = "character"
    ARC = "arc"
    GAMBLE = "gamble"
    GUIDE = "guide"
    ORGANIZATION = "organization"
    CHAPTER = "chapter"
    VOLUME = "volume"
    QUOTE = "quote"


@dataclass(frozen=True)
class EntityTypeInfo:
    """Per-type presentation and lookup data.

    Attributes:
        label: Human-readable type name ("Character").
        icon: Icon name used by the preview widgets.
        accent_key: Theme key for the accent colour.
        accent_color: Fallback hex colour for the accent.
        url_template: Link path template, formatted with ``id``.
        endpoint: REST collection the entity is fetched from.
        description_fields: Record fields tried in order for the description.
        has_media: Whether previews show a thumbnail for this type.
    """

    label: str
    icon: str
    accent_key: str
    accent_color: str
    url_template: str
    endpoint: str
    description_fields: tuple[str, ...]
    has_media: bool = False


NEUTRAL_ACCENT = "#94a3b8"
ERROR_ACCENT = "#ef4444"

ENTITY_TYPES: dict[EntityType, EntityTypeInfo] = {
    EntityType.CHARACTER: EntityTypeInfo(
        label="Character",
        icon="user",
        accent_key="character",
        accent_color="#1976d2",
        url_template="/characters/{id}",
        endpoint="characters",
        description_fields=("description",),
        has_media=True,
    ),
    EntityType.ARC: EntityTypeInfo(
        label="Arc",
        icon="book-open",
        accent_key="arc",
        accent_color="#dc004e",
        url_template="/arcs/{id}",
        endpoint="arcs",
        description_fields=("description",),
        has_media=True,
    ),
    EntityType.GAMBLE: EntityTypeInfo(
        label="Gamble",
        icon="dice-6",
        accent_key="gamble",
        accent_color="#d32f2f",
        url_template="/gambles/{id}",
        endpoint="gambles",
        description_fields=("description", "arc_name"),
    ),
    EntityType.GUIDE: EntityTypeInfo(
        label="Guide",
        icon="file-text",
        accent_key="guide",
        accent_color="#388e3c",
        url_template="/guides/{id}",
        endpoint="guides",
        description_fields=("description",),
    ),
    EntityType.ORGANIZATION: EntityTypeInfo(
        label="Organization",
        icon="users",
        accent_key="organization",
        accent_color="#7c3aed",
        url_template="/organizations/{id}",
        endpoint="organizations",
        description_fields=("description",),
    ),
    EntityType.CHAPTER: EntityTypeInfo(
        label="Chapter",
        icon="hash",
        accent_key="chapter",
        accent_color=NEUTRAL_ACCENT,
        url_template="/chapters/{id}",
        endpoint="chapters",
        description_fields=("summary", "title"),
    ),
    EntityType.VOLUME: EntityTypeInfo(
        label="Volume",
        icon="volume-2",
        accent_key="volume",
        accent_color=NEUTRAL_ACCENT,
        url_template="/volumes/{id}",
        endpoint="volumes",
        description_fields=("description",),
        has_media=True,
    ),
    EntityType.QUOTE: EntityTypeInfo(
        label="Quote",
        icon="quote",
        accent_key="quote",
        accent_color="#00796b",
        url_template="/quotes/{id}",
        endpoint="quotes",
        description_fields=("text",),
    ),
}

_missing = set(EntityType) - set(ENTITY_TYPES)
if _missing:
    raise RuntimeError(f"ENTITY_TYPES is missing rows for: {sorted(_missing)}")


def parse_entity_type(value: str) -> EntityType | None:
    """Return the EntityType named by ``value``, or None if it is not one."""
    try:
        return EntityType(value)
    except ValueError:
        return None


def type_info(entity_type: EntityType) -> EntityTypeInfo:
    """Look up the table row for an entity type."""
    return ENTITY_TYPES[entity_type]


def url_for(entity_type: EntityType, entity_id: int) -> str:
    """Return the site path for an entity.

    Args:
        entity_type: Embed type.
        entity_id: Entity id.

    Returns:
        Path such as ``/characters/1``.
    """
    return ENTITY_TYPES[entity_type].url_template.format(id=entity_id)


class PresentationMode(StrEnum):
    """How much chrome an entity preview renders with."""

    INLINE = "inline"  # chip with hover popover, used mid-sentence
    COMPACT = "compact"  # chip without popover, for dense lists
    FULL = "full"  # standalone card with optional header image
