"""Validated entity records returned by the entity API.

The API speaks camelCase (``startChapter``); records accept either that or
snake_case, and keep unknown fields so nothing is lost on the way to the
presentation layer.
"""

from __future__ import annotations

from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

from spoilerdown.embeds.types import ENTITY_TYPES, EntityType

QUOTE_TITLE_CHARS = 50


class EntityRecord(BaseModel):
    """Fields shared by every entity record."""

    model_config = ConfigDict(extra="allow", populate_by_name=True, alias_generator=to_camel)

    entity_type: ClassVar[EntityType]

    id: int | None = None
    description: str | None = None
    image_url: str | None = None

    def default_title(self, entity_id: int) -> str:
        """Title shown when the embed carries no label."""
        return f"{ENTITY_TYPES[self.entity_type].label} #{self.id or entity_id}"

    def meta_line(self) -> str | None:
        """Short secondary line under the title, if the type has one."""
        return None

    def description_text(self) -> str | None:
        """First non-empty description field for this type."""
        for name in ENTITY_TYPES[self.entity_type].description_fields:
            value = getattr(self, name, None)
            if isinstance(value, str) and value.strip():
                return value.strip()
        return None


class _NamedRecord(EntityRecord):
    name: str | None = None

    def default_title(self, entity_id: int) -> str:
        return self.name or super().default_title(entity_id)


class CharacterRecord(_NamedRecord):
    entity_type: ClassVar[EntityType] = EntityType.CHARACTER

    organization: str | None = None

    @field_validator("organization", mode="before")
    @classmethod
    def _organization_name(cls, value: Any) -> Any:
        # Some endpoints embed the organization object instead of its name.
        if isinstance(value, dict):
            return value.get("name")
        return value

    def meta_line(self) -> str | None:
        return self.organization or None


class ArcRecord(_NamedRecord):
    entity_type: ClassVar[EntityType] = EntityType.ARC

    start_chapter: int | None = None
    end_chapter: int | None = None

    def meta_line(self) -> str | None:
        if self.start_chapter and self.end_chapter:
            return f"Ch. {self.start_chapter}-{self.end_chapter}"
        return None


class ArcRef(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str | None = None


class GambleRecord(_NamedRecord):
    entity_type: ClassVar[EntityType] = EntityType.GAMBLE

    chapter_number: int | None = None
    arc: ArcRef | None = None

    @property
    def arc_name(self) -> str | None:
        return self.arc.name if self.arc else None

    def meta_line(self) -> str | None:
        if self.chapter_number:
            return f"Ch. {self.chapter_number}"
        return None


class GuideRecord(EntityRecord):
    entity_type: ClassVar[EntityType] = EntityType.GUIDE

    title: str | None = None

    def default_title(self, entity_id: int) -> str:
        return self.title or super().default_title(entity_id)


class OrganizationRecord(_NamedRecord):
    entity_type: ClassVar[EntityType] = EntityType.ORGANIZATION


class ChapterRecord(EntityRecord):
    entity_type: ClassVar[EntityType] = EntityType.CHAPTER

    number: int | None = None
    title: str | None = None
    summary: str | None = None

    def default_title(self, entity_id: int) -> str:
        return f"Chapter {self.number or self.id or entity_id}"

    def meta_line(self) -> str | None:
        return f"#{self.number}" if self.number else None


class VolumeRecord(EntityRecord):
    entity_type: ClassVar[EntityType] = EntityType.VOLUME

    number: int | None = None

    def default_title(self, entity_id: int) -> str:
        return f"Volume {self.number or self.id or entity_id}"

    def meta_line(self) -> str | None:
        return f"Vol. {self.number}" if self.number else None


class QuoteRecord(EntityRecord):
    entity_type: ClassVar[EntityType] = EntityType.QUOTE

    text: str | None = None

    def default_title(self, entity_id: int) -> str:
        if self.text:
            return f'"{self.text[:QUOTE_TITLE_CHARS]}..."'
        return super().default_title(entity_id)


RECORD_MODELS: dict[EntityType, type[EntityRecord]] = {
    EntityType.CHARACTER: CharacterRecord,
    EntityType.ARC: ArcRecord,
    EntityType.GAMBLE: GambleRecord,
    EntityType.GUIDE: GuideRecord,
    EntityType.ORGANIZATION: OrganizationRecord,
    EntityType.CHAPTER: ChapterRecord,
    EntityType.VOLUME: VolumeRecord,
    EntityType.QUOTE: QuoteRecord,
}

_missing = set(EntityType) - set(RECORD_MODELS)
if _missing:
    raise RuntimeError(f"RECORD_MODELS is missing models for: {sorted(_missing)}")


def parse_record(entity_type: EntityType, payload: dict[str, Any]) -> EntityRecord:
    """Validate an API payload into the record model for ``entity_type``.

    Raises:
        pydantic.ValidationError: If the payload does not fit the model.
    """
    return RECORD_MODELS[entity_type].model_validate(payload)
