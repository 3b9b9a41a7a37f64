"""Entity fetchers for tests."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    import asyncio

    from spoilerdown.embeds.types import EntityType


class FakeFetcher:
    """In-memory entity fetcher.

    Payloads and errors are keyed by ``(type, id)``. When ``release`` is
    given, every lookup blocks until the event is set.
    """

    def __init__(
        self,
        payloads: dict[tuple[str, int], dict[str, Any] | None] | None = None,
        errors: dict[tuple[str, int], Exception] | None = None,
        release: asyncio.Event | None = None,
    ) -> None:
        self.payloads = payloads or {}
        self.errors = errors or {}
        self.release = release
        self.calls: list[tuple[EntityType, int]] = []

    async def fetch_entity(self, entity_type: EntityType, entity_id: int) -> dict[str, Any] | None:
        self.calls.append((entity_type, entity_id))
        if self.release is not None:
            await self.release.wait()
        key = (entity_type.value, entity_id)
        if key in self.errors:
            raise self.errors[key]
        return self.payloads.get(key)


KNOWN_ENTITIES: dict[tuple[str, int], dict[str, Any] | None] = {
    ("character", 1): {
        "id": 1,
        "name": "Baku Madarame",
        "description": "A gambler of legendary skill.",
        "organization": "Kakerou",
    },
    ("arc", 5): {"id": 5, "name": "Tower Arc", "startChapter": 100, "endChapter": 140},
    ("quote", 9): {"id": 9, "text": "The one who doubts is the one who loses."},
    ("guide", 3): {"id": 3, "title": "Gambling Rules Guide"},
}
