"""Per-embed asynchronous entity resolution.

Each EntityPreview owns exactly one fetch. Previews never share results:
two embeds of the same entity make two requests and can end in different
states. There is no retry; Error is terminal.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import TYPE_CHECKING

from pydantic import ValidationError

from spoilerdown.embeds.types import EntityType, PresentationMode, parse_entity_type
from spoilerdown.errors import EntityFetchError
from spoilerdown.observability.logging import get_logger
from spoilerdown.preview.presentation import (
    DEFAULT_DESCRIPTION_LIMIT,
    render_error,
    render_loaded,
    render_loading,
    render_unsupported,
)
from spoilerdown.preview.records import EntityRecord, parse_record

if TYPE_CHECKING:
    from collections.abc import Callable

    from spoilerdown.client import EntityFetcher
    from spoilerdown.render.nodes import EmbedWidget

log = get_logger(__name__)


@dataclass(frozen=True)
class Loading:
    """Fetch scheduled or in flight."""


@dataclass(frozen=True)
class Error:
    """Lookup failed; terminal."""

    reason: str


@dataclass(frozen=True)
class Loaded:
    """Lookup succeeded with a validated record."""

    record: EntityRecord


PreviewState = Loading | Error | Loaded


class EntityPreview:
    """Resolves one embed to an entity record and renders it.

    Args:
        entity_type: Embed type. Unknown type names resolve straight to Error.
        entity_id: Entity id.
        fetcher: Object providing ``fetch_entity(type, id)``.
        display_text: Embed label overriding the fetched title.
        mode: Presentation mode.
        show_image: Allow thumbnails for types with media.
        description_limit: Maximum description length before truncation.
        key: Widget key this preview belongs to.
    """

    def __init__(
        self,
        entity_type: EntityType | str,
        entity_id: int,
        fetcher: EntityFetcher,
        *,
        display_text: str | None = None,
        mode: PresentationMode = PresentationMode.INLINE,
        show_image: bool = True,
        description_limit: int = DEFAULT_DESCRIPTION_LIMIT,
        key: str | None = None,
    ) -> None:
        self.raw_type = str(entity_type)
        self.entity_type = parse_entity_type(self.raw_type)
        self.entity_id = entity_id
        self.display_text = display_text
        self.mode = mode
        self.show_image = show_image
        self.description_limit = description_limit
        self.key = key or f"{self.raw_type}-{entity_id}"

        self._fetcher = fetcher
        self._state: PreviewState = Loading()
        self._task: asyncio.Task[None] | None = None
        self._disposed = False
        self._listeners: list[Callable[[EntityPreview], None]] = []

    @classmethod
    def for_widget(
        cls,
        widget: EmbedWidget,
        fetcher: EntityFetcher,
        *,
        show_image: bool = True,
        description_limit: int = DEFAULT_DESCRIPTION_LIMIT,
    ) -> EntityPreview:
        """Create the preview for an embed widget of a rendered document."""
        descriptor = widget.descriptor
        return cls(
            descriptor.type,
            descriptor.entity_id,
            fetcher,
            display_text=descriptor.display_text,
            mode=widget.mode,
            show_image=show_image,
            description_limit=description_limit,
            key=widget.key,
        )

    @property
    def state(self) -> PreviewState:
        return self._state

    @property
    def mounted(self) -> bool:
        return self._task is not None and not self._disposed

    @property
    def disposed(self) -> bool:
        return self._disposed

    def on_change(self, callback: Callable[[EntityPreview], None]) -> Callable[[], None]:
        """Register a listener called after every state transition.

        Returns:
            A function that removes the listener.
        """
        self._listeners.append(callback)

        def _remove() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return _remove

    def mount(self) -> asyncio.Task[None]:
        """Start the fetch on the running event loop.

        Mounting twice returns the existing task.

        Raises:
            RuntimeError: If the preview was already unmounted, or no loop is running.
        """
        if self._disposed:
            raise RuntimeError(f"Preview {self.key} was unmounted and cannot be mounted again")
        if self._task is None:
            self._task = asyncio.get_running_loop().create_task(
                self._resolve(), name=f"entity-preview-{self.key}"
            )
        return self._task

    def unmount(self) -> None:
        """Dispose the preview; a fetch still in flight is cancelled and its result dropped."""
        if self._disposed:
            return
        self._disposed = True
        self._listeners.clear()
        if self._task is not None and not self._task.done():
            self._task.cancel()
            log.debug("preview_unmounted_in_flight", key=self.key)

    async def wait(self) -> PreviewState:
        """Wait for the fetch to finish (or be cancelled) and return the state."""
        if self._task is not None:
            try:
                await self._task
            except asyncio.CancelledError:
                if not self._disposed:
                    raise
        return self._state

    async def _resolve(self) -> None:
        if self.entity_type is None:
            log.warning("unsupported_entity_type", entity_type=self.raw_type, entity_id=self.entity_id)
            self._transition(Error(f"Unsupported entity type: {self.raw_type}"))
            return

        try:
            payload = await self._fetcher.fetch_entity(self.entity_type, self.entity_id)
        except EntityFetchError as e:
            if self._discard_late():
                return
            log.warning(
                "entity_fetch_failed",
                entity_type=self.entity_type,
                entity_id=self.entity_id,
                reason=e.reason,
                status_code=e.status_code,
            )
            self._transition(Error(e.reason))
            return
        except Exception as e:
            # Any fetcher failure ends in Error rather than an exception.
            if self._discard_late():
                return
            log.warning(
                "entity_fetch_failed",
                entity_type=self.entity_type,
                entity_id=self.entity_id,
                reason=str(e),
                error_type=type(e).__name__,
            )
            self._transition(Error(str(e) or type(e).__name__))
            return

        if self._discard_late():
            return
        if not payload:
            log.info("entity_not_found", entity_type=self.entity_type, entity_id=self.entity_id)
            self._transition(Error("not found"))
            return

        try:
            record = parse_record(self.entity_type, payload)
        except ValidationError as e:
            log.warning(
                "entity_payload_invalid",
                entity_type=self.entity_type,
                entity_id=self.entity_id,
                errors=e.error_count(),
            )
            self._transition(Error("invalid payload"))
            return

        log.debug("entity_resolved", entity_type=self.entity_type, entity_id=self.entity_id)
        self._transition(Loaded(record))

    def _discard_late(self) -> bool:
        if self._disposed:
            log.debug("preview_late_result_discarded", key=self.key)
            return True
        return False

    def _transition(self, state: PreviewState) -> None:
        if self._disposed:
            return
        self._state = state
        for listener in list(self._listeners):
            listener(self)

    def render(self) -> str:
        """HTML for the current state and mode."""
        state = self._state
        if self.entity_type is None:
            return render_unsupported(self.raw_type, self.entity_id, self.display_text)
        if isinstance(state, Loaded):
            return render_loaded(
                self.entity_type,
                self.entity_id,
                self.display_text,
                state.record,
                self.mode,
                show_image=self.show_image,
                description_limit=self.description_limit,
            )
        if isinstance(state, Error):
            return render_error(self.entity_type, self.entity_id, self.display_text, self.mode)
        return render_loading(self.entity_type, self.entity_id, self.mode)
