"""Live documents: one render plus the previews for its embeds."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from spoilerdown.observability.logging import get_logger
from spoilerdown.preview.presentation import DEFAULT_DESCRIPTION_LIMIT
from spoilerdown.preview.resolver import EntityPreview
from spoilerdown.render.html import render_html
from spoilerdown.render.pipeline import MarkdownRenderer
from spoilerdown.spoilers.gate import SpoilerGate, StaticProgress

if TYPE_CHECKING:
    from collections.abc import Callable

    from spoilerdown.client import EntityFetcher
    from spoilerdown.config import RenderConfig
    from spoilerdown.preview.resolver import PreviewState
    from spoilerdown.render.nodes import RenderedDocument

log = get_logger(__name__)


class LiveDocument:
    """Owns one render of a content string and one preview per embed widget.

    Previews are created with the render but only fetch once mounted. Every
    re-render unmounts the previous previews before creating new ones, so a
    fetch from an old render can never update the new one.

    Args:
        content: Markdown content with embeds and spoiler markers.
        fetcher: Entity fetcher; None renders without ever fetching.
        gate: Spoiler gate; defaults to a reader at chapter 0.
        enable_embeds: Extract embed syntax into widgets.
        compact_mode: Render embeds as compact chips.
        standalone_cards: Render a paragraph holding only one embed as a full card.
        show_images: Allow thumbnails in previews.
        description_limit: Maximum preview description length.
    """

    def __init__(
        self,
        content: str = "",
        *,
        fetcher: EntityFetcher | None = None,
        gate: SpoilerGate | None = None,
        enable_embeds: bool = True,
        compact_mode: bool = False,
        standalone_cards: bool = False,
        show_images: bool = True,
        description_limit: int = DEFAULT_DESCRIPTION_LIMIT,
    ) -> None:
        self.fetcher = fetcher
        self.gate = gate or SpoilerGate(StaticProgress())
        self.show_images = show_images
        self.description_limit = description_limit
        self._content = content
        self._enable_embeds = enable_embeds
        self._renderer = MarkdownRenderer(
            compact_mode=compact_mode, standalone_cards=standalone_cards
        )
        self._listeners: list[Callable[[EntityPreview], None]] = []
        self._mounted = False
        self.previews: dict[str, EntityPreview] = {}
        self.rendered: RenderedDocument = self._render()

    @classmethod
    def from_config(
        cls,
        content: str,
        config: RenderConfig,
        fetcher: EntityFetcher | None = None,
    ) -> LiveDocument:
        """Build a document using render, spoiler and preview settings from ``config``."""
        gate = SpoilerGate(StaticProgress(config.spoilers.user_progress), config.spoilers.settings())
        return cls(
            content,
            fetcher=fetcher,
            gate=gate,
            enable_embeds=config.enable_embeds,
            compact_mode=config.preview.compact,
            standalone_cards=config.preview.standalone_cards,
            show_images=config.preview.show_images,
            description_limit=config.preview.description_limit,
        )

    @property
    def content(self) -> str:
        return self._content

    def _render(self) -> RenderedDocument:
        rendered = self._renderer.render(self._content, enable_embeds=self._enable_embeds)
        self.previews = {}
        if self.fetcher is not None:
            for widget in rendered.tree.embed_widgets():
                preview = EntityPreview.for_widget(
                    widget,
                    self.fetcher,
                    show_image=self.show_images,
                    description_limit=self.description_limit,
                )
                preview.on_change(self._notify)
                self.previews[widget.key] = preview
        return rendered

    def _notify(self, preview: EntityPreview) -> None:
        for listener in list(self._listeners):
            listener(preview)

    def on_change(self, callback: Callable[[EntityPreview], None]) -> None:
        """Register a listener called whenever any current preview changes state."""
        self._listeners.append(callback)

    def mount_all(self) -> list[asyncio.Task[None]]:
        """Start every preview's fetch concurrently on the running loop."""
        self._mounted = True
        tasks = [preview.mount() for preview in self.previews.values()]
        if tasks:
            log.debug("previews_mounted", count=len(tasks))
        return tasks

    def unmount_all(self) -> None:
        """Dispose every current preview."""
        self._mounted = False
        for preview in self.previews.values():
            preview.unmount()

    async def resolve_all(self) -> dict[str, PreviewState]:
        """Mount (if needed) and wait for every preview to settle.

        Returns:
            Final state per widget key. A failed lookup is an Error state,
            never an exception.
        """
        self.mount_all()
        previews = list(self.previews.values())
        states = await asyncio.gather(*(preview.wait() for preview in previews))
        return {preview.key: state for preview, state in zip(previews, states, strict=True)}

    def update(
        self,
        content: str | None = None,
        *,
        enable_embeds: bool | None = None,
    ) -> RenderedDocument:
        """Re-render after a content or embed-flag change.

        Current previews are unmounted first. When the document was mounted,
        the new previews are mounted straight away.
        """
        was_mounted = self._mounted
        self.unmount_all()
        if content is not None:
            self._content = content
        if enable_embeds is not None:
            self._enable_embeds = enable_embeds
        self.rendered = self._render()
        log.debug("document_rerendered", widgets=len(self.previews), mounted=was_mounted)
        if was_mounted:
            self.mount_all()
        return self.rendered

    def to_html(self) -> str:
        """Serialize the current render with preview states and gate decisions."""
        return render_html(self.rendered.tree, self.previews, self.gate)
