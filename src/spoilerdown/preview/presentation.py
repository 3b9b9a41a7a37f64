"""HTML for entity previews in each state and presentation mode.

All functions here are pure: they take the embed coordinates, the record (if
any) and the mode, and return an HTML fragment. Styling hooks are ``sd-*``
classes plus a ``--sd-accent`` custom property. The accent reads the theme
variable ``--sd-accent-<key>`` and falls back to the type colour.
"""

from __future__ import annotations

from html import escape
from typing import TYPE_CHECKING

from spoilerdown.embeds.types import ENTITY_TYPES, ERROR_ACCENT, PresentationMode, url_for

if TYPE_CHECKING:
    from spoilerdown.embeds.types import EntityType
    from spoilerdown.preview.records import EntityRecord

DEFAULT_DESCRIPTION_LIMIT = 160
LOADING_CHIP_TEXT = "..."


def truncate(text: str, limit: int = DEFAULT_DESCRIPTION_LIMIT) -> str:
    """Shorten ``text`` to at most ``limit`` characters plus an ellipsis."""
    if limit <= 0 or len(text) <= limit:
        return text
    return text[:limit].rstrip() + "..."


def _attrs(entity_type: EntityType, entity_id: int, mode: PresentationMode, state: str) -> str:
    return (
        f'data-entity-type="{entity_type.value}" data-entity-id="{entity_id}" '
        f'data-mode="{mode.value}" data-state="{state}"'
    )


def _accent_style(entity_type: EntityType) -> str:
    info = ENTITY_TYPES[entity_type]
    return f'style="--sd-accent:var(--sd-accent-{info.accent_key}, {info.accent_color})"'


def _icon(entity_type: EntityType) -> str:
    return f'<span class="sd-icon" data-icon="{ENTITY_TYPES[entity_type].icon}" aria-hidden="true"></span>'


def _thumbnail(entity_type: EntityType, entity_id: int, title: str, record: EntityRecord) -> str:
    if record.image_url:
        return (
            f'<img class="sd-thumb" src="{escape(record.image_url)}" alt="{escape(title)}" '
            'loading="lazy">'
        )
    return (
        f'<span class="sd-thumb sd-thumb-pending" data-media-type="{entity_type.value}" '
        f'data-media-id="{entity_id}" aria-label="{escape(title)}"></span>'
    )


def render_loading(entity_type: EntityType, entity_id: int, mode: PresentationMode) -> str:
    """Skeleton sized to the mode; inline chips show ``...``."""
    attrs = _attrs(entity_type, entity_id, mode, "loading")
    if mode is PresentationMode.INLINE:
        return (
            f'<span class="sd-embed sd-inline sd-loading" {attrs} {_accent_style(entity_type)}>'
            f'<span class="sd-chip">{_icon(entity_type)}'
            f'<span class="sd-chip-text">{LOADING_CHIP_TEXT}</span></span></span>'
        )
    if mode is PresentationMode.COMPACT:
        return (
            f'<span class="sd-embed sd-compact sd-loading" {attrs}>'
            '<span class="sd-skeleton sd-skeleton-circle"></span>'
            '<span class="sd-skeleton sd-skeleton-line"></span></span>'
        )
    return (
        f'<div class="sd-embed sd-card sd-loading" {attrs}>'
        '<span class="sd-skeleton sd-skeleton-circle"></span>'
        '<span class="sd-skeleton sd-skeleton-line"></span>'
        '<span class="sd-skeleton sd-skeleton-line sd-skeleton-short"></span></div>'
    )


def render_error(
    entity_type: EntityType,
    entity_id: int,
    display_text: str | None,
    mode: PresentationMode,
) -> str:
    """Red-accented widget for a failed lookup.

    Args:
        entity_type: Embed type.
        entity_id: Requested id.
        display_text: Embed label; replaces the "not found" text when set.
        mode: Presentation mode.
    """
    info = ENTITY_TYPES[entity_type]
    attrs = _attrs(entity_type, entity_id, mode, "error")
    if mode is PresentationMode.INLINE:
        text = escape(display_text or "Not found")
        return (
            f'<span class="sd-embed sd-inline sd-error" {attrs} style="--sd-accent:{ERROR_ACCENT}">'
            f'<a class="sd-chip" href="{url_for(entity_type, entity_id)}">{_icon(entity_type)}'
            f'<span class="sd-chip-text">{text}</span></a>'
            f'<span class="sd-popover" role="tooltip">{_error_body(entity_type, entity_id, display_text)}'
            "</span></span>"
        )

    text = escape(display_text or f"{info.label} not found")
    if mode is PresentationMode.COMPACT:
        return (
            f'<span class="sd-embed sd-compact sd-error" {attrs} style="--sd-accent:{ERROR_ACCENT}">'
            f'{_icon(entity_type)}<span class="sd-title">{text}</span></span>'
        )
    return (
        f'<div class="sd-embed sd-card sd-error" {attrs} style="--sd-accent:{ERROR_ACCENT}">'
        f"{_error_body(entity_type, entity_id, display_text)}</div>"
    )


def _error_body(entity_type: EntityType, entity_id: int, display_text: str | None) -> str:
    text = escape(display_text or f"{ENTITY_TYPES[entity_type].label} not found")
    return (
        f'{_icon(entity_type)}<span class="sd-title">{text}</span>'
        f'<span class="sd-meta">ID: {entity_id}</span>'
    )


def _card_body(
    entity_type: EntityType,
    entity_id: int,
    title: str,
    record: EntityRecord,
    *,
    show_image: bool,
    description_limit: int,
) -> str:
    info = ENTITY_TYPES[entity_type]
    parts: list[str] = []
    if show_image and info.has_media:
        parts.append(_thumbnail(entity_type, entity_id, title, record))
    else:
        parts.append(_icon(entity_type))
    parts.append(f'<span class="sd-title">{escape(title)}</span>')
    parts.append(f'<span class="sd-badge">{info.label}</span>')
    meta = record.meta_line()
    if meta:
        parts.append(f'<span class="sd-meta">{escape(meta)}</span>')
    description = record.description_text()
    if description:
        parts.append(
            f'<span class="sd-description">{escape(truncate(description, description_limit))}</span>'
        )
    return "".join(parts)


def render_loaded(
    entity_type: EntityType,
    entity_id: int,
    display_text: str | None,
    record: EntityRecord,
    mode: PresentationMode,
    *,
    show_image: bool = True,
    description_limit: int = DEFAULT_DESCRIPTION_LIMIT,
) -> str:
    """Widget for a resolved entity.

    Inline chips carry the full card in a hover popover. Compact chips show
    only icon and title. Full cards show thumbnail (for types with media),
    title, type badge, metadata line and truncated description.

    Args:
        entity_type: Embed type.
        entity_id: Entity id.
        display_text: Embed label; overrides the record's default title.
        record: Validated entity record.
        mode: Presentation mode.
        show_image: Allow thumbnails for types with media.
        description_limit: Maximum description length before truncation.

    Returns:
        HTML fragment.
    """
    title = display_text or record.default_title(entity_id)
    href = url_for(entity_type, entity_id)
    attrs = _attrs(entity_type, entity_id, mode, "loaded")
    style = _accent_style(entity_type)

    if mode is PresentationMode.INLINE:
        popover = _card_body(
            entity_type,
            entity_id,
            title,
            record,
            show_image=show_image,
            description_limit=description_limit,
        )
        return (
            f'<span class="sd-embed sd-inline" {attrs} {style}>'
            f'<a class="sd-chip" href="{href}">{_icon(entity_type)}'
            f'<span class="sd-chip-text">{escape(title)}</span></a>'
            f'<span class="sd-popover" role="tooltip">{popover}</span></span>'
        )

    if mode is PresentationMode.COMPACT:
        return (
            f'<a class="sd-embed sd-compact" href="{href}" {attrs} {style}>'
            f'{_icon(entity_type)}<span class="sd-title">{escape(title)}</span></a>'
        )

    body = _card_body(
        entity_type,
        entity_id,
        title,
        record,
        show_image=show_image,
        description_limit=description_limit,
    )
    return f'<a class="sd-embed sd-card" href="{href}" {attrs} {style}>{body}</a>'


def render_unsupported(raw_type: str, entity_id: int, display_text: str | None) -> str:
    """Error chip for an embed type outside the type table."""
    text = escape(display_text or f"Unsupported embed: {raw_type}")
    return (
        f'<span class="sd-embed sd-error" data-entity-type="{escape(raw_type)}" '
        f'data-entity-id="{entity_id}" data-state="error" style="--sd-accent:{ERROR_ACCENT}">'
        f'<span class="sd-title">{text}</span></span>'
    )
