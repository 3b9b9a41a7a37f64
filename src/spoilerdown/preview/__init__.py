"""Entity previews: validated records, async resolution and HTML presentation."""

from spoilerdown.preview.presentation import (
    DEFAULT_DESCRIPTION_LIMIT,
    render_error,
    render_loaded,
    render_loading,
    truncate,
)
from spoilerdown.preview.records import RECORD_MODELS, EntityRecord, parse_record
from spoilerdown.preview.resolver import EntityPreview, Error, Loaded, Loading, PreviewState

__all__ = [
    "DEFAULT_DESCRIPTION_LIMIT",
    "RECORD_MODELS",
    "EntityPreview",
    "EntityRecord",
    "Error",
    "Loaded",
    "Loading",
    "PreviewState",
    "parse_record",
    "render_error",
    "render_loaded",
    "render_loading",
    "truncate",
]
