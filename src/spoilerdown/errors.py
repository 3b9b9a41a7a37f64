"""Exception types shared across spoilerdown.

Malformed embed syntax and missing spoiler chapters are deliberately not
errors; they degrade to plain text and unthresholded spoilers respectively.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path


class SpoilerdownError(Exception):
    """Base exception for spoilerdown errors."""


class EmbedSyntaxError(SpoilerdownError, ValueError):
    """Raised when building embed syntax from invalid parts."""


class EntityFetchError(SpoilerdownError):
    """Raised when an entity lookup fails for a reason other than not-found.

    Attributes:
        entity_type: Embed type that was requested.
        entity_id: Entity id that was requested.
        reason: Short human-readable failure reason.
        status_code: HTTP status when the failure came from a response.
    """

    def __init__(
        self,
        entity_type: str,
        entity_id: int,
        reason: str,
        status_code: int | None = None,
    ) -> None:
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        self.status_code = status_code
        super().__init__(f"[{entity_type}:{entity_id}] {reason}")


class ConfigError(SpoilerdownError):
    """Raised when a render configuration file cannot be loaded."""

    def __init__(self, path: Path | str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to load config at {path}: {reason}")
