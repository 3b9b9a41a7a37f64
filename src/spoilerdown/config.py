"""Render configuration loading.

A config file is YAML::

    api:
      base_url: https://example.org/api
      timeout: 10
      token: null
    spoilers:
      user_progress: 120
      show_all_spoilers: false
      chapter_tolerance: 0
      hidden_style: blur      # or "hide"
      unthresholded: reveal   # or "hide"
    preview:
      description_limit: 160
      show_images: true
      compact: false
      standalone_cards: false  # full card for a paragraph holding one embed
    enable_embeds: true

Environment variables override the file: SPOILERDOWN_API_URL,
SPOILERDOWN_API_TOKEN and SPOILERDOWN_PROGRESS.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path  # noqa: TC003 - used at runtime
from typing import Any

from ruamel.yaml import YAML

from spoilerdown.client import DEFAULT_BASE_URL, DEFAULT_TIMEOUT
from spoilerdown.errors import ConfigError
from spoilerdown.preview.presentation import DEFAULT_DESCRIPTION_LIMIT
from spoilerdown.spoilers.gate import SpoilerSettings

_HIDDEN_STYLES = ("blur", "hide")
_UNTHRESHOLDED = ("reveal", "hide")


def _non_negative_int(value: Any, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValueError(f"{name} must be a non-negative integer, got {value!r}")
    return value


def _choice(value: Any, name: str, choices: tuple[str, ...]) -> str:
    if value not in choices:
        raise ValueError(f"{name} must be one of {', '.join(choices)}, got {value!r}")
    return str(value)


@dataclass
class ApiConfig:
    """Entity API connection settings."""

    base_url: str = DEFAULT_BASE_URL
    timeout: float | None = DEFAULT_TIMEOUT
    token: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ApiConfig:
        timeout = data.get("timeout", DEFAULT_TIMEOUT)
        if timeout is not None:
            timeout = float(timeout)
        return cls(
            base_url=str(data.get("base_url", DEFAULT_BASE_URL)),
            timeout=timeout,
            token=data.get("token"),
        )


@dataclass
class SpoilerConfig:
    """Reader progress and spoiler preferences.

    Attributes:
        user_progress: Last chapter the reader has read.
        show_all_spoilers: Reveal every spoiler.
        chapter_tolerance: When > 0, used instead of ``user_progress``.
        hidden_style: "blur" or "hide" for gated blocks.
        unthresholded: "reveal" or "hide" for spoilers without a chapter.
    """

    user_progress: int = 0
    show_all_spoilers: bool = False
    chapter_tolerance: int = 0
    hidden_style: str = "blur"
    unthresholded: str = "reveal"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SpoilerConfig:
        """Create config from dictionary.

        Raises:
            ValueError: If a value is out of range.
        """
        return cls(
            user_progress=_non_negative_int(data.get("user_progress", 0), "user_progress"),
            show_all_spoilers=bool(data.get("show_all_spoilers", False)),
            chapter_tolerance=_non_negative_int(
                data.get("chapter_tolerance", 0), "chapter_tolerance"
            ),
            hidden_style=_choice(data.get("hidden_style", "blur"), "hidden_style", _HIDDEN_STYLES),
            unthresholded=_choice(
                data.get("unthresholded", "reveal"), "unthresholded", _UNTHRESHOLDED
            ),
        )

    def settings(self) -> SpoilerSettings:
        """Gate settings for this config."""
        return SpoilerSettings(
            show_all_spoilers=self.show_all_spoilers,
            chapter_tolerance=self.chapter_tolerance,
            hidden_style="hide" if self.hidden_style == "hide" else "blur",
            unthresholded="hide" if self.unthresholded == "hide" else "reveal",
        )


@dataclass
class PreviewConfig:
    """Entity preview presentation settings."""

    description_limit: int = DEFAULT_DESCRIPTION_LIMIT
    show_images: bool = True
    compact: bool = False
    standalone_cards: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PreviewConfig:
        return cls(
            description_limit=_non_negative_int(
                data.get("description_limit", DEFAULT_DESCRIPTION_LIMIT), "description_limit"
            ),
            show_images=bool(data.get("show_images", True)),
            compact=bool(data.get("compact", False)),
            standalone_cards=bool(data.get("standalone_cards", False)),
        )


@dataclass
class RenderConfig:
    """Configuration for rendering documents."""

    api: ApiConfig = field(default_factory=ApiConfig)
    spoilers: SpoilerConfig = field(default_factory=SpoilerConfig)
    preview: PreviewConfig = field(default_factory=PreviewConfig)
    enable_embeds: bool = True

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RenderConfig:
        """Create config from dictionary.

        Args:
            data: Dictionary with optional ``api``, ``spoilers``, ``preview``
                sections and an ``enable_embeds`` flag.

        Returns:
            RenderConfig instance.
        """
        return cls(
            api=ApiConfig.from_dict(dict(data.get("api") or {})),
            spoilers=SpoilerConfig.from_dict(dict(data.get("spoilers") or {})),
            preview=PreviewConfig.from_dict(dict(data.get("preview") or {})),
            enable_embeds=bool(data.get("enable_embeds", True)),
        )

    def with_env_overrides(self) -> RenderConfig:
        """Apply SPOILERDOWN_* environment variables on top of this config.

        Raises:
            ConfigError: If SPOILERDOWN_PROGRESS is not a non-negative integer.
        """
        api = self.api
        if url := os.getenv("SPOILERDOWN_API_URL"):
            api = replace(api, base_url=url)
        if token := os.getenv("SPOILERDOWN_API_TOKEN"):
            api = replace(api, token=token)

        spoilers = self.spoilers
        if progress := os.getenv("SPOILERDOWN_PROGRESS"):
            try:
                value = _non_negative_int(int(progress), "SPOILERDOWN_PROGRESS")
            except ValueError as e:
                raise ConfigError("SPOILERDOWN_PROGRESS", str(e)) from e
            spoilers = replace(spoilers, user_progress=value)

        return replace(self, api=api, spoilers=spoilers)


def load_config(config_path: Path) -> RenderConfig:
    """Load render configuration from a YAML file.

    Args:
        config_path: Path to the config file.

    Returns:
        RenderConfig instance (environment overrides not applied).

    Raises:
        ConfigError: If config cannot be loaded.
    """
    if not config_path.exists():
        raise ConfigError(config_path, "File not found")

    yaml = YAML(typ="safe")
    try:
        with config_path.open("r", encoding="utf-8") as f:
            data = yaml.load(f)

        if data is None:
            return RenderConfig()
        if not isinstance(data, dict):
            raise ConfigError(config_path, "Top level must be a mapping")

        return RenderConfig.from_dict(data)
    except ConfigError:
        raise
    except Exception as e:
        raise ConfigError(config_path, str(e)) from e
