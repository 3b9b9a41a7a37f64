"""Spoiler block detection.

Two notations are recognised:

- blockquote form: ``> [!SPOILER Chapter 150] hidden text``
- container form: a block whose class mentions ``spoiler`` (a
  ``<div class="spoiler">`` HTML block or a ``::: spoiler`` container),
  with the threshold taken from any "Chapter N" in its text

The chapter number is optional in both. Detection only extracts the
threshold; whether the block is shown is the SpoilerGate's decision.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import StrEnum

_BLOCKQUOTE_MARKER = re.compile(
    r"^\[!SPOILER(?:\s+Chapter\s+(\d+))?\]\s*(.*)",
    re.IGNORECASE | re.DOTALL,
)
_CHAPTER_MENTION = re.compile(r"Chapter\s+(\d+)", re.IGNORECASE)


class SpoilerNotation(StrEnum):
    """Which notation a spoiler block was written in."""

    BLOCKQUOTE = "blockquote"
    CONTAINER = "container"


@dataclass(frozen=True)
class SpoilerBlock:
    """A detected spoiler region.

    Attributes:
        chapter_threshold: Chapter the reader must have reached, if given.
        inner_text: Flattened text of the wrapped content (marker removed).
        notation: Notation the block was written in.
    """

    chapter_threshold: int | None
    inner_text: str
    notation: SpoilerNotation


def match_blockquote_marker(text: str) -> re.Match[str] | None:
    """Match the ``[!SPOILER ...]`` marker at the start of ``text``."""
    return _BLOCKQUOTE_MARKER.match(text)


def detect_blockquote_spoiler(text: str) -> SpoilerBlock | None:
    """Detect the blockquote notation in a blockquote's flattened text."""
    match = match_blockquote_marker(text)
    if match is None:
        return None
    chapter = int(match.group(1)) if match.group(1) else None
    return SpoilerBlock(
        chapter_threshold=chapter,
        inner_text=match.group(2),
        notation=SpoilerNotation.BLOCKQUOTE,
    )


def is_spoiler_class(class_name: str | None) -> bool:
    """True when a container class attribute marks it as a spoiler."""
    return class_name is not None and "spoiler" in class_name.lower()


def detect_container_spoiler(text: str, class_name: str | None) -> SpoilerBlock | None:
    """Detect the container notation.

    Args:
        text: Flattened text of the container (including any info string).
        class_name: Class attribute (or container name) of the block.

    Returns:
        SpoilerBlock when the class marks a spoiler, else None.
    """
    if not is_spoiler_class(class_name):
        return None
    match = _CHAPTER_MENTION.search(text)
    chapter = int(match.group(1)) if match else None
    return SpoilerBlock(
        chapter_threshold=chapter,
        inner_text=text,
        notation=SpoilerNotation.CONTAINER,
    )


def detect_spoiler(text: str, class_name: str | None = None) -> SpoilerBlock | None:
    """Test both notations in priority order.

    Args:
        text: Flattened text content of a block.
        class_name: Class of the block when it is a generic container.

    Returns:
        The detected SpoilerBlock, or None if the block is not a spoiler.
    """
    block = detect_blockquote_spoiler(text)
    if block is not None:
        return block
    return detect_container_spoiler(text, class_name)
