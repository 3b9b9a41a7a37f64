"""Spoiler blocks: notation detection and progress-based gating."""

from spoilerdown.spoilers.detector import (
    SpoilerBlock,
    SpoilerNotation,
    detect_blockquote_spoiler,
    detect_container_spoiler,
    detect_spoiler,
    is_spoiler_class,
)
from spoilerdown.spoilers.gate import (
    GateDecision,
    ReadingProgressProvider,
    SpoilerGate,
    SpoilerSettings,
    StaticProgress,
)

__all__ = [
    "GateDecision",
    "ReadingProgressProvider",
    "SpoilerBlock",
    "SpoilerGate",
    "SpoilerNotation",
    "SpoilerSettings",
    "StaticProgress",
    "detect_blockquote_spoiler",
    "detect_container_spoiler",
    "detect_spoiler",
    "is_spoiler_class",
]
