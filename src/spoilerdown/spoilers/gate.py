"""Spoiler gating against a reader's chapter progress."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Literal, Protocol, runtime_checkable

from spoilerdown.observability.logging import get_logger

if TYPE_CHECKING:
    from spoilerdown.spoilers.detector import SpoilerBlock

log = get_logger(__name__)

HiddenStyle = Literal["blur", "hide"]
UnthresholdedPolicy = Literal["reveal", "hide"]


class GateDecision(StrEnum):
    """What to do with a detected spoiler block."""

    REVEAL = "reveal"  # render content as-is
    BLUR = "blur"  # render blurred content under a click-to-reveal overlay
    HIDE = "hide"  # render only the overlay


@runtime_checkable
class ReadingProgressProvider(Protocol):
    """Source of the reader's current chapter."""

    def current_progress(self) -> int:
        """Return the last chapter the reader has read."""
        ...


@dataclass(frozen=True)
class StaticProgress:
    """Progress provider with a fixed chapter."""

    chapter: int = 0

    def current_progress(self) -> int:
        return self.chapter


@dataclass(frozen=True)
class SpoilerSettings:
    """Reader-side spoiler preferences.

    Attributes:
        show_all_spoilers: Reveal every spoiler regardless of progress.
        chapter_tolerance: When > 0, used instead of the reader's progress.
        hidden_style: How a gated block is presented.
        unthresholded: Decision for spoiler blocks without a chapter number.
    """

    show_all_spoilers: bool = False
    chapter_tolerance: int = 0
    hidden_style: HiddenStyle = "blur"
    unthresholded: UnthresholdedPolicy = "reveal"


class SpoilerGate:
    """Decides reveal/blur/hide for spoiler blocks.

    Args:
        progress: Reading-progress provider consulted on every decision.
        settings: Reader preferences; defaults reveal unthresholded blocks.
    """

    def __init__(
        self,
        progress: ReadingProgressProvider,
        settings: SpoilerSettings | None = None,
    ) -> None:
        self._progress = progress
        self.settings = settings or SpoilerSettings()

    def effective_progress(self) -> int:
        """Chapter used for comparisons: tolerance override, else reader progress."""
        if self.settings.chapter_tolerance > 0:
            return self.settings.chapter_tolerance
        return self._progress.current_progress()

    def _hidden(self) -> GateDecision:
        return GateDecision.HIDE if self.settings.hidden_style == "hide" else GateDecision.BLUR

    def decide(self, block: SpoilerBlock) -> GateDecision:
        """Compare a block's threshold against the reader's progress.

        Args:
            block: Detected spoiler block.

        Returns:
            REVEAL when the reader has reached the threshold (or spoilers are
            globally shown), otherwise BLUR or HIDE per ``hidden_style``.
        """
        if self.settings.show_all_spoilers:
            return GateDecision.REVEAL

        threshold = block.chapter_threshold
        if threshold is None:
            if self.settings.unthresholded == "hide":
                return self._hidden()
            return GateDecision.REVEAL

        progress = self.effective_progress()
        if threshold > progress:
            log.debug("spoiler_gated", threshold=threshold, progress=progress)
            return self._hidden()
        return GateDecision.REVEAL

    def overlay_label(self, block: SpoilerBlock) -> str:
        """Headline shown on the overlay of a gated block."""
        if block.chapter_threshold is not None:
            return f"Chapter {block.chapter_threshold} Spoiler"
        return "Spoiler"

    def overlay_hint(self, block: SpoilerBlock) -> str:
        """Tooltip text explaining why a block is gated."""
        if block.chapter_threshold is not None:
            return (
                f"Chapter {block.chapter_threshold} spoiler - You're at Chapter "
                f"{self.effective_progress()}. Click to reveal."
            )
        return "Spoiler content. Click to reveal."
