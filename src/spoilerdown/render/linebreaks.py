"""Turn single newlines into markdown hard breaks.

CommonMark folds a lone newline into a space, which is not what people
typing plain text expect. Appending two spaces to a line makes markdown-it
emit a hard break instead. Fenced code, list items, headings, blockquote
lines and indented code are left alone so their markdown meaning is kept.
"""

from __future__ import annotations

import re

_FENCE = "```"
_LIST_ITEM = re.compile(r"^\s*([*+-]|\d+\.)\s+")
_HEADING = re.compile(r"^\s*#{1,6}\s+")
_BLOCKQUOTE = re.compile(r"^\s*>\s+")
_INDENTED_CODE = re.compile(r"^\s{4,}")
_HARD_BREAK = re.compile(r"\s{2}$")


def _is_structural(line: str) -> bool:
    """True for lines whose markdown meaning a trailing break would disturb."""
    return bool(
        _LIST_ITEM.match(line)
        or _HEADING.match(line)
        or _BLOCKQUOTE.match(line)
        or _INDENTED_CODE.match(line)
    )


def normalize_line_breaks(text: str) -> str:
    """Append a hard-break marker to lines that continue onto a next line.

    Args:
        text: Markdown source, typically already embed-extracted.

    Returns:
        The text with two trailing spaces added where a soft break would
        otherwise be collapsed. Fenced code blocks are returned verbatim.
    """
    if not text:
        return text

    lines = text.split("\n")
    out: list[str] = []
    in_fence = False

    for i, line in enumerate(lines):
        if line.strip().startswith(_FENCE):
            in_fence = not in_fence
            out.append(line)
            continue

        if in_fence:
            out.append(line)
            continue

        next_line = lines[i + 1] if i + 1 < len(lines) else None
        continues = line.strip() != "" and next_line is not None and next_line.strip() != ""

        if continues and not _is_structural(line) and not _HARD_BREAK.search(line):
            out.append(line + "  ")
        else:
            out.append(line)

    return "\n".join(out)
