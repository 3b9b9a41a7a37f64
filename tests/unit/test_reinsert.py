"""Tests for placeholder reinsertion."""

from __future__ import annotations

from spoilerdown.embeds import EmbedDescriptor, EntityType, reinsert_placeholders


def _descriptor(index: int, entity_id: int = 1) -> EmbedDescriptor:
    return EmbedDescriptor(
        id=f"entity-embed-{index}",
        type=EntityType.ARC,
        entity_id=entity_id,
        display_text=None,
        placeholder=f"SPOILERDOWNEMBEDQ{index}E",
    )


def test_text_without_placeholders_is_single_segment() -> None:
    assert reinsert_placeholders("just text", [_descriptor(0)]) == ["just text"]


def test_empty_text() -> None:
    assert reinsert_placeholders("", []) == [""]


def test_placeholder_alone_has_no_empty_literals() -> None:
    d = _descriptor(0)

    assert reinsert_placeholders(d.placeholder, [d]) == [d]


def test_adjacent_placeholders() -> None:
    a, b = _descriptor(0), _descriptor(1)

    assert reinsert_placeholders(f"{a.placeholder}{b.placeholder}!", [a, b]) == [a, b, "!"]


def test_descriptors_missing_from_text_are_skipped() -> None:
    a, b, c = _descriptor(0), _descriptor(1), _descriptor(2)

    segments = reinsert_placeholders(f"x {c.placeholder} y", [a, b, c])

    assert segments == ["x ", c, " y"]


def test_unknown_placeholder_like_text_stays_literal() -> None:
    a = _descriptor(0)
    text = f"SPOILERDOWNEMBEDQ7E then {a.placeholder}"

    assert reinsert_placeholders(text, [a]) == ["SPOILERDOWNEMBEDQ7E then ", a]


def test_placeholder_one_does_not_match_inside_ten() -> None:
    one, ten = _descriptor(1), _descriptor(10)

    segments = reinsert_placeholders(f"<{ten.placeholder}>", [one, ten])

    assert segments == ["<", ten, ">"]


def test_input_sequence_is_not_mutated() -> None:
    embeds = [_descriptor(0), _descriptor(1)]
    before = list(embeds)

    reinsert_placeholders(f"{embeds[1].placeholder} {embeds[0].placeholder}", embeds)

    assert embeds == before
