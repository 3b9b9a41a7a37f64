"""Tests for the markdown render pipeline."""

from __future__ import annotations

from spoilerdown.embeds import EntityType, PresentationMode
from spoilerdown.render import (
    Block,
    EmbedWidget,
    Inline,
    MarkdownRenderer,
    RawHtml,
    SpoilerWrapper,
    Text,
    flatten_text,
    render_markdown,
)
from spoilerdown.spoilers import SpoilerNotation


def _texts(nodes: list) -> list[str]:
    return [n.value for n in nodes if isinstance(n, Text)]


class TestStructure:
    def test_heading_and_paragraph_with_embed(self) -> None:
        rendered = render_markdown("# Heading\n\nPara with {{quote:9}}.")

        heading, paragraph = rendered.tree.children
        assert isinstance(heading, Block)
        assert heading.kind == "heading"
        assert heading.attrs["level"] == 1
        assert _texts(heading.children) == ["Heading"]

        assert isinstance(paragraph, Block)
        assert paragraph.kind == "paragraph"
        first, widget, last = paragraph.children
        assert first == Text("Para with ")
        assert isinstance(widget, EmbedWidget)
        assert widget.descriptor.type is EntityType.QUOTE
        assert widget.descriptor.entity_id == 9
        assert last == Text(".")
        assert paragraph.attrs["has_embeds"] is True

    def test_heading_levels(self) -> None:
        rendered = render_markdown("### Third\n\n###### Sixth")

        assert [b.attrs["level"] for b in rendered.tree.children] == [3, 6]

    def test_widget_keys_are_unique_per_pass(self) -> None:
        rendered = render_markdown("{{arc:5}} and {{arc:5}}\n\n- {{character:1}}")

        widgets = rendered.tree.embed_widgets()
        assert [w.key for w in widgets] == ["embed-0", "embed-1", "embed-2"]
        assert widgets[0].descriptor is not widgets[1].descriptor

    def test_single_newlines_become_hard_breaks(self) -> None:
        rendered = render_markdown("line one\nline two")

        paragraph = rendered.tree.children[0]
        kinds = [n.kind for n in paragraph.children if isinstance(n, Inline)]
        assert kinds == ["hardbreak"]

    def test_lists_keep_embeds(self) -> None:
        rendered = render_markdown("1. first {{arc:5}}\n2. second")

        ordered = rendered.tree.children[0]
        assert ordered.kind == "ordered_list"
        item = ordered.children[0]
        assert item.kind == "list_item"
        paragraph = item.children[0]
        assert paragraph.attrs["tight"] is True
        assert any(isinstance(n, EmbedWidget) for n in paragraph.children)

    def test_inline_formatting_is_preserved(self) -> None:
        rendered = render_markdown("*em* **strong** ~~gone~~ `code` [link](https://example.org)")

        kinds = [n.kind for n in rendered.tree.children[0].children if isinstance(n, Inline)]
        assert kinds == ["em", "strong", "s", "code_inline", "link"]

    def test_embed_inside_emphasis_is_live(self) -> None:
        rendered = render_markdown("**see {{character:1:Baku}}**")

        strong = rendered.tree.children[0].children[0]
        assert isinstance(strong, Inline)
        assert any(isinstance(n, EmbedWidget) for n in strong.children)

    def test_no_empty_text_nodes(self) -> None:
        rendered = render_markdown("**see {{character:1:Baku}}** and *{{arc:5}}*")

        assert Text("") not in list(rendered.tree.walk())
        paragraph = rendered.tree.children[0]
        assert [type(n) for n in paragraph.children] == [Inline, Text, Inline]


class TestEmbedModes:
    def test_inline_mode_by_default(self) -> None:
        widget = render_markdown("{{arc:5}}").tree.embed_widgets()[0]

        assert widget.mode is PresentationMode.INLINE

    def test_compact_mode(self) -> None:
        widget = render_markdown("{{arc:5}}", compact_mode=True).tree.embed_widgets()[0]

        assert widget.mode is PresentationMode.COMPACT

    def test_standalone_embed_becomes_card(self) -> None:
        rendered = render_markdown("{{arc:5}}\n\nText {{arc:6}}", standalone_cards=True)

        lone, mid_sentence = rendered.tree.embed_widgets()
        assert lone.mode is PresentationMode.FULL
        assert mid_sentence.mode is PresentationMode.INLINE

    def test_embeds_disabled(self) -> None:
        rendered = render_markdown("See {{character:1}}\nnext", enable_embeds=False)

        assert rendered.tree.embed_widgets() == []
        assert rendered.parsed.embeds == ()
        assert rendered.enable_embeds is False
        assert "{{character:1}}" in flatten_text(rendered.tree.children)


class TestVerbatimContexts:
    def test_fenced_code_keeps_embed_syntax(self) -> None:
        rendered = render_markdown("```\n{{character:1}}\nline2\n```")

        block = rendered.tree.children[0]
        assert isinstance(block, RawHtml)
        assert "{{character:1}}\nline2\n" in block.html
        assert rendered.tree.embed_widgets() == []

    def test_code_span_keeps_embed_syntax(self) -> None:
        rendered = render_markdown("Use `{{arc:5}}` to embed")

        code = rendered.tree.children[0].children[1]
        assert isinstance(code, Inline)
        assert code.kind == "code_inline"
        assert code.content == "{{arc:5}}"

    def test_link_text_keeps_embed_syntax(self) -> None:
        rendered = render_markdown("[{{arc:5}}](https://example.org)")

        link = rendered.tree.children[0].children[0]
        assert link.kind == "link"
        assert link.children == [Text("{{arc:5}}")]
        assert link.attrs["href"] == "https://example.org"

    def test_table_keeps_embed_syntax(self) -> None:
        rendered = render_markdown("| a |\n|---|\n| {{arc:5}} |")

        table = rendered.tree.children[0]
        assert isinstance(table, RawHtml)
        assert "<table>" in table.html
        assert "{{arc:5}}" in table.html

    def test_placeholders_never_leak(self) -> None:
        content = "```\n{{arc:5}}\n```\n\n`{{arc:6}}` {{arc:7}}\n\n| x |\n|---|\n| {{arc:8}} |"
        rendered = render_markdown(content)
        prefix = rendered.parsed.embeds[0].placeholder[:-2]

        for node in rendered.tree.walk():
            if isinstance(node, RawHtml):
                assert prefix not in node.html
            if isinstance(node, Text):
                assert prefix not in node.value
            if isinstance(node, Inline):
                assert prefix not in node.content


class TestSpoilers:
    def test_blockquote_spoiler(self) -> None:
        rendered = render_markdown("> [!SPOILER Chapter 12] twist revealed")

        wrapper = rendered.tree.children[0]
        assert isinstance(wrapper, SpoilerWrapper)
        assert wrapper.block.chapter_threshold == 12
        assert wrapper.block.inner_text == "twist revealed"
        assert wrapper.block.notation is SpoilerNotation.BLOCKQUOTE

        quote = wrapper.children[0]
        assert quote.kind == "blockquote"
        assert quote.attrs["class"] == "spoiler"
        assert flatten_text(quote.children) == "twist revealed"

    def test_blockquote_spoiler_keeps_embeds_and_later_blocks(self) -> None:
        content = "> [!SPOILER Chapter 40] {{character:1}} wins\n>\n> Second paragraph"
        rendered = render_markdown(content)

        wrapper = rendered.tree.children[0]
        quote = wrapper.children[0]
        first, second = quote.children
        assert isinstance(first.children[0], EmbedWidget)
        assert _texts(second.children) == ["Second paragraph"]

    def test_marker_only_first_paragraph_is_dropped(self) -> None:
        rendered = render_markdown("> [!SPOILER]\n>\n> body")

        wrapper = rendered.tree.children[0]
        assert wrapper.block.chapter_threshold is None
        quote = wrapper.children[0]
        assert len(quote.children) == 1
        assert flatten_text(quote.children) == "body"

    def test_plain_blockquote(self) -> None:
        rendered = render_markdown("> just a quote")

        block = rendered.tree.children[0]
        assert isinstance(block, Block)
        assert block.kind == "blockquote"
        assert "class" not in block.attrs

    def test_fenced_container_spoiler(self) -> None:
        rendered = render_markdown("::: spoiler Chapter 150\nThe ending\n:::")

        wrapper = rendered.tree.children[0]
        assert isinstance(wrapper, SpoilerWrapper)
        assert wrapper.block.chapter_threshold == 150
        assert wrapper.block.notation is SpoilerNotation.CONTAINER
        container = wrapper.children[0]
        assert container.kind == "container"
        assert container.attrs["title"] == "Chapter 150"

    def test_html_div_spoiler(self) -> None:
        rendered = render_markdown('<div class="spoiler">\nIn Chapter 150 {{character:1}} wins\n</div>')

        wrapper = rendered.tree.children[0]
        assert isinstance(wrapper, SpoilerWrapper)
        assert wrapper.block.chapter_threshold == 150
        container = wrapper.children[0]
        assert container.attrs["class"] == "spoiler"
        assert len(rendered.tree.embed_widgets()) == 1

    def test_html_div_spoiler_spanning_blank_lines(self) -> None:
        content = '<div class="card spoiler">\n\nChapter 3 twist\n\nMore\n\n</div>\n\nAfter'
        rendered = render_markdown(content)

        wrapper, after = rendered.tree.children
        assert isinstance(wrapper, SpoilerWrapper)
        assert wrapper.block.chapter_threshold == 3
        assert len(wrapper.children[0].children) == 2
        assert _texts(after.children) == ["After"]

    def test_non_spoiler_div_is_plain_container(self) -> None:
        rendered = render_markdown('<div class="note">\nChapter 3\n</div>')

        block = rendered.tree.children[0]
        assert isinstance(block, Block)
        assert block.kind == "container"
        assert rendered.tree.spoilers() == []

    def test_other_html_is_escaped(self) -> None:
        rendered = render_markdown("<script>alert(1)</script>\n\n<section>\n{{arc:5}}\n</section>")

        script, section = rendered.tree.children
        assert isinstance(script, RawHtml)
        assert script.html == "<p>&lt;script&gt;alert(1)&lt;/script&gt;</p>\n"
        assert isinstance(section, RawHtml)
        assert "&lt;section&gt;" in section.html
        assert "<section>" not in section.html
        assert "{{arc:5}}" in section.html

    def test_inline_html_keeps_source_text(self) -> None:
        rendered = render_markdown('hi <img src=x onerror="alert(1)"> there')

        node = rendered.tree.children[0].children[1]
        assert isinstance(node, Inline)
        assert node.kind == "html_inline"
        assert node.content == '<img src=x onerror="alert(1)">'

    def test_nested_div_does_not_close_spoiler(self) -> None:
        content = (
            '<div class="spoiler">\n\nChapter 50 intro\n\n'
            '<div class="note">\n\ninner\n\n</div>\n\nafter\n\n</div>\n\nOutside'
        )
        rendered = render_markdown(content)

        wrapper, outside = rendered.tree.children
        assert isinstance(wrapper, SpoilerWrapper)
        assert wrapper.block.chapter_threshold == 50
        assert "after" in flatten_text(wrapper.children)
        nested = [
            n
            for n in rendered.tree.walk()
            if isinstance(n, Block) and n.attrs.get("class") == "note"
        ]
        assert len(nested) == 1
        assert _texts(outside.children) == ["Outside"]

    def test_unclosed_div_is_escaped(self) -> None:
        rendered = render_markdown('<div class="spoiler">\n\nChapter 9\n\n<div class="a">\n\n</div>')

        assert rendered.tree.spoilers() == []
        assert isinstance(rendered.tree.children[0], RawHtml)
        assert "&lt;div class=" in rendered.tree.children[0].html


def test_renderer_can_be_reused() -> None:
    renderer = MarkdownRenderer()

    first = renderer.render("{{arc:5}}")
    second = renderer.render("{{arc:6}} {{arc:7}}")

    assert [w.key for w in first.tree.embed_widgets()] == ["embed-0"]
    assert [w.key for w in second.tree.embed_widgets()] == ["embed-0", "embed-1"]


def test_crlf_input() -> None:
    rendered = render_markdown("# Title\r\n\r\nBody")

    assert [b.kind for b in rendered.tree.children] == ["heading", "paragraph"]
