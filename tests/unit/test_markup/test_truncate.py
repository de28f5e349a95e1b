"""Tests for tag-safe HTML truncation."""

import re
from typing import List

import pytest

from taskgram.markup.bbcode import BBCodeTranspiler
from taskgram.markup.lookups import FileRecord
from taskgram.markup.truncate import truncate_html, visible_length

ALLOWED_TAG_RE = re.compile(r"<(/?)(b|i|u|s|a|code|blockquote)\b[^>]*>")


def _unclosed_tags(html: str) -> List[str]:
    stack: List[str] = []
    for m in ALLOWED_TAG_RE.finditer(html):
        closing, name = m.group(1), m.group(2)
        if closing:
            assert stack and stack[-1] == name, f"unexpected </{name}> in {html!r}"
            stack.pop()
        else:
            stack.append(name)
    return stack


class TestVisibleLength:
    """Visible token counting."""

    def test_tags_do_not_count(self):
        assert visible_length("<b>x</b>") == 1

    def test_entities_count_once(self):
        assert visible_length("a &amp; b") == 5
        assert visible_length("&#8212;&nbsp;") == 2

    def test_bare_ampersand_is_a_character(self):
        assert visible_length("a & b") == 5


class TestTruncateHtml:
    """truncate_html behaviour."""

    def test_short_input_unchanged(self):
        html = "<b>Hello</b>, world!"
        assert truncate_html(html, 50) == html

    def test_exact_fit_unchanged(self):
        assert truncate_html("<b>abc</b>", 3) == "<b>abc</b>"

    def test_closes_open_tag(self):
        assert truncate_html("<b>Hello, world!</b>", 5) == "<b>Hello…</b>"

    def test_link_tag_kept_whole(self):
        html = '<a href="https://example.com">Long link</a>'
        assert truncate_html(html, 4) == '<a href="https://example.com">Long…</a>'

    def test_entity_is_never_split(self):
        assert truncate_html("Hi&nbsp;there", 3) == "Hi&nbsp;…"
        assert truncate_html("Hi&nbsp;there", 2) == "Hi…"

    def test_trailing_whitespace_removed_before_ellipsis(self):
        assert truncate_html("Hello world", 6) == "Hello…"

    def test_nested_tags_closed_innermost_first(self):
        assert truncate_html("<b><i>abcdef</i></b>", 3) == "<b><i>abc…</i></b>"

    def test_closed_elements_not_closed_again(self):
        assert truncate_html("<b>ab</b><i>cdef</i>", 3) == "<b>ab</b><i>c…</i>"

    @pytest.mark.parametrize("html", ["a<br>bcdef", "a<br/>bcdef", "a<hr />bcdef"])
    def test_self_closing_tags_not_closed(self, html):
        result = truncate_html(html, 2)
        assert result.endswith("b…")
        assert "</br>" not in result and "</hr>" not in result

    def test_mismatched_closing_tag_tolerated(self):
        assert truncate_html("<b>ab</i>cdef</b>", 3) == "<b>ab</i>c…</b>"

    def test_tag_names_lowercased(self):
        assert truncate_html("<B>abcdef</B>", 2) == "<B>ab…</b>"

    @pytest.mark.parametrize("max_length", [0, -5])
    def test_non_positive_budget(self, max_length):
        assert truncate_html("<b>text</b>", max_length) == ""

    def test_empty_input(self):
        assert truncate_html("", 10) == ""

    def test_default_budget(self):
        result = truncate_html("x" * 400)
        assert result == "x" * 300 + "…"

    def test_length_bound(self):
        html = "<b>bold</b> plain &amp; <i>italic &lt;3</i> tail text"
        for n in range(1, visible_length(html) + 2):
            result = truncate_html(html, n)
            budget = n + 1 if result != html else n
            assert visible_length(result) <= budget

    def test_tags_balanced_for_every_budget(self):
        html = '<b>one <i>two <a href="https://x.com">three</a></i></b> four'
        for n in range(1, visible_length(html) + 1):
            assert _unclosed_tags(truncate_html(html, n)) == []


class TestTranspileThenTruncate:
    """The pipeline as the notifier uses it."""

    async def test_balanced_output(self):
        async def file_lookup(file_id: int) -> FileRecord:
            return FileRecord(file_id, "report & plan.pdf", "https://x.com/f?id=1&v=2")

        transpiler = BBCodeTranspiler(file_lookup=file_lookup, diagnostics=lambda d: None)
        html = await transpiler.transpile(
            "[B]Status:[/B] [I]see [DISK FILE ID=8] and "
            "[URL=https://x.com]the [U]board[/U][/URL][/I]\n"
            "[QUOTE]a < b & c[/QUOTE]"
        )
        for n in range(1, visible_length(html) + 1):
            result = truncate_html(html, n)
            assert _unclosed_tags(result) == []
            assert visible_length(result) <= n + 1
