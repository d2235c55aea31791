"""Tests for pi.render.text — cell widths, wrapping and truncation."""

from __future__ import annotations

from hypothesis import given, strategies as st

from pi.render.text import take_columns, truncate_to_width, visible_width, wrap_text


class TestVisibleWidth:
    def test_ascii(self):
        assert visible_width("hello") == 5
        assert visible_width("") == 0

    def test_wide_characters(self):
        assert visible_width("日本") == 4

    def test_combining_marks_are_zero_width(self):
        assert visible_width("e\u0301") == 1

    def test_escape_sequences_are_ignored(self):
        assert visible_width("\x1b[31mred\x1b[0m") == 3

    def test_tabs_expand(self):
        assert visible_width("\t") == 3


class TestWrap:
    def test_word_wrap(self):
        assert wrap_text("hello world", 5) == ["hello", "world"]

    def test_long_word_is_split(self):
        assert wrap_text("abcdefgh", 3) == ["abc", "def", "gh"]

    def test_hard_breaks(self):
        assert wrap_text("a\n\nb", 10) == ["a", "", "b"]

    def test_empty_and_zero_width(self):
        assert wrap_text("", 5) == [""]
        assert wrap_text("abc", 0) == []

    def test_wide_characters_do_not_split(self):
        assert wrap_text("日本語", 4) == ["日本", "語"]

    @given(st.text(alphabet="ab 日", max_size=40), st.integers(2, 12))
    def test_lines_fit(self, text, width):
        for line in wrap_text(text, width):
            assert visible_width(line) <= width


class TestTruncate:
    def test_short_text_unchanged(self):
        assert truncate_to_width("abc", 5) == "abc"

    def test_ellipsis(self):
        assert truncate_to_width("abcdefgh", 6) == "abc..."

    def test_take_columns_respects_wide_characters(self):
        assert take_columns("日本", 3) == "日"
        assert take_columns("abc", 0) == ""
