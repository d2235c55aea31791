"""Tests for pi.render.buffer — cells, z-testing, clipping and borders."""

from __future__ import annotations

import pytest

from pi.render.box_model import Border, Bounds, Edges
from pi.render.buffer import Cell, CellBuffer
from pi.render.errors import RenderingError


def full_border(style="single"):
    return Border(width=Edges.uniform(1), style=style)


class TestWriting:
    def test_write_text(self):
        buf = CellBuffer(6, 1)
        assert buf.write_text(1, 0, "abc") == 3
        assert buf.to_lines() == [" abc  "]
        assert buf.to_lines(trim=True) == [" abc"]

    def test_text_attributes(self):
        buf = CellBuffer(3, 1)
        buf.write_text(0, 0, "x", style={"color": "red", "font_weight": "bold", "underline": True})
        cell = buf.get_cell(0, 0)
        assert (cell.fg, cell.bold, cell.underline) == ("red", True, True)

    def test_text_keeps_background(self):
        buf = CellBuffer(4, 1)
        buf.fill(Bounds(0, 0, 4, 1), bg="blue")
        buf.write_text(0, 0, "hi", style={"color": "white"})
        assert buf.get_cell(0, 0).bg == "blue"

    def test_writes_outside_are_dropped(self):
        buf = CellBuffer(3, 1)
        buf.write_text(2, 0, "abc")
        buf.write_text(0, 5, "zzz")
        assert buf.to_lines() == ["  a"]
        assert buf.get_cell(9, 9) is None

    def test_negative_size_raises(self):
        with pytest.raises(RenderingError):
            CellBuffer(-1, 2)


class TestWideCharacters:
    def test_wide_grapheme_takes_two_cells(self):
        buf = CellBuffer(6, 1)
        assert buf.write_text(0, 0, "日本") == 4
        assert buf.get_cell(0, 0).char == "日"
        assert buf.get_cell(1, 0).is_continuation
        assert buf.to_lines() == ["日本  "]

    def test_wide_grapheme_at_edge_becomes_blank(self):
        buf = CellBuffer(3, 1)
        buf.write_text(2, 0, "日")
        assert buf.get_cell(2, 0).char == " "

    def test_overwriting_half_clears_the_other(self):
        buf = CellBuffer(4, 1)
        buf.write_text(0, 0, "日")
        buf.write_text(1, 0, "x")
        assert buf.to_lines() == [" x  "]


class TestZOrder:
    def test_lower_z_does_not_overwrite(self):
        buf = CellBuffer(2, 1)
        assert buf.set_cell(0, 0, Cell("a", z_index=5))
        assert not buf.set_cell(0, 0, Cell("b", z_index=1))
        assert buf.get_cell(0, 0).char == "a"

    def test_equal_or_higher_z_overwrites(self):
        buf = CellBuffer(2, 1)
        buf.set_cell(0, 0, Cell("a", z_index=1))
        assert buf.set_cell(0, 0, Cell("b", z_index=1))
        assert buf.set_cell(0, 0, Cell("c", z_index=2))
        assert buf.get_cell(0, 0).char == "c"

    def test_any_paint_beats_empty(self):
        buf = CellBuffer(1, 1)
        assert buf.set_cell(0, 0, Cell("x", z_index=-100))


class TestClipping:
    def test_clip_limits_writes(self):
        buf = CellBuffer(6, 2)
        buf.push_clip(Bounds(1, 0, 2, 1))
        buf.write_text(0, 0, "abcdef")
        buf.write_text(0, 1, "abcdef")
        buf.pop_clip()
        assert buf.to_lines(trim=True) == [" bc", ""]

    def test_nested_clips_intersect(self):
        buf = CellBuffer(6, 1)
        buf.push_clip(Bounds(0, 0, 4, 1))
        buf.push_clip(Bounds(2, 0, 4, 1))
        assert buf.clip == Bounds(2, 0, 2, 1)
        buf.pop_clip()
        assert buf.clip == Bounds(0, 0, 4, 1)
        buf.pop_clip()
        assert buf.clip is None

    def test_disjoint_clip_blocks_everything(self):
        buf = CellBuffer(6, 1)
        buf.push_clip(Bounds(0, 0, 2, 1))
        buf.push_clip(Bounds(4, 0, 2, 1))
        buf.write_text(0, 0, "abcdef")
        assert buf.to_lines(trim=True) == [""]

    def test_unbalanced_pop_raises(self):
        with pytest.raises(RenderingError):
            CellBuffer(1, 1).pop_clip()


class TestBorders:
    def test_single(self):
        buf = CellBuffer(4, 3)
        buf.draw_border(Bounds(0, 0, 4, 3), full_border())
        assert buf.to_lines() == ["┌──┐", "│  │", "└──┘"]

    def test_ascii_and_round(self):
        buf = CellBuffer(3, 2)
        buf.draw_border(Bounds(0, 0, 3, 2), full_border("ascii"))
        assert buf.to_lines() == ["+-+", "+-+"]
        buf = CellBuffer(3, 2)
        buf.draw_border(Bounds(0, 0, 3, 2), full_border("round"))
        assert buf.to_lines() == ["╭─╮", "╰─╯"]

    def test_partial_sides(self):
        buf = CellBuffer(3, 3)
        buf.draw_border(Bounds(0, 0, 3, 3), Border(width=Edges(1, 0, 1, 0)))
        assert buf.to_lines() == ["───", "   ", "───"]

    def test_border_colour_and_owner(self):
        buf = CellBuffer(3, 3)
        buf.draw_border(Bounds(0, 0, 3, 3), full_border(), fg="cyan", z_index=2, node_id="node_7")
        cell = buf.get_cell(0, 0)
        assert (cell.fg, cell.z_index, cell.node_id) == ("cyan", 2, "node_7")

    def test_fill(self):
        buf = CellBuffer(3, 2)
        buf.fill(Bounds(1, 0, 5, 5), char="#", bg="red")
        assert buf.to_lines() == [" ##", " ##"]
        assert buf.get_cell(2, 1).bg == "red"
