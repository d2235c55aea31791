"""Tests for pi.render.box_model — geometry and size resolution."""

from __future__ import annotations

import pytest
from hypothesis import given, strategies as st

from pi.render.box_model import (
    NO_BORDER,
    Border,
    Bounds,
    ContentArea,
    Edges,
    ViewportSize,
    calculate_content_area,
    calculate_margin_bounds,
    calculate_total_dimensions,
    normalize_border,
    normalize_spacing,
    resolve_size,
)
from pi.render.errors import LayoutCalculationError
from pi.render.layout import Space
from pi.render.nodes import BoxNode


# ---------------------------------------------------------------------------
# Content area
# ---------------------------------------------------------------------------


class TestContentArea:
    def test_padding_and_border_are_subtracted(self):
        area = calculate_content_area(
            Bounds(0, 0, 10, 5), Border(width=Edges.uniform(1)), Edges.uniform(1)
        )
        assert area == ContentArea(1, 1, 6, 1)

    def test_floors_at_zero(self):
        area = calculate_content_area(Bounds(3, 3, 2, 2), Border(width=Edges.uniform(1)), Edges.uniform(2))
        assert area.width == 0
        assert area.height == 0
        assert (area.x, area.y) == (6, 6)

    def test_node_content_area_after_layout(self):
        node = BoxNode(style={"width": 10, "height": 5, "padding": 1, "border": True})
        node.compute_layout(Space(0, 0, 80, 24))
        area = node.calculate_content_area()
        assert (area.width, area.height) == (6, 1)

    def test_node_content_area_before_layout_raises(self):
        with pytest.raises(LayoutCalculationError):
            BoxNode().calculate_content_area()

    @given(
        st.integers(0, 200),
        st.integers(0, 200),
        st.integers(0, 3),
        st.integers(0, 5),
    )
    def test_content_area_arithmetic(self, width, height, border, padding):
        area = calculate_content_area(
            Bounds(0, 0, width, height), Border(width=Edges.uniform(border)), Edges.uniform(padding)
        )
        assert area.width == max(0, width - 2 * border - 2 * padding)
        assert area.height == max(0, height - 2 * border - 2 * padding)
        assert area.x == border + padding


class TestMarginAndTotals:
    def test_margin_bounds(self):
        assert calculate_margin_bounds(Bounds(5, 5, 4, 2), Edges(1, 2, 3, 4)) == Bounds(1, 4, 10, 6)

    def test_total_dimensions(self):
        dims = calculate_total_dimensions(
            10, 2, Border(width=Edges.uniform(1)), Edges.uniform(1), Edges(0, 1, 0, 1)
        )
        assert (dims.width, dims.height) == (16, 6)
        assert (dims.content_width, dims.content_height) == (10, 2)


# ---------------------------------------------------------------------------
# Bounds
# ---------------------------------------------------------------------------


class TestBounds:
    def test_edges_are_half_open(self):
        b = Bounds(0, 0, 5, 1)
        assert b.contains_point(4, 0)
        assert not b.contains_point(5, 0)
        assert not b.intersects(Bounds(5, 0, 5, 1))

    def test_intersection(self):
        assert Bounds(0, 0, 10, 10).intersection(Bounds(5, 5, 10, 10)) == Bounds(5, 5, 5, 5)
        assert Bounds(0, 0, 2, 2).intersection(Bounds(4, 4, 1, 1)) is None


# ---------------------------------------------------------------------------
# Size values
# ---------------------------------------------------------------------------


class TestResolveSize:
    def test_plain_integer(self):
        assert resolve_size(12, "width", 100) == 12

    def test_percent_is_floored(self):
        assert resolve_size("50%", "width", 81) == 40

    def test_character_and_pixel_units(self):
        assert resolve_size("10ch", "width", 0) == 10
        assert resolve_size("7px", "height", 0) == 7

    def test_viewport_units(self):
        viewport = ViewportSize(80, 24)
        assert resolve_size("50vw", "width", 0, viewport) == 40
        assert resolve_size("50vh", "height", 0, viewport) == 12

    def test_viewport_units_without_viewport_are_auto(self):
        assert resolve_size("50vw", "width", 0) is None

    def test_auto(self):
        assert resolve_size(None, "width", 10) is None
        assert resolve_size("auto", "width", 10) is None

    @pytest.mark.parametrize("bad", ["wide", "10em", True])
    def test_invalid_values_raise(self, bad):
        with pytest.raises(LayoutCalculationError):
            resolve_size(bad, "width", 10)


class TestNormalizeSpacing:
    def test_forms(self):
        assert normalize_spacing(None) == Edges()
        assert normalize_spacing(2) == Edges(2, 2, 2, 2)
        assert normalize_spacing((1, 3)) == Edges(1, 3, 1, 3)
        assert normalize_spacing([1, 2, 3, 4]) == Edges(1, 2, 3, 4)
        assert normalize_spacing({"left": 2}) == Edges(0, 0, 0, 2)

    def test_invalid(self):
        with pytest.raises(LayoutCalculationError):
            normalize_spacing((1, 2, 3))
        with pytest.raises(LayoutCalculationError):
            normalize_spacing(True)
        with pytest.raises(LayoutCalculationError):
            normalize_spacing({"top": "1"})

    def test_sides_are_floored(self):
        assert normalize_spacing({"top": 1.5, "left": 2.9}) == Edges(1, 0, 0, 2)
        assert normalize_spacing((0.5, 1.7)) == Edges(0, 1, 0, 1)

    def test_unsigned_rejects_negative_sides(self):
        assert normalize_spacing(-1) == Edges.uniform(-1)
        with pytest.raises(LayoutCalculationError):
            normalize_spacing(-1, signed=False)
        with pytest.raises(LayoutCalculationError):
            normalize_spacing({"bottom": -2}, name="padding", signed=False)


class TestNormalizeBorder:
    def test_true_draws_all_sides(self):
        border = normalize_border({"border": True})
        assert border.width == Edges.uniform(1)
        assert border.style == "single"

    def test_style_name(self):
        border = normalize_border({"border": "round"})
        assert border.visible
        assert border.style == "round"

    def test_side_mapping(self):
        border = normalize_border({"border": {"top": True, "bottom": True}})
        assert border.width == Edges(1, 0, 1, 0)

    def test_colour_only_keeps_existing_width(self):
        current = normalize_border({"border": True})
        border = normalize_border({"border_color": "red"}, current)
        assert border.width == Edges.uniform(1)
        assert border.color == "red"

    def test_false_removes_border(self):
        assert not normalize_border({"border": False}, Border(width=Edges.uniform(1))).visible

    def test_unknown_style_raises(self):
        with pytest.raises(LayoutCalculationError):
            normalize_border({"border": "wavy"})

    def test_no_border_is_invisible(self):
        assert not NO_BORDER.visible

    def test_negative_border_width_raises(self):
        with pytest.raises(LayoutCalculationError):
            normalize_border({"border": True, "border_width": -1})
