"""Tests for pi.render.rendering_tree — snapshot registry and regions."""

from __future__ import annotations

import gc

import pytest
from hypothesis import given, strategies as st

from pi.render.box_model import Bounds
from pi.render.errors import RenderingError
from pi.render.nodes import BoxNode
from pi.render.rendering_tree import BufferRegion, RenderingInfo, RenderingTree


def info_for(node, region=BufferRegion(0, 0, 1, 1), **kwargs):
    return RenderingInfo.for_node(node, region, **kwargs)


regions = st.builds(
    lambda x, y, w, h: BufferRegion(x, y, x + w, y + h),
    st.integers(0, 30),
    st.integers(0, 30),
    st.integers(0, 10),
    st.integers(0, 10),
)


# ---------------------------------------------------------------------------
# Regions
# ---------------------------------------------------------------------------


class TestBufferRegion:
    def test_disjoint_regions(self):
        assert not BufferRegion(0, 0, 5, 1).intersects(BufferRegion(6, 0, 10, 1))

    def test_identical_regions_intersect(self):
        region = BufferRegion(2, 2, 6, 4)
        assert region.intersects(BufferRegion(2, 2, 6, 4))

    def test_touching_edges_do_not_intersect(self):
        assert not BufferRegion(0, 0, 5, 1).intersects(BufferRegion(5, 0, 8, 1))
        assert not BufferRegion(0, 0, 5, 1).intersects(BufferRegion(0, 1, 5, 2))

    def test_from_bounds_lists_rows(self):
        region = BufferRegion.from_bounds(Bounds(1, 2, 3, 2))
        assert (region.start_x, region.start_y, region.end_x, region.end_y) == (1, 2, 4, 4)
        assert region.lines == (2, 3)
        assert (region.width, region.height) == (3, 2)

    @given(regions, regions)
    def test_intersection_is_symmetric(self, a, b):
        assert a.intersects(b) == b.intersects(a)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class TestRegistry:
    def test_parent_then_child(self):
        child = BoxNode()
        parent = BoxNode(children=[child])
        tree = RenderingTree()
        parent_info, child_info = info_for(parent), info_for(child)

        tree.register(parent_info)
        tree.register(child_info)

        assert tree.get_root() is parent_info
        assert parent_info.children == [child_info]
        assert tree.get(child) is child_info

    def test_reregistering_does_not_duplicate(self):
        child = BoxNode()
        parent = BoxNode(children=[child])
        tree = RenderingTree()
        parent_info, child_info = info_for(parent), info_for(child)
        tree.register(parent_info)
        tree.register(child_info)
        tree.register(child_info)
        assert len(parent_info.children) == 1

    def test_child_before_parent_is_left_unlinked(self):
        child = BoxNode()
        parent = BoxNode(children=[child])
        tree = RenderingTree()
        child_info = info_for(child)
        tree.register(child_info)
        parent_info = info_for(parent)
        tree.register(parent_info)
        assert tree.get(child) is child_info
        assert parent_info.children == []

    def test_strict_mode_rejects_child_before_parent(self):
        child = BoxNode()
        BoxNode(children=[child])
        tree = RenderingTree(strict=True)
        with pytest.raises(RenderingError):
            tree.register(info_for(child))

    def test_dead_node_cannot_be_registered(self):
        node = BoxNode()
        info = info_for(node)
        del node
        gc.collect()
        with pytest.raises(RenderingError):
            RenderingTree().register(info)

    def test_entries_follow_node_lifetime(self):
        tree = RenderingTree()
        node = BoxNode()
        tree.register(info_for(node))
        assert len(tree) == 1
        del node
        gc.collect()
        assert len(tree) == 0

    def test_discard_and_clear(self):
        a, b = BoxNode(), BoxNode()
        tree = RenderingTree()
        tree.register(info_for(a))
        tree.register(info_for(b))
        tree.discard(b)
        assert b not in tree
        assert tree.get_root() is None
        tree.clear()
        assert len(tree) == 0


class TestQueries:
    def test_components_in_region(self):
        left, right = BoxNode(), BoxNode()
        tree = RenderingTree()
        tree.register(info_for(left, BufferRegion(0, 0, 5, 1)))
        tree.register(info_for(right, BufferRegion(6, 0, 10, 1)))
        assert tree.get_components_in_region(BufferRegion(0, 0, 3, 1)) == [left]
        assert set(tree.get_components_in_region(BufferRegion(0, 0, 10, 1))) == {left, right}

    def test_visible_components(self):
        shown, hidden, clipped = BoxNode(), BoxNode(), BoxNode()
        tree = RenderingTree()
        tree.register(info_for(shown))
        tree.register(info_for(hidden, visible=False))
        tree.register(info_for(clipped, clipped=True))
        assert tree.get_visible_components() == [shown]

    @given(st.lists(st.integers(-3, 3), min_size=1, max_size=12))
    def test_z_order_is_stable(self, z_values):
        nodes = [BoxNode() for _ in z_values]
        tree = RenderingTree()
        for node, z in zip(nodes, z_values):
            tree.register(info_for(node, z_index=z))

        ordered = tree.get_components_by_z_index()
        expected = [n for _, n in sorted(zip(z_values, nodes), key=lambda pair: pair[0])]
        assert ordered == expected
