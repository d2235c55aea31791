"""Tests for pi.render.stacking and pi.render.viewport."""

from __future__ import annotations

from pi.render.box_model import Bounds
from pi.render.layout import Space
from pi.render.nodes import BoxNode, TextNode
from pi.render.stacking import StackingContextManager, creates_stacking_context
from pi.render.viewport import Viewport, ViewportManager


def relative(z):
    return BoxNode(style={"position": "relative", "z_index": z, "height": 1})


# ---------------------------------------------------------------------------
# Stacking contexts
# ---------------------------------------------------------------------------


class TestStackingContexts:
    def test_which_nodes_create_contexts(self):
        root = BoxNode()
        plain, raised, zero, fixed = BoxNode(), relative(2), relative(0), BoxNode(style={"position": "fixed"})
        flex = BoxNode(style={"display": "flex", "z_index": 1})
        for node in (plain, raised, zero, fixed, flex):
            root.append_child(node)
        assert creates_stacking_context(root)
        assert not creates_stacking_context(plain)
        assert creates_stacking_context(raised)
        assert not creates_stacking_context(zero)
        assert creates_stacking_context(fixed)
        assert creates_stacking_context(flex)

    def test_painting_order(self):
        a, b, c, d = BoxNode(), relative(2), relative(-1), BoxNode()
        root = BoxNode(children=[a, b, c, d])
        manager = StackingContextManager()
        manager.build(root)
        assert manager.get_global_rendering_order() == [root, c, a, d, b]

    def test_equal_z_keeps_tree_order(self):
        first, second = relative(1), relative(1)
        root = BoxNode(children=[first, second])
        manager = StackingContextManager()
        manager.build(root)
        assert manager.get_global_rendering_order() == [root, first, second]

    def test_positioned_zero_paints_after_flow_with_its_subtree(self):
        inner = BoxNode()
        positioned = BoxNode(style={"position": "relative"}, children=[inner])
        flow = BoxNode()
        root = BoxNode(children=[positioned, flow])
        manager = StackingContextManager()
        manager.build(root)
        assert manager.get_global_rendering_order() == [root, flow, positioned, inner]

    def test_context_lookup(self):
        inner = BoxNode()
        raised = BoxNode(style={"position": "relative", "z_index": 3}, children=[inner])
        root = BoxNode(children=[raised])
        manager = StackingContextManager()
        ctx_root = manager.build(root)
        assert manager.get_root_context() is ctx_root
        assert manager.get_context(raised).z_index == 3
        assert manager.get_context(inner) is None
        assert manager.context_of(inner) is manager.get_context(raised)
        assert manager.get_context(raised).parent is ctx_root

    def test_hidden_subtrees_are_skipped(self):
        hidden = BoxNode(style={"display": "none"}, children=[BoxNode()])
        root = BoxNode(children=[hidden])
        manager = StackingContextManager()
        manager.build(root)
        assert manager.get_global_rendering_order() == [root]

    def test_clear(self):
        manager = StackingContextManager()
        manager.build(BoxNode())
        manager.clear()
        assert manager.get_global_rendering_order() == []


# ---------------------------------------------------------------------------
# Viewports
# ---------------------------------------------------------------------------


class TestViewport:
    def test_clip_area_intersects_parent(self):
        screen = Viewport(Bounds(0, 0, 10, 5))
        child = Viewport(Bounds(5, 2, 10, 10), screen)
        assert child.clip_area == Bounds(5, 2, 5, 3)
        assert child.contains_point(9, 4)
        assert not child.contains_point(10, 4)

    def test_clip_and_intersects(self):
        vp = Viewport(Bounds(0, 0, 4, 4))
        assert vp.clip(Bounds(2, 2, 4, 4)) == Bounds(2, 2, 2, 2)
        assert vp.clip(Bounds(5, 5, 1, 1)) is None
        assert not vp.intersects(Bounds(4, 0, 1, 1))

    def test_scroll_accumulates(self):
        outer = Viewport(Bounds(0, 0, 10, 10))
        outer.set_scroll(0, 2)
        inner = Viewport(Bounds(0, 0, 5, 5), outer)
        inner.set_scroll(1, -4)
        assert inner.scroll_offset == (1, 2)


class TestViewportManager:
    def _tree(self):
        text = TextNode("a\nb\nc")
        box = BoxNode(style={"width": 10, "height": 4, "overflow": "hidden", "border": True}, children=[text])
        root = BoxNode(children=[box])
        root.compute_layout(Space(0, 0, 20, 10))
        return root, box, text

    def test_clipping_node_creates_viewport(self):
        root, box, text = self._tree()
        manager = ViewportManager()
        screen = manager.build(root, Bounds(0, 0, 20, 10))
        assert manager.get_root_viewport() is screen
        assert manager.viewport_for(root) is screen
        assert manager.viewport_for(box) is screen
        created = manager.get_viewport(box)
        assert created.clip_area == Bounds(1, 1, 8, 2)
        assert manager.viewport_for(text) is created
        assert manager.get_viewport(root) is None

    def test_scroll_survives_rebuild(self):
        root, box, _ = self._tree()
        manager = ViewportManager()
        manager.build(root, Bounds(0, 0, 20, 10))
        manager.set_scroll(box, 0, 1)
        manager.build(root, Bounds(0, 0, 20, 10))
        assert manager.get_viewport(box).scroll_offset == (0, 1)
