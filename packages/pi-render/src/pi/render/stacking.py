"""Stacking contexts and CSS-style painting order.

Within one context nodes paint in this order:

1. the context's own node
2. child contexts with a negative z-index, lowest first
3. non-positioned descendants, in tree order
4. positioned descendants and child contexts with z-index 0, in tree order
5. child contexts with a positive z-index, lowest first

A positioned node with z-index 0 does not start a real context, but it
paints together with its non-positioned descendants as one group.
"""

from __future__ import annotations

import logging
from typing import Any

logger = logging.getLogger(__name__)

POSITIONED = ("relative", "absolute", "fixed")


def creates_stacking_context(node: Any) -> bool:
    if node.parent is None:
        return True
    position = node.position
    z_index = node.z_index
    if position == "fixed":
        return True
    if position in POSITIONED and z_index != 0:
        return True
    return node.layout_style().get("display") == "flex" and z_index != 0


def _is_hidden(node: Any) -> bool:
    return node.layout_style().get("display") == "none"


class StackingContext:
    def __init__(self, node: Any, z_index: int = 0, *, group: bool = False) -> None:
        self.node = node
        self.z_index = z_index
        # A paint group for a positioned z=0 node, not a real context.
        self.group = group
        self.parent: StackingContext | None = None
        self.children: list[StackingContext] = []
        self.members: list[Any] = []

    def __repr__(self) -> str:
        kind = "group" if self.group else "context"
        return f"<StackingContext {kind} {self.node.id} z={self.z_index}>"

    @property
    def id(self) -> str:
        return f"ctx_{self.node.id}"

    def add_child_context(self, context: StackingContext) -> None:
        context.parent = self
        self.children.append(context)

    def get_rendering_order(self) -> list[Any]:
        order: list[Any] = [self.node]
        # sorted() is stable, so equal z-index keeps tree order.
        for ctx in sorted((c for c in self.children if c.z_index < 0), key=lambda c: c.z_index):
            order.extend(ctx.get_rendering_order())
        order.extend(self.members)
        for ctx in self.children:
            if ctx.z_index == 0:
                order.extend(ctx.get_rendering_order())
        for ctx in sorted((c for c in self.children if c.z_index > 0), key=lambda c: c.z_index):
            order.extend(ctx.get_rendering_order())
        return order


class StackingContextManager:
    """Builds the context tree for a node tree and answers lookups."""

    def __init__(self) -> None:
        self._contexts: dict[str, StackingContext] = {}
        self._context_of: dict[str, StackingContext] = {}
        self._root: StackingContext | None = None

    def build(self, root: Any) -> StackingContext:
        self.clear()
        self._root = StackingContext(root, root.z_index)
        self._contexts[root.id] = self._root
        self._context_of[root.id] = self._root
        self._collect(root, self._root, self._root)
        logger.debug("Built %d stacking contexts", len(self._contexts))
        return self._root

    def _collect(self, node: Any, current: StackingContext, real: StackingContext) -> None:
        for child in node.children:
            if _is_hidden(child):
                continue
            if creates_stacking_context(child):
                ctx = StackingContext(child, child.z_index)
                current.add_child_context(ctx)
                self._contexts[child.id] = ctx
                self._context_of[child.id] = ctx
                self._collect(child, ctx, ctx)
            elif child.position in POSITIONED:
                group = StackingContext(child, 0, group=True)
                current.add_child_context(group)
                self._context_of[child.id] = real
                self._collect(child, group, real)
            else:
                current.members.append(child)
                self._context_of[child.id] = real
                self._collect(child, current, real)

    def get_context(self, node: Any) -> StackingContext | None:
        """The context *node* itself creates, if any."""
        return self._contexts.get(node.id)

    def context_of(self, node: Any) -> StackingContext | None:
        """The nearest real context *node* paints in."""
        return self._context_of.get(node.id)

    def get_root_context(self) -> StackingContext | None:
        return self._root

    def get_global_rendering_order(self) -> list[Any]:
        if self._root is None:
            return []
        return self._root.get_rendering_order()

    def clear(self) -> None:
        self._contexts.clear()
        self._context_of.clear()
        self._root = None
