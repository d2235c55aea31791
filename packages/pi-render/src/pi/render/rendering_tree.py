"""Registry of the last rendering snapshot of every live node.

Entries are keyed weakly by node, so a node that is dropped from the tree
and garbage collected disappears from the registry on its own.

``register`` links a snapshot under its parent's snapshot only when the
parent is already registered.  Callers register parents before children;
with ``strict=True`` the registry enforces that order.
"""

from __future__ import annotations

import logging
import weakref
from dataclasses import dataclass, field
from typing import Any, Iterator

from pi.render.box_model import Bounds
from pi.render.errors import RenderingError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BufferRegion:
    """Half-open cell rectangle plus the absolute rows it covers."""

    start_x: int
    start_y: int
    end_x: int
    end_y: int
    lines: tuple[int, ...] = ()

    @classmethod
    def from_bounds(cls, bounds: Bounds) -> BufferRegion:
        return cls(
            bounds.x,
            bounds.y,
            bounds.right,
            bounds.bottom,
            tuple(range(bounds.y, bounds.bottom)),
        )

    @property
    def width(self) -> int:
        return self.end_x - self.start_x

    @property
    def height(self) -> int:
        return self.end_y - self.start_y

    def intersects(self, other: BufferRegion) -> bool:
        return not (
            self.end_x <= other.start_x
            or other.end_x <= self.start_x
            or self.end_y <= other.start_y
            or other.end_y <= self.start_y
        )


@dataclass(eq=False)
class RenderingInfo:
    """One node's snapshot from one render pass."""

    node_ref: weakref.ReferenceType
    region: BufferRegion
    children: list[RenderingInfo] = field(default_factory=list)
    z_index: int = 0
    stacking_context: str | None = None
    viewport: Any = None
    clipped: bool = False
    visible: bool = True

    @classmethod
    def for_node(cls, node: Any, region: BufferRegion, **kwargs: Any) -> RenderingInfo:
        return cls(weakref.ref(node), region, **kwargs)

    @property
    def node(self) -> Any:
        return self.node_ref()

    def __repr__(self) -> str:
        node = self.node
        node_id = node.id if node is not None else "<dead>"
        return f"<RenderingInfo {node_id} z={self.z_index} children={len(self.children)}>"


class RenderingTree:
    def __init__(self, *, strict: bool = False) -> None:
        self.strict = strict
        self._infos: weakref.WeakKeyDictionary[Any, RenderingInfo] = weakref.WeakKeyDictionary()
        self._root: RenderingInfo | None = None

    def __len__(self) -> int:
        return len(self._infos)

    def __contains__(self, node: object) -> bool:
        return node in self._infos

    def register(self, info: RenderingInfo) -> None:
        """Store *info* for its node and link it under the parent's info.

        Re-registering a node replaces its entry.  Links formed earlier are
        left as they are.
        """
        node = info.node
        if node is None:
            raise RenderingError("Cannot register a snapshot whose node is gone")

        parent = node.parent
        parent_info = self._infos.get(parent) if parent is not None else None
        if parent is not None and parent_info is None and self.strict:
            raise RenderingError(
                f"Parent {parent.id} must be registered before {node.id}",
                node_id=node.id,
                context={"parent": parent.id},
            )

        self._infos[node] = info
        if parent is None:
            self._root = info
        elif parent_info is not None and not any(c is info for c in parent_info.children):
            parent_info.children.append(info)
        logger.debug("Registered %s (parent linked: %s)", node.id, parent_info is not None)

    def discard(self, node: Any) -> None:
        """Drop *node*'s entry, for nodes that left the tree."""
        info = self._infos.pop(node, None)
        if info is not None and info is self._root:
            self._root = None

    def get(self, node: Any) -> RenderingInfo | None:
        return self._infos.get(node)

    def get_root(self) -> RenderingInfo | None:
        return self._root

    def items(self) -> Iterator[tuple[Any, RenderingInfo]]:
        return iter(list(self._infos.items()))

    def get_components_in_region(self, region: BufferRegion) -> list[Any]:
        return [node for node, info in self.items() if info.region.intersects(region)]

    def get_visible_components(self) -> list[Any]:
        return [node for node, info in self.items() if info.visible and not info.clipped]

    def get_components_by_z_index(self) -> list[Any]:
        """All registered nodes, ascending z-index, ties in registration order."""
        ordered = sorted(self.items(), key=lambda item: item[1].z_index)
        return [node for node, _ in ordered]

    def clear(self) -> None:
        self._infos.clear()
        self._root = None
