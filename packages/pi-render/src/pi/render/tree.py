"""Component instances: a shadow tree mirroring the mounted nodes.

Each node has at most one ``ComponentInstance``.  An instance's ``children``
list is the only record of structure; ``sibling`` is looked up from it.

Update scheduling: ``mark_for_update(priority)`` flags an instance, and
``ComponentTree.pending_updates`` orders flagged instances by priority
(lower first) and then by tree pre-order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator

from pi.render.errors import ReconcilerError

logger = logging.getLogger(__name__)


class ComponentInstance:
    def __init__(self, node: Any) -> None:
        self.node = node
        self.parent: ComponentInstance | None = None
        self.children: list[ComponentInstance] = []
        self.mounted = False
        self.updated = False
        self.rendered = False
        self.rendering_info: Any = None
        self.needs_update = False
        self.update_priority = 0

    def __repr__(self) -> str:
        state = "mounted" if self.mounted else "unmounted"
        return f"<ComponentInstance {self.node.id} {state}>"

    @property
    def sibling(self) -> ComponentInstance | None:
        """The next instance under the same parent."""
        if self.parent is None:
            return None
        siblings = self.parent.children
        for i, inst in enumerate(siblings):
            if inst is self:
                return siblings[i + 1] if i + 1 < len(siblings) else None
        return None

    def mount(self, parent: ComponentInstance | None, index: int | None = None) -> None:
        if self.mounted:
            raise ReconcilerError(f"{self.node.id} is already mounted", node_id=self.node.id)
        if parent is not None:
            if parent is self or any(a is self for a in parent.get_ancestors()):
                raise ReconcilerError(
                    f"Mounting {self.node.id} under {parent.node.id} would create a cycle",
                    node_id=self.node.id,
                )
            if index is None:
                parent.children.append(self)
            else:
                parent.children.insert(index, self)
        self.parent = parent
        self.mounted = True

    def unmount(self) -> None:
        if not self.mounted:
            raise ReconcilerError(f"{self.node.id} is not mounted", node_id=self.node.id)
        parent = self.parent
        if parent is not None:
            for i, inst in enumerate(parent.children):
                if inst is self:
                    del parent.children[i]
                    break
            else:
                raise ReconcilerError(
                    f"{self.node.id} is missing from the children of {parent.node.id}",
                    node_id=self.node.id,
                    context={"parent": parent.node.id},
                )
        self.parent = None
        self.mounted = False

    def mark_for_update(self, priority: int = 0) -> None:
        """Flag for update.  An already flagged instance keeps the lower priority."""
        if self.needs_update:
            self.update_priority = min(self.update_priority, priority)
        else:
            self.update_priority = priority
        self.needs_update = True
        self.updated = False

    def walk(self) -> Iterator[ComponentInstance]:
        stack: list[ComponentInstance] = [self]
        while stack:
            inst = stack.pop()
            yield inst
            stack.extend(reversed(inst.children))

    def get_descendants(self) -> list[ComponentInstance]:
        return list(self.walk())[1:]

    def get_ancestors(self) -> list[ComponentInstance]:
        out: list[ComponentInstance] = []
        inst = self.parent
        while inst is not None:
            out.append(inst)
            inst = inst.parent
        return out


@dataclass
class SyncResult:
    mounted: list[ComponentInstance] = field(default_factory=list)
    unmounted: list[ComponentInstance] = field(default_factory=list)
    moved: list[ComponentInstance] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.mounted or self.unmounted or self.moved)


class ComponentTree:
    """Owns the instance for every mounted node."""

    def __init__(self) -> None:
        self._instances: dict[str, ComponentInstance] = {}
        self._root: ComponentInstance | None = None

    def __len__(self) -> int:
        return len(self._instances)

    def create_instance(self, node: Any) -> ComponentInstance:
        instance = self._instances.get(node.id)
        if instance is None:
            instance = ComponentInstance(node)
            self._instances[node.id] = instance
        return instance

    def get_instance(self, node: Any) -> ComponentInstance | None:
        return self._instances.get(node.id)

    def get_root(self) -> ComponentInstance | None:
        return self._root

    def mount(self, node: Any, parent: Any | None = None, index: int | None = None) -> ComponentInstance:
        parent_instance = None
        if parent is not None:
            parent_instance = self._instances.get(parent.id)
            if parent_instance is None or not parent_instance.mounted:
                raise ReconcilerError(
                    f"Parent {parent.id} of {node.id} is not mounted", node_id=node.id
                )
        instance = self.create_instance(node)
        instance.mount(parent_instance, index)
        instance.mark_for_update()
        if parent is None and self._root is None:
            self._root = instance
        return instance

    def unmount(self, node: Any) -> list[ComponentInstance]:
        """Unmount *node*'s instance and all of its descendants.

        Returns the unmounted instances, deepest first.
        """
        instance = self._instances.get(node.id)
        if instance is None:
            raise ReconcilerError(f"{node.id} has no instance", node_id=node.id)
        removed: list[ComponentInstance] = []
        for inst in reversed(list(instance.walk())):
            if inst is not instance:
                # Detach from the parent list first so descendants unmount in place.
                inst.unmount()
            removed.append(inst)
        instance.unmount()
        for inst in removed:
            self._instances.pop(inst.node.id, None)
        if self._root is instance:
            self._root = None
        return removed

    # -- reconciliation ------------------------------------------------------

    def sync(self, root_node: Any) -> SyncResult:
        """Make the instance tree match the node tree under *root_node*."""
        result = SyncResult()
        if self._root is not None and self._root.node is not root_node:
            result.unmounted.extend(self.unmount(self._root.node))
        root = self._instances.get(root_node.id)
        if root is None or not root.mounted:
            result.mounted.append(self.mount(root_node, None))
        self._root = self._instances[root_node.id]
        self._sync_children(root_node, result)
        if result.changed:
            logger.debug(
                "Sync: %d mounted, %d unmounted, %d moved",
                len(result.mounted),
                len(result.unmounted),
                len(result.moved),
            )
        return result

    def _sync_children(self, node: Any, result: SyncResult) -> None:
        instance = self._instances[node.id]
        wanted = node.children
        wanted_ids = {child.id for child in wanted}

        for child_instance in list(instance.children):
            child = child_instance.node
            if child.id not in wanted_ids or child.parent is not node:
                result.unmounted.extend(self.unmount(child))

        for child in wanted:
            child_instance = self._instances.get(child.id)
            if child_instance is not None and child_instance.mounted and child_instance.parent is not instance:
                result.unmounted.extend(self.unmount(child))
                child_instance = None
            if child_instance is None or not child_instance.mounted:
                result.mounted.append(self.mount(child, node))

        ordered = [self._instances[child.id] for child in wanted]
        if any(a is not b for a, b in zip(instance.children, ordered)):
            moved = [b for a, b in zip(instance.children, ordered) if a is not b]
            instance.children[:] = ordered
            for inst in moved:
                inst.mark_for_update()
            result.moved.extend(moved)

        for child in wanted:
            self._sync_children(child, result)

    # -- scheduling ----------------------------------------------------------

    def invalidate(
        self,
        node: Any,
        priority: int = 0,
        include_descendants: bool = True,
        include_ancestors: bool = False,
    ) -> list[ComponentInstance]:
        instance = self._instances.get(node.id)
        if instance is None:
            return []
        marked = [instance]
        if include_descendants:
            marked.extend(instance.get_descendants())
        if include_ancestors:
            marked.extend(instance.get_ancestors())
        for inst in marked:
            inst.mark_for_update(priority)
        return marked

    def pending_updates(self) -> list[ComponentInstance]:
        """Flagged instances, lower priority first, then tree pre-order."""
        if self._root is None:
            return []
        flagged = [inst for inst in self._root.walk() if inst.needs_update]
        return sorted(flagged, key=lambda inst: inst.update_priority)

    def flush_updates(
        self, callback: Callable[[ComponentInstance], Any] | None = None
    ) -> list[ComponentInstance]:
        processed = self.pending_updates()
        for inst in processed:
            if callback is not None:
                callback(inst)
            inst.needs_update = False
            inst.updated = True
        return processed

    def clear(self) -> None:
        self._instances.clear()
        self._root = None
