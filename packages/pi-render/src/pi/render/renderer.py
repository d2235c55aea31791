"""Paints a laid-out node tree into a ``CellBuffer``.

Nodes paint in stacking order, each clipped to its viewport and shifted by
the viewport's scroll offset.  A node that raises while painting is
reported and skipped together with its subtree; the pass carries on with
the rest of the tree.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping

from pi.render.buffer import CellBuffer
from pi.render.capabilities import is_renderable
from pi.render.errors import RenderEngineError, RenderingError, report_error
from pi.render.rendering_tree import BufferRegion, RenderingInfo
from pi.render.stacking import StackingContextManager
from pi.render.style import EMPTY_STYLE, ComputedStyle
from pi.render.viewport import ViewportManager

logger = logging.getLogger(__name__)


@dataclass
class PaintResult:
    """Snapshots produced by one paint, keyed by node id."""

    infos: dict[str, RenderingInfo] = field(default_factory=dict)
    failed: set[str] = field(default_factory=set)
    order: list[Any] = field(default_factory=list)


class Renderer:
    def __init__(self, stacking: StackingContextManager, viewports: ViewportManager) -> None:
        self.stacking = stacking
        self.viewports = viewports

    def paint(
        self,
        root: Any,
        buffer: CellBuffer,
        styles: Mapping[str, ComputedStyle],
    ) -> PaintResult:
        result = PaintResult()
        order = self.stacking.get_global_rendering_order()

        for layer, node in enumerate(order):
            if node.bounds is None or self._under_failed(node, result.failed):
                continue
            style = styles.get(node.id, EMPTY_STYLE)
            viewport = self.viewports.viewport_for(node)
            dx, dy = viewport.scroll_offset if viewport is not None else (0, 0)
            bounds = node.bounds.translate(-dx, -dy)
            clipped = viewport is not None and not viewport.intersects(bounds)
            renderable = is_renderable(node)
            visible = renderable and style.get("visibility", "visible") != "hidden"

            if visible and not clipped:
                if viewport is not None:
                    buffer.push_clip(viewport.clip_area)
                try:
                    node.paint(buffer, style, bounds, layer)
                except Exception as exc:
                    self._report(node, exc)
                    result.failed.add(node.id)
                    continue
                finally:
                    if viewport is not None:
                        buffer.pop_clip()

            context = self.stacking.context_of(node)
            result.infos[node.id] = RenderingInfo.for_node(
                node,
                BufferRegion.from_bounds(bounds),
                z_index=node.z_index,
                stacking_context=context.id if context is not None else None,
                viewport=viewport,
                clipped=clipped,
                visible=visible,
            )
            result.order.append(node)

        # Hidden subtrees are not in the stacking order but still get snapshots.
        for node in root.walk():
            if node.id in result.infos or node.bounds is None:
                continue
            if self._under_failed(node, result.failed) or node.id in result.failed:
                continue
            result.infos[node.id] = RenderingInfo.for_node(
                node,
                BufferRegion.from_bounds(node.bounds),
                z_index=node.z_index,
                viewport=self.viewports.viewport_for(node),
                visible=False,
            )

        logger.debug(
            "Painted %d nodes (%d failed)", len(result.order), len(result.failed)
        )
        return result

    @staticmethod
    def _under_failed(node: Any, failed: set[str]) -> bool:
        if not failed:
            return False
        return any(a.id in failed for a in node.get_ancestors())

    @staticmethod
    def _report(node: Any, exc: Exception) -> None:
        if isinstance(exc, RenderEngineError):
            error = exc
            if error.node_id is None:
                error.node_id = node.id
        else:
            error = RenderingError(f"Paint failed: {exc}", node_id=node.id)
            error.__cause__ = exc
        report_error(error, context={"node_type": node.type_name})
        logger.warning("Paint of %s failed; keeping its previous snapshot", node.id)
