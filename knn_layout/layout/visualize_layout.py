from __future__ import annotations

from typing import Sequence

from knn_layout.logging import LOGGER, LogVisual, init_rerun
from knn_layout.model import LayoutNode, LayoutProgress, ProgressCallback, WeightedEdge
from knn_layout.sections import LAYOUT_EXPORT

_POINT_RADIUS = 0.45
_EDGE_RADIUS = 0.05


def _layout_visuals(
    nodes: Sequence[LayoutNode],
    *,
    path: str,
    edges: Sequence[WeightedEdge] | None,
) -> list[LogVisual]:
    visuals = [
        LOGGER.visual_points2d(
            f"{path}/points",
            [(node.x, node.y) for node in nodes],
            radii=_POINT_RADIUS,
            labels=[node.id for node in nodes],
        )
    ]
    if edges:
        by_id = {node.id: node for node in nodes}
        strips = []
        for edge in edges:
            source = by_id.get(edge.source)
            target = by_id.get(edge.target)
            if source is None or target is None:
                continue
            strips.append([(source.x, source.y), (target.x, target.y)])
        if strips:
            visuals.append(LOGGER.visual_line_strips2d(f"{path}/edges", strips, radii=_EDGE_RADIUS))
    return visuals


def log_layout(
    nodes: Sequence[LayoutNode],
    *,
    edges: Sequence[WeightedEdge] | None = None,
    path: str = "layout",
    epoch: int | None = None,
) -> None:
    visuals = _layout_visuals(nodes, path=path, edges=edges) if LOGGER.rerun_enabled else None
    LOGGER.event(
        "layout.visual",
        section=LAYOUT_EXPORT,
        data={
            "epoch": epoch,
            "nodes": len(nodes),
            "edges": 0 if edges is None else len(edges),
        },
        visuals=visuals,
    )


def rerun_progress_observer(
    path: str = "layout", *, edges: Sequence[WeightedEdge] | None = None
) -> ProgressCallback:
    """Progress observer that records every delivered frame; never cancels."""

    def _observe(progress: LayoutProgress) -> None:
        log_layout(progress.nodes, edges=edges, path=path, epoch=progress.epoch)

    return _observe


def visualize_layout(
    nodes: Sequence[LayoutNode],
    *,
    edges: Sequence[WeightedEdge] | None = None,
    app_id: str = "knn-layout",
    path: str = "layout",
) -> None:
    init_rerun(app_id=app_id)
    log_layout(nodes, edges=edges, path=path)
