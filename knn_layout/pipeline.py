from __future__ import annotations

import random
from typing import Any, Callable, Iterable, Mapping, Sequence, Union

from knn_layout.config import GraphOptions, LayoutOptions
from knn_layout.graph.builder import build_graph
from knn_layout.layout.sgd_layout import run_layout
from knn_layout.model import LayoutNode, Neighbor, NeighborGraph, ProgressCallback

INITIAL_POSITION_RANGE = 100.0

NeighborLike = Union[Neighbor, Mapping[str, Any], Sequence[Any]]
GraphLike = Union[Mapping[str, Iterable[NeighborLike]], Iterable[tuple[str, Iterable[NeighborLike]]]]
PositionsLike = Union[Sequence[LayoutNode], Mapping[str, Sequence[float]]]


def _coerce_neighbor(value: NeighborLike) -> Neighbor:
    if isinstance(value, Neighbor):
        return value
    if isinstance(value, Mapping):
        return Neighbor(id=str(value["id"]), distance=float(value["distance"]))
    neighbor_id, distance = value
    return Neighbor(id=str(neighbor_id), distance=float(distance))


def normalize_knn(knn: GraphLike) -> dict[str, list[Neighbor]]:
    """Normalize a neighbor graph into ``{id: [Neighbor, ...]}``.

    Accepts a mapping or an iterable of ``(id, neighbors)`` pairs. Neighbors
    may be :class:`Neighbor` records, ``{"id": ..., "distance": ...}``
    mappings or ``(id, distance)`` pairs. Order is preserved everywhere.
    """
    items = knn.items() if isinstance(knn, Mapping) else knn
    return {
        str(point_id): [_coerce_neighbor(neighbor) for neighbor in neighbors or ()]
        for point_id, neighbors in items
    }


def _initial_nodes(
    node_ids: Sequence[str],
    initial_positions: PositionsLike | None,
    rng: random.Random,
) -> list[LayoutNode]:
    known: dict[str, tuple[float, float]] = {}
    if isinstance(initial_positions, Mapping):
        known = {str(k): (float(v[0]), float(v[1])) for k, v in initial_positions.items()}
    elif initial_positions is not None:
        known = {node.id: (node.x, node.y) for node in initial_positions}

    nodes: list[LayoutNode] = []
    for node_id in node_ids:
        position = known.get(node_id)
        if position is None:
            position = (
                rng.random() * INITIAL_POSITION_RANGE,
                rng.random() * INITIAL_POSITION_RANGE,
            )
        nodes.append(LayoutNode(id=node_id, x=position[0], y=position[1]))
    return nodes


async def umap_layout(
    knn: GraphLike | NeighborGraph,
    *,
    graph_options: GraphOptions | None = None,
    layout_options: LayoutOptions | None = None,
    initial_positions: PositionsLike | None = None,
    on_progress: ProgressCallback | None = None,
    rng: random.Random | None = None,
    clock: Callable[[], float] | None = None,
) -> list[LayoutNode]:
    """Build the graph for ``knn`` and lay it out in one call."""
    layout_options = layout_options or LayoutOptions()
    rng = rng if rng is not None else random.Random(layout_options.seed)

    graph = normalize_knn(knn)
    edges = build_graph(graph, graph_options)
    nodes = _initial_nodes(list(graph.keys()), initial_positions, rng)
    return await run_layout(
        nodes,
        edges,
        layout_options,
        on_progress=on_progress,
        rng=rng,
        clock=clock,
    )
