from __future__ import annotations

from knn_layout.graph.weight_scaling import apply_weight_space_scaling
from knn_layout.logging import LOGGER
from knn_layout.model import DirectedEdge, NeighborGraph
from knn_layout.sections import EDGE_BUILDING

MIN_EDGE_STRENGTH = 0.001


def neighborhoods_to_edges(knn: NeighborGraph, k: float = 15) -> list[DirectedEdge]:
    """Turn each point's scaled neighbors into directed edges.

    Self references and neighbors that are not keys of ``knn`` are dropped.
    """
    if not knn:
        return []

    node_ids = set(knn.keys())
    edges: list[DirectedEdge] = []
    dropped_self = 0
    dropped_dangling = 0

    for point_id, neighbors in knn.items():
        if not neighbors:
            continue
        for neighbor in apply_weight_space_scaling(neighbors, k):
            if neighbor.id == point_id:
                dropped_self += 1
                continue
            if neighbor.id not in node_ids:
                dropped_dangling += 1
                continue
            edges.append(
                DirectedEdge(
                    source=point_id,
                    target=neighbor.id,
                    strength=max(MIN_EDGE_STRENGTH, neighbor.weight),
                )
            )

    LOGGER.event(
        "graph.edges",
        section=EDGE_BUILDING,
        data={
            "points": len(node_ids),
            "k": k,
            "directed_edges": len(edges),
            "dropped_self": dropped_self,
            "dropped_dangling": dropped_dangling,
        },
    )
    return edges
