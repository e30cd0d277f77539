from __future__ import annotations

import math

from knn_layout.config import DEFAULT_SYMMETRY_MODE, GraphOptions
from knn_layout.graph.edge_builder import neighborhoods_to_edges
from knn_layout.graph.symmetrize import symmetrize_edges
from knn_layout.logging import LOGGER
from knn_layout.model import NeighborGraph, WeightedEdge
from knn_layout.numeric import round_half_up
from knn_layout.sections import GRAPH_BUILD

K_LOWER = 2.0
K_UPPER = 25.8
K_GROWTH = 0.0015
K_MIDPOINT = 1100.0


def calculate_k(dataset_size: int) -> int:
    """Effective neighbor count for a dataset of the given size.

    A sigmoid running from about 2 for tiny graphs up to about 26 for large
    ones, with its inflection near 1100 points.
    """
    sigmoid = 1.0 / (1.0 + math.exp(-K_GROWTH * (dataset_size - K_MIDPOINT)))
    return round_half_up(K_LOWER + (K_UPPER - K_LOWER) * sigmoid)


def resolve_k(options: GraphOptions, dataset_size: int) -> float:
    if callable(options.k):
        return options.k(dataset_size)
    if options.k is not None:
        return options.k
    return calculate_k(dataset_size)


def build_graph(knn: NeighborGraph, options: GraphOptions | None = None) -> list[WeightedEdge]:
    """Build the symmetric weighted edge list for a neighbor graph.

    Distances are normalized by each point's nearest neighbor, decayed with a
    per-point calibrated sigma and finally symmetrized.
    """
    if not knn:
        return []

    options = options or GraphOptions()
    k = resolve_k(options, len(knn))
    mode = options.symmetry_mode or DEFAULT_SYMMETRY_MODE

    directed = neighborhoods_to_edges(knn, k)
    edges = symmetrize_edges(directed, mode)
    LOGGER.event(
        "graph.build",
        section=GRAPH_BUILD,
        data={
            "points": len(knn),
            "k": k,
            "symmetry_mode": mode,
            "directed_edges": len(directed),
            "edges": len(edges),
        },
    )
    return edges
