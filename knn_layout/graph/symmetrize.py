from __future__ import annotations

import math
from typing import Sequence

from knn_layout.logging import LOGGER
from knn_layout.model import DirectedEdge, SymmetryMode, WeightedEdge
from knn_layout.sections import SYMMETRIZATION


def combine_strengths(forward: float, reverse: float, mode: SymmetryMode | str) -> float:
    if mode == "product":
        return forward * reverse
    if mode == "geometric":
        return math.sqrt(forward * reverse)
    # fuzzy-union, also used for unrecognized modes
    return forward + reverse - forward * reverse


def symmetrize_edges(
    directed_edges: Sequence[DirectedEdge],
    mode: SymmetryMode | str = "fuzzy-union",
) -> list[WeightedEdge]:
    """Collapse opposing directed edges into one undirected edge per pair.

    ``fuzzy-union`` treats the two strengths as independent probabilities
    (``a + b - ab``) and keeps one-way links. ``product`` only keeps mutual
    proximity (``ab``), which suppresses hubs. ``geometric`` (``sqrt(ab)``)
    sits between the two. A missing direction counts as strength ``0``.

    Pairs are emitted in the order they first appear, oriented like that
    first directed edge.
    """
    strengths: dict[tuple[str, str], float] = {}
    for edge in directed_edges:
        strengths[(edge.source, edge.target)] = edge.strength

    processed: set[tuple[str, str]] = set()
    result: list[WeightedEdge] = []
    one_way = 0
    for edge in directed_edges:
        source, target = edge.source, edge.target
        pair_key = (source, target) if source < target else (target, source)
        if pair_key in processed:
            continue
        processed.add(pair_key)

        reverse = strengths.get((target, source), 0.0)
        if reverse == 0.0:
            one_way += 1
        result.append(
            WeightedEdge(
                source=source,
                target=target,
                strength=combine_strengths(edge.strength, reverse, mode),
            )
        )

    LOGGER.event(
        "graph.symmetrize",
        section=SYMMETRIZATION,
        data={
            "mode": mode,
            "directed_edges": len(directed_edges),
            "edges": len(result),
            "one_way_pairs": one_way,
        },
    )
    return result
