from .config import GraphOptions, LayoutOptions, configure_logging
from .graph import (
    apply_weight_space_scaling,
    build_graph,
    calculate_k,
    find_ab_params,
    neighborhoods_to_edges,
    symmetrize_edges,
)
from .layout import LayoutState, SgdLayout, run_layout
from .model import (
    ABParams,
    DirectedEdge,
    EpochSettings,
    LayoutNode,
    LayoutProgress,
    Neighbor,
    PreparedEdge,
    WeightedEdge,
    WeightedNeighbor,
)
from .pipeline import normalize_knn, umap_layout

__all__ = [
    "ABParams",
    "DirectedEdge",
    "EpochSettings",
    "GraphOptions",
    "LayoutNode",
    "LayoutOptions",
    "LayoutProgress",
    "LayoutState",
    "Neighbor",
    "PreparedEdge",
    "SgdLayout",
    "WeightedEdge",
    "WeightedNeighbor",
    "apply_weight_space_scaling",
    "build_graph",
    "calculate_k",
    "configure_logging",
    "find_ab_params",
    "neighborhoods_to_edges",
    "normalize_knn",
    "run_layout",
    "symmetrize_edges",
    "umap_layout",
]
