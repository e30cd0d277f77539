from .ab_params import find_ab_params
from .builder import build_graph, calculate_k
from .edge_builder import neighborhoods_to_edges
from .symmetrize import symmetrize_edges
from .weight_scaling import apply_weight_space_scaling, calibrate_sigma

__all__ = [
    "apply_weight_space_scaling",
    "build_graph",
    "calculate_k",
    "calibrate_sigma",
    "find_ab_params",
    "neighborhoods_to_edges",
    "symmetrize_edges",
]
