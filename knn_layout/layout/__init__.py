from .adaptive import (
    calculate_adaptive_alpha,
    calculate_epoch_settings,
    calculate_full_coverage_ratio,
    calculate_repulsion_edge_sample,
    clamp_repulsion_edge_sample,
    compute_front_loaded_alpha,
)
from .forces import (
    AttractiveForceOptions,
    apply_attractive_update,
    apply_repulsive_update,
    kernel_gradient,
)
from .sgd_layout import (
    LayoutState,
    SgdLayout,
    prepare_edge_list,
    repulsion_stride,
    run_layout,
    sampled_edge_indices,
)
from .visualize_layout import log_layout, rerun_progress_observer, visualize_layout

__all__ = [
    "AttractiveForceOptions",
    "LayoutState",
    "SgdLayout",
    "apply_attractive_update",
    "apply_repulsive_update",
    "calculate_adaptive_alpha",
    "calculate_epoch_settings",
    "calculate_full_coverage_ratio",
    "calculate_repulsion_edge_sample",
    "clamp_repulsion_edge_sample",
    "compute_front_loaded_alpha",
    "kernel_gradient",
    "log_layout",
    "prepare_edge_list",
    "repulsion_stride",
    "rerun_progress_observer",
    "run_layout",
    "sampled_edge_indices",
    "visualize_layout",
]
