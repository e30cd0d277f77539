from __future__ import annotations

import math

from knn_layout.config import DEFAULT_EPOCHS, LayoutOptions
from knn_layout.model import EpochSettings
from knn_layout.numeric import clamp, round_half_up

# alpha stays at its initial value for this share of the run
FRONTLOAD_RATIO = 0.2
FRONTLOAD_DECAY_EXP = 1.4

ALPHA_MIN = 0.25
ALPHA_MAX = 1.0
ALPHA_MIDPOINT = 30.0
ALPHA_STEEPNESS = 0.08

REPULSION_SAMPLE_MAX = 1.0
REPULSION_SAMPLE_MIN = 0.5
REPULSION_SMALL_THRESHOLD = 1000
REPULSION_LARGE_THRESHOLD = 9000


def calculate_adaptive_alpha(node_count: int) -> float:
    """Initial learning rate, rising from 0.25 to 1.0 as graphs grow."""
    normalized = 1.0 / (1.0 + math.exp(-ALPHA_STEEPNESS * (node_count - ALPHA_MIDPOINT)))
    return ALPHA_MIN + (ALPHA_MAX - ALPHA_MIN) * normalized


def calculate_repulsion_edge_sample(node_count: int) -> float:
    """Share of edges used for negative sampling after the full-coverage phase."""
    if node_count <= REPULSION_SMALL_THRESHOLD:
        return REPULSION_SAMPLE_MAX
    if node_count >= REPULSION_LARGE_THRESHOLD:
        return REPULSION_SAMPLE_MIN
    progress = (node_count - REPULSION_SMALL_THRESHOLD) / (
        REPULSION_LARGE_THRESHOLD - REPULSION_SMALL_THRESHOLD
    )
    decayed = 1.0 - progress**1.5
    return REPULSION_SAMPLE_MIN + (REPULSION_SAMPLE_MAX - REPULSION_SAMPLE_MIN) * decayed


def clamp_repulsion_edge_sample(value: float) -> float:
    return clamp(value, 0.05, 1.0)


def calculate_full_coverage_ratio(node_count: int) -> float:
    return clamp(2500.0 / (node_count + 2500.0), 0.1, 0.3)


def calculate_epoch_settings(
    node_count: int,
    spread: float,
    options: LayoutOptions | None = None,
) -> EpochSettings:
    options = options or LayoutOptions()
    safe_count = max(1, node_count)
    epochs = DEFAULT_EPOCHS if options.epochs is None else options.epochs
    initial_alpha = (
        calculate_adaptive_alpha(safe_count)
        if options.initial_alpha is None
        else options.initial_alpha
    )
    final_alpha = (
        min(initial_alpha, max(0.2, initial_alpha * 0.1))
        if options.final_alpha is None
        else options.final_alpha
    )
    negative_sample_rate = (
        int(clamp(round_half_up(math.log10(safe_count + 10)), 2, 12))
        if options.negative_sample_rate is None
        else options.negative_sample_rate
    )
    repulsion_strength = (
        max(0.2, spread) if options.repulsion_strength is None else options.repulsion_strength
    )
    return EpochSettings(
        total_epochs=epochs,
        initial_alpha=initial_alpha,
        final_alpha=final_alpha,
        negative_sample_rate=negative_sample_rate,
        repulsion_strength=repulsion_strength,
    )


def compute_front_loaded_alpha(
    progress_ratio: float, initial_alpha: float, final_alpha: float
) -> float:
    if progress_ratio <= FRONTLOAD_RATIO:
        return initial_alpha
    decay_progress = (progress_ratio - FRONTLOAD_RATIO) / max(1e-6, 1.0 - FRONTLOAD_RATIO)
    eased = decay_progress**FRONTLOAD_DECAY_EXP
    return initial_alpha + (final_alpha - initial_alpha) * eased
