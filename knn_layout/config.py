from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Union

from knn_layout.logging import LOGGER
from knn_layout.model import SymmetryMode

DEFAULT_SYMMETRY_MODE: SymmetryMode = "fuzzy-union"

DEFAULT_MIN_DIST = 0.1
DEFAULT_SPREAD = 2.0
DEFAULT_EPOCHS = 300
DEFAULT_PROGRESS_INTERVAL_MS = 32.0
DEFAULT_SKIP_INITIAL_UPDATES = 10
DEFAULT_RENDER_SAMPLE_RATE = 2

DEFAULT_MIN_ATTRACTIVE_BASE = 3.0
DEFAULT_MIN_ATTRACTIVE_SCALE = 50.0
DEFAULT_MIN_ATTRACTIVE_PUSH = 0.45

LOG_INTERVAL_DEFAULT = 1
LOG_INTERVAL_LAYOUT_EPOCH = 50
LOG_INTERVAL_SIGMA_FALLBACK = 100
LOG_INTERVAL_LAYOUT_VISUAL = 1

LOG_INTERVALS = {
    "layout.epoch": LOG_INTERVAL_LAYOUT_EPOCH,
    "graph.sigma.fallback": LOG_INTERVAL_SIGMA_FALLBACK,
    "layout.visual": LOG_INTERVAL_LAYOUT_VISUAL,
}

KOption = Union[float, Callable[[int], float], None]


@dataclass(frozen=True)
class GraphOptions:
    # number, callable of graph size, or None for the size-based default
    k: KOption = None
    symmetry_mode: SymmetryMode | str = DEFAULT_SYMMETRY_MODE


@dataclass(frozen=True)
class LayoutOptions:
    min_dist: float = DEFAULT_MIN_DIST
    spread: float = DEFAULT_SPREAD
    epochs: int = DEFAULT_EPOCHS
    initial_alpha: float | None = None
    final_alpha: float | None = None
    negative_sample_rate: float | None = None
    repulsion_strength: float | None = None
    progress_interval: float = DEFAULT_PROGRESS_INTERVAL_MS
    skip_initial_updates: int = DEFAULT_SKIP_INITIAL_UPDATES
    render_sample_rate: int = DEFAULT_RENDER_SAMPLE_RATE
    min_attractive_base: float = DEFAULT_MIN_ATTRACTIVE_BASE
    min_attractive_scale: float = DEFAULT_MIN_ATTRACTIVE_SCALE
    min_attractive_push: float = DEFAULT_MIN_ATTRACTIVE_PUSH
    seed: int | None = None


def configure_logging() -> None:
    LOGGER.configure_intervals(LOG_INTERVALS, default_interval=LOG_INTERVAL_DEFAULT)
