from __future__ import annotations

import math
from typing import Sequence

import numpy as np

from knn_layout.logging import LOGGER
from knn_layout.model import Neighbor, WeightedNeighbor
from knn_layout.sections import SIGMA_CALIBRATION

SIGMA_TOLERANCE = 1e-5
SIGMA_MAX_ITERATIONS = 64
SIGMA_FALLBACK = 1.0


def _membership_sum(deltas: np.ndarray, sigma: float) -> float:
    # deltas at or below zero contribute exactly 1
    return float(np.sum(np.exp(-np.maximum(deltas, 0.0) / sigma)))


def calibrate_sigma(
    distances: Sequence[float] | np.ndarray,
    k: float,
    rho: float,
    max_iterations: int = SIGMA_MAX_ITERATIONS,
) -> float:
    """Binary-search the decay scale so memberships sum to ``log2(k)``."""
    deltas = np.asarray(distances, dtype=np.float64) - rho
    if k > 0:
        target = math.log2(k)
    else:
        target = float("-inf") if k == 0 else float("nan")
    lo = 0.0
    hi = math.inf
    mid = 1.0

    with np.errstate(over="ignore", divide="ignore", invalid="ignore"):
        for iteration in range(max_iterations):
            psum = _membership_sum(deltas, mid)
            if abs(psum - target) < SIGMA_TOLERANCE:
                break
            if psum > target:
                hi = mid
                mid = (lo + hi) / 2.0
            else:
                lo = mid
                if math.isinf(hi):
                    mid *= 2.0
                else:
                    mid = (lo + hi) / 2.0
            if mid == 0 or not math.isfinite(mid):
                LOGGER.event(
                    "graph.sigma.fallback",
                    section=SIGMA_CALIBRATION,
                    data={
                        "k": k,
                        "rho": rho,
                        "iteration": iteration,
                        "neighbors": len(deltas),
                    },
                )
                mid = SIGMA_FALLBACK
                break
    return mid


def apply_weight_space_scaling(
    neighbors: Sequence[Neighbor], k: float = 15
) -> list[WeightedNeighbor]:
    """Weight each neighbor by ``exp(-(d - rho) / sigma)``.

    ``neighbors`` must already be sorted by ascending distance; the first
    entry defines ``rho`` and therefore always gets weight ``1.0``.
    """
    if not neighbors:
        return []

    distances = np.fromiter((n.distance for n in neighbors), dtype=np.float64, count=len(neighbors))
    rho = float(distances[0])
    sigma = calibrate_sigma(distances, k, rho)

    deltas = distances - rho
    with np.errstate(over="ignore", under="ignore"):
        weights = np.where(deltas > 0, np.exp(-np.maximum(deltas, 0.0) / sigma), 1.0)
    return [
        WeightedNeighbor(id=neighbor.id, distance=neighbor.distance, weight=float(weight))
        for neighbor, weight in zip(neighbors, weights)
    ]
