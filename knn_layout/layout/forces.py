from __future__ import annotations

import math
import random
from dataclasses import dataclass

import numpy as np

from knn_layout.config import (
    DEFAULT_MIN_ATTRACTIVE_BASE,
    DEFAULT_MIN_ATTRACTIVE_PUSH,
    DEFAULT_MIN_ATTRACTIVE_SCALE,
)
from knn_layout.model import ABParams, PreparedEdge
from knn_layout.numeric import clamp

MAX_ATTRACTIVE_STEP = 4.0
MAX_REPULSIVE_STEP = 4.0
MIN_DIST_SQUARED = 1e-7
JITTER_SCALE = 1e-3
REPULSION_EPS = 0.001


@dataclass(frozen=True)
class AttractiveForceOptions:
    min_dist: float
    min_attractive_base: float = DEFAULT_MIN_ATTRACTIVE_BASE
    min_attractive_scale: float = DEFAULT_MIN_ATTRACTIVE_SCALE
    min_attractive_push: float = DEFAULT_MIN_ATTRACTIVE_PUSH

    @property
    def min_attractive_distance(self) -> float:
        return self.min_attractive_base + self.min_dist * self.min_attractive_scale


def kernel_gradient(dist_squared: float, a: float, b: float) -> float:
    """Derivative of ``1 / (1 + a * d^(2b))`` with respect to squared distance."""
    numerator = 2.0 * a * b * dist_squared ** (b - 1.0)
    return numerator / (1.0 + a * dist_squared**b)


def _separation(
    positions: np.ndarray, source_index: int, target_index: int, rng: random.Random
) -> tuple[float, float, float]:
    diff_x = float(positions[source_index, 0] - positions[target_index, 0])
    diff_y = float(positions[source_index, 1] - positions[target_index, 1])
    dist_squared = diff_x * diff_x + diff_y * diff_y
    if dist_squared < MIN_DIST_SQUARED:
        diff_x = (rng.random() - 0.5) * JITTER_SCALE
        diff_y = (rng.random() - 0.5) * JITTER_SCALE
        dist_squared = diff_x * diff_x + diff_y * diff_y
    return diff_x, diff_y, dist_squared


def _displace(
    positions: np.ndarray,
    source_index: int,
    target_index: int,
    step_x: float,
    step_y: float,
) -> None:
    positions[source_index, 0] += step_x
    positions[source_index, 1] += step_y
    positions[target_index, 0] -= step_x
    positions[target_index, 1] -= step_y


def apply_attractive_update(
    positions: np.ndarray,
    edge: PreparedEdge,
    alpha: float,
    ab: ABParams,
    options: AttractiveForceOptions,
    rng: random.Random,
) -> None:
    """Pull the endpoints of ``edge`` together, in place.

    Pairs closer than the minimum attractive distance are pushed apart in
    proportion to their overlap and their pull is attenuated by the same
    ratio, which keeps dense neighborhoods from collapsing onto a point.
    """
    source, target = edge.source_index, edge.target_index
    diff_x, diff_y, dist_squared = _separation(positions, source, target, rng)
    if dist_squared <= 0.0:
        return

    grad_coeff = -kernel_gradient(dist_squared, ab.a, ab.b) * edge.weight * alpha

    min_distance = options.min_attractive_distance
    spacing_attenuation = 1.0
    if dist_squared < min_distance * min_distance:
        dist = math.sqrt(dist_squared)
        overlap_ratio = (min_distance - dist) / min_distance
        spacing_attenuation = max(0.0, 1.0 - overlap_ratio)
        push = overlap_ratio * options.min_attractive_push * alpha
        _displace(positions, source, target, push * diff_x / dist, push * diff_y / dist)

    grad_coeff = clamp(grad_coeff * spacing_attenuation, -MAX_ATTRACTIVE_STEP, MAX_ATTRACTIVE_STEP)
    _displace(positions, source, target, grad_coeff * diff_x, grad_coeff * diff_y)


def apply_repulsive_update(
    positions: np.ndarray,
    source_index: int,
    target_index: int,
    alpha: float,
    ab: ABParams,
    repulsion_strength: float,
    rng: random.Random,
) -> None:
    if source_index == target_index:
        return
    diff_x, diff_y, dist_squared = _separation(positions, source_index, target_index, rng)

    grad_coeff = 2.0 * repulsion_strength * ab.b
    grad_coeff /= (REPULSION_EPS + dist_squared) * (1.0 + ab.a * dist_squared**ab.b)
    grad_coeff = clamp(grad_coeff * alpha, -MAX_REPULSIVE_STEP, MAX_REPULSIVE_STEP)
    _displace(positions, source_index, target_index, grad_coeff * diff_x, grad_coeff * diff_y)
