from __future__ import annotations

import numpy as np

from knn_layout.model import ABParams

_SAMPLE_COUNT = 300
_A_CANDIDATES = (0.1, 0.5, 1.0, 1.5, 2.0, 3.0, 5.0, 10.0)
_B_CANDIDATES = (0.1, 0.3, 0.5, 0.7, 1.0, 1.2, 1.5, 2.0)


def _target_curve(spread: float, min_dist: float) -> tuple[np.ndarray, np.ndarray]:
    xs = np.arange(_SAMPLE_COUNT, dtype=np.float64) / _SAMPLE_COUNT * (spread * 3.0)
    ys = np.where(xs < min_dist, 1.0, np.exp(-(xs - min_dist) / spread))
    return xs, ys


def find_ab_params(spread: float = 1.0, min_dist: float = 0.1) -> ABParams:
    """Fit ``1 / (1 + a * x^(2b))`` to a flat-then-exponential target.

    The target is ``1`` below ``min_dist`` and decays as
    ``exp(-(x - min_dist) / spread)`` after it, sampled on ``[0, 3 * spread)``.
    The fit is a plain grid search; the best grid point is returned even
    when its error is large.
    """
    best_a = 1.0
    best_b = 1.0
    best_error = float("inf")
    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
        xs, ys = _target_curve(spread, min_dist)
        for a in _A_CANDIDATES:
            for b in _B_CANDIDATES:
                predicted = 1.0 / (1.0 + a * np.power(xs, 2.0 * b))
                error = float(np.sum((ys - predicted) ** 2))
                if error < best_error:
                    best_error = error
                    best_a = a
                    best_b = b
    return ABParams(a=best_a, b=best_b)
