from __future__ import annotations

import asyncio
import enum
import math
import random
import time
from typing import Callable, Sequence

import numpy as np

from knn_layout.config import LayoutOptions
from knn_layout.graph.ab_params import find_ab_params
from knn_layout.layout.adaptive import (
    calculate_epoch_settings,
    calculate_full_coverage_ratio,
    calculate_repulsion_edge_sample,
    clamp_repulsion_edge_sample,
    compute_front_loaded_alpha,
)
from knn_layout.layout.forces import (
    AttractiveForceOptions,
    apply_attractive_update,
    apply_repulsive_update,
)
from knn_layout.logging import LOGGER
from knn_layout.model import (
    ABParams,
    EpochSettings,
    LayoutNode,
    LayoutProgress,
    PreparedEdge,
    ProgressCallback,
    WeightedEdge,
)
from knn_layout.numeric import round_half_up
from knn_layout.sections import CURVE_FIT, PROGRESS, SCHEDULE, SGD_LOOP

YIELD_EVERY_EPOCHS = 5
MIN_PREPARED_WEIGHT = 0.0001
FULL_SAMPLE_THRESHOLD = 0.999


class LayoutState(enum.Enum):
    INITIALIZING = "initializing"
    RUNNING = "running"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


def _monotonic_ms() -> float:
    return time.monotonic() * 1000.0


def repulsion_stride(sample_ratio: float) -> int:
    """Edge stride for negative sampling; 1 means every edge is used."""
    if sample_ratio >= FULL_SAMPLE_THRESHOLD:
        return 1
    return max(1, round_half_up(1.0 / sample_ratio))


def sampled_edge_indices(edge_count: int, epoch: int, stride: int) -> range:
    # the offset rotates so every edge is covered once per ``stride`` epochs
    offset = 0 if stride == 1 else epoch % stride
    return range(offset, edge_count, stride)


def prepare_edge_list(
    nodes: Sequence[LayoutNode], edges: Sequence[WeightedEdge]
) -> list[PreparedEdge]:
    """Rewrite edges against node positions, dropping unknown ids and loops."""
    index_by_id = {node.id: idx for idx, node in enumerate(nodes)}
    prepared: list[PreparedEdge] = []
    for edge in edges:
        source_index = index_by_id.get(edge.source)
        target_index = index_by_id.get(edge.target)
        if source_index is None or target_index is None:
            continue
        if source_index == target_index:
            continue
        prepared.append(
            PreparedEdge(
                source_index=source_index,
                target_index=target_index,
                weight=max(MIN_PREPARED_WEIGHT, edge.strength or MIN_PREPARED_WEIGHT),
            )
        )
    return prepared


class SgdLayout:
    """Resumable SGD force layout over a weighted edge list.

    Each :meth:`step` runs one epoch: attraction along every edge, then
    negative-sampled repulsion, then the progress checkpoint. :meth:`run`
    drives the steps on the running event loop and hands control back at
    the suspension points.
    """

    def __init__(
        self,
        nodes: Sequence[LayoutNode],
        edges: Sequence[WeightedEdge],
        options: LayoutOptions | None = None,
        *,
        on_progress: ProgressCallback | None = None,
        rng: random.Random | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self._state = LayoutState.INITIALIZING
        self._options = options or LayoutOptions()
        self._on_progress = on_progress
        self._rng = rng if rng is not None else random.Random(self._options.seed)
        self._clock = clock or _monotonic_ms

        self._ids = [node.id for node in nodes]
        self._positions = np.array(
            [(float(node.x), float(node.y)) for node in nodes], dtype=np.float64
        ).reshape(len(self._ids), 2)
        self._edges = prepare_edge_list(nodes, edges)

        self._epoch = 0
        self._cancel_requested = False
        self._update_count = 0
        self._last_message_time = self._clock()

        opts = self._options
        node_count = len(self._ids)
        self._settings = calculate_epoch_settings(node_count, opts.spread, opts)
        self._ab = find_ab_params(opts.spread, opts.min_dist)
        self._repulsion_edge_sample = clamp_repulsion_edge_sample(
            calculate_repulsion_edge_sample(node_count)
        )
        self._full_coverage_ratio = calculate_full_coverage_ratio(node_count)
        self._attractive_options = AttractiveForceOptions(
            min_dist=opts.min_dist,
            min_attractive_base=opts.min_attractive_base,
            min_attractive_scale=opts.min_attractive_scale,
            min_attractive_push=opts.min_attractive_push,
        )

        LOGGER.event(
            "layout.init",
            section=SGD_LOOP,
            data={
                "nodes": node_count,
                "edges": len(edges),
                "prepared_edges": len(self._edges),
                "seed": opts.seed,
            },
        )

        if not self._ids or not self._edges or self._settings.total_epochs <= 0:
            self._finish(LayoutState.COMPLETED)
            return

        LOGGER.event(
            "layout.curve",
            section=CURVE_FIT,
            data={
                "spread": opts.spread,
                "min_dist": opts.min_dist,
                "a": self._ab.a,
                "b": self._ab.b,
            },
        )
        LOGGER.event(
            "layout.settings",
            section=SCHEDULE,
            data={
                "epochs": self._settings.total_epochs,
                "initial_alpha": self._settings.initial_alpha,
                "final_alpha": self._settings.final_alpha,
                "negative_sample_rate": self._settings.negative_sample_rate,
                "repulsion_strength": self._settings.repulsion_strength,
                "repulsion_edge_sample": self._repulsion_edge_sample,
                "full_coverage_ratio": self._full_coverage_ratio,
            },
        )
        self._state = LayoutState.RUNNING

    @property
    def state(self) -> LayoutState:
        return self._state

    @property
    def epoch(self) -> int:
        return self._epoch

    @property
    def done(self) -> bool:
        return self._state in (LayoutState.CANCELLED, LayoutState.COMPLETED)

    @property
    def settings(self) -> EpochSettings:
        return self._settings

    @property
    def ab_params(self) -> ABParams:
        return self._ab

    @property
    def prepared_edges(self) -> list[PreparedEdge]:
        return list(self._edges)

    @property
    def positions(self) -> np.ndarray:
        return self._positions.copy()

    def nodes(self) -> list[LayoutNode]:
        return [
            LayoutNode(id=node_id, x=float(x), y=float(y))
            for node_id, (x, y) in zip(self._ids, self._positions)
        ]

    def cancel(self) -> None:
        self._cancel_requested = True

    def _progress_ratio(self, epoch: int) -> float:
        total = self._settings.total_epochs
        return 1.0 if total <= 1 else epoch / (total - 1)

    def _finish(self, state: LayoutState) -> None:
        self._state = state
        event = "layout.cancelled" if state is LayoutState.CANCELLED else "layout.done"
        LOGGER.event(
            event,
            section=SGD_LOOP,
            data={"epochs": self._epoch, "nodes": len(self._ids)},
            force=True,
        )

    def _apply_attraction(self, alpha: float) -> None:
        for edge in self._edges:
            apply_attractive_update(
                self._positions, edge, alpha, self._ab, self._attractive_options, self._rng
            )

    def _apply_repulsion(self, epoch: int, progress_ratio: float, alpha: float) -> None:
        node_count = len(self._ids)
        if node_count <= 1:
            return
        sample_ratio = (
            1.0 if progress_ratio < self._full_coverage_ratio else self._repulsion_edge_sample
        )
        stride = repulsion_stride(sample_ratio)
        negative_samples = math.ceil(self._settings.negative_sample_rate)
        strength = self._settings.repulsion_strength
        for i in sampled_edge_indices(len(self._edges), epoch, stride):
            edge = self._edges[i]
            for _ in range(negative_samples):
                random_index = self._rng.randrange(node_count)
                if random_index == edge.source_index or random_index == edge.target_index:
                    continue
                apply_repulsive_update(
                    self._positions,
                    edge.source_index,
                    random_index,
                    alpha,
                    self._ab,
                    strength,
                    self._rng,
                )

    def _checkpoint(self, epoch: int, progress_ratio: float, alpha: float) -> bool:
        """Throttled progress report; returns whether an event was delivered."""
        if self._on_progress is None:
            return False
        opts = self._options
        is_final = epoch == self._settings.total_epochs - 1
        now = self._clock()
        if not (now - self._last_message_time > opts.progress_interval or is_final):
            return False
        self._last_message_time = now
        self._update_count += 1
        if not (self._update_count > opts.skip_initial_updates or is_final):
            return False
        sample_index = max(0, self._update_count - opts.skip_initial_updates - 1)
        should_render = (
            is_final
            or opts.render_sample_rate <= 1
            or sample_index % opts.render_sample_rate == 0
        )
        if not should_render:
            return False

        progress = LayoutProgress(
            progress=round_half_up(progress_ratio * 100),
            epoch=epoch + 1,
            alpha=alpha,
            is_intermediate=not is_final,
            nodes=self.nodes(),
        )
        LOGGER.event(
            "layout.progress",
            section=PROGRESS,
            data={
                "progress": progress.progress,
                "epoch": progress.epoch,
                "alpha": alpha,
                "intermediate": progress.is_intermediate,
            },
        )
        if self._on_progress(progress) is False:
            self._cancel_requested = True
            self._finish(LayoutState.CANCELLED)
        return True

    def step(self) -> bool:
        """Run one epoch; returns whether it ended on a suspension point."""
        if self._state is not LayoutState.RUNNING:
            return False
        if self._cancel_requested:
            self._finish(LayoutState.CANCELLED)
            return False

        epoch = self._epoch
        progress_ratio = self._progress_ratio(epoch)
        alpha = compute_front_loaded_alpha(
            progress_ratio, self._settings.initial_alpha, self._settings.final_alpha
        )

        self._apply_attraction(alpha)
        self._apply_repulsion(epoch, progress_ratio, alpha)
        self._epoch = epoch + 1

        LOGGER.event(
            "layout.epoch",
            section=SGD_LOOP,
            data={"epoch": epoch + 1, "alpha": alpha, "progress": progress_ratio},
        )

        delivered = self._checkpoint(epoch, progress_ratio, alpha)
        if self._state is LayoutState.CANCELLED:
            return False
        if self._epoch >= self._settings.total_epochs:
            self._finish(LayoutState.COMPLETED)
        return delivered or epoch % YIELD_EVERY_EPOCHS == 0

    async def run(self) -> list[LayoutNode]:
        while not self.done:
            if self.step():
                await asyncio.sleep(0)
        return self.nodes()


async def run_layout(
    nodes: Sequence[LayoutNode],
    edges: Sequence[WeightedEdge],
    options: LayoutOptions | None = None,
    *,
    on_progress: ProgressCallback | None = None,
    rng: random.Random | None = None,
    clock: Callable[[], float] | None = None,
) -> list[LayoutNode]:
    """Optimize node positions for ``edges`` and return the final snapshot."""
    if not nodes:
        return []
    layout = SgdLayout(nodes, edges, options, on_progress=on_progress, rng=rng, clock=clock)
    return await layout.run()
