import random

import pytest

from knn_layout.config import LayoutOptions
from knn_layout.layout.sgd_layout import (
    LayoutState,
    SgdLayout,
    prepare_edge_list,
    repulsion_stride,
    run_layout,
    sampled_edge_indices,
)
from knn_layout.model import LayoutNode, PreparedEdge, WeightedEdge

from conftest import FakeClock

NODES = [LayoutNode("a", 0.0, 0.0), LayoutNode("b", 0.0, 0.0), LayoutNode("c", 0.0, 0.0)]
EDGES = [
    WeightedEdge("a", "b", 0.9),
    WeightedEdge("b", "c", 0.8),
    WeightedEdge("a", "c", 0.2),
]


def test_prepare_edge_list_filters_and_floors():
    nodes = [LayoutNode("a", 0.0, 0.0), LayoutNode("b", 1.0, 1.0)]
    edges = [
        WeightedEdge("a", "b", 0.0),
        WeightedEdge("a", "a", 1.0),
        WeightedEdge("a", "ghost", 1.0),
        WeightedEdge("b", "a", 0.5),
    ]
    assert prepare_edge_list(nodes, edges) == [
        PreparedEdge(0, 1, 0.0001),
        PreparedEdge(1, 0, 0.5),
    ]


@pytest.mark.asyncio
async def test_layout_moves_nodes_off_the_origin():
    result = await run_layout(NODES, EDGES, LayoutOptions(epochs=50), rng=random.Random(1))
    assert [node.id for node in result] == ["a", "b", "c"]
    assert any(node.x != 0.0 or node.y != 0.0 for node in result)


@pytest.mark.asyncio
async def test_same_seed_gives_same_layout():
    options = LayoutOptions(epochs=40, seed=11)
    first = await run_layout(NODES, EDGES, options)
    second = await run_layout(NODES, EDGES, options)
    assert first == second


@pytest.mark.asyncio
async def test_progress_reports_every_epoch_with_fast_clock():
    events = []
    options = LayoutOptions(epochs=30, skip_initial_updates=0, render_sample_rate=1)
    await run_layout(
        NODES,
        EDGES,
        options,
        on_progress=events.append,
        rng=random.Random(2),
        clock=FakeClock(100.0),
    )
    assert [event.epoch for event in events] == list(range(1, 31))
    assert all(event.is_intermediate for event in events[:-1])
    final = events[-1]
    assert not final.is_intermediate
    assert final.progress == 100
    assert events[0].progress == 0
    assert [node.id for node in final.nodes] == ["a", "b", "c"]


@pytest.mark.asyncio
async def test_initial_updates_are_skipped():
    events = []
    options = LayoutOptions(epochs=20, skip_initial_updates=10, render_sample_rate=1)
    await run_layout(
        NODES, EDGES, options, on_progress=events.append, rng=random.Random(2), clock=FakeClock()
    )
    assert [event.epoch for event in events] == list(range(11, 21))


@pytest.mark.asyncio
async def test_slow_updates_only_report_final_epoch():
    events = []
    options = LayoutOptions(epochs=25, skip_initial_updates=0)
    await run_layout(
        NODES, EDGES, options, on_progress=events.append, rng=random.Random(2), clock=lambda: 0.0
    )
    assert len(events) == 1
    assert events[0].epoch == 25
    assert not events[0].is_intermediate


@pytest.mark.asyncio
async def test_false_from_observer_cancels():
    calls = []

    def observer(progress):
        calls.append(progress.epoch)
        return len(calls) < 3

    layout = SgdLayout(
        NODES,
        EDGES,
        LayoutOptions(epochs=1000, skip_initial_updates=0, progress_interval=1),
        on_progress=observer,
        rng=random.Random(4),
        clock=FakeClock(10.0),
    )
    result = await layout.run()
    assert len(calls) == 3
    assert layout.state is LayoutState.CANCELLED
    assert layout.epoch < 1000
    assert len(result) == 3


@pytest.mark.asyncio
async def test_falsy_values_other_than_false_do_not_cancel():
    calls = []

    def observer(progress):
        calls.append(progress.epoch)
        return 0

    layout = SgdLayout(
        NODES,
        EDGES,
        LayoutOptions(epochs=30, skip_initial_updates=0, render_sample_rate=1),
        on_progress=observer,
        rng=random.Random(4),
        clock=FakeClock(),
    )
    await layout.run()
    assert layout.state is LayoutState.COMPLETED
    assert layout.epoch == 30
    assert len(calls) == 30


@pytest.mark.asyncio
async def test_no_edges_returns_input_positions():
    nodes = [LayoutNode("a", 1.0, 2.0), LayoutNode("b", 3.0, 4.0)]
    calls = []
    result = await run_layout(nodes, [], on_progress=calls.append)
    assert result == nodes
    assert calls == []


@pytest.mark.asyncio
async def test_zero_epochs_returns_input_positions():
    nodes = [LayoutNode("a", 1.0, 2.0), LayoutNode("b", 3.0, 4.0)]
    edges = [WeightedEdge("a", "b", 1.0)]
    result = await run_layout(nodes, edges, LayoutOptions(epochs=0))
    assert result == nodes


@pytest.mark.asyncio
async def test_empty_nodes():
    assert await run_layout([], EDGES) == []


def test_empty_layout_is_completed_immediately():
    layout = SgdLayout([LayoutNode("a", 0.0, 0.0)], [])
    assert layout.state is LayoutState.COMPLETED
    assert layout.done
    assert layout.step() is False


def test_manual_steps_and_cancel():
    layout = SgdLayout(NODES, EDGES, LayoutOptions(epochs=10), rng=random.Random(9))
    assert layout.state is LayoutState.RUNNING
    # epoch 0 is a yield point
    assert layout.step() is True
    assert layout.step() is False
    assert layout.epoch == 2
    layout.cancel()
    assert layout.step() is False
    assert layout.state is LayoutState.CANCELLED
    assert layout.epoch == 2


def test_steps_until_completed():
    layout = SgdLayout(NODES, EDGES, LayoutOptions(epochs=7), rng=random.Random(9))
    while not layout.done:
        layout.step()
    assert layout.state is LayoutState.COMPLETED
    assert layout.epoch == 7
    assert layout.positions.shape == (3, 2)


def test_input_nodes_are_not_mutated():
    nodes = [LayoutNode("a", 0.0, 0.0), LayoutNode("b", 1.0, 0.0)]
    layout = SgdLayout(nodes, [WeightedEdge("a", "b", 1.0)], LayoutOptions(epochs=5))
    while not layout.done:
        layout.step()
    assert nodes == [LayoutNode("a", 0.0, 0.0), LayoutNode("b", 1.0, 0.0)]


@pytest.mark.asyncio
async def test_every_other_update_is_rendered_after_skip():
    events = []
    options = LayoutOptions(epochs=10, skip_initial_updates=2, render_sample_rate=2)
    await run_layout(
        NODES,
        EDGES,
        options,
        on_progress=events.append,
        rng=random.Random(2),
        clock=FakeClock(100.0),
    )
    assert [event.epoch for event in events] == [3, 5, 7, 9, 10]
    assert [event.is_intermediate for event in events] == [True, True, True, True, False]


@pytest.mark.parametrize("ratio,stride", [(1.0, 1), (0.999, 1), (0.5, 2), (0.3, 3), (0.05, 20)])
def test_repulsion_stride(ratio, stride):
    assert repulsion_stride(ratio) == stride


def test_sampled_edge_indices_rotate_with_epoch():
    assert list(sampled_edge_indices(5, 7, 1)) == [0, 1, 2, 3, 4]
    assert list(sampled_edge_indices(10, 4, 3)) == [1, 4, 7]
    assert list(sampled_edge_indices(10, 5, 3)) == [2, 5, 8]
    covered = set()
    for epoch in range(3):
        covered.update(sampled_edge_indices(10, epoch, 3))
    assert covered == set(range(10))


class _FixedIndexRandom(random.Random):
    def __init__(self, index):
        super().__init__(0)
        self.index = index

    def randrange(self, *args, **kwargs):
        return self.index


def _spread_layout(rng):
    nodes = [LayoutNode("a", 0.0, 0.0), LayoutNode("b", 10.0, 0.0), LayoutNode("c", 0.0, 10.0)]
    return SgdLayout(nodes, [WeightedEdge("a", "b", 1.0)], LayoutOptions(epochs=5), rng=rng)


@pytest.mark.parametrize("endpoint", [0, 1])
def test_negative_samples_hitting_an_endpoint_are_skipped(endpoint):
    layout = _spread_layout(_FixedIndexRandom(endpoint))
    before = layout.positions
    layout._apply_repulsion(0, 0.0, 1.0)
    assert layout.positions.tolist() == before.tolist()


def test_negative_sample_pushes_other_node():
    layout = _spread_layout(_FixedIndexRandom(2))
    before = layout.positions
    layout._apply_repulsion(0, 0.0, 1.0)
    after = layout.positions
    assert after[1].tolist() == before[1].tolist()
    assert after[2, 1] > before[2, 1]
    assert after[0, 1] < before[0, 1]


@pytest.mark.asyncio
async def test_fractional_negative_sample_rate():
    result = await run_layout(
        NODES, EDGES, LayoutOptions(epochs=5, negative_sample_rate=2.0), rng=random.Random(1)
    )
    assert len(result) == 3
    layout = SgdLayout(NODES, EDGES, LayoutOptions(epochs=5, negative_sample_rate=1.5))
    while not layout.done:
        layout.step()
    assert layout.state is LayoutState.COMPLETED
