from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Literal, Mapping, Sequence, Union

SymmetryMode = Literal["fuzzy-union", "product", "geometric"]


@dataclass(frozen=True)
class Neighbor:
    id: str
    distance: float


@dataclass(frozen=True)
class WeightedNeighbor:
    id: str
    distance: float
    weight: float


NeighborGraph = Mapping[str, Sequence[Neighbor]]


@dataclass(frozen=True)
class DirectedEdge:
    source: str
    target: str
    strength: float


@dataclass(frozen=True)
class WeightedEdge:
    source: str
    target: str
    strength: float


@dataclass(frozen=True)
class ABParams:
    """Shape of the embedding kernel ``1 / (1 + a * d^(2b))``."""

    a: float
    b: float


@dataclass(frozen=True)
class LayoutNode:
    id: str
    x: float
    y: float


@dataclass(frozen=True)
class PreparedEdge:
    source_index: int
    target_index: int
    weight: float


@dataclass(frozen=True)
class EpochSettings:
    total_epochs: int
    initial_alpha: float
    final_alpha: float
    negative_sample_rate: float
    repulsion_strength: float


@dataclass(frozen=True)
class LayoutProgress:
    progress: int
    epoch: int
    alpha: float
    is_intermediate: bool
    nodes: list[LayoutNode]


# An observer returning exactly ``False`` cancels the run.
ProgressCallback = Callable[[LayoutProgress], Union[bool, None]]
