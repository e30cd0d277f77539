import os
import sys

# Make the repository root importable without installing the package.
REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

import pytest

from knn_layout.logging import LOGGER


class FakeClock:
    """Millisecond clock that advances by a fixed step on every read."""

    def __init__(self, step: float = 100.0) -> None:
        self.now = 0.0
        self.step = step

    def __call__(self) -> float:
        self.now += self.step
        return self.now


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture(autouse=True)
def reset_logger():
    yield
    LOGGER.disable_rerun()
    LOGGER.reset_intervals()
