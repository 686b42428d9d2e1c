from collections import deque

import pytest

from cfstation.config import StationConfig
from cfstation.engine import StationEngine
from cfstation.random_model import RandomModel


class ScriptedRandom(RandomModel):
    """Returns the queued z-values in order, then 0.0 once the script runs out."""

    def __init__(self, *z_values):
        super().__init__(seed=0)
        self.z_values = deque(z_values)

    def push(self, *z_values):
        self.z_values.extend(z_values)

    def standard_normal(self) -> float:
        if self.z_values:
            return self.z_values.popleft()
        return 0.0


@pytest.fixture
def scripted():
    return ScriptedRandom()


@pytest.fixture
def make_engine(scripted):
    def _make(**config_kwargs):
        return StationEngine(StationConfig(**config_kwargs), random_model=scripted)
    return _make


@pytest.fixture
def engine(make_engine):
    return make_engine()
