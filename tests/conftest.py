"""Shared fixtures for the Formicary test suite."""

from __future__ import annotations

import numpy as np
import pytest
from numpy.random import Generator

from formicary.simulation.config import SimulationConfig
from formicary.simulation.engine import Simulation


class FixedDraw:
    """Stand-in for a Generator whose ``random()`` always returns one value."""

    def __init__(self, value: float) -> None:
        self.value = value

    def random(self) -> float:
        return self.value


@pytest.fixture
def rng() -> Generator:
    """A deterministic random generator for reproducible tests."""
    return np.random.default_rng(seed=12345)


@pytest.fixture
def default_config() -> SimulationConfig:
    """Default simulation config (no YAML file needed)."""
    return SimulationConfig()


@pytest.fixture
def bare_config() -> SimulationConfig:
    """No initial ants, an all-empty world, and no lifespan jitter."""
    return SimulationConfig(
        seed=7,
        ant_density=0,
        food_density=0.0,
        terrain_density=0.0,
        lifespan_jitter=0,
    )


@pytest.fixture
def bare_sim(bare_config: SimulationConfig) -> Simulation:
    """An empty simulation for hand-built scenarios."""
    return Simulation(config=bare_config)


@pytest.fixture
def fixed_draw() -> type[FixedDraw]:
    """Factory for generators with a pinned ``random()`` draw."""
    return FixedDraw
