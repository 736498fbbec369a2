"""Config — load simulation parameters from YAML files.

All tunable constants (densities, lifespans, population cap, health
rewards, network shape) live in YAML and are parsed into a typed
dataclass here.  A config is fixed for the lifetime of a Simulation;
changing a value means building a new Simulation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from formicary.brain.genome import ACTION_OUTPUTS, SENSORY_INPUTS
from formicary.errors import ConfigError

logger = logging.getLogger(__name__)


@dataclass
class SimulationConfig:
    """Top-level simulation configuration.

    Attributes:
        seed: RNG seed for deterministic replay.
        ant_lifespan: Age in ticks at which an adult becomes old.
        ant_density: Number of adults in the initial population.
        max_ants: Population cap checked before every birth.
        max_ant_health: Upper bound for health gains.
        food_density: Probability that a fresh cell is food.
        terrain_density: Probability that a fresh cell is terrain.
        egg_to_adult_ticks: Ticks an egg spends before hatching.
        food_spawn_interval: Ticks between periodic food spawns.
        food_spawn_count: Food cells placed per spawn event.
        genome_noise: Width of the uniform noise added on crossover and
            when seeding from an adopted genome.
        hidden_layers: Neuron counts of the hidden network layers.
        lifespan_jitter: Each ant's lifespan is shifted by a uniform
            integer in ``[-jitter, jitter]`` drawn at birth.
        egg_health: Starting health of a newly laid egg.
        upkeep_cost: Health lost by every ant each tick.
        eat_gain: Health restored by eating food.
        sleep_gain: Health restored by sleeping.
        attack_damage: Damage dealt to a non-egg target.
        egg_attack_damage: Damage dealt to an egg target.
        egg_attack_gain: Health the attacker gains from hitting an egg.
        spawn_radius: Initial ants are scattered over
            ``[-spawn_radius, spawn_radius)`` on both axes.
    """

    seed: int = 42

    ant_lifespan: int = 500
    ant_density: int = 50
    max_ants: int = 200
    max_ant_health: float = 100.0
    food_density: float = 0.05
    terrain_density: float = 0.05
    egg_to_adult_ticks: int = 50
    food_spawn_interval: int = 100
    food_spawn_count: int = 5
    genome_noise: float = 0.1

    # Network shape
    hidden_layers: list[int] = field(default_factory=lambda: [12])

    # Lifecycle and health economy
    lifespan_jitter: int = 10
    egg_health: float = 50.0
    upkeep_cost: float = 1.0
    eat_gain: float = 20.0
    sleep_gain: float = 5.0
    attack_damage: float = 10.0
    egg_attack_damage: float = 25.0
    egg_attack_gain: float = 10.0

    spawn_radius: int = 50

    def __post_init__(self) -> None:
        """Reject values the simulation cannot run with.

        Raises:
            ConfigError: If any value is out of range.
        """
        if self.food_density < 0 or self.terrain_density < 0:
            msg = "food_density and terrain_density must be non-negative"
            raise ConfigError(msg)
        if self.food_density + self.terrain_density > 1.0:
            msg = (
                f"food_density + terrain_density = "
                f"{self.food_density + self.terrain_density} exceeds 1"
            )
            raise ConfigError(msg)
        for name in ("max_ants", "max_ant_health", "food_spawn_interval", "spawn_radius"):
            if getattr(self, name) <= 0:
                msg = f"{name} must be positive, got {getattr(self, name)}"
                raise ConfigError(msg)
        for name in (
            "ant_lifespan",
            "ant_density",
            "egg_to_adult_ticks",
            "food_spawn_count",
            "genome_noise",
            "lifespan_jitter",
            "upkeep_cost",
        ):
            if getattr(self, name) < 0:
                msg = f"{name} must be non-negative, got {getattr(self, name)}"
                raise ConfigError(msg)
        if not isinstance(self.hidden_layers, (list, tuple)) or not all(
            isinstance(n, int) and not isinstance(n, bool) for n in self.hidden_layers
        ):
            msg = f"hidden_layers must be a list of integers, got {self.hidden_layers!r}"
            raise ConfigError(msg)
        if any(n <= 0 for n in self.hidden_layers):
            msg = f"hidden layer sizes must be positive, got {self.hidden_layers}"
            raise ConfigError(msg)
        self.hidden_layers = list(self.hidden_layers)

    @classmethod
    def from_yaml(cls, path: str | Path) -> SimulationConfig:
        """Load configuration from a YAML file.

        Keys missing from the file keep their defaults.

        Args:
            path: Path to the YAML config file.

        Returns:
            A populated SimulationConfig instance.

        Raises:
            FileNotFoundError: If the config file does not exist.
            ConfigError: If a value is out of range.
        """
        path = Path(path)
        with path.open("r") as f:
            data = yaml.safe_load(f) or {}

        defaults = cls()
        config = cls(
            seed=data.get("seed", defaults.seed),
            ant_lifespan=data.get("ant_lifespan", defaults.ant_lifespan),
            ant_density=data.get("ant_density", defaults.ant_density),
            max_ants=data.get("max_ants", defaults.max_ants),
            max_ant_health=data.get("max_ant_health", defaults.max_ant_health),
            food_density=data.get("food_density", defaults.food_density),
            terrain_density=data.get("terrain_density", defaults.terrain_density),
            egg_to_adult_ticks=data.get(
                "egg_to_adult_ticks",
                defaults.egg_to_adult_ticks,
            ),
            food_spawn_interval=data.get(
                "food_spawn_interval",
                defaults.food_spawn_interval,
            ),
            food_spawn_count=data.get("food_spawn_count", defaults.food_spawn_count),
            genome_noise=data.get("genome_noise", defaults.genome_noise),
            hidden_layers=data.get("hidden_layers", defaults.hidden_layers),
            lifespan_jitter=data.get("lifespan_jitter", defaults.lifespan_jitter),
            egg_health=data.get("egg_health", defaults.egg_health),
            upkeep_cost=data.get("upkeep_cost", defaults.upkeep_cost),
            eat_gain=data.get("eat_gain", defaults.eat_gain),
            sleep_gain=data.get("sleep_gain", defaults.sleep_gain),
            attack_damage=data.get("attack_damage", defaults.attack_damage),
            egg_attack_damage=data.get(
                "egg_attack_damage",
                defaults.egg_attack_damage,
            ),
            egg_attack_gain=data.get("egg_attack_gain", defaults.egg_attack_gain),
            spawn_radius=data.get("spawn_radius", defaults.spawn_radius),
        )
        logger.info(f"Loaded simulation config from {path} (seed={config.seed})")
        return config

    @property
    def layer_sizes(self) -> tuple[int, ...]:
        """Full network shape: 9 sensory inputs, hidden layers, 9 outputs."""
        return (SENSORY_INPUTS, *self.hidden_layers, ACTION_OUTPUTS)
