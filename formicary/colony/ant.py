"""Ant -- individual agent driven by its own neural network.

Each tick an ant senses the 3x3 block of cells around it, runs its
genome's network over that sensory vector, and samples one action from the
softmax of the output scores.  Deciding and acting are separate calls so
the simulation can collect every decision before any ant changes the
world.

Sensory encoding, per cell in row-major order (top-left first):

- another ant present -> ``2``
- food                -> ``1``
- terrain             -> ``0``
- empty               -> ``-1``

Lifecycle: ``EGG -> ADULT -> OLD``.  Eggs cannot act.  Adults pick from the
full action set.  Old ants are limited to attack/eat/sleep, though the
simulation culls them in the tick they turn old.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import TYPE_CHECKING

from formicary.brain.network import forward, sample_action, softmax
from formicary.world.cell import CellKind
from formicary.world.world import ORTHOGONAL_OFFSETS

if TYPE_CHECKING:
    from numpy.random import Generator

    from formicary.brain.genome import Genome
    from formicary.simulation.config import SimulationConfig
    from formicary.simulation.engine import Simulation

# -- Sensory encoding ---------------------------------------------------------

_SENSE_ANT = 2.0
_SENSE_CELL: dict[CellKind, float] = {
    CellKind.FOOD: 1.0,
    CellKind.TERRAIN: 0.0,
    CellKind.EMPTY: -1.0,
}


class Stage(Enum):
    """Lifecycle stage of an ant."""

    EGG = auto()
    ADULT = auto()
    OLD = auto()


class Action(Enum):
    """Everything an ant can propose in a tick."""

    UP = auto()
    DOWN = auto()
    LEFT = auto()
    RIGHT = auto()
    ATTACK = auto()
    EAT = auto()
    SLEEP = auto()
    MATE = auto()
    ASEXUAL = auto()
    NONE = auto()


ADULT_ACTIONS: tuple[Action, ...] = (
    Action.UP,
    Action.DOWN,
    Action.LEFT,
    Action.RIGHT,
    Action.ATTACK,
    Action.EAT,
    Action.SLEEP,
    Action.MATE,
    Action.ASEXUAL,
)
OLD_ACTIONS: tuple[Action, ...] = (Action.ATTACK, Action.EAT, Action.SLEEP)

_MOVES: dict[Action, tuple[int, int]] = {
    Action.UP: (0, -1),
    Action.DOWN: (0, 1),
    Action.LEFT: (-1, 0),
    Action.RIGHT: (1, 0),
}


@dataclass(eq=False)
class Ant:
    """A single ant agent.

    Attributes:
        ant_id: Unique identifier within a simulation.
        x: Column position (unbounded).
        y: Row position (unbounded, ``y - 1`` is up).
        genome: Network parameters; owned exclusively by this ant.
        health: Vitality; the ant is culled once this is ``<= 0``.
        age: Ticks since creation.
        stage: Current lifecycle stage.
        stage_age: Ticks since the last stage transition.
        lifespan_offset: Per-ant shift applied to the configured lifespan.
        next_action: Action proposed in the current tick's decide phase.
    """

    ant_id: int
    x: int
    y: int
    genome: Genome
    health: float = 100.0
    age: int = 0
    stage: Stage = Stage.ADULT
    stage_age: int = 0
    lifespan_offset: int = 0
    next_action: Action = Action.NONE

    @property
    def is_alive(self) -> bool:
        """Return True if this ant has health left."""
        return self.health > 0

    @property
    def color(self) -> tuple[int, int, int]:
        """RGB display colour of the current genome."""
        return self.genome.color

    @property
    def actions(self) -> tuple[Action, ...]:
        """Actions available in the current stage (empty for eggs)."""
        match self.stage:
            case Stage.EGG:
                return ()
            case Stage.ADULT:
                return ADULT_ACTIONS
            case Stage.OLD:
                return OLD_ACTIONS

    # -- Decision ----------------------------------------------------------

    def sense(self, simulation: Simulation) -> list[float]:
        """Encode the 3x3 neighbourhood as a 9-element vector.

        Occupancy by another ant takes precedence over the cell's kind.
        """
        inputs: list[float] = []
        for dy in (-1, 0, 1):
            for dx in (-1, 0, 1):
                cx, cy = self.x + dx, self.y + dy
                if simulation.is_occupied(cx, cy, exclude=self):
                    inputs.append(_SENSE_ANT)
                else:
                    inputs.append(_SENSE_CELL[simulation.classify(cx, cy)])
        return inputs

    def decide_action(self, simulation: Simulation, rng: Generator) -> Action:
        """Choose this tick's action from the network's output.

        The sampled index is wrapped onto the stage's action set, so any
        output width yields a valid action.
        """
        actions = self.actions
        if not actions:
            return Action.NONE
        scores = forward(self.genome, self.sense(simulation))
        index = sample_action(softmax(scores), rng)
        return actions[index % len(actions)]

    # -- Execution ---------------------------------------------------------

    def process_action(self, action: Action, simulation: Simulation) -> None:
        """Apply an action's effects to this ant and the world.

        ``MATE`` is resolved by the simulation's pairing phase and is a
        no-op here, as is ``NONE``.
        """
        config = simulation.config
        match action:
            case Action.UP | Action.DOWN | Action.LEFT | Action.RIGHT:
                if self.stage is Stage.OLD:
                    return
                dx, dy = _MOVES[action]
                nx, ny = self.x + dx, self.y + dy
                if simulation.classify(nx, ny).is_passable:
                    self.x, self.y = nx, ny
            case Action.ATTACK:
                self._attack(simulation, config)
            case Action.EAT:
                if simulation.consume_food(self.x, self.y):
                    self.heal(config.eat_gain, config.max_ant_health)
            case Action.SLEEP:
                self.heal(config.sleep_gain, config.max_ant_health)
            case Action.ASEXUAL:
                if simulation.has_room():
                    self.health /= 2
                    simulation.lay_egg(self.x, self.y, self.genome.clone())
            case Action.MATE | Action.NONE:
                pass

    def heal(self, amount: float, cap: float) -> None:
        """Gain health without exceeding ``cap``."""
        self.health = min(cap, self.health + amount)

    def _attack(self, simulation: Simulation, config: SimulationConfig) -> None:
        """Hit the first neighbouring ant found scanning up, down, left, right."""
        for dx, dy in ORTHOGONAL_OFFSETS:
            target = simulation.organism_at(self.x + dx, self.y + dy)
            if target is None:
                continue
            if target.stage is Stage.EGG:
                target.health -= config.egg_attack_damage
                self.heal(config.egg_attack_gain, config.max_ant_health)
            else:
                target.health -= config.attack_damage
            return

    # -- Lifecycle ---------------------------------------------------------

    def age_one_tick(self, config: SimulationConfig) -> None:
        """Advance age, pay upkeep, and apply any stage transition.

        Upkeep is paid before hatching so a hatching egg always starts
        adulthood at full health.
        """
        self.age += 1
        self.stage_age += 1
        self.health -= config.upkeep_cost

        if self.stage is Stage.EGG and self.stage_age >= config.egg_to_adult_ticks:
            self.stage = Stage.ADULT
            self.stage_age = 0
            self.health = config.max_ant_health
        if (
            self.stage is Stage.ADULT
            and self.age >= config.ant_lifespan + self.lifespan_offset
        ):
            self.stage = Stage.OLD
            self.stage_age = 0
