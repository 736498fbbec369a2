"""Simulation — the world, the live ants, and the per-tick update.

One call to :meth:`Simulation.tick` runs four phases in order:

1. Decide: every ant proposes an action from a snapshot of the
   world taken at tick start.
2. Mate: adjacent adults that both proposed ``MATE`` are paired
   greedily in population order and produce one egg per pair.
3. Act & age: every ant that did not propose ``MATE`` executes its
   action; every ant then ages, pays upkeep and may change stage.
4. Cull: ants with no health left, then ants that turned old, are
   removed.

Eggs join the population as soon as they are laid.  Phase 3 walks the
live list, so an egg laid in phase 2, or budded earlier in phase 3, ages in
its birth tick and is visible to ants that act after it.  The periodic
food spawn and the tick counter are owned by the caller (see ``runner.py``).
"""

from __future__ import annotations

import itertools
import logging
from collections import Counter, defaultdict
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import numpy as np
from numpy.random import Generator

from formicary.brain.genome import SENSORY_INPUTS, Genome
from formicary.colony.ant import Action, Ant, Stage
from formicary.errors import GenomeShapeError
from formicary.world.world import ORTHOGONAL_OFFSETS, World

if TYPE_CHECKING:
    from collections.abc import Iterator

    from formicary.simulation.config import SimulationConfig
    from formicary.world.cell import CellKind

logger = logging.getLogger(__name__)


@dataclass
class Simulation:
    """Owns the world grid and the live ant population.

    Attributes:
        config: Parameters fixed for the lifetime of this simulation.
        seed_genome: Optional adopted genome; when set, the initial
            population is seeded with mutated copies of it.
        rng: Master seeded random generator.
        world: The lazily generated grid.
        ants: Live population in insertion order.
        layer_sizes: Network shape shared by every ant; the seed genome's
            when one is given, else the configured shape.
    """

    config: SimulationConfig
    seed_genome: Genome | None = None
    rng: Generator = field(init=False, repr=False)
    world: World = field(init=False, repr=False)
    ants: list[Ant] = field(init=False, default_factory=list)
    layer_sizes: tuple[int, ...] = field(init=False)
    _ids: Iterator[int] = field(init=False, repr=False)
    _snapshot: dict[tuple[int, int], list[Ant]] | None = field(
        init=False,
        default=None,
        repr=False,
    )

    def __post_init__(self) -> None:
        """Build RNG, world, and the initial adult population.

        Raises:
            GenomeShapeError: If the seed genome does not accept the
                9-cell sensory vector.
        """
        self.layer_sizes = self.config.layer_sizes
        if self.seed_genome is not None:
            if self.seed_genome.input_size != SENSORY_INPUTS:
                msg = (
                    f"seed genome expects {self.seed_genome.input_size} inputs, "
                    f"ants sense {SENSORY_INPUTS}"
                )
                raise GenomeShapeError(
                    msg, expected=SENSORY_INPUTS, got=self.seed_genome.input_size
                )
            self.layer_sizes = self.seed_genome.layer_sizes

        self.rng = np.random.default_rng(self.config.seed)
        self._ids = itertools.count()
        self.world = World(
            food_density=self.config.food_density,
            terrain_density=self.config.terrain_density,
            rng=self.rng,
        )
        self._populate()
        logger.info(
            f"Simulation started with {len(self.ants)} ants "
            f"(seed={self.config.seed}, seeded genome={self.seed_genome is not None})"
        )

    # -- Queries -----------------------------------------------------------

    @property
    def live_organisms(self) -> tuple[Ant, ...]:
        """Read-only view of the live population, in order."""
        return tuple(self.ants)

    def classify(self, x: int, y: int) -> CellKind:
        """Return the kind of the cell at ``(x, y)``."""
        return self.world.classify(x, y)

    def consume_food(self, x: int, y: int) -> bool:
        """Eat the food at ``(x, y)``; False if there was none."""
        return self.world.consume_food(x, y)

    def set_food(self, x: int, y: int) -> None:
        """Force food onto the cell at ``(x, y)``."""
        self.world.set_food(x, y)

    def organism_at(self, x: int, y: int) -> Ant | None:
        """Return the first live ant at ``(x, y)`` in population order."""
        for ant in self.ants:
            if ant.x == x and ant.y == y:
                return ant
        return None

    def organisms_at(self, x: int, y: int) -> list[Ant]:
        """Return every live ant at ``(x, y)`` in population order."""
        return [ant for ant in self.ants if ant.x == x and ant.y == y]

    def is_occupied(self, x: int, y: int, *, exclude: Ant | None = None) -> bool:
        """Return True if an ant other than ``exclude`` stands at ``(x, y)``.

        During the decide phase this reads the tick-start snapshot.
        """
        if self._snapshot is not None:
            here = self._snapshot.get((x, y), ())
        else:
            here = self.organisms_at(x, y)
        return any(ant is not exclude for ant in here)

    def stage_counts(self) -> dict[Stage, int]:
        """Return the number of live ants in each stage."""
        counts = Counter(ant.stage for ant in self.ants)
        return {stage: counts.get(stage, 0) for stage in Stage}

    def has_room(self) -> bool:
        """Return True if the population cap allows another birth."""
        return len(self.ants) < self.config.max_ants

    # -- Births ------------------------------------------------------------

    def spawn_ant(
        self,
        x: int,
        y: int,
        genome: Genome | None = None,
        *,
        stage: Stage = Stage.ADULT,
        health: float | None = None,
    ) -> Ant:
        """Add an ant to the live population immediately.

        Args:
            x: Spawn column.
            y: Spawn row.
            genome: Network parameters; a random genome if omitted.
                Must match ``layer_sizes``.
            stage: Starting lifecycle stage.
            health: Starting health; full health if omitted.

        Returns:
            The newly created Ant (also appended to ``self.ants``).

        Raises:
            GenomeShapeError: If ``genome`` has a different shape from the
                rest of the population.
        """
        if genome is None:
            genome = Genome.random(self.rng, self.layer_sizes)
        elif genome.layer_sizes != self.layer_sizes:
            msg = (
                f"genome has layer sizes {genome.layer_sizes}, "
                f"population uses {self.layer_sizes}"
            )
            raise GenomeShapeError(msg, expected=self.layer_sizes, got=genome.layer_sizes)
        if health is None:
            health = self.config.max_ant_health
        ant = self._new_ant(x, y, genome, stage=stage, health=health)
        self.ants.append(ant)
        return ant

    def lay_egg(self, x: int, y: int, genome: Genome) -> Ant | None:
        """Add a new egg at ``(x, y)`` carrying ``genome``.

        Returns:
            The new egg, or None if the population is at the cap.
        """
        if not self.has_room():
            return None
        egg = self._new_ant(x, y, genome, stage=Stage.EGG, health=self.config.egg_health)
        self.ants.append(egg)
        return egg

    # -- Tick --------------------------------------------------------------

    def tick(self) -> None:
        """Advance the simulation by one tick.

        Follows the phase order:
        1. Decide
        2. Mate
        3. Act & age
        4. Cull
        """
        # 1. Decide against a frozen view of positions
        self._snapshot = self._index_positions()
        try:
            for ant in self.ants:
                ant.next_action = ant.decide_action(self, self.rng)
        finally:
            self._snapshot = None

        # 2. Resolve mating
        population = len(self.ants)
        mated = self._resolve_mating()

        # 3. Act and age; eggs appended mid-loop are visited too
        for ant in self.ants:
            if ant.next_action is not Action.MATE:
                ant.process_action(ant.next_action, self)
            ant.age_one_tick(self.config)

        births = len(self.ants) - population

        # 4. Cull
        dead = self.remove_dead()
        if births or dead:
            logger.debug(
                f"Tick: {len(mated) // 2} pairs mated, {births} eggs laid, "
                f"{len(dead)} ants removed, population {len(self.ants)}"
            )

    def run(self, ticks: int) -> None:
        """Run the simulation for a fixed number of ticks.

        Args:
            ticks: Number of ticks to advance.
        """
        for _ in range(ticks):
            self.tick()

    def remove_dead(self) -> list[Ant]:
        """Remove and return ants that have no health left or turned old.

        Returns:
            List of ants that were removed.
        """
        dead = [a for a in self.ants if not a.is_alive]
        self.ants = [a for a in self.ants if a.is_alive]
        old = [a for a in self.ants if a.stage is Stage.OLD]
        self.ants = [a for a in self.ants if a.stage is not Stage.OLD]
        return dead + old

    # -- Private -----------------------------------------------------------

    def _populate(self) -> None:
        """Scatter ``ant_density`` adults around the origin."""
        r = self.config.spawn_radius
        for _ in range(self.config.ant_density):
            x = int(self.rng.integers(-r, r))
            y = int(self.rng.integers(-r, r))
            genome = None
            if self.seed_genome is not None:
                genome = self.seed_genome.mutated(self.config.genome_noise, self.rng)
            self.spawn_ant(x, y, genome)

    def _new_ant(
        self,
        x: int,
        y: int,
        genome: Genome,
        *,
        stage: Stage,
        health: float,
    ) -> Ant:
        jitter = self.config.lifespan_jitter
        offset = int(self.rng.integers(-jitter, jitter + 1)) if jitter else 0
        return Ant(
            ant_id=next(self._ids),
            x=x,
            y=y,
            genome=genome,
            health=health,
            stage=stage,
            lifespan_offset=offset,
        )

    def _index_positions(self) -> dict[tuple[int, int], list[Ant]]:
        index: dict[tuple[int, int], list[Ant]] = defaultdict(list)
        for ant in self.ants:
            index[(ant.x, ant.y)].append(ant)
        return dict(index)

    def _resolve_mating(self) -> set[int]:
        """Pair adjacent adults that both proposed MATE.

        Pairing is greedy: ants are visited in population order and each
        takes the first eligible neighbour found scanning up, down, left,
        right.  Each pair lays one egg at the initiator's cell, provided
        the population cap allows it.

        Returns:
            IDs of every ant that mated this tick.
        """
        mated: set[int] = set()
        for ant in self.ants:
            if not self._wants_mate(ant, mated):
                continue
            partner = self._find_partner(ant, mated)
            if partner is None or not self.has_room():
                continue
            genome = Genome.crossover(
                ant.genome,
                partner.genome,
                self.config.genome_noise,
                self.rng,
            )
            self.lay_egg(ant.x, ant.y, genome)
            mated.add(ant.ant_id)
            mated.add(partner.ant_id)
        return mated

    def _find_partner(self, ant: Ant, mated: set[int]) -> Ant | None:
        for dx, dy in ORTHOGONAL_OFFSETS:
            for other in self.organisms_at(ant.x + dx, ant.y + dy):
                if other is not ant and self._wants_mate(other, mated):
                    return other
        return None

    @staticmethod
    def _wants_mate(ant: Ant, mated: set[int]) -> bool:
        return (
            ant.next_action is Action.MATE
            and ant.stage is Stage.ADULT
            and ant.ant_id not in mated
        )
