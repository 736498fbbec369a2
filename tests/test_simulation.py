"""Tests for formicary.simulation - config, tick phases, and the runner."""

from pathlib import Path

import numpy as np
import pytest

from formicary.brain.genome import Genome
from formicary.colony.ant import Action, Ant, Stage
from formicary.errors import ConfigError, GenomeShapeError
from formicary.simulation.config import SimulationConfig
from formicary.simulation.engine import Simulation
from formicary.simulation.runner import Runner, Viewport, spawn_food
from formicary.world.cell import CellKind


def _force(monkeypatch: pytest.MonkeyPatch, action: Action) -> None:
    """Make every non-egg ant propose ``action``."""

    def decide(self: Ant, simulation: Simulation, rng: object) -> Action:
        return Action.NONE if self.stage is Stage.EGG else action

    monkeypatch.setattr(Ant, "decide_action", decide)


class TestSimulationConfig:
    """Tests for YAML config loading and validation."""

    def test_defaults(self) -> None:
        cfg = SimulationConfig()
        assert cfg.ant_lifespan == 500
        assert cfg.max_ants == 200
        assert cfg.layer_sizes == (9, 12, 9)

    def test_from_yaml(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "test.yaml"
        yaml_file.write_text("seed: 99\nmax_ants: 30\nhidden_layers: [4, 4]\n")
        cfg = SimulationConfig.from_yaml(yaml_file)
        assert cfg.seed == 99
        assert cfg.max_ants == 30
        assert cfg.layer_sizes == (9, 4, 4, 9)
        assert cfg.ant_density == SimulationConfig().ant_density

    def test_from_empty_yaml(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "empty.yaml"
        yaml_file.write_text("")
        assert SimulationConfig.from_yaml(yaml_file) == SimulationConfig()

    def test_shipped_default_matches_dataclass(self) -> None:
        path = Path(__file__).resolve().parent.parent / "config" / "default.yaml"
        assert SimulationConfig.from_yaml(path) == SimulationConfig()

    @pytest.mark.parametrize(
        "overrides",
        [
            {"food_density": -0.1},
            {"food_density": 0.6, "terrain_density": 0.6},
            {"max_ants": 0},
            {"food_spawn_interval": 0},
            {"ant_density": -1},
            {"hidden_layers": [4, 0]},
        ],
    )
    def test_rejects_bad_values(self, overrides: dict) -> None:
        with pytest.raises(ConfigError):
            SimulationConfig(**overrides)

    @pytest.mark.parametrize("value", ["12", "[4, four]", "[4, true]"])
    def test_yaml_hidden_layers_must_be_a_list(self, tmp_path: Path, value: str) -> None:
        yaml_file = tmp_path / "bad.yaml"
        yaml_file.write_text(f"hidden_layers: {value}\n")
        with pytest.raises(ConfigError):
            SimulationConfig.from_yaml(yaml_file)


class TestConstruction:
    """Initial population and queries."""

    def test_initial_population(self, default_config: SimulationConfig) -> None:
        sim = Simulation(config=default_config)
        r = default_config.spawn_radius
        assert len(sim.ants) == default_config.ant_density
        assert len({a.ant_id for a in sim.ants}) == len(sim.ants)
        for ant in sim.ants:
            assert ant.stage is Stage.ADULT
            assert ant.health == default_config.max_ant_health
            assert -r <= ant.x < r
            assert -r <= ant.y < r
            assert ant.genome.layer_sizes == default_config.layer_sizes

    def test_genomes_are_distinct_objects(self, default_config: SimulationConfig) -> None:
        sim = Simulation(config=default_config)
        first = sim.ants[0].genome.weights[0]
        assert not any(np.shares_memory(first, a.genome.weights[0]) for a in sim.ants[1:])

    def test_seed_genome(self, default_config: SimulationConfig, rng) -> None:
        seed = Genome.random(rng, default_config.layer_sizes)
        sim = Simulation(config=default_config, seed_genome=seed)
        half = default_config.genome_noise / 2
        for ant in sim.ants:
            assert ant.genome is not seed
            for a, b in zip(seed.weights, ant.genome.weights):
                assert np.all(np.abs(a - b) <= half + 1e-12)

    def test_seed_genome_wrong_width(self, default_config: SimulationConfig, rng) -> None:
        seed = Genome.random(rng, (10, 12, 9))
        with pytest.raises(GenomeShapeError):
            Simulation(config=default_config, seed_genome=seed)

    def test_seed_genome_sets_population_shape(
        self,
        default_config: SimulationConfig,
        rng,
    ) -> None:
        seed = Genome.random(rng, (9, 5, 5, 4))
        sim = Simulation(config=default_config, seed_genome=seed)
        assert sim.layer_sizes == (9, 5, 5, 4)
        assert sim.spawn_ant(0, 0).genome.layer_sizes == (9, 5, 5, 4)
        assert all(a.genome.same_shape(seed) for a in sim.ants)

    def test_spawn_rejects_foreign_shape(self, bare_sim: Simulation) -> None:
        stranger = Genome.random(bare_sim.rng, (9, 7, 9))
        with pytest.raises(GenomeShapeError) as excinfo:
            bare_sim.spawn_ant(0, 0, stranger)
        assert excinfo.value.expected == bare_sim.config.layer_sizes
        assert excinfo.value.got == (9, 7, 9)
        assert bare_sim.ants == []

    def test_queries(self, bare_sim: Simulation) -> None:
        a = bare_sim.spawn_ant(2, 2)
        b = bare_sim.spawn_ant(2, 2, stage=Stage.EGG)
        assert bare_sim.organism_at(2, 2) is a
        assert bare_sim.organisms_at(2, 2) == [a, b]
        assert bare_sim.organism_at(0, 0) is None
        assert bare_sim.live_organisms == (a, b)
        assert isinstance(bare_sim.live_organisms, tuple)
        assert bare_sim.stage_counts() == {Stage.EGG: 1, Stage.ADULT: 1, Stage.OLD: 0}

    def test_grid_delegation(self, bare_sim: Simulation) -> None:
        assert bare_sim.classify(5, 5) is CellKind.EMPTY
        bare_sim.set_food(5, 5)
        assert bare_sim.consume_food(5, 5) is True
        assert bare_sim.consume_food(5, 5) is False


class TestMating:
    """Phase 2 pairing."""

    def test_adjacent_pair_lays_one_egg(
        self,
        bare_sim: Simulation,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        a = bare_sim.spawn_ant(0, 0)
        b = bare_sim.spawn_ant(1, 0)
        _force(monkeypatch, Action.MATE)
        bare_sim.tick()

        assert len(bare_sim.ants) == 3
        egg = bare_sim.ants[2]
        assert egg.stage is Stage.EGG
        assert (egg.x, egg.y) == (0, 0)
        # Laid in phase 2, so it ages with everyone else in phase 3
        assert egg.age == 1
        assert egg.stage_age == 1
        assert egg.health == bare_sim.config.egg_health - 1
        assert egg.genome.same_shape(a.genome)
        # Parents only paid upkeep and stayed put
        for parent, pos in ((a, (0, 0)), (b, (1, 0))):
            assert (parent.x, parent.y) == pos
            assert parent.health == 99.0
            assert parent.age == 1

    def test_mated_egg_hatches_on_schedule(
        self,
        bare_config: SimulationConfig,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        bare_config.egg_to_adult_ticks = 2
        sim = Simulation(config=bare_config)
        sim.spawn_ant(0, 0)
        sim.spawn_ant(1, 0)
        _force(monkeypatch, Action.MATE)
        sim.tick()
        egg = sim.ants[2]
        assert egg.stage is Stage.EGG
        assert egg.stage_age == 1

        _force(monkeypatch, Action.SLEEP)
        sim.tick()
        assert egg.stage is Stage.ADULT
        assert egg.health == bare_config.max_ant_health
        assert len(sim.ants) == 3

    def test_pairing_is_greedy_first_match(
        self,
        bare_sim: Simulation,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        bare_sim.spawn_ant(0, 0)
        bare_sim.spawn_ant(1, 0)
        bare_sim.spawn_ant(2, 0)
        _force(monkeypatch, Action.MATE)
        bare_sim.tick()
        assert bare_sim.stage_counts()[Stage.EGG] == 1

    def test_two_pairs_two_eggs(
        self,
        bare_sim: Simulation,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        for x in range(4):
            bare_sim.spawn_ant(x, 0)
        _force(monkeypatch, Action.MATE)
        bare_sim.tick()
        eggs = [a for a in bare_sim.ants if a.stage is Stage.EGG]
        assert [(e.x, e.y) for e in eggs] == [(0, 0), (2, 0)]

    def test_no_partner_no_egg(
        self,
        bare_sim: Simulation,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        bare_sim.spawn_ant(0, 0)
        bare_sim.spawn_ant(1, 1)  # diagonal does not count
        _force(monkeypatch, Action.MATE)
        bare_sim.tick()
        assert len(bare_sim.ants) == 2

    def test_eggs_cannot_mate(
        self,
        bare_sim: Simulation,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        bare_sim.spawn_ant(0, 0)
        egg = bare_sim.spawn_ant(1, 0, stage=Stage.EGG, health=50.0)
        egg.next_action = Action.MATE
        _force(monkeypatch, Action.MATE)
        bare_sim.tick()
        assert bare_sim.stage_counts()[Stage.EGG] == 1

    def test_cap_blocks_offspring(
        self,
        bare_config: SimulationConfig,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        bare_config.max_ants = 2
        sim = Simulation(config=bare_config)
        a = sim.spawn_ant(0, 0)
        sim.spawn_ant(1, 0)
        _force(monkeypatch, Action.MATE)
        sim.tick()
        assert len(sim.ants) == 2
        assert (a.x, a.y) == (0, 0)


class TestActAndAge:
    """Phase 3 execution and aging."""

    def test_asexual_via_tick(
        self,
        bare_sim: Simulation,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        parent = bare_sim.spawn_ant(3, 3)
        _force(monkeypatch, Action.ASEXUAL)
        bare_sim.tick()
        assert len(bare_sim.ants) == 2
        egg = bare_sim.ants[1]
        assert egg.stage is Stage.EGG
        assert egg.age == 1
        assert egg.health == bare_sim.config.egg_health - 1
        assert parent.health == 49.0

    def test_population_respects_cap(
        self,
        bare_config: SimulationConfig,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        bare_config.max_ants = 5
        sim = Simulation(config=bare_config)
        sim.spawn_ant(0, 0)
        sim.spawn_ant(5, 5)
        _force(monkeypatch, Action.ASEXUAL)
        for _ in range(10):
            sim.tick()
            assert len(sim.ants) <= 5

    def test_moves_happen_after_decisions(
        self,
        bare_sim: Simulation,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        a = bare_sim.spawn_ant(0, 0)
        b = bare_sim.spawn_ant(0, 1)
        _force(monkeypatch, Action.RIGHT)
        bare_sim.tick()
        assert (a.x, a.y) == (1, 0)
        assert (b.x, b.y) == (1, 1)


class TestCull:
    """Phase 4 removal."""

    def test_adult_turns_old_and_is_removed(
        self,
        bare_sim: Simulation,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        elder = bare_sim.spawn_ant(0, 0)
        elder.age = bare_sim.config.ant_lifespan - 1
        young = bare_sim.spawn_ant(10, 10)
        _force(monkeypatch, Action.SLEEP)
        bare_sim.tick()
        assert elder.stage is Stage.OLD
        assert bare_sim.live_organisms == (young,)

    def test_starved_ant_removed(
        self,
        bare_sim: Simulation,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        bare_sim.spawn_ant(0, 0, health=1.0)
        _force(monkeypatch, Action.NONE)
        bare_sim.tick()
        assert bare_sim.ants == []

    def test_killed_egg_removed(
        self,
        bare_sim: Simulation,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        bare_sim.spawn_ant(0, 0)
        bare_sim.spawn_ant(1, 0, stage=Stage.EGG, health=20.0)
        _force(monkeypatch, Action.ATTACK)
        bare_sim.tick()
        assert [a.stage for a in bare_sim.ants] == [Stage.ADULT]

    def test_survivors_always_healthy(self, default_config: SimulationConfig) -> None:
        sim = Simulation(config=default_config)
        for _ in range(60):
            sim.tick()
            assert len(sim.ants) <= default_config.max_ants
            for ant in sim.ants:
                assert ant.health > 0
                assert ant.stage is not Stage.OLD


class TestDeterminism:
    """Same seed, same history."""

    def test_same_seed_same_state(self) -> None:
        cfg = SimulationConfig(seed=777, ant_density=30, spawn_radius=5)
        sim_a = Simulation(config=cfg)
        sim_b = Simulation(config=cfg)
        sim_a.run(40)
        sim_b.run(40)

        assert len(sim_a.ants) == len(sim_b.ants)
        for ant_a, ant_b in zip(sim_a.ants, sim_b.ants, strict=True):
            assert ant_a.ant_id == ant_b.ant_id
            assert (ant_a.x, ant_a.y) == (ant_b.x, ant_b.y)
            assert ant_a.health == ant_b.health
            assert ant_a.stage == ant_b.stage
            assert ant_a.next_action == ant_b.next_action
        assert sim_a.world.cells == sim_b.world.cells


class TestRunner:
    """Caller-owned tick counter and food spawning."""

    def test_spawn_food_inside_viewport(self, bare_sim: Simulation) -> None:
        view = Viewport(left=-3, top=10, width=4, height=2)
        placed = spawn_food(bare_sim, view, 20, bare_sim.rng)
        assert len(placed) == 20
        for x, y in placed:
            assert -3 <= x < 1
            assert 10 <= y < 12
            assert bare_sim.classify(x, y) is CellKind.FOOD

    def test_centred_viewport(self) -> None:
        view = Viewport.centred(0, 0, 10)
        assert (view.left, view.top, view.width, view.height) == (-10, -10, 21, 21)

    @pytest.mark.parametrize(("width", "height"), [(0, 5), (5, 0), (-1, -1)])
    def test_empty_viewport_rejected(self, width: int, height: int) -> None:
        with pytest.raises(ValueError):
            Viewport(left=0, top=0, width=width, height=height)

    def test_periodic_spawn(self, bare_config: SimulationConfig) -> None:
        bare_config.food_spawn_interval = 3
        bare_config.food_spawn_count = 4
        runner = Runner(Simulation(config=bare_config))
        view = Viewport(left=0, top=0, width=5, height=5)

        def food_in_view() -> int:
            return sum(
                runner.simulation.classify(x, y) is CellKind.FOOD
                for x in range(5)
                for y in range(5)
            )

        runner.run(2, view)
        assert runner.tick_count == 2
        assert food_in_view() == 0
        runner.advance(view)
        assert runner.tick_count == 3
        assert 1 <= food_in_view() <= 4
