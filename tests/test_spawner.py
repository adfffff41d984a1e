"""
Unit tests for the adversary spawner.

Tests cover:
- Edge entry cells and inward headings
- First-spawn delay, cooldown and the forced spawn on an empty board
- Per-level adversary cap
- Warning delay on the game clock; drop when the cell becomes a hazard
- A cell another adversary walked onto keeps a single adversary
- Edge selection avoiding hazards, adversaries and pending spawns
- Cancelling pending spawns
"""

import numpy as np
import pytest

from src.core.adversary import Adversary, AdversaryType, reset_adversary_id_counter
from src.core.collaborators import Renderer
from src.core.config import GameConfig
from src.core.hazard import HazardCell
from src.core.world import World
from src.simulation.adversaries import AdversaryModel
from src.simulation.clock import GameClock
from src.simulation.spawner import AdversarySpawner, edge_entries
from src.utils.spatial import DOWN, LEFT, RIGHT, UP


class WarningRenderer(Renderer):
    def __init__(self):
        self.warnings: dict[tuple[int, int], bool] = {}

    def show_spawn_warning(self, x: int, y: int, visible: bool) -> None:
        self.warnings[(x, y)] = visible

    @property
    def visible(self) -> list[tuple[int, int]]:
        return [pos for pos, shown in self.warnings.items() if shown]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def reset_ids():
    reset_adversary_id_counter()
    yield
    reset_adversary_id_counter()


@pytest.fixture
def renderer() -> WarningRenderer:
    return WarningRenderer()


@pytest.fixture
def world(renderer) -> World:
    w = World(GameConfig(), renderer=renderer)
    w.setup_level(1, "multiples")
    return w


@pytest.fixture
def clock() -> GameClock:
    return GameClock()


@pytest.fixture
def spawner(clock, world) -> AdversarySpawner:
    s = AdversarySpawner(clock, AdversaryModel())
    s.init(world, 1)
    return s


RATE = 1000


# ---------------------------------------------------------------------------
# Edges
# ---------------------------------------------------------------------------

class TestEdges:
    def test_entry_count(self):
        assert len(edge_entries(6, 5)) == 2 * 6 + 2 * 5

    def test_headings_point_inward(self):
        for x, y, direction in edge_entries(6, 5):
            if direction == DOWN:
                assert y == 0
            elif direction == UP:
                assert y == 4
            elif direction == RIGHT:
                assert x == 0
            else:
                assert direction == LEFT
                assert x == 5

    def test_pick_edge_avoids_blocked(self, world, spawner):
        blocked = [(x, y) for x, y, _ in edge_entries(6, 5) if (x, y) != (5, 4)]
        for i, (x, y) in enumerate(blocked):
            if i % 2:
                world.add_hazard(HazardCell(x, y, 10, 0))
            else:
                world.add_adversary(Adversary(x, y))
        x, y, direction = spawner.pick_edge(world)
        assert (x, y) == (5, 4)
        assert direction in (UP, LEFT)

    def test_pick_edge_falls_back_when_all_blocked(self, world, spawner):
        for x, y, _ in edge_entries(6, 5):
            if not world.is_hazard(x, y):
                world.add_hazard(HazardCell(x, y, 10, 0))
        x, y, _ = spawner.pick_edge(world)
        assert x in (0, 5) or y in (0, 4)


# ---------------------------------------------------------------------------
# Admission timing
# ---------------------------------------------------------------------------

class TestAdmission:
    def test_first_spawn_waits_for_delay(self, world, spawner):
        # level 1 first-spawn delay is 3000 ms
        assert spawner.check(world, 1, RATE) is False
        assert spawner.check(world, 2, RATE) is False
        assert spawner.check(world, 3, RATE) is True
        assert len(spawner.pending) == 1

    def test_cap_blocks_spawn(self, world, spawner):
        world.add_adversary(Adversary(2, 2))
        assert spawner.check(world, 10, RATE) is False

    def test_cooldown_after_first_spawn(self, world, spawner, clock):
        assert spawner.check(world, 3, RATE)
        clock.advance(500)
        assert spawner.check(world, 4, RATE) is False  # capped, marks presence
        world.clear_adversaries()
        assert spawner.check(world, 5, RATE) is False
        assert spawner.check(world, 6, RATE) is True

    def test_cooldown_elapsed(self, world, clock):
        s = AdversarySpawner(clock, AdversaryModel())
        s.init(world, 4)  # cap 2
        assert s.check(world, 3, RATE)
        clock.advance(500)
        assert world.adversary_count == 1
        assert s.check(world, 4, RATE) is False
        assert s.check(world, 5, RATE) is False
        assert s.check(world, 6, RATE) is True

    def test_forced_spawn_on_empty_board(self, world, spawner, clock):
        spawner.config.cooldown_ms = 100000
        assert spawner.check(world, 3, RATE)
        clock.advance(500)
        spawner.check(world, 4, RATE)  # adversary present at tick 4
        world.clear_adversaries()
        for tick in range(5, 9):
            assert spawner.check(world, tick, RATE) is False
        assert spawner.check(world, 9, RATE) is True

    def test_init_resets_counters(self, world, spawner, clock):
        spawner.check(world, 3, RATE)
        clock.advance(500)
        spawner.init(world, 2)
        assert spawner.first_spawn_done is False
        assert spawner.spawned_total == 0
        assert spawner.level == 2


# ---------------------------------------------------------------------------
# Warning and materialisation
# ---------------------------------------------------------------------------

class TestMaterialise:
    def test_warning_then_adversary(self, world, spawner, clock, renderer):
        spawned = []
        spawner.on_spawned = spawned.append
        spawner.check(world, 3, RATE)
        pending = spawner.pending[0]
        assert renderer.visible == [pending.position]
        assert world.adversary_count == 0

        clock.advance(499)
        assert world.adversary_count == 0
        clock.advance(1)

        adv = world.get_adversaries()[0]
        assert adv.position == pending.position
        assert adv.direction == pending.direction
        assert adv.type is AdversaryType.LINEAR
        assert spawned == [adv]
        assert renderer.visible == []
        assert spawner.pending == []
        assert spawner.spawned_total == 1

    def test_dropped_when_cell_becomes_hazard(self, world, spawner, clock, renderer):
        spawner.check(world, 3, RATE)
        pending = spawner.pending[0]
        world.add_hazard(HazardCell(pending.x, pending.y, 5, 0))
        clock.advance(500)
        assert world.adversary_count == 0
        assert spawner.failed_total == 1
        assert renderer.visible == []

    def test_occupied_cell_keeps_one_adversary(self, world, spawner, clock):
        spawner.check(world, 3, RATE)
        pending = spawner.pending[0]
        walker = Adversary(pending.x, pending.y, type=AdversaryType.LINEAR)
        world.add_adversary(walker)
        clock.advance(500)
        assert world.adversary_count == 1
        assert len(world.adversaries_at(pending.x, pending.y)) == 1
        assert spawner.spawned_total == 1

    def test_pursuer_on_cell_beats_newcomer(self, world, spawner, clock):
        spawned = []
        spawner.on_spawned = spawned.append
        spawner.check(world, 3, RATE)
        pending = spawner.pending[0]
        pursuer = Adversary(pending.x, pending.y, type=AdversaryType.PURSUER)
        world.add_adversary(pursuer)
        clock.advance(500)
        assert world.get_adversaries() == [pursuer]
        assert spawned == []

    def test_cancel_pending(self, world, spawner, clock, renderer):
        spawner.check(world, 3, RATE)
        spawner.cancel_pending(world)
        clock.advance(1000)
        assert world.adversary_count == 0
        assert renderer.visible == []
        assert spawner.pending == []
