"""
Unit tests for the tick coordinator.

Tests cover:
- Conflict resolution (one winner per contested cell, exits pass through)
- State machine: start / pause / resume / stop
- Tick driver on the game clock at the level's rate
- Phase order within a tick
- Adversaries never share a cell or stand on a hazard after a tick
- Accumulated statistics
"""

import numpy as np
import pytest

from src.core.adversary import Adversary, AdversaryType, reset_adversary_id_counter
from src.core.config import GameConfig
from src.core.hazard import HazardCell
from src.core.world import World
from src.simulation.behaviors import PlannedMove
from src.simulation.clock import GameClock
from src.simulation.engine import (
    CoordinatorState,
    TickCoordinator,
    TickStats,
    resolve_conflicts,
)
from src.utils.spatial import DOWN, LEFT, RIGHT, UP


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def reset_ids():
    reset_adversary_id_counter()
    yield
    reset_adversary_id_counter()


@pytest.fixture
def config() -> GameConfig:
    cfg = GameConfig()
    cfg.hazard.empty_spawn_chance = 0.0
    cfg.hazard.extra_spawn_chance = 0.0
    return cfg


@pytest.fixture
def world(config) -> World:
    w = World(config)
    w.setup_level(1, "multiples")
    return w


@pytest.fixture
def coordinator(world, config) -> TickCoordinator:
    return TickCoordinator(world, GameClock(), config)


def move(aid: int, cur: tuple[int, int], tgt: tuple[int, int], direction: str = UP,
         off_board: bool = False) -> PlannedMove:
    return PlannedMove(aid, cur[0], cur[1], tgt[0], tgt[1], direction, off_board=off_board)


# ---------------------------------------------------------------------------
# Conflict resolution
# ---------------------------------------------------------------------------

class TestResolveConflicts:
    def test_no_conflicts_unchanged(self):
        moves = [move(0, (0, 0), (1, 0)), move(1, (3, 3), (3, 2))]
        resolved, conflicts = resolve_conflicts(moves, np.random.default_rng(0))
        assert conflicts == 0
        assert sorted(m.adversary_id for m in resolved) == [0, 1]
        assert all(not m.stayed for m in resolved)

    def test_one_winner_per_target(self):
        for seed in range(20):
            moves = [
                move(0, (1, 2), (2, 2), RIGHT),
                move(1, (3, 2), (2, 2), LEFT),
                move(2, (2, 1), (2, 2), DOWN),
            ]
            resolved, conflicts = resolve_conflicts(moves, np.random.default_rng(seed))
            assert conflicts == 1
            assert len(resolved) == 3
            winners = [m for m in resolved if m.target == (2, 2)]
            losers = [m for m in resolved if m.stayed]
            assert len(winners) == 1
            assert len(losers) == 2
            for m in losers:
                assert m.target == m.current

    def test_loser_keeps_direction(self):
        moves = [move(0, (1, 2), (2, 2), RIGHT), move(1, (3, 2), (2, 2), LEFT)]
        resolved, _ = resolve_conflicts(moves, np.random.default_rng(1))
        by_id = {m.adversary_id: m for m in resolved}
        assert by_id[0].direction == RIGHT
        assert by_id[1].direction == LEFT

    def test_winner_is_random(self):
        winners = set()
        for seed in range(40):
            moves = [move(0, (1, 2), (2, 2)), move(1, (3, 2), (2, 2))]
            resolved, _ = resolve_conflicts(moves, np.random.default_rng(seed))
            winners.add(next(m.adversary_id for m in resolved if not m.stayed))
        assert winners == {0, 1}

    def test_off_board_moves_pass_through(self):
        moves = [
            move(0, (2, 0), (2, 0), UP, off_board=True),
            move(1, (2, 1), (2, 0), UP),
        ]
        resolved, conflicts = resolve_conflicts(moves, np.random.default_rng(0))
        assert conflicts == 0
        assert not any(m.stayed for m in resolved)
        assert resolved[-1].off_board


# ---------------------------------------------------------------------------
# State machine
# ---------------------------------------------------------------------------

class TestStateMachine:
    def test_initial_idle(self, coordinator):
        assert coordinator.state is CoordinatorState.IDLE
        assert coordinator.tick() is None

    def test_start_sets_rate_and_runs(self, coordinator, world):
        coordinator.start(3)
        assert coordinator.state is CoordinatorState.RUNNING
        assert coordinator.tick_rate_ms == 2300
        coordinator.advance(2300)
        assert world.tick_count == 1
        coordinator.advance(2300 * 4)
        assert world.tick_count == 5

    def test_pause_freezes_time(self, coordinator, world):
        coordinator.start(1)
        coordinator.advance(2500)
        coordinator.pause()
        assert coordinator.advance(100000) == 0
        assert world.tick_count == 1
        coordinator.resume()
        coordinator.advance(2500)
        assert world.tick_count == 2

    def test_pause_keeps_state(self, coordinator, world):
        coordinator.start(1)
        world.add_adversary(Adversary(1, 1))
        world.add_hazard(HazardCell(4, 4, 8, 0))
        coordinator.pause()
        assert world.adversary_count == 1
        assert world.hazard_count == 1
        assert coordinator.state is CoordinatorState.PAUSED

    def test_resume_only_from_paused(self, coordinator):
        coordinator.resume()
        assert coordinator.state is CoordinatorState.IDLE

    def test_stop_cancels_driver_and_spawns(self, coordinator, world):
        coordinator.start(1)
        coordinator.advance(2500 * 2)
        coordinator.spawner.start_spawn(world)
        coordinator.stop()
        assert coordinator.state is CoordinatorState.IDLE
        assert coordinator.spawner.pending == []
        coordinator.clock.advance(100000)
        assert world.tick_count == 2
        assert world.adversary_count == 0

    def test_restart_resets_tick_count(self, coordinator, world):
        coordinator.start(1)
        coordinator.advance(2500 * 3)
        coordinator.start(2)
        assert world.tick_count == 0
        coordinator.advance(2400)
        assert world.tick_count == 1

    def test_not_playing_skips_tick(self, coordinator, world):
        coordinator.start(1)
        coordinator.is_playing = lambda: False
        coordinator.advance(2500 * 3)
        assert world.tick_count == 0


# ---------------------------------------------------------------------------
# Tick phases
# ---------------------------------------------------------------------------

class TestTick:
    def test_first_adversary_appears(self, coordinator, world):
        coordinator.start(1)
        coordinator.advance(2500 * 2)  # tick 2: 5000 ms >= 3000 ms first-spawn delay
        assert len(coordinator.spawner.pending) == 1
        coordinator.advance(500)
        assert world.adversary_count == 1

    def test_linear_adversary_walks_and_exits(self, coordinator, world):
        coordinator.start(1)
        world.player.set_position(0, 0)
        adv = Adversary(4, 2, AdversaryType.LINEAR, direction=DOWN)
        coordinator.model.add(world, adv)
        coordinator.config.adversary.linear_turn_chance = 0.0

        coordinator.tick()
        assert adv.position == (4, 3)
        coordinator.tick()
        assert adv.position == (4, 4)
        stats = coordinator.tick()
        assert stats.exited == 1
        assert world.adversary_count == 0

    def test_collision_handler_called(self, coordinator, world):
        calls = []
        coordinator.collision_handler = lambda: calls.append(world.tick_count) or False
        coordinator.start(1)
        coordinator.advance(2500 * 2)
        assert calls == [1, 2]

    def test_default_collision_check(self, coordinator, world):
        coordinator.start(1)
        px, py = world.player.position
        world.add_hazard(HazardCell(px - 1, py, 10, 0))
        world.add_hazard(HazardCell(px + 1, py, 10, 0))
        world.add_hazard(HazardCell(px, py - 1, 10, 0))
        coordinator.model.add(world, Adversary(px, py + 1, AdversaryType.PURSUER))
        stats = coordinator.tick()
        assert stats.player_caught

    def test_on_tick_hook(self, coordinator):
        seen = []
        coordinator.on_tick = lambda stats, coord: seen.append(stats.tick)
        coordinator.start(1)
        coordinator.advance(2500 * 3)
        assert seen == [1, 2, 3]

    def test_invariants_hold_over_many_ticks(self, world):
        config = world.config
        config.hazard.empty_spawn_chance = 0.3
        config.hazard.extra_spawn_chance = 0.05
        world.setup_level(10, "multiples")
        coordinator = TickCoordinator(world, GameClock(), config)
        coordinator.hazards.init(world, 10)
        coordinator.start(10)
        for _ in range(300):
            coordinator.advance(coordinator.tick_rate_ms)
            positions = world.adversary_positions()
            assert len(positions) == len(set(positions))
            for pos in positions:
                assert world.is_valid_position(*pos)
                assert not world.is_hazard(*pos)
            assert world.hazard_count <= config.hazard.max_hazards
            assert world.adversary_count <= 3


# ---------------------------------------------------------------------------
# Accumulated statistics
# ---------------------------------------------------------------------------

class TestAccumulatedStats:
    def test_totals(self, coordinator):
        coordinator.start(1)
        coordinator.advance(2500 * 4)
        totals = coordinator.get_accumulated_stats()
        assert totals["ticks"] == 4
        assert totals["spawns_started"] >= 1
        assert "moved" in totals

    def test_reset(self, coordinator):
        coordinator.start(1)
        coordinator.advance(2500 * 2)
        old = coordinator.reset_accumulated_stats()
        assert len(old) == 2
        assert all(isinstance(s, TickStats) for s in old)
        assert coordinator.get_accumulated_stats() == {"ticks": 0}
