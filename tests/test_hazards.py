"""
Unit tests for hazard management.

Tests cover:
- Initial hazard count per level
- Placement exclusions (player, adversaries, other hazards)
- Tick-based aging: warning flag, then removal
- Spawn probabilities at the extremes
- Cap enforcement
"""

import numpy as np
import pytest

from src.core.adversary import Adversary, reset_adversary_id_counter
from src.core.config import GameConfig, HazardConfig
from src.core.hazard import HazardCell
from src.core.world import World
from src.simulation.hazards import HazardManager


@pytest.fixture(autouse=True)
def reset_ids():
    reset_adversary_id_counter()
    yield
    reset_adversary_id_counter()


@pytest.fixture
def world() -> World:
    w = World(GameConfig())
    w.setup_level(1, "multiples")
    return w


def quiet_config(**overrides) -> HazardConfig:
    """Hazard config that never spawns on its own."""
    cfg = HazardConfig(empty_spawn_chance=0.0, extra_spawn_chance=0.0)
    for key, value in overrides.items():
        setattr(cfg, key, value)
    return cfg


class TestInit:
    @pytest.mark.parametrize("level,expected", [(1, 1), (4, 1), (5, 2), (10, 3), (30, 3)])
    def test_initial_count(self, level, expected):
        assert HazardManager().initial_count(level) == expected

    def test_init_places_hazards(self, world):
        manager = HazardManager()
        placed = manager.init(world, 10)
        assert placed == 3
        assert world.hazard_count == 3
        assert world.player.position not in world.hazard_positions()

    def test_init_clears_previous(self, world):
        world.add_hazard(HazardCell(0, 0, 5, 0))
        manager = HazardManager()
        manager.init(world, 1)
        assert world.hazard_count == 1


class TestPlacement:
    def test_excludes_player_and_adversaries(self, world):
        manager = HazardManager(HazardConfig(max_hazards=40))
        world.add_adversary(Adversary(0, 0))
        for _ in range(40):
            manager.add_hazard(world)
        positions = set(world.hazard_positions())
        assert world.player.position not in positions
        assert (0, 0) not in positions
        assert len(positions) == 28

    def test_full_board_returns_none(self, world):
        manager = HazardManager(HazardConfig(max_hazards=40))
        for _ in range(29):
            assert manager.add_hazard(world) is not None
        assert manager.add_hazard(world) is None

    def test_cap(self, world):
        manager = HazardManager(HazardConfig(max_hazards=2))
        manager.add_hazard(world)
        manager.add_hazard(world)
        assert manager.add_hazard(world) is None

    def test_lifetime_in_range(self, world):
        manager = HazardManager(HazardConfig(max_hazards=20))
        for _ in range(20):
            hazard = manager.add_hazard(world)
            assert 3 <= hazard.lifetime_ticks <= 8
            assert hazard.created_at_tick == world.tick_count


class TestAging:
    def test_warning_then_removal(self, world):
        manager = HazardManager(quiet_config())
        world.add_hazard(HazardCell(0, 0, lifetime_ticks=3, created_at_tick=0))

        world.tick_count = 1
        manager.update(world)
        assert not world.hazard_at(0, 0).expiring

        world.tick_count = 2
        manager.update(world)
        assert world.hazard_at(0, 0).expiring

        world.tick_count = 3
        spawned, expired = manager.update(world)
        assert (spawned, expired) == (0, 1)
        assert not world.is_hazard(0, 0)
        assert manager.expired_total == 1


class TestSpawnChance:
    def test_always_spawns_when_empty(self, world):
        manager = HazardManager(HazardConfig(empty_spawn_chance=1.0, extra_spawn_chance=0.0))
        spawned, _ = manager.update(world)
        assert spawned == 1
        assert world.hazard_count == 1

    def test_no_extra_when_chance_zero(self, world):
        manager = HazardManager(quiet_config())
        world.add_hazard(HazardCell(0, 0, 8, 0))
        for t in range(1, 5):
            world.tick_count = t
            assert manager.update(world) == (0, 0)

    def test_never_exceeds_cap(self, world):
        manager = HazardManager(HazardConfig(max_hazards=2, empty_spawn_chance=1.0,
                                             extra_spawn_chance=1.0,
                                             min_lifetime_ticks=100, max_lifetime_ticks=100))
        for t in range(1, 20):
            world.tick_count = t
            manager.update(world)
            assert world.hazard_count <= 2
