"""
Hazard management for Number Nosher.

Hazards age in coordinator ticks. Each tick:
  1. Expired hazards (remaining <= 0) are removed.
  2. Hazards in their last tick are flagged as expiring.
  3. A new hazard may appear: `empty_spawn_chance` when none exist,
     `extra_spawn_chance / count` while below the cap.

New hazards never cover the player, an adversary or another hazard.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

import numpy as np

from src.core.config import HazardConfig
from src.core.hazard import HazardCell

if TYPE_CHECKING:
    from src.core.world import World


class HazardManager:
    """
    Spawns, ages and removes hazard cells.

    Attributes:
        config: Hazard tuning (cap, lifetime range, spawn chances).
        spawned_total: Hazards created since construction.
        expired_total: Hazards removed by expiry since construction.
    """

    def __init__(self, config: Optional[HazardConfig] = None):
        self.config = config or HazardConfig()
        self.spawned_total: int = 0
        self.expired_total: int = 0

    def initial_count(self, level: int) -> int:
        return min(self.config.max_hazards, 1 + level // 5)

    def init(self, world: World, level: int) -> int:
        """
        Clear hazards and place the level's initial set.

        Returns:
            Number of hazards placed.
        """
        world.clear_hazards()
        placed = 0
        for _ in range(self.initial_count(level)):
            if self.add_hazard(world) is not None:
                placed += 1
        return placed

    def add_hazard(self, world: World) -> Optional[HazardCell]:
        """Place one hazard on a free cell. None when capped or no cell is free."""
        if world.hazard_count >= self.config.max_hazards:
            return None

        exclude = set(world.hazard_positions())
        exclude.add(world.player.position)
        exclude.update(world.adversary_positions())

        pos = world.grid.random_position(world.rng, exclude)
        if pos in exclude:
            return None

        lifetime = int(
            world.rng.integers(self.config.min_lifetime_ticks, self.config.max_lifetime_ticks + 1)
        )
        hazard = HazardCell(
            x=pos[0],
            y=pos[1],
            lifetime_ticks=lifetime,
            created_at_tick=world.tick_count,
        )
        world.add_hazard(hazard)
        self.spawned_total += 1
        return hazard

    def update(self, world: World) -> tuple[int, int]:
        """
        Age hazards by the world's current tick and maybe spawn one.

        Returns:
            (spawned, expired) for this tick.
        """
        tick = world.tick_count
        expired: list[tuple[int, int]] = []

        for pos, hazard in world.hazards.items():
            remaining = hazard.remaining_ticks(tick)
            if remaining <= 0:
                expired.append(pos)
            elif remaining <= self.config.flash_ticks and not hazard.expiring:
                hazard.expiring = True
                world.renderer.mark_hazard_expiring(hazard.x, hazard.y, True)

        for pos in expired:
            world.remove_hazard(pos)
        self.expired_total += len(expired)

        count = world.hazard_count
        if count == 0:
            chance = self.config.empty_spawn_chance
        elif count < self.config.max_hazards:
            chance = self.config.extra_spawn_chance / count
        else:
            chance = 0.0

        spawned = 0
        if chance > 0 and world.rng.random() < chance:
            if self.add_hazard(world) is not None:
                spawned = 1

        return spawned, len(expired)

    def clear(self, world: World) -> None:
        world.clear_hazards()
