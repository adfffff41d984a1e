"""
Adversary spawner for Number Nosher.

Admission is checked once per coordinator tick. Elapsed times are measured
in tick time (ticks x tick rate), so a paused game never counts toward a
spawn. Rules, in order:
  - never exceed the level's adversary cap;
  - the first spawn of a level waits `first_spawn_delay_ms(level)`;
  - later spawns respect a cooldown, unless the board has been empty of
    adversaries for `max_time_without_adversary_ms` (forced spawn).

An admitted spawn first shows a warning marker on a free edge cell; the
adversary materialises `warning_ms` later on the game clock, heading
inward. If the cell became a hazard in the meantime the spawn is dropped;
if another adversary walked onto it, only one of the two survives.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Optional


from src.core.adversary import Adversary, AdversaryType
from src.core.config import SpawnConfig
from src.simulation.clock import GameClock, ScheduledTask
from src.simulation.levels import first_spawn_delay_ms, max_adversaries, pick_type
from src.utils.spatial import DOWN, LEFT, RIGHT, UP

if TYPE_CHECKING:
    from src.core.world import World
    from src.simulation.adversaries import AdversaryModel


@dataclass
class PendingSpawn:
    """A spawn waiting out its warning delay."""
    x: int
    y: int
    direction: str
    type: AdversaryType
    task: Optional[ScheduledTask] = None

    @property
    def position(self) -> tuple[int, int]:
        return (self.x, self.y)


def edge_entries(cols: int, rows: int) -> list[tuple[int, int, str]]:
    """Every edge cell with the inward heading for entering from it."""
    entries = []
    for x in range(cols):
        entries.append((x, 0, DOWN))
    for x in range(cols):
        entries.append((x, rows - 1, UP))
    for y in range(rows):
        entries.append((0, y, RIGHT))
    for y in range(rows):
        entries.append((cols - 1, y, LEFT))
    return entries


class AdversarySpawner:
    """
    Decides when and where adversaries enter the board.

    Attributes:
        config: Spawn timing.
        pending: Spawns currently showing their warning.
        first_spawn_done: An adversary has existed this level.
        last_spawn_tick: Tick of the most recent admitted spawn.
        last_present_tick: Last tick at which any adversary existed.
        on_spawned: Called with each adversary that materialises.
    """

    def __init__(
        self,
        clock: GameClock,
        model: AdversaryModel,
        config: Optional[SpawnConfig] = None,
    ):
        self.clock = clock
        self.model = model
        self.config = config or SpawnConfig()

        self.level: int = 1
        self.pending: list[PendingSpawn] = []
        self.first_spawn_done: bool = False
        self.last_spawn_tick: int = 0
        self.last_present_tick: int = 0
        self.spawned_total: int = 0
        self.failed_total: int = 0

        self.on_spawned: Optional[Callable[[Adversary], None]] = None

    def init(self, world: World, level: int) -> None:
        """Reset per-level state. Cancels anything still pending."""
        self.cancel_pending(world)
        self.level = level
        self.first_spawn_done = False
        self.last_spawn_tick = 0
        self.last_present_tick = 0
        self.spawned_total = 0
        self.failed_total = 0

    # ------------------------------------------------------------------
    # Admission
    # ------------------------------------------------------------------

    def check(self, world: World, current_tick: int, tick_rate_ms: int) -> bool:
        """
        Per-tick admission check.

        Returns:
            True if a spawn was started (its warning is now showing).
        """
        count = world.adversary_count
        if count > 0:
            self.last_present_tick = current_tick
            self.first_spawn_done = True

        if count >= max_adversaries(self.level):
            return False

        elapsed_ms = current_tick * tick_rate_ms
        if not self.first_spawn_done:
            if elapsed_ms < first_spawn_delay_ms(self.level, self.config):
                return False

        ms_since_spawn = (current_tick - self.last_spawn_tick) * tick_rate_ms
        ms_since_present = (current_tick - self.last_present_tick) * tick_rate_ms

        forced = (
            self.first_spawn_done
            and count == 0
            and ms_since_present >= self.config.max_time_without_adversary_ms
        )
        if not forced and self.first_spawn_done and ms_since_spawn < self.config.cooldown_ms:
            return False

        self.start_spawn(world)
        self.last_spawn_tick = current_tick
        return True

    def pick_edge(self, world: World) -> tuple[int, int, str]:
        """Random edge cell free of hazards, adversaries and pending spawns."""
        entries = edge_entries(world.cols, world.rows)
        taken = {p.position for p in self.pending}
        available = [
            (x, y, d) for x, y, d in entries
            if not world.is_hazard(x, y)
            and not world.is_adversary_at(x, y)
            and (x, y) not in taken
        ]
        pool = available or entries
        return pool[int(world.rng.integers(0, len(pool)))]

    def start_spawn(self, world: World) -> PendingSpawn:
        x, y, direction = self.pick_edge(world)
        adv_type = pick_type(self.level, world.rng)

        world.renderer.show_spawn_warning(x, y, True)
        spawn = PendingSpawn(x=x, y=y, direction=direction, type=adv_type)
        spawn.task = self.clock.call_later(
            self.config.warning_ms, lambda: self.complete_spawn(world, spawn)
        )
        self.pending.append(spawn)
        return spawn

    def complete_spawn(self, world: World, spawn: PendingSpawn) -> Optional[Adversary]:
        """
        Materialise a pending spawn. Drops it if the cell is now a hazard.

        A cell shared with an adversary that walked onto it is resolved
        at once; returns None if the newcomer does not survive.
        """
        if spawn in self.pending:
            self.pending.remove(spawn)
        world.renderer.show_spawn_warning(spawn.x, spawn.y, False)

        if world.is_hazard(spawn.x, spawn.y):
            self.failed_total += 1
            return None

        adversary = Adversary(
            spawn.x,
            spawn.y,
            type=spawn.type,
            direction=spawn.direction,
            spawn_tick=world.tick_count,
        )
        self.model.add(world, adversary)
        self.spawned_total += 1
        # An adversary may have walked onto the cell during the warning
        if self.model.check_mutual_collisions(world, world.rng):
            world.renderer.update_adversaries(world.get_adversaries())
            if adversary.id not in world.adversaries:
                return None

        if self.on_spawned is not None:
            self.on_spawned(adversary)
        return adversary

    # ------------------------------------------------------------------
    # Cancellation
    # ------------------------------------------------------------------

    def cancel_pending(self, world: World) -> None:
        """Drop every pending spawn and hide its warning marker."""
        for spawn in self.pending:
            if spawn.task is not None:
                spawn.task.cancel()
            world.renderer.show_spawn_warning(spawn.x, spawn.y, False)
        self.pending.clear()

    def clear(self, world: World) -> None:
        self.cancel_pending(world)
        self.last_spawn_tick = 0
