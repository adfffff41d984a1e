"""
Tick Coordinator for Number Nosher.

Drives the game one tick at a time on the game clock. Each tick runs a
fixed phase order:
  1. Spawner admission check (may start a pending spawn)
  2. Hazard aging, expiry and probabilistic spawn
  3. Adversary plan -> resolve conflicts -> execute -> despawn exits
     -> mutual collisions
  4. Player / adversary collision check
  5. Autopilot replanning around the new adversary positions

Planning reads the world without mutating it, so every adversary moves
"simultaneously" even though execution is sequential.

State machine: IDLE -> RUNNING <-> PAUSED -> IDLE.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Optional

import numpy as np

from src.core.config import GameConfig
from src.core.world import World
from src.simulation.adversaries import AdversaryModel, MoveOutcome
from src.simulation.behaviors import PlannedMove
from src.simulation.clock import GameClock, ScheduledTask
from src.simulation.hazards import HazardManager
from src.simulation.levels import tick_rate_ms
from src.simulation.pathfinding import Autopilot
from src.simulation.spawner import AdversarySpawner


# ---------------------------------------------------------------------------
# Tick statistics - lightweight counters for one tick
# ---------------------------------------------------------------------------

@dataclass
class TickStats:
    """Statistics collected during a single tick."""
    tick: int = 0
    spawn_started: bool = False
    hazards_spawned: int = 0
    hazards_expired: int = 0
    moves_planned: int = 0
    conflicts: int = 0
    moved: int = 0
    stayed: int = 0
    exited: int = 0
    eliminated: int = 0
    restored: int = 0
    player_caught: bool = False
    path_active: bool = False


class CoordinatorState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"


# ---------------------------------------------------------------------------
# Conflict resolution
# ---------------------------------------------------------------------------

def resolve_conflicts(
    moves: list[PlannedMove],
    rng: np.random.Generator,
) -> tuple[list[PlannedMove], int]:
    """
    Settle moves that claim the same target cell.

    Moves are grouped by target. A singleton group passes unchanged; in a
    contested group one claimant, chosen uniformly, keeps its move and the
    rest stay where they are (direction kept, `stayed=True`). Off-board
    moves claim no cell and always pass.

    Returns:
        (resolved moves, number of contested cells)
    """
    groups: dict[tuple[int, int], list[PlannedMove]] = {}
    exits: list[PlannedMove] = []
    for move in moves:
        if move.off_board:
            exits.append(move)
            continue
        groups.setdefault(move.target, []).append(move)

    resolved: list[PlannedMove] = []
    conflicts = 0
    for group in groups.values():
        if len(group) == 1:
            resolved.append(group[0])
            continue
        conflicts += 1
        winner = group[int(rng.integers(0, len(group)))]
        resolved.append(winner)
        for move in group:
            if move is not winner:
                resolved.append(
                    replace(move, target_x=move.current_x, target_y=move.current_y, stayed=True)
                )

    resolved.extend(exits)
    return resolved, conflicts


# ---------------------------------------------------------------------------
# Tick Coordinator
# ---------------------------------------------------------------------------

class TickCoordinator:
    """
    Owns the periodic tick and the components it sequences.

    Attributes:
        world: The shared game state.
        clock: Game clock the tick driver is scheduled on.
        model: Adversary movement model.
        spawner: Adversary admission and edge entry.
        hazards: Hazard aging and placement.
        autopilot: Player path execution.
        state: IDLE, RUNNING or PAUSED.
        tick_rate_ms: Milliseconds between ticks for the current level.
        is_playing: Hook; a tick is skipped when it returns False.
        collision_handler: Hook; checks and handles a player collision,
            returns True if the player was caught.
        on_tick: Optional callback invoked after each tick(stats, coordinator).
    """

    def __init__(
        self,
        world: World,
        clock: Optional[GameClock] = None,
        config: Optional[GameConfig] = None,
        autopilot: Optional[Autopilot] = None,
    ):
        self.world = world
        self.config = config or world.config
        self.clock = clock or GameClock()

        self.model = AdversaryModel(self.config.adversary, self.config.generator)
        self.spawner = AdversarySpawner(self.clock, self.model, self.config.spawn)
        self.hazards = HazardManager(self.config.hazard)
        self.autopilot = autopilot or Autopilot(
            self.clock, self.config.path.step_delay_ms, world.renderer
        )

        self.state = CoordinatorState.IDLE
        self.tick_rate_ms: int = tick_rate_ms(1, self.config.tick)
        self.level: int = 1

        self.is_playing: Callable[[], bool] = lambda: True
        self.collision_handler: Optional[Callable[[], bool]] = None
        self.on_tick: Optional[Callable[[TickStats, "TickCoordinator"], None]] = None

        self.tick_stats = TickStats()
        self._accumulated_tick_stats: list[TickStats] = []
        self._driver: Optional[ScheduledTask] = None

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------

    @property
    def running(self) -> bool:
        return self.state is CoordinatorState.RUNNING

    @property
    def current_tick(self) -> int:
        return self.world.tick_count

    def start(self, level: int) -> None:
        """Set the level's tick rate, reset the counter and begin ticking."""
        self._cancel_driver()
        self.level = level
        self.tick_rate_ms = tick_rate_ms(level, self.config.tick)
        self.world.tick_count = 0
        self.spawner.init(self.world, level)
        self.state = CoordinatorState.RUNNING
        self._schedule_driver()

    def pause(self) -> None:
        """Stop the driver. Tick count, adversaries, hazards and pending spawns are kept."""
        if self.state is not CoordinatorState.RUNNING:
            return
        self._cancel_driver()
        self.state = CoordinatorState.PAUSED

    def resume(self) -> None:
        if self.state is not CoordinatorState.PAUSED:
            return
        self.state = CoordinatorState.RUNNING
        self._schedule_driver()

    def stop(self) -> None:
        """Cancel the driver, every pending spawn and the autopilot."""
        self._cancel_driver()
        self.spawner.cancel_pending(self.world)
        self.autopilot.cancel_path()
        self.state = CoordinatorState.IDLE

    def advance(self, ms: int) -> int:
        """
        Forward elapsed time to the game clock.

        Time only flows while RUNNING, so a paused game neither ticks nor
        completes spawn warnings or autopilot steps.

        Returns:
            Number of clock callbacks executed.
        """
        if self.state is not CoordinatorState.RUNNING:
            return 0
        return self.clock.advance(ms)

    def _schedule_driver(self) -> None:
        self._driver = self.clock.call_every(self.tick_rate_ms, self.tick)

    def _cancel_driver(self) -> None:
        if self._driver is not None:
            self._driver.cancel()
            self._driver = None

    # ------------------------------------------------------------------
    # Core tick
    # ------------------------------------------------------------------

    def tick(self) -> Optional[TickStats]:
        """
        Execute one game tick.

        Returns:
            TickStats for this tick, or None when the tick was a no-op
            (coordinator not running or the session not playing).
        """
        if self.state is not CoordinatorState.RUNNING or not self.is_playing():
            return None

        world = self.world
        world.tick_count += 1
        stats = TickStats(tick=world.tick_count)

        # --- 1. Spawner admission ---
        stats.spawn_started = self.spawner.check(world, world.tick_count, self.tick_rate_ms)

        # --- 2. Hazards ---
        stats.hazards_spawned, stats.hazards_expired = self.hazards.update(world)

        # --- 3. Adversaries ---
        self.move_adversaries(stats)

        # --- 4. Player collision ---
        if self.is_playing():
            stats.player_caught = self._check_player_collision()

        # --- 5. Autopilot replanning ---
        if self.autopilot.executing and self.is_playing():
            stats.path_active = self.autopilot.recalculate_path(world)

        self.tick_stats = stats
        self._accumulated_tick_stats.append(stats)

        if self.on_tick is not None:
            self.on_tick(stats, self)

        return stats

    def move_adversaries(self, stats: Optional[TickStats] = None) -> MoveOutcome:
        """Plan, resolve, execute, despawn exits, then settle shared cells."""
        world = self.world
        rng = world.rng

        planned = self.model.plan_moves(world, rng)
        resolved, conflicts = self.resolve_conflicts(planned)

        outcome = MoveOutcome()
        self.model.execute_moves(world, resolved, rng, outcome)
        self.model.despawn_exited(world, outcome)
        self.model.check_mutual_collisions(world, rng, outcome)

        world.renderer.update_adversaries(world.get_adversaries())

        if stats is not None:
            stats.moves_planned = len(planned)
            stats.conflicts = conflicts
            stats.moved = outcome.moved
            stats.stayed = outcome.stayed
            stats.exited = outcome.exited
            stats.eliminated = outcome.eliminated
            stats.restored = outcome.restored
        return outcome

    def resolve_conflicts(self, moves: list[PlannedMove]) -> tuple[list[PlannedMove], int]:
        return resolve_conflicts(moves, self.world.rng)

    def _check_player_collision(self) -> bool:
        if self.collision_handler is not None:
            return self.collision_handler()
        return self.world.is_adversary_at(*self.world.player.position)

    # ------------------------------------------------------------------
    # Accumulated statistics helpers
    # ------------------------------------------------------------------

    def get_accumulated_stats(self) -> dict[str, int]:
        """
        Sum all tick stats from the current accumulation period.

        Returns:
            Dict of stat_name -> total_value.
        """
        totals: dict[str, int] = {"ticks": len(self._accumulated_tick_stats)}
        for stats in self._accumulated_tick_stats:
            for attr in (
                "hazards_spawned", "hazards_expired", "moves_planned",
                "conflicts", "moved", "stayed", "exited", "eliminated",
                "restored",
            ):
                totals[attr] = totals.get(attr, 0) + getattr(stats, attr)
            totals["spawns_started"] = totals.get("spawns_started", 0) + int(stats.spawn_started)
            totals["player_caught"] = totals.get("player_caught", 0) + int(stats.player_caught)
        return totals

    def reset_accumulated_stats(self) -> list[TickStats]:
        """Reset and return the accumulated tick stats (e.g., at a level boundary)."""
        old = self._accumulated_tick_stats
        self._accumulated_tick_stats = []
        return old

    def __repr__(self) -> str:
        return (
            f"TickCoordinator(state={self.state.value}, level={self.level}, "
            f"tick={self.current_tick}, rate={self.tick_rate_ms}ms)"
        )
