"""
Scripted player for headless runs.

AutoPlayer drives a GameSession purely through its input seam: it routes
the autopilot to the nearest unconsumed correct cell, consumes on arrival
and advances the game clock in small frames, the way a front end would
forward wall time. A configurable mistake rate makes it occasionally
consume a wrong cell so that runs exercise every scoring path.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Optional

from src.simulation.pathfinding import find_path
from src.simulation.session import GameSession, GameState
from src.utils.spatial import random_direction


@dataclass
class AutoPlayResult:
    """Summary of one scripted game."""
    levels_completed: int = 0
    final_level: int = 1
    final_score: int = 0
    final_lives: int = 0
    total_ticks: int = 0
    elapsed_ms: int = 0
    game_over: bool = False
    level_outcomes: list[str] = field(default_factory=list)


class AutoPlayer:
    """
    Plays a session until a tick budget, a level limit or game over.

    Attributes:
        session: The session being driven.
        frame_ms: Game time forwarded per frame.
        mistake_chance: Per-decision chance of consuming a wrong cell.
    """

    def __init__(
        self,
        session: GameSession,
        frame_ms: int = 50,
        mistake_chance: float = 0.0,
    ):
        self.session = session
        self.frame_ms = frame_ms
        self.mistake_chance = mistake_chance
        self.session.autopilot_enabled = True

    # ------------------------------------------------------------------
    # Decisions
    # ------------------------------------------------------------------

    def choose_target(self) -> Optional[tuple[int, int]]:
        """Nearest (by free path length) unconsumed correct cell."""
        world = self.session.world
        obstacles = world.adversary_positions()
        best: Optional[tuple[int, int]] = None
        best_len: Optional[int] = None
        for cell in world.grid.unconsumed_correct_cells():
            path = find_path(world.player.position, cell.position, obstacles, world.cols, world.rows)
            if path is None:
                continue
            if best_len is None or len(path) < best_len:
                best, best_len = cell.position, len(path)
        return best

    def step(self) -> None:
        """Make at most one decision, then forward one frame of time."""
        session = self.session
        if session.state is not GameState.PLAYING:
            return

        if not session.autopilot.executing:
            self._decide()

        if session.state is GameState.PLAYING:
            session.advance(self.frame_ms)

    def _decide(self) -> None:
        session = self.session
        world = session.world
        rng = session.rng

        cell = world.grid.get_cell(*world.player.position)
        if cell is not None and not cell.consumed:
            if cell.is_correct or rng.random() < self.mistake_chance:
                session.handle_action()
                return

        target = self.choose_target()
        if target is None or not session.autopilot_to(*target):
            session.handle_move(random_direction(rng))

    # ------------------------------------------------------------------
    # Run loop
    # ------------------------------------------------------------------

    def play(
        self,
        max_ticks: int = 2000,
        max_levels: Optional[int] = None,
        on_level_end: Optional[Callable[[GameSession], None]] = None,
    ) -> AutoPlayResult:
        """
        Play until `max_ticks` coordinator ticks, `max_levels` cleared
        levels, or game over.

        Args:
            max_ticks: Tick budget across all levels.
            max_levels: Stop after this many cleared levels. None = no limit.
            on_level_end: Called with the session when a level ends
                (cleared, game over or out of ticks).

        Returns:
            AutoPlayResult summary.
        """
        session = self.session
        result = AutoPlayResult()
        if session.state is GameState.IDLE:
            session.start_new_game()

        start_ms = session.clock.now_ms
        ticks_before_level = 0

        while True:
            total_ticks = ticks_before_level + session.world.tick_count
            if total_ticks >= max_ticks:
                result.level_outcomes.append("out_of_ticks")
                if on_level_end is not None:
                    on_level_end(session)
                break

            if session.state is GameState.LEVEL_COMPLETE:
                result.levels_completed += 1
                result.level_outcomes.append(session.state.value)
                if on_level_end is not None:
                    on_level_end(session)
                if max_levels is not None and result.levels_completed >= max_levels:
                    break
                ticks_before_level += session.world.tick_count
                session.next_level()
                continue

            if session.state is GameState.GAME_OVER:
                result.game_over = True
                result.level_outcomes.append(session.state.value)
                if on_level_end is not None:
                    on_level_end(session)
                break

            self.step()

        result.final_level = session.level
        result.final_score = session.score
        result.final_lives = session.lives
        result.total_ticks = ticks_before_level + session.world.tick_count
        result.elapsed_ms = session.clock.now_ms - start_ms
        return result
