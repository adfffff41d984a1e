"""
Game session for Number Nosher.

The session sits above the tick coordinator and owns everything a single
game needs: the World, the game clock, score, lives, level, game state and
the render / audio / persistence collaborators. Input arrives through
`handle_move`, `handle_action`, `handle_pause` and `autopilot_to`.

Game states:
    IDLE -> PLAYING <-> PAUSED
    PLAYING -> LEVEL_COMPLETE -> PLAYING (next level)
    PLAYING -> GAME_OVER (last life lost)
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Callable, Optional

import numpy as np

from src.core.collaborators import AudioSink, Renderer, SoundEvent
from src.core.config import GameConfig, get_default_config
from src.core.generator import RuleMode, get_target, rule_text
from src.core.grid import ConsumeResult
from src.core.world import World
from src.persistence.storage import HighScoreStore
from src.simulation.clock import GameClock
from src.simulation.engine import TickCoordinator
from src.simulation.levels import (
    encouraging_message,
    level_clear_bonus,
    level_complete_message,
    points_for_consume,
    wrong_message,
)
from src.simulation.pathfinding import Autopilot


class GameState(str, Enum):
    IDLE = "idle"
    PLAYING = "playing"
    PAUSED = "paused"
    LEVEL_COMPLETE = "level_complete"
    GAME_OVER = "game_over"


class GameSession:
    """
    One game from first level to game over.

    Attributes:
        config: Game configuration.
        world: Grid, player, adversaries and hazards.
        clock: Game clock shared by the coordinator, spawner and autopilot.
        coordinator: The tick coordinator.
        autopilot: Click-to-move path execution.
        state: Current GameState.
        score, lives, level: Player progress.
        streak: Correct consumes in a row.
        autopilot_enabled: Whether `autopilot_to` is honoured.
        on_level_complete: Optional callback(session) after a level is cleared.
        on_game_over: Optional callback(session) when the last life is lost.
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        renderer: Optional[Renderer] = None,
        audio: Optional[AudioSink] = None,
        storage: Optional[HighScoreStore] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        self.config = config or get_default_config()
        self.renderer = renderer or Renderer()
        self.audio = audio or AudioSink()
        self.storage = storage

        self.autopilot_enabled: bool = False
        if storage is not None:
            self.apply_settings(storage.get_settings())

        self.clock = GameClock()
        self.world = World(self.config, rng=rng, renderer=self.renderer)
        self.rng = self.world.rng

        self.autopilot = Autopilot(self.clock, self.config.path.step_delay_ms, self.renderer)
        self.autopilot.step_handler = self._autopilot_step
        self.autopilot.is_playing = self.is_playing
        self.autopilot.on_blocked = lambda: self.renderer.show_feedback("Blocked!", "incorrect")

        self.coordinator = TickCoordinator(self.world, self.clock, self.config, self.autopilot)
        self.coordinator.is_playing = self.is_playing
        self.coordinator.collision_handler = self.check_collision
        self.coordinator.spawner.on_spawned = lambda adversary: self.check_collision()

        self.state = GameState.IDLE
        self.score: int = 0
        self.lives: int = self.config.session.starting_lives
        self.level: int = 1
        self.mode = RuleMode(self.config.generator.mode)
        self.streak: int = 0
        self.last_extra_life_score: int = 0

        # Per-level counters (reset by start_level)
        self.correct_consumed: int = 0
        self.incorrect_consumed: int = 0
        self.collisions: int = 0
        self.lives_gained: int = 0
        self.level_points: int = 0

        self.on_level_complete: Optional[Callable[["GameSession"], None]] = None
        self.on_game_over: Optional[Callable[["GameSession"], None]] = None

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    def apply_settings(self, settings: dict[str, Any]) -> None:
        """Apply persisted settings (autopilot, testing_mode)."""
        if "autopilot" in settings:
            self.autopilot_enabled = bool(settings["autopilot"])
        if "testing_mode" in settings:
            self.config.generator.testing_mode = bool(settings["testing_mode"])

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def is_playing(self) -> bool:
        return self.state is GameState.PLAYING

    def start_new_game(self, level: int = 1, mode: Optional[RuleMode | str] = None) -> None:
        self.score = 0
        self.lives = self.config.session.starting_lives
        self.level = level
        if mode is not None:
            self.mode = RuleMode(mode)
        self.streak = 0
        self.last_extra_life_score = 0
        self.start_level()

    def start_level(self) -> None:
        """Populate the grid, place hazards and start the tick driver."""
        self.coordinator.stop()
        self.state = GameState.PLAYING

        self.correct_consumed = 0
        self.incorrect_consumed = 0
        self.collisions = 0
        self.lives_gained = 0
        self.level_points = 0
        self.coordinator.reset_accumulated_stats()

        self.world.setup_level(self.level, self.mode)
        self.coordinator.model.clear(self.world)
        self.coordinator.hazards.init(self.world, self.level)
        self.coordinator.start(self.level)

    def next_level(self) -> None:
        if self.state is not GameState.LEVEL_COMPLETE:
            return
        self.level += 1
        self.start_level()

    def pause(self) -> None:
        if self.state is not GameState.PLAYING:
            return
        self.state = GameState.PAUSED
        self.coordinator.pause()

    def resume(self) -> None:
        if self.state is not GameState.PAUSED:
            return
        self.state = GameState.PLAYING
        self.coordinator.resume()

    def quit_to_menu(self) -> None:
        self.state = GameState.IDLE
        self.coordinator.stop()
        self.coordinator.model.clear(self.world)
        self.coordinator.hazards.clear(self.world)

    def advance(self, ms: int) -> int:
        """Forward elapsed time to the game (ignored unless playing)."""
        if self.state is not GameState.PLAYING:
            return 0
        return self.coordinator.advance(ms)

    # ------------------------------------------------------------------
    # Player actions
    # ------------------------------------------------------------------

    def move_player(self, direction: str) -> bool:
        """Move one cell, then check for a collision. Returns whether the player moved."""
        if self.state is not GameState.PLAYING:
            return False
        moved = self.world.player.move(direction)
        if moved:
            self.audio.play(SoundEvent.MOVE)
        self.check_collision()
        return moved

    def consume(self) -> ConsumeResult:
        """Consume the cell under the player."""
        if self.state is not GameState.PLAYING:
            return ConsumeResult(success=False)

        x, y = self.world.player.position
        result = self.world.grid.consume(x, y)
        if not result.success:
            return result

        self.renderer.update_grid(self.world.grid)

        if result.is_correct:
            self.streak += 1
            self.correct_consumed += 1
            self.add_score(points_for_consume(self.level, self.config.session))
            self.renderer.show_feedback(encouraging_message(self.streak, self.rng), "correct")
            self.audio.play(SoundEvent.CORRECT)
            if self.world.grid.all_correct_consumed():
                self.complete_level()
        else:
            self.streak = 0
            self.incorrect_consumed += 1
            self.renderer.show_feedback(wrong_message(self.rng), "incorrect")
            self.audio.play(SoundEvent.INCORRECT)
            self.lose_life()

        return result

    def autopilot_to(self, x: int, y: int) -> bool:
        """Walk the player to (x, y) along a shortest free path."""
        if not self.autopilot_enabled or self.state is not GameState.PLAYING:
            return False
        return self.autopilot.handle_click(self.world, x, y)

    def _autopilot_step(self, direction: str) -> None:
        self.move_player(direction)

    # Input seam

    def handle_move(self, direction: str) -> bool:
        if self.state is not GameState.PLAYING:
            return False
        self.autopilot.cancel_path()
        return self.move_player(direction)

    def handle_action(self) -> ConsumeResult:
        return self.consume()

    def handle_pause(self) -> None:
        if self.state is GameState.PLAYING:
            self.pause()
        elif self.state is GameState.PAUSED:
            self.resume()

    # ------------------------------------------------------------------
    # Scoring and lives
    # ------------------------------------------------------------------

    def add_score(self, points: int) -> None:
        """Add points; award an extra life on crossing each threshold."""
        self.score += points
        self.level_points += points

        threshold = self.config.session.extra_life_threshold
        earned = self.score // threshold
        previously = self.last_extra_life_score // threshold
        if earned > previously:
            if self.lives < self.config.session.max_lives:
                self.lives_gained += 1
            self.lives = min(self.lives + 1, self.config.session.max_lives)
            self.renderer.show_feedback("Extra Life!", "correct")
            self.audio.play(SoundEvent.EXTRA_LIFE)
            self.last_extra_life_score = self.score

    def lose_life(self) -> None:
        self.lives -= 1
        if self.lives <= 0:
            self.lives = 0
            self.game_over()

    def check_collision(self) -> bool:
        """
        Handle the player sharing a cell with an adversary.

        Costs a life, cancels the autopilot and, if lives remain, respawns
        the player on a random cell free of adversaries.

        Returns:
            True if the player was caught.
        """
        if self.state is not GameState.PLAYING:
            return False
        x, y = self.world.player.position
        if not self.world.is_adversary_at(x, y):
            return False

        self.streak = 0
        self.collisions += 1
        self.autopilot.cancel_path()
        self.renderer.show_feedback("Caught!", "incorrect")
        self.audio.play(SoundEvent.COLLISION)
        self.lose_life()

        if self.lives > 0:
            safe = self.world.grid.random_position(self.rng, self.world.adversary_positions())
            self.world.player.set_position(*safe)
        return True

    def complete_level(self) -> None:
        self.state = GameState.LEVEL_COMPLETE
        self.coordinator.stop()
        self.add_score(level_clear_bonus(self.level, self.config.session))
        self.renderer.show_feedback(level_complete_message(self.rng), "correct")
        self.audio.play(SoundEvent.LEVEL_COMPLETE)
        if self.on_level_complete is not None:
            self.on_level_complete(self)

    def game_over(self) -> None:
        self.state = GameState.GAME_OVER
        self.coordinator.stop()
        self.audio.play(SoundEvent.GAME_OVER)
        if self.on_game_over is not None:
            self.on_game_over(self)

    # ------------------------------------------------------------------
    # High scores
    # ------------------------------------------------------------------

    def is_high_score(self) -> bool:
        if self.storage is None:
            return False
        return self.storage.is_high_score(self.score)

    def save_high_score(self, name: Optional[str] = None) -> list[dict[str, Any]]:
        """Record the current score. Returns the updated table."""
        if self.storage is None:
            return []
        return self.storage.add_high_score(name, self.score)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def target(self) -> int:
        return get_target(self.level, self.mode)

    @property
    def rule_text(self) -> str:
        return rule_text(self.level, self.mode)

    def to_dict(self) -> dict[str, Any]:
        return {
            "state": self.state.value,
            "level": self.level,
            "mode": self.mode.value,
            "rule": self.rule_text,
            "score": self.score,
            "lives": self.lives,
            "streak": self.streak,
            "tick": self.world.tick_count,
            "clock_ms": self.clock.now_ms,
        }

    def __repr__(self) -> str:
        return (
            f"GameSession(state={self.state.value}, level={self.level}, "
            f"score={self.score}, lives={self.lives})"
        )
