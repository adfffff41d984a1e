"""
Narrow interfaces to the game's external collaborators.

The simulation core never awaits or inspects results from these; every
call is a fire-and-forget notification. The base classes are no-ops, so a
headless game runs with them as-is and a real front end overrides only the
methods it cares about.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from src.core.adversary import Adversary
    from src.core.grid import Grid


class SoundEvent(str, Enum):
    """Semantic events the audio layer reacts to."""
    MOVE = "move"
    CORRECT = "correct"
    INCORRECT = "incorrect"
    COLLISION = "collision"
    LEVEL_COMPLETE = "level_complete"
    EXTRA_LIFE = "extra_life"
    GAME_OVER = "game_over"


class Renderer:
    """Render layer. Reflects grid, player, adversary and hazard state."""

    def update_grid(self, grid: Grid) -> None:
        pass

    def update_player(self, x: int, y: int, prev: tuple[int, int] | None = None) -> None:
        pass

    def update_adversaries(self, adversaries: Iterable[Adversary]) -> None:
        pass

    def mark_hazard(self, x: int, y: int, active: bool) -> None:
        pass

    def mark_hazard_expiring(self, x: int, y: int, expiring: bool) -> None:
        pass

    def show_spawn_warning(self, x: int, y: int, visible: bool) -> None:
        pass

    def show_feedback(self, message: str, kind: str) -> None:
        pass


class AudioSink:
    """Audio layer. Plays a sound for a semantic event."""

    def play(self, event: SoundEvent) -> None:
        pass
