"""
Pathfinding for Number Nosher.

`find_path` is a breadth-first search over the grid that avoids a snapshot
of blocking cells (usually the current adversary positions). Neighbors are
expanded in up, down, left, right order, which decides which of several
equally short routes is returned.

`Autopilot` walks the player along a path one step per `step_delay_ms` of
game-clock time. Only one path runs at a time; starting another cancels
the first. A step whose target cell is occupied aborts the walk; replanning
around moved adversaries is done separately by `recalculate_path`, which
the tick coordinator calls after adversaries move.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Iterable, Optional

from src.core.collaborators import Renderer
from src.simulation.clock import GameClock, ScheduledTask
from src.utils.spatial import neighbors

if TYPE_CHECKING:
    from src.core.world import World


@dataclass(frozen=True, slots=True)
class PathStep:
    """One move of a path: the cell entered and the direction taken."""
    x: int
    y: int
    direction: str

    @property
    def position(self) -> tuple[int, int]:
        return (self.x, self.y)


def find_path(
    start: tuple[int, int],
    end: tuple[int, int],
    obstacles: Iterable[tuple[int, int]],
    cols: int,
    rows: int,
) -> Optional[list[PathStep]]:
    """
    Shortest path from start to end by BFS.

    Args:
        start: (x, y) of the walker.
        end: (x, y) of the destination.
        obstacles: Cells that may not be entered.
        cols, rows: Grid dimensions.

    Returns:
        List of steps (excluding start), [] if start == end, or None if
        the destination cannot be reached.
    """
    if start == end:
        return []

    blocked = set(obstacles)
    came_from: dict[tuple[int, int], tuple[tuple[int, int], str]] = {}
    visited = {start}
    queue: deque[tuple[int, int]] = deque([start])

    while queue:
        cx, cy = queue.popleft()
        for nx, ny, direction in neighbors(cx, cy, cols, rows):
            nxt = (nx, ny)
            if nxt in visited or nxt in blocked:
                continue
            visited.add(nxt)
            came_from[nxt] = ((cx, cy), direction)
            if nxt == end:
                return _reconstruct(came_from, start, end)
            queue.append(nxt)

    return None


def _reconstruct(
    came_from: dict[tuple[int, int], tuple[tuple[int, int], str]],
    start: tuple[int, int],
    end: tuple[int, int],
) -> list[PathStep]:
    steps: list[PathStep] = []
    cur = end
    while cur != start:
        prev, direction = came_from[cur]
        steps.append(PathStep(x=cur[0], y=cur[1], direction=direction))
        cur = prev
    steps.reverse()
    return steps


class Autopilot:
    """
    Stepwise path execution on the game clock.

    Hooks (set by the owning session):
        step_handler: Called with a direction to move the player one cell.
        is_playing: Returns False once the game leaves the playing state.
        on_blocked: Called when replanning finds no route.

    Attributes:
        current_path: Remaining steps of the active path (None when idle).
        executing: Whether a path is being walked.
    """

    def __init__(
        self,
        clock: GameClock,
        step_delay_ms: int = 150,
        renderer: Optional[Renderer] = None,
    ):
        self.clock = clock
        self.step_delay_ms = step_delay_ms
        self.renderer = renderer or Renderer()
        self.current_path: Optional[list[PathStep]] = None
        self.executing: bool = False

        self.step_handler: Optional[Callable[[str], None]] = None
        self.is_playing: Callable[[], bool] = lambda: True
        self.on_blocked: Optional[Callable[[], None]] = None

        self._task: Optional[ScheduledTask] = None
        self._on_complete: Optional[Callable[[bool], None]] = None
        self._world: Optional[World] = None

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def execute_path(
        self,
        world: World,
        path: Optional[list[PathStep]],
        on_complete: Optional[Callable[[bool], None]] = None,
    ) -> None:
        """
        Start walking `path`. Cancels any path already in flight.

        The first step runs immediately; each later step runs
        `step_delay_ms` after the previous one. `on_complete(True)` fires
        when the destination is reached, `on_complete(False)` on abort.
        """
        self.cancel_path()

        if not path:
            if on_complete is not None:
                on_complete(True)
            return

        self._world = world
        self._on_complete = on_complete
        self.current_path = list(path)
        self.executing = True
        self._run_step()

    def _run_step(self) -> None:
        self._task = None
        if not self.executing or not self.current_path:
            self._finish(True)
            return

        world = self._world
        step = self.current_path[0]

        if world.is_adversary_at(step.x, step.y):
            self._finish(False)
            return

        if not self.is_playing():
            self._finish(False)
            return

        self.current_path.pop(0)
        if self.step_handler is not None:
            self.step_handler(step.direction)
        else:
            world.player.move(step.direction)

        # The step may have ended the walk (collision, level cleared).
        if not self.executing:
            return
        if not self.current_path:
            self._finish(True)
            return
        if not self.is_playing():
            self._finish(False)
            return

        self._task = self.clock.call_later(self.step_delay_ms, self._run_step)

    def _finish(self, success: bool) -> None:
        on_complete = self._on_complete
        was_executing = self.executing
        self._reset()
        if was_executing and on_complete is not None:
            on_complete(success)

    def _reset(self) -> None:
        if self._task is not None:
            self._task.cancel()
        self._task = None
        self.executing = False
        self.current_path = None
        self._on_complete = None

    def cancel_path(self) -> None:
        """Stop the active path, if any. Does not call on_complete."""
        self._reset()

    # ------------------------------------------------------------------
    # Replanning
    # ------------------------------------------------------------------

    def recalculate_path(self, world: World) -> bool:
        """
        Revalidate the active path against current adversary positions.

        If the next step is now occupied, search again from the player's
        position to the same destination. When no route exists the path is
        cancelled and `on_blocked` fires.

        Returns:
            True if a path is still active afterwards.
        """
        if not self.executing or not self.current_path:
            return False

        destination = self.current_path[-1]
        obstacles = world.adversary_positions()

        next_step = self.current_path[0]
        if next_step.position not in obstacles:
            return True

        new_path = find_path(
            world.player.position,
            destination.position,
            obstacles,
            world.cols,
            world.rows,
        )
        if new_path:
            self.current_path = new_path
            return True

        self.cancel_path()
        if self.on_blocked is not None:
            self.on_blocked()
        return False

    # ------------------------------------------------------------------
    # Click-to-move
    # ------------------------------------------------------------------

    def handle_click(
        self,
        world: World,
        target_x: int,
        target_y: int,
        on_complete: Optional[Callable[[bool], None]] = None,
    ) -> bool:
        """
        Plan and start a route to (target_x, target_y).

        Returns:
            True if a non-empty path was found and started.
        """
        self.cancel_path()
        if not world.is_valid_position(target_x, target_y):
            return False
        path = find_path(
            world.player.position,
            (target_x, target_y),
            world.adversary_positions(),
            world.cols,
            world.rows,
        )
        if path is None:
            self.renderer.show_feedback("No path!", "incorrect")
            return False
        if not path:
            return False
        self.execute_path(world, path, on_complete)
        return True

    @property
    def destination(self) -> Optional[PathStep]:
        if not self.current_path:
            return None
        return self.current_path[-1]

    def __repr__(self) -> str:
        remaining = len(self.current_path) if self.current_path else 0
        return f"Autopilot(executing={self.executing}, remaining={remaining})"
