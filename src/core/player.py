"""
Player token for Number Nosher.

The player moves one cell at a time, clamped to the grid, or is teleported
(respawn after a collision). Both operations notify the render layer.
"""

from __future__ import annotations

from typing import Optional

from src.core.collaborators import Renderer
from src.utils.spatial import in_bounds, step


class Player:
    """
    The player-controlled token.

    Attributes:
        x, y: Current grid position.
        cols, rows: Grid dimensions used for clamping.
    """

    __slots__ = ("x", "y", "cols", "rows", "_renderer")

    def __init__(
        self,
        x: int = 0,
        y: int = 0,
        cols: int = 6,
        rows: int = 5,
        renderer: Optional[Renderer] = None,
    ):
        self.x = x
        self.y = y
        self.cols = cols
        self.rows = rows
        self._renderer = renderer or Renderer()

    @property
    def position(self) -> tuple[int, int]:
        return (self.x, self.y)

    def move(self, direction: str) -> bool:
        """
        Move one cell. Moves off the grid are ignored.

        Returns:
            True if the position changed.
        """
        nx, ny = step(self.x, self.y, direction)
        if not in_bounds(nx, ny, self.cols, self.rows):
            return False
        prev = self.position
        self.x, self.y = nx, ny
        self._renderer.update_player(self.x, self.y, prev)
        return True

    def set_position(self, x: int, y: int) -> None:
        """Teleport (respawn)."""
        prev = self.position
        self.x, self.y = x, y
        self._renderer.update_player(self.x, self.y, prev)

    def __repr__(self) -> str:
        return f"Player(pos=({self.x},{self.y}))"
