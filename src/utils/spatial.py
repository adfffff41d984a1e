"""
Spatial utilities for Number Nosher.

Bounded (non-wrapping) grid math: cardinal directions, stepping,
bounds checks, Manhattan distance and neighbor enumeration.

Direction order is always up, down, left, right. Pathfinding relies on
this order for tie-breaking between equal-length routes.
"""

from __future__ import annotations

import numpy as np


UP = "up"
DOWN = "down"
LEFT = "left"
RIGHT = "right"

DIRECTIONS: tuple[str, ...] = (UP, DOWN, LEFT, RIGHT)

DIRECTION_DELTAS: dict[str, tuple[int, int]] = {
    UP: (0, -1),
    DOWN: (0, 1),
    LEFT: (-1, 0),
    RIGHT: (1, 0),
}

OPPOSITES: dict[str, str] = {UP: DOWN, DOWN: UP, LEFT: RIGHT, RIGHT: LEFT}

PERPENDICULARS: dict[str, tuple[str, str]] = {
    UP: (LEFT, RIGHT),
    DOWN: (LEFT, RIGHT),
    LEFT: (UP, DOWN),
    RIGHT: (UP, DOWN),
}


def in_bounds(x: int, y: int, cols: int, rows: int) -> bool:
    """True if (x, y) lies on a cols x rows grid."""
    return 0 <= x < cols and 0 <= y < rows


def step(x: int, y: int, direction: str) -> tuple[int, int]:
    """
    Move one cell in a direction. The result may be off the grid.

    Args:
        x, y: Current position.
        direction: One of DIRECTIONS.

    Returns:
        New (x, y) position (not bounds-checked).
    """
    dx, dy = DIRECTION_DELTAS[direction]
    return x + dx, y + dy


def manhattan(x1: int, y1: int, x2: int, y2: int) -> int:
    """Manhattan distance between two cells."""
    return abs(x1 - x2) + abs(y1 - y2)


def direction_toward(dx: int, dy: int) -> str | None:
    """
    Direction of a single-axis offset, or None for (0, 0).

    When both offsets are non-zero, the axis with the larger magnitude is
    used (x on ties).
    """
    if dx == 0 and dy == 0:
        return None
    if abs(dx) >= abs(dy):
        return RIGHT if dx > 0 else LEFT
    return DOWN if dy > 0 else UP


def neighbors(x: int, y: int, cols: int, rows: int) -> list[tuple[int, int, str]]:
    """
    In-bounds cardinal neighbors in up, down, left, right order.

    Returns:
        List of (nx, ny, direction) tuples.
    """
    result = []
    for direction in DIRECTIONS:
        nx, ny = step(x, y, direction)
        if in_bounds(nx, ny, cols, rows):
            result.append((nx, ny, direction))
    return result


def random_direction(rng: np.random.Generator) -> str:
    """Pick one of the four directions uniformly."""
    return DIRECTIONS[int(rng.integers(0, len(DIRECTIONS)))]


def shuffled_directions(rng: np.random.Generator) -> list[str]:
    """The four directions in random order."""
    order = list(DIRECTIONS)
    rng.shuffle(order)
    return order
