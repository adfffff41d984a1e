"""
Unit tests for bounded grid helpers.

Tests cover:
- Bounds checks and stepping
- Manhattan distance
- Dominant-axis direction selection
- Neighbor enumeration order
- Random direction helpers
"""

import numpy as np
import pytest

from src.utils.spatial import (
    DIRECTIONS,
    DOWN,
    LEFT,
    OPPOSITES,
    PERPENDICULARS,
    RIGHT,
    UP,
    direction_toward,
    in_bounds,
    manhattan,
    neighbors,
    random_direction,
    shuffled_directions,
    step,
)


class TestBounds:
    @pytest.mark.parametrize("x,y,expected", [
        (0, 0, True),
        (5, 4, True),
        (6, 0, False),
        (0, 5, False),
        (-1, 2, False),
        (2, -1, False),
    ])
    def test_in_bounds(self, x, y, expected):
        assert in_bounds(x, y, 6, 5) is expected


class TestStep:
    def test_step_each_direction(self):
        assert step(2, 2, UP) == (2, 1)
        assert step(2, 2, DOWN) == (2, 3)
        assert step(2, 2, LEFT) == (1, 2)
        assert step(2, 2, RIGHT) == (3, 2)

    def test_step_does_not_clamp(self):
        assert step(0, 0, LEFT) == (-1, 0)

    def test_opposites_and_perpendiculars(self):
        for direction in DIRECTIONS:
            assert OPPOSITES[OPPOSITES[direction]] == direction
            assert direction not in PERPENDICULARS[direction]
            assert OPPOSITES[direction] not in PERPENDICULARS[direction]


class TestDistance:
    def test_manhattan(self):
        assert manhattan(0, 0, 3, 4) == 7
        assert manhattan(2, 2, 2, 2) == 0


class TestDirectionToward:
    def test_zero_offset(self):
        assert direction_toward(0, 0) is None

    def test_dominant_axis(self):
        assert direction_toward(3, 1) == RIGHT
        assert direction_toward(-3, 1) == LEFT
        assert direction_toward(1, 3) == DOWN
        assert direction_toward(1, -3) == UP

    def test_tie_prefers_x(self):
        assert direction_toward(2, 2) == RIGHT
        assert direction_toward(-2, 2) == LEFT


class TestNeighbors:
    def test_interior_order(self):
        assert neighbors(2, 2, 6, 5) == [
            (2, 1, UP), (2, 3, DOWN), (1, 2, LEFT), (3, 2, RIGHT),
        ]

    def test_corner_excludes_off_grid(self):
        assert neighbors(0, 0, 6, 5) == [(0, 1, DOWN), (1, 0, RIGHT)]


class TestRandomDirections:
    def test_random_direction_valid(self):
        rng = np.random.default_rng(1)
        for _ in range(50):
            assert random_direction(rng) in DIRECTIONS

    def test_shuffled_is_permutation(self):
        rng = np.random.default_rng(1)
        order = shuffled_directions(rng)
        assert sorted(order) == sorted(DIRECTIONS)
