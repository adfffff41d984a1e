"""
Adversary movement planning for Number Nosher.

One plan function per adversary type, selected through the flat
`PLANNERS` table. A plan function reads the world and returns a
`PlannedMove`; it never mutates the world. Conflict resolution and
execution happen afterwards, for all adversaries at once.

Every planner obeys the same two rules: a move never targets a hazard
cell, and every candidate is bounds-checked. The only off-board plan is a
Linear adversary walking out over the edge, which is flagged `off_board`
and despawned after the move phase.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Optional

import numpy as np

from src.core.adversary import Adversary, AdversaryType
from src.core.config import AdversaryConfig
from src.simulation.pathfinding import find_path
from src.utils.spatial import (
    PERPENDICULARS,
    direction_toward,
    in_bounds,
    manhattan,
    random_direction,
    shuffled_directions,
    step,
)

if TYPE_CHECKING:
    from src.core.world import World


# ---------------------------------------------------------------------------
# Planned move
# ---------------------------------------------------------------------------

@dataclass(slots=True)
class PlannedMove:
    """
    A proposed transition for one adversary.

    Attributes:
        adversary_id: Who is moving.
        current_x, current_y: Position before the move.
        target_x, target_y: Proposed position (== current when staying).
        direction: Heading after this tick.
        off_board: The move leaves the grid; the adversary despawns.
        stayed: Forced to stay by conflict resolution.
    """
    adversary_id: int
    current_x: int
    current_y: int
    target_x: int
    target_y: int
    direction: str
    off_board: bool = False
    stayed: bool = False

    @property
    def target(self) -> tuple[int, int]:
        return (self.target_x, self.target_y)

    @property
    def current(self) -> tuple[int, int]:
        return (self.current_x, self.current_y)

    @property
    def is_stay(self) -> bool:
        return self.target == self.current


def _move(adv: Adversary, x: int, y: int, direction: str, off_board: bool = False) -> PlannedMove:
    return PlannedMove(
        adversary_id=adv.id,
        current_x=adv.x,
        current_y=adv.y,
        target_x=x,
        target_y=y,
        direction=direction,
        off_board=off_board,
    )


def _stay(adv: Adversary, direction: Optional[str] = None) -> PlannedMove:
    return _move(adv, adv.x, adv.y, direction or adv.direction)


# ---------------------------------------------------------------------------
# Shared fallback
# ---------------------------------------------------------------------------

def plan_random(adv: Adversary, world: World, rng: np.random.Generator) -> PlannedMove:
    """
    Step to a random open neighbor (shuffled direction order).

    Stays in place only when every neighbor is off-grid or a hazard.
    """
    for direction in shuffled_directions(rng):
        nx, ny = step(adv.x, adv.y, direction)
        if world.is_open(nx, ny):
            return _move(adv, nx, ny, direction)
    return _stay(adv)


# ---------------------------------------------------------------------------
# Per-type planners
# ---------------------------------------------------------------------------

def plan_linear(
    adv: Adversary, world: World, rng: np.random.Generator, config: AdversaryConfig,
) -> PlannedMove:
    """
    Walk straight ahead; leave the board at an edge.

    A small per-tick chance picks a fresh random heading first. A hazard
    ahead triggers one random perpendicular detour; if that is blocked
    too, the adversary waits.
    """
    direction = adv.direction
    if rng.random() < config.linear_turn_chance:
        direction = random_direction(rng)

    nx, ny = step(adv.x, adv.y, direction)
    if not in_bounds(nx, ny, world.cols, world.rows):
        return _move(adv, adv.x, adv.y, direction, off_board=True)

    if not world.is_hazard(nx, ny):
        return _move(adv, nx, ny, direction)

    options = PERPENDICULARS[direction]
    alt = options[int(rng.integers(0, len(options)))]
    ax, ay = step(adv.x, adv.y, alt)
    if world.is_open(ax, ay):
        return _move(adv, ax, ay, alt)
    return _stay(adv, direction)


def plan_erratic_fleeing(
    adv: Adversary, world: World, rng: np.random.Generator, config: AdversaryConfig,
) -> PlannedMove:
    """Run from a nearby player along the larger offset axis, else wander."""
    px, py = world.player.position
    if manhattan(adv.x, adv.y, px, py) <= config.flee_radius:
        away = direction_toward(adv.x - px, adv.y - py)
        if away is not None:
            nx, ny = step(adv.x, adv.y, away)
            if world.is_open(nx, ny):
                return _move(adv, nx, ny, away)
    return plan_random(adv, world, rng)


def plan_seeker(
    adv: Adversary, world: World, rng: np.random.Generator, config: AdversaryConfig,
) -> PlannedMove:
    """Step toward the nearest unconsumed correct cell."""
    best = None
    best_dist = None
    for cell in world.grid.unconsumed_correct_cells():
        d = manhattan(adv.x, adv.y, cell.x, cell.y)
        if best_dist is None or d < best_dist:
            best, best_dist = cell, d

    if best is not None:
        toward = direction_toward(best.x - adv.x, best.y - adv.y)
        if toward is not None:
            nx, ny = step(adv.x, adv.y, toward)
            if world.is_open(nx, ny):
                return _move(adv, nx, ny, toward)
    return plan_random(adv, world, rng)


def plan_mutator(
    adv: Adversary, world: World, rng: np.random.Generator, config: AdversaryConfig,
) -> PlannedMove:
    """Random walk. Cell restoration happens after execution."""
    return plan_random(adv, world, rng)


def plan_pursuer(
    adv: Adversary, world: World, rng: np.random.Generator, config: AdversaryConfig,
) -> PlannedMove:
    """Take the first step of a shortest path to the player."""
    path = find_path(adv.position, world.player.position, [], world.cols, world.rows)
    if path:
        first = path[0]
        if world.is_open(first.x, first.y):
            return _move(adv, first.x, first.y, first.direction)
    return plan_random(adv, world, rng)


PlanFn = Callable[[Adversary, "World", np.random.Generator, AdversaryConfig], PlannedMove]

PLANNERS: dict[AdversaryType, PlanFn] = {
    AdversaryType.LINEAR: plan_linear,
    AdversaryType.ERRATIC_FLEEING: plan_erratic_fleeing,
    AdversaryType.SEEKER: plan_seeker,
    AdversaryType.MUTATOR: plan_mutator,
    AdversaryType.PURSUER: plan_pursuer,
}


def plan_move(
    adv: Adversary,
    world: World,
    rng: np.random.Generator,
    config: Optional[AdversaryConfig] = None,
) -> PlannedMove:
    """Dispatch to the planner for the adversary's type."""
    if config is None:
        config = AdversaryConfig()
    return PLANNERS[adv.type](adv, world, rng, config)
