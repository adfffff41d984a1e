"""
Adversary model for Number Nosher.

Owns the plan / execute / despawn / mutual-collision steps of the
adversary phase of a tick. Conflict resolution between planned moves sits
in the tick coordinator, between `plan_moves` and `execute_moves`.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

import numpy as np

from src.core.adversary import Adversary, AdversaryType
from src.core.config import AdversaryConfig, GeneratorConfig
from src.core.generator import generate_value
from src.simulation.behaviors import PlannedMove, plan_move

if TYPE_CHECKING:
    from src.core.world import World


@dataclass
class MoveOutcome:
    """Counters from one execute / despawn / collision pass."""
    moved: int = 0
    stayed: int = 0
    exited: int = 0
    eliminated: int = 0
    restored: int = 0


class AdversaryModel:
    """
    Adversary movement over an explicit World.

    Attributes:
        config: Behavior tuning.
        generator_config: Used to create values for restored cells.
    """

    def __init__(
        self,
        config: Optional[AdversaryConfig] = None,
        generator_config: Optional[GeneratorConfig] = None,
    ):
        self.config = config or AdversaryConfig()
        self.generator_config = generator_config or GeneratorConfig()
        self._exiting: list[int] = []

    # ------------------------------------------------------------------
    # Roster
    # ------------------------------------------------------------------

    def add(self, world: World, adversary: Adversary) -> Adversary:
        world.add_adversary(adversary)
        world.renderer.update_adversaries(world.get_adversaries())
        return adversary

    def clear(self, world: World) -> None:
        self._exiting.clear()
        world.clear_adversaries()

    # ------------------------------------------------------------------
    # Planning
    # ------------------------------------------------------------------

    def plan_moves(self, world: World, rng: np.random.Generator) -> list[PlannedMove]:
        """Plan a move for every adversary, in spawn order. No mutation."""
        return [plan_move(adv, world, rng, self.config) for adv in world.get_adversaries()]

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def execute_moves(
        self,
        world: World,
        moves: list[PlannedMove],
        rng: np.random.Generator,
        outcome: Optional[MoveOutcome] = None,
    ) -> MoveOutcome:
        """
        Apply resolved moves.

        Off-board moves leave the position unchanged and queue the
        adversary for `despawn_exited`. Mutators may restore the consumed
        cell they land on.
        """
        if outcome is None:
            outcome = MoveOutcome()

        for move in moves:
            adv = world.adversaries.get(move.adversary_id)
            if adv is None:
                continue

            adv.direction = move.direction

            if move.off_board:
                self._exiting.append(adv.id)
                continue

            if move.is_stay:
                outcome.stayed += 1
                continue

            world.move_adversary(adv, move.target_x, move.target_y)
            outcome.moved += 1

            if adv.type is AdversaryType.MUTATOR and self._maybe_restore(world, adv, rng):
                outcome.restored += 1

        return outcome

    def _maybe_restore(self, world: World, adv: Adversary, rng: np.random.Generator) -> bool:
        if rng.random() >= self.config.mutator_restore_chance:
            return False
        cell = world.grid.get_cell(adv.x, adv.y)
        if cell is None or not cell.consumed:
            return False
        is_correct = bool(rng.random() < self.config.restore_correct_chance)
        value = generate_value(world.level, world.mode, is_correct, rng, self.generator_config)
        restored = world.grid.restore(adv.x, adv.y, value, is_correct)
        if restored:
            world.renderer.update_grid(world.grid)
        return restored

    def despawn_exited(self, world: World, outcome: Optional[MoveOutcome] = None) -> int:
        """Remove adversaries that walked off the board this tick."""
        removed = 0
        for aid in self._exiting:
            adv = world.adversaries.get(aid)
            if adv is not None:
                world.remove_adversary(adv)
                removed += 1
        self._exiting.clear()
        if outcome is not None:
            outcome.exited += removed
        return removed

    def check_mutual_collisions(
        self,
        world: World,
        rng: np.random.Generator,
        outcome: Optional[MoveOutcome] = None,
    ) -> int:
        """
        Leave exactly one adversary on every shared cell.

        A Pursuer beats everything else; among several Pursuers, or when
        none is present, the survivor is uniform random.

        Returns:
            Number of adversaries removed.
        """
        by_cell: dict[tuple[int, int], list[Adversary]] = defaultdict(list)
        for adv in world.get_adversaries():
            by_cell[adv.position].append(adv)

        removed = 0
        for group in by_cell.values():
            if len(group) < 2:
                continue
            pursuers = [a for a in group if a.is_pursuer]
            candidates = pursuers or group
            survivor = candidates[int(rng.integers(0, len(candidates)))]
            for adv in group:
                if adv is not survivor:
                    world.remove_adversary(adv)
                    removed += 1

        if outcome is not None:
            outcome.eliminated += removed
        return removed
