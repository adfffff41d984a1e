"""
World (game state) for Number Nosher.

The World is the explicit per-session state struct: the grid, the player
token, the live adversaries and the hazard cells, plus the tick counter
and the seeded RNG. It is owned by the game session and passed to every
component that reads or mutates game state; nothing is held in module
globals.

Adversaries are indexed by id and by cell so that "who is at (x, y)"
queries stay O(1).
"""

from __future__ import annotations

from collections import defaultdict
from typing import Optional

import numpy as np

from src.core.adversary import Adversary
from src.core.collaborators import Renderer
from src.core.config import GameConfig
from src.core.generator import RuleMode
from src.core.grid import Grid
from src.core.hazard import HazardCell
from src.core.player import Player


class World:
    """
    The game world: grid, player, adversaries and hazards.

    Attributes:
        config: Game configuration.
        rng: Seeded random generator shared by every component.
        grid: The cell store.
        player: The player token.
        adversaries: Dict of adversary_id -> Adversary (alive only).
        hazards: Dict of (x, y) -> HazardCell (active only).
        tick_count: Coordinator ticks elapsed in the current level.
        level: Current level number.
        mode: Active rule mode.
        renderer: Render-layer collaborator.
    """

    def __init__(
        self,
        config: GameConfig,
        rng: Optional[np.random.Generator] = None,
        renderer: Optional[Renderer] = None,
    ):
        self.config = config
        self.cols = config.grid.cols
        self.rows = config.grid.rows
        self.rng = rng if rng is not None else np.random.default_rng(config.grid.seed)
        self.renderer = renderer or Renderer()

        self.grid = Grid(self.cols, self.rows)
        self.player = Player(
            x=self.cols // 2,
            y=self.rows // 2,
            cols=self.cols,
            rows=self.rows,
            renderer=self.renderer,
        )

        self.tick_count: int = 0
        self.level: int = 1
        self.mode: RuleMode = RuleMode(config.generator.mode)

        self.adversaries: dict[int, Adversary] = {}
        self.hazards: dict[tuple[int, int], HazardCell] = {}

        self._adversary_grid: dict[tuple[int, int], set[int]] = defaultdict(set)

    # ------------------------------------------------------------------
    # Level setup
    # ------------------------------------------------------------------

    def setup_level(self, level: int, mode: Optional[RuleMode | str] = None) -> None:
        """
        Reset per-level state and populate the grid.

        Clears adversaries and hazards, resets the tick counter and puts the
        player back at the grid center.
        """
        self.level = level
        if mode is not None:
            self.mode = RuleMode(mode)

        self.clear_adversaries()
        self.clear_hazards()
        self.tick_count = 0

        self.grid.populate(level, self.mode, self.rng, self.config.generator)
        self.renderer.update_grid(self.grid)
        self.player.set_position(self.cols // 2, self.rows // 2)

    # ------------------------------------------------------------------
    # Adversary management
    # ------------------------------------------------------------------

    def add_adversary(self, adversary: Adversary) -> None:
        self.adversaries[adversary.id] = adversary
        self._adversary_grid[adversary.position].add(adversary.id)

    def remove_adversary(self, adversary: Adversary) -> None:
        self.adversaries.pop(adversary.id, None)
        self._adversary_grid[adversary.position].discard(adversary.id)

    def move_adversary(self, adversary: Adversary, new_x: int, new_y: int) -> None:
        """Update an adversary's position, maintaining the spatial index."""
        self._adversary_grid[adversary.position].discard(adversary.id)
        adversary.x, adversary.y = new_x, new_y
        self._adversary_grid[adversary.position].add(adversary.id)

    def adversaries_at(self, x: int, y: int) -> list[Adversary]:
        ids = self._adversary_grid.get((x, y), set())
        return [self.adversaries[aid] for aid in sorted(ids) if aid in self.adversaries]

    def is_adversary_at(self, x: int, y: int) -> bool:
        return bool(self.adversaries_at(x, y))

    def get_adversaries(self) -> list[Adversary]:
        """Alive adversaries in id (spawn) order. Safe to iterate while modifying."""
        return [self.adversaries[aid] for aid in sorted(self.adversaries)]

    def adversary_positions(self) -> list[tuple[int, int]]:
        return [a.position for a in self.get_adversaries()]

    def clear_adversaries(self) -> None:
        self.adversaries.clear()
        self._adversary_grid.clear()
        self.renderer.update_adversaries([])

    @property
    def adversary_count(self) -> int:
        return len(self.adversaries)

    # ------------------------------------------------------------------
    # Hazard management
    # ------------------------------------------------------------------

    def add_hazard(self, hazard: HazardCell) -> None:
        self.hazards[hazard.position] = hazard
        self.renderer.mark_hazard(hazard.x, hazard.y, True)

    def remove_hazard(self, pos: tuple[int, int]) -> Optional[HazardCell]:
        hazard = self.hazards.pop(pos, None)
        if hazard is not None:
            self.renderer.mark_hazard_expiring(hazard.x, hazard.y, False)
            self.renderer.mark_hazard(hazard.x, hazard.y, False)
        return hazard

    def hazard_at(self, x: int, y: int) -> Optional[HazardCell]:
        return self.hazards.get((x, y))

    def is_hazard(self, x: int, y: int) -> bool:
        return (x, y) in self.hazards

    def hazard_positions(self) -> list[tuple[int, int]]:
        return list(self.hazards.keys())

    def clear_hazards(self) -> None:
        for pos in list(self.hazards):
            self.remove_hazard(pos)

    @property
    def hazard_count(self) -> int:
        return len(self.hazards)

    # ------------------------------------------------------------------
    # Spatial queries
    # ------------------------------------------------------------------

    def is_valid_position(self, x: int, y: int) -> bool:
        return self.grid.is_valid_position(x, y)

    def is_open(self, x: int, y: int) -> bool:
        """On the grid and not a hazard: a cell an adversary may enter."""
        return self.is_valid_position(x, y) and not self.is_hazard(x, y)

    def __repr__(self) -> str:
        return (
            f"World(size={self.cols}x{self.rows}, level={self.level}, "
            f"mode={self.mode.value}, tick={self.tick_count}, "
            f"adversaries={self.adversary_count}, hazards={self.hazard_count})"
        )
