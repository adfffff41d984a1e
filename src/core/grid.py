"""
Grid store for Number Nosher.

Owns the COLS x ROWS matrix of cells: generated value, correctness and
consumed flag. Fallible operations return results instead of raising
(consuming an already-consumed or off-grid cell is a no-op).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

import numpy as np

from src.core.config import GeneratorConfig
from src.core.generator import CellScalar, RuleMode, generate
from src.utils.spatial import in_bounds


@dataclass(slots=True)
class Cell:
    """
    A single grid cell.

    Attributes:
        value: Number or expression shown in the cell.
        is_correct: Whether the value satisfies the level's rule.
        consumed: Whether the player has already eaten this cell.
        x, y: Grid coordinates.
    """
    value: CellScalar
    is_correct: bool
    consumed: bool
    x: int
    y: int

    @property
    def position(self) -> tuple[int, int]:
        return (self.x, self.y)


@dataclass(frozen=True, slots=True)
class ConsumeResult:
    """Outcome of consuming a cell. `success` is False for no-op attempts."""
    success: bool
    is_correct: bool = False
    value: Optional[CellScalar] = None


class Grid:
    """
    Fixed-size grid of cells, stored row-major.

    Attributes:
        cols: Number of columns.
        rows: Number of rows.
        cells: Row-major list of Cell (empty until populated).
    """

    def __init__(self, cols: int = 6, rows: int = 5):
        self.cols = cols
        self.rows = rows
        self.cells: list[Cell] = []

    @property
    def size(self) -> int:
        return self.cols * self.rows

    # ------------------------------------------------------------------
    # Population
    # ------------------------------------------------------------------

    def populate(
        self,
        level: int,
        mode: RuleMode | str,
        rng: np.random.Generator,
        config: Optional[GeneratorConfig] = None,
    ) -> None:
        """Fill every cell from the content generator and reset consumed flags."""
        entries = generate(level, self.size, mode, rng, config)
        self.cells = [
            Cell(
                value=entry.value,
                is_correct=entry.is_correct,
                consumed=False,
                x=i % self.cols,
                y=i // self.cols,
            )
            for i, entry in enumerate(entries)
        ]

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def is_valid_position(self, x: int, y: int) -> bool:
        return in_bounds(x, y, self.cols, self.rows)

    def get_cell(self, x: int, y: int) -> Optional[Cell]:
        """Cell at (x, y), or None outside the grid or before population."""
        if not self.is_valid_position(x, y) or not self.cells:
            return None
        return self.cells[y * self.cols + x]

    def all_correct_consumed(self) -> bool:
        """Win condition: every correct cell has been consumed."""
        return all(cell.consumed or not cell.is_correct for cell in self.cells)

    def count_remaining_correct(self) -> int:
        return sum(1 for cell in self.cells if cell.is_correct and not cell.consumed)

    def unconsumed_correct_cells(self) -> list[Cell]:
        """Correct cells not yet consumed, in row-major order."""
        return [cell for cell in self.cells if cell.is_correct and not cell.consumed]

    def random_position(
        self,
        rng: np.random.Generator,
        exclude: Iterable[tuple[int, int]] = (),
    ) -> tuple[int, int]:
        """
        Uniform pick among cells not in `exclude`.

        Returns (0, 0) when every cell is excluded.
        """
        excluded = set(exclude)
        available = [
            (x, y)
            for y in range(self.rows)
            for x in range(self.cols)
            if (x, y) not in excluded
        ]
        if not available:
            return (0, 0)
        return available[int(rng.integers(0, len(available)))]

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def consume(self, x: int, y: int) -> ConsumeResult:
        """
        Consume the cell at (x, y).

        Returns:
            ConsumeResult(success=False) if off-grid or already consumed,
            otherwise success with the cell's correctness and value.
        """
        cell = self.get_cell(x, y)
        if cell is None or cell.consumed:
            return ConsumeResult(success=False)

        cell.consumed = True
        return ConsumeResult(success=True, is_correct=cell.is_correct, value=cell.value)

    def restore(self, x: int, y: int, value: CellScalar, is_correct: bool) -> bool:
        """
        Put a fresh value back into a consumed cell.

        Returns:
            True if the cell was consumed and has been restored.
        """
        cell = self.get_cell(x, y)
        if cell is None or not cell.consumed:
            return False
        cell.value = value
        cell.is_correct = is_correct
        cell.consumed = False
        return True

    def __repr__(self) -> str:
        return (
            f"Grid(size={self.cols}x{self.rows}, "
            f"remaining_correct={self.count_remaining_correct()})"
        )
