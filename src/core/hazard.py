"""
Hazard cells ("safety squares") for Number Nosher.

A hazard cell is a temporarily protected grid cell that adversaries may
never enter. Its lifetime is counted in coordinator ticks, not wall time,
so a paused game does not age it. In its final tick it is flagged as
expiring so the render layer can flash a warning.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class HazardCell:
    """
    A hazard on the grid.

    Attributes:
        x: Grid x-coordinate.
        y: Grid y-coordinate.
        lifetime_ticks: Total lifetime in ticks.
        created_at_tick: Coordinator tick at creation.
        expiring: Set once the hazard is in its warning window.
    """
    x: int
    y: int
    lifetime_ticks: int
    created_at_tick: int
    expiring: bool = False

    @property
    def position(self) -> tuple[int, int]:
        """Grid position as (x, y) tuple."""
        return (self.x, self.y)

    @property
    def expiry_tick(self) -> int:
        """First tick at which the hazard is removed."""
        return self.created_at_tick + self.lifetime_ticks

    def remaining_ticks(self, current_tick: int) -> int:
        """Ticks left before removal (<= 0 means expired)."""
        return self.lifetime_ticks - (current_tick - self.created_at_tick)

    def is_expired(self, current_tick: int) -> bool:
        return self.remaining_ticks(current_tick) <= 0

    def in_warning_window(self, current_tick: int, flash_ticks: int = 1) -> bool:
        """True during the last `flash_ticks` ticks of life."""
        remaining = self.remaining_ticks(current_tick)
        return 0 < remaining <= flash_ticks

    def to_dict(self) -> dict:
        return {
            "x": self.x,
            "y": self.y,
            "lifetime_ticks": self.lifetime_ticks,
            "created_at_tick": self.created_at_tick,
            "expiring": self.expiring,
        }

    def __repr__(self) -> str:
        return (
            f"HazardCell(pos=({self.x},{self.y}), lifetime={self.lifetime_ticks}, "
            f"created={self.created_at_tick}, expiring={self.expiring})"
        )
