"""
Adversary (enemy) records for Number Nosher.

An adversary is an AI-controlled token roaming the grid. Its movement is
decided by a per-type planning function (see src/simulation/behaviors.py);
this module only holds the state.

Types:
  - LINEAR:          walks straight, exits the board at an edge
  - ERRATIC_FLEEING: wanders, runs away when the player gets close
  - SEEKER:          heads for the nearest uneaten correct cell
  - MUTATOR:         wanders and sometimes restores eaten cells
  - PURSUER:         chases the player along a shortest path
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class AdversaryType(str, Enum):
    LINEAR = "linear"
    ERRATIC_FLEEING = "erratic_fleeing"
    SEEKER = "seeker"
    MUTATOR = "mutator"
    PURSUER = "pursuer"


ADVERSARY_TAGS: dict[AdversaryType, str] = {
    AdversaryType.LINEAR: "👾",
    AdversaryType.ERRATIC_FLEEING: "👻",
    AdversaryType.SEEKER: "🐛",
    AdversaryType.MUTATOR: "🔧",
    AdversaryType.PURSUER: "👹",
}


# Unique ID counter for adversaries
_next_adversary_id: int = 0


def _get_next_id() -> int:
    """Generate a globally unique, monotonically increasing adversary ID."""
    global _next_adversary_id
    aid = _next_adversary_id
    _next_adversary_id += 1
    return aid


def reset_adversary_id_counter() -> None:
    """Reset the ID counter (useful for tests)."""
    global _next_adversary_id
    _next_adversary_id = 0


class Adversary:
    """
    An adversary on the grid.

    Attributes:
        id: Unique identifier.
        x: Current x-coordinate.
        y: Current y-coordinate.
        type: Behavior type.
        direction: Current heading ("up", "down", "left", "right").
        tag: Display glyph for the type.
        spawn_tick: Tick at which this adversary appeared.
    """

    __slots__ = ("id", "x", "y", "type", "direction", "tag", "spawn_tick")

    def __init__(
        self,
        x: int,
        y: int,
        type: AdversaryType | str = AdversaryType.LINEAR,
        direction: str = "down",
        spawn_tick: int = 0,
    ):
        self.id = _get_next_id()
        self.x = x
        self.y = y
        self.type = AdversaryType(type)
        self.direction = direction
        self.tag = ADVERSARY_TAGS[self.type]
        self.spawn_tick = spawn_tick

    @property
    def position(self) -> tuple[int, int]:
        return (self.x, self.y)

    @property
    def is_pursuer(self) -> bool:
        return self.type is AdversaryType.PURSUER

    def to_dict(self) -> dict[str, Any]:
        """Serializable representation (for snapshots)."""
        return {
            "id": self.id,
            "x": self.x,
            "y": self.y,
            "type": self.type.value,
            "direction": self.direction,
            "tag": self.tag,
            "spawn_tick": self.spawn_tick,
        }

    def __repr__(self) -> str:
        return (
            f"Adversary(id={self.id}, type={self.type.value}, "
            f"pos=({self.x},{self.y}), dir={self.direction})"
        )
