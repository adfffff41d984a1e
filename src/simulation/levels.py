"""
Level progression tables for Number Nosher.

Tick rate, adversary admission, scoring and feedback text as functions of
the level number. The tables are kept exactly as tuned; the tunable
scalars (rates, point values) come from the config sections passed in.
"""

from __future__ import annotations

from typing import Optional

import numpy as np

from src.core.adversary import AdversaryType
from src.core.config import SessionConfig, SpawnConfig, TickConfig


# ---------------------------------------------------------------------------
# Timing
# ---------------------------------------------------------------------------

def tick_rate_ms(level: int, config: Optional[TickConfig] = None) -> int:
    """Milliseconds per coordinator tick: faster each level, floored."""
    if config is None:
        config = TickConfig()
    return max(config.min_rate_ms, config.base_rate_ms - (level - 1) * config.rate_step_ms)


def first_spawn_delay_ms(level: int, config: Optional[SpawnConfig] = None) -> int:
    """Tick time before the first adversary of a level may appear."""
    if config is None:
        config = SpawnConfig()
    delay = config.first_spawn_base_ms - (level - 1) * config.first_spawn_step_ms
    return max(config.first_spawn_min_ms, delay)


# ---------------------------------------------------------------------------
# Adversary admission
# ---------------------------------------------------------------------------

def max_adversaries(level: int) -> int:
    if level <= 3:
        return 1
    if level <= 7:
        return 2
    return 3


def type_weights(level: int) -> dict[AdversaryType, float]:
    """Spawn probabilities per adversary type (insertion order matters)."""
    if level <= 2:
        return {AdversaryType.LINEAR: 1.0}
    if level <= 5:
        return {AdversaryType.LINEAR: 0.6, AdversaryType.ERRATIC_FLEEING: 0.4}
    if level <= 8:
        return {
            AdversaryType.LINEAR: 0.35,
            AdversaryType.ERRATIC_FLEEING: 0.25,
            AdversaryType.SEEKER: 0.25,
            AdversaryType.PURSUER: 0.15,
        }
    return {
        AdversaryType.LINEAR: 0.2,
        AdversaryType.ERRATIC_FLEEING: 0.2,
        AdversaryType.SEEKER: 0.2,
        AdversaryType.MUTATOR: 0.2,
        AdversaryType.PURSUER: 0.2,
    }


def pick_type(level: int, rng: np.random.Generator) -> AdversaryType:
    """Weighted draw over `type_weights(level)`."""
    weights = type_weights(level)
    roll = rng.random() * sum(weights.values())
    for adv_type, weight in weights.items():
        roll -= weight
        if roll <= 0:
            return adv_type
    return AdversaryType.LINEAR


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------

def points_for_consume(level: int, config: Optional[SessionConfig] = None) -> int:
    if config is None:
        config = SessionConfig()
    return config.base_points + level // 3


def level_clear_bonus(level: int, config: Optional[SessionConfig] = None) -> int:
    if config is None:
        config = SessionConfig()
    return config.level_clear_base_bonus + level * config.level_clear_step_bonus


# ---------------------------------------------------------------------------
# Feedback text
# ---------------------------------------------------------------------------

ENCOURAGING_MESSAGES: dict[int, tuple[str, ...]] = {
    1: ("Nice!", "Good!", "Yes!"),
    3: ("Great job!", "Awesome!", "Keep going!"),
    5: ("Amazing!", "Fantastic!", "You rock!"),
    7: ("Incredible!", "Superstar!", "On fire!"),
    10: ("UNSTOPPABLE!", "LEGENDARY!", "GENIUS!"),
}

WRONG_MESSAGES: tuple[str, ...] = ("Oops!", "Try again!", "Not quite!", "Careful!", "Watch out!")

LEVEL_COMPLETE_MESSAGES: tuple[str, ...] = (
    "Fantastic!",
    "You did it!",
    "Amazing work!",
    "Super smart!",
    "Math wizard!",
)


def _choice(options: tuple[str, ...], rng: np.random.Generator) -> str:
    return options[int(rng.integers(0, len(options)))]


def encouraging_message(streak: int, rng: np.random.Generator) -> str:
    """Praise scaled to the current run of correct consumes."""
    selected = ENCOURAGING_MESSAGES[1]
    for threshold in sorted(ENCOURAGING_MESSAGES, reverse=True):
        if streak >= threshold:
            selected = ENCOURAGING_MESSAGES[threshold]
            break
    return _choice(selected, rng)


def wrong_message(rng: np.random.Generator) -> str:
    return _choice(WRONG_MESSAGES, rng)


def level_complete_message(rng: np.random.Generator) -> str:
    return _choice(LEVEL_COMPLETE_MESSAGES, rng)
