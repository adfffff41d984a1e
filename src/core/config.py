"""
Configuration system for Number Nosher.

Provides a hierarchical dataclass-based config with JSON serialization,
validation, and defaults for every gameplay constant (grid size, tick
rates, spawn timing, hazard tuning, adversary behavior, content
generation).
"""

from __future__ import annotations

import json
import warnings
from copy import deepcopy
from dataclasses import dataclass, field, fields, asdict
from pathlib import Path
from typing import Any, Optional


RULE_MODES = ("multiples", "factors", "primes", "equality", "inequality")


# ---------------------------------------------------------------------------
# Sub-config dataclasses (grouped by domain)
# ---------------------------------------------------------------------------

@dataclass
class GridConfig:
    """Board dimensions and RNG seed."""
    cols: int = 6
    rows: int = 5
    seed: Optional[int] = 42

    def validate(self) -> list[str]:
        errors = []
        if self.cols < 2:
            errors.append(f"grid.cols must be >= 2, got {self.cols}")
        if self.rows < 2:
            errors.append(f"grid.rows must be >= 2, got {self.rows}")
        if self.cols > 50:
            errors.append(f"grid.cols must be <= 50, got {self.cols}")
        if self.rows > 50:
            errors.append(f"grid.rows must be <= 50, got {self.rows}")
        return errors


@dataclass
class TickConfig:
    """Tick rate formula: rate = max(min_rate_ms, base_rate_ms - (level-1) * rate_step_ms)."""
    base_rate_ms: int = 2500
    min_rate_ms: int = 400
    rate_step_ms: int = 100

    def validate(self) -> list[str]:
        errors = []
        if self.min_rate_ms < 1:
            errors.append(f"tick.min_rate_ms must be >= 1, got {self.min_rate_ms}")
        if self.base_rate_ms < self.min_rate_ms:
            errors.append("tick.base_rate_ms must be >= tick.min_rate_ms")
        if self.rate_step_ms < 0:
            errors.append(f"tick.rate_step_ms must be >= 0, got {self.rate_step_ms}")
        return errors


@dataclass
class SpawnConfig:
    """Adversary spawn timing (milliseconds of game time)."""
    cooldown_ms: int = 3000
    max_time_without_adversary_ms: int = 5000
    first_spawn_base_ms: int = 3000
    first_spawn_step_ms: int = 100
    first_spawn_min_ms: int = 1000
    warning_ms: int = 500

    def validate(self) -> list[str]:
        errors = []
        for name in ("cooldown_ms", "max_time_without_adversary_ms",
                     "first_spawn_base_ms", "first_spawn_step_ms",
                     "first_spawn_min_ms", "warning_ms"):
            value = getattr(self, name)
            if value < 0:
                errors.append(f"spawn.{name} must be >= 0, got {value}")
        if self.first_spawn_base_ms < self.first_spawn_min_ms:
            errors.append("spawn.first_spawn_base_ms must be >= spawn.first_spawn_min_ms")
        return errors


@dataclass
class HazardConfig:
    """Safety square ("hazard cell") settings. Lifetimes are in ticks."""
    max_hazards: int = 3
    min_lifetime_ticks: int = 3
    max_lifetime_ticks: int = 8
    flash_ticks: int = 1
    empty_spawn_chance: float = 0.3     # per tick, when no hazard exists
    extra_spawn_chance: float = 0.05    # divided by current count

    def validate(self) -> list[str]:
        errors = []
        if self.max_hazards < 0:
            errors.append(f"hazard.max_hazards must be >= 0, got {self.max_hazards}")
        if self.min_lifetime_ticks < 1:
            errors.append(f"hazard.min_lifetime_ticks must be >= 1, got {self.min_lifetime_ticks}")
        if self.max_lifetime_ticks < self.min_lifetime_ticks:
            errors.append("hazard.max_lifetime_ticks must be >= hazard.min_lifetime_ticks")
        if self.flash_ticks < 0:
            errors.append(f"hazard.flash_ticks must be >= 0, got {self.flash_ticks}")
        for name in ("empty_spawn_chance", "extra_spawn_chance"):
            value = getattr(self, name)
            if not (0.0 <= value <= 1.0):
                errors.append(f"hazard.{name} must be in [0, 1], got {value}")
        return errors


@dataclass
class AdversaryConfig:
    """Behavior tuning for the five adversary types."""
    linear_turn_chance: float = 0.10
    flee_radius: int = 2
    mutator_restore_chance: float = 0.15
    restore_correct_chance: float = 0.5

    def validate(self) -> list[str]:
        errors = []
        for name in ("linear_turn_chance", "mutator_restore_chance", "restore_correct_chance"):
            value = getattr(self, name)
            if not (0.0 <= value <= 1.0):
                errors.append(f"adversary.{name} must be in [0, 1], got {value}")
        if self.flee_radius < 0:
            errors.append(f"adversary.flee_radius must be >= 0, got {self.flee_radius}")
        return errors


@dataclass
class GeneratorConfig:
    """Content generation settings."""
    mode: str = "multiples"
    min_correct_ratio: float = 0.35
    max_correct_ratio: float = 0.55
    max_attempts: int = 1000        # rejection sampling budget for numeric fits
    dedup_attempts: int = 50        # expression-string dedup budget
    testing_mode: bool = False      # exactly one correct cell, at (0, 0)

    def validate(self) -> list[str]:
        errors = []
        if self.mode not in RULE_MODES:
            errors.append(f"generator.mode must be one of {RULE_MODES}, got '{self.mode}'")
        if not (0.0 <= self.min_correct_ratio <= self.max_correct_ratio <= 1.0):
            errors.append("generator: need 0 <= min_correct_ratio <= max_correct_ratio <= 1")
        if self.max_attempts < 1:
            errors.append(f"generator.max_attempts must be >= 1, got {self.max_attempts}")
        if self.dedup_attempts < 1:
            errors.append(f"generator.dedup_attempts must be >= 1, got {self.dedup_attempts}")
        return errors


@dataclass
class PathConfig:
    """Autopilot settings."""
    step_delay_ms: int = 150

    def validate(self) -> list[str]:
        errors = []
        if self.step_delay_ms < 1:
            errors.append(f"path.step_delay_ms must be >= 1, got {self.step_delay_ms}")
        return errors


@dataclass
class SessionConfig:
    """Lives and scoring."""
    starting_lives: int = 4
    max_lives: int = 9
    extra_life_threshold: int = 100
    base_points: int = 5
    level_clear_base_bonus: int = 50
    level_clear_step_bonus: int = 10

    def validate(self) -> list[str]:
        errors = []
        if self.starting_lives < 1:
            errors.append(f"session.starting_lives must be >= 1, got {self.starting_lives}")
        if self.max_lives < self.starting_lives:
            errors.append("session.max_lives must be >= session.starting_lives")
        if self.extra_life_threshold < 1:
            errors.append(f"session.extra_life_threshold must be >= 1, got {self.extra_life_threshold}")
        return errors


@dataclass
class OutputConfig:
    """Run output settings."""
    output_dir: str = "runs"
    snapshot_every_level: bool = True

    def validate(self) -> list[str]:
        return []


# ---------------------------------------------------------------------------
# Top-level config
# ---------------------------------------------------------------------------

@dataclass
class GameConfig:
    """
    Top-level game configuration.

    All parameters are adjustable. Nested dataclasses group related settings.
    Load from JSON with `load_config()`, validate with `validate()`.
    """
    grid: GridConfig = field(default_factory=GridConfig)
    tick: TickConfig = field(default_factory=TickConfig)
    spawn: SpawnConfig = field(default_factory=SpawnConfig)
    hazard: HazardConfig = field(default_factory=HazardConfig)
    adversary: AdversaryConfig = field(default_factory=AdversaryConfig)
    generator: GeneratorConfig = field(default_factory=GeneratorConfig)
    path: PathConfig = field(default_factory=PathConfig)
    session: SessionConfig = field(default_factory=SessionConfig)
    output: OutputConfig = field(default_factory=OutputConfig)

    def validate(self) -> list[str]:
        """Validate all config sections. Returns list of error messages (empty = valid)."""
        errors = []
        for f in fields(self):
            sub = getattr(self, f.name)
            if hasattr(sub, "validate"):
                errors.extend(sub.validate())
        return errors

    def to_dict(self) -> dict[str, Any]:
        """Convert to nested dict for JSON serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> GameConfig:
        """Create GameConfig from nested dict, merging with defaults."""
        config = cls()
        _merge_into_dataclass(config, data)
        return config

    def copy(self) -> GameConfig:
        """Deep copy of this config."""
        return deepcopy(self)


# ---------------------------------------------------------------------------
# JSON I/O helpers
# ---------------------------------------------------------------------------

def _merge_into_dataclass(target: Any, source: dict[str, Any]) -> None:
    """
    Recursively merge a dict into a dataclass instance.
    Unknown keys emit a warning but don't raise.
    """
    if not isinstance(source, dict):
        return

    known_fields = {f.name for f in fields(target)}
    for key, value in source.items():
        if key not in known_fields:
            warnings.warn(
                f"Unknown config key '{key}' in section {type(target).__name__} - ignored.",
                UserWarning,
                stacklevel=3,
            )
            continue

        current = getattr(target, key)

        if hasattr(current, "__dataclass_fields__") and isinstance(value, dict):
            _merge_into_dataclass(current, value)
        else:
            setattr(target, key, value)


def load_config(path: str | Path) -> GameConfig:
    """
    Load config from a JSON file. Missing fields use defaults.

    Args:
        path: Path to JSON config file.

    Returns:
        Validated GameConfig instance.

    Raises:
        FileNotFoundError: If path doesn't exist.
        json.JSONDecodeError: If JSON is malformed.
        ValueError: If config values are invalid.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    config = GameConfig.from_dict(data)

    errors = config.validate()
    if errors:
        msg = "Invalid configuration:\n" + "\n".join(f"  - {e}" for e in errors)
        raise ValueError(msg)

    return config


def save_config(config: GameConfig, path: str | Path) -> None:
    """Save config to JSON file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(config.to_dict(), f, indent=2, ensure_ascii=False)


def get_default_config() -> GameConfig:
    """Return a fresh default config (all defaults, validated)."""
    config = GameConfig()
    errors = config.validate()
    assert not errors, f"Default config is invalid: {errors}"
    return config


def apply_param_override(config: GameConfig, dotted_key: str, value: Any) -> None:
    """
    Apply a single parameter override using dot notation.

    Example:
        apply_param_override(config, "grid.seed", 7)
        apply_param_override(config, "generator.mode", "primes")

    Raises:
        KeyError: If the path doesn't exist.
    """
    parts = dotted_key.split(".")
    obj = config
    for part in parts[:-1]:
        if not hasattr(obj, part):
            raise KeyError(f"Config path '{dotted_key}' invalid: '{part}' not found in {type(obj).__name__}")
        obj = getattr(obj, part)

    final_key = parts[-1]
    if not hasattr(obj, final_key):
        raise KeyError(f"Config path '{dotted_key}' invalid: '{final_key}' not found in {type(obj).__name__}")

    setattr(obj, final_key, value)
