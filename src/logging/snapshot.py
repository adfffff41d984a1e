"""
Snapshot manager for Number Nosher runs.

Saves and loads the world state at the end of each level as JSON: the
grid with every cell's value and flags, the player, the adversaries and
the hazards.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

import numpy as np

from src.core.world import World


class SnapshotManager:
    """
    Saves and loads world snapshots as JSON files.

    Each snapshot is saved to: {output_dir}/snapshots/level_{N:04d}.json

    Attributes:
        output_dir: Base output directory for the run.
        snapshot_dir: Where snapshot files are written.
    """

    def __init__(self, output_dir: str | Path):
        self.output_dir = Path(output_dir)
        self.snapshot_dir = self.output_dir / "snapshots"
        self.snapshot_dir.mkdir(parents=True, exist_ok=True)

    def _path_for(self, level: int) -> Path:
        return self.snapshot_dir / f"level_{level:04d}.json"

    def save(self, world: World, level: int, extra: Optional[dict] = None) -> Path:
        """
        Write a snapshot of the world.

        Args:
            world: The world to snapshot.
            level: Level number (for the filename).
            extra: Additional top-level fields (e.g. session score).

        Returns:
            Path to the saved file.
        """
        snapshot = self.world_to_dict(world, level)
        if extra:
            snapshot.update(extra)

        file_path = self._path_for(level)
        with open(file_path, "w", encoding="utf-8") as f:
            json.dump(snapshot, f, indent=2, ensure_ascii=False, default=_json_default)
        return file_path

    def load(self, level: int) -> dict:
        """
        Load the snapshot for a level.

        Raises:
            FileNotFoundError: If the snapshot doesn't exist.
        """
        file_path = self._path_for(level)
        if not file_path.exists():
            raise FileNotFoundError(f"Snapshot not found: {file_path}")

        with open(file_path, "r", encoding="utf-8") as f:
            return json.load(f)

    def list_snapshots(self) -> list[int]:
        """Sorted level numbers with a snapshot on disk."""
        levels = []
        for p in self.snapshot_dir.glob("level_*.json"):
            try:
                levels.append(int(p.stem.split("_")[1]))
            except (IndexError, ValueError):
                continue
        return sorted(levels)

    @staticmethod
    def world_to_dict(world: World, level: int) -> dict:
        """Convert world state to a serializable dict."""
        return {
            "level": level,
            "mode": world.mode.value,
            "tick": world.tick_count,
            "cols": world.cols,
            "rows": world.rows,
            "player": {"x": world.player.x, "y": world.player.y},
            "cells": [
                {
                    "x": c.x,
                    "y": c.y,
                    "value": c.value,
                    "is_correct": c.is_correct,
                    "consumed": c.consumed,
                }
                for c in world.grid.cells
            ],
            "adversaries": [a.to_dict() for a in world.get_adversaries()],
            "hazards": [h.to_dict() for h in world.hazards.values()],
        }


def _json_default(obj: Any) -> Any:
    """JSON serialization fallback for NumPy types."""
    if isinstance(obj, np.integer):
        return int(obj)
    if isinstance(obj, np.floating):
        return float(obj)
    if isinstance(obj, np.bool_):
        return bool(obj)
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    raise TypeError(f"Object of type {type(obj)} is not JSON serializable")
