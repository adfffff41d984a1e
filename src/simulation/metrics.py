"""
KPI Metrics collection for Number Nosher.

MetricsCollector gathers per-level Key Performance Indicators (KPIs) from
the session state and the coordinator's accumulated tick statistics. It
produces a flat dictionary per finished level suitable for CSV export and
analysis.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

import numpy as np

if TYPE_CHECKING:
    from src.simulation.session import GameSession


# ---------------------------------------------------------------------------
# MetricsCollector
# ---------------------------------------------------------------------------

class MetricsCollector:
    """
    Collects and computes KPIs per level.

    Usage:
      1. When a level ends (cleared or game over), call `collect(session)`
      2. Resulting dict is appended to `history`
      3. Call `get_history()` to retrieve all collected rows

    Attributes:
        history: List of KPI dicts, one per level played.
    """

    def __init__(self) -> None:
        self.history: list[dict] = []

    def collect(
        self,
        session: GameSession,
        tick_stats_totals: Optional[dict[str, int]] = None,
    ) -> dict:
        """
        Compute all KPIs for the level just finished and append to history.

        Args:
            session: The game session at the end of the level.
            tick_stats_totals: Accumulated tick counters for this level
                               (from coordinator.get_accumulated_stats()).
                               None = read them from the session's coordinator.

        Returns:
            Dict of KPI_name -> value.
        """
        if tick_stats_totals is None:
            tick_stats_totals = session.coordinator.get_accumulated_stats()

        world = session.world
        grid = world.grid
        kpis: dict = {}

        # --- Level ---
        kpis["level"] = session.level
        kpis["mode"] = session.mode.value
        kpis["target"] = session.target
        kpis["outcome"] = session.state.value
        kpis["ticks"] = tick_stats_totals.get("ticks", 0)
        kpis["tick_rate_ms"] = session.coordinator.tick_rate_ms

        # --- Grid ---
        total_correct = sum(1 for c in grid.cells if c.is_correct)
        consumed = sum(1 for c in grid.cells if c.consumed)
        kpis["correct_cells"] = total_correct
        kpis["correct_remaining"] = grid.count_remaining_correct()
        kpis["cells_consumed"] = consumed
        kpis["correct_consumed"] = session.correct_consumed
        kpis["incorrect_consumed"] = session.incorrect_consumed
        attempts = session.correct_consumed + session.incorrect_consumed
        kpis["accuracy"] = session.correct_consumed / attempts if attempts > 0 else 0.0

        # --- Player ---
        kpis["score"] = session.score
        kpis["level_points"] = session.level_points
        kpis["lives"] = session.lives
        kpis["lives_gained"] = session.lives_gained
        kpis["collisions"] = session.collisions

        # --- Adversaries ---
        kpis["spawns_started"] = tick_stats_totals.get("spawns_started", 0)
        kpis["spawns_completed"] = session.coordinator.spawner.spawned_total
        kpis["adversaries_alive"] = world.adversary_count
        kpis["adversaries_exited"] = tick_stats_totals.get("exited", 0)
        kpis["adversaries_eliminated"] = tick_stats_totals.get("eliminated", 0)
        kpis["move_conflicts"] = tick_stats_totals.get("conflicts", 0)
        kpis["cells_restored"] = tick_stats_totals.get("restored", 0)
        moves = tick_stats_totals.get("moved", 0)
        stays = tick_stats_totals.get("stayed", 0)
        kpis["stay_rate"] = stays / (moves + stays) if (moves + stays) > 0 else 0.0

        # --- Hazards ---
        kpis["hazards_spawned"] = tick_stats_totals.get("hazards_spawned", 0)
        kpis["hazards_expired"] = tick_stats_totals.get("hazards_expired", 0)
        kpis["hazards_active"] = world.hazard_count

        self.history.append(kpis)
        return kpis

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_history(self) -> list[dict]:
        """Return all collected KPI rows."""
        return list(self.history)

    def get_last(self) -> Optional[dict]:
        """Return the last collected KPI row, or None."""
        return self.history[-1] if self.history else None

    def get_kpi_series(self, kpi_name: str) -> list:
        """Extract a single KPI as a list across all levels."""
        return [row[kpi_name] for row in self.history if kpi_name in row]

    def summary(self) -> dict:
        """Aggregate figures over every collected level."""
        if not self.history:
            return {"levels_played": 0}
        accuracy = np.array(self.get_kpi_series("accuracy"), dtype=float)
        ticks = np.array(self.get_kpi_series("ticks"), dtype=float)
        last = self.history[-1]
        return {
            "levels_played": len(self.history),
            "levels_cleared": sum(1 for row in self.history if row["outcome"] == "level_complete"),
            "highest_level": int(max(self.get_kpi_series("level"))),
            "final_score": last["score"],
            "final_lives": last["lives"],
            "mean_accuracy": float(np.mean(accuracy)),
            "mean_ticks_per_level": float(np.mean(ticks)),
            "total_collisions": int(sum(self.get_kpi_series("collisions"))),
        }

    @staticmethod
    def kpi_names() -> list[str]:
        """Return the ordered list of all KPI names."""
        return [
            "level",
            "mode",
            "target",
            "outcome",
            "ticks",
            "tick_rate_ms",
            "correct_cells",
            "correct_remaining",
            "cells_consumed",
            "correct_consumed",
            "incorrect_consumed",
            "accuracy",
            "score",
            "level_points",
            "lives",
            "lives_gained",
            "collisions",
            "spawns_started",
            "spawns_completed",
            "adversaries_alive",
            "adversaries_exited",
            "adversaries_eliminated",
            "move_conflicts",
            "cells_restored",
            "stay_rate",
            "hazards_spawned",
            "hazards_expired",
            "hazards_active",
        ]
