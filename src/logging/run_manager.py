"""
Output directory for one headless Number Nosher run.

    {base_dir}/{run_name}/
        config.json              - the GameConfig the run used
        metrics.csv              - one KPI row per finished level
        snapshots/level_NNNN.json
        summary.json             - aggregate figures, written by finalize()

`record_level` is meant to be passed (bound) as the AutoPlayer's
`on_level_end` callback.
"""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from src.core.config import GameConfig, save_config
from src.logging.csv_logger import CSVLogger
from src.logging.snapshot import SnapshotManager
from src.simulation.metrics import MetricsCollector

if TYPE_CHECKING:
    from src.core.world import World
    from src.simulation.session import GameSession


class RunManager:
    """
    Collects, logs and snapshots each level of a run.

    Attributes:
        config: The run's configuration.
        run_dir: This run's output directory.
        metrics: KPI collector shared by every level of the run.
        csv_logger: Level KPI table.
        snapshot_manager: End-of-level world snapshots.
    """

    def __init__(
        self,
        config: GameConfig,
        base_dir: Optional[str | Path] = None,
        run_name: Optional[str] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.config = config
        base = Path(base_dir if base_dir is not None else config.output.output_dir)
        self.run_dir = base / (run_name or datetime.now().strftime("%Y%m%d_%H%M%S"))
        self.run_dir.mkdir(parents=True, exist_ok=True)
        save_config(config, self.config_path)

        self.metrics = metrics or MetricsCollector()
        self.csv_logger = CSVLogger(self.run_dir / "metrics.csv")
        self.snapshot_manager = SnapshotManager(self.run_dir)

    @property
    def config_path(self) -> Path:
        return self.run_dir / "config.json"

    @property
    def metrics_path(self) -> Path:
        return self.csv_logger.file_path

    @property
    def snapshots_dir(self) -> Path:
        return self.snapshot_manager.snapshot_dir

    @property
    def summary_path(self) -> Path:
        return self.run_dir / "summary.json"

    # ------------------------------------------------------------------
    # Per level
    # ------------------------------------------------------------------

    def record_level(self, session: GameSession) -> dict:
        """
        Collect the level's KPIs, append them to the CSV and, when
        `output.snapshot_every_level` is set, snapshot the board.

        Returns:
            The KPI row.
        """
        kpis = self.metrics.collect(session)
        self.log_level(kpis)
        if self.config.output.snapshot_every_level:
            self.save_snapshot(session.world, session.level, extra={"session": session.to_dict()})
        return kpis

    def log_level(self, kpi_dict: dict) -> None:
        self.csv_logger.log_row(kpi_dict)

    def save_snapshot(self, world: World, level: int, extra: Optional[dict] = None) -> Path:
        return self.snapshot_manager.save(world, level, extra)

    # ------------------------------------------------------------------
    # End of run
    # ------------------------------------------------------------------

    def finalize(self, extra: Optional[dict] = None) -> dict:
        """Write summary.json: the metrics summary plus `extra`. Returns it."""
        summary = {**self.metrics.summary(), **(extra or {})}
        with open(self.summary_path, "w", encoding="utf-8") as f:
            json.dump(summary, f, indent=2, ensure_ascii=False)
        return summary

    @staticmethod
    def list_runs(base_dir: str | Path) -> list[str]:
        """Sorted names of run directories (those holding a config.json)."""
        base = Path(base_dir)
        if not base.is_dir():
            return []
        return sorted(p.parent.name for p in base.glob("*/config.json"))

    def __repr__(self) -> str:
        return f"RunManager(run_dir='{self.run_dir}', levels={len(self.metrics.history)})"
