"""
Unit tests for KPI metrics and run output.

Tests cover:
- MetricsCollector:
  - KPI computation from known session states
  - Accuracy and stay rate
  - Tick totals read from the coordinator when not given
  - History tracking and summary
- CSVLogger:
  - Header written on first row
  - Incremental appending
  - Write-all mode
  - Read-back as strings and as a DataFrame; float rounding
- SnapshotManager:
  - Save/load roundtrip
  - List snapshots
  - Missing snapshot error
- RunManager:
  - Directory creation
  - Config copy
  - Per-level recording (CSV row + snapshot) and summary
  - Run listing
"""

import json

import numpy as np
import pytest

from src.core.adversary import Adversary, AdversaryType, reset_adversary_id_counter
from src.core.config import GameConfig
from src.core.hazard import HazardCell
from src.logging.csv_logger import CSVLogger
from src.logging.run_manager import RunManager
from src.logging.snapshot import SnapshotManager
from src.simulation.metrics import MetricsCollector
from src.simulation.session import GameSession


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def reset_ids():
    reset_adversary_id_counter()
    yield
    reset_adversary_id_counter()


@pytest.fixture
def config() -> GameConfig:
    cfg = GameConfig()
    cfg.spawn.first_spawn_base_ms = 10 ** 9
    cfg.spawn.first_spawn_min_ms = 10 ** 9
    cfg.hazard.max_hazards = 0
    return cfg


@pytest.fixture
def session(config) -> GameSession:
    s = GameSession(config)
    s.start_new_game(level=1, mode="multiples")
    return s


def make_tick_totals(**kwargs) -> dict[str, int]:
    defaults = {
        "ticks": 0,
        "spawns_started": 0,
        "moved": 0,
        "stayed": 0,
        "exited": 0,
        "eliminated": 0,
        "conflicts": 0,
        "restored": 0,
        "hazards_spawned": 0,
        "hazards_expired": 0,
    }
    defaults.update(kwargs)
    return defaults


def consume_at_player(session: GameSession, correct: bool) -> None:
    x, y = session.world.player.position
    cell = session.world.grid.get_cell(x, y)
    cell.value = 4 if correct else 3
    cell.is_correct = correct
    cell.consumed = False
    session.consume()


# ===========================================================================
# MetricsCollector Tests
# ===========================================================================

class TestMetricsCollectorBasic:
    def test_all_kpi_names_present(self, session):
        kpis = MetricsCollector().collect(session, make_tick_totals())
        assert set(kpis) == set(MetricsCollector.kpi_names())

    def test_level_fields(self, session):
        kpis = MetricsCollector().collect(session, make_tick_totals(ticks=7))
        assert kpis["level"] == 1
        assert kpis["mode"] == "multiples"
        assert kpis["target"] == 2
        assert kpis["outcome"] == "playing"
        assert kpis["ticks"] == 7
        assert kpis["tick_rate_ms"] == 2500

    def test_grid_counts(self, session):
        grid = session.world.grid
        total_correct = sum(1 for c in grid.cells if c.is_correct)
        kpis = MetricsCollector().collect(session, make_tick_totals())
        assert kpis["correct_cells"] == total_correct
        assert kpis["correct_remaining"] == total_correct
        assert kpis["cells_consumed"] == 0

    def test_accuracy(self, session):
        consume_at_player(session, correct=True)
        session.move_player("left")
        consume_at_player(session, correct=False)
        kpis = MetricsCollector().collect(session, make_tick_totals())
        assert kpis["correct_consumed"] == 1
        assert kpis["incorrect_consumed"] == 1
        assert kpis["accuracy"] == pytest.approx(0.5)
        assert kpis["score"] == 5
        assert kpis["lives"] == 3

    def test_no_attempts_zero_accuracy(self, session):
        kpis = MetricsCollector().collect(session, make_tick_totals())
        assert kpis["accuracy"] == 0.0

    def test_stay_rate(self, session):
        kpis = MetricsCollector().collect(session, make_tick_totals(moved=6, stayed=2))
        assert kpis["stay_rate"] == pytest.approx(0.25)

    def test_no_moves_zero_stay_rate(self, session):
        kpis = MetricsCollector().collect(session, make_tick_totals())
        assert kpis["stay_rate"] == 0.0

    def test_board_population(self, session):
        session.coordinator.model.add(session.world, Adversary(0, 0, AdversaryType.SEEKER))
        session.world.add_hazard(HazardCell(5, 4, 5, 0))
        kpis = MetricsCollector().collect(session, make_tick_totals(exited=2, conflicts=1))
        assert kpis["adversaries_alive"] == 1
        assert kpis["hazards_active"] == 1
        assert kpis["adversaries_exited"] == 2
        assert kpis["move_conflicts"] == 1

    def test_reads_coordinator_totals(self, session):
        session.advance(session.coordinator.tick_rate_ms * 3)
        kpis = MetricsCollector().collect(session)
        assert kpis["ticks"] == 3


# ===========================================================================
# History and summary
# ===========================================================================

class TestMetricsHistory:
    def test_history_appended(self, session):
        mc = MetricsCollector()
        mc.collect(session, make_tick_totals(ticks=1))
        mc.collect(session, make_tick_totals(ticks=2))
        assert len(mc.get_history()) == 2
        assert mc.get_kpi_series("ticks") == [1, 2]

    def test_get_last(self, session):
        mc = MetricsCollector()
        mc.collect(session, make_tick_totals(ticks=9))
        assert mc.get_last()["ticks"] == 9

    def test_get_last_empty(self):
        assert MetricsCollector().get_last() is None

    def test_summary_empty(self):
        assert MetricsCollector().summary() == {"levels_played": 0}

    def test_summary(self, session):
        mc = MetricsCollector()
        mc.collect(session, make_tick_totals(ticks=10))
        consume_at_player(session, correct=True)
        mc.collect(session, make_tick_totals(ticks=20))
        summary = mc.summary()
        assert summary["levels_played"] == 2
        assert summary["levels_cleared"] == 0
        assert summary["highest_level"] == 1
        assert summary["final_score"] == 5
        assert summary["mean_ticks_per_level"] == pytest.approx(15.0)
        assert summary["mean_accuracy"] == pytest.approx(0.5)


# ===========================================================================
# CSVLogger Tests
# ===========================================================================

class TestCSVLogger:
    def test_log_row_creates_file(self, tmp_path):
        logger = CSVLogger(tmp_path / "m.csv", columns=["level", "score"])
        logger.log_row({"level": 1, "score": 10})
        assert logger.file_path.exists()

    def test_header_written(self, tmp_path):
        logger = CSVLogger(tmp_path / "m.csv", columns=["level", "score"])
        logger.log_row({"level": 1, "score": 10})
        first_line = logger.file_path.read_text(encoding="utf-8").splitlines()[0]
        assert first_line == "level,score"

    def test_append_multiple_rows(self, tmp_path):
        logger = CSVLogger(tmp_path / "m.csv", columns=["level", "score"])
        for i in range(3):
            logger.log_row({"level": i + 1, "score": i * 10})
        rows = logger.read_back()
        assert [r["level"] for r in rows] == ["1", "2", "3"]

    def test_log_all_overwrites(self, tmp_path):
        logger = CSVLogger(tmp_path / "m.csv", columns=["level"])
        logger.log_row({"level": 1})
        logger.log_all([{"level": 5}, {"level": 6}])
        assert [r["level"] for r in logger.read_back()] == ["5", "6"]

    def test_read_back_empty(self, tmp_path):
        assert CSVLogger(tmp_path / "none.csv").read_back() == []

    def test_extra_keys_ignored(self, tmp_path):
        logger = CSVLogger(tmp_path / "m.csv", columns=["level"])
        logger.log_row({"level": 2, "unknown": "x"})
        assert logger.read_back() == [{"level": "2"}]

    def test_full_kpi_columns(self, tmp_path, session):
        logger = CSVLogger(tmp_path / "m.csv")
        logger.log_row(MetricsCollector().collect(session, make_tick_totals()))
        rows = logger.read_back()
        assert list(rows[0]) == MetricsCollector.kpi_names()

    def test_floats_rounded(self, tmp_path):
        logger = CSVLogger(tmp_path / "m.csv", columns=["accuracy"])
        logger.log_row({"accuracy": 2 / 3})
        assert logger.read_back() == [{"accuracy": "0.6667"}]

    def test_missing_keys_blank(self, tmp_path):
        logger = CSVLogger(tmp_path / "m.csv", columns=["level", "score"])
        logger.log_row({"level": 1})
        assert logger.read_back() == [{"level": "1", "score": ""}]

    def test_read_frame(self, tmp_path):
        logger = CSVLogger(tmp_path / "m.csv", columns=["level", "score"])
        logger.log_all([{"level": 1, "score": 10}, {"level": 2, "score": 25}])
        df = logger.read_frame()
        assert list(df.columns) == ["level", "score"]
        assert df["score"].sum() == 35
        assert len(logger) == 2

    def test_read_frame_missing(self, tmp_path):
        assert CSVLogger(tmp_path / "none.csv").read_frame().empty


# ===========================================================================
# SnapshotManager Tests
# ===========================================================================

class TestSnapshotManager:
    def test_save_creates_file(self, session, tmp_path):
        path = SnapshotManager(tmp_path).save(session.world, 1)
        assert path.exists()
        assert path.name == "level_0001.json"

    def test_save_load_roundtrip(self, session, tmp_path):
        world = session.world
        session.coordinator.model.add(world, Adversary(1, 1, AdversaryType.PURSUER))
        world.add_hazard(HazardCell(0, 4, 6, 0))
        world.grid.consume(0, 0)

        sm = SnapshotManager(tmp_path)
        sm.save(world, 1, extra={"score": 42})
        snap = sm.load(1)

        assert snap["cols"] == 6 and snap["rows"] == 5
        assert snap["player"] == {"x": 3, "y": 2}
        assert len(snap["cells"]) == 30
        assert snap["cells"][0]["consumed"] is True
        assert snap["adversaries"][0]["type"] == "pursuer"
        assert snap["hazards"][0]["lifetime_ticks"] == 6
        assert snap["score"] == 42

    def test_numpy_values_serialised(self, session, tmp_path):
        session.world.grid.get_cell(0, 0).value = np.int64(12)
        sm = SnapshotManager(tmp_path)
        sm.save(session.world, 1)
        assert sm.load(1)["cells"][0]["value"] == 12

    def test_list_snapshots(self, session, tmp_path):
        sm = SnapshotManager(tmp_path)
        for level in (3, 1, 2):
            sm.save(session.world, level)
        assert sm.list_snapshots() == [1, 2, 3]

    def test_load_missing_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            SnapshotManager(tmp_path).load(99)


# ===========================================================================
# RunManager Tests
# ===========================================================================

class TestRunManager:
    def test_creates_directory(self, config, tmp_path):
        rm = RunManager(config, base_dir=tmp_path, run_name="test_run")
        assert rm.run_dir.exists()
        assert rm.config_path.exists()
        assert rm.snapshots_dir.exists()

    def test_config_saved(self, config, tmp_path):
        rm = RunManager(config, base_dir=tmp_path, run_name="test_run")
        with open(rm.config_path, encoding="utf-8") as f:
            saved = json.load(f)
        assert saved["grid"]["cols"] == config.grid.cols
        assert saved["hazard"]["max_hazards"] == 0

    def test_log_level(self, config, tmp_path):
        rm = RunManager(config, base_dir=tmp_path, run_name="test_run")
        rm.log_level({"level": 1, "score": 10})
        rm.log_level({"level": 2, "score": 40})
        assert len(rm.csv_logger.read_back()) == 2

    def test_finalize_with_extra(self, config, tmp_path):
        rm = RunManager(config, base_dir=tmp_path, run_name="test_run")
        rm.finalize({"seed": 7})
        with open(rm.summary_path, encoding="utf-8") as f:
            data = json.load(f)
        assert data == {"levels_played": 0, "seed": 7}

    def test_finalize_without_levels(self, config, tmp_path):
        rm = RunManager(config, base_dir=tmp_path, run_name="test_run")
        assert rm.finalize() == {"levels_played": 0}
        assert rm.summary_path.exists()

    def test_record_level(self, config, session, tmp_path):
        rm = RunManager(config, base_dir=tmp_path, run_name="test_run")
        kpis = rm.record_level(session)
        assert kpis["level"] == 1
        assert len(rm.csv_logger.read_back()) == 1
        assert rm.snapshot_manager.list_snapshots() == [1]
        assert rm.snapshot_manager.load(1)["session"]["state"] == "playing"

    def test_record_level_without_snapshot(self, config, session, tmp_path):
        config.output.snapshot_every_level = False
        rm = RunManager(config, base_dir=tmp_path, run_name="test_run")
        rm.record_level(session)
        assert rm.snapshot_manager.list_snapshots() == []

    def test_list_runs(self, config, tmp_path):
        RunManager(config, base_dir=tmp_path, run_name="run_002")
        RunManager(config, base_dir=tmp_path, run_name="run_001")
        (tmp_path / "not_a_run").mkdir()
        assert RunManager.list_runs(tmp_path) == ["run_001", "run_002"]

    def test_list_runs_empty(self, tmp_path):
        assert RunManager.list_runs(tmp_path / "nonexistent") == []

    def test_auto_timestamp_name(self, config, tmp_path):
        rm = RunManager(config, base_dir=tmp_path)
        assert rm.run_dir.exists()
        assert len(rm.run_dir.name) > 8


# ===========================================================================
# Integration: Metrics + CSV + Snapshot
# ===========================================================================

class TestMetricsIntegration:
    def test_full_pipeline(self, config, session, tmp_path):
        rm = RunManager(config, base_dir=tmp_path, run_name="integration")

        consume_at_player(session, correct=True)
        rm.record_level(session)
        summary = rm.finalize({"mode": "multiples"})

        rows = rm.csv_logger.read_back()
        assert len(rows) == 1
        assert rows[0]["score"] == "5"
        assert rm.snapshot_manager.load(1)["session"]["score"] == 5
        assert summary["final_score"] == 5
        with open(rm.summary_path, encoding="utf-8") as f:
            assert json.load(f) == summary

    def test_autoplay_levels_logged(self, config, tmp_path):
        from src.simulation.autoplay import AutoPlayer

        config.generator.testing_mode = True
        rm = RunManager(config, base_dir=tmp_path, run_name="autoplay")
        result = AutoPlayer(GameSession(config)).play(max_levels=2, on_level_end=rm.record_level)

        assert result.levels_completed == 2
        assert [r["outcome"] for r in rm.csv_logger.read_back()] == ["level_complete"] * 2
        assert rm.snapshot_manager.list_snapshots() == [1, 2]
