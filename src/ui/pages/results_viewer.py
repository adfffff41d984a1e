"""
Results Viewer page for the Number Nosher UI.

Allows users to:
  - Browse past autoplay runs from the runs/ directory
  - View level KPIs (score, accuracy, adversaries, hazards)
  - Inspect the board at the end of any level
  - Compare runs and export data
"""

import json
from pathlib import Path

import streamlit as st
import pandas as pd

from src.logging.csv_logger import CSVLogger
from src.logging.run_manager import RunManager
from src.logging.snapshot import SnapshotManager
from src.ui.components.charts import (
    accuracy_over_levels,
    adversary_activity,
    hazard_activity,
    outcome_breakdown,
    score_over_levels,
)
from src.ui.components.grid_view import render_snapshot_grid


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _read_json(path: Path) -> dict:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError):
        return {}


def _discover_runs(base_dir: str = "runs") -> list[dict]:
    """Runs under `base_dir`, newest first, with what each one recorded."""
    runs = []
    for name in reversed(RunManager.list_runs(base_dir)):
        entry = Path(base_dir) / name
        summary = _read_json(entry / "summary.json")
        runs.append({
            "name": name,
            "path": entry,
            "summary": summary,
            "has_metrics": (entry / "metrics.csv").exists(),
            "snapshots": (
                SnapshotManager(entry).list_snapshots()
                if (entry / "snapshots").is_dir() else []
            ),
        })
    return runs


def _load_metrics_csv(path: Path) -> pd.DataFrame:
    """Load a run's level KPI table."""
    return CSVLogger(path).read_frame()


# ---------------------------------------------------------------------------
# Main render
# ---------------------------------------------------------------------------

def render_results_viewer() -> None:
    """Render the results viewer page."""
    st.title("📊 Results Viewer")

    base_dir = st.text_input("Output directory", value="runs", key="rv_basedir")
    runs = _discover_runs(base_dir)

    if not runs:
        st.info("No runs found. Run `python main.py --mode play` first!")
        return

    st.markdown(f"Found **{len(runs)}** runs in `{base_dir}/`")

    tab_browse, tab_compare = st.tabs(["📁 Browse Runs", "📊 Compare Runs"])

    with tab_browse:
        _render_browse(runs)

    with tab_compare:
        _render_compare(runs)


# ---------------------------------------------------------------------------
# Browse tab
# ---------------------------------------------------------------------------

def _render_browse(runs: list[dict]) -> None:
    """Browse individual runs."""
    run_names = [r["name"] for r in runs]
    selected_name = st.selectbox("Select run", options=run_names, key="rv_run_sel")

    selected_run = next((r for r in runs if r["name"] == selected_name), None)
    if selected_run is None:
        return

    run_path = selected_run["path"]

    st.markdown(f"### Run: `{selected_name}`")

    if selected_run.get("summary"):
        summary = selected_run["summary"]
        scol1, scol2, scol3, scol4 = st.columns(4)
        scol1.metric("Levels cleared", summary.get("levels_completed", "N/A"))
        scol2.metric("Final score", summary.get("final_score", "N/A"))
        scol3.metric("Ticks", summary.get("total_ticks", "N/A"))
        scol4.metric("Elapsed", f"{summary.get('elapsed_seconds', 'N/A')}s")

    with st.expander("⚙️ Configuration"):
        st.json(_read_json(run_path / "config.json"))

    if selected_run["has_metrics"]:
        st.markdown("---")
        st.subheader("📈 Metrics by Level")

        df = _load_metrics_csv(run_path / "metrics.csv")
        if not df.empty:
            tab_score, tab_acc, tab_adv, tab_haz, tab_out, tab_custom = st.tabs([
                "Score", "Accuracy", "Adversaries", "Hazards", "Outcomes", "Custom"
            ])

            with tab_score:
                st.plotly_chart(score_over_levels(df), use_container_width=True)
            with tab_acc:
                st.plotly_chart(accuracy_over_levels(df), use_container_width=True)
            with tab_adv:
                st.plotly_chart(adversary_activity(df), use_container_width=True)
            with tab_haz:
                st.plotly_chart(hazard_activity(df), use_container_width=True)
            with tab_out:
                st.plotly_chart(outcome_breakdown(df), use_container_width=True)
            with tab_custom:
                numeric = [c for c in df.select_dtypes("number").columns if c != "level"]
                selected_kpis = st.multiselect(
                    "Select KPIs to plot", options=numeric,
                    default=[], key="rv_custom_kpi",
                )
                if selected_kpis:
                    st.line_chart(df.set_index("level")[selected_kpis] if "level" in df.columns
                                  else df[selected_kpis], use_container_width=True)

            with st.expander("📋 Raw Data Table"):
                st.dataframe(df, use_container_width=True)

            st.download_button(
                "⬇️ Download CSV",
                data=df.to_csv(index=False),
                file_name=f"{selected_name}_metrics.csv",
                mime="text/csv",
                key="rv_dl_csv",
            )

    levels = selected_run["snapshots"]
    if levels:
        st.markdown("---")
        st.subheader(f"📸 Level boards ({len(levels)})")
        level = st.selectbox(
            "Level", options=levels, index=len(levels) - 1,
            format_func=lambda n: f"Level {n}", key="rv_snap_level",
        )
        try:
            snap_data = SnapshotManager(run_path).load(level)
        except (OSError, json.JSONDecodeError) as e:
            st.error(f"Failed to load snapshot for level {level}: {e}")
            return

        session_info = snap_data.get("session", {})
        if session_info:
            c1, c2, c3 = st.columns(3)
            c1.metric("Outcome", session_info.get("state", "N/A"))
            c2.metric("Score", session_info.get("score", "N/A"))
            c3.metric("Lives", session_info.get("lives", "N/A"))
        st.plotly_chart(render_snapshot_grid(snap_data, show_answers=True), use_container_width=True)
        with st.expander("Raw snapshot"):
            st.json(snap_data)


# ---------------------------------------------------------------------------
# Compare tab
# ---------------------------------------------------------------------------

def _render_compare(runs: list[dict]) -> None:
    """Compare multiple runs side by side."""
    runs_with_metrics = [r for r in runs if r["has_metrics"]]
    if len(runs_with_metrics) < 2:
        st.info("Need at least 2 runs with metrics to compare.")
        return

    run_names = [r["name"] for r in runs_with_metrics]
    selected = st.multiselect(
        "Select runs to compare", options=run_names,
        default=run_names[:2],
        key="rv_cmp_sel",
    )

    if len(selected) < 2:
        st.info("Select at least 2 runs to compare.")
        return

    dfs = {}
    for name in selected:
        run = next(r for r in runs_with_metrics if r["name"] == name)
        df = _load_metrics_csv(run["path"] / "metrics.csv")
        if not df.empty:
            dfs[name] = df

    if len(dfs) < 2:
        st.warning("Could not load metrics for enough runs.")
        return

    common_cols = sorted(
        set.intersection(*(set(df.select_dtypes("number").columns) for df in dfs.values())) - {"level"}
    )
    if not common_cols:
        st.warning("The selected runs share no numeric KPIs.")
        return

    kpi_to_compare = st.selectbox("KPI to compare", options=common_cols,
                                  index=common_cols.index("score") if "score" in common_cols else 0,
                                  key="rv_cmp_kpi")

    chart_data = pd.DataFrame({
        name: df[kpi_to_compare].reset_index(drop=True) for name, df in dfs.items()
    })
    st.line_chart(chart_data, use_container_width=True)

    st.markdown("### Summary Comparison")
    summary_rows = []
    for name in selected:
        run = next(r for r in runs_with_metrics if r["name"] == name)
        s = run.get("summary", {})
        summary_rows.append({
            "Run": name,
            "Mode": s.get("mode", "N/A"),
            "Levels cleared": s.get("levels_completed", "N/A"),
            "Final score": s.get("final_score", "N/A"),
            "Game over": s.get("game_over", "N/A"),
            "Elapsed": s.get("elapsed_seconds", "N/A"),
        })
    st.dataframe(pd.DataFrame(summary_rows), use_container_width=True)
