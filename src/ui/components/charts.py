"""
Reusable chart components for the Number Nosher UI.

Provides helper functions that return Plotly figures for:
  - Score and points per level
  - Accuracy and lives per level
  - Adversary and hazard activity per level
  - Level outcome breakdown
"""

from typing import Optional

import plotly.graph_objects as go
import plotly.express as px
import pandas as pd


def _x_axis(df: pd.DataFrame):
    return df.index if "level" not in df.columns else df["level"]


def _lines(
    df: pd.DataFrame,
    series: dict[str, tuple[str, str]],
    title: str,
    yaxis_title: str,
) -> go.Figure:
    fig = go.Figure()
    x = _x_axis(df)

    for col, (label, color) in series.items():
        if col in df.columns:
            fig.add_trace(go.Scatter(
                x=x, y=df[col],
                mode="lines+markers",
                name=label,
                line=dict(color=color, width=2),
            ))

    fig.update_layout(
        title=title,
        xaxis_title="Level",
        yaxis_title=yaxis_title,
        template="plotly_white",
        legend=dict(orientation="h", yanchor="bottom", y=1.02, xanchor="right", x=1),
    )
    return fig


# ---------------------------------------------------------------------------
# Progress charts
# ---------------------------------------------------------------------------

def score_over_levels(
    df: pd.DataFrame,
    title: str = "Score by Level",
) -> go.Figure:
    """
    Cumulative score line with per-level points as bars.

    Args:
        df: DataFrame of level KPIs (needs 'score' and/or 'level_points').
        title: Chart title.

    Returns:
        Plotly figure.
    """
    fig = go.Figure()
    x = _x_axis(df)

    if "level_points" in df.columns:
        fig.add_trace(go.Bar(
            x=x, y=df["level_points"],
            name="Level points",
            marker_color="#3498db",
            opacity=0.6,
        ))
    if "score" in df.columns:
        fig.add_trace(go.Scatter(
            x=x, y=df["score"],
            mode="lines+markers",
            name="Score",
            line=dict(color="#2ecc71", width=2),
        ))

    fig.update_layout(
        title=title,
        xaxis_title="Level",
        yaxis_title="Points",
        template="plotly_white",
        legend=dict(orientation="h", yanchor="bottom", y=1.02, xanchor="right", x=1),
    )
    return fig


def accuracy_over_levels(
    df: pd.DataFrame,
    title: str = "Accuracy and Lives",
) -> go.Figure:
    """Accuracy (0-1) and remaining lives per level."""
    fig = _lines(
        df,
        {
            "accuracy": ("Accuracy", "#9b59b6"),
            "stay_rate": ("Adversary stay rate", "#95a5a6"),
        },
        title,
        "Rate",
    )
    if "lives" in df.columns:
        fig.add_trace(go.Scatter(
            x=_x_axis(df), y=df["lives"],
            mode="lines+markers",
            name="Lives",
            line=dict(color="#e74c3c", width=2, dash="dot"),
            yaxis="y2",
        ))
        fig.update_layout(yaxis2=dict(title="Lives", overlaying="y", side="right", rangemode="tozero"))
    return fig


# ---------------------------------------------------------------------------
# Adversary and hazard charts
# ---------------------------------------------------------------------------

def adversary_activity(
    df: pd.DataFrame,
    title: str = "Adversary Activity",
) -> go.Figure:
    """Spawns, exits, eliminations and collisions per level."""
    return _lines(
        df,
        {
            "spawns_completed": ("Spawned", "#3498db"),
            "adversaries_exited": ("Exited", "#95a5a6"),
            "adversaries_eliminated": ("Eliminated", "#e67e22"),
            "collisions": ("Caught player", "#e74c3c"),
            "cells_restored": ("Cells restored", "#1abc9c"),
        },
        title,
        "Count",
    )


def hazard_activity(
    df: pd.DataFrame,
    title: str = "Hazards",
) -> go.Figure:
    """Hazards spawned and expired per level."""
    return _lines(
        df,
        {
            "hazards_spawned": ("Spawned", "#f39c12"),
            "hazards_expired": ("Expired", "#7f8c8d"),
            "hazards_active": ("Active at level end", "#c0392b"),
        },
        title,
        "Count",
    )


# ---------------------------------------------------------------------------
# Outcome charts
# ---------------------------------------------------------------------------

def outcome_breakdown(
    df: pd.DataFrame,
    title: Optional[str] = None,
) -> go.Figure:
    """
    Pie chart of level outcomes (cleared / game over / unfinished).

    Args:
        df: DataFrame with an 'outcome' column.
        title: Chart title (auto-generated if None).

    Returns:
        Plotly figure.
    """
    if title is None:
        title = f"Outcomes over {len(df)} levels"

    if "outcome" not in df.columns or df.empty:
        counts = pd.DataFrame({"outcome": [], "count": []})
    else:
        counts = df["outcome"].value_counts().rename_axis("outcome").reset_index(name="count")

    fig = px.pie(counts, names="outcome", values="count", title=title, hole=0.4)
    fig.update_layout(template="plotly_white")
    return fig
