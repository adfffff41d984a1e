"""
Board view component for the Number Nosher UI.

Renders the game board with Plotly:
  - Cells as a heatmap (consumed cells greyed out, hazards tinted)
  - Cell values as text labels
  - The player and adversaries as emoji markers
  - Supports both World objects and snapshot dicts
"""

from typing import Optional

import plotly.graph_objects as go

from src.core.world import World


PLAYER_TAG = "😋"

# Heatmap cell states
_OPEN, _CONSUMED, _HAZARD, _EXPIRING = 0, 1, 2, 3
_COLORSCALE = [
    [0.00, "#f5f7fa"], [0.25, "#f5f7fa"],
    [0.25, "#c8ccd2"], [0.50, "#c8ccd2"],
    [0.50, "#7fd6a4"], [0.75, "#7fd6a4"],
    [0.75, "#f7d56b"], [1.00, "#f7d56b"],
]


def _board_figure(
    cols: int,
    rows: int,
    cells: list[dict],
    hazards: list[dict],
    player: Optional[dict],
    adversaries: list[dict],
    title: str,
    show_answers: bool,
    width: int,
    height: int,
) -> go.Figure:
    state = [[_OPEN] * cols for _ in range(rows)]
    text = [[""] * cols for _ in range(rows)]

    for cell in cells:
        x, y = cell["x"], cell["y"]
        if cell.get("consumed"):
            state[y][x] = _CONSUMED
        else:
            mark = " ✓" if show_answers and cell.get("is_correct") else ""
            text[y][x] = f"{cell['value']}{mark}"

    for hazard in hazards:
        state[hazard["y"]][hazard["x"]] = _EXPIRING if hazard.get("expiring") else _HAZARD

    fig = go.Figure()
    fig.add_trace(go.Heatmap(
        z=state,
        text=text,
        texttemplate="%{text}",
        textfont=dict(size=16),
        colorscale=_COLORSCALE,
        zmin=0, zmax=3,
        showscale=False,
        xgap=3, ygap=3,
        hovertemplate="(%{x}, %{y})<br>%{text}<extra></extra>",
    ))

    if adversaries:
        fig.add_trace(go.Scatter(
            x=[a["x"] for a in adversaries],
            y=[a["y"] for a in adversaries],
            mode="text",
            text=[a.get("tag", "👾") for a in adversaries],
            textfont=dict(size=30),
            textposition="top center",
            name=f"Adversaries ({len(adversaries)})",
            hovertext=[a.get("type", "") for a in adversaries],
            hoverinfo="text",
        ))

    if player is not None:
        fig.add_trace(go.Scatter(
            x=[player["x"]], y=[player["y"]],
            mode="text",
            text=[PLAYER_TAG],
            textfont=dict(size=30),
            textposition="bottom center",
            name="Player",
            hoverinfo="skip",
        ))

    fig.update_layout(
        title=title,
        width=width,
        height=height,
        xaxis=dict(range=[-0.5, cols - 0.5], showgrid=False, zeroline=False,
                   tickmode="linear", dtick=1, constrain="domain"),
        yaxis=dict(range=[rows - 0.5, -0.5], showgrid=False, zeroline=False,
                   tickmode="linear", dtick=1, scaleanchor="x", scaleratio=1),
        template="plotly_white",
        showlegend=False,
        margin=dict(l=30, r=30, t=50, b=30),
    )
    return fig


# ---------------------------------------------------------------------------
# Board rendering from live World object
# ---------------------------------------------------------------------------

def render_world_grid(
    world: World,
    title: Optional[str] = None,
    show_answers: bool = False,
    width: int = 640,
    height: int = 560,
) -> go.Figure:
    """
    Render the live board.

    Args:
        world: World with grid, player, adversaries and hazards.
        title: Optional chart title.
        show_answers: Mark correct cells (testing aid).
        width: Plot width in pixels.
        height: Plot height in pixels.

    Returns:
        Plotly figure.
    """
    if title is None:
        title = f"Level {world.level} | Tick {world.tick_count}"

    cells = [
        {"x": c.x, "y": c.y, "value": c.value, "is_correct": c.is_correct, "consumed": c.consumed}
        for c in world.grid.cells
    ]
    return _board_figure(
        world.cols,
        world.rows,
        cells,
        [h.to_dict() for h in world.hazards.values()],
        {"x": world.player.x, "y": world.player.y},
        [a.to_dict() for a in world.get_adversaries()],
        title,
        show_answers,
        width,
        height,
    )


# ---------------------------------------------------------------------------
# Board rendering from snapshot dict
# ---------------------------------------------------------------------------

def render_snapshot_grid(
    snapshot: dict,
    title: Optional[str] = None,
    show_answers: bool = True,
    width: int = 640,
    height: int = 560,
) -> go.Figure:
    """
    Render the board from a saved level snapshot.

    Args:
        snapshot: Dict as written by SnapshotManager.
        title: Optional chart title.

    Returns:
        Plotly figure.
    """
    cols = snapshot.get("cols", 6)
    rows = snapshot.get("rows", 5)
    if title is None:
        title = f"Level {snapshot.get('level', '?')} | Tick {snapshot.get('tick', '?')}"

    return _board_figure(
        cols,
        rows,
        snapshot.get("cells", []),
        snapshot.get("hazards", []),
        snapshot.get("player"),
        snapshot.get("adversaries", []),
        title,
        show_answers,
        width,
        height,
    )
