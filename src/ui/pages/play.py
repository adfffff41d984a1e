"""
Play page for the Number Nosher UI.

Allows users to:
  - Start a game at any level and rule mode
  - Move, consume, pause and let game time pass
  - Send the player to a cell with the autopilot
  - Toggle persisted settings (autopilot, testing mode)
  - Enter initials for a high score on game over
"""

import streamlit as st

from src.core.collaborators import Renderer
from src.core.config import RULE_MODES, get_default_config
from src.persistence.storage import HighScoreStore
from src.simulation.session import GameSession, GameState
from src.ui.components.grid_view import render_world_grid
from src.utils.spatial import DOWN, LEFT, RIGHT, UP


STORE_PATH = "number_nosher_data.json"


class FeedbackRenderer(Renderer):
    """Keeps the most recent feedback messages for display between reruns."""

    def __init__(self, keep: int = 6):
        self.keep = keep
        self.messages: list[tuple[str, str]] = []

    def show_feedback(self, message: str, kind: str) -> None:
        self.messages.append((message, kind))
        del self.messages[:-self.keep]


# ---------------------------------------------------------------------------
# Session state helpers
# ---------------------------------------------------------------------------

def _init_session_state() -> None:
    defaults = {
        "nn_session": None,
        "nn_renderer": None,
        "nn_store": None,
        "nn_score_saved": False,
    }
    for k, v in defaults.items():
        if k not in st.session_state:
            st.session_state[k] = v
    if st.session_state.nn_store is None:
        st.session_state.nn_store = HighScoreStore(STORE_PATH)


def _new_session(level: int, mode: str, seed: int) -> None:
    config = get_default_config()
    config.grid.seed = seed
    config.generator.mode = mode

    renderer = FeedbackRenderer()
    session = GameSession(config, renderer=renderer, storage=st.session_state.nn_store)
    session.start_new_game(level=level, mode=mode)

    st.session_state.nn_session = session
    st.session_state.nn_renderer = renderer
    st.session_state.nn_score_saved = False


# ---------------------------------------------------------------------------
# Main render
# ---------------------------------------------------------------------------

def render_play() -> None:
    """Render the play page."""
    _init_session_state()
    st.title("🎮 Play")

    store: HighScoreStore = st.session_state.nn_store
    _render_settings(store)

    col1, col2, col3, col4 = st.columns(4)
    with col1:
        level = st.number_input("Start level", min_value=1, max_value=99, value=1, step=1, key="pl_level")
    with col2:
        mode = st.selectbox("Rule", options=list(RULE_MODES), key="pl_mode")
    with col3:
        seed = st.number_input("Seed", min_value=0, max_value=999999999, value=42, step=1, key="pl_seed")
    with col4:
        st.write("")
        if st.button("🚀 New Game", key="pl_new"):
            _new_session(int(level), mode, int(seed))

    session: GameSession = st.session_state.nn_session
    if session is None:
        st.info("Start a new game to begin.")
        return

    st.markdown("---")
    _render_status(session)
    _render_controls(session)

    board_col, log_col = st.columns([3, 1])
    with board_col:
        show_answers = session.config.generator.testing_mode
        st.plotly_chart(render_world_grid(session.world, show_answers=show_answers),
                        use_container_width=True)
    with log_col:
        st.markdown("**Feedback**")
        renderer: FeedbackRenderer = st.session_state.nn_renderer
        for message, kind in reversed(renderer.messages):
            if kind == "correct":
                st.success(message)
            else:
                st.error(message)

    if session.state is GameState.GAME_OVER:
        _render_game_over(session)


def _render_settings(store: HighScoreStore) -> None:
    settings = store.get_settings()
    with st.sidebar.expander("⚙️ Settings", expanded=False):
        autopilot = st.checkbox("Autopilot", value=bool(settings.get("autopilot", False)), key="pl_set_ap")
        testing = st.checkbox("Testing mode", value=bool(settings.get("testing_mode", False)), key="pl_set_tm")

    if autopilot != settings.get("autopilot", False) or testing != settings.get("testing_mode", False):
        updated = store.save_settings({"autopilot": autopilot, "testing_mode": testing})
        session = st.session_state.nn_session
        if session is not None:
            session.apply_settings(updated)


def _render_status(session: GameSession) -> None:
    cols = st.columns(5)
    cols[0].metric("Level", session.level)
    cols[1].metric("Score", session.score)
    cols[2].metric("Lives", "❤️" * session.lives if session.lives else "0")
    cols[3].metric("State", session.state.value.replace("_", " ").title())
    cols[4].metric("Adversaries", session.world.adversary_count)
    st.markdown(f"### {session.rule_text}")


def _render_controls(session: GameSession) -> None:
    playing = session.state is GameState.PLAYING

    move_cols = st.columns(7)
    for col, (label, direction) in zip(move_cols, [("⬆️", UP), ("⬇️", DOWN), ("⬅️", LEFT), ("➡️", RIGHT)]):
        if col.button(label, disabled=not playing, key=f"pl_mv_{direction}"):
            session.handle_move(direction)
            st.rerun()
    if move_cols[4].button("😋 Nosh", disabled=not playing, key="pl_consume"):
        session.handle_action()
        st.rerun()

    pause_label = "▶️ Resume" if session.state is GameState.PAUSED else "⏸️ Pause"
    if move_cols[5].button(pause_label, disabled=session.state not in (GameState.PLAYING, GameState.PAUSED),
                           key="pl_pause"):
        session.handle_pause()
        st.rerun()
    if move_cols[6].button("➡️ Next Level", disabled=session.state is not GameState.LEVEL_COMPLETE,
                           key="pl_next"):
        session.next_level()
        st.rerun()

    time_cols = st.columns(4)
    with time_cols[0]:
        step_ms = st.select_slider("Let time pass (ms)", options=[100, 250, 500, 1000, 2000],
                                   value=500, key="pl_step_ms")
    with time_cols[1]:
        st.write("")
        if st.button("⏱️ Advance", disabled=not playing, key="pl_advance"):
            session.advance(int(step_ms))
            st.rerun()

    if session.autopilot_enabled:
        with time_cols[2]:
            tx = st.number_input("Target x", min_value=0, max_value=session.world.cols - 1, value=0, key="pl_tx")
        with time_cols[3]:
            ty = st.number_input("Target y", min_value=0, max_value=session.world.rows - 1, value=0, key="pl_ty")
            if st.button("🧭 Go", disabled=not playing, key="pl_go"):
                session.autopilot_to(int(tx), int(ty))
                session.advance(session.config.path.step_delay_ms * session.world.cols * session.world.rows)
                st.rerun()


def _render_game_over(session: GameSession) -> None:
    st.markdown("---")
    st.subheader(f"Game over! Final score: {session.score}")

    if st.session_state.nn_score_saved:
        st.success("Score saved.")
        return

    if session.is_high_score():
        name = st.text_input("New high score! Your initials", max_chars=3, key="pl_initials")
        if st.button("💾 Save score", key="pl_save_score"):
            session.save_high_score(name)
            st.session_state.nn_score_saved = True
            st.rerun()
    else:
        st.info("Not a high score this time.")
