"""
High Scores page for the Number Nosher UI.
"""

import pandas as pd
import streamlit as st

from src.persistence.storage import MAX_SCORES, HighScoreStore


def render_high_scores(store_path: str = "number_nosher_data.json") -> None:
    """Render the high-score table."""
    st.title("🏆 High Scores")

    store = st.session_state.get("nn_store") or HighScoreStore(store_path)
    scores = store.get_high_scores()

    if not scores:
        st.info("No high scores yet. Go play a game!")
        return

    df = pd.DataFrame(scores)
    df.index = range(1, len(df) + 1)
    df.index.name = "Rank"
    df.columns = [c.title() for c in df.columns]

    st.dataframe(df, use_container_width=True)
    st.caption(f"Top {MAX_SCORES} scores are kept.")

    if st.button("🗑️ Clear high scores", key="hs_clear"):
        store.clear_high_scores()
        st.rerun()
