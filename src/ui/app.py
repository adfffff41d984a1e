"""
Number Nosher - Streamlit Web UI

Multi-page application with sidebar navigation:
  1. Play           - Play a game on the live board
  2. Results Viewer - Browse headless autoplay runs
  3. High Scores    - The persisted high-score table
"""

import streamlit as st

# Must be the very first Streamlit command
st.set_page_config(
    page_title="Number Nosher",
    page_icon="😋",
    layout="wide",
    initial_sidebar_state="expanded",
)


def main() -> None:
    """Main entry point for the Streamlit app."""

    st.sidebar.title("😋 Number Nosher")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigation",
        options=[
            "🏠 Home",
            "🎮 Play",
            "📊 Results Viewer",
            "🏆 High Scores",
        ],
        index=0,
    )

    st.sidebar.markdown("---")

    if page == "🏠 Home":
        _render_home()
    elif page == "🎮 Play":
        from src.ui.pages.play import render_play
        render_play()
    elif page == "📊 Results Viewer":
        from src.ui.pages.results_viewer import render_results_viewer
        render_results_viewer()
    elif page == "🏆 High Scores":
        from src.ui.pages.high_scores import render_high_scores
        render_high_scores()


def _render_home() -> None:
    """Render the home page."""
    from src.core.generator import RuleMode
    from src.logging.run_manager import RunManager
    from src.persistence.storage import HighScoreStore
    from src.ui.pages.play import STORE_PATH

    st.title("😋 Number Nosher")
    st.markdown("""
    Steer the nosher around the board and eat every number that fits the
    rule, while avoiding the wandering adversaries and the blocked cells.

    ### Quick Start

    1. **🎮 Play** - Pick a level and a rule and start munching
    2. **📊 Results Viewer** - Charts for headless runs (`python main.py --mode play`)
    3. **🏆 High Scores** - The top ten scores

    ### Rules

    | Mode | Eat cells that... |
    |------|-------------------|
    | **Multiples** | are multiples of the target |
    | **Factors** | divide the target evenly |
    | **Primes** | are prime numbers |
    | **Equality** | are expressions equal to the target |
    | **Inequality** | are expressions not equal to the target |

    ### Adversaries

    | Tag | Behavior |
    |-----|----------|
    | 👾 | Walks in a straight line and leaves the board |
    | 👻 | Wanders, and flees when you come near |
    | 🐛 | Heads for the cells you need |
    | 👹 | Chases you by the shortest route |
    | 🔧 | Wanders and puts numbers back on eaten cells |
    """)

    st.markdown("---")

    scores = HighScoreStore(STORE_PATH).get_high_scores()

    col1, col2, col3 = st.columns(3)
    col1.metric("📁 Past Runs", len(RunManager.list_runs("runs")))
    col2.metric("🧮 Rule Modes", len(RuleMode))
    col3.metric("🏆 Best Score", scores[0]["score"] if scores else "-")


if __name__ == "__main__":
    main()
