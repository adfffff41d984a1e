"""
Number Nosher - CLI Entry Point

Usage:
    python main.py --mode play --level 1 --rule multiples --seed 42
    python main.py --mode generate --level 3 --rule primes
    python main.py --ui
"""

import argparse
import sys
import time
from pathlib import Path


RULE_CHOICES = ["multiples", "factors", "primes", "equality", "inequality"]


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Number Nosher - grid arcade game simulation core",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py --ui                                   Launch Streamlit UI
  python main.py --mode play --ticks 500                Headless autoplay run
  python main.py --mode generate --rule equality        Print a generated grid
        """,
    )

    parser.add_argument(
        "--mode",
        choices=["play", "generate"],
        default=None,
        help="Run mode: 'play' for a headless autoplay session, 'generate' to print a grid",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to JSON config file (default: built-in defaults)",
    )
    parser.add_argument(
        "--ui",
        action="store_true",
        help="Launch Streamlit web UI (ignores --mode)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Override random seed (overrides config value)",
    )
    parser.add_argument(
        "--level",
        type=int,
        default=1,
        help="Starting level (default: 1)",
    )
    parser.add_argument(
        "--rule",
        choices=RULE_CHOICES,
        default=None,
        help="Rule mode (overrides config value)",
    )
    parser.add_argument(
        "--ticks",
        type=int,
        default=2000,
        help="Tick budget for play mode (default: 2000)",
    )
    parser.add_argument(
        "--levels",
        type=int,
        default=None,
        help="Stop play mode after this many cleared levels",
    )
    parser.add_argument(
        "--mistakes",
        type=float,
        default=0.05,
        help="Autoplayer chance to consume a wrong cell (default: 0.05)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Override output directory",
    )

    return parser.parse_args()


def launch_ui() -> None:
    """Launch the Streamlit web UI."""
    import subprocess
    ui_path = Path(__file__).parent / "src" / "ui" / "app.py"
    if not ui_path.exists():
        print(f"Error: UI app not found at {ui_path}")
        sys.exit(1)
    subprocess.run(
        [
            sys.executable, "-m", "streamlit", "run", str(ui_path),
            "--server.port=8501",
            "--server.headless=true",
            "--browser.gatherUsageStats=false",
        ],
        check=True,
    )


def _build_config(config_path: str | None, seed: int | None, rule: str | None,
                  output_dir: str | None):
    from src.core.config import get_default_config, load_config

    config = load_config(config_path) if config_path else get_default_config()
    if seed is not None:
        config.grid.seed = seed
    if rule is not None:
        config.generator.mode = rule
    if output_dir is not None:
        config.output.output_dir = output_dir
    return config


def run_play(config_path: str | None, level: int = 1, rule: str | None = None,
             seed_override: int | None = None, max_ticks: int = 2000,
             max_levels: int | None = None, mistake_chance: float = 0.05,
             output_dir: str | None = None) -> None:
    """Run a headless autoplay session and log per-level KPIs."""
    from src.logging.run_manager import RunManager
    from src.simulation.autoplay import AutoPlayer
    from src.simulation.session import GameSession

    config = _build_config(config_path, seed_override, rule, output_dir)

    print(f"[Number Nosher] Autoplay run")
    print(f"  Config: {config_path or '(defaults)'}")
    print(f"  Grid: {config.grid.cols}x{config.grid.rows}")
    print(f"  Rule: {config.generator.mode}")
    print(f"  Start level: {level}")
    print(f"  Seed: {config.grid.seed}")
    print(f"  Tick budget: {max_ticks}")
    print(f"  Output: {config.output.output_dir}")
    print()

    session = GameSession(config)
    run_manager = RunManager(config)

    def on_level_end(s: GameSession) -> None:
        kpis = run_manager.record_level(s)
        print(
            f"  Level {kpis['level']:3d} | {kpis['outcome']:<14s} | "
            f"Ticks: {kpis['ticks']:5d} | Score: {kpis['score']:6d} | "
            f"Lives: {kpis['lives']} | Accuracy: {kpis['accuracy']:.2f}"
        )

    start_time = time.time()
    session.start_new_game(level=level)
    player = AutoPlayer(session, mistake_chance=mistake_chance)
    result = player.play(max_ticks=max_ticks, max_levels=max_levels, on_level_end=on_level_end)
    elapsed = time.time() - start_time

    print()
    print(f"[Result]")
    print(f"  Levels cleared: {result.levels_completed}")
    print(f"  Final level: {result.final_level}")
    print(f"  Final score: {result.final_score}")
    print(f"  Lives left: {result.final_lives}")
    print(f"  Ticks: {result.total_ticks}")
    print(f"  Game time: {result.elapsed_ms / 1000:.1f}s")
    print(f"  Elapsed: {elapsed:.1f}s")

    run_manager.finalize({
        "levels_completed": result.levels_completed,
        "game_over": result.game_over,
        "total_ticks": result.total_ticks,
        "game_time_ms": result.elapsed_ms,
        "elapsed_seconds": round(elapsed, 2),
        "seed": config.grid.seed,
        "mode": config.generator.mode,
    })
    print(f"  Output saved to: {run_manager.run_dir}")


def run_generate(config_path: str | None, level: int = 1, rule: str | None = None,
                 seed_override: int | None = None) -> None:
    """Generate one level's grid and print it."""
    import numpy as np

    from src.core.generator import rule_text
    from src.core.grid import Grid

    config = _build_config(config_path, seed_override, rule, None)
    rng = np.random.default_rng(config.grid.seed)
    grid = Grid(config.grid.cols, config.grid.rows)
    grid.populate(level, config.generator.mode, rng, config.generator)

    print(f"[Number Nosher] Level {level}: {rule_text(level, config.generator.mode)}")
    print()
    width = max(len(str(c.value)) for c in grid.cells) + 2
    for y in range(grid.rows):
        row = []
        for x in range(grid.cols):
            cell = grid.get_cell(x, y)
            mark = "*" if cell.is_correct else " "
            row.append(f"{str(cell.value):>{width}}{mark}")
        print(" ".join(row))
    print()
    print(f"  Correct cells (*): {grid.count_remaining_correct()} / {grid.size}")


def main() -> None:
    args = parse_args()

    if args.ui:
        launch_ui()
        return

    if args.mode is None:
        print("Error: Specify --mode (play|generate) or --ui to launch the web interface.")
        print("Run with --help for usage information.")
        sys.exit(1)

    if args.mode == "play":
        run_play(
            args.config,
            level=args.level,
            rule=args.rule,
            seed_override=args.seed,
            max_ticks=args.ticks,
            max_levels=args.levels,
            mistake_chance=args.mistakes,
            output_dir=args.output,
        )
    elif args.mode == "generate":
        run_generate(args.config, level=args.level, rule=args.rule, seed_override=args.seed)


if __name__ == "__main__":
    main()
