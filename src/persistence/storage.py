"""
High-score and settings persistence for Number Nosher.

Everything lives in one JSON blob:

    {
        "high_scores": [{"name": "ABC", "score": 120}, ...],
        "settings": {"autopilot": false, "testing_mode": false, ...}
    }

High scores are kept sorted by score (descending) and capped at
MAX_SCORES entries; the list starts empty. Settings are an open key/value
map updated with key-merge semantics.

A store created with `path=None` keeps the blob in memory only.
A missing file is an empty store; a corrupt file is reported with a
warning and treated as empty. Score entries that are not objects or whose
score is not an integer are skipped, also with a warning.
"""

from __future__ import annotations

import json
import warnings
from copy import deepcopy
from pathlib import Path
from typing import Any, Optional


MAX_SCORES = 10
DEFAULT_NAME = "AAA"

KNOWN_SETTINGS = ("autopilot", "testing_mode", "music_volume", "sfx_volume")


def _empty_blob() -> dict[str, Any]:
    return {"high_scores": [], "settings": {}}


def sanitize_name(name: Optional[str]) -> str:
    """Upper-case initials, at most three characters."""
    cleaned = (name or DEFAULT_NAME).strip().upper()[:3]
    return cleaned or DEFAULT_NAME


class HighScoreStore:
    """
    JSON-backed high-score table and settings map.

    Attributes:
        path: Backing file, or None for an in-memory store.
    """

    def __init__(self, path: Optional[str | Path] = None):
        self.path = Path(path) if path is not None else None
        self._blob = self._load()

    # ------------------------------------------------------------------
    # I/O
    # ------------------------------------------------------------------

    def _load(self) -> dict[str, Any]:
        if self.path is None or not self.path.exists():
            return _empty_blob()

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            warnings.warn(
                f"Ignoring unreadable score file {self.path}: {e}",
                UserWarning,
                stacklevel=3,
            )
            return _empty_blob()

        if not isinstance(data, dict):
            warnings.warn(
                f"Ignoring score file {self.path}: expected a JSON object",
                UserWarning,
                stacklevel=3,
            )
            return _empty_blob()

        blob = _empty_blob()
        scores = data.get("high_scores", [])
        if isinstance(scores, list):
            skipped = 0
            for entry in scores:
                try:
                    blob["high_scores"].append({
                        "name": str(entry.get("name", DEFAULT_NAME)),
                        "score": int(entry.get("score", 0)),
                    })
                except (AttributeError, TypeError, ValueError, OverflowError):
                    skipped += 1
            if skipped:
                warnings.warn(
                    f"Skipped {skipped} malformed high-score entries in {self.path}",
                    UserWarning,
                    stacklevel=3,
                )
            blob["high_scores"].sort(key=lambda e: e["score"], reverse=True)
            del blob["high_scores"][MAX_SCORES:]
        settings = data.get("settings", {})
        if isinstance(settings, dict):
            blob["settings"] = dict(settings)
        return blob

    def _save(self) -> None:
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(self._blob, f, indent=2, ensure_ascii=False)

    def to_dict(self) -> dict[str, Any]:
        return deepcopy(self._blob)

    # ------------------------------------------------------------------
    # High scores
    # ------------------------------------------------------------------

    def get_high_scores(self) -> list[dict[str, Any]]:
        return deepcopy(self._blob["high_scores"])

    def is_high_score(self, score: int) -> bool:
        """Would `score` make the table?"""
        scores = self._blob["high_scores"]
        if len(scores) < MAX_SCORES:
            return score > 0
        return score > scores[-1]["score"]

    def add_high_score(self, name: Optional[str], score: int) -> list[dict[str, Any]]:
        """
        Insert a score and persist.

        Returns:
            The updated table, sorted descending and capped.
        """
        scores = self._blob["high_scores"]
        scores.append({"name": sanitize_name(name), "score": int(score)})
        # Stable sort: an equal score ranks below existing entries
        scores.sort(key=lambda e: e["score"], reverse=True)
        del scores[MAX_SCORES:]
        self._save()
        return self.get_high_scores()

    def get_score_rank(self, score: int) -> int:
        """1-based rank `score` would take, or -1 if it would not place."""
        scores = self._blob["high_scores"]
        for i, entry in enumerate(scores):
            if score >= entry["score"]:
                return i + 1
        if len(scores) < MAX_SCORES:
            return len(scores) + 1
        return -1

    def clear_high_scores(self) -> None:
        self._blob["high_scores"] = []
        self._save()

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    def get_settings(self) -> dict[str, Any]:
        return dict(self._blob["settings"])

    def save_settings(self, partial: dict[str, Any]) -> dict[str, Any]:
        """Merge `partial` over the stored settings and persist."""
        self._blob["settings"].update(partial)
        self._save()
        return self.get_settings()

    def __repr__(self) -> str:
        where = str(self.path) if self.path is not None else "memory"
        return f"HighScoreStore({where}, scores={len(self._blob['high_scores'])})"
