"""
Per-level KPI table for Number Nosher runs.

One row per finished level, appended as the run goes so a crashed run
still leaves every completed level on disk. Floats are rounded and enum
values flattened before writing; `read_frame` loads the table back with
pandas for the results viewer.
"""

from __future__ import annotations

import csv
from enum import Enum
from pathlib import Path
from typing import Any, Iterable, Optional

import pandas as pd

from src.simulation.metrics import MetricsCollector

FLOAT_DIGITS = 4


def _format_value(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, float):
        return round(value, FLOAT_DIGITS)
    if value is None:
        return ""
    return value


class CSVLogger:
    """
    Level KPI rows in a CSV file.

    Attributes:
        file_path: Path to the CSV file.
        columns: Column order; keys outside it are dropped.
    """

    def __init__(self, file_path: str | Path, columns: Optional[list[str]] = None):
        self.file_path = Path(file_path)
        self.columns = columns or MetricsCollector.kpi_names()
        self.file_path.parent.mkdir(parents=True, exist_ok=True)

    def _has_rows(self) -> bool:
        return self.file_path.exists() and self.file_path.stat().st_size > 0

    def _prepare(self, row: dict) -> dict:
        return {col: _format_value(row.get(col)) for col in self.columns}

    def log_row(self, kpi_dict: dict) -> None:
        """Append one level's row, writing the header first on a new file."""
        new_file = not self._has_rows()
        with open(self.file_path, "a", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=self.columns)
            if new_file:
                writer.writeheader()
            writer.writerow(self._prepare(kpi_dict))

    def log_all(self, kpi_list: Iterable[dict]) -> None:
        """Replace the file with the given rows."""
        with open(self.file_path, "w", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=self.columns)
            writer.writeheader()
            writer.writerows(self._prepare(row) for row in kpi_list)

    def read_back(self) -> list[dict]:
        """Rows as dicts of strings; [] if nothing was written."""
        if not self._has_rows():
            return []
        with open(self.file_path, "r", encoding="utf-8") as f:
            return list(csv.DictReader(f))

    def read_frame(self) -> pd.DataFrame:
        """The table as a DataFrame; empty if missing or unreadable."""
        if not self._has_rows():
            return pd.DataFrame()
        try:
            return pd.read_csv(self.file_path)
        except (OSError, pd.errors.EmptyDataError, pd.errors.ParserError):
            return pd.DataFrame()

    def __len__(self) -> int:
        return len(self.read_back())
