"""
Fixed (gazetted) holiday table.

The table is a literal list of dates per calendar year. It is not computed;
years that are missing are simply treated as having no fixed holidays.
"""
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

import pandas as pd

from dispatch_planner.datetime_utils import to_date_key
from dispatch_planner.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_HOLIDAYS_FILE = Path(__file__).resolve().parent.parent / "data" / "fixed_holidays.csv"


class FixedHolidayTable:
    """Immutable lookup of YYYY-MM-DD -> holiday names."""

    def __init__(self, entries: Iterable[Tuple[str, str]] = ()):
        table: Dict[str, List[str]] = {}
        for raw_date, name in entries:
            key = to_date_key(raw_date)
            table.setdefault(key, []).append((name or "").strip())
        self._table = table

    @classmethod
    def from_file(cls, path) -> "FixedHolidayTable":
        """
        Load the table from a ``date,name`` CSV or an Excel sheet with the same headers.

        Args:
            path: Path to a .csv, .xlsx or .xls file

        Returns:
            FixedHolidayTable
        """
        path = Path(path)
        if path.suffix.lower() in (".xlsx", ".xls"):
            df = pd.read_excel(path, dtype=str)
        else:
            df = pd.read_csv(path, dtype=str)

        df.columns = [str(c).strip().lower() for c in df.columns]
        if "date" not in df.columns:
            raise ValueError(f"Holiday file {path} has no 'date' column")
        if "name" not in df.columns:
            df["name"] = ""

        df = df.dropna(subset=["date"])
        df["name"] = df["name"].fillna("")

        table = cls(zip(df["date"].str.strip(), df["name"]))
        logger.info("Fixed holiday table loaded", path=str(path), dates=len(table), years=table.years())

        for key, names in table.duplicates().items():
            # Data-quality issue for the calendar owner; keep the row as given.
            logger.warning("Duplicate fixed holiday date", date=key, names=names)

        return table

    def __len__(self):
        return len(self._table)

    def __contains__(self, value):
        return self.contains(value)

    def contains(self, value) -> bool:
        return to_date_key(value) in self._table

    def names_for(self, value) -> List[str]:
        return list(self._table.get(to_date_key(value), []))

    def years(self) -> List[int]:
        return sorted({int(key[:4]) for key in self._table})

    def for_year(self, year: int) -> Dict[str, List[str]]:
        prefix = f"{year:04d}-"
        return {k: list(v) for k, v in sorted(self._table.items()) if k.startswith(prefix)}

    def duplicates(self) -> Dict[str, List[str]]:
        """Dates listed more than once in the source data."""
        return {k: list(v) for k, v in sorted(self._table.items()) if len(v) > 1}


def load_default_table(path: Optional[str] = None) -> FixedHolidayTable:
    """Load the configured holiday file, falling back to the packaged 2024-2025 list."""
    return FixedHolidayTable.from_file(path or DEFAULT_HOLIDAYS_FILE)
