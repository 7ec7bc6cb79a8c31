"""
Company calendar overrides.

Per-date include/exclude exceptions persisted in the ``CompanyCalendar`` sheet
and mirrored in an in-memory cache. An override beats the base rules:
``include`` forces a working day, ``exclude`` forces a non-working day.
"""
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

import pandas as pd

from dispatch_planner.datetime_utils import to_date_key
from dispatch_planner.exceptions import InvalidDateInput
from dispatch_planner.logging_config import get_logger
from dispatch_planner.workdays.row_store import RowStore

logger = get_logger(__name__)

DEFAULT_SHEET_NAME = "CompanyCalendar"


class OverrideAction(Enum):
    INCLUDE = "include"
    EXCLUDE = "exclude"

    @classmethod
    def coerce(cls, value) -> Optional["OverrideAction"]:
        """Map None/""/"include"/"exclude" (any case) to an action, None clears."""
        if value is None or isinstance(value, cls):
            return value
        text = str(value).strip().lower()
        if not text:
            return None
        try:
            return cls(text)
        except ValueError:
            raise ValueError(f"Override action must be 'include', 'exclude' or null. Got: {value!r}") from None


@dataclass
class HolidayOverride:
    date: str
    action: OverrideAction
    note: str = ""

    def to_row(self) -> Dict[str, str]:
        return {'Date': self.date, 'Action': self.action.value, 'Note': self.note or ''}

    def to_dict(self) -> Dict[str, str]:
        return {'date': self.date, 'action': self.action.value, 'note': self.note or ''}


def read_override_file(path) -> List[Tuple[str, Optional[OverrideAction], str]]:
    """
    Read ``Date,Action,Note`` rows from a CSV or Excel file.

    A blank action means "clear the override for this date".

    Returns:
        list of (date key, action or None, note) in file order

    Raises:
        ValueError: If the file has no date column or a row has an unknown action
        InvalidDateInput: If a date cannot be parsed
    """
    path = Path(path)
    if path.suffix.lower() in (".xlsx", ".xls"):
        df = pd.read_excel(path, dtype=str)
    else:
        df = pd.read_csv(path, dtype=str)

    df.columns = [str(c).strip().lower() for c in df.columns]
    if "date" not in df.columns:
        raise ValueError(f"Override file {path} has no 'date' column")
    for column in ("action", "note"):
        if column not in df.columns:
            df[column] = ""

    df = df.dropna(subset=["date"]).fillna("")
    entries = []
    for line, row in enumerate(df.itertuples(index=False), start=2):
        try:
            action = OverrideAction.coerce(row.action)
        except ValueError as exc:
            raise ValueError(f"{path.name} line {line}: {exc}") from None
        entries.append((to_date_key(row.date), action, row.note.strip()))
    return entries


def plan_override_import(
    existing: Dict[str, HolidayOverride],
    entries: Iterable[Tuple[str, Optional[OverrideAction], str]],
) -> List[Tuple[str, Optional[HolidayOverride], Optional[HolidayOverride]]]:
    """
    Net change per date from applying ``entries`` over ``existing`` in order.

    A later row for the same date replaces the earlier one. Notes count as a
    change. Dates whose final state equals the current one are left out.

    Returns:
        list of (date key, current override or None, final override or None),
        in order of first appearance
    """
    final: Dict[str, Optional[HolidayOverride]] = {}
    for key, action, note in entries:
        final[key] = HolidayOverride(date=key, action=action, note=note or '') if action else None

    return [
        (key, existing.get(key), override)
        for key, override in final.items()
        if existing.get(key) != override
    ]


def next_override_action(current: Optional[OverrideAction], base_non_working: bool) -> Optional[OverrideAction]:
    """
    Next override in the holiday manager's click cycle.

    Base working day:     clear -> exclude -> clear
    Base non-working day: clear -> include -> exclude -> include
    """
    if not base_non_working:
        return None if current is OverrideAction.EXCLUDE else OverrideAction.EXCLUDE
    return OverrideAction.EXCLUDE if current is OverrideAction.INCLUDE else OverrideAction.INCLUDE


class CompanyCalendarService:
    """Override cache over a sheet in the row store. Last write wins per date."""

    def __init__(self, row_store: RowStore, sheet_name: str = DEFAULT_SHEET_NAME):
        self.row_store = row_store
        self.sheet_name = sheet_name
        self._overrides: Dict[str, HolidayOverride] = {}
        self._loaded = False

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    @staticmethod
    def _row_key(row) -> Optional[str]:
        raw_date = str(row.get('Date') or row.get('date') or '').strip()
        if not raw_date:
            return None
        try:
            return to_date_key(raw_date)
        except InvalidDateInput:
            return None

    @staticmethod
    def _parse_row(row) -> Optional[HolidayOverride]:
        raw_date = str(row.get('Date') or row.get('date') or '').strip()
        raw_action = str(row.get('Action') or row.get('action') or '').strip().lower()
        if not raw_date or raw_action not in ('include', 'exclude'):
            return None
        note = row.get('Note') or row.get('note') or ''
        return HolidayOverride(date=to_date_key(raw_date), action=OverrideAction(raw_action), note=str(note))

    def load(self, force_refresh: bool = False) -> Dict[str, HolidayOverride]:
        """
        Populate the cache from the sheet.

        Args:
            force_refresh: Reload even if the cache was already loaded

        Returns:
            dict: date key -> HolidayOverride
        """
        if self._loaded and not force_refresh:
            return self._overrides

        overrides = {}
        try:
            rows = self.row_store.get_rows(self.sheet_name)
        except Exception as exc:
            # The sheet is optional; without it the base rules apply unchanged.
            logger.error("Failed to load calendar overrides", sheet=self.sheet_name, error=str(exc))
            rows = []

        skipped = 0
        for row in rows:
            try:
                override = self._parse_row(row)
            except ValueError:
                override = None
            if override is None:
                skipped += 1
                continue
            overrides[override.date] = override

        self._overrides = overrides
        self._loaded = True
        logger.info(
            "Calendar overrides loaded",
            sheet=self.sheet_name,
            overrides=len(overrides),
            skipped_rows=skipped,
        )
        return self._overrides

    def get(self, value) -> Optional[OverrideAction]:
        """Override action for a date, loading the cache on first use."""
        if not self._loaded:
            self.load()
        override = self._overrides.get(to_date_key(value))
        return override.action if override else None

    def get_override(self, value) -> Optional[HolidayOverride]:
        if not self._loaded:
            self.load()
        return self._overrides.get(to_date_key(value))

    def set(self, value, action=None, note: str = "") -> Optional[HolidayOverride]:
        """
        Persist an override and update the cache.

        Passing ``action=None`` deletes the row and the cache entry.

        Returns:
            HolidayOverride that was saved, or None when cleared
        """
        action = OverrideAction.coerce(action)
        self.load()
        key = to_date_key(value)

        try:
            rows = self.row_store.get_rows(self.sheet_name)
        except Exception as exc:
            # Missing sheet: nothing to update, the write appends a fresh row
            logger.warning("Could not read calendar overrides before write", sheet=self.sheet_name, error=str(exc))
            rows = []
        matches = [
            idx for idx, row in enumerate(rows)
            if self._row_key(row) == key
        ]

        if action is None:
            # Delete bottom-up so earlier indices stay valid
            for idx in reversed(matches):
                self.row_store.delete_row(self.sheet_name, idx)
            self._overrides.pop(key, None)
            logger.info("Calendar override cleared", date=key, rows_deleted=len(matches))
            return None

        override = HolidayOverride(date=key, action=action, note=note or '')
        if matches:
            self.row_store.update_row(self.sheet_name, matches[0], override.to_row())
            for idx in reversed(matches[1:]):
                self.row_store.delete_row(self.sheet_name, idx)
        else:
            self.row_store.append_row(self.sheet_name, override.to_row())

        self._overrides[key] = override
        logger.info("Calendar override saved", date=key, action=action.value)
        return override

    def clear(self) -> None:
        """Drop the in-memory cache; the next lookup reloads from the sheet."""
        self._overrides = {}
        self._loaded = False

    def all(self) -> List[HolidayOverride]:
        if not self._loaded:
            self.load()
        return [self._overrides[key] for key in sorted(self._overrides)]
