"""
Row-oriented storage for named sheets.

This is the seam to the spreadsheet-style persistence layer: read all rows,
append, update by index, delete by index. Indices are zero-based positions in
the list returned by ``get_rows``.
"""
from copy import deepcopy
from typing import Dict, List

from dispatch_planner.logging_config import get_logger
from dispatch_planner.models import SheetRow, db

logger = get_logger(__name__)

Row = Dict[str, str]


class RowStore:
    """Interface for a sheet-keyed row store."""

    def get_rows(self, sheet_name: str) -> List[Row]:
        raise NotImplementedError

    def append_row(self, sheet_name: str, row: Row) -> None:
        raise NotImplementedError

    def update_row(self, sheet_name: str, index: int, row: Row) -> None:
        raise NotImplementedError

    def delete_row(self, sheet_name: str, index: int) -> None:
        raise NotImplementedError


class InMemoryRowStore(RowStore):
    """Process-local row store, used by scripts and tests."""

    def __init__(self, sheets: Dict[str, List[Row]] = None):
        self._sheets: Dict[str, List[Row]] = deepcopy(sheets) if sheets else {}

    def get_rows(self, sheet_name):
        return deepcopy(self._sheets.get(sheet_name, []))

    def append_row(self, sheet_name, row):
        self._sheets.setdefault(sheet_name, []).append(dict(row))

    def update_row(self, sheet_name, index, row):
        rows = self._sheets.get(sheet_name, [])
        if not 0 <= index < len(rows):
            raise IndexError(f"Row {index} does not exist in sheet {sheet_name}")
        rows[index] = dict(row)

    def delete_row(self, sheet_name, index):
        rows = self._sheets.get(sheet_name, [])
        if not 0 <= index < len(rows):
            raise IndexError(f"Row {index} does not exist in sheet {sheet_name}")
        del rows[index]


class SqlRowStore(RowStore):
    """
    Row store backed by the ``sheet_rows`` table.

    Must be used inside a Flask application context. Every write commits.
    """

    def __init__(self, session=None):
        self._session = session or db.session

    def _query(self, sheet_name):
        return SheetRow.query.filter_by(sheet_name=sheet_name).order_by(SheetRow.position)

    def _get_at(self, sheet_name, index):
        record = self._query(sheet_name).offset(index).first() if index >= 0 else None
        if record is None:
            raise IndexError(f"Row {index} does not exist in sheet {sheet_name}")
        return record

    def get_rows(self, sheet_name):
        return [dict(record.data or {}) for record in self._query(sheet_name).all()]

    def append_row(self, sheet_name, row):
        last = (
            SheetRow.query.filter_by(sheet_name=sheet_name)
            .order_by(SheetRow.position.desc())
            .first()
        )
        position = last.position + 1 if last else 0
        self._session.add(SheetRow(sheet_name=sheet_name, position=position, data=dict(row)))
        self._session.commit()
        logger.debug("Row appended", sheet=sheet_name, position=position)

    def update_row(self, sheet_name, index, row):
        record = self._get_at(sheet_name, index)
        record.data = dict(row)
        self._session.commit()
        logger.debug("Row updated", sheet=sheet_name, position=record.position)

    def delete_row(self, sheet_name, index):
        record = self._get_at(sheet_name, index)
        removed_position = record.position
        self._session.delete(record)
        self._session.flush()
        for later in self._query(sheet_name).filter(SheetRow.position > removed_position).all():
            later.position -= 1
        self._session.commit()
        logger.debug("Row deleted", sheet=sheet_name, position=removed_position)
