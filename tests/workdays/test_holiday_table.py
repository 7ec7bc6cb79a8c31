"""
Tests for the fixed holiday table and its loaders.
"""
import pytest
from datetime import date

from dispatch_planner.exceptions import InvalidDateInput
from dispatch_planner.workdays.holidays import FixedHolidayTable, load_default_table


class TestDefaultTable:
    """Tests for the packaged 2024-2025 holiday list."""

    @pytest.fixture
    def table(self):
        return load_default_table()

    def test_covers_2024_and_2025(self, table):
        assert table.years() == [2024, 2025]

    def test_known_holidays(self, table):
        assert table.contains("2025-01-26")
        assert table.contains(date(2024, 12, 25))
        assert "2025-10-21" in table

    def test_ordinary_day_is_not_a_holiday(self, table):
        assert not table.contains("2025-01-27")

    def test_years_outside_the_table_have_no_holidays(self, table):
        assert table.for_year(2026) == {}
        assert not table.contains("2026-01-26")

    def test_duplicate_date_is_kept_as_given(self, table):
        assert table.duplicates() == {"2025-08-15": ["Independence Day", "Janmashtami"]}
        assert table.names_for("2025-08-15") == ["Independence Day", "Janmashtami"]

    def test_unique_date_count(self, table):
        # 15 rows per year, one duplicated date in 2025
        assert len(table) == 29
        assert len(table.for_year(2025)) == 14


class TestFromFile:
    """Tests for loading custom tables."""

    def test_csv_with_mixed_header_case(self, tmp_path):
        path = tmp_path / "holidays.csv"
        path.write_text("Date,Name\n2026-01-26,Republic Day\n2026-08-15,Independence Day\n")

        table = FixedHolidayTable.from_file(path)

        assert table.years() == [2026]
        assert table.names_for("2026-01-26") == ["Republic Day"]

    def test_csv_without_name_column(self, tmp_path):
        path = tmp_path / "holidays.csv"
        path.write_text("date\n2026-03-04\n")

        table = FixedHolidayTable.from_file(path)

        assert table.contains("2026-03-04")
        assert table.names_for("2026-03-04") == [""]

    def test_missing_date_column_raises(self, tmp_path):
        path = tmp_path / "holidays.csv"
        path.write_text("day,name\n2026-03-04,Holi\n")

        with pytest.raises(ValueError):
            FixedHolidayTable.from_file(path)

    def test_malformed_date_raises(self, tmp_path):
        path = tmp_path / "holidays.csv"
        path.write_text("date,name\nsoon,Holi\n")

        with pytest.raises(InvalidDateInput):
            FixedHolidayTable.from_file(path)

    def test_entries_are_normalized(self):
        table = FixedHolidayTable([("26/01/2026", "Republic Day")])
        assert table.contains(date(2026, 1, 26))
