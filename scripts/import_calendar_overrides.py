#!/usr/bin/env python3
"""
Bulk-load company calendar overrides.

Reads a CSV or Excel file with Date, Action and Note columns and writes each
row to the CompanyCalendar sheet. A blank Action clears the override for that
date. Rows are applied in file order, so a later row for the same date wins;
only dates whose action or note actually changes are written.

Usage:
    python scripts/import_calendar_overrides.py overrides.csv
    python scripts/import_calendar_overrides.py shutdown.xlsx --dry-run
"""

import argparse
import os
import sys

# Add parent directory to path to import app modules
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from dispatch_planner import create_app
from dispatch_planner.datetime_utils import format_display_date
from dispatch_planner.workdays import plan_override_import, read_override_file


def describe(override):
    """Short label for an override in the change listing."""
    if override is None:
        return "none"
    return f"{override.action.value} ({override.note})" if override.note else override.action.value


def main():
    parser = argparse.ArgumentParser(description="Import company calendar overrides from a file")
    parser.add_argument("path", help="CSV or Excel file with Date, Action, Note columns")
    parser.add_argument("--dry-run", action="store_true", help="Show what would change without writing")
    args = parser.parse_args()

    try:
        entries = read_override_file(args.path)
    except (OSError, ValueError) as e:
        print(f"Could not read {args.path}: {e}")
        return 1

    app = create_app()

    with app.app_context():
        calendar = app.extensions["working_calendar"]
        existing = calendar.load_overrides(force_refresh=True)
        changes = plan_override_import(existing, entries)

        print("=" * 60)
        print(f"Importing {len(entries)} override row(s) from {args.path}")
        print("=" * 60)

        for key, current, override in changes:
            before = describe(current)
            after = describe(override)
            print(f"  {format_display_date(key)}: {before} -> {after}")
            if not args.dry_run:
                calendar.set_override(key, override.action if override else None, override.note if override else "")

        print()
        if args.dry_run:
            print(f"Dry run: {len(changes)} override(s) would change")
        else:
            print(f"Done: {len(changes)} override(s) changed")

    return 0


if __name__ == "__main__":
    sys.exit(main())
