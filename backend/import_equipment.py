#!/usr/bin/env python3
"""Import equipment exports (CSV) into the roster.

Usage:
    python import_equipment.py [FILE.csv ...]

Without arguments every *.csv in IMPORT_DATA_DIR is imported.
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

from ppe_logs.config import settings
from ppe_logs.database import Base, SessionLocal, engine
from ppe_logs.domain_errors import DomainError
from ppe_logs.logging_setup import configure_logging
from ppe_logs.use_cases.equipment_import import ImportFilters, import_files_use_case


def _resolve_paths(args: list[str]) -> list[Path]:
    if args:
        return [Path(arg) for arg in args]
    data_dir = Path(settings.IMPORT_DATA_DIR)
    if not data_dir.is_dir():
        return []
    return sorted(data_dir.glob("*.csv"))


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Import PPE equipment exports")
    parser.add_argument("files", nargs="*", help="CSV exports (default: *.csv in IMPORT_DATA_DIR)")
    parser.add_argument(
        "--duplicates",
        choices=("first", "last"),
        default=None,
        help="Which row wins when a barcode repeats in one run",
    )
    parser.add_argument("--create-tables", action="store_true", help="Create missing tables first")
    options = parser.parse_args(argv)

    configure_logging()

    paths = _resolve_paths(options.files)
    if not paths:
        print(f"❌ No CSV files found (looked in {settings.IMPORT_DATA_DIR})")
        return 1
    missing = [path for path in paths if not path.is_file()]
    if missing:
        print(f"❌ File not found: {', '.join(str(path) for path in missing)}")
        return 1

    if options.create_tables:
        Base.metadata.create_all(bind=engine)

    filters = ImportFilters.from_settings()
    if options.duplicates:
        filters = ImportFilters(
            site_filter=filters.site_filter,
            excluded_conditions=filters.excluded_conditions,
            duplicate_barcode_wins=options.duplicates,
        )

    db = SessionLocal()
    try:
        print(f"📥 Importing {len(paths)} file(s)...")
        summary = import_files_use_case(db=db, paths=paths, filters=filters)
    except DomainError as exc:
        print(f"❌ Import rejected: {exc.message}")
        return 1
    finally:
        db.close()

    print("=" * 60)
    print(f"✅ People:  {summary.persons_touched} ({summary.persons_created} new)")
    print(f"✅ Items:   {summary.items_imported}")
    print(f"⏭️  Skipped: {summary.items_skipped}")
    for reason, count in sorted(summary.skipped_by_reason.items()):
        print(f"    - {reason}: {count}")
    if summary.items_not_in_import:
        print(f"⚠️  {summary.items_not_in_import} stored item(s) were not in this import")
    print("=" * 60)
    return 0


if __name__ == "__main__":
    sys.exit(main())
