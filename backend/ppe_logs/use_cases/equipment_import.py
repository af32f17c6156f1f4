"""Equipment registry import: filter, classify and upsert exported equipment rows."""
from __future__ import annotations

import csv
import logging
import uuid
from collections import Counter
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Mapping

from sqlalchemy.orm import Session

from ..config import settings
from ..domain_errors import ValidationError
from ..models import EquipmentItem, Person
from ..schemas import ImportSummary, RawRecord
from ..services.classifier import classify

logger = logging.getLogger(__name__)

DUPLICATE_POLICIES: tuple[str, ...] = ("first", "last")


@dataclass(frozen=True)
class ImportFilters:
    site_filter: str
    excluded_conditions: tuple[str, ...]
    duplicate_barcode_wins: str = "first"

    @classmethod
    def from_settings(cls) -> "ImportFilters":
        return cls(
            site_filter=settings.IMPORT_SITE_FILTER,
            excluded_conditions=tuple(settings.excluded_conditions_list),
            duplicate_barcode_wins=settings.IMPORT_DUPLICATE_BARCODE_WINS,
        )


@dataclass
class _AcceptedRow:
    employee_ref: str
    employee_name: str
    barcode: str
    description: str
    size: str | None


def _clean(value: str | None) -> str:
    return (value or "").strip()


def should_exclude_condition(current_condition: str | None, vocabulary: Iterable[str]) -> bool:
    """True when the condition marks the item as permanently unavailable."""
    condition = _clean(current_condition).upper()
    if not condition:
        return False
    return any(term.upper() in condition for term in vocabulary if term)


def matches_site(location: str | None, site_filter: str) -> bool:
    if not site_filter:
        return True
    return site_filter.upper() in _clean(location).upper()


def _skip_reason(record: RawRecord, filters: ImportFilters) -> str | None:
    if not _clean(record.employee_ref):
        return "missing_reference"
    if not matches_site(record.location, filters.site_filter):
        return "other_site"
    if should_exclude_condition(record.current_condition, filters.excluded_conditions):
        return "excluded_condition"
    if not _clean(record.product_id):
        return "missing_barcode"
    return None


def _as_record(row: RawRecord | Mapping[str, object]) -> RawRecord:
    if isinstance(row, RawRecord):
        return row
    return RawRecord.model_validate(row)


def import_records_use_case(
    *,
    db: Session,
    rows: Iterable[RawRecord | Mapping[str, object]],
    filters: ImportFilters | None = None,
) -> ImportSummary:
    """Upsert people and equipment from export rows in a single transaction."""
    filters = filters or ImportFilters.from_settings()
    if filters.duplicate_barcode_wins not in DUPLICATE_POLICIES:
        raise ValidationError(
            f"Unsupported duplicate barcode policy: {filters.duplicate_barcode_wins}",
            code="IMPORT_INVALID_POLICY",
        )

    skipped: Counter[str] = Counter()
    accepted: dict[str, _AcceptedRow] = {}

    for row in rows:
        record = _as_record(row)
        reason = _skip_reason(record, filters)
        if reason is not None:
            skipped[reason] += 1
            if reason == "excluded_condition":
                logger.info(
                    "import.skip barcode=%s condition=%s",
                    _clean(record.product_id),
                    _clean(record.current_condition).split(" - ")[-1],
                )
            continue

        barcode = _clean(record.product_id)
        if barcode in accepted:
            skipped["duplicate_barcode"] += 1
            if filters.duplicate_barcode_wins == "first":
                continue

        accepted[barcode] = _AcceptedRow(
            employee_ref=_clean(record.employee_ref),
            employee_name=_clean(record.employee_name),
            barcode=barcode,
            description=record.garment_details or "",
            size=_clean(record.size) or None,
        )

    refs = {row.employee_ref for row in accepted.values()}
    people_by_ref: dict[str, Person] = {}
    if refs:
        people_by_ref = {
            person.employee_ref: person
            for person in db.query(Person).filter(Person.employee_ref.in_(tuple(refs))).all()
        }

    persons_created = 0
    try:
        for row in accepted.values():
            if row.employee_ref in people_by_ref:
                continue
            person = Person(
                id=uuid.uuid4(),
                name=row.employee_name or row.employee_ref,
                employee_ref=row.employee_ref,
            )
            db.add(person)
            people_by_ref[row.employee_ref] = person
            persons_created += 1
        db.flush()

        existing_items: dict[str, EquipmentItem] = {}
        if accepted:
            existing_items = {
                item.barcode: item
                for item in db.query(EquipmentItem).filter(
                    EquipmentItem.barcode.in_(tuple(accepted.keys()))
                ).all()
            }

        for row in accepted.values():
            owner = people_by_ref[row.employee_ref]
            item = existing_items.get(row.barcode)
            if item is None:
                item = EquipmentItem(barcode=row.barcode)
                db.add(item)
            item.category = classify(row.description)
            item.description = row.description
            item.size = row.size
            item.owner_id = owner.id

        db.flush()
        items_not_in_import = (
            db.query(EquipmentItem)
            .filter(EquipmentItem.barcode.notin_(tuple(accepted.keys())))
            .count()
            if accepted
            else db.query(EquipmentItem).count()
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    summary = ImportSummary(
        persons_touched=len(refs),
        persons_created=persons_created,
        items_imported=len(accepted),
        items_skipped=sum(skipped.values()),
        skipped_by_reason=dict(skipped),
        items_not_in_import=items_not_in_import,
    )
    logger.info(
        "import.complete persons=%s created=%s items=%s skipped=%s stale=%s",
        summary.persons_touched,
        summary.persons_created,
        summary.items_imported,
        summary.items_skipped,
        summary.items_not_in_import,
    )
    return summary


def parse_import_rows(lines: Iterable[str]) -> list[RawRecord]:
    """Header-driven CSV parsing tolerant of ragged rows and blank lines."""
    records: list[RawRecord] = []
    for row in csv.DictReader(lines):
        cleaned = {
            key.strip(): value
            for key, value in row.items()
            if key is not None and not isinstance(value, list)
        }
        if not any(_clean(value) for value in cleaned.values()):
            continue
        records.append(RawRecord.model_validate(cleaned))
    return records


def read_import_file(path: str | Path) -> list[RawRecord]:
    with open(path, "r", encoding="utf-8-sig", newline="") as handle:
        return parse_import_rows(handle)


def import_files_use_case(
    *,
    db: Session,
    paths: Iterable[str | Path],
    filters: ImportFilters | None = None,
) -> ImportSummary:
    records: list[RawRecord] = []
    for path in paths:
        logger.info("import.read path=%s", path)
        records.extend(read_import_file(path))
    return import_records_use_case(db=db, rows=records, filters=filters)
