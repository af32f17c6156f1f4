"""Monthly inspection submission and cycle queries."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Iterable
from uuid import UUID

from sqlalchemy import case, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..config import settings
from ..domain_errors import (
    DuplicateCycle,
    PersonNotFound,
    UnknownOrUnownedItem,
    ValidationError,
)
from ..models import EquipmentItem, InspectionCycle, ItemResult, Person
from ..schemas import (
    CycleDetail,
    CycleHistoryItem,
    CycleOut,
    DefectItem,
    DefectNotification,
    ItemResultIn,
    ItemResultOut,
    SubmittedCycle,
)
from ..services.periods import normalize_month, now_utc

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InspectionHooks:
    """Collaborators injected by the HTTP layer (and by tests)."""

    notify: Callable[[DefectNotification], None] | None = None
    now_utc: Callable[[], datetime] = now_utc


def validated_month(month: str | None) -> str:
    try:
        return normalize_month(month)
    except ValueError as error:
        raise ValidationError(str(error), code="INVALID_MONTH") from error


def require_person(db: Session, person_id: UUID) -> Person:
    person = db.query(Person).filter(Person.id == person_id).first()
    if person is None:
        raise PersonNotFound(person_id)
    return person


def find_cycle(db: Session, *, person_id: UUID, month: str) -> InspectionCycle | None:
    return db.query(InspectionCycle).filter(
        InspectionCycle.person_id == person_id,
        InspectionCycle.month == month,
    ).first()


def normalize_results(results: Iterable[ItemResultIn]) -> list[ItemResultIn]:
    """Drop notes/photo from good results and reject repeated barcodes."""
    normalized: list[ItemResultIn] = []
    seen: set[str] = set()
    repeated: list[str] = []
    for result in results:
        if result.barcode in seen:
            repeated.append(result.barcode)
            continue
        seen.add(result.barcode)
        if result.condition == "good":
            result = result.model_copy(update={"notes": None, "photo_ref": None})
        else:
            notes = (result.notes or "").strip() or None
            result = result.model_copy(update={"notes": notes})
        normalized.append(result)

    if repeated:
        raise ValidationError(
            "Each barcode may appear only once per submission",
            code="DUPLICATE_ITEM_RESULT",
            details={"barcodes": sorted(set(repeated))},
        )
    if not normalized:
        raise ValidationError(
            "At least one item result is required",
            code="ITEM_RESULTS_REQUIRED",
        )
    return normalized


def _check_ownership(
    *,
    person: Person,
    owned: dict[str, EquipmentItem],
    results: list[ItemResultIn],
    require_all_items: bool,
) -> None:
    foreign = [result.barcode for result in results if result.barcode not in owned]
    if foreign:
        raise UnknownOrUnownedItem(person_id=person.id, barcodes=foreign)

    if require_all_items:
        submitted = {result.barcode for result in results}
        missing = sorted(barcode for barcode in owned if barcode not in submitted)
        if missing:
            raise ValidationError(
                "Every item owned by this person must be inspected",
                code="ITEM_RESULTS_INCOMPLETE",
                details={"barcodes": missing},
            )


def build_defect_notification(
    *,
    person: Person,
    month: str,
    reported_at: datetime,
    results: list[ItemResultIn],
    owned: dict[str, EquipmentItem],
) -> DefectNotification | None:
    defects = [
        DefectItem(
            barcode=result.barcode,
            category=owned[result.barcode].category,
            description=owned[result.barcode].description or "",
            notes=result.notes,
            photo_ref=result.photo_ref,
        )
        for result in results
        if result.condition == "defect"
    ]
    if not defects:
        return None
    return DefectNotification(
        person_id=person.id,
        person_name=person.name,
        month=month,
        reported_at=reported_at,
        defects=defects,
    )


def submit_cycle_use_case(
    *,
    db: Session,
    person_id: UUID,
    month: str,
    results: Iterable[ItemResultIn],
    hooks: InspectionHooks | None = None,
    require_all_items: bool | None = None,
) -> SubmittedCycle:
    """Record a person's monthly inspection atomically, then notify on defects."""
    hooks = hooks or InspectionHooks()
    if require_all_items is None:
        require_all_items = settings.INSPECTION_REQUIRE_ALL_ITEMS

    month = validated_month(month)
    normalized = normalize_results(results)
    person = require_person(db, person_id)

    # Early answer for the UI; the unique constraint below is authoritative.
    if find_cycle(db, person_id=person.id, month=month) is not None:
        raise DuplicateCycle(person_id=person.id, month=month)

    owned = {
        item.barcode: item
        for item in db.query(EquipmentItem).filter(EquipmentItem.owner_id == person.id).all()
    }
    _check_ownership(
        person=person,
        owned=owned,
        results=normalized,
        require_all_items=require_all_items,
    )

    completed_at = hooks.now_utc()
    cycle = InspectionCycle(person_id=person.id, month=month, completed_at=completed_at)
    db.add(cycle)
    try:
        db.flush()
        for result in normalized:
            db.add(
                ItemResult(
                    cycle_id=cycle.id,
                    barcode=result.barcode,
                    condition=result.condition,
                    notes=result.notes,
                    photo_ref=result.photo_ref,
                    checked_at=completed_at,
                )
            )
        db.commit()
    except IntegrityError as error:
        db.rollback()
        winner = db.query(InspectionCycle.id).filter(
            InspectionCycle.person_id == person.id,
            InspectionCycle.month == month,
        ).first()
        if winner is not None:
            raise DuplicateCycle(person_id=person.id, month=month) from error
        raise
    except Exception:
        db.rollback()
        raise

    defect_count = sum(1 for result in normalized if result.condition == "defect")
    logger.info(
        "inspection.submitted person=%s month=%s items=%s defects=%s",
        person.id,
        month,
        len(normalized),
        defect_count,
    )

    payload = build_defect_notification(
        person=person,
        month=month,
        reported_at=completed_at,
        results=normalized,
        owned=owned,
    )
    if payload is not None and hooks.notify is not None:
        try:
            hooks.notify(payload)
        except Exception:
            logger.exception("Defect notification failed for person=%s month=%s", person.id, month)

    return SubmittedCycle(
        cycle_id=cycle.id,
        person_id=person.id,
        month=month,
        completed_at=completed_at,
        items_checked=len(normalized),
        defect_count=defect_count,
    )


def get_cycle_use_case(*, db: Session, person_id: UUID, month: str) -> CycleDetail | None:
    """Return the person's cycle for the month with item details, or None."""
    month = validated_month(month)
    cycle = find_cycle(db, person_id=person_id, month=month)
    if cycle is None:
        return None

    rows = (
        db.query(ItemResult, EquipmentItem)
        .join(EquipmentItem, EquipmentItem.barcode == ItemResult.barcode)
        .filter(ItemResult.cycle_id == cycle.id)
        .order_by(EquipmentItem.category.asc(), EquipmentItem.description.asc())
        .all()
    )
    return CycleDetail(
        cycle=CycleOut.model_validate(cycle),
        items=[
            ItemResultOut(
                id=result.id,
                barcode=result.barcode,
                condition=result.condition,
                notes=result.notes,
                photo_ref=result.photo_ref,
                checked_at=result.checked_at,
                category=item.category,
                description=item.description,
                size=item.size,
            )
            for result, item in rows
        ],
    )


def cycle_counts_query(db: Session):
    return (
        db.query(
            InspectionCycle,
            func.count(ItemResult.id).label("items_checked"),
            func.coalesce(
                func.sum(case((ItemResult.condition == "defect", 1), else_=0)),
                0,
            ).label("defects"),
        )
        .outerjoin(ItemResult, ItemResult.cycle_id == InspectionCycle.id)
        .group_by(InspectionCycle.id)
    )


def list_person_cycles_use_case(*, db: Session, person_id: UUID) -> list[CycleHistoryItem]:
    person = require_person(db, person_id)
    rows = (
        cycle_counts_query(db)
        .filter(InspectionCycle.person_id == person.id)
        .order_by(InspectionCycle.month.desc())
        .all()
    )
    return [
        CycleHistoryItem(
            id=cycle.id,
            person_id=cycle.person_id,
            month=cycle.month,
            completed_at=cycle.completed_at,
            person_name=person.name,
            items_checked=int(items_checked or 0),
            defects=int(defects or 0),
        )
        for cycle, items_checked, defects in rows
    ]
