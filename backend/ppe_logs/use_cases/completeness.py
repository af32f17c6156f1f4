"""Read-only completeness views over people and their inspection cycles."""
from __future__ import annotations

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..domain_errors import ValidationError
from ..models import AuditSignoff, EquipmentItem, InspectionCycle, ItemResult, Person
from ..schemas import (
    MonthlyPersonStatus,
    MonthlySummary,
    PersonOut,
    QuarterlyCompleteness,
    QuarterPersonRow,
    SignoffOut,
)
from ..services.periods import normalize_quarter, quarter_months
from .inspection_cycles import validated_month


def validated_quarter(quarter: str | None) -> str:
    try:
        return normalize_quarter(quarter)
    except ValueError as error:
        raise ValidationError(str(error), code="INVALID_QUARTER") from error


def _open_defect_counts(db: Session) -> dict:
    rows = (
        db.query(InspectionCycle.person_id, func.count(ItemResult.id))
        .join(ItemResult, ItemResult.cycle_id == InspectionCycle.id)
        .filter(ItemResult.condition == "defect")
        .group_by(InspectionCycle.person_id)
        .all()
    )
    return {person_id: int(count) for person_id, count in rows}


def _equipment_counts(db: Session) -> dict:
    rows = (
        db.query(EquipmentItem.owner_id, func.count(EquipmentItem.barcode))
        .group_by(EquipmentItem.owner_id)
        .all()
    )
    return {owner_id: int(count) for owner_id, count in rows}


def monthly_summary_use_case(*, db: Session, month: str) -> MonthlySummary:
    """Who has and has not completed the given month.

    ``open_defect_count`` counts every defect result ever recorded for the
    person, not only those from ``month``.
    """
    month = validated_month(month)
    people = db.query(Person).order_by(Person.name.asc(), Person.employee_ref.asc()).all()
    completed = {
        cycle.person_id: cycle.completed_at
        for cycle in db.query(InspectionCycle).filter(InspectionCycle.month == month).all()
    }
    defects = _open_defect_counts(db)
    equipment = _equipment_counts(db)

    statuses = [
        MonthlyPersonStatus(
            person=PersonOut.model_validate(person),
            status="complete" if person.id in completed else "incomplete",
            last_cycle_at=completed.get(person.id),
            open_defect_count=defects.get(person.id, 0),
            equipment_count=equipment.get(person.id, 0),
        )
        for person in people
    ]
    complete = sum(1 for status in statuses if status.status == "complete")
    return MonthlySummary(
        month=month,
        total=len(statuses),
        complete=complete,
        incomplete=len(statuses) - complete,
        people=statuses,
    )


def quarterly_completeness_use_case(*, db: Session, quarter: str) -> QuarterlyCompleteness:
    quarter = validated_quarter(quarter)
    months = quarter_months(quarter)

    done: dict = {}
    for person_id, month in (
        db.query(InspectionCycle.person_id, InspectionCycle.month)
        .filter(InspectionCycle.month.in_(months))
        .all()
    ):
        done.setdefault(person_id, set()).add(month)

    rows: list[QuarterPersonRow] = []
    for person in db.query(Person).order_by(Person.name.asc(), Person.employee_ref.asc()).all():
        flags = {month: month in done.get(person.id, set()) for month in months}
        rows.append(
            QuarterPersonRow(
                person=PersonOut.model_validate(person),
                month_flags=flags,
                all_complete=all(flags.values()),
            )
        )

    signoff = db.query(AuditSignoff).filter(AuditSignoff.quarter == quarter).first()
    return QuarterlyCompleteness(
        quarter=quarter,
        months=months,
        people=rows,
        complete_count=sum(1 for row in rows if row.all_complete),
        signoff=SignoffOut.model_validate(signoff) if signoff is not None else None,
    )


def build_completeness_digest(summary: MonthlySummary) -> tuple[str, str]:
    """Render a monthly summary as (subject, plain text body)."""
    subject = f"PPE Inspection Status - {summary.month}"
    lines = [
        f"PPE inspections for {summary.month}",
        f"Complete: {summary.complete}/{summary.total}",
        f"Outstanding: {summary.incomplete}",
    ]
    outstanding = [status.person.name for status in summary.people if status.status != "complete"]
    if outstanding:
        lines.append("")
        lines.append("Still to inspect:")
        lines.extend(f"  - {name}" for name in outstanding)
    else:
        lines.append("")
        lines.append("Everyone has completed this month's inspection.")
    return subject, "\n".join(lines) + "\n"
