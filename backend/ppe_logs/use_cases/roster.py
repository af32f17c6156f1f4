"""Roster and history read models for the UI."""
from __future__ import annotations

from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..models import EquipmentItem, InspectionCycle, ItemResult, Person
from ..schemas import CycleHistoryItem, EquipmentItemOut, OpenDefectOut, PersonListItem
from ..services.classifier import category_label
from .inspection_cycles import cycle_counts_query, require_person, validated_month


def list_people_use_case(*, db: Session) -> list[PersonListItem]:
    rows = (
        db.query(Person, func.count(EquipmentItem.barcode))
        .outerjoin(EquipmentItem, EquipmentItem.owner_id == Person.id)
        .group_by(Person.id)
        .order_by(Person.name.asc(), Person.employee_ref.asc())
        .all()
    )
    return [
        PersonListItem(
            id=person.id,
            name=person.name,
            employee_ref=person.employee_ref,
            equipment_count=int(count or 0),
        )
        for person, count in rows
    ]


def list_person_equipment_use_case(*, db: Session, person_id: UUID) -> list[EquipmentItemOut]:
    person = require_person(db, person_id)
    items = (
        db.query(EquipmentItem)
        .filter(EquipmentItem.owner_id == person.id)
        .order_by(EquipmentItem.category.asc(), EquipmentItem.description.asc())
        .all()
    )
    return [
        EquipmentItemOut(
            barcode=item.barcode,
            category=item.category,
            category_label=category_label(item.category),
            description=item.description or "",
            size=item.size,
            owner_id=item.owner_id,
        )
        for item in items
    ]


def list_month_history_use_case(*, db: Session, month: str) -> list[CycleHistoryItem]:
    month = validated_month(month)
    rows = (
        cycle_counts_query(db)
        .add_columns(Person.name)
        .join(Person, Person.id == InspectionCycle.person_id)
        .filter(InspectionCycle.month == month)
        .group_by(Person.name)
        .order_by(Person.name.asc())
        .all()
    )
    return [
        CycleHistoryItem(
            id=cycle.id,
            person_id=cycle.person_id,
            month=cycle.month,
            completed_at=cycle.completed_at,
            person_name=person_name,
            items_checked=int(items_checked or 0),
            defects=int(defects or 0),
        )
        for cycle, items_checked, defects, person_name in rows
    ]


def list_open_defects_use_case(*, db: Session) -> list[OpenDefectOut]:
    """Every defect ever recorded; nothing in this system closes a defect."""
    rows = (
        db.query(ItemResult, InspectionCycle, Person, EquipmentItem)
        .join(InspectionCycle, InspectionCycle.id == ItemResult.cycle_id)
        .join(Person, Person.id == InspectionCycle.person_id)
        .join(EquipmentItem, EquipmentItem.barcode == ItemResult.barcode)
        .filter(ItemResult.condition == "defect")
        .order_by(InspectionCycle.month.desc(), Person.name.asc(), ItemResult.barcode.asc())
        .all()
    )
    return [
        OpenDefectOut(
            result_id=result.id,
            barcode=result.barcode,
            category=item.category,
            description=item.description,
            notes=result.notes,
            photo_ref=result.photo_ref,
            checked_at=result.checked_at,
            month=cycle.month,
            person_id=person.id,
            person_name=person.name,
        )
        for result, cycle, person, item in rows
    ]
