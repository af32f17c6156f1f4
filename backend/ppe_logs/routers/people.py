"""Roster endpoints: people, their equipment and their inspection cycles."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from uuid import UUID

from ..database import get_db
from ..schemas import CycleDetail, CycleHistoryItem, EquipmentItemOut, PersonListItem
from ..use_cases.inspection_cycles import get_cycle_use_case, list_person_cycles_use_case, require_person
from ..use_cases.roster import list_people_use_case, list_person_equipment_use_case

router = APIRouter(prefix="/people", tags=["people"])


@router.get("", response_model=list[PersonListItem])
def list_people(db: Session = Depends(get_db)):
    """List everyone on the roster with their equipment count."""
    return list_people_use_case(db=db)


@router.get("/{person_id}/equipment", response_model=list[EquipmentItemOut])
def list_person_equipment(person_id: UUID, db: Session = Depends(get_db)):
    return list_person_equipment_use_case(db=db, person_id=person_id)


@router.get("/{person_id}/cycles", response_model=list[CycleHistoryItem])
def list_person_cycles(person_id: UUID, db: Session = Depends(get_db)):
    """Inspection history for one person, newest month first."""
    return list_person_cycles_use_case(db=db, person_id=person_id)


@router.get("/{person_id}/cycles/{month}")
def get_person_cycle(person_id: UUID, month: str, db: Session = Depends(get_db)):
    """Cycle for one month, or ``{"cycle": null}`` when none was submitted."""
    require_person(db, person_id)
    detail: CycleDetail | None = get_cycle_use_case(db=db, person_id=person_id, month=month)
    if detail is None:
        return {"cycle": None, "items": []}
    return detail.model_dump(mode="json")
