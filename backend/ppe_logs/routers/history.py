"""Inspection history and defect log."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_db
from ..schemas import CycleHistoryItem, OpenDefectOut
from ..use_cases.roster import list_month_history_use_case, list_open_defects_use_case

router = APIRouter(tags=["history"])


@router.get("/history/{month}", response_model=list[CycleHistoryItem])
def get_month_history(month: str, db: Session = Depends(get_db)):
    """Every cycle submitted for the month."""
    return list_month_history_use_case(db=db, month=month)


@router.get("/defects", response_model=list[OpenDefectOut])
def list_defects(db: Session = Depends(get_db)):
    return list_open_defects_use_case(db=db)
