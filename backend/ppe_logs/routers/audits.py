"""Quarterly audit endpoints."""
from zoneinfo import ZoneInfo

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..config import settings
from ..database import get_db
from ..schemas import QuarterlyCompleteness, SignoffCreate, SignoffOut
from ..services.periods import now_utc, recent_quarters
from ..use_cases.audit_signoffs import get_signoff_use_case, list_signoffs_use_case, sign_off_use_case
from ..use_cases.completeness import quarterly_completeness_use_case

router = APIRouter(prefix="/audits", tags=["audits"])


@router.get("", response_model=list[SignoffOut])
def list_signoffs(db: Session = Depends(get_db)):
    """All recorded sign-offs, newest first."""
    return list_signoffs_use_case(db=db)


@router.get("/quarters", response_model=list[str])
def list_recent_quarters(count: int = 8):
    """Selectable quarter labels, current quarter first."""
    today = now_utc().astimezone(ZoneInfo(settings.TIMEZONE)).date()
    return recent_quarters(today, count=max(1, min(count, 40)))


@router.get("/quarterly/{quarter}", response_model=QuarterlyCompleteness)
def get_quarterly_completeness(quarter: str, db: Session = Depends(get_db)):
    return quarterly_completeness_use_case(db=db, quarter=quarter)


@router.get("/{quarter}", response_model=SignoffOut)
def get_signoff(quarter: str, db: Session = Depends(get_db)):
    signoff = get_signoff_use_case(db=db, quarter=quarter)
    if signoff is None:
        raise HTTPException(status_code=404, detail="No sign-off recorded for this quarter")
    return signoff


@router.post("", response_model=SignoffOut, status_code=status.HTTP_201_CREATED)
def create_signoff(data: SignoffCreate, db: Session = Depends(get_db)):
    """Record the quarter's sign-off; a quarter can only be signed once."""
    return sign_off_use_case(
        db=db,
        quarter=data.quarter,
        signed_by=data.signed_by,
        notes=data.notes,
    )
