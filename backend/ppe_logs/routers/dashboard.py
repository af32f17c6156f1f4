"""Monthly completeness dashboard."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..config import settings
from ..database import get_db
from ..schemas import MonthlySummary
from ..services.periods import current_month
from ..use_cases.completeness import monthly_summary_use_case

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("", response_model=MonthlySummary)
def get_dashboard(month: str | None = None, db: Session = Depends(get_db)):
    """Completeness for ``month`` (defaults to the current local month)."""
    return monthly_summary_use_case(db=db, month=month or current_month(settings.TIMEZONE))


@router.get("/{month}", response_model=MonthlySummary)
def get_dashboard_for_month(month: str, db: Session = Depends(get_db)):
    return monthly_summary_use_case(db=db, month=month)
