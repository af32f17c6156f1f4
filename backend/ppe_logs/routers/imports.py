"""Equipment import endpoint over uploaded CSV exports."""
from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.orm import Session

from ..database import get_db
from ..domain_errors import ValidationError
from ..schemas import ImportSummary, RawRecord
from ..use_cases.equipment_import import import_records_use_case, parse_import_rows

router = APIRouter(prefix="/imports", tags=["imports"])


@router.post("", response_model=ImportSummary)
async def import_equipment(
    files: list[UploadFile] = File(...),
    db: Session = Depends(get_db),
):
    """Import one or more CSV exports in a single transaction."""
    records: list[RawRecord] = []
    for upload in files:
        if not (upload.filename or "").lower().endswith(".csv"):
            raise ValidationError(
                "Only .csv exports can be imported",
                code="IMPORT_INVALID_FILE",
                details={"filename": upload.filename},
            )
        raw = await upload.read()
        try:
            text = raw.decode("utf-8-sig")
        except UnicodeDecodeError as error:
            raise ValidationError(
                "Import file must be UTF-8 encoded",
                code="IMPORT_INVALID_FILE",
                details={"filename": upload.filename},
            ) from error
        records.extend(parse_import_rows(text.splitlines()))

    return import_records_use_case(db=db, rows=records)
