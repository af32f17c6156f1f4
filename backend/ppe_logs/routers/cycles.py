"""Inspection submission endpoint (multipart: fields plus optional defect photos)."""

from __future__ import annotations

import json
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, Form, Request, status
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile as StarletteUploadFile

from ..celery_app import dispatch_defect_report
from ..database import get_db
from ..domain_errors import ValidationError
from ..schemas import DefectNotification, ItemResultIn, SubmittedCycle
from ..services.photo_storage import remove_photo, store_photo
from ..use_cases.inspection_cycles import InspectionHooks, submit_cycle_use_case

router = APIRouter(prefix="/cycles", tags=["cycles"])

PHOTO_FIELD_PREFIX = "photo_"

_ITEMS_ADAPTER = TypeAdapter(list[ItemResultIn])


def _parse_items(raw: str) -> list[ItemResultIn]:
    try:
        return _ITEMS_ADAPTER.validate_python(json.loads(raw))
    except json.JSONDecodeError as error:
        raise ValidationError("items must be a JSON array", code="ITEMS_INVALID") from error
    except PydanticValidationError as error:
        raise ValidationError(
            "items contain invalid entries",
            code="ITEMS_INVALID",
            details={"errors": error.errors(include_url=False, include_context=False)},
        ) from error


def _hooks(background_tasks: BackgroundTasks) -> InspectionHooks:
    """Defect reports are dispatched after the response has been sent."""

    def notify(payload: DefectNotification) -> None:
        background_tasks.add_task(dispatch_defect_report, payload)

    return InspectionHooks(notify=notify)


@router.post("", response_model=SubmittedCycle, status_code=status.HTTP_201_CREATED)
async def submit_cycle(
    request: Request,
    person_id: UUID = Form(...),
    month: str = Form(...),
    items: str = Form(...),
    db: Session = Depends(get_db),
    hooks: InspectionHooks = Depends(_hooks),
):
    """Submit a month's inspection. Photos are read from ``photo_<barcode>`` parts."""
    results = _parse_items(items)
    form = await request.form()

    stored: list[str] = []
    try:
        with_photos: list[ItemResultIn] = []
        for result in results:
            upload = form.get(f"{PHOTO_FIELD_PREFIX}{result.barcode}")
            if (
                result.condition == "defect"
                and isinstance(upload, StarletteUploadFile)
                and upload.filename
            ):
                photo_ref = await store_photo(upload)
                stored.append(photo_ref)
                result = result.model_copy(update={"photo_ref": photo_ref})
            elif result.condition == "defect":
                # photo_ref is only ever set from an upload.
                result = result.model_copy(update={"photo_ref": None})
            with_photos.append(result)

        # Blocking session work stays off the event loop.
        return await run_in_threadpool(
            submit_cycle_use_case,
            db=db,
            person_id=person_id,
            month=month,
            results=with_photos,
            hooks=hooks,
        )
    except Exception:
        for photo_ref in stored:
            remove_photo(photo_ref)
        raise
