"""RFC 7807 Problem Details helpers."""
from __future__ import annotations

from http import HTTPStatus

from fastapi import Request
from fastapi.responses import JSONResponse

from .domain_errors import DomainError, ValidationError

PROBLEM_TYPE_BASE = "https://ppe-logs.local/problems"

PROBLEM_TITLES: dict[str, str] = {
    "PERSON_NOT_FOUND": "Person not found",
    "DUPLICATE_CYCLE": "Inspection already submitted for this month",
    "UNKNOWN_OR_UNOWNED_ITEM": "Equipment not issued to this person",
    "ALREADY_SIGNED_OFF": "Quarter already signed off",
    "NOTIFICATION_DELIVERY_FAILED": "Defect report could not be delivered",
    "ITEM_RESULTS_INCOMPLETE": "Inspection does not cover all issued equipment",
    "PHOTO_TOO_LARGE": "Defect photo too large",
}


def problem_title(exc: DomainError) -> str:
    """Title for a domain error: per code, then per kind, then the HTTP phrase."""
    title = PROBLEM_TITLES.get(exc.code)
    if title is not None:
        return title
    if isinstance(exc, ValidationError):
        return "Invalid inspection request"
    try:
        return HTTPStatus(exc.http_status).phrase
    except ValueError:
        return "Domain Error"


def build_problem_details_response(exc: DomainError) -> JSONResponse:
    """Render DomainError as RFC 7807 payload with stable domain code."""
    payload: dict[str, object] = {
        "type": f"{PROBLEM_TYPE_BASE}/{exc.code.lower()}",
        "title": problem_title(exc),
        "status": exc.http_status,
        "detail": exc.message,
        "code": exc.code,
    }
    if exc.details is not None:
        payload["details"] = exc.details

    return JSONResponse(
        status_code=exc.http_status,
        content=payload,
        media_type="application/problem+json",
    )


async def domain_error_handler(_: Request, exc: DomainError) -> JSONResponse:
    return build_problem_details_response(exc)
