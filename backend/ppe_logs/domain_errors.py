"""Domain-level exception primitives with stable machine-readable codes."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(eq=False)
class DomainError(Exception):
    """Use-case level error with stable code and HTTP mapping."""

    code: str
    http_status: int
    message: str
    details: dict[str, Any] | None = None

    def __str__(self) -> str:
        return self.message


class ValidationError(DomainError):
    """Malformed input rejected before any state change."""

    def __init__(
        self,
        message: str,
        *,
        code: str = "VALIDATION_ERROR",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(code=code, http_status=400, message=message, details=details)


class PersonNotFound(DomainError):
    def __init__(self, person_id: object) -> None:
        super().__init__(
            code="PERSON_NOT_FOUND",
            http_status=404,
            message="Person not found",
            details={"person_id": str(person_id)},
        )


class DuplicateCycle(DomainError):
    """An inspection cycle already exists for the person and month."""

    def __init__(self, *, person_id: object, month: str) -> None:
        super().__init__(
            code="DUPLICATE_CYCLE",
            http_status=409,
            message="Already submitted for this month",
            details={"person_id": str(person_id), "month": month},
        )


class UnknownOrUnownedItem(DomainError):
    """Submission references barcodes the person does not currently own."""

    def __init__(self, *, person_id: object, barcodes: list[str]) -> None:
        super().__init__(
            code="UNKNOWN_OR_UNOWNED_ITEM",
            http_status=422,
            message="Submission references equipment not owned by this person",
            details={"person_id": str(person_id), "barcodes": barcodes},
        )


class AlreadySignedOff(DomainError):
    def __init__(self, quarter: str) -> None:
        super().__init__(
            code="ALREADY_SIGNED_OFF",
            http_status=409,
            message=f"Quarter {quarter} has already been signed off",
            details={"quarter": quarter},
        )


class NotificationDeliveryFailure(DomainError):
    """Raised by notification channels; logged by dispatchers, never shown to submitters."""

    def __init__(self, message: str, *, channel: str) -> None:
        super().__init__(
            code="NOTIFICATION_DELIVERY_FAILED",
            http_status=502,
            message=message,
            details={"channel": channel},
        )
