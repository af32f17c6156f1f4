"""Quarterly audit sign-off: recorded once per quarter, never replaced."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..domain_errors import AlreadySignedOff, ValidationError
from ..models import AuditSignoff
from ..schemas import SignoffOut
from ..services.periods import now_utc
from .completeness import validated_quarter

logger = logging.getLogger(__name__)


def find_signoff(db: Session, quarter: str) -> AuditSignoff | None:
    return db.query(AuditSignoff).filter(AuditSignoff.quarter == quarter).first()


def sign_off_use_case(
    *,
    db: Session,
    quarter: str,
    signed_by: str,
    notes: str | None = None,
    clock: Callable[[], datetime] = now_utc,
) -> SignoffOut:
    quarter = validated_quarter(quarter)
    signer = (signed_by or "").strip()
    if not signer:
        raise ValidationError("Signer name is required", code="SIGNER_REQUIRED")

    if find_signoff(db, quarter) is not None:
        raise AlreadySignedOff(quarter)

    signoff = AuditSignoff(
        quarter=quarter,
        signed_by=signer,
        signed_at=clock(),
        notes=(notes or "").strip() or None,
    )
    db.add(signoff)
    try:
        db.commit()
    except IntegrityError as error:
        db.rollback()
        raise AlreadySignedOff(quarter) from error
    db.refresh(signoff)

    logger.info("audit.signed quarter=%s signed_by=%s", quarter, signer)
    return SignoffOut.model_validate(signoff)


def get_signoff_use_case(*, db: Session, quarter: str) -> SignoffOut | None:
    signoff = find_signoff(db, validated_quarter(quarter))
    return SignoffOut.model_validate(signoff) if signoff is not None else None


def list_signoffs_use_case(*, db: Session) -> list[SignoffOut]:
    return [
        SignoffOut.model_validate(signoff)
        for signoff in db.query(AuditSignoff).order_by(AuditSignoff.signed_at.desc()).all()
    ]
