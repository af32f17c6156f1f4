"""
Celery worker for defect report delivery and the periodic completeness digest.
"""
from celery import Celery
import logging
from .config import settings
from .database import SessionLocal
from .domain_errors import NotificationDeliveryFailure
from .schemas import DefectNotification
from .services import notifications
from .services.periods import current_month
from .use_cases.completeness import build_completeness_digest, monthly_summary_use_case

logger = logging.getLogger(__name__)

MAX_DELIVERY_RETRIES = 3

celery_app = Celery(
    "ppe_logs",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND
)

celery_app.conf.update(
    task_serializer='json',
    accept_content=['json'],
    result_serializer='json',
    timezone='UTC',
    enable_utc=True,
)


@celery_app.task(name="deliver_defect_report", bind=True, max_retries=MAX_DELIVERY_RETRIES)
def deliver_defect_report(self, payload: dict):
    """Deliver one defect report, retrying with exponential backoff (1min, 2min, 4min)."""
    notification = DefectNotification.model_validate(payload)
    try:
        channels = notifications.deliver_defect_report(notification)
    except NotificationDeliveryFailure as exc:
        backoff_seconds = 2 ** self.request.retries * 60
        logger.warning(
            "Defect report delivery failed (retry %s/%s in %ss): %s",
            self.request.retries + 1,
            MAX_DELIVERY_RETRIES,
            backoff_seconds,
            exc.message,
        )
        raise self.retry(exc=exc, countdown=backoff_seconds)
    return {"channels": channels}


@celery_app.task(name="send_completeness_digest")
def send_completeness_digest(month: str | None = None):
    """Send the monthly completeness summary (current month by default)."""
    db = SessionLocal()
    try:
        summary = monthly_summary_use_case(db=db, month=month or current_month(settings.TIMEZONE))
    finally:
        db.close()

    subject, body = build_completeness_digest(summary)
    channels = notifications.deliver_message(subject, body)
    logger.info(
        "notification.digest month=%s complete=%s/%s channels=%s",
        summary.month,
        summary.complete,
        summary.total,
        ",".join(channels) or "log",
    )
    return {"month": summary.month, "complete": summary.complete, "total": summary.total}


def dispatch_defect_report(payload: DefectNotification) -> None:
    """Hand a defect report to the worker, or deliver it inline.

    Never raises: the inspection is already committed when this runs.
    """
    try:
        if settings.NOTIFICATIONS_ASYNC:
            deliver_defect_report.delay(payload.model_dump(mode="json"))
        else:
            notifications.deliver_defect_report(payload)
    except Exception:
        logger.exception(
            "Failed to dispatch defect report for person=%s month=%s",
            payload.person_id,
            payload.month,
        )


# Schedule periodic digest
celery_app.conf.beat_schedule = {
    'send-completeness-digest': {
        'task': 'send_completeness_digest',
        'schedule': settings.DIGEST_SCHEDULE_SECONDS,
    },
}
