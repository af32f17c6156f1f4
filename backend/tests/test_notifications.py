from __future__ import annotations

import logging
import smtplib
from datetime import datetime, timezone
from types import SimpleNamespace
from uuid import uuid4

import pytest

from ppe_logs import celery_app as worker
from ppe_logs.config import settings
from ppe_logs.domain_errors import NotificationDeliveryFailure
from ppe_logs.schemas import DefectItem, DefectNotification, ItemResultIn
from ppe_logs.services import notifications
from ppe_logs.use_cases.inspection_cycles import submit_cycle_use_case


def _payload(**overrides) -> DefectNotification:
    data = dict(
        person_id=uuid4(),
        person_name="Alex Carter",
        month="2026-07",
        reported_at=datetime(2026, 7, 1, 9, 30, tzinfo=timezone.utc),
        defects=[
            DefectItem(barcode="BC1", category="fire_tunic", description="FIRE COAT <GOLD PBI>", notes=None),
            DefectItem(
                barcode="BC2",
                category="boots",
                description="LEATHER BOOT",
                notes="Sole parting",
                photo_ref="/uploads/abc.jpg",
            ),
        ],
    )
    data.update(overrides)
    return DefectNotification(**data)


@pytest.fixture()
def no_channels(monkeypatch):
    monkeypatch.setattr(settings, "SMTP_HOST", None)
    monkeypatch.setattr(settings, "MAIL_FROM", None)
    monkeypatch.setattr(settings, "TELEGRAM_BOT_TOKEN", None)
    monkeypatch.setattr(settings, "TELEGRAM_CHAT_ID", None)


class _SMTPStub:
    instances: list["_SMTPStub"] = []

    def __init__(self, host, port, timeout=None):
        self.host, self.port = host, port
        self.calls: list[str] = []
        self.sent = []
        _SMTPStub.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *_exc):
        return False

    def starttls(self):
        self.calls.append("starttls")

    def login(self, username, password):
        self.calls.append(f"login:{username}")

    def send_message(self, msg):
        self.sent.append(msg)


def test_render_defect_report_lists_each_defect() -> None:
    subject, body_html, body_text = notifications.render_defect_report(_payload(), tz_name="Europe/London")

    assert subject == "PPE Defect Report - Alex Carter"
    assert "01/07/2026, 10:30:00" in body_html
    assert "<strong>FIRE COAT &lt;GOLD PBI&gt;</strong> (BC1)<br>Notes: None" in body_html
    assert '<a href="/uploads/abc.jpg">View Photo</a>' in body_html
    assert body_html.count("View Photo") == 1
    assert "- LEATHER BOOT (BC2)\n  Notes: Sole parting\n  Photo: /uploads/abc.jpg" in body_text


def test_unconfigured_delivery_only_logs(no_channels, caplog) -> None:
    with caplog.at_level(logging.INFO, logger="ppe_logs.services.notifications"):
        channels = notifications.deliver_message("PPE Defect Report - Alex Carter", "body")

    assert channels == []
    assert "Would send: PPE Defect Report - Alex Carter" in caplog.text


def test_email_delivery_uses_tls_and_login(no_channels, monkeypatch) -> None:
    _SMTPStub.instances = []
    monkeypatch.setattr(notifications.smtplib, "SMTP", _SMTPStub)
    monkeypatch.setattr(settings, "SMTP_HOST", "smtp.example.org")
    monkeypatch.setattr(settings, "MAIL_FROM", "ppe@example.org")
    monkeypatch.setattr(settings, "SMTP_USERNAME", "ppe")
    monkeypatch.setattr(settings, "SMTP_PASSWORD", "secret")
    monkeypatch.setattr(settings, "SMTP_TLS", True)
    monkeypatch.setattr(settings, "DEFECT_REPORT_TO", "officer@example.org")

    channels = notifications.deliver_defect_report(_payload())

    assert channels == ["email"]
    (smtp,) = _SMTPStub.instances
    assert smtp.calls == ["starttls", "login:ppe"]
    msg = smtp.sent[0]
    assert msg["Subject"] == "PPE Defect Report - Alex Carter"
    assert msg["To"] == "officer@example.org"
    assert msg.is_multipart()


def test_email_failure_raises_delivery_failure(no_channels, monkeypatch) -> None:
    class _RefusingSMTP(_SMTPStub):
        def send_message(self, msg):
            raise smtplib.SMTPRecipientsRefused({})

    monkeypatch.setattr(notifications.smtplib, "SMTP", _RefusingSMTP)
    monkeypatch.setattr(settings, "SMTP_HOST", "smtp.example.org")
    monkeypatch.setattr(settings, "MAIL_FROM", "ppe@example.org")

    with pytest.raises(NotificationDeliveryFailure) as exc:
        notifications.deliver_message("subject", "body")

    assert exc.value.http_status == 502
    assert exc.value.details == {"channel": "email"}


def test_telegram_delivery(no_channels, monkeypatch) -> None:
    posted = []

    def _post(url, json, timeout):
        posted.append((url, json))
        return SimpleNamespace(status_code=200, text="ok")

    monkeypatch.setattr(notifications.requests, "post", _post)
    monkeypatch.setattr(settings, "TELEGRAM_BOT_TOKEN", "123:abc")
    monkeypatch.setattr(settings, "TELEGRAM_CHAT_ID", "-1001")

    channels = notifications.deliver_message("PPE Defect Report - A & B", "body")

    assert channels == ["telegram"]
    url, body = posted[0]
    assert url == "https://api.telegram.org/bot123:abc/sendMessage"
    assert body["chat_id"] == "-1001"
    assert body["text"].startswith("<b>PPE Defect Report - A &amp; B</b>")


def test_blocked_telegram_bot_raises_delivery_failure(no_channels, monkeypatch) -> None:
    monkeypatch.setattr(
        notifications.requests,
        "post",
        lambda *_args, **_kwargs: SimpleNamespace(status_code=403, text="Forbidden"),
    )
    monkeypatch.setattr(settings, "TELEGRAM_BOT_TOKEN", "123:abc")
    monkeypatch.setattr(settings, "TELEGRAM_CHAT_ID", "-1001")

    with pytest.raises(NotificationDeliveryFailure, match="BOT_BLOCKED"):
        notifications.deliver_message("subject", "body")


def test_rate_limited_telegram_with_non_json_body_falls_back_to_default_wait(no_channels, monkeypatch) -> None:
    def _json():
        raise ValueError("Expecting value: line 1 column 1 (char 0)")

    monkeypatch.setattr(
        notifications.requests,
        "post",
        lambda *_args, **_kwargs: SimpleNamespace(status_code=429, text="<html>Too Many Requests</html>", json=_json),
    )
    monkeypatch.setattr(settings, "TELEGRAM_BOT_TOKEN", "123:abc")
    monkeypatch.setattr(settings, "TELEGRAM_CHAT_ID", "-1001")

    assert notifications.send_telegram_message("-1001", "body") == (False, "RATE_LIMIT:60")
    with pytest.raises(NotificationDeliveryFailure, match="RATE_LIMIT:60") as exc:
        notifications.deliver_message("subject", "body")
    assert exc.value.details == {"channel": "telegram"}


def test_rate_limited_telegram_reports_retry_after(no_channels, monkeypatch) -> None:
    monkeypatch.setattr(
        notifications.requests,
        "post",
        lambda *_args, **_kwargs: SimpleNamespace(
            status_code=429,
            text="",
            json=lambda: {"ok": False, "parameters": {"retry_after": 17}},
        ),
    )
    monkeypatch.setattr(settings, "TELEGRAM_BOT_TOKEN", "123:abc")

    assert notifications.send_telegram_message("-1001", "body") == (False, "RATE_LIMIT:17")


def test_inline_dispatch_swallows_delivery_failure(monkeypatch, caplog) -> None:
    monkeypatch.setattr(settings, "NOTIFICATIONS_ASYNC", False)

    def _fail(_payload):
        raise NotificationDeliveryFailure("smtp down", channel="email")

    monkeypatch.setattr(worker.notifications, "deliver_defect_report", _fail)

    with caplog.at_level(logging.ERROR, logger="ppe_logs.celery_app"):
        worker.dispatch_defect_report(_payload())

    assert "Failed to dispatch defect report" in caplog.text


def test_async_dispatch_enqueues_and_survives_broker_outage(monkeypatch) -> None:
    monkeypatch.setattr(settings, "NOTIFICATIONS_ASYNC", True)
    queued = []
    monkeypatch.setattr(worker, "deliver_defect_report", SimpleNamespace(delay=queued.append))

    payload = _payload()
    worker.dispatch_defect_report(payload)

    assert queued[0]["person_name"] == "Alex Carter"
    assert queued[0]["defects"][1]["photo_ref"] == "/uploads/abc.jpg"

    def _broker_down(_payload):
        raise ConnectionError("redis unavailable")

    monkeypatch.setattr(worker, "deliver_defect_report", SimpleNamespace(delay=_broker_down))
    worker.dispatch_defect_report(payload)


def test_delivery_task_runs_and_surfaces_failures(no_channels, monkeypatch) -> None:
    payload = _payload().model_dump(mode="json")

    assert worker.deliver_defect_report(payload) == {"channels": []}

    def _fail(_notification):
        raise NotificationDeliveryFailure("smtp down", channel="email")

    monkeypatch.setattr(worker.notifications, "deliver_defect_report", _fail)
    with pytest.raises(NotificationDeliveryFailure):
        worker.deliver_defect_report(payload)


def test_completeness_digest_task(no_channels, monkeypatch, session_factory, make_person, db_session) -> None:
    alex = make_person("Alex Carter", "1001", [("BC1", "boots", "LEATHER BOOT")])
    make_person("Sam Patel", "1002", [])
    submit_cycle_use_case(
        db=db_session,
        person_id=alex.id,
        month="2026-03",
        results=[ItemResultIn(barcode="BC1", condition="good")],
    )
    sent = []
    monkeypatch.setattr(worker, "SessionLocal", session_factory)
    monkeypatch.setattr(
        worker.notifications,
        "deliver_message",
        lambda subject, body, **_kwargs: sent.append((subject, body)) or [],
    )

    result = worker.send_completeness_digest(month="2026-03")

    assert result == {"month": "2026-03", "complete": 1, "total": 2}
    subject, body = sent[0]
    assert subject == "PPE Inspection Status - 2026-03"
    assert "Sam Patel" in body
