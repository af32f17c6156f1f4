"""Defect report rendering and delivery over e-mail and Telegram."""
from __future__ import annotations

import html
import logging
import smtplib
from datetime import datetime
from email.message import EmailMessage
from zoneinfo import ZoneInfo

import requests

from ..config import settings
from ..domain_errors import NotificationDeliveryFailure
from ..schemas import DefectNotification

logger = logging.getLogger(__name__)


def format_local_time(moment: datetime, tz_name: str | None = None) -> str:
    return moment.astimezone(ZoneInfo(tz_name or settings.TIMEZONE)).strftime("%d/%m/%Y, %H:%M:%S")


def render_defect_report(
    payload: DefectNotification,
    *,
    tz_name: str | None = None,
) -> tuple[str, str, str]:
    """Return (subject, html, text) for a defect notification."""
    subject = f"PPE Defect Report - {payload.person_name or 'Unknown'}"
    reported = format_local_time(payload.reported_at, tz_name)

    items_html = []
    items_text = []
    for defect in payload.defects:
        notes = defect.notes or "None"
        entry = (
            f"<li><strong>{html.escape(defect.description)}</strong> "
            f"({html.escape(defect.barcode)})<br>Notes: {html.escape(notes)}"
        )
        line = f"- {defect.description} ({defect.barcode})\n  Notes: {notes}"
        if defect.photo_ref:
            entry += f'<br><a href="{html.escape(defect.photo_ref, quote=True)}">View Photo</a>'
            line += f"\n  Photo: {defect.photo_ref}"
        items_html.append(entry + "</li>")
        items_text.append(line)

    body_html = (
        "<h2>PPE Defect Reported</h2>"
        f"<p><strong>Person:</strong> {html.escape(payload.person_name)}</p>"
        f"<p><strong>Date:</strong> {reported}</p>"
        f"<p><strong>Month:</strong> {payload.month}</p>"
        "<h3>Defects Found:</h3>"
        f"<ul>{''.join(items_html)}</ul>"
    )
    body_text = "\n".join(
        [
            "PPE Defect Reported",
            f"Person: {payload.person_name}",
            f"Date: {reported}",
            f"Month: {payload.month}",
            "",
            "Defects Found:",
            *items_text,
        ]
    ) + "\n"
    return subject, body_html, body_text


def email_configured() -> bool:
    return bool(settings.SMTP_HOST and settings.MAIL_FROM)


def telegram_configured() -> bool:
    return bool(settings.TELEGRAM_BOT_TOKEN and settings.TELEGRAM_CHAT_ID)


def send_email(subject: str, text: str, *, html_body: str | None = None, to: str | None = None) -> None:
    msg = EmailMessage()
    msg["Subject"] = subject
    msg["From"] = settings.MAIL_FROM
    msg["To"] = to or settings.DEFECT_REPORT_TO
    msg.set_content(text)
    if html_body:
        msg.add_alternative(html_body, subtype="html")

    with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=30) as s:
        if settings.SMTP_TLS:
            s.starttls()
        if settings.SMTP_USERNAME and settings.SMTP_PASSWORD:
            s.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
        s.send_message(msg)


def send_telegram_message(chat_id: str, message: str) -> tuple[bool, str | None]:
    """Send message via Telegram Bot API."""
    if not settings.TELEGRAM_BOT_TOKEN:
        return False, "TELEGRAM_BOT_TOKEN not configured"

    url = f"https://api.telegram.org/bot{settings.TELEGRAM_BOT_TOKEN}/sendMessage"

    try:
        response = requests.post(
            url,
            json={"chat_id": chat_id, "text": message, "parse_mode": "HTML"},
            timeout=10,
        )
    except requests.RequestException as e:
        return False, f"EXCEPTION: {e}"

    if response.status_code == 200:
        return True, None
    if response.status_code == 429:
        try:
            retry_after = response.json().get("parameters", {}).get("retry_after", 60)
        except (ValueError, AttributeError):
            retry_after = 60
        return False, f"RATE_LIMIT:{retry_after}"
    if response.status_code == 403:
        return False, "BOT_BLOCKED"
    return False, f"HTTP_{response.status_code}: {response.text[:200]}"


def deliver_message(subject: str, text: str, *, html_body: str | None = None) -> list[str]:
    """Send over every configured channel and return the channels used.

    Raises NotificationDeliveryFailure on the first channel that fails. With
    nothing configured the message is only logged.
    """
    channels: list[str] = []

    if email_configured():
        try:
            send_email(subject, text, html_body=html_body)
        except (smtplib.SMTPException, OSError) as e:
            raise NotificationDeliveryFailure(f"Email delivery failed: {e}", channel="email") from e
        channels.append("email")

    if telegram_configured():
        ok, error = send_telegram_message(
            settings.TELEGRAM_CHAT_ID,
            f"<b>{html.escape(subject)}</b>\n\n{html.escape(text)}",
        )
        if not ok:
            raise NotificationDeliveryFailure(f"Telegram delivery failed: {error}", channel="telegram")
        channels.append("telegram")

    if not channels:
        logger.info("Email not configured. Would send: %s", subject)
    return channels


def deliver_defect_report(payload: DefectNotification) -> list[str]:
    subject, body_html, body_text = render_defect_report(payload)
    channels = deliver_message(subject, body_text, html_body=body_html)
    logger.info(
        "notification.defect_report person=%s month=%s defects=%s channels=%s",
        payload.person_id,
        payload.month,
        len(payload.defects),
        ",".join(channels) or "log",
    )
    return channels
