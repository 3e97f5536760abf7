"""Email notifications for submitted inspections."""

from __future__ import annotations

import html
import logging
import os
import re
import smtplib
import ssl
from dataclasses import dataclass
from datetime import datetime, timezone
from email.message import EmailMessage
from email.utils import formataddr
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol, Sequence, Tuple

from app.schemas import EmailConfig, EmailRequest, EmailResult, NotificationType
from services.spreadsheets import (
    XLSX_MIME_TYPE,
    carbon_brush_workbook,
    measurement_group,
    thermography_workbook,
    winding_resistance_workbook,
)
from settings import Settings

logger = logging.getLogger(__name__)

SMTP_HOST = "smtp.gmail.com"
SMTP_SSL_PORT = 465
SENDER_NAME = "Equipment Maintenance System"
FOOTER = "This email was automatically generated by the Equipment Maintenance System."

RECIPIENT_ENV_VARS: Dict[str, str] = {
    "winding-resistance": "WINDING_RESISTANCE_RECIPIENTS",
    "carbon-brush": "CARBON_BRUSH_RECIPIENTS",
    "thermography": "THERMOGRAPHY_RECIPIENTS",
    "motor": "MOTOR_INSPECTION_RECIPIENTS",
    "transformer": "TRANSFORMER_INSPECTION_RECIPIENTS",
    "esp": "ESP_INSPECTION_RECIPIENTS",
    "emergency": "URGENT_NOTIFICATION_RECIPIENTS",
    "general": "MAINTENANCE_EMAIL_RECIPIENTS",
}

_EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class NotificationError(RuntimeError):
    """A notification could not be composed or delivered."""


class EmailNotConfigured(NotificationError):
    def __init__(self, missing: Sequence[str]) -> None:
        super().__init__("Email not configured properly")
        self.missing = list(missing)


def resolve_recipients(
    kind: str,
    explicit: Optional[Sequence[str]] = None,
    defaults: Sequence[str] = (),
    environ: Optional[Mapping[str, str]] = None,
) -> List[str]:
    """Pick recipients: explicit list, then the per-kind env var, then defaults."""
    if explicit:
        return list(explicit)
    env = os.environ if environ is None else environ
    raw = env.get(RECIPIENT_ENV_VARS.get(kind, RECIPIENT_ENV_VARS["general"]))
    if raw:
        return [part.strip() for part in raw.split(",")]
    return list(defaults)


def validate_email_list(emails: Sequence[str]) -> Tuple[List[str], List[str]]:
    valid: List[str] = []
    invalid: List[str] = []
    for email in emails:
        candidate = email.strip()
        (valid if _EMAIL_PATTERN.match(candidate) else invalid).append(candidate)
    return valid, invalid


def email_config(settings: Settings) -> EmailConfig:
    missing = [
        name
        for name, value in (("GMAIL_USER", settings.mail_user), ("GMAIL_APP_PASSWORD", settings.mail_password))
        if not value
    ]
    return EmailConfig(
        configured=not missing,
        missing=missing,
        available_types=[kind.value for kind in NotificationType],
    )


@dataclass(frozen=True, slots=True)
class Attachment:
    filename: str
    content: bytes
    mime_type: str = XLSX_MIME_TYPE


class MailTransport(Protocol):
    def send(self, message: EmailMessage) -> None:
        ...


class SmtpTransport:
    """Delivers messages over SMTP with implicit TLS."""

    def __init__(
        self,
        username: str,
        password: str,
        host: str = SMTP_HOST,
        port: int = SMTP_SSL_PORT,
        timeout: float = 30.0,
    ) -> None:
        self.username = username
        self.password = password
        self.host = host
        self.port = port
        self.timeout = timeout

    def send(self, message: EmailMessage) -> None:
        context = ssl.create_default_context()
        try:
            with smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout, context=context) as server:
                server.login(self.username, self.password)
                server.send_message(message)
        except (smtplib.SMTPException, OSError) as exc:
            raise NotificationError(f"SMTP delivery failed: {exc}") from exc


def _text_and_html(
    title: str,
    sections: Sequence[Tuple[str, Sequence[Tuple[str, Any]]]],
    remarks: Any,
) -> Tuple[str, str]:
    text_lines = [title, ""]
    html_parts = [f'<div style="font-family: Arial, sans-serif;"><h2>{html.escape(title)}</h2>']
    for heading, rows in sections:
        text_lines.append(f"{heading}:")
        html_parts.append(f"<h3>{html.escape(heading)}</h3><ul>")
        for label, value in rows:
            shown = "N/A" if value in (None, "") else value
            text_lines.append(f"- {label}: {shown}")
            html_parts.append(f"<li><strong>{html.escape(label)}:</strong> {html.escape(str(shown))}</li>")
        text_lines.append("")
        html_parts.append("</ul>")
    if remarks:
        text_lines.extend([f"Remarks: {remarks}", ""])
        html_parts.append(f"<h3>Remarks</h3><p>{html.escape(str(remarks))}</p>")
    text_lines.append(FOOTER)
    html_parts.append(f'<p style="color: #666;">{html.escape(FOOTER)}</p></div>')
    return "\n".join(text_lines), "".join(html_parts)


def _report_name(kind: str, identifier: Any) -> str:
    today = datetime.now(timezone.utc).date().isoformat()
    return f"{kind}-Report-{identifier or 'Unknown'}-{today}.xlsx"


class EmailNotifier:
    """Builds inspection emails and hands them to a transport."""

    def __init__(
        self,
        settings: Settings,
        transport: Optional[MailTransport] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.settings = settings
        self._transport = transport
        self._environ = environ

    def config(self) -> EmailConfig:
        return email_config(self.settings)

    def send(self, request: EmailRequest) -> EmailResult:
        handlers: Dict[str, Callable[[EmailRequest], EmailResult]] = {
            NotificationType.winding_resistance.value: lambda r: self.notify_winding_resistance(r.data, r.recipients),
            NotificationType.carbon_brush.value: lambda r: self.notify_carbon_brush(r.data, r.recipients),
            NotificationType.thermography.value: lambda r: self.notify_thermography(r.data, r.recipients),
            NotificationType.basic.value: self.send_basic,
        }
        handler = handlers.get(request.type)
        if handler is None:
            raise ValueError("Invalid email type specified")
        return handler(request)

    def notify_winding_resistance(
        self, data: Mapping[str, Any], recipients: Optional[Sequence[str]] = None
    ) -> EmailResult:
        winding = measurement_group(data, "winding_resistance")
        ir = measurement_group(data, "ir_values")
        dar = measurement_group(data, "dar_values")
        text, body = _text_and_html(
            "New Winding Resistance Test Submitted",
            [
                (
                    "Equipment Information",
                    [
                        ("Motor No", data.get("motor_no")),
                        ("Equipment Name", data.get("equipment_name")),
                        ("Test Date", data.get("inspection_date")),
                        ("Done By", data.get("done_by")),
                    ],
                ),
                (
                    "Winding Resistance",
                    [
                        ("R-Y", f"{winding.get('ry', 0)} Ω"),
                        ("Y-B", f"{winding.get('yb', 0)} Ω"),
                        ("R-B", f"{winding.get('rb', 0)} Ω"),
                    ],
                ),
                (
                    "IR Values",
                    [
                        ("U-G 1min", f"{ir.get('ug_1min', 0)} GΩ"),
                        ("V-G 1min", f"{ir.get('vg_1min', 0)} GΩ"),
                        ("W-G 1min", f"{ir.get('wg_1min', 0)} GΩ"),
                        ("U-G 10min", f"{ir.get('ug_10min', 0)} GΩ"),
                        ("V-G 10min", f"{ir.get('vg_10min', 0)} GΩ"),
                        ("W-G 10min", f"{ir.get('wg_10min', 0)} GΩ"),
                    ],
                ),
                (
                    "DAR Values",
                    [
                        ("U-G 30sec", f"{dar.get('ug_30sec', 0)} GΩ"),
                        ("V-G 30sec", f"{dar.get('vg_30sec', 0)} GΩ"),
                        ("W-G 30sec", f"{dar.get('wg_30sec', 0)} GΩ"),
                        ("PI Result", data.get("polarization_index") or "Not calculated"),
                    ],
                ),
            ],
            data.get("remarks"),
        )
        attachment = self._attachment(
            winding_resistance_workbook, data, "Winding-Resistance", data.get("motor_no")
        )
        return self._deliver(
            "winding-resistance",
            recipients,
            f"New Winding Resistance Test - {data.get('motor_no')}",
            text,
            body,
            attachment,
        )

    def notify_carbon_brush(
        self, data: Mapping[str, Any], recipients: Optional[Sequence[str]] = None
    ) -> EmailResult:
        measurements = data.get("measurements") or {}
        readings = [(f"Brush {position}", f"{value} mm") for position, value in dict(measurements).items()]
        text, body = _text_and_html(
            "New Carbon Brush Inspection Submitted",
            [
                (
                    "Equipment Information",
                    [
                        ("TAG NO", data.get("tag_no")),
                        ("Equipment Name", data.get("equipment_name")),
                        ("Brush Type", data.get("brush_type")),
                        ("Inspection Date", data.get("inspection_date")),
                        ("Done By", data.get("done_by")),
                        ("Work Order", data.get("work_order_no") or "Not specified"),
                    ],
                ),
                (
                    "Inspection Results",
                    [
                        ("Slip Ring Thickness", f"{data.get('slip_ring_thickness') or 0} mm"),
                        ("Slip Ring IR", f"{data.get('slip_ring_ir') or 0} GΩ"),
                        *readings,
                    ],
                ),
            ],
            data.get("remarks"),
        )
        attachment = self._attachment(carbon_brush_workbook, data, "Carbon-Brush", data.get("tag_no"))
        return self._deliver(
            "carbon-brush",
            recipients,
            f"New Carbon Brush Inspection - {data.get('tag_no')}",
            text,
            body,
            attachment,
        )

    def notify_thermography(
        self, data: Mapping[str, Any], recipients: Optional[Sequence[str]] = None
    ) -> EmailResult:
        text, body = _text_and_html(
            "New Thermography Test Submitted",
            [
                (
                    "Equipment Information",
                    [
                        ("Transformer No", data.get("transformer_no")),
                        ("Equipment Type", data.get("equipment_type") or "ESP"),
                        ("Test Date", data.get("inspection_date")),
                        ("Done By", data.get("done_by")),
                    ],
                ),
                (
                    "Temperature Readings",
                    [
                        ("MCCB IC R Phase", f"{data.get('mccb_ic_r_phase') or 0} °C"),
                        ("MCCB IC B Phase", f"{data.get('mccb_ic_b_phase') or 0} °C"),
                        ("MCCB Body", f"{data.get('mccb_body_temp') or 0} °C"),
                        ("SCR Cooling Fins", f"{data.get('scr_cooling_fins_temp') or 0} °C"),
                    ],
                ),
            ],
            data.get("remarks"),
        )
        attachment = self._attachment(thermography_workbook, data, "Thermography", data.get("transformer_no"))
        return self._deliver(
            "thermography",
            recipients,
            f"New Thermography Test - {data.get('transformer_no')}",
            text,
            body,
            attachment,
        )

    def send_basic(self, request: EmailRequest) -> EmailResult:
        message = request.message or "No message provided"
        return self._deliver(
            "general",
            request.recipients,
            request.subject or "Equipment Notification",
            message,
            request.html or f"<p>{html.escape(message)}</p>",
            None,
        )

    def _attachment(
        self,
        build: Callable[[Mapping[str, Any]], bytes],
        data: Mapping[str, Any],
        kind: str,
        identifier: Any,
    ) -> Optional[Attachment]:
        try:
            content = build(data)
        except (TypeError, ValueError) as exc:
            logger.warning("Skipping spreadsheet attachment", extra={"record_type": kind, "reason": str(exc)})
            return None
        return Attachment(filename=_report_name(kind, identifier), content=content)

    def _transport_for_send(self) -> MailTransport:
        config = self.config()
        if not config.configured:
            raise EmailNotConfigured(config.missing)
        if self._transport is None:
            self._transport = SmtpTransport(self.settings.mail_user or "", self.settings.mail_password or "")
        return self._transport

    def _deliver(
        self,
        kind: str,
        recipients: Optional[Sequence[str]],
        subject: str,
        text: str,
        body: str,
        attachment: Optional[Attachment],
    ) -> EmailResult:
        transport = self._transport_for_send()
        candidates = resolve_recipients(kind, recipients, self.settings.default_recipients, self._environ)
        valid, invalid = validate_email_list(candidates)
        if invalid:
            logger.warning("Ignoring invalid recipients", extra={"record_type": kind, "reason": ", ".join(invalid)})
        if not valid:
            raise NotificationError("No valid email recipients found")

        message = EmailMessage()
        message["Subject"] = subject
        message["From"] = formataddr((SENDER_NAME, self.settings.mail_user or ""))
        message["To"] = ", ".join(valid)
        message.set_content(text)
        message.add_alternative(body, subtype="html")
        if attachment is not None:
            maintype, _, subtype = attachment.mime_type.partition("/")
            message.add_attachment(attachment.content, maintype=maintype, subtype=subtype, filename=attachment.filename)

        transport.send(message)
        logger.info("Sent notification", extra={"record_type": kind, "recipient_count": len(valid)})
        return EmailResult(
            success=True,
            recipients=valid,
            invalid_recipients=invalid,
            attachment=attachment.filename if attachment else None,
        )
