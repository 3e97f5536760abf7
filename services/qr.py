"""QR code rendering and payload helpers for equipment labels."""

from __future__ import annotations

import base64
import io
import json
from typing import Any, Dict, Optional
from urllib.parse import urlparse

import qrcode
from PIL import Image
from qrcode.exceptions import DataOverflowError

from app.schemas import Equipment

QR_SIZE_PX = 256
QR_BORDER = 2
RECORD_KINDS = ("carbon-brush", "winding-resistance", "equipment")


class QRGenerationError(RuntimeError):
    """Raised when a QR image cannot be produced."""


def render_qr_data_url(text: str) -> str:
    """Encode ``text`` as a 256 px black-on-white PNG data URL."""
    if not text:
        raise QRGenerationError("Cannot encode an empty QR payload.")
    try:
        code = qrcode.QRCode(border=QR_BORDER, error_correction=qrcode.constants.ERROR_CORRECT_M)
        code.add_data(text)
        code.make(fit=True)
        raw = io.BytesIO()
        code.make_image(fill_color="black", back_color="white").save(raw)
        raw.seek(0)
        with Image.open(raw) as image:
            scaled = image.convert("RGB").resize((QR_SIZE_PX, QR_SIZE_PX), Image.NEAREST)
            buffer = io.BytesIO()
            scaled.save(buffer, format="PNG")
    except (ValueError, OSError, DataOverflowError) as exc:
        raise QRGenerationError(f"Failed to render QR code: {exc}") from exc
    encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
    return f"data:image/png;base64,{encoded}"


def record_url(kind: str, record_id: int, base_url: str) -> str:
    if kind not in RECORD_KINDS:
        raise ValueError(f"Unsupported record kind {kind!r}.")
    return f"{base_url.rstrip('/')}/{kind}/{record_id}"


def equipment_qr_payload(equipment: Equipment, base_url: str) -> str:
    return json.dumps(
        {
            "type": "equipment",
            "id": equipment.id,
            "tag_no": equipment.tag_no,
            "equipment_name": equipment.equipment_name,
            "url": record_url("equipment", equipment.id, base_url),
        }
    )


def parse_qr_data(text: str) -> Optional[Dict[str, Any]]:
    """Decode scanned QR text.

    Record URLs yield ``{"type", "id"}``. Anything else is tried as a JSON
    object; unreadable input returns ``None``.
    """
    parsed = urlparse(text.strip())
    if parsed.scheme in {"http", "https"} and parsed.netloc:
        parts = [part for part in parsed.path.split("/") if part]
        if len(parts) >= 2:
            try:
                return {"type": parts[0], "id": int(parts[1])}
            except ValueError:
                return None
        return None
    try:
        decoded = json.loads(text)
    except ValueError:
        return None
    return decoded if isinstance(decoded, dict) else None
