from __future__ import annotations

import base64
import json
from datetime import datetime, timezone
from io import BytesIO

import pytest
from PIL import Image

from app.schemas import Equipment
from services.qr import (
    QR_SIZE_PX,
    QRGenerationError,
    equipment_qr_payload,
    parse_qr_data,
    record_url,
    render_qr_data_url,
)


def _equipment() -> Equipment:
    stamp = datetime(2024, 1, 1, tzinfo=timezone.utc)
    return Equipment(
        id=7,
        tag_no="BO.3161.04.M1",
        equipment_name="Induration Fan Motor",
        equipment_type="Motor",
        created_at=stamp,
        updated_at=stamp,
    )


def test_render_qr_data_url_produces_square_png() -> None:
    data_url = render_qr_data_url("https://plant.test/equipment/7")

    prefix, encoded = data_url.split(",", 1)
    assert prefix == "data:image/png;base64"
    with Image.open(BytesIO(base64.b64decode(encoded))) as image:
        assert image.format == "PNG"
        assert image.size == (QR_SIZE_PX, QR_SIZE_PX)


def test_render_qr_rejects_empty_payload() -> None:
    with pytest.raises(QRGenerationError):
        render_qr_data_url("")


def test_render_qr_rejects_oversized_payload() -> None:
    with pytest.raises(QRGenerationError):
        render_qr_data_url("x" * 5000)


def test_record_url() -> None:
    assert record_url("carbon-brush", 12, "http://plant.test/") == "http://plant.test/carbon-brush/12"
    with pytest.raises(ValueError):
        record_url("invoice", 1, "http://plant.test")


def test_equipment_payload_round_trips_through_parser() -> None:
    payload = equipment_qr_payload(_equipment(), "http://plant.test")

    decoded = json.loads(payload)
    assert decoded == {
        "type": "equipment",
        "id": 7,
        "tag_no": "BO.3161.04.M1",
        "equipment_name": "Induration Fan Motor",
        "url": "http://plant.test/equipment/7",
    }
    assert parse_qr_data(payload) == decoded


def test_parse_record_url() -> None:
    assert parse_qr_data("https://plant.test/winding-resistance/42") == {"type": "winding-resistance", "id": 42}


@pytest.mark.parametrize(
    "text",
    ["https://plant.test/equipment", "https://plant.test/equipment/abc", "not json", "[1, 2]"],
)
def test_parse_unreadable_input(text: str) -> None:
    assert parse_qr_data(text) is None
