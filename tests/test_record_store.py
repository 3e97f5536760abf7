"""Record store behaviour against an in-memory SQLite database."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import OperationalError

from app.schemas import (
    CarbonBrushCreate,
    EquipmentCreate,
    EquipmentUpdate,
    LrsTemperatureInput,
    TemperatureStatus,
    ThermographyCreate,
    WindingResistanceCreate,
)
from datastore.errors import RecordConflict, RecordInvalid, RecordNotFound, StoreUnavailable
from datastore.record_store import RecordStore, build_record_store


def _brush(tag_no: str, inspected: date, **measurements: float) -> CarbonBrushCreate:
    return CarbonBrushCreate(
        tag_no=tag_no,
        equipment_name="Induration Fan Motor",
        brush_type="C80X",
        inspection_date=inspected,
        measurements=measurements or {"1A": 45.0},
        slip_ring_thickness=12.5,
        slip_ring_ir=2.3,
    )


def _winding(motor_no: str) -> WindingResistanceCreate:
    return WindingResistanceCreate(
        motor_no=motor_no,
        inspection_date=date(2024, 2, 1),
        winding_resistance={"ry": 1.2, "yb": 1.2, "rb": 1.3},
        ir_values={"ug_1min": 4.0},
    )


def test_create_and_fetch_equipment(store: RecordStore) -> None:
    created = store.create_equipment(
        EquipmentCreate(tag_no="BO.3161.04.M1", equipment_name="Fan Motor", equipment_type="Motor")
    )

    fetched = store.get_equipment(created.id)

    assert fetched.tag_no == "BO.3161.04.M1"
    assert fetched.carbon_brush_records == []
    assert store.get_equipment_by_tag("BO.3161.04.M1").id == created.id


def test_create_equipment_requires_tag(store: RecordStore) -> None:
    with pytest.raises(ValueError):
        store.create_equipment(EquipmentCreate(equipment_name="Nameless"))


def test_duplicate_tag_raises_conflict(store: RecordStore) -> None:
    store.create_equipment(EquipmentCreate(tag_no="M-1"))

    with pytest.raises(RecordConflict) as excinfo:
        store.create_equipment(EquipmentCreate(tag_no="M-1"))
    assert str(excinfo.value) == "Equipment with tag 'M-1' already exists."


def test_renaming_onto_existing_tag_raises_conflict(store: RecordStore) -> None:
    store.create_equipment(EquipmentCreate(tag_no="M-1"))
    other = store.create_equipment(EquipmentCreate(tag_no="M-2"))

    with pytest.raises(RecordConflict, match="M-1"):
        store.update_equipment(other.id, EquipmentUpdate(tag_no="M-1"))


def test_null_for_required_column_is_invalid(store: RecordStore) -> None:
    equipment = store.create_equipment(EquipmentCreate(tag_no="M-1", equipment_name="Fan"))

    with pytest.raises(RecordInvalid, match="tag_no cannot be null"):
        store.update_equipment(equipment.id, EquipmentUpdate(tag_no=None))

    assert store.get_equipment(equipment.id).tag_no == "M-1"


def test_missing_rows_raise_not_found(store: RecordStore) -> None:
    with pytest.raises(RecordNotFound) as excinfo:
        store.get_equipment(404)
    assert str(excinfo.value) == "Equipment 404 not found."

    with pytest.raises(KeyError):
        store.get_carbon_brush(1)
    with pytest.raises(RecordNotFound):
        store.delete_esp_session(9)
    with pytest.raises(RecordNotFound):
        store.get_equipment_by_tag("nope")


def test_ensure_equipment_creates_once(store: RecordStore) -> None:
    first, created = store.ensure_equipment("ESP-1", "ESP Equipment ESP-1", "ESP (Electrostatic Precipitator)")
    second, created_again = store.ensure_equipment("ESP-1", "Other name", "Other")

    assert created is True
    assert created_again is False
    assert second.id == first.id
    assert second.equipment_name == "ESP Equipment ESP-1"
    assert first.location == "Main Plant"


def test_ensure_equipment_can_rename(store: RecordStore) -> None:
    store.ensure_equipment("M-2", "Old", "Motor")

    renamed, created = store.ensure_equipment("M-2", "New", "Motor", rename=True)

    assert created is False
    assert renamed.equipment_name == "New"


def test_carbon_brush_requires_known_equipment(store: RecordStore) -> None:
    with pytest.raises(RecordInvalid, match="database constraint"):
        store.create_carbon_brush(_brush("UNKNOWN", date(2024, 1, 1)))


def test_equipment_detail_counts_and_recent_records(store: RecordStore) -> None:
    equipment, _ = store.ensure_equipment("M-3", "Motor 3", "Motor")
    for offset in range(7):
        store.create_carbon_brush(_brush("M-3", date(2024, 1, 1) + timedelta(days=offset)))
    store.create_winding_resistance(_winding("M-3"))

    detail = store.get_equipment(equipment.id)

    assert detail.carbon_brush_count == 7
    assert detail.winding_resistance_count == 1
    assert len(detail.carbon_brush_records) == 5
    assert detail.carbon_brush_records[0].inspection_date == date(2024, 1, 7)


def test_list_equipment_counts_thermography_sources(store: RecordStore) -> None:
    store.ensure_equipment("TF-9", "Transformer", "ESP")
    store.ensure_equipment("A-1", "Another", "Motor")
    store.create_thermography(
        ThermographyCreate(transformer_no="TF-9", inspection_date=date(2024, 3, 1), month=3)
    )
    store.create_esp_session(
        {"esp_code": "TF-9", "inspection_date": date(2024, 3, 2), "month": 3, "step": 1, "is_completed": False},
        [],
    )
    store.create_lrs_session(
        {
            "tag_number": "TF-9",
            "equipment_name": "Transformer",
            "equipment_type": "Liquid Resistor Starter",
            "number_of_points": 2,
        },
        [],
    )

    summaries = {item.tag_no: item for item in store.list_equipment()}

    assert list(summaries) == ["A-1", "TF-9"]
    assert summaries["TF-9"].thermography_records_count == 3
    assert summaries["A-1"].thermography_records_count == 0


def test_delete_equipment_cascades_to_records(store: RecordStore) -> None:
    equipment, _ = store.ensure_equipment("M-4", "Motor 4", "Motor")
    record = store.create_carbon_brush(_brush("M-4", date(2024, 1, 1)))

    store.delete_equipment(equipment.id)

    with pytest.raises(RecordNotFound):
        store.get_carbon_brush(record.id)


def test_renaming_tag_follows_records(store: RecordStore) -> None:
    equipment, _ = store.ensure_equipment("M-5", "Motor 5", "Motor")
    store.create_carbon_brush(_brush("M-5", date(2024, 1, 1)))

    store.update_equipment(equipment.id, EquipmentUpdate(tag_no="M-5B"))

    assert len(store.carbon_brush_history("M-5B")) == 1
    assert store.carbon_brush_history("M-5") == []


def test_carbon_brush_history_is_oldest_first(store: RecordStore) -> None:
    store.ensure_equipment("M-6", "Motor 6", "Motor")
    store.create_carbon_brush(_brush("M-6", date(2024, 3, 1)))
    store.create_carbon_brush(_brush("M-6", date(2024, 1, 1)))

    history = store.carbon_brush_history("M-6")

    assert [record.inspection_date for record in history] == [date(2024, 1, 1), date(2024, 3, 1)]


def test_list_carbon_brush_filters_and_limits(store: RecordStore) -> None:
    store.ensure_equipment("M-7", "Motor 7", "Motor")
    store.ensure_equipment("M-8", "Motor 8", "Motor")
    for _ in range(3):
        store.create_carbon_brush(_brush("M-7", date(2024, 1, 1)))
    store.create_carbon_brush(_brush("M-8", date(2024, 1, 1)))

    assert len(store.list_carbon_brush(tag_no="M-7")) == 3
    assert len(store.list_carbon_brush(limit=2)) == 2


def test_latest_carbon_brush_per_tag(store: RecordStore) -> None:
    store.ensure_equipment("M-9", "Motor 9", "Motor")
    store.create_carbon_brush(_brush("M-9", date(2024, 1, 1), **{"1A": 50.0}))
    latest = store.create_carbon_brush(_brush("M-9", date(2024, 2, 1), **{"1A": 25.0}))

    records = store.latest_carbon_brush_per_tag()

    assert [record.id for record in records] == [latest.id]


def test_counts_since(store: RecordStore) -> None:
    store.ensure_equipment("M-10", "Motor 10", "Motor")
    store.create_carbon_brush(_brush("M-10", date(2024, 1, 1)))
    store.create_winding_resistance(_winding("M-10"))

    future = datetime.now(timezone.utc) + timedelta(days=1)

    assert store.count_equipment() == 1
    assert store.count_carbon_brush() == 1
    assert store.count_winding_resistance() == 1
    assert store.count_carbon_brush(since=future) == 0


def test_esp_update_replaces_transformers(store: RecordStore) -> None:
    session = store.create_esp_session(
        {"esp_code": "ESP-2", "inspection_date": date(2024, 4, 1), "month": 4, "step": 1, "is_completed": False},
        [{"transformer_no": "TF1", "step": 1}, {"transformer_no": "TF2", "step": 2}],
    )

    updated = store.update_esp_session(
        session.id,
        {"done_by": "R. Patel"},
        [{"transformer_no": "TF9", "step": 1, "mccb_body_temp": 40.0}],
    )

    assert updated.done_by == "R. Patel"
    assert [(t.transformer_no, t.step) for t in updated.transformers] == [("TF9", 1)]
    assert len(store.list_esp_steps(session.id)) == 1


def test_lrs_update_appends_records_and_stats(store: RecordStore) -> None:
    session = store.create_lrs_session(
        {
            "tag_number": "LRS-1",
            "equipment_name": "Starter",
            "equipment_type": "Liquid Resistor Starter",
            "number_of_points": 3,
            "images": ["https://img.test/1.jpg"],
        },
        [LrsTemperatureInput(point="P1", temperature=40.0)],
    )

    updated = store.update_lrs_session(
        session.id,
        {"inspector": "J. Doe"},
        [LrsTemperatureInput(point="P2", temperature=80.0, status=TemperatureStatus.critical)],
    )
    store.add_lrs_temperature_record(
        session.id, LrsTemperatureInput(point="P3", temperature=60.0, status=TemperatureStatus.warning)
    )
    stats = store.lrs_temperature_stats(session.id)

    assert [record.point for record in updated.temperature_records] == ["P1", "P2"]
    assert updated.images == ["https://img.test/1.jpg"]
    assert stats.total == 3
    assert (stats.normal, stats.warning, stats.critical) == (1, 1, 1)
    assert stats.average_temperature == pytest.approx(60.0)
    assert (stats.min_temperature, stats.max_temperature) == (40.0, 80.0)


def test_lrs_stats_for_empty_session(store: RecordStore) -> None:
    session = store.create_lrs_session(
        {
            "tag_number": "LRS-2",
            "equipment_name": "Starter",
            "equipment_type": "Liquid Resistor Starter",
            "number_of_points": 1,
        },
        [],
    )

    stats = store.lrs_temperature_stats(session.id)

    assert stats.total == 0
    assert stats.average_temperature == 0.0


def test_database_errors_surface_as_unavailable(store: RecordStore, monkeypatch) -> None:
    def broken_scalar(*_args, **_kwargs):
        raise OperationalError("SELECT 1", {}, Exception("database is locked"))

    monkeypatch.setattr("sqlalchemy.orm.Session.scalar", broken_scalar)

    with pytest.raises(StoreUnavailable):
        store.count_equipment()


def test_build_record_store_creates_sqlite_file(tmp_path) -> None:
    database = tmp_path / "nested" / "records.db"

    record_store = build_record_store(f"sqlite:///{database}")
    try:
        record_store.ensure_equipment("M-11", "Motor 11", "Motor")
    finally:
        record_store.dispose()

    assert database.exists()
