from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, timedelta, timezone

import pytest

from app.schemas import (
    CarbonBrushCreate,
    EquipmentCreate,
    EspSessionCreate,
    EspSessionUpdate,
    EspStepInput,
    EspStepsReplace,
    EspTransformerInput,
    LrsSessionCreate,
    LrsSessionUpdate,
    LrsTemperatureInput,
    ThermographyCreate,
    WindingResistanceCreate,
)
from services.forecaster import WearForecaster
from services.maintenance import (
    ESP_EQUIPMENT_TYPE,
    LRS_EQUIPMENT_LOCATION,
    NO_FORECAST_DETAIL,
    MaintenanceService,
    is_critical,
    min_positive_reading,
)
from services.notifications import EmailNotifier
from services.qr import equipment_qr_payload


@pytest.fixture
def service(store, settings, transport) -> MaintenanceService:
    notifier = EmailNotifier(settings, transport=transport, environ={})
    return MaintenanceService(store, WearForecaster(), notifier=notifier, public_base_url="http://plant.test/")


def _brush(tag_no: str, inspected: date, slip_ring_ir: float = 2.5, **measurements: float) -> CarbonBrushCreate:
    return CarbonBrushCreate(
        tag_no=tag_no,
        equipment_name=f"Fan {tag_no}",
        brush_type="C80X",
        inspection_date=inspected,
        measurements=measurements,
        slip_ring_thickness=12.0,
        slip_ring_ir=slip_ring_ir,
    )


def test_min_positive_reading_skips_blank_slots() -> None:
    assert min_positive_reading({"1A": 42.0, "1B": 0, "2A": None, "2B": 38.5}) == 38.5
    assert min_positive_reading({"1A": 0, "1B": None}) is None
    assert min_positive_reading({"1A": True}) is None


def test_create_equipment_attaches_qr(service: MaintenanceService) -> None:
    equipment = service.create_equipment(EquipmentCreate(tag_no="M-1", equipment_name="Mill Motor"))

    assert equipment.qr_code is not None
    assert equipment.qr_code.startswith("data:image/png;base64,")
    assert equipment.equipment_type == "General"


def test_create_equipment_kept_when_qr_label_overflows(service: MaintenanceService, store) -> None:
    equipment = service.create_equipment(EquipmentCreate(tag_no="BIG", equipment_name="x" * 4000))

    assert equipment.qr_code is None
    assert store.get_equipment_by_tag("BIG").id == equipment.id


def test_carbon_brush_create_upserts_motor_equipment(service: MaintenanceService) -> None:
    service.create_carbon_brush(_brush("M-2", date(2024, 1, 1), **{"1A": 45.0}))
    service.create_carbon_brush(
        _brush("M-2", date(2024, 2, 1), **{"1A": 44.0}).model_copy(update={"equipment_name": "Renamed Fan"})
    )

    equipment = service.store.get_equipment_by_tag("M-2")

    assert equipment.equipment_type == "Motor"
    assert equipment.equipment_name == "Renamed Fan"
    assert len(service.list_carbon_brush(tag_no="M-2")) == 2


def test_winding_resistance_names_new_motor(service: MaintenanceService) -> None:
    service.create_winding_resistance(
        WindingResistanceCreate(
            motor_no="M-3",
            inspection_date=date(2024, 2, 1),
            winding_resistance={"ry": 1.1},
            ir_values={"ug_1min": 3.0},
        )
    )

    assert service.store.get_equipment_by_tag("M-3").equipment_name == "Motor M-3"


def test_resolve_qr_follows_record_links(service: MaintenanceService) -> None:
    record = service.create_winding_resistance(
        WindingResistanceCreate(
            motor_no="M-4",
            inspection_date=date(2024, 2, 1),
            winding_resistance={"ry": 1.1},
            ir_values={"ug_1min": 3.0},
        )
    )
    equipment = service.store.get_equipment_by_tag("M-4")

    assert service.resolve_qr(f"https://plant.test/winding-resistance/{record.id}").id == equipment.id
    assert service.resolve_qr(equipment_qr_payload(equipment, "http://plant.test")).tag_no == "M-4"
    with pytest.raises(ValueError, match="does not reference a record"):
        service.resolve_qr('{"type": "equipment"}')


def test_forecast_from_inspection_history(service: MaintenanceService) -> None:
    today = datetime.now(timezone.utc).date()
    for days_ago, reading in ((60, 50.0), (30, 45.0), (0, 40.0)):
        service.create_carbon_brush(_brush("M-4", today - timedelta(days=days_ago), **{"1A": reading, "1B": 0}))

    response = service.forecast_response("M-4")

    assert response.forecast is not None
    assert response.detail is None
    assert response.forecast.wear_rate_per_month == pytest.approx(5.0)
    assert response.forecast.months_remaining == pytest.approx(4.0)


def test_forecast_without_history(service: MaintenanceService) -> None:
    response = service.forecast_response("UNKNOWN")

    assert response.forecast is None
    assert response.detail == NO_FORECAST_DETAIL


def test_thermography_notifies_with_attachment(service: MaintenanceService, transport) -> None:
    record = service.create_thermography(
        ThermographyCreate(transformer_no="TF-1", inspection_date=date(2024, 3, 1), month=3, mccb_body_temp=41.0)
    )

    assert record.id is not None
    assert len(transport.messages) == 1
    message = transport.messages[0]
    assert message["Subject"] == "New Thermography Test - TF-1"
    attachments = list(message.iter_attachments())
    assert attachments[0].get_filename().startswith("Thermography-Report-TF-1-")


def test_thermography_stored_when_email_not_configured(store, settings, transport) -> None:
    notifier = EmailNotifier(replace(settings, mail_password=None), transport=transport, environ={})
    service = MaintenanceService(store, WearForecaster(), notifier=notifier)

    record = service.create_thermography(
        ThermographyCreate(transformer_no="TF-2", inspection_date=date(2024, 3, 1), month=3)
    )

    assert store.get_thermography(record.id).transformer_no == "TF-2"
    assert transport.messages == []


def test_esp_session_defaults_three_transformers(service: MaintenanceService) -> None:
    session = service.create_esp_session(
        EspSessionCreate(esp_code="ESP-1", inspection_date=date(2024, 4, 1), month=4)
    )

    assert [t.transformer_no for t in session.transformers] == ["TF1", "TF2", "TF3"]
    assert [t.step for t in session.transformers] == [1, 2, 3]
    assert session.step == 1
    assert session.is_completed is False


def test_esp_session_auto_creates_equipment_with_qr(service: MaintenanceService) -> None:
    service.create_esp_session(EspSessionCreate(esp_code="ESP-2", inspection_date=date(2024, 4, 1), month=4))

    equipment = service.store.get_equipment_by_tag("ESP-2")

    assert equipment.equipment_name == "ESP Equipment ESP-2"
    assert equipment.equipment_type == ESP_EQUIPMENT_TYPE
    assert equipment.qr_code is not None


def test_esp_session_partial_data(service: MaintenanceService) -> None:
    session = service.create_esp_session(
        EspSessionCreate(
            esp_code="ESP-3",
            inspection_date=date(2024, 4, 1),
            month=4,
            transformers=[
                EspTransformerInput(transformer_no="TF1", mccb_body_temp=40.0),
                EspTransformerInput(transformer_no="TF2", rdi68="On"),
            ],
        )
    )

    assert session.step == 1
    assert session.is_completed is False


def test_esp_session_complete_data(service: MaintenanceService) -> None:
    transformers = [EspTransformerInput(mccb_body_temp=40.0 + index) for index in range(3)]

    session = service.create_esp_session(
        EspSessionCreate(esp_code="ESP-4", inspection_date=date(2024, 4, 1), month=4, transformers=transformers)
    )

    assert session.step == 3
    assert session.is_completed is True
    assert [t.transformer_no for t in session.transformers] == ["TF1", "TF2", "TF3"]


def test_esp_update_without_transformers_keeps_steps(service: MaintenanceService) -> None:
    transformers = [EspTransformerInput(scr_cooling_fins_temp=35.0) for _ in range(3)]
    created = service.create_esp_session(
        EspSessionCreate(esp_code="ESP-5", inspection_date=date(2024, 4, 1), month=4, transformers=transformers)
    )

    updated = service.update_esp_session(created.id, EspSessionUpdate(done_by="A. Kumar"))

    assert updated.done_by == "A. Kumar"
    assert updated.step == 3
    assert updated.is_completed is True
    assert len(updated.transformers) == 3


def test_replace_esp_steps_recomputes_completion(service: MaintenanceService) -> None:
    created = service.create_esp_session(
        EspSessionCreate(esp_code="ESP-6", inspection_date=date(2024, 4, 1), month=4)
    )

    steps = service.replace_esp_steps(
        EspStepsReplace(
            session_id=created.id,
            transformer_records=[
                EspStepInput(step=1, mccb_ic_r_phase=30.0),
                EspStepInput(step=2, mccb_c_og1=31.0),
            ],
        )
    )
    session = service.store.get_esp_session(created.id)

    assert [step.transformer_no for step in steps] == ["TF1", "TF2"]
    assert session.step == 2
    assert session.is_completed is False


def test_lrs_session_creates_equipment_and_filters_readings(service: MaintenanceService) -> None:
    created = service.create_lrs_session(
        LrsSessionCreate(tag_number="LRS-1", equipment_name="Kiln Starter", number_of_points=2)
    )

    updated = service.update_lrs_session(
        created.id,
        LrsSessionUpdate(
            temperature_records=[
                LrsTemperatureInput(point="P1", temperature=55.0),
                LrsTemperatureInput(point="P2", temperature=0.0),
            ]
        ),
    )

    equipment = service.store.get_equipment_by_tag("LRS-1")
    assert equipment.location == LRS_EQUIPMENT_LOCATION
    assert equipment.equipment_type == "Liquid Resistor Starter"
    assert [record.point for record in updated.temperature_records] == ["P1"]


def test_dashboard_stats_for_empty_store(service: MaintenanceService) -> None:
    stats = service.dashboard_stats()

    assert stats.total_equipment == 0
    assert stats.efficiency_improvement == "0%"
    assert stats.cost_reduction == "45%"
    assert stats.downtime_reduction == "15%"
    assert stats.system_uptime == "99.5%"


def test_dashboard_stats_counts_critical_equipment(service: MaintenanceService) -> None:
    service.create_carbon_brush(_brush("M-5", date(2024, 1, 1), **{"1A": 45.0}))
    service.create_carbon_brush(_brush("M-5", date(2024, 2, 1), **{"1A": 25.0}))
    service.create_carbon_brush(_brush("M-6", date(2024, 2, 1), **{"1A": 40.0}))
    service.create_winding_resistance(
        WindingResistanceCreate(
            motor_no="M-6",
            inspection_date=date(2024, 2, 1),
            winding_resistance={"ry": 1.0},
            ir_values={"ug_1min": 5.0},
        )
    )

    now = datetime.now(timezone.utc)
    stats = service.dashboard_stats(now=now)
    later = service.dashboard_stats(now=now + timedelta(days=60))

    assert stats.total_equipment == 2
    assert stats.total_inspections == 4
    assert stats.recent_inspections == 4
    assert stats.critical_equipment == 1
    assert stats.efficiency_improvement == "85%"
    assert stats.cost_reduction == "30%"
    assert stats.downtime_reduction == "15%"
    assert stats.last_updated == now
    assert later.recent_inspections == 0
    assert later.efficiency_improvement == "0%"


def test_low_slip_ring_ir_is_critical(service: MaintenanceService) -> None:
    record = service.create_carbon_brush(_brush("M-7", date(2024, 1, 1), slip_ring_ir=1.5, **{"1A": 50.0}))

    assert is_critical(record) is True
