"""Coordinates the record store with forecasting, completion tracking and integrations."""

from __future__ import annotations

import logging
import math
from datetime import datetime, time, timedelta, timezone
from numbers import Real
from typing import Any, Dict, List, Optional, Sequence

from app.schemas import (
    CarbonBrushCreate,
    CarbonBrushRecord,
    DashboardStats,
    Equipment,
    EquipmentCreate,
    EquipmentDetail,
    EquipmentRecords,
    EquipmentSummary,
    EquipmentUpdate,
    EspSession,
    EspSessionCreate,
    EspSessionUpdate,
    EspStepInput,
    EspStepsReplace,
    EspTransformerInput,
    EspTransformerRecord,
    ForecastPayload,
    ForecastResponse,
    LrsSession,
    LrsSessionCreate,
    LrsSessionUpdate,
    LrsTemperatureInput,
    LrsTemperatureRecord,
    LrsTemperatureStats,
    ThermographyCreate,
    ThermographyRecord,
    WindingResistanceCreate,
    WindingResistanceRecord,
)
from datastore.record_store import RecordStore
from models.records import CompletionState, ForecastResult, MeasurementPoint, StepRecord
from services.completion import ESP_TEMPERATURE_FIELDS, ESP_TRANSFORMER_COUNT, compute_completion
from services.forecaster import WearForecaster
from services.notifications import EmailNotifier, NotificationError
from services.qr import QRGenerationError, equipment_qr_payload, parse_qr_data, render_qr_data_url

logger = logging.getLogger(__name__)

MOTOR_EQUIPMENT_TYPE = "Motor"
ESP_EQUIPMENT_TYPE = "ESP (Electrostatic Precipitator)"
LRS_EQUIPMENT_LOCATION = "Auto-added from LRS Thermography"

CRITICAL_BRUSH_LENGTH_MM = 30.0
CRITICAL_SLIP_RING_IR = 2.0
RECENT_WINDOW = timedelta(days=30)
SYSTEM_UPTIME = "99.5%"

NO_FORECAST_DETAIL = "Not enough wear history to forecast remaining brush life."


def min_positive_reading(measurements: Dict[str, Any]) -> Optional[float]:
    """Shortest remaining brush length of one inspection, ignoring blank or zero slots."""
    positives = [
        float(value)
        for value in measurements.values()
        if isinstance(value, Real) and not isinstance(value, bool) and value > 0
    ]
    return min(positives) if positives else None


def brush_history_points(records: Sequence[CarbonBrushRecord]) -> List[MeasurementPoint]:
    points: List[MeasurementPoint] = []
    for record in records:
        reading = min_positive_reading(record.measurements)
        if reading is None:
            continue
        timestamp = datetime.combine(record.inspection_date, time.min, tzinfo=timezone.utc)
        points.append(MeasurementPoint(timestamp=timestamp, value=reading))
    return points


def _percent(value: int) -> str:
    return f"{value}%"


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


class MaintenanceService:
    """Service layer used by the HTTP routes."""

    def __init__(
        self,
        store: RecordStore,
        forecaster: WearForecaster,
        notifier: Optional[EmailNotifier] = None,
        public_base_url: str = "http://localhost:3000",
        list_limit: int = 10,
    ) -> None:
        self.store = store
        self.forecaster = forecaster
        self.notifier = notifier
        self.public_base_url = public_base_url.rstrip("/")
        self.list_limit = list_limit

    # Equipment --------------------------------------------------------------

    def list_equipment(self) -> List[EquipmentSummary]:
        return self.store.list_equipment()

    def get_equipment(self, equipment_id: int) -> EquipmentDetail:
        return self.store.get_equipment(equipment_id)

    def get_equipment_by_tag(self, tag_no: str) -> Equipment:
        return self.store.get_equipment_by_tag(tag_no)

    def resolve_qr(self, text: str) -> Equipment:
        """Find the equipment a scanned label points at.

        Equipment labels carry the tag directly; record links resolve through
        the record's tag or motor number.
        """
        data = parse_qr_data(text)
        if data is None:
            raise ValueError("Unrecognised QR data.")
        tag_no = data.get("tag_no")
        if isinstance(tag_no, str) and tag_no:
            return self.store.get_equipment_by_tag(tag_no)
        kind, record_id = data.get("type"), data.get("id")
        if not isinstance(record_id, int):
            raise ValueError("QR data does not reference a record.")
        if kind == "equipment":
            return self.store.get_equipment(record_id)
        if kind == "carbon-brush":
            return self.store.get_equipment_by_tag(self.store.get_carbon_brush(record_id).tag_no)
        if kind == "winding-resistance":
            return self.store.get_equipment_by_tag(self.store.get_winding_resistance(record_id).motor_no)
        raise ValueError(f"Unsupported QR record type {kind!r}.")

    def create_equipment(self, payload: EquipmentCreate) -> Equipment:
        equipment = self.store.create_equipment(payload)
        return self._try_attach_qr(equipment)

    def update_equipment(self, equipment_id: int, payload: EquipmentUpdate) -> Equipment:
        return self.store.update_equipment(equipment_id, payload)

    def delete_equipment(self, equipment_id: int) -> None:
        self.store.delete_equipment(equipment_id)
        logger.info("Deleted equipment", extra={"equipment_id": equipment_id})

    def equipment_records(self, equipment_id: int) -> EquipmentRecords:
        return self.store.equipment_records(equipment_id)

    def regenerate_qr(self, equipment_id: int, equipment: Optional[Equipment] = None) -> Equipment:
        if equipment is None:
            equipment = self.store.get_equipment(equipment_id)
        qr_code = render_qr_data_url(equipment_qr_payload(equipment, self.public_base_url))
        return self.store.set_qr_code(equipment_id, qr_code)

    def _try_attach_qr(self, equipment: Equipment) -> Equipment:
        try:
            return self.regenerate_qr(equipment.id, equipment)
        except QRGenerationError as exc:
            logger.warning(
                "QR generation failed; equipment kept without QR",
                extra={"equipment_id": equipment.id, "tag_no": equipment.tag_no, "reason": str(exc)},
            )
            return equipment

    # Forecasting ------------------------------------------------------------

    def tag_forecast(self, tag_no: str, now: Optional[datetime] = None) -> Optional[ForecastResult]:
        history = brush_history_points(self.store.carbon_brush_history(tag_no))
        return self.forecaster.forecast(history, now=now)

    def equipment_forecast(self, equipment_id: int, now: Optional[datetime] = None) -> Optional[ForecastResult]:
        equipment = self.store.get_equipment(equipment_id)
        return self.tag_forecast(equipment.tag_no, now=now)

    def forecast_response(self, tag_no: str) -> ForecastResponse:
        result = self.tag_forecast(tag_no)
        if result is None:
            return ForecastResponse(tag_no=tag_no, forecast=None, detail=NO_FORECAST_DETAIL)
        return ForecastResponse(
            tag_no=tag_no,
            forecast=ForecastPayload(
                wear_rate_per_month=result.wear_rate_per_month,
                months_remaining=result.months_remaining,
                predicted_date=result.predicted_date,
                confidence=result.confidence,
            ),
        )

    def equipment_forecast_response(self, equipment_id: int) -> ForecastResponse:
        equipment = self.store.get_equipment(equipment_id)
        return self.forecast_response(equipment.tag_no)

    # Carbon brush -----------------------------------------------------------

    def list_carbon_brush(
        self, tag_no: Optional[str] = None, limit: Optional[int] = None
    ) -> List[CarbonBrushRecord]:
        return self.store.list_carbon_brush(tag_no=tag_no, limit=limit or self.list_limit)

    def create_carbon_brush(self, payload: CarbonBrushCreate) -> CarbonBrushRecord:
        self.store.ensure_equipment(
            payload.tag_no, payload.equipment_name, MOTOR_EQUIPMENT_TYPE, rename=True
        )
        record = self.store.create_carbon_brush(payload)
        logger.info(
            "Stored carbon brush inspection",
            extra={"tag_no": record.tag_no, "record_type": "carbon-brush", "record_id": record.id},
        )
        return record

    # Winding resistance -----------------------------------------------------

    def list_winding_resistance(
        self, motor_no: Optional[str] = None, limit: Optional[int] = None
    ) -> List[WindingResistanceRecord]:
        return self.store.list_winding_resistance(motor_no=motor_no, limit=limit or self.list_limit)

    def create_winding_resistance(self, payload: WindingResistanceCreate) -> WindingResistanceRecord:
        self.store.ensure_equipment(
            payload.motor_no,
            payload.equipment_name or f"Motor {payload.motor_no}",
            MOTOR_EQUIPMENT_TYPE,
        )
        return self.store.create_winding_resistance(payload)

    # Thermography -----------------------------------------------------------

    def create_thermography(self, payload: ThermographyCreate) -> ThermographyRecord:
        record = self.store.create_thermography(payload)
        if self.notifier is not None:
            try:
                self.notifier.notify_thermography(record.model_dump(mode="json"))
            except NotificationError as exc:
                logger.warning(
                    "Thermography notification not sent",
                    extra={"record_type": "thermography", "record_id": record.id, "reason": str(exc)},
                )
        return record

    # ESP sessions -----------------------------------------------------------

    @staticmethod
    def _transformer_rows(inputs: Optional[Sequence[EspTransformerInput]]) -> List[Dict[str, Any]]:
        source = list(inputs) if inputs else [
            EspTransformerInput(transformer_no=f"TF{index}") for index in range(1, ESP_TRANSFORMER_COUNT + 1)
        ]
        rows = []
        for index, item in enumerate(source, start=1):
            values = item.model_dump(exclude={"step"})
            values["transformer_no"] = item.transformer_no or f"TF{index}"
            values["step"] = index
            rows.append(values)
        return rows

    @staticmethod
    def _esp_completion(rows: Sequence[Dict[str, Any]]) -> CompletionState:
        steps = [StepRecord(index=row["step"], fields=row) for row in rows]
        return compute_completion(steps, ESP_TRANSFORMER_COUNT, ESP_TEMPERATURE_FIELDS)

    def list_esp_sessions(self, esp_code: Optional[str] = None) -> List[EspSession]:
        return self.store.list_esp_sessions(esp_code)

    def create_esp_session(self, payload: EspSessionCreate) -> EspSession:
        equipment, created = self.store.ensure_equipment(
            payload.esp_code,
            payload.equipment_name or f"ESP Equipment {payload.esp_code}",
            payload.equipment_type or ESP_EQUIPMENT_TYPE,
        )
        if created:
            self._try_attach_qr(equipment)

        rows = self._transformer_rows(payload.transformers)
        state = self._esp_completion(rows)
        fields = payload.model_dump(exclude={"transformers", "equipment_name", "equipment_type"})
        fields.update(step=state.completed_steps, is_completed=state.is_complete)
        session = self.store.create_esp_session(fields, rows)
        logger.info(
            "Created ESP session",
            extra={"session_id": session.id, "tag_no": session.esp_code, "completed_steps": session.step},
        )
        return session

    def update_esp_session(self, session_id: int, payload: EspSessionUpdate) -> EspSession:
        fields = payload.model_dump(exclude_unset=True, exclude={"transformers"})
        rows: Optional[List[Dict[str, Any]]] = None
        if payload.transformers is not None:
            rows = self._transformer_rows(payload.transformers)
            state = self._esp_completion(rows)
        else:
            existing = self.store.list_esp_steps(session_id)
            state = self._esp_completion([record.model_dump() for record in existing])
        fields.update(step=state.completed_steps, is_completed=state.is_complete)
        return self.store.update_esp_session(session_id, fields, rows)

    def list_esp_steps(self, session_id: int) -> List[EspTransformerRecord]:
        return self.store.list_esp_steps(session_id)

    def replace_esp_steps(self, payload: EspStepsReplace) -> List[EspTransformerRecord]:
        rows = [_step_row(item) for item in payload.transformer_records]
        state = self._esp_completion(rows)
        session = self.store.update_esp_session(
            payload.session_id,
            {"step": state.completed_steps, "is_completed": state.is_complete},
            rows,
        )
        logger.info(
            "Replaced ESP steps",
            extra={"session_id": session.id, "completed_steps": state.completed_steps},
        )
        return session.transformers

    # LRS sessions -----------------------------------------------------------

    def create_lrs_session(self, payload: LrsSessionCreate) -> LrsSession:
        self.store.ensure_equipment(
            payload.tag_number,
            payload.equipment_name,
            payload.equipment_type,
            location=LRS_EQUIPMENT_LOCATION,
        )
        fields = payload.model_dump(exclude={"temperature_records"})
        return self.store.create_lrs_session(fields, payload.temperature_records)

    def update_lrs_session(self, session_id: int, payload: LrsSessionUpdate) -> LrsSession:
        fields = payload.model_dump(exclude_unset=True, exclude={"temperature_records"})
        new_records = [record for record in payload.temperature_records or [] if record.temperature > 0]
        return self.store.update_lrs_session(session_id, fields, new_records)

    def add_lrs_temperature_record(self, session_id: int, record: LrsTemperatureInput) -> LrsTemperatureRecord:
        return self.store.add_lrs_temperature_record(session_id, record)

    def lrs_temperature_stats(self, session_id: int) -> LrsTemperatureStats:
        return self.store.lrs_temperature_stats(session_id)

    # Dashboard --------------------------------------------------------------

    def dashboard_stats(self, now: Optional[datetime] = None) -> DashboardStats:
        now = now or datetime.now(timezone.utc)
        since = now - RECENT_WINDOW

        total_equipment = self.store.count_equipment()
        total_inspections = self.store.count_carbon_brush() + self.store.count_winding_resistance()
        recent_inspections = self.store.count_carbon_brush(since=since) + self.store.count_winding_resistance(
            since=since
        )
        critical = sum(1 for record in self.store.latest_carbon_brush_per_tag() if is_critical(record))

        efficiency = 0
        if total_inspections > 0:
            efficiency = min(_round_half_up(recent_inspections / total_inspections * 100), 85)
        cost = 45
        if total_equipment > 0:
            cost = max(_round_half_up((1 - critical / total_equipment) * 60), 25)
        downtime = 15
        if total_inspections > 10:
            downtime = min(_round_half_up(total_inspections / 10 * 5), 40)

        return DashboardStats(
            system_uptime=SYSTEM_UPTIME,
            efficiency_improvement=_percent(efficiency),
            cost_reduction=_percent(cost),
            downtime_reduction=_percent(downtime),
            total_equipment=total_equipment,
            total_inspections=total_inspections,
            recent_inspections=recent_inspections,
            critical_equipment=critical,
            last_updated=now,
        )


def is_critical(record: CarbonBrushRecord) -> bool:
    shortest = min_positive_reading(record.measurements) or 0.0
    return shortest < CRITICAL_BRUSH_LENGTH_MM or record.slip_ring_ir < CRITICAL_SLIP_RING_IR


def _step_row(item: EspStepInput) -> Dict[str, Any]:
    values = item.model_dump()
    values["transformer_no"] = item.transformer_no or f"TF{item.step}"
    return values
