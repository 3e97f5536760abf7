"""Pydantic schemas for the HTTP API layer and the record store."""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class RecordModel(BaseModel):
    """Base for schemas read straight from ORM rows."""

    model_config = ConfigDict(from_attributes=True)


class ReadingsModel(BaseModel):
    """Inputs whose free-text readings (kV/mA, SP/min) may arrive as numbers."""

    model_config = ConfigDict(coerce_numbers_to_str=True)


class MessageResponse(BaseModel):
    message: str
    count: Optional[int] = None


# Equipment ------------------------------------------------------------------


class EquipmentCreate(BaseModel):
    tag_no: Optional[str] = None
    equipment_name: Optional[str] = None
    equipment_type: Optional[str] = None
    location: Optional[str] = None
    installation_date: Optional[date] = None


class EquipmentUpdate(BaseModel):
    tag_no: Optional[str] = None
    equipment_name: Optional[str] = None
    equipment_type: Optional[str] = None
    location: Optional[str] = None
    installation_date: Optional[date] = None


class QRScanRequest(BaseModel):
    data: str = Field(min_length=1)


class Equipment(RecordModel):
    id: int
    tag_no: str
    equipment_name: str
    equipment_type: str
    location: Optional[str] = None
    installation_date: Optional[date] = None
    qr_code: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class EquipmentSummary(Equipment):
    carbon_brush_count: int = 0
    winding_resistance_count: int = 0
    thermography_records_count: int = 0


# Carbon brush ---------------------------------------------------------------


class CarbonBrushCreate(BaseModel):
    tag_no: str = Field(..., min_length=1)
    equipment_name: str
    brush_type: str
    inspection_date: date
    work_order_no: Optional[str] = None
    done_by: Optional[str] = None
    measurements: Dict[str, Optional[float]] = Field(
        default_factory=dict, description="Brush position to remaining length in mm."
    )
    slip_ring_thickness: float
    slip_ring_ir: float
    remarks: Optional[str] = None


class CarbonBrushRecord(RecordModel):
    id: int
    tag_no: str
    equipment_name: str
    brush_type: str
    inspection_date: date
    work_order_no: Optional[str] = None
    done_by: Optional[str] = None
    measurements: Dict[str, Optional[float]] = Field(default_factory=dict)
    slip_ring_thickness: float
    slip_ring_ir: float
    remarks: Optional[str] = None
    created_at: datetime
    updated_at: datetime


# Winding resistance ---------------------------------------------------------


class WindingResistanceCreate(BaseModel):
    motor_no: str = Field(..., min_length=1)
    equipment_name: Optional[str] = None
    inspection_date: date
    done_by: Optional[str] = None
    winding_resistance: Dict[str, Any]
    ir_values: Dict[str, Any]
    dar_values: Optional[Dict[str, Any]] = None
    polarization_index: Optional[float] = None
    remarks: Optional[str] = None


class WindingResistanceRecord(RecordModel):
    id: int
    motor_no: str
    inspection_date: date
    done_by: Optional[str] = None
    winding_resistance: Dict[str, Any]
    ir_values: Dict[str, Any]
    dar_values: Optional[Dict[str, Any]] = None
    polarization_index: Optional[float] = None
    remarks: Optional[str] = None
    created_at: datetime
    updated_at: datetime


# Thermography ---------------------------------------------------------------


class ThermographyCreate(ReadingsModel):
    transformer_no: str = Field(..., min_length=1)
    equipment_type: str = "ESP"
    inspection_date: date
    month: int = Field(..., ge=1, le=12)
    done_by: Optional[str] = None
    mccb_ic_r_phase: float = 0.0
    mccb_ic_b_phase: float = 0.0
    mccb_c_og1: float = 0.0
    mccb_c_og2: float = 0.0
    mccb_body_temp: float = 0.0
    kv_ma: Optional[str] = None
    sp_min: Optional[str] = None
    scr_cooling_fins_temp: float = 0.0
    scr_cooling_fan: Optional[str] = None
    panel_exhaust_fan: Optional[str] = None
    mcc_forced_cooling_fan_temp: Optional[str] = None
    rdi68: float = 0.0
    rdi69: float = 0.0
    rdi70: float = 0.0
    remarks: Optional[str] = None


class ThermographyRecord(RecordModel):
    id: int
    transformer_no: str
    equipment_type: str
    inspection_date: date
    month: int
    done_by: Optional[str] = None
    mccb_ic_r_phase: float
    mccb_ic_b_phase: float
    mccb_c_og1: float
    mccb_c_og2: float
    mccb_body_temp: float
    kv_ma: Optional[str] = None
    sp_min: Optional[str] = None
    scr_cooling_fins_temp: float
    scr_cooling_fan: Optional[str] = None
    panel_exhaust_fan: Optional[str] = None
    mcc_forced_cooling_fan_temp: Optional[str] = None
    rdi68: float
    rdi69: float
    rdi70: float
    remarks: Optional[str] = None
    created_at: datetime


# ESP sessions ---------------------------------------------------------------


class EspTransformerInput(ReadingsModel):
    transformer_no: Optional[str] = None
    mccb_ic_r_phase: Optional[float] = None
    mccb_ic_b_phase: Optional[float] = None
    mccb_c_og1: Optional[float] = None
    mccb_c_og2: Optional[float] = None
    mccb_body_temp: Optional[float] = None
    kv_ma: Optional[str] = None
    sp_min: Optional[str] = None
    scr_cooling_fins_temp: Optional[float] = None
    scr_cooling_fan: Optional[str] = None
    panel_exhaust_fan: Optional[str] = None
    mcc_forced_cooling_fan_temp: Optional[str] = None
    rdi68: Optional[str] = Field(default=None, description="Relay status, On or Off.")
    rdi69: Optional[str] = None
    rdi70: Optional[str] = None
    rdi51: Optional[str] = None
    rdi52: Optional[str] = None
    rdi53: Optional[str] = None
    remark: Optional[str] = None


class EspStepInput(EspTransformerInput):
    step: int = Field(..., ge=1)


class EspSessionCreate(ReadingsModel):
    esp_code: str = Field(..., min_length=1)
    equipment_name: Optional[str] = None
    equipment_type: Optional[str] = None
    inspection_date: date
    month: int = Field(..., ge=1, le=12)
    done_by: Optional[str] = None
    mcc_forced_cooling_fan_temp: Optional[str] = None
    transformers: List[EspTransformerInput] = Field(default_factory=list)
    remarks: Optional[str] = None


class EspSessionUpdate(ReadingsModel):
    esp_code: Optional[str] = None
    inspection_date: Optional[date] = None
    month: Optional[int] = Field(default=None, ge=1, le=12)
    done_by: Optional[str] = None
    mcc_forced_cooling_fan_temp: Optional[str] = None
    transformers: Optional[List[EspTransformerInput]] = None
    remarks: Optional[str] = None


class EspStepsReplace(BaseModel):
    session_id: int
    transformer_records: List[EspStepInput]


class EspTransformerRecord(RecordModel):
    id: int
    session_id: int
    transformer_no: str
    step: int
    mccb_ic_r_phase: Optional[float] = None
    mccb_ic_b_phase: Optional[float] = None
    mccb_c_og1: Optional[float] = None
    mccb_c_og2: Optional[float] = None
    mccb_body_temp: Optional[float] = None
    kv_ma: Optional[str] = None
    sp_min: Optional[str] = None
    scr_cooling_fins_temp: Optional[float] = None
    scr_cooling_fan: Optional[str] = None
    panel_exhaust_fan: Optional[str] = None
    mcc_forced_cooling_fan_temp: Optional[str] = None
    rdi68: Optional[str] = None
    rdi69: Optional[str] = None
    rdi70: Optional[str] = None
    rdi51: Optional[str] = None
    rdi52: Optional[str] = None
    rdi53: Optional[str] = None
    remark: Optional[str] = None


class EspSession(RecordModel):
    id: int
    esp_code: str
    inspection_date: date
    month: int
    done_by: Optional[str] = None
    step: int
    is_completed: bool
    mcc_forced_cooling_fan_temp: Optional[str] = None
    remarks: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    transformers: List[EspTransformerRecord] = Field(default_factory=list)


# LRS sessions ---------------------------------------------------------------


class TemperatureStatus(str, Enum):
    normal = "Normal"
    warning = "Warning"
    critical = "Critical"


class LrsTemperatureInput(BaseModel):
    point: str = Field(..., min_length=1)
    description: str = ""
    temperature: float
    status: TemperatureStatus = TemperatureStatus.normal
    inspector: Optional[str] = None
    remark: Optional[str] = None


class LrsSessionCreate(BaseModel):
    tag_number: str = Field(..., min_length=1)
    equipment_name: str = Field(..., min_length=1)
    equipment_type: str = "Liquid Resistor Starter"
    number_of_points: int = Field(..., ge=1)
    temperature_records: List[LrsTemperatureInput] = Field(default_factory=list)
    preview_image: Optional[str] = None
    images: List[str] = Field(default_factory=list)
    inspector: Optional[str] = None


class LrsSessionUpdate(BaseModel):
    tag_number: Optional[str] = None
    equipment_name: Optional[str] = None
    equipment_type: Optional[str] = None
    number_of_points: Optional[int] = Field(default=None, ge=1)
    temperature_records: Optional[List[LrsTemperatureInput]] = None
    preview_image: Optional[str] = None
    inspector: Optional[str] = None


class LrsTemperatureRecord(RecordModel):
    id: int
    session_id: int
    point: str
    description: str
    temperature: float
    status: TemperatureStatus
    inspector: Optional[str] = None
    remark: Optional[str] = None


class LrsSession(RecordModel):
    id: int
    tag_number: str
    equipment_name: str
    equipment_type: str
    number_of_points: int
    preview_image: Optional[str] = None
    images: List[str] = Field(default_factory=list)
    inspector: Optional[str] = None
    session_date: datetime
    temperature_records: List[LrsTemperatureRecord] = Field(default_factory=list)


class LrsTemperatureStats(BaseModel):
    total: int = Field(..., ge=0)
    normal: int = 0
    warning: int = 0
    critical: int = 0
    average_temperature: float = 0.0
    max_temperature: float = 0.0
    min_temperature: float = 0.0


# Equipment aggregates -------------------------------------------------------


class EquipmentDetail(EquipmentSummary):
    carbon_brush_records: List[CarbonBrushRecord] = Field(default_factory=list)
    winding_resistance_records: List[WindingResistanceRecord] = Field(default_factory=list)


class EquipmentRecords(BaseModel):
    carbon_brush_records: List[CarbonBrushRecord] = Field(default_factory=list)
    winding_resistance_records: List[WindingResistanceRecord] = Field(default_factory=list)


class ForecastPayload(BaseModel):
    """Remaining brush life estimate exposed via the API."""

    wear_rate_per_month: float
    months_remaining: float = Field(..., ge=0)
    predicted_date: datetime
    confidence: float = Field(..., ge=0, le=100)


class ForecastResponse(BaseModel):
    tag_no: str
    forecast: Optional[ForecastPayload] = None
    detail: Optional[str] = None


class DashboardStats(BaseModel):
    system_uptime: str
    efficiency_improvement: str
    cost_reduction: str
    downtime_reduction: str
    total_equipment: int
    total_inspections: int
    recent_inspections: int
    critical_equipment: int
    last_updated: datetime


# Integrations ---------------------------------------------------------------


class SignRequest(BaseModel):
    params_to_sign: Dict[str, Any]


class SignResponse(BaseModel):
    signature: str


class UploadConfig(BaseModel):
    cloud_name: Optional[str] = None
    api_key: Optional[str] = None
    upload_preset: Optional[str] = None


class NotificationType(str, Enum):
    winding_resistance = "winding-resistance"
    carbon_brush = "carbon-brush"
    thermography = "thermography"
    basic = "basic"


class EmailRequest(BaseModel):
    type: str
    data: Dict[str, Any] = Field(default_factory=dict)
    recipients: Optional[List[str]] = None
    subject: Optional[str] = None
    message: Optional[str] = None
    html: Optional[str] = None


class EmailResult(BaseModel):
    success: bool
    recipients: List[str] = Field(default_factory=list)
    invalid_recipients: List[str] = Field(default_factory=list)
    attachment: Optional[str] = None


class EmailConfig(BaseModel):
    configured: bool
    missing: List[str] = Field(default_factory=list)
    available_types: List[str] = Field(default_factory=list)
