"""SQLAlchemy table definitions for equipment and inspection records."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import List, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class EquipmentRow(Base):
    __tablename__ = "equipment_master"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tag_no: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    equipment_name: Mapped[str] = mapped_column(String(255), nullable=False)
    equipment_type: Mapped[str] = mapped_column(String(128), nullable=False)
    location: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    installation_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    qr_code: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    carbon_brush_records: Mapped[List["CarbonBrushRow"]] = relationship(
        back_populates="equipment", cascade="all, delete-orphan", passive_deletes=True
    )
    winding_resistance_records: Mapped[List["WindingResistanceRow"]] = relationship(
        back_populates="equipment", cascade="all, delete-orphan", passive_deletes=True
    )


class CarbonBrushRow(Base):
    __tablename__ = "carbon_brush_records"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tag_no: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("equipment_master.tag_no", ondelete="CASCADE", onupdate="CASCADE"),
        nullable=False,
    )
    equipment_name: Mapped[str] = mapped_column(String(255), nullable=False)
    brush_type: Mapped[str] = mapped_column(String(64), nullable=False)
    inspection_date: Mapped[date] = mapped_column(Date, nullable=False)
    work_order_no: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    done_by: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    measurements: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    slip_ring_thickness: Mapped[float] = mapped_column(Float, nullable=False)
    slip_ring_ir: Mapped[float] = mapped_column(Float, nullable=False)
    remarks: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    equipment: Mapped[EquipmentRow] = relationship(back_populates="carbon_brush_records")

    __table_args__ = (
        Index("ix_carbon_brush_tag_inspection", "tag_no", "inspection_date"),
        Index("ix_carbon_brush_created", "created_at"),
    )


class WindingResistanceRow(Base):
    __tablename__ = "winding_resistance_records"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    motor_no: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("equipment_master.tag_no", ondelete="CASCADE", onupdate="CASCADE"),
        nullable=False,
    )
    inspection_date: Mapped[date] = mapped_column(Date, nullable=False)
    done_by: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    winding_resistance: Mapped[dict] = mapped_column(JSON, nullable=False)
    ir_values: Mapped[dict] = mapped_column(JSON, nullable=False)
    dar_values: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    polarization_index: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    remarks: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    equipment: Mapped[EquipmentRow] = relationship(back_populates="winding_resistance_records")

    __table_args__ = (Index("ix_winding_motor_inspection", "motor_no", "inspection_date"),)


class ThermographyRow(Base):
    __tablename__ = "thermography_records"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    transformer_no: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    equipment_type: Mapped[str] = mapped_column(String(64), nullable=False, default="ESP")
    inspection_date: Mapped[date] = mapped_column(Date, nullable=False)
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    done_by: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    mccb_ic_r_phase: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    mccb_ic_b_phase: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    mccb_c_og1: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    mccb_c_og2: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    mccb_body_temp: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    kv_ma: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    sp_min: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    scr_cooling_fins_temp: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    scr_cooling_fan: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    panel_exhaust_fan: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    mcc_forced_cooling_fan_temp: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    rdi68: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    rdi69: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    rdi70: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    remarks: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)


class EspSessionRow(Base):
    __tablename__ = "esp_thermography_sessions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    esp_code: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    inspection_date: Mapped[date] = mapped_column(Date, nullable=False)
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    done_by: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    step: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    is_completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    mcc_forced_cooling_fan_temp: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    remarks: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    transformers: Mapped[List["EspTransformerRow"]] = relationship(
        back_populates="session",
        cascade="all, delete-orphan",
        order_by="EspTransformerRow.step",
    )


class EspTransformerRow(Base):
    __tablename__ = "esp_transformer_records"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    session_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("esp_thermography_sessions.id", ondelete="CASCADE"), nullable=False
    )
    transformer_no: Mapped[str] = mapped_column(String(16), nullable=False)
    step: Mapped[int] = mapped_column(Integer, nullable=False)
    mccb_ic_r_phase: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    mccb_ic_b_phase: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    mccb_c_og1: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    mccb_c_og2: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    mccb_body_temp: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    kv_ma: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    sp_min: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    scr_cooling_fins_temp: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    scr_cooling_fan: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    panel_exhaust_fan: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    mcc_forced_cooling_fan_temp: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    rdi68: Mapped[Optional[str]] = mapped_column(String(8), nullable=True)
    rdi69: Mapped[Optional[str]] = mapped_column(String(8), nullable=True)
    rdi70: Mapped[Optional[str]] = mapped_column(String(8), nullable=True)
    rdi51: Mapped[Optional[str]] = mapped_column(String(8), nullable=True)
    rdi52: Mapped[Optional[str]] = mapped_column(String(8), nullable=True)
    rdi53: Mapped[Optional[str]] = mapped_column(String(8), nullable=True)
    remark: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    session: Mapped[EspSessionRow] = relationship(back_populates="transformers")

    __table_args__ = (Index("ix_esp_transformer_session_step", "session_id", "step"),)


class LrsSessionRow(Base):
    __tablename__ = "lrs_thermography_sessions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tag_number: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    equipment_name: Mapped[str] = mapped_column(String(255), nullable=False)
    equipment_type: Mapped[str] = mapped_column(String(128), nullable=False)
    number_of_points: Mapped[int] = mapped_column(Integer, nullable=False)
    preview_image: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    images: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    inspector: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    session_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)

    temperature_records: Mapped[List["LrsTemperatureRow"]] = relationship(
        back_populates="session",
        cascade="all, delete-orphan",
        order_by="LrsTemperatureRow.id",
    )


class LrsTemperatureRow(Base):
    __tablename__ = "lrs_temperature_records"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    session_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("lrs_thermography_sessions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    point: Mapped[str] = mapped_column(String(64), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    temperature: Mapped[float] = mapped_column(Float, nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="Normal")
    inspector: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    remark: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    session: Mapped[LrsSessionRow] = relationship(back_populates="temperature_records")
