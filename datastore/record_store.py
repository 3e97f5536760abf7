"""Relational record store for equipment and inspection data."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Set, Tuple, Type, TypeVar

from sqlalchemy import create_engine, event, func, select
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.schemas import (
    CarbonBrushCreate,
    CarbonBrushRecord,
    Equipment,
    EquipmentCreate,
    EquipmentDetail,
    EquipmentRecords,
    EquipmentSummary,
    EquipmentUpdate,
    EspSession,
    EspTransformerRecord,
    LrsSession,
    LrsTemperatureInput,
    LrsTemperatureRecord,
    LrsTemperatureStats,
    TemperatureStatus,
    ThermographyCreate,
    ThermographyRecord,
    WindingResistanceCreate,
    WindingResistanceRecord,
)
from datastore.db_models import (
    Base,
    CarbonBrushRow,
    EquipmentRow,
    EspSessionRow,
    EspTransformerRow,
    LrsSessionRow,
    LrsTemperatureRow,
    ThermographyRow,
    WindingResistanceRow,
)
from datastore.errors import RecordConflict, RecordInvalid, RecordNotFound, StoreUnavailable

logger = logging.getLogger(__name__)

RowT = TypeVar("RowT", bound=Base)

DEFAULT_LOCATION = "Main Plant"
RECENT_RECORDS_PER_EQUIPMENT = 5
UNIQUE_VIOLATION_PGCODE = "23505"


def _is_unique_violation(exc: IntegrityError) -> bool:
    if getattr(exc.orig, "pgcode", None) == UNIQUE_VIOLATION_PGCODE:
        return True
    message = str(exc.orig).lower()
    return "unique" in message or "duplicate" in message


def _duplicate_tag(tag_no: Optional[str]) -> str:
    return f"Equipment with tag {tag_no!r} already exists."


class RecordStore:
    """Unit-of-work wrapper around a SQLAlchemy session factory.

    Every public method runs in its own session and returns pydantic
    schemas, so callers never hold live ORM state. Failures surface as
    :class:`RecordNotFound`, :class:`RecordConflict`, :class:`RecordInvalid`
    or :class:`StoreUnavailable`.
    """

    def __init__(self, session_factory: sessionmaker, engine: Optional[Engine] = None) -> None:
        self._session_factory = session_factory
        self.engine = engine

    @contextmanager
    def _session(self, conflict_message: str = "Record already exists.") -> Iterator[Session]:
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except IntegrityError as exc:
            session.rollback()
            logger.warning("Record store write rejected", extra={"reason": str(exc.orig)})
            if _is_unique_violation(exc):
                raise RecordConflict(conflict_message) from exc
            raise RecordInvalid("Record violates a database constraint.") from exc
        except SQLAlchemyError as exc:
            session.rollback()
            logger.error("Record store operation failed", extra={"reason": type(exc).__name__})
            raise StoreUnavailable("Record store is unavailable.") from exc
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    @staticmethod
    def _require(session: Session, model: Type[RowT], record_id: int, label: str) -> RowT:
        row = session.get(model, record_id)
        if row is None:
            raise RecordNotFound(f"{label} {record_id} not found.")
        return row

    @staticmethod
    def _assign(row: Base, values: Mapping[str, Any]) -> None:
        columns = row.__table__.columns
        for key, value in values.items():
            if value is None and key in columns and not columns[key].nullable:
                raise RecordInvalid(f"{key} cannot be null.")
            setattr(row, key, value)

    def dispose(self) -> None:
        if self.engine is not None:
            self.engine.dispose()

    # Equipment --------------------------------------------------------------

    def list_equipment(self) -> List[EquipmentSummary]:
        with self._session() as session:
            rows = session.scalars(select(EquipmentRow).order_by(EquipmentRow.tag_no)).all()
            brush = self._counts_by(session, CarbonBrushRow.tag_no)
            winding = self._counts_by(session, WindingResistanceRow.motor_no)
            thermo = self._counts_by(session, ThermographyRow.transformer_no)
            esp = self._counts_by(session, EspSessionRow.esp_code)
            lrs = self._counts_by(session, LrsSessionRow.tag_number)
            return [
                EquipmentSummary.model_validate(row).model_copy(
                    update={
                        "carbon_brush_count": brush.get(row.tag_no, 0),
                        "winding_resistance_count": winding.get(row.tag_no, 0),
                        "thermography_records_count": thermo.get(row.tag_no, 0)
                        + esp.get(row.tag_no, 0)
                        + lrs.get(row.tag_no, 0),
                    }
                )
                for row in rows
            ]

    @staticmethod
    def _counts_by(session: Session, column: Any) -> Dict[str, int]:
        return {key: count for key, count in session.execute(select(column, func.count()).group_by(column))}

    def get_equipment(self, equipment_id: int) -> EquipmentDetail:
        with self._session() as session:
            row = self._require(session, EquipmentRow, equipment_id, "Equipment")
            brush = session.scalars(
                select(CarbonBrushRow)
                .where(CarbonBrushRow.tag_no == row.tag_no)
                .order_by(CarbonBrushRow.inspection_date.desc(), CarbonBrushRow.id.desc())
                .limit(RECENT_RECORDS_PER_EQUIPMENT)
            ).all()
            winding = session.scalars(
                select(WindingResistanceRow)
                .where(WindingResistanceRow.motor_no == row.tag_no)
                .order_by(WindingResistanceRow.inspection_date.desc(), WindingResistanceRow.id.desc())
                .limit(RECENT_RECORDS_PER_EQUIPMENT)
            ).all()
            brush_count = session.scalar(
                select(func.count()).select_from(CarbonBrushRow).where(CarbonBrushRow.tag_no == row.tag_no)
            )
            winding_count = session.scalar(
                select(func.count())
                .select_from(WindingResistanceRow)
                .where(WindingResistanceRow.motor_no == row.tag_no)
            )
            return EquipmentDetail.model_validate(row).model_copy(
                update={
                    "carbon_brush_records": [CarbonBrushRecord.model_validate(item) for item in brush],
                    "winding_resistance_records": [
                        WindingResistanceRecord.model_validate(item) for item in winding
                    ],
                    "carbon_brush_count": brush_count or 0,
                    "winding_resistance_count": winding_count or 0,
                }
            )

    def get_equipment_by_tag(self, tag_no: str) -> Equipment:
        with self._session() as session:
            row = session.scalar(select(EquipmentRow).where(EquipmentRow.tag_no == tag_no))
            if row is None:
                raise RecordNotFound(f"Equipment with tag {tag_no!r} not found.")
            return Equipment.model_validate(row)

    def create_equipment(self, data: EquipmentCreate) -> Equipment:
        if not data.tag_no:
            raise ValueError("Tag number is required.")
        with self._session(_duplicate_tag(data.tag_no)) as session:
            row = EquipmentRow(
                tag_no=data.tag_no,
                equipment_name=data.equipment_name or data.tag_no,
                equipment_type=data.equipment_type or "General",
                location=data.location or "",
                installation_date=data.installation_date,
            )
            session.add(row)
            session.flush()
            logger.info("Created equipment", extra={"equipment_id": row.id, "tag_no": row.tag_no})
            return Equipment.model_validate(row)

    def ensure_equipment(
        self,
        tag_no: str,
        equipment_name: str,
        equipment_type: str,
        location: str = DEFAULT_LOCATION,
        rename: bool = False,
    ) -> Tuple[Equipment, bool]:
        """Return the equipment for ``tag_no``, creating it when missing.

        The boolean is ``True`` when a new row was inserted.
        """
        with self._session(_duplicate_tag(tag_no)) as session:
            row = session.scalar(select(EquipmentRow).where(EquipmentRow.tag_no == tag_no))
            created = row is None
            if row is None:
                row = EquipmentRow(
                    tag_no=tag_no,
                    equipment_name=equipment_name,
                    equipment_type=equipment_type,
                    location=location,
                )
                session.add(row)
                logger.info("Auto-created equipment", extra={"tag_no": tag_no, "record_type": equipment_type})
            elif rename and equipment_name:
                row.equipment_name = equipment_name
            session.flush()
            return Equipment.model_validate(row), created

    def update_equipment(self, equipment_id: int, data: EquipmentUpdate) -> Equipment:
        with self._session(_duplicate_tag(data.tag_no)) as session:
            row = self._require(session, EquipmentRow, equipment_id, "Equipment")
            self._assign(row, data.model_dump(exclude_unset=True))
            session.flush()
            return Equipment.model_validate(row)

    def set_qr_code(self, equipment_id: int, qr_code: str) -> Equipment:
        with self._session() as session:
            row = self._require(session, EquipmentRow, equipment_id, "Equipment")
            row.qr_code = qr_code
            session.flush()
            return Equipment.model_validate(row)

    def delete_equipment(self, equipment_id: int) -> None:
        with self._session() as session:
            row = self._require(session, EquipmentRow, equipment_id, "Equipment")
            session.delete(row)

    def equipment_records(self, equipment_id: int) -> EquipmentRecords:
        with self._session() as session:
            row = self._require(session, EquipmentRow, equipment_id, "Equipment")
            brush = session.scalars(
                select(CarbonBrushRow)
                .where(CarbonBrushRow.tag_no == row.tag_no)
                .order_by(CarbonBrushRow.inspection_date.desc(), CarbonBrushRow.id.desc())
            ).all()
            winding = session.scalars(
                select(WindingResistanceRow)
                .where(WindingResistanceRow.motor_no == row.tag_no)
                .order_by(WindingResistanceRow.inspection_date.desc(), WindingResistanceRow.id.desc())
            ).all()
            return EquipmentRecords(
                carbon_brush_records=[CarbonBrushRecord.model_validate(item) for item in brush],
                winding_resistance_records=[WindingResistanceRecord.model_validate(item) for item in winding],
            )

    def count_equipment(self) -> int:
        with self._session() as session:
            return session.scalar(select(func.count()).select_from(EquipmentRow)) or 0

    # Carbon brush -----------------------------------------------------------

    def list_carbon_brush(self, tag_no: Optional[str] = None, limit: int = 10) -> List[CarbonBrushRecord]:
        stmt = select(CarbonBrushRow).order_by(CarbonBrushRow.created_at.desc(), CarbonBrushRow.id.desc())
        if tag_no:
            stmt = stmt.where(CarbonBrushRow.tag_no == tag_no)
        with self._session() as session:
            rows = session.scalars(stmt.limit(limit)).all()
            return [CarbonBrushRecord.model_validate(row) for row in rows]

    def get_carbon_brush(self, record_id: int) -> CarbonBrushRecord:
        with self._session() as session:
            return CarbonBrushRecord.model_validate(
                self._require(session, CarbonBrushRow, record_id, "Carbon brush record")
            )

    def create_carbon_brush(self, data: CarbonBrushCreate) -> CarbonBrushRecord:
        with self._session() as session:
            row = CarbonBrushRow(**data.model_dump())
            session.add(row)
            session.flush()
            return CarbonBrushRecord.model_validate(row)

    def update_carbon_brush(self, record_id: int, data: CarbonBrushCreate) -> CarbonBrushRecord:
        with self._session() as session:
            row = self._require(session, CarbonBrushRow, record_id, "Carbon brush record")
            self._assign(row, data.model_dump())
            session.flush()
            return CarbonBrushRecord.model_validate(row)

    def delete_carbon_brush(self, record_id: int) -> None:
        with self._session() as session:
            session.delete(self._require(session, CarbonBrushRow, record_id, "Carbon brush record"))

    def carbon_brush_history(self, tag_no: str) -> List[CarbonBrushRecord]:
        """All carbon brush inspections for ``tag_no``, oldest first."""
        with self._session() as session:
            rows = session.scalars(
                select(CarbonBrushRow)
                .where(CarbonBrushRow.tag_no == tag_no)
                .order_by(CarbonBrushRow.inspection_date, CarbonBrushRow.id)
            ).all()
            return [CarbonBrushRecord.model_validate(row) for row in rows]

    def count_carbon_brush(self, since: Optional[datetime] = None) -> int:
        stmt = select(func.count()).select_from(CarbonBrushRow)
        if since is not None:
            stmt = stmt.where(CarbonBrushRow.created_at >= since)
        with self._session() as session:
            return session.scalar(stmt) or 0

    def latest_carbon_brush_per_tag(self) -> List[CarbonBrushRecord]:
        with self._session() as session:
            rows = session.scalars(
                select(CarbonBrushRow).order_by(CarbonBrushRow.created_at.desc(), CarbonBrushRow.id.desc())
            ).all()
            seen: Set[str] = set()
            latest: List[CarbonBrushRecord] = []
            for row in rows:
                if row.tag_no in seen:
                    continue
                seen.add(row.tag_no)
                latest.append(CarbonBrushRecord.model_validate(row))
            return latest

    # Winding resistance -----------------------------------------------------

    def list_winding_resistance(
        self, motor_no: Optional[str] = None, limit: int = 10
    ) -> List[WindingResistanceRecord]:
        stmt = select(WindingResistanceRow).order_by(
            WindingResistanceRow.created_at.desc(), WindingResistanceRow.id.desc()
        )
        if motor_no:
            stmt = stmt.where(WindingResistanceRow.motor_no == motor_no)
        with self._session() as session:
            rows = session.scalars(stmt.limit(limit)).all()
            return [WindingResistanceRecord.model_validate(row) for row in rows]

    def get_winding_resistance(self, record_id: int) -> WindingResistanceRecord:
        with self._session() as session:
            return WindingResistanceRecord.model_validate(
                self._require(session, WindingResistanceRow, record_id, "Winding resistance record")
            )

    def create_winding_resistance(self, data: WindingResistanceCreate) -> WindingResistanceRecord:
        with self._session() as session:
            row = WindingResistanceRow(**data.model_dump(exclude={"equipment_name"}))
            session.add(row)
            session.flush()
            return WindingResistanceRecord.model_validate(row)

    def update_winding_resistance(
        self, record_id: int, data: WindingResistanceCreate
    ) -> WindingResistanceRecord:
        with self._session() as session:
            row = self._require(session, WindingResistanceRow, record_id, "Winding resistance record")
            self._assign(row, data.model_dump(exclude={"equipment_name"}))
            session.flush()
            return WindingResistanceRecord.model_validate(row)

    def delete_winding_resistance(self, record_id: int) -> None:
        with self._session() as session:
            session.delete(self._require(session, WindingResistanceRow, record_id, "Winding resistance record"))

    def count_winding_resistance(self, since: Optional[datetime] = None) -> int:
        stmt = select(func.count()).select_from(WindingResistanceRow)
        if since is not None:
            stmt = stmt.where(WindingResistanceRow.created_at >= since)
        with self._session() as session:
            return session.scalar(stmt) or 0

    # Thermography -----------------------------------------------------------

    def list_thermography(self) -> List[ThermographyRecord]:
        with self._session() as session:
            rows = session.scalars(
                select(ThermographyRow).order_by(ThermographyRow.created_at.desc(), ThermographyRow.id.desc())
            ).all()
            return [ThermographyRecord.model_validate(row) for row in rows]

    def get_thermography(self, record_id: int) -> ThermographyRecord:
        with self._session() as session:
            return ThermographyRecord.model_validate(
                self._require(session, ThermographyRow, record_id, "Thermography record")
            )

    def create_thermography(self, data: ThermographyCreate) -> ThermographyRecord:
        with self._session() as session:
            row = ThermographyRow(**data.model_dump())
            session.add(row)
            session.flush()
            return ThermographyRecord.model_validate(row)

    def update_thermography(self, record_id: int, data: ThermographyCreate) -> ThermographyRecord:
        with self._session() as session:
            row = self._require(session, ThermographyRow, record_id, "Thermography record")
            self._assign(row, data.model_dump())
            session.flush()
            return ThermographyRecord.model_validate(row)

    def delete_thermography(self, record_id: int) -> None:
        with self._session() as session:
            session.delete(self._require(session, ThermographyRow, record_id, "Thermography record"))

    # ESP sessions -----------------------------------------------------------

    def list_esp_sessions(self, esp_code: Optional[str] = None) -> List[EspSession]:
        stmt = select(EspSessionRow).order_by(EspSessionRow.created_at.desc(), EspSessionRow.id.desc())
        if esp_code:
            stmt = stmt.where(EspSessionRow.esp_code == esp_code)
        with self._session() as session:
            return [EspSession.model_validate(row) for row in session.scalars(stmt).all()]

    def get_esp_session(self, session_id: int) -> EspSession:
        with self._session() as session:
            return EspSession.model_validate(self._require(session, EspSessionRow, session_id, "ESP session"))

    def create_esp_session(
        self, fields: Mapping[str, Any], transformers: Sequence[Mapping[str, Any]]
    ) -> EspSession:
        with self._session() as session:
            row = EspSessionRow(**fields)
            row.transformers = [EspTransformerRow(**values) for values in transformers]
            session.add(row)
            session.flush()
            return EspSession.model_validate(row)

    def update_esp_session(
        self,
        session_id: int,
        fields: Mapping[str, Any],
        transformers: Optional[Sequence[Mapping[str, Any]]] = None,
    ) -> EspSession:
        """Apply ``fields``; a non-``None`` ``transformers`` replaces every step row."""
        with self._session() as session:
            row = self._require(session, EspSessionRow, session_id, "ESP session")
            self._assign(row, fields)
            if transformers is not None:
                row.transformers.clear()
                session.flush()
                row.transformers.extend(EspTransformerRow(**values) for values in transformers)
            session.flush()
            session.refresh(row)
            return EspSession.model_validate(row)

    def delete_esp_session(self, session_id: int) -> None:
        with self._session() as session:
            session.delete(self._require(session, EspSessionRow, session_id, "ESP session"))

    def list_esp_steps(self, session_id: int) -> List[EspTransformerRecord]:
        with self._session() as session:
            rows = session.scalars(
                select(EspTransformerRow)
                .where(EspTransformerRow.session_id == session_id)
                .order_by(EspTransformerRow.step)
            ).all()
            return [EspTransformerRecord.model_validate(row) for row in rows]

    # LRS sessions -----------------------------------------------------------

    def list_lrs_sessions(self) -> List[LrsSession]:
        with self._session() as session:
            rows = session.scalars(
                select(LrsSessionRow).order_by(LrsSessionRow.session_date.desc(), LrsSessionRow.id.desc())
            ).all()
            return [LrsSession.model_validate(row) for row in rows]

    def get_lrs_session(self, session_id: int) -> LrsSession:
        with self._session() as session:
            return LrsSession.model_validate(self._require(session, LrsSessionRow, session_id, "LRS session"))

    def create_lrs_session(
        self, fields: Mapping[str, Any], records: Iterable[LrsTemperatureInput]
    ) -> LrsSession:
        with self._session() as session:
            row = LrsSessionRow(**fields)
            row.temperature_records = [_temperature_row(record) for record in records]
            session.add(row)
            session.flush()
            return LrsSession.model_validate(row)

    def update_lrs_session(
        self,
        session_id: int,
        fields: Mapping[str, Any],
        new_records: Iterable[LrsTemperatureInput] = (),
    ) -> LrsSession:
        """Apply ``fields`` and append ``new_records``; existing readings are kept."""
        with self._session() as session:
            row = self._require(session, LrsSessionRow, session_id, "LRS session")
            self._assign(row, fields)
            row.temperature_records.extend(_temperature_row(record) for record in new_records)
            session.flush()
            return LrsSession.model_validate(row)

    def delete_lrs_session(self, session_id: int) -> None:
        with self._session() as session:
            session.delete(self._require(session, LrsSessionRow, session_id, "LRS session"))

    def add_lrs_temperature_record(self, session_id: int, record: LrsTemperatureInput) -> LrsTemperatureRecord:
        with self._session() as session:
            parent = self._require(session, LrsSessionRow, session_id, "LRS session")
            row = _temperature_row(record)
            parent.temperature_records.append(row)
            session.flush()
            return LrsTemperatureRecord.model_validate(row)

    def list_lrs_temperature_records(self, session_id: int) -> List[LrsTemperatureRecord]:
        with self._session() as session:
            self._require(session, LrsSessionRow, session_id, "LRS session")
            rows = session.scalars(
                select(LrsTemperatureRow)
                .where(LrsTemperatureRow.session_id == session_id)
                .order_by(LrsTemperatureRow.id)
            ).all()
            return [LrsTemperatureRecord.model_validate(row) for row in rows]

    def lrs_temperature_stats(self, session_id: int) -> LrsTemperatureStats:
        records = self.list_lrs_temperature_records(session_id)
        if not records:
            return LrsTemperatureStats(total=0)
        temperatures = [record.temperature for record in records]
        return LrsTemperatureStats(
            total=len(records),
            normal=sum(1 for record in records if record.status is TemperatureStatus.normal),
            warning=sum(1 for record in records if record.status is TemperatureStatus.warning),
            critical=sum(1 for record in records if record.status is TemperatureStatus.critical),
            average_temperature=sum(temperatures) / len(temperatures),
            max_temperature=max(temperatures),
            min_temperature=min(temperatures),
        )


def _temperature_row(record: LrsTemperatureInput) -> LrsTemperatureRow:
    values = record.model_dump()
    values["status"] = record.status.value
    return LrsTemperatureRow(**values)


def _enable_sqlite_foreign_keys(dbapi_connection: Any, _record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_record_store(database_url: str) -> RecordStore:
    """Create the engine, ensure tables exist and wrap them in a store."""
    engine_kwargs: Dict[str, Any] = {"pool_pre_ping": True}
    is_sqlite = database_url.startswith("sqlite")
    if is_sqlite:
        engine_kwargs["connect_args"] = {"check_same_thread": False}
        if database_url in {"sqlite://", "sqlite:///:memory:"}:
            engine_kwargs["poolclass"] = StaticPool
        else:
            _ensure_sqlite_directory(database_url)

    engine = create_engine(database_url, **engine_kwargs)
    if is_sqlite:
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    try:
        Base.metadata.create_all(bind=engine)
    except SQLAlchemyError as exc:
        engine.dispose()
        raise StoreUnavailable(f"Could not initialise database: {exc}") from exc

    factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    return RecordStore(factory, engine=engine)


def _ensure_sqlite_directory(database_url: str) -> None:
    database = make_url(database_url).database
    if database:
        Path(database).parent.mkdir(parents=True, exist_ok=True)

