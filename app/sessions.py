"""Routes for multi-step thermography sessions (ESP and LRS)."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from app.dependencies import get_service, store_errors
from app.schemas import (
    EspSession,
    EspSessionCreate,
    EspSessionUpdate,
    EspStepsReplace,
    EspTransformerRecord,
    LrsSession,
    LrsSessionCreate,
    LrsSessionUpdate,
    LrsTemperatureInput,
    LrsTemperatureRecord,
    LrsTemperatureStats,
    MessageResponse,
)
from services.maintenance import MaintenanceService

router = APIRouter()


# ESP ------------------------------------------------------------------------


@router.get("/esp-sessions", response_model=List[EspSession], tags=["esp"])
def list_esp_sessions(
    tag_no: Optional[str] = Query(default=None, description="Filter by ESP code."),
    service: MaintenanceService = Depends(get_service),
) -> List[EspSession]:
    with store_errors():
        return service.list_esp_sessions(tag_no)


@router.post("/esp-sessions", response_model=EspSession, status_code=status.HTTP_201_CREATED, tags=["esp"])
def create_esp_session(
    payload: EspSessionCreate,
    service: MaintenanceService = Depends(get_service),
) -> EspSession:
    with store_errors():
        return service.create_esp_session(payload)


@router.get("/esp-sessions/{session_id}", response_model=EspSession, tags=["esp"])
def get_esp_session(session_id: int, service: MaintenanceService = Depends(get_service)) -> EspSession:
    with store_errors():
        return service.store.get_esp_session(session_id)


@router.put("/esp-sessions/{session_id}", response_model=EspSession, tags=["esp"])
def update_esp_session(
    session_id: int,
    payload: EspSessionUpdate,
    service: MaintenanceService = Depends(get_service),
) -> EspSession:
    with store_errors():
        return service.update_esp_session(session_id, payload)


@router.delete("/esp-sessions/{session_id}", response_model=MessageResponse, tags=["esp"])
def delete_esp_session(session_id: int, service: MaintenanceService = Depends(get_service)) -> MessageResponse:
    with store_errors():
        service.store.delete_esp_session(session_id)
    return MessageResponse(message="ESP session deleted successfully")


@router.get("/esp-steps", response_model=List[EspTransformerRecord], tags=["esp"])
def list_esp_steps(
    session_id: int = Query(...),
    service: MaintenanceService = Depends(get_service),
) -> List[EspTransformerRecord]:
    with store_errors():
        return service.list_esp_steps(session_id)


@router.post("/esp-steps", response_model=List[EspTransformerRecord], tags=["esp"])
def replace_esp_steps(
    payload: EspStepsReplace,
    service: MaintenanceService = Depends(get_service),
) -> List[EspTransformerRecord]:
    with store_errors():
        return service.replace_esp_steps(payload)


# LRS ------------------------------------------------------------------------


@router.get("/lrs-sessions", response_model=List[LrsSession], tags=["lrs"])
def list_lrs_sessions(service: MaintenanceService = Depends(get_service)) -> List[LrsSession]:
    with store_errors():
        return service.store.list_lrs_sessions()


@router.post("/lrs-sessions", response_model=LrsSession, status_code=status.HTTP_201_CREATED, tags=["lrs"])
def create_lrs_session(
    payload: LrsSessionCreate,
    service: MaintenanceService = Depends(get_service),
) -> LrsSession:
    with store_errors():
        return service.create_lrs_session(payload)


@router.get("/lrs-sessions/{session_id}", response_model=LrsSession, tags=["lrs"])
def get_lrs_session(session_id: int, service: MaintenanceService = Depends(get_service)) -> LrsSession:
    with store_errors():
        return service.store.get_lrs_session(session_id)


@router.put("/lrs-sessions/{session_id}", response_model=LrsSession, tags=["lrs"])
def update_lrs_session(
    session_id: int,
    payload: LrsSessionUpdate,
    service: MaintenanceService = Depends(get_service),
) -> LrsSession:
    with store_errors():
        return service.update_lrs_session(session_id, payload)


@router.delete("/lrs-sessions/{session_id}", response_model=MessageResponse, tags=["lrs"])
def delete_lrs_session(session_id: int, service: MaintenanceService = Depends(get_service)) -> MessageResponse:
    with store_errors():
        service.store.delete_lrs_session(session_id)
    return MessageResponse(message="LRS session deleted successfully")


@router.get(
    "/lrs-sessions/{session_id}/temperature-records",
    response_model=List[LrsTemperatureRecord],
    tags=["lrs"],
)
def list_temperature_records(
    session_id: int, service: MaintenanceService = Depends(get_service)
) -> List[LrsTemperatureRecord]:
    with store_errors():
        return service.store.list_lrs_temperature_records(session_id)


@router.post(
    "/lrs-sessions/{session_id}/temperature-records",
    response_model=LrsTemperatureRecord,
    status_code=status.HTTP_201_CREATED,
    tags=["lrs"],
)
def add_temperature_record(
    session_id: int,
    payload: LrsTemperatureInput,
    service: MaintenanceService = Depends(get_service),
) -> LrsTemperatureRecord:
    with store_errors():
        return service.add_lrs_temperature_record(session_id, payload)


@router.get("/lrs-sessions/{session_id}/stats", response_model=LrsTemperatureStats, tags=["lrs"])
def temperature_stats(session_id: int, service: MaintenanceService = Depends(get_service)) -> LrsTemperatureStats:
    with store_errors():
        return service.lrs_temperature_stats(session_id)
