"""Routes for single-shot inspection records: carbon brush, winding resistance, thermography."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from app.dependencies import get_service, store_errors
from app.schemas import (
    CarbonBrushCreate,
    CarbonBrushRecord,
    ForecastResponse,
    MessageResponse,
    ThermographyCreate,
    ThermographyRecord,
    WindingResistanceCreate,
    WindingResistanceRecord,
)
from services.maintenance import MaintenanceService

router = APIRouter()


# Carbon brush ---------------------------------------------------------------


@router.get("/carbon-brush", response_model=List[CarbonBrushRecord], tags=["carbon-brush"])
def list_carbon_brush(
    tag_no: Optional[str] = Query(default=None),
    limit: Optional[int] = Query(default=None, ge=1),
    service: MaintenanceService = Depends(get_service),
) -> List[CarbonBrushRecord]:
    with store_errors():
        return service.list_carbon_brush(tag_no=tag_no, limit=limit)


@router.post("/carbon-brush", response_model=CarbonBrushRecord, tags=["carbon-brush"])
def create_carbon_brush(
    payload: CarbonBrushCreate,
    service: MaintenanceService = Depends(get_service),
) -> CarbonBrushRecord:
    with store_errors():
        return service.create_carbon_brush(payload)


@router.get(
    "/carbon-brush/forecast",
    response_model=ForecastResponse,
    tags=["carbon-brush"],
    summary="Estimate remaining brush life for a tag.",
)
def carbon_brush_forecast(
    tag_no: str = Query(..., min_length=1),
    service: MaintenanceService = Depends(get_service),
) -> ForecastResponse:
    with store_errors():
        return service.forecast_response(tag_no)


@router.get("/carbon-brush/{record_id}", response_model=CarbonBrushRecord, tags=["carbon-brush"])
def get_carbon_brush(record_id: int, service: MaintenanceService = Depends(get_service)) -> CarbonBrushRecord:
    with store_errors():
        return service.store.get_carbon_brush(record_id)


@router.put("/carbon-brush/{record_id}", response_model=CarbonBrushRecord, tags=["carbon-brush"])
def update_carbon_brush(
    record_id: int,
    payload: CarbonBrushCreate,
    service: MaintenanceService = Depends(get_service),
) -> CarbonBrushRecord:
    with store_errors():
        return service.store.update_carbon_brush(record_id, payload)


@router.delete("/carbon-brush/{record_id}", response_model=MessageResponse, tags=["carbon-brush"])
def delete_carbon_brush(record_id: int, service: MaintenanceService = Depends(get_service)) -> MessageResponse:
    with store_errors():
        service.store.delete_carbon_brush(record_id)
    return MessageResponse(message="Record deleted successfully")


# Winding resistance ---------------------------------------------------------


@router.get("/winding-resistance", response_model=List[WindingResistanceRecord], tags=["winding-resistance"])
def list_winding_resistance(
    motor_no: Optional[str] = Query(default=None),
    limit: Optional[int] = Query(default=None, ge=1),
    service: MaintenanceService = Depends(get_service),
) -> List[WindingResistanceRecord]:
    with store_errors():
        return service.list_winding_resistance(motor_no=motor_no, limit=limit)


@router.post(
    "/winding-resistance",
    response_model=WindingResistanceRecord,
    status_code=status.HTTP_201_CREATED,
    tags=["winding-resistance"],
)
def create_winding_resistance(
    payload: WindingResistanceCreate,
    service: MaintenanceService = Depends(get_service),
) -> WindingResistanceRecord:
    with store_errors():
        return service.create_winding_resistance(payload)


@router.get(
    "/winding-resistance/{record_id}", response_model=WindingResistanceRecord, tags=["winding-resistance"]
)
def get_winding_resistance(
    record_id: int, service: MaintenanceService = Depends(get_service)
) -> WindingResistanceRecord:
    with store_errors():
        return service.store.get_winding_resistance(record_id)


@router.put(
    "/winding-resistance/{record_id}", response_model=WindingResistanceRecord, tags=["winding-resistance"]
)
def update_winding_resistance(
    record_id: int,
    payload: WindingResistanceCreate,
    service: MaintenanceService = Depends(get_service),
) -> WindingResistanceRecord:
    with store_errors():
        return service.store.update_winding_resistance(record_id, payload)


@router.delete("/winding-resistance/{record_id}", response_model=MessageResponse, tags=["winding-resistance"])
def delete_winding_resistance(
    record_id: int, service: MaintenanceService = Depends(get_service)
) -> MessageResponse:
    with store_errors():
        service.store.delete_winding_resistance(record_id)
    return MessageResponse(message="Record deleted successfully")


# Thermography ---------------------------------------------------------------


@router.get("/thermography", response_model=List[ThermographyRecord], tags=["thermography"])
def list_thermography(service: MaintenanceService = Depends(get_service)) -> List[ThermographyRecord]:
    with store_errors():
        return service.store.list_thermography()


@router.post(
    "/thermography",
    response_model=ThermographyRecord,
    status_code=status.HTTP_201_CREATED,
    tags=["thermography"],
    summary="Store a thermography record and notify the maintenance team.",
)
def create_thermography(
    payload: ThermographyCreate,
    service: MaintenanceService = Depends(get_service),
) -> ThermographyRecord:
    with store_errors():
        return service.create_thermography(payload)


@router.get("/thermography/{record_id}", response_model=ThermographyRecord, tags=["thermography"])
def get_thermography(record_id: int, service: MaintenanceService = Depends(get_service)) -> ThermographyRecord:
    with store_errors():
        return service.store.get_thermography(record_id)


@router.put("/thermography/{record_id}", response_model=ThermographyRecord, tags=["thermography"])
def update_thermography(
    record_id: int,
    payload: ThermographyCreate,
    service: MaintenanceService = Depends(get_service),
) -> ThermographyRecord:
    with store_errors():
        return service.store.update_thermography(record_id, payload)


@router.delete("/thermography/{record_id}", response_model=MessageResponse, tags=["thermography"])
def delete_thermography(record_id: int, service: MaintenanceService = Depends(get_service)) -> MessageResponse:
    with store_errors():
        service.store.delete_thermography(record_id)
    return MessageResponse(message="Record deleted successfully")
