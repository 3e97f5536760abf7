"""Equipment master data routes."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from app.dependencies import get_service, store_errors
from app.schemas import (
    Equipment,
    EquipmentCreate,
    EquipmentDetail,
    EquipmentRecords,
    EquipmentSummary,
    EquipmentUpdate,
    ForecastResponse,
    MessageResponse,
    QRScanRequest,
)
from services.maintenance import MaintenanceService
from services.qr import QRGenerationError

router = APIRouter(prefix="/equipment", tags=["equipment"])


@router.get("", response_model=List[EquipmentSummary], summary="List equipment with record counts.")
def list_equipment(service: MaintenanceService = Depends(get_service)) -> List[EquipmentSummary]:
    with store_errors():
        return service.list_equipment()


@router.post(
    "",
    response_model=Equipment,
    status_code=status.HTTP_201_CREATED,
    summary="Register equipment and generate its QR label.",
)
def create_equipment(
    payload: EquipmentCreate,
    service: MaintenanceService = Depends(get_service),
) -> Equipment:
    with store_errors():
        return service.create_equipment(payload)


@router.get("/by-tag/{tag_no}", response_model=Equipment, summary="Look up equipment by tag number.")
def get_equipment_by_tag(tag_no: str, service: MaintenanceService = Depends(get_service)) -> Equipment:
    with store_errors():
        return service.get_equipment_by_tag(tag_no)


@router.post("/scan", response_model=Equipment, summary="Resolve scanned QR label text to its equipment.")
def scan_qr(payload: QRScanRequest, service: MaintenanceService = Depends(get_service)) -> Equipment:
    with store_errors():
        return service.resolve_qr(payload.data)


@router.get("/{equipment_id}", response_model=EquipmentDetail)
def get_equipment(equipment_id: int, service: MaintenanceService = Depends(get_service)) -> EquipmentDetail:
    with store_errors():
        return service.get_equipment(equipment_id)


@router.put("/{equipment_id}", response_model=Equipment)
def update_equipment(
    equipment_id: int,
    payload: EquipmentUpdate,
    service: MaintenanceService = Depends(get_service),
) -> Equipment:
    with store_errors():
        return service.update_equipment(equipment_id, payload)


@router.delete("/{equipment_id}", response_model=MessageResponse)
def delete_equipment(equipment_id: int, service: MaintenanceService = Depends(get_service)) -> MessageResponse:
    with store_errors():
        service.delete_equipment(equipment_id)
    return MessageResponse(message="Equipment deleted successfully")


@router.get(
    "/{equipment_id}/records",
    response_model=EquipmentRecords,
    summary="All carbon brush and winding resistance records for one equipment.",
)
def equipment_records(
    equipment_id: int, service: MaintenanceService = Depends(get_service)
) -> EquipmentRecords:
    with store_errors():
        return service.equipment_records(equipment_id)


@router.post("/{equipment_id}/qr", response_model=Equipment, summary="Regenerate the QR label.")
def regenerate_qr(equipment_id: int, service: MaintenanceService = Depends(get_service)) -> Equipment:
    try:
        with store_errors():
            return service.regenerate_qr(equipment_id)
    except QRGenerationError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)) from exc


@router.get(
    "/{equipment_id}/forecast",
    response_model=ForecastResponse,
    summary="Estimate remaining carbon brush life.",
)
def equipment_forecast(
    equipment_id: int, service: MaintenanceService = Depends(get_service)
) -> ForecastResponse:
    with store_errors():
        return service.equipment_forecast_response(equipment_id)
