"""Single-record Excel reports attached to inspection notifications."""

from __future__ import annotations

import io
from typing import Any, List, Mapping, Sequence, Tuple

from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter

XLSX_MIME_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
DEFAULT_COLUMN_WIDTH = 15


def _number(value: Any) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


def measurement_group(data: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    """Return a measurement group, unwrapping the ``{"values": ...}`` form."""
    group = data.get(key) or {}
    if isinstance(group, Mapping) and isinstance(group.get("values"), Mapping):
        return group["values"]
    return group if isinstance(group, Mapping) else {}


def _ratio(numerator: Any, denominator: Any) -> float:
    low = _number(denominator)
    return _number(numerator) / low if low else 0.0


def _workbook_bytes(title: str, headers: Sequence[str], row: Sequence[Any], widths: Sequence[int] = ()) -> bytes:
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = title
    sheet.append(list(headers))
    sheet.append(list(row))
    for cell in sheet[1]:
        cell.font = Font(bold=True)
    for index in range(1, len(headers) + 1):
        width = widths[index - 1] if index <= len(widths) else DEFAULT_COLUMN_WIDTH
        sheet.column_dimensions[get_column_letter(index)].width = width

    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def carbon_brush_workbook(record: Mapping[str, Any]) -> bytes:
    headers: List[str] = [
        "TAG NO",
        "Equipment Name",
        "Brush Type",
        "Inspection Date",
        "Done By",
        "Work Order No",
        "Slip Ring Thickness (mm)",
        "Slip Ring IR (GΩ)",
    ]
    row: List[Any] = [
        record.get("tag_no") or "",
        record.get("equipment_name") or "",
        record.get("brush_type") or "C80X",
        str(record.get("inspection_date") or ""),
        record.get("done_by") or "",
        record.get("work_order_no") or "",
        _number(record.get("slip_ring_thickness")),
        _number(record.get("slip_ring_ir")),
    ]
    measurements = record.get("measurements") or {}
    if isinstance(measurements, Mapping):
        for position, value in measurements.items():
            headers.append(f"Brush {position} (mm)")
            row.append(value)
    headers.extend(["Status", "Remarks"])
    row.extend(["Good", record.get("remarks") or ""])
    return _workbook_bytes("Carbon Brush Report", headers, row)


_WINDING_COLUMNS: Tuple[Tuple[str, str, str], ...] = (
    ("R-Y Resistance (Ω)", "winding_resistance", "ry"),
    ("Y-B Resistance (Ω)", "winding_resistance", "yb"),
    ("R-B Resistance (Ω)", "winding_resistance", "rb"),
    ("IR UG 1min (GΩ)", "ir_values", "ug_1min"),
    ("IR VG 1min (GΩ)", "ir_values", "vg_1min"),
    ("IR WG 1min (GΩ)", "ir_values", "wg_1min"),
    ("IR UG 10min (GΩ)", "ir_values", "ug_10min"),
    ("IR VG 10min (GΩ)", "ir_values", "vg_10min"),
    ("IR WG 10min (GΩ)", "ir_values", "wg_10min"),
    ("DAR UG 30sec (GΩ)", "dar_values", "ug_30sec"),
    ("DAR VG 30sec (GΩ)", "dar_values", "vg_30sec"),
    ("DAR WG 30sec (GΩ)", "dar_values", "wg_30sec"),
    ("DAR UG 1min (GΩ)", "dar_values", "ug_1min"),
    ("DAR VG 1min (GΩ)", "dar_values", "vg_1min"),
    ("DAR WG 1min (GΩ)", "dar_values", "wg_1min"),
)


def winding_resistance_workbook(record: Mapping[str, Any]) -> bytes:
    dar = measurement_group(record, "dar_values")
    headers = ["Motor No", "Equipment Name", "Inspection Date", "Done By"]
    row: List[Any] = [
        record.get("motor_no") or "",
        record.get("equipment_name") or "",
        str(record.get("inspection_date") or ""),
        record.get("done_by") or "",
    ]
    for header, group, key in _WINDING_COLUMNS:
        headers.append(header)
        row.append(_number(measurement_group(record, group).get(key)))
    headers.extend(["PI Result", "DAR UG Ratio", "DAR VG Ratio", "DAR WG Ratio", "Overall Status", "Remarks"])
    row.extend(
        [
            _number(record.get("polarization_index")),
            _ratio(dar.get("ug_1min"), dar.get("ug_30sec")),
            _ratio(dar.get("vg_1min"), dar.get("vg_30sec")),
            _ratio(dar.get("wg_1min"), dar.get("wg_30sec")),
            "Good",
            record.get("remarks") or "",
        ]
    )
    widths = [15, 25, 15, 20] + [18] * len(_WINDING_COLUMNS)
    return _workbook_bytes("Winding Resistance Report", headers, row, widths)


_THERMOGRAPHY_NUMERIC = (
    ("MCCB IC R Phase (°C)", "mccb_ic_r_phase"),
    ("MCCB IC B Phase (°C)", "mccb_ic_b_phase"),
    ("MCCB C OG1 (°C)", "mccb_c_og1"),
    ("MCCB C OG2 (°C)", "mccb_c_og2"),
    ("MCCB Body Temp (°C)", "mccb_body_temp"),
)


def thermography_workbook(record: Mapping[str, Any]) -> bytes:
    headers = ["Transformer No", "Equipment Type", "Inspection Date", "Inspector", "Month"]
    row: List[Any] = [
        record.get("transformer_no") or "",
        record.get("equipment_type") or "ESP",
        str(record.get("inspection_date") or ""),
        record.get("done_by") or "",
        record.get("month") or "",
    ]
    for header, key in _THERMOGRAPHY_NUMERIC:
        headers.append(header)
        row.append(_number(record.get(key)))
    headers.extend(
        [
            "kV/mA",
            "SP Min",
            "SCR Cooling Fins Temp (°C)",
            "SCR Cooling Fan",
            "Panel Exhaust Fan",
            "MCC Forced Cooling Fan Temp (°C)",
            "RDI 68",
            "RDI 69",
            "RDI 70",
            "Status",
            "Remarks",
        ]
    )
    row.extend(
        [
            record.get("kv_ma") or "",
            record.get("sp_min") or "",
            _number(record.get("scr_cooling_fins_temp")),
            record.get("scr_cooling_fan") or "",
            record.get("panel_exhaust_fan") or "",
            record.get("mcc_forced_cooling_fan_temp") or "",
            record.get("rdi68") or 0,
            record.get("rdi69") or 0,
            record.get("rdi70") or 0,
            "Normal",
            record.get("remarks") or "",
        ]
    )
    return _workbook_bytes("Thermography Report", headers, row)
