from __future__ import annotations

from typing import Any, Dict, Iterable, List

import typer


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def render_equipment(items: List[Dict[str, Any]]) -> None:
    echo_heading("Equipment")
    if not items:
        typer.echo("No equipment registered.")
        return
    for item in items:
        typer.echo(
            f"  - {item.get('tag_no')} | {item.get('equipment_name')} | {item.get('equipment_type')} "
            f"(carbon brush: {item.get('carbon_brush_count', 0)}, "
            f"winding: {item.get('winding_resistance_count', 0)}, "
            f"thermography: {item.get('thermography_records_count', 0)})"
        )


def render_equipment_detail(payload: Dict[str, Any]) -> None:
    echo_heading(f"Equipment {payload.get('tag_no')}")
    echo_key_values(
        [
            ("id", payload.get("id")),
            ("name", payload.get("equipment_name")),
            ("type", payload.get("equipment_type")),
            ("location", payload.get("location") or "-"),
            ("qr_label", "yes" if payload.get("qr_code") else "no"),
        ]
    )


def render_forecast(payload: Dict[str, Any]) -> None:
    echo_heading(f"Brush Wear Forecast: {payload.get('tag_no')}")
    forecast = payload.get("forecast")
    if not forecast:
        typer.echo(payload.get("detail") or "No forecast available.")
        return
    echo_key_values(
        [
            ("wear_rate_per_month", f"{forecast.get('wear_rate_per_month'):.3f} mm"),
            ("months_remaining", f"{forecast.get('months_remaining'):.1f}"),
            ("predicted_date", forecast.get("predicted_date")),
            ("confidence", f"{forecast.get('confidence'):.0f}%"),
        ]
    )


def render_session(payload: Dict[str, Any]) -> None:
    echo_heading(f"ESP Session {payload.get('id')}")
    echo_key_values(
        [
            ("esp_code", payload.get("esp_code")),
            ("inspection_date", payload.get("inspection_date")),
            ("month", payload.get("month")),
            ("done_by", payload.get("done_by")),
            ("step", payload.get("step")),
            ("completed", "yes" if payload.get("is_completed") else "no"),
        ]
    )
    transformers = payload.get("transformers") or []
    typer.echo()
    echo_heading("Transformers")
    if not transformers:
        typer.echo("No transformer readings recorded.")
    for record in transformers:
        typer.echo(
            f"  - step {record.get('step')} {record.get('transformer_no')}: "
            f"R {record.get('mccb_ic_r_phase')} / B {record.get('mccb_ic_b_phase')} / "
            f"body {record.get('mccb_body_temp')} / fins {record.get('scr_cooling_fins_temp')}"
        )


def render_stats(payload: Dict[str, Any]) -> None:
    echo_heading("Dashboard")
    echo_key_values(
        (key, payload.get(key))
        for key in (
            "total_equipment",
            "total_inspections",
            "recent_inspections",
            "critical_equipment",
            "system_uptime",
            "efficiency_improvement",
            "cost_reduction",
            "downtime_reduction",
            "last_updated",
        )
    )
