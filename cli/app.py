from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import typer

from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import (
    render_equipment,
    render_equipment_detail,
    render_forecast,
    render_session,
    render_stats,
)


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Utilities for querying the maintenance records service.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1)
    return state


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Service base URL (defaults to API_BASE_URL env or http://localhost:8000).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Seconds to wait for each HTTP request.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(base_url=base_url, timeout=timeout)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("equipment")
def equipment_command(ctx: typer.Context) -> None:
    """List registered equipment with record counts."""
    state = _get_state(ctx)
    render_equipment(state.client.list_equipment())


@app.command("lookup")
def lookup_command(
    ctx: typer.Context,
    tag_no: str = typer.Argument(..., help="Equipment tag number."),
) -> None:
    """Show one equipment entry by tag number."""
    state = _get_state(ctx)
    render_equipment_detail(state.client.get_equipment_by_tag(tag_no))


@app.command("forecast")
def forecast_command(
    ctx: typer.Context,
    tag_no: str = typer.Argument(..., help="Equipment tag number."),
) -> None:
    """Show the carbon brush wear forecast for a tag."""
    state = _get_state(ctx)
    render_forecast(state.client.get_forecast(tag_no))


@app.command("session")
def session_command(
    ctx: typer.Context,
    session_id: int = typer.Argument(..., help="ESP session identifier."),
) -> None:
    """Show an ESP thermography session and its completion."""
    state = _get_state(ctx)
    render_session(state.client.get_esp_session(session_id))


@app.command("stats")
def stats_command(ctx: typer.Context) -> None:
    """Print dashboard statistics."""
    state = _get_state(ctx)
    render_stats(state.client.get_dashboard_stats())
