from __future__ import annotations

from typing import Any, Dict, List, NoReturn
from urllib.parse import quote

import httpx
import typer

from cli.config import CLIConfig


class ApiClient:
    """Minimal HTTP client for the maintenance records service."""

    def __init__(self, config: CLIConfig) -> None:
        self._config = config
        self._client = httpx.Client(base_url=config.base_url, timeout=config.timeout)

    def close(self) -> None:
        self._client.close()

    def list_equipment(self) -> List[Dict[str, Any]]:
        return self._get("/equipment")

    def get_equipment_by_tag(self, tag_no: str) -> Dict[str, Any]:
        return self._get(f"/equipment/by-tag/{quote(tag_no, safe='')}")

    def get_forecast(self, tag_no: str) -> Dict[str, Any]:
        return self._get("/carbon-brush/forecast", params={"tag_no": tag_no})

    def get_esp_session(self, session_id: int) -> Dict[str, Any]:
        return self._get(f"/esp-sessions/{session_id}")

    def get_dashboard_stats(self) -> Dict[str, Any]:
        return self._get("/dashboard/stats")

    def _get(self, path: str, params: Dict[str, Any] | None = None) -> Any:
        try:
            response = self._client.get(path, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        except httpx.TransportError as exc:
            typer.secho(f"Could not reach {self._config.base_url}: {exc}", fg=typer.colors.RED, err=True)
            raise typer.Exit(code=1) from exc
        return response.json()

    @staticmethod
    def _handle_http_error(exc: httpx.HTTPStatusError) -> NoReturn:
        detail: Any = None
        try:
            detail = exc.response.json().get("detail")
        except ValueError:
            detail = exc.response.text.strip()
        message = (
            f"Request failed with status {exc.response.status_code}: {detail or 'no detail provided.'}"
        )
        typer.secho(message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
