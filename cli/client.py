from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import httpx
import typer

from cli.config import CLIConfig


class ApiClient:
    """Minimal HTTP client for the dashboard service."""

    def __init__(self, config: CLIConfig) -> None:
        self._config = config
        self._client = httpx.Client(base_url=config.base_url, timeout=config.http_timeout)

    def close(self) -> None:
        self._client.close()

    def validate(self, device_code: str) -> bool:
        response = self._client.post("/device/validate", json={"deviceCode": device_code})
        if response.status_code in (400, 401):
            return False
        self._raise_for_status(response)
        return bool(response.json().get("success"))

    def get_readings(self, device_code: str, time_filter: str) -> Dict[str, Any]:
        return self._get_json("/device/readings", device_code, time_filter)

    def get_warnings(self, device_code: str, time_filter: str) -> Dict[str, Any]:
        return self._get_json("/device/warnings", device_code, time_filter)

    def download_export(
        self,
        device_code: str,
        time_filter: str,
        fmt: str,
        metrics: Sequence[str],
        destination: Path,
    ) -> Path:
        params: Dict[str, Any] = {
            "deviceCode": device_code,
            "timeFilter": time_filter,
            "format": fmt,
        }
        if metrics:
            params["metrics"] = list(metrics)
        response = self._client.get("/device/export", params=params)
        self._raise_for_status(response)

        target = destination
        if destination.is_dir():
            target = destination / self._filename(response, fmt)
        target.write_bytes(response.content)
        return target

    def _get_json(self, path: str, device_code: str, time_filter: str) -> Dict[str, Any]:
        response = self._client.get(
            path,
            params={"deviceCode": device_code, "timeFilter": time_filter},
            headers={"Cache-Control": "no-cache", "Pragma": "no-cache"},
        )
        self._raise_for_status(response)
        return response.json()

    @staticmethod
    def _filename(response: httpx.Response, fmt: str) -> str:
        disposition = response.headers.get("content-disposition", "")
        parts: List[str] = [part.strip() for part in disposition.split(";")]
        for part in parts:
            if part.startswith("filename="):
                return part[len("filename=") :].strip('"')
        return f"air_quality_data.{'xlsx' if fmt == 'excel' else 'csv'}"

    def _raise_for_status(self, response: httpx.Response) -> None:
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)

    @staticmethod
    def _handle_http_error(exc: httpx.HTTPStatusError) -> None:
        detail: Optional[str] = None
        try:
            data = exc.response.json()
            detail = data.get("detail")
        except Exception:  # noqa: BLE001 - best effort parsing
            detail = exc.response.text.strip()
        message = (
            f"Request failed with status {exc.response.status_code}: {detail or 'no detail provided.'}"
        )
        typer.secho(message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
