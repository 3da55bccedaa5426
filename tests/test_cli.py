from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Sequence

import httpx
import pytest
from typer.testing import CliRunner

from cli.app import app


class StubClient:
    def __init__(self, config, accepted: Sequence[str] = ("AQ-1",)) -> None:
        self.config = config
        self.accepted = set(accepted)
        self.requests: List[tuple[str, str, str]] = []
        self.downloads: List[tuple[str, str, str, List[str], Path]] = []
        self.failures = 0
        self.readings_payload: Dict[str, Any] = {
            "temperature": [24.0, 25.5],
            "humidity": [45.0, 47.0],
            "pm25": [1.0, 10.0],
            "voc": [0.0, 0.0],
            "o3": [0.0, 0.0],
            "co": [0.0, 0.0],
            "co2": [480.0, 612.0],
            "no2": [0.0, 0.0],
            "so2": [0.0, 0.0],
            "timestamp": ["2025-04-18T16:22:00.000Z", "2025-04-18T16:22:30.000Z"],
        }
        self.warnings_payload: Dict[str, Any] = {
            "active": [
                {
                    "key": "co2|high|2025-04-18T16:22:30.000Z",
                    "title": "High CO2",
                    "message": "Value: 612.0ppm (Threshold: 500ppm)",
                    "timestamp": "2025-04-18T16:22:30Z",
                }
            ],
            "history": [],
            "recent": [],
        }
        self.closed = False

    def validate(self, device_code: str) -> bool:
        return device_code in self.accepted

    def get_readings(self, device_code: str, time_filter: str) -> Dict[str, Any]:
        self.requests.append(("readings", device_code, time_filter))
        return self.readings_payload

    def get_warnings(self, device_code: str, time_filter: str) -> Dict[str, Any]:
        self.requests.append(("warnings", device_code, time_filter))
        if self.failures:
            self.failures -= 1
            raise httpx.ConnectError("connection refused")
        return self.warnings_payload

    def download_export(
        self,
        device_code: str,
        time_filter: str,
        fmt: str,
        metrics: Sequence[str],
        destination: Path,
    ) -> Path:
        self.downloads.append((device_code, time_filter, fmt, list(metrics), destination))
        destination.write_text("Timestamp\n")
        return destination

    def close(self) -> None:
        self.closed = True


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch) -> None:
    monkeypatch.delenv("DEVICE_CODE", raising=False)
    monkeypatch.delenv("API_BASE_URL", raising=False)
    monkeypatch.delenv("CLI_TIME_FILTER", raising=False)


def _install_stub(monkeypatch, stub: StubClient) -> None:
    def factory(config):
        stub.config = config
        return stub

    monkeypatch.setattr("cli.app.ApiClient", factory)


def test_validate_accepts_known_code(monkeypatch, runner: CliRunner) -> None:
    stub = StubClient(config=None)
    _install_stub(monkeypatch, stub)

    result = runner.invoke(app, ["--base-url", "http://dashboard:9000/", "validate", "AQ-1"])

    assert result.exit_code == 0
    assert "Device code accepted" in result.stdout
    assert stub.config.base_url == "http://dashboard:9000"
    assert stub.closed is True


def test_validate_rejects_unknown_code(monkeypatch, runner: CliRunner) -> None:
    stub = StubClient(config=None)
    _install_stub(monkeypatch, stub)

    result = runner.invoke(app, ["validate", "AQ-2"])

    assert result.exit_code == 1


def test_readings_requires_device_code(monkeypatch, runner: CliRunner) -> None:
    stub = StubClient(config=None)
    _install_stub(monkeypatch, stub)

    result = runner.invoke(app, ["readings"])

    assert result.exit_code == 2
    assert stub.requests == []


def test_readings_renders_latest_values(monkeypatch, runner: CliRunner) -> None:
    stub = StubClient(config=None)
    _install_stub(monkeypatch, stub)

    result = runner.invoke(app, ["--device-code", "AQ-1", "readings", "--window", "1h"])

    assert result.exit_code == 0
    assert stub.requests == [("readings", "AQ-1", "1h")]
    assert "count: 2" in result.stdout
    assert "co2: 612.0 ppm" in result.stdout
    assert "2025-04-18T16:22:30.000Z" in result.stdout


def test_device_code_from_environment(monkeypatch, runner: CliRunner) -> None:
    stub = StubClient(config=None)
    _install_stub(monkeypatch, stub)
    monkeypatch.setenv("DEVICE_CODE", "AQ-ENV")

    result = runner.invoke(app, ["warnings"])

    assert result.exit_code == 0
    assert stub.requests == [("warnings", "AQ-ENV", "all")]
    assert "High CO2: Value: 612.0ppm (Threshold: 500ppm)" in result.stdout
    assert "No recent threshold alerts." in result.stdout


def test_export_passes_metrics_and_format(monkeypatch, runner: CliRunner, tmp_path: Path) -> None:
    stub = StubClient(config=None)
    _install_stub(monkeypatch, stub)
    target = tmp_path / "out.xlsx"

    result = runner.invoke(
        app,
        ["-d", "AQ-1", "export", str(target), "--format", "excel", "-m", "co2", "-m", "pm25", "--window", "24h"],
    )

    assert result.exit_code == 0
    assert stub.downloads == [("AQ-1", "24h", "excel", ["co2", "pm25"], target)]
    assert "Saved" in result.stdout


def test_export_rejects_unknown_format(monkeypatch, runner: CliRunner, tmp_path: Path) -> None:
    stub = StubClient(config=None)
    _install_stub(monkeypatch, stub)

    result = runner.invoke(app, ["-d", "AQ-1", "export", str(tmp_path), "--format", "pdf"])

    assert result.exit_code != 0
    assert stub.downloads == []


def test_watch_survives_transient_failures(monkeypatch, runner: CliRunner) -> None:
    stub = StubClient(config=None)
    stub.failures = 1
    _install_stub(monkeypatch, stub)
    monkeypatch.setattr("cli.app.time.sleep", lambda _seconds: None)

    result = runner.invoke(app, ["-d", "AQ-1", "--poll-interval", "0.5", "watch", "--count", "2"])

    assert result.exit_code == 0
    assert len(stub.requests) == 2
    assert "Active Warnings" in result.stdout
    assert stub.config.poll_interval == 0.5


def test_time_filter_default_from_environment(monkeypatch, runner: CliRunner) -> None:
    stub = StubClient(config=None)
    _install_stub(monkeypatch, stub)
    monkeypatch.setenv("CLI_TIME_FILTER", "6H")

    result = runner.invoke(app, ["-d", "AQ-1", "readings"])

    assert result.exit_code == 0
    assert stub.requests == [("readings", "AQ-1", "6h")]


def test_invalid_time_filter_environment_is_ignored(monkeypatch) -> None:
    from cli.config import load_config

    monkeypatch.setenv("CLI_TIME_FILTER", "fortnight")
    monkeypatch.setenv("CLI_HTTP_TIMEOUT", "-3")

    config = load_config(device_code="  ")

    assert config.time_filter == "all"
    assert config.http_timeout == 30.0
    assert config.device_code is None
