"""
Pytest configuration and shared fixtures.
"""
from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from zapsender.transport.mock_adapter import MockChatTransport

_SETTINGS_ENV = (
    "SEND_DELAY_MS",
    "CSV_PATH",
    "HEADLESS",
    "MESSAGE",
    "LOG_LEVEL",
    "LOG_FORMAT",
    "TRANSPORT_TRANSPORT_TYPE",
    "TRANSPORT_CLIENT_ID",
    "TRANSPORT_SESSION_DIR",
)


@pytest.fixture(autouse=True)
def clean_settings_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's environment out of settings-driven tests."""
    for name in _SETTINGS_ENV:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def mock_transport() -> MockChatTransport:
    return MockChatTransport()


@pytest.fixture
def write_csv(tmp_path: Path) -> Callable[..., Path]:
    """Write CSV text to a temporary file and return its path."""

    def _write(content: str, name: str = "contacts.csv", encoding: str = "utf-8") -> Path:
        path = tmp_path / name
        path.write_text(content, encoding=encoding)
        return path

    return _write
