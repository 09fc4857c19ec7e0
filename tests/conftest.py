"""Root pytest configuration and shared fixtures."""

from __future__ import annotations

import pytest

from ports_monitor.config import runtime

_MONITOR_ENV_VARS = (
    "PORTS_MONITOR_PLATFORM",
    "PORTS_MONITOR_TIMEOUT_SECONDS",
    "PORTS_MONITOR_MAX_BUFFER_BYTES",
    "PORTS_MONITOR_LOG_FILE",
)


@pytest.fixture(autouse=True)
def isolate_monitor_environment(monkeypatch):
    """Keep a developer's shell or ~/.env from leaking into configuration tests."""
    for name in _MONITOR_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(runtime, "_DOTENV_CANDIDATES", ())
    runtime._DEFAULT_VALUES = None
    yield
    runtime._DEFAULT_VALUES = None
