"""Shared test fixtures for toolgate."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import pytest

from toolgate.stream import EventLog
from toolgate.tools.builtin import build_default_registry

if TYPE_CHECKING:
    from pathlib import Path

    from toolgate.tools.registry import ToolRegistry


@pytest.fixture(autouse=True)
def _isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep user/project config files and real API keys out of tests."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    monkeypatch.delenv("TOOLGATE_CONFIG", raising=False)
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def event_log() -> EventLog:
    return EventLog()


@pytest.fixture
def registry() -> ToolRegistry:
    """Fresh registry with the built-in tools (unsealed)."""
    return build_default_registry()


@pytest.fixture
def fake_model_factory() -> Any:
    """Factory fixture for :class:`FakeChatModel` from step scripts."""
    from tests.fixtures.models import FakeChatModel

    def _make(*steps: list[Any], healthy: bool = True) -> FakeChatModel:
        return FakeChatModel(list(steps), healthy=healthy)

    return _make


@pytest.fixture(autouse=True)
def _reset_toolgate_logger() -> Any:
    """Undo :func:`configure_logging` so caplog sees every record."""
    yield
    logger = logging.getLogger("toolgate")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
