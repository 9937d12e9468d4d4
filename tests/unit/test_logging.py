"""Unit tests for structlog configuration and aggregation context."""

from __future__ import annotations

from collections.abc import Iterator

import pytest
import structlog

from footprint.core.config import Settings
from footprint.core.logging import (
    aggregation_context,
    build_processors,
    configure_logging,
    get_logger,
)


@pytest.fixture(autouse=True)
def _reset_structlog() -> Iterator[None]:
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()


@pytest.mark.parametrize(
    ("environment", "renderer"),
    [
        ("development", structlog.dev.ConsoleRenderer),
        ("production", structlog.processors.JSONRenderer),
    ],
)
def test_renderer_follows_environment(environment: str, renderer: type) -> None:
    processors = build_processors(Settings(environment=environment))
    assert isinstance(processors[-1], renderer)


def test_configure_logging_installs_processors(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ENVIRONMENT", "staging")
    configure_logging()

    processors = structlog.get_config()["processors"]
    assert processors[0] is structlog.contextvars.merge_contextvars
    assert isinstance(processors[-1], structlog.processors.JSONRenderer)


def test_service_fields_are_added() -> None:
    add_service = build_processors(Settings(project_name="footprint", version="1.2.3"))[1]

    event = add_service(None, "info", {"event": "aggregation_completed"})

    assert event["service"] == "footprint"
    assert event["service_version"] == "1.2.3"


def test_aggregation_context_binds_and_clears() -> None:
    with aggregation_context("pcf-1", calculation_version="3.0.0"):
        assert structlog.contextvars.get_contextvars() == {
            "pcf_id": "pcf-1",
            "calculation_version": "3.0.0",
        }

    assert structlog.contextvars.get_contextvars() == {}


def test_aggregation_context_reaches_log_events() -> None:
    structlog.configure(
        processors=[structlog.contextvars.merge_contextvars, structlog.testing.LogCapture()],
    )
    capture = structlog.get_config()["processors"][-1]

    with aggregation_context("pcf-2", calculation_version="3.0.0"):
        get_logger("footprint.test").info("aggregation_started")

    assert capture.entries == [
        {
            "event": "aggregation_started",
            "log_level": "info",
            "pcf_id": "pcf-2",
            "calculation_version": "3.0.0",
        }
    ]
