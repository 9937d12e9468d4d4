"""
structlog setup for the footprint engine.

Every event carries the service name and version. Events emitted while an
``aggregation_context`` is open also carry the PCF id and the calculation
version being stamped, so repository, gate and engine logs for one run can
be correlated without threading the id through every call.
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, cast

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from footprint.core.config import Settings, get_settings


def _service_fields(settings: Settings) -> Processor:
    service = settings.project_name
    version = settings.version

    def add_service(_: WrappedLogger, __: str, event_dict: EventDict) -> EventDict:
        event_dict.setdefault("service", service)
        event_dict.setdefault("service_version", version)
        return event_dict

    return add_service


def build_processors(settings: Settings | None = None) -> list[Processor]:
    """Processor chain for *settings*: console output in development, JSON otherwise."""
    settings = settings or get_settings()
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        _service_fields(settings),
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]
    if settings.environment == "development":
        processors.append(structlog.dev.ConsoleRenderer(colors=True))
    else:
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    return processors


def configure_logging(settings: Settings | None = None) -> None:
    """Route structlog through stdlib logging at the configured level."""
    settings = settings or get_settings()
    structlog.configure(
        processors=build_processors(settings),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.log_level),
    )


@contextmanager
def aggregation_context(pcf_id: str, **values: Any) -> Iterator[None]:
    """Bind *pcf_id* and *values* to every event logged inside the block.

    Usage::

        with aggregation_context(pcf_id, calculation_version="3.0.0"):
            logger.info("aggregation_started")
    """
    with structlog.contextvars.bound_contextvars(pcf_id=pcf_id, **values):
        yield


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return cast(structlog.stdlib.BoundLogger, structlog.get_logger(name))
