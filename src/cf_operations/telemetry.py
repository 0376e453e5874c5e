"""Structured telemetry for job polling and route mutations.

Components take an optional ``TelemetrySink`` and report through
:func:`emit`, so callers can plug in logging, an in-memory recorder for
tests, or their own metrics bridge.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable


@dataclass
class TelemetryEvent:
    """One poller or orchestrator step, e.g. ``job.poll`` or ``route.deleted``.

    ``attributes`` carry ids (``job_id``, ``route_id``) and the host, path
    or domain the step acted on.
    """

    name: str
    attributes: dict[str, Any] = field(default_factory=dict)
    timestamp_ms: float = field(default_factory=lambda: time.time() * 1000)


@runtime_checkable
class TelemetrySink(Protocol):
    def emit(self, event: TelemetryEvent) -> None:
        """Receive one event; must not raise into the operation that emitted it."""
        raise NotImplementedError


class NoOpTelemetrySink:
    """Used when no sink is passed to ``JobPoller`` or ``RouteOrchestrator``."""

    def emit(self, event: TelemetryEvent) -> None:
        _ = event


class InMemoryTelemetrySink:
    """Records events in order; used by tests to assert on side effects."""

    def __init__(self) -> None:
        self.events: list[TelemetryEvent] = []

    def emit(self, event: TelemetryEvent) -> None:
        self.events.append(event)

    def names(self) -> list[str]:
        return [event.name for event in self.events]

    def named(self, name: str) -> list[TelemetryEvent]:
        return [event for event in self.events if event.name == name]


class LoggerTelemetrySink:
    """Forwards events to ``logging`` with the attributes in ``extra``."""

    def __init__(
        self,
        logger_name: str = "cf_operations.telemetry",
        level: int = logging.DEBUG,
    ) -> None:
        self.logger = logging.getLogger(logger_name)
        self.level = level

    def emit(self, event: TelemetryEvent) -> None:
        self.logger.log(
            self.level,
            "%s %s",
            event.name,
            event.attributes,
            extra={
                "event_name": event.name,
                "event_timestamp_ms": event.timestamp_ms,
                "event_attributes": event.attributes,
            },
        )


def emit(sink: TelemetrySink, name: str, **attributes: Any) -> None:
    sink.emit(TelemetryEvent(name=name, attributes=attributes))
