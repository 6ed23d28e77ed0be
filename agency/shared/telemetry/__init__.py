"""Shared telemetry: logging setup, OpenTelemetry config, and tracing helpers."""

from agency.shared.telemetry.logging import get_logger, setup_logging
from agency.shared.telemetry.telemetry import TelemetryConfig, get_telemetry, set_telemetry
from agency.shared.telemetry.tracing import (
    add_span_attributes,
    add_span_event,
    get_trace_id,
    traced,
)

__all__ = [
    "TelemetryConfig",
    "add_span_attributes",
    "add_span_event",
    "get_logger",
    "get_telemetry",
    "get_trace_id",
    "set_telemetry",
    "setup_logging",
    "traced",
]
