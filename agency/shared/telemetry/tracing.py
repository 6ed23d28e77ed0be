"""Tracing decorator and span helpers used by the use cases."""

import inspect
from collections.abc import Callable
from enum import Enum
from functools import wraps
from typing import Any, TypeVar

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

T = TypeVar("T")

# Only these parameter names are copied onto spans; payloads and notes are not.
_SAFE_SPAN_ATTR_KEYS = frozenset({
    "workflow_id", "task_id", "template_id", "employee_id", "user_id",
    "sequence_id", "lead_id", "assignment_id", "new_status", "service_type",
    "tier", "auto_start", "success", "action",
})


def _span_args(
    signature: inspect.Signature, args: tuple[Any, ...], kwargs: dict[str, Any]
) -> dict[str, str]:
    """Map allow-listed parameters to ``arg.<name>`` span attributes.

    Positional and keyword arguments are bound by name, so ``execute(task_id)``
    and ``execute(task_id=...)`` produce the same attributes.
    """
    try:
        arguments = signature.bind_partial(*args, **kwargs).arguments
    except TypeError:
        # Bad call; the function raises its own error when invoked.
        arguments = kwargs
    attrs = {}
    for key, value in arguments.items():
        if key in _SAFE_SPAN_ATTR_KEYS and value is not None:
            attrs[f"arg.{key}"] = str(value.value if isinstance(value, Enum) else value)
    return attrs


def _mark(span: trace.Span, error: Exception | None) -> None:
    if error is None:
        span.set_status(Status(StatusCode.OK))
    else:
        span.set_status(Status(StatusCode.ERROR, str(error)))
        span.record_exception(error)


def traced(
    operation_name: str | None = None,
    attributes: dict[str, str | int | float | bool] | None = None,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Decorator that runs a function (sync or async) inside a span.

    Args:
        operation_name: Span name (defaults to module.funcname).
        attributes: Static attributes set on every span.
    """

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        tracer = trace.get_tracer(func.__module__)
        span_name = operation_name or f"{func.__module__}.{func.__qualname__}"
        signature = inspect.signature(func)

        def _start(span: trace.Span, args: tuple[Any, ...], kwargs: dict[str, Any]) -> None:
            if attributes:
                for key, value in attributes.items():
                    span.set_attribute(key, value)
            for key, value in _span_args(signature, args, kwargs).items():
                span.set_attribute(key, value)

        @wraps(func)
        async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
            with tracer.start_as_current_span(span_name) as span:
                _start(span, args, kwargs)
                try:
                    result = await func(*args, **kwargs)
                except Exception as e:
                    _mark(span, e)
                    raise
                _mark(span, None)
                return result

        @wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
            with tracer.start_as_current_span(span_name) as span:
                _start(span, args, kwargs)
                try:
                    result = func(*args, **kwargs)
                except Exception as e:
                    _mark(span, e)
                    raise
                _mark(span, None)
                return result

        if inspect.iscoroutinefunction(func):
            return async_wrapper
        return sync_wrapper

    return decorator


def add_span_attributes(**attributes: str | int | float | bool) -> None:
    """Add attributes to the current span."""
    span = trace.get_current_span()
    if span and span.is_recording():
        for key, value in attributes.items():
            span.set_attribute(key, value)


def add_span_event(name: str, attributes: dict[str, Any] | None = None) -> None:
    """Add an event to the current span."""
    span = trace.get_current_span()
    if span and span.is_recording():
        span.add_event(name, attributes=attributes or {})


def get_trace_id() -> str | None:
    """Return the current trace ID as 32-char hex, or None."""
    ctx = trace.get_current_span().get_span_context()
    if ctx.is_valid:
        return format(ctx.trace_id, "032x")
    return None
