"""Span attributes copied from use-case arguments."""

import inspect
from contextlib import contextmanager

from agency.domain.enums import TaskStatus
from agency.shared.telemetry import tracing
from agency.shared.telemetry.tracing import _span_args


class _RecordingSpan:
    def __init__(self) -> None:
        self.attributes: dict[str, object] = {}

    def set_attribute(self, key: str, value: object) -> None:
        self.attributes[key] = value

    def set_status(self, status: object) -> None:
        self.status = status

    def record_exception(self, error: Exception) -> None:
        self.error = error


class _RecordingTracer:
    def __init__(self) -> None:
        self.spans: list[tuple[str, _RecordingSpan]] = []

    @contextmanager
    def start_as_current_span(self, name: str):
        span = _RecordingSpan()
        self.spans.append((name, span))
        yield span


class _UseCase:
    async def execute(self, task_id: str, new_status=None, *, notes=None, assigned_to_id=None):
        return task_id


def test_positional_and_keyword_ids_bind_the_same() -> None:
    signature = inspect.signature(_UseCase.execute)
    use_case = _UseCase()

    positional = _span_args(signature, (use_case, "t1", TaskStatus.BLOCKED), {})
    keyword = _span_args(
        signature, (use_case,), {"task_id": "t1", "new_status": TaskStatus.BLOCKED}
    )

    assert positional == keyword == {"arg.task_id": "t1", "arg.new_status": "blocked"}


def test_unlisted_and_missing_arguments_are_skipped() -> None:
    signature = inspect.signature(_UseCase.execute)

    attrs = _span_args(signature, (_UseCase(), "t1"), {"notes": "private", "assigned_to_id": None})

    assert attrs == {"arg.task_id": "t1"}


def test_bad_call_falls_back_to_keywords() -> None:
    signature = inspect.signature(_UseCase.execute)

    assert _span_args(signature, (), {"task_id": "t1", "bogus": 1}) == {"arg.task_id": "t1"}


async def test_traced_records_positional_ids(monkeypatch) -> None:
    tracer = _RecordingTracer()
    monkeypatch.setattr(tracing.trace, "get_tracer", lambda name: tracer)

    class UpdateStatus:
        @tracing.traced("workflow.update_status", attributes={"component": "workflow"})
        async def execute(self, workflow_id: str, new_status=None):
            return workflow_id

    assert await UpdateStatus().execute("w1", TaskStatus.COMPLETED) == "w1"

    [(name, span)] = tracer.spans
    assert name == "workflow.update_status"
    assert span.attributes == {
        "component": "workflow",
        "arg.workflow_id": "w1",
        "arg.new_status": "completed",
    }
