from datetime import UTC, datetime, timedelta

from content_orchestrator.domain.models import OrchestrationResult, TopicRequest
from content_orchestrator.tasks.registry import TaskRegistry


class FakeClock:
    def __init__(self) -> None:
        self.now = datetime(2025, 1, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


def _request(topic: str = "AI") -> TopicRequest:
    return TopicRequest(topic=topic, platform="twitter", tone="casual")


def test_create_stores_pending_task() -> None:
    registry = TaskRegistry()
    task_id = registry.create(_request())

    task = registry.get(task_id)
    assert task is not None
    assert task.status == "PENDING"
    assert task.request.topic == "AI"
    assert registry.status_of(task_id) == "PENDING"
    assert registry.result_of(task_id) is None
    assert registry.total_count() == 1
    assert registry.active_count() == 1


def test_lifecycle_transitions_and_snapshot_isolation() -> None:
    clock = FakeClock()
    registry = TaskRegistry(clock=clock)
    task_id = registry.create(_request())
    snapshot = registry.get(task_id)

    clock.advance(seconds=1)
    registry.transition_to_in_progress(task_id)
    clock.advance(seconds=2)
    registry.complete_with_result(task_id, OrchestrationResult.empty("AI"))

    assert snapshot.status == "PENDING"
    completed = registry.get(task_id)
    assert completed.status == "COMPLETED"
    assert completed.updated_at == clock.now
    assert completed.completed_at == clock.now
    assert registry.result_of(task_id) == OrchestrationResult.empty("AI")
    assert registry.active_count() == 0


def test_fail_with_error_records_message() -> None:
    registry = TaskRegistry()
    task_id = registry.create(_request())

    registry.fail_with_error(task_id, "registry corrupted")

    task = registry.get(task_id)
    assert task.status == "FAILED"
    assert task.error == "registry corrupted"
    assert task.completed_at is not None
    assert registry.result_of(task_id) is None


def test_unknown_ids_are_ignored() -> None:
    registry = TaskRegistry()

    registry.transition_to_in_progress("missing")
    registry.complete_with_result("missing", OrchestrationResult.empty("AI"))
    registry.fail_with_error("missing", "boom")

    assert registry.get("missing") is None
    assert registry.status_of("missing") is None
    assert registry.total_count() == 0


def test_second_completion_overwrites_first() -> None:
    registry = TaskRegistry()
    task_id = registry.create(_request())

    registry.complete_with_result(task_id, OrchestrationResult.empty("first"))
    registry.complete_with_result(task_id, OrchestrationResult.empty("second"))

    assert registry.get(task_id).result.topic == "second"


def test_eviction_removes_old_tasks_regardless_of_status() -> None:
    clock = FakeClock()
    registry = TaskRegistry(clock=clock)
    done_id = registry.create(_request("done"))
    running_id = registry.create(_request("running"))
    registry.complete_with_result(done_id, OrchestrationResult.empty("done"))
    registry.transition_to_in_progress(running_id)

    clock.advance(minutes=30)
    fresh_id = registry.create(_request("fresh"))
    clock.advance(minutes=31)

    removed = registry.evict_older_than(timedelta(hours=1))

    assert removed == 2
    # The in-flight task disappears too.
    assert registry.get(running_id) is None
    assert registry.get(done_id) is None
    assert registry.get(fresh_id) is not None
    assert registry.total_count() == 1


def test_eviction_keeps_everything_inside_window() -> None:
    clock = FakeClock()
    registry = TaskRegistry(clock=clock)
    registry.create(_request())
    clock.advance(minutes=59)

    assert registry.evict_older_than(timedelta(hours=1)) == 0
    assert registry.total_count() == 1
