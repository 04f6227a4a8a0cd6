"""Unit tests for the dependency scheduler."""

import pytest

from rvbuild.pipeline.models import BuildTask, TaskPhase
from rvbuild.pipeline.scheduler import CyclicDependencyError, DependencyScheduler


def _make_task(name: str, dependencies: list[str] | None = None) -> BuildTask:
    return BuildTask(name=name, action=lambda: None, dependencies=dependencies if dependencies is not None else [])


def _scheduler(*tasks: BuildTask) -> DependencyScheduler:
    scheduler = DependencyScheduler()
    for task in tasks:
        scheduler.add_task(task)
    return scheduler


class TestDependencySchedulerBasic:
    """Basic add/get operations."""

    def test_duplicate_task_raises(self):
        scheduler = _scheduler(_make_task("compile"))
        with pytest.raises(ValueError, match="Duplicate task name"):
            scheduler.add_task(_make_task("compile"))

    def test_get_task(self):
        task = _make_task("compile")
        assert _scheduler(task).get_task("compile") is task

    def test_get_unknown_task_raises(self):
        with pytest.raises(KeyError, match="Unknown task"):
            DependencyScheduler().get_task("nonexistent")

    def test_mark_unknown_task_raises(self):
        with pytest.raises(KeyError, match="Unknown task"):
            DependencyScheduler().mark_phase("nonexistent", TaskPhase.DONE)

    def test_get_all_tasks_in_insertion_order(self):
        scheduler = _scheduler(_make_task("b"), _make_task("a"))
        assert [t.name for t in scheduler.get_all_tasks()] == ["b", "a"]


class TestDependencySchedulerValidation:
    """Reference checking and cycle detection."""

    def test_valid_graph(self):
        _scheduler(_make_task("compile"), _make_task("alpha.bin", ["compile"])).validate()

    def test_unknown_dependency(self):
        scheduler = _scheduler(_make_task("alpha.bin", ["compile"]))
        with pytest.raises(ValueError, match="depends on unknown task 'compile'"):
            scheduler.validate()

    def test_self_cycle(self):
        with pytest.raises(CyclicDependencyError, match="a -> a"):
            _scheduler(_make_task("a", ["a"])).validate()

    def test_longer_cycle(self):
        scheduler = _scheduler(_make_task("a", ["c"]), _make_task("b", ["a"]), _make_task("c", ["b"]))
        with pytest.raises(CyclicDependencyError, match="Cyclic dependency detected"):
            scheduler.validate()

    def test_cycle_error_is_value_error(self):
        assert issubclass(CyclicDependencyError, ValueError)


class TestDependencySchedulerReadiness:
    """Ready and blocked task selection."""

    def test_only_roots_ready_initially(self):
        scheduler = _scheduler(_make_task("compile"), _make_task("alpha.bin", ["compile"]), _make_task("beta.bin", ["compile"]))
        assert [t.name for t in scheduler.get_ready_tasks()] == ["compile"]

    def test_dependents_ready_after_done(self):
        scheduler = _scheduler(_make_task("compile"), _make_task("alpha.bin", ["compile"]), _make_task("beta.bin", ["compile"]))
        scheduler.mark_phase("compile", TaskPhase.DONE)
        assert [t.name for t in scheduler.get_ready_tasks()] == ["alpha.bin", "beta.bin"]

    def test_running_tasks_not_ready(self):
        scheduler = _scheduler(_make_task("compile"))
        scheduler.mark_phase("compile", TaskPhase.RUNNING)
        assert scheduler.get_ready_tasks() == []

    def test_blocked_after_failure(self):
        scheduler = _scheduler(_make_task("compile"), _make_task("alpha.bin", ["compile"]))
        scheduler.mark_phase("compile", TaskPhase.FAILED)
        assert scheduler.get_ready_tasks() == []
        blocked = scheduler.get_blocked_tasks()
        assert [(t.name, dep) for t, dep in blocked] == [("alpha.bin", "compile")]

    def test_all_done(self):
        scheduler = _scheduler(_make_task("compile"), _make_task("alpha.bin", ["compile"]))
        assert not scheduler.all_done()
        scheduler.mark_phase("compile", TaskPhase.DONE)
        scheduler.mark_phase("alpha.bin", TaskPhase.FAILED)
        assert scheduler.all_done()
