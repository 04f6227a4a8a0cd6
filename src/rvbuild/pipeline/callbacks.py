"""Progress callback protocol for the build task pipeline.

Defines the interface the pipeline uses to report task transitions to the
display layer, plus two plain implementations for non-TTY use.
"""

from typing import Protocol, runtime_checkable

from .. import output
from .models import TaskPhase


@runtime_checkable
class ProgressCallback(Protocol):
    """Protocol for receiving progress updates from the pipeline.

    Called from worker threads as well as the main loop; implementations
    must be thread-safe.
    """

    def on_progress(self, task_name: str, phase: TaskPhase, detail: str) -> None:
        """Called when a task changes phase or reports a status detail.

        Args:
            task_name: Name of the build task (e.g. "alpha.bin").
            phase: Current pipeline phase.
            detail: Human-readable status detail.
        """
        ...


class NullCallback:
    """No-op callback for tests and quiet runs."""

    def on_progress(self, task_name: str, phase: TaskPhase, detail: str) -> None:
        pass


class LogCallback:
    """Text callback for non-TTY runs.

    Reports transitions in verbose mode only. Failures reach the user
    through the goal report after the pipeline finishes.
    """

    def on_progress(self, task_name: str, phase: TaskPhase, detail: str) -> None:
        if phase == TaskPhase.FAILED:
            first_line = detail.splitlines()[0] if detail else "failed"
            output.log_detail(f"{task_name}: FAILED: {first_line}", verbose_only=True)
        elif phase == TaskPhase.DONE:
            output.log_detail(f"{task_name}: {detail}", verbose_only=True)
        elif phase == TaskPhase.RUNNING and detail:
            output.log_detail(f"{task_name}: {detail}", verbose_only=True)
