"""Data models for the build task pipeline.

Defines the core dataclasses used throughout the pipeline:
- TaskPhase: Enum tracking which stage a build task is in
- BuildTask: A single unit of work (compile, or derive one artifact)
- PipelineResult: Aggregated result of running the full task graph
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Optional


class TaskPhase(Enum):
    """Phase of a build task in the pipeline."""

    WAITING = "waiting"
    RUNNING = "running"
    DONE = "done"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (TaskPhase.DONE, TaskPhase.FAILED)


@dataclass
class BuildTask:
    """A single task in the build graph.

    Attributes:
        name: Unique task name (e.g. "compile", "alpha.bin")
        action: Callable run in a worker thread; returns the produced path, if any
        dependencies: Names of tasks that must complete before this one starts
        entry_point: Entry point the task belongs to ("" for the compile task)
        phase: Current pipeline phase
        status_text: Human-readable status detail
        elapsed: Seconds spent since the task started running
        error_message: Error detail if phase is FAILED
        output_path: Path produced by the action, if any
        start_time: Monotonic timestamp when the task started (None if not started)
    """

    name: str
    action: Callable[[], Optional[Path]] = field(repr=False, compare=False)
    dependencies: list[str] = field(default_factory=list)
    entry_point: str = ""
    phase: TaskPhase = TaskPhase.WAITING
    status_text: str = ""
    elapsed: float = 0.0
    error_message: str = ""
    output_path: Optional[Path] = None
    start_time: Optional[float] = None

    def mark_started(self) -> None:
        """Record the start time for elapsed time tracking."""
        self.start_time = time.monotonic()

    def update_elapsed(self) -> None:
        if self.start_time is not None:
            self.elapsed = time.monotonic() - self.start_time

    def fail(self, error: str) -> None:
        """Mark this task as failed with an error message."""
        self.phase = TaskPhase.FAILED
        self.error_message = error
        self.update_elapsed()


@dataclass
class PipelineResult:
    """Aggregated result of running the task graph.

    Attributes:
        tasks: Final state of all tasks after the pipeline completes
        total_elapsed: Total wall-clock time in seconds
        success: True if all tasks completed successfully
    """

    tasks: list[BuildTask]
    total_elapsed: float
    success: bool

    @property
    def completed_count(self) -> int:
        return sum(1 for t in self.tasks if t.phase == TaskPhase.DONE)

    @property
    def failed_count(self) -> int:
        return sum(1 for t in self.tasks if t.phase == TaskPhase.FAILED)

    @property
    def failed_tasks(self) -> list[BuildTask]:
        return [t for t in self.tasks if t.phase == TaskPhase.FAILED]

    def get(self, name: str) -> Optional[BuildTask]:
        """Return the task with the given name, or None."""
        for task in self.tasks:
            if task.name == name:
                return task
        return None
