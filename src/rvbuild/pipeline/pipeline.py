"""Pipeline runner connecting scheduler + pool for the build task graph.

Coordinates a goal's tasks by:
1. Using DependencyScheduler to resolve task ordering
2. Submitting ready tasks to the TaskPool
3. Tracking futures and recording each task's outcome on completion
4. Failing tasks whose dependencies failed, without running them
5. Supporting Ctrl-C cancellation with pool shutdown and a cleanup hook

A failed task never stops unrelated tasks: every task whose dependencies
succeeded is attempted, and the result lists each failure separately.
"""

import logging
import threading
import time
from concurrent.futures import FIRST_COMPLETED, Future, wait
from pathlib import Path
from typing import Callable, Optional

from .callbacks import ProgressCallback
from .models import BuildTask, PipelineResult, TaskPhase
from .pools import TaskPool
from .scheduler import DependencyScheduler

logger = logging.getLogger(__name__)

# Upper bound on how long the main loop blocks waiting for a future,
# so cancellation requests are noticed promptly.
_POLL_INTERVAL = 0.05


class PipelineCancelledError(Exception):
    """Raised when the pipeline is cancelled via cancel()."""

    pass


class ParallelPipeline:
    """Runs a build task graph on a worker pool.

    Args:
        max_workers: Number of concurrent worker threads.
        on_abort: Called after an interrupted or cancelled run has failed its
            remaining tasks, e.g. to delete partially written artifacts.
    """

    def __init__(self, max_workers: int, on_abort: Optional[Callable[[], None]] = None) -> None:
        self._max_workers = max_workers
        self._on_abort = on_abort
        self._cancelled = False
        self._lock = threading.Lock()

    def run(self, tasks: list[BuildTask], callback: ProgressCallback) -> PipelineResult:
        """Execute the task graph.

        Returns when every task is DONE or FAILED.

        Raises:
            CyclicDependencyError: If the task graph has a cycle.
            PipelineCancelledError: If the pipeline is cancelled via cancel().
        """
        start_time = time.monotonic()
        self._cancelled = False

        if not tasks:
            return PipelineResult(tasks=[], total_elapsed=0.0, success=True)

        scheduler = DependencyScheduler()
        for task in tasks:
            scheduler.add_task(task)
        scheduler.validate()

        active_futures: dict[Future[Optional[Path]], str] = {}

        with TaskPool(max_workers=self._max_workers) as pool:
            try:
                while not scheduler.all_done():
                    if self._is_cancelled():
                        self._abort(active_futures, scheduler, "Pipeline cancelled")
                        raise PipelineCancelledError("Pipeline was cancelled")

                    self._fail_blocked_tasks(scheduler, callback)

                    for task in scheduler.get_ready_tasks():
                        task.mark_started()
                        scheduler.mark_phase(task.name, TaskPhase.RUNNING)
                        active_futures[pool.submit(task, callback)] = task.name

                    if active_futures:
                        wait(list(active_futures), timeout=_POLL_INTERVAL, return_when=FIRST_COMPLETED)
                    self._process_completed_futures(active_futures, scheduler, callback)

            except KeyboardInterrupt:
                self._abort(active_futures, scheduler, "Interrupted by user")
                raise

        all_tasks = scheduler.get_all_tasks()
        success = all(t.phase == TaskPhase.DONE for t in all_tasks)
        return PipelineResult(tasks=all_tasks, total_elapsed=time.monotonic() - start_time, success=success)

    def cancel(self) -> None:
        """Request pipeline cancellation. Thread-safe."""
        with self._lock:
            self._cancelled = True

    def _is_cancelled(self) -> bool:
        with self._lock:
            return self._cancelled

    def _process_completed_futures(
        self,
        active_futures: dict[Future[Optional[Path]], str],
        scheduler: DependencyScheduler,
        callback: ProgressCallback,
    ) -> None:
        for future in [f for f in active_futures if f.done()]:
            task_name = active_futures.pop(future)
            task = scheduler.get_task(task_name)
            try:
                task.output_path = future.result()
            except KeyboardInterrupt:
                raise
            except Exception as e:
                logger.debug("Task %s failed: %s", task_name, e)
                task.fail(str(e))
                scheduler.mark_phase(task_name, TaskPhase.FAILED)
                callback.on_progress(task_name, TaskPhase.FAILED, str(e))
                continue

            task.update_elapsed()
            scheduler.mark_phase(task_name, TaskPhase.DONE)
            callback.on_progress(task_name, TaskPhase.DONE, f"Done in {task.elapsed:.1f}s")

    def _fail_blocked_tasks(self, scheduler: DependencyScheduler, callback: ProgressCallback) -> None:
        for task, failed_dep in scheduler.get_blocked_tasks():
            error_msg = f"blocked by dependency '{failed_dep}'"
            task.fail(error_msg)
            scheduler.mark_phase(task.name, TaskPhase.FAILED)
            callback.on_progress(task.name, TaskPhase.FAILED, error_msg)

    def _abort(
        self,
        active_futures: dict[Future[Optional[Path]], str],
        scheduler: DependencyScheduler,
        reason: str,
    ) -> None:
        for future in active_futures:
            future.cancel()
        for task in scheduler.get_all_tasks():
            if not task.phase.is_terminal:
                task.fail(reason)
                scheduler.mark_phase(task.name, TaskPhase.FAILED)
        if self._on_abort is not None:
            self._on_abort()
