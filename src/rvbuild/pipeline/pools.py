"""Worker thread pool for the build task pipeline.

The external tools do the heavy lifting in child processes, so plain
threads are enough to keep several of them busy at once.
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Any, Optional

from .callbacks import ProgressCallback
from .models import BuildTask, TaskPhase

logger = logging.getLogger(__name__)


class TaskPool:
    """Thread pool that runs build task actions.

    Args:
        max_workers: Maximum concurrent tasks.
    """

    def __init__(self, max_workers: int) -> None:
        self._max_workers = max_workers
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="rvbuild")
        self._shutdown = False
        self._lock = threading.Lock()

    def submit(self, task: BuildTask, callback: ProgressCallback) -> Future[Optional[Path]]:
        """Submit a task's action for execution.

        Returns:
            Future resolving to the path produced by the action (or None).

        Raises:
            RuntimeError: If the pool has been shut down.
        """
        with self._lock:
            if self._shutdown:
                raise RuntimeError("TaskPool has been shut down")
        return self._executor.submit(self._run, task, callback)

    def _run(self, task: BuildTask, callback: ProgressCallback) -> Optional[Path]:
        callback.on_progress(task.name, TaskPhase.RUNNING, "Running...")
        logger.debug("Task %s started", task.name)
        return task.action()

    def shutdown(self, cancel_pending: bool = False) -> None:
        """Shut down the pool, waiting for running tasks to finish."""
        with self._lock:
            self._shutdown = True
        self._executor.shutdown(wait=True, cancel_futures=cancel_pending)

    @property
    def max_workers(self) -> int:
        return self._max_workers

    def __enter__(self) -> "TaskPool":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.shutdown(cancel_pending=exc_type is not None)
