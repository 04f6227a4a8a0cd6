"""DAG-based dependency scheduler for the build task pipeline.

Resolves task dependencies and releases tasks in topological order: a task
becomes ready only when every dependency has completed successfully, and
becomes blocked as soon as any dependency fails.
"""

import threading

from .models import BuildTask, TaskPhase


class CyclicDependencyError(ValueError):
    """Raised when the dependency graph contains a cycle."""

    pass


class DependencyScheduler:
    """Schedules build tasks based on their dependency DAG.

    Thread-safe: worker threads may call mark_phase() while the main loop
    calls get_ready_tasks().

    Usage:
        scheduler = DependencyScheduler()
        for task in tasks:
            scheduler.add_task(task)
        scheduler.validate()  # raises CyclicDependencyError if cycle detected

        while not scheduler.all_done():
            for task in scheduler.get_ready_tasks():
                pool.submit(task)
    """

    def __init__(self) -> None:
        self._tasks: dict[str, BuildTask] = {}
        self._lock = threading.Lock()

    def add_task(self, task: BuildTask) -> None:
        """Add a task to the scheduler.

        Raises:
            ValueError: If a task with the same name already exists.
        """
        with self._lock:
            if task.name in self._tasks:
                raise ValueError(f"Duplicate task name: {task.name}")
            self._tasks[task.name] = task

    def validate(self) -> None:
        """Validate the dependency graph.

        Raises:
            ValueError: If a dependency references a non-existent task.
            CyclicDependencyError: If the dependency graph contains a cycle.
        """
        with self._lock:
            for task in self._tasks.values():
                for dep_name in task.dependencies:
                    if dep_name not in self._tasks:
                        raise ValueError(f"Task '{task.name}' depends on unknown task '{dep_name}'")
            self._detect_cycles()

    def _detect_cycles(self) -> None:
        """Detect cycles using DFS with white/gray/black coloring."""
        WHITE, GRAY, BLACK = 0, 1, 2
        color: dict[str, int] = {name: WHITE for name in self._tasks}

        def dfs(name: str, path: list[str]) -> None:
            color[name] = GRAY
            path.append(name)
            for dep_name in self._tasks[name].dependencies:
                if color[dep_name] == GRAY:
                    cycle = path[path.index(dep_name):] + [dep_name]
                    raise CyclicDependencyError(f"Cyclic dependency detected: {' -> '.join(cycle)}")
                if color[dep_name] == WHITE:
                    dfs(dep_name, path)
            path.pop()
            color[name] = BLACK

        for name in self._tasks:
            if color[name] == WHITE:
                dfs(name, [])

    def get_ready_tasks(self) -> list[BuildTask]:
        """Return WAITING tasks whose dependencies are all DONE."""
        with self._lock:
            return [
                task
                for task in self._tasks.values()
                if task.phase == TaskPhase.WAITING
                and all(self._tasks[dep].phase == TaskPhase.DONE for dep in task.dependencies)
            ]

    def get_blocked_tasks(self) -> list[tuple[BuildTask, str]]:
        """Return WAITING tasks that can never run, with the failed dependency's name."""
        with self._lock:
            blocked = []
            for task in self._tasks.values():
                if task.phase != TaskPhase.WAITING:
                    continue
                for dep_name in task.dependencies:
                    if self._tasks[dep_name].phase == TaskPhase.FAILED:
                        blocked.append((task, dep_name))
                        break
            return blocked

    def mark_phase(self, task_name: str, phase: TaskPhase) -> None:
        """Update a task's phase.

        Raises:
            KeyError: If the task name doesn't exist.
        """
        with self._lock:
            if task_name not in self._tasks:
                raise KeyError(f"Unknown task: {task_name}")
            self._tasks[task_name].phase = phase

    def get_task(self, task_name: str) -> BuildTask:
        """Get a task by name.

        Raises:
            KeyError: If the task name doesn't exist.
        """
        with self._lock:
            if task_name not in self._tasks:
                raise KeyError(f"Unknown task: {task_name}")
            return self._tasks[task_name]

    def all_done(self) -> bool:
        """True if every task is DONE or FAILED."""
        with self._lock:
            return all(t.phase.is_terminal for t in self._tasks.values())

    def get_all_tasks(self) -> list[BuildTask]:
        """Return all tasks in insertion order."""
        with self._lock:
            return list(self._tasks.values())
