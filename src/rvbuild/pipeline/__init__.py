"""Parallel build task pipeline with a Rich live progress display.

A goal is expressed as a graph of BuildTasks: one compile task, then one
derivation task per (entry point, artifact kind) depending on it. The
ParallelPipeline runs ready tasks on a thread pool, fails tasks whose
dependencies failed without running them, and reports every transition
to a ProgressCallback.

Public API:
    ParallelPipeline: Runs a task graph to completion.
    PipelineProgressDisplay: Rich live table implementing ProgressCallback.
"""

from .callbacks import LogCallback, NullCallback, ProgressCallback
from .models import BuildTask, PipelineResult, TaskPhase
from .pipeline import ParallelPipeline, PipelineCancelledError
from .pools import TaskPool
from .progress_display import PipelineProgressDisplay
from .scheduler import CyclicDependencyError, DependencyScheduler

__all__ = [
    "BuildTask",
    "CyclicDependencyError",
    "DependencyScheduler",
    "LogCallback",
    "NullCallback",
    "ParallelPipeline",
    "PipelineCancelledError",
    "PipelineProgressDisplay",
    "PipelineResult",
    "ProgressCallback",
    "TaskPhase",
    "TaskPool",
]
