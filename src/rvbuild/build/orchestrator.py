"""
Build orchestration for rvbuild projects.

This module exposes the named goals and composes discovery, variant
selection, compilation and artifact derivation in dependency order:

    elf*     compile only
    binary*  compile, then derive .bin (and .asm for non-traced variants)
    build*   aliases of the binary goals
    clean    remove all generated build state

Each goal is resolved completely (goal name, variant, entry-point set)
before any external tool runs, so configuration errors have no side
effects. Compilation is a single task; derivation is one task per
(entry point, artifact kind), all depending on the compile task and
running in parallel on the task pipeline.
"""

import logging
import shutil
import sys
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .. import output
from ..config import PipelineConfig
from ..errors import ConfigurationError, UnknownGoalError
from ..pipeline import (
    BuildTask,
    LogCallback,
    ParallelPipeline,
    PipelineProgressDisplay,
    PipelineResult,
    ProgressCallback,
    TaskPhase,
)
from .build_context import ArtifactKind, BuildLayout, BuildParams
from .compiler import CargoCompiler
from .deriver import ArtifactDeriver, cleanup_temp_artifacts
from .discovery import discover_entry_points
from .manifest import find_staleness, load_manifest, save_manifest, snapshot
from .variants import Variant, format_variant_banner, get_variant, select_variant

logger = logging.getLogger(__name__)

COMPILE_TASK = "compile"


@dataclass(frozen=True)
class Goal:
    """A named build goal.

    Attributes:
        name: Goal name as typed on the command line
        variant: Variant the goal builds (None for clean)
        derive: Whether the goal derives artifacts after compiling
        requires: Goals this goal depends on, by name
        description: One-line summary for --list
    """

    name: str
    variant: Optional[Variant]
    derive: bool
    requires: tuple[str, ...]
    description: str


def _goal_table() -> dict[str, Goal]:
    goals: dict[str, Goal] = {}
    for variant in Variant:
        suffix = "" if variant is Variant.DEFAULT else f"_{variant.value}"
        flags = get_variant(variant)
        elf, binary, build = f"elf{suffix}", f"binary{suffix}", f"build{suffix}"
        derived = ".bin and .asm" if flags.derive_disassembly else ".bin"
        goals[elf] = Goal(elf, variant, False, (), f"Compile for {flags.description}")
        goals[binary] = Goal(binary, variant, True, (elf,), f"Compile for {flags.description}, derive {derived}")
        goals[build] = Goal(build, variant, True, (binary,), f"Alias of {binary}")
    goals["clean"] = Goal("clean", None, False, (), "Remove all generated build state")
    return goals


GOALS: dict[str, Goal] = _goal_table()


def get_goal(name: str) -> Goal:
    """Look up a goal by name.

    Raises:
        UnknownGoalError: If the goal is not in the goal table
    """
    try:
        return GOALS[name]
    except KeyError:
        raise UnknownGoalError(name, list(GOALS)) from None


@dataclass
class GoalResult:
    """Result of running one goal.

    Attributes:
        goal: Goal name
        success: True if every requested artifact was produced
        variant: Variant built (None for clean)
        entry_points: Entry points the goal covered
        artifacts: entry point -> paths produced for it, ELF first
        failures: Task name -> error message for each failed task
        build_time: Wall-clock seconds spent
        message: One-line summary
    """

    goal: str
    success: bool
    variant: Optional[Variant] = None
    entry_points: tuple[str, ...] = ()
    artifacts: dict[str, list[Path]] = field(default_factory=dict)
    failures: dict[str, str] = field(default_factory=dict)
    build_time: float = 0.0
    message: str = ""


class BuildOrchestrator:
    """Runs build goals for one project directory.

    Args:
        project_dir: Cargo project root
        config: Pipeline configuration
        verbose: Enable verbose output
        use_tui: Rich live display. None = auto-detect (TTY check)
        callback: Progress callback to use instead of the display/log callbacks
    """

    def __init__(
        self,
        project_dir: Path,
        config: PipelineConfig,
        verbose: bool = False,
        use_tui: Optional[bool] = None,
        callback: Optional[ProgressCallback] = None,
    ):
        self.project_dir = project_dir
        self.config = config
        self.verbose = verbose
        self.use_tui = use_tui
        self.callback = callback
        self._pipeline: Optional[ParallelPipeline] = None

    def resolve(self, goal_name: str, variant_name: Optional[str] = None) -> BuildParams:
        """Resolve a goal to concrete build parameters without running anything.

        Args:
            goal_name: Compile or derive goal name
            variant_name: Mode name overriding the goal's own variant

        Raises:
            UnknownGoalError: If the goal is unknown
            UnknownVariantError: If variant_name is not a known mode
            SourceDirectoryError: If the entry-point directory is missing
            ConfigurationError: If the goal is clean
        """
        goal = get_goal(goal_name)
        if goal.variant is None:
            raise ConfigurationError(f"Goal '{goal_name}' does not build anything")
        variant = select_variant(variant_name) if variant_name is not None else goal.variant

        layout = BuildLayout(self.project_dir, self.config, variant)
        entry_points = discover_entry_points(layout.app_dir, self.config.source_suffix)
        return BuildParams.create(
            goal=goal_name,
            variant=variant,
            entry_points=entry_points,
            layout=layout,
            derive=goal.derive,
            verbose=self.verbose,
        )

    def run(self, goal_name: str, variant_name: Optional[str] = None) -> GoalResult:
        """Run a goal.

        Configuration errors propagate before any tool runs; toolchain
        failures are reported in the returned GoalResult.
        """
        goal = get_goal(goal_name)
        if goal.variant is None:
            _reject_variant_for(goal_name, variant_name)
            return self.clean()
        return self.build(self.resolve(goal_name, variant_name))

    def build(self, params: BuildParams) -> GoalResult:
        """Compile and derive artifacts for resolved parameters."""
        start_time = time.time()
        layout = params.layout

        output.log(f"Goal {params.goal}: {format_variant_banner(params.variant)}")
        output.log_detail(f"Entry points: {', '.join(params.entry_points) or '(none)'}")
        output.log_detail(f"Output: {layout.output_dir}", verbose_only=True)

        for warning in find_staleness(load_manifest(layout.manifest_path), params.variant, params.entry_points, layout):
            logger.warning(warning)
            output.log_warning(warning)

        tasks = self._create_tasks(params)
        self._pipeline = ParallelPipeline(max_workers=params.jobs, on_abort=lambda: self._abort_cleanup(layout))
        try:
            with output.TimedLogger(f"Running {len(tasks)} task(s) on {params.jobs} worker(s)", verbose_only=True):
                result = self._run_pipeline(params, tasks)
        finally:
            self._pipeline = None

        compile_task = result.get(COMPILE_TASK)
        if compile_task is not None and compile_task.phase == TaskPhase.DONE:
            manifest = snapshot(layout, params.variant, params.entry_points, params.derived_kinds)
            save_manifest(layout.manifest_path, manifest)

        return self._goal_result(params, result, time.time() - start_time)

    def cancel(self) -> None:
        """Request cancellation of a running build. Thread-safe."""
        pipeline = self._pipeline
        if pipeline is not None:
            pipeline.cancel()

    def clean(self) -> GoalResult:
        """Remove all generated build state for every target and variant.

        Succeeds whether or not a build has ever run. Paths that cannot be
        removed are warned about and named in the result message, but do
        not fail the goal.
        """
        start_time = time.time()
        target_root = self.project_dir / self.config.target_root
        if not target_root.exists() and not target_root.is_symlink():
            logger.debug("Nothing to clean at %s", target_root)
            message = "Nothing to clean"
            return GoalResult(goal="clean", success=True, build_time=time.time() - start_time, message=message)

        output.log(f"Removing {target_root}")
        if target_root.is_dir() and not target_root.is_symlink():
            _remove_tree(target_root)
        else:
            try:
                target_root.unlink()
            except OSError as e:
                _warn_not_removed(target_root, e)

        if target_root.exists() or target_root.is_symlink():
            message = f"Could not fully remove {target_root}"
        else:
            message = f"Removed {target_root}"
        return GoalResult(goal="clean", success=True, build_time=time.time() - start_time, message=message)

    def dry_run_commands(self, goal_name: str, variant_name: Optional[str] = None) -> list[list[str]]:
        """Return the tool commands a goal would run, in execution order.

        Disassembly commands are shown with their output redirection.
        """
        goal = get_goal(goal_name)
        if goal.variant is None:
            _reject_variant_for(goal_name, variant_name)
            return [["rm", "-rf", str(self.project_dir / self.config.target_root)]]

        params = self.resolve(goal_name, variant_name)
        layout = params.layout
        deriver = ArtifactDeriver(layout)
        commands = [CargoCompiler(params).command()]
        for name in params.entry_points:
            elf = layout.elf_path(name)
            for kind in params.derived_kinds:
                out = layout.artifact_path(name, kind)
                if kind is ArtifactKind.BINARY:
                    commands.append(deriver.binary_command(elf, out))
                else:
                    commands.append(deriver.disassembly_command(elf) + [">", str(out)])
        return commands

    @staticmethod
    def list_goals() -> list[Goal]:
        """Return every goal in table order."""
        return list(GOALS.values())

    def _create_tasks(self, params: BuildParams) -> list[BuildTask]:
        compiler = CargoCompiler(params)
        deriver = ArtifactDeriver(params.layout)

        def compile_all() -> Optional[Path]:
            output.log_command(compiler.command())
            compiler.compile()
            return params.layout.output_dir

        tasks = [BuildTask(name=COMPILE_TASK, action=compile_all)]
        for name in params.entry_points:
            for kind in params.derived_kinds:
                tasks.append(
                    BuildTask(
                        name=f"{name}{kind.value}",
                        action=lambda n=name, k=kind: deriver.derive(n, k),
                        dependencies=[COMPILE_TASK],
                        entry_point=name,
                    )
                )
        return tasks

    def _run_pipeline(self, params: BuildParams, tasks: list[BuildTask]) -> PipelineResult:
        assert self._pipeline is not None
        if self.callback is not None:
            return self._pipeline.run(tasks, self.callback)

        use_tui = self.use_tui if self.use_tui is not None else (params.derive and _is_tty())
        if not use_tui:
            return self._pipeline.run(tasks, LogCallback())

        display = PipelineProgressDisplay(
            console=None,
            title=f"Building {len(params.entry_points)} entry point(s) for {params.variant}",
        )
        for task in tasks:
            display.register_task(task.name)
        with display:
            return self._pipeline.run(tasks, display)

    def _abort_cleanup(self, layout: BuildLayout) -> None:
        removed = cleanup_temp_artifacts(layout.output_dir)
        if removed:
            logger.debug("Removed %d partial artifact(s) after interruption", removed)

    def _goal_result(self, params: BuildParams, result: PipelineResult, build_time: float) -> GoalResult:
        failures = {task.name: task.error_message for task in result.failed_tasks}

        artifacts: dict[str, list[Path]] = {}
        compile_task = result.get(COMPILE_TASK)
        compiled = compile_task is not None and compile_task.phase == TaskPhase.DONE
        for name in params.entry_points:
            paths = [params.layout.elf_path(name)] if compiled else []
            for kind in params.derived_kinds:
                task = result.get(f"{name}{kind.value}")
                if task is not None and task.phase == TaskPhase.DONE and task.output_path is not None:
                    paths.append(task.output_path)
            if paths:
                artifacts[name] = paths

        if result.success:
            message = f"Built {len(params.entry_points)} entry point(s) for {params.variant}"
        elif COMPILE_TASK in failures:
            message = f"Compilation failed for {params.variant}"
        else:
            failed_entries = sorted({t.entry_point for t in result.failed_tasks if t.entry_point})
            message = f"Derivation failed for {len(failed_entries)} entry point(s): {', '.join(failed_entries)}"

        return GoalResult(
            goal=params.goal,
            success=result.success,
            variant=params.variant,
            entry_points=params.entry_points,
            artifacts=artifacts,
            failures=failures,
            build_time=build_time,
            message=message,
        )


def _reject_variant_for(goal_name: str, variant_name: Optional[str]) -> None:
    if variant_name is not None:
        raise ConfigurationError(f"--variant cannot be used with '{goal_name}'")


def _warn_not_removed(path: object, error: BaseException) -> None:
    message = f"Could not remove {path}: {error}"
    logger.warning(message)
    output.log_warning(message)


def _remove_tree(path: Path) -> None:
    """rmtree that warns about each path it cannot remove and keeps going."""

    def on_error(func, failed_path, exc_info) -> None:
        _warn_not_removed(failed_path, exc_info[1])

    def on_exc(func, failed_path, exc) -> None:
        _warn_not_removed(failed_path, exc)

    if sys.version_info >= (3, 12):
        shutil.rmtree(path, onexc=on_exc)
    else:
        shutil.rmtree(path, onerror=on_error)


def _is_tty() -> bool:
    """Check if stdout is a terminal (TTY)."""
    try:
        return sys.stdout.isatty()
    except (AttributeError, ValueError):
        return False
