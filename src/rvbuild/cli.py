"""
Command-line interface for rvbuild.

This module provides the `rvbuild` CLI tool. Each invocation runs one named
goal (default: build) against a cargo project.
"""

import argparse
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from rvbuild import __version__, output
from rvbuild.build import BuildOrchestrator, GoalResult
from rvbuild.config import PipelineConfig
from rvbuild.errors import ConfigurationError
from rvbuild.pipeline import PipelineCancelledError

EXIT_SUCCESS = 0
EXIT_BUILD_FAILED = 1
EXIT_CONFIG_ERROR = 2
EXIT_INTERRUPTED = 130  # Standard exit code for SIGINT

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logger = logging.getLogger(__name__)


@dataclass
class GoalArgs:
    """Arguments for running a goal."""

    goal: str
    project_dir: Path
    variant: Optional[str] = None
    jobs: Optional[int] = None
    isolate_variants: bool = False
    target_dir: Optional[str] = None
    dry_run: bool = False
    use_tui: Optional[bool] = None
    verbose: bool = False


def setup_logging(verbose: bool) -> None:
    """Configure the root logger for command-line use."""
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if verbose else logging.WARNING)


def list_goals() -> None:
    """Print the goal table."""
    for goal in BuildOrchestrator.list_goals():
        variant = str(goal.variant) if goal.variant is not None else "-"
        requires = ", ".join(goal.requires) or "-"
        print(f"{goal.name:<18} variant={variant:<10} requires={requires:<16} {goal.description}")


def goal_command(args: GoalArgs) -> int:
    """Run one goal and return the process exit code.

    Examples:
        rvbuild                          # Build the default (qemu) variant
        rvbuild build_lrv                # Build for the LRV board
        rvbuild build --variant board    # Same, selecting the mode by name
        rvbuild elf_lrv_trace -v         # Compile only, verbose
        rvbuild clean                    # Remove all build state
    """
    try:
        config = PipelineConfig.from_env().with_overrides(
            jobs=args.jobs,
            isolate_variants=args.isolate_variants or None,
            target_root=args.target_dir,
        )
        orchestrator = BuildOrchestrator(
            project_dir=args.project_dir,
            config=config,
            verbose=args.verbose,
            use_tui=args.use_tui,
        )

        if args.dry_run:
            for command in orchestrator.dry_run_commands(args.goal, args.variant):
                print(" ".join(command))
            return EXIT_SUCCESS

        output.log_header("rvbuild", __version__)
        result = orchestrator.run(args.goal, args.variant)

    except ConfigurationError as e:
        output.log_error(str(e))
        return EXIT_CONFIG_ERROR

    except (KeyboardInterrupt, PipelineCancelledError):
        output.log_warning("Build interrupted")
        return EXIT_INTERRUPTED

    return _report(result)


def _report(result: GoalResult) -> int:
    if result.success:
        for _, paths in sorted(result.artifacts.items()):
            for path in paths:
                output.log_artifact(path, verbose_only=True)
        output.log_success(result.message)
        output.log_build_complete(result.build_time)
        return EXIT_SUCCESS

    output.log_error(result.message)
    for task_name, error in result.failures.items():
        output.log_detail(f"{task_name}: {error}", indent=2)
    return EXIT_BUILD_FAILED


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rvbuild",
        description="rvbuild - build and derive artifacts for bare-metal RISC-V firmware",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"rvbuild {__version__}",
    )
    parser.add_argument(
        "goal",
        nargs="?",
        default="build",
        help="Goal to run (default: build). See --list",
    )
    parser.add_argument(
        "-C",
        "--project-dir",
        type=Path,
        default=None,
        help="Project directory (default: current directory)",
    )
    parser.add_argument(
        "--variant",
        default=None,
        help="Build mode overriding the goal's variant (qemu, lrv, lrv_trace)",
    )
    parser.add_argument(
        "-j",
        "--jobs",
        type=int,
        default=None,
        help="Parallel derivation workers (default: RVBUILD_JOBS or CPU count)",
    )
    parser.add_argument(
        "--isolate-variants",
        action="store_true",
        help="Give each variant its own output directory",
    )
    parser.add_argument(
        "--target-dir",
        default=None,
        help="Cargo target root, relative to the project (default: target)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the tool commands without running them",
    )
    parser.add_argument(
        "--list",
        action="store_true",
        help="List available goals and exit",
    )
    parser.add_argument(
        "--no-tui",
        action="store_true",
        help="Disable the live progress display",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show verbose build output",
    )
    return parser


def main(argv: Optional[list[str]] = None) -> None:
    """rvbuild - build bare-metal RISC-V firmware artifacts."""
    parsed_args = build_parser().parse_args(argv)

    if parsed_args.list:
        list_goals()
        sys.exit(EXIT_SUCCESS)

    setup_logging(parsed_args.verbose)
    output.init_timer()
    output.set_verbose(parsed_args.verbose)

    args = GoalArgs(
        goal=parsed_args.goal,
        project_dir=parsed_args.project_dir or Path.cwd(),
        variant=parsed_args.variant,
        jobs=parsed_args.jobs,
        isolate_variants=parsed_args.isolate_variants,
        target_dir=parsed_args.target_dir,
        dry_run=parsed_args.dry_run,
        use_tui=False if parsed_args.no_tui else None,
        verbose=parsed_args.verbose,
    )
    exit_code = goal_command(args)
    logger.debug("Goal %s finished with exit code %d", args.goal, exit_code)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
