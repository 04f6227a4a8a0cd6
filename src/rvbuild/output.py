"""
Centralized user-facing output for rvbuild.

Every line is prefixed with the time elapsed since program launch in
MM:SS.cc format, which makes it easy to see where a build spends its time.

Example output:
    00:00.01 rvbuild v0.3.0
    00:00.02 Goal: binary (variant qemu, 2 entry points)
    00:00.02 [1/2] Compiling entry points...
    00:04.87       Done (4.85s)
    00:04.87 [2/2] Deriving artifacts...
    00:05.10       alpha.bin
    00:05.12       alpha.asm

Usage:
    from rvbuild.output import log, log_phase, log_detail, init_timer

    init_timer()
    log_phase(1, 2, "Compiling entry points...")
    log_detail("alpha.bin")
"""

import sys
import time
from pathlib import Path
from types import TracebackType
from typing import Optional, TextIO

_start_time: Optional[float] = None
_output_stream: TextIO = sys.stdout
_verbose: bool = False
_output_file: Optional[TextIO] = None


def init_timer(output_stream: Optional[TextIO] = None) -> None:
    """
    Initialize the program timer.

    Called by the CLI at startup. If never called, the first log line
    starts the clock.

    Args:
        output_stream: Optional output stream (defaults to sys.stdout)
    """
    global _start_time, _output_stream
    _start_time = time.time()
    if output_stream is not None:
        _output_stream = output_stream


def set_verbose(verbose: bool) -> None:
    """Enable or disable printing of verbose-only messages."""
    global _verbose
    _verbose = verbose


def is_verbose() -> bool:
    """Return True if verbose-only messages are printed."""
    return _verbose


def set_output_file(output_file: Optional[TextIO]) -> None:
    """
    Mirror all output lines into a file (in addition to the stream).

    Args:
        output_file: File object to receive output, or None to disable
    """
    global _output_file
    _output_file = output_file


def get_elapsed() -> float:
    """Return seconds elapsed since the timer was initialized."""
    if _start_time is None:
        init_timer()
    return time.time() - _start_time  # type: ignore[operator]


def format_timestamp() -> str:
    """Format the current elapsed time as MM:SS.cc."""
    elapsed = get_elapsed()
    minutes = int(elapsed // 60)
    seconds = elapsed % 60
    return f"{minutes:02d}:{seconds:05.2f}"


def _print(message: str) -> None:
    line = f"{format_timestamp()} {message}\n"
    _output_stream.write(line)
    _output_stream.flush()

    if _output_file is not None:
        _output_file.write(line)
        _output_file.flush()


def log(message: str, verbose_only: bool = False) -> None:
    """Log a message with timestamp."""
    if verbose_only and not _verbose:
        return
    _print(message)


def log_phase(phase: int, total: int, message: str, verbose_only: bool = False) -> None:
    """
    Log a pipeline phase message.

    Format: [N/M] message
    """
    if verbose_only and not _verbose:
        return
    _print(f"[{phase}/{total}] {message}")


def log_detail(message: str, indent: int = 6, verbose_only: bool = False) -> None:
    """Log an indented detail line."""
    if verbose_only and not _verbose:
        return
    _print(f"{' ' * indent}{message}")


def log_command(command: list[str]) -> None:
    """Log an external tool command line (verbose only)."""
    log_detail("$ " + " ".join(command), verbose_only=True)


def log_header(title: str, version: str) -> None:
    """Log the program banner."""
    _print(f"{title} v{version}")


def log_artifact(path: Path, verbose_only: bool = False) -> None:
    """Log a produced artifact by file name."""
    log_detail(path.name, verbose_only=verbose_only)


def log_build_complete(build_time: float) -> None:
    """Log the total goal time."""
    _print(f"Build time: {build_time:.2f}s")


def log_error(message: str) -> None:
    """Log an error message."""
    _print(f"ERROR: {message}")


def log_warning(message: str) -> None:
    """Log a warning message."""
    _print(f"WARNING: {message}")


def log_success(message: str) -> None:
    """Log a success message."""
    _print(message)


class TimedLogger:
    """
    Context manager that logs an operation and its duration.

    Usage:
        with TimedLogger("Compiling entry points", phase=(1, 2)):
            compiler.compile(...)
        # logs "Done (4.85s)" when the block exits without an exception
    """

    def __init__(self, operation: str, phase: Optional[tuple[int, int]] = None, verbose_only: bool = False):
        self.operation = operation
        self.phase = phase
        self.verbose_only = verbose_only
        self.start_time = 0.0

    def __enter__(self) -> "TimedLogger":
        self.start_time = time.time()
        if self.phase:
            log_phase(self.phase[0], self.phase[1], f"{self.operation}...", self.verbose_only)
        else:
            log(f"{self.operation}...", self.verbose_only)
        return self

    def __exit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        del exc_val, exc_tb  # Unused
        elapsed = time.time() - self.start_time
        if exc_type is None:
            log_detail(f"Done ({elapsed:.2f}s)", verbose_only=self.verbose_only)
        return None

    def detail(self, message: str) -> None:
        """Log a detail message within this operation."""
        log_detail(message, verbose_only=self.verbose_only)
