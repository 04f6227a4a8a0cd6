"""Rich-based live progress display for the build task pipeline.

Renders one line per build task, updated in place while the pipeline runs:

    compile      Running  ⠹ Running...
    alpha.bin    Done     ✓ 0.4s
    alpha.asm    Failed   ✗ objdump failed for 'alpha' (exit code 1)

Thread-safe: pool worker threads call on_progress() concurrently while the
display renders in the main thread.
"""

import threading
import time
from typing import Any, Optional

from rich.console import Console, Group
from rich.live import Live
from rich.table import Table
from rich.text import Text

from .models import TaskPhase

# Braille spinner frames for the RUNNING phase animation
_SPINNER_FRAMES = ("⠋", "⠙", "⠹", "⠸", "⠼", "⠴", "⠦", "⠧", "⠇", "⠏")

_PHASE_LABELS = {
    TaskPhase.WAITING: ("Waiting", "dim"),
    TaskPhase.RUNNING: ("Running", "magenta"),
    TaskPhase.DONE: ("Done", "green"),
    TaskPhase.FAILED: ("Failed", "red bold"),
}


class _TaskDisplayState:
    """Internal state for a single task's display line."""

    __slots__ = ("name", "phase", "detail", "elapsed", "start_time")

    def __init__(self, name: str) -> None:
        self.name = name
        self.phase = TaskPhase.WAITING
        self.detail: str = ""
        self.elapsed: float = 0.0
        self.start_time: Optional[float] = None


class PipelineProgressDisplay:
    """Live task table using Rich. Implements ProgressCallback.

    Args:
        console: Rich Console instance for rendering. If None, creates a new one.
        title: Header line, e.g. "Building 2 entry point(s) for lrv".
        refresh_per_second: Display refresh rate.
    """

    def __init__(self, console: Optional[Console], title: str, refresh_per_second: int = 10) -> None:
        self._console = console if console is not None else Console()
        self._title = title
        self._refresh_per_second = refresh_per_second
        self._states: dict[str, _TaskDisplayState] = {}
        self._task_order: list[str] = []
        self._lock = threading.Lock()
        self._live: Optional[Live] = None

    def register_task(self, name: str) -> None:
        """Register a task so it is shown as Waiting before it starts."""
        with self._lock:
            if name not in self._states:
                self._states[name] = _TaskDisplayState(name)
                self._task_order.append(name)

    def on_progress(self, task_name: str, phase: TaskPhase, detail: str) -> None:
        """Update the display state for a task. Thread-safe."""
        with self._lock:
            state = self._states.get(task_name)
            if state is None:
                state = _TaskDisplayState(task_name)
                self._states[task_name] = state
                self._task_order.append(task_name)

            if state.phase == TaskPhase.WAITING and phase != TaskPhase.WAITING:
                state.start_time = time.monotonic()

            state.phase = phase
            state.detail = detail
            if state.start_time is not None:
                state.elapsed = time.monotonic() - state.start_time

    def start(self) -> None:
        """Start the live display. Call before pipeline.run()."""
        self._live = Live(
            self._render_display(),
            console=self._console,
            refresh_per_second=self._refresh_per_second,
            transient=False,
            get_renderable=self._render_display,
        )
        self._live.start()

    def stop(self) -> None:
        """Stop the live display, rendering the final state once more."""
        if self._live is not None:
            self._live.update(self._render_display())
            self._live.stop()
            self._live = None

    def _render_display(self) -> Group:
        header = Text(f"\n{self._title}\n", style="bold")
        return Group(header, self._render_table(), self._render_footer())

    def _render_table(self) -> Table:
        table = Table(show_header=False, show_edge=False, show_lines=False, box=None, padding=(0, 1), expand=False)
        table.add_column("Task", style="bold", no_wrap=True, min_width=20)
        table.add_column("Phase", no_wrap=True, min_width=8)
        table.add_column("Status", no_wrap=True, min_width=30)

        with self._lock:
            for name in self._task_order:
                state = self._states[name]
                table.add_row(self._format_name(state), self._format_phase(state), self._format_status(state))
        return table

    def _render_footer(self) -> Text:
        with self._lock:
            total = len(self._states)
            running = sum(1 for s in self._states.values() if s.phase == TaskPhase.RUNNING)
            done = sum(1 for s in self._states.values() if s.phase == TaskPhase.DONE)
            failed = sum(1 for s in self._states.values() if s.phase == TaskPhase.FAILED)

        parts = [f"{total} tasks"]
        if running:
            parts.append(f"{running} running")
        if done:
            parts.append(f"{done} done")
        if failed:
            parts.append(f"{failed} failed")
        return Text(f"\n  {', '.join(parts)}", style="dim")

    def _format_name(self, state: _TaskDisplayState) -> Text:
        styles = {TaskPhase.DONE: "green", TaskPhase.FAILED: "red", TaskPhase.WAITING: "dim"}
        return Text(state.name, style=styles.get(state.phase, "bold cyan"))

    def _format_phase(self, state: _TaskDisplayState) -> Text:
        label, style = _PHASE_LABELS[state.phase]
        return Text(label, style=style)

    def _format_status(self, state: _TaskDisplayState) -> Text:
        if state.phase == TaskPhase.RUNNING:
            spinner = _SPINNER_FRAMES[int(time.monotonic() * 8) % len(_SPINNER_FRAMES)]
            return Text(f"{spinner} {state.detail or 'Running...'}", style="magenta")
        if state.phase == TaskPhase.DONE:
            elapsed_str = f"{state.elapsed:.1f}s" if state.elapsed > 0 else ""
            return Text(f"✓ {elapsed_str}", style="green")
        if state.phase == TaskPhase.FAILED:
            # Tool diagnostics can span many lines; the summary reports them in full
            first_line = state.detail.splitlines()[0] if state.detail else "Error"
            return Text(f"✗ {first_line}", style="red")
        return Text("")

    def get_snapshot(self) -> list[dict[str, Any]]:
        """Get a snapshot of current display states for testing."""
        with self._lock:
            return [
                {
                    "name": self._states[name].name,
                    "phase": self._states[name].phase,
                    "detail": self._states[name].detail,
                    "elapsed": self._states[name].elapsed,
                }
                for name in self._task_order
            ]

    def __enter__(self) -> "PipelineProgressDisplay":
        self.start()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.stop()
