"""Subprocess utilities for invoking external build tools.

``safe_run`` applies platform-specific flags (no console window on Windows,
stdin detached from the terminal). ``run_tool`` builds on it for the fixed-CLI
tools of the pipeline: it captures output and turns a nonzero exit or a
missing executable into a ``ToolchainError``.
"""

import logging
import subprocess
import sys
from pathlib import Path
from typing import Any, Optional, Sequence

from .errors import ToolchainError

logger = logging.getLogger(__name__)

# Value of subprocess.CREATE_NO_WINDOW, which only exists on Windows builds of Python
CREATE_NO_WINDOW = 0x08000000


def get_subprocess_creation_flags() -> int:
    """Get platform-specific subprocess creation flags.

    Returns:
        - Windows: CREATE_NO_WINDOW (prevents console window)
        - Other platforms: 0 (no special flags)
    """
    if sys.platform == "win32":
        return CREATE_NO_WINDOW
    return 0


def safe_run(cmd: list[str], **kwargs: Any) -> subprocess.CompletedProcess:
    """Execute subprocess.run with platform-specific flags.

    Custom ``creationflags`` are OR'd with the platform defaults. Unless
    ``stdin`` is given, it is redirected to DEVNULL so tools never read
    from the controlling terminal.
    """
    default_flags = get_subprocess_creation_flags()

    if "creationflags" in kwargs:
        kwargs["creationflags"] = kwargs["creationflags"] | default_flags
    elif default_flags:
        kwargs["creationflags"] = default_flags

    if "stdin" not in kwargs:
        kwargs["stdin"] = subprocess.DEVNULL

    return subprocess.run(cmd, **kwargs)


def run_tool(
    tool: str,
    cmd: Sequence[str],
    cwd: Optional[Path] = None,
    stdout_path: Optional[Path] = None,
    entry_point: Optional[str] = None,
) -> subprocess.CompletedProcess:
    """Run an external tool and raise ToolchainError on failure.

    Args:
        tool: Short tool name used in error messages
        cmd: Command and arguments
        cwd: Working directory for the tool
        stdout_path: If given, the tool's stdout is written to this file
            instead of being captured
        entry_point: Entry point the invocation belongs to, for error reports

    Returns:
        The completed process (stdout is empty when stdout_path is used)

    Raises:
        ToolchainError: If the tool cannot be started or exits nonzero
    """
    command = [str(part) for part in cmd]
    logger.debug("Running %s: %s", tool, " ".join(command))

    try:
        if stdout_path is not None:
            with open(stdout_path, "wb") as out:
                result = safe_run(command, cwd=cwd, stdout=out, stderr=subprocess.PIPE)
        else:
            result = safe_run(command, cwd=cwd, capture_output=True)
    except FileNotFoundError as e:
        raise ToolchainError(tool, command, 127, f"{e}", entry_point=entry_point) from e

    if result.returncode != 0:
        stderr = result.stderr.decode("utf-8", errors="replace") if isinstance(result.stderr, bytes) else (result.stderr or "")
        raise ToolchainError(tool, command, result.returncode, stderr, entry_point=entry_point)

    return result
