"""Exception hierarchy for rvbuild.

Configuration errors are raised before any external tool runs. Toolchain
errors wrap a failed compiler, stripper or disassembler invocation and carry
the tool's diagnostics verbatim.
"""

from typing import Optional, Sequence


class RvbuildError(Exception):
    """Base class for all rvbuild errors."""

    pass


class ConfigurationError(RvbuildError):
    """Raised for invalid configuration, detected before any tool is invoked."""

    pass


class UnknownVariantError(ConfigurationError):
    """Raised when a requested build mode does not name a known variant."""

    def __init__(self, name: str, valid: Sequence[str]):
        self.name = name
        self.valid = tuple(valid)
        super().__init__(f"Unknown variant '{name}' (expected one of: {', '.join(self.valid)})")


class UnknownGoalError(ConfigurationError):
    """Raised when a requested goal is not in the goal table."""

    def __init__(self, name: str, valid: Sequence[str]):
        self.name = name
        self.valid = tuple(valid)
        super().__init__(f"Unknown goal '{name}' (expected one of: {', '.join(self.valid)})")


class SourceDirectoryError(ConfigurationError):
    """Raised when the entry-point source directory is missing."""

    pass


class ToolchainError(RvbuildError):
    """Raised when an external tool exits with a nonzero status.

    Attributes:
        tool: Short tool name (e.g. "cargo", "objcopy")
        command: Full command line that was executed
        returncode: Exit status of the tool (127 if it could not be started)
        stderr: Diagnostics emitted by the tool, unmodified
        entry_point: Entry point the invocation was for, if any
    """

    def __init__(
        self,
        tool: str,
        command: Sequence[str],
        returncode: int,
        stderr: str = "",
        entry_point: Optional[str] = None,
    ):
        self.tool = tool
        self.command = list(command)
        self.returncode = returncode
        self.stderr = stderr
        self.entry_point = entry_point
        super().__init__(self._format())

    def _format(self) -> str:
        subject = f"{self.tool} failed for '{self.entry_point}'" if self.entry_point else f"{self.tool} failed"
        message = f"{subject} (exit code {self.returncode})"
        if self.stderr:
            message += "\n" + self.stderr.rstrip()
        return message
