"""Pytest configuration and fixtures for rvbuild tests.

This conftest addresses Python 3.13 compatibility issues with pytest's capture fixtures.
Python 3.13 changed how stdout/stderr are handled, causing "I/O operation on closed file"
errors during test teardown. This is a known issue: https://github.com/pytest-dev/pytest/issues/11439
"""

import io
import subprocess
import sys
import threading
import warnings
from pathlib import Path
from unittest.mock import patch

import pytest

from rvbuild import output

# Suppress ResourceWarnings from file cleanup in Python 3.13
if sys.version_info >= (3, 13):
    warnings.filterwarnings("ignore", category=ResourceWarning)


@pytest.fixture(autouse=True)
def _restore_stdio():  # noqa: PT004
    """Ensure stdout/stderr are always restored after each test."""
    yield

    if sys.stdout.closed:
        sys.stdout = sys.__stdout__
    if sys.stderr.closed:
        sys.stderr = sys.__stderr__


@pytest.fixture(autouse=True)
def output_stream():
    """Route rvbuild.output into a buffer for the duration of a test."""
    stream = io.StringIO()
    output.init_timer(stream)
    output.set_verbose(False)
    output.set_output_file(None)
    yield stream
    output._output_stream = sys.stdout
    output.set_verbose(False)
    output.set_output_file(None)


@pytest.hookimpl(hookwrapper=True, trylast=True)
def pytest_runtest_teardown(item):  # noqa: ARG001
    """Ensure streams are restored during teardown phase."""
    yield

    if hasattr(sys.stdout, "closed") and sys.stdout.closed:
        sys.stdout = sys.__stdout__
    if hasattr(sys.stderr, "closed") and sys.stderr.closed:
        sys.stderr = sys.__stderr__


class FakeToolchain:
    """Stand-in for cargo, rust-objcopy and rust-objdump.

    Installed in place of rvbuild.subprocess_utils.safe_run. Compiling
    writes one ELF file per src/bin/*.rs whose contents depend only on the
    entry point and the feature set, so repeated builds are byte-identical.

    Attributes:
        calls: Every command line received, in call order
        fail_compile: Make cargo exit with an error
        fail_entries: Entry points whose objcopy/objdump invocations fail
        missing_elfs: Entry points cargo "forgets" to produce
    """

    def __init__(self) -> None:
        self.calls: list[list[str]] = []
        self.fail_compile = False
        self.fail_entries: set[str] = set()
        self.missing_elfs: set[str] = set()
        self._lock = threading.Lock()

    def __call__(self, cmd, **kwargs):
        with self._lock:
            self.calls.append(list(cmd))
        if cmd[0] == "cargo":
            return self._cargo(cmd, kwargs["cwd"])
        if cmd[0] == "rust-objcopy":
            return self._objcopy(cmd)
        if cmd[0] == "rust-objdump":
            return self._objdump(cmd, kwargs["stdout"])
        raise FileNotFoundError(2, "No such file or directory", cmd[0])

    def commands_for(self, tool: str) -> list[list[str]]:
        with self._lock:
            return [c for c in self.calls if c[0] == tool]

    def _cargo(self, cmd, cwd):
        if self.fail_compile:
            return subprocess.CompletedProcess(cmd, 101, b"", b"error[E0425]: cannot find value `x` in this scope\n")
        triple = cmd[cmd.index("--target") + 1]
        features = cmd[cmd.index("--features") + 1]
        target_root = Path(cmd[cmd.index("--target-dir") + 1]) if "--target-dir" in cmd else Path(cwd) / "target"
        out_dir = target_root / triple / "release"
        out_dir.mkdir(parents=True, exist_ok=True)
        for source in sorted((Path(cwd) / "src" / "bin").glob("*.rs")):
            if source.stem not in self.missing_elfs:
                (out_dir / source.stem).write_bytes(f"ELF {source.stem} [{features}]".encode())
        return subprocess.CompletedProcess(cmd, 0, b"", b"   Compiling app v0.1.0\n    Finished release\n")

    def _objcopy(self, cmd):
        elf, out = Path(cmd[-5]), Path(cmd[-1])
        if elf.name in self.fail_entries:
            return subprocess.CompletedProcess(cmd, 1, b"", f"rust-objcopy: error: '{elf}': bad section\n".encode())
        out.write_bytes(b"BIN " + elf.read_bytes())
        return subprocess.CompletedProcess(cmd, 0, b"", b"")

    def _objdump(self, cmd, stdout):
        elf = Path(cmd[-1])
        if elf.name in self.fail_entries:
            return subprocess.CompletedProcess(cmd, 1, None, f"rust-objdump: error: '{elf}': invalid\n".encode())
        stdout.write(b"ASM " + elf.read_bytes())
        return subprocess.CompletedProcess(cmd, 0, None, b"")


@pytest.fixture
def fake_toolchain():
    """Patch external tool execution with a FakeToolchain."""
    toolchain = FakeToolchain()
    with patch("rvbuild.subprocess_utils.safe_run", side_effect=toolchain):
        yield toolchain


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """A cargo project with entry points alpha and beta."""
    project = tmp_path / "user"
    bin_dir = project / "src" / "bin"
    bin_dir.mkdir(parents=True)
    (project / "Cargo.toml").write_text('[package]\nname = "user_lib"\nversion = "0.1.0"\n')
    (bin_dir / "alpha.rs").write_text("#![no_std]\n#![no_main]\n")
    (bin_dir / "beta.rs").write_text("#![no_std]\n#![no_main]\n")
    return project
