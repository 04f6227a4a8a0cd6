"""
Pipeline configuration.

Defaults describe the riscv64gc bare-metal layout (one entry point per file
in src/bin, cargo output under target/<triple>/release). Every field except
the optimization mode can be overridden from the environment:

    RVBUILD_TARGET            target triple
    RVBUILD_APP_DIR           entry-point directory, relative to the project
    RVBUILD_TARGET_DIR        cargo target root, relative to the project
    RVBUILD_CARGO             compiler command
    RVBUILD_OBJCOPY           object-stripper/converter command
    RVBUILD_OBJDUMP           disassembler command
    RVBUILD_JOBS              parallel derivation workers
    RVBUILD_ISOLATE_VARIANTS  "1" to give each variant its own output dir
"""

import os
import shlex
from dataclasses import dataclass, field, replace
from typing import Mapping, Optional

from .errors import ConfigurationError

DEFAULT_TARGET_TRIPLE = "riscv64gc-unknown-none-elf"
RELEASE_MODE = "release"


def _default_jobs() -> int:
    return max(1, os.cpu_count() or 1)


@dataclass(frozen=True)
class PipelineConfig:
    """Immutable configuration for one rvbuild invocation.

    Attributes:
        target_triple: Compilation target
        mode: Optimization mode; always "release"
        app_dir: Directory holding one entry point per file
        source_suffix: File suffix recognized as an entry point
        target_root: Cargo target directory
        cargo: Compiler command
        objcopy: Stripper/converter command (without per-file arguments)
        objdump: Disassembler command (without per-file arguments)
        jobs: Maximum concurrent derivation tasks
        isolate_variants: Key the output directory by variant as well
    """

    target_triple: str = DEFAULT_TARGET_TRIPLE
    mode: str = RELEASE_MODE
    app_dir: str = "src/bin"
    source_suffix: str = ".rs"
    target_root: str = "target"
    cargo: tuple[str, ...] = ("cargo",)
    objcopy: tuple[str, ...] = ("rust-objcopy", "--binary-architecture=riscv64")
    objdump: tuple[str, ...] = ("rust-objdump", "--arch-name=riscv64")
    jobs: int = field(default_factory=_default_jobs)
    isolate_variants: bool = False

    def __post_init__(self) -> None:
        if self.mode != RELEASE_MODE:
            raise ConfigurationError(f"Unsupported build mode '{self.mode}': only '{RELEASE_MODE}' is built")
        if self.jobs < 1:
            raise ConfigurationError(f"jobs must be at least 1, got {self.jobs}")
        for name in ("cargo", "objcopy", "objdump"):
            if not getattr(self, name):
                raise ConfigurationError(f"{name} command must not be empty")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "PipelineConfig":
        """Build a config from defaults plus RVBUILD_* environment overrides.

        Raises:
            ConfigurationError: If an override is malformed
        """
        env = os.environ if environ is None else environ
        overrides: dict[str, object] = {}

        if env.get("RVBUILD_TARGET"):
            overrides["target_triple"] = env["RVBUILD_TARGET"]
        if env.get("RVBUILD_APP_DIR"):
            overrides["app_dir"] = env["RVBUILD_APP_DIR"]
        if env.get("RVBUILD_TARGET_DIR"):
            overrides["target_root"] = env["RVBUILD_TARGET_DIR"]
        for key, name in (("RVBUILD_CARGO", "cargo"), ("RVBUILD_OBJCOPY", "objcopy"), ("RVBUILD_OBJDUMP", "objdump")):
            if key in env:
                try:
                    overrides[name] = tuple(shlex.split(env[key]))
                except ValueError as e:
                    raise ConfigurationError(f"{key} is not a valid command: {e}") from e
        if env.get("RVBUILD_JOBS"):
            try:
                overrides["jobs"] = int(env["RVBUILD_JOBS"])
            except ValueError as e:
                raise ConfigurationError(f"RVBUILD_JOBS must be an integer, got '{env['RVBUILD_JOBS']}'") from e
        if env.get("RVBUILD_ISOLATE_VARIANTS") == "1":
            overrides["isolate_variants"] = True

        return cls(**overrides)  # type: ignore[arg-type]

    def with_overrides(
        self,
        jobs: Optional[int] = None,
        isolate_variants: Optional[bool] = None,
        target_root: Optional[str] = None,
    ) -> "PipelineConfig":
        """Return a copy with CLI-level overrides applied (None leaves a field unchanged)."""
        changes: dict[str, object] = {}
        if jobs is not None:
            changes["jobs"] = jobs
        if isolate_variants is not None:
            changes["isolate_variants"] = isolate_variants
        if target_root is not None:
            changes["target_root"] = target_root
        return replace(self, **changes)  # type: ignore[arg-type]
