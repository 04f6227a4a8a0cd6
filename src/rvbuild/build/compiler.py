"""Cargo compiler invoker.

Runs one `cargo build` over the whole entry-point set for the selected
variant and returns the ELF image of each entry point.

Compilation Strategy:
    - Single invocation; cargo parallelizes internally
    - Always `--release`: there is no debug-mode pipeline
    - `--features` carries the variant's space-separated feature set
    - Any compile error aborts the invocation; no partial output is used
"""

import logging
from pathlib import Path

from ..errors import ToolchainError
from ..subprocess_utils import run_tool
from .build_context import BuildParams

logger = logging.getLogger(__name__)


class CargoCompiler:
    """Builds every entry point of a project for one variant."""

    def __init__(self, params: BuildParams):
        self.params = params
        self.layout = params.layout
        self.config = params.layout.config

    def command(self) -> list[str]:
        """Return the compiler command line for this invocation."""
        cmd = [
            *self.config.cargo,
            "build",
            "--release",
            "--target",
            self.config.target_triple,
            "--features",
            " ".join(self.params.variant_flags.features),
        ]
        target_dir = self.layout.cargo_target_dir
        if target_dir is not None:
            cmd += ["--target-dir", str(target_dir)]
        return cmd

    def compile(self) -> dict[str, Path]:
        """Compile all entry points.

        Returns:
            Mapping of entry-point name to its ELF image path

        Raises:
            ToolchainError: If cargo fails, or exits successfully without
                producing an ELF image for some entry point
        """
        cmd = self.command()
        logger.info("Compiling %d entry point(s) for variant %s", len(self.params.entry_points), self.params.variant)
        result = run_tool("cargo", cmd, cwd=self.layout.project_dir)
        if result.stderr:
            logger.debug("cargo output:\n%s", result.stderr.decode("utf-8", errors="replace"))

        elfs = {name: self.layout.elf_path(name) for name in self.params.entry_points}
        missing = sorted(name for name, path in elfs.items() if not path.is_file())
        if missing:
            raise ToolchainError(
                "cargo",
                cmd,
                0,
                f"No ELF image produced for: {', '.join(missing)} (expected in {self.layout.output_dir})",
            )
        return elfs
