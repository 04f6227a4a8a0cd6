"""Artifact deriver.

Derives a stripped raw binary image (.bin) and, for non-traced variants, a
disassembly listing (.asm) from each entry point's ELF image.

Each artifact is produced under a temporary name in the output directory
and moved into place with os.replace, so a concurrent reader sees either
the previous artifact or the complete new one, never a partial file.
Derivations for different entry points share no state and run in parallel
as independent pipeline tasks.
"""

import logging
import os
import uuid
from pathlib import Path

from ..errors import ToolchainError
from ..subprocess_utils import run_tool
from .build_context import ArtifactKind, BuildLayout

logger = logging.getLogger(__name__)

TEMP_SUFFIX = ".rvbuild-tmp"


class ArtifactDeriver:
    """Runs the stripper/converter and disassembler for one output directory."""

    def __init__(self, layout: BuildLayout):
        self.layout = layout
        self.config = layout.config

    def binary_command(self, elf_path: Path, out_path: Path) -> list[str]:
        """Command that strips elf_path and writes a flat binary to out_path."""
        return [*self.config.objcopy, str(elf_path), "--strip-all", "-O", "binary", str(out_path)]

    def disassembly_command(self, elf_path: Path) -> list[str]:
        """Command that prints the disassembly of elf_path, interleaving source."""
        return [*self.config.objdump, "-S", str(elf_path)]

    def derive(self, entry_point: str, kind: ArtifactKind) -> Path:
        """Derive one artifact for an entry point.

        Args:
            entry_point: Entry-point identifier
            kind: ArtifactKind.BINARY or ArtifactKind.DISASSEMBLY

        Returns:
            Path of the artifact written

        Raises:
            ToolchainError: If the ELF image is missing or the tool fails
            ValueError: If kind is not a derived artifact kind
        """
        elf_path = self.layout.elf_path(entry_point)
        if not elf_path.is_file():
            raise ToolchainError(
                "derive",
                [],
                1,
                f"ELF image not found: {elf_path}",
                entry_point=entry_point,
            )

        final_path = self.layout.artifact_path(entry_point, kind)
        temp_path = final_path.with_name(f"{final_path.name}.{uuid.uuid4().hex[:8]}{TEMP_SUFFIX}")

        try:
            if kind is ArtifactKind.BINARY:
                run_tool("objcopy", self.binary_command(elf_path, temp_path), entry_point=entry_point)
            elif kind is ArtifactKind.DISASSEMBLY:
                run_tool("objdump", self.disassembly_command(elf_path), stdout_path=temp_path, entry_point=entry_point)
            else:
                raise ValueError(f"Not a derived artifact kind: {kind}")
            os.replace(temp_path, final_path)
        finally:
            _remove_quietly(temp_path)

        logger.debug("Derived %s for %s -> %s", kind.label, entry_point, final_path)
        return final_path


def cleanup_temp_artifacts(output_dir: Path) -> int:
    """Remove temporary artifact files left by interrupted derivations.

    Returns:
        Number of files removed
    """
    if not output_dir.is_dir():
        return 0
    removed = 0
    for temp_file in output_dir.glob(f"*{TEMP_SUFFIX}"):
        if _remove_quietly(temp_file):
            logger.debug("Removed partial artifact: %s", temp_file)
            removed += 1
    return removed


def _remove_quietly(path: Path) -> bool:
    """Delete path if it exists. Returns True if a file was removed."""
    try:
        path.unlink()
        return True
    except FileNotFoundError:
        return False
    except OSError as e:
        logger.warning("Could not remove %s: %s", path, e)
        return False
