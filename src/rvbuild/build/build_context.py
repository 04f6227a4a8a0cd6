"""Build Context - output layout and per-invocation parameters.

This module defines:
- ArtifactKind: The three artifact kinds and their filename suffixes
- BuildLayout: Resolves project paths and the BuildOutputDir for a variant
- BuildParams: Everything one goal invocation needs, resolved up front

Design:
    BuildParams is created by the orchestrator after goal, variant and entry
    points have been resolved, i.e. after every configuration error has had
    its chance to surface. It flows unchanged into the compiler and deriver.

    The output directory is keyed by (target triple, mode). Unless
    isolate_variants is set, all variants share it, so ELF images from an
    earlier variant stay in place until the next compile or `clean`.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from ..config import PipelineConfig
from .variants import Variant, VariantFlags, get_variant

MANIFEST_NAME = ".rvbuild-manifest.json"


class ArtifactKind(Enum):
    """Artifact kinds, valued by the suffix appended to the entry-point name."""

    ELF = ""
    BINARY = ".bin"
    DISASSEMBLY = ".asm"

    @property
    def label(self) -> str:
        return self.name.lower()


@dataclass(frozen=True)
class BuildLayout:
    """Filesystem layout of a project for one variant.

    Attributes:
        project_dir: Cargo project root
        config: Pipeline configuration
        variant: Active variant (only affects paths when isolate_variants is set)
    """

    project_dir: Path
    config: PipelineConfig
    variant: Variant

    @property
    def app_dir(self) -> Path:
        """Directory that holds one entry point per file."""
        return self.project_dir / self.config.app_dir

    @property
    def target_root(self) -> Path:
        """Cargo target directory shared by every variant."""
        return self.project_dir / self.config.target_root

    @property
    def cargo_target_dir(self) -> Optional[Path]:
        """Explicit --target-dir for the compiler, or None to use cargo's default."""
        if self.config.isolate_variants:
            return self.target_root / self.variant.value
        return None

    @property
    def output_dir(self) -> Path:
        """BuildOutputDir: <target root>[/<variant>]/<triple>/<mode>."""
        base = self.cargo_target_dir or self.target_root
        return base / self.config.target_triple / self.config.mode

    @property
    def manifest_path(self) -> Path:
        return self.output_dir / MANIFEST_NAME

    def artifact_path(self, entry_point: str, kind: ArtifactKind) -> Path:
        """Path of an artifact: entry-point name plus the kind's suffix."""
        return self.output_dir / f"{entry_point}{kind.value}"

    def elf_path(self, entry_point: str) -> Path:
        return self.artifact_path(entry_point, ArtifactKind.ELF)


@dataclass(frozen=True)
class BuildParams:
    """Resolved parameters for one goal invocation.

    Attributes:
        goal: Goal name as requested (e.g. "build_lrv")
        variant: Resolved variant
        variant_flags: Pre-resolved feature flags for the variant
        entry_points: Discovered entry points, sorted
        layout: Path layout for the variant
        derive: Whether the goal derives artifacts after compiling
        jobs: Maximum concurrent derivation tasks
        verbose: Whether to enable verbose output
    """

    goal: str
    variant: Variant
    variant_flags: VariantFlags
    entry_points: tuple[str, ...]
    layout: BuildLayout
    derive: bool
    jobs: int
    verbose: bool

    @classmethod
    def create(
        cls,
        goal: str,
        variant: Variant,
        entry_points: tuple[str, ...],
        layout: BuildLayout,
        derive: bool,
        verbose: bool,
    ) -> "BuildParams":
        """Create BuildParams with resolved variant flags."""
        return cls(
            goal=goal,
            variant=variant,
            variant_flags=get_variant(variant),
            entry_points=entry_points,
            layout=layout,
            derive=derive,
            jobs=layout.config.jobs,
            verbose=verbose,
        )

    @property
    def derived_kinds(self) -> tuple[ArtifactKind, ...]:
        """Artifact kinds derived from each ELF image for this invocation."""
        if not self.derive:
            return ()
        if self.variant_flags.derive_disassembly:
            return (ArtifactKind.BINARY, ArtifactKind.DISASSEMBLY)
        return (ArtifactKind.BINARY,)
