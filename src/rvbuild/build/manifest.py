"""
Build Manifest - record what the last build left in an output directory.

The output directory is shared by every variant and is never pruned, so
artifacts from an earlier variant or from a removed entry point can linger
and be picked up as if they were current. The manifest records the variant,
the entry-point set and the SHA-256 of every artifact of the last build, so
the next build can warn about both hazards. It never deletes anything.

Example:
    >>> previous = load_manifest(layout.manifest_path)
    >>> for warning in find_staleness(previous, Variant.BOARD, ("alpha",), layout):
    ...     logger.warning(warning)
"""

import hashlib
import json
import logging
import os
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from .build_context import ArtifactKind, BuildLayout
from .variants import Variant

logger = logging.getLogger(__name__)

MANIFEST_VERSION = 1


def compute_file_hash(path: Path) -> str:
    """Compute the SHA-256 of a file, reading it in chunks."""
    hasher = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(65536), b""):
            hasher.update(chunk)
    return hasher.hexdigest()


@dataclass
class BuildManifest:
    """Snapshot of one build's outputs.

    Attributes:
        variant: Variant value the ELF images were compiled for
        entry_points: Entry points of that build, sorted
        artifacts: entry point -> artifact kind label -> SHA-256
        written_at: Unix timestamp of the snapshot
    """

    variant: str
    entry_points: list[str]
    artifacts: dict[str, dict[str, str]] = field(default_factory=dict)
    written_at: float = field(default_factory=time.time)

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": MANIFEST_VERSION,
            "variant": self.variant,
            "entry_points": list(self.entry_points),
            "artifacts": {name: dict(kinds) for name, kinds in sorted(self.artifacts.items())},
            "written_at": self.written_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "BuildManifest":
        return cls(
            variant=data["variant"],
            entry_points=list(data["entry_points"]),
            artifacts={name: dict(kinds) for name, kinds in data.get("artifacts", {}).items()},
            written_at=data.get("written_at", 0.0),
        )


def snapshot(
    layout: BuildLayout,
    variant: Variant,
    entry_points: tuple[str, ...],
    derived_kinds: tuple[ArtifactKind, ...] = (),
) -> BuildManifest:
    """Hash the ELF images and the given derived artifacts of each entry point.

    Artifact kinds the build did not produce are left out, even when an
    earlier build left such a file on disk.
    """
    kinds = (ArtifactKind.ELF,) + tuple(k for k in derived_kinds if k is not ArtifactKind.ELF)
    artifacts: dict[str, dict[str, str]] = {}
    for name in entry_points:
        hashes = {}
        for kind in kinds:
            path = layout.artifact_path(name, kind)
            if path.is_file():
                hashes[kind.label] = compute_file_hash(path)
        if hashes:
            artifacts[name] = hashes
    return BuildManifest(variant=variant.value, entry_points=sorted(entry_points), artifacts=artifacts)


def load_manifest(path: Path) -> Optional[BuildManifest]:
    """Read a manifest. Missing or unreadable manifests yield None."""
    if not path.exists():
        return None
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
        return BuildManifest.from_dict(data)
    except (ValueError, OSError, KeyError, TypeError, AttributeError) as e:
        logger.debug("Ignoring unreadable manifest %s: %s", path, e)
        return None


def save_manifest(path: Path, manifest: BuildManifest) -> None:
    """Write a manifest atomically (temp file + rename)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = path.with_name(path.name + ".tmp")
    with open(temp_path, "w", encoding="utf-8") as f:
        json.dump(manifest.to_dict(), f, indent=2, sort_keys=True)
        f.write("\n")
    os.replace(temp_path, path)


def find_staleness(
    previous: Optional[BuildManifest],
    variant: Variant,
    entry_points: tuple[str, ...],
    layout: BuildLayout,
) -> list[str]:
    """Describe staleness hazards left by the previous build.

    Args:
        previous: Manifest of the previous build, or None
        variant: Variant about to be built
        entry_points: Entry points about to be built
        layout: Layout of the output directory

    Returns:
        Human-readable warnings; empty if nothing looks stale
    """
    if previous is None:
        return []

    warnings = []
    if previous.variant != variant.value:
        warnings.append(
            f"Output directory {layout.output_dir} was last built for variant '{previous.variant}', "
            f"now building '{variant.value}'; run 'clean' first if artifacts must not be mixed"
        )

    current = set(entry_points)
    for name in previous.entry_points:
        if name not in current and layout.elf_path(name).exists():
            warnings.append(f"Stale artifacts for removed entry point '{name}' remain in {layout.output_dir}")
    return warnings
