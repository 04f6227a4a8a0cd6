"""Entry-point discovery.

An entry point is one source file directly inside the application directory
(non-recursive); its identifier is the file-name stem. The set is recomputed
on every call so added or removed files show up on the next build.
"""

import logging
from pathlib import Path

from ..errors import SourceDirectoryError

logger = logging.getLogger(__name__)


def discover_entry_points(app_dir: Path, suffix: str = ".rs") -> tuple[str, ...]:
    """Enumerate entry points in app_dir.

    Args:
        app_dir: Directory holding one entry point per file
        suffix: Recognized source file suffix

    Returns:
        Sorted tuple of entry-point identifiers. An empty directory yields an
        empty tuple.

    Raises:
        SourceDirectoryError: If app_dir does not exist or is not a directory
    """
    if not app_dir.exists():
        raise SourceDirectoryError(f"Entry-point directory not found: {app_dir}")
    if not app_dir.is_dir():
        raise SourceDirectoryError(f"Entry-point path is not a directory: {app_dir}")

    names = sorted(p.stem for p in app_dir.iterdir() if p.is_file() and p.suffix == suffix)
    logger.debug("Discovered %d entry point(s) in %s: %s", len(names), app_dir, ", ".join(names))
    return tuple(names)
