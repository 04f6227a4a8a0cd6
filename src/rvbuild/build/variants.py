"""Board Variant Configuration.

This module maps a requested build mode to the cargo feature set that selects
the target board and optional instrumentation.

Design:
    Variants form a closed enum. Each member owns exactly one entry in the
    VARIANTS table, so adding a board/trace combination means adding an enum
    member and its table row together; test_variants checks the two agree.

    The feature sets are disjoint per invocation: exactly one variant is
    active per compile, and variants are never mixed in a single build.
"""

from dataclasses import dataclass
from enum import Enum

from ..errors import UnknownVariantError


class Variant(Enum):
    """Build variant enum for type-safe variant selection."""

    DEFAULT = "qemu"
    BOARD = "lrv"
    BOARD_TRACED = "lrv_trace"

    def __str__(self) -> str:
        """Return the string value for directory names and display."""
        return self.value


@dataclass(frozen=True)
class VariantFlags:
    """Compile-time configuration of one variant.

    All fields are mandatory - no defaults.

    Attributes:
        name: Variant identifier (matches Variant enum value)
        description: Human-readable variant description
        features: Ordered cargo feature flags passed to the compiler
        derive_disassembly: Whether derivation also produces a .asm listing
    """

    name: str
    description: str
    features: tuple[str, ...]
    derive_disassembly: bool


VARIANTS: dict[Variant, VariantFlags] = {
    Variant.DEFAULT: VariantFlags(
        name="qemu",
        description="QEMU virt machine (default)",
        features=("board_qemu",),
        derive_disassembly=True,
    ),
    Variant.BOARD: VariantFlags(
        name="lrv",
        description="Physical LRV board",
        features=("board_lrv",),
        derive_disassembly=True,
    ),
    Variant.BOARD_TRACED: VariantFlags(
        name="lrv_trace",
        description="Physical LRV board with execution tracing",
        features=("board_lrv", "trace"),
        derive_disassembly=False,
    ),
}

# Alternate spellings accepted on the command line
_ALIASES: dict[str, Variant] = {
    "default": Variant.DEFAULT,
    "board": Variant.BOARD,
    "board_trace": Variant.BOARD_TRACED,
}


def get_variant(variant: Variant) -> VariantFlags:
    """Get variant configuration by enum."""
    return VARIANTS[variant]


def variant_names() -> list[str]:
    """Return every accepted mode name, canonical names first."""
    return [v.value for v in Variant] + list(_ALIASES)


def select_variant(name: str) -> Variant:
    """Resolve a requested mode name to a Variant.

    Args:
        name: Mode name, e.g. "qemu", "lrv", "lrv_trace" or an alias

    Returns:
        The matching Variant

    Raises:
        UnknownVariantError: If the name is not recognized. There is no
            fallback to the default variant.
    """
    try:
        return Variant(name)
    except ValueError:
        pass
    if name in _ALIASES:
        return _ALIASES[name]
    raise UnknownVariantError(name, variant_names())


def resolve_features(name: str) -> tuple[str, ...]:
    """Return the ordered feature set for a requested mode name."""
    return get_variant(select_variant(name)).features


def format_variant_banner(variant: Variant) -> str:
    """Format a variant banner for display, e.g. "VARIANT=lrv FEATURES=board_lrv"."""
    flags = get_variant(variant)
    return f"VARIANT={flags.name} FEATURES={','.join(flags.features)}"
