"""Entry-point discovery, variant selection, compilation and artifact derivation."""

from .build_context import ArtifactKind, BuildLayout, BuildParams
from .orchestrator import GOALS, BuildOrchestrator, Goal, GoalResult, get_goal
from .variants import Variant, VariantFlags, select_variant

__all__ = [
    "ArtifactKind",
    "BuildLayout",
    "BuildOrchestrator",
    "BuildParams",
    "GOALS",
    "Goal",
    "GoalResult",
    "Variant",
    "VariantFlags",
    "get_goal",
    "select_variant",
]
