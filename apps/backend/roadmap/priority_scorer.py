"""
Priority scoring for roadmap items.

Each item gets a numeric score from its priority tier plus strategy-specific
bonuses and penalties. Higher scores rank first.
"""

from dataclasses import dataclass
from typing import Sequence, TypedDict

from core.config import PrioritizationStrategy
from gap_analysis.enums import Priority

from .models import RoadmapItem, RoadmapItemType


class StrategyWeights(TypedDict, total=False):
    """Bonuses and penalties applied on top of the base score."""

    gap_fix_bonus: float  # Added for gap-fix items
    ready_bonus: float  # Added when no in-batch prerequisite is unmet
    no_dependency_bonus: float  # Added when the item has no dependencies at all
    effort_penalty: float  # Per hour of effort
    target_hours: float  # Effort sweet spot (balanced strategy)
    target_penalty: float  # Per hour away from target_hours


# Base score from priority tier
BASE_PRIORITY_SCORES: dict[Priority, int] = {
    Priority.P0: 1000,
    Priority.P1: 500,
    Priority.P2: 100,
    Priority.P3: 10,
}

STRATEGY_WEIGHTS: dict[PrioritizationStrategy, StrategyWeights] = {
    PrioritizationStrategy.PRIORITY: {},
    PrioritizationStrategy.EFFORT: {"effort_penalty": 2.0},
    PrioritizationStrategy.IMPACT: {"gap_fix_bonus": 200.0, "ready_bonus": 100.0},
    PrioritizationStrategy.BALANCED: {
        "gap_fix_bonus": 100.0,
        "target_hours": 8.0,
        "target_penalty": 2.0,
        "no_dependency_bonus": 50.0,
    },
}


@dataclass
class ItemScore:
    """Result of scoring one item."""

    item_id: str
    score: float
    breakdown: dict[str, float]  # Individual contributions by factor


def calculate_item_score(
    item: RoadmapItem,
    strategy: PrioritizationStrategy = PrioritizationStrategy.BALANCED,
    has_unmet_prerequisites: bool = False,
) -> ItemScore:
    """
    Score a roadmap item.

    Strategies:
    - priority: base score only
    - effort: base - 2 x hours
    - impact: base + 200 for gap fixes + 100 when nothing blocks the item
    - balanced: base + 100 for gap fixes - 2 x |hours - 8| + 50 for items
      without dependencies

    Args:
        item: Item to score
        strategy: Prioritization strategy
        has_unmet_prerequisites: True if an in-batch dependency is not completed

    Returns:
        ItemScore with total and breakdown
    """
    weights = STRATEGY_WEIGHTS[PrioritizationStrategy(strategy)]
    breakdown: dict[str, float] = {"base": BASE_PRIORITY_SCORES[item.priority]}

    if "effort_penalty" in weights:
        breakdown["effort"] = -weights["effort_penalty"] * item.hours

    if "gap_fix_bonus" in weights and item.type is RoadmapItemType.GAP_FIX:
        breakdown["gap_fix"] = weights["gap_fix_bonus"]

    if "ready_bonus" in weights and not has_unmet_prerequisites:
        breakdown["ready"] = weights["ready_bonus"]

    if "target_hours" in weights:
        breakdown["effort"] = -weights["target_penalty"] * abs(item.hours - weights["target_hours"])

    if "no_dependency_bonus" in weights and not item.dependencies:
        breakdown["no_dependencies"] = weights["no_dependency_bonus"]

    return ItemScore(item_id=item.id, score=sum(breakdown.values()), breakdown=breakdown)


def sort_by_score(items: Sequence[RoadmapItem], scores: dict[str, float]) -> list[RoadmapItem]:
    """
    Sort items by score, highest first.

    Ties keep input order.
    """
    return sorted(items, key=lambda item: -scores.get(item.id, 0.0))
