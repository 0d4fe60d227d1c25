"""
Conversion of gaps and scored features into roadmap items.
"""

from typing import Iterable, Sequence

from gap_analysis.enums import EstimateConfidence, EstimationMethod, Priority
from gap_analysis.models import FeatureGap, SpecGap, create_effort_estimate

from .models import RoadmapItem, RoadmapItemType, ScoredFeature

FEATURE_GAP_PRIORITY = Priority.P1
FEATURE_GAP_HOURS = 8


def spec_gap_to_item(gap: SpecGap) -> RoadmapItem:
    return RoadmapItem(
        id=gap.id,
        type=RoadmapItemType.GAP_FIX,
        title=gap.description,
        description=gap.impact,
        priority=gap.priority,
        effort=gap.effort,
        dependencies=list(gap.dependencies),
        tags=["gap", "spec", gap.spec],
        source={"type": "spec-gap", "spec": gap.spec, "requirement": gap.requirement},
    )


def feature_gap_to_item(gap: FeatureGap) -> RoadmapItem:
    """Documentation gaps are fixed at P1 with a flat 8h estimate."""
    return RoadmapItem(
        id=gap.id,
        type=RoadmapItemType.GAP_FIX,
        title=f"Fix: {gap.advertised_feature}",
        description=gap.reality,
        priority=FEATURE_GAP_PRIORITY,
        effort=create_effort_estimate(
            FEATURE_GAP_HOURS, EstimateConfidence.MEDIUM, EstimationMethod.COMPLEXITY
        ),
        tags=["gap", "feature", "documentation"],
        source={"type": "feature-gap", "claim": gap.claim},
    )


def feature_to_item(feature: ScoredFeature) -> RoadmapItem:
    return RoadmapItem(
        id=feature.id,
        type=RoadmapItemType.FEATURE,
        title=feature.title,
        description=feature.description,
        priority=feature.priority,
        effort=feature.effort,
        dependencies=list(feature.dependencies),
        tags=["feature", "enhancement", feature.category],
        source={"type": "brainstormed", "category": feature.category},
    )


def convert_to_items(
    gaps: Iterable[SpecGap | FeatureGap], features: Sequence[ScoredFeature] = ()
) -> list[RoadmapItem]:
    """Gaps first, in input order, then features."""
    items = []
    for gap in gaps:
        if isinstance(gap, FeatureGap):
            items.append(feature_gap_to_item(gap))
        else:
            items.append(spec_gap_to_item(gap))
    items.extend(feature_to_item(f) for f in features)
    return items
