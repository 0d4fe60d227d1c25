"""
Roadmap Generator
=================

Assembles a complete roadmap from gaps and scored features:

    conversion -> prioritize -> resolve dependencies -> phases
    -> timeline -> risks -> summary and recommendations

Degradations (dependency cycles, unknown dependency IDs, oversized phases,
upstream warnings) never stop generation. Each one is listed in the
summary warnings and gets its own recommendation.
"""

import logging
from datetime import datetime, timezone
from typing import Iterable, Sequence

from core.config import RoadmapSettings
from core.logging import Timer
from gap_analysis.enums import EstimateConfidence, EstimationMethod, Priority
from gap_analysis.models import FeatureGap, SpecGap, create_effort_estimate

from .items import convert_to_items
from .models import (
    CompletionCategories,
    Dependency,
    PriorityGroup,
    ProjectContext,
    Roadmap,
    RoadmapItem,
    RoadmapItemType,
    RoadmapMetadata,
    RoadmapSummary,
    ScoredFeature,
)
from .phases import create_phases
from .prioritizer import Prioritizer
from .risks import identify_risks
from .timeline import estimate_timeline

logger = logging.getLogger(__name__)

TOOL_VERSION = "1.0.0"

# Production readiness blend of category completion percentages
READINESS_WEIGHTS: dict[str, float] = {
    "core_features": 0.30,
    "testing": 0.20,
    "security": 0.20,
    "documentation": 0.15,
    "deployment": 0.15,
}

P0_OVERLOAD_COUNT = 3
GAP_FIX_SHARE = 0.5


def production_readiness(completion: CompletionCategories) -> int:
    return round(sum(getattr(completion, name) * w for name, w in READINESS_WEIGHTS.items()))


def count_by_priority(items: Iterable[RoadmapItem]) -> dict[str, int]:
    counts = {p.value.lower(): 0 for p in Priority}
    for item in items:
        counts[item.priority.value.lower()] += 1
    return counts


def extract_dependencies(items: Sequence[RoadmapItem]) -> list[Dependency]:
    """Reporting edges for every dependency that points inside the batch."""
    item_map = {i.id: i for i in items}
    dependencies = []
    for item in items:
        for dep_id in item.dependencies:
            dep_item = item_map.get(dep_id)
            if dep_item is None:
                continue
            dependencies.append(
                Dependency(
                    dependent=item.id,
                    depends_on=dep_item.id,
                    reason=f"{item.title} requires {dep_item.title} to be complete",
                )
            )
    return dependencies


def generate_next_steps(items: Sequence[RoadmapItem]) -> list[str]:
    counts = count_by_priority(items)
    steps = []
    if counts["p0"]:
        steps.append(f"Address {counts['p0']} critical (P0) issues immediately")
    if counts["p1"]:
        steps.append(f"Plan implementation of {counts['p1']} high-priority (P1) items")
    steps.append("Review and prioritize roadmap with team")
    steps.append("Set up project tracking in GitHub Issues or similar")
    steps.append("Begin Phase 1 implementation")
    return steps


def generate_success_criteria(items: Sequence[RoadmapItem]) -> list[str]:
    counts = count_by_priority(items)
    criteria = []
    if counts["p0"]:
        criteria.append(f"All {counts['p0']} P0 critical issues resolved")
    if counts["p1"]:
        criteria.append(f"{counts['p1']} P1 high-priority features implemented")
    criteria.append("All tests passing with >80% coverage")
    criteria.append("Documentation updated and accurate")
    criteria.append("Production deployment successful")
    return criteria


def generate_recommendations(items: Sequence[RoadmapItem], warnings: Sequence[str]) -> list[str]:
    recommendations = []

    if count_by_priority(items)["p0"] > P0_OVERLOAD_COUNT:
        recommendations.append("Consider addressing P0 items before adding new features")

    gap_fixes = sum(1 for i in items if i.type is RoadmapItemType.GAP_FIX)
    if gap_fixes > len(items) * GAP_FIX_SHARE:
        recommendations.append("Focus on gap fixes to improve reliability before adding features")

    recommendations.append("Review roadmap quarterly and adjust priorities based on progress")
    recommendations.append("Track velocity to improve future estimates")

    for warning in warnings:
        recommendations.append(f"Review degraded result before committing to this plan: {warning}")

    return recommendations


def group_by_priority(items: Sequence[RoadmapItem]) -> dict[Priority, PriorityGroup]:
    """All four tiers, empty ones included, with summed effort."""
    groups = {}
    for priority in Priority:
        members = [i for i in items if i.priority is priority]
        groups[priority] = PriorityGroup(
            priority=priority,
            items=members,
            effort=create_effort_estimate(
                sum(i.hours for i in members),
                EstimateConfidence.MEDIUM,
                EstimationMethod.COMPLEXITY,
            ),
        )
    return groups


class RoadmapGenerator:
    """
    Creates complete roadmaps from gaps and features.

    Args:
        settings: Roadmap settings; validated on construction
        prioritizer: Prioritizer to use (defaults to one built from settings)
    """

    def __init__(
        self,
        settings: RoadmapSettings | None = None,
        prioritizer: Prioritizer | None = None,
    ):
        self.settings = (settings or RoadmapSettings()).validate()
        self.prioritizer = prioritizer or Prioritizer(self.settings.prioritization_strategy)

    def generate_roadmap(
        self,
        gaps: Sequence[SpecGap | FeatureGap],
        features: Sequence[ScoredFeature],
        context: ProjectContext,
        warnings: Sequence[str] = (),
        generated_at: str | None = None,
    ) -> Roadmap:
        """
        Generate a complete roadmap.

        Args:
            gaps: Spec gaps and feature gaps, in detection order
            features: Externally scored candidate features
            context: Project context (name, completion categories)
            warnings: Degradations from earlier stages to surface in the summary
            generated_at: ISO timestamp for metadata (defaults to now, UTC)

        Returns:
            Roadmap
        """
        settings = self.settings
        logger.info(f"Generating roadmap from {len(gaps)} gaps and {len(features)} features")

        with Timer("roadmap_generation") as timer:
            items = convert_to_items(gaps, features)
            prioritized = self.prioritizer.prioritize(items, context)
            resolution = self.prioritizer.resolve_dependencies(prioritized)

            plan = create_phases(
                resolution.items,
                strategy=settings.phase_strategy,
                max_phases=settings.max_phases,
                max_items_per_phase=settings.max_items_per_phase,
                hours_per_week=settings.hours_per_week,
            )
            ordered = plan.items

            timeline = estimate_timeline(
                ordered, plan.phases, settings.team_size, settings.hours_per_week
            )
            risks = identify_risks(ordered, resolution) if settings.include_risks else []
            dependencies = extract_dependencies(ordered) if settings.include_dependencies else []

            all_warnings = [*warnings, *resolution.warnings, *plan.warnings]

            spec_gaps = sum(1 for g in gaps if isinstance(g, SpecGap))
            feature_gaps = sum(1 for g in gaps if isinstance(g, FeatureGap))
            by_type = {
                "gapFixes": sum(1 for i in ordered if i.type is RoadmapItemType.GAP_FIX),
                "features": sum(1 for i in ordered if i.type is RoadmapItemType.FEATURE),
                "enhancements": sum(1 for i in ordered if i.type is RoadmapItemType.ENHANCEMENT),
            }

            summary = RoadmapSummary(
                overview=(
                    f"Project has {spec_gaps} spec gaps and {feature_gaps} feature gaps. "
                    f"{len(features)} desirable features identified. "
                    f"Total roadmap: {len(ordered)} items across {len(plan.phases)} phases."
                ),
                total_items=len(ordered),
                by_priority=count_by_priority(ordered),
                by_type=by_type,
                completion=context.completion,
                production_readiness=production_readiness(context.completion),
                next_steps=generate_next_steps(ordered),
                warnings=all_warnings,
            )

            metadata = RoadmapMetadata(
                generated_at=generated_at or datetime.now(timezone.utc).isoformat(),
                project_name=context.name,
                tool_version=TOOL_VERSION,
                specs_analyzed=context.specs_analyzed,
                gaps_found=len(gaps),
                features_identified=len(features),
                total_items=len(ordered),
                settings=settings.to_dict(),
            )

            roadmap = Roadmap(
                metadata=metadata,
                summary=summary,
                phases=plan.phases,
                all_items=ordered,
                priorities=group_by_priority(ordered),
                timeline=timeline,
                risks=risks,
                dependencies=dependencies,
                success_criteria=generate_success_criteria(ordered),
                recommendations=generate_recommendations(ordered, all_warnings),
                degraded=resolution.degraded or bool(all_warnings),
            )

        logger.info(
            f"Roadmap generated: {len(ordered)} items in {len(plan.phases)} phases, "
            f"{timeline.total_weeks} weeks for a team of {settings.team_size}",
            extra={"duration_ms": timer.duration_ms, "stage": "roadmap_generation"},
        )
        if all_warnings:
            logger.warning(f"Roadmap generated with {len(all_warnings)} warnings")

        return roadmap
