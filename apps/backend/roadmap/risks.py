"""
Risk heuristics.

Every rule is a fixed threshold check over the items or the dependency
resolution. Risk IDs are numbered in rule order so runs are reproducible.
"""

from typing import Sequence

from .models import Risk, RiskLevel, RoadmapItem
from .prioritizer import DependencyResolution

HIGH_EFFORT_HOURS = 40
COMPLEX_DEPENDENCY_COUNT = 2


def identify_risks(
    items: Sequence[RoadmapItem], resolution: DependencyResolution | None = None
) -> list[Risk]:
    risks: list[Risk] = []

    def add(
        title: str,
        description: str,
        levels: tuple[RiskLevel, RiskLevel, RiskLevel],
        mitigations: list[str],
        affected: list[str],
    ) -> None:
        likelihood, impact, severity = levels
        risks.append(
            Risk(
                id=f"RISK-{len(risks) + 1:03d}",
                title=title,
                description=description,
                likelihood=likelihood,
                impact=impact,
                severity=severity,
                mitigations=mitigations,
                affected_items=affected,
            )
        )

    high_effort = [i.id for i in items if i.hours > HIGH_EFFORT_HOURS]
    if high_effort:
        add(
            "High-effort items may take longer than estimated",
            f"{len(high_effort)} item(s) are estimated above {HIGH_EFFORT_HOURS} hours",
            (RiskLevel.MEDIUM, RiskLevel.HIGH, RiskLevel.MEDIUM),
            ["Break down large items into smaller tasks", "Add buffer time"],
            high_effort,
        )

    complex_deps = [i.id for i in items if len(i.dependencies) > COMPLEX_DEPENDENCY_COUNT]
    if complex_deps:
        add(
            "Complex dependencies may cause delays",
            f"{len(complex_deps)} item(s) depend on more than "
            f"{COMPLEX_DEPENDENCY_COUNT} other items",
            (RiskLevel.MEDIUM, RiskLevel.MEDIUM, RiskLevel.MEDIUM),
            ["Identify critical path", "Start independent items in parallel"],
            complex_deps,
        )

    if resolution is None:
        return risks

    if resolution.cycles or resolution.degraded:
        members = list(
            dict.fromkeys(
                [item_id for cycle in resolution.cycles for item_id in cycle]
                + resolution.unresolved_ids
            )
        )
        add(
            "Circular dependencies prevent a valid build order",
            f"{len(resolution.cycles)} dependency cycle(s) found; "
            f"{len(resolution.unresolved_ids)} item(s) were ordered best-effort",
            (RiskLevel.HIGH, RiskLevel.HIGH, RiskLevel.HIGH),
            [
                "Review the cycle with the spec authors",
                "Split one item in the cycle so it can be delivered first",
            ],
            members,
        )

    if resolution.missing_ids:
        referencing = [
            i.id for i in items if any(d in resolution.missing_ids for d in i.dependencies)
        ]
        add(
            "Dependencies reference items outside this roadmap",
            "Unknown dependency IDs: " + ", ".join(resolution.missing_ids),
            (RiskLevel.LOW, RiskLevel.MEDIUM, RiskLevel.LOW),
            ["Confirm the referenced work is already delivered", "Fix the dependency IDs"],
            referencing,
        )

    return risks
