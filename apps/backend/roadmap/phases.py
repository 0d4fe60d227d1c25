"""
Phase partitioning.

Three strategies split the ordered item list into delivery phases:

- priority: one phase per non-empty priority tier, P0 first
- dependency: one phase per dependency level, levels past ``max_phases``
  folded into the last phase
- timeline: ``max_phases`` equal contiguous chunks

Each strategy is a plain function returning ``(name, goal, items)`` groups;
``create_phases`` numbers the groups and builds the phases.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Callable, Sequence

from core.config import DEFAULT_HOURS_PER_WEEK, PhaseStrategy
from core.exceptions import InvalidConfigError
from gap_analysis.enums import EstimateConfidence, EstimationMethod, Priority
from gap_analysis.models import create_effort_estimate

from .models import Phase, RoadmapItem
from .validators import walk_dependencies

logger = logging.getLogger(__name__)

CYCLE_LEVEL = 999
MAX_PHASE_SUCCESS_CRITERIA = 5

PRIORITY_PHASES: dict[Priority, tuple[str, str]] = {
    Priority.P0: ("Critical Fixes", "Fix blocking issues"),
    Priority.P1: ("Core Features", "Implement essential features"),
    Priority.P2: ("Enhancements", "Add valuable enhancements"),
    Priority.P3: ("Polish", "Nice-to-have improvements"),
}

PhaseGroup = tuple[str, str, list[RoadmapItem]]


@dataclass
class PhasePlan:
    """Phases plus the items with their phase numbers assigned."""

    phases: list[Phase]
    items: list[RoadmapItem]
    warnings: list[str] = field(default_factory=list)


def calculate_dependency_levels(items: Sequence[RoadmapItem]) -> dict[str, int]:
    """
    Dependency level per item: 0 without in-batch dependencies, otherwise one
    more than the deepest dependency. A dependency reached again on the same
    path (a cycle) counts as level 999.
    """
    walk = walk_dependencies(items)
    levels: dict[str, int] = {}

    for item_id in walk.order:
        deps = walk.graph[item_id]
        if not deps:
            levels[item_id] = 0
            continue
        back = walk.back_edges.get(item_id, set())
        levels[item_id] = 1 + max(
            CYCLE_LEVEL if dep_id in back else levels[dep_id] for dep_id in deps
        )

    return levels


def _by_priority(items: Sequence[RoadmapItem], max_phases: int) -> list[PhaseGroup]:
    groups = []
    for priority, (name, goal) in PRIORITY_PHASES.items():
        bucket = [i for i in items if i.priority is priority]
        if bucket:
            groups.append((name, goal, bucket))
    return groups


def _by_dependency(items: Sequence[RoadmapItem], max_phases: int) -> list[PhaseGroup]:
    levels = calculate_dependency_levels(items)
    distinct = sorted(set(levels.values()))

    groups = []
    for index, level in enumerate(distinct[: max_phases - 1]):
        bucket = [i for i in items if levels[i.id] == level]
        groups.append((f"Phase {index + 1}", f"Complete level {level} dependencies", bucket))

    folded = distinct[max_phases - 1:]
    if folded:
        folded_levels = set(folded)
        bucket = [i for i in items if levels[i.id] in folded_levels]
        if len(folded) == 1:
            goal = f"Complete level {folded[0]} dependencies"
        else:
            goal = f"Complete levels {folded[0]}-{folded[-1]} dependencies"
        groups.append((f"Phase {len(groups) + 1}", goal, bucket))

    return groups


def _by_timeline(items: Sequence[RoadmapItem], max_phases: int) -> list[PhaseGroup]:
    if not items:
        return []
    size = math.ceil(len(items) / max_phases)
    groups = []
    for start in range(0, len(items), size):
        chunk = list(items[start : start + size])
        groups.append((f"Phase {len(groups) + 1}", f"Implement {len(chunk)} items", chunk))
    return groups


PHASE_STRATEGIES: dict[PhaseStrategy, Callable[[Sequence[RoadmapItem], int], list[PhaseGroup]]] = {
    PhaseStrategy.PRIORITY: _by_priority,
    PhaseStrategy.DEPENDENCY: _by_dependency,
    PhaseStrategy.TIMELINE: _by_timeline,
}


def build_phase(
    number: int,
    name: str,
    goal: str,
    items: Sequence[RoadmapItem],
    hours_per_week: int = DEFAULT_HOURS_PER_WEEK,
) -> Phase:
    """Build a phase, assigning ``number`` to copies of its items."""
    placed = [item.with_phase(number) for item in items]
    total_hours = sum(i.hours for i in placed)

    p0_count = sum(1 for i in placed if i.priority is Priority.P0)
    if p0_count > 0:
        outcome = f"{p0_count} critical issue{'s' if p0_count != 1 else ''} resolved"
    else:
        outcome = f"{len(placed)} item{'s' if len(placed) != 1 else ''} completed"

    success_criteria = [
        f"{i.title} complete" for i in placed if i.priority in (Priority.P0, Priority.P1)
    ][:MAX_PHASE_SUCCESS_CRITERIA]

    return Phase(
        number=number,
        name=name,
        goal=goal,
        items=placed,
        total_effort=create_effort_estimate(
            total_hours, EstimateConfidence.MEDIUM, EstimationMethod.COMPLEXITY
        ),
        duration_weeks=math.ceil(total_hours / hours_per_week),
        outcome=outcome,
        success_criteria=success_criteria,
    )


def create_phases(
    items: Sequence[RoadmapItem],
    strategy: PhaseStrategy | str = PhaseStrategy.PRIORITY,
    max_phases: int = 4,
    max_items_per_phase: int = 15,
    hours_per_week: int = DEFAULT_HOURS_PER_WEEK,
) -> PhasePlan:
    """
    Partition ordered items into phases.

    Every item lands in exactly one phase. Phases larger than
    ``max_items_per_phase`` are kept whole and reported in ``warnings``.

    Args:
        items: Items in dependency order
        strategy: Partitioning strategy
        max_phases: Upper bound on phases (dependency and timeline strategies)
        max_items_per_phase: Size above which a phase is reported
        hours_per_week: Working hours per developer-week

    Returns:
        PhasePlan with phases and the phase-assigned items in input order

    Raises:
        InvalidConfigError: if max_phases is below 1
    """
    if isinstance(max_phases, bool) or not isinstance(max_phases, int) or max_phases < 1:
        raise InvalidConfigError("max_phases", max_phases, "must be a positive integer")

    groups = PHASE_STRATEGIES[PhaseStrategy(strategy)](items, max_phases)

    phases = [
        build_phase(number, name, goal, group, hours_per_week)
        for number, (name, goal, group) in enumerate(groups, start=1)
    ]

    placed: dict[int, RoadmapItem] = {}
    for (_, _, group), phase in zip(groups, phases):
        for original, copy in zip(group, phase.items):
            placed[id(original)] = copy
    assigned = [placed.get(id(item), item) for item in items]

    warnings = []
    for phase in phases:
        if len(phase.items) > max_items_per_phase:
            message = (
                f"Phase {phase.number} ({phase.name}) has {len(phase.items)} items, "
                f"above the limit of {max_items_per_phase}"
            )
            logger.warning(message)
            warnings.append(message)

    return PhasePlan(phases=phases, items=assigned, warnings=warnings)
