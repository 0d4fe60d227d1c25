"""
Timeline estimation.

Team-size scaling uses fixed multipliers (1 dev 1.0, 2 devs 0.55, 3+ devs
0.4) that model sub-linear speedup from parallel work rather than dividing
hours by head count.
"""

import math
from typing import Sequence

from core.config import DEFAULT_HOURS_PER_WEEK
from core.exceptions import InvalidConfigError

from .models import (
    CriticalPath,
    Milestone,
    Phase,
    PhaseTimeline,
    RoadmapItem,
    TeamEstimate,
    Timeline,
)
from .validators import walk_dependencies

TEAM_SIZE_MULTIPLIERS: dict[int, float] = {
    1: 1.0,
    2: 0.55,
    3: 0.4,
}


def team_size_multiplier(team_size: int) -> float:
    """Effort multiplier for ``team_size`` developers (3 or more share one)."""
    if team_size <= 0:
        raise InvalidConfigError("team_size", team_size, "must be a positive integer")
    return TEAM_SIZE_MULTIPLIERS[min(team_size, 3)]


def estimate_for(hours: float, team_size: int, hours_per_week: int) -> TeamEstimate:
    adjusted = hours * team_size_multiplier(team_size)
    return TeamEstimate(hours=round(adjusted), weeks=math.ceil(adjusted / hours_per_week))


def calculate_milestones(phases: Sequence[Phase]) -> list[Milestone]:
    """One milestone per phase at the cumulative week its phase ends."""
    milestones = []
    week = 0
    for phase in phases:
        week += phase.duration_weeks
        milestones.append(Milestone(phase=phase.number, name=f"Complete {phase.name}", week=week))
    return milestones


def find_critical_path(items: Sequence[RoadmapItem]) -> CriticalPath:
    """
    Longest chain of in-batch dependencies, weighted by hours.

    Back edges of cycles are skipped. Ties go to the chain ending earliest in
    ``items``.
    """
    item_map = {item.id: item for item in items}
    walk = walk_dependencies(items)
    best: dict[str, tuple[float, list[str]]] = {}

    for item_id in walk.order:
        top_hours, top_chain = 0.0, []
        for dep_id in walk.forward_dependencies(item_id):
            hours, chain = best[dep_id]
            if hours > top_hours:
                top_hours, top_chain = hours, chain
        best[item_id] = (top_hours + item_map[item_id].hours, [*top_chain, item_id])

    critical = CriticalPath()
    for item in items:
        hours, chain = best[item.id]
        if hours > critical.hours:
            critical = CriticalPath(item_ids=chain, hours=hours)
    return critical


def estimate_timeline(
    all_items: Sequence[RoadmapItem],
    phases: Sequence[Phase],
    team_size: int = 2,
    hours_per_week: int = DEFAULT_HOURS_PER_WEEK,
) -> Timeline:
    """
    Estimate delivery time for the whole roadmap and for each phase.

    Args:
        all_items: Every item in the roadmap
        phases: Phases in delivery order
        team_size: Developers on the team
        hours_per_week: Working hours per developer-week

    Returns:
        Timeline for ``team_size`` with per-phase and 1/2/3-developer breakdowns
    """
    total_hours = sum(item.hours for item in all_items)
    overall = estimate_for(total_hours, team_size, hours_per_week)

    by_phase = []
    for phase in phases:
        estimate = estimate_for(sum(i.hours for i in phase.items), team_size, hours_per_week)
        by_phase.append(PhaseTimeline(phase=phase.number, hours=estimate.hours, weeks=estimate.weeks))

    return Timeline(
        team_size=team_size,
        total_hours=overall.hours,
        total_weeks=overall.weeks,
        by_phase=by_phase,
        by_team_size={
            size: estimate_for(total_hours, size, hours_per_week) for size in TEAM_SIZE_MULTIPLIERS
        },
        milestones=calculate_milestones(phases),
        critical_path=find_critical_path(all_items),
    )
