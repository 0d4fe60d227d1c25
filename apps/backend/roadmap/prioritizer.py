"""
Roadmap Prioritizer
===================

Ranks roadmap items and orders them so that every item follows its
dependencies.

Ordering runs in two passes:
1. ``prioritize`` scores items and sorts them (stable, highest first)
2. ``resolve_dependencies`` runs Kahn's algorithm over the dependency graph,
   breaking ties between simultaneously ready items by priority tier and
   then by position in the prioritized list

Items stuck in a cycle are appended in their prioritized order and the
resolution is flagged as degraded. References to items outside the batch
are ignored for ordering. Cycle and unknown-ID reports come from
``DependencyValidator``, the same checks the generator surfaces as risks.
"""

import heapq
import logging
from dataclasses import dataclass, field
from typing import Iterable, Sequence

from core.config import PrioritizationStrategy
from core.exceptions import DependencyCycleError
from gap_analysis.enums import Priority

from .models import ItemStatus, ProjectContext, RoadmapItem
from .priority_scorer import calculate_item_score, sort_by_score
from .validators import DependencyValidator

logger = logging.getLogger(__name__)


@dataclass
class DependencyResolution:
    """Outcome of dependency resolution."""

    items: list[RoadmapItem]
    cycles: list[list[str]] = field(default_factory=list)
    missing_ids: list[str] = field(default_factory=list)
    unresolved_ids: list[str] = field(default_factory=list)
    degraded: bool = False

    @property
    def error(self) -> DependencyCycleError | None:
        """The degradation as an error object, or None for a clean resolution."""
        if not self.degraded:
            return None
        return DependencyCycleError(self.unresolved_ids, self.cycles)

    @property
    def warnings(self) -> list[str]:
        messages = []
        if self.missing_ids:
            messages.append(
                "Ignored dependencies on unknown items: " + ", ".join(self.missing_ids)
            )
        if self.degraded:
            messages.append(
                str(self.error) + ": " + ", ".join(self.unresolved_ids)
                + " appended without a valid dependency order"
            )
        return messages


class Prioritizer:
    """
    Prioritization and dependency resolution for roadmap items.

    Args:
        strategy: Scoring strategy (defaults to balanced)
        validator: Source of cycle and unknown-dependency reports
    """

    def __init__(
        self,
        strategy: PrioritizationStrategy | str = PrioritizationStrategy.BALANCED,
        validator: DependencyValidator | None = None,
    ):
        self.strategy = PrioritizationStrategy(strategy)
        self.validator = validator or DependencyValidator()

    def prioritize(
        self, items: Sequence[RoadmapItem], context: ProjectContext | None = None
    ) -> list[RoadmapItem]:
        """
        Score and sort items, highest score first. Equal scores keep input order.
        """
        logger.debug(f"Prioritizing {len(items)} items using {self.strategy.value} strategy")

        blocked = _items_with_unmet_prerequisites(items)
        scores = {
            item.id: calculate_item_score(item, self.strategy, item.id in blocked).score
            for item in items
        }
        return sort_by_score(items, scores)

    def detect_circular_dependencies(self, items: Sequence[RoadmapItem]) -> list[list[str]]:
        """
        Find dependency cycles with a depth-first search.

        Returns:
            Distinct cycles as ID lists, the closing ID repeated at the end
        """
        return self.validator.detect_cycles(items)

    def resolve_dependencies(self, items: Sequence[RoadmapItem]) -> DependencyResolution:
        """
        Order items so each one follows all of its in-batch dependencies.

        Returns:
            DependencyResolution; ``degraded`` is set when a cycle prevented a
            complete topological order
        """
        report = self.validator.validate_all(items)
        for cycle in report.circular_paths:
            logger.warning(f"Circular dependency: {' -> '.join(cycle)}")

        position = {}
        for pos, item in enumerate(items):
            position.setdefault(item.id, pos)

        in_degree = [0] * len(items)
        dependents: list[list[int]] = [[] for _ in items]

        for pos, item in enumerate(items):
            for dep_id in dict.fromkeys(item.dependencies):
                dep_pos = position.get(dep_id)
                if dep_pos is None:
                    continue
                in_degree[pos] += 1
                dependents[dep_pos].append(pos)

        ready = [(items[pos].priority.level, pos) for pos in range(len(items)) if in_degree[pos] == 0]
        heapq.heapify(ready)

        ordered: list[RoadmapItem] = []
        emitted = [False] * len(items)
        while ready:
            _, pos = heapq.heappop(ready)
            ordered.append(items[pos])
            emitted[pos] = True
            for dependent in dependents[pos]:
                in_degree[dependent] -= 1
                if in_degree[dependent] == 0:
                    heapq.heappush(ready, (items[dependent].priority.level, dependent))

        resolution = DependencyResolution(
            items=ordered, cycles=report.circular_paths, missing_ids=report.missing_ids
        )

        if len(ordered) < len(items):
            remaining = [items[pos] for pos in range(len(items)) if not emitted[pos]]
            resolution.items.extend(remaining)
            resolution.unresolved_ids = [i.id for i in remaining]
            resolution.degraded = True
            logger.warning(
                f"Could not fully resolve dependencies ({len(remaining)} items remain)",
                extra={"error_code": DependencyCycleError.error_code},
            )

        if report.has_missing:
            logger.warning(
                f"Ignoring dependencies on unknown items: {', '.join(report.missing_ids)}"
            )

        return resolution

    def group_by_priority(self, items: Iterable[RoadmapItem]) -> dict[Priority, list[RoadmapItem]]:
        """Items per priority tier, tiers in P0-P3 order, empty tiers omitted."""
        groups: dict[Priority, list[RoadmapItem]] = {p: [] for p in Priority}
        for item in items:
            groups[item.priority].append(item)
        return {p: group for p, group in groups.items() if group}

    def find_ready_items(
        self, items: Iterable[RoadmapItem], completed_ids: set[str]
    ) -> list[RoadmapItem]:
        """Items whose dependencies are all in ``completed_ids``."""
        return [
            item for item in items if all(dep_id in completed_ids for dep_id in item.dependencies)
        ]


def _items_with_unmet_prerequisites(items: Sequence[RoadmapItem]) -> set[str]:
    """IDs of items depending on an in-batch item that is not completed."""
    status = {item.id: item.status for item in items}
    return {
        item.id
        for item in items
        if any(
            dep_id in status and status[dep_id] is not ItemStatus.COMPLETED
            for dep_id in item.dependencies
        )
    }
