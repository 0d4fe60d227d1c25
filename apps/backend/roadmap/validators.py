"""
Dependency validators for roadmap items.

``walk_dependencies`` is the one graph traversal of the package: an iterative
three-colour depth-first search over in-batch dependency edges. Dependency
levels, the critical path and cycle reports are all derived from its
post-order, so arbitrarily long chains never hit the recursion limit.
"""

from dataclasses import dataclass, field
from typing import Sequence

from .models import RoadmapItem

_WHITE, _GREY, _BLACK = 0, 1, 2


@dataclass
class ValidationResult:
    """Result of dependency validation."""

    has_missing: bool
    has_circular: bool
    missing_ids: list[str]
    circular_paths: list[list[str]]
    reverse_deps_map: dict[str, list[str]]
    orphan_refs: dict[str, list[str]]  # item id -> dependency ids outside the batch

    @property
    def is_valid(self) -> bool:
        return not (self.has_missing or self.has_circular)

    def warnings(self) -> list[str]:
        """Human-readable descriptions of every problem found."""
        messages = [
            f"{item_id} depends on unknown item(s): {', '.join(deps)}"
            for item_id, deps in self.orphan_refs.items()
        ]
        messages.extend(
            f"Circular dependency: {' -> '.join(path)}" for path in self.circular_paths
        )
        return messages


@dataclass
class DependencyWalk:
    """
    Depth-first walk over in-batch dependency edges.

    ``order`` lists every item ID after all of its dependencies except those
    reached through a back edge. ``back_edges[item_id]`` holds the
    dependencies that closed a cycle when reached from ``item_id``.
    """

    graph: dict[str, list[str]]
    order: list[str] = field(default_factory=list)
    back_edges: dict[str, set[str]] = field(default_factory=dict)
    cycles: list[list[str]] = field(default_factory=list)

    def forward_dependencies(self, item_id: str) -> list[str]:
        """In-batch dependencies of ``item_id`` that are not back edges."""
        back = self.back_edges.get(item_id, set())
        return [dep_id for dep_id in self.graph[item_id] if dep_id not in back]


def normalize_cycle(cycle: list[str]) -> str:
    """Rotate a closed cycle to start from its smallest ID, for deduplication."""
    if not cycle:
        return ""
    # Drop the closing duplicate of the first element
    cycle_without_dup = cycle[:-1]
    if not cycle_without_dup:
        return ""
    min_idx = cycle_without_dup.index(min(cycle_without_dup))
    rotated = cycle_without_dup[min_idx:] + cycle_without_dup[:min_idx]
    return ",".join(rotated)


def walk_dependencies(items: Sequence[RoadmapItem]) -> DependencyWalk:
    """
    Walk the dependency graph of ``items`` without recursion.

    Roots are visited in item order and dependencies in declaration order.
    Unknown dependency IDs are not followed. Each distinct cycle is reported
    once, as an ID list with the closing ID repeated at the end.
    """
    ids = {item.id for item in items}
    graph = {
        item.id: [dep_id for dep_id in dict.fromkeys(item.dependencies) if dep_id in ids]
        for item in items
    }
    walk = DependencyWalk(graph=graph)
    colour = dict.fromkeys(graph, _WHITE)
    seen_cycles: set[str] = set()

    for root in graph:
        if colour[root] != _WHITE:
            continue
        colour[root] = _GREY
        path = [root]
        pending = [iter(graph[root])]

        while pending:
            dep_id = next(pending[-1], None)
            if dep_id is None:
                finished = path.pop()
                pending.pop()
                colour[finished] = _BLACK
                walk.order.append(finished)
            elif colour[dep_id] == _WHITE:
                colour[dep_id] = _GREY
                path.append(dep_id)
                pending.append(iter(graph[dep_id]))
            elif colour[dep_id] == _GREY:
                walk.back_edges.setdefault(path[-1], set()).add(dep_id)
                cycle = path[path.index(dep_id):] + [dep_id]
                key = normalize_cycle(cycle)
                if key not in seen_cycles:
                    seen_cycles.add(key)
                    walk.cycles.append(cycle)

    return walk


class DependencyValidator:
    """Validates item dependencies within one generation batch."""

    def validate_all(self, items: Sequence[RoadmapItem]) -> ValidationResult:
        """
        Validates all dependencies in the batch.

        Args:
            items: Items to validate

        Returns:
            ValidationResult with validation metadata
        """
        orphan_refs = self._find_orphan_refs(items)
        missing_ids = sorted({dep for deps in orphan_refs.values() for dep in deps})
        circular_paths = self.detect_cycles(items)
        reverse_deps_map = self._calculate_reverse_deps(items)

        return ValidationResult(
            has_missing=len(missing_ids) > 0,
            has_circular=len(circular_paths) > 0,
            missing_ids=missing_ids,
            circular_paths=circular_paths,
            reverse_deps_map=reverse_deps_map,
            orphan_refs=orphan_refs,
        )

    def detect_cycles(self, items: Sequence[RoadmapItem]) -> list[list[str]]:
        """Distinct dependency cycles, the closing ID repeated at the end."""
        return walk_dependencies(items).cycles

    def _find_orphan_refs(self, items: Sequence[RoadmapItem]) -> dict[str, list[str]]:
        """Dependencies that reference items outside the batch, per item."""
        valid_ids = {i.id for i in items}
        orphans: dict[str, list[str]] = {}

        for item in items:
            missing = [dep_id for dep_id in item.dependencies if dep_id not in valid_ids]
            if missing:
                orphans[item.id] = list(dict.fromkeys(missing))

        return orphans

    def _calculate_reverse_deps(self, items: Sequence[RoadmapItem]) -> dict[str, list[str]]:
        """Which items depend on each item."""
        reverse_deps: dict[str, list[str]] = {i.id: [] for i in items}

        for item in items:
            for dep_id in item.dependencies:
                reverse_deps.setdefault(dep_id, []).append(item.id)

        return reverse_deps
