"""
Tests for phase partitioning.
"""

import pytest

from core.config import PhaseStrategy
from core.exceptions import InvalidConfigError, PhaseAssignmentError
from roadmap.phases import CYCLE_LEVEL, build_phase, calculate_dependency_levels, create_phases


def _phase_ids(plan):
    return [[i.id for i in phase.items] for phase in plan.phases]


class TestPriorityStrategy:
    def test_one_phase_per_non_empty_tier(self, make_item):
        items = [make_item("A", "P2"), make_item("B", "P0"), make_item("C", "P2")]
        plan = create_phases(items, PhaseStrategy.PRIORITY)

        assert [p.name for p in plan.phases] == ["Critical Fixes", "Enhancements"]
        assert [p.number for p in plan.phases] == [1, 2]
        assert _phase_ids(plan) == [["B"], ["A", "C"]]
        assert plan.phases[0].goal == "Fix blocking issues"

    def test_items_get_phase_numbers(self, make_item):
        items = [make_item("A", "P2"), make_item("B", "P0")]
        plan = create_phases(items)

        assert [(i.id, i.phase) for i in plan.items] == [("A", 2), ("B", 1)]
        # Inputs are left unassigned
        assert [i.phase for i in items] == [0, 0]

    def test_every_item_in_exactly_one_phase(self, make_item):
        items = [make_item(f"I{n}", f"P{n % 4}") for n in range(12)]
        plan = create_phases(items)
        placed = [i for phase in plan.phases for i in phase.items]
        assert sorted(i.id for i in placed) == sorted(i.id for i in items)

    def test_no_items(self):
        plan = create_phases([])
        assert plan.phases == []
        assert plan.items == []


class TestDependencyStrategy:
    def test_levels(self, make_item):
        items = [
            make_item("A"),
            make_item("B", deps=["A"]),
            make_item("C", deps=["A", "B"]),
            make_item("D", deps=["GHOST"]),
        ]
        assert calculate_dependency_levels(items) == {"A": 0, "B": 1, "C": 2, "D": 0}

    def test_cycle_members_get_cycle_level(self, make_item):
        levels = calculate_dependency_levels([make_item("A", deps=["B"]), make_item("B", deps=["A"])])
        assert levels["A"] >= CYCLE_LEVEL
        assert levels["B"] >= CYCLE_LEVEL

    def test_deep_levels_fold_into_last_phase(self, make_item):
        items = [
            make_item("A"),
            make_item("B", deps=["A"]),
            make_item("C", deps=["B"]),
            make_item("D", deps=["C"]),
            make_item("E"),
        ]
        plan = create_phases(items, PhaseStrategy.DEPENDENCY, max_phases=3)

        assert _phase_ids(plan) == [["A", "E"], ["B"], ["C", "D"]]
        assert [p.name for p in plan.phases] == ["Phase 1", "Phase 2", "Phase 3"]
        assert plan.phases[2].goal == "Complete levels 2-3 dependencies"

    def test_cycles_still_place_every_item(self, make_item):
        items = [make_item("A", deps=["B"]), make_item("B", deps=["A"]), make_item("C")]
        plan = create_phases(items, "dependency")
        assert sorted(i.id for p in plan.phases for i in p.items) == ["A", "B", "C"]

    def test_chain_longer_than_recursion_limit(self, long_chain):
        levels = calculate_dependency_levels(long_chain)
        assert levels["C0000"] == 0
        assert levels["C1499"] == 1499

        plan = create_phases(long_chain, PhaseStrategy.DEPENDENCY, max_phases=4)

        assert _phase_ids(plan)[:3] == [["C0000"], ["C0001"], ["C0002"]]
        assert len(plan.phases[3].items) == 1497
        assert plan.phases[3].goal == "Complete levels 3-1499 dependencies"
        assert len(plan.warnings) == 1


class TestTimelineStrategy:
    @pytest.mark.parametrize("max_phases", [0, -2])
    def test_rejects_non_positive_max_phases(self, make_item, max_phases):
        with pytest.raises(InvalidConfigError):
            create_phases([make_item("A")], PhaseStrategy.TIMELINE, max_phases=max_phases)

    def test_equal_chunks(self, make_item):
        items = [make_item(f"I{n}") for n in range(10)]
        plan = create_phases(items, PhaseStrategy.TIMELINE, max_phases=4)

        assert [len(p.items) for p in plan.phases] == [3, 3, 3, 1]
        assert plan.phases[0].goal == "Implement 3 items"

    def test_fewer_items_than_phases(self, make_item):
        plan = create_phases([make_item("A"), make_item("B")], PhaseStrategy.TIMELINE, max_phases=4)
        assert _phase_ids(plan) == [["A"], ["B"]]


class TestBuildPhase:
    def test_duration_and_outcome(self, make_item):
        phase = build_phase(1, "Critical Fixes", "Fix blocking issues",
                            [make_item("A", "P0", hours=40), make_item("B", "P2", hours=10)])

        assert phase.total_effort.hours == 50
        assert phase.duration_weeks == 2
        assert phase.duration == "2 weeks"
        assert phase.outcome == "1 critical issue resolved"
        assert phase.success_criteria == ["Item A complete"]

    def test_outcome_without_critical_items(self, make_item):
        phase = build_phase(2, "Polish", "Nice-to-have improvements", [make_item("A", "P3", hours=3)])
        assert phase.outcome == "1 item completed"
        assert phase.duration == "1 week"

    def test_success_criteria_capped(self, make_item):
        items = [make_item(f"I{n}", "P0") for n in range(7)]
        assert len(build_phase(1, "Critical Fixes", "", items).success_criteria) == 5

    def test_phase_assigned_once(self, make_item):
        placed = make_item("A").with_phase(1)
        with pytest.raises(PhaseAssignmentError):
            placed.with_phase(2)


class TestPhaseSizeLimit:
    def test_oversized_phase_is_reported(self, make_item):
        items = [make_item(x, "P1") for x in "ABC"]
        plan = create_phases(items, max_items_per_phase=2)

        assert len(plan.phases[0].items) == 3
        assert plan.warnings == ["Phase 1 (Core Features) has 3 items, above the limit of 2"]
