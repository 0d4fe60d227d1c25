"""
Tests for roadmap dependency validator.

Tests for DependencyValidator and the dependency walk in apps/backend/roadmap/validators.py
"""

from roadmap.validators import DependencyValidator, normalize_cycle, walk_dependencies


def test_missing_dependency_detection(make_item):
    """Test detecting dependencies that reference items outside the batch."""
    items = [
        make_item("gap-1", deps=["gap-2", "gap-3"]),  # gap-3 doesn't exist
        make_item("gap-2"),
    ]

    result = DependencyValidator().validate_all(items)

    assert result.has_missing is True
    assert result.missing_ids == ["gap-3"]
    assert result.orphan_refs == {"gap-1": ["gap-3"]}
    assert result.is_valid is False
    assert result.warnings() == ["gap-1 depends on unknown item(s): gap-3"]


def test_no_missing_dependencies(make_item):
    """Test when all dependencies exist."""
    items = [make_item("gap-1", deps=["gap-2"]), make_item("gap-2")]

    result = DependencyValidator().validate_all(items)

    assert result.has_missing is False
    assert result.missing_ids == []
    assert result.is_valid is True


def test_circular_dependency_detection(make_item):
    """Test detecting circular dependencies."""
    items = [
        make_item("gap-1", deps=["gap-2"]),
        make_item("gap-2", deps=["gap-3"]),
        make_item("gap-3", deps=["gap-1"]),  # Circular!
    ]

    result = DependencyValidator().validate_all(items)

    assert result.has_circular is True
    # Every rotation normalizes to the same cycle
    assert len(result.circular_paths) == 1
    assert set(result.circular_paths[0]) == {"gap-1", "gap-2", "gap-3"}
    assert "Circular dependency: gap-1 -> gap-2 -> gap-3 -> gap-1" in result.warnings()


def test_no_circular_dependencies(make_item):
    """Test when there are no circular dependencies."""
    items = [make_item("gap-1", deps=["gap-2"]), make_item("gap-2")]

    result = DependencyValidator().validate_all(items)

    assert result.has_circular is False
    assert result.circular_paths == []


def test_orphans_do_not_break_cycle_detection(make_item):
    """Unknown dependency IDs are not followed during cycle detection."""
    items = [make_item("gap-1", deps=["ghost", "gap-2"]), make_item("gap-2", deps=["gap-1"])]

    result = DependencyValidator().validate_all(items)

    assert result.has_circular is True
    assert result.missing_ids == ["ghost"]


def test_reverse_dependencies_calculation(make_item):
    """Test calculating reverse dependencies."""
    items = [
        make_item("gap-1", deps=["gap-2", "gap-3"]),
        make_item("gap-2", deps=["gap-3"]),
        make_item("gap-3"),
    ]

    result = DependencyValidator().validate_all(items)

    # gap-3 is depended upon by gap-1 and gap-2
    assert set(result.reverse_deps_map["gap-3"]) == {"gap-1", "gap-2"}
    # gap-2 is depended upon by gap-1
    assert result.reverse_deps_map["gap-2"] == ["gap-1"]
    # gap-1 is not depended upon by anyone
    assert result.reverse_deps_map["gap-1"] == []


def test_empty_item_list():
    """Test validator with empty item list."""
    result = DependencyValidator().validate_all([])

    assert result.has_missing is False
    assert result.has_circular is False
    assert result.missing_ids == []
    assert result.circular_paths == []
    assert result.reverse_deps_map == {}


def test_dense_graph_validates_quickly(make_item):
    """Every item depends on all earlier ones; each edge is followed once."""
    items = [make_item(f"gap-{n}", deps=[f"gap-{m}" for m in range(n)]) for n in range(60)]

    result = DependencyValidator().validate_all(items)

    assert result.is_valid is True
    assert len(result.reverse_deps_map["gap-0"]) == 59


def test_walk_visits_dependencies_first(make_item):
    """Post-order puts every item after its dependencies."""
    items = [
        make_item("gap-3", deps=["gap-2"]),
        make_item("gap-2", deps=["gap-1"]),
        make_item("gap-1"),
    ]

    walk = walk_dependencies(items)

    assert walk.order == ["gap-1", "gap-2", "gap-3"]
    assert walk.back_edges == {}
    assert walk.cycles == []


def test_walk_records_back_edges(make_item):
    """The edge closing a cycle is recorded and left out of forward dependencies."""
    items = [make_item("gap-1", deps=["gap-2"]), make_item("gap-2", deps=["gap-1"])]

    walk = walk_dependencies(items)

    assert walk.order == ["gap-2", "gap-1"]
    assert walk.back_edges == {"gap-2": {"gap-1"}}
    assert walk.forward_dependencies("gap-2") == []
    assert walk.forward_dependencies("gap-1") == ["gap-2"]
    assert walk.cycles == [["gap-1", "gap-2", "gap-1"]]


def test_normalize_cycle():
    """Rotations of the same cycle normalize identically."""
    assert normalize_cycle(["b", "c", "a", "b"]) == "a,b,c"
    assert normalize_cycle(["c", "a", "b", "c"]) == "a,b,c"
    assert normalize_cycle([]) == ""
