"""
Enumerations for gap analysis.

Closed vocabularies for gap status, priority tiers, evidence kinds and
confidence levels, plus the total orders used for sorting.
"""

from enum import Enum
from typing import Iterable, TypeVar


class GapStatus(str, Enum):
    """Implementation status of a requirement."""

    COMPLETE = "complete"
    PARTIAL = "partial"
    STUB = "stub"
    MISSING = "missing"

    @property
    def severity(self) -> int:
        """Severity rank: missing (3) > stub (2) > partial (1) > complete (0)."""
        return _STATUS_SEVERITY[self]


_STATUS_SEVERITY = {
    GapStatus.COMPLETE: 0,
    GapStatus.PARTIAL: 1,
    GapStatus.STUB: 2,
    GapStatus.MISSING: 3,
}


class Priority(str, Enum):
    """Priority tiers. P0 is the most urgent."""

    P0 = "P0"
    P1 = "P1"
    P2 = "P2"
    P3 = "P3"

    @property
    def level(self) -> int:
        """0 for P0 through 3 for P3."""
        return _PRIORITY_LEVELS[self]

    @property
    def label(self) -> str:
        return PRIORITY_LABELS[self]


_PRIORITY_LEVELS = {
    Priority.P0: 0,
    Priority.P1: 1,
    Priority.P2: 2,
    Priority.P3: 3,
}

PRIORITY_LABELS = {
    Priority.P0: "Critical",
    Priority.P1: "High",
    Priority.P2: "Medium",
    Priority.P3: "Nice to Have",
}


class EvidenceKind(str, Enum):
    """Kinds of evidence an evidence provider can report."""

    # Positive
    EXACT_FUNCTION_MATCH = "exact-function-match"
    AST_SIGNATURE_VERIFIED = "ast-signature-verified"
    TEST_FILE_EXISTS = "test-file-exists"
    NAME_SIMILARITY_ONLY = "name-similarity-only"

    # Negative
    FILE_NOT_FOUND = "file-not-found"
    FUNCTION_NOT_FOUND = "function-not-found"
    RETURNS_TODO_COMMENT = "returns-todo-comment"
    RETURNS_GUIDANCE_TEXT = "returns-guidance-text"
    TEST_FILE_MISSING = "test-file-missing"
    COMMENTS_SUGGEST_INCOMPLETE = "comments-suggest-incomplete"


class ConfidenceLevel(str, Enum):
    """Qualitative confidence bands."""

    VERY_HIGH = "very-high"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    VERY_LOW = "very-low"


class EstimateConfidence(str, Enum):
    """How much an effort estimate can be trusted."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class EstimationMethod(str, Enum):
    """How an effort estimate was produced."""

    HISTORICAL = "historical"
    AI = "ai"
    COMPLEXITY = "complexity"
    ANALOGY = "analogy"
    EXPERT = "expert"
    PLACEHOLDER = "placeholder"


# Thresholds for mapping scores to confidence levels (inclusive lower bounds)
CONFIDENCE_THRESHOLDS: dict[ConfidenceLevel, int] = {
    ConfidenceLevel.VERY_HIGH: 90,
    ConfidenceLevel.HIGH: 70,
    ConfidenceLevel.MEDIUM: 50,
    ConfidenceLevel.LOW: 30,
    ConfidenceLevel.VERY_LOW: 0,
}


def is_implemented(status: GapStatus) -> bool:
    """A requirement is implemented only when its status is complete."""
    return status is GapStatus.COMPLETE


def needs_work(status: GapStatus) -> bool:
    return status is not GapStatus.COMPLETE


def compare_priorities(a: Priority, b: Priority) -> int:
    """Negative if ``a`` is more urgent than ``b``, 0 if equal."""
    return a.level - b.level


T = TypeVar("T")


def sort_by_priority(items: Iterable[T]) -> list[T]:
    """
    Sort anything with a ``priority`` attribute from P0 to P3.

    The sort is stable: equal-priority items keep their relative order.
    """
    return sorted(items, key=lambda item: item.priority.level)


def sort_by_severity(items: Iterable[T]) -> list[T]:
    """Sort anything with a ``status`` attribute, most severe first (stable)."""
    return sorted(items, key=lambda item: -item.status.severity)
