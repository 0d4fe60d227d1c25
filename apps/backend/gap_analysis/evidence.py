"""
Evidence Model
==============

A single observed signal about whether a requirement is implemented, and the
static kind-to-weight table used to score it.

Positive weights increase confidence, negative weights decrease it. The table
is process-wide read-only configuration.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Iterable, Mapping

from .enums import EvidenceKind

EVIDENCE_WEIGHTS: Mapping[EvidenceKind, int] = MappingProxyType(
    {
        # Strong positive evidence (implementation exists)
        EvidenceKind.EXACT_FUNCTION_MATCH: 50,
        EvidenceKind.AST_SIGNATURE_VERIFIED: 40,
        EvidenceKind.TEST_FILE_EXISTS: 20,
        # Weak positive evidence
        EvidenceKind.NAME_SIMILARITY_ONLY: 10,
        # Strong negative evidence (implementation missing/incomplete)
        EvidenceKind.FILE_NOT_FOUND: -50,
        EvidenceKind.FUNCTION_NOT_FOUND: -40,
        EvidenceKind.RETURNS_TODO_COMMENT: -30,
        EvidenceKind.RETURNS_GUIDANCE_TEXT: -35,
        EvidenceKind.TEST_FILE_MISSING: -20,
        EvidenceKind.COMMENTS_SUGGEST_INCOMPLETE: -25,
    }
)

IMPLEMENTATION_KINDS = frozenset(
    {EvidenceKind.EXACT_FUNCTION_MATCH, EvidenceKind.AST_SIGNATURE_VERIFIED}
)
STUB_KINDS = frozenset(
    {EvidenceKind.RETURNS_TODO_COMMENT, EvidenceKind.RETURNS_GUIDANCE_TEXT}
)
PARTIAL_KINDS = frozenset({EvidenceKind.NAME_SIMILARITY_ONLY})
ABSENCE_KINDS = frozenset({EvidenceKind.FILE_NOT_FOUND, EvidenceKind.FUNCTION_NOT_FOUND})


def get_evidence_weight(kind: EvidenceKind | str) -> int:
    """
    Static weight for an evidence kind.

    Unknown kinds weigh 0 so that scoring never fails.
    """
    if not isinstance(kind, EvidenceKind):
        try:
            kind = EvidenceKind(kind)
        except ValueError:
            return 0
    return EVIDENCE_WEIGHTS.get(kind, 0)


@dataclass
class Evidence:
    """A single piece of evidence about a requirement."""

    kind: EvidenceKind | str
    description: str
    location: str | None = None
    line: int | None = None
    snippet: str | None = None
    confidence_impact: int | None = None  # None = use the static weight for kind

    def __post_init__(self) -> None:
        if not isinstance(self.kind, EvidenceKind):
            try:
                self.kind = EvidenceKind(self.kind)
            except ValueError:
                # Unknown kinds are kept verbatim and weigh 0
                pass
        if self.confidence_impact is None:
            self.confidence_impact = get_evidence_weight(self.kind)

    @property
    def kind_value(self) -> str:
        return self.kind.value if isinstance(self.kind, EvidenceKind) else str(self.kind)

    @property
    def weight(self) -> int:
        """Static weight of this evidence's kind (ignores per-instance overrides)."""
        return get_evidence_weight(self.kind)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        result: dict[str, Any] = {
            "type": self.kind_value,
            "description": self.description,
            "confidenceImpact": self.confidence_impact,
        }
        if self.location:
            result["location"] = self.location
        if self.line is not None:
            result["line"] = self.line
        if self.snippet:
            result["snippet"] = self.snippet
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Evidence":
        """Create Evidence from dict. Accepts 'type' or 'kind' for the kind."""
        return cls(
            kind=data.get("kind") or data.get("type", ""),
            description=data.get("description", ""),
            location=data.get("location"),
            line=data.get("line"),
            snippet=data.get("snippet"),
            confidence_impact=data.get("confidenceImpact", data.get("confidence_impact")),
        )


def create_evidence(
    kind: EvidenceKind | str,
    description: str,
    location: str | None = None,
    line: int | None = None,
    snippet: str | None = None,
    confidence_impact: int | None = None,
) -> Evidence:
    """Create evidence, defaulting its impact to the static weight for ``kind``."""
    return Evidence(
        kind=kind,
        description=description,
        location=location,
        line=line,
        snippet=snippet,
        confidence_impact=confidence_impact,
    )


def evidence_of_kind(evidence: Iterable[Evidence], kind: EvidenceKind) -> list[Evidence]:
    return [e for e in evidence if e.kind == kind]


def has_evidence_kind(evidence: Iterable[Evidence], *kinds: EvidenceKind) -> bool:
    """True if any evidence item has one of ``kinds``."""
    wanted = set(kinds)
    return any(e.kind in wanted for e in evidence)


def total_confidence_impact(evidence: Iterable[Evidence]) -> int:
    return sum(e.confidence_impact or 0 for e in evidence)
