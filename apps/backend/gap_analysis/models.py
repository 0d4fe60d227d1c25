"""
Gap Analysis Models
===================

Input contracts (parsed specs and requirements) and output records (effort
estimates, spec gaps and feature gaps) for gap detection.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from core.exceptions import SpecParsingError

from .enums import EstimateConfidence, EstimationMethod, GapStatus, Priority
from .evidence import Evidence

OPTIMISTIC_FACTOR = 0.7
PESSIMISTIC_FACTOR = 1.5


@dataclass
class EffortRange:
    optimistic: int
    realistic: float
    pessimistic: int


@dataclass
class EffortEstimate:
    """Effort estimate in hours with an optimistic/pessimistic range."""

    hours: float
    confidence: EstimateConfidence = EstimateConfidence.MEDIUM
    method: EstimationMethod = EstimationMethod.COMPLEXITY
    range: EffortRange | None = None

    def __post_init__(self) -> None:
        if self.hours < 0:
            raise ValueError(f"Effort hours must be non-negative, got {self.hours}")
        self.confidence = EstimateConfidence(self.confidence)
        self.method = EstimationMethod(self.method)
        if self.range is None:
            self.range = EffortRange(
                optimistic=round(self.hours * OPTIMISTIC_FACTOR),
                realistic=self.hours,
                pessimistic=round(self.hours * PESSIMISTIC_FACTOR),
            )

    @property
    def display(self) -> str:
        return f"{self.hours:g}h ({self.range.optimistic}-{self.range.pessimistic}h)"

    def to_dict(self) -> dict[str, Any]:
        return {
            "hours": self.hours,
            "confidence": self.confidence.value,
            "method": self.method.value,
            "range": {
                "optimistic": self.range.optimistic,
                "realistic": self.range.realistic,
                "pessimistic": self.range.pessimistic,
            },
            "display": self.display,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EffortEstimate":
        return cls(
            hours=data.get("hours", 0),
            confidence=data.get("confidence", "medium"),
            method=data.get("method", "complexity"),
        )


def create_effort_estimate(
    hours: float,
    confidence: EstimateConfidence | str = EstimateConfidence.MEDIUM,
    method: EstimationMethod | str = EstimationMethod.COMPLEXITY,
) -> EffortEstimate:
    """Create an effort estimate with the standard 0.7x / 1.5x range."""
    return EffortEstimate(hours=hours, confidence=confidence, method=method)


@dataclass
class ImplementationDetails:
    """Known implementation pointers for a requirement."""

    files: list[str] = field(default_factory=list)
    symbols: list[str] = field(default_factory=list)
    status: GapStatus | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ImplementationDetails":
        status = data.get("status")
        return cls(
            files=list(data.get("files", [])),
            symbols=list(data.get("symbols", data.get("functions", []))),
            status=GapStatus(status) if status else None,
        )


@dataclass
class Requirement:
    """A single functional or non-functional requirement."""

    id: str
    title: str
    description: str = ""
    priority: Priority | None = None
    acceptance_criteria: list[str] = field(default_factory=list)
    implementation: ImplementationDetails | None = None
    dependencies: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Requirement":
        priority = data.get("priority")
        implementation = data.get("implementation")
        return cls(
            id=str(data["id"]),
            title=data.get("title", ""),
            description=data.get("description", ""),
            priority=Priority(priority) if priority else None,
            acceptance_criteria=list(
                data.get("acceptance_criteria", data.get("acceptanceCriteria", []))
            ),
            implementation=(
                ImplementationDetails.from_dict(implementation) if implementation else None
            ),
            dependencies=list(data.get("dependencies", [])),
        )


@dataclass
class ParsedSpec:
    """A specification already parsed into structured requirements."""

    id: str
    title: str
    priority: Priority = Priority.P2
    functional_requirements: list[Requirement] = field(default_factory=list)
    non_functional_requirements: list[Requirement] = field(default_factory=list)
    path: str | None = None
    status: str | None = None

    @property
    def requirements(self) -> list[Requirement]:
        """Functional requirements first, then non-functional, in spec order."""
        return [*self.functional_requirements, *self.non_functional_requirements]

    def validate(self) -> "ParsedSpec":
        """Raise SpecParsingError if the spec cannot be analysed. Returns self."""
        if not self.id:
            raise SpecParsingError(self.title or "<unknown>", "spec has no id")
        if not isinstance(self.priority, Priority):
            raise SpecParsingError(self.id, f"invalid priority {self.priority!r}")

        seen: set[str] = set()
        for requirement in self.requirements:
            if not requirement.id:
                raise SpecParsingError(self.id, "requirement without id")
            if requirement.id in seen:
                raise SpecParsingError(self.id, f"duplicate requirement id {requirement.id}")
            seen.add(requirement.id)
            if requirement.priority is not None and not isinstance(requirement.priority, Priority):
                raise SpecParsingError(
                    self.id, f"invalid priority {requirement.priority!r} on {requirement.id}"
                )
            implementation = requirement.implementation
            if implementation is not None and implementation.status is not None:
                try:
                    implementation.status = GapStatus(implementation.status)
                except ValueError:
                    raise SpecParsingError(
                        self.id, f"invalid status {implementation.status!r} on {requirement.id}"
                    ) from None
        return self

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ParsedSpec":
        """
        Create a ParsedSpec from a plain mapping.

        Raises:
            SpecParsingError: if required fields are missing or malformed
        """
        spec_id = str(data.get("id", "")) if isinstance(data, dict) else ""
        try:
            spec = cls(
                id=spec_id,
                title=data.get("title", spec_id),
                priority=Priority(data.get("priority", "P2")),
                functional_requirements=[
                    Requirement.from_dict(r)
                    for r in data.get(
                        "functional_requirements", data.get("functionalRequirements", [])
                    )
                ],
                non_functional_requirements=[
                    Requirement.from_dict(r)
                    for r in data.get(
                        "non_functional_requirements", data.get("nonFunctionalRequirements", [])
                    )
                ],
                path=data.get("path"),
                status=data.get("status"),
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise SpecParsingError(spec_id or "<unknown>", str(e), cause=e) from e
        return spec.validate()


@dataclass
class SpecGap:
    """A requirement judged not fully complete."""

    id: str
    spec: str
    requirement: str
    description: str
    status: GapStatus
    confidence: int  # 0-100
    evidence: list[Evidence]
    expected_locations: list[str]
    actual_locations: list[str]
    effort: EffortEstimate
    priority: Priority
    impact: str
    recommendation: str
    dependencies: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "spec": self.spec,
            "requirement": self.requirement,
            "description": self.description,
            "status": self.status.value,
            "confidence": self.confidence,
            "evidence": [e.to_dict() for e in self.evidence],
            "expectedLocations": list(self.expected_locations),
            "actualLocations": list(self.actual_locations),
            "effort": self.effort.to_dict(),
            "priority": self.priority.value,
            "impact": self.impact,
            "recommendation": self.recommendation,
            "dependencies": list(self.dependencies),
        }


class FeatureGapStatus(str, Enum):
    """Accuracy of a documentation claim."""

    ACCURATE = "accurate"
    MISLEADING = "misleading"
    FALSE = "false"


class FeatureGapRecommendation(str, Enum):
    UPDATE_DOCS = "update-docs"
    IMPLEMENT_FEATURE = "implement-feature"
    REMOVE_CLAIM = "remove-claim"


@dataclass
class FeatureGap:
    """A documented feature whose claim does not match the implementation."""

    id: str
    advertised_feature: str
    claim: str
    source: str
    reality: str
    accuracy_score: int  # 0-100
    status: FeatureGapStatus = FeatureGapStatus.MISLEADING
    recommendation: FeatureGapRecommendation = FeatureGapRecommendation.IMPLEMENT_FEATURE
    evidence: list[Evidence] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.status = FeatureGapStatus(self.status)
        self.recommendation = FeatureGapRecommendation(self.recommendation)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "advertisedFeature": self.advertised_feature,
            "claim": self.claim,
            "source": self.source,
            "reality": self.reality,
            "accuracyScore": self.accuracy_score,
            "status": self.status.value,
            "recommendation": self.recommendation.value,
            "evidence": [e.to_dict() for e in self.evidence],
        }
