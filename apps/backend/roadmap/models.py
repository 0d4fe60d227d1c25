"""
Roadmap Models
==============

Roadmap items and everything assembled around them: phases, timeline,
risks, dependency edges and the root ``Roadmap`` aggregate.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from core.exceptions import PhaseAssignmentError
from gap_analysis.enums import Priority
from gap_analysis.models import EffortEstimate


class RoadmapItemType(str, Enum):
    """Kind of work a roadmap item represents."""

    GAP_FIX = "gap-fix"
    FEATURE = "feature"
    ENHANCEMENT = "enhancement"


class ItemStatus(str, Enum):
    NOT_STARTED = "not-started"
    IN_PROGRESS = "in-progress"
    BLOCKED = "blocked"
    COMPLETED = "completed"
    WONT_DO = "wont-do"


TEAM_SIZE_LABELS = {1: "oneDev", 2: "twoDevs", 3: "threeDevs"}


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass
class RoadmapItem:
    """The unit of planning: a gap fix or a candidate feature."""

    id: str
    type: RoadmapItemType
    title: str
    priority: Priority
    effort: EffortEstimate
    description: str = ""
    phase: int = 0  # 0 = not yet assigned
    status: ItemStatus = ItemStatus.NOT_STARTED
    dependencies: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    source: dict[str, str] = field(default_factory=dict)

    @property
    def hours(self) -> float:
        return self.effort.hours

    def with_phase(self, number: int) -> "RoadmapItem":
        """
        Copy of this item placed in phase ``number``.

        Raises:
            PhaseAssignmentError: if the item already belongs to a phase
        """
        if self.phase != 0:
            raise PhaseAssignmentError(self.id, self.phase, number)
        return replace(self, phase=number)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        result = {
            "id": self.id,
            "type": self.type.value,
            "title": self.title,
            "description": self.description,
            "priority": self.priority.value,
            "effort": self.effort.to_dict(),
            "phase": self.phase,
            "status": self.status.value,
            "dependencies": list(self.dependencies),
            "tags": list(self.tags),
        }
        if self.source:
            result["source"] = dict(self.source)
        return result


@dataclass
class ScoredFeature:
    """A candidate feature scored by an external ideation step."""

    id: str
    title: str
    priority: Priority
    effort: EffortEstimate
    description: str = ""
    category: str = "general"
    dependencies: list[str] = field(default_factory=list)
    impact_score: float = 0.0  # 1-10
    effort_score: float = 0.0  # 1-10
    roi: float = 0.0
    priority_score: float = 0.0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ScoredFeature":
        effort = data.get("effort", {})
        return cls(
            id=str(data["id"]),
            title=data.get("title", ""),
            description=data.get("description", ""),
            category=data.get("category", "general"),
            priority=Priority(data.get("priority", "P2")),
            effort=(
                effort if isinstance(effort, EffortEstimate) else EffortEstimate.from_dict(effort)
            ),
            dependencies=list(data.get("dependencies", [])),
            impact_score=data.get("impact_score", data.get("impactScore", 0.0)),
            effort_score=data.get("effort_score", data.get("effortScore", 0.0)),
            roi=data.get("roi", 0.0),
            priority_score=data.get("priority_score", data.get("priorityScore", 0.0)),
        )


@dataclass
class CompletionCategories:
    """Category completion percentages (0-100) supplied by the evidence source."""

    core_features: float = 0.0
    documentation: float = 0.0
    testing: float = 0.0
    security: float = 0.0
    deployment: float = 0.0
    error_handling: float = 0.0
    performance: float = 0.0

    @property
    def overall(self) -> int:
        values = [
            self.core_features,
            self.documentation,
            self.testing,
            self.security,
            self.deployment,
            self.error_handling,
            self.performance,
        ]
        return round(sum(values) / len(values))

    def to_dict(self) -> dict[str, float]:
        return {
            "coreFeatures": self.core_features,
            "documentation": self.documentation,
            "testing": self.testing,
            "security": self.security,
            "deployment": self.deployment,
            "errorHandling": self.error_handling,
            "performance": self.performance,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CompletionCategories":
        def pick(snake: str, camel: str) -> float:
            return float(data.get(snake, data.get(camel, 0.0)))

        return cls(
            core_features=pick("core_features", "coreFeatures"),
            documentation=pick("documentation", "documentation"),
            testing=pick("testing", "testing"),
            security=pick("security", "security"),
            deployment=pick("deployment", "deployment"),
            error_handling=pick("error_handling", "errorHandling"),
            performance=pick("performance", "performance"),
        )


@dataclass
class ProjectContext:
    """Project-level metadata for a roadmap run."""

    name: str
    path: str = ""
    specs_analyzed: int = 0
    completion: CompletionCategories = field(default_factory=CompletionCategories)


@dataclass
class Phase:
    """An ordered group of items forming one delivery increment."""

    number: int
    name: str
    goal: str
    items: list[RoadmapItem]
    total_effort: EffortEstimate
    duration_weeks: int
    outcome: str
    success_criteria: list[str] = field(default_factory=list)

    @property
    def duration(self) -> str:
        weeks = self.duration_weeks
        return f"{weeks} week{'s' if weeks != 1 else ''}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "number": self.number,
            "name": self.name,
            "goal": self.goal,
            "items": [i.id for i in self.items],
            "totalEffort": self.total_effort.to_dict(),
            "durationWeeks": self.duration_weeks,
            "duration": self.duration,
            "outcome": self.outcome,
            "successCriteria": list(self.success_criteria),
        }


@dataclass
class Dependency:
    """A reporting-only edge between two items in the same run."""

    dependent: str
    depends_on: str
    reason: str
    type: str = "blocks"
    is_hard: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "dependent": self.dependent,
            "dependsOn": self.depends_on,
            "type": self.type,
            "reason": self.reason,
            "isHard": self.is_hard,
        }


@dataclass
class Risk:
    id: str
    title: str
    description: str
    likelihood: RiskLevel
    impact: RiskLevel
    severity: RiskLevel
    mitigations: list[str] = field(default_factory=list)
    affected_items: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "likelihood": self.likelihood.value,
            "impact": self.impact.value,
            "severity": self.severity.value,
            "mitigations": list(self.mitigations),
            "affectedItems": list(self.affected_items),
        }


@dataclass
class TeamEstimate:
    hours: int
    weeks: int

    def to_dict(self) -> dict[str, int]:
        return {"hours": self.hours, "weeks": self.weeks}


@dataclass
class PhaseTimeline:
    phase: int
    hours: int
    weeks: int

    def to_dict(self) -> dict[str, int]:
        return {"phase": self.phase, "hours": self.hours, "weeks": self.weeks}


@dataclass
class Milestone:
    phase: int
    name: str
    week: int

    def to_dict(self) -> dict[str, Any]:
        return {"phase": self.phase, "name": self.name, "week": self.week}


@dataclass
class CriticalPath:
    """Longest dependency chain by hours."""

    item_ids: list[str] = field(default_factory=list)
    hours: float = 0

    def to_dict(self) -> dict[str, Any]:
        return {"items": list(self.item_ids), "hours": self.hours}


@dataclass
class Timeline:
    """Adjusted totals for the chosen team size plus per-phase and per-team breakdowns."""

    team_size: int
    total_hours: int
    total_weeks: int
    by_phase: list[PhaseTimeline]
    by_team_size: dict[int, TeamEstimate]  # developers -> estimate
    milestones: list[Milestone]
    critical_path: CriticalPath = field(default_factory=CriticalPath)

    def to_dict(self) -> dict[str, Any]:
        return {
            "teamSize": self.team_size,
            "totalHours": self.total_hours,
            "totalWeeks": self.total_weeks,
            "byPhase": [p.to_dict() for p in self.by_phase],
            "byTeamSize": {
                TEAM_SIZE_LABELS.get(size, f"{size}Devs"): estimate.to_dict()
                for size, estimate in self.by_team_size.items()
            },
            "milestones": [m.to_dict() for m in self.milestones],
            "criticalPath": self.critical_path.to_dict(),
        }


@dataclass
class PriorityGroup:
    priority: Priority
    items: list[RoadmapItem]
    effort: EffortEstimate

    @property
    def count(self) -> int:
        return len(self.items)

    def to_dict(self) -> dict[str, Any]:
        return {
            "count": self.count,
            "effort": self.effort.to_dict(),
            "items": [i.id for i in self.items],
        }


@dataclass
class RoadmapMetadata:
    generated_at: str
    project_name: str
    tool_version: str
    specs_analyzed: int
    gaps_found: int
    features_identified: int
    total_items: int
    settings: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "generated": self.generated_at,
            "projectName": self.project_name,
            "toolVersion": self.tool_version,
            "analysisBasis": {
                "specsAnalyzed": self.specs_analyzed,
                "gapsFound": self.gaps_found,
                "featuresIdentified": self.features_identified,
                "totalItems": self.total_items,
            },
            "settings": dict(self.settings),
        }


@dataclass
class RoadmapSummary:
    overview: str
    total_items: int
    by_priority: dict[str, int]
    by_type: dict[str, int]
    completion: CompletionCategories
    production_readiness: int
    next_steps: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "overview": self.overview,
            "totalItems": self.total_items,
            "byPriority": dict(self.by_priority),
            "byType": dict(self.by_type),
            "completion": {
                "overall": self.completion.overall,
                "categories": self.completion.to_dict(),
                "productionReadiness": self.production_readiness,
            },
            "nextSteps": list(self.next_steps),
            "warnings": list(self.warnings),
        }


@dataclass
class Roadmap:
    """The root aggregate handed to exporters."""

    metadata: RoadmapMetadata
    summary: RoadmapSummary
    phases: list[Phase]
    all_items: list[RoadmapItem]
    priorities: dict[Priority, PriorityGroup]
    timeline: Timeline
    risks: list[Risk] = field(default_factory=list)
    dependencies: list[Dependency] = field(default_factory=list)
    success_criteria: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)
    degraded: bool = False

    @property
    def warnings(self) -> list[str]:
        return self.summary.warnings

    def get_item(self, item_id: str) -> RoadmapItem | None:
        return next((i for i in self.all_items if i.id == item_id), None)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for exporters."""
        return {
            "metadata": self.metadata.to_dict(),
            "summary": self.summary.to_dict(),
            "phases": [p.to_dict() for p in self.phases],
            "allItems": [i.to_dict() for i in self.all_items],
            "priorities": {p.value.lower(): g.to_dict() for p, g in self.priorities.items()},
            "timeline": self.timeline.to_dict(),
            "risks": [r.to_dict() for r in self.risks],
            "dependencies": [d.to_dict() for d in self.dependencies],
            "successCriteria": list(self.success_criteria),
            "recommendations": list(self.recommendations),
            "warnings": list(self.warnings),
            "degraded": self.degraded,
        }
