"""
Confidence scoring for gap detection.

Combines a per-status base score with evidence weights and a few categorical
adjustments into a 0-100 confidence score. Scoring is pure and total: it
never raises, and unknown evidence kinds contribute nothing.
"""

from dataclasses import dataclass, field
from typing import Any, Sequence

from .enums import CONFIDENCE_THRESHOLDS, ConfidenceLevel, EvidenceKind, GapStatus
from .evidence import STUB_KINDS, Evidence, get_evidence_weight

# Base confidence scores by gap status
BASE_CONFIDENCE_BY_STATUS: dict[GapStatus, int] = {
    GapStatus.COMPLETE: 90,
    GapStatus.PARTIAL: 60,
    GapStatus.STUB: 40,
    GapStatus.MISSING: 20,
}

STATUS_REASONS: dict[GapStatus, str] = {
    GapStatus.COMPLETE: "Implementation appears complete",
    GapStatus.PARTIAL: "Partial implementation found",
    GapStatus.STUB: "Only stub implementation exists",
    GapStatus.MISSING: "No implementation found",
}

STRONG_SIGNAL_WEIGHT = 20  # adjustment counting threshold
REASONING_SIGNAL_WEIGHT = 30  # threshold for naming evidence in the reasoning


@dataclass
class ConfidenceAdjustment:
    """A categorical bonus or penalty applied on top of evidence weights."""

    reason: str
    impact: int


@dataclass
class ConfidenceBreakdown:
    base_score: int
    evidence_score: int
    adjustments: list[ConfidenceAdjustment] = field(default_factory=list)
    final_score: int = 0


@dataclass
class ConfidenceScore:
    """Result of confidence scoring."""

    score: int  # 0-100
    level: ConfidenceLevel
    breakdown: ConfidenceBreakdown
    reasoning: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": self.score,
            "level": self.level.value,
            "breakdown": {
                "baseScore": self.breakdown.base_score,
                "evidenceScore": self.breakdown.evidence_score,
                "adjustments": [
                    {"reason": a.reason, "impact": a.impact} for a in self.breakdown.adjustments
                ],
                "finalScore": self.breakdown.final_score,
            },
            "reasoning": self.reasoning,
        }


def clamp_score(value: float) -> int:
    """Clamp to the 0-100 confidence range."""
    return int(max(0, min(100, value)))


def get_confidence_level(score: float) -> ConfidenceLevel:
    """Map a 0-100 score to a qualitative level."""
    for level, threshold in CONFIDENCE_THRESHOLDS.items():
        if score >= threshold:
            return level
    return ConfidenceLevel.VERY_LOW


class ConfidenceScorer:
    """Calculates confidence scores (0-100) for detected gaps."""

    def calculate_score(self, status: GapStatus, evidence: Sequence[Evidence]) -> ConfidenceScore:
        """
        Calculate the confidence score for a gap.

        Args:
            status: Gap status
            evidence: Evidence collected for the requirement

        Returns:
            ConfidenceScore with level, breakdown and reasoning
        """
        base_score = BASE_CONFIDENCE_BY_STATUS.get(status, 0)
        evidence_score = self._evidence_score(evidence)
        adjustments = self._adjustments(evidence)

        final_score = clamp_score(base_score + evidence_score + sum(a.impact for a in adjustments))

        return ConfidenceScore(
            score=final_score,
            level=get_confidence_level(final_score),
            breakdown=ConfidenceBreakdown(
                base_score=base_score,
                evidence_score=evidence_score,
                adjustments=adjustments,
                final_score=final_score,
            ),
            reasoning=self._reasoning(status, evidence),
        )

    def _evidence_score(self, evidence: Sequence[Evidence]) -> int:
        score = 0
        for item in evidence:
            if item.confidence_impact is not None:
                score += item.confidence_impact
            else:
                score += get_evidence_weight(item.kind)
        return score

    def _adjustments(self, evidence: Sequence[Evidence]) -> list[ConfidenceAdjustment]:
        adjustments: list[ConfidenceAdjustment] = []

        strong_positive = [e for e in evidence if e.weight > STRONG_SIGNAL_WEIGHT]
        if len(strong_positive) >= 3:
            adjustments.append(ConfidenceAdjustment("Multiple strong positive signals", 10))

        strong_negative = [e for e in evidence if e.weight < -STRONG_SIGNAL_WEIGHT]
        if len(strong_negative) >= 2:
            adjustments.append(ConfidenceAdjustment("Multiple negative signals", -10))

        kinds = {e.kind for e in evidence}
        if EvidenceKind.TEST_FILE_EXISTS in kinds:
            adjustments.append(ConfidenceAdjustment("Test coverage exists", 5))
        if EvidenceKind.TEST_FILE_MISSING in kinds:
            adjustments.append(ConfidenceAdjustment("Missing test coverage", -5))
        if kinds & STUB_KINDS:
            adjustments.append(ConfidenceAdjustment("Stub implementation detected", -10))

        return adjustments

    def _reasoning(self, status: GapStatus, evidence: Sequence[Evidence]) -> str:
        reasons = [STATUS_REASONS.get(status, STATUS_REASONS[GapStatus.MISSING])]

        strong_positive = [e for e in evidence if e.weight > REASONING_SIGNAL_WEIGHT]
        if strong_positive:
            reasons.append(
                "Strong evidence found: " + ", ".join(e.description for e in strong_positive)
            )

        strong_negative = [e for e in evidence if e.weight < -REASONING_SIGNAL_WEIGHT]
        if strong_negative:
            reasons.append("Concerns: " + ", ".join(e.description for e in strong_negative))

        if any(e.kind == EvidenceKind.TEST_FILE_EXISTS for e in evidence):
            reasons.append("Test coverage exists")

        return ". ".join(reasons) + "."

    def compare_scores(self, a: ConfidenceScore, b: ConfidenceScore) -> int:
        """Positive if a > b, negative if a < b, 0 if equal."""
        return a.score - b.score

    def filter_by_confidence(
        self, evidence: Sequence[Evidence], min_confidence: int
    ) -> list[Evidence]:
        """Keep evidence whose impact is at least ``min_confidence``."""
        return [
            e
            for e in evidence
            if (e.confidence_impact if e.confidence_impact is not None else e.weight)
            >= min_confidence
        ]

    def aggregate_scores(self, scores: Sequence[ConfidenceScore]) -> ConfidenceScore:
        """Average several gap scores into one."""
        if not scores:
            return _flat_score(0, "No scores to aggregate")

        avg_score = round(sum(s.score for s in scores) / len(scores))
        result = _flat_score(
            avg_score,
            f"Aggregated confidence from {len(scores)} gaps with average score {avg_score}",
        )
        result.breakdown.adjustments.append(
            ConfidenceAdjustment(f"Aggregated from {len(scores)} scores", 0)
        )
        return result

    def calculate_completeness_confidence(self, implemented: int, total: int) -> ConfidenceScore:
        """Confidence that a spec is complete, from implemented/total requirements."""
        if total <= 0:
            return _flat_score(0, "No requirements to assess")

        percentage = implemented / total * 100
        return _flat_score(
            clamp_score(round(percentage)),
            f"{implemented} of {total} requirements implemented ({percentage:.1f}%)",
        )


def _flat_score(score: int, reasoning: str) -> ConfidenceScore:
    return ConfidenceScore(
        score=score,
        level=get_confidence_level(score),
        breakdown=ConfidenceBreakdown(base_score=score, evidence_score=0, final_score=score),
        reasoning=reasoning,
    )


def calculate_confidence(status: GapStatus, evidence: Sequence[Evidence]) -> int:
    """Quick score calculation."""
    return ConfidenceScorer().calculate_score(status, evidence).score
