"""
Gap Analysis
============

Evidence model, confidence scoring and spec-vs-implementation gap detection.
"""

from gap_analysis.confidence import ConfidenceScore, ConfidenceScorer, calculate_confidence
from gap_analysis.detector import GapDetectionResult, SpecGapDetector
from gap_analysis.enums import ConfidenceLevel, EvidenceKind, GapStatus, Priority
from gap_analysis.evidence import Evidence, create_evidence
from gap_analysis.models import (
    EffortEstimate,
    FeatureGap,
    ImplementationDetails,
    ParsedSpec,
    Requirement,
    SpecGap,
    create_effort_estimate,
)
from gap_analysis.providers import EvidenceProvider, StaticEvidenceProvider

__all__ = [
    "ConfidenceLevel",
    "ConfidenceScore",
    "ConfidenceScorer",
    "EffortEstimate",
    "Evidence",
    "EvidenceKind",
    "EvidenceProvider",
    "FeatureGap",
    "GapDetectionResult",
    "GapStatus",
    "ImplementationDetails",
    "ParsedSpec",
    "Priority",
    "Requirement",
    "SpecGap",
    "SpecGapDetector",
    "StaticEvidenceProvider",
    "calculate_confidence",
    "create_effort_estimate",
    "create_evidence",
]
