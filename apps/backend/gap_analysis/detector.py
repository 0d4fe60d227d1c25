"""
Spec Gap Detector
=================

Compares parsed specifications against evidence about the codebase and
reports every requirement that is missing, a stub, or only partially
implemented.

Evidence gathering is the only step that talks to the outside world. It can
run sequentially (``analyze_specs``) or concurrently in a thread pool
(``analyze_specs_async``); both produce gaps in requirement order, so the
two paths give identical results for the same provider answers.

Provider failures and timeouts never abort a run. The affected requirement
is scored as if no evidence was found and the failure is recorded as a
warning.
"""

import asyncio
import logging
import re
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Iterable, Sequence

from core.config import RoadmapSettings
from core.exceptions import (
    EvidenceGatheringError,
    EvidenceTimeoutError,
    RoadmapError,
    SpecParsingError,
)
from core.logging import Timer, log_context, log_exception

from .confidence import ConfidenceScorer
from .enums import EstimateConfidence, EstimationMethod, EvidenceKind, GapStatus, Priority
from .evidence import (
    ABSENCE_KINDS,
    IMPLEMENTATION_KINDS,
    PARTIAL_KINDS,
    STUB_KINDS,
    Evidence,
    has_evidence_kind,
)
from .models import EffortEstimate, ParsedSpec, Requirement, SpecGap, create_effort_estimate
from .providers import EvidenceProvider

logger = logging.getLogger(__name__)

STOP_WORDS = frozenset(
    {
        "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for", "of",
        "with", "by", "from", "as", "is", "was", "are", "were", "be", "been",
        "being", "have", "has", "had", "do", "does", "did", "will", "would",
        "should", "could", "may", "might", "must", "can", "system",
    }
)
MIN_KEYWORD_LENGTH = 4
MAX_SEARCH_KEYWORDS = 3

BASE_EFFORT_HOURS: dict[GapStatus, int] = {
    GapStatus.MISSING: 16,
    GapStatus.STUB: 12,
    GapStatus.PARTIAL: 8,
    GapStatus.COMPLETE: 2,
}

COMPLETE_SKIP_CONFIDENCE = 90

IMPACT_TEMPLATES: dict[GapStatus, str] = {
    GapStatus.MISSING: "{title} is not implemented. This blocks {spec_title}.",
    GapStatus.STUB: "{title} is only a stub. Users will encounter non-functional code.",
    GapStatus.PARTIAL: "{title} is partially implemented. Some acceptance criteria are not met.",
    GapStatus.COMPLETE: "{title} appears complete but may need verification.",
}

RECOMMENDATION_TEMPLATES: dict[GapStatus, str] = {
    GapStatus.MISSING: "Implement {title} according to specification.",
    GapStatus.STUB: "Complete the stub implementation of {title}.",
    GapStatus.PARTIAL: "Finish implementing remaining acceptance criteria for {title}.",
    GapStatus.COMPLETE: "Verify and test {title} implementation.",
}

EXPECTED_LOCATION_TEMPLATES = ("src/{keyword}.ts", "src/{spec_id}/{keyword}.ts")

_DEPENDS_ON_PATTERN = re.compile(r"depends on ([A-Z]+\d+)", re.IGNORECASE)
_NON_WORD_PATTERN = re.compile(r"[^a-z0-9\s]")


@dataclass
class GapDetectionResult:
    """Gaps found in a run plus everything that degraded it."""

    gaps: list[SpecGap] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    errors: list[RoadmapError] = field(default_factory=list)
    specs_analyzed: int = 0
    requirements_analyzed: int = 0
    skipped_specs: list[str] = field(default_factory=list)

    def record(self, error: RoadmapError) -> None:
        self.errors.append(error)
        self.warnings.append(str(error))

    def to_dict(self) -> dict[str, Any]:
        return {
            "gaps": [g.to_dict() for g in self.gaps],
            "warnings": list(self.warnings),
            "errors": [e.to_dict() for e in self.errors],
            "specsAnalyzed": self.specs_analyzed,
            "requirementsAnalyzed": self.requirements_analyzed,
            "skippedSpecs": list(self.skipped_specs),
        }


def extract_keywords(text: str) -> list[str]:
    """
    Significant words of ``text``: lowercase, stop words and short words
    removed, deduplicated, longest first (ties keep first appearance).
    """
    words = _NON_WORD_PATTERN.sub(" ", text.lower()).split()
    unique = dict.fromkeys(
        w for w in words if len(w) >= MIN_KEYWORD_LENGTH and w not in STOP_WORDS
    )
    return sorted(unique, key=len, reverse=True)


def determine_status_from_evidence(evidence: Sequence[Evidence]) -> GapStatus:
    """Derive a gap status when the requirement does not declare one."""
    has_implementation = has_evidence_kind(evidence, *IMPLEMENTATION_KINDS)
    has_negative = has_evidence_kind(evidence, *ABSENCE_KINDS)

    if has_evidence_kind(evidence, *STUB_KINDS):
        return GapStatus.STUB
    if has_implementation and not has_negative:
        return GapStatus.COMPLETE
    if has_implementation or has_evidence_kind(evidence, *PARTIAL_KINDS):
        return GapStatus.PARTIAL
    return GapStatus.MISSING


def estimate_effort(
    requirement: Requirement, status: GapStatus, evidence: Sequence[Evidence]
) -> EffortEstimate:
    """Complexity-based estimate from status, criteria count and dependency hints."""
    hours: float = BASE_EFFORT_HOURS[status]

    criteria_count = len(requirement.acceptance_criteria)
    if criteria_count > 5:
        hours *= 1.5
    elif criteria_count > 3:
        hours *= 1.2

    if any("depends on" in e.description for e in evidence):
        hours *= 1.3

    return create_effort_estimate(
        round(hours), EstimateConfidence.MEDIUM, EstimationMethod.COMPLEXITY
    )


def extract_dependencies(requirement: Requirement) -> list[str]:
    """Explicit dependencies followed by "depends on <ID>" mentions, deduplicated."""
    mentioned = _DEPENDS_ON_PATTERN.findall(requirement.description or "")
    return list(dict.fromkeys([*requirement.dependencies, *mentioned]))


def expected_locations(requirement: Requirement, spec: ParsedSpec) -> list[str]:
    locations = []
    for keyword in extract_keywords(requirement.title):
        for template in EXPECTED_LOCATION_TEMPLATES:
            locations.append(template.format(keyword=keyword, spec_id=spec.id.lower()))
    return locations


def coerce_spec(spec: ParsedSpec | dict[str, Any]) -> ParsedSpec:
    """Accept a ParsedSpec or a plain mapping. Raises SpecParsingError."""
    if isinstance(spec, ParsedSpec):
        return spec.validate()
    if isinstance(spec, dict):
        return ParsedSpec.from_dict(spec)
    raise SpecParsingError("<unknown>", f"expected a spec mapping, got {type(spec).__name__}")


class SpecGapDetector:
    """
    Detects implementation gaps for parsed specifications.

    Args:
        provider: Where evidence comes from
        settings: Detection settings (stubs/partials, test coverage, threshold)
        scorer: Confidence scorer (defaults to ConfidenceScorer())
    """

    def __init__(
        self,
        provider: EvidenceProvider,
        settings: RoadmapSettings | None = None,
        scorer: ConfidenceScorer | None = None,
    ):
        self.provider = provider
        self.settings = settings or RoadmapSettings()
        self.scorer = scorer or ConfidenceScorer()

    # ------------------------------------------------------------------
    # Evidence
    # ------------------------------------------------------------------

    def gather_evidence(self, requirement: Requirement) -> list[Evidence]:
        """
        Ask the provider about a requirement.

        Raises:
            EvidenceGatheringError: if the provider fails
        """
        try:
            return self._gather(requirement)
        except EvidenceGatheringError:
            raise
        except Exception as e:
            raise EvidenceGatheringError(requirement.id, str(e), cause=e) from e

    def _gather(self, requirement: Requirement) -> list[Evidence]:
        evidence: list[Evidence] = []
        implementation = requirement.implementation

        if implementation:
            for file_path in implementation.files:
                file_evidence = list(self.provider.evidence_for(file_path))
                evidence.extend(file_evidence)
                if has_evidence_kind(file_evidence, EvidenceKind.FILE_NOT_FOUND):
                    continue
                for symbol in implementation.symbols:
                    evidence.extend(self.provider.evidence_for(file_path, symbol))
        else:
            text = f"{requirement.title} {requirement.description}"
            for keyword in extract_keywords(text)[:MAX_SEARCH_KEYWORDS]:
                evidence.extend(self.provider.search(keyword))

        if self.settings.check_test_coverage and implementation:
            for file_path in implementation.files:
                evidence.extend(self.provider.test_evidence(file_path))

        return evidence

    def _safe_gather(
        self, spec: ParsedSpec, requirement: Requirement, result: GapDetectionResult
    ) -> list[Evidence]:
        try:
            return self.gather_evidence(requirement)
        except EvidenceGatheringError as e:
            e.context.spec_id = spec.id
            log_exception(
                logger,
                f"Evidence gathering failed for {requirement.id}, treating as no evidence",
                e,
                level=logging.WARNING,
            )
            result.record(e)
            return []

    # ------------------------------------------------------------------
    # Gap construction
    # ------------------------------------------------------------------

    def build_gap(
        self, requirement: Requirement, spec: ParsedSpec, evidence: list[Evidence]
    ) -> SpecGap | None:
        """Turn a requirement and its evidence into a gap, or None when it is filtered out."""
        declared = requirement.implementation.status if requirement.implementation else None
        status = declared or determine_status_from_evidence(evidence)

        score = self.scorer.calculate_score(status, evidence)

        if status is GapStatus.COMPLETE and score.score >= COMPLETE_SKIP_CONFIDENCE:
            logger.debug(f"{requirement.id} is complete with high confidence")
            return None
        if status is GapStatus.PARTIAL and not self.settings.include_partial:
            return None
        if status is GapStatus.STUB and not self.settings.include_stubs:
            return None
        if score.score < self.settings.confidence_threshold:
            logger.debug(
                f"{requirement.id} below confidence threshold "
                f"({score.score} < {self.settings.confidence_threshold})"
            )
            return None

        priority: Priority = requirement.priority or spec.priority
        template_fields = {"title": requirement.title, "spec_title": spec.title}

        gap = SpecGap(
            id=requirement.id,
            spec=spec.id,
            requirement=requirement.id,
            description=requirement.title,
            status=status,
            confidence=score.score,
            evidence=evidence,
            expected_locations=expected_locations(requirement, spec),
            actual_locations=[e.location for e in evidence if e.location],
            effort=estimate_effort(requirement, status, evidence),
            priority=priority,
            impact=IMPACT_TEMPLATES[status].format(**template_fields),
            recommendation=RECOMMENDATION_TEMPLATES[status].format(**template_fields),
            dependencies=extract_dependencies(requirement),
        )
        logger.debug(f"{requirement.id} status={status.value} confidence={score.score}")
        return gap

    def verify_requirement(self, requirement: Requirement, spec: ParsedSpec) -> SpecGap | None:
        """
        Gather evidence for one requirement and build its gap.

        Raises:
            EvidenceGatheringError: if the provider fails
        """
        return self.build_gap(requirement, spec, self.gather_evidence(requirement))

    # ------------------------------------------------------------------
    # Runs
    # ------------------------------------------------------------------

    def analyze_spec(self, spec: ParsedSpec) -> GapDetectionResult:
        """Analyze a single spec."""
        return self.analyze_specs([spec])

    def analyze_specs(self, specs: Iterable[ParsedSpec | dict[str, Any]]) -> GapDetectionResult:
        """Analyze specs sequentially."""
        result = GapDetectionResult()
        valid = self._valid_specs(specs, result)

        with Timer("gap_detection") as timer:
            for spec in valid:
                with log_context(spec_id=spec.id):
                    for requirement in spec.requirements:
                        with log_context(requirement_id=requirement.id):
                            evidence = self._safe_gather(spec, requirement, result)
                            self._collect(spec, requirement, evidence, result)

        self._qualify_dependencies(result)
        self._log_summary(result, timer.duration_ms)
        return result

    async def analyze_specs_async(
        self,
        specs: Iterable[ParsedSpec | dict[str, Any]],
        max_workers: int | None = None,
        timeout: float | None = None,
    ) -> GapDetectionResult:
        """
        Analyze specs, gathering evidence concurrently in a thread pool.

        Args:
            specs: Specs to analyze
            max_workers: Pool size (defaults to settings.max_workers)
            timeout: Overall deadline in seconds for evidence gathering
                (defaults to settings.evidence_timeout; None waits forever)

        Returns:
            GapDetectionResult with gaps in requirement order
        """
        max_workers = max_workers or self.settings.max_workers
        if timeout is None:
            timeout = self.settings.evidence_timeout

        result = GapDetectionResult()
        jobs = [(spec, req) for spec in self._valid_specs(specs, result) for req in spec.requirements]
        if not jobs:
            self._log_summary(result, 0)
            return result

        loop = asyncio.get_running_loop()
        pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="evidence")
        try:
            with Timer("gap_detection") as timer:
                futures = [
                    loop.run_in_executor(pool, self.gather_evidence, requirement)
                    for _, requirement in jobs
                ]
                _, pending = await asyncio.wait(futures, timeout=timeout)
                for future in pending:
                    future.cancel()

                for (spec, requirement), future in zip(jobs, futures):
                    evidence = self._evidence_from_future(spec, requirement, future, timeout, result)
                    self._collect(spec, requirement, evidence, result)
        finally:
            pool.shutdown(wait=False, cancel_futures=True)

        self._qualify_dependencies(result)
        self._log_summary(result, timer.duration_ms)
        return result

    def _evidence_from_future(
        self,
        spec: ParsedSpec,
        requirement: Requirement,
        future: asyncio.Future,
        timeout: float | None,
        result: GapDetectionResult,
    ) -> list[Evidence]:
        if future.cancelled():
            error = EvidenceTimeoutError(
                requirement.id, f"evidence incomplete after {timeout}s deadline"
            )
            error.context.spec_id = spec.id
            logger.warning(str(error), extra={"error_code": error.error_code})
            result.record(error)
            return []

        exc = future.exception()
        if exc is None:
            return future.result()

        if not isinstance(exc, EvidenceGatheringError):
            exc = EvidenceGatheringError(requirement.id, str(exc), cause=exc)
        exc.context.spec_id = spec.id
        log_exception(
            logger,
            f"Evidence gathering failed for {requirement.id}, treating as no evidence",
            exc,
            level=logging.WARNING,
        )
        result.record(exc)
        return []

    def _valid_specs(
        self, specs: Iterable[ParsedSpec | dict[str, Any]], result: GapDetectionResult
    ) -> list[ParsedSpec]:
        valid = []
        for raw in specs:
            try:
                spec = coerce_spec(raw)
            except SpecParsingError as e:
                logger.warning(f"Skipping spec: {e}", extra={"error_code": e.error_code})
                result.record(e)
                result.skipped_specs.append(e.context.spec_id)
                continue
            valid.append(spec)
        result.specs_analyzed = len(valid)
        return valid

    def _collect(
        self,
        spec: ParsedSpec,
        requirement: Requirement,
        evidence: list[Evidence],
        result: GapDetectionResult,
    ) -> None:
        result.requirements_analyzed += 1
        gap = self.build_gap(requirement, spec, evidence)
        if gap is None:
            return
        if any(existing.id == gap.id for existing in result.gaps):
            gap.id = f"{spec.id}/{requirement.id}"
        result.gaps.append(gap)

    @staticmethod
    def _qualify_dependencies(result: GapDetectionResult) -> None:
        """Point same-spec dependencies at renamed gap ids."""
        renamed = {(g.spec, g.requirement): g.id for g in result.gaps if g.id != g.requirement}
        if not renamed:
            return
        for gap in result.gaps:
            gap.dependencies = [renamed.get((gap.spec, dep), dep) for dep in gap.dependencies]

    def _log_summary(self, result: GapDetectionResult, duration_ms: float) -> None:
        logger.info(
            f"Gap detection found {len(result.gaps)} gaps in "
            f"{result.requirements_analyzed} requirements across {result.specs_analyzed} specs",
            extra={"duration_ms": duration_ms, "stage": "gap_detection"},
        )
        if result.warnings:
            logger.warning(f"Gap detection degraded: {len(result.warnings)} warnings")
