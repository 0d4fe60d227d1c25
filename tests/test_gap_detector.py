"""
Tests for spec gap detection, sequential and concurrent.
"""

import threading
import time

import pytest

from core.config import RoadmapSettings
from core.exceptions import EvidenceGatheringError, EvidenceTimeoutError, SpecParsingError
from gap_analysis.detector import (
    SpecGapDetector,
    determine_status_from_evidence,
    estimate_effort,
    extract_dependencies,
    extract_keywords,
)
from gap_analysis.enums import EvidenceKind, GapStatus, Priority
from gap_analysis.evidence import create_evidence
from gap_analysis.models import ImplementationDetails, ParsedSpec, Requirement
from gap_analysis.providers import EvidenceProvider, StaticEvidenceProvider


class FailingProvider(EvidenceProvider):
    """Raises for the files it is told to fail on."""

    def __init__(self, failing: set[str]):
        self.failing = failing

    def evidence_for(self, file_path, symbol=None):
        if file_path in self.failing:
            raise RuntimeError(f"index offline for {file_path}")
        return [create_evidence(EvidenceKind.EXACT_FUNCTION_MATCH, f"Found {file_path}")]


class BlockingProvider(EvidenceProvider):
    """Blocks on one file until released, answers the rest immediately."""

    def __init__(self, slow_file: str):
        self.slow_file = slow_file
        self.release = threading.Event()

    def evidence_for(self, file_path, symbol=None):
        if file_path == self.slow_file:
            self.release.wait(timeout=5)
        return [create_evidence(EvidenceKind.EXACT_FUNCTION_MATCH, f"Found {file_path}")]


class StaggeredProvider(EvidenceProvider):
    """Answers earlier files more slowly so completion order is reversed."""

    def __init__(self, delays: dict[str, float]):
        self.delays = delays

    def evidence_for(self, file_path, symbol=None):
        time.sleep(self.delays.get(file_path, 0))
        return [create_evidence(EvidenceKind.NAME_SIMILARITY_ONLY, f"Similar to {file_path}")]


def _requirement(req_id: str, *files: str, status: GapStatus | None = None, **kwargs) -> Requirement:
    return Requirement(
        id=req_id,
        title=kwargs.pop("title", f"Requirement {req_id}"),
        implementation=ImplementationDetails(files=list(files), status=status),
        **kwargs,
    )


def _spec(spec_id: str, *requirements: Requirement) -> ParsedSpec:
    return ParsedSpec(id=spec_id, title=f"Spec {spec_id}", functional_requirements=list(requirements))


class TestKeywords:
    def test_stop_words_and_short_words_removed(self):
        assert extract_keywords("The system must validate the user's input") == [
            "validate",
            "input",
            "user",
        ]

    def test_longest_first_ties_keep_order(self):
        assert extract_keywords("Export roadmap, render roadmap as markdown") == [
            "markdown",
            "roadmap",
            "export",
            "render",
        ]


class TestStatusFromEvidence:
    def test_no_evidence_is_missing(self):
        assert determine_status_from_evidence([]) is GapStatus.MISSING

    def test_stub_signal_wins(self):
        evidence = [
            create_evidence(EvidenceKind.EXACT_FUNCTION_MATCH, "found"),
            create_evidence(EvidenceKind.RETURNS_GUIDANCE_TEXT, "guidance"),
        ]
        assert determine_status_from_evidence(evidence) is GapStatus.STUB

    def test_implementation_without_negative_is_complete(self):
        evidence = [create_evidence(EvidenceKind.AST_SIGNATURE_VERIFIED, "signature ok")]
        assert determine_status_from_evidence(evidence) is GapStatus.COMPLETE

    def test_implementation_with_negative_is_partial(self):
        evidence = [
            create_evidence(EvidenceKind.EXACT_FUNCTION_MATCH, "found"),
            create_evidence(EvidenceKind.FUNCTION_NOT_FOUND, "other missing"),
        ]
        assert determine_status_from_evidence(evidence) is GapStatus.PARTIAL

    def test_name_similarity_is_partial(self):
        evidence = [create_evidence(EvidenceKind.NAME_SIMILARITY_ONLY, "similar")]
        assert determine_status_from_evidence(evidence) is GapStatus.PARTIAL


class TestEffortAndDependencies:
    def test_base_effort_by_status(self):
        requirement = _requirement("R1")
        assert estimate_effort(requirement, GapStatus.MISSING, []).hours == 16
        assert estimate_effort(requirement, GapStatus.STUB, []).hours == 12
        assert estimate_effort(requirement, GapStatus.PARTIAL, []).hours == 8

    def test_criteria_multipliers(self):
        four = _requirement("R1", acceptance_criteria=["a", "b", "c", "d"])
        six = _requirement("R2", acceptance_criteria=list("abcdef"))
        assert estimate_effort(four, GapStatus.MISSING, []).hours == 19
        assert estimate_effort(six, GapStatus.MISSING, []).hours == 24

    def test_dependency_hint_multiplier(self):
        evidence = [create_evidence(EvidenceKind.NAME_SIMILARITY_ONLY, "depends on FR2")]
        assert estimate_effort(_requirement("R1"), GapStatus.MISSING, evidence).hours == 21

    def test_dependencies_from_description(self):
        requirement = _requirement(
            "R1",
            description="This depends on FR12 and also depends on fr3",
            dependencies=["R0", "FR12"],
        )
        assert extract_dependencies(requirement) == ["R0", "FR12", "fr3"]


class TestSpecGapDetector:
    def test_two_requirement_spec(self, two_requirement_spec, auth_provider):
        result = SpecGapDetector(auth_provider).analyze_specs([two_requirement_spec])

        assert [g.id for g in result.gaps] == ["R1", "R2"]
        assert result.warnings == []
        assert result.specs_analyzed == 1
        assert result.requirements_analyzed == 2

        r1, r2 = result.gaps
        assert r1.status is GapStatus.MISSING
        assert r1.priority is Priority.P0
        assert r1.effort.hours == 16
        assert r1.confidence == 0
        assert r1.impact == "Password reset is not implemented. This blocks Authentication."
        assert r1.recommendation == "Implement Password reset according to specification."
        assert r1.expected_locations == [
            "src/password.ts",
            "src/f001/password.ts",
            "src/reset.ts",
            "src/f001/reset.ts",
        ]
        assert [e.kind for e in r1.evidence] == [
            EvidenceKind.FILE_NOT_FOUND,
            EvidenceKind.TEST_FILE_MISSING,
        ]

        assert r2.status is GapStatus.PARTIAL
        assert r2.priority is Priority.P1
        assert r2.effort.hours == 12
        assert r2.confidence == 100
        assert r2.actual_locations == ["src/auth/session.ts", "tests/auth/session.test.ts"]

    def test_requirement_priority_falls_back_to_spec(self):
        spec = ParsedSpec(
            id="F002",
            title="Billing",
            priority=Priority.P1,
            functional_requirements=[_requirement("R1", "src/billing.ts", status=GapStatus.STUB)],
        )
        result = SpecGapDetector(StaticEvidenceProvider()).analyze_specs([spec])
        assert result.gaps[0].priority is Priority.P1

    def test_complete_with_high_confidence_is_skipped(self):
        spec = _spec(
            "F001",
            Requirement(
                id="R1",
                title="Login",
                implementation=ImplementationDetails(files=["src/login.ts"], symbols=["login"]),
            ),
        )
        provider = StaticEvidenceProvider(
            files={"src/login.ts": [create_evidence(EvidenceKind.EXACT_FUNCTION_MATCH, "file")]},
            symbols={
                ("src/login.ts", "login"): [
                    create_evidence(EvidenceKind.EXACT_FUNCTION_MATCH, "Function login found")
                ]
            },
            tests={"src/login.ts": "tests/login.test.ts"},
        )
        result = SpecGapDetector(provider).analyze_specs([spec])

        assert result.gaps == []
        assert result.requirements_analyzed == 1

    def test_missing_file_skips_symbol_lookups(self):
        spec = _spec(
            "F001",
            Requirement(
                id="R1",
                title="Login",
                implementation=ImplementationDetails(files=["src/login.ts"], symbols=["login"]),
            ),
        )
        settings = RoadmapSettings(check_test_coverage=False)
        result = SpecGapDetector(StaticEvidenceProvider(), settings).analyze_specs([spec])

        assert [e.kind for e in result.gaps[0].evidence] == [EvidenceKind.FILE_NOT_FOUND]

    def test_stubs_excluded_by_setting(self):
        spec = _spec("F001", _requirement("R1", "src/a.ts", status=GapStatus.STUB))
        settings = RoadmapSettings(include_stubs=False)
        result = SpecGapDetector(StaticEvidenceProvider(), settings).analyze_specs([spec])
        assert result.gaps == []

    def test_partials_excluded_by_setting(self, two_requirement_spec, auth_provider):
        settings = RoadmapSettings(include_partial=False)
        result = SpecGapDetector(auth_provider, settings).analyze_specs([two_requirement_spec])
        assert [g.id for g in result.gaps] == ["R1"]

    def test_confidence_threshold(self, two_requirement_spec, auth_provider):
        settings = RoadmapSettings(confidence_threshold=50)
        result = SpecGapDetector(auth_provider, settings).analyze_specs([two_requirement_spec])
        assert [g.id for g in result.gaps] == ["R2"]

    def test_keyword_search_without_implementation(self):
        spec = _spec(
            "F004",
            Requirement(
                id="R1", title="Export roadmap", description="Render roadmap as markdown"
            ),
        )
        provider = StaticEvidenceProvider(keywords={"roadmap": 2})
        result = SpecGapDetector(provider).analyze_specs([spec])

        gap = result.gaps[0]
        assert gap.status is GapStatus.PARTIAL
        assert [e.description for e in gap.evidence] == ['Found 2 files matching "roadmap"']
        assert gap.confidence == 70

    def test_provider_failure_becomes_warning(self):
        spec = _spec(
            "F001",
            _requirement("R1", "src/broken.ts", status=GapStatus.MISSING),
            _requirement("R2", "src/ok.ts", status=GapStatus.PARTIAL),
        )
        settings = RoadmapSettings(check_test_coverage=False)
        detector = SpecGapDetector(FailingProvider({"src/broken.ts"}), settings)
        result = detector.analyze_specs([spec])

        assert [g.id for g in result.gaps] == ["R1", "R2"]
        assert result.gaps[0].evidence == []
        assert len(result.warnings) == 1
        error = result.errors[0]
        assert isinstance(error, EvidenceGatheringError)
        assert error.context.requirement_id == "R1"
        assert error.context.spec_id == "F001"
        assert isinstance(error.cause, RuntimeError)

    def test_verify_requirement_raises_provider_failure(self):
        requirement = _requirement("R1", "src/broken.ts")
        detector = SpecGapDetector(FailingProvider({"src/broken.ts"}))
        with pytest.raises(EvidenceGatheringError):
            detector.verify_requirement(requirement, _spec("F001", requirement))

    def test_malformed_spec_is_skipped(self, two_requirement_spec, auth_provider):
        bad = {"id": "BAD", "functional_requirements": [{"title": "no id"}]}
        result = SpecGapDetector(auth_provider).analyze_specs([bad, two_requirement_spec])

        assert result.skipped_specs == ["BAD"]
        assert result.specs_analyzed == 1
        assert isinstance(result.errors[0], SpecParsingError)
        assert [g.id for g in result.gaps] == ["R1", "R2"]

    def test_colliding_requirement_ids_are_qualified(self):
        first = _spec("F001", _requirement("R1", "src/a.ts", status=GapStatus.MISSING))
        second = _spec("F002", _requirement("R1", "src/b.ts", status=GapStatus.MISSING))
        result = SpecGapDetector(StaticEvidenceProvider()).analyze_specs([first, second])

        assert [g.id for g in result.gaps] == ["R1", "F002/R1"]
        assert [g.requirement for g in result.gaps] == ["R1", "R1"]

    def test_renamed_gap_keeps_same_spec_dependents(self):
        """Dependencies inside the second spec follow its renamed gap."""
        first = _spec(
            "F001",
            _requirement("R1", "src/a.ts", status=GapStatus.MISSING),
            _requirement("R3", "src/d.ts", status=GapStatus.MISSING, dependencies=["R1"]),
        )
        second = _spec(
            "F002",
            _requirement("R2", "src/c.ts", status=GapStatus.MISSING, dependencies=["R1"]),
            _requirement("R1", "src/b.ts", status=GapStatus.MISSING),
        )
        result = SpecGapDetector(StaticEvidenceProvider()).analyze_specs([first, second])

        gaps = {g.id: g for g in result.gaps}
        assert list(gaps) == ["R1", "R3", "R2", "F002/R1"]
        assert gaps["R2"].dependencies == ["F002/R1"]
        assert gaps["R3"].dependencies == ["R1"]

    def test_plain_string_status_is_coerced(self):
        spec = _spec("F001", _requirement("R1", "src/a.ts", status="missing"))
        result = SpecGapDetector(StaticEvidenceProvider()).analyze_specs([spec])

        assert result.gaps[0].status is GapStatus.MISSING
        assert result.gaps[0].effort.hours == 16
        assert result.warnings == []

    def test_unknown_status_skips_spec(self, two_requirement_spec, auth_provider):
        bad = _spec("F009", _requirement("R9", "src/a.ts", status="done"))
        result = SpecGapDetector(auth_provider).analyze_specs([bad, two_requirement_spec])

        assert result.skipped_specs == ["F009"]
        assert isinstance(result.errors[0], SpecParsingError)
        assert "'done'" in result.warnings[0]
        assert [g.id for g in result.gaps] == ["R1", "R2"]

    def test_analyze_spec(self, two_requirement_spec, auth_provider):
        result = SpecGapDetector(auth_provider).analyze_spec(two_requirement_spec)
        assert len(result.gaps) == 2

    def test_result_to_dict(self, two_requirement_spec, auth_provider):
        data = SpecGapDetector(auth_provider).analyze_specs([two_requirement_spec]).to_dict()
        assert data["specsAnalyzed"] == 1
        assert data["gaps"][0]["status"] == "missing"


class TestAsyncDetection:
    @pytest.mark.asyncio
    async def test_matches_sequential_result(self, two_requirement_spec, auth_provider):
        detector = SpecGapDetector(auth_provider)
        sequential = detector.analyze_specs([two_requirement_spec])
        concurrent = await detector.analyze_specs_async([two_requirement_spec])

        assert [g.to_dict() for g in concurrent.gaps] == [g.to_dict() for g in sequential.gaps]
        assert concurrent.warnings == sequential.warnings

    @pytest.mark.asyncio
    async def test_keeps_requirement_order(self):
        files = [f"src/mod{n}.ts" for n in range(6)]
        spec = _spec("F001", *(_requirement(f"R{n}", path) for n, path in enumerate(files)))
        delays = {path: 0.02 * (len(files) - n) for n, path in enumerate(files)}
        settings = RoadmapSettings(check_test_coverage=False)

        detector = SpecGapDetector(StaggeredProvider(delays), settings)
        result = await detector.analyze_specs_async([spec], max_workers=6)

        assert [g.id for g in result.gaps] == [f"R{n}" for n in range(6)]

    @pytest.mark.asyncio
    async def test_provider_failure(self):
        spec = _spec(
            "F001",
            _requirement("R1", "src/broken.ts", status=GapStatus.MISSING),
            _requirement("R2", "src/ok.ts", status=GapStatus.PARTIAL),
        )
        settings = RoadmapSettings(check_test_coverage=False)
        detector = SpecGapDetector(FailingProvider({"src/broken.ts"}), settings)
        result = await detector.analyze_specs_async([spec])

        assert [g.id for g in result.gaps] == ["R1", "R2"]
        assert isinstance(result.errors[0], EvidenceGatheringError)
        assert result.errors[0].context.spec_id == "F001"

    @pytest.mark.asyncio
    async def test_timeout_degrades_to_no_evidence(self):
        spec = _spec(
            "F001",
            _requirement("R1", "src/fast.ts", status=GapStatus.PARTIAL),
            _requirement("R2", "src/slow.ts", status=GapStatus.MISSING),
        )
        provider = BlockingProvider("src/slow.ts")
        settings = RoadmapSettings(check_test_coverage=False)
        detector = SpecGapDetector(provider, settings)
        try:
            result = await detector.analyze_specs_async([spec], timeout=0.2)
        finally:
            provider.release.set()

        assert [g.id for g in result.gaps] == ["R1", "R2"]
        assert len(result.gaps[0].evidence) == 1
        assert result.gaps[1].evidence == []
        assert len(result.errors) == 1
        assert isinstance(result.errors[0], EvidenceTimeoutError)
        assert result.errors[0].context.requirement_id == "R2"

    @pytest.mark.asyncio
    async def test_empty_input(self):
        result = await SpecGapDetector(StaticEvidenceProvider()).analyze_specs_async([])
        assert result.gaps == []
        assert result.specs_analyzed == 0
