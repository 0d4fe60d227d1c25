"""
Pytest configuration for roadmap planner tests.
"""

import sys
from pathlib import Path

import pytest

# Add apps/backend to path for imports
backend_path = Path(__file__).parent.parent / "apps" / "backend"
if str(backend_path) not in sys.path:
    sys.path.insert(0, str(backend_path))

from core.logging import clear_log_context  # noqa: E402
from gap_analysis.enums import EvidenceKind, GapStatus, Priority  # noqa: E402
from gap_analysis.evidence import create_evidence  # noqa: E402
from gap_analysis.models import (  # noqa: E402
    ImplementationDetails,
    ParsedSpec,
    Requirement,
    create_effort_estimate,
)
from gap_analysis.providers import StaticEvidenceProvider  # noqa: E402
from roadmap.models import RoadmapItem, RoadmapItemType  # noqa: E402


@pytest.fixture(autouse=True)
def reset_log_context():
    """Keep run ids and log context from leaking between tests."""
    yield
    clear_log_context()


@pytest.fixture
def make_item():
    """
    Factory for roadmap items.

    Usage:
        item = make_item("A", priority="P1", hours=4, deps=["B"])
    """

    def _make(
        item_id: str,
        priority: str = "P2",
        hours: float = 8,
        deps: list[str] | None = None,
        item_type: RoadmapItemType = RoadmapItemType.GAP_FIX,
        title: str | None = None,
    ) -> RoadmapItem:
        return RoadmapItem(
            id=item_id,
            type=item_type,
            title=title or f"Item {item_id}",
            priority=Priority(priority),
            effort=create_effort_estimate(hours),
            dependencies=list(deps or []),
        )

    return _make


@pytest.fixture
def two_requirement_spec() -> ParsedSpec:
    """R1 missing at P0, R2 partial at P1 with six acceptance criteria."""
    return ParsedSpec(
        id="F001",
        title="Authentication",
        priority=Priority.P2,
        functional_requirements=[
            Requirement(
                id="R1",
                title="Password reset",
                description="Users can reset a forgotten password by email",
                priority=Priority.P0,
                implementation=ImplementationDetails(
                    files=["src/auth/reset.ts"], status=GapStatus.MISSING
                ),
            ),
            Requirement(
                id="R2",
                title="Session management",
                description="Sessions expire and can be revoked",
                priority=Priority.P1,
                acceptance_criteria=[f"criterion {n}" for n in range(6)],
                implementation=ImplementationDetails(
                    files=["src/auth/session.ts"], status=GapStatus.PARTIAL
                ),
            ),
        ],
    )


@pytest.fixture
def auth_provider() -> StaticEvidenceProvider:
    """Evidence for the two-requirement spec: reset.ts absent, session.ts present."""
    return StaticEvidenceProvider(
        files={
            "src/auth/session.ts": [
                create_evidence(
                    EvidenceKind.EXACT_FUNCTION_MATCH,
                    "File exists: src/auth/session.ts",
                    location="src/auth/session.ts",
                    confidence_impact=30,
                )
            ]
        },
        tests={"src/auth/session.ts": "tests/auth/session.test.ts"},
    )


@pytest.fixture
def long_chain(make_item):
    """1500 items, each depending on the previous one, listed dependents first."""
    items = [
        make_item(f"C{n:04d}", deps=[f"C{n - 1:04d}"] if n else None) for n in range(1500)
    ]
    return list(reversed(items))
