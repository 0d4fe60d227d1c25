"""
Roadmap
=======

Prioritization, dependency resolution, phase partitioning and timeline
estimation for gap fixes and candidate features.
"""

from roadmap.generator import RoadmapGenerator
from roadmap.models import (
    CompletionCategories,
    ItemStatus,
    Phase,
    ProjectContext,
    Roadmap,
    RoadmapItem,
    RoadmapItemType,
    ScoredFeature,
)
from roadmap.orchestrator import RoadmapOrchestrator
from roadmap.phases import create_phases
from roadmap.prioritizer import DependencyResolution, Prioritizer
from roadmap.timeline import estimate_timeline

__all__ = [
    "CompletionCategories",
    "DependencyResolution",
    "ItemStatus",
    "Phase",
    "Prioritizer",
    "ProjectContext",
    "Roadmap",
    "RoadmapGenerator",
    "RoadmapItem",
    "RoadmapItemType",
    "RoadmapOrchestrator",
    "ScoredFeature",
    "create_phases",
    "estimate_timeline",
]
