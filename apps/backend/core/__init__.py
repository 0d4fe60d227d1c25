"""
Core Framework Module
=====================

Shared infrastructure for the roadmap planner:
- Exceptions: Typed exception hierarchy for degradations and fatal errors
- Logging: Structured logging with context propagation
- Config: Settings from defaults, environment and project files
"""

__all__ = [
    # Exceptions
    "RoadmapError",
    "ConfigurationError",
    "InvalidConfigError",
    "SpecParsingError",
    "EvidenceGatheringError",
    "DependencyCycleError",
    # Logging
    "configure_logging",
    "log_context",
    "run_scope",
    "Timer",
    # Config
    "RoadmapSettings",
    "PhaseStrategy",
    "PrioritizationStrategy",
]


def __getattr__(name):
    """Lazy imports to keep ``import core`` cheap."""
    if name in (
        "RoadmapError",
        "ConfigurationError",
        "InvalidConfigError",
        "SpecParsingError",
        "EvidenceGatheringError",
        "DependencyCycleError",
    ):
        from . import exceptions as _exceptions

        return getattr(_exceptions, name)
    elif name in ("configure_logging", "log_context", "run_scope", "Timer"):
        from . import logging as _logging

        return getattr(_logging, name)
    elif name in ("RoadmapSettings", "PhaseStrategy", "PrioritizationStrategy"):
        from . import config as _config

        return getattr(_config, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
