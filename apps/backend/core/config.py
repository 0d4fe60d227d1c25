"""
Roadmap planner configuration.

Settings are resolved with increasing precedence from:
- built-in defaults
- ROADMAP_* environment variables (a project ``.env`` is loaded first)
- the project file ``.roadmap/config.yaml`` (JSON is accepted too)

Invalid values are a configuration error and must be rejected before the
pipeline runs; ``RoadmapSettings.validate`` raises ``InvalidConfigError``.
"""

import logging
import os
from dataclasses import dataclass, fields
from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from .exceptions import ConfigurationError, InvalidConfigError

logger = logging.getLogger(__name__)

ENV_PREFIX = "ROADMAP_"
PROJECT_CONFIG_PATH = Path(".roadmap") / "config.yaml"

DEFAULT_HOURS_PER_WEEK = 35
LOG_FORMATS = ("console", "json")


class PhaseStrategy(str, Enum):
    """How ordered items are partitioned into phases."""

    PRIORITY = "priority"
    DEPENDENCY = "dependency"
    TIMELINE = "timeline"


class PrioritizationStrategy(str, Enum):
    """How roadmap items are scored for ranking."""

    PRIORITY = "priority"
    EFFORT = "effort"
    IMPACT = "impact"
    BALANCED = "balanced"


def _safe_int(value: str | None, default: int, setting: str) -> int:
    """Parse an int from string, raising InvalidConfigError on failure."""
    if value is None or value == "":
        return default
    try:
        return int(value)
    except (ValueError, TypeError):
        raise InvalidConfigError(setting, value, "must be an integer") from None


def _safe_float(value: str | None, default: float | None, setting: str) -> float | None:
    if value is None or value == "":
        return default
    try:
        return float(value)
    except (ValueError, TypeError):
        raise InvalidConfigError(setting, value, "must be a number") from None


TRUE_VALUES = ("1", "true", "yes", "on")
FALSE_VALUES = ("0", "false", "no", "off")


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    normalized = value.strip().lower()
    if normalized in TRUE_VALUES:
        return True
    if normalized in FALSE_VALUES:
        return False
    raise InvalidConfigError(name, value, "must be a boolean")


@dataclass
class RoadmapSettings:
    """Configuration for gap detection and roadmap assembly."""

    # Roadmap assembly
    phase_strategy: PhaseStrategy = PhaseStrategy.PRIORITY
    prioritization_strategy: PrioritizationStrategy = PrioritizationStrategy.BALANCED
    max_phases: int = 4
    max_items_per_phase: int = 15
    team_size: int = 2
    hours_per_week: int = DEFAULT_HOURS_PER_WEEK
    include_risks: bool = True
    include_dependencies: bool = True

    # Gap detection
    include_stubs: bool = True
    include_partial: bool = True
    check_test_coverage: bool = True
    confidence_threshold: int = 0  # 0 disables the filter

    # Evidence gathering
    max_workers: int = 4
    evidence_timeout: float | None = None  # seconds, None = no deadline

    # Logging (log_level None leaves logging as the host application set it)
    log_level: str | None = None
    log_format: str = "console"  # console | json
    log_file: str | None = None

    def __post_init__(self) -> None:
        self.phase_strategy = _coerce_enum(PhaseStrategy, self.phase_strategy, "phase_strategy")
        self.prioritization_strategy = _coerce_enum(
            PrioritizationStrategy, self.prioritization_strategy, "prioritization_strategy"
        )

    @classmethod
    def from_env(cls) -> "RoadmapSettings":
        """
        Load configuration from ROADMAP_* environment variables.

        Raises:
            InvalidConfigError: if a variable is set but cannot be parsed
        """
        defaults = cls()

        def env_int(name: str, default: int) -> int:
            return _safe_int(os.getenv(ENV_PREFIX + name), default, ENV_PREFIX + name)

        def env_bool(name: str, default: bool) -> bool:
            return _env_bool(ENV_PREFIX + name, default)

        return cls(
            phase_strategy=os.getenv(f"{ENV_PREFIX}PHASE_STRATEGY", defaults.phase_strategy.value),
            prioritization_strategy=os.getenv(
                f"{ENV_PREFIX}PRIORITIZATION_STRATEGY",
                defaults.prioritization_strategy.value,
            ),
            max_phases=env_int("MAX_PHASES", defaults.max_phases),
            max_items_per_phase=env_int("MAX_ITEMS_PER_PHASE", defaults.max_items_per_phase),
            team_size=env_int("TEAM_SIZE", defaults.team_size),
            hours_per_week=env_int("HOURS_PER_WEEK", defaults.hours_per_week),
            include_risks=env_bool("INCLUDE_RISKS", defaults.include_risks),
            include_dependencies=env_bool("INCLUDE_DEPENDENCIES", defaults.include_dependencies),
            include_stubs=env_bool("INCLUDE_STUBS", defaults.include_stubs),
            include_partial=env_bool("INCLUDE_PARTIAL", defaults.include_partial),
            check_test_coverage=env_bool("CHECK_TEST_COVERAGE", defaults.check_test_coverage),
            confidence_threshold=env_int("CONFIDENCE_THRESHOLD", defaults.confidence_threshold),
            max_workers=env_int("MAX_WORKERS", defaults.max_workers),
            evidence_timeout=_safe_float(
                os.getenv(f"{ENV_PREFIX}EVIDENCE_TIMEOUT"),
                defaults.evidence_timeout,
                f"{ENV_PREFIX}EVIDENCE_TIMEOUT",
            ),
            log_level=os.getenv(f"{ENV_PREFIX}LOG_LEVEL") or defaults.log_level,
            log_format=os.getenv(f"{ENV_PREFIX}LOG_FORMAT") or defaults.log_format,
            log_file=os.getenv(f"{ENV_PREFIX}LOG_FILE") or defaults.log_file,
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RoadmapSettings":
        """Create settings from a mapping, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigurationError(f"Unknown roadmap settings: {', '.join(unknown)}")
        return cls(**data)

    @classmethod
    def from_file(cls, config_path: Path, base: "RoadmapSettings | None" = None) -> "RoadmapSettings":
        """
        Load settings from a YAML (or JSON) file on top of ``base``.

        A missing file returns ``base`` (or defaults) unchanged.
        """
        settings = base or cls()
        if not config_path.exists():
            return settings

        try:
            data = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Failed to parse roadmap config at {config_path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Roadmap config at {config_path} must be a mapping, got {type(data).__name__}"
            )

        # Allow the settings to sit under a top-level "roadmap" key
        data = data.get("roadmap", data)

        logger.debug(f"Loaded roadmap config from {config_path}")
        merged = settings.to_dict()
        merged.update(data)
        return cls.from_dict(merged)

    @classmethod
    def from_project(cls, project_root: Path) -> "RoadmapSettings":
        """
        Load configuration with project-level override.

        Priority: .roadmap/config.yaml > environment (.env) > defaults
        """
        env_file = project_root / ".env"
        if env_file.exists():
            load_dotenv(env_file)

        settings = cls.from_env()
        return cls.from_file(project_root / PROJECT_CONFIG_PATH, base=settings)

    def validate(self) -> "RoadmapSettings":
        """Reject settings the pipeline cannot run with. Returns self."""
        for name in ("max_phases", "max_items_per_phase", "team_size", "hours_per_week", "max_workers"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise InvalidConfigError(name, value, "must be a positive integer")

        if not 0 <= self.confidence_threshold <= 100:
            raise InvalidConfigError(
                "confidence_threshold", self.confidence_threshold, "must be between 0 and 100"
            )

        if self.evidence_timeout is not None and self.evidence_timeout <= 0:
            raise InvalidConfigError("evidence_timeout", self.evidence_timeout, "must be positive")

        if self.log_level is not None and not isinstance(
            logging.getLevelName(str(self.log_level).upper()), int
        ):
            raise InvalidConfigError("log_level", self.log_level, "unknown log level")

        if self.log_format not in LOG_FORMATS:
            raise InvalidConfigError(
                "log_format", self.log_format, f"expected one of: {', '.join(LOG_FORMATS)}"
            )

        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "phase_strategy": self.phase_strategy.value,
            "prioritization_strategy": self.prioritization_strategy.value,
            "max_phases": self.max_phases,
            "max_items_per_phase": self.max_items_per_phase,
            "team_size": self.team_size,
            "hours_per_week": self.hours_per_week,
            "include_risks": self.include_risks,
            "include_dependencies": self.include_dependencies,
            "include_stubs": self.include_stubs,
            "include_partial": self.include_partial,
            "check_test_coverage": self.check_test_coverage,
            "confidence_threshold": self.confidence_threshold,
            "max_workers": self.max_workers,
            "evidence_timeout": self.evidence_timeout,
            "log_level": self.log_level,
            "log_format": self.log_format,
            "log_file": self.log_file,
        }


def _coerce_enum(enum_cls: type[Enum], value: Any, setting: str) -> Any:
    """Turn a string into ``enum_cls`` or raise InvalidConfigError."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise InvalidConfigError(setting, value, f"expected one of: {allowed}") from None
