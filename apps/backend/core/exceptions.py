"""
Custom Exceptions
=================

Exception hierarchy for the gap-to-roadmap planner.

Provides structured error handling with:
- Clear error categorization
- Fatal vs recoverable errors
- Error codes for monitoring
- Context preservation for debugging

Only configuration errors are fatal. Every other error type describes a
degradation the pipeline records as a warning and works around.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(Enum):
    """Categories of errors for monitoring and alerting."""

    CONFIGURATION = "configuration"
    VALIDATION = "validation"
    INPUT = "input"
    EVIDENCE = "evidence"
    DEPENDENCY = "dependency"
    INTERNAL = "internal"


class ErrorSeverity(Enum):
    """Severity levels for error handling."""

    LOW = "low"  # Recoverable, can continue
    MEDIUM = "medium"  # Degraded output, surfaced to reviewers
    HIGH = "high"  # Pipeline cannot run
    CRITICAL = "critical"


@dataclass
class ErrorContext:
    """Structured context for error debugging."""

    operation: str = ""
    component: str = ""
    spec_id: str = ""
    requirement_id: str = ""
    item_ids: list[str] = field(default_factory=list)
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result: dict[str, Any] = {}
        if self.operation:
            result["operation"] = self.operation
        if self.component:
            result["component"] = self.component
        if self.spec_id:
            result["spec_id"] = self.spec_id
        if self.requirement_id:
            result["requirement_id"] = self.requirement_id
        if self.item_ids:
            result["item_ids"] = list(self.item_ids)
        result.update(self.extra)
        return result


class RoadmapError(Exception):
    """
    Base exception for all roadmap planner errors.

    Provides structured error information for monitoring and debugging.
    """

    error_code: str = "ROADMAP_ERROR"
    category: ErrorCategory = ErrorCategory.INTERNAL
    severity: ErrorSeverity = ErrorSeverity.MEDIUM
    fatal: bool = False

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.context = context or ErrorContext()
        self.cause = cause

    def __str__(self) -> str:
        parts = [self.message]
        if self.context.operation:
            parts.append(f"[operation={self.context.operation}]")
        if self.cause:
            parts.append(f"[caused by: {type(self.cause).__name__}: {self.cause}]")
        return " ".join(parts)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging and monitoring."""
        return {
            "error_code": self.error_code,
            "category": self.category.value,
            "severity": self.severity.value,
            "fatal": self.fatal,
            "message": self.message,
            "context": self.context.to_dict(),
            "cause": str(self.cause) if self.cause else None,
        }


# Configuration Errors


class ConfigurationError(RoadmapError):
    """Error in configuration or settings. Rejected before the pipeline runs."""

    error_code = "CONFIG_ERROR"
    category = ErrorCategory.CONFIGURATION
    severity = ErrorSeverity.HIGH
    fatal = True


class InvalidConfigError(ConfigurationError):
    """Configuration value is invalid."""

    error_code = "INVALID_CONFIG"

    def __init__(
        self,
        setting: str,
        value: Any,
        reason: str,
        context: ErrorContext | None = None,
    ):
        super().__init__(f"Invalid value for {setting}: {value!r} ({reason})", context)
        self.setting = setting
        self.value = value
        self.reason = reason


# Input Errors


class SpecParsingError(RoadmapError):
    """A parsed spec is malformed. The spec is skipped."""

    error_code = "SPEC_PARSING_ERROR"
    category = ErrorCategory.INPUT
    severity = ErrorSeverity.MEDIUM

    def __init__(
        self,
        spec_id: str,
        details: str,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        if context is None:
            context = ErrorContext()
        context.spec_id = spec_id
        super().__init__(f"Failed to parse spec {spec_id}: {details}", context, cause)
        self.details = details


class ValidationError(RoadmapError):
    """Input validation failed."""

    error_code = "VALIDATION_ERROR"
    category = ErrorCategory.VALIDATION
    severity = ErrorSeverity.LOW


# Evidence Errors


class EvidenceGatheringError(RoadmapError):
    """The evidence provider failed for one requirement.

    Treated as "no evidence found", which lowers confidence instead of
    aborting the run.
    """

    error_code = "EVIDENCE_GATHERING_ERROR"
    category = ErrorCategory.EVIDENCE
    severity = ErrorSeverity.LOW

    def __init__(
        self,
        requirement_id: str,
        details: str,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        if context is None:
            context = ErrorContext()
        context.requirement_id = requirement_id
        super().__init__(
            f"Failed to gather evidence for {requirement_id}: {details}", context, cause
        )


class EvidenceTimeoutError(EvidenceGatheringError):
    """Evidence gathering did not finish before the deadline."""

    error_code = "EVIDENCE_TIMEOUT"


# Dependency Errors


class DependencyCycleError(RoadmapError):
    """Dependency resolution could not order every item.

    The pipeline never raises this; it records it as a warning and keeps
    the best-effort order.
    """

    error_code = "DEPENDENCY_CYCLE"
    category = ErrorCategory.DEPENDENCY
    severity = ErrorSeverity.MEDIUM

    def __init__(
        self,
        unresolved_ids: list[str],
        cycles: list[list[str]] | None = None,
        context: ErrorContext | None = None,
    ):
        if context is None:
            context = ErrorContext()
        context.item_ids = list(unresolved_ids)
        super().__init__(
            f"Could not fully resolve dependencies ({len(unresolved_ids)} items remain)",
            context,
        )
        self.unresolved_ids = list(unresolved_ids)
        self.cycles = [list(c) for c in cycles or []]


class PhaseAssignmentError(RoadmapError):
    """An item's phase was assigned more than once."""

    error_code = "PHASE_ASSIGNMENT_ERROR"
    category = ErrorCategory.INTERNAL
    severity = ErrorSeverity.HIGH

    def __init__(self, item_id: str, current: int, requested: int):
        super().__init__(
            f"Item {item_id} is already in phase {current}; cannot move it to phase {requested}",
            ErrorContext(item_ids=[item_id]),
        )
        self.item_id = item_id


# Helper functions


def get_error_code(error: Exception) -> str:
    """Get the error code for an exception."""
    if isinstance(error, RoadmapError):
        return error.error_code
    return type(error).__name__.upper()


def is_fatal(error: Exception) -> bool:
    """Check whether an error must stop the pipeline."""
    if isinstance(error, RoadmapError):
        return error.fatal
    return True


def wrap_error(
    error: Exception,
    wrapper_class: type[RoadmapError],
    message: str | None = None,
    context: ErrorContext | None = None,
) -> RoadmapError:
    """
    Wrap an exception in a RoadmapError.

    Args:
        error: Original exception
        wrapper_class: RoadmapError subclass to wrap with
        message: Optional message (defaults to str(error))
        context: Optional error context

    Returns:
        Wrapped exception
    """
    if message is None:
        message = str(error)
    return wrapper_class(message=message, context=context, cause=error)
