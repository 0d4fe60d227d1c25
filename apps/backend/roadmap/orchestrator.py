"""
End-to-end roadmap pipeline: specs and evidence in, roadmap out.
"""

import logging
from dataclasses import replace
from pathlib import Path
from typing import Any, Sequence

from core.config import RoadmapSettings
from core.exceptions import ValidationError
from core.logging import Timer, configure_logging, run_scope
from gap_analysis.detector import GapDetectionResult, SpecGapDetector
from gap_analysis.models import FeatureGap, ParsedSpec
from gap_analysis.providers import EvidenceProvider

from .generator import RoadmapGenerator
from .models import ProjectContext, Roadmap, ScoredFeature

logger = logging.getLogger(__name__)


class RoadmapOrchestrator:
    """
    Runs gap detection followed by roadmap generation.

    Settings are validated on construction, so a bad configuration fails
    before any evidence is gathered. When ``settings.log_level`` is set the
    root logger is configured from the logging settings as well.
    """

    def __init__(self, settings: RoadmapSettings | None = None):
        self.settings = (settings or RoadmapSettings()).validate()
        if self.settings.log_level:
            configure_logging(
                self.settings.log_level,
                structured=self.settings.log_format == "json",
                log_file=self.settings.log_file,
            )
        self.generator = RoadmapGenerator(self.settings)
        self.last_detection: GapDetectionResult | None = None

    @classmethod
    def from_project(cls, project_root: Path) -> "RoadmapOrchestrator":
        """Build with settings from the project's .env and .roadmap/config.yaml."""
        return cls(RoadmapSettings.from_project(project_root))

    def run(
        self,
        specs: Sequence[ParsedSpec | dict[str, Any]],
        provider: EvidenceProvider,
        features: Sequence[ScoredFeature | dict[str, Any]] = (),
        context: ProjectContext | None = None,
        feature_gaps: Sequence[FeatureGap] = (),
        run_id: str | None = None,
        generated_at: str | None = None,
    ) -> Roadmap:
        """Detect gaps sequentially and generate the roadmap."""
        with run_scope(run_id):
            detector = SpecGapDetector(provider, self.settings)
            detection = detector.analyze_specs(specs)
            return self._generate(detection, features, context, feature_gaps, generated_at)

    async def run_async(
        self,
        specs: Sequence[ParsedSpec | dict[str, Any]],
        provider: EvidenceProvider,
        features: Sequence[ScoredFeature | dict[str, Any]] = (),
        context: ProjectContext | None = None,
        feature_gaps: Sequence[FeatureGap] = (),
        run_id: str | None = None,
        generated_at: str | None = None,
    ) -> Roadmap:
        """Like ``run`` but gathers evidence concurrently in a thread pool."""
        with run_scope(run_id):
            detector = SpecGapDetector(provider, self.settings)
            detection = await detector.analyze_specs_async(specs)
            return self._generate(detection, features, context, feature_gaps, generated_at)

    def _generate(
        self,
        detection: GapDetectionResult,
        features: Sequence[ScoredFeature | dict[str, Any]],
        context: ProjectContext | None,
        feature_gaps: Sequence[FeatureGap],
        generated_at: str | None,
    ) -> Roadmap:
        self.last_detection = detection
        warnings = list(detection.warnings)
        scored = self._coerce_features(features, warnings)

        if context is None:
            context = ProjectContext(name="project")
        if not context.specs_analyzed:
            context = replace(context, specs_analyzed=detection.specs_analyzed)

        with Timer("pipeline") as timer:
            roadmap = self.generator.generate_roadmap(
                [*detection.gaps, *feature_gaps],
                scored,
                context,
                warnings=warnings,
                generated_at=generated_at,
            )

        logger.info(
            f"Pipeline finished for {context.name}",
            extra={"duration_ms": timer.duration_ms, "stage": "pipeline"},
        )
        return roadmap

    def _coerce_features(
        self, features: Sequence[ScoredFeature | dict[str, Any]], warnings: list[str]
    ) -> list[ScoredFeature]:
        scored = []
        for feature in features:
            if isinstance(feature, ScoredFeature):
                scored.append(feature)
                continue
            try:
                scored.append(ScoredFeature.from_dict(feature))
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                error = ValidationError(f"Skipping malformed feature: {e}", cause=e)
                logger.warning(str(error), extra={"error_code": error.error_code})
                warnings.append(str(error))
        return scored
