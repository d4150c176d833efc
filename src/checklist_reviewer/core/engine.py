"""
Main review orchestrator.
"""

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from ..models.config import ReviewConfig
from ..models.finding import Finding
from ..models.match import RawMatch
from ..models.severity import SeverityCounts
from ..utils.exceptions import ConfigurationError, ReviewEngineError
from ..utils.logging import LoggerMixin
from ..utils.statistics import StatisticsCalculator
from .assembler import FindingAssembler
from .classifier import SeverityClassifier
from .deduplicator import Deduplicator
from .evaluator import Document, EvaluationResult, Evaluator
from .registry import PatternRegistry
from .validator import FindingValidator, ValidationReport


@dataclass
class ReviewResult:
    """Outcome of a review run."""

    findings: list[Finding]
    summary: SeverityCounts
    errors: dict[str, list[str]] = field(default_factory=dict)
    validation: Optional[ValidationReport] = None
    statistics: dict[str, Any] = field(default_factory=dict)

    @property
    def manual_review(self) -> list[Finding]:
        return [finding for finding in self.findings if finding.manual_review]

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    def to_dict(self) -> dict[str, Any]:
        return {
            "summary": self.summary.to_dict(),
            "findings": [finding.to_dict() for finding in self.findings],
            "errors": self.errors,
            "statistics": self.statistics,
        }


class ReviewEngine(LoggerMixin):
    """
    Runs the review pipeline.

    Stages:
    1. Evaluate each file against the registry, concurrently
    2. Classify every raw match for the review context
    3. Assemble findings
    4. Deduplicate and order the complete finding set
    5. Validate the result
    """

    def __init__(
        self,
        config: Optional[ReviewConfig] = None,
        registry: Optional[PatternRegistry] = None,
    ):
        self.config = config or ReviewConfig()
        self.registry = registry or self._build_registry(self.config)
        self.evaluator = Evaluator.from_config(self.config.processing)
        self.classifier = SeverityClassifier(
            self.registry, self.config.context_rules or None
        )
        self.assembler = FindingAssembler(
            self.registry, agent_id=self.config.context.agent_id
        )
        self.deduplicator = Deduplicator()
        self.validator = FindingValidator()

    @staticmethod
    def _build_registry(config: ReviewConfig) -> PatternRegistry:
        errors = config.validate_paths()
        if errors:
            raise ConfigurationError(
                "Configuration validation failed",
                config_field="checkpoints_file",
                config_value=errors,
            )

        if config.checkpoints:
            registry = PatternRegistry(config.checkpoints)
        else:
            registry = PatternRegistry.default()
        if config.checkpoints_file is not None:
            registry.load_file(config.checkpoints_file)
        return registry

    async def review_files(self, file_paths: list[Path]) -> ReviewResult:
        """Review an explicit list of files."""
        self.log_operation("checklist review", files=len(file_paths))
        start_time = time.time()
        stats = StatisticsCalculator()
        stats.start_review()

        try:
            results = await self.evaluator.evaluate_files(
                [Path(path) for path in file_paths],
                self.registry,
                max_concurrent=self.config.processing.max_concurrent_files,
                timeout_seconds=self.config.processing.timeout_seconds,
            )
            review = await self._finish(results, stats)
        except ReviewEngineError as e:
            self.log_error("checklist review", e)
            raise
        except Exception as e:
            self.log_error("checklist review", e)
            raise ReviewEngineError(
                f"Review failed: {e}", details={"error_type": type(e).__name__}
            ) from e

        self.log_success(
            "checklist review",
            findings=len(review.findings),
            processing_time_seconds=round(time.time() - start_time, 3),
        )
        return review

    async def review_documents(self, documents: list[Document]) -> ReviewResult:
        """Review in-memory documents."""
        self.log_operation("checklist review", documents=len(documents))
        stats = StatisticsCalculator()
        stats.start_review()

        try:
            results = []
            for document in documents:
                started = time.perf_counter()
                matches = self.evaluator.evaluate(document, self.registry).to_list()
                results.append(
                    EvaluationResult(
                        file_path=document.path,
                        matches=matches,
                        processing_time_ms=(time.perf_counter() - started) * 1000,
                        file_size=len(document.content.encode("utf-8")),
                    )
                )

            review = await self._finish(results, stats)
        except ReviewEngineError as e:
            self.log_error("checklist review", e)
            raise
        except Exception as e:
            self.log_error("checklist review", e)
            raise ReviewEngineError(
                f"Review failed: {e}", details={"error_type": type(e).__name__}
            ) from e

        self.log_success("checklist review", findings=len(review.findings))
        return review

    async def _finish(
        self, results: list[EvaluationResult], stats: StatisticsCalculator
    ) -> ReviewResult:
        """Classify, assemble, deduplicate and validate evaluated files."""
        errors: dict[str, list[str]] = {}
        raw_matches: list[RawMatch] = []

        for result in results:
            stats.add_file(
                len(result.matches),
                processing_time_ms=result.processing_time_ms,
                file_size_bytes=result.file_size,
                failed=not result.success,
            )
            if result.errors:
                errors[result.file_path] = list(result.errors)
            raw_matches.extend(result.matches)

        findings = []
        for match in raw_matches:
            stats.add_checkpoint_hit(match.checkpoint_id)
            classified = self.classifier.classify_match(match, self.config.context)
            findings.append(self.assembler.assemble(classified))

        final = self.deduplicator.deduplicate(findings)
        stats.record_findings(findings, final)
        stats.end_review()

        validation = None
        if self.config.enable_validation:
            validation = await self.validator.validate_findings(final)
            for issue in validation.issues:
                self.log_warning(
                    "Validation issue",
                    code=issue.code,
                    message=issue.message,
                    file_path=issue.file_path,
                )

        return ReviewResult(
            findings=final,
            summary=SeverityCounts.from_severities(f.severity for f in final),
            errors=errors,
            validation=validation,
            statistics=stats.get_summary_report(),
        )
