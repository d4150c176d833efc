"""
Schema conformance checks for finished finding lists.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..models.finding import EVIDENCE_REQUIRED, Finding
from ..models.severity import Severity
from ..utils.logging import LoggerMixin


class ValidationSeverity(Enum):
    """Severity levels for validation issues."""

    ERROR = "ERROR"
    WARNING = "WARNING"
    INFO = "INFO"


@dataclass
class ValidationIssue:
    """Represents a validation issue."""

    severity: ValidationSeverity
    code: str
    message: str
    file_path: Optional[str] = None
    finding_title: Optional[str] = None


@dataclass
class ValidationReport:
    """Outcome of validating a finding list."""

    is_valid: bool
    issues: list[ValidationIssue]
    error_count: int
    warning_count: int
    info_count: int

    @classmethod
    def create(cls, issues: list[ValidationIssue]) -> "ValidationReport":
        """Create a validation report from issues."""
        error_count = sum(
            1 for issue in issues if issue.severity == ValidationSeverity.ERROR
        )
        warning_count = sum(
            1 for issue in issues if issue.severity == ValidationSeverity.WARNING
        )
        info_count = sum(
            1 for issue in issues if issue.severity == ValidationSeverity.INFO
        )

        return cls(
            is_valid=error_count == 0,
            issues=issues,
            error_count=error_count,
            warning_count=warning_count,
            info_count=info_count,
        )

    def codes(self) -> list[str]:
        return [issue.code for issue in self.issues]


class FindingValidator(LoggerMixin):
    """Checks a deduplicated finding list against the finding schema."""

    async def validate_findings(self, findings: list[Finding]) -> ValidationReport:
        """Validate a complete, deduplicated finding list."""
        issues = []

        for finding in findings:
            issues.extend(self._validate_finding(finding))

        issues.extend(self._validate_no_overlaps(findings))
        issues.extend(self._validate_order(findings))

        report = ValidationReport.create(issues)
        if not report.is_valid:
            self.log_warning(
                "Finding validation failed",
                errors=report.error_count,
                warnings=report.warning_count,
            )
        return report

    async def validate_finding(self, finding: Finding) -> ValidationReport:
        """Validate a single finding."""
        return ValidationReport.create(self._validate_finding(finding))

    def _validate_finding(self, finding: Finding) -> list[ValidationIssue]:
        issues = []

        if not isinstance(finding.severity, Severity):
            issues.append(
                self._issue(
                    ValidationSeverity.ERROR,
                    "INVALID_SEVERITY",
                    f"Severity outside the closed set: {finding.severity}",
                    finding,
                )
            )

        if finding.severity in EVIDENCE_REQUIRED and not (
            finding.evidence and finding.evidence.strip()
        ):
            issues.append(
                self._issue(
                    ValidationSeverity.ERROR,
                    "MISSING_EVIDENCE",
                    f"{finding.severity.value} finding has no evidence",
                    finding,
                )
            )

        if not finding.title.strip():
            issues.append(
                self._issue(
                    ValidationSeverity.ERROR, "MISSING_TITLE", "Finding has no title", finding
                )
            )

        if not finding.recommendation.strip():
            issues.append(
                self._issue(
                    ValidationSeverity.ERROR,
                    "MISSING_RECOMMENDATION",
                    "Finding has no recommendation",
                    finding,
                )
            )

        if finding.severity == Severity.INFO and finding.merged_from:
            issues.append(
                self._issue(
                    ValidationSeverity.ERROR,
                    "MERGED_INFO",
                    "INFO findings must never be merged",
                    finding,
                )
            )

        if finding.merged_from:
            top = max(source.severity for source in finding.merged_from)
            if top != finding.severity:
                issues.append(
                    self._issue(
                        ValidationSeverity.ERROR,
                        "MERGE_SEVERITY_MISMATCH",
                        f"Merged severity {finding.severity.value} is not the "
                        f"maximum of its sources ({top.value})",
                        finding,
                    )
                )

        if finding.line_range is not None and finding.file_path is None:
            issues.append(
                self._issue(
                    ValidationSeverity.WARNING,
                    "LINES_WITHOUT_FILE",
                    "Finding has a line range but no file",
                    finding,
                )
            )

        return issues

    def _validate_no_overlaps(self, findings: list[Finding]) -> list[ValidationIssue]:
        """No two mergeable findings may remain after deduplication."""
        issues = []
        seen: dict[tuple[str, str], list[Finding]] = {}

        for finding in findings:
            if finding.severity == Severity.INFO or finding.file_path is None:
                continue
            key = (finding.file_path, finding.category.casefold())
            for other in seen.get(key, []):
                if self._mergeable(finding, other):
                    issues.append(
                        self._issue(
                            ValidationSeverity.ERROR,
                            "UNMERGED_OVERLAP",
                            f"Overlaps '{other.title}' in the same category",
                            finding,
                        )
                    )
            seen.setdefault(key, []).append(finding)

        return issues

    def _validate_order(self, findings: list[Finding]) -> list[ValidationIssue]:
        issues = []
        for previous, current in zip(findings, findings[1:]):
            if current.sort_key < previous.sort_key:
                issues.append(
                    self._issue(
                        ValidationSeverity.WARNING,
                        "OUT_OF_ORDER",
                        "Findings are not ordered by severity, file and line",
                        current,
                    )
                )
                break
        return issues

    @staticmethod
    def _mergeable(first: Finding, second: Finding) -> bool:
        if first.line_range is None or second.line_range is None:
            return first.line_range is None and second.line_range is None
        return first.line_range.overlaps(second.line_range)

    @staticmethod
    def _issue(
        severity: ValidationSeverity, code: str, message: str, finding: Finding
    ) -> ValidationIssue:
        return ValidationIssue(
            severity=severity,
            code=code,
            message=message,
            file_path=finding.file_path,
            finding_title=finding.title,
        )
