"""
Assembly of classified matches into schema-conformant findings.
"""

import re
from collections.abc import Iterable, Iterator
from typing import Optional

from pydantic import ValidationError

from ..models.finding import EVIDENCE_REQUIRED, Finding
from ..models.match import ClassifiedMatch
from ..models.severity import Severity
from ..utils.exceptions import FindingSchemaError
from ..utils.logging import LoggerMixin
from .registry import PatternRegistry

MANUAL_REVIEW_PREFIX = "Manual review required: "
MAX_SHORT_EVIDENCE = 200
REDACTED_CATEGORIES = frozenset({"secrets"})

_QUOTED_VALUE = re.compile(r"([\"'])([^\"'\s]{4})[^\"'\s]{4,}\1")
_ENCODED_RUN = re.compile(
    r"(?<![A-Za-z0-9+/=])([A-Za-z0-9+/]{4})[A-Za-z0-9+/]{16,}={0,2}"
)


def _mask_encoded_run(found: re.Match) -> str:
    run = found.group(0)
    # Plain words and identifiers carry no digits
    if any(c.isdigit() for c in run) and any(c.isalpha() for c in run):
        return f"{found.group(1)}****"
    return run


def redact_secrets(text: str) -> str:
    """
    Mask secret material in evidence text.

    Quoted values keep their first four characters. Unquoted runs of twenty
    or more base64 characters mixing letters and digits, such as PEM key
    bodies, are masked the same way.
    """
    text = _QUOTED_VALUE.sub(lambda m: f"{m.group(1)}{m.group(2)}****{m.group(1)}", text)
    return _ENCODED_RUN.sub(_mask_encoded_run, text)



class FindingAssembler(LoggerMixin):
    """Formats classified matches into findings."""

    def __init__(self, registry: PatternRegistry, agent_id: str = "checklist-reviewer"):
        self.registry = registry
        self.agent_id = agent_id

    def assemble(self, classified: ClassifiedMatch) -> Finding:
        """
        Build a finding for a classified match.

        Raises:
            CheckpointNotFoundError: If the match names an unknown checkpoint
            FindingSchemaError: If the result would violate the finding schema
        """
        checkpoint = self.registry.lookup(classified.checkpoint_id).checkpoint
        match = classified.match

        title = checkpoint.title
        description = checkpoint.description
        if match.manual_review:
            title = MANUAL_REVIEW_PREFIX + title
            if checkpoint.detector.description:
                description = (
                    f"{description} {checkpoint.detector.description}."
                ).strip()

        evidence = self._build_evidence(classified, checkpoint.category)
        if classified.severity in EVIDENCE_REQUIRED and not evidence:
            raise FindingSchemaError(
                f"{classified.severity.value} finding has no evidence",
                field="evidence",
                checkpoint_id=checkpoint.id,
            )

        try:
            return Finding(
                severity=classified.severity,
                title=title,
                agent_id=self.agent_id,
                file_path=match.file_path,
                line_range=match.line_range,
                category=checkpoint.category,
                description=description,
                evidence=evidence,
                recommendation=checkpoint.recommendation,
                reference=checkpoint.reference,
                checkpoint_id=checkpoint.id,
                manual_review=match.manual_review,
            )
        except ValidationError as e:
            raise FindingSchemaError(
                f"Finding violates schema: {e}", checkpoint_id=checkpoint.id
            ) from e

    def assemble_all(self, classified: Iterable[ClassifiedMatch]) -> Iterator[Finding]:
        for item in classified:
            yield self.assemble(item)

    def _build_evidence(
        self, classified: ClassifiedMatch, category: str
    ) -> Optional[str]:
        """
        Evidence formatting rules.

        CRITICAL and HIGH get the numbered excerpt with surrounding context.
        MEDIUM and LOW get the matched line, trimmed. INFO and manual-review
        flags get none.
        """
        match = classified.match
        if match.manual_review or classified.severity == Severity.INFO:
            return None

        if classified.severity in EVIDENCE_REQUIRED:
            evidence = match.context or match.source_lines or match.matched_text
        else:
            lines = (match.source_lines or match.matched_text).strip().splitlines()
            evidence = lines[0].strip() if lines else ""
            if len(evidence) > MAX_SHORT_EVIDENCE:
                evidence = evidence[:MAX_SHORT_EVIDENCE] + "..."

        if not evidence.strip():
            return None
        if category.lower() in REDACTED_CATEGORIES:
            evidence = redact_secrets(evidence)
        return evidence
