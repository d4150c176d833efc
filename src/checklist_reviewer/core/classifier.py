"""
Context-dependent severity classification.
"""

from typing import Optional

from ..models.context import ContextRule, ReviewContext
from ..models.match import ClassifiedMatch, RawMatch
from ..models.severity import Severity
from ..utils.logging import LoggerMixin
from .catalogue import default_context_rules
from .registry import PatternRegistry

# Manual-review flags carry no evidence, so they stay below the evidence bar
MANUAL_REVIEW_CEILING = Severity.MEDIUM


class SeverityClassifier(LoggerMixin):
    """Maps matched checkpoints to a severity for a given review context."""

    def __init__(
        self,
        registry: PatternRegistry,
        rules: Optional[list[ContextRule]] = None,
    ):
        self.registry = registry
        self.rules = list(rules) if rules else default_context_rules()

    def classify(self, match: RawMatch, context: ReviewContext) -> Severity:
        """Resolve the severity of a match."""
        return self.classify_match(match, context).severity

    def classify_match(self, match: RawMatch, context: ReviewContext) -> ClassifiedMatch:
        """
        Resolve the severity of a match and record the rules applied.

        The checkpoint's default severity is adjusted by every matching rule
        in table order.

        Raises:
            CheckpointNotFoundError: If the match names an unknown checkpoint
        """
        entry = self.registry.lookup(match.checkpoint_id)
        severity = entry.default_severity
        applied = []

        for rule in self.rules:
            if not rule.matches(entry.id, entry.category, context):
                continue
            adjusted = rule.apply(severity)
            if adjusted != severity:
                self.log_debug(
                    "Context rule applied",
                    rule=rule.name,
                    checkpoint_id=entry.id,
                    before=severity.value,
                    after=adjusted.value,
                )
                severity = adjusted
                applied.append(rule.name)

        if match.manual_review and severity > MANUAL_REVIEW_CEILING:
            severity = MANUAL_REVIEW_CEILING
            applied.append("manual-review-ceiling")

        return ClassifiedMatch(match=match, severity=severity, applied_rules=tuple(applied))
