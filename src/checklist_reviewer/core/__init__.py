"""
Core review engine.

This package contains the registry, evaluator, classifier, assembler and
deduplicator that make up the review pipeline.
"""

from .assembler import FindingAssembler
from .classifier import SeverityClassifier
from .deduplicator import Deduplicator, MergeGroup, deduplicate, sort_findings
from .engine import ReviewEngine, ReviewResult
from .evaluator import Document, EvaluationResult, Evaluator, MatchSequence, evaluate
from .registry import PatternRegistry, RegisteredCheckpoint
from .validator import (
    FindingValidator,
    ValidationIssue,
    ValidationReport,
    ValidationSeverity,
)

__all__ = [
    # Orchestration
    "ReviewEngine",
    "ReviewResult",
    # Registry
    "PatternRegistry",
    "RegisteredCheckpoint",
    # Evaluation
    "Evaluator",
    "Document",
    "MatchSequence",
    "EvaluationResult",
    "evaluate",
    # Classification and assembly
    "SeverityClassifier",
    "FindingAssembler",
    # Deduplication
    "Deduplicator",
    "MergeGroup",
    "deduplicate",
    "sort_findings",
    # Validation
    "FindingValidator",
    "ValidationReport",
    "ValidationIssue",
    "ValidationSeverity",
]
