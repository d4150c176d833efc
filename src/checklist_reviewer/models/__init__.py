"""
Data models and validation schemas for checklist review.
"""

from .checkpoint import Checkpoint, DetectorKind, DetectorSpec
from .config import ProcessingConfig, ReviewConfig
from .context import (
    ContextRule,
    DeploymentContext,
    ProjectType,
    ReviewContext,
    RuleAction,
)
from .finding import Finding, MergeRelation, MergeSource
from .match import ClassifiedMatch, LineRange, RawMatch
from .severity import Severity, SeverityCounts

__all__ = [
    "Checkpoint",
    "DetectorKind",
    "DetectorSpec",
    "RawMatch",
    "ClassifiedMatch",
    "LineRange",
    "Finding",
    "MergeSource",
    "MergeRelation",
    "Severity",
    "SeverityCounts",
    "ReviewContext",
    "ContextRule",
    "ProjectType",
    "DeploymentContext",
    "RuleAction",
    "ReviewConfig",
    "ProcessingConfig",
]
