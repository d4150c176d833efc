"""
Finding models following the review finding schema.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from .match import LineRange
from .severity import Severity

EVIDENCE_REQUIRED = frozenset({Severity.CRITICAL, Severity.HIGH})


class MergeRelation(str, Enum):
    """How a source finding was absorbed by a merged finding."""

    MERGED = "merged"
    SUPERSEDED = "superseded"


class MergeSource(BaseModel):
    """Provenance entry for a finding collapsed during deduplication."""

    agent_id: str
    severity: Severity
    title: str
    line_range: Optional[LineRange] = None
    relation: MergeRelation = MergeRelation.MERGED

    def __str__(self) -> str:
        text = f"{self.agent_id} ({self.severity.value}"
        if self.line_range:
            text += f", lines {self.line_range}"
        text += f"): {self.title}"
        if self.relation == MergeRelation.SUPERSEDED:
            text += " [superseded]"
        return text


class Finding(BaseModel):
    """A checkpoint violation or observation at a specific location."""

    severity: Severity = Field(..., description="Triage level")
    title: str = Field(..., description="One-line summary")
    agent_id: str = Field(..., min_length=1, description="Reviewer that reported it")
    file_path: Optional[str] = Field(None, description="Affected file")
    line_range: Optional[LineRange] = Field(None, description="Affected lines")
    category: str = Field(..., min_length=1, description="Finding category")
    description: str = Field(default="", description="What is wrong and why")
    evidence: Optional[str] = Field(None, description="Code excerpt")
    recommendation: str = Field(..., description="How to fix it")
    reference: Optional[str] = Field(None, description="External reference")
    checkpoint_id: Optional[str] = Field(None, description="Checkpoint that fired")
    manual_review: bool = Field(
        default=False, description="Raised because the rule is not detectable"
    )
    merged_from: list[MergeSource] = Field(
        default_factory=list, description="Findings collapsed into this one"
    )

    @field_validator("severity", mode="before")
    @classmethod
    def parse_severity(cls, v):
        if isinstance(v, str):
            severity = Severity.from_string(v)
            if severity is None:
                raise ValueError(f"Invalid severity level: {v}")
            return severity
        return v

    @field_validator("title", "recommendation")
    @classmethod
    def validate_not_blank(cls, v):
        if not v or not v.strip():
            raise ValueError("must not be blank")
        return v.strip()

    @field_validator("line_range", mode="before")
    @classmethod
    def parse_line_range(cls, v):
        if isinstance(v, str):
            return LineRange.parse(v)
        if isinstance(v, int):
            return LineRange(start=v, end=v)
        return v

    @model_validator(mode="after")
    def validate_evidence(self):
        """CRITICAL and HIGH findings must show their evidence."""
        if self.severity in EVIDENCE_REQUIRED and not (
            self.evidence and self.evidence.strip()
        ):
            raise ValueError(f"{self.severity.value} findings require evidence")
        return self

    @property
    def is_merged(self) -> bool:
        return bool(self.merged_from)

    @property
    def location(self) -> Optional[str]:
        """Render the location as path[:lines]."""
        if not self.file_path:
            return None
        if self.line_range:
            return f"{self.file_path}:{self.line_range}"
        return self.file_path

    @property
    def sort_key(self) -> tuple:
        """Severity descending, file ascending, line ascending."""
        return (
            -self.severity.numeric_value,
            self.file_path is None,
            self.file_path or "",
            self.line_range.start if self.line_range else 0,
            self.line_range.end if self.line_range else 0,
        )

    def as_merge_sources(self) -> list[MergeSource]:
        """Provenance entries for this finding, flattening earlier merges."""
        if self.merged_from:
            return list(self.merged_from)
        return [
            MergeSource(
                agent_id=self.agent_id,
                severity=self.severity,
                title=self.title,
                line_range=self.line_range,
            )
        ]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "severity": self.severity.value,
            "title": self.title,
            "agent_id": self.agent_id,
            "file": self.file_path,
            "lines": str(self.line_range) if self.line_range else None,
            "category": self.category,
            "description": self.description,
            "evidence": self.evidence,
            "recommendation": self.recommendation,
            "reference": self.reference,
            "checkpoint_id": self.checkpoint_id,
            "manual_review": self.manual_review,
            "merged_from": [
                {
                    "agent_id": source.agent_id,
                    "severity": source.severity.value,
                    "title": source.title,
                    "lines": str(source.line_range) if source.line_range else None,
                    "relation": source.relation.value,
                }
                for source in self.merged_from
            ],
        }
