"""
Raw and classified match models.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .checkpoint import DetectorKind
from .severity import Severity


class LineRange(BaseModel):
    """Inclusive, 1-based range of source lines."""

    model_config = ConfigDict(frozen=True)

    start: int = Field(..., ge=1, description="First line")
    end: int = Field(..., ge=1, description="Last line")

    @model_validator(mode="before")
    @classmethod
    def default_end(cls, data):
        if isinstance(data, dict) and data.get("end") is None and "start" in data:
            data = {**data, "end": data["start"]}
        return data

    @model_validator(mode="after")
    def validate_order(self):
        """Ensure end line is not before start line."""
        if self.end < self.start:
            raise ValueError("End line must be >= start line")
        return self

    @classmethod
    def parse(cls, value: str) -> "LineRange":
        """Parse "10" or "10-15"."""
        start, _, end = value.strip().partition("-")
        return cls(start=int(start), end=int(end or start))

    def overlaps(self, other: "LineRange") -> bool:
        return self.start <= other.end and other.start <= self.end

    def contains(self, other: "LineRange") -> bool:
        return self.start <= other.start and other.end <= self.end

    def union(self, other: "LineRange") -> "LineRange":
        return LineRange(start=min(self.start, other.start), end=max(self.end, other.end))

    def __str__(self) -> str:
        if self.start == self.end:
            return str(self.start)
        return f"{self.start}-{self.end}"


class RawMatch(BaseModel):
    """A detector hit for one checkpoint in one document."""

    model_config = ConfigDict(frozen=True)

    checkpoint_id: str = Field(..., description="Checkpoint that matched")
    file_path: str = Field(..., description="Path of the evaluated document")
    line_range: Optional[LineRange] = Field(None, description="Lines covered")
    matched_text: str = Field(default="", description="Text the detector matched")
    source_lines: str = Field(default="", description="Full source lines matched")
    start_position: int = Field(default=0, ge=0, description="Start offset in text")
    end_position: int = Field(default=0, ge=0, description="End offset in text")
    context: str = Field(default="", description="Source lines around the match")
    detector_kind: DetectorKind = Field(
        default=DetectorKind.REGEX, description="Kind of detector that fired"
    )
    manual_review: bool = Field(
        default=False, description="Rule needs a human to confirm"
    )

    @model_validator(mode="after")
    def validate_positions(self):
        """Ensure end position is after start position."""
        if self.end_position < self.start_position:
            raise ValueError("End position must be >= start position")
        return self


class ClassifiedMatch(BaseModel):
    """A raw match with its context-resolved severity."""

    model_config = ConfigDict(frozen=True)

    match: RawMatch
    severity: Severity
    applied_rules: tuple[str, ...] = Field(
        default=(), description="Context rules that changed the severity"
    )

    @property
    def checkpoint_id(self) -> str:
        return self.match.checkpoint_id
