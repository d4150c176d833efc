"""
Checkpoint and detector models.
"""

import fnmatch
import re
from enum import Enum
from pathlib import PurePath
from typing import ClassVar, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .severity import Severity


class DetectorKind(str, Enum):
    """How a checkpoint is detected in a document."""

    REGEX = "REGEX"  # every match is a violation
    ABSENCE = "ABSENCE"  # violation when the pattern never occurs
    MANUAL = "MANUAL"  # not statically detectable, flag for manual review


class DetectorSpec(BaseModel):
    """Represents the detector attached to a checkpoint."""

    model_config = ConfigDict(frozen=True)

    kind: DetectorKind = Field(default=DetectorKind.REGEX, description="Detector kind")
    pattern: Optional[str] = Field(None, description="Regex pattern string")
    ignore_case: bool = Field(default=False, description="Match case-insensitively")
    multiline: bool = Field(
        default=True, description="Let ^ and $ match at line boundaries"
    )
    description: str = Field(default="", description="Heuristic description")

    @field_validator("pattern")
    @classmethod
    def validate_pattern(cls, v):
        """Ensure the pattern is a valid regex."""
        if v is None:
            return v
        try:
            re.compile(v)
        except re.error as e:
            raise ValueError(f"Invalid regex pattern: {e}") from e
        return v

    @model_validator(mode="after")
    def validate_kind_pattern(self):
        """Regex and absence detectors need a pattern to run."""
        if self.kind != DetectorKind.MANUAL and not self.pattern:
            raise ValueError(f"{self.kind.value} detector requires a pattern")
        return self

    @property
    def flags(self) -> int:
        flags = 0
        if self.multiline:
            flags |= re.MULTILINE
        if self.ignore_case:
            flags |= re.IGNORECASE
        return flags

    def compile(self) -> Optional[re.Pattern]:
        """Compile the pattern into a regex object."""
        if self.pattern is None:
            return None
        return re.compile(self.pattern, self.flags)


class Checkpoint(BaseModel):
    """A single named rule from a review checklist."""

    model_config = ConfigDict(frozen=True)

    ID_PATTERN: ClassVar[re.Pattern] = re.compile(r"^[A-Z][A-Z0-9]*(?:-[A-Z0-9]+)+$")

    id: str = Field(..., description="Checkpoint id (e.g., SEC-001)")
    title: str = Field(..., min_length=1, description="Short rule title")
    description: str = Field(default="", description="What the rule checks")
    category: str = Field(..., min_length=1, description="Finding category")
    default_severity: Severity = Field(..., description="Severity before context rules")
    file_types: list[str] = Field(
        default_factory=list, description="Glob patterns of applicable files"
    )
    detector: DetectorSpec = Field(..., description="How violations are detected")
    recommendation: str = Field(..., min_length=1, description="How to fix it")
    reference: Optional[str] = Field(None, description="External reference")

    @field_validator("id", mode="before")
    @classmethod
    def validate_id(cls, v):
        """Validate and normalise the checkpoint id."""
        if not isinstance(v, str):
            raise ValueError("Checkpoint id must be a string")
        normalised = v.strip().upper()
        if not cls.ID_PATTERN.match(normalised):
            raise ValueError(f"Invalid checkpoint id format: {v}")
        return normalised

    @field_validator("default_severity", mode="before")
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
        if not v.strip():
            raise ValueError("must not be blank")
        return v.strip()

    def applies_to(self, file_path: str) -> bool:
        """Check whether the checkpoint applies to a file path."""
        if not self.file_types:
            return True
        path = PurePath(file_path)
        return any(
            fnmatch.fnmatch(path.name, pattern) or fnmatch.fnmatch(str(path), pattern)
            for pattern in self.file_types
        )

    def __str__(self) -> str:
        return self.id

    def __hash__(self) -> int:
        return hash(self.id)
