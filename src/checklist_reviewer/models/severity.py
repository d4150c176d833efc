"""
Severity level models and summary counts.
"""

from collections.abc import Iterable
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class Severity(str, Enum):
    """Enumeration of finding severity levels."""

    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"
    INFO = "INFO"

    @classmethod
    def from_string(cls, value: str) -> Optional["Severity"]:
        """Convert string to Severity, case-insensitive."""
        try:
            return cls(value.strip().upper())
        except (ValueError, AttributeError):
            return None

    @classmethod
    def descending(cls) -> list["Severity"]:
        """All levels from most to least severe."""
        return sorted(cls, reverse=True)

    @property
    def numeric_value(self) -> int:
        """Get numeric value for severity sorting (higher = more severe)."""
        return _RANKS[self]

    def escalate(self, steps: int = 1) -> "Severity":
        """Move up the scale, clamping at CRITICAL."""
        rank = min(_RANKS[self] + steps, _RANKS[Severity.CRITICAL])
        return _BY_RANK[rank]

    def deescalate(self, steps: int = 1) -> "Severity":
        """Move down the scale, clamping at INFO."""
        rank = max(_RANKS[self] - steps, _RANKS[Severity.INFO])
        return _BY_RANK[rank]

    def _rank_of(self, other: object) -> int:
        # str fallback would compare names lexicographically
        if not isinstance(other, Severity):
            raise TypeError(
                f"Cannot compare Severity with {type(other).__name__}; "
                "use Severity.from_string first"
            )
        return other.numeric_value

    def __lt__(self, other: "Severity") -> bool:
        return self.numeric_value < self._rank_of(other)

    def __le__(self, other: "Severity") -> bool:
        return self.numeric_value <= self._rank_of(other)

    def __gt__(self, other: "Severity") -> bool:
        return self.numeric_value > self._rank_of(other)

    def __ge__(self, other: "Severity") -> bool:
        return self.numeric_value >= self._rank_of(other)


_RANKS = {
    Severity.CRITICAL: 4,
    Severity.HIGH: 3,
    Severity.MEDIUM: 2,
    Severity.LOW: 1,
    Severity.INFO: 0,
}
_BY_RANK = {rank: severity for severity, rank in _RANKS.items()}


class SeverityCounts(BaseModel):
    """Number of findings per severity level."""

    counts: dict[Severity, int] = Field(
        default_factory=dict, description="Count of findings per severity level"
    )

    @field_validator("counts")
    @classmethod
    def validate_counts(cls, v):
        """Ensure all counts are non-negative and every level is present."""
        for severity, count in v.items():
            if count < 0:
                raise ValueError(f"Count for {severity.value} cannot be negative")
        return {severity: v.get(severity, 0) for severity in Severity.descending()}

    @classmethod
    def from_severities(cls, severities: Iterable[Severity]) -> "SeverityCounts":
        counts = cls()
        for severity in severities:
            counts.add(severity)
        return counts

    @property
    def total(self) -> int:
        return sum(self.counts.values())

    def add(self, severity: Severity) -> None:
        """Count one more finding at the given severity."""
        self.counts[severity] = self.counts.get(severity, 0) + 1

    def get(self, severity: Severity) -> int:
        return self.counts.get(severity, 0)

    def rows(self) -> list[tuple[Severity, int]]:
        """Five (severity, count) rows from CRITICAL down to INFO."""
        return [(severity, self.get(severity)) for severity in Severity.descending()]

    def highest(self) -> Optional[Severity]:
        """Most severe level with at least one finding."""
        for severity, count in self.rows():
            if count:
                return severity
        return None

    def to_dict(self) -> dict[str, int]:
        return {severity.value: count for severity, count in self.rows()}
