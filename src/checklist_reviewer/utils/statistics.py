"""
Statistics calculation and reporting utilities.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from ..models.finding import Finding
from ..models.severity import SeverityCounts


@dataclass
class ReviewStatistics:
    """Counters collected over one review run."""

    files_evaluated: int = 0
    files_failed: int = 0
    raw_matches: int = 0
    findings_before_dedup: int = 0
    findings_after_dedup: int = 0
    manual_review_flags: int = 0

    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    total_processing_time_ms: float = 0.0
    total_bytes_processed: int = 0

    checkpoint_hits: dict[str, int] = field(default_factory=lambda: defaultdict(int))
    severity_counts: SeverityCounts = field(default_factory=SeverityCounts)

    @property
    def duration(self) -> Optional[timedelta]:
        """Get total review duration."""
        if self.start_time and self.end_time:
            return self.end_time - self.start_time
        return None

    @property
    def merged_findings(self) -> int:
        return self.findings_before_dedup - self.findings_after_dedup

    @property
    def failure_rate(self) -> float:
        """Percentage of files that could not be evaluated."""
        if self.files_evaluated == 0:
            return 0.0
        return (self.files_failed / self.files_evaluated) * 100


class StatisticsCalculator:
    """Accumulate review statistics."""

    def __init__(self):
        self.stats = ReviewStatistics()

    def start_review(self) -> None:
        self.stats.start_time = datetime.now(timezone.utc)

    def end_review(self) -> None:
        self.stats.end_time = datetime.now(timezone.utc)

    def add_file(
        self,
        match_count: int,
        processing_time_ms: float = 0.0,
        file_size_bytes: int = 0,
        failed: bool = False,
    ) -> None:
        """Record one evaluated file."""
        self.stats.files_evaluated += 1
        if failed:
            self.stats.files_failed += 1
        self.stats.raw_matches += match_count
        self.stats.total_processing_time_ms += processing_time_ms
        self.stats.total_bytes_processed += file_size_bytes

    def add_checkpoint_hit(self, checkpoint_id: str) -> None:
        self.stats.checkpoint_hits[checkpoint_id] += 1

    def record_findings(self, before: list[Finding], after: list[Finding]) -> None:
        """Record finding counts on either side of deduplication."""
        self.stats.findings_before_dedup = len(before)
        self.stats.findings_after_dedup = len(after)
        self.stats.manual_review_flags = sum(1 for f in after if f.manual_review)
        self.stats.severity_counts = SeverityCounts.from_severities(
            f.severity for f in after
        )

    def get_summary_report(self) -> dict[str, Any]:
        """Generate a summary report."""
        duration = self.stats.duration
        duration_str = str(duration).split(".")[0] if duration else "Unknown"

        top_checkpoints = sorted(
            self.stats.checkpoint_hits.items(), key=lambda x: x[1], reverse=True
        )

        return {
            "evaluation": {
                "files_evaluated": self.stats.files_evaluated,
                "files_failed": self.stats.files_failed,
                "failure_rate_percent": round(self.stats.failure_rate, 2),
                "raw_matches": self.stats.raw_matches,
                "total_bytes_processed": self.stats.total_bytes_processed,
            },
            "findings": {
                "before_dedup": self.stats.findings_before_dedup,
                "after_dedup": self.stats.findings_after_dedup,
                "merged": self.stats.merged_findings,
                "manual_review_flags": self.stats.manual_review_flags,
                "severity_distribution": self.stats.severity_counts.to_dict(),
            },
            "timing": {
                "duration": duration_str,
                "total_processing_time_ms": round(
                    self.stats.total_processing_time_ms, 2
                ),
            },
            "checkpoint_hits": dict(top_checkpoints[:10]),
        }
