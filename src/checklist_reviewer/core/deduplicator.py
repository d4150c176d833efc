"""
Deduplication of overlapping findings.

Merge rules:

1. Same file, overlapping lines, same category: merge into one finding
   with the highest severity and the union of the line ranges.
2. Same category, non-overlapping lines: keep both.
3. Different file or different category: keep both.
4. A finding whose range contains every other finding in its group and
   strictly outranks them supersedes them and keeps its own range.
5. INFO findings never merge.
"""

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Optional

from ..models.finding import Finding, MergeRelation, MergeSource
from ..models.match import LineRange
from ..models.severity import Severity
from ..utils.logging import LoggerMixin


def sort_findings(findings: Iterable[Finding]) -> list[Finding]:
    """Order by severity descending, file ascending, line ascending."""
    return sorted(findings, key=lambda finding: finding.sort_key)


@dataclass
class MergeGroup:
    """Findings sharing file and category whose lines overlap."""

    members: list[Finding] = field(default_factory=list)
    line_range: Optional[LineRange] = None

    def accepts(self, finding: Finding) -> bool:
        if not self.members:
            return True
        if self.line_range is None or finding.line_range is None:
            return self.line_range is None and finding.line_range is None
        return self.line_range.overlaps(finding.line_range)

    def add(self, finding: Finding) -> None:
        if not self.members:
            self.line_range = finding.line_range
        elif self.line_range is not None and finding.line_range is not None:
            self.line_range = self.line_range.union(finding.line_range)
        self.members.append(finding)

    @property
    def primary(self) -> Finding:
        """Highest severity member; the earliest one wins ties."""
        return max(self.members, key=lambda finding: finding.severity.numeric_value)

    def supersedes(self, primary: Finding) -> bool:
        """Rule 4: primary contains and strictly outranks every other member."""
        for member in self.members:
            if member is primary:
                continue
            if not member.severity < primary.severity:
                return False
            if primary.line_range is not None and not primary.line_range.contains(
                member.line_range
            ):
                return False
        return True

    def collapse(self) -> Finding:
        """Collapse the group into a single finding."""
        if len(self.members) == 1:
            return self.members[0]

        primary = self.primary
        superseding = self.supersedes(primary)
        relation = MergeRelation.SUPERSEDED if superseding else MergeRelation.MERGED

        sources: list[MergeSource] = []
        for member in self.members:
            for source in member.as_merge_sources():
                if member is not primary and source.relation == MergeRelation.MERGED:
                    source = source.model_copy(update={"relation": relation})
                sources.append(source)

        return primary.model_copy(
            update={
                "line_range": primary.line_range if superseding else self.line_range,
                "merged_from": sources,
            }
        )


class Deduplicator(LoggerMixin):
    """Merges overlapping findings and produces the final ordering."""

    def deduplicate(self, findings: Iterable[Finding]) -> list[Finding]:
        """Apply the merge rules and return the ordered finding list."""
        findings = list(findings)
        kept: list[Finding] = []
        groups: dict[tuple[str, str], list[Finding]] = defaultdict(list)

        for finding in findings:
            if finding.severity == Severity.INFO or finding.file_path is None:
                kept.append(finding)
            else:
                groups[(finding.file_path, finding.category.casefold())].append(finding)

        merged_count = 0
        for members in groups.values():
            for group in self._build_groups(members):
                if len(group.members) > 1:
                    merged_count += len(group.members) - 1
                    self.log_debug(
                        "Findings merged",
                        file_path=group.members[0].file_path,
                        category=group.members[0].category,
                        lines=str(group.line_range) if group.line_range else None,
                        count=len(group.members),
                    )
                kept.append(group.collapse())

        result = sort_findings(kept)
        self.log_info(
            "Deduplication completed",
            input_findings=len(findings),
            output_findings=len(result),
            merged=merged_count,
        )
        return result

    def _build_groups(self, members: list[Finding]) -> list[MergeGroup]:
        """Sweep findings in line order, chaining overlaps into groups."""
        lineless = MergeGroup()
        groups: list[MergeGroup] = []
        current: Optional[MergeGroup] = None

        ordered = sorted(
            members,
            key=lambda f: (f.line_range.start, f.line_range.end) if f.line_range else (0, 0),
        )
        for finding in ordered:
            if finding.line_range is None:
                lineless.add(finding)
                continue
            if current is None or not current.accepts(finding):
                current = MergeGroup()
                groups.append(current)
            current.add(finding)

        if lineless.members:
            groups.insert(0, lineless)
        return groups


def deduplicate(findings: Iterable[Finding]) -> list[Finding]:
    """Deduplicate findings with the default rules."""
    return Deduplicator().deduplicate(findings)
