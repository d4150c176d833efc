"""
Markdown formatting for findings and the severity summary table.
"""

from collections.abc import Iterable
from typing import Union

from ..models.finding import Finding
from ..models.severity import SeverityCounts

SUMMARY_HEADER = "| Severity | Count |\n|----------|-------|"


def _fence(evidence: str) -> str:
    """Wrap evidence in a code fence longer than any backtick run inside it."""
    longest = 0
    run = 0
    for char in evidence:
        run = run + 1 if char == "`" else 0
        longest = max(longest, run)
    fence = "`" * max(3, longest + 1)
    return f"{fence}\n{evidence.rstrip()}\n{fence}"


def format_finding(finding: Finding) -> str:
    """
    Render a finding as a Markdown block.

    The block starts with a "### [SEVERITY] Title" heading followed by bold
    metadata fields in a fixed order. Optional fields are left out when empty.
    """
    lines = [f"### [{finding.severity.value}] {finding.title}", ""]
    lines.append(f"**Agent:** {finding.agent_id}")
    if finding.location:
        lines.append(f"**File:** `{finding.location}`")
    lines.append(f"**Category:** {finding.category}")
    if finding.description:
        lines.append(f"**Description:** {finding.description}")

    if finding.evidence:
        lines.extend(["", "**Evidence:**", _fence(finding.evidence), ""])

    lines.append(f"**Recommendation:** {finding.recommendation}")
    if finding.reference:
        lines.append(f"**Reference:** {finding.reference}")

    if finding.merged_from:
        lines.append("**Merged From:**")
        lines.extend(f"- {source}" for source in finding.merged_from)

    return "\n".join(lines) + "\n"


def format_summary_table(
    findings: Union[SeverityCounts, Iterable[Finding]],
) -> str:
    """Render the fixed five-row severity count table."""
    if isinstance(findings, SeverityCounts):
        counts = findings
    else:
        counts = SeverityCounts.from_severities(f.severity for f in findings)

    rows = [f"| {severity.value} | {count} |" for severity, count in counts.rows()]
    return "\n".join([SUMMARY_HEADER, *rows]) + "\n"


def format_findings(findings: Iterable[Finding]) -> str:
    """Summary table followed by every finding, in the given order."""
    findings = list(findings)
    sections = [format_summary_table(findings)]
    sections.extend(format_finding(finding) for finding in findings)
    return "\n".join(sections)
