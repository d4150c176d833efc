"""Tests for finding deduplication and ordering."""

from checklist_reviewer.core.deduplicator import Deduplicator, deduplicate, sort_findings
from checklist_reviewer.models.finding import MergeRelation
from checklist_reviewer.models.match import LineRange
from checklist_reviewer.models.severity import Severity


class TestMerging:
    """Rules 1 and 4: overlapping findings in the same file and category."""

    def test_same_location_high_and_medium(self, make_finding):
        findings = [
            make_finding(severity=Severity.HIGH, agent_id="security-agent"),
            make_finding(severity=Severity.MEDIUM, agent_id="quality-agent"),
        ]
        (merged,) = deduplicate(findings)
        assert merged.severity == Severity.HIGH
        assert merged.file_path == "app.py"
        assert str(merged.line_range) == "10-15"
        assert [s.agent_id for s in merged.merged_from] == [
            "security-agent",
            "quality-agent",
        ]

    def test_overlap_merges_to_highest_severity(self, make_finding):
        high = make_finding(severity=Severity.HIGH, agent_id="agent-a", line_range="10-12")
        medium = make_finding(severity=Severity.MEDIUM, agent_id="agent-b", line_range="11-15")

        (merged,) = deduplicate([medium, high])
        assert merged.severity == Severity.HIGH
        assert merged.line_range == LineRange(start=10, end=15)
        assert merged.evidence == high.evidence
        assert [s.agent_id for s in merged.merged_from] == ["agent-a", "agent-b"]
        assert {s.relation for s in merged.merged_from} == {MergeRelation.MERGED}

    def test_contained_lower_finding_is_superseded(self, make_finding):
        high = make_finding(severity=Severity.HIGH, agent_id="agent-a", line_range="10-15")
        medium = make_finding(severity=Severity.MEDIUM, agent_id="agent-b", line_range="12-14")

        (merged,) = deduplicate([high, medium])
        assert merged.severity == Severity.HIGH
        assert merged.line_range == LineRange(start=10, end=15)
        relations = {s.agent_id: s.relation for s in merged.merged_from}
        assert relations == {
            "agent-a": MergeRelation.MERGED,
            "agent-b": MergeRelation.SUPERSEDED,
        }

    def test_equal_severity_merges_rather_than_supersedes(self, make_finding):
        outer = make_finding(agent_id="agent-a", line_range="1-20")
        inner = make_finding(agent_id="agent-b", line_range="5-6")
        (merged,) = deduplicate([outer, inner])
        assert all(s.relation == MergeRelation.MERGED for s in merged.merged_from)
        assert merged.agent_id == "agent-a"

    def test_chained_overlaps_form_one_group(self, make_finding):
        findings = [
            make_finding(severity=Severity.LOW, line_range="1-3"),
            make_finding(severity=Severity.MEDIUM, line_range="3-6"),
            make_finding(severity=Severity.LOW, line_range="6-8"),
        ]
        (merged,) = deduplicate(findings)
        assert merged.severity == Severity.MEDIUM
        assert merged.line_range == LineRange(start=1, end=8)
        assert len(merged.merged_from) == 3

    def test_category_comparison_ignores_case(self, make_finding):
        findings = [
            make_finding(category="Injection", line_range="1-2"),
            make_finding(category="injection", line_range="2-3"),
        ]
        assert len(deduplicate(findings)) == 1

    def test_lineless_findings_merge_with_each_other_only(self, make_finding):
        findings = [
            make_finding(line_range=None, agent_id="agent-a"),
            make_finding(line_range=None, agent_id="agent-b", severity=Severity.LOW),
            make_finding(line_range="3"),
        ]
        result = deduplicate(findings)
        assert len(result) == 2
        lineless = [f for f in result if f.line_range is None]
        assert len(lineless) == 1
        assert lineless[0].is_merged


class TestKeeping:
    """Rules 2, 3 and 5: findings that stay separate."""

    def test_non_overlapping_kept(self, make_finding):
        findings = [make_finding(line_range="1-5"), make_finding(line_range="6-9")]
        assert len(deduplicate(findings)) == 2

    def test_different_category_kept(self, make_finding):
        findings = [
            make_finding(category="Injection"),
            make_finding(category="Secrets"),
        ]
        result = deduplicate(findings)
        assert len(result) == 2
        assert not any(f.is_merged for f in result)

    def test_different_file_kept(self, make_finding):
        findings = [make_finding(file_path="a.py"), make_finding(file_path="b.py")]
        assert len(deduplicate(findings)) == 2

    def test_info_never_merges(self, make_finding):
        findings = [
            make_finding(severity=Severity.INFO, evidence=None),
            make_finding(severity=Severity.INFO, evidence=None),
            make_finding(severity=Severity.MEDIUM),
        ]
        result = deduplicate(findings)
        assert len(result) == 3
        assert not any(f.is_merged for f in result)

    def test_findings_without_file_kept(self, make_finding):
        findings = [
            make_finding(file_path=None, line_range=None),
            make_finding(file_path=None, line_range=None),
        ]
        assert len(deduplicate(findings)) == 2


class TestOrderingAndStability:
    def test_idempotent(self, make_finding):
        findings = [
            make_finding(severity=Severity.HIGH, line_range="10-15"),
            make_finding(severity=Severity.MEDIUM, line_range="12-20"),
            make_finding(severity=Severity.LOW, file_path="b.py", line_range="1"),
        ]
        once = deduplicate(findings)
        twice = deduplicate(once)
        assert twice == once

    def test_merging_twice_keeps_flat_provenance(self, make_finding):
        first = deduplicate(
            [make_finding(agent_id="a", line_range="1-4"), make_finding(agent_id="b", line_range="3-5")]
        )
        second = deduplicate(first + [make_finding(agent_id="c", line_range="5-6")])
        (merged,) = second
        assert [s.agent_id for s in merged.merged_from] == ["a", "b", "c"]

    def test_output_order(self, make_finding):
        findings = [
            make_finding(severity=Severity.LOW, file_path="a.py", line_range="1"),
            make_finding(severity=Severity.CRITICAL, file_path="z.py", line_range="9"),
            make_finding(severity=Severity.MEDIUM, file_path="b.py", line_range="40"),
            make_finding(severity=Severity.MEDIUM, file_path="b.py", line_range="2"),
            make_finding(severity=Severity.MEDIUM, file_path="a.py", line_range="50"),
        ]
        result = Deduplicator().deduplicate(findings)
        assert [(f.severity, f.file_path, str(f.line_range)) for f in result] == [
            (Severity.CRITICAL, "z.py", "9"),
            (Severity.MEDIUM, "a.py", "50"),
            (Severity.MEDIUM, "b.py", "2"),
            (Severity.MEDIUM, "b.py", "40"),
            (Severity.LOW, "a.py", "1"),
        ]

    def test_sort_findings_is_stable_on_ties(self, make_finding):
        first = make_finding(title="First")
        second = make_finding(title="Second")
        assert [f.title for f in sort_findings([first, second])] == ["First", "Second"]

    def test_empty_input(self):
        assert deduplicate([]) == []
