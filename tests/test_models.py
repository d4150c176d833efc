"""Tests for checkpoint, match, finding, context and config models."""

import json

import pytest
from pydantic import ValidationError

from checklist_reviewer.models.checkpoint import Checkpoint, DetectorKind, DetectorSpec
from checklist_reviewer.models.config import ReviewConfig
from checklist_reviewer.models.context import (
    ContextRule,
    DeploymentContext,
    ProjectType,
    ReviewContext,
    RuleAction,
)
from checklist_reviewer.models.finding import Finding, MergeRelation, MergeSource
from checklist_reviewer.models.match import LineRange, RawMatch
from checklist_reviewer.models.severity import Severity
from checklist_reviewer.utils.exceptions import ConfigurationError


def _checkpoint(**overrides):
    values = {
        "id": "TST-001",
        "title": "Test rule",
        "category": "Testing",
        "default_severity": "medium",
        "detector": {"pattern": r"foo"},
        "recommendation": "Remove foo",
    }
    values.update(overrides)
    return Checkpoint.model_validate(values)


class TestCheckpoint:
    """Checkpoint validation."""

    def test_id_is_normalised(self):
        assert _checkpoint(id="tst-002").id == "TST-002"

    @pytest.mark.parametrize("bad_id", ["TST", "001-TST", "TST 001", ""])
    def test_invalid_id_rejected(self, bad_id):
        with pytest.raises(ValidationError):
            _checkpoint(id=bad_id)

    def test_severity_parsed_from_string(self):
        assert _checkpoint().default_severity == Severity.MEDIUM

    def test_unknown_severity_rejected(self):
        with pytest.raises(ValidationError):
            _checkpoint(default_severity="urgent")

    def test_blank_recommendation_rejected(self):
        with pytest.raises(ValidationError):
            _checkpoint(recommendation="   ")

    def test_checkpoints_are_frozen(self):
        checkpoint = _checkpoint()
        with pytest.raises(ValidationError):
            checkpoint.title = "Changed"

    def test_applies_to_all_files_without_types(self):
        assert _checkpoint().applies_to("any/file.txt")

    def test_applies_to_matches_globs(self):
        checkpoint = _checkpoint(file_types=["*.py", "requirements*.txt"])
        assert checkpoint.applies_to("src/app.py")
        assert checkpoint.applies_to("requirements-dev.txt")
        assert not checkpoint.applies_to("index.html")


class TestDetectorSpec:
    """Detector validation."""

    def test_invalid_regex_rejected(self):
        with pytest.raises(ValidationError):
            DetectorSpec(pattern="(unclosed")

    def test_regex_detector_requires_pattern(self):
        with pytest.raises(ValidationError):
            DetectorSpec(kind=DetectorKind.REGEX)

    def test_manual_detector_needs_no_pattern(self):
        spec = DetectorSpec(kind=DetectorKind.MANUAL, description="Not detectable")
        assert spec.compile() is None

    def test_ignore_case_flag(self):
        compiled = DetectorSpec(pattern="secret", ignore_case=True).compile()
        assert compiled.search("SECRET")


class TestLineRange:
    """Line range arithmetic."""

    def test_overlaps(self):
        assert LineRange(start=10, end=15).overlaps(LineRange(start=15, end=20))
        assert not LineRange(start=10, end=15).overlaps(LineRange(start=16, end=20))

    def test_contains_and_union(self):
        outer = LineRange(start=1, end=20)
        inner = LineRange(start=5, end=6)
        assert outer.contains(inner)
        assert not inner.contains(outer)
        assert inner.union(LineRange(start=8, end=9)) == LineRange(start=5, end=9)

    def test_parse_and_str(self):
        assert LineRange.parse("10-15") == LineRange(start=10, end=15)
        assert str(LineRange.parse("7")) == "7"
        assert str(LineRange(start=3, end=4)) == "3-4"

    def test_end_defaults_to_start(self):
        assert LineRange(start=4).end == 4

    def test_reversed_range_rejected(self):
        with pytest.raises(ValidationError):
            LineRange(start=5, end=2)


class TestRawMatch:
    def test_positions_must_be_ordered(self):
        with pytest.raises(ValidationError):
            RawMatch(
                checkpoint_id="TST-001",
                file_path="a.py",
                start_position=10,
                end_position=2,
            )


class TestFinding:
    """Finding schema invariants."""

    def test_critical_and_high_require_evidence(self, make_finding):
        for severity in (Severity.CRITICAL, Severity.HIGH):
            with pytest.raises(ValidationError):
                make_finding(severity=severity, evidence=None)
            with pytest.raises(ValidationError):
                make_finding(severity=severity, evidence="   ")

    def test_lower_severities_allow_missing_evidence(self, make_finding):
        for severity in (Severity.MEDIUM, Severity.LOW, Severity.INFO):
            assert make_finding(severity=severity, evidence=None).evidence is None

    def test_title_and_recommendation_required(self, make_finding):
        with pytest.raises(ValidationError):
            make_finding(title="")
        with pytest.raises(ValidationError):
            make_finding(recommendation=" ")

    def test_severity_outside_enum_rejected(self, make_finding):
        with pytest.raises(ValidationError):
            make_finding(severity="BLOCKER")

    def test_file_and_lines_optional(self, make_finding):
        finding = make_finding(file_path=None, line_range=None)
        assert finding.location is None

    def test_location(self, make_finding):
        assert make_finding().location == "app.py:10-15"
        assert make_finding(line_range=None).location == "app.py"

    def test_sort_key_orders_severity_file_line(self, make_finding):
        findings = [
            make_finding(severity=Severity.LOW, file_path="a.py", line_range="1"),
            make_finding(severity=Severity.MEDIUM, file_path="b.py", line_range="9"),
            make_finding(severity=Severity.MEDIUM, file_path="a.py", line_range="30"),
            make_finding(severity=Severity.MEDIUM, file_path="a.py", line_range="4"),
            make_finding(severity=Severity.MEDIUM, file_path=None, line_range=None),
        ]
        ordered = sorted(findings, key=lambda f: f.sort_key)
        assert [(f.severity, f.file_path, str(f.line_range)) for f in ordered] == [
            (Severity.MEDIUM, "a.py", "4"),
            (Severity.MEDIUM, "a.py", "30"),
            (Severity.MEDIUM, "b.py", "9"),
            (Severity.MEDIUM, None, "None"),
            (Severity.LOW, "a.py", "1"),
        ]

    def test_as_merge_sources_flattens(self, make_finding):
        source = MergeSource(agent_id="x", severity=Severity.LOW, title="Old")
        merged = make_finding(merged_from=[source])
        assert merged.as_merge_sources() == [source]
        plain = make_finding()
        assert plain.as_merge_sources()[0].agent_id == "agent-a"
        assert plain.as_merge_sources()[0].relation == MergeRelation.MERGED

    def test_to_dict(self, make_finding):
        data = make_finding().to_dict()
        assert data["severity"] == "MEDIUM"
        assert data["lines"] == "10-15"
        assert data["merged_from"] == []


class TestContextRule:
    """Context-dependent severity rules."""

    def test_matches_by_category_case_insensitive(self):
        rule = ContextRule(name="r", categories=("Secrets",), action=RuleAction.ESCALATE)
        assert rule.matches("SEC-001", "secrets", ReviewContext())
        assert not rule.matches("INJ-001", "Injection", ReviewContext())

    def test_matches_by_checkpoint_id(self):
        rule = ContextRule(name="r", checkpoint_ids=("lic-002",), action=RuleAction.ESCALATE)
        assert rule.matches("LIC-002", "Licensing", ReviewContext())

    def test_context_conditions(self):
        rule = ContextRule(
            name="r",
            deployment=DeploymentContext.INTERNAL_TOOL,
            project_type=ProjectType.OPEN_SOURCE,
            action=RuleAction.DEESCALATE,
        )
        internal_oss = ReviewContext(
            deployment=DeploymentContext.INTERNAL_TOOL,
            project_type=ProjectType.OPEN_SOURCE,
        )
        assert rule.matches("ANY-001", "Any", internal_oss)
        assert not rule.matches("ANY-001", "Any", ReviewContext())

    def test_apply_actions(self):
        escalate = ContextRule(name="e", action=RuleAction.ESCALATE, steps=2)
        floor = ContextRule(name="f", action=RuleAction.FLOOR, target=Severity.HIGH)
        force = ContextRule(name="s", action=RuleAction.SET, target=Severity.LOW)
        assert escalate.apply(Severity.LOW) == Severity.HIGH
        assert floor.apply(Severity.MEDIUM) == Severity.HIGH
        assert floor.apply(Severity.CRITICAL) == Severity.CRITICAL
        assert force.apply(Severity.CRITICAL) == Severity.LOW

    def test_set_requires_target(self):
        with pytest.raises(ValidationError):
            ContextRule(name="s", action=RuleAction.SET)


class TestReviewConfig:
    """Configuration loading."""

    def test_defaults(self):
        config = ReviewConfig()
        assert config.processing.max_concurrent_files == 10
        assert config.context.project_type == ProjectType.PROPRIETARY
        assert config.checkpoints == []

    def test_from_dict_invalid_raises_configuration_error(self):
        with pytest.raises(ConfigurationError) as exc_info:
            ReviewConfig.from_dict({"processing": {"max_concurrent_files": 0}})
        assert "max_concurrent_files" in exc_info.value.config_field

    def test_from_file(self, tmp_path):
        config_path = tmp_path / "review.json"
        config_path.write_text(
            json.dumps(
                {
                    "context": {"project_type": "OPEN_SOURCE", "agent_id": "lint-bot"},
                    "processing": {"context_lines": 1},
                    "checkpoints_file": "extra.json",
                }
            )
        )
        config = ReviewConfig.from_file(config_path)
        assert config.context.project_type == ProjectType.OPEN_SOURCE
        assert config.context.agent_id == "lint-bot"
        assert config.processing.context_lines == 1
        assert config.checkpoints_file == tmp_path / "extra.json"
        assert config.validate_paths() == [
            f"Checkpoints file does not exist: {tmp_path / 'extra.json'}"
        ]

    def test_from_file_bad_json(self, tmp_path):
        config_path = tmp_path / "review.json"
        config_path.write_text("{not json")
        with pytest.raises(ConfigurationError):
            ReviewConfig.from_file(config_path)

    def test_from_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            ReviewConfig.from_file(tmp_path / "missing.json")
