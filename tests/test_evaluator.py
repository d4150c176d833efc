"""Tests for document evaluation."""

import asyncio

import pytest

from checklist_reviewer.core.evaluator import Document, Evaluator, evaluate
from checklist_reviewer.core.registry import PatternRegistry
from checklist_reviewer.models.checkpoint import Checkpoint, DetectorKind
from checklist_reviewer.models.match import LineRange

from .conftest import CLEAN_PY, VULNERABLE_PY


def _registry(*checkpoints):
    return PatternRegistry(Checkpoint.model_validate(c) for c in checkpoints)


def _regex_checkpoint(pattern, checkpoint_id="TST-001", **extra):
    return {
        "id": checkpoint_id,
        "title": "Test",
        "category": "Testing",
        "default_severity": "LOW",
        "detector": {"pattern": pattern, **extra},
        "recommendation": "Fix",
    }


class TestDocument:
    """Line index of a document."""

    def test_line_of(self):
        document = Document("a.py", "one\ntwo\nthree")
        assert document.line_count == 3
        assert document.line_of(0) == 1
        assert document.line_of(4) == 2
        assert document.line_of(8) == 3

    def test_line_range_of_excludes_trailing_newline(self):
        document = Document("a.py", "one\ntwo\nthree")
        assert document.line_range_of(4, 8) == LineRange(start=2, end=2)
        assert document.line_range_of(0, 9) == LineRange(start=1, end=3)

    def test_excerpt_is_numbered_and_clamped(self):
        document = Document("a.py", "a\nb\nc\nd")
        excerpt = document.excerpt(LineRange(start=1, end=1), context_lines=1)
        assert excerpt == "1 | a\n2 | b"


class TestEvaluate:
    """Scanning documents with registered detectors."""

    def test_vulnerable_file_matches(self, registry):
        matches = evaluate(Document("app.py", VULNERABLE_PY), registry).to_list()
        found = [(m.checkpoint_id, str(m.line_range)) for m in matches]
        assert found == [
            ("SEC-001", "3"),
            ("INJ-001", "7"),
            ("INJ-003", "13"),
            ("LOG-001", "12"),
            ("LIC-001", "1"),
        ]

    def test_clean_file_has_no_matches(self, registry):
        assert evaluate(Document("clean.py", CLEAN_PY), registry).to_list() == []

    def test_sequence_is_lazy(self):
        calls = []

        class CountingRegistry(PatternRegistry):
            def applicable(self, file_path):
                calls.append(file_path)
                return super().applicable(file_path)

        registry = CountingRegistry(
            [Checkpoint.model_validate(_regex_checkpoint(r"foo"))]
        )
        sequence = evaluate(Document("a.txt", "foo"), registry)
        assert calls == []
        list(sequence)
        assert calls == ["a.txt"]

    def test_sequence_is_restartable(self, registry):
        sequence = evaluate(Document("app.py", VULNERABLE_PY), registry)
        first = list(sequence)
        second = list(sequence)
        assert first == second
        assert len(first) == 5

    def test_match_carries_text_and_context(self):
        registry = _registry(_regex_checkpoint(r"bad\(\)"))
        content = "line1\nline2\ncall bad()\nline4\nline5\nline6"
        (match,) = Evaluator(context_lines=1).evaluate(Document("x.txt", content), registry)
        assert match.matched_text == "bad()"
        assert match.source_lines == "call bad()"
        assert match.line_range == LineRange(start=3, end=3)
        assert match.context == "2 | line2\n3 | call bad()\n4 | line4"
        assert match.start_position == content.index("bad()")

    def test_multiline_match_spans_lines(self):
        registry = _registry(_regex_checkpoint(r"BEGIN[\s\S]*?END"))
        content = "x\nBEGIN\nmiddle\nEND\ny"
        (match,) = evaluate(Document("x.txt", content), registry)
        assert match.line_range == LineRange(start=2, end=4)

    def test_absence_detector(self):
        checkpoint = _regex_checkpoint(r"Copyright", kind="ABSENCE")
        registry = _registry(checkpoint)

        (match,) = evaluate(Document("a.py", "print(1)\n"), registry)
        assert match.detector_kind == DetectorKind.ABSENCE
        assert match.line_range == LineRange(start=1, end=1)

        assert evaluate(Document("b.py", "# Copyright 2024\n"), registry).to_list() == []

    def test_manual_detector_flags_for_review(self):
        registry = _registry(
            {
                **_regex_checkpoint(None),
                "detector": {"kind": "MANUAL", "description": "Needs a human"},
            }
        )
        (match,) = evaluate(Document("package.json", "{}"), registry)
        assert match.manual_review
        assert match.line_range is None

    def test_match_cap_per_checkpoint(self):
        registry = _registry(_regex_checkpoint(r"x"))
        evaluator = Evaluator(max_matches_per_checkpoint=3)
        matches = evaluator.evaluate(Document("a.txt", "x\n" * 10), registry).to_list()
        assert len(matches) == 3

    def test_checkpoints_not_applicable_are_skipped(self):
        registry = _registry({**_regex_checkpoint(r"foo"), "file_types": ["*.py"]})
        assert evaluate(Document("a.js", "foo"), registry).to_list() == []
        assert len(evaluate(Document("a.py", "foo"), registry).to_list()) == 1


class TestEvaluateFiles:
    """Reading and evaluating files from disk."""

    @pytest.mark.asyncio
    async def test_evaluate_file(self, tmp_path, registry):
        path = tmp_path / "app.py"
        path.write_text(VULNERABLE_PY)
        result = await Evaluator().evaluate_file(path, registry)
        assert result.success
        assert result.file_path == str(path)
        assert len(result.matches) == 5
        assert result.file_size > 0

    @pytest.mark.asyncio
    async def test_missing_file_is_recorded_not_raised(self, tmp_path, registry):
        result = await Evaluator().evaluate_file(tmp_path / "missing.py", registry)
        assert not result.success
        assert "File not found" in result.errors[0]

    @pytest.mark.asyncio
    async def test_batch_keeps_going_after_failure(self, tmp_path, registry):
        good = tmp_path / "app.py"
        good.write_text(VULNERABLE_PY)
        clean = tmp_path / "clean.py"
        clean.write_text(CLEAN_PY)

        results = await Evaluator().evaluate_files(
            [good, tmp_path / "missing.py", clean], registry, max_concurrent=2
        )
        assert [r.success for r in results] == [True, False, True]
        assert len(results[0].matches) == 5
        assert results[2].matches == []

    @pytest.mark.asyncio
    async def test_timeout_recorded_per_file(self, tmp_path, registry):
        class SlowEvaluator(Evaluator):
            async def evaluate_file(self, file_path, registry, timeout_seconds=None):
                await asyncio.sleep(5)

        results = await SlowEvaluator().evaluate_files(
            [tmp_path / "slow.py"], registry, timeout_seconds=0.01
        )
        (result,) = results
        assert not result.success
        assert "timed out" in result.errors[0]

    @pytest.mark.asyncio
    async def test_scan_stops_at_deadline(self, tmp_path, registry):
        path = tmp_path / "app.py"
        path.write_text(VULNERABLE_PY)
        result = await Evaluator().evaluate_file(path, registry, timeout_seconds=0)
        assert not result.success
        assert "timed out" in result.errors[0]
        assert result.matches == []

    def test_collect_without_deadline_matches_lazy_scan(self, registry):
        document = Document("app.py", VULNERABLE_PY)
        evaluator = Evaluator()
        assert evaluator._collect(document, registry) == evaluator.evaluate(
            document, registry
        ).to_list()

    @pytest.mark.asyncio
    async def test_empty_batch(self, registry):
        assert await Evaluator().evaluate_files([], registry) == []
