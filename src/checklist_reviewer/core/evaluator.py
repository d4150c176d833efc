"""
Evaluation of documents against registered checkpoints.
"""

import asyncio
import bisect
import re
import time
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from ..io.content_reader import ContentReader
from ..models.checkpoint import DetectorKind
from ..models.config import ProcessingConfig
from ..models.match import LineRange, RawMatch
from ..utils.exceptions import (
    DetectorError,
    EvaluationTimeoutError,
    ReviewEngineError,
    handle_review_error,
)
from ..utils.logging import LoggerMixin
from .registry import PatternRegistry, RegisteredCheckpoint


class Document:
    """Source text with a line index for offset to line conversion."""

    def __init__(self, path: str, content: str):
        self.path = str(path)
        self.content = content
        self._line_starts = [0]
        for found in re.finditer("\n", content):
            self._line_starts.append(found.end())
        self._lines = content.split("\n")

    @property
    def line_count(self) -> int:
        return len(self._lines)

    def line_of(self, offset: int) -> int:
        """1-based line number holding a character offset."""
        return bisect.bisect_right(self._line_starts, offset)

    def line_range_of(self, start: int, end: int) -> LineRange:
        """Lines covered by the span [start, end)."""
        last = end - 1 if end > start else start
        return LineRange(start=self.line_of(start), end=self.line_of(last))

    def lines(self, start: int, end: int) -> list[str]:
        """Text of lines start..end (1-based, inclusive, clamped)."""
        start = max(1, start)
        end = min(self.line_count, end)
        return self._lines[start - 1 : end]

    def excerpt(self, line_range: LineRange, context_lines: int = 0) -> str:
        """Numbered excerpt of a line range with surrounding context."""
        first = max(1, line_range.start - context_lines)
        last = min(self.line_count, line_range.end + context_lines)
        width = len(str(last))
        return "\n".join(
            f"{number:>{width}} | {text}"
            for number, text in zip(range(first, last + 1), self.lines(first, last))
        )

    def __repr__(self) -> str:
        return f"Document(path={self.path!r}, lines={self.line_count})"


class MatchSequence:
    """
    Lazy, restartable sequence of raw matches for one document.

    Nothing is scanned until iteration starts, and every new iterator
    rescans the document from the beginning.
    """

    def __init__(
        self, evaluator: "Evaluator", document: Document, registry: PatternRegistry
    ):
        self._evaluator = evaluator
        self._document = document
        self._registry = registry

    def __iter__(self) -> Iterator[RawMatch]:
        for entry in self._registry.applicable(self._document.path):
            yield from self._evaluator.scan(self._document, entry)

    def to_list(self) -> list[RawMatch]:
        return list(self)


@dataclass
class EvaluationResult:
    """Result of evaluating a single file."""

    file_path: str
    matches: list[RawMatch] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    processing_time_ms: float = 0.0
    file_size: int = 0

    @property
    def success(self) -> bool:
        return not self.errors


class Evaluator(LoggerMixin):
    """Applies checkpoint detectors to documents and emits raw matches."""

    def __init__(
        self,
        context_lines: int = 2,
        max_matches_per_checkpoint: int = 50,
        content_reader: Optional[ContentReader] = None,
    ):
        self.context_lines = context_lines
        self.max_matches_per_checkpoint = max_matches_per_checkpoint
        self.content_reader = content_reader or ContentReader()

    @classmethod
    def from_config(cls, config: ProcessingConfig) -> "Evaluator":
        return cls(
            context_lines=config.context_lines,
            max_matches_per_checkpoint=config.max_matches_per_checkpoint,
            content_reader=ContentReader(
                fallback_encoding=config.encoding,
                detect_encoding=config.detect_encoding,
                max_file_size_mb=config.max_file_size_mb,
            ),
        )

    def evaluate(self, document: Document, registry: PatternRegistry) -> MatchSequence:
        """Return the lazy match sequence for a document."""
        return MatchSequence(self, document, registry)

    def scan(self, document: Document, entry: RegisteredCheckpoint) -> Iterator[RawMatch]:
        """Run one checkpoint's detector over a document."""
        if entry.kind == DetectorKind.MANUAL:
            yield RawMatch(
                checkpoint_id=entry.id,
                file_path=document.path,
                detector_kind=entry.kind,
                manual_review=True,
            )
            return

        if entry.kind == DetectorKind.ABSENCE:
            if self._search(document, entry) is None:
                line_range = LineRange(start=1, end=1)
                yield RawMatch(
                    checkpoint_id=entry.id,
                    file_path=document.path,
                    line_range=line_range,
                    source_lines="\n".join(document.lines(1, 1)),
                    context=document.excerpt(line_range, self.context_lines),
                    detector_kind=entry.kind,
                )
            return

        emitted = 0
        try:
            for found in entry.compiled.finditer(document.content):
                if found.start() == found.end():
                    continue
                if emitted >= self.max_matches_per_checkpoint:
                    self.log_warning(
                        "Match cap reached, remaining matches dropped",
                        checkpoint_id=entry.id,
                        file_path=document.path,
                        cap=self.max_matches_per_checkpoint,
                    )
                    break

                line_range = document.line_range_of(found.start(), found.end())
                yield RawMatch(
                    checkpoint_id=entry.id,
                    file_path=document.path,
                    line_range=line_range,
                    matched_text=found.group(0),
                    source_lines="\n".join(
                        document.lines(line_range.start, line_range.end)
                    ),
                    start_position=found.start(),
                    end_position=found.end(),
                    context=document.excerpt(line_range, self.context_lines),
                    detector_kind=entry.kind,
                )
                emitted += 1
        except (re.error, RecursionError) as e:
            raise DetectorError(
                f"Detector failed: {e}",
                checkpoint_id=entry.id,
                content_snippet=document.content[:200],
            ) from e

    def _search(
        self, document: Document, entry: RegisteredCheckpoint
    ) -> Optional[re.Match]:
        try:
            return entry.compiled.search(document.content)
        except (re.error, RecursionError) as e:
            raise DetectorError(
                f"Detector failed: {e}",
                checkpoint_id=entry.id,
                content_snippet=document.content[:200],
            ) from e

    def _collect(
        self,
        document: Document,
        registry: PatternRegistry,
        deadline: Optional[float] = None,
        timeout_seconds: Optional[float] = None,
    ) -> list[RawMatch]:
        """Scan a document eagerly, stopping once the deadline passes."""
        matches = []
        for entry in registry.applicable(document.path):
            self._check_deadline(document, deadline, timeout_seconds)
            for match in self.scan(document, entry):
                matches.append(match)
                self._check_deadline(document, deadline, timeout_seconds)
        return matches

    @staticmethod
    def _check_deadline(
        document: Document, deadline: Optional[float], timeout_seconds: Optional[float]
    ) -> None:
        if deadline is not None and time.monotonic() >= deadline:
            raise EvaluationTimeoutError(
                f"Evaluation timed out: {document.path}",
                file_path=document.path,
                timeout_seconds=timeout_seconds,
            )

    async def load_document(self, file_path: Path) -> Document:
        """Read a file into a Document."""
        read_result = await self.content_reader.read_file(file_path)
        return Document(str(file_path), read_result.content)

    async def evaluate_file(
        self,
        file_path: Path,
        registry: PatternRegistry,
        timeout_seconds: Optional[float] = None,
    ) -> EvaluationResult:
        """
        Read and evaluate a single file.

        Scanning runs in a worker thread. With a timeout, the thread checks a
        deadline between checkpoints and between matches and stops once it
        passes. A single regex search in progress is not interrupted.
        """
        start_time = time.perf_counter()
        deadline = None if timeout_seconds is None else time.monotonic() + timeout_seconds
        result = EvaluationResult(file_path=str(file_path))

        try:
            document = await self.load_document(file_path)
            result.file_size = len(document.content.encode("utf-8"))
            # Regex scanning is CPU bound; keep the event loop free
            result.matches = await asyncio.to_thread(
                self._collect, document, registry, deadline, timeout_seconds
            )
        except ReviewEngineError as e:
            result.errors.append(str(e))
            self.log_error("File evaluation", e, file_path=str(file_path))
        except OSError as e:
            error = handle_review_error(e, {"file_path": str(file_path)})
            result.errors.append(str(error))
            self.log_error("File evaluation", error, file_path=str(file_path))

        result.processing_time_ms = (time.perf_counter() - start_time) * 1000
        self.log_debug(
            "File evaluated",
            file_path=str(file_path),
            matches=len(result.matches),
            processing_time_ms=round(result.processing_time_ms, 2),
        )
        return result

    async def evaluate_files(
        self,
        file_paths: list[Path],
        registry: PatternRegistry,
        max_concurrent: int = 10,
        timeout_seconds: Optional[float] = None,
    ) -> list[EvaluationResult]:
        """Evaluate multiple files concurrently."""
        if not file_paths:
            return []

        semaphore = asyncio.Semaphore(max_concurrent)

        async def evaluate_with_semaphore(file_path: Path) -> EvaluationResult:
            async with semaphore:
                try:
                    return await asyncio.wait_for(
                        self.evaluate_file(file_path, registry, timeout_seconds),
                        timeout_seconds,
                    )
                except asyncio.TimeoutError:
                    error = EvaluationTimeoutError(
                        f"Evaluation timed out: {file_path}",
                        file_path=str(file_path),
                        timeout_seconds=timeout_seconds,
                    )
                    self.log_error("File evaluation", error)
                    return EvaluationResult(
                        file_path=str(file_path), errors=[str(error)]
                    )

        tasks = [evaluate_with_semaphore(Path(file_path)) for file_path in file_paths]
        results = await asyncio.gather(*tasks)

        failed = sum(1 for result in results if not result.success)
        self.log_info(
            "Batch evaluation completed",
            total_files=len(file_paths),
            successful=len(results) - failed,
            failed=failed,
        )
        return list(results)


def evaluate(document: Document, registry: PatternRegistry) -> MatchSequence:
    """Evaluate a document with default evaluator settings."""
    return Evaluator().evaluate(document, registry)
