"""
Content reading utilities with encoding detection and preprocessing.
"""

import re
import time
import unicodedata
from dataclasses import dataclass
from pathlib import Path

import chardet

from ..utils.exceptions import FileReadError
from ..utils.logging import LoggerMixin


@dataclass
class ReadResult:
    """Result of content reading operation."""

    content: str
    encoding: str
    file_size: int
    read_time_ms: float
    preprocessing_applied: list[str]


class ContentReader(LoggerMixin):
    """Reads source files with encoding detection and light normalisation."""

    def __init__(
        self,
        fallback_encoding: str = "utf-8",
        detect_encoding: bool = True,
        max_detection_bytes: int = 10000,
        max_file_size_mb: float = 10.0,
        enable_preprocessing: bool = True,
    ):
        """Initialise content reader with configuration."""
        self.fallback_encoding = fallback_encoding
        self.detect_encoding = detect_encoding
        self.max_detection_bytes = max_detection_bytes
        self.max_file_size_bytes = int(max_file_size_mb * 1024 * 1024)
        self.enable_preprocessing = enable_preprocessing

    async def read_file(self, file_path: Path) -> ReadResult:
        """Read file content with encoding detection and preprocessing."""
        start_time = time.perf_counter()

        if not file_path.exists():
            raise FileReadError(f"File not found: {file_path}", str(file_path))

        if not file_path.is_file():
            raise FileReadError(f"Not a regular file: {file_path}", str(file_path))

        encoding = self.fallback_encoding
        try:
            file_size = file_path.stat().st_size
            if file_size > self.max_file_size_bytes:
                raise FileReadError(
                    f"File too large: {file_path} ({file_size / 1024 / 1024:.1f} MB)",
                    str(file_path),
                )

            if self.detect_encoding:
                encoding = await self._detect_encoding(file_path)

            content = await self._read_with_encoding(file_path, encoding)

            preprocessing_applied = []
            if self.enable_preprocessing:
                content, preprocessing_applied = self._preprocess_content(content)

            read_time = (time.perf_counter() - start_time) * 1000

            self.log_debug(
                "File read successfully",
                file_path=str(file_path),
                encoding=encoding,
                size_bytes=file_size,
                read_time_ms=round(read_time, 2),
            )

            return ReadResult(
                content=content,
                encoding=encoding,
                file_size=file_size,
                read_time_ms=read_time,
                preprocessing_applied=preprocessing_applied,
            )

        except UnicodeDecodeError as e:
            raise FileReadError(
                f"Encoding error reading {file_path}: {e}", str(file_path), encoding
            ) from e
        except OSError as e:
            raise FileReadError(f"OS error reading {file_path}: {e}", str(file_path)) from e

    async def _detect_encoding(self, file_path: Path) -> str:
        """Detect file encoding using chardet."""
        with file_path.open("rb") as f:
            raw_data = f.read(self.max_detection_bytes)

        if not raw_data:
            return self.fallback_encoding

        detection_result = chardet.detect(raw_data)
        detected_encoding = detection_result.get("encoding")
        confidence = detection_result.get("confidence") or 0.0

        # Pure ASCII is a subset of the fallback
        if detected_encoding and detected_encoding.lower() == "ascii":
            return self.fallback_encoding

        if detected_encoding and confidence > 0.7:
            self.log_debug(
                "Encoding detected",
                file_path=str(file_path),
                encoding=detected_encoding,
                confidence=confidence,
            )
            return detected_encoding

        self.log_debug(
            "Low confidence encoding detection, using fallback",
            file_path=str(file_path),
            detected=detected_encoding,
            confidence=confidence,
            fallback=self.fallback_encoding,
        )
        return self.fallback_encoding

    async def _read_with_encoding(self, file_path: Path, encoding: str) -> str:
        """Read file content with specified encoding."""
        try:
            return file_path.read_text(encoding=encoding)
        except (UnicodeDecodeError, LookupError):
            if encoding != self.fallback_encoding:
                self.log_warning(
                    "Primary encoding failed, trying fallback",
                    file_path=str(file_path),
                    primary=encoding,
                    fallback=self.fallback_encoding,
                )
                try:
                    return file_path.read_text(encoding=self.fallback_encoding)
                except UnicodeDecodeError:
                    pass
            return file_path.read_text(encoding=self.fallback_encoding, errors="replace")

    def _preprocess_content(self, content: str) -> tuple[str, list[str]]:
        """
        Normalise content without shifting line numbers.

        Line endings, the BOM and Unicode composition are normalised. Lines are
        never added or removed, so reported line numbers match the file.
        """
        preprocessing_applied = []

        if content.startswith("\ufeff"):
            content = content[1:]
            preprocessing_applied.append("removed_bom")

        if "\r" in content:
            content = re.sub(r"\r\n?", "\n", content)
            preprocessing_applied.append("normalized_line_endings")

        normalized_content = unicodedata.normalize("NFC", content)
        if normalized_content != content:
            content = normalized_content
            preprocessing_applied.append("unicode_normalization")

        if preprocessing_applied:
            self.log_debug("Content preprocessing applied", changes=preprocessing_applied)

        return content, preprocessing_applied
