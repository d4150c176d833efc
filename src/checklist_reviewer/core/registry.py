"""
Registry of checkpoints and their compiled detectors.
"""

import json
import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from ..models.checkpoint import Checkpoint, DetectorKind
from ..models.severity import Severity
from ..utils.exceptions import CheckpointNotFoundError, RegistryError
from ..utils.logging import LoggerMixin
from .catalogue import default_checkpoints


@dataclass(frozen=True)
class RegisteredCheckpoint:
    """A checkpoint together with its compiled detector."""

    checkpoint: Checkpoint
    compiled: Optional[re.Pattern]

    @property
    def id(self) -> str:
        return self.checkpoint.id

    @property
    def kind(self) -> DetectorKind:
        return self.checkpoint.detector.kind

    @property
    def default_severity(self) -> Severity:
        return self.checkpoint.default_severity

    @property
    def category(self) -> str:
        return self.checkpoint.category


class PatternRegistry(LoggerMixin):
    """Holds named detectors per checklist checkpoint."""

    def __init__(self, checkpoints: Optional[Iterable[Checkpoint]] = None):
        self._entries: dict[str, RegisteredCheckpoint] = {}
        if checkpoints:
            self.register_many(checkpoints)

    @classmethod
    def default(cls) -> "PatternRegistry":
        """Registry loaded with the built-in catalogue."""
        return cls(default_checkpoints())

    def register(self, checkpoint: Checkpoint) -> RegisteredCheckpoint:
        """Register a checkpoint, compiling its detector."""
        if checkpoint.id in self._entries:
            raise RegistryError(
                f"Checkpoint already registered: {checkpoint.id}", checkpoint.id
            )

        try:
            compiled = checkpoint.detector.compile()
        except re.error as e:
            raise RegistryError(
                f"Cannot compile detector for {checkpoint.id}: {e}", checkpoint.id
            ) from e

        entry = RegisteredCheckpoint(checkpoint=checkpoint, compiled=compiled)
        self._entries[checkpoint.id] = entry
        return entry

    def register_many(self, checkpoints: Iterable[Checkpoint]) -> int:
        """Register several checkpoints. Returns the number registered."""
        count = 0
        for checkpoint in checkpoints:
            self.register(checkpoint)
            count += 1

        self.log_debug("Checkpoints registered", count=count, total=len(self))
        return count

    def lookup(self, checkpoint_id: str) -> RegisteredCheckpoint:
        """
        Look up a checkpoint by id.

        Raises:
            CheckpointNotFoundError: If the id is not registered
        """
        entry = self._entries.get(checkpoint_id.strip().upper())
        if entry is None:
            raise CheckpointNotFoundError(checkpoint_id)
        return entry

    def get(self, checkpoint_id: str) -> Optional[RegisteredCheckpoint]:
        return self._entries.get(checkpoint_id.strip().upper())

    def ids(self) -> list[str]:
        return list(self._entries)

    def applicable(self, file_path: str) -> list[RegisteredCheckpoint]:
        """Checkpoints whose file types match the given path."""
        return [
            entry
            for entry in self._entries.values()
            if entry.checkpoint.applies_to(file_path)
        ]

    def load_file(self, path: Path) -> int:
        """
        Load checkpoints from a JSON file.

        The file holds either a list of checkpoint objects or an object with
        a "checkpoints" list.
        """
        path = Path(path)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise RegistryError(f"Cannot load checkpoints from {path}: {e}") from e

        if isinstance(data, dict):
            data = data.get("checkpoints", [])
        if not isinstance(data, list):
            raise RegistryError(f"Checkpoints file must hold a list: {path}")

        checkpoints = []
        for index, item in enumerate(data):
            try:
                checkpoints.append(Checkpoint.model_validate(item))
            except ValidationError as e:
                raise RegistryError(
                    f"Invalid checkpoint at index {index} in {path}: {e}",
                    item.get("id") if isinstance(item, dict) else None,
                ) from e

        count = self.register_many(checkpoints)
        self.log_info("Checkpoints loaded", path=str(path), count=count)
        return count

    def __contains__(self, checkpoint_id: object) -> bool:
        if not isinstance(checkpoint_id, str):
            return False
        return checkpoint_id.strip().upper() in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[RegisteredCheckpoint]:
        return iter(list(self._entries.values()))
