"""
Configuration models for the checklist reviewer.
"""

import json
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from ..utils.exceptions import ConfigurationError
from .checkpoint import Checkpoint
from .context import ContextRule, ReviewContext


class ProcessingConfig(BaseModel):
    """Configuration for per-file evaluation."""

    max_concurrent_files: int = Field(
        default=10, ge=1, le=100, description="Maximum concurrent file evaluation"
    )
    max_file_size_mb: float = Field(
        default=10.0, ge=0.1, description="Maximum file size to evaluate (MB)"
    )
    encoding: str = Field(default="utf-8", description="Fallback file encoding")
    detect_encoding: bool = Field(
        default=True, description="Detect file encoding with chardet"
    )
    context_lines: int = Field(
        default=2, ge=0, le=20, description="Source lines around evidence excerpts"
    )
    max_matches_per_checkpoint: int = Field(
        default=50, ge=1, description="Cap on matches per checkpoint per file"
    )
    timeout_seconds: float = Field(
        default=30.0, ge=1.0, description="Timeout for evaluating a single file"
    )


class ReviewConfig(BaseModel):
    """Main configuration for a review run."""

    processing: ProcessingConfig = Field(
        default_factory=ProcessingConfig, description="Processing configuration"
    )
    context: ReviewContext = Field(
        default_factory=ReviewContext, description="Project review context"
    )
    checkpoints: list[Checkpoint] = Field(
        default_factory=list, description="Custom checkpoints"
    )
    context_rules: list[ContextRule] = Field(
        default_factory=list, description="Custom context severity rules"
    )
    checkpoints_file: Optional[Path] = Field(
        None, description="JSON file with additional checkpoints"
    )
    enable_validation: bool = Field(
        default=True, description="Validate the final finding list"
    )

    @field_validator("checkpoints_file", mode="before")
    @classmethod
    def convert_to_path(cls, v):
        """Convert string paths to Path objects."""
        if v is None:
            return v
        return Path(v) if not isinstance(v, Path) else v

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ReviewConfig":
        """Create configuration from a plain mapping."""
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            first = e.errors()[0] if e.errors() else {}
            field = ".".join(str(part) for part in first.get("loc", ()))
            raise ConfigurationError(
                f"Invalid configuration: {first.get('msg', str(e))}",
                config_field=field or None,
            ) from e

    @classmethod
    def from_file(cls, path: Path) -> "ReviewConfig":
        """Load configuration from a JSON file."""
        path = Path(path)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except OSError as e:
            raise ConfigurationError(
                f"Cannot read configuration file: {e}",
                config_field="path",
                config_value=path,
            ) from e
        except json.JSONDecodeError as e:
            raise ConfigurationError(
                f"Configuration file is not valid JSON: {e}",
                config_field="path",
                config_value=path,
            ) from e

        if not isinstance(data, dict):
            raise ConfigurationError(
                "Configuration root must be a JSON object", config_value=path
            )

        # Resolve the checkpoints file relative to the config file
        checkpoints_file = data.get("checkpoints_file")
        if checkpoints_file and not Path(checkpoints_file).is_absolute():
            data = {**data, "checkpoints_file": path.parent / checkpoints_file}

        return cls.from_dict(data)

    def validate_paths(self) -> list[str]:
        """Validate that referenced paths exist."""
        errors = []
        if self.checkpoints_file is not None:
            if not self.checkpoints_file.exists():
                errors.append(f"Checkpoints file does not exist: {self.checkpoints_file}")
            elif not self.checkpoints_file.is_file():
                errors.append(f"Checkpoints path is not a file: {self.checkpoints_file}")
        return errors
