"""
Utility modules for the checklist reviewer.
"""

from .exceptions import (
    CheckpointNotFoundError,
    ConfigurationError,
    DetectorError,
    FileProcessingError,
    FileReadError,
    FindingSchemaError,
    RegistryError,
    ReviewEngineError,
)
from .logging import LoggerMixin, get_logger, setup_logging

__all__ = [
    "ReviewEngineError",
    "ConfigurationError",
    "RegistryError",
    "CheckpointNotFoundError",
    "DetectorError",
    "FileProcessingError",
    "FileReadError",
    "FindingSchemaError",
    "LoggerMixin",
    "setup_logging",
    "get_logger",
]
