"""
Checklist Reviewer

Applies code-review checklists to source files: regex and heuristic
detectors produce matches, which are classified by severity, assembled
into findings and deduplicated into an ordered report.
"""

__version__ = "1.0.0"

from .core.engine import ReviewEngine, ReviewResult
from .core.evaluator import Document
from .core.registry import PatternRegistry
from .models.checkpoint import Checkpoint
from .models.config import ReviewConfig
from .models.finding import Finding
from .models.severity import Severity

__all__ = [
    "ReviewEngine",
    "ReviewResult",
    "ReviewConfig",
    "PatternRegistry",
    "Document",
    "Checkpoint",
    "Finding",
    "Severity",
]
