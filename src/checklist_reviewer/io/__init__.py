"""
Input/output helpers: reading source files and formatting findings.
"""

from .content_reader import ContentReader, ReadResult
from .markdown import format_finding, format_findings, format_summary_table

__all__ = [
    "ContentReader",
    "ReadResult",
    "format_finding",
    "format_findings",
    "format_summary_table",
]
