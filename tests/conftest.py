"""Shared fixtures for checklist reviewer tests."""

import pytest

from checklist_reviewer.core.registry import PatternRegistry
from checklist_reviewer.models.finding import Finding
from checklist_reviewer.models.severity import Severity

VULNERABLE_PY = '''import subprocess

API_KEY = "sk_live_abcdef1234567890"


def load_user(cursor, user_id):
    cursor.execute(f"SELECT * FROM users WHERE id = {user_id}")
    return cursor.fetchone()


def run(cmd):
    print("running", cmd)
    return subprocess.run(cmd, shell=True)
'''

CLEAN_PY = '''# SPDX-License-Identifier: MIT
import logging

logger = logging.getLogger(__name__)


def add(a, b):
    return a + b
'''


@pytest.fixture
def registry():
    """Registry loaded with the built-in catalogue."""
    return PatternRegistry.default()


@pytest.fixture
def make_finding():
    """Factory for findings with sensible defaults."""

    def _make(**overrides):
        values = {
            "severity": Severity.MEDIUM,
            "title": "Example finding",
            "agent_id": "agent-a",
            "file_path": "app.py",
            "line_range": "10-15",
            "category": "Injection",
            "description": "Something is wrong",
            "evidence": "cursor.execute(query)",
            "recommendation": "Fix it",
        }
        values.update(overrides)
        return Finding(**values)

    return _make
