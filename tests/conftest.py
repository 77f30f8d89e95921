"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import sys
from datetime import UTC, datetime
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from learner_graph.learning.engine import KnowledgeGraphEngine  # noqa: E402


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def now():
    """A fixed, timezone-aware reference time."""
    return datetime(2026, 3, 2, 9, 30, tzinfo=UTC)


@pytest.fixture
def engine():
    """A fresh engine for a single learner."""
    return KnowledgeGraphEngine("learner-001")


@pytest.fixture
def algebra_interaction():
    """Keyword arguments for an algebra interaction; override per test."""

    def _make(**overrides):
        params = {
            "concept_id": "c2",
            "concept_name": "Linear expressions",
            "subject": "Mathematics",
            "topic": "Algebra",
            "is_correct": False,
            "student_answer": "2x",
            "expected_answer": "2x+1",
            "student_confidence": 0.5,
            "session_id": "session-1",
            "mode": "PRACTICE",
        }
        params.update(overrides)
        return params

    return _make
