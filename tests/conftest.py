"""Shared pytest configuration and fixtures for the test suite.

This module centralizes:
- Path setup (so nodelink/, scripts/ and tests.helpers import without installation)
- Pytest markers for test categorization (unit, property, integration)
- Small base graphs reused across engine, clustering and view tests
"""
from __future__ import annotations

import sys
from pathlib import Path

import pytest


# ==============================================================================
# Path Setup - Ensures nodelink/ is importable
# ==============================================================================

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from nodelink.graph.base import BaseGraph  # noqa: E402
from tests.helpers.graphs import SCENARIO_EDGES, line_graph, make_graph  # noqa: E402


# ==============================================================================
# Pytest Configuration
# ==============================================================================

def pytest_configure(config):
    """Register custom markers for test categorization."""
    config.addinivalue_line(
        "markers",
        "unit: Fast tests with no I/O",
    )
    config.addinivalue_line(
        "markers",
        "property: Hypothesis property-based tests",
    )
    config.addinivalue_line(
        "markers",
        "integration: Tests touching the file system or the CLI",
    )


# ==============================================================================
# Graph Fixtures
# ==============================================================================

@pytest.fixture
def scenario_base() -> BaseGraph:
    return make_graph(4, SCENARIO_EDGES)


@pytest.fixture
def line_base() -> BaseGraph:
    return line_graph()


@pytest.fixture
def recorder():
    """Listener that keeps every event it receives."""

    class Recorder:
        def __init__(self):
            self.events = []

        def __call__(self, event):
            self.events.append(event)

        @property
        def names(self):
            return [event.name for event in self.events]

    return Recorder()
