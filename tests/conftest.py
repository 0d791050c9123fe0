"""
Pytest configuration and fixtures for all tests.

Puts the project root on the Python path so the tfs_bridge package
imports without installation.
"""

import sys
from pathlib import Path

project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

import pytest

from tfs_bridge.stub_services import StubCoreService, StubWorkItemTrackingService
from tfs_bridge.utils.metrics import MetricsCollector


@pytest.fixture
def collector():
    """A fresh metrics collector per test."""
    return MetricsCollector()


@pytest.fixture
def core_service():
    """Directory stub with the sample projects, teams and members."""
    return StubCoreService()


@pytest.fixture
def tracking_service():
    """Work item tracking stub with the sample tasks and revisions."""
    return StubWorkItemTrackingService()
