"""
Pytest configuration and shared fixtures.

This file contains pytest configuration and fixtures that are available
to all test modules in the project.
"""

import logging
import io
import os
import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest

# Import all fixtures from the fixtures module
from tests.fixtures import *


def pytest_configure(config):
    """Configure pytest settings."""
    # Register custom markers
    config.addinivalue_line(
        "markers", "unit: Unit tests that test individual components in isolation"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests that test component interactions"
    )
    config.addinivalue_line(
        "markers", "config: Configuration-related tests"
    )
    config.addinivalue_line(
        "markers", "filtering: Rule compilation and request matching tests"
    )
    config.addinivalue_line(
        "markers", "auth: Credential injection tests"
    )


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location and content."""
    for item in items:
        # Mark tests based on file location
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)

        # Mark tests based on function name patterns
        if "config" in item.name:
            item.add_marker(pytest.mark.config)

        if "rule" in item.name or "match" in item.name or "filter" in item.name:
            item.add_marker(pytest.mark.filtering)

        if "auth" in item.name:
            item.add_marker(pytest.mark.auth)


@pytest.fixture(autouse=True)
def isolate_tests():
    """Isolate tests from each other by resetting cached settings."""
    import rulegate.config

    rulegate.config._filter_settings = None

    yield

    rulegate.config._filter_settings = None


@pytest.fixture
def temp_directory():
    """Provide a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def mock_environment_variables():
    """Provide a context manager for mocking environment variables."""
    def _mock_env(**kwargs):
        return patch.dict(os.environ, kwargs)

    return _mock_env


@pytest.fixture
def capture_logs():
    """Capture log output during tests."""
    # Create a string buffer to capture logs
    log_buffer = io.StringIO()

    # Create a handler that writes to our buffer
    handler = logging.StreamHandler(log_buffer)
    handler.setLevel(logging.DEBUG)

    # Add handler to the package logger
    package_logger = logging.getLogger("rulegate")
    package_logger.addHandler(handler)
    original_level = package_logger.level
    package_logger.setLevel(logging.DEBUG)

    yield log_buffer

    # Clean up
    package_logger.removeHandler(handler)
    package_logger.setLevel(original_level)
