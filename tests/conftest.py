"""Pytest configuration and shared fixtures."""

import pytest

# The timecircuits plugin is registered via a ``pytest11`` entry point
# (pyproject.toml) for external consumers.  In our own test suite we
# disable it (``-p no:timecircuits``) and load it explicitly here so
# that its imports happen after ``pytest-cov`` starts tracing.
pytest_plugins = ["timecircuits.testing._plugin"]


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests (fast, no external dependencies)"
    )
