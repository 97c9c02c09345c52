"""
Test Configuration
==================

Pytest configuration with fixtures shared by unit and integration tests.
"""

import os
from typing import Generator

import pytest

# Settings are read from the environment, so set it before templater is imported
os.environ.setdefault("TEMPLATER_ENVIRONMENT", "testing")
os.environ.setdefault("TEMPLATER_LOG_LEVEL", "DEBUG")

from templater.config.logging import setup_logging
from templater.config.settings import Settings, reload_settings
from templater.core.providers.registry import ProviderRegistry
from templater.models.schemas import ExecutionPolicy, FailureCascade, LevelStrategy

from tests.utils.mocks import RecordingProvider


@pytest.fixture(scope="session", autouse=True)
def test_settings() -> Generator[Settings, None, None]:
    """Settings used for the whole test session, with templater logging enabled."""
    settings = reload_settings()
    setup_logging(settings)
    yield settings


@pytest.fixture
def registry() -> ProviderRegistry:
    """Empty provider registry."""
    return ProviderRegistry()


@pytest.fixture
def greeter() -> RecordingProvider:
    """Provider answering ``{"world": "Al [world <index>]"}`` per batch entry."""
    return RecordingProvider(lambda arguments, index: {"world": f"Al [world {index}]"})


@pytest.fixture
def longest_path_policy() -> ExecutionPolicy:
    return ExecutionPolicy(
        level_strategy=LevelStrategy.LONGEST_PATH, failure_cascade=FailureCascade.TRANSITIVE
    )


@pytest.fixture
def legacy_policy() -> ExecutionPolicy:
    """Single-hop levels with direct-children pruning."""
    return ExecutionPolicy(
        level_strategy=LevelStrategy.SINGLE_HOP, failure_cascade=FailureCascade.DIRECT
    )
