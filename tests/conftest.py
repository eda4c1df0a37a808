"""Pytest configuration and fixtures."""

import os

import pytest


@pytest.fixture(scope="session", autouse=True)
def setup_test_env():
    """Set up test environment variables."""
    os.environ["ANTHROPIC_API_KEY"] = "test-anthropic-key"
    os.environ["CREW_ENGINE_ENV"] = "test"
    os.environ["TONE_EDIT_ENABLED"] = "false"


@pytest.fixture
def profile():
    """Sample organization profile."""
    from crew_engine.core.schemas_crew import OrganizationProfile
    from tests.fixtures_crew import PROFILE_DATA

    return OrganizationProfile(**PROFILE_DATA)
