"""
Pytest configuration and fixtures for AccessiMind AI tests.

Providers are scripted in-process doubles; no test talks to the network
or actually sleeps through a backoff.
"""
import sys
from pathlib import Path
from typing import Any

import pytest

# Add package root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from accessimind.config import StaticSettingsSource
from accessimind.core.providers import TextGenerationProvider
from accessimind.core.resilience import ResilientGenerator
from accessimind.schemas.settings import AISettings
from tests.utils.providers import TEST_API_KEY, SleepRecorder


# ============================================
# Fixtures
# ============================================

@pytest.fixture
def ai_settings() -> AISettings:
    """Settings snapshot with a valid-looking key and the default model."""
    return AISettings(api_key=TEST_API_KEY, model="gemini-2.5-flash")


@pytest.fixture
def settings_source(ai_settings: AISettings) -> StaticSettingsSource:
    """SettingsSource returning the ai_settings snapshot."""
    return StaticSettingsSource(ai_settings)


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def make_generator(sleep_recorder: SleepRecorder):
    """Build a ResilientGenerator with recorded sleeps and zero jitter."""

    def _make(provider: TextGenerationProvider, **kwargs: Any) -> ResilientGenerator:
        kwargs.setdefault("sleep", sleep_recorder)
        kwargs.setdefault("jitter", lambda low, high: 0.0)
        return ResilientGenerator(provider, **kwargs)

    return _make


# ============================================
# Pytest Configuration
# ============================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "fast: Fast unit tests (no external API calls)"
    )
    config.addinivalue_line(
        "markers", "slow: Slow tests (real timeouts)"
    )
