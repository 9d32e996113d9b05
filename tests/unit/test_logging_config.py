"""
Unit tests for the shared structlog setup.

Run: pytest tests/unit/test_logging_config.py -v
"""

import logging
import pytest
import structlog

from config import Settings, configure_logging
from config.logging_config import build_processors


def _settings(**overrides) -> Settings:
    values = {"supabase_url": "https://test-project.supabase.co", "supabase_key": "test-anon-key"}
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    level = root.level
    yield
    root.setLevel(level)
    structlog.reset_defaults()


class TestBuildProcessors:
    """Tests for build_processors()"""

    def test_production_renders_json(self):
        processors = build_processors(_settings(environment="production"))

        assert isinstance(processors[-1], structlog.processors.JSONRenderer)

    def test_development_renders_console(self):
        processors = build_processors(_settings(environment="development"))

        assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)


class TestConfigureLogging:
    """Tests for configure_logging()"""

    def test_uses_settings_level(self, restore_logging):
        configure_logging(_settings(log_level="DEBUG", environment="production"))

        assert logging.getLogger().level == logging.DEBUG
        assert isinstance(structlog.get_config()["processors"][-1], structlog.processors.JSONRenderer)

    def test_level_override(self, restore_logging):
        """The CLI quiets per-batch events by passing WARNING."""
        configure_logging(_settings(log_level="DEBUG"), level="WARNING")

        assert logging.getLogger().level == logging.WARNING
