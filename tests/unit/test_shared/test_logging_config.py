"""Tests for structured logging setup."""

import logging

import structlog

from article_pipeline.shared.logging_config import configure_logging


class TestConfigureLogging:

    def teardown_method(self):
        structlog.reset_defaults()

    def test_sets_root_level_and_quiets_http_libraries(self, test_settings):
        configure_logging(test_settings)

        assert logging.getLogger().level == logging.DEBUG
        assert logging.getLogger("urllib3").level == logging.WARNING
        assert logging.getLogger("requests").level == logging.WARNING

    def test_json_renderer_by_default(self, test_settings):
        configure_logging(test_settings)

        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)

    def test_console_renderer(self, test_settings):
        test_settings.LOG_FORMAT = "console"
        configure_logging(test_settings)

        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)
