"""
Unit tests for logging configuration.
"""

from unittest.mock import patch

from pattern_engine.utils.logging_config import DEFAULT_FORMAT, configure_logging


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_uses_file_config_when_set(self, monkeypatch):
        """Test LOGGING_CONFIG points at a fileConfig file."""
        monkeypatch.setenv('LOGGING_CONFIG', '/etc/pattern_engine/logging.ini')

        with patch('logging.config.fileConfig') as file_config, patch('logging.basicConfig') as basic_config:
            configure_logging()

        file_config.assert_called_once_with('/etc/pattern_engine/logging.ini', disable_existing_loggers=False)
        basic_config.assert_not_called()

    def test_uses_log_level(self, monkeypatch):
        """Test LOG_LEVEL sets the basicConfig level."""
        monkeypatch.delenv('LOGGING_CONFIG', raising=False)
        monkeypatch.setenv('LOG_LEVEL', 'debug')

        with patch('logging.basicConfig') as basic_config:
            configure_logging()

        basic_config.assert_called_once_with(level='DEBUG', format=DEFAULT_FORMAT)

    def test_defaults_to_info(self, monkeypatch):
        """Test INFO is used when nothing is configured."""
        monkeypatch.delenv('LOGGING_CONFIG', raising=False)
        monkeypatch.delenv('LOG_LEVEL', raising=False)

        with patch('logging.basicConfig') as basic_config:
            configure_logging()

        basic_config.assert_called_once_with(level='INFO', format=DEFAULT_FORMAT)

    def test_explicit_level_wins(self, monkeypatch):
        """Test an explicit level overrides LOG_LEVEL."""
        monkeypatch.delenv('LOGGING_CONFIG', raising=False)
        monkeypatch.setenv('LOG_LEVEL', 'ERROR')

        with patch('logging.basicConfig') as basic_config:
            configure_logging(level='warning')

        basic_config.assert_called_once_with(level='WARNING', format=DEFAULT_FORMAT)
