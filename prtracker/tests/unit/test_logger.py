from unittest.mock import patch

import pytest

from prtracker.config import settings
from prtracker.utils.logger import logger, setup_logger


@pytest.fixture(autouse=True)
def restore_handlers():
    handlers = list(logger.handlers)
    yield
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    for handler in handlers:
        logger.addHandler(handler)


@patch("prtracker.config.settings.LOG_DRIVER", "console")
def test_console_driver(capsys):
    """Test that the console driver routes logs to stdout and stderr correctly."""
    setup_logger()

    logger.debug("Fetch #1 started")
    logger.info("Fetch #1 rendered 3 rows")
    logger.warning("Could not fetch reviews")
    logger.error("Fetch #2 failed")

    captured = capsys.readouterr()
    assert "Fetch #1 started" in captured.out
    assert "Fetch #1 rendered 3 rows" in captured.out
    assert "Could not fetch reviews" in captured.err
    assert "Fetch #2 failed" in captured.err
    assert "Fetch #2 failed" not in captured.out


@patch("prtracker.config.settings.LOG_DRIVER", "console")
def test_setup_is_idempotent():
    setup_logger()
    setup_logger()
    assert len(logger.handlers) == 2


@patch("prtracker.config.settings.LOG_DRIVER", "file")
@patch("prtracker.utils.logger.RotatingFileHandler")
def test_file_driver(mock_rotating_file_handler):
    """Test that the file driver uses RotatingFileHandler."""
    mock_instance = mock_rotating_file_handler.return_value

    setup_logger()

    mock_rotating_file_handler.assert_called_once_with(
        settings.LOG_FILE, maxBytes=10 * 1024 * 1024, backupCount=5
    )
    mock_instance.setFormatter.assert_called_once()
    assert mock_instance in logger.handlers


@patch("prtracker.config.settings.LOG_DRIVER", "syslog")
@patch("prtracker.utils.logger.SysLogHandler")
def test_syslog_driver(mock_syslog_handler):
    """Test that the syslog driver uses SysLogHandler."""
    mock_instance = mock_syslog_handler.return_value

    setup_logger()

    mock_syslog_handler.assert_called_once_with()
    assert mock_instance in logger.handlers


@patch("prtracker.config.settings.LOG_DRIVER", "invalid_driver")
def test_invalid_driver():
    with pytest.raises(ValueError) as excinfo:
        setup_logger()

    assert "Invalid LOG_DRIVER: invalid_driver" in str(excinfo.value)
