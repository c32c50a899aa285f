"""Pytest configuration for all tests."""

import logging
import sys
from pathlib import Path

import pytest

# Allow running the suite from a checkout without installing the package.
repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from format_converter.application.dispatcher import ConversionEngine  # noqa: E402
from format_converter.domain.requests import ConversionOptions  # noqa: E402


@pytest.fixture
def engine():
    """Engine with built-in settings."""
    return ConversionEngine()


@pytest.fixture
def options():
    """Fully populated options, as the engine passes them to serializers."""
    return ConversionOptions(name="data_table", indent=2, varchar_length=255, infer_types=True, font_size=11.0)


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Drop handlers that ``configure_logger`` attached during a test."""
    logger = logging.getLogger("format_converter")
    handlers = list(logger.handlers)
    level = logger.level
    yield
    for handler in list(logger.handlers):
        if handler not in handlers:
            logger.removeHandler(handler)
    logger.setLevel(level)
