import pytest

import config
from config import get_settings
from main import configure_logging


@pytest.fixture(autouse=True)
def quiet_logging():
    """Route structlog through stdlib logging at WARNING for every test."""
    get_settings.cache_clear()
    configure_logging(config.TestingSettings())
    yield
    get_settings.cache_clear()
