import pytest
from loguru import logger

from axml_builder import manifest_builder


@pytest.fixture(autouse=True)
def quiet_logger():
    logger.remove()
    yield
    logger.remove()


@pytest.fixture
def manifest():
    return manifest_builder().build()


@pytest.fixture
def manifest_utf8():
    return manifest_builder(utf8=True).build()


@pytest.fixture
def log_messages():
    messages = []
    logger.add(messages.append, level="WARNING", format="{message}")
    return messages
