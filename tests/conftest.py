"""
pytest configuration for archive fetch tests.

Adds src directory to Python path for imports and provides shared fixtures.
"""

import logging
import sys
from pathlib import Path

import pytest

# Add src directory to Python path
src_dir = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_dir))

from archive_core.logging.context import clear_log_context  # noqa: E402
from archive_fetch.storage.memory import InMemoryStreamProvider  # noqa: E402


@pytest.fixture(autouse=True)
def _isolate_log_context():
    clear_log_context()
    yield
    clear_log_context()


@pytest.fixture
def memory_provider():
    """In-memory store holding gs://b1/x/y/z.tar.gz = b"hello world!"."""
    return InMemoryStreamProvider({"b1": {"x/y/z.tar.gz": b"hello world!"}})


@pytest.fixture
def tmp_dir(tmp_path):
    return tmp_path / "downloads"


@pytest.fixture
def reset_logging():
    """Remove handlers installed by setup_logging() and restore the root level."""
    from archive_core.logging.formatters import ConsoleFormatter, JSONFormatter

    root = logging.getLogger()
    level = root.level
    yield
    for handler in root.handlers[:]:
        if isinstance(handler.formatter, (ConsoleFormatter, JSONFormatter)):
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)
