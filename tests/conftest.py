"""Shared pytest fixtures for shelterbeds tests."""
import sys
sys.dont_write_bytecode = True

from unittest.mock import MagicMock  # noqa: E402

import pytest  # noqa: E402


@pytest.fixture
def cur():
    """Stand-in cursor for code that only hands it to patched repositories."""
    return MagicMock()
