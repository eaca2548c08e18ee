"""
Pytest configuration and fixtures.
"""

import shutil
import tempfile
from pathlib import Path

import pytest


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path)


@pytest.fixture
def resolvable_hosts(monkeypatch):
    """Make every hostname resolve without touching DNS."""
    resolved = []

    def _getaddrinfo(host, port, *args, **kwargs):
        resolved.append(host)
        return [(2, 1, 6, "", ("127.0.0.1", 0))]

    monkeypatch.setattr("quobyte_volumes.cli.lib.validators.socket.getaddrinfo", _getaddrinfo)
    return resolved
