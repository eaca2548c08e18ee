"""Fixtures for driver tests."""

from unittest.mock import MagicMock

import pytest

from quobyte_volumes.driver.client import QuobyteClient
from quobyte_volumes.driver.driver import QuobyteDriver
from quobyte_volumes.driver.utils import MountExecutor


@pytest.fixture
def bootstrap_options():
    return {
        "quobyte.apiurl": "http://quobyte-api:7860",
        "quobyte.registries": "quobyte-1:7861",
    }


@pytest.fixture
def mock_client():
    client = MagicMock(spec=QuobyteClient)
    client.create_volume.return_value = "abc-123"
    return client


@pytest.fixture
def mock_executor():
    executor = MagicMock(spec=MountExecutor)
    executor.mount.side_effect = lambda volume, mount_point="": mount_point or f"/mnt/{volume.name}"
    return executor


@pytest.fixture
def driver(temp_dir, bootstrap_options, mock_client, mock_executor, resolvable_hosts):
    return QuobyteDriver.initialize(
        temp_dir, bootstrap_options, client=mock_client, executor=mock_executor
    )
