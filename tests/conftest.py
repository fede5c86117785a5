"""
Pytest configuration and fixtures for node runner tests.
"""

import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from docker.errors import APIError, NotFound

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from node_runner.domain.models import NodeHandle
from node_runner.infra.docker_client import EngineClient


@pytest.fixture
def mock_docker_client():
    """Mock Docker client for testing."""
    client = MagicMock()
    client.ping.return_value = True
    client.images.get.return_value = MagicMock()

    client.api.create_container.return_value = {"Id": "c0ffee1234567890"}
    client.api.create_host_config.return_value = {}
    client.api.attach.return_value = iter([])
    client.api.exec_create.return_value = {"Id": "exec0123456789"}
    client.api.exec_start.return_value = iter([(b"0", None)])

    return client


@pytest.fixture
def engine(mock_docker_client):
    """EngineClient already 'connected' to the mock Docker client."""
    client = EngineClient()
    client._client = mock_docker_client
    return client


@pytest.fixture
def handle(tmp_path):
    """NodeHandle whose data directory lives under tmp_path."""
    return NodeHandle(container_name="test-node", data_dir=tmp_path / "chain-data")


class FakeDockerAPI:
    """
    In-memory stand-in for the low-level Docker API.

    Tracks containers by name the way the engine does: names are unique,
    unknown names answer 404.
    """

    def __init__(self, heights=None):
        self.containers: dict[str, str] = {}
        self.heights = list(heights or [])

    def create_host_config(self, **kwargs):
        return kwargs

    def create_container(self, image, command=None, name=None, host_config=None, detach=False):
        if name in self.containers:
            raise APIError(f"Conflict. The container name \"/{name}\" is already in use")
        self.containers[name] = "created"
        return {"Id": f"id-{name}-0000000000"}

    def _require(self, name):
        if name not in self.containers:
            raise NotFound(f"No such container: {name}")

    def start(self, name):
        self._require(name)
        self.containers[name] = "running"

    def attach(self, name, **kwargs):
        self._require(name)
        return iter([(b"node starting\n", None)])

    def stop(self, name, timeout=None):
        self._require(name)
        self.containers[name] = "exited"

    def remove_container(self, name, force=False):
        self._require(name)
        del self.containers[name]

    def inspect_container(self, name):
        self._require(name)
        return {"State": {"Status": self.containers[name]}}

    def exec_create(self, name, cmd, stdout=True, stderr=True):
        self._require(name)
        return {"Id": "exec-fake-000000"}

    def exec_start(self, exec_id, detach=False, stream=True, demux=True):
        height = self.heights.pop(0) if self.heights else 0
        return iter([(str(height).encode(), None)])


@pytest.fixture
def fake_engine():
    """EngineClient backed by FakeDockerAPI."""
    client = MagicMock()
    client.api = FakeDockerAPI()
    engine = EngineClient()
    engine._client = client
    return engine
