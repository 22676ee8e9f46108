"""Pytest configuration and shared fixtures."""

import io
import os
from unittest.mock import MagicMock

import pytest
from docker import APIClient, DockerClient

from ric.config import DockerConfig, get_settings
from ric.models.invocation import MountSpec, NewContainer, ExistingContainer, UserIdentity
from ric.services.container.relay import LogRelay


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep RIC_* variables from the developer's shell out of the tests."""
    for key in list(os.environ):
        if key.upper().startswith("RIC_"):
            monkeypatch.delenv(key, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def mock_container():
    """Mock Docker container."""
    container = MagicMock()
    container.id = "0123456789abcdef0123456789abcdef"
    container.name = "test-container"
    container.status = "created"
    container.wait.return_value = {"StatusCode": 0, "Error": None}
    return container


@pytest.fixture
def mock_socket():
    """Mock hijacked attach/exec socket."""
    sock = MagicMock()
    sock._sock = MagicMock()
    return sock


@pytest.fixture
def mock_docker(mock_container, mock_socket):
    """Mock Docker client for testing."""
    mock_client = MagicMock(spec=DockerClient)
    mock_client.api = MagicMock(spec=APIClient)

    tagged = MagicMock()
    tagged.tags = ["debian:latest"]
    mock_client.images.list.return_value = [tagged]
    mock_client.api.pull.return_value = iter([])

    mock_client.containers.create.return_value = mock_container
    mock_client.containers.list.return_value = [mock_container]
    mock_client.api.attach_socket.return_value = mock_socket
    mock_client.api.exec_create.return_value = {"Id": "exec0123456789abcdef"}
    mock_client.api.exec_start.return_value = mock_socket
    mock_client.api.exec_inspect.return_value = {"ExitCode": 0}
    mock_client.api.kill.return_value = None
    mock_client.api.remove_container.return_value = None

    return mock_client


@pytest.fixture
def client_factory(mock_docker):
    """Client factory handing out the mock client."""
    factory = MagicMock()
    factory.config = DockerConfig()
    factory.get_client.return_value = mock_docker
    factory.create_client.return_value = mock_docker
    return factory


@pytest.fixture
def output():
    """Captured local stdout/stderr for the log relay."""
    stdout, stderr = io.StringIO(), io.StringIO()
    return LogRelay(stdout=stdout, stderr=stderr), stdout, stderr


@pytest.fixture
def new_container_spec():
    return NewContainer(
        image="debian",
        command=("ls",),
        mounts=(MountSpec.workdir("/home/user/project"),),
        user=UserIdentity(1000, 1000),
    )


@pytest.fixture
def existing_container_spec():
    return ExistingContainer(
        name="run_in_container",
        command=("ls", "/"),
        user=UserIdentity(1000, 1000),
    )
