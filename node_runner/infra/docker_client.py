# Copyright 2026 Pramod Kumar Voola
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

# -----------------------------------------------------------------------------
# DOCKER PROVIDER - ENGINE CLIENT ADAPTER
# -----------------------------------------------------------------------------
# Responsibility: A thin wrapper around the Docker SDK with connection
# validation and one place where SDK exceptions become runner errors.
#
# This is part of the Infrastructure layer - it gives the Supervisor
# name-addressed engine calls without exposing SDK complexity.
#
# No retries and no timeouts beyond what the transport provides. Every call
# may mutate remote engine state.
# -----------------------------------------------------------------------------

import os
from collections.abc import Iterator
from contextlib import contextmanager

import docker
import requests
from docker import DockerClient
from docker.errors import DockerException, ImageNotFound, NotFound
from docker.types import Mount
from rich.console import Console

from node_runner.domain.errors import (
    ContainerNotFound,
    EngineOperationFailed,
    EngineUnavailable,
)

console = Console()


class EngineClient:
    """
    Docker SDK wrapper holding one long-lived engine connection.

    Lifecycle:
    - connect(): open (or reuse) the connection and ping the engine
    - close(): drop the connection; the next call reconnects
    - usable as a context manager (connect on enter, close on exit)

    Containers are always addressed by name, so every call re-reads the
    engine's view instead of a cached object.
    """

    def __init__(self, base_url: str | None = None) -> None:
        """
        Initialize the adapter without touching the engine.

        Args:
            base_url: Engine URL (e.g. unix:///var/run/docker.sock). None, or the
                same value as DOCKER_HOST, defers to docker.from_env() so the
                DOCKER_TLS_VERIFY / DOCKER_CERT_PATH settings still apply.
        """
        self._base_url = base_url
        self._client: DockerClient | None = None

    def __enter__(self) -> "EngineClient":
        self.connect()
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def connect(self) -> DockerClient:
        """
        Establish (or reuse) the connection to the Docker daemon.

        Returns:
            Active DockerClient instance.

        Raises:
            EngineUnavailable: If the engine cannot be reached.
        """
        if self._client is not None:
            return self._client

        try:
            if self._base_url and self._base_url != os.getenv("DOCKER_HOST"):
                client = docker.DockerClient(base_url=self._base_url)
            else:
                client = docker.from_env()
            client.ping()
        except (DockerException, requests.exceptions.RequestException) as e:
            console.print(f"[red][ENGINE] Engine unavailable: {e}[/red]")
            raise EngineUnavailable(f"Docker Engine is not available: {e}") from e

        target = self._base_url or os.getenv("DOCKER_HOST") or "local Docker"
        console.print(f"[green][ENGINE] Connected to {target}[/green]")
        self._client = client
        return client

    def close(self) -> None:
        """Close the engine connection if one is open."""
        if self._client is None:
            return
        client, self._client = self._client, None
        try:
            client.close()
        except DockerException as e:
            console.print(f"[yellow][ENGINE] Error while closing connection: {e}[/yellow]")

    def is_connected(self) -> bool:
        """Check if the engine is currently reachable over the open connection."""
        if self._client is None:
            return False
        try:
            self._client.ping()
            return True
        except (DockerException, requests.exceptions.RequestException):
            return False

    @contextmanager
    def guard(
        self, operation: str, error_cls: type[EngineOperationFailed] = EngineOperationFailed
    ) -> Iterator[None]:
        """
        Translate SDK exceptions raised inside the block into runner errors.

        Also used by callers that consume engine streams lazily, since those
        fail during iteration rather than inside the adapter call.

        Raises:
            EngineUnavailable: The transport dropped.
            ContainerNotFound: The engine answered 404 for a container.
            error_cls: Any other engine failure.
        """
        try:
            yield
        except ImageNotFound as e:
            raise error_cls(operation, e) from e
        except NotFound as e:
            # a 404 during pull or attach belongs to that phase, not to a container
            if error_cls is not EngineOperationFailed:
                raise error_cls(operation, e) from e
            raise ContainerNotFound(operation, e) from e
        except DockerException as e:
            raise error_cls(operation, e) from e
        # APIError is also a requests HTTPError, so SDK errors are matched first
        except requests.exceptions.ConnectionError as e:
            raise EngineUnavailable(f"Engine connection lost during '{operation}': {e}") from e
        except requests.exceptions.RequestException as e:
            raise error_cls(operation, e) from e

    # -- images -----------------------------------------------------------------

    def has_image(self, image: str) -> bool:
        """Return True if the image is cached locally."""
        client = self.connect()
        with self.guard("inspect_image"):
            try:
                client.images.get(image)
            except ImageNotFound:
                return False
        return True

    def pull_image(
        self, image: str, error_cls: type[EngineOperationFailed] = EngineOperationFailed
    ) -> None:
        """Pull an image from its registry."""
        client = self.connect()
        with self.guard("pull", error_cls):
            client.images.pull(image)

    # -- containers -------------------------------------------------------------

    def create_container(
        self,
        image: str,
        name: str,
        command: list[str],
        mounts: list[Mount],
        error_cls: type[EngineOperationFailed] = EngineOperationFailed,
    ) -> str:
        """
        Create (but do not start) a named container.

        Returns:
            The new container's ID.
        """
        client = self.connect()
        with self.guard("create", error_cls):
            host_config = client.api.create_host_config(mounts=mounts)
            result = client.api.create_container(
                image,
                command=command,
                name=name,
                host_config=host_config,
                detach=False,
            )
        return result["Id"]

    def start_container(
        self, name: str, error_cls: type[EngineOperationFailed] = EngineOperationFailed
    ) -> None:
        client = self.connect()
        with self.guard("start", error_cls):
            client.api.start(name)

    def attach_container(
        self, name: str, error_cls: type[EngineOperationFailed] = EngineOperationFailed
    ):
        """
        Attach to a container's stdout/stderr.

        Returns:
            The SDK's cancellable stream of (stdout, stderr) byte tuples.
        """
        client = self.connect()
        with self.guard("attach", error_cls):
            return client.api.attach(name, stdout=True, stderr=True, stream=True, demux=True)

    def stop_container(self, name: str, timeout: int | None = None) -> None:
        """Stop a container; timeout None leaves the grace period to the engine."""
        client = self.connect()
        with self.guard("stop"):
            client.api.stop(name, timeout=timeout)

    def remove_container(self, name: str, force: bool = True) -> None:
        client = self.connect()
        with self.guard("remove"):
            client.api.remove_container(name, force=force)

    def inspect_container(self, name: str) -> dict:
        client = self.connect()
        with self.guard("inspect"):
            return client.api.inspect_container(name)

    # -- exec -------------------------------------------------------------------

    def exec_create(self, name: str, cmd: list[str]) -> str:
        """
        Create an exec session with stdout and stderr attached.

        Returns:
            The exec session ID.
        """
        client = self.connect()
        with self.guard("exec_create"):
            result = client.api.exec_create(name, cmd, stdout=True, stderr=True)
        return result["Id"]

    def exec_start(self, exec_id: str):
        """
        Start an exec session and return its attached output.

        Returns:
            A stream of (stdout, stderr) byte tuples, or None when the engine
            did not attach one.
        """
        client = self.connect()
        with self.guard("exec_start"):
            return client.api.exec_start(exec_id, detach=False, stream=True, demux=True)
