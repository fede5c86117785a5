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
# THE SUPERVISOR - NODE LIFECYCLE
# -----------------------------------------------------------------------------
# Responsibility: Owns the lifecycle of exactly one named node container.
# start -> (query height)* -> stop -> remove
#
# No lifecycle state is cached here. Every operation addresses the container
# by name and lets the engine decide, so the Supervisor can be shared between
# the foreground flow and the polling thread without locks.
# -----------------------------------------------------------------------------

import json
from collections.abc import Iterator
from pathlib import Path

from docker.types import Mount
from rich.console import Console

from node_runner.domain.errors import (
    AttachFailed,
    ContainerCreateFailed,
    ContainerNotFound,
    ExecNotAttached,
    FilesystemError,
    ImagePullFailed,
    MalformedOutput,
    SerializationError,
)
from node_runner.domain.models import (
    LogRecord,
    NodeHandle,
    NodeState,
    PullPolicy,
    RemovePolicy,
)
from node_runner.infra.docker_client import EngineClient

console = Console()

# In-container layout of the defichain image
DATA_MOUNT_TARGET = "/data"
NODE_COMMAND = ["defid"]
BLOCK_HEIGHT_COMMAND = ["defi-cli", "getblockcount"]

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1


class LogStream:
    """
    Attached output of the node container.

    Yields LogRecord objects until the connection closes or fails. The
    underlying attach session cannot be restarted; once exhausted or closed,
    iteration stops.
    """

    def __init__(self, inner, engine: EngineClient) -> None:
        self._inner = inner
        self._engine = engine
        self._closed = False

    def __enter__(self) -> "LogStream":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def __iter__(self) -> Iterator[LogRecord]:
        if self._closed:
            return
        with self._engine.guard("attach", AttachFailed):
            for chunk in self._inner:
                if self._closed:
                    return
                yield from _to_records(chunk)

    def close(self) -> None:
        """Close the attach session. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        close = getattr(self._inner, "close", None)
        if close is not None:
            close()

    @property
    def closed(self) -> bool:
        return self._closed


def _to_records(chunk) -> Iterator[LogRecord]:
    """Split one attach chunk (demuxed tuple or raw bytes) into records."""
    if isinstance(chunk, tuple):
        stdout, stderr = chunk
        if stdout:
            yield LogRecord(stream="stdout", text=_decode(stdout))
        if stderr:
            yield LogRecord(stream="stderr", text=_decode(stderr))
    elif chunk:
        yield LogRecord(stream="combined", text=_decode(chunk))


def _decode(data) -> str:
    return data.decode("utf-8", errors="replace") if isinstance(data, bytes) else str(data)


def parse_block_height(output: str) -> int:
    """
    Parse diagnostic output as a JSON-encoded int64.

    Raises:
        SerializationError: Output is not JSON.
        MalformedOutput: Output is empty, or JSON that is not an int64.
    """
    if not output.strip():
        raise MalformedOutput("Diagnostic command produced no output", output=output)

    try:
        value = json.loads(output)
    except json.JSONDecodeError as e:
        raise SerializationError(f"Diagnostic output is not JSON: {e}", output=output) from e

    # bool is an int subclass; `true` is not a block height
    if isinstance(value, bool) or not isinstance(value, int):
        raise MalformedOutput(
            f"Diagnostic output is not an integer: {output.strip()[:80]}", output=output
        )
    if not INT64_MIN <= value <= INT64_MAX:
        raise MalformedOutput(f"Block height out of int64 range: {value}", output=output)
    return value


class NodeSupervisor:
    """
    Lifecycle manager for one node container.

    Public operations: start(), stop(), get_block_height(), remove(), status().
    The implicit lifecycle is Uncreated -> Running -> Stopped -> Removed; it is
    never enforced locally, the engine is the source of truth.
    """

    def __init__(
        self,
        handle: NodeHandle,
        engine: EngineClient | None = None,
        pull_policy: PullPolicy = PullPolicy.MISSING,
        remove_policy: RemovePolicy = RemovePolicy.STRICT,
    ) -> None:
        self.handle = handle
        self._engine = engine or EngineClient()
        self._pull_policy = PullPolicy(pull_policy)
        self._remove_policy = RemovePolicy(remove_policy)

    @property
    def name(self) -> str:
        return self.handle.container_name

    @property
    def engine(self) -> EngineClient:
        return self._engine

    def _ensure_image(self) -> None:
        """Pull image if not present (or always, per pull policy)."""
        image = self.handle.image
        if self._pull_policy == PullPolicy.MISSING and self._engine.has_image(image):
            console.print(f"[cyan][NODE] Image ready: {image}[/cyan]")
            return

        console.print(f"[yellow][NODE] Pulling: {image}...[/yellow]")
        self._engine.pull_image(image, ImagePullFailed)
        console.print(f"[green][NODE] Pulled: {image}[/green]")

    def _prepare_data_dir(self) -> Path:
        """Create the host data directory and return its absolute path."""
        path = self.handle.data_dir
        try:
            path = path.expanduser().resolve()
            path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FilesystemError(f"Cannot prepare data directory {path}: {e}", str(path)) from e
        if not path.is_dir():
            raise FilesystemError(f"Data directory is not a directory: {path}", str(path))
        return path

    def start(self) -> LogStream:
        """
        Pull, create, start and attach to the node container.

        Returns:
            LogStream over the container's stdout/stderr.

        Raises:
            FilesystemError: Host data directory cannot be prepared.
            ImagePullFailed: Image could not be pulled.
            ContainerCreateFailed: Container could not be created or started.
            AttachFailed: Output stream could not be attached.
            EngineUnavailable: Engine unreachable.
        """
        data_dir = self._prepare_data_dir()
        self._ensure_image()

        mount = Mount(target=DATA_MOUNT_TARGET, source=str(data_dir), type="bind")
        console.print(
            f"[cyan][NODE] Creating {self.name} ({data_dir} -> {DATA_MOUNT_TARGET})[/cyan]"
        )
        container_id = self._engine.create_container(
            self.handle.image,
            self.name,
            list(NODE_COMMAND),
            [mount],
            ContainerCreateFailed,
        )
        self._engine.start_container(self.name, ContainerCreateFailed)
        console.print(f"[green][NODE] Node active: {container_id[:12]}[/green]")

        inner = self._engine.attach_container(self.name, AttachFailed)
        return LogStream(inner, self._engine)

    def stop(self) -> None:
        """Stop the container using the engine's default grace period."""
        console.print(f"[cyan][NODE] Stopping {self.name}[/cyan]")
        self._engine.stop_container(self.name)

    def get_block_height(self) -> int:
        """
        Run the block count command inside the container and parse its output.

        Stdout is buffered until the exec stream ends, so output split across
        several chunks still parses.

        Raises:
            ExecNotAttached: The engine returned no output stream.
            MalformedOutput: Output is empty or not an int64.
            SerializationError: Output is not JSON.
        """
        exec_id = self._engine.exec_create(self.name, list(BLOCK_HEIGHT_COMMAND))
        stream = self._engine.exec_start(exec_id)
        if stream is None:
            raise ExecNotAttached(f"Exec {exec_id[:12]} on {self.name} returned no output stream")

        stdout: list[bytes] = []
        stderr: list[bytes] = []
        with self._engine.guard("exec_read"):
            for chunk in stream:
                if isinstance(chunk, tuple):
                    out, err = chunk
                    if out:
                        stdout.append(out)
                    if err:
                        stderr.append(err)
                elif chunk:
                    stdout.append(chunk)

        output = _decode(b"".join(stdout))
        if not output.strip() and stderr:
            error_text = _decode(b"".join(stderr)).strip()
            raise MalformedOutput(
                f"Diagnostic command wrote only to stderr: {error_text[:200]}", output=error_text
            )
        return parse_block_height(output)

    def remove(self) -> None:
        """
        Force-remove the container regardless of running state.

        Raises:
            ContainerNotFound: No such container, under the STRICT policy.
        """
        console.print(f"[cyan][NODE] Removing {self.name}[/cyan]")
        try:
            self._engine.remove_container(self.name, force=True)
        except ContainerNotFound:
            if self._remove_policy == RemovePolicy.IGNORE_MISSING:
                console.print(f"[yellow][NODE] {self.name} already gone[/yellow]")
                return
            raise
        console.print(f"[green][NODE] Removed {self.name}[/green]")

    def status(self) -> NodeState:
        """Read the container's lifecycle state from the engine."""
        try:
            info = self._engine.inspect_container(self.name)
        except ContainerNotFound:
            return NodeState.UNCREATED

        state = (info.get("State") or {}).get("Status", "")
        if state == "running":
            return NodeState.RUNNING
        if state in ("created", "exited"):
            return NodeState.STOPPED
        return NodeState.UNKNOWN
