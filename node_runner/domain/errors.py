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
# ERROR TAXONOMY
# -----------------------------------------------------------------------------
# Every failure the runner can surface. Engine errors carry the SDK exception
# that caused them (also chained via `raise ... from`).
# -----------------------------------------------------------------------------


class NodeRunnerError(Exception):
    """Base class for all node runner failures."""

    pass


class EngineUnavailable(NodeRunnerError):
    """Raised when the container engine transport cannot be reached."""

    pass


class EngineOperationFailed(NodeRunnerError):
    """Raised when the engine rejects or fails a request."""

    def __init__(self, operation: str, cause: Exception | None = None) -> None:
        message = f"Engine operation '{operation}' failed"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)
        self.operation = operation
        self.cause = cause


class ImagePullFailed(EngineOperationFailed):
    """Raised when the node image cannot be pulled."""

    pass


class ContainerCreateFailed(EngineOperationFailed):
    """Raised when the node container cannot be created or started."""

    pass


class AttachFailed(EngineOperationFailed):
    """Raised when the container output stream cannot be attached."""

    pass


class ContainerNotFound(EngineOperationFailed):
    """Raised when no container exists under the requested name."""

    pass


class ExecNotAttached(NodeRunnerError):
    """Raised when an exec session yields no attached output stream."""

    pass


class MalformedOutput(NodeRunnerError):
    """Raised when diagnostic output cannot be read as a block height."""

    def __init__(self, message: str, output: str = "") -> None:
        super().__init__(message)
        self.output = output


class SerializationError(MalformedOutput):
    """Raised when diagnostic output is not JSON at all."""

    pass


class FilesystemError(NodeRunnerError):
    """Raised when the host data directory cannot be prepared."""

    def __init__(self, message: str, path: str = "") -> None:
        super().__init__(message)
        self.path = path
