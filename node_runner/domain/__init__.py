# -----------------------------------------------------------------------------
# DOMAIN LAYER
# -----------------------------------------------------------------------------
# Node identity, settings and the error taxonomy shared by every layer.
# -----------------------------------------------------------------------------

from .errors import (
    AttachFailed,
    ContainerCreateFailed,
    ContainerNotFound,
    EngineOperationFailed,
    EngineUnavailable,
    ExecNotAttached,
    FilesystemError,
    ImagePullFailed,
    MalformedOutput,
    NodeRunnerError,
    SerializationError,
)
from .models import LogRecord, NodeHandle, NodeSettings, NodeState, PullPolicy, RemovePolicy

__all__ = [
    "AttachFailed",
    "ContainerCreateFailed",
    "ContainerNotFound",
    "EngineOperationFailed",
    "EngineUnavailable",
    "ExecNotAttached",
    "FilesystemError",
    "ImagePullFailed",
    "MalformedOutput",
    "NodeRunnerError",
    "SerializationError",
    "LogRecord",
    "NodeHandle",
    "NodeSettings",
    "NodeState",
    "PullPolicy",
    "RemovePolicy",
]
