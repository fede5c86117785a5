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
# DOMAIN MODELS - NODE IDENTITY & SETTINGS
# -----------------------------------------------------------------------------
# These Pydantic models describe which node to run and how to supervise it.
# The Supervisor reads them; it never mutates them.
#
# Why strict typing: a bad container name or polling interval is rejected at
# startup, before any Docker operation touches the engine.
# -----------------------------------------------------------------------------

import os
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field

DEFAULT_IMAGE = "defi/defichain:latest"
DEFAULT_CONTAINER_NAME = "defi-node"
DEFAULT_DATA_DIR = "defi-data"

ENV_PREFIX = "NODE_RUNNER_"


class PullPolicy(str, Enum):
    """
    When the Supervisor pulls the node image.

    MISSING only reaches the registry when the image is not cached locally.
    ALWAYS pulls on every start.
    """

    MISSING = "missing"
    ALWAYS = "always"


class RemovePolicy(str, Enum):
    """
    How remove() treats a container that does not exist.

    STRICT surfaces ContainerNotFound. IGNORE_MISSING treats it as removed.
    """

    STRICT = "strict"
    IGNORE_MISSING = "ignore_missing"


class NodeState(str, Enum):
    """Lifecycle state of the named container, as reported by the engine."""

    UNCREATED = "uncreated"
    RUNNING = "running"
    STOPPED = "stopped"
    UNKNOWN = "unknown"


class NodeHandle(BaseModel):
    """
    Identifies one externally-managed node container.

    The data directory is bind-mounted at creation time; changing it means
    recreating the container, so the handle is frozen.
    """

    image: str = Field(DEFAULT_IMAGE, min_length=1, description="Image reference to run")
    container_name: str = Field(
        DEFAULT_CONTAINER_NAME,
        min_length=1,
        pattern=r"^[a-zA-Z0-9][a-zA-Z0-9_.-]*$",
        description="Engine-side container name (Docker naming rules)",
    )
    data_dir: Path = Field(
        Path(DEFAULT_DATA_DIR), description="Host directory holding the chain data"
    )

    class Config:
        """Pydantic configuration: immutable, whitespace-stripped."""

        frozen = True
        str_strip_whitespace = True


class LogRecord(BaseModel):
    """A single chunk of container output."""

    stream: str = Field("combined", description="stdout, stderr or combined")
    text: str

    class Config:
        frozen = True


class NodeSettings(BaseModel):
    """
    Runtime knobs for one supervised node.

    Fields:
    - handle: which image/container/data directory to manage
    - docker_host: engine URL; None means the SDK's socket defaults
    - poll_interval_seconds: delay between block height queries
    - warmup_seconds: pause between start() and the first query
    - pull_policy / remove_policy: see the enums above
    """

    handle: NodeHandle = Field(default_factory=NodeHandle)
    docker_host: str | None = None
    poll_interval_seconds: float = Field(2.0, gt=0)
    warmup_seconds: float = Field(20.0, ge=0)
    pull_policy: PullPolicy = PullPolicy.MISSING
    remove_policy: RemovePolicy = RemovePolicy.STRICT

    @classmethod
    def from_env(cls) -> "NodeSettings":
        """
        Build settings from NODE_RUNNER_* environment variables.

        Unset variables fall back to the field defaults. Invalid values raise
        pydantic.ValidationError.
        """
        handle_fields = {
            "image": os.getenv(f"{ENV_PREFIX}IMAGE"),
            "container_name": os.getenv(f"{ENV_PREFIX}CONTAINER"),
            "data_dir": os.getenv(f"{ENV_PREFIX}DATA_DIR"),
        }
        settings_fields = {
            "docker_host": os.getenv("DOCKER_HOST") or None,
            "poll_interval_seconds": os.getenv(f"{ENV_PREFIX}POLL_SECONDS"),
            "warmup_seconds": os.getenv(f"{ENV_PREFIX}WARMUP_SECONDS"),
            "pull_policy": os.getenv(f"{ENV_PREFIX}PULL_POLICY"),
            "remove_policy": os.getenv(f"{ENV_PREFIX}REMOVE_POLICY"),
        }

        handle = NodeHandle(**{k: v for k, v in handle_fields.items() if v})
        return cls(handle=handle, **{k: v for k, v in settings_fields.items() if v})
