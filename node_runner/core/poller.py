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
# THE POLLER - BLOCK HEIGHT PROGRESS
# -----------------------------------------------------------------------------
# Responsibility: Periodically asks the Supervisor for the block height and
# reports each new maximum.
#
# Failed cycles are skipped without backoff; the next tick simply tries again.
# Thread-based: one daemon thread, stopped through a threading.Event. An
# engine call in flight at stop time is abandoned, not cancelled.
# -----------------------------------------------------------------------------

import threading
from collections.abc import Callable

from rich.console import Console

from node_runner.core.supervisor import NodeSupervisor
from node_runner.domain.errors import NodeRunnerError

console = Console()

# Poll Interval
POLL_INTERVAL_SECONDS = 2.0

# Seconds stop() waits for the thread before abandoning it
STOP_JOIN_SECONDS = 1.0


def _print_height(height: int) -> None:
    console.print(f"[green][POLLER] Block height {height}[/green]")


class BlockHeightPoller:
    """
    Tracks the highest block height observed on a running node.

    Only strictly increasing heights are recorded and reported; a lower or
    equal observation leaves the recorded maximum untouched.
    """

    def __init__(
        self,
        supervisor: NodeSupervisor,
        interval: float = POLL_INTERVAL_SECONDS,
        on_height: Callable[[int], None] | None = None,
    ) -> None:
        self._supervisor = supervisor
        self.interval = interval
        self._on_height = on_height or _print_height
        self.highest: int | None = None
        self.reported: list[int] = []
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    def poll_once(self) -> int | None:
        """
        Run one polling cycle.

        Returns:
            The new maximum if one was observed and reported, otherwise None.
        """
        try:
            height = self._supervisor.get_block_height()
        except NodeRunnerError:
            return None

        if self.highest is not None and height <= self.highest:
            return None

        self.highest = height
        self.reported.append(height)
        self._on_height(height)
        return height

    def _poll_loop(self, stop_event: threading.Event) -> None:
        """Background loop: poll, then sleep until the next tick or stop."""
        while not stop_event.is_set():
            self.poll_once()
            stop_event.wait(self.interval)

    def start(self) -> "BlockHeightPoller":
        """Start polling on a daemon thread."""
        if self._thread is not None and self._thread.is_alive():
            return self
        # fresh event per run; an abandoned thread keeps its own, already set
        self._stop_event = threading.Event()
        self._thread = threading.Thread(
            target=self._poll_loop,
            args=(self._stop_event,),
            daemon=True,
            name=f"poller-{self._supervisor.name}",
        )
        self._thread.start()
        return self

    def stop(self) -> None:
        """Signal the loop to exit and give it a moment to do so."""
        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=STOP_JOIN_SECONDS)
            if self._thread.is_alive():
                console.print("[dim][POLLER] Abandoning in-flight query[/dim]")
            self._thread = None

    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()
