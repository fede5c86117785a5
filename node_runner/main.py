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
# NODE RUNNER - PROCESS ENTRY POINT
# -----------------------------------------------------------------------------
# Responsibility: The foreground flow.
# Settings -> Supervisor.start() -> log pump -> warm-up -> Poller -> signal
# -> Poller.stop() -> Supervisor.remove() -> exit
#
# No CLI flags. Configuration comes from NODE_RUNNER_* environment variables,
# optionally loaded from .env in the project root. SIGINT/SIGTERM trigger the
# teardown.
# -----------------------------------------------------------------------------

import signal
import threading
from pathlib import Path

from dotenv import load_dotenv
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel

from node_runner.core.poller import BlockHeightPoller
from node_runner.core.supervisor import LogStream, NodeSupervisor
from node_runner.domain.errors import NodeRunnerError
from node_runner.domain.models import NodeSettings
from node_runner.infra.docker_client import EngineClient

PROJECT_ROOT = Path(__file__).parent.parent

console = Console()

SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


def _pump_logs(stream: LogStream) -> None:
    """Echo container output until the attach session ends."""
    try:
        for record in stream:
            console.print(
                f"[{record.stream.upper()}] {record.text.rstrip()}", style="dim", markup=False
            )
    except Exception as e:
        # closing the stream from the main thread interrupts the read
        if not stream.closed:
            console.print(f"[yellow][NODE] Log stream ended: {e}[/yellow]")


def install_signal_handlers(shutdown: threading.Event) -> None:
    """Route SIGINT/SIGTERM to the shutdown event."""

    def _handler(signum, _frame):
        console.print(f"[yellow][RUNNER] Received {signal.Signals(signum).name}[/yellow]")
        shutdown.set()

    for sig in SHUTDOWN_SIGNALS:
        signal.signal(sig, _handler)


def build_supervisor(settings: NodeSettings) -> NodeSupervisor:
    return NodeSupervisor(
        settings.handle,
        engine=EngineClient(settings.docker_host),
        pull_policy=settings.pull_policy,
        remove_policy=settings.remove_policy,
    )


def run(settings: NodeSettings, shutdown: threading.Event) -> int:
    """
    Supervise one node until `shutdown` is set.

    Returns:
        Process exit code: 0 on clean teardown, 1 if startup or removal failed.
    """
    supervisor = build_supervisor(settings)

    try:
        logs = supervisor.start()
    except NodeRunnerError as e:
        console.print(
            Panel(
                f"[bold red]Node failed to start[/bold red]\n\n{e}",
                title="SYSTEM HALT",
                border_style="red",
            )
        )
        supervisor.engine.close()
        return 1

    log_thread = threading.Thread(target=_pump_logs, args=(logs,), daemon=True, name="node-logs")
    log_thread.start()

    poller = BlockHeightPoller(supervisor, interval=settings.poll_interval_seconds)
    if not shutdown.wait(settings.warmup_seconds):
        poller.start()
        console.print(
            f"[cyan][RUNNER] Polling every {settings.poll_interval_seconds}s. "
            "Ctrl+C to stop.[/cyan]"
        )
        while not shutdown.wait(0.5):
            pass

    poller.stop()
    logs.close()

    console.print("[cyan][RUNNER] Stopping and removing node[/cyan]")
    try:
        supervisor.remove()
    except NodeRunnerError as e:
        console.print(f"[red][RUNNER] Removal failed: {e}[/red]")
        return 1
    finally:
        supervisor.engine.close()
    return 0


def main() -> int:
    load_dotenv(PROJECT_ROOT / ".env")

    try:
        settings = NodeSettings.from_env()
    except ValidationError as e:
        console.print(f"[red][RUNNER] Invalid configuration:[/red]\n{e}")
        return 1

    console.print(
        Panel(
            f"Image: {settings.handle.image}\n"
            f"Container: {settings.handle.container_name}\n"
            f"Data dir: {settings.handle.data_dir}",
            title="NODE RUNNER",
            border_style="cyan",
        )
    )

    shutdown = threading.Event()
    install_signal_handlers(shutdown)
    return run(settings, shutdown)


if __name__ == "__main__":
    raise SystemExit(main())
