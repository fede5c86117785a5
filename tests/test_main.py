# =============================================================================
# NODE RUNNER ENTRY POINT TESTS
# =============================================================================
# Tests for the foreground flow and signal-driven teardown.
# =============================================================================

import os
import signal
import threading
from unittest.mock import MagicMock, patch

import pytest

from node_runner.domain.errors import ContainerNotFound, EngineUnavailable, ImagePullFailed
from node_runner.domain.models import NodeSettings


@pytest.fixture
def settings():
    return NodeSettings(warmup_seconds=0, poll_interval_seconds=0.01)


@pytest.fixture
def mock_supervisor():
    supervisor = MagicMock()
    supervisor.name = "test-node"
    return supervisor


class TestRun:
    """Test node_runner.main.run()."""

    def test_startup_failure_skips_poller(self, settings, mock_supervisor):
        """A failed start exits 1 before polling begins."""
        from node_runner import main

        mock_supervisor.start.side_effect = ImagePullFailed("pull")
        with patch.object(main, "build_supervisor", return_value=mock_supervisor), patch.object(
            main, "BlockHeightPoller"
        ) as mock_poller:
            code = main.run(settings, threading.Event())

        assert code == 1
        mock_poller.assert_not_called()
        mock_supervisor.remove.assert_not_called()
        mock_supervisor.engine.close.assert_called_once()

    def test_engine_unavailable_at_startup(self, settings, mock_supervisor):
        from node_runner import main

        mock_supervisor.start.side_effect = EngineUnavailable("no socket")
        with patch.object(main, "build_supervisor", return_value=mock_supervisor):
            assert main.run(settings, threading.Event()) == 1

    def test_shutdown_during_warmup(self, mock_supervisor):
        """A signal during warm-up removes the node without polling."""
        from node_runner import main

        shutdown = threading.Event()
        shutdown.set()
        with patch.object(main, "build_supervisor", return_value=mock_supervisor), patch.object(
            main, "BlockHeightPoller"
        ) as mock_poller:
            code = main.run(NodeSettings(warmup_seconds=30), shutdown)

        assert code == 0
        mock_poller.return_value.start.assert_not_called()
        mock_supervisor.remove.assert_called_once()

    def test_polls_until_shutdown(self, settings, mock_supervisor):
        from node_runner import main

        shutdown = threading.Event()
        timer = threading.Timer(0.1, shutdown.set)
        with patch.object(main, "build_supervisor", return_value=mock_supervisor), patch.object(
            main, "BlockHeightPoller"
        ) as mock_poller:
            timer.start()
            code = main.run(settings, shutdown)

        assert code == 0
        mock_poller.return_value.start.assert_called_once()
        mock_poller.return_value.stop.assert_called_once()
        mock_supervisor.start.return_value.close.assert_called_once()
        mock_supervisor.remove.assert_called_once()
        mock_supervisor.engine.close.assert_called_once()

    def test_removal_failure_is_terminal(self, mock_supervisor):
        from node_runner import main

        mock_supervisor.remove.side_effect = ContainerNotFound("remove")
        shutdown = threading.Event()
        shutdown.set()
        with patch.object(main, "build_supervisor", return_value=mock_supervisor):
            assert main.run(NodeSettings(), shutdown) == 1
        mock_supervisor.engine.close.assert_called_once()


class TestMain:
    """Test node_runner.main.main()."""

    def test_invalid_configuration(self):
        from node_runner import main

        with patch.dict(os.environ, {"NODE_RUNNER_POLL_SECONDS": "-1"}, clear=True), patch.object(
            main, "load_dotenv"
        ), patch.object(main, "run") as mock_run:
            assert main.main() == 1
        mock_run.assert_not_called()

    def test_main_runs_with_env_settings(self):
        from node_runner import main

        with patch.dict(os.environ, {"NODE_RUNNER_CONTAINER": "env-node"}, clear=True), patch.object(
            main, "load_dotenv"
        ), patch.object(main, "install_signal_handlers"), patch.object(
            main, "run", return_value=0
        ) as mock_run:
            assert main.main() == 0

        settings = mock_run.call_args.args[0]
        assert settings.handle.container_name == "env-node"


class TestSignals:
    """Test signal routing."""

    def test_handlers_set_shutdown_event(self):
        from node_runner import main

        previous = {sig: signal.getsignal(sig) for sig in main.SHUTDOWN_SIGNALS}
        shutdown = threading.Event()
        try:
            main.install_signal_handlers(shutdown)
            handler = signal.getsignal(signal.SIGTERM)
            handler(signal.SIGTERM, None)
            assert shutdown.is_set()
        finally:
            for sig, old in previous.items():
                signal.signal(sig, old)


class TestLogPump:
    """Test container log echoing."""

    def test_pump_stops_quietly_after_close(self):
        from node_runner import main

        stream = MagicMock()
        stream.__iter__.side_effect = ValueError("I/O operation on closed file")
        stream.closed = True
        main._pump_logs(stream)
