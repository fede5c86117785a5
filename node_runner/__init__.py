# -----------------------------------------------------------------------------
# NODE RUNNER
# -----------------------------------------------------------------------------
# Supervises a single containerized blockchain daemon: pull, run with a bound
# data directory, stream logs, poll block height, tear down on signal.
# -----------------------------------------------------------------------------

__version__ = "0.1.0"
