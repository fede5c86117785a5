# -----------------------------------------------------------------------------
# CORE LAYER
# -----------------------------------------------------------------------------
# The supervision logic of the node runner:
# - NodeSupervisor: start / stop / query height / remove one node container
# - LogStream: attached container output
# - BlockHeightPoller: background block height progress reporting
# -----------------------------------------------------------------------------

from .poller import BlockHeightPoller
from .supervisor import LogStream, NodeSupervisor, parse_block_height

__all__ = ["BlockHeightPoller", "LogStream", "NodeSupervisor", "parse_block_height"]
