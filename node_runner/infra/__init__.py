# -----------------------------------------------------------------------------
# INFRASTRUCTURE LAYER
# -----------------------------------------------------------------------------
# Contains low-level infrastructure wrappers:
# - EngineClient: Docker SDK wrapper with a single error-translation seam
# -----------------------------------------------------------------------------

from .docker_client import EngineClient

__all__ = ["EngineClient"]
