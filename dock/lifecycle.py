from __future__ import annotations

from typing import Optional

from depot import Config
from depot.StorageGate import StorageGate
from depot.shared.gate import GateLogger

# Lifecycle logger
_log = GateLogger.get("Lifecycle")


async def startup(emit_event, storage_root: Optional[str] = None):
    """Initialize subsystems on server startup."""
    GateLogger.set_level(Config.get("LOG_LEVEL", "INFO"))

    _, errors = Config.validate()
    for error in errors:
        _log.warning(f"Config: {error}")

    if not StorageGate.initialize(storage_root):
        raise RuntimeError("StorageGate failed to initialize")

    await emit_event("system", "Storage ready")
    _log.info(f"Depot started (storage root: {StorageGate.get_root()})")


async def shutdown():
    """Cleanup on server shutdown."""
    _log.info("Depot stopped")


__all__ = ["startup", "shutdown"]
