"""
Shared utilities for Depot.

Provides access to common functionality used across Gate implementations.
"""

from depot.shared.gate import (
    GateLogger,
    GateErrorHandler,
    PathUtils,
    build_health_status,
    get_logger,
)

__all__ = [
    "GateLogger",
    "GateErrorHandler",
    "PathUtils",
    "build_health_status",
    "get_logger",
]
