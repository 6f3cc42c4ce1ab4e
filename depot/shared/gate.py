"""
Shared plumbing for Depot gates.

- GateLogger: per-gate loggers under the ``depot`` namespace
- GateErrorHandler: degrade a failing call to a fallback value
- build_health_status: the health report every gate returns
- PathUtils: directory helpers
"""

from __future__ import annotations

import logging
from functools import wraps
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

NAMESPACE = "depot"
LOG_FORMAT = "[%(name)s] %(levelname)s: %(message)s"


# =============================================================================
# Logging
# =============================================================================


class GateLogger:
    """
    Hands out ``depot.<gate>`` loggers.

    The first call installs one stream handler on the ``depot`` logger;
    everything below it propagates there.
    """

    _loggers: Dict[str, logging.Logger] = {}
    _configured = False

    @classmethod
    def _install_handler(cls):
        if cls._configured:
            return

        base = logging.getLogger(NAMESPACE)
        if not base.handlers:
            stream = logging.StreamHandler()
            stream.setFormatter(logging.Formatter(LOG_FORMAT))
            base.addHandler(stream)
            base.setLevel(logging.INFO)

        cls._configured = True

    @classmethod
    def get(cls, gate_name: str) -> logging.Logger:
        """
        Logger for one gate or component.

        Args:
            gate_name: e.g. "StorageGate" or "StorageGate.tree"
        """
        cls._install_handler()

        name = f"{NAMESPACE}.{gate_name}"
        logger = cls._loggers.get(name)
        if logger is None:
            logger = cls._loggers[name] = logging.getLogger(name)
        return logger

    @classmethod
    def set_level(cls, level: Union[int, str], gate_name: Optional[str] = None):
        """
        Change the log level.

        Args:
            level: Numeric level or a name such as "DEBUG"; unknown names mean INFO
            gate_name: Only this gate's logger; all of ``depot`` when omitted
        """
        if isinstance(level, str):
            level = logging.getLevelName(level.upper())
            if not isinstance(level, int):
                level = logging.INFO

        if gate_name:
            cls.get(gate_name).setLevel(level)
            return

        cls._install_handler()
        logging.getLogger(NAMESPACE).setLevel(level)


# =============================================================================
# Error handling
# =============================================================================


class GateErrorHandler:
    """
    Turns exceptions into logged fallbacks.

    Only for best-effort paths such as health checks; storage operations
    raise their typed errors instead.
    """

    @staticmethod
    def handle(
        gate_name: str,
        operation: str,
        exception: Exception,
        default_return: Any = None,
        log_level: int = logging.ERROR,
    ) -> Any:
        """Log ``<operation> failed: <exception>`` on the gate's logger and return the fallback."""
        GateLogger.get(gate_name).log(log_level, f"{operation} failed: {exception}")
        return default_return

    @staticmethod
    def wrap(
        gate_name: str,
        operation: str,
        default_return: Any = None,
        log_level: int = logging.ERROR,
        reraise: bool = False,
    ):
        """
        Decorator form of handle().

        Args:
            gate_name: Gate whose logger records the failure
            operation: Label used in the log line
            default_return: Returned when the call raises
            log_level: Level of the log line
            reraise: Log, then let the exception propagate
        """
        def decorator(func: Callable) -> Callable:
            @wraps(func)
            def guarded(*args, **kwargs):
                try:
                    return func(*args, **kwargs)
                except Exception as e:
                    fallback = GateErrorHandler.handle(
                        gate_name, operation, e, default_return, log_level
                    )
                    if reraise:
                        raise
                    return fallback
            return guarded
        return decorator


# =============================================================================
# Health
# =============================================================================


def build_health_status(
    gate_name: str,
    initialized: bool,
    dependencies: List[str],
    checks: Dict[str, bool],
    details: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Health report for one gate.

    A gate is healthy when it is initialized and every named check passed;
    no checks at all counts as passing.
    """
    passed = all(checks.values())

    return {
        "gate": gate_name,
        "healthy": bool(initialized and passed),
        "initialized": initialized,
        "dependencies": dependencies,
        "checks": checks,
        "details": details or {},
    }


# =============================================================================
# Paths
# =============================================================================


class PathUtils:
    """Directory helpers shared by the gates."""

    @staticmethod
    def ensure_dirs(*paths: Union[str, Path]) -> None:
        """Create each directory, parents included; existing ones are fine."""
        for path in paths:
            Path(path).mkdir(parents=True, exist_ok=True)

    @staticmethod
    def get_project_root(anchor_file: str = ".env") -> Optional[Path]:
        """Nearest directory, from the cwd upwards, that contains anchor_file."""
        cwd = Path.cwd()
        return next(
            (candidate for candidate in (cwd, *cwd.parents) if (candidate / anchor_file).exists()),
            None,
        )


def get_logger(gate_name: str) -> logging.Logger:
    """Same as GateLogger.get()."""
    return GateLogger.get(gate_name)
