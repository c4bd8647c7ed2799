"""
Base scanner interface for the Network Mapper.

Every per-host probe (reachability, ports, host attributes) implements
``scan(target)``. One scanner instance serves all host pipelines at once, so
scanners keep no per-scan state on ``self``. Probes are best-effort: a
concrete scanner never lets a network failure escape ``scan``.
"""

import time
from abc import ABC, abstractmethod
from typing import Any, Optional

from ..utils.logger import Logger, get_logger
from ..utils.network_utils import is_ipv6, is_valid_ip


class BaseScanner(ABC):
    """
    Abstract base class for all per-host probes.

    Attributes:
        scanner_type: Short name used in log messages
    """

    scanner_type = "base"

    def __init__(self, logger: Optional[Logger] = None):
        self.logger = logger or get_logger(__name__)

    @abstractmethod
    def scan(self, target: str) -> Any:
        """
        Probe a single target.

        Args:
            target: IP address to probe

        Returns:
            Scanner-specific result; a negative/empty result on failure
        """

    @staticmethod
    def _start_timer() -> float:
        return time.monotonic()

    @staticmethod
    def _elapsed(started: float) -> float:
        """Seconds since a value returned by _start_timer()."""
        return time.monotonic() - started

    def _log_debug(self, message: str, **kwargs) -> None:
        self.logger.debug(f"[{self.scanner_type}] {message}", **kwargs)

    def _log_warning(self, message: str, **kwargs) -> None:
        self.logger.warning(f"[{self.scanner_type}] {message}", **kwargs)

    def _is_valid_target(self, target: str) -> bool:
        if not target or not isinstance(target, str):
            return False
        target = target.strip()
        return is_valid_ip(target) or is_ipv6(target)
