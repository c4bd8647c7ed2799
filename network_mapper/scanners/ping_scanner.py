"""
Reachability prober.

Sends a single ICMP echo through the host's ping tool. A host that does not
answer gets no further probing.
"""

from typing import Optional

from .base_scanner import BaseScanner
from ..core.host_platform import HostPlatform, get_host_platform
from ..utils.logger import Logger


class PingScanner(BaseScanner):
    """ICMP echo reachability check with a per-probe timeout."""

    scanner_type = "ping"

    def __init__(self, timeout_ms: int = 1000, host_platform: Optional[HostPlatform] = None,
                 logger: Optional[Logger] = None):
        super().__init__(logger)
        self.timeout_ms = timeout_ms
        self.host_platform = host_platform or get_host_platform()

    def scan(self, target: str) -> bool:
        """
        Check whether a host answers an echo request.

        Args:
            target: IP address to ping

        Returns:
            bool: True if the host replied before the timeout
        """
        if not self._is_valid_target(target):
            self._log_warning(f"Invalid target skipped: {target}")
            return False

        is_alive = self.host_platform.ping(target, self.timeout_ms)
        if is_alive:
            self._log_debug(f"Ping successful: {target}")
        else:
            self._log_debug(f"Ping failed or no response: {target}")
        return is_alive
