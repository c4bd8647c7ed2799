"""
TCP connect port scanner.

Each port gets one connect attempt bounded by the configured timeout. At most
PORT_SCAN_CONCURRENCY attempts run at once per host, independent of how many
hosts the orchestrator scans in parallel. Any connect failure simply means
the port is left out of the result.
"""

import socket
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Dict, List, Optional

from .base_scanner import BaseScanner
from ..config.config_loader import PORT_SCAN_CONCURRENCY
from ..core.data_models import NetworkPort, PortState
from ..utils.logger import Logger


Connector = Callable[[str, int, float], bool]

COMMON_SERVICES: Dict[int, str] = {
    21: "FTP",
    22: "SSH",
    23: "Telnet",
    25: "SMTP",
    53: "DNS",
    80: "HTTP",
    110: "POP3",
    143: "IMAP",
    443: "HTTPS",
    445: "SMB",
    3306: "MySQL",
    3389: "RDP",
    5432: "PostgreSQL",
    8080: "HTTP-Alt",
    8443: "HTTPS-Alt",
}


def tcp_connect(address: str, port: int, timeout: float) -> bool:
    """
    Attempt a full TCP handshake.

    Returns:
        bool: True only if the connection was established within the timeout
    """
    try:
        with socket.create_connection((address, port), timeout=timeout):
            return True
    except OSError:
        # Refused, reset, unreachable and socket.timeout all land here
        return False


class PortScanner(BaseScanner):
    """Bounded-concurrency TCP connect scanner for a fixed port list."""

    scanner_type = "ports"

    def __init__(self, ports: List[int], timeout_ms: int = 500,
                 max_workers: int = PORT_SCAN_CONCURRENCY,
                 connector: Optional[Connector] = None,
                 logger: Optional[Logger] = None):
        super().__init__(logger)
        self.ports = list(ports)
        self.timeout_ms = timeout_ms
        self.max_workers = max_workers
        self.connector = connector or tcp_connect

    def scan(self, target: str) -> List[NetworkPort]:
        """
        Scan the configured ports on one host.

        Args:
            target: IP address to scan

        Returns:
            Open ports sorted ascending, annotated with well-known service names
        """
        if not self._is_valid_target(target) or not self.ports:
            return []

        started = self._start_timer()
        timeout = self.timeout_ms / 1000.0
        open_ports: List[NetworkPort] = []

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            future_to_port = {
                executor.submit(self._probe_port, target, port, timeout): port
                for port in dict.fromkeys(self.ports)
            }

            for future in as_completed(future_to_port):
                port_info = future.result()
                if port_info is not None:
                    open_ports.append(port_info)

        open_ports.sort(key=lambda p: p.port_number)
        duration = self._elapsed(started)
        self._log_debug(
            f"Scanned {len(future_to_port)} ports on {target}, found {len(open_ports)} open",
            duration=f"{duration:.2f}s",
        )
        return open_ports

    def _probe_port(self, target: str, port: int, timeout: float) -> Optional[NetworkPort]:
        try:
            is_open = self.connector(target, port, timeout)
        except Exception as e:
            self._log_warning(f"Error scanning port {port} on {target}", exception=str(e))
            return None

        if not is_open:
            return None

        return NetworkPort(
            port_number=port,
            protocol="TCP",
            service_name=COMMON_SERVICES.get(port),
            state=PortState.OPEN,
        )
