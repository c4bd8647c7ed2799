"""
Host platform capabilities.

Reachability probing, neighbour-table lookups and routing-table inspection
all shell out to OS tools whose arguments and output differ between
operating systems. Each supported OS family gets one HostPlatform
implementation; ``get_host_platform()`` picks one once per process from
``platform.system()``.
"""

import math
import platform
import re
import socket
import struct
import subprocess
from abc import ABC, abstractmethod
from functools import lru_cache
from pathlib import Path
from typing import Callable, Dict, List, Optional

from ..utils.logger import Logger, get_logger
from ..utils.network_utils import is_valid_ip, normalize_mac


CommandRunner = Callable[[List[str], float], str]

PROC_NET_ROUTE = Path("/proc/net/route")


def run_command(cmd: List[str], timeout: float) -> str:
    """
    Run a command and return its combined stdout and stderr.

    Raises:
        subprocess.TimeoutExpired: If the command outlives the timeout
        FileNotFoundError: If the tool is not installed
    """
    result = subprocess.run(
        cmd,
        capture_output=True,
        text=True,
        errors="replace",
        timeout=timeout
    )
    return (result.stdout or "") + (result.stderr or "")


class HostPlatform(ABC):
    """
    OS-specific tooling used by the reachability prober and host resolver.

    Every public method is best-effort: tool failures are logged at debug
    level and turned into a negative answer.
    """

    name = "generic"
    command_timeout = 5.0

    def __init__(self, runner: Optional[CommandRunner] = None, logger: Optional[Logger] = None):
        self.runner = runner or run_command
        self.logger = logger or get_logger(__name__)

    def _run(self, cmd: List[str], timeout: Optional[float] = None) -> Optional[str]:
        try:
            return self.runner(cmd, timeout or self.command_timeout)
        except subprocess.TimeoutExpired:
            self.logger.debug(f"Command timed out: {' '.join(cmd)}")
        except FileNotFoundError:
            self.logger.debug(f"Command not available: {cmd[0]}")
        except OSError as e:
            self.logger.debug(f"Command failed: {' '.join(cmd)}", exception=str(e))
        return None

    # Reachability

    @abstractmethod
    def ping_command(self, address: str, timeout_ms: int) -> List[str]:
        """Build a single-echo ping command for the address."""

    @abstractmethod
    def analyze_ping_output(self, output: str, target: str) -> bool:
        """Decide from ping output whether the host actually replied."""

    def ping(self, address: str, timeout_ms: int) -> bool:
        """
        Send one ICMP echo request.

        Args:
            address: Address to probe
            timeout_ms: Reply timeout in milliseconds

        Returns:
            bool: True if the host replied in time
        """
        cmd = self.ping_command(address, timeout_ms)
        output = self._run(cmd, timeout=timeout_ms / 1000.0 + 2)
        if output is None:
            return False
        return self.analyze_ping_output(output, address)

    # Neighbour table

    @abstractmethod
    def lookup_mac(self, address: str) -> Optional[str]:
        """Return the link-layer address the neighbour table holds for an address."""

    # Routing table

    @abstractmethod
    def default_route_gateway(self) -> Optional[str]:
        """Return the next hop of the host's default route."""

    @abstractmethod
    def interface_gateways(self) -> Dict[str, str]:
        """
        Map interfaces to their default gateway.

        Keys are interface names or interface addresses, whichever the
        platform's routing table reports.
        """


class UnixHostPlatform(HostPlatform):
    """Linux and other Unix-likes: iputils ping, arp/ip neigh, ip route."""

    name = "unix"

    FAILURE_INDICATORS = [
        "destination host unreachable",
        "no route to host",
        "network is unreachable",
        "name or service not known",
        "temporary failure in name resolution",
    ]

    def ping_command(self, address: str, timeout_ms: int) -> List[str]:
        timeout_s = max(1, math.ceil(timeout_ms / 1000))
        return ["ping", "-c", "1", "-W", str(timeout_s), address]

    def analyze_ping_output(self, output: str, target: str) -> bool:
        if not output:
            return False

        output_lower = output.lower()

        for indicator in self.FAILURE_INDICATORS:
            if indicator in output_lower:
                return False

        if re.search(r"1 packets transmitted, 0 (packets )?received", output_lower):
            return False
        if re.search(r"1 packets transmitted, 1 (packets )?received", output_lower):
            return True

        success_indicators = [
            f"bytes from {target}",
            "bytes from",
            "ttl=",
        ]
        return any(indicator in output_lower for indicator in success_indicators)

    def lookup_mac(self, address: str) -> Optional[str]:
        output = self._run(["arp", "-n", address])
        if output is not None:
            mac = self._parse_arp_output(output, address)
            if mac:
                return mac

        # Minimal installs ship iproute2 without net-tools
        output = self._run(["ip", "neigh", "show", address])
        if output is None:
            return None
        return self._parse_ip_neigh_output(output, address)

    def _parse_arp_output(self, output: str, address: str) -> Optional[str]:
        # Format: "192.168.1.1  ether  00:11:22:33:44:55  C  eth0"
        for line in output.splitlines():
            parts = line.split()
            if address in parts or f"({address})" in parts:
                mac = normalize_mac(line)
                if mac:
                    return mac
        return None

    def _parse_ip_neigh_output(self, output: str, address: str) -> Optional[str]:
        # Format: "192.168.1.1 dev eth0 lladdr 00:11:22:33:44:55 REACHABLE"
        for line in output.splitlines():
            parts = line.split()
            if parts and parts[0] == address and "lladdr" in parts:
                mac_index = parts.index("lladdr") + 1
                if mac_index < len(parts):
                    return normalize_mac(parts[mac_index])
        return None

    def default_route_gateway(self) -> Optional[str]:
        output = self._run(["ip", "route", "show", "default"])
        if not output:
            return None

        # Format: "default via 192.168.1.1 dev eth0 proto dhcp metric 100"
        for line in output.splitlines():
            parts = line.split()
            if len(parts) >= 3 and parts[0] == "default" and parts[1] == "via":
                return parts[2]
        return None

    def interface_gateways(self) -> Dict[str, str]:
        try:
            content = PROC_NET_ROUTE.read_text()
        except OSError:
            return {}
        return self._parse_proc_net_route(content)

    def _parse_proc_net_route(self, content: str) -> Dict[str, str]:
        gateways: Dict[str, str] = {}
        for line in content.splitlines()[1:]:
            fields = line.split()
            if len(fields) < 3 or fields[1] != "00000000":
                continue
            try:
                # Kernel prints the gateway as little-endian hex
                gateway = socket.inet_ntoa(struct.pack("<L", int(fields[2], 16)))
            except (ValueError, struct.error):
                continue
            if gateway != "0.0.0.0":
                gateways.setdefault(fields[0], gateway)
        return gateways


class MacHostPlatform(UnixHostPlatform):
    """macOS: BSD ping takes its wait time in milliseconds and has no iproute2."""

    name = "darwin"

    def ping_command(self, address: str, timeout_ms: int) -> List[str]:
        return ["ping", "-c", "1", "-W", str(timeout_ms), address]

    def default_route_gateway(self) -> Optional[str]:
        output = self._run(["route", "-n", "get", "default"])
        if not output:
            return None

        # Format: "    gateway: 192.168.1.1"
        for line in output.splitlines():
            key, _, value = line.strip().partition(":")
            if key == "gateway" and is_valid_ip(value.strip()):
                return value.strip()
        return None

    def interface_gateways(self) -> Dict[str, str]:
        return {}


class WindowsHostPlatform(HostPlatform):
    """Windows: ping -n/-w, arp -a, route print."""

    name = "windows"

    FAILURE_INDICATORS = [
        "destination host unreachable",
        "request timed out",
        "could not find host",
        "ping request could not find host",
        "general failure",
        "transmit failed",
        "unable to contact ip driver",
    ]

    def ping_command(self, address: str, timeout_ms: int) -> List[str]:
        return ["ping", "-n", "1", "-w", str(timeout_ms), address]

    def analyze_ping_output(self, output: str, target: str) -> bool:
        if not output:
            return False

        output_lower = output.lower()

        for indicator in self.FAILURE_INDICATORS:
            if indicator in output_lower:
                return False

        if "packets: sent = 1, received = 0" in output_lower:
            return False
        if "packets: sent = 1, received = 1" in output_lower:
            return True

        success_indicators = [
            f"reply from {target}",
            "time<1ms",
            "time=",
            "ttl=",
        ]
        return any(indicator in output_lower for indicator in success_indicators)

    def lookup_mac(self, address: str) -> Optional[str]:
        output = self._run(["arp", "-a", address])
        if output is None:
            return None

        # Format: "  192.168.1.1          00-11-22-33-44-55     dynamic"
        for line in output.splitlines():
            parts = line.split()
            if len(parts) >= 2 and parts[0] == address:
                if "-" in parts[1] or ":" in parts[1]:
                    return normalize_mac(parts[1])
        return None

    def _default_routes(self) -> List[List[str]]:
        output = self._run(["route", "print", "-4"])
        if not output:
            return []

        # Format: "          0.0.0.0          0.0.0.0      192.168.1.1    192.168.1.50     25"
        routes = []
        for line in output.splitlines():
            parts = line.split()
            if len(parts) >= 4 and parts[0] == "0.0.0.0" and parts[1] == "0.0.0.0" and is_valid_ip(parts[2]):
                routes.append(parts)
        return routes

    def default_route_gateway(self) -> Optional[str]:
        routes = self._default_routes()
        return routes[0][2] if routes else None

    def interface_gateways(self) -> Dict[str, str]:
        gateways: Dict[str, str] = {}
        for parts in self._default_routes():
            gateways.setdefault(parts[3], parts[2])
        return gateways


def create_host_platform(system: str, runner: Optional[CommandRunner] = None,
                         logger: Optional[Logger] = None) -> HostPlatform:
    """
    Build the HostPlatform for an OS name as reported by platform.system().

    Args:
        system: "Windows", "Linux", "Darwin", ...
        runner: Optional command runner, for tests
        logger: Optional logger

    Returns:
        HostPlatform implementation
    """
    system = system.lower()
    if system == "windows":
        return WindowsHostPlatform(runner, logger)
    if system == "darwin":
        return MacHostPlatform(runner, logger)
    return UnixHostPlatform(runner, logger)


@lru_cache(maxsize=1)
def get_host_platform() -> HostPlatform:
    """Return the HostPlatform for the running OS, selected once per process."""
    return create_host_platform(platform.system())
