"""
Host attribute resolver.

Best-effort lookups for a reachable host: reverse-DNS hostname, link-layer
address from the neighbour table, and the default gateway of the local
interface facing the host. Each lookup returns None instead of raising.
"""

import socket
from dataclasses import dataclass
from typing import Callable, Optional

import psutil

from .base_scanner import BaseScanner
from ..core.host_platform import HostPlatform, get_host_platform
from ..utils.logger import Logger
from ..utils.network_utils import is_in_same_subnet, resolve_hostname


@dataclass
class HostAttributes:
    """Attributes resolved for one host."""
    hostname: Optional[str] = None
    mac_address: Optional[str] = None
    default_gateway: Optional[str] = None


class HostResolver(BaseScanner):
    """
    Resolves hostname, MAC address and gateway for an address.

    OS differences are delegated to the injected HostPlatform.
    """

    scanner_type = "resolver"

    def __init__(self, host_platform: Optional[HostPlatform] = None,
                 hostname_lookup: Optional[Callable[[str], Optional[str]]] = None,
                 logger: Optional[Logger] = None):
        super().__init__(logger)
        self.host_platform = host_platform or get_host_platform()
        self.hostname_lookup = hostname_lookup or resolve_hostname

    def scan(self, target: str) -> HostAttributes:
        return HostAttributes(
            hostname=self.get_hostname(target),
            mac_address=self.get_mac_address(target),
            default_gateway=self.get_default_gateway(target),
        )

    def get_hostname(self, address: str) -> Optional[str]:
        try:
            return self.hostname_lookup(address)
        except Exception as e:
            self._log_warning(f"Error getting hostname for {address}", exception=str(e))
            return None

    def get_mac_address(self, address: str) -> Optional[str]:
        """
        Resolve the link-layer address of a host from the neighbour table.

        Args:
            address: IP address that was just probed

        Returns:
            Optional[str]: MAC as "AA:BB:CC:DD:EE:FF", or None
        """
        try:
            return self.host_platform.lookup_mac(address)
        except Exception as e:
            self._log_warning(f"Error getting MAC address for {address}", exception=str(e))
            return None

    def get_default_gateway(self, address: str) -> Optional[str]:
        """
        Find the gateway of the local interface whose subnet contains the address.

        Falls back to the host's default route when no interface matches or
        the matching interface has no gateway.

        Args:
            address: Target IP address

        Returns:
            Optional[str]: Gateway address, or None
        """
        try:
            gateway = self._gateway_from_interfaces(address)
            if gateway:
                return gateway
            return self.host_platform.default_route_gateway()
        except Exception as e:
            self._log_warning(f"Error getting default gateway for {address}", exception=str(e))
            return None

    def _gateway_from_interfaces(self, address: str) -> Optional[str]:
        interface_addresses = psutil.net_if_addrs()
        interface_stats = psutil.net_if_stats()
        gateways = None

        for interface_name, addresses in interface_addresses.items():
            stats = interface_stats.get(interface_name)
            if stats is None or not stats.isup:
                continue

            for addr in addresses:
                if addr.family != socket.AF_INET or not addr.netmask:
                    continue
                if not is_in_same_subnet(address, addr.address, addr.netmask):
                    continue

                if gateways is None:
                    gateways = self.host_platform.interface_gateways()
                gateway = gateways.get(interface_name) or gateways.get(addr.address)
                if gateway:
                    self._log_debug(f"Gateway for {address} via {interface_name}: {gateway}")
                    return gateway

        return None
