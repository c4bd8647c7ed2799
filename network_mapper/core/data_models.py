"""
Core data models and enums for the Network Mapper.

This module defines the data structures used throughout the scanning and
topology process: discovered devices, their open ports and the result of a
batch scan. ``to_dict`` on each record produces the camelCase wire contract
consumed by the HTTP layer and the JSON reporter.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional
from datetime import datetime

from ..utils.network_utils import device_id_from_address, ip_sort_key, is_ipv6


class DeviceType(Enum):
    """Enumeration of device types that can be detected during network scanning."""
    UNKNOWN = "Unknown"
    COMPUTER = "Computer"
    SERVER = "Server"
    ROUTER = "Router"
    SWITCH = "Switch"
    PRINTER = "Printer"
    MOBILE_DEVICE = "MobileDevice"
    IOT_DEVICE = "IoTDevice"
    NETWORK_STORAGE = "NetworkStorage"

    @property
    def is_infrastructure(self) -> bool:
        return self in (DeviceType.ROUTER, DeviceType.SWITCH)


class PortState(Enum):
    """State of a probed TCP port. Only OPEN ports are kept on a device."""
    OPEN = "Open"
    CLOSED = "Closed"
    FILTERED = "Filtered"


def _format_timestamp(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass
class NetworkPort:
    """
    A TCP port found on a device.

    Attributes:
        port_number: Port number (1-65535)
        protocol: Transport protocol, always "TCP" for connect scans
        service_name: Well-known service name, if the port is in the table
        state: Port state
    """
    port_number: int
    protocol: str = "TCP"
    service_name: Optional[str] = None
    state: PortState = PortState.OPEN

    def to_dict(self) -> Dict[str, Any]:
        return {
            "portNumber": self.port_number,
            "protocol": self.protocol,
            "serviceName": self.service_name,
            "state": self.state.value,
        }


@dataclass
class Device:
    """
    Information about a discovered network device.

    Attributes:
        id: Stable id derived from the device's address
        ipv4_addresses: IPv4 addresses, the first one is the primary address
        ipv6_addresses: IPv6 addresses
        hostname: Reverse-DNS name, if resolvable
        mac_address: Link-layer address as "AA:BB:CC:DD:EE:FF"
        open_ports: Open ports, unique by number and sorted ascending
        device_type: Classified device type
        operating_system: Heuristic OS guess
        last_seen: Time of the most recent successful probe
        first_discovered: Time the device was first seen; never changes
        is_online: Whether the most recent reachability probe succeeded
        default_gateway: Gateway of the scanning host's interface facing the device
        connected_to: Neighbour device ids, filled by the topology components
    """
    id: str
    ipv4_addresses: List[str] = field(default_factory=list)
    ipv6_addresses: List[str] = field(default_factory=list)
    hostname: Optional[str] = None
    mac_address: Optional[str] = None
    open_ports: List[NetworkPort] = field(default_factory=list)
    device_type: DeviceType = DeviceType.UNKNOWN
    operating_system: Optional[str] = None
    last_seen: Optional[datetime] = None
    first_discovered: Optional[datetime] = None
    is_online: bool = False
    default_gateway: Optional[str] = None
    connected_to: List[str] = field(default_factory=list)

    @classmethod
    def from_address(cls, address: str, seen_at: Optional[datetime] = None) -> "Device":
        """
        Create a device for an address that just answered a probe.

        Args:
            address: IPv4 or IPv6 address
            seen_at: Discovery time, used for both timestamps

        Returns:
            Device with the address filed under its family
        """
        device = cls(id=device_id_from_address(address), is_online=True,
                     first_discovered=seen_at, last_seen=seen_at)
        if is_ipv6(address):
            device.ipv6_addresses.append(address)
        else:
            device.ipv4_addresses.append(address)
        return device

    @property
    def primary_address(self) -> Optional[str]:
        if self.ipv4_addresses:
            return self.ipv4_addresses[0]
        if self.ipv6_addresses:
            return self.ipv6_addresses[0]
        return None

    @property
    def open_port_numbers(self) -> List[int]:
        return [port.port_number for port in self.open_ports]

    def has_port(self, port_number: int) -> bool:
        return any(port.port_number == port_number for port in self.open_ports)

    def has_address(self, address: str) -> bool:
        return address in self.ipv4_addresses or address in self.ipv6_addresses

    def set_open_ports(self, ports: List[NetworkPort]) -> None:
        """Keep only open ports, one per number, ordered ascending."""
        unique: Dict[int, NetworkPort] = {}
        for port in ports:
            if port.state == PortState.OPEN and port.port_number not in unique:
                unique[port.port_number] = port
        self.open_ports = [unique[number] for number in sorted(unique)]

    def add_neighbor(self, device_id: str) -> None:
        if device_id != self.id and device_id not in self.connected_to:
            self.connected_to.append(device_id)

    def refresh_from(self, scanned: "Device") -> None:
        """
        Overwrite attributes with a newer scan of the same address.

        ``first_discovered`` and ``connected_to`` are kept; ``last_seen`` moves
        forward to the newer scan.
        """
        self.ipv4_addresses = list(scanned.ipv4_addresses)
        self.ipv6_addresses = list(scanned.ipv6_addresses)
        self.hostname = scanned.hostname
        self.mac_address = scanned.mac_address
        self.set_open_ports(scanned.open_ports)
        self.device_type = scanned.device_type
        self.operating_system = scanned.operating_system
        self.is_online = scanned.is_online
        self.default_gateway = scanned.default_gateway
        if scanned.last_seen and (self.last_seen is None or scanned.last_seen > self.last_seen):
            self.last_seen = scanned.last_seen
        if self.first_discovered is None:
            self.first_discovered = scanned.first_discovered

    def sort_key(self):
        return ip_sort_key(self.ipv4_addresses[0] if self.ipv4_addresses else None)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "ipv4Addresses": list(self.ipv4_addresses),
            "ipv6Addresses": list(self.ipv6_addresses),
            "hostname": self.hostname,
            "macAddress": self.mac_address,
            "openPorts": [port.to_dict() for port in self.open_ports],
            "deviceType": self.device_type.value,
            "operatingSystem": self.operating_system,
            "lastSeen": _format_timestamp(self.last_seen),
            "firstDiscovered": _format_timestamp(self.first_discovered),
            "isOnline": self.is_online,
            "defaultGateway": self.default_gateway,
            "connectedTo": list(self.connected_to),
        }


@dataclass
class ScanNetworkResult:
    """
    Result of a batch network scan.

    Attributes:
        devices: Discovered devices sorted by primary IPv4 address
        scan_start_time: When the scan started
        scan_end_time: When the scan finished
        network_scanned: Range that was actually scanned
    """
    devices: List[Device]
    scan_start_time: datetime
    scan_end_time: datetime
    network_scanned: str

    @property
    def total_devices_found(self) -> int:
        return len(self.devices)

    @property
    def duration_seconds(self) -> float:
        return (self.scan_end_time - self.scan_start_time).total_seconds()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "devices": [device.to_dict() for device in self.devices],
            "totalDevicesFound": self.total_devices_found,
            "scanStartTime": _format_timestamp(self.scan_start_time),
            "scanEndTime": _format_timestamp(self.scan_end_time),
            "networkScanned": self.network_scanned,
        }
