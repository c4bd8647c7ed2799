"""
Network utility functions for address handling.

This module provides helper functions for IP address validation and
conversion, device id derivation, link-layer address normalization and
subnet membership checks.
"""

import ipaddress
import re
import socket
from typing import Optional, Tuple


_MAC_PATTERN = re.compile(r"([0-9A-Fa-f]{1,2}[:-]){5}[0-9A-Fa-f]{1,2}")


def is_valid_ip(ip_address: str) -> bool:
    """
    Check if a string represents a valid IPv4 address.

    Args:
        ip_address: String to validate as IPv4 address

    Returns:
        bool: True if valid IPv4 address, False otherwise
    """
    try:
        ipaddress.IPv4Address(ip_address)
        return True
    except ipaddress.AddressValueError:
        return False


def is_ipv6(address: str) -> bool:
    try:
        ipaddress.IPv6Address(address)
        return True
    except ipaddress.AddressValueError:
        return False


def ip_to_int(ip_address: str) -> int:
    """
    Convert a dotted IPv4 address to its 32-bit integer value.

    Raises:
        ValueError: If the address is not a valid IPv4 address
    """
    try:
        return int(ipaddress.IPv4Address(ip_address))
    except ipaddress.AddressValueError as e:
        raise ValueError(f"Invalid IP address: {ip_address}") from e


def int_to_ip(value: int) -> str:
    return str(ipaddress.IPv4Address(value))


def device_id_from_address(ip_address: str) -> str:
    """
    Derive the stable device id for an address.

    Dots and colons are replaced by underscores, so "192.168.1.10" becomes
    "192_168_1_10" and two different addresses never share an id.
    """
    return ip_address.strip().replace(":", "_").replace(".", "_")


def normalize_mac(raw: Optional[str]) -> Optional[str]:
    """
    Normalize a link-layer address to uppercase colon-separated form.

    Accepts dash or colon separators and single-digit groups as printed by
    some neighbour tables ("0:1a:2b:3c:4d:5e").

    Args:
        raw: Text containing a MAC address

    Returns:
        Optional[str]: "AA:BB:CC:DD:EE:FF" or None when no MAC is present
    """
    if not raw:
        return None

    match = _MAC_PATTERN.search(raw)
    if not match:
        return None

    groups = re.split(r"[:-]", match.group(0))
    return ":".join(group.zfill(2).upper() for group in groups)


def mac_vendor_prefix(mac_address: Optional[str]) -> Optional[str]:
    """
    Return the OUI (first three octets) of a MAC address as "AA-BB-CC".

    Args:
        mac_address: MAC address in any separator style

    Returns:
        Optional[str]: Vendor prefix, or None for a missing/short address
    """
    if not mac_address:
        return None

    parts = re.split(r"[:-]", mac_address)
    if len(parts) < 3:
        return None

    return "-".join(part.upper() for part in parts[:3])


def subnet_prefix(ip_address: str) -> str:
    """First three octets of an IPv4 address, e.g. "192.168.1"."""
    parts = ip_address.split(".")
    if len(parts) < 3:
        return ip_address
    return ".".join(parts[:3])


def is_in_same_subnet(address: str, network_address: str, netmask: str) -> bool:
    """
    Check whether an address falls in the subnet of an interface.

    Computed bytewise: (address AND mask) == (network_address AND mask).
    Mismatched address families or unparsable input are never in the subnet.

    Args:
        address: Address to test
        network_address: Any address on the interface
        netmask: Interface netmask in dotted form

    Returns:
        bool: True if both addresses share the masked network part
    """
    try:
        address_bytes = ipaddress.ip_address(address).packed
        network_bytes = ipaddress.ip_address(network_address).packed
        mask_bytes = ipaddress.ip_address(netmask).packed
    except ValueError:
        return False

    if not len(address_bytes) == len(network_bytes) == len(mask_bytes):
        return False

    for addr_byte, net_byte, mask_byte in zip(address_bytes, network_bytes, mask_bytes):
        if addr_byte & mask_byte != net_byte & mask_byte:
            return False
    return True


def ip_sort_key(ip_address: Optional[str]) -> Tuple[int, int]:
    """
    Sort key placing valid IPv4 addresses first in numeric order.

    Args:
        ip_address: Address to sort, may be None

    Returns:
        Tuple usable with sorted()
    """
    if ip_address and is_valid_ip(ip_address):
        return (0, ip_to_int(ip_address))
    return (1, 0)


def resolve_hostname(ip_address: str) -> Optional[str]:
    """
    Attempt to resolve an IP address to a hostname via reverse DNS.

    Args:
        ip_address: IP address to resolve

    Returns:
        Optional[str]: Hostname if resolution successful, None otherwise
    """
    try:
        hostname = socket.gethostbyaddr(ip_address)[0]
        return hostname or None
    except (socket.herror, socket.gaierror, socket.timeout, OSError):
        return None
