"""
Scanner modules for the Network Mapper.

This package contains the per-host probes (reachability, TCP ports, host
attributes) and the SNMP walk primitive used by topology discovery.
"""

from .base_scanner import BaseScanner
from .ping_scanner import PingScanner
from .port_scanner import PortScanner, COMMON_SERVICES
from .host_resolver import HostResolver, HostAttributes
from .snmp_walker import SnmpWalker

__all__ = [
    'BaseScanner',
    'PingScanner',
    'PortScanner',
    'COMMON_SERVICES',
    'HostResolver',
    'HostAttributes',
    'SnmpWalker',
]
