"""
Core components for scanning, classification and caching.
"""

from .data_models import Device, DeviceType, NetworkPort, PortState, ScanNetworkResult
from .address_range import AddressRangeExpander, RangeExpansion
from .device_classifier import DeviceClassifier, ClassificationRule
from .device_cache import DeviceCache
from .host_platform import HostPlatform, UnixHostPlatform, MacHostPlatform, WindowsHostPlatform, get_host_platform

__all__ = [
    'Device',
    'DeviceType',
    'NetworkPort',
    'PortState',
    'ScanNetworkResult',
    'AddressRangeExpander',
    'RangeExpansion',
    'DeviceClassifier',
    'ClassificationRule',
    'DeviceCache',
    'HostPlatform',
    'UnixHostPlatform',
    'MacHostPlatform',
    'WindowsHostPlatform',
    'get_host_platform',
]
