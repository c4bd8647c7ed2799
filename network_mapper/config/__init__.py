"""
Configuration module for the Network Mapper.
Provides configuration loading and validation for scanning and topology mapping.
"""

from .config_loader import (
    ConfigLoader,
    ScanConfiguration,
    TopologyConfiguration,
    DEFAULT_PORTS,
    PORT_SCAN_CONCURRENCY,
    DEVICE_FRESHNESS_MINUTES,
    MAX_RANGE_ADDRESSES,
)

__all__ = [
    'ConfigLoader',
    'ScanConfiguration',
    'TopologyConfiguration',
    'DEFAULT_PORTS',
    'PORT_SCAN_CONCURRENCY',
    'DEVICE_FRESHNESS_MINUTES',
    'MAX_RANGE_ADDRESSES',
]
