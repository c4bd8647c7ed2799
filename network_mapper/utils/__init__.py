"""
Utility functions and helper classes.
"""

from .logger import Logger, LogLevel, logger, set_log_level, get_logger
from .error_handler import (
    ErrorContext, ErrorType, ErrorSeverity, NetworkMapperError, ProbeFailure,
    RangeParseError, ProtocolFailure, ScanError
)
from . import network_utils

__all__ = [
    'Logger',
    'LogLevel',
    'logger',
    'set_log_level',
    'get_logger',
    'ErrorContext',
    'ErrorType',
    'ErrorSeverity',
    'NetworkMapperError',
    'ProbeFailure',
    'RangeParseError',
    'ProtocolFailure',
    'ScanError',
    'network_utils',
]
