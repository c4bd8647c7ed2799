"""
Error taxonomy for the Network Mapper.

Every failure the engine can meet falls in one of four classes:

* probe failures (host unreachable, a host pipeline step failing) are soft
  and drop the host from batch output;
* parse failures (malformed range input) become an empty expansion plus a
  diagnostic;
* protocol failures (a management-protocol query failing or timing out)
  advance the topology fallback chain;
* anything else is an unexpected failure and is the only class surfaced
  to the caller, as ScanError.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class ErrorType(Enum):
    """Enumeration for the classes of failure the engine distinguishes."""
    PROBE_FAILURE = "probe_failure"
    PARSE_FAILURE = "parse_failure"
    PROTOCOL_FAILURE = "protocol_failure"
    UNEXPECTED_FAILURE = "unexpected_failure"


class ErrorSeverity(Enum):
    """Enumeration for error severity levels."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass
class ErrorContext:
    """
    Context information attached to a raised error.

    Attributes:
        error_type: Class of failure
        severity: Severity level of the error
        operation: Operation that was being performed when the error occurred
        component: Component where the error occurred
        additional_info: Additional context information (target address, OID...)
    """
    error_type: ErrorType
    severity: ErrorSeverity
    operation: str
    component: str
    additional_info: Dict[str, Any] = field(default_factory=dict)


class NetworkMapperError(Exception):
    """Base exception class for the Network Mapper."""

    error_type = ErrorType.UNEXPECTED_FAILURE

    def __init__(self, message: str, error_context: Optional[ErrorContext] = None):
        super().__init__(message)
        self.error_context = error_context


class ProbeFailure(NetworkMapperError):
    """A single host could not be probed; never surfaced past the orchestrator."""
    error_type = ErrorType.PROBE_FAILURE


class RangeParseError(NetworkMapperError):
    """Malformed CIDR or start-end range text."""
    error_type = ErrorType.PARSE_FAILURE


class ProtocolFailure(NetworkMapperError):
    """A management-protocol query failed or timed out."""
    error_type = ErrorType.PROTOCOL_FAILURE


class ScanError(NetworkMapperError):
    """Unexpected failure reported to the caller of a boundary operation."""
    error_type = ErrorType.UNEXPECTED_FAILURE


def unexpected_failure(
    operation: str, component: str, error: Exception, **additional_info
) -> ScanError:
    """
    Wrap an unanticipated exception as a ScanError for the boundary.

    Args:
        operation: Boundary operation that failed
        component: Component that raised
        error: Original exception
        **additional_info: Extra context such as the requested range

    Returns:
        ScanError chained to nothing; callers use ``raise ... from error``
    """
    context = ErrorContext(
        error_type=ErrorType.UNEXPECTED_FAILURE,
        severity=ErrorSeverity.HIGH,
        operation=operation,
        component=component,
        additional_info=dict(additional_info, cause=type(error).__name__),
    )
    return ScanError(f"{operation} failed: {error}", context)


def host_failure(step: str, component: str, address: str, error: Exception) -> ProbeFailure:
    """Wrap an exception raised while gathering one host as a soft ProbeFailure."""
    context = ErrorContext(
        error_type=ErrorType.PROBE_FAILURE,
        severity=ErrorSeverity.LOW,
        operation=step,
        component=component,
        additional_info={"address": address, "exception": f"{type(error).__name__}: {error}"},
    )
    return ProbeFailure(f"Error scanning device {address} during {step}", context)
