# tests/test_error_handler.py

from network_mapper.utils import error_handler
from network_mapper.utils.error_handler import (
    ErrorSeverity,
    ErrorType,
    ProbeFailure,
    ProtocolFailure,
    RangeParseError,
    ScanError,
    host_failure,
    unexpected_failure,
)


def test_host_failure_is_soft_and_carries_step_context():
    failure = host_failure("ports", "ScannerOrchestrator", "10.0.0.3", RuntimeError("socket layer"))

    assert isinstance(failure, ProbeFailure)
    assert failure.error_type == ErrorType.PROBE_FAILURE
    assert failure.error_context.severity == ErrorSeverity.LOW
    assert failure.error_context.operation == "ports"
    assert failure.error_context.additional_info == {
        "address": "10.0.0.3",
        "exception": "RuntimeError: socket layer",
    }
    assert str(failure) == "Error scanning device 10.0.0.3 during ports"


def test_unexpected_failure_names_the_cause():
    error = unexpected_failure("scan_network", "ScannerOrchestrator", KeyError("x"), range="10.0.0.0/24")

    assert isinstance(error, ScanError)
    assert error.error_context.additional_info == {"range": "10.0.0.0/24", "cause": "KeyError"}


def test_every_error_type_has_a_raised_class():
    raised = {cls.error_type for cls in (ProbeFailure, RangeParseError, ProtocolFailure, ScanError)}

    assert raised == set(ErrorType)
    assert not hasattr(error_handler, "ConfigurationError")
