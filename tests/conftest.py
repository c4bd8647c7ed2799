# tests/conftest.py
import threading
from datetime import datetime, timedelta, UTC
from typing import Dict, List, Optional

import pytest

from network_mapper.core.data_models import Device, DeviceType, NetworkPort
from network_mapper.scanners.host_resolver import HostAttributes
from network_mapper.scanners.port_scanner import COMMON_SERVICES
from network_mapper.utils.error_handler import ProtocolFailure


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: Optional[datetime] = None):
        self.now = start or datetime(2025, 1, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class FakePingScanner:
    """Answers for a fixed set of live addresses and records every probe."""

    def __init__(self, alive, on_probe=None):
        self.alive = set(alive)
        self.on_probe = on_probe
        self.calls: List[str] = []
        self._lock = threading.Lock()
        self.in_flight = 0
        self.max_in_flight = 0

    def scan(self, target: str) -> bool:
        with self._lock:
            self.calls.append(target)
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.on_probe:
                self.on_probe(target)
            return target in self.alive
        finally:
            with self._lock:
                self.in_flight -= 1


class FakePortScanner:
    def __init__(self, ports_by_address: Optional[Dict[str, List[int]]] = None):
        self.ports_by_address = ports_by_address or {}

    def scan(self, target: str) -> List[NetworkPort]:
        return [
            NetworkPort(port_number=port, service_name=COMMON_SERVICES.get(port))
            for port in self.ports_by_address.get(target, [])
        ]


class FakeHostResolver:
    def __init__(self, attributes: Optional[Dict[str, HostAttributes]] = None, failing=()):
        self.attributes = attributes or {}
        self.failing = set(failing)

    def scan(self, target: str) -> HostAttributes:
        if target in self.failing:
            raise RuntimeError(f"resolver exploded for {target}")
        return self.attributes.get(target, HostAttributes())


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_device():
    """Factory for devices with an IPv4 address and optional evidence."""

    def _make(address: str, device_type: DeviceType = DeviceType.UNKNOWN, hostname: Optional[str] = None,
              mac: Optional[str] = None, gateway: Optional[str] = None, ports=()) -> Device:
        device = Device.from_address(address)
        device.device_type = device_type
        device.hostname = hostname
        device.mac_address = mac
        device.default_gateway = gateway
        device.set_open_ports([NetworkPort(port_number=port) for port in ports])
        return device

    return _make


def assert_symmetric(adjacency: Dict[str, List[str]]) -> None:
    for device_id, neighbors in adjacency.items():
        assert device_id not in neighbors
        assert len(neighbors) == len(set(neighbors))
        for neighbor in neighbors:
            assert device_id in adjacency[neighbor], f"{neighbor} -> {device_id} missing"


@pytest.fixture
def check_symmetric():
    return assert_symmetric


class FakeWalker:
    """
    Serves canned SNMP walks keyed by (address, base_oid); anything else fails.

    A canned exception instance is raised instead of returned.
    """

    def __init__(self, walks):
        self.walks = walks
        self.calls = []

    def walk(self, address, base_oid):
        self.calls.append((address, base_oid))
        result = self.walks.get((address, base_oid))
        if result is None:
            raise ProtocolFailure(f"no agent at {address}")
        if isinstance(result, Exception):
            raise result
        return result
