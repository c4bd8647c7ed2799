# tests/test_data_models.py

from datetime import datetime, timedelta, UTC

from network_mapper.core.data_models import (
    Device,
    DeviceType,
    NetworkPort,
    PortState,
    ScanNetworkResult,
)


def test_from_address_files_address_by_family():
    v4 = Device.from_address("192.168.1.10")
    v6 = Device.from_address("fe80::1")

    assert v4.id == "192_168_1_10"
    assert v4.ipv4_addresses == ["192.168.1.10"] and v4.ipv6_addresses == []
    assert v6.id == "fe80__1"
    assert v6.ipv6_addresses == ["fe80::1"] and v6.primary_address == "fe80::1"
    assert v4.is_online


def test_set_open_ports_keeps_open_unique_sorted():
    device = Device.from_address("10.0.0.1")

    device.set_open_ports([
        NetworkPort(443),
        NetworkPort(22, service_name="SSH"),
        NetworkPort(22),
        NetworkPort(8080, state=PortState.CLOSED),
    ])

    assert device.open_port_numbers == [22, 443]
    assert device.open_ports[0].service_name == "SSH"


def test_add_neighbor_ignores_self_and_duplicates():
    device = Device.from_address("10.0.0.1")

    device.add_neighbor("10_0_0_1")
    device.add_neighbor("10_0_0_2")
    device.add_neighbor("10_0_0_2")

    assert device.connected_to == ["10_0_0_2"]


def test_device_to_dict_uses_camel_case():
    seen = datetime(2025, 1, 1, 12, 0, tzinfo=UTC)
    device = Device.from_address("10.0.0.1", seen_at=seen)
    device.device_type = DeviceType.MOBILE_DEVICE
    device.set_open_ports([NetworkPort(80, service_name="HTTP")])

    data = device.to_dict()

    assert data["ipv4Addresses"] == ["10.0.0.1"]
    assert data["deviceType"] == "MobileDevice"
    assert data["openPorts"] == [
        {"portNumber": 80, "protocol": "TCP", "serviceName": "HTTP", "state": "Open"}
    ]
    assert data["lastSeen"] == "2025-01-01T12:00:00+00:00"
    assert data["firstDiscovered"] == data["lastSeen"]
    assert data["isOnline"] is True
    assert data["connectedTo"] == []


def test_scan_result_summary():
    start = datetime(2025, 1, 1, 12, 0, tzinfo=UTC)
    result = ScanNetworkResult(
        devices=[Device.from_address("10.0.0.1")],
        scan_start_time=start,
        scan_end_time=start + timedelta(seconds=4, milliseconds=500),
        network_scanned="10.0.0.0/30",
    )

    assert result.total_devices_found == 1
    assert result.duration_seconds == 4.5
    assert result.to_dict()["networkScanned"] == "10.0.0.0/30"
    assert result.to_dict()["totalDevicesFound"] == 1


def test_infrastructure_types():
    assert DeviceType.ROUTER.is_infrastructure
    assert DeviceType.SWITCH.is_infrastructure
    assert not DeviceType.SERVER.is_infrastructure
