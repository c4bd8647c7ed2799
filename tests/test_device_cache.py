# tests/test_device_cache.py

from datetime import timedelta

import pytest

from network_mapper.core.data_models import Device, DeviceType
from network_mapper.core.device_cache import DeviceCache


@pytest.fixture
def cache(clock):
    return DeviceCache(ttl_minutes=60, clock=clock)


def test_add_and_get_by_id(cache, make_device):
    device = make_device("192.168.1.10")

    cache.add_or_update(device)

    assert cache.get_by_id("192_168_1_10") is device
    assert cache.count() == 1


def test_get_by_address_scans_both_families(cache):
    v4 = Device.from_address("192.168.1.10")
    v6 = Device.from_address("fe80::1")
    cache.add_or_update(v4)
    cache.add_or_update(v6)

    assert cache.get_by_address("192.168.1.10") is v4
    assert cache.get_by_address("fe80::1") is v6
    assert cache.get_by_address("192.168.1.11") is None


def test_entry_expires_after_ttl(cache, clock, make_device):
    cache.add_or_update(make_device("192.168.1.10"))

    clock.advance(minutes=59)
    assert cache.get_by_id("192_168_1_10") is not None

    clock.advance(minutes=2)
    assert cache.get_by_id("192_168_1_10") is None
    assert cache.count() == 0


def test_reads_do_not_renew_ttl(cache, clock, make_device):
    cache.add_or_update(make_device("192.168.1.10"))

    for _ in range(5):
        clock.advance(minutes=11)
        cache.get_by_address("192.168.1.10")

    clock.advance(minutes=6)
    assert cache.get_by_id("192_168_1_10") is None


def test_writes_renew_ttl(cache, clock, make_device):
    cache.add_or_update(make_device("192.168.1.10"))
    clock.advance(minutes=50)
    cache.add_or_update(make_device("192.168.1.10"))
    clock.advance(minutes=50)

    assert cache.get_by_id("192_168_1_10") is not None


def test_rescan_updates_in_place_and_keeps_history(cache, clock, make_device):
    first = make_device("192.168.1.10", hostname="old", ports=[22])
    discovered_at = clock()
    first.first_discovered = first.last_seen = discovered_at
    first.connected_to = ["192_168_1_1"]
    cache.add_or_update(first)

    clock.advance(minutes=10)
    second = make_device("192.168.1.10", device_type=DeviceType.SERVER, hostname="new", ports=[22, 80])
    second.first_discovered = second.last_seen = clock()
    cached = cache.add_or_update(second)

    assert cached is first
    assert cached.hostname == "new"
    assert cached.device_type == DeviceType.SERVER
    assert cached.open_port_numbers == [22, 80]
    assert cached.last_seen == clock()
    assert cached.first_discovered == discovered_at
    assert cached.connected_to == ["192_168_1_1"]
    assert cache.count() == 1


def test_remove_and_clear(cache, make_device):
    cache.add_or_update(make_device("192.168.1.10"))
    cache.add_or_update(make_device("192.168.1.11"))

    assert cache.remove("192_168_1_10") is True
    assert cache.remove("192_168_1_10") is False
    assert [d.id for d in cache.get_all()] == ["192_168_1_11"]

    cache.clear()
    assert len(cache) == 0


def test_mark_offline_keeps_last_seen_and_expiry(cache, clock, make_device):
    device = make_device("192.168.1.10")
    device.is_online = True
    device.last_seen = clock()
    cache.add_or_update(device)

    clock.advance(minutes=30)
    assert cache.mark_offline("192.168.1.10") is True
    assert cache.mark_offline("192.168.1.11") is False

    cached = cache.get_by_address("192.168.1.10")
    assert cached.is_online is False
    assert cached.last_seen == clock() - timedelta(minutes=30)

    clock.advance(minutes=31)
    assert cache.get_by_id("192_168_1_10") is None
