# tests/test_address_range.py

import pytest

from network_mapper.core.address_range import AddressRangeExpander


@pytest.fixture
def expander():
    return AddressRangeExpander()


def test_cidr_24_excludes_network_and_broadcast(expander):
    expansion = expander.expand("192.168.1.0/24")

    assert expansion.ok
    assert len(expansion.addresses) == 254
    assert expansion.addresses[0] == "192.168.1.1"
    assert expansion.addresses[-1] == "192.168.1.254"
    assert "192.168.1.0" not in expansion.addresses
    assert "192.168.1.255" not in expansion.addresses


@pytest.mark.parametrize("prefix", [22, 28, 30])
def test_cidr_host_count(expander, prefix):
    expansion = expander.expand(f"10.20.0.0/{prefix}")

    assert len(expansion.addresses) == 2 ** (32 - prefix) - 2
    assert len(set(expansion.addresses)) == len(expansion.addresses)


def test_cidr_with_host_bits_set_uses_network_address(expander):
    expansion = expander.expand("192.168.1.77/30")

    assert expansion.addresses == ["192.168.1.77", "192.168.1.78"]


def test_range_is_inclusive_and_ordered(expander):
    expansion = expander.expand("10.0.0.1-10.0.0.3")

    assert expansion.addresses == ["10.0.0.1", "10.0.0.2", "10.0.0.3"]


def test_range_across_octet_boundary(expander):
    expansion = expander.expand("10.0.0.254-10.0.1.1")

    assert expansion.addresses == ["10.0.0.254", "10.0.0.255", "10.0.1.0", "10.0.1.1"]


def test_range_over_limit_is_rejected_not_truncated(expander):
    expansion = expander.expand("10.0.0.0-10.1.0.0")

    assert expansion.addresses == []
    assert not expansion.ok
    assert "65536" in expansion.diagnostic


def test_range_at_limit_is_accepted(expander):
    expansion = expander.expand("10.0.0.0-10.0.255.255")

    assert len(expansion.addresses) == 65536


@pytest.mark.parametrize("bad_input", [
    "",
    "192.168.1.0",
    "192.168.1.0/abc",
    "192.168.1.0/33",
    "192.168.1/24",
    "192.168.1.0/24/8",
    "10.0.0.5-10.0.0.1",
    "10.0.0.1-10.0.0.2-10.0.0.3",
    "10.0.0.1-not.an.ip",
    "::1-::5",
])
def test_malformed_input_yields_empty_with_diagnostic(expander, bad_input):
    expansion = expander.expand(bad_input)

    assert expansion.addresses == []
    assert expansion.diagnostic


@pytest.mark.parametrize("cidr", ["192.168.1.10/31", "192.168.1.10/32"])
def test_cidr_without_host_addresses_has_diagnostic(expander, cidr):
    expansion = expander.expand(cidr)

    assert expansion.addresses == []
    assert not expansion.ok
    assert "no host addresses" in expansion.diagnostic


@pytest.mark.parametrize("cidr", ["0.0.0.0/0", "10.0.0.0/8", "10.0.0.0/15"])
def test_cidr_over_limit_is_rejected_before_expansion(expander, cidr):
    expansion = expander.expand(cidr)

    assert expansion.addresses == []
    assert "limit of 65536" in expansion.diagnostic


def test_cidr_16_is_within_limit(expander):
    expansion = expander.expand("172.16.0.0/16")

    assert expansion.ok
    assert len(expansion.addresses) == 65534
