# tests/test_host_platform.py

import subprocess
import sys

import pytest

from network_mapper.core.host_platform import (
    MacHostPlatform,
    UnixHostPlatform,
    WindowsHostPlatform,
    create_host_platform,
    run_command,
)


class ScriptedRunner:
    """Maps a command's first two words to canned output or an exception."""

    def __init__(self, responses):
        self.responses = responses
        self.commands = []

    def __call__(self, cmd, timeout):
        self.commands.append(cmd)
        response = self.responses.get(" ".join(cmd[:2]))
        if isinstance(response, Exception):
            raise response
        if response is None:
            raise FileNotFoundError(cmd[0])
        return response


LINUX_PING_OK = """PING 192.168.1.1 (192.168.1.1) 56(84) bytes of data.
64 bytes from 192.168.1.1: icmp_seq=1 ttl=64 time=0.512 ms

--- 192.168.1.1 ping statistics ---
1 packets transmitted, 1 received, 0% packet loss, time 0ms
"""

LINUX_PING_LOST = """PING 192.168.1.99 (192.168.1.99) 56(84) bytes of data.

--- 192.168.1.99 ping statistics ---
1 packets transmitted, 0 received, 100% packet loss, time 0ms
"""

WINDOWS_PING_OK = """Pinging 192.168.1.1 with 32 bytes of data:
Reply from 192.168.1.1: bytes=32 time<1ms TTL=64

Ping statistics for 192.168.1.1:
    Packets: Sent = 1, Received = 1, Lost = 0 (0% loss),
"""

WINDOWS_PING_UNREACHABLE = """Pinging 192.168.1.99 with 32 bytes of data:
Reply from 192.168.1.50: Destination host unreachable.

Ping statistics for 192.168.1.99:
    Packets: Sent = 1, Received = 1, Lost = 0 (0% loss),
"""

ROUTE_PRINT = """===========================================================================
IPv4 Route Table
===========================================================================
Active Routes:
Network Destination        Netmask          Gateway       Interface  Metric
          0.0.0.0          0.0.0.0      192.168.1.1    192.168.1.50     25
        127.0.0.0        255.0.0.0         On-link         127.0.0.1    331
      192.168.1.0    255.255.255.0         On-link      192.168.1.50    281
"""

PROC_NET_ROUTE = """Iface\tDestination\tGateway \tFlags\tRefCnt\tUse\tMetric\tMask\t\tMTU\tWindow\tIRTT
eth0\t00000000\t0101A8C0\t0003\t0\t0\t100\t00000000\t0\t0\t0
eth0\t0001A8C0\t00000000\t0001\t0\t0\t100\t00FFFFFF\t0\t0\t0
wlan0\t00000000\t01000A0A\t0003\t0\t0\t600\t00000000\t0\t0\t0
"""


def test_unix_ping_command_rounds_timeout_up_to_seconds():
    platform = UnixHostPlatform(runner=ScriptedRunner({}))

    assert platform.ping_command("10.0.0.1", 1500) == ["ping", "-c", "1", "-W", "2", "10.0.0.1"]
    assert platform.ping_command("10.0.0.1", 200) == ["ping", "-c", "1", "-W", "1", "10.0.0.1"]


def test_mac_and_windows_ping_commands_use_milliseconds():
    assert MacHostPlatform(runner=ScriptedRunner({})).ping_command("10.0.0.1", 800)[3:5] == ["-W", "800"]
    assert WindowsHostPlatform(runner=ScriptedRunner({})).ping_command("10.0.0.1", 800) == \
        ["ping", "-n", "1", "-w", "800", "10.0.0.1"]


def test_unix_ping_output_analysis():
    platform = UnixHostPlatform(runner=ScriptedRunner({"ping -c": LINUX_PING_OK}))

    assert platform.ping("192.168.1.1", 1000) is True
    assert platform.analyze_ping_output(LINUX_PING_LOST, "192.168.1.99") is False
    assert platform.analyze_ping_output("connect: Network is unreachable", "10.9.9.9") is False
    assert platform.analyze_ping_output("", "10.9.9.9") is False


def test_windows_unreachable_reply_is_not_success():
    platform = WindowsHostPlatform(runner=ScriptedRunner({}))

    assert platform.analyze_ping_output(WINDOWS_PING_OK, "192.168.1.1") is True
    assert platform.analyze_ping_output(WINDOWS_PING_UNREACHABLE, "192.168.1.99") is False


def test_ping_timeout_is_negative():
    runner = ScriptedRunner({"ping -c": subprocess.TimeoutExpired(["ping"], 3)})

    assert UnixHostPlatform(runner=runner).ping("192.168.1.1", 1000) is False


def test_unix_mac_from_arp():
    runner = ScriptedRunner({
        "arp -n": "Address   HWtype  HWaddress           Flags Mask  Iface\n"
                  "192.168.1.1  ether  00:1a:2b:3c:4d:5e   C           eth0\n",
    })

    assert UnixHostPlatform(runner=runner).lookup_mac("192.168.1.1") == "00:1A:2B:3C:4D:5E"


def test_unix_mac_falls_back_to_ip_neigh():
    runner = ScriptedRunner({
        "ip neigh": "192.168.1.7 dev eth0 lladdr 0:1a:2b:3c:4d:5e REACHABLE\n",
    })
    platform = UnixHostPlatform(runner=runner)

    assert platform.lookup_mac("192.168.1.7") == "00:1A:2B:3C:4D:5E"
    assert [cmd[0] for cmd in runner.commands] == ["arp", "ip"]


def test_unix_mac_incomplete_entry_is_none():
    runner = ScriptedRunner({
        "arp -n": "192.168.1.9 (192.168.1.9) -- no entry\n",
        "ip neigh": "192.168.1.9 dev eth0 FAILED\n",
    })

    assert UnixHostPlatform(runner=runner).lookup_mac("192.168.1.9") is None


def test_windows_mac_from_arp_a():
    runner = ScriptedRunner({
        "arp -a": "\nInterface: 192.168.1.50 --- 0x4\n"
                  "  Internet Address      Physical Address      Type\n"
                  "  192.168.1.1           00-1a-2b-3c-4d-5e     dynamic\n",
    })
    platform = WindowsHostPlatform(runner=runner)

    assert platform.lookup_mac("192.168.1.1") == "00:1A:2B:3C:4D:5E"
    assert platform.lookup_mac("192.168.1.2") is None


def test_unix_default_route():
    runner = ScriptedRunner({"ip route": "default via 192.168.1.1 dev eth0 proto dhcp metric 100\n"})

    assert UnixHostPlatform(runner=runner).default_route_gateway() == "192.168.1.1"


def test_unix_default_route_missing_tool():
    assert UnixHostPlatform(runner=ScriptedRunner({})).default_route_gateway() is None


def test_proc_net_route_parsing():
    platform = UnixHostPlatform(runner=ScriptedRunner({}))

    assert platform._parse_proc_net_route(PROC_NET_ROUTE) == {
        "eth0": "192.168.1.1",
        "wlan0": "10.10.0.1",
    }


def test_mac_default_route():
    runner = ScriptedRunner({
        "route -n": "   route to: default\ndestination: default\n    gateway: 10.0.0.1\n  interface: en0\n",
    })

    assert MacHostPlatform(runner=runner).default_route_gateway() == "10.0.0.1"


def test_windows_route_print():
    platform = WindowsHostPlatform(runner=ScriptedRunner({"route print": ROUTE_PRINT}))

    assert platform.default_route_gateway() == "192.168.1.1"
    assert platform.interface_gateways() == {"192.168.1.50": "192.168.1.1"}


@pytest.mark.parametrize("system, expected", [
    ("Windows", WindowsHostPlatform),
    ("Darwin", MacHostPlatform),
    ("Linux", UnixHostPlatform),
    ("FreeBSD", UnixHostPlatform),
])
def test_platform_selection(system, expected):
    assert type(create_host_platform(system, runner=ScriptedRunner({}))) is expected


def test_run_command_tolerates_undecodable_output():
    script = "import sys; sys.stdout.buffer.write(b'Reply from 10.0.0.2: TTL=64 \\xff\\xfe\\n')"

    output = run_command([sys.executable, "-c", script], timeout=10)

    assert "TTL=64" in output


def test_run_command_decodes_with_replacement(monkeypatch):
    seen = {}

    def fake_run(cmd, **kwargs):
        seen.update(kwargs)
        return subprocess.CompletedProcess(cmd, 0, stdout="out", stderr="err")

    monkeypatch.setattr("network_mapper.core.host_platform.subprocess.run", fake_run)

    assert run_command(["ping", "-c", "1", "10.0.0.2"], timeout=2) == "outerr"
    assert seen["errors"] == "replace"
    assert seen["timeout"] == 2
