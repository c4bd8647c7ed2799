"""
Physical topology discovery over SNMP.

Every Router or Switch is asked for its neighbours through a chain of
walks, stopping at the first one that matches a known device:

1. LLDP remote system names, matched to hostnames exactly (case-insensitive)
2. CDP cache device ids, matched as a case-insensitive substring of hostnames
3. Bridge forwarding table, whose OID suffix is read as a MAC address

A device without a working agent just contributes no links.
"""

import threading
from typing import Callable, List, Optional, Tuple

from ..core.data_models import Device
from ..scanners.snmp_walker import SnmpWalker, VarBind
from ..utils.error_handler import ProtocolFailure
from ..utils.logger import Logger, get_logger
from .adjacency import AdjacencyMap


# SNMP OIDs for LLDP
LLDP_REM_SYS_NAME = "1.0.8802.1.1.2.1.4.1.1.9"

# SNMP OIDs for CDP (Cisco Discovery Protocol)
CDP_CACHE_DEVICE_ID = "1.3.6.1.4.1.9.9.23.1.2.1.1.6"

# SNMP OIDs for bridge MIB (MAC address table)
DOT1D_TP_FDB_PORT = "1.3.6.1.2.1.17.4.3.1.2"


def mac_from_oid_suffix(oid: str) -> Optional[str]:
    """
    Read the last six components of an OID as MAC octets.

    Args:
        oid: Dotted OID such as "1.3.6.1.2.1.17.4.3.1.2.0.17.34.51.68.85"

    Returns:
        Optional[str]: "00:11:22:33:44:55", or None if the suffix is not six bytes
    """
    parts = oid.strip(".").split(".")
    if len(parts) < 6:
        return None
    try:
        octets = [int(part) for part in parts[-6:]]
    except ValueError:
        return None
    if any(not 0 <= octet <= 255 for octet in octets):
        return None
    return ":".join(f"{octet:02X}" for octet in octets)


class TopologyProber:
    """Discovers adjacency between known devices by querying infrastructure agents."""

    def __init__(self, walker: Optional[SnmpWalker] = None, logger: Optional[Logger] = None):
        self.walker = walker or SnmpWalker()
        self.logger = logger or get_logger(__name__)
        self.strategies: List[Tuple[str, str, Callable[[VarBind, List[Device]], Optional[Device]]]] = [
            ("LLDP", LLDP_REM_SYS_NAME, self._match_lldp),
            ("CDP", CDP_CACHE_DEVICE_ID, self._match_cdp),
            ("MAC table", DOT1D_TP_FDB_PORT, self._match_mac_table),
        ]

    def discover_physical_connections(
        self,
        devices: List[Device],
        cancel_event: Optional[threading.Event] = None,
    ) -> AdjacencyMap:
        """
        Probe every infrastructure device and record symmetric links.

        Args:
            devices: All known devices
            cancel_event: Checked between infrastructure devices

        Returns:
            AdjacencyMap seeded with every device id
        """
        self.logger.info(f"Starting physical topology discovery for {len(devices)} devices")
        connections = AdjacencyMap(device.id for device in devices)

        infrastructure = [device for device in devices if device.device_type.is_infrastructure]
        self.logger.info(f"Found {len(infrastructure)} infrastructure devices")

        for infra_device in infrastructure:
            if cancel_event is not None and cancel_event.is_set():
                self.logger.warning("Topology discovery cancelled")
                break

            try:
                connected_ids = self.get_connected_devices(infra_device, devices)
            except Exception as e:
                self.logger.warning(f"Error discovering connections for {infra_device.id}", exception=str(e))
                continue

            for connected_id in connected_ids:
                connections.connect(infra_device.id, connected_id)

        self.logger.info(
            f"Physical topology discovery completed. Found {connections.edge_count()} connections"
        )
        return connections

    def get_connected_devices(self, device: Device, all_devices: List[Device]) -> List[str]:
        """
        Run the discovery chain against one device.

        Returns:
            Distinct neighbour ids from the first strategy that matched anything
        """
        if not device.ipv4_addresses:
            return []

        address = device.ipv4_addresses[0]
        for name, base_oid, matcher in self.strategies:
            matched = self._run_strategy(name, address, base_oid, matcher, device, all_devices)
            if matched:
                return matched
        return []

    def _run_strategy(self, name: str, address: str, base_oid: str,
                      matcher: Callable[[VarBind, List[Device]], Optional[Device]],
                      device: Device, all_devices: List[Device]) -> List[str]:
        try:
            var_binds = self.walker.walk(address, base_oid)
        except ProtocolFailure as e:
            self.logger.debug(f"{name} query failed for {address}: {e}")
            return []
        except Exception as e:
            self.logger.debug(f"{name} query raised for {address}", exception=f"{type(e).__name__}: {e}")
            return []

        matched: List[str] = []
        for var_bind in var_binds:
            neighbor = matcher(var_bind, all_devices)
            if neighbor is not None and neighbor.id != device.id and neighbor.id not in matched:
                matched.append(neighbor.id)
                self.logger.debug(f"{name}: Found connection from {device.id} to {neighbor.id}")
        return matched

    def _match_lldp(self, var_bind: VarBind, devices: List[Device]) -> Optional[Device]:
        remote_name = var_bind[1].strip().lower()
        if not remote_name:
            return None
        for device in devices:
            if device.hostname and device.hostname.lower() == remote_name:
                return device
        return None

    def _match_cdp(self, var_bind: VarBind, devices: List[Device]) -> Optional[Device]:
        remote_id = var_bind[1].strip().lower()
        if not remote_id:
            return None
        for device in devices:
            if device.hostname and remote_id in device.hostname.lower():
                return device
        return None

    def _match_mac_table(self, var_bind: VarBind, devices: List[Device]) -> Optional[Device]:
        mac_address = mac_from_oid_suffix(var_bind[0])
        if mac_address is None:
            return None
        for device in devices:
            if device.mac_address and device.mac_address.replace("-", ":").upper() == mac_address:
                return device
        return None
