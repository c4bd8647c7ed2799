"""
Inference-based topology.

When SNMP discovery finds nothing, plausible links are derived from the
evidence already collected. Five passes run in a fixed order, each only
adding links that are not present yet:

1. subnet clustering
2. gateway clustering
3. port-pattern clustering
4. hostname-pattern clustering
5. MAC-vendor clustering

Running the passes again over their own output adds nothing.
"""

from collections import defaultdict
from typing import Dict, List, Optional

from ..core.data_models import Device, DeviceType
from ..utils.logger import Logger, get_logger
from ..utils.network_utils import mac_vendor_prefix, subnet_prefix
from .adjacency import AdjacencyMap


SERVER_PORT_THRESHOLD = 5
MIN_VENDOR_GROUP_SIZE = 3


def extract_base_pattern(hostname: Optional[str]) -> str:
    """
    Extract the leading location or role token of a hostname.

    "office-pc-01" gives "office"; "01-lab.corp" gives "lab".

    Args:
        hostname: Hostname, case-insensitive

    Returns:
        str: First segment that is not purely numeric, or "" if none
    """
    if not hostname:
        return ""

    for part in hostname.lower().replace("_", "-").replace(".", "-").split("-"):
        if part and not part.lstrip("+-").isdigit():
            return part
    return ""


class TopologyInferrer:
    """Adds heuristic links between known devices."""

    def __init__(self, logger: Optional[Logger] = None):
        self.logger = logger or get_logger(__name__)

    def infer_connections(self, devices: List[Device],
                          connections: Optional[AdjacencyMap] = None) -> AdjacencyMap:
        """
        Run the five inference passes.

        Args:
            devices: All known devices
            connections: Existing links to extend; a new map is created when omitted

        Returns:
            AdjacencyMap containing every device id
        """
        self.logger.info(f"Starting inference-based topology discovery for {len(devices)} devices")

        if connections is None:
            connections = AdjacencyMap()
        for device in devices:
            connections.add_device(device.id)

        before = connections.edge_count()
        self.infer_by_subnet(devices, connections)
        self.infer_by_gateway(devices, connections)
        self.infer_by_port_patterns(devices, connections)
        self.infer_by_hostname_patterns(devices, connections)
        self.infer_by_mac_vendor(devices, connections)

        self.logger.info(
            f"Inference-based topology discovery completed. Inferred {connections.edge_count() - before} connections"
        )
        return connections

    def infer_by_subnet(self, devices: List[Device], connections: AdjacencyMap) -> None:
        """Link every host in a /24 to the first infrastructure device of that /24."""
        groups: Dict[str, List[Device]] = defaultdict(list)
        for device in devices:
            if device.ipv4_addresses:
                groups[subnet_prefix(device.ipv4_addresses[0])].append(device)

        added = 0
        for subnet_devices in groups.values():
            infrastructure = [d for d in subnet_devices if d.device_type.is_infrastructure]
            if not infrastructure:
                continue

            # Order of discovery decides which device is the hub
            main_infra = infrastructure[0]
            for device in subnet_devices:
                if not device.device_type.is_infrastructure:
                    added += connections.connect(main_infra.id, device.id)

            for i, first in enumerate(infrastructure):
                for second in infrastructure[i + 1:]:
                    added += connections.connect(first.id, second.id)

        self.logger.debug(f"Subnet-based inference: Added {added} connections")

    def infer_by_gateway(self, devices: List[Device], connections: AdjacencyMap) -> None:
        groups: Dict[str, List[Device]] = defaultdict(list)
        for device in devices:
            if device.default_gateway:
                groups[device.default_gateway].append(device)

        added = 0
        for gateway, members in groups.items():
            gateway_device = next((d for d in devices if gateway in d.ipv4_addresses), None)
            if gateway_device is None:
                continue

            for device in members:
                if device.id != gateway_device.id:
                    added += connections.connect(gateway_device.id, device.id)

        self.logger.debug(f"Gateway-based inference: Added {added} connections")

    def infer_by_port_patterns(self, devices: List[Device], connections: AdjacencyMap) -> None:
        """Link servers and many-port hosts to an infrastructure device on their /24."""
        servers = [
            d for d in devices
            if d.device_type == DeviceType.SERVER or len(d.open_ports) > SERVER_PORT_THRESHOLD
        ]
        infrastructure = [d for d in devices if d.device_type.is_infrastructure and d.ipv4_addresses]

        added = 0
        for server in servers:
            if not server.ipv4_addresses:
                continue

            subnet = subnet_prefix(server.ipv4_addresses[0])
            closest_infra = next(
                (infra for infra in infrastructure
                 if subnet_prefix(infra.ipv4_addresses[0]) == subnet),
                None,
            )
            if closest_infra is not None:
                added += connections.connect(closest_infra.id, server.id)

        self.logger.debug(f"Port pattern inference: Added {added} connections")

    def infer_by_hostname_patterns(self, devices: List[Device], connections: AdjacencyMap) -> None:
        with_hostnames = [(d, extract_base_pattern(d.hostname)) for d in devices if d.hostname]

        added = 0
        for device, base_name in with_hostnames:
            if not base_name:
                continue

            for related, related_base in with_hostnames:
                if related.id != device.id and related_base == base_name \
                        and related.device_type.is_infrastructure:
                    added += connections.connect(device.id, related.id)

        self.logger.debug(f"Hostname pattern inference: Added {added} connections")

    def infer_by_mac_vendor(self, devices: List[Device], connections: AdjacencyMap) -> None:
        """Link hosts to infrastructure sharing their OUI, for OUIs seen on 3+ devices."""
        groups: Dict[str, List[Device]] = defaultdict(list)
        for device in devices:
            prefix = mac_vendor_prefix(device.mac_address)
            if prefix:
                groups[prefix].append(device)

        added = 0
        for vendor_devices in groups.values():
            if len(vendor_devices) < MIN_VENDOR_GROUP_SIZE:
                continue

            vendor_infra = [d for d in vendor_devices if d.device_type.is_infrastructure]
            if not vendor_infra:
                continue

            for device in vendor_devices:
                if device.device_type.is_infrastructure:
                    continue
                for infra in vendor_infra:
                    added += connections.connect(infra.id, device.id)

        self.logger.debug(f"MAC vendor inference: Added {added} connections")
