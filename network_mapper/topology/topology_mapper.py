"""
Topology mapping: SNMP discovery first, inference to fill the gaps.
"""

import threading
from typing import Dict, List, Optional

from ..config.config_loader import TopologyConfiguration
from ..core.data_models import Device
from ..scanners.snmp_walker import SnmpWalker
from ..utils.logger import Logger, get_logger
from .topology_inferrer import TopologyInferrer
from .topology_prober import TopologyProber


class TopologyMapper:
    """
    Builds the adjacency map for a device list and stamps ``connected_to``.

    The inferrer runs over the prober's map, so inferred links only add to
    what SNMP discovery found.
    """

    def __init__(self, config: Optional[TopologyConfiguration] = None,
                 prober: Optional[TopologyProber] = None,
                 inferrer: Optional[TopologyInferrer] = None,
                 logger: Optional[Logger] = None):
        self.config = config or TopologyConfiguration()
        self.logger = logger or get_logger(__name__)
        self.prober = prober or TopologyProber(SnmpWalker(self.config))
        self.inferrer = inferrer or TopologyInferrer()

    def map_topology(self, devices: List[Device],
                     cancel_event: Optional[threading.Event] = None) -> Dict[str, List[str]]:
        """
        Discover and infer links between devices.

        Args:
            devices: Devices from a scan or the cache
            cancel_event: Stops SNMP probing between infrastructure devices

        Returns:
            Dict mapping each device id to its neighbour ids
        """
        self.logger.section("Topology mapping")
        connections = self.prober.discover_physical_connections(devices, cancel_event)

        if not self.config.enable_inference:
            self.logger.info("Topology inference disabled by configuration")
        elif cancel_event is not None and cancel_event.is_set():
            self.logger.warning("Skipping topology inference after cancellation")
        else:
            self.inferrer.infer_connections(devices, connections)

        adjacency = connections.to_dict()
        for device in devices:
            for neighbor_id in adjacency.get(device.id, []):
                device.add_neighbor(neighbor_id)

        self.logger.success(f"Topology mapped: {connections.edge_count()} links between {len(devices)} devices")
        return adjacency
