# tests/test_topology_mapper.py

import threading

from network_mapper.config.config_loader import TopologyConfiguration
from network_mapper.core.data_models import DeviceType
from network_mapper.topology.topology_inferrer import TopologyInferrer
from network_mapper.topology.topology_mapper import TopologyMapper
from network_mapper.topology.topology_prober import LLDP_REM_SYS_NAME, TopologyProber

from conftest import FakeWalker


def office(make_device):
    return [
        make_device("192.168.1.1", DeviceType.ROUTER, hostname="gw"),
        make_device("192.168.1.2", DeviceType.SWITCH, hostname="sw"),
        make_device("192.168.1.10", hostname="pc"),
    ]


def test_snmp_links_are_kept_and_inference_adds(make_device, check_symmetric):
    devices = office(make_device)
    walker = FakeWalker({("192.168.1.2", LLDP_REM_SYS_NAME): [(LLDP_REM_SYS_NAME + ".0.1.1", "pc")]})
    mapper = TopologyMapper(prober=TopologyProber(walker), inferrer=TopologyInferrer())

    adjacency = mapper.map_topology(devices)

    assert "192_168_1_10" in adjacency["192_168_1_2"]
    assert "192_168_1_10" in adjacency["192_168_1_1"]
    assert "192_168_1_2" in adjacency["192_168_1_1"]
    check_symmetric(adjacency)

    by_id = {d.id: d for d in devices}
    for device_id, neighbors in adjacency.items():
        assert by_id[device_id].connected_to == neighbors


def test_inference_can_be_disabled(make_device):
    devices = office(make_device)
    mapper = TopologyMapper(TopologyConfiguration(enable_inference=False), prober=TopologyProber(FakeWalker({})))

    adjacency = mapper.map_topology(devices)

    assert adjacency == {d.id: [] for d in devices}


def test_cancellation_skips_inference(make_device):
    devices = office(make_device)
    cancel = threading.Event()
    cancel.set()
    mapper = TopologyMapper(prober=TopologyProber(FakeWalker({})))

    adjacency = mapper.map_topology(devices, cancel_event=cancel)

    assert all(neighbors == [] for neighbors in adjacency.values())
