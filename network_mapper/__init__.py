"""
Network Mapper

Discovers live hosts on an address range, fingerprints them (open ports,
hostname, MAC address, device type and OS guess) and reconstructs the
network topology connecting them, from SNMP neighbour tables where
available and from heuristics where not.
"""

__version__ = "1.0.0"
__author__ = "Network Mapper Team"
