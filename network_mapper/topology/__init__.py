"""
Topology discovery and inference.
"""

from .adjacency import AdjacencyMap
from .topology_prober import TopologyProber
from .topology_inferrer import TopologyInferrer
from .topology_mapper import TopologyMapper

__all__ = ['AdjacencyMap', 'TopologyProber', 'TopologyInferrer', 'TopologyMapper']
