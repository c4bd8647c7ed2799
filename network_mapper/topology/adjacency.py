"""
Symmetric adjacency map between device ids.

Every ``connect(a, b)`` records both a->b and b->a, so ``b in map[a]`` holds
exactly when ``a in map[b]``. Self-links are never recorded. A map is owned
by one pass at a time and is not thread-safe.
"""

from typing import Dict, Iterable, List, Optional


class AdjacencyMap:
    """Insertion-ordered, duplicate-free, symmetric neighbour lists."""

    def __init__(self, device_ids: Optional[Iterable[str]] = None):
        self._neighbors: Dict[str, List[str]] = {}
        for device_id in device_ids or []:
            self.add_device(device_id)

    def add_device(self, device_id: str) -> None:
        self._neighbors.setdefault(device_id, [])

    def connect(self, first_id: str, second_id: str) -> bool:
        """
        Record an undirected edge.

        Args:
            first_id: Device id
            second_id: Device id

        Returns:
            bool: True if the edge was new
        """
        if first_id == second_id:
            return False

        first = self._neighbors.setdefault(first_id, [])
        second = self._neighbors.setdefault(second_id, [])

        added = False
        if second_id not in first:
            first.append(second_id)
            added = True
        if first_id not in second:
            second.append(first_id)
            added = True
        return added

    def neighbors(self, device_id: str) -> List[str]:
        return list(self._neighbors.get(device_id, []))

    def is_connected(self, first_id: str, second_id: str) -> bool:
        return second_id in self._neighbors.get(first_id, [])

    def edge_count(self) -> int:
        return sum(len(neighbors) for neighbors in self._neighbors.values()) // 2

    def to_dict(self) -> Dict[str, List[str]]:
        return {device_id: list(neighbors) for device_id, neighbors in self._neighbors.items()}

    def __contains__(self, device_id: str) -> bool:
        return device_id in self._neighbors

    def __len__(self) -> int:
        return len(self._neighbors)
