# infrabase/core/network_graph.py
"""
Network Priority Graph
Directed, weighted links between named networks
"""

from itertools import product
from typing import Dict, Iterable, NamedTuple, Optional, Tuple

from infrabase.database.models import NetworkLink


class BestLink(NamedTuple):
    network: str
    other_network: str
    priority: int


class NetworkPriorityGraph:
    """
    Map of (network, other_network) -> priority, lower = more preferred

    Links are directed: (A, B) says nothing about (B, A).
    """

    def __init__(self, links: Optional[Dict[Tuple[str, str], int]] = None):
        self._links: Dict[Tuple[str, str], int] = dict(links or {})

    @classmethod
    def from_links(cls, rows: Iterable[NetworkLink]) -> "NetworkPriorityGraph":
        return cls({(row.network, row.other_network): row.priority for row in rows})

    def __len__(self) -> int:
        return len(self._links)

    def priority(self, network: str, other_network: str) -> Optional[int]:
        return self._links.get((network, other_network))

    def best_link(self, source_networks: Iterable[str], dest_networks: Iterable[str]) -> Optional[BestLink]:
        """
        Lowest-priority link from any source network to any destination network

        Ties on priority go to the lexicographically smallest
        (network, other_network) pair, so the answer never depends on
        set iteration order.

        Returns:
            BestLink or None if no pair is linked
        """
        candidates = [
            BestLink(src, dst, self._links[(src, dst)])
            for src, dst in product(set(source_networks), set(dest_networks))
            if (src, dst) in self._links
        ]
        if not candidates:
            return None
        return min(candidates, key=lambda link: (link.priority, link.network, link.other_network))
