"""
Tests for the network priority graph.
"""

from infrabase.core.network_graph import BestLink, NetworkPriorityGraph
from infrabase.database.models import NetworkLink


class TestBestLink:

    def test_lowest_priority_wins(self):
        graph = NetworkPriorityGraph({("A", "B"): 5, ("A", "C"): 1})
        assert graph.best_link({"A"}, {"B", "C"}) == BestLink("A", "C", 1)

    def test_no_linked_pair(self):
        graph = NetworkPriorityGraph({("A", "B"): 5})
        assert graph.best_link({"A"}, {"C"}) is None

    def test_empty_networks(self):
        graph = NetworkPriorityGraph({("A", "B"): 5})
        assert graph.best_link(set(), {"B"}) is None
        assert graph.best_link({"A"}, set()) is None

    def test_links_are_directed(self):
        graph = NetworkPriorityGraph({("A", "B"): 5})
        assert graph.best_link({"B"}, {"A"}) is None
        assert graph.best_link({"A"}, {"B"}) == BestLink("A", "B", 5)

    def test_ties_break_lexicographically(self):
        graph = NetworkPriorityGraph({
            ("office", "public"): 3,
            ("home", "public"): 3,
            ("home", "lan"): 3,
        })
        for _ in range(5):
            assert graph.best_link(["office", "home"], ["public", "lan"]) == BestLink("home", "lan", 3)

    def test_zero_priority(self):
        graph = NetworkPriorityGraph({("A", "A"): 0, ("A", "B"): 1})
        assert graph.best_link({"A"}, {"A", "B"}) == BestLink("A", "A", 0)

    def test_from_links(self):
        graph = NetworkPriorityGraph.from_links([
            NetworkLink(network="office", other_network="office", priority=0),
            NetworkLink(network="office", other_network="public", priority=10),
        ])
        assert len(graph) == 2
        assert graph.priority("office", "public") == 10
        assert graph.priority("public", "office") is None
        assert graph.best_link({"office"}, {"public"}) == BestLink("office", "public", 10)
