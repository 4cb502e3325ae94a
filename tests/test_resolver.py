"""
Tests for endpoint resolution.

Covers:
- Address on the best linked network, with that address's SSH port
- WireGuard fallback when no network is linked
- Machines without a usable address/port are omitted
- Missing source machine is a hard error
"""

import pytest

from infrabase.core.network_graph import NetworkPriorityGraph
from infrabase.core.resolver import AddressResolver, addresses_by_network
from infrabase.database.models import Machine, MachineAddress
from infrabase.exceptions import MissingSourceMachineError


def machine(hostname, ssh_port=None, wireguard_ip=None, owner="ops", **kwargs):
    return Machine(hostname=hostname, owner=owner, ssh_port=ssh_port,
                   wireguard_ip=wireguard_ip, **kwargs)


def address(network, address, ssh_port=None, id=None):
    return MachineAddress(id=id, network=network, address=address, ssh_port=ssh_port)


def endpoints_by_host(endpoints):
    return {e.machine.hostname: (e.address, e.port) for e in endpoints}


@pytest.fixture
def alice_and_bob():
    return [
        (machine("alice", ssh_port=22, wireguard_ip="10.8.0.2"),
         [address("office", "10.1.1.1", 22)]),
        (machine("bob", ssh_port=22, wireguard_ip="10.8.0.3"),
         [address("public", "203.0.113.5", 2222)]),
    ]


class TestAddressResolver:

    def test_unlinked_network_falls_back_to_wireguard(self, alice_and_bob):
        resolver = AddressResolver(alice_and_bob, NetworkPriorityGraph())
        result = endpoints_by_host(resolver.resolve("alice"))
        assert result["bob"] == ("10.8.0.3", 22)

    def test_linked_network_uses_address_and_its_port(self, alice_and_bob):
        graph = NetworkPriorityGraph({("office", "public"): 10})
        result = endpoints_by_host(AddressResolver(alice_and_bob, graph).resolve("alice"))
        assert result["bob"] == ("203.0.113.5", 2222)

    def test_source_machine_is_listed(self, alice_and_bob):
        graph = NetworkPriorityGraph({("office", "office"): 0})
        result = endpoints_by_host(AddressResolver(alice_and_bob, graph).resolve("alice"))
        assert result["alice"] == ("10.1.1.1", 22)

    def test_best_link_picks_the_destination_network(self):
        inventory = [
            (machine("src"), [address("office", "10.1.1.9"), address("home", "192.168.1.9")]),
            (machine("dst"), [
                address("office", "10.1.1.2", 22),
                address("public", "203.0.113.2", 2200),
            ]),
        ]
        graph = NetworkPriorityGraph({
            ("office", "office"): 0,
            ("home", "public"): 5,
        })
        resolved = AddressResolver(inventory, graph).resolve("src")
        dst = next(e for e in resolved if e.machine.hostname == "dst")
        assert (dst.address, dst.port, dst.network) == ("10.1.1.2", 22, "office")

    def test_address_prefix_length_is_dropped(self):
        inventory = [
            (machine("src"), [address("lan", "192.168.1.1/24")]),
            (machine("dst", wireguard_ip="10.8.0.9/32"), [address("lan", "192.168.1.2/24", 22)]),
        ]
        graph = NetworkPriorityGraph({("lan", "lan"): 0})
        assert endpoints_by_host(AddressResolver(inventory, graph).resolve("src"))["dst"] == ("192.168.1.2", 22)

        fallback = AddressResolver(
            [(machine("src"), []), (machine("dst", ssh_port=22, wireguard_ip="10.8.0.9/32"), [])],
            NetworkPriorityGraph(),
        )
        assert endpoints_by_host(fallback.resolve("src"))["dst"] == ("10.8.0.9", 22)

    def test_linked_address_without_port_is_omitted(self):
        # The machine-level port only applies to the WireGuard fallback
        inventory = [
            (machine("src"), [address("office", "10.1.1.1")]),
            (machine("dst", ssh_port=22, wireguard_ip="10.8.0.3"), [address("office", "10.1.1.2")]),
        ]
        graph = NetworkPriorityGraph({("office", "office"): 0})
        assert "dst" not in endpoints_by_host(AddressResolver(inventory, graph).resolve("src"))

    def test_machine_without_wireguard_ip_is_omitted(self):
        inventory = [
            (machine("src"), []),
            (machine("no-wg", ssh_port=22), [address("public", "203.0.113.5", 22)]),
        ]
        assert endpoints_by_host(AddressResolver(inventory, NetworkPriorityGraph()).resolve("src")) == {}

    def test_machine_without_port_is_omitted(self):
        inventory = [
            (machine("src"), []),
            (machine("no-port", wireguard_ip="10.8.0.4"), []),
        ]
        assert endpoints_by_host(AddressResolver(inventory, NetworkPriorityGraph()).resolve("src")) == {}

    def test_missing_source_machine(self, alice_and_bob):
        resolver = AddressResolver(alice_and_bob, NetworkPriorityGraph())
        with pytest.raises(MissingSourceMachineError) as exc_info:
            resolver.resolve("carol")
        assert exc_info.value.source_machine == "carol"
        assert "carol" in str(exc_info.value)

    def test_output_follows_inventory_order(self, alice_and_bob):
        resolved = AddressResolver(alice_and_bob, NetworkPriorityGraph()).resolve("bob")
        assert [e.machine.hostname for e in resolved] == ["alice", "bob"]


class TestAddressesByNetwork:

    def test_duplicate_network_uses_lowest_row_id(self):
        rows = [
            address("office", "10.1.1.3", 22, id=7),
            address("office", "10.1.1.2", 22, id=3),
            address("public", "203.0.113.1", 22, id=5),
        ]
        by_network = addresses_by_network("dup", rows)
        assert by_network["office"].address == "10.1.1.2"
        assert set(by_network) == {"office", "public"}
