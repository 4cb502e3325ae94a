# infrabase/core/resolver.py
"""
Address Resolver
Picks the address and port used to reach every machine from one source machine
"""

from typing import Dict, List, NamedTuple, Optional, Sequence, Tuple
import logging

from infrabase.database.models import Machine, MachineAddress, host_ip
from infrabase.database.store import MachineWithAddresses
from infrabase.exceptions import MissingSourceMachineError
from .network_graph import NetworkPriorityGraph

logger = logging.getLogger(__name__)


class ResolvedEndpoint(NamedTuple):
    machine: Machine
    address: str
    port: int
    network: Optional[str] = None  # None when reached over WireGuard


def addresses_by_network(hostname: str, addresses: Sequence[MachineAddress]) -> Dict[str, MachineAddress]:
    """
    Index a machine's addresses by network

    If a network has more than one row, the first one (lowest row id)
    wins. New rows like that are rejected at insert time; this only
    matters for data that predates the constraint.
    """
    by_network: Dict[str, MachineAddress] = {}
    for address in sorted(addresses, key=lambda a: (a.id is None, a.id or 0)):
        if address.network in by_network:
            logger.warning(
                f"{hostname} has more than one address on network {address.network!r}, "
                f"using {by_network[address.network].address}"
            )
            continue
        by_network[address.network] = address
    return by_network


class AddressResolver:
    """
    Resolves connection endpoints for every machine as seen from one source

    For each machine:
    1. Find the best network link from the source's networks to the
       machine's networks
    2. Use the machine's address on that destination network, with that
       address's own SSH port
    3. With no link, fall back to the WireGuard IP and machine-level SSH port
    4. If address or port is still missing, leave the machine out
    """

    def __init__(self, inventory: Sequence[MachineWithAddresses], graph: NetworkPriorityGraph):
        self.graph = graph
        self._inventory: List[Tuple[Machine, Dict[str, MachineAddress]]] = [
            (machine, addresses_by_network(machine.hostname, addresses))
            for machine, addresses in inventory
        ]

    def source_networks(self, for_machine: str) -> List[str]:
        for machine, by_network in self._inventory:
            if machine.hostname == for_machine:
                return list(by_network)
        raise MissingSourceMachineError(for_machine)

    def resolve_machine(
        self,
        source_networks: Sequence[str],
        machine: Machine,
        by_network: Dict[str, MachineAddress],
    ) -> Optional[ResolvedEndpoint]:
        """Endpoint for one machine, or None if it has no reachable address+port"""
        link = self.graph.best_link(source_networks, by_network.keys())

        if link is not None:
            chosen = by_network[link.other_network]
            address, port, network = chosen.host_ip, chosen.ssh_port, link.other_network
            logger.debug(
                f"{machine.hostname}: {link.network} -> {link.other_network} "
                f"(priority {link.priority})"
            )
        else:
            address, port, network = host_ip(machine.wireguard_ip), machine.ssh_port, None
            logger.debug(f"{machine.hostname}: no linked network, using WireGuard address")

        if address is None or port is None:
            logger.debug(f"{machine.hostname}: no reachable endpoint, omitted")
            return None

        return ResolvedEndpoint(machine, address, port, network)

    def resolve(self, for_machine: str) -> List[ResolvedEndpoint]:
        """
        Resolve endpoints for every machine, the source included

        Raises:
            MissingSourceMachineError: If for_machine is not in the inventory
        """
        source_networks = self.source_networks(for_machine)

        endpoints = []
        for machine, by_network in self._inventory:
            endpoint = self.resolve_machine(source_networks, machine, by_network)
            if endpoint is not None:
                endpoints.append(endpoint)
        return endpoints
