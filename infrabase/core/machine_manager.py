# infrabase/core/machine_manager.py
"""
Machine Manager - adds inventory rows and derives artifacts from them
"""

from typing import List
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
import logging

from infrabase.config import Settings
from infrabase.database.models import Machine, MachineAddress, NetworkLink, Provider
from infrabase.database.store import InventoryStore, MachineWithAddresses
from infrabase.exceptions import (
    ConfigurationError,
    DuplicateAddressError,
    DuplicateMachineError,
    MachineNotFoundError,
    ProviderNotFoundError,
    WireGuardAddressTakenError,
)
from infrabase.schemas.machine import (
    MachineCreate,
    MachineAddressCreate,
    NetworkLinkCreate,
    ProviderCreate,
    normalize_hostname,
)
from .ipam import WireGuardAllocator
from .network_graph import NetworkPriorityGraph
from .nix import render_nix
from .resolver import AddressResolver, ResolvedEndpoint
from .ssh_config import render_ssh_config
from .wireguard_keys import WireGuardIdentityProvisioner

logger = logging.getLogger(__name__)


class MachineManager:
    """
    Machine Manager for the inventory

    Responsibilities:
    1. Add machines, allocating a WireGuard address and keypair
    2. Add addresses, network links and providers
    3. Resolve endpoints and render SSH / Nix output

    Every method works on the session it is given; run it inside
    ``Database.transaction()`` so that reads and the insert that
    depends on them commit or fail together.
    """

    def __init__(self, settings: Settings):
        self.settings = settings

    def add_machine(self, db: Session, machine_in: MachineCreate) -> Machine:
        """
        Add a new machine

        Raises:
            DuplicateMachineError: If the hostname is taken
            ProviderNotFoundError: If the provider does not exist
            WireGuardAddressTakenError: If the given wireguard_ip is assigned
            ConfigurationError: If a needed setting is missing
            NoAddressAvailableError: If the WireGuard range is exhausted
            KeyFileError: If the private key cannot be written
        """
        store = InventoryStore(db)
        hostname = machine_in.hostname

        if store.get_machine(hostname) is not None:
            raise DuplicateMachineError(hostname)

        owner = machine_in.owner or self.settings.DEFAULT_OWNER
        if not owner:
            raise ConfigurationError(f"No owner given for {hostname} and DEFAULT_OWNER is not set")

        provider_id = machine_in.provider_id or self.settings.DEFAULT_PROVIDER_ID
        if provider_id is not None and store.get_provider(provider_id) is None:
            raise ProviderNotFoundError(provider_id)

        # Check configuration before anything is written
        provisioner = None
        if machine_in.wireguard_pubkey is None:
            provisioner = WireGuardIdentityProvisioner(self.settings.privkey_path_template())

        wireguard_ip = machine_in.wireguard_ip
        if wireguard_ip is None:
            start, end = self.settings.wireguard_range()
            assigned = store.load_assigned_wireguard_networks()
            wireguard_ip = WireGuardAllocator(start, end).allocate(assigned)
        else:
            holder = store.get_machine_by_wireguard_ip(wireguard_ip)
            if holder is not None:
                raise WireGuardAddressTakenError(wireguard_ip, holder.hostname)

        if provisioner is not None:
            wireguard_pubkey = provisioner.provision(hostname, wireguard_ip)
        else:
            wireguard_pubkey = machine_in.wireguard_pubkey

        machine = Machine(
            hostname=hostname,
            owner=owner,
            ssh_user=machine_in.ssh_user or self.settings.DEFAULT_SSH_USER,
            ssh_port=machine_in.ssh_port or self.settings.DEFAULT_SSH_PORT,
            provider_id=provider_id,
            wireguard_ip=str(wireguard_ip),
            wireguard_pubkey=wireguard_pubkey,
        )
        try:
            store.insert(machine)
        except SQLAlchemyError:
            # A key file exists only for a stored machine
            if provisioner is not None:
                provisioner.discard(hostname, wireguard_ip)
            raise

        logger.info(f"New machine added: {hostname} -> {wireguard_ip}")
        return machine

    def add_address(self, db: Session, hostname: str, address_in: MachineAddressCreate) -> MachineAddress:
        """
        Add a machine's address on a network

        At most one address per (machine, network) is accepted.
        """
        store = InventoryStore(db)
        hostname = normalize_hostname(hostname)
        machine = store.get_machine(hostname)
        if machine is None:
            raise MachineNotFoundError(hostname)

        if store.get_address(machine, address_in.network) is not None:
            raise DuplicateAddressError(hostname, address_in.network)

        address = MachineAddress(
            machine=machine,
            network=address_in.network,
            address=address_in.address,
            ssh_port=address_in.ssh_port,
        )
        store.insert(address)
        logger.info(f"Address added: {hostname} {address_in.network} -> {address_in.address}")
        return address

    def set_network_link(self, db: Session, link_in: NetworkLinkCreate) -> NetworkLink:
        """Create a link or change its priority"""
        store = InventoryStore(db)
        link = store.get_network_link(link_in.network, link_in.other_network)
        if link is None:
            link = NetworkLink(
                network=link_in.network,
                other_network=link_in.other_network,
                priority=link_in.priority,
            )
            store.insert(link)
        else:
            link.priority = link_in.priority
            db.flush()
        logger.info(f"Network link {link.network} -> {link.other_network} priority {link.priority}")
        return link

    def add_provider(self, db: Session, provider_in: ProviderCreate) -> Provider:
        provider = Provider(name=provider_in.name, email=provider_in.email)
        InventoryStore(db).insert(provider)
        logger.info(f"Provider added: {provider.name} (id={provider.id})")
        return provider

    def get_all_machines(self, db: Session) -> List[MachineWithAddresses]:
        return InventoryStore(db).load_all_machines_with_addresses()

    def resolve_endpoints(self, db: Session, for_machine: str) -> List[ResolvedEndpoint]:
        """
        Endpoints for every machine as reached from for_machine

        Raises:
            MissingSourceMachineError: If for_machine is not in the inventory
        """
        for_machine = normalize_hostname(for_machine)
        store = InventoryStore(db)
        inventory = store.load_all_machines_with_addresses()
        graph = NetworkPriorityGraph.from_links(store.load_all_network_links())
        return AddressResolver(inventory, graph).resolve(for_machine)

    def ssh_config(self, db: Session, for_machine: str) -> str:
        for_machine = normalize_hostname(for_machine)
        return render_ssh_config(for_machine, self.resolve_endpoints(db, for_machine))

    def nix(self, db: Session) -> str:
        store = InventoryStore(db)
        providers = {p.id: p.name for p in store.load_all_providers()}
        return render_nix(store.load_all_machines_with_addresses(), providers)
