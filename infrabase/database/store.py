# infrabase/database/store.py
"""
Inventory Store - bulk loads and inserts against the inventory tables
"""

from ipaddress import IPv4Network, ip_interface
from typing import List, Optional, Set, Tuple

from sqlalchemy.orm import Session, selectinload
import logging

from .models import Machine, MachineAddress, NetworkLink, Provider

logger = logging.getLogger(__name__)

MachineWithAddresses = Tuple[Machine, List[MachineAddress]]


class InventoryStore:
    """
    Thin query layer over a Session

    All loads run on the session passed in, so several of them inside one
    ``Database.transaction()`` see the same snapshot.
    """

    def __init__(self, db: Session):
        self.db = db

    def load_all_machines_with_addresses(self) -> List[MachineWithAddresses]:
        """Every machine with its addresses, both ordered by row id"""
        machines = (
            self.db.query(Machine)
            .options(selectinload(Machine.addresses))
            .order_by(Machine.id)
            .all()
        )
        return [(machine, list(machine.addresses)) for machine in machines]

    def load_all_network_links(self) -> List[NetworkLink]:
        return self.db.query(NetworkLink).order_by(NetworkLink.network, NetworkLink.other_network).all()

    def load_all_providers(self) -> List[Provider]:
        return self.db.query(Provider).order_by(Provider.id).all()

    def load_assigned_wireguard_networks(self) -> Set[IPv4Network]:
        """All assigned WireGuard addresses as /32 networks"""
        rows = self.db.query(Machine.wireguard_ip).filter(Machine.wireguard_ip.isnot(None)).all()
        return {IPv4Network(ip_interface(ip).ip) for (ip,) in rows}

    def get_machine(self, hostname: str) -> Optional[Machine]:
        return self.db.query(Machine).filter(Machine.hostname == hostname).first()

    def get_machine_by_wireguard_ip(self, wireguard_ip) -> Optional[Machine]:
        return self.db.query(Machine).filter(Machine.wireguard_ip == str(wireguard_ip)).first()

    def get_address(self, machine: Machine, network: str) -> Optional[MachineAddress]:
        return self.db.query(MachineAddress).filter(
            MachineAddress.machine_id == machine.id,
            MachineAddress.network == network,
        ).first()

    def get_network_link(self, network: str, other_network: str) -> Optional[NetworkLink]:
        return self.db.get(NetworkLink, (network, other_network))

    def get_provider(self, provider_id: int) -> Optional[Provider]:
        return self.db.get(Provider, provider_id)

    def insert(self, row) -> None:
        """Add a row and flush so constraint violations surface here"""
        self.db.add(row)
        self.db.flush()
        logger.debug(f"Inserted {row!r}")

