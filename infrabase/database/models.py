# infrabase/database/models.py
"""
SQLAlchemy Database Models for the machine inventory
"""

from ipaddress import ip_interface
from typing import Optional

from sqlalchemy import (
    Column, Integer, String, DateTime, ForeignKey,
    Index, UniqueConstraint
)
from sqlalchemy.orm import declarative_base, relationship
from datetime import datetime

Base = declarative_base()


def host_ip(value: Optional[str]) -> Optional[str]:
    """IP portion of an address stored as "10.0.0.2" or "10.0.0.2/32" """
    if value is None:
        return None
    return str(ip_interface(value).ip)


class Provider(Base):
    """
    Provider table - who hosts a machine (lookup data only)
    """
    __tablename__ = "providers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), unique=True, nullable=False)
    email = Column(String(255), nullable=True)

    def __repr__(self):
        return f"<Provider(id={self.id}, name={self.name})>"


class Machine(Base):
    """
    Machine table - one row per machine in the inventory
    """
    __tablename__ = "machines"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Identity
    hostname = Column(String(63), unique=True, nullable=False, index=True,
                      comment="Unique hostname")
    owner = Column(String(100), nullable=False,
                   comment="Who the machine belongs to")

    # SSH
    ssh_user = Column(String(32), nullable=True)
    ssh_port = Column(Integer, nullable=True,
                      comment="Port used when reaching the machine over WireGuard")

    # WireGuard
    wireguard_ip = Column(String(18), unique=True, nullable=True,
                          comment="WireGuard IPv4 address (e.g., 10.8.0.2)")
    wireguard_pubkey = Column(String(44), unique=True, nullable=True,
                              comment="WireGuard public key (Base64)")

    provider_id = Column(Integer, ForeignKey("providers.id"), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    provider = relationship("Provider")
    addresses = relationship(
        "MachineAddress",
        back_populates="machine",
        order_by="MachineAddress.id",
        cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<Machine(id={self.id}, hostname={self.hostname}, wireguard_ip={self.wireguard_ip})>"

    @property
    def wireguard_host_ip(self) -> Optional[str]:
        return host_ip(self.wireguard_ip)


class MachineAddress(Base):
    """
    Machine Address table - a machine's presence on a named network
    """
    __tablename__ = "machine_addresses"

    id = Column(Integer, primary_key=True, autoincrement=True)
    machine_id = Column(Integer, ForeignKey("machines.id", ondelete="CASCADE"),
                        nullable=False, index=True)
    network = Column(String(63), nullable=False,
                     comment="Network name, e.g. office, public")
    address = Column(String(49), nullable=False,
                     comment="IP address, optionally with prefix length")
    ssh_port = Column(Integer, nullable=True,
                      comment="SSH port reachable at this address")

    machine = relationship("Machine", back_populates="addresses")

    __table_args__ = (
        UniqueConstraint("machine_id", "network", name="uq_machine_addresses_machine_network"),
    )

    def __repr__(self):
        return f"<MachineAddress(machine_id={self.machine_id}, network={self.network}, address={self.address})>"

    @property
    def host_ip(self) -> str:
        return host_ip(self.address)


class NetworkLink(Base):
    """
    Network Link table - directed routing preference between two networks
    Lower priority = more preferred
    """
    __tablename__ = "network_links"

    network = Column(String(63), primary_key=True)
    other_network = Column(String(63), primary_key=True)
    priority = Column(Integer, nullable=False)

    __table_args__ = (
        Index("ix_network_links_priority", "priority"),
    )

    def __repr__(self):
        return f"<NetworkLink({self.network} -> {self.other_network}, priority={self.priority})>"
