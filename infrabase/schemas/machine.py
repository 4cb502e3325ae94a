# infrabase/schemas/machine.py
"""
Machine-related Pydantic schemas
"""

from ipaddress import IPv4Address, ip_interface
from typing import Annotated, List, Optional
from datetime import datetime
import re

from pydantic import BaseModel, ConfigDict, Field, field_validator

WIREGUARD_KEY_RE = re.compile(r'^[A-Za-z0-9+/]{43}=$')

SshPort = Annotated[int, Field(ge=1, le=65535, description="SSH port (1-65535)")]


def normalize_hostname(hostname: str) -> str:
    """Hostnames are stored lowercase; lookups go through here too"""
    return hostname.strip().lower()


# === Request Schemas ===

class MachineCreate(BaseModel):
    """
    Schema for adding a machine

    Fields left unset fall back to the DEFAULT_* settings. Without a
    wireguard_ip one is allocated; without a wireguard_pubkey a keypair
    is generated.
    """
    hostname: str = Field(
        ...,
        min_length=1,
        max_length=63,
        description="Unique hostname for the machine",
        examples=["alice-laptop", "db-01"]
    )
    owner: Optional[str] = Field(None, max_length=100)
    ssh_user: Optional[str] = Field(None, max_length=32)
    ssh_port: Optional[SshPort] = None
    provider_id: Optional[int] = None
    wireguard_ip: Optional[IPv4Address] = None
    wireguard_pubkey: Optional[str] = Field(
        None,
        description="WireGuard public key (Base64 encoded)",
    )

    @field_validator('hostname')
    @classmethod
    def validate_hostname(cls, v: str) -> str:
        """
        Validate hostname format (RFC 1123)
        - Lowercase alphanumeric with hyphens
        - Cannot start or end with hyphen
        """
        v = normalize_hostname(v)
        if not re.match(r'^[a-z0-9]([a-z0-9\-]{0,61}[a-z0-9])?$', v):
            raise ValueError(
                'Hostname must be lowercase alphanumeric with optional hyphens, '
                'cannot start/end with hyphen, max 63 chars'
            )
        return v

    @field_validator('wireguard_pubkey')
    @classmethod
    def validate_wireguard_key(cls, v: Optional[str]) -> Optional[str]:
        """Validate WireGuard public key format (Base64, 44 chars ending with =)"""
        if v is not None and not WIREGUARD_KEY_RE.match(v):
            raise ValueError('Invalid WireGuard public key format. Must be 44 chars Base64 ending with =')
        return v


class MachineAddressCreate(BaseModel):
    """A machine's address on one network"""
    network: str = Field(..., min_length=1, max_length=63, examples=["office", "public"])
    address: str = Field(..., examples=["10.1.1.1", "203.0.113.5/24"])
    ssh_port: Optional[SshPort] = None

    @field_validator('address')
    @classmethod
    def validate_address(cls, v: str) -> str:
        try:
            ip_interface(v)
        except ValueError:
            raise ValueError(f'{v!r} is not an IP address')
        return v


class NetworkLinkCreate(BaseModel):
    """Directed link; lower priority is preferred"""
    network: str = Field(..., min_length=1, max_length=63)
    other_network: str = Field(..., min_length=1, max_length=63)
    priority: int = Field(..., ge=0)


class ProviderCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: Optional[str] = Field(None, max_length=255)


# === Response Schemas ===

class MachineAddressResponse(BaseModel):
    network: str
    address: str
    ssh_port: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)


class MachineResponse(BaseModel):
    """Machine as stored in the inventory"""
    id: int
    hostname: str
    owner: str
    ssh_user: Optional[str] = None
    ssh_port: Optional[int] = None
    wireguard_ip: Optional[str] = None
    wireguard_pubkey: Optional[str] = None
    provider_id: Optional[int] = None
    addresses: List[MachineAddressResponse] = []
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class MachineListResponse(BaseModel):
    machines: List[MachineResponse]
    total: int


class NetworkLinkResponse(BaseModel):
    network: str
    other_network: str
    priority: int

    model_config = ConfigDict(from_attributes=True)


class ProviderResponse(BaseModel):
    id: int
    name: str
    email: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)
