# infrabase/core/__init__.py
"""
Core business logic modules
"""

from .ipam import increment_ipv4, WireGuardAllocator
from .machine_manager import MachineManager
from .network_graph import BestLink, NetworkPriorityGraph
from .nix import render_nix, to_nix
from .resolver import AddressResolver, ResolvedEndpoint
from .ssh_config import render_ssh_config
from .wireguard_keys import (
    WireGuardIdentityProvisioner,
    WireGuardKeypair,
    generate_wireguard_keypair,
)

__all__ = [
    # IPAM
    "increment_ipv4",
    "WireGuardAllocator",
    # Machine Manager
    "MachineManager",
    # Network graph
    "BestLink",
    "NetworkPriorityGraph",
    # Rendering
    "render_nix",
    "to_nix",
    "render_ssh_config",
    # Resolver
    "AddressResolver",
    "ResolvedEndpoint",
    # WireGuard identity
    "WireGuardIdentityProvisioner",
    "WireGuardKeypair",
    "generate_wireguard_keypair",
]
