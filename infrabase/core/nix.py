# infrabase/core/nix.py
"""
Render the inventory as a Nix expression, for importing into NixOS configs
"""

from ipaddress import IPv4Address, IPv6Address
from typing import Any, Dict, Mapping, Optional, Sequence

from infrabase.database.models import host_ip
from infrabase.database.store import MachineWithAddresses
from .resolver import addresses_by_network


def nix_string(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"').replace("${", "\\${")
    return f'"{escaped}"'


def to_nix(value: Any, indent: int = 0) -> str:
    """Nix literal for None, bool, int, str, IP addresses, and dicts of those"""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, (str, IPv4Address, IPv6Address)):
        return nix_string(str(value))
    if isinstance(value, dict):
        return _attrset(value, indent)
    raise TypeError(f"Cannot convert {type(value).__name__} to Nix")


def _attr_name(name: str) -> str:
    if name and (name[0].isalpha() or name[0] == "_") and all(c.isalnum() or c in "_-'" for c in name):
        return name
    return nix_string(name)


def _attrset(attrs: Dict[str, Any], indent: int) -> str:
    if not attrs:
        return "{ }"
    pad = "  " * (indent + 1)
    lines = ["{"]
    for name, value in attrs.items():
        lines.append(f"{pad}{_attr_name(name)} = {to_nix(value, indent + 1)};")
    lines.append("  " * indent + "}")
    return "\n".join(lines)


def machine_attrs(machine, addresses, provider: Optional[str] = None) -> Dict[str, Any]:
    return {
        "owner": machine.owner,
        "provider": provider,
        "ssh_user": machine.ssh_user,
        "ssh_port": machine.ssh_port,
        "wireguard_ip": host_ip(machine.wireguard_ip),
        "wireguard_pubkey": machine.wireguard_pubkey,
        "addresses": {
            network: {"address": a.host_ip, "ssh_port": a.ssh_port}
            for network, a in addresses_by_network(machine.hostname, addresses).items()
        },
    }


def render_nix(inventory: Sequence[MachineWithAddresses],
               providers: Optional[Mapping[int, str]] = None) -> str:
    """Attribute set keyed by hostname; providers maps provider id to name"""
    providers = providers or {}
    return to_nix({
        machine.hostname: machine_attrs(machine, addresses, providers.get(machine.provider_id))
        for machine, addresses in inventory
    }) + "\n"
