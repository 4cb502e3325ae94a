# infrabase/exceptions.py
"""
Errors raised by the inventory core

Storage errors are not wrapped: SQLAlchemy exceptions reach the caller as-is.
"""

from ipaddress import IPv4Address
from pathlib import Path


class InfrabaseError(Exception):
    """Base class for errors reported to the operator"""


class ConfigurationError(InfrabaseError):
    """Missing or malformed setting"""


class MissingSourceMachineError(InfrabaseError, LookupError):
    """The machine an SSH config is generated for is not in the inventory"""

    def __init__(self, source_machine: str):
        self.source_machine = source_machine
        super().__init__(f"Could not find source machine {source_machine!r} in database")


class MachineNotFoundError(InfrabaseError, LookupError):
    def __init__(self, hostname: str):
        self.hostname = hostname
        super().__init__(f"Machine {hostname!r} not found")


class DuplicateMachineError(InfrabaseError):
    def __init__(self, hostname: str):
        self.hostname = hostname
        super().__init__(f"Machine {hostname!r} already exists")


class DuplicateAddressError(InfrabaseError):
    def __init__(self, hostname: str, network: str):
        self.hostname = hostname
        self.network = network
        super().__init__(f"Machine {hostname!r} already has an address on network {network!r}")


class ProviderNotFoundError(InfrabaseError, LookupError):
    def __init__(self, provider_id: int):
        self.provider_id = provider_id
        super().__init__(f"Provider {provider_id} not found")


class WireGuardAddressTakenError(InfrabaseError):
    def __init__(self, wireguard_ip: IPv4Address, hostname: str):
        self.wireguard_ip = wireguard_ip
        self.hostname = hostname
        super().__init__(f"WireGuard address {wireguard_ip} is already assigned to {hostname!r}")


class NoAddressAvailableError(InfrabaseError, RuntimeError):
    """Every address in the WireGuard range is assigned"""

    def __init__(self, start: IPv4Address, end: IPv4Address):
        self.start = start
        self.end = end
        super().__init__(f"No WireGuard address available in range {start} - {end}")


class KeyFileError(InfrabaseError):
    """The private key file could not be created or written"""

    def __init__(self, path: Path, reason: str):
        self.path = path
        super().__init__(f"Could not write private key to {path}: {reason}")
