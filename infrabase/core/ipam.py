# infrabase/core/ipam.py
"""
IP Address Management (IPAM) for WireGuard addresses
Finds an unassigned IPv4 address in an inclusive range
"""

from ipaddress import IPv4Address, IPv4Network
from typing import AbstractSet, Optional
import logging

from infrabase.exceptions import NoAddressAvailableError

logger = logging.getLogger(__name__)


def increment_ipv4(ip: IPv4Address) -> Optional[IPv4Address]:
    """
    Next address, treating the four octets as a big-endian counter

    0.0.1.255 -> 0.0.2.0, 3.255.255.255 -> 4.0.0.0, 255.255.255.255 -> None
    """
    octets = bytearray(ip.packed)
    for i in reversed(range(4)):
        if octets[i] < 255:
            octets[i] += 1
            return IPv4Address(bytes(octets))
        octets[i] = 0
    return None


class WireGuardAllocator:
    """
    Scans [start, end] for an address not already assigned to a machine

    Both bounds are candidates. The scan stops after checking ``end`` or
    when ``increment_ipv4`` has no successor, whichever comes first.
    Nothing is locked: the caller must insert the result inside the same
    transaction that read the assigned set.
    """

    def __init__(self, start: IPv4Address, end: IPv4Address):
        if start > end:
            raise ValueError(f"WireGuard range start {start} is greater than end {end}")
        self.start = start
        self.end = end

    def allocate(self, assigned: AbstractSet[IPv4Network]) -> IPv4Address:
        """
        Find the first free address in the range

        Args:
            assigned: Addresses already in use, as /32 networks

        Raises:
            NoAddressAvailableError: If every address in the range is taken
        """
        candidate: Optional[IPv4Address] = self.start
        while candidate is not None:
            if IPv4Network(candidate) not in assigned:
                logger.info(f"Allocated WireGuard address {candidate}")
                return candidate
            if candidate == self.end:
                break
            candidate = increment_ipv4(candidate)

        logger.error(f"WireGuard range {self.start} - {self.end} exhausted")
        raise NoAddressAvailableError(self.start, self.end)
