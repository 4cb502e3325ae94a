# infrabase/database/__init__.py
"""
Database modules
"""

from .session import Database
from .store import InventoryStore, MachineWithAddresses
from .models import Base, Machine, MachineAddress, NetworkLink, Provider

__all__ = [
    # Session
    "Database",
    # Store
    "InventoryStore",
    "MachineWithAddresses",
    # Models
    "Base",
    "Machine",
    "MachineAddress",
    "NetworkLink",
    "Provider",
]
