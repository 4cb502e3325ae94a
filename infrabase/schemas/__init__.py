# infrabase/schemas/__init__.py
"""
Pydantic Schemas for the infrabase API
"""

from .base import ErrorResponse, HealthResponse
from .machine import (
    MachineCreate,
    MachineAddressCreate,
    NetworkLinkCreate,
    ProviderCreate,
    MachineResponse,
    MachineAddressResponse,
    MachineListResponse,
    NetworkLinkResponse,
    ProviderResponse,
)

__all__ = [
    # Base
    "ErrorResponse",
    "HealthResponse",
    # Machine
    "MachineCreate",
    "MachineAddressCreate",
    "NetworkLinkCreate",
    "ProviderCreate",
    "MachineResponse",
    "MachineAddressResponse",
    "MachineListResponse",
    "NetworkLinkResponse",
    "ProviderResponse",
]
