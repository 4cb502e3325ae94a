# infrabase/api/v1/admin.py
"""
Admin API Endpoints
RESTful API for administrators to manage the inventory
"""

from typing import Generator

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from fastapi.responses import PlainTextResponse
from sqlalchemy.orm import Session
import logging

from infrabase.config import Settings
from infrabase.core.machine_manager import MachineManager
from infrabase.schemas.base import ErrorResponse
from infrabase.schemas.machine import (
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

logger = logging.getLogger(__name__)

router = APIRouter()


# === Dependencies ===

def app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_db(request: Request) -> Generator[Session, None, None]:
    """
    Database session dependency
    One transaction per request, committed when the endpoint returns
    """
    with request.app.state.database.transaction() as db:
        yield db


def get_manager(request: Request) -> MachineManager:
    return request.app.state.manager


async def verify_admin_token(
    x_admin_token: str = Header(..., alias="X-Admin-Token"),
    settings: Settings = Depends(app_settings),
):
    """
    Verify admin authentication token
    """
    if x_admin_token != settings.ADMIN_SECRET:
        logger.warning("Invalid admin token attempt")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={
                "error": "Invalid or missing admin token",
                "error_code": "UNAUTHORIZED"
            },
            headers={"WWW-Authenticate": "Bearer"}
        )
    return True


# === Machine Endpoints ===

@router.get(
    "/machines",
    response_model=MachineListResponse,
    summary="List all machines",
    description="Get every machine with its network addresses"
)
async def list_machines(
    db: Session = Depends(get_db),
    manager: MachineManager = Depends(get_manager),
    _: bool = Depends(verify_admin_token)
):
    machines = [
        MachineResponse.model_validate(machine)
        for machine, _addresses in manager.get_all_machines(db)
    ]
    return MachineListResponse(machines=machines, total=len(machines))


@router.post(
    "/machines",
    response_model=MachineResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        404: {"description": "Provider not found", "model": ErrorResponse},
        409: {"description": "Hostname or WireGuard address already in use", "model": ErrorResponse},
        503: {"description": "WireGuard range exhausted", "model": ErrorResponse},
    },
    summary="Add a machine",
    description="Add a machine, allocating a WireGuard address and keypair unless given"
)
async def add_machine(
    machine_in: MachineCreate,
    db: Session = Depends(get_db),
    manager: MachineManager = Depends(get_manager),
    _: bool = Depends(verify_admin_token)
):
    machine = manager.add_machine(db, machine_in)
    return MachineResponse.model_validate(machine)


@router.post(
    "/machines/{hostname}/addresses",
    response_model=MachineAddressResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        404: {"description": "Machine not found", "model": ErrorResponse},
        409: {"description": "Machine already has an address on that network", "model": ErrorResponse},
    },
    summary="Add a machine address"
)
async def add_address(
    hostname: str,
    address_in: MachineAddressCreate,
    db: Session = Depends(get_db),
    manager: MachineManager = Depends(get_manager),
    _: bool = Depends(verify_admin_token)
):
    address = manager.add_address(db, hostname, address_in)
    return MachineAddressResponse.model_validate(address)


# === Network Links & Providers ===

@router.put(
    "/network-links",
    response_model=NetworkLinkResponse,
    summary="Create or update a network link"
)
async def set_network_link(
    link_in: NetworkLinkCreate,
    db: Session = Depends(get_db),
    manager: MachineManager = Depends(get_manager),
    _: bool = Depends(verify_admin_token)
):
    link = manager.set_network_link(db, link_in)
    return NetworkLinkResponse.model_validate(link)


@router.post(
    "/providers",
    response_model=ProviderResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a provider"
)
async def add_provider(
    provider_in: ProviderCreate,
    db: Session = Depends(get_db),
    manager: MachineManager = Depends(get_manager),
    _: bool = Depends(verify_admin_token)
):
    provider = manager.add_provider(db, provider_in)
    return ProviderResponse.model_validate(provider)


# === Generated Artifacts ===

@router.get(
    "/ssh-config/{hostname}",
    response_class=PlainTextResponse,
    responses={404: {"description": "Source machine not found", "model": ErrorResponse}},
    summary="SSH config for a machine",
    description="~/.ssh/config listing every machine reachable from the given one"
)
async def get_ssh_config(
    hostname: str,
    db: Session = Depends(get_db),
    manager: MachineManager = Depends(get_manager),
    _: bool = Depends(verify_admin_token)
):
    return manager.ssh_config(db, hostname)


@router.get(
    "/nix",
    response_class=PlainTextResponse,
    summary="Inventory as a Nix expression"
)
async def get_nix(
    db: Session = Depends(get_db),
    manager: MachineManager = Depends(get_manager),
    _: bool = Depends(verify_admin_token)
):
    return manager.nix(db)
