# infrabase/cli.py
"""
infrabase - the machine inventory system
Command-line entry point
"""

import argparse
import logging
import sys
from typing import List, Optional

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from infrabase.config import Settings, get_settings
from infrabase.core.machine_manager import MachineManager
from infrabase.database.session import Database
from infrabase.exceptions import InfrabaseError
from infrabase.schemas.machine import (
    MachineCreate,
    MachineAddressCreate,
    NetworkLinkCreate,
    ProviderCreate,
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="infrabase",
        description="the machine inventory system"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init-db", help="Create the inventory tables")

    p = sub.add_parser("ssh-config", help="Print an ~/.ssh/config that lists all machines")
    p.add_argument("--for", dest="for_machine", required=True, metavar="MACHINE",
                   help="Machine to generate SSH config for")

    p = sub.add_parser("add-machine", help="Add a machine and provision its WireGuard identity")
    p.add_argument("hostname")
    p.add_argument("--owner")
    p.add_argument("--ssh-user")
    p.add_argument("--ssh-port", type=int)
    p.add_argument("--provider-id", type=int)
    p.add_argument("--wireguard-ip", help="Use this address instead of allocating one")
    p.add_argument("--wireguard-pubkey", help="Use this public key instead of generating a keypair")

    p = sub.add_parser("add-address", help="Add a machine's address on a network")
    p.add_argument("hostname")
    p.add_argument("network")
    p.add_argument("address")
    p.add_argument("--ssh-port", type=int)

    p = sub.add_parser("add-link", help="Create or update a network link")
    p.add_argument("network")
    p.add_argument("other_network")
    p.add_argument("priority", type=int)

    p = sub.add_parser("add-provider", help="Add a provider")
    p.add_argument("name")
    p.add_argument("--email")

    sub.add_parser("nix", help="Print the inventory as a Nix expression")

    sub.add_parser("serve", help="Run the admin API")

    return parser


def setup_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


def serve(settings: Settings, database: Database) -> None:
    import uvicorn
    from infrabase.main import create_app

    uvicorn.run(
        create_app(settings, database),
        host=settings.API_HOST,
        port=settings.API_PORT,
        log_level=settings.LOG_LEVEL.lower()
    )


def run(args: argparse.Namespace, settings: Settings) -> None:
    database = Database.from_settings(settings)
    manager = MachineManager(settings)

    if args.command == "init-db":
        database.init_db()
    elif args.command == "serve":
        serve(settings, database)
    elif args.command == "ssh-config":
        with database.transaction() as db:
            sys.stdout.write(manager.ssh_config(db, args.for_machine))
    elif args.command == "nix":
        with database.transaction() as db:
            sys.stdout.write(manager.nix(db))
    elif args.command == "add-machine":
        machine_in = MachineCreate(
            hostname=args.hostname,
            owner=args.owner,
            ssh_user=args.ssh_user,
            ssh_port=args.ssh_port,
            provider_id=args.provider_id,
            wireguard_ip=args.wireguard_ip,
            wireguard_pubkey=args.wireguard_pubkey,
        )
        with database.transaction() as db:
            machine = manager.add_machine(db, machine_in)
            print(f"{machine.hostname} {machine.wireguard_ip} {machine.wireguard_pubkey}")
    elif args.command == "add-address":
        address_in = MachineAddressCreate(
            network=args.network, address=args.address, ssh_port=args.ssh_port
        )
        with database.transaction() as db:
            manager.add_address(db, args.hostname, address_in)
    elif args.command == "add-link":
        link_in = NetworkLinkCreate(
            network=args.network, other_network=args.other_network, priority=args.priority
        )
        with database.transaction() as db:
            manager.set_network_link(db, link_in)
    elif args.command == "add-provider":
        with database.transaction() as db:
            provider = manager.add_provider(db, ProviderCreate(name=args.name, email=args.email))
            print(provider.id)


def main(argv: Optional[List[str]] = None, settings: Optional[Settings] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        settings = settings or get_settings()
        setup_logging(settings)
        run(args, settings)
    except (InfrabaseError, ValidationError, SQLAlchemyError) as err:
        print(f"An error occurred:\n{err}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
