# infrabase/core/wireguard_keys.py
"""
WireGuard Identity Provisioner
Generates a machine's keypair and writes the private key to disk
"""

import base64
import os
from ipaddress import IPv4Address
from pathlib import Path
from typing import NamedTuple
import logging

from cryptography.hazmat.primitives.asymmetric.x25519 import X25519PrivateKey
from cryptography.hazmat.primitives.serialization import (
    Encoding, NoEncryption, PrivateFormat, PublicFormat
)

from infrabase.exceptions import ConfigurationError, KeyFileError

logger = logging.getLogger(__name__)


class WireGuardKeypair(NamedTuple):
    private_key: str  # Base64, same format as `wg genkey`
    public_key: str   # Base64, same format as `wg pubkey`


def generate_wireguard_keypair() -> WireGuardKeypair:
    """
    Generate a Curve25519 keypair
    Returns: (private_key, public_key)
    """
    private = X25519PrivateKey.generate()
    private_raw = private.private_bytes(Encoding.Raw, PrivateFormat.Raw, NoEncryption())
    public_raw = private.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw)
    return WireGuardKeypair(
        private_key=base64.b64encode(private_raw).decode("ascii"),
        public_key=base64.b64encode(public_raw).decode("ascii"),
    )


def privkey_path(template: str, hostname: str, wireguard_ip: IPv4Address) -> Path:
    """
    Fill in the private key path template

    Raises:
        ConfigurationError: If the template uses a field other than
            {hostname} or {wireguard_ip}
    """
    try:
        return Path(template.format(hostname=hostname, wireguard_ip=wireguard_ip)).expanduser()
    except (KeyError, IndexError) as e:
        raise ConfigurationError(
            f"WIREGUARD_PRIVKEY_PATH_TEMPLATE {template!r} uses unknown field {e}"
        )
    except ValueError as e:
        raise ConfigurationError(f"WIREGUARD_PRIVKEY_PATH_TEMPLATE {template!r} is malformed: {e}")


class WireGuardIdentityProvisioner:
    """
    Creates the WireGuard identity of a new machine

    The private key file is the only copy of the key; it is written once
    and never read back or replaced.
    """

    def __init__(self, path_template: str):
        self.path_template = path_template

    def write_private_key(self, path: Path, private_key: str) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            # O_EXCL: an existing key is never overwritten
            fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
            with os.fdopen(fd, "wb") as f:
                f.write(private_key.encode("ascii") + b"\n")
        except FileExistsError as e:
            raise KeyFileError(path, "file already exists") from e
        except OSError as e:
            raise KeyFileError(path, e.strerror or str(e)) from e

    def provision(self, hostname: str, wireguard_ip: IPv4Address) -> str:
        """
        Generate a keypair and persist the private key

        Returns:
            Public key (Base64) for the machine record

        Raises:
            ConfigurationError: If the path template cannot be filled in
            KeyFileError: If the key file cannot be created or written
        """
        path = privkey_path(self.path_template, hostname, wireguard_ip)
        keypair = generate_wireguard_keypair()
        self.write_private_key(path, keypair.private_key)
        logger.info(f"Wrote WireGuard private key for {hostname} to {path}")
        return keypair.public_key

    def discard(self, hostname: str, wireguard_ip: IPv4Address) -> None:
        """Remove a key written by provision() whose machine was never stored"""
        path = privkey_path(self.path_template, hostname, wireguard_ip)
        path.unlink(missing_ok=True)
        logger.warning(f"Removed WireGuard private key for {hostname} at {path}")
