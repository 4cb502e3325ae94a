"""
Tests for WireGuard keypair generation and private key persistence.
"""

import base64
import os
import stat
from ipaddress import IPv4Address

import pytest
from cryptography.hazmat.primitives.asymmetric.x25519 import X25519PrivateKey
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

from infrabase.core.wireguard_keys import (
    WireGuardIdentityProvisioner,
    generate_wireguard_keypair,
    privkey_path,
)
from infrabase.exceptions import ConfigurationError, KeyFileError

WG_IP = IPv4Address("10.8.0.2")


def public_from_private(private_key: str) -> str:
    private = X25519PrivateKey.from_private_bytes(base64.b64decode(private_key))
    raw = private.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw)
    return base64.b64encode(raw).decode()


class TestGenerateKeypair:

    def test_keys_are_wg_format(self):
        keypair = generate_wireguard_keypair()
        for key in keypair:
            assert len(key) == 44
            assert key.endswith("=")
            assert len(base64.b64decode(key)) == 32

    def test_public_key_matches_private_key(self):
        keypair = generate_wireguard_keypair()
        assert public_from_private(keypair.private_key) == keypair.public_key

    def test_keys_are_fresh(self):
        assert generate_wireguard_keypair() != generate_wireguard_keypair()


class TestPrivkeyPath:

    def test_substitutes_hostname_and_ip(self, tmp_path):
        template = str(tmp_path / "{hostname}" / "wg-{wireguard_ip}.key")
        assert privkey_path(template, "alice", WG_IP) == tmp_path / "alice" / "wg-10.8.0.2.key"

    def test_unknown_field(self):
        with pytest.raises(ConfigurationError, match="owner"):
            privkey_path("/keys/{owner}.key", "alice", WG_IP)

    def test_malformed_template(self):
        with pytest.raises(ConfigurationError):
            privkey_path("/keys/{hostname.key", "alice", WG_IP)


class TestWireGuardIdentityProvisioner:

    def test_writes_private_key_and_returns_public_key(self, tmp_path):
        template = str(tmp_path / "wg" / "{hostname}" / "{wireguard_ip}" / "private.key")
        public_key = WireGuardIdentityProvisioner(template).provision("alice", WG_IP)

        path = tmp_path / "wg" / "alice" / "10.8.0.2" / "private.key"
        content = path.read_text()
        assert content.endswith("\n")
        assert public_from_private(content.strip()) == public_key

    def test_key_file_is_private(self, tmp_path):
        template = str(tmp_path / "{hostname}.key")
        WireGuardIdentityProvisioner(template).provision("alice", WG_IP)
        mode = stat.S_IMODE(os.stat(tmp_path / "alice.key").st_mode)
        assert mode & 0o077 == 0

    def test_existing_key_is_not_overwritten(self, tmp_path):
        path = tmp_path / "alice.key"
        path.write_text("existing\n")
        provisioner = WireGuardIdentityProvisioner(str(tmp_path / "{hostname}.key"))
        with pytest.raises(KeyFileError) as exc_info:
            provisioner.provision("alice", WG_IP)
        assert str(path) in str(exc_info.value)
        assert path.read_text() == "existing\n"

    def test_unwritable_directory(self, tmp_path):
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("")
        provisioner = WireGuardIdentityProvisioner(str(blocker / "{hostname}.key"))
        with pytest.raises(KeyFileError) as exc_info:
            provisioner.provision("alice", WG_IP)
        assert isinstance(exc_info.value.__cause__, OSError)

    def test_bad_template_writes_nothing(self, tmp_path):
        provisioner = WireGuardIdentityProvisioner(str(tmp_path / "{nope}.key"))
        with pytest.raises(ConfigurationError):
            provisioner.provision("alice", WG_IP)
        assert list(tmp_path.iterdir()) == []
