"""
Unit tests for cryptographic primitives and addresses.

Tests cover:
1. Key generation
2. Hashing functions
3. Identifier derivation
4. Address encoding
"""

import pytest

from tokenauction.crypto import (
    generate_keypair,
    keypair_from_seed,
    private_key_to_public_key,
    derive_contract_identifier,
    sha256,
    keccak256,
    bytes_to_hex,
    hex_to_bytes,
)
from tokenauction.core.address import (
    Address,
    AddressType,
    ADDRESS_SIZE,
    account_address,
    contract_address,
)


class TestKeyGeneration:
    """Tests for key generation."""

    def test_keypair_generation_produces_valid_lengths(self):
        """KeyPair should have correct field lengths."""
        kp = generate_keypair()
        assert len(kp.private_key) == 32
        assert len(kp.public_key) == 64
        assert len(kp.identifier) == 20

    def test_keypairs_are_unique(self):
        """Each keypair should be different."""
        kp1 = generate_keypair()
        kp2 = generate_keypair()
        assert kp1.private_key != kp2.private_key
        assert kp1.public_key != kp2.public_key

    def test_derive_public_key_from_private(self):
        """Should derive correct public key from private key."""
        kp = generate_keypair()
        assert private_key_to_public_key(kp.private_key) == kp.public_key

    def test_private_key_length_checked(self):
        """Short private keys are rejected."""
        with pytest.raises(ValueError):
            private_key_to_public_key(b"\x01" * 31)

    def test_seeded_keypair_is_deterministic(self):
        """Same seed, same keys; different seed, different keys."""
        assert keypair_from_seed("alice") == keypair_from_seed("alice")
        assert keypair_from_seed("alice").public_key != keypair_from_seed("bob").public_key


class TestHashing:
    """Tests for hash functions."""

    def test_sha256_known_vector(self):
        """SHA-256 of empty input matches the standard digest."""
        assert sha256(b"").hex() == (
            "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"
        )

    def test_keccak256_known_vector(self):
        """Keccak-256 (not SHA3-256) of empty input."""
        assert keccak256(b"").hex() == (
            "c5d2460186f7233c927e7db2dcc703c0e500b653ca82273b7bfad8045d85a470"
        )

    def test_hex_roundtrip(self):
        """bytes_to_hex and hex_to_bytes are inverses."""
        data = b"\x00\x01\xfe\xff"
        assert bytes_to_hex(data) == "0x0001feff"
        assert hex_to_bytes("0x0001feff") == data
        assert hex_to_bytes("0001FEFF") == data


class TestAddress:
    """Tests for typed addresses."""

    def test_account_address_from_public_key(self):
        """Account identifier is the keccak tail of the public key."""
        kp = generate_keypair()
        address = account_address(kp.public_key)
        assert address.address_type == AddressType.ACCOUNT
        assert address.identifier == keccak256(kp.public_key)[-20:]
        assert not address.is_public_contract

    def test_contract_address_is_public_contract(self):
        """Contracts default to the public contract type."""
        deployer = account_address(generate_keypair().public_key)
        token = contract_address(deployer, "token:SALE")
        assert token.is_public_contract
        assert token.identifier == derive_contract_identifier(deployer.to_bytes(), "token:SALE")

    def test_contract_labels_give_distinct_addresses(self):
        """Different labels never collide."""
        deployer = account_address(generate_keypair().public_key)
        assert contract_address(deployer, "a") != contract_address(deployer, "b")

    def test_bytes_roundtrip(self):
        """Address survives byte encoding with its type tag."""
        address = Address(AddressType.ZK_CONTRACT, bytes(range(20)))
        data = address.to_bytes()
        assert len(data) == ADDRESS_SIZE
        assert data[0] == 0x03
        assert Address.from_bytes(data) == address
        assert Address.from_hex(address.to_hex()) == address

    def test_invalid_identifier_length(self):
        """Identifier must be exactly 20 bytes."""
        with pytest.raises(ValueError):
            Address(AddressType.ACCOUNT, bytes(19))

    def test_invalid_type_tag(self):
        """Unknown type tags are rejected on decode."""
        with pytest.raises(ValueError):
            Address.from_bytes(b"\x09" + bytes(20))

    def test_addresses_are_hashable_and_ordered(self):
        """Addresses key dicts and sort deterministically."""
        a = Address(AddressType.ACCOUNT, b"\x01" * 20)
        b = Address(AddressType.ACCOUNT, b"\x02" * 20)
        c = Address(AddressType.PUBLIC_CONTRACT, b"\x00" * 20)
        assert sorted([c, b, a]) == [a, b, c]
        assert {a: 1}[Address(AddressType.ACCOUNT, b"\x01" * 20)] == 1


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
