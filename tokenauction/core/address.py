"""
Address - identity of accounts and contracts.

An address is a one-byte type tag followed by a 20-byte identifier:

    address = type (1 byte) || identifier (20 bytes)

Accounts derive their identifier from a public key (keccak256, last 20
bytes). Token contracts accepted by the auction must be public contracts;
the type tag is the only thing the engine inspects.
"""

from dataclasses import dataclass
from enum import IntEnum

from tokenauction.crypto import (
    keccak256,
    derive_contract_identifier,
    bytes_to_hex,
    hex_to_bytes,
    IDENTIFIER_SIZE,
)
from tokenauction.utils.validation import validate_identifier


class AddressType(IntEnum):
    """Kind of entity an address refers to."""
    ACCOUNT = 0x00
    SYSTEM_CONTRACT = 0x01
    PUBLIC_CONTRACT = 0x02
    ZK_CONTRACT = 0x03


ADDRESS_SIZE = 1 + IDENTIFIER_SIZE


@dataclass(frozen=True, order=True)
class Address:
    """
    A typed 21-byte address.

    Frozen and ordered so it can key the claim ledger and sort
    deterministically in snapshots.
    """
    address_type: AddressType
    identifier: bytes   # 20 bytes

    def __post_init__(self):
        is_valid, error = validate_identifier(self.identifier)
        if not is_valid:
            raise ValueError(error)
        object.__setattr__(self, "address_type", AddressType(self.address_type))

    @property
    def is_public_contract(self) -> bool:
        return self.address_type == AddressType.PUBLIC_CONTRACT

    def to_bytes(self) -> bytes:
        return bytes([self.address_type]) + self.identifier

    @classmethod
    def from_bytes(cls, data: bytes) -> "Address":
        if len(data) != ADDRESS_SIZE:
            raise ValueError(f"address must be {ADDRESS_SIZE} bytes, got {len(data)}")
        return cls(AddressType(data[0]), bytes(data[1:]))

    def to_hex(self) -> str:
        return bytes_to_hex(self.to_bytes())

    @classmethod
    def from_hex(cls, hex_str: str) -> "Address":
        return cls.from_bytes(hex_to_bytes(hex_str))

    def short(self) -> str:
        """Abbreviated form for log lines."""
        return self.to_hex()[:12] + "..."

    def __repr__(self) -> str:
        return f"Address({self.address_type.name}, {bytes_to_hex(self.identifier)})"


# =============================================================================
# Constructors
# =============================================================================


def account_address(public_key: bytes) -> Address:
    """Account address for a 64-byte public key."""
    if len(public_key) != 64:
        raise ValueError(f"public_key must be 64 bytes, got {len(public_key)}")
    return Address(AddressType.ACCOUNT, keccak256(public_key)[-IDENTIFIER_SIZE:])


def contract_address(
    deployer: Address,
    label: str,
    address_type: AddressType = AddressType.PUBLIC_CONTRACT,
) -> Address:
    """Address of a contract deployed by `deployer` under a unique label."""
    return Address(address_type, derive_contract_identifier(deployer.to_bytes(), label))


__all__ = [
    "Address",
    "AddressType",
    "ADDRESS_SIZE",
    "account_address",
    "contract_address",
]
