"""
tokenledger Address Module

Account identifiers are 20-byte Ethereum-style addresses. Every identity that
enters the ledger is normalized to its EIP-55 checksum form so that storage
keys and identity comparisons are independent of input casing.
"""

from typing import Union

from eth_utils import is_address, to_checksum_address

from .constants import ADDRESS_LENGTH, ZERO_ADDRESS
from .exceptions import InvalidAddressError

AddressLike = Union[str, bytes]


def normalize_address(address: AddressLike) -> str:
    """
    Convert an address to checksum format.

    Args:
        address: 0x-prefixed hex string (any casing) or 20 raw bytes

    Returns:
        EIP-55 checksum address

    Raises:
        InvalidAddressError: if the value is not a 20-byte address
    """
    if isinstance(address, (bytes, bytearray)):
        if len(address) != ADDRESS_LENGTH:
            raise InvalidAddressError(address)
        address = "0x" + bytes(address).hex()
    if not isinstance(address, str) or not is_address(address):
        raise InvalidAddressError(address)
    return to_checksum_address(address)


def is_zero_address(address: AddressLike) -> bool:
    """Check whether *address* is the null identity."""
    return normalize_address(address) == CHECKSUM_ZERO_ADDRESS


CHECKSUM_ZERO_ADDRESS = to_checksum_address(ZERO_ADDRESS)
