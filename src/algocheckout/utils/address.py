"""
Address utility functions for Algorand accounts and applications
"""

import logging

from algosdk import encoding
from Crypto.Hash import SHA512

from algocheckout.exceptions import EncodingError

logger = logging.getLogger(__name__)

ADDRESS_LENGTH = 58
PUBLIC_KEY_LENGTH = 32

# Domain separation prefix for application escrow addresses
APP_ID_PREFIX = b"appID"


def sha512_256(data: bytes) -> bytes:
    """SHA-512/256 digest, the hash Algorand uses for ids and addresses"""
    return SHA512.new(data, truncate="256").digest()


def is_valid_address(address: str) -> bool:
    """Check whether *address* is a checksummed 58-character Algorand address"""
    if not isinstance(address, str) or len(address) != ADDRESS_LENGTH:
        return False
    return encoding.is_valid_address(address)


def decode_address(address: str) -> bytes:
    """Convert an Algorand address to its 32-byte public key.

    Args:
        address: 58-character base32 address with checksum

    Returns:
        32 raw bytes

    Raises:
        EncodingError: If the address fails length or checksum validation
    """
    if not is_valid_address(address):
        raise EncodingError(f"Invalid Algorand address: {address!r}")
    return encoding.decode_address(address)


def encode_address(public_key: bytes) -> str:
    """Convert a 32-byte public key to its Algorand address"""
    if len(public_key) != PUBLIC_KEY_LENGTH:
        raise EncodingError(
            f"Account public key must be {PUBLIC_KEY_LENGTH} bytes, got {len(public_key)}"
        )
    return encoding.encode_address(public_key)


def get_application_address(app_id: int) -> str:
    """Compute the escrow account address of an application.

    The address is SHA-512/256 of ``b"appID" || uint64(app_id)``; no network
    call is involved.

    Args:
        app_id: Application id

    Returns:
        Algorand address of the application account
    """
    if app_id < 0 or app_id >= 2**64:
        raise EncodingError(f"Application id out of range: {app_id}")
    return encode_address(sha512_256(APP_ID_PREFIX + app_id.to_bytes(8, "big")))
