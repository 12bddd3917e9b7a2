"""
Utility functions for algocheckout
"""

from algocheckout.utils.address import (
    decode_address,
    encode_address,
    get_application_address,
    is_valid_address,
    sha512_256,
)
from algocheckout.utils.formatting import format_amount, format_remaining

__all__ = [
    "decode_address",
    "encode_address",
    "get_application_address",
    "is_valid_address",
    "sha512_256",
    "format_amount",
    "format_remaining",
]
