"""
Method definitions and binary argument encoding for the checkout application
"""

import json
from typing import Any, List

from algocheckout.exceptions import EncodingError
from algocheckout.utils.address import PUBLIC_KEY_LENGTH, decode_address, sha512_256

MAX_STRING_BYTES = 2**16 - 1
MAX_UINT64 = 2**64 - 1
SELECTOR_LENGTH = 4

PAY_CHECKOUT_METHOD = "payCheckout"

# Checkout application ABI (ARC-4 method description)
# The axfer argument is the grouped asset transfer, not an application argument.
PAY_CHECKOUT_ABI: List[dict[str, Any]] = [
    {
        "name": "payCheckout",
        "args": [
            {"type": "axfer", "name": "payment"},
            {"type": "string", "name": "checkoutId"},
            {"type": "address", "name": "merchant"},
            {"type": "string", "name": "merchantName"},
            {"type": "uint64", "name": "amount"},
            {"type": "string", "name": "note"},
        ],
        "returns": {"type": "void"},
    },
]


def get_abi_json(abi: List[dict[str, Any]]) -> str:
    """Convert ABI list to JSON string"""
    return json.dumps(abi)


def _find_method(abi: List[dict[str, Any]], method_name: str) -> dict[str, Any]:
    for item in abi:
        if item.get("name") == method_name:
            return item
    raise ValueError(f"Method '{method_name}' not found in ABI")


def get_method_signature(abi: List[dict[str, Any]], method_name: str) -> str:
    """Get the canonical method signature string.

    Args:
        abi: Method description list
        method_name: Method name

    Returns:
        Signature string, e.g. "payCheckout(axfer,string,address,string,uint64,string)void"

    Raises:
        ValueError: If method not found in ABI
    """
    method = _find_method(abi, method_name)
    arg_types = [arg["type"] for arg in method.get("args", [])]
    return_type = method.get("returns", {}).get("type", "void")
    return f"{method_name}({','.join(arg_types)}){return_type}"


def calculate_method_selector(signature: str) -> bytes:
    """Calculate the 4-byte method selector (first 4 bytes of SHA-512/256)

    Example:
        >>> calculate_method_selector("add(uint64,uint64)uint128").hex()
        '8aa3b61f'
    """
    return sha512_256(signature.encode("utf-8"))[:SELECTOR_LENGTH]


def get_method_selector(abi: List[dict[str, Any]], method_name: str) -> bytes:
    """Calculate the selector of a method from its ABI description"""
    return calculate_method_selector(get_method_signature(abi, method_name))


def encode_address(address: str | bytes) -> bytes:
    """Encode an account as its raw 32-byte public key.

    Raises:
        EncodingError: If the address fails fixed-width validation
    """
    if isinstance(address, (bytes, bytearray)):
        if len(address) != PUBLIC_KEY_LENGTH:
            raise EncodingError(
                f"Address must be {PUBLIC_KEY_LENGTH} bytes, got {len(address)}"
            )
        return bytes(address)
    return decode_address(address)


def encode_string(value: str) -> bytes:
    """Encode a string as uint16 big-endian byte length followed by UTF-8 bytes.

    Raises:
        EncodingError: If the UTF-8 form is longer than 65535 bytes
    """
    data = value.encode("utf-8")
    if len(data) > MAX_STRING_BYTES:
        raise EncodingError(
            f"String too long to encode: {len(data)} bytes (max {MAX_STRING_BYTES})"
        )
    return len(data).to_bytes(2, "big") + data


def encode_uint64(value: int) -> bytes:
    """Encode an unsigned 64-bit integer as 8 bytes big-endian.

    Raises:
        EncodingError: If value is negative or does not fit in 64 bits
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise EncodingError(f"uint64 value must be an integer, got {type(value).__name__}")
    if value < 0 or value > MAX_UINT64:
        raise EncodingError(f"uint64 value out of range: {value}")
    return value.to_bytes(8, "big")


def encode_pay_checkout_args(
    checkout_id: str,
    merchant_address: str,
    merchant_name: str | None,
    amount: int,
    note: str | None,
) -> list[bytes]:
    """Build the application argument list for payCheckout.

    Returns:
        [selector, checkoutId, merchant, merchantName, amount, note]
    """
    return [
        get_method_selector(PAY_CHECKOUT_ABI, PAY_CHECKOUT_METHOD),
        encode_string(checkout_id),
        encode_address(merchant_address),
        encode_string(merchant_name or ""),
        encode_uint64(amount),
        encode_string(note or ""),
    ]
