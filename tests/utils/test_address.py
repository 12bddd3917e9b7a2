"""
Tests for address utilities
"""

import pytest
from algosdk import account, encoding, logic

from algocheckout.exceptions import EncodingError
from algocheckout.utils.address import (
    decode_address,
    encode_address,
    get_application_address,
    is_valid_address,
    sha512_256,
)


def test_sha512_256_known_vector():
    assert sha512_256(b"abc").hex() == (
        "53048e2681941ef99b2e29b76b4c7dabe4c2d0c634fc6d46e0e2f13107e7af23"
    )


@pytest.mark.parametrize("app_id", [1, 754674671, 2**64 - 1])
def test_application_address_matches_sdk(app_id):
    assert get_application_address(app_id) == logic.get_application_address(app_id)


def test_application_address_is_deterministic():
    assert get_application_address(754674671) == get_application_address(754674671)
    assert get_application_address(754674671) != get_application_address(754674672)


def test_application_address_out_of_range():
    with pytest.raises(EncodingError):
        get_application_address(-1)
    with pytest.raises(EncodingError):
        get_application_address(2**64)


def test_address_round_trip():
    _, address = account.generate_account()
    public_key = decode_address(address)
    assert len(public_key) == 32
    assert encode_address(public_key) == address


def test_is_valid_address():
    _, address = account.generate_account()
    assert is_valid_address(address)
    assert not is_valid_address(address[:-1])
    assert not is_valid_address(address.lower())
    assert not is_valid_address(None)


def test_checksum_mismatch():
    _, address = account.generate_account()
    public_key = encoding.decode_address(address)
    other = encoding.encode_address(bytes([public_key[0] ^ 1]) + public_key[1:])
    tampered = other[:52] + address[52:]
    with pytest.raises(EncodingError):
        decode_address(tampered)


def test_encode_address_wrong_length():
    with pytest.raises(EncodingError):
        encode_address(b"\x00" * 31)
