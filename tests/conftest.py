"""
Pytest configuration and fixtures
"""

from datetime import datetime, timedelta, timezone

import pytest
from algosdk import account, transaction

from algocheckout.types import Checkout

TESTNET_GENESIS_HASH = "SGO1GKSzyE7IEPItTxCByw9x8FmnrCDexi9/cOUJOiI="

USDC_TESTNET_ASSET_ID = 10458941
CHECKOUT_APP_ID = 754674671


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def payer_account():
    """(private_key, address) of a throwaway payer"""
    return account.generate_account()


@pytest.fixture
def payer_address(payer_account):
    return payer_account[1]


@pytest.fixture
def merchant_address():
    return account.generate_account()[1]


@pytest.fixture
def suggested_params():
    """Suggested params as an algod node reports them"""
    return transaction.SuggestedParams(
        fee=0,
        first=1000,
        last=2000,
        gh=TESTNET_GENESIS_HASH,
        gen="testnet-v1.0",
        flat_fee=False,
        min_fee=1000,
    )


@pytest.fixture
def params_response():
    """JSON body of GET /v2/transactions/params"""
    return {
        "consensus-version": "future",
        "fee": 0,
        "genesis-hash": TESTNET_GENESIS_HASH,
        "genesis-id": "testnet-v1.0",
        "last-round": 1000,
        "min-fee": 1000,
    }


@pytest.fixture
def make_checkout(merchant_address):
    """Factory for checkout records"""

    def _make(**overrides) -> Checkout:
        now = datetime.now(timezone.utc)
        data = {
            "id": "CHK-1",
            "programId": CHECKOUT_APP_ID,
            "merchantAddress": merchant_address,
            "merchantName": "Coffee Corner",
            "amount": 1_000_000,
            "assetId": USDC_TESTNET_ASSET_ID,
            "note": "Order #42",
            "status": "pending",
            "createdAt": now - timedelta(minutes=1),
            "expiresAt": now + timedelta(seconds=1800),
        }
        data.update(overrides)
        return Checkout(**data)

    return _make


@pytest.fixture
def checkout(make_checkout):
    return make_checkout()
