import asyncio
import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from algocheckout import (
    ApiEndpointSelector,
    CheckoutError,
    CheckoutWatcher,
    ConfirmationTimeout,
    LocalWallet,
    PaymentClient,
)
from algocheckout.logging_config import setup_logging
from algocheckout.preferences import Preferences
from algocheckout.utils import format_amount

setup_logging(logging.INFO)

load_dotenv(Path(__file__).parent.parent.parent.parent / ".env")

PAYER_MNEMONIC = os.getenv("PAYER_MNEMONIC", "")
CHECKOUT_ID = sys.argv[1] if len(sys.argv) > 1 else os.getenv("CHECKOUT_ID", "")

if not PAYER_MNEMONIC or not CHECKOUT_ID:
    print("\nUsage: PAYER_MNEMONIC=... python main.py <checkout-id>\n")
    sys.exit(1)


async def main():
    preferences = Preferences.default()
    endpoints = ApiEndpointSelector(os.getenv("CHECKOUT_ENDPOINT"), preferences=preferences)

    wallet = LocalWallet.from_mnemonic(PAYER_MNEMONIC)
    client = PaymentClient(wallet, preferences=preferences)
    api = endpoints.api

    print(f"Network:  {client.current_network.name}")
    print(f"Endpoint: {endpoints.current_endpoint.name} ({endpoints.endpoint_id})")

    def show(lifecycle):
        print(f"  [{lifecycle.status.value}] {lifecycle.countdown() or ''}")

    watcher = CheckoutWatcher(CHECKOUT_ID, api, refresh_interval=10.0, on_update=show)
    try:
        async with watcher:
            checkout = watcher.lifecycle.checkout
            print(
                f"\nCheckout {checkout.id}: {format_amount(checkout.amount)} "
                f"of asset {checkout.asset_id} to {checkout.merchant_name or checkout.merchant_address}"
            )

            account = await client.connect()
            print(f"Payer: {account}")

            try:
                result = await watcher.pay(client)
                print(f"\nPaid: tx={result.tx_id} round={result.confirmed_round}")
            except ConfirmationTimeout as e:
                print(f"\nNot confirmed yet, check {e.tx_id} later")
            except CheckoutError as e:
                print(f"\nPayment failed: {e}")

            await asyncio.sleep(2)
    finally:
        await client.close()
        await endpoints.close()


if __name__ == "__main__":
    asyncio.run(main())
