"""
Transaction builder for checkout payments.

Contract settlement uses an atomic group of two transactions:

    [0] asset transfer   payer -> application account (amount of asset)
    [1] application call payCheckout(axfer,string,address,string,uint64,string)void

The application call pays a flat fee of twice the minimum fee, covering the
transfer so that it can keep the default fee. Direct settlement is a single
asset transfer from payer to merchant.
"""

import base64
import copy
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterator

from algosdk import constants, transaction

from algocheckout.abi import encode_pay_checkout_args
from algocheckout.exceptions import BuildError, EncodingError, NodeError
from algocheckout.types import Checkout
from algocheckout.utils.address import get_application_address, is_valid_address

if TYPE_CHECKING:
    from algocheckout.node import AlgodClient

logger = logging.getLogger(__name__)

# Protocol limits on application call arguments
MAX_APP_ARGS = 16
MAX_APP_TOTAL_ARG_LEN = 2048

# The application call covers its own fee and the transfer's
APP_CALL_FEE_MULTIPLIER = 2


@dataclass
class TransactionGroup:
    """Ordered unsigned transactions for one payment attempt"""

    checkout_id: str
    transactions: list[transaction.Transaction] = field(default_factory=list)
    group_id: bytes | None = None

    def __len__(self) -> int:
        return len(self.transactions)

    def __iter__(self) -> Iterator[transaction.Transaction]:
        return iter(self.transactions)

    def __getitem__(self, index: int) -> transaction.Transaction:
        return self.transactions[index]

    @property
    def tx_ids(self) -> list[str]:
        return [txn.get_txid() for txn in self.transactions]

    @property
    def group_id_b64(self) -> str | None:
        if self.group_id is None:
            return None
        return base64.b64encode(self.group_id).decode()


def _min_fee(params: transaction.SuggestedParams) -> int:
    return params.min_fee if params.min_fee else constants.MIN_TXN_FEE


def _validate_app_args(app_args: list[bytes]) -> None:
    if len(app_args) > MAX_APP_ARGS:
        raise BuildError(f"Too many application arguments: {len(app_args)} > {MAX_APP_ARGS}")
    total = sum(len(arg) for arg in app_args)
    if total > MAX_APP_TOTAL_ARG_LEN:
        raise BuildError(
            f"Application arguments too large: {total} bytes > {MAX_APP_TOTAL_ARG_LEN}"
        )


def build_payment_group(
    checkout: Checkout,
    payer: str,
    params: transaction.SuggestedParams,
    program_id: int | None = None,
) -> TransactionGroup:
    """
    Build the two-transaction contract settlement group.

    Args:
        checkout: Checkout being paid
        payer: Payer account address
        params: Suggested params from the node, used unmodified for the transfer
        program_id: Application id, defaults to checkout.program_id

    Returns:
        TransactionGroup with the transfer first and the application call second

    Raises:
        BuildError: Missing program id, invalid field or argument limits exceeded
    """
    app_id = program_id if program_id is not None else checkout.program_id
    if app_id is None:
        raise BuildError(f"Checkout {checkout.id} has no program id for contract settlement")
    if not is_valid_address(payer):
        raise BuildError(f"Invalid payer address: {payer!r}")

    try:
        app_address = get_application_address(app_id)
        app_args = encode_pay_checkout_args(
            checkout_id=checkout.id,
            merchant_address=checkout.merchant_address,
            merchant_name=checkout.merchant_name,
            amount=checkout.amount,
            note=checkout.note,
        )
    except EncodingError as e:
        raise BuildError(f"Failed to encode checkout {checkout.id}: {e}") from e
    _validate_app_args(app_args)

    payment_txn = transaction.AssetTransferTxn(
        sender=payer,
        sp=params,
        receiver=app_address,
        amt=checkout.amount,
        index=checkout.asset_id,
    )

    app_params = copy.copy(params)
    app_params.flat_fee = True
    app_params.fee = APP_CALL_FEE_MULTIPLIER * _min_fee(params)

    app_call_txn = transaction.ApplicationCallTxn(
        sender=payer,
        sp=app_params,
        index=app_id,
        on_complete=transaction.OnComplete.NoOpOC,
        app_args=app_args,
        accounts=[checkout.merchant_address],
        foreign_assets=[checkout.asset_id],
    )

    txns = [payment_txn, app_call_txn]
    group_id = transaction.calculate_group_id(txns)
    for txn in txns:
        txn.group = group_id

    logger.info(
        "Built payment group: checkout=%s, app=%s, asset=%s, amount=%s, app_fee=%s",
        checkout.id,
        app_id,
        checkout.asset_id,
        checkout.amount,
        app_params.fee,
    )
    return TransactionGroup(checkout_id=checkout.id, transactions=txns, group_id=group_id)


def build_direct_transfer(
    checkout: Checkout,
    payer: str,
    params: transaction.SuggestedParams,
) -> TransactionGroup:
    """Build the single asset transfer used for direct settlement"""
    if not is_valid_address(payer):
        raise BuildError(f"Invalid payer address: {payer!r}")
    if not is_valid_address(checkout.merchant_address):
        raise BuildError(f"Invalid merchant address: {checkout.merchant_address!r}")

    note = checkout.note.encode("utf-8") if checkout.note else None
    txn = transaction.AssetTransferTxn(
        sender=payer,
        sp=params,
        receiver=checkout.merchant_address,
        amt=checkout.amount,
        index=checkout.asset_id,
        note=note,
    )
    logger.info(
        "Built direct transfer: checkout=%s, asset=%s, amount=%s",
        checkout.id,
        checkout.asset_id,
        checkout.amount,
    )
    return TransactionGroup(checkout_id=checkout.id, transactions=[txn])


def build_payment(
    checkout: Checkout,
    payer: str,
    params: transaction.SuggestedParams,
) -> TransactionGroup:
    """Build the transactions for the checkout's settlement method"""
    if checkout.payment_method == "direct":
        return build_direct_transfer(checkout, payer, params)
    return build_payment_group(checkout, payer, params)


async def prepare_payment(
    node: "AlgodClient",
    checkout: Checkout,
    payer: str,
) -> TransactionGroup:
    """Fetch fresh suggested params from the node and build the payment.

    Raises:
        BuildError: If params could not be fetched or the build fails
    """
    try:
        params = await node.suggested_params()
    except NodeError as e:
        raise BuildError(f"Could not fetch transaction params: {e}") from e
    return build_payment(checkout, payer, params)
