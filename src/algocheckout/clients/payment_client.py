"""
PaymentClient - wallet session, network selection and payment submission
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator, Callable

from algocheckout.config import (
    CONFIRMATION_ROUNDS,
    DEFAULT_NETWORK,
    NetworkConfig,
    NetworkRegistry,
)
from algocheckout.exceptions import (
    AlreadyInProgress,
    BuildError,
    CheckoutError,
    ConnectionCancelled,
    NotConnected,
    SigningRejected,
    WalletConnectionError,
)
from algocheckout.node import AlgodClient
from algocheckout.preferences import NETWORK_KEY, Preferences
from algocheckout.transactions import TransactionGroup, prepare_payment
from algocheckout.types import Checkout, CheckoutStatus, PaymentResult
from algocheckout.wallet.base import WalletConnector
from algocheckout.wallet.session import WalletSession

logger = logging.getLogger(__name__)

NodeFactory = Callable[[NetworkConfig], AlgodClient]


class PaymentClient:
    """
    Owner of the wallet session and node client.

    One instance is shared by every checkout view of a process; connect(),
    disconnect() and switch_network() are the only operations that change
    the session or the node.
    """

    def __init__(
        self,
        wallet: WalletConnector,
        network_id: str | None = None,
        preferences: Preferences | None = None,
        node_factory: NodeFactory = AlgodClient,
        confirmation_rounds: int = CONFIRMATION_ROUNDS,
    ) -> None:
        """
        Initialize PaymentClient.

        Args:
            wallet: Wallet connector used for sessions and signing
            network_id: Network to start on; defaults to the saved preference
            preferences: Store for the last chosen network (in-memory if None)
            node_factory: Builds the node client for a network configuration
            confirmation_rounds: Rounds to wait for inclusion
        """
        self._wallet = wallet
        self._preferences = preferences or Preferences()
        self._node_factory = node_factory
        self._confirmation_rounds = confirmation_rounds

        if network_id is None:
            stored = self._preferences.get(NETWORK_KEY)
            network_id = stored if stored and NetworkRegistry.is_supported(stored) else DEFAULT_NETWORK
        self._network_id = network_id
        self._node = node_factory(NetworkRegistry.get(network_id))

        self._session: WalletSession | None = None
        self._initialized = False
        self._in_flight: set[str] = set()
        # Nodes replaced by switch_network() while payments still use them
        self._retired_nodes: list[AlgodClient] = []

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def is_connected(self) -> bool:
        return self._session is not None and self._session.active

    @property
    def connected_account(self) -> str | None:
        return self._session.account if self.is_connected else None

    @property
    def network_id(self) -> str:
        return self._network_id

    @property
    def current_network(self) -> NetworkConfig:
        return NetworkRegistry.get(self._network_id)

    @property
    def networks(self) -> dict[str, NetworkConfig]:
        return NetworkRegistry.all()

    @property
    def node(self) -> AlgodClient:
        return self._node

    def is_in_progress(self, checkout_id: str) -> bool:
        return checkout_id in self._in_flight

    # ------------------------------------------------------------------
    # Wallet session
    # ------------------------------------------------------------------

    async def init(self) -> None:
        """Silently restore an existing wallet session, once"""
        if self._initialized:
            return
        self._initialized = True

        try:
            accounts = await self._wallet.reconnect_session()
        except Exception as e:
            logger.debug("No wallet session to restore: %s", e)
            return
        if accounts:
            self._open_session(accounts[0])

    async def connect(self) -> str | None:
        """
        Establish or restore a wallet session.

        Returns:
            Connected account, or None if the user cancelled

        Raises:
            WalletConnectionError: Connection failed
        """
        if self._session is not None:
            return self._session.account

        try:
            accounts = await self._wallet.reconnect_session()
        except Exception as e:
            logger.debug("No wallet session to restore, connecting: %s", e)
            accounts = []
        if accounts:
            self._open_session(accounts[0])
            return accounts[0]

        try:
            accounts = await self._wallet.connect()
        except ConnectionCancelled:
            logger.info("Wallet connection cancelled by user")
            return None
        except WalletConnectionError:
            logger.error("Wallet connection failed", exc_info=True)
            raise
        except Exception as e:
            logger.error("Wallet connection failed: %s", e)
            raise WalletConnectionError(f"Wallet connection failed: {e}") from e

        if not accounts:
            raise WalletConnectionError("Wallet returned no accounts")
        self._open_session(accounts[0])
        return accounts[0]

    async def disconnect(self) -> None:
        """Tear down the wallet session; the local session is always cleared"""
        session = self._session
        self._session = None
        if session is not None:
            session.close()
        try:
            await self._wallet.disconnect()
        except Exception as e:
            logger.warning("Wallet disconnect failed: %s", e)

    def _open_session(self, account: str) -> None:
        self._session = WalletSession(account=account)
        self._wallet.on_disconnect(self._handle_disconnect)
        logger.info("Wallet connected: %s", account)

    def _handle_disconnect(self) -> None:
        if self._session is not None:
            logger.info("Wallet disconnected by peer: %s", self._session.account)
            self._session.close()
        self._session = None

    # ------------------------------------------------------------------
    # Network
    # ------------------------------------------------------------------

    async def switch_network(self, network_id: str) -> None:
        """
        Switch the active network.

        Persists the choice, rebuilds the node client and drops the wallet
        session, since accounts may differ between networks.

        Raises:
            UnsupportedNetworkError: Unknown network
        """
        if network_id == self._network_id:
            return

        config = NetworkRegistry.get(network_id)
        old_node = self._node
        self._network_id = network_id
        self._preferences.set(NETWORK_KEY, network_id)
        self._node = self._node_factory(config)

        if self._session is not None:
            await self.disconnect()
        if self._in_flight:
            self._retired_nodes.append(old_node)
        else:
            await old_node.close()
        logger.info("[Network] Switched to %s", config.name)

    async def close(self) -> None:
        """Close the node clients"""
        await self._close_retired_nodes()
        await self._node.close()

    # ------------------------------------------------------------------
    # Payment
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def _payment_guard(self, checkout_id: str) -> AsyncIterator[None]:
        if checkout_id in self._in_flight:
            raise AlreadyInProgress(checkout_id)
        self._in_flight.add(checkout_id)
        try:
            yield
        finally:
            self._in_flight.discard(checkout_id)
            if not self._in_flight:
                await self._close_retired_nodes()

    async def _close_retired_nodes(self) -> None:
        retired, self._retired_nodes = self._retired_nodes, []
        for node in retired:
            await node.close()

    def _require_session(self) -> WalletSession:
        if self._session is None or not self._session.active:
            raise NotConnected()
        return self._session

    async def submit(self, group: TransactionGroup) -> str:
        """
        Sign, submit and confirm a transaction group.

        Args:
            group: Unsigned transactions for one checkout

        Returns:
            Transaction id of the first member

        Raises:
            AlreadyInProgress: A payment for this checkout is in flight
            NotConnected: No wallet session
            SigningRejected: The signer declined
            SubmissionError: The node rejected the group
            ConfirmationTimeout: Not confirmed within the round bound
        """
        async with self._payment_guard(group.checkout_id):
            self._require_session()
            tx_id, _ = await self._sign_and_send(group, self._node)
            return tx_id

    async def pay(self, checkout: Checkout) -> PaymentResult:
        """
        Pay a checkout with the connected account.

        Fetches params, builds the transactions for the checkout's settlement
        method, then signs, submits and waits for confirmation.

        Raises:
            BuildError: The checkout is not payable or the build failed
            plus everything submit() raises
        """
        async with self._payment_guard(checkout.id):
            session = self._require_session()
            _check_payable(checkout)

            logger.info(
                "Paying checkout %s from %s on %s",
                checkout.id,
                session.account,
                self._network_id,
            )
            # One node for the whole attempt, even if the network is switched meanwhile
            node = self._node
            group = await prepare_payment(node, checkout, session.account)
            tx_id, info = await self._sign_and_send(group, node)

        return PaymentResult(
            checkoutId=checkout.id,
            txId=tx_id,
            confirmedRound=info.get("confirmed-round"),
            groupId=group.group_id_b64,
        )

    async def _sign_and_send(self, group: TransactionGroup, node: AlgodClient) -> tuple[str, dict]:
        txns = list(group)
        if not txns:
            raise BuildError(f"Empty transaction group for checkout {group.checkout_id}")

        try:
            signed = await self._wallet.sign_transactions(txns)
        except CheckoutError:
            raise
        except Exception as e:
            raise SigningRejected(f"Signing failed: {e}") from e
        if len(signed) != len(txns):
            raise SigningRejected(
                f"Wallet returned {len(signed)} signatures for {len(txns)} transactions"
            )

        tx_id = await node.send_raw_transaction(b"".join(signed))
        info = await node.wait_for_confirmation(tx_id, self._confirmation_rounds)
        logger.info("Checkout %s paid: tx=%s", group.checkout_id, tx_id)
        return tx_id, info


def _check_payable(checkout: Checkout) -> None:
    if checkout.status is not CheckoutStatus.PENDING:
        raise BuildError(f"Checkout {checkout.id} is {checkout.status.value}, not payable")
    if datetime.now(timezone.utc) >= checkout.expires_at:
        raise BuildError(f"Checkout {checkout.id} has expired")
