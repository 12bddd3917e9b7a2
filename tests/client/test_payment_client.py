"""
Tests for PaymentClient: wallet session, network switching and payment.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from algocheckout.clients.payment_client import PaymentClient
from algocheckout.exceptions import (
    AlreadyInProgress,
    BuildError,
    ConfirmationTimeout,
    ConnectionCancelled,
    NotConnected,
    SigningRejected,
    SubmissionError,
    UnsupportedNetworkError,
    WalletConnectionError,
)
from algocheckout.preferences import NETWORK_KEY, Preferences
from algocheckout.transactions import build_payment_group
from algocheckout.wallet import LocalWallet


@pytest.fixture
def nodes():
    return []


@pytest.fixture
def node_factory(nodes, suggested_params):
    """Builds mock node clients and records them in creation order"""

    def _factory(config):
        node = MagicMock()
        node.config = config
        node.suggested_params = AsyncMock(return_value=suggested_params)
        node.send_raw_transaction = AsyncMock(return_value="TXID1")
        node.wait_for_confirmation = AsyncMock(return_value={"confirmed-round": 105})
        node.close = AsyncMock()
        nodes.append(node)
        return node

    return _factory


@pytest.fixture
def wallet(payer_account):
    return LocalWallet.from_private_key(payer_account[0])


@pytest.fixture
def client(wallet, node_factory):
    return PaymentClient(wallet, network_id="testnet", node_factory=node_factory)


def _mock_wallet(address, **overrides):
    wallet = MagicMock()
    wallet.reconnect_session = AsyncMock(return_value=[])
    wallet.connect = AsyncMock(return_value=[address])
    wallet.disconnect = AsyncMock()
    wallet.sign_transactions = AsyncMock()
    for name, value in overrides.items():
        setattr(wallet, name, value)
    return wallet


class TestNetworkSelection:
    def test_default_network(self, wallet, node_factory):
        client = PaymentClient(wallet, node_factory=node_factory)
        assert client.network_id == "testnet"
        assert client.current_network.name == "TestNet"

    def test_stored_preference(self, wallet, node_factory, nodes):
        prefs = Preferences()
        prefs.set(NETWORK_KEY, "mainnet")

        client = PaymentClient(wallet, preferences=prefs, node_factory=node_factory)

        assert client.network_id == "mainnet"
        assert nodes[0].config.name == "MainNet"

    def test_unsupported_stored_preference(self, wallet, node_factory):
        prefs = Preferences()
        prefs.set(NETWORK_KEY, "devnet")
        client = PaymentClient(wallet, preferences=prefs, node_factory=node_factory)
        assert client.network_id == "testnet"

    def test_networks(self, client):
        assert set(client.networks) == {"testnet", "mainnet"}

    @pytest.mark.anyio
    async def test_switch_network_drops_session(self, client, nodes, wallet):
        await client.connect()
        assert client.is_connected

        await client.switch_network("mainnet")

        assert not client.is_connected
        assert client.connected_account is None
        assert client.network_id == "mainnet"
        assert client.node is nodes[1]
        nodes[0].close.assert_awaited_once()
        assert await wallet.reconnect_session() == []

    @pytest.mark.anyio
    async def test_switch_network_persists(self, wallet, node_factory):
        prefs = Preferences()
        client = PaymentClient(wallet, preferences=prefs, node_factory=node_factory)

        await client.switch_network("mainnet")

        assert prefs.get(NETWORK_KEY) == "mainnet"

    @pytest.mark.anyio
    async def test_switch_to_same_network(self, client, nodes):
        await client.switch_network("testnet")
        assert len(nodes) == 1
        nodes[0].close.assert_not_awaited()

    @pytest.mark.anyio
    async def test_switch_to_unknown_network(self, client):
        with pytest.raises(UnsupportedNetworkError):
            await client.switch_network("betanet")
        assert client.network_id == "testnet"


class TestWalletSession:
    @pytest.mark.anyio
    async def test_connect(self, client, payer_address):
        assert not client.is_connected
        assert await client.connect() == payer_address
        assert client.is_connected
        assert client.connected_account == payer_address

    @pytest.mark.anyio
    async def test_connect_prefers_restore(self, payer_address, node_factory):
        wallet = _mock_wallet(payer_address, reconnect_session=AsyncMock(return_value=[payer_address]))
        client = PaymentClient(wallet, node_factory=node_factory)

        assert await client.connect() == payer_address
        wallet.connect.assert_not_awaited()

    @pytest.mark.anyio
    async def test_connect_when_connected(self, client, payer_address):
        await client.connect()
        assert await client.connect() == payer_address

    @pytest.mark.anyio
    async def test_connect_cancelled(self, payer_address, node_factory):
        wallet = _mock_wallet(payer_address, connect=AsyncMock(side_effect=ConnectionCancelled()))
        client = PaymentClient(wallet, node_factory=node_factory)

        assert await client.connect() is None
        assert not client.is_connected

    @pytest.mark.anyio
    async def test_connect_failure(self, payer_address, node_factory):
        wallet = _mock_wallet(payer_address, connect=AsyncMock(side_effect=OSError("bridge down")))
        client = PaymentClient(wallet, node_factory=node_factory)

        with pytest.raises(WalletConnectionError):
            await client.connect()
        assert not client.is_connected

    @pytest.mark.anyio
    async def test_connect_no_accounts(self, payer_address, node_factory):
        wallet = _mock_wallet(payer_address, connect=AsyncMock(return_value=[]))
        client = PaymentClient(wallet, node_factory=node_factory)

        with pytest.raises(WalletConnectionError):
            await client.connect()

    @pytest.mark.anyio
    async def test_init_restores_once(self, payer_address, node_factory):
        wallet = _mock_wallet(payer_address, reconnect_session=AsyncMock(return_value=[payer_address]))
        client = PaymentClient(wallet, node_factory=node_factory)

        await client.init()
        await client.init()

        assert client.connected_account == payer_address
        wallet.reconnect_session.assert_awaited_once()
        wallet.connect.assert_not_awaited()

    @pytest.mark.anyio
    async def test_init_without_session(self, client):
        await client.init()
        assert not client.is_connected

    @pytest.mark.anyio
    async def test_disconnect_clears_session_on_wallet_error(self, payer_address, node_factory):
        wallet = _mock_wallet(payer_address, disconnect=AsyncMock(side_effect=RuntimeError("gone")))
        client = PaymentClient(wallet, node_factory=node_factory)
        await client.connect()

        await client.disconnect()

        assert not client.is_connected

    @pytest.mark.anyio
    async def test_peer_disconnect(self, client, wallet):
        await client.connect()
        wallet.drop_session()
        assert not client.is_connected


class TestPay:
    @pytest.mark.anyio
    async def test_pay(self, client, checkout, nodes):
        await client.connect()

        result = await client.pay(checkout)

        node = nodes[0]
        node.suggested_params.assert_awaited_once()
        node.wait_for_confirmation.assert_awaited_once_with("TXID1", 4)
        assert result.checkout_id == "CHK-1"
        assert result.tx_id == "TXID1"
        assert result.confirmed_round == 105
        assert result.group_id is not None
        assert not client.is_in_progress("CHK-1")

    @pytest.mark.anyio
    async def test_pay_sends_group_as_one_blob(self, payer_address, node_factory, nodes, checkout):
        wallet = _mock_wallet(
            payer_address, sign_transactions=AsyncMock(return_value=[b"first", b"second"])
        )
        client = PaymentClient(wallet, node_factory=node_factory)
        await client.connect()

        await client.pay(checkout)

        signed_txns = wallet.sign_transactions.await_args.args[0]
        assert len(signed_txns) == 2
        nodes[0].send_raw_transaction.assert_awaited_once_with(b"firstsecond")

    @pytest.mark.anyio
    async def test_pay_not_connected(self, client, checkout, nodes):
        with pytest.raises(NotConnected, match="Wallet not connected"):
            await client.pay(checkout)
        nodes[0].send_raw_transaction.assert_not_awaited()

    @pytest.mark.anyio
    async def test_pay_not_pending(self, client, make_checkout):
        await client.connect()
        with pytest.raises(BuildError):
            await client.pay(make_checkout(status="paid"))

    @pytest.mark.anyio
    async def test_pay_expired(self, client, make_checkout):
        await client.connect()
        now = datetime.now(timezone.utc)
        expired = make_checkout(
            createdAt=now - timedelta(minutes=31), expiresAt=now - timedelta(minutes=1)
        )
        with pytest.raises(BuildError):
            await client.pay(expired)

    @pytest.mark.anyio
    async def test_signing_rejected(self, payer_address, node_factory, nodes, checkout):
        wallet = _mock_wallet(
            payer_address, sign_transactions=AsyncMock(side_effect=RuntimeError("user declined"))
        )
        client = PaymentClient(wallet, node_factory=node_factory)
        await client.connect()

        with pytest.raises(SigningRejected):
            await client.pay(checkout)
        nodes[0].send_raw_transaction.assert_not_awaited()
        assert not client.is_in_progress("CHK-1")

    @pytest.mark.anyio
    async def test_signature_count_mismatch(self, payer_address, node_factory, checkout):
        wallet = _mock_wallet(payer_address, sign_transactions=AsyncMock(return_value=[b"one"]))
        client = PaymentClient(wallet, node_factory=node_factory)
        await client.connect()

        with pytest.raises(SigningRejected):
            await client.pay(checkout)

    @pytest.mark.anyio
    async def test_submission_error(self, client, checkout, nodes):
        await client.connect()
        nodes[0].send_raw_transaction.side_effect = SubmissionError("rejected", detail="overspend")

        with pytest.raises(SubmissionError):
            await client.pay(checkout)
        assert not client.is_in_progress("CHK-1")

    @pytest.mark.anyio
    async def test_confirmation_timeout(self, client, checkout, nodes):
        await client.connect()
        nodes[0].wait_for_confirmation.side_effect = ConfirmationTimeout("TXID1", 4)

        with pytest.raises(ConfirmationTimeout):
            await client.pay(checkout)
        assert checkout.status.value == "pending"

    @pytest.mark.anyio
    async def test_custom_confirmation_rounds(self, wallet, node_factory, nodes, checkout):
        client = PaymentClient(wallet, node_factory=node_factory, confirmation_rounds=10)
        await client.connect()
        await client.pay(checkout)
        nodes[0].wait_for_confirmation.assert_awaited_once_with("TXID1", 10)


class TestReentrancy:
    @pytest.mark.anyio
    async def test_second_submit_rejected(
        self, payer_address, node_factory, nodes, checkout, suggested_params
    ):
        release = asyncio.Event()
        signing_started = asyncio.Event()

        async def slow_sign(txns):
            signing_started.set()
            await release.wait()
            return [b"a", b"b"]

        wallet = _mock_wallet(payer_address, sign_transactions=slow_sign)
        client = PaymentClient(wallet, node_factory=node_factory)
        await client.connect()
        group = build_payment_group(checkout, payer_address, suggested_params)

        first = asyncio.create_task(client.submit(group))
        await signing_started.wait()
        assert client.is_in_progress("CHK-1")

        with pytest.raises(AlreadyInProgress):
            await client.submit(group)
        with pytest.raises(AlreadyInProgress):
            await client.pay(checkout)

        release.set()
        assert await first == "TXID1"
        assert not client.is_in_progress("CHK-1")
        nodes[0].send_raw_transaction.assert_awaited_once()

    @pytest.mark.anyio
    async def test_other_checkout_not_blocked(
        self, payer_address, node_factory, make_checkout, suggested_params
    ):
        release = asyncio.Event()

        async def slow_sign(txns):
            await release.wait()
            return [b"x"] * len(txns)

        wallet = _mock_wallet(payer_address, sign_transactions=slow_sign)
        client = PaymentClient(wallet, node_factory=node_factory)
        await client.connect()

        first = asyncio.create_task(
            client.submit(build_payment_group(make_checkout(id="CHK-1"), payer_address, suggested_params))
        )
        second = asyncio.create_task(
            client.submit(build_payment_group(make_checkout(id="CHK-2"), payer_address, suggested_params))
        )
        await asyncio.sleep(0)
        release.set()

        assert await asyncio.gather(first, second) == ["TXID1", "TXID1"]

    @pytest.mark.anyio
    async def test_switch_network_during_pay(self, payer_address, node_factory, nodes, checkout):
        release = asyncio.Event()
        signing_started = asyncio.Event()

        async def slow_sign(txns):
            signing_started.set()
            await release.wait()
            return [b"x"] * len(txns)

        wallet = _mock_wallet(payer_address, sign_transactions=slow_sign)
        client = PaymentClient(wallet, network_id="testnet", node_factory=node_factory)
        await client.connect()

        paying = asyncio.create_task(client.pay(checkout))
        await signing_started.wait()
        await client.switch_network("mainnet")

        assert client.node is nodes[1]
        nodes[0].close.assert_not_awaited()

        release.set()
        result = await paying

        assert result.tx_id == "TXID1"
        nodes[0].send_raw_transaction.assert_awaited_once()
        nodes[0].wait_for_confirmation.assert_awaited_once()
        nodes[1].suggested_params.assert_not_awaited()
        nodes[1].send_raw_transaction.assert_not_awaited()
        nodes[0].close.assert_awaited_once()
        nodes[1].close.assert_not_awaited()

    @pytest.mark.anyio
    async def test_close_releases_retired_node(self, payer_address, node_factory, nodes, checkout):
        release = asyncio.Event()
        signing_started = asyncio.Event()

        async def slow_sign(txns):
            signing_started.set()
            await release.wait()
            return [b"x"] * len(txns)

        wallet = _mock_wallet(payer_address, sign_transactions=slow_sign)
        client = PaymentClient(wallet, network_id="testnet", node_factory=node_factory)
        await client.connect()

        paying = asyncio.create_task(client.pay(checkout))
        await signing_started.wait()
        await client.switch_network("mainnet")
        await client.close()

        nodes[0].close.assert_awaited_once()
        nodes[1].close.assert_awaited_once()

        release.set()
        await paying
        nodes[0].close.assert_awaited_once()
