"""
AlgodClient - async client for an Algorand node's REST API
"""

import logging
from typing import Any

import httpx
from algosdk import transaction

from algocheckout.config import CONFIRMATION_ROUNDS, NetworkConfig
from algocheckout.exceptions import ConfirmationTimeout, NodeError, SubmissionError

logger = logging.getLogger(__name__)

API_TOKEN_HEADER = "X-Algo-API-Token"

# Validity window applied to fetched params, as algod SDKs do
VALIDITY_ROUNDS = 1000


class AlgodClient:
    """
    Client for communicating with an algod node.

    Handles suggested params, raw submission and confirmation polling.
    """

    def __init__(
        self,
        config: NetworkConfig,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ) -> None:
        """
        Initialize algod client.

        Args:
            config: Node connection parameters
            http_client: Pre-built client (mostly for tests); created lazily otherwise
            timeout: Request timeout in seconds
        """
        self.config = config
        self._base_url = config.algod_url
        self._headers = {API_TOKEN_HEADER: config.algod_token} if config.algod_token else {}
        self._timeout = timeout
        self._http_client = http_client

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client"""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                base_url=self._base_url,
                headers=self._headers,
                timeout=self._timeout,
            )
        return self._http_client

    async def close(self) -> None:
        """Close HTTP client"""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    async def _get_json(self, path: str) -> dict[str, Any]:
        client = await self._get_client()
        try:
            response = await client.get(path)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise NodeError(
                f"algod request {path} failed: {e.response.status_code} "
                f"{_error_message(e.response)}"
            ) from e
        except httpx.HTTPError as e:
            raise NodeError(f"algod request {path} failed: {e}") from e
        return response.json()

    async def status(self) -> dict[str, Any]:
        """Get current node status"""
        return await self._get_json("/v2/status")

    async def status_after_block(self, round_num: int) -> dict[str, Any]:
        """Wait until the node has seen a block after *round_num*"""
        return await self._get_json(f"/v2/status/wait-for-block-after/{round_num}")

    async def suggested_params(self) -> transaction.SuggestedParams:
        """
        Fetch current fee and round parameters.

        Returns:
            SuggestedParams valid from the last round for VALIDITY_ROUNDS rounds
        """
        data = await self._get_json("/v2/transactions/params")
        last_round = data["last-round"]
        return transaction.SuggestedParams(
            fee=data["fee"],
            first=last_round,
            last=last_round + VALIDITY_ROUNDS,
            gh=data["genesis-hash"],
            gen=data.get("genesis-id"),
            flat_fee=False,
            consensus_version=data.get("consensus-version"),
            min_fee=data.get("min-fee"),
        )

    async def send_raw_transaction(self, signed_txns: bytes) -> str:
        """
        Submit concatenated msgpack-encoded signed transactions.

        Returns:
            Transaction id of the first transaction

        Raises:
            SubmissionError: The node rejected the transactions
        """
        client = await self._get_client()
        try:
            response = await client.post(
                "/v2/transactions",
                content=signed_txns,
                headers={"Content-Type": "application/x-binary"},
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            detail = _error_message(e.response)
            logger.error("Node rejected transaction: %s", detail)
            raise SubmissionError(f"Transaction rejected by node: {detail}", detail=detail) from e
        except httpx.HTTPError as e:
            raise SubmissionError(f"Failed to submit transaction: {e}", detail=str(e)) from e
        tx_id = response.json()["txId"]
        logger.info("Submitted transaction: %s", tx_id)
        return tx_id

    async def pending_transaction_info(self, tx_id: str) -> dict[str, Any] | None:
        """Get pending transaction info, or None if the node does not know it yet"""
        client = await self._get_client()
        path = f"/v2/transactions/pending/{tx_id}"
        try:
            response = await client.get(path)
            if response.status_code == 404:
                return None
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise NodeError(
                f"algod request {path} failed: {e.response.status_code} "
                f"{_error_message(e.response)}"
            ) from e
        except httpx.HTTPError as e:
            raise NodeError(f"algod request {path} failed: {e}") from e
        return response.json()

    async def wait_for_confirmation(
        self, tx_id: str, max_rounds: int = CONFIRMATION_ROUNDS
    ) -> dict[str, Any]:
        """
        Poll once per new round until the transaction is confirmed.

        Args:
            tx_id: Transaction id
            max_rounds: Rounds to wait before giving up

        Returns:
            Pending transaction info with a non-zero "confirmed-round"

        Raises:
            SubmissionError: The transaction was evicted from the pool
            ConfirmationTimeout: Not confirmed within max_rounds, or the node
                stopped answering while polling; the transaction may still confirm
        """
        if max_rounds < 1:
            raise ValueError("max_rounds must be at least 1")

        rounds_waited = 0
        try:
            status = await self.status()
            start_round = status["last-round"] + 1
            current_round = start_round

            while current_round < start_round + max_rounds:
                info = await self.pending_transaction_info(tx_id)
                if info is not None:
                    confirmed_round = info.get("confirmed-round") or 0
                    if confirmed_round > 0:
                        logger.info("Transaction %s confirmed in round %s", tx_id, confirmed_round)
                        return info
                    pool_error = info.get("pool-error")
                    if pool_error:
                        raise SubmissionError(
                            f"Transaction {tx_id} rejected from pool: {pool_error}",
                            detail=pool_error,
                        )
                logger.debug("Transaction %s not confirmed, waiting for round %s", tx_id, current_round)
                await self.status_after_block(current_round)
                current_round += 1
                rounds_waited += 1
        except NodeError as e:
            # Already submitted: the outcome is unknown, not failed
            logger.warning(
                "Lost track of transaction %s after %s rounds: %s", tx_id, rounds_waited, e
            )
            raise ConfirmationTimeout(tx_id, rounds_waited, reason=str(e)) from e

        logger.warning("Transaction %s not confirmed after %s rounds", tx_id, max_rounds)
        raise ConfirmationTimeout(tx_id, max_rounds)


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text
    if isinstance(body, dict) and "message" in body:
        return str(body["message"])
    return response.text
