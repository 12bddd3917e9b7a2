"""
Wallet connector base interface
"""

from abc import ABC, abstractmethod
from typing import Callable

from algosdk import transaction

DisconnectHandler = Callable[[], None]


class WalletConnector(ABC):
    """
    Abstract base class for wallet connectors.

    A connector wraps an external signer (mobile wallet bridge, hardware
    wallet, local key). It establishes sessions and signs transaction groups;
    it never submits anything itself.
    """

    @abstractmethod
    async def reconnect_session(self) -> list[str]:
        """
        Silently restore a previous session.

        Returns:
            Connected account addresses, empty if there is nothing to restore
        """
        pass

    @abstractmethod
    async def connect(self) -> list[str]:
        """
        Run the interactive connect flow.

        Returns:
            Connected account addresses

        Raises:
            ConnectionCancelled: The user aborted the flow
        """
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        """Tear down the session on the wallet side"""
        pass

    @abstractmethod
    async def sign_transactions(self, txns: list[transaction.Transaction]) -> list[bytes]:
        """
        Sign an ordered list of transactions.

        Args:
            txns: Unsigned transactions, in group order

        Returns:
            msgpack-encoded signed transactions, same order

        Raises:
            SigningRejected: The signer declined
        """
        pass

    @abstractmethod
    def on_disconnect(self, handler: DisconnectHandler) -> None:
        """Register a handler for wallet-initiated disconnects"""
        pass
