"""
LocalWallet - wallet connector backed by a locally held private key
"""

import base64
import logging

from algosdk import account, encoding, mnemonic, transaction
from algosdk.atomic_transaction_composer import AccountTransactionSigner

from algocheckout.exceptions import SigningRejected, WalletConnectionError
from algocheckout.wallet.base import DisconnectHandler, WalletConnector

logger = logging.getLogger(__name__)


class LocalWallet(WalletConnector):
    """Wallet connector that signs with a private key held in process.

    Intended for scripts, automation and tests. Sessions restore silently
    once connect() has succeeded, like a paired mobile wallet would.
    """

    def __init__(self, private_key: str, restore_session: bool = False) -> None:
        try:
            self._address = account.address_from_private_key(private_key)
        except Exception as e:
            raise WalletConnectionError(f"Invalid private key: {e}") from e
        self._private_key = private_key
        self._signer = AccountTransactionSigner(private_key)
        self._session_open = restore_session
        self._handlers: list[DisconnectHandler] = []
        logger.info("LocalWallet initialized: address=%s", self._address)

    @classmethod
    def from_private_key(cls, private_key: str, restore_session: bool = False) -> "LocalWallet":
        """Create wallet from a base64 algosdk private key"""
        return cls(private_key, restore_session)

    @classmethod
    def from_mnemonic(cls, words: str, restore_session: bool = False) -> "LocalWallet":
        """Create wallet from a 25-word account mnemonic"""
        try:
            private_key = mnemonic.to_private_key(words)
        except Exception as e:
            raise WalletConnectionError(f"Invalid mnemonic: {e}") from e
        return cls(private_key, restore_session)

    @classmethod
    def generate(cls) -> "LocalWallet":
        """Create wallet with a fresh random account"""
        private_key, _ = account.generate_account()
        return cls(private_key)

    def get_address(self) -> str:
        return self._address

    async def reconnect_session(self) -> list[str]:
        if not self._session_open:
            return []
        return [self._address]

    async def connect(self) -> list[str]:
        self._session_open = True
        return [self._address]

    async def disconnect(self) -> None:
        self._session_open = False

    async def sign_transactions(self, txns: list[transaction.Transaction]) -> list[bytes]:
        for txn in txns:
            if txn.sender != self._address:
                raise SigningRejected(
                    f"Transaction sender {txn.sender} is not the wallet account {self._address}"
                )
        stxns = self._signer.sign_transactions(txns, list(range(len(txns))))
        signed = [base64.b64decode(encoding.msgpack_encode(stxn)) for stxn in stxns]
        logger.debug("Signed %d transactions", len(signed))
        return signed

    def on_disconnect(self, handler: DisconnectHandler) -> None:
        if handler not in self._handlers:
            self._handlers.append(handler)

    def drop_session(self) -> None:
        """Simulate the wallet ending the session from its side"""
        self._session_open = False
        for handler in list(self._handlers):
            handler()
