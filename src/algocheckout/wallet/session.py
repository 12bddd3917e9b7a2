"""
Wallet session state
"""

from dataclasses import dataclass


@dataclass
class WalletSession:
    """An established connection to an external signer"""

    account: str
    active: bool = True

    def close(self) -> None:
        self.active = False
