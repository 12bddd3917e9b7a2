"""
Wallet connectors
"""

from algocheckout.wallet.base import DisconnectHandler, WalletConnector
from algocheckout.wallet.local import LocalWallet
from algocheckout.wallet.session import WalletSession

__all__ = ["DisconnectHandler", "WalletConnector", "LocalWallet", "WalletSession"]
