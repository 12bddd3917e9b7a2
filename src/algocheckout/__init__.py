"""
algocheckout - Algorand checkout payments for Python

Builds, signs, submits and confirms checkout payment groups, and tracks
each checkout from creation to settlement notification.
"""

__version__ = "0.1.0"

from algocheckout.clients import ApiEndpointSelector, CheckoutApiClient, PaymentClient
from algocheckout.config import ApiEndpointConfig, ApiEndpoints, NetworkConfig, NetworkRegistry
from algocheckout.exceptions import (
    AlreadyInProgress,
    BuildError,
    CheckoutApiError,
    CheckoutError,
    CheckoutNotFoundError,
    ConfigurationError,
    ConfirmationTimeout,
    ConnectionCancelled,
    EncodingError,
    NodeError,
    NotConnected,
    SigningRejected,
    SubmissionError,
    UnsupportedEndpointError,
    UnsupportedNetworkError,
    WalletConnectionError,
    WalletError,
)
from algocheckout.lifecycle import CheckoutLifecycle, LocalPaymentState, is_valid_transition
from algocheckout.node import AlgodClient
from algocheckout.transactions import TransactionGroup, build_payment_group
from algocheckout.types import (
    Checkout,
    CheckoutStatus,
    CreateCheckoutRequest,
    CreateCheckoutResponse,
    PaymentResult,
)
from algocheckout.wallet import LocalWallet, WalletConnector, WalletSession
from algocheckout.watcher import CheckoutWatcher

__all__ = [
    "__version__",
    # Types
    "Checkout",
    "CheckoutStatus",
    "CreateCheckoutRequest",
    "CreateCheckoutResponse",
    "PaymentResult",
    "TransactionGroup",
    # Clients
    "AlgodClient",
    "ApiEndpointSelector",
    "CheckoutApiClient",
    "PaymentClient",
    "CheckoutWatcher",
    # Lifecycle
    "CheckoutLifecycle",
    "LocalPaymentState",
    "is_valid_transition",
    # Builder
    "build_payment_group",
    # Wallet
    "LocalWallet",
    "WalletConnector",
    "WalletSession",
    # Configuration
    "ApiEndpointConfig",
    "ApiEndpoints",
    "NetworkConfig",
    "NetworkRegistry",
    # Exceptions
    "CheckoutError",
    "EncodingError",
    "BuildError",
    "WalletError",
    "ConnectionCancelled",
    "WalletConnectionError",
    "NotConnected",
    "SigningRejected",
    "SubmissionError",
    "ConfirmationTimeout",
    "AlreadyInProgress",
    "NodeError",
    "CheckoutApiError",
    "CheckoutNotFoundError",
    "ConfigurationError",
    "UnsupportedNetworkError",
    "UnsupportedEndpointError",
]
