"""
algocheckout custom exception hierarchy
"""


class CheckoutError(Exception):
    """algocheckout base exception"""

    pass


class EncodingError(CheckoutError):
    """A value could not be encoded into its binary argument layout"""

    pass


class BuildError(CheckoutError):
    """The payment transaction group could not be assembled"""

    pass


class WalletError(CheckoutError):
    """Wallet-related error"""

    pass


class ConnectionCancelled(WalletError):
    """The user aborted the interactive wallet connect flow"""

    pass


class WalletConnectionError(WalletError):
    """Wallet session could not be established"""

    pass


class NotConnected(WalletError):
    """An operation requires an active wallet session"""

    def __init__(self, message: str = "Wallet not connected"):
        super().__init__(message)


class SigningRejected(WalletError):
    """The signer declined to sign the transaction group"""

    pass


class TransactionError(CheckoutError):
    """Transaction-related error"""

    pass


class SubmissionError(TransactionError):
    """The node rejected the signed transaction group"""

    def __init__(self, message: str, detail: str | None = None):
        self.detail = detail
        super().__init__(message)


class ConfirmationTimeout(TransactionError):
    """Inclusion was not observed within the round bound.

    The transaction may still confirm later.
    """

    def __init__(self, tx_id: str, rounds: int, reason: str | None = None):
        self.tx_id = tx_id
        self.rounds = rounds
        self.reason = reason
        message = f"Transaction {tx_id} not confirmed after {rounds} rounds"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class AlreadyInProgress(TransactionError):
    """A payment for this checkout is already in flight"""

    def __init__(self, checkout_id: str):
        self.checkout_id = checkout_id
        super().__init__(f"Payment already in progress for checkout {checkout_id}")


class NodeError(CheckoutError):
    """Node request failed"""

    pass


class CheckoutApiError(CheckoutError):
    """Checkout API request failed"""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class CheckoutNotFoundError(CheckoutApiError):
    """Checkout record does not exist"""

    def __init__(self, checkout_id: str):
        self.checkout_id = checkout_id
        super().__init__(f"Checkout not found: {checkout_id}", status_code=404)


class ConfigurationError(CheckoutError):
    """Configuration-related error"""

    pass


class UnsupportedNetworkError(ConfigurationError):
    """Unsupported network"""

    pass


class UnsupportedEndpointError(ConfigurationError):
    """Unknown checkout API endpoint"""

    pass
