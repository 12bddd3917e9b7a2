"""
Clients for checkout payments
"""

from algocheckout.clients.checkout_api import ApiEndpointSelector, CheckoutApiClient
from algocheckout.clients.payment_client import PaymentClient

__all__ = ["ApiEndpointSelector", "CheckoutApiClient", "PaymentClient"]
