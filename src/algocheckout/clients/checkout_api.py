"""
CheckoutApiClient - Client for the checkout record service
"""

import logging
from typing import Callable

import httpx
from pydantic import ValidationError

from algocheckout.config import DEFAULT_ENDPOINT, ApiEndpointConfig, ApiEndpoints
from algocheckout.exceptions import CheckoutApiError, CheckoutNotFoundError, ConfigurationError
from algocheckout.preferences import API_ENDPOINT_KEY, Preferences
from algocheckout.types import Checkout, CreateCheckoutRequest, CreateCheckoutResponse

logger = logging.getLogger(__name__)

CHECKOUTS_PATH = "/api/checkouts"


class CheckoutApiClient:
    """
    Client for the checkout record service.

    Handles checkout lookup and creation.
    """

    def __init__(
        self,
        base_url: str,
        headers: dict[str, str] | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize checkout API client.

        Args:
            base_url: Service base URL
            headers: Custom HTTP headers (e.g., Authorization)
            http_client: Pre-built client (mostly for tests); created lazily otherwise
        """
        if not base_url:
            raise ConfigurationError("Checkout API base URL is empty")
        self._base_url = base_url.rstrip("/")
        self._headers = headers or {}
        self._http_client = http_client

    @classmethod
    def for_endpoint(cls, endpoint_id: str, headers: dict[str, str] | None = None) -> "CheckoutApiClient":
        """Create a client for a registered endpoint (local, test, production)"""
        return cls(ApiEndpoints.get(endpoint_id).url, headers=headers)

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client"""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                base_url=self._base_url,
                headers=self._headers,
                timeout=30.0,
            )
        return self._http_client

    async def close(self) -> None:
        """Close HTTP client"""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    async def get_checkout(self, checkout_id: str) -> Checkout:
        """
        Fetch a checkout record.

        Raises:
            CheckoutNotFoundError: No checkout with this id
            CheckoutApiError: Any other failure
        """
        client = await self._get_client()
        try:
            response = await client.get(f"{CHECKOUTS_PATH}/{checkout_id}")
        except httpx.HTTPError as e:
            raise CheckoutApiError(f"Failed to fetch checkout {checkout_id}: {e}") from e

        if response.status_code == 404:
            raise CheckoutNotFoundError(checkout_id)
        if response.is_error:
            raise CheckoutApiError(
                f"Failed to fetch checkout {checkout_id}: HTTP {response.status_code}",
                status_code=response.status_code,
            )

        try:
            checkout = Checkout(**response.json())
        except (ValueError, ValidationError) as e:
            raise CheckoutApiError(f"Malformed checkout record {checkout_id}: {e}") from e
        logger.debug("Fetched checkout %s status=%s", checkout.id, checkout.status.value)
        return checkout

    async def create_checkout(self, request: CreateCheckoutRequest) -> CreateCheckoutResponse:
        """
        Create a checkout.

        Returns:
            CreateCheckoutResponse with id, program address, status and expiry
        """
        client = await self._get_client()
        try:
            response = await client.post(
                CHECKOUTS_PATH,
                json=request.model_dump(by_alias=True, exclude_none=True),
            )
        except httpx.HTTPError as e:
            raise CheckoutApiError(f"Failed to create checkout: {e}") from e

        if response.is_error:
            raise CheckoutApiError(
                f"Failed to create checkout: HTTP {response.status_code}",
                status_code=response.status_code,
            )

        try:
            created = CreateCheckoutResponse(**response.json())
        except (ValueError, ValidationError) as e:
            raise CheckoutApiError(f"Malformed checkout creation response: {e}") from e
        logger.info("Created checkout %s expiring at %s", created.id, created.expires_at)
        return created


ClientFactory = Callable[[ApiEndpointConfig], CheckoutApiClient]


class ApiEndpointSelector:
    """
    Active checkout API endpoint, remembered across runs.

    The last chosen endpoint is restored from preferences when it is still a
    registered one; otherwise the default (local) endpoint is used.
    """

    def __init__(
        self,
        endpoint_id: str | None = None,
        preferences: Preferences | None = None,
        headers: dict[str, str] | None = None,
        client_factory: ClientFactory | None = None,
    ) -> None:
        """
        Initialize endpoint selector.

        Args:
            endpoint_id: Endpoint to start on; defaults to the saved preference
            preferences: Store for the last chosen endpoint (in-memory if None)
            headers: Custom HTTP headers for the API client
            client_factory: Builds the API client for an endpoint configuration

        Raises:
            UnsupportedEndpointError: Unknown explicit endpoint_id
        """
        self._preferences = preferences or Preferences()
        self._headers = headers
        self._client_factory = client_factory or self._default_client

        if endpoint_id is None:
            stored = self._preferences.get(API_ENDPOINT_KEY)
            endpoint_id = stored if stored and ApiEndpoints.is_supported(stored) else DEFAULT_ENDPOINT
        ApiEndpoints.get(endpoint_id)
        self._endpoint_id = endpoint_id
        self._api: CheckoutApiClient | None = None

    def _default_client(self, endpoint: ApiEndpointConfig) -> CheckoutApiClient:
        return CheckoutApiClient(endpoint.url, headers=self._headers)

    @property
    def endpoint_id(self) -> str:
        return self._endpoint_id

    @property
    def current_endpoint(self) -> ApiEndpointConfig:
        return ApiEndpoints.get(self._endpoint_id)

    @property
    def endpoints(self) -> dict[str, ApiEndpointConfig]:
        return {endpoint_id: ApiEndpoints.get(endpoint_id) for endpoint_id in ApiEndpoints.ids()}

    @property
    def api(self) -> CheckoutApiClient:
        """API client for the active endpoint, built on first use

        Raises:
            ConfigurationError: The endpoint has no URL (production without CHECKOUT_API_URL)
        """
        if self._api is None:
            self._api = self._client_factory(self.current_endpoint)
        return self._api

    async def switch_endpoint(self, endpoint_id: str) -> CheckoutApiClient:
        """
        Switch the active endpoint and persist the choice.

        Returns:
            API client for the new endpoint

        Raises:
            UnsupportedEndpointError: Unknown endpoint
        """
        endpoint = ApiEndpoints.get(endpoint_id)
        if endpoint_id != self._endpoint_id:
            old_api = self._api
            self._endpoint_id = endpoint_id
            self._api = None
            if old_api is not None:
                await old_api.close()
            logger.info("[Endpoint] Switched to %s (%s)", endpoint.name, endpoint.url or "unset")
        self._preferences.set(API_ENDPOINT_KEY, endpoint_id)
        return self.api

    async def close(self) -> None:
        """Close the active API client"""
        if self._api is not None:
            await self._api.close()
            self._api = None
