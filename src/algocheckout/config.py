"""
algocheckout Network Configuration
Centralized configuration for algod nodes and checkout API endpoints
"""

import os
from dataclasses import dataclass, replace
from typing import Dict, Literal

from algocheckout.exceptions import UnsupportedEndpointError, UnsupportedNetworkError

NetworkId = Literal["testnet", "mainnet"]
EndpointId = Literal["local", "test", "production"]

DEFAULT_NETWORK: NetworkId = "testnet"
DEFAULT_ENDPOINT: EndpointId = "local"

# Rounds to wait for inclusion before giving up on a submitted group
CONFIRMATION_ROUNDS = 4

# Seconds between countdown ticks
COUNTDOWN_INTERVAL = 1.0

# Seconds after the countdown reaches zero before re-fetching the checkout
EXPIRY_REFETCH_DELAY = 1.5


@dataclass(frozen=True)
class NetworkConfig:
    """Node connection parameters for one network"""

    name: str
    algod_server: str
    algod_port: str
    algod_token: str = ""

    @property
    def algod_url(self) -> str:
        """Base URL of the algod REST API"""
        server = self.algod_server.rstrip("/")
        if not self.algod_port:
            return server
        default_port = "443" if server.startswith("https://") else "80"
        if self.algod_port == default_port:
            return server
        return f"{server}:{self.algod_port}"


@dataclass(frozen=True)
class ApiEndpointConfig:
    """Checkout API endpoint"""

    name: str
    url: str


class NetworkRegistry:
    """Network registry keyed by network identifier"""

    TESTNET = "testnet"
    MAINNET = "mainnet"

    _networks: Dict[str, NetworkConfig] = {
        "testnet": NetworkConfig(
            name="TestNet",
            algod_server="https://testnet-api.algonode.cloud",
            algod_port="443",
        ),
        "mainnet": NetworkConfig(
            name="MainNet",
            algod_server="https://mainnet-api.algonode.cloud",
            algod_port="443",
        ),
    }

    @classmethod
    def ids(cls) -> list[str]:
        """Get all registered network identifiers"""
        return list(cls._networks)

    @classmethod
    def is_supported(cls, network_id: str) -> bool:
        return network_id in cls._networks

    @classmethod
    def get(cls, network_id: str) -> NetworkConfig:
        """Get node configuration for network

        Environment variables ``ALGOD_<NETWORK>_SERVER``, ``ALGOD_<NETWORK>_PORT``
        and ``ALGOD_<NETWORK>_TOKEN`` (e.g. ``ALGOD_TESTNET_TOKEN``) override the
        built-in values, so a private node can be used without code changes.

        Args:
            network_id: Network identifier ("testnet" or "mainnet")

        Returns:
            NetworkConfig

        Raises:
            UnsupportedNetworkError: If network is not supported
        """
        config = cls._networks.get(network_id)
        if config is None:
            raise UnsupportedNetworkError(f"Unsupported network: {network_id}")

        prefix = f"ALGOD_{network_id.upper()}_"
        overrides = {}
        for field_name, env_suffix in (
            ("algod_server", "SERVER"),
            ("algod_port", "PORT"),
            ("algod_token", "TOKEN"),
        ):
            value = os.getenv(prefix + env_suffix)
            if value is not None:
                overrides[field_name] = value
        return replace(config, **overrides) if overrides else config

    @classmethod
    def all(cls) -> dict[str, NetworkConfig]:
        return {network_id: cls.get(network_id) for network_id in cls._networks}


class ApiEndpoints:
    """Checkout API endpoint registry"""

    _endpoints: Dict[str, ApiEndpointConfig] = {
        "local": ApiEndpointConfig(name="Local", url="http://localhost:3001"),
        "test": ApiEndpointConfig(
            name="Test", url="https://cloudoverturecheckout-production.up.railway.app"
        ),
        # Production is served from the same origin as the front-end; set
        # CHECKOUT_API_URL to reach it from a standalone process.
        "production": ApiEndpointConfig(name="Production", url=""),
    }

    @classmethod
    def ids(cls) -> list[str]:
        return list(cls._endpoints)

    @classmethod
    def is_supported(cls, endpoint_id: str) -> bool:
        return endpoint_id in cls._endpoints

    @classmethod
    def get(cls, endpoint_id: str) -> ApiEndpointConfig:
        """Get endpoint configuration

        Raises:
            UnsupportedEndpointError: If endpoint is unknown
        """
        endpoint = cls._endpoints.get(endpoint_id)
        if endpoint is None:
            raise UnsupportedEndpointError(f"Unknown API endpoint: {endpoint_id}")
        if endpoint_id == "production" and not endpoint.url:
            env_url = os.getenv("CHECKOUT_API_URL", "")
            if env_url:
                return replace(endpoint, url=env_url)
        return endpoint

    @classmethod
    def api_url(cls, endpoint_id: str, path: str) -> str:
        """Build a full API URL. Accepts a path like '/api/checkouts'"""
        return cls.get(endpoint_id).url.rstrip("/") + path
