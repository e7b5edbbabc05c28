"""
Service-discovery backed HTTP client provider.

A provider turns a logical service name into a ready-to-use client by querying
a Consul-compatible health-check API and binding the client to one healthy
endpoint.
"""

from discovery_client.adapters import AwaitableClient, promisify_client
from discovery_client.errors import (
    ClientFactoryError,
    DiscoveryClientError,
    InvalidArgument,
    RegistryTransportError,
    ServiceNotFound,
)
from discovery_client.http_client import create_json_client
from discovery_client.options import ClientOptions, ClientSettings
from discovery_client.provider import Provider, ProviderConfig, build_client, build_provider
from discovery_client.registry import (
    ConsulHealthClient,
    Endpoint,
    HealthRegistry,
    QueryParams,
    ServiceInstance,
    lookup_endpoints,
)
from discovery_client.settings import Settings

__all__ = [
    "AwaitableClient",
    "ClientFactoryError",
    "ClientOptions",
    "ClientSettings",
    "ConsulHealthClient",
    "DiscoveryClientError",
    "Endpoint",
    "HealthRegistry",
    "InvalidArgument",
    "Provider",
    "ProviderConfig",
    "QueryParams",
    "RegistryTransportError",
    "ServiceInstance",
    "ServiceNotFound",
    "Settings",
    "build_client",
    "build_provider",
    "create_json_client",
    "lookup_endpoints",
    "promisify_client",
]
