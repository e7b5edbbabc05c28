"""
Provider: resolve a service name into a client bound to one healthy endpoint.

Each call queries the registry, picks an endpoint and builds a fresh client.
Nothing is cached between calls; the provider only holds its immutable config.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Sequence

from discovery_client.adapters import promisify_client
from discovery_client.errors import InvalidArgument
from discovery_client.http_client import create_json_client
from discovery_client.options import (
    ClientSettings,
    build_client_options,
    build_query_params,
)
from discovery_client.registry import ConsulHealthClient, Endpoint, HealthRegistry, lookup_endpoints
from discovery_client.selection import select_one
from discovery_client.settings import Settings

logger = logging.getLogger(__name__)

CallOptions = ClientSettings | Mapping[str, Any] | None


@dataclass(frozen=True, slots=True)
class ProviderConfig:
    """Process-wide provider configuration, fixed at build time."""

    registry: HealthRegistry
    default_tag: str | None = None
    default_dc: str | None = None
    client_defaults: ClientSettings = field(default_factory=ClientSettings)
    promisify_results: bool = False
    extras: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))


def _require_service(value: Any, field_name: str = "service") -> str:
    if not isinstance(value, str):
        raise InvalidArgument(f"{field_name} must be a string, got {type(value).__name__}.")
    cleaned = value.strip()
    if not cleaned:
        raise InvalidArgument(f"{field_name} must be a non-empty string.")
    return cleaned


def _coerce_options(options: CallOptions) -> ClientSettings | None:
    if options is None or isinstance(options, ClientSettings):
        return options
    if isinstance(options, Mapping):
        return ClientSettings.from_mapping(options)
    raise InvalidArgument(
        f"options must be ClientSettings or a mapping, got {type(options).__name__}."
    )


def build_client(endpoint: Endpoint, options: ClientSettings | None, config: ProviderConfig) -> Any:
    """
    Build a client for ``endpoint`` with the first factory found in
    per-call options, provider client defaults, then ``create_json_client``.

    Factory exceptions propagate unchanged.
    """
    factory = create_json_client
    if config.client_defaults.factory is not None:
        factory = config.client_defaults.factory
    if options is not None and options.factory is not None:
        factory = options.factory

    client_options = build_client_options(endpoint, config.client_defaults, options)
    client = factory(client_options)
    if config.promisify_results:
        return promisify_client(client)
    return client


class Provider:
    """Resolves service names into clients using a fixed ``ProviderConfig``."""

    def __init__(self, config: ProviderConfig) -> None:
        self._config = config

    @classmethod
    def from_settings(cls, settings: Settings, **overrides: Any) -> "Provider":
        """Build a provider backed by a Consul registry client from Settings."""
        overrides.setdefault("default_tag", settings.default_tag)
        overrides.setdefault("default_dc", settings.default_dc)
        return build_provider(ConsulHealthClient.from_settings(settings), **overrides)

    @property
    def config(self) -> ProviderConfig:
        return self._config

    def __getattr__(self, name: str) -> Any:
        if name == "_config":
            raise AttributeError(name)
        try:
            return self._config.extras[name]
        except KeyError:
            raise AttributeError(f"{type(self).__name__!r} object has no attribute {name!r}") from None

    async def aclose(self) -> None:
        """Close the registry client when it owns network resources."""
        aclose = getattr(self._config.registry, "aclose", None)
        if aclose is not None:
            await aclose()

    async def __aenter__(self) -> "Provider":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def endpoints_for_service(self, service: str, options: CallOptions = None) -> list[Endpoint]:
        """All distinct healthy endpoints for ``service``."""
        service_name = _require_service(service)
        call_options = _coerce_options(options)
        return await self._endpoints(service_name, call_options)

    async def endpoint_for_service(self, service: str, options: CallOptions = None) -> Endpoint:
        """One randomly selected healthy endpoint for ``service``."""
        return select_one(await self.endpoints_for_service(service, options))

    async def resolve_client(self, service: str, options: CallOptions = None) -> Any:
        """Resolve ``service`` and return a client bound to one of its endpoints."""
        service_name = _require_service(service)
        call_options = _coerce_options(options)

        endpoint = select_one(await self._endpoints(service_name, call_options))
        logger.debug(
            "Selected endpoint",
            extra={"service": service_name, "endpoint": endpoint.full_address, "instance_id": endpoint.id},
        )
        return build_client(endpoint, call_options, self._config)

    async def resolve_clients(self, services: Sequence[str], options: CallOptions = None) -> list[Any]:
        """
        Resolve every service concurrently, returning clients in input order.

        The first failure cancels the remaining resolutions and is re-raised.
        """
        if not isinstance(services, (list, tuple)):
            raise InvalidArgument(f"services must be a list of strings, got {type(services).__name__}.")
        names = [_require_service(name, f"services[{index}]") for index, name in enumerate(services)]
        call_options = _coerce_options(options)

        tasks = [asyncio.create_task(self.resolve_client(name, call_options)) for name in names]
        try:
            clients = await asyncio.gather(*tasks)
        except Exception:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        return list(clients)

    async def _endpoints(self, service: str, options: ClientSettings | None) -> list[Endpoint]:
        params = build_query_params(
            service,
            options,
            client_defaults=self._config.client_defaults,
            default_tag=self._config.default_tag,
            default_dc=self._config.default_dc,
        )
        return await lookup_endpoints(self._config.registry, params)


def build_provider(
    registry: HealthRegistry,
    *,
    default_tag: str | None = None,
    default_dc: str | None = None,
    client_defaults: ClientSettings | Mapping[str, Any] | None = None,
    promisify_results: bool = False,
    **extras: Any,
) -> Provider:
    """
    Build a provider once per process.

    ``client_defaults`` may be given as a mapping; unknown keys are dropped.
    Any other keyword argument is exposed unvalidated as an attribute of the
    returned provider.
    """
    if client_defaults is None:
        client_defaults = ClientSettings()
    elif not isinstance(client_defaults, ClientSettings):
        client_defaults = ClientSettings.from_mapping(client_defaults)

    config = ProviderConfig(
        registry=registry,
        default_tag=default_tag,
        default_dc=default_dc,
        client_defaults=client_defaults,
        promisify_results=promisify_results,
        extras=MappingProxyType(dict(extras)),
    )
    logger.debug(
        "Provider built",
        extra={
            "default_tag": default_tag,
            "default_dc": default_dc,
            "promisify_results": promisify_results,
        },
    )
    return Provider(config)
