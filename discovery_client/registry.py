"""
Registry lookup against a Consul-compatible health-check API.

The provider only depends on the ``HealthRegistry`` protocol; ``ConsulHealthClient``
is the stock implementation built on ``httpx.AsyncClient``. Transport failures are
normalized into ``RegistryTransportError`` the same way for every request.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from discovery_client.errors import RegistryTransportError, ServiceNotFound
from discovery_client.settings import Settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class QueryParams:
    """Parameters of one health-check query. Only passing instances are requested."""

    service: str
    tag: str | None = None
    dc: str | None = None
    passing: bool = True

    def as_query(self) -> dict[str, str]:
        query = {"passing": "true" if self.passing else "false"}
        if self.tag:
            query["tag"] = self.tag
        if self.dc:
            query["dc"] = self.dc
        return query


@dataclass(frozen=True, slots=True)
class Endpoint:
    """A single healthy address/port pair for a service instance."""

    address: str
    port: int
    id: str
    tags: frozenset[str] = field(default_factory=frozenset)

    @property
    def full_address(self) -> str:
        return f"{self.address}:{self.port}"


class ServiceInstance(BaseModel):
    """The ``Service`` block of one Consul health-check entry."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    address: str = Field(alias="Address")
    port: int = Field(alias="Port")
    id: str = Field(alias="ID")
    tags: list[str] | None = Field(default=None, alias="Tags")

    def to_endpoint(self) -> Endpoint:
        return Endpoint(
            address=self.address,
            port=self.port,
            id=self.id,
            tags=frozenset(self.tags or ()),
        )


class _Node(BaseModel):
    model_config = ConfigDict(extra="ignore")

    address: str = Field(default="", alias="Address")


class _HealthEntry(BaseModel):
    model_config = ConfigDict(extra="ignore")

    service: ServiceInstance = Field(alias="Service")
    node: _Node | None = Field(default=None, alias="Node")

    def instance(self) -> ServiceInstance:
        # Consul leaves Service.Address empty when the instance listens on the node address.
        if not self.service.address and self.node is not None and self.node.address:
            return self.service.model_copy(update={"address": self.node.address})
        return self.service


class HealthRegistry(Protocol):
    """Capability: return the instances matching a health-check query."""

    async def health_service(self, params: QueryParams) -> list[ServiceInstance]:
        """Raise on transport failure; an empty list means nothing matched."""
        ...


@dataclass(slots=True)
class ConsulHealthClient:
    """Thin wrapper over the Consul ``/v1/health/service`` endpoint."""

    _client: httpx.AsyncClient

    @classmethod
    def from_settings(cls, settings: Settings) -> "ConsulHealthClient":
        """Build the registry client from Settings."""
        headers = {"Accept": "application/json"}
        if settings.consul_token:
            headers["X-Consul-Token"] = settings.consul_token
        return cls(
            httpx.AsyncClient(
                base_url=settings.consul_http_addr,
                timeout=settings.registry_timeout,
                headers=headers,
            )
        )

    async def aclose(self) -> None:
        """Close the underlying HTTP resources."""
        await self._client.aclose()

    async def health_service(self, params: QueryParams) -> list[ServiceInstance]:
        path = f"/v1/health/service/{params.service}"
        logger.debug(
            "Querying registry health",
            extra={"service": params.service, "tag": params.tag, "dc": params.dc},
        )
        payload = await self._get_json(path, params.as_query())
        if not isinstance(payload, list):
            raise RegistryTransportError(
                f"Registry returned an unexpected payload for {path}: expected a list."
            )
        try:
            return [_HealthEntry.model_validate(entry).instance() for entry in payload]
        except ValidationError as exc:
            logger.error("Registry returned malformed health entries", extra={"path": path})
            raise RegistryTransportError(
                f"Registry returned malformed health entries for {path}: {exc.error_count()} error(s)."
            ) from exc

    async def _get_json(self, path: str, params: dict[str, str]) -> Any:
        """GET a registry path and decode the body, normalizing every failure."""
        try:
            response = await self._client.get(path, params=params)
        except httpx.TimeoutException as exc:
            logger.error("Registry request timed out", extra={"path": path}, exc_info=exc)
            raise RegistryTransportError(f"Registry request timed out (GET {path}).") from exc
        except httpx.RequestError as exc:
            logger.error("Registry request failed", extra={"path": path}, exc_info=exc)
            raise RegistryTransportError(f"Registry request failed (GET {path}): {exc!s}") from exc

        if response.is_error:
            # Consul reports errors as a short plain-text body, e.g. "No cluster leader".
            reason = response.text.strip() or response.reason_phrase
            logger.warning(
                "Registry responded with error",
                extra={"path": path, "status_code": response.status_code, "reason": reason},
            )
            raise RegistryTransportError(
                f"Registry error ({response.status_code}) during GET {path}: {reason}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except json.JSONDecodeError as exc:
            logger.error("Registry returned invalid JSON", extra={"path": path})
            raise RegistryTransportError(
                f"Registry returned invalid JSON during GET {path}.",
                status_code=response.status_code,
            ) from exc


async def lookup_endpoints(registry: HealthRegistry, params: QueryParams) -> list[Endpoint]:
    """
    Query the registry and collapse instances sharing an address.

    First-seen order is kept. Registry errors propagate untouched; an empty
    result raises ``ServiceNotFound`` so callers can tell "nothing healthy"
    apart from "registry unreachable".
    """
    instances = await registry.health_service(params)

    endpoints: list[Endpoint] = []
    seen: set[str] = set()
    for instance in instances:
        endpoint = instance.to_endpoint()
        if endpoint.full_address in seen:
            continue
        seen.add(endpoint.full_address)
        endpoints.append(endpoint)

    if not endpoints:
        raise ServiceNotFound(params.service, tag=params.tag, dc=params.dc)

    logger.debug(
        "Resolved endpoints",
        extra={"service": params.service, "count": len(endpoints), "raw_count": len(instances)},
    )
    return endpoints
