"""
Option resolution for registry queries and HTTP client construction.

``ClientSettings`` is used both for provider-wide client defaults and for
per-call overrides. Only the fields listed in ``TRANSPORT_OPTIONS`` are copied
into the client options; ``tag`` and ``dc`` qualify the registry query and are
never forwarded to the client.
"""

import logging
from dataclasses import dataclass, field, fields
from typing import Any, Awaitable, Callable, Mapping

import httpx

from discovery_client.registry import Endpoint, QueryParams

logger = logging.getLogger(__name__)

DEFAULT_SCHEME = "http"

TRANSPORT_OPTIONS = (
    "accept",
    "connect_timeout",
    "request_timeout",
    "retries",
    "gzip",
    "log",
    "user_agent",
    "http2",
    "sign_request",
)

# camelCase spellings accepted by ClientSettings.from_mapping.
# The camelCase timeouts are in milliseconds; the snake_case fields are in seconds.
_OPTION_ALIASES = {
    "connectTimeout": "connect_timeout",
    "requestTimeout": "request_timeout",
    "userAgent": "user_agent",
    "signRequest": "sign_request",
}
_MILLISECOND_ALIASES = frozenset({"connectTimeout", "requestTimeout"})

RequestSigner = Callable[[httpx.Request], Awaitable[None] | None]


@dataclass(frozen=True, slots=True)
class ClientOptions:
    """Resolved options handed to a client factory."""

    url: str
    headers: dict[str, str] = field(default_factory=dict)
    accept: str | None = None
    connect_timeout: float | None = None
    request_timeout: float | None = None
    retries: int | None = None
    gzip: bool | None = None
    log: logging.Logger | None = None
    user_agent: str | None = None
    http2: bool | None = None
    sign_request: RequestSigner | None = None


ClientFactory = Callable[[ClientOptions], Any]


@dataclass(frozen=True, slots=True)
class ClientSettings:
    """Client defaults or per-call overrides. ``None`` means "not set"."""

    tag: str | None = None
    dc: str | None = None
    factory: ClientFactory | None = None
    scheme: str | None = None
    path: str | None = None
    headers: Mapping[str, str] | None = None
    accept: str | None = None
    connect_timeout: float | None = None
    request_timeout: float | None = None
    retries: int | None = None
    gzip: bool | None = None
    log: logging.Logger | None = None
    user_agent: str | None = None
    http2: bool | None = None
    sign_request: RequestSigner | None = None

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "ClientSettings":
        """Build settings from a loose option bag, dropping unknown keys."""
        known: dict[str, Any] = {}
        ignored: list[str] = []
        for key, value in values.items():
            name = _OPTION_ALIASES.get(key, key)
            if name not in _SETTING_NAMES:
                ignored.append(key)
            elif key in _MILLISECOND_ALIASES and value is not None:
                known[name] = value / 1000
            else:
                known[name] = value
        if ignored:
            logger.debug("Ignoring unrecognized client options", extra={"ignored": sorted(ignored)})
        return cls(**known)


_SETTING_NAMES = frozenset(f.name for f in fields(ClientSettings))


def build_query_params(
    service: str,
    options: ClientSettings | None = None,
    *,
    client_defaults: ClientSettings | None = None,
    default_tag: str | None = None,
    default_dc: str | None = None,
) -> QueryParams:
    """
    Per-call tag/dc win over client defaults.

    ``default_tag``/``default_dc`` only enable the client-default tag/dc; their
    own values never reach the query.
    """
    tag = None
    dc = None
    if client_defaults is not None:
        if default_tag:
            tag = client_defaults.tag
        if default_dc:
            dc = client_defaults.dc
    if options is not None:
        if options.tag:
            tag = options.tag
        if options.dc:
            dc = options.dc
    return QueryParams(service=service, tag=tag, dc=dc)


def build_client_options(endpoint: Endpoint, *option_sets: ClientSettings | None) -> ClientOptions:
    """
    Merge option sets in order into the options for one client.

    Later sets win for scalar values; headers are merged key by key. The URL is
    built from the endpoint address and the resolved scheme and path.
    """
    scheme = DEFAULT_SCHEME
    path = ""
    headers: dict[str, str] = {}
    transport: dict[str, Any] = {}

    for option_set in option_sets:
        if option_set is None:
            continue
        if option_set.scheme is not None:
            scheme = option_set.scheme
        if option_set.path is not None:
            path = option_set.path
        if option_set.headers:
            headers.update(option_set.headers)
        for name in TRANSPORT_OPTIONS:
            value = getattr(option_set, name)
            if value is not None:
                transport[name] = value

    return ClientOptions(
        url=f"{scheme}://{endpoint.full_address}{path}",
        headers=headers,
        **transport,
    )
