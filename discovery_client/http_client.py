"""Default client factory: a JSON-oriented ``httpx.AsyncClient`` bound to one endpoint."""

import inspect
import logging
from typing import Any, Callable

import httpx

from discovery_client.errors import ClientFactoryError
from discovery_client.options import ClientOptions, RequestSigner

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 5.0
JSON_CONTENT_TYPE = "application/json"


def _signing_hook(sign_request: RequestSigner) -> Callable[[httpx.Request], Any]:
    async def _sign(request: httpx.Request) -> None:
        result = sign_request(request)
        if inspect.isawaitable(result):
            await result

    return _sign


def _logging_hooks(log: logging.Logger) -> tuple[Callable[..., Any], Callable[..., Any]]:
    async def _log_request(request: httpx.Request) -> None:
        log.debug("HTTP request %s %s", request.method, request.url)

    async def _log_response(response: httpx.Response) -> None:
        log.debug(
            "HTTP response %s %s -> %s",
            response.request.method,
            response.request.url,
            response.status_code,
        )

    return _log_request, _log_response


def _build_headers(options: ClientOptions) -> dict[str, str]:
    headers = {"Accept": options.accept or JSON_CONTENT_TYPE}
    if options.user_agent:
        headers["User-Agent"] = options.user_agent
    if options.gzip is not None:
        headers["Accept-Encoding"] = "gzip" if options.gzip else "identity"
    # Explicit headers override the ones derived from transport options.
    headers.update(options.headers)
    return headers


def _build_timeout(options: ClientOptions) -> httpx.Timeout:
    request_timeout = DEFAULT_TIMEOUT if options.request_timeout is None else options.request_timeout
    connect_timeout = request_timeout if options.connect_timeout is None else options.connect_timeout
    return httpx.Timeout(request_timeout, connect=connect_timeout)


def create_json_client(options: ClientOptions) -> httpx.AsyncClient:
    """
    Build an AsyncClient whose base URL is the resolved endpoint.

    Retries only cover connection failures, as implemented by the httpx transport.
    """
    try:
        transport = httpx.AsyncHTTPTransport(
            retries=options.retries or 0,
            http2=bool(options.http2),
        )
    except ImportError as exc:
        raise ClientFactoryError(f"Cannot build HTTP transport for {options.url}: {exc}") from exc

    request_hooks: list[Callable[..., Any]] = []
    response_hooks: list[Callable[..., Any]] = []
    if options.sign_request is not None:
        request_hooks.append(_signing_hook(options.sign_request))
    if options.log is not None:
        log_request, log_response = _logging_hooks(options.log)
        request_hooks.append(log_request)
        response_hooks.append(log_response)

    logger.debug("Creating JSON client", extra={"url": options.url})
    return httpx.AsyncClient(
        base_url=options.url,
        headers=_build_headers(options),
        timeout=_build_timeout(options),
        transport=transport,
        event_hooks={"request": request_hooks, "response": response_hooks},
    )
