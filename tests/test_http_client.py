import logging

import httpx
import pytest

from discovery_client.errors import ClientFactoryError
from discovery_client.http_client import DEFAULT_TIMEOUT, create_json_client
from discovery_client.options import ClientOptions


@pytest.mark.anyio
async def test_json_client_is_bound_to_resolved_url() -> None:
    client = create_json_client(
        ClientOptions(url="https://10.0.0.5:8080/v1", headers={"X-Team": "payments"})
    )
    assert client.base_url == httpx.URL("https://10.0.0.5:8080/v1/")
    assert client.headers["Accept"] == "application/json"
    assert client.headers["X-Team"] == "payments"
    assert client.timeout == httpx.Timeout(DEFAULT_TIMEOUT)
    await client.aclose()


@pytest.mark.anyio
async def test_json_client_maps_transport_options() -> None:
    client = create_json_client(
        ClientOptions(
            url="http://10.0.0.5:8080",
            headers={"Accept-Encoding": "br"},
            accept="application/vnd.billing+json",
            connect_timeout=1.0,
            request_timeout=7.5,
            gzip=False,
            user_agent="billing-client/1.0",
        )
    )
    assert client.headers["Accept"] == "application/vnd.billing+json"
    assert client.headers["User-Agent"] == "billing-client/1.0"
    # Explicit headers win over the value derived from ``gzip``.
    assert client.headers["Accept-Encoding"] == "br"
    assert client.timeout.connect == 1.0
    assert client.timeout.read == 7.5
    await client.aclose()


@pytest.mark.anyio
async def test_json_client_runs_signing_and_logging_hooks(caplog: pytest.LogCaptureFixture) -> None:
    signed: list[str] = []

    def sign(request: httpx.Request) -> None:
        request.headers["Authorization"] = "Signature abc"
        signed.append(str(request.url))

    client = create_json_client(
        ClientOptions(
            url="http://10.0.0.5:8080",
            sign_request=sign,
            log=logging.getLogger("billing-client"),
        )
    )
    request = httpx.Request("GET", "http://10.0.0.5:8080/invoices")

    with caplog.at_level(logging.DEBUG, logger="billing-client"):
        for hook in client.event_hooks["request"]:
            await hook(request)
        for hook in client.event_hooks["response"]:
            await hook(httpx.Response(204, request=request))

    assert signed == ["http://10.0.0.5:8080/invoices"]
    assert request.headers["Authorization"] == "Signature abc"
    messages = [record.getMessage() for record in caplog.records if record.name == "billing-client"]
    assert messages == [
        "HTTP request GET http://10.0.0.5:8080/invoices",
        "HTTP response GET http://10.0.0.5:8080/invoices -> 204",
    ]
    await client.aclose()


@pytest.mark.anyio
async def test_json_client_awaits_async_signing_hook() -> None:
    async def sign(request: httpx.Request) -> None:
        request.headers["Authorization"] = "Signature async"

    client = create_json_client(ClientOptions(url="http://10.0.0.5:8080", sign_request=sign))
    request = httpx.Request("GET", "http://10.0.0.5:8080/")
    await client.event_hooks["request"][0](request)
    assert request.headers["Authorization"] == "Signature async"
    await client.aclose()


def test_transport_construction_failure_raises_client_factory_error(monkeypatch: pytest.MonkeyPatch) -> None:
    def _missing_h2(**kwargs: object) -> None:
        raise ImportError("Using http2=True, but the 'h2' package is not installed.")

    monkeypatch.setattr(httpx, "AsyncHTTPTransport", _missing_h2)

    with pytest.raises(ClientFactoryError) as exc:
        create_json_client(ClientOptions(url="http://10.0.0.5:8080", http2=True))
    assert "h2" in str(exc.value)
