import pytest

from discovery_client.registry import QueryParams, ServiceInstance


class FakeRegistry:
    """Implements HealthRegistry for tests; answers per service and records every query."""

    def __init__(self) -> None:
        self.instances: dict[str, list[ServiceInstance]] = {}
        self.errors: dict[str, Exception] = {}
        self.queries: list[QueryParams] = []
        self.closed = False

    def add(self, service: str, address: str, port: int, service_id: str | None = None) -> None:
        self.instances.setdefault(service, []).append(
            ServiceInstance(
                address=address,
                port=port,
                id=service_id or f"{service}-{address}-{port}",
                tags=["primary"],
            )
        )

    async def health_service(self, params: QueryParams) -> list[ServiceInstance]:
        self.queries.append(params)
        if params.service in self.errors:
            raise self.errors[params.service]
        return list(self.instances.get(params.service, []))

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def registry() -> FakeRegistry:
    return FakeRegistry()


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"
