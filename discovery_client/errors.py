"""Error types raised while resolving a service name into an HTTP client."""


class DiscoveryClientError(Exception):
    """Base class for every failure surfaced by the provider."""


class InvalidArgument(DiscoveryClientError, ValueError):
    """Malformed input to a public entry point, raised before any I/O."""


class ServiceNotFound(DiscoveryClientError):
    """The registry answered, but no healthy endpoint exists for the service."""

    def __init__(self, service: str, *, tag: str | None = None, dc: str | None = None) -> None:
        self.service = service
        self.tag = tag
        self.dc = dc
        qualifiers = []
        if tag:
            qualifiers.append(f"tag={tag}")
        if dc:
            qualifiers.append(f"dc={dc}")
        suffix = f" ({', '.join(qualifiers)})" if qualifiers else ""
        super().__init__(f"Service {service} has no endpoints{suffix}.")


class RegistryTransportError(DiscoveryClientError, RuntimeError):
    """The health-check query against the registry could not be completed."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ClientFactoryError(DiscoveryClientError):
    """The built-in factory could not construct a client from the resolved options."""
