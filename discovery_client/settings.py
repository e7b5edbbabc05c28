"""Environment-driven configuration for the registry connection."""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

DEFAULT_CONSUL_HTTP_ADDR = "http://127.0.0.1:8500"


def _optional(name: str) -> str | None:
    """Read an environment variable, treating blank values as unset."""
    value = os.getenv(name, "").strip()
    return value or None


@dataclass(frozen=True, slots=True)
class Settings:
    """Container for registry and provider-level defaults."""

    consul_http_addr: str = DEFAULT_CONSUL_HTTP_ADDR
    consul_token: str | None = None
    registry_timeout: float = 5.0
    default_tag: str | None = None
    default_dc: str | None = None

    @classmethod
    def load(cls) -> "Settings":
        """
        Load configuration from environment variables.

        Python-dotenv is used so developers can rely on a local .env file without
        exporting variables globally. The variable names follow the Consul CLI.
        """
        load_dotenv()

        consul_http_addr = os.getenv("CONSUL_HTTP_ADDR", "").strip() or DEFAULT_CONSUL_HTTP_ADDR
        if "://" not in consul_http_addr:
            consul_http_addr = f"http://{consul_http_addr}"

        registry_timeout_raw = os.getenv("REGISTRY_TIMEOUT", "").strip() or "5"
        try:
            registry_timeout = float(registry_timeout_raw)
        except ValueError as exc:
            raise ValueError("REGISTRY_TIMEOUT must be a numeric value.") from exc
        if registry_timeout <= 0:
            raise ValueError("REGISTRY_TIMEOUT must be greater than zero.")

        return cls(
            consul_http_addr=consul_http_addr,
            consul_token=_optional("CONSUL_HTTP_TOKEN"),
            registry_timeout=registry_timeout,
            default_tag=_optional("DISCOVERY_DEFAULT_TAG"),
            default_dc=_optional("DISCOVERY_DEFAULT_DC"),
        )
