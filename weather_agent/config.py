"""Configuration for the x402 weather agent."""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from .errors import ConfigurationError

load_dotenv()


def _int_from_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw.strip())
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from None
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive, got {value}")
    return value


@dataclass
class AgentConfig:
    """Configuration for the weather agent MCP server."""

    # Wallet secrets (at least one is required at startup)
    evm_private_key: str = ""
    svm_private_key: str = ""

    # Resource server configuration
    resource_server_url: str = "http://localhost:4021"
    endpoint_path: str = "/weather"
    request_timeout_ms: int = 15000

    log_level: str = "INFO"

    # OpenTelemetry configuration
    otel_endpoint: str = ""
    otel_console_export: bool = False

    @property
    def request_timeout_seconds(self) -> float:
        """Per-attempt request timeout in seconds."""
        return self.request_timeout_ms / 1000

    @classmethod
    def from_env(cls) -> "AgentConfig":
        """Load configuration from environment variables.

        Raises:
            ConfigurationError: If REQUEST_TIMEOUT_MS is not a positive integer
        """
        return cls(
            evm_private_key=os.getenv("EVM_PRIVATE_KEY", ""),
            svm_private_key=os.getenv("SVM_PRIVATE_KEY", ""),
            resource_server_url=os.getenv("RESOURCE_SERVER_URL", cls.resource_server_url),
            endpoint_path=os.getenv("ENDPOINT_PATH", cls.endpoint_path),
            request_timeout_ms=_int_from_env("REQUEST_TIMEOUT_MS", cls.request_timeout_ms),
            log_level=os.getenv("LOG_LEVEL", cls.log_level).upper(),
            otel_endpoint=os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT", ""),
            otel_console_export=os.getenv("OTEL_CONSOLE_EXPORT", "").lower() == "true",
        )


# Global config instance, loaded on first use
_config: Optional[AgentConfig] = None


def get_config() -> AgentConfig:
    """Get the environment configuration, loading it on first call."""
    global _config
    if _config is None:
        _config = AgentConfig.from_env()
    return _config
