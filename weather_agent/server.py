"""MCP server bootstrap for the x402 weather agent."""

import asyncio
import logging
import sys
from typing import Optional

from mcp.server.fastmcp import FastMCP

from . import config as config_module
from .client import PaymentAwareClient
from .config import AgentConfig
from .errors import ConfigurationError, CredentialError
from .metrics import init_metrics
from .negotiator import PaymentNegotiator
from .registry import build_scheme_registry
from .tools import WeatherTools, register_weather_tools
from .tracing import init_tracing

logger = logging.getLogger(__name__)

SERVER_NAME = "x402-weather-agent"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

INSTRUCTIONS = (
    "Fetches weather data from an x402-protected resource server. "
    "Payment challenges are answered automatically with the configured wallet."
)


def configure_logging(level: str = "INFO") -> None:
    """Send all logging to stderr; stdout is reserved for MCP messages."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stderr)],
        force=True,
    )


def create_server(tools: WeatherTools) -> FastMCP:
    """Create the MCP server with the weather tools registered."""
    server = FastMCP(SERVER_NAME, instructions=INSTRUCTIONS)
    register_weather_tools(server, tools)
    return server


async def serve(agent_config: Optional[AgentConfig] = None) -> None:
    """
    Build the payment stack and serve the tools over stdio.

    Args:
        agent_config: Configuration to use (defaults to the environment config)

    Raises:
        CredentialError: If no usable wallet secret is configured
    """
    agent_config = agent_config or config_module.get_config()

    init_tracing(
        service_name=SERVER_NAME,
        otlp_endpoint=agent_config.otel_endpoint or None,
        enable_console_export=agent_config.otel_console_export,
    )
    init_metrics(SERVER_NAME)

    registry = await build_scheme_registry(agent_config)
    negotiator = PaymentNegotiator(registry)

    async with PaymentAwareClient(
        agent_config.resource_server_url,
        negotiator,
        timeout_ms=agent_config.request_timeout_ms,
    ) as client:
        tools = WeatherTools(
            client,
            base_url=agent_config.resource_server_url,
            endpoint_path=agent_config.endpoint_path,
        )
        server = create_server(tools)

        logger.info(
            "Serving %s over stdio (upstream %s%s, networks: %s)",
            SERVER_NAME,
            agent_config.resource_server_url,
            agent_config.endpoint_path,
            ", ".join(family.value for family in registry.families()),
        )
        await server.run_stdio_async()


def main() -> None:
    """Console entry point."""
    try:
        agent_config = config_module.get_config()
    except ConfigurationError as e:
        configure_logging()
        logger.error("Invalid configuration: %s", e.message)
        sys.exit(1)

    configure_logging(agent_config.log_level)
    try:
        asyncio.run(serve(agent_config))
    except CredentialError as e:
        logger.error("Startup failed: %s", e.message)
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Shutting down")
    except Exception as e:
        logger.error("Fatal error: %s", e, exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
