"""Weather tools backed by an x402-protected resource server."""

import logging
import time
from typing import Annotated, Any, Optional

from mcp.server.fastmcp import FastMCP
from pydantic import Field

from ..client import PaymentAwareClient
from ..errors import AgentError
from ..metrics import get_metrics_emitter
from ..results import build_failure_result, build_success_result, to_text
from ..tracing import traced

logger = logging.getLogger(__name__)

GET_WEATHER = "get-weather"
GET_DATA_FROM_RESOURCE_SERVER = "get-data-from-resource-server"


class WeatherTools:
    """Tool handlers that fetch from the resource server and return envelope text."""

    def __init__(self, client: PaymentAwareClient, base_url: str, endpoint_path: str):
        self.client = client
        self.base_url = base_url
        self.endpoint_path = endpoint_path

    @traced(name=f"tool.{GET_WEATHER}")
    async def get_weather(self, city: str, date: Optional[str] = None) -> str:
        """
        Get weather for a city and optional date.

        Args:
            city: City name
            date: Optional date, passed to the upstream as-is

        Returns:
            Serialized result envelope
        """
        request = {"tool": GET_WEATHER, "city": city, "date": date}
        return await self._invoke(request, params={"city": city, "date": date})

    @traced(name=f"tool.{GET_DATA_FROM_RESOURCE_SERVER}")
    async def get_data_from_resource_server(self) -> str:
        """Fetch the configured endpoint, paying if required."""
        return await self._invoke({"tool": GET_DATA_FROM_RESOURCE_SERVER})

    async def _invoke(
        self,
        request: dict[str, Any],
        params: Optional[dict[str, Any]] = None,
    ) -> str:
        tool_name = request["tool"]
        metrics = get_metrics_emitter()
        start_time = time.time()

        try:
            response = await self.client.get(self.endpoint_path, params=params)
            envelope = build_success_result(self.base_url, self.endpoint_path, request, response)
        except AgentError as e:
            logger.warning("%s failed: %s", tool_name, e.message)
            metrics.record_error(type(e).__name__, e.message, operation=tool_name)
            envelope = build_failure_result(self.base_url, self.endpoint_path, request, e)
        except Exception as e:
            logger.exception("Unexpected error in %s", tool_name)
            metrics.record_error(type(e).__name__, str(e), operation=tool_name)
            envelope = build_failure_result(self.base_url, self.endpoint_path, request, e)

        upstream = envelope["upstream"]
        metrics.record_tool_invocation(
            tool_name=tool_name,
            success=envelope["ok"],
            latency_ms=(time.time() - start_time) * 1000,
            status_code=upstream["status"],
            error=None if envelope["ok"] else str(upstream["data"])[:200],
        )
        return to_text(envelope)


def register_weather_tools(server: FastMCP, tools: WeatherTools) -> None:
    """Register the weather tools on an MCP server."""

    @server.tool(name=GET_WEATHER, description="Get weather for a city and optional date")
    async def get_weather(
        city: Annotated[str, Field(min_length=1, description="City name")],
        date: Annotated[Optional[str], Field(description="Optional date, e.g. 2025-01-31")] = None,
    ) -> str:
        return await tools.get_weather(city, date)

    @server.tool(
        name=GET_DATA_FROM_RESOURCE_SERVER,
        description="Fetch data from the configured resource endpoint with x402 auto-payment",
    )
    async def get_data_from_resource_server() -> str:
        return await tools.get_data_from_resource_server()
