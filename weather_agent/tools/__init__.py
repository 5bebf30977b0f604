"""MCP tools exposed by the x402 weather agent.

- get-weather: Get weather for a city and optional date
- get-data-from-resource-server: Fetch the configured endpoint with x402 auto-payment
"""

from .weather import (
    GET_DATA_FROM_RESOURCE_SERVER,
    GET_WEATHER,
    WeatherTools,
    register_weather_tools,
)

TOOL_NAMES = [GET_WEATHER, GET_DATA_FROM_RESOURCE_SERVER]

__all__ = [
    "GET_DATA_FROM_RESOURCE_SERVER",
    "GET_WEATHER",
    "TOOL_NAMES",
    "WeatherTools",
    "register_weather_tools",
]
