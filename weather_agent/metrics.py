"""
Custom CloudWatch metrics for the x402 weather agent.

This module provides CloudWatch metrics emission using the Embedded Metric Format (EMF)
for efficient metric publishing without requiring explicit PutMetricData API calls.

EMF records are written through the ``weather_agent.metrics.emf`` logger rather
than printed, because stdout carries the MCP protocol.

Metrics are organized into the following categories:
- Upstream Requests: HTTP requests to the resource server
- Payment Negotiation: Requirement selection and proof signing
- Tool Invocations: MCP tool calls and their outcomes
"""

import json
import logging
import os
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

emf_logger = logging.getLogger(f"{__name__}.emf")


class MetricUnit(str, Enum):
    """CloudWatch metric units."""
    COUNT = "Count"
    MILLISECONDS = "Milliseconds"
    NONE = "None"


class AgentMetricName(str, Enum):
    """Metric names for the weather agent."""
    # Upstream Request Metrics
    UPSTREAM_REQUEST_COUNT = "UpstreamRequestCount"
    UPSTREAM_REQUEST_SUCCESS = "UpstreamRequestSuccess"
    UPSTREAM_REQUEST_402 = "UpstreamRequest402"
    UPSTREAM_REQUEST_ERROR = "UpstreamRequestError"
    UPSTREAM_REQUEST_LATENCY = "UpstreamRequestLatency"
    PAID_RETRY_COUNT = "PaidRetryCount"

    # Payment Negotiation Metrics
    PAYMENT_NEGOTIATION_COUNT = "PaymentNegotiationCount"
    PAYMENT_NEGOTIATION_SUCCESS = "PaymentNegotiationSuccess"
    PAYMENT_NEGOTIATION_FAILURE = "PaymentNegotiationFailure"
    PAYMENT_NEGOTIATION_LATENCY = "PaymentNegotiationLatency"

    # Tool Invocation Metrics
    TOOL_INVOCATION_COUNT = "ToolInvocationCount"
    TOOL_INVOCATION_SUCCESS = "ToolInvocationSuccess"
    TOOL_INVOCATION_FAILURE = "ToolInvocationFailure"
    TOOL_INVOCATION_LATENCY = "ToolInvocationLatency"

    # Error Metrics
    AGENT_ERROR_COUNT = "AgentErrorCount"


@dataclass
class MetricDimensions:
    """Dimensions for CloudWatch metrics."""
    environment: str = field(default_factory=lambda: os.getenv("ENVIRONMENT", "development"))
    network: Optional[str] = None
    scheme: Optional[str] = None
    tool_name: Optional[str] = None
    error_type: Optional[str] = None

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary, excluding None values."""
        result = {"Environment": self.environment}
        if self.network:
            result["Network"] = self.network
        if self.scheme:
            result["Scheme"] = self.scheme
        if self.tool_name:
            result["ToolName"] = self.tool_name
        if self.error_type:
            result["ErrorType"] = self.error_type
        return result


class MetricsEmitter:
    """
    CloudWatch metrics emitter using Embedded Metric Format (EMF).

    EMF allows publishing metrics by simply logging JSON in a specific format.
    CloudWatch automatically extracts metrics from these logs.
    """

    NAMESPACE = "X402WeatherAgent"

    def __init__(self, service_name: str = "x402-weather-agent"):
        """
        Initialize the metrics emitter.

        Args:
            service_name: Service name for metric attribution
        """
        self.service_name = service_name
        self._dimensions = MetricDimensions()

    def _create_emf_log(
        self,
        metrics: dict[str, tuple[float, MetricUnit]],
        dimensions: Optional[MetricDimensions] = None,
        properties: Optional[dict[str, Any]] = None,
    ) -> dict[str, Any]:
        """
        Create an EMF-formatted log entry.

        Args:
            metrics: Dictionary of metric name to (value, unit) tuples
            dimensions: Optional custom dimensions
            properties: Additional properties to include in the log

        Returns:
            EMF-formatted dictionary
        """
        dims = dimensions or self._dimensions
        dim_dict = dims.to_dict()

        metrics_array = [
            {"Name": name, "Unit": unit.value}
            for name, (_, unit) in metrics.items()
        ]

        emf_log: dict[str, Any] = {
            "_aws": {
                "Timestamp": int(time.time() * 1000),
                "CloudWatchMetrics": [
                    {
                        "Namespace": self.NAMESPACE,
                        "Dimensions": [list(dim_dict.keys())],
                        "Metrics": metrics_array,
                    }
                ],
            },
            "service": self.service_name,
            **dim_dict,
        }

        for name, (value, _) in metrics.items():
            emf_log[name] = value

        if properties:
            emf_log.update(properties)

        return emf_log

    def emit(
        self,
        metric_name: AgentMetricName,
        value: float,
        unit: MetricUnit = MetricUnit.COUNT,
        dimensions: Optional[MetricDimensions] = None,
        properties: Optional[dict[str, Any]] = None,
    ) -> None:
        """
        Emit a single metric.

        Args:
            metric_name: Name of the metric
            value: Metric value
            unit: Metric unit
            dimensions: Optional custom dimensions
            properties: Additional properties to log
        """
        self.emit_multiple({metric_name: (value, unit)}, dimensions, properties)

    def emit_multiple(
        self,
        metrics: dict[AgentMetricName, tuple[float, MetricUnit]],
        dimensions: Optional[MetricDimensions] = None,
        properties: Optional[dict[str, Any]] = None,
    ) -> None:
        """
        Emit multiple metrics in a single log entry.

        Args:
            metrics: Dictionary of metric name to (value, unit) tuples
            dimensions: Optional custom dimensions
            properties: Additional properties to log
        """
        metrics_dict = {name.value: value_unit for name, value_unit in metrics.items()}
        emf_log = self._create_emf_log(metrics_dict, dimensions, properties)
        emf_logger.info(json.dumps(emf_log, default=str))

    # Convenience methods for common metrics

    def record_upstream_request(
        self,
        status_code: Optional[int],
        latency_ms: float,
        path: str,
        paid_retry: bool = False,
        error: Optional[str] = None,
    ) -> None:
        """
        Record a request to the resource server.

        Args:
            status_code: HTTP status code, or None if no response arrived
            latency_ms: Request latency in milliseconds
            path: Request path
            paid_retry: Whether this was the retry carrying a payment proof
            error: Error message if the request failed
        """
        metrics: dict[AgentMetricName, tuple[float, MetricUnit]] = {
            AgentMetricName.UPSTREAM_REQUEST_COUNT: (1, MetricUnit.COUNT),
            AgentMetricName.UPSTREAM_REQUEST_LATENCY: (latency_ms, MetricUnit.MILLISECONDS),
        }

        if status_code == 402:
            metrics[AgentMetricName.UPSTREAM_REQUEST_402] = (1, MetricUnit.COUNT)
        elif status_code is None or error:
            metrics[AgentMetricName.UPSTREAM_REQUEST_ERROR] = (1, MetricUnit.COUNT)
        else:
            metrics[AgentMetricName.UPSTREAM_REQUEST_SUCCESS] = (1, MetricUnit.COUNT)

        if paid_retry:
            metrics[AgentMetricName.PAID_RETRY_COUNT] = (1, MetricUnit.COUNT)

        properties: dict[str, Any] = {
            "statusCode": status_code,
            "path": path,
            "paidRetry": paid_retry,
        }
        if error:
            properties["error"] = error

        self.emit_multiple(metrics, properties=properties)

    def record_payment_negotiation(
        self,
        success: bool,
        latency_ms: float,
        network: Optional[str] = None,
        scheme: Optional[str] = None,
        amount: Optional[str] = None,
        error: Optional[str] = None,
    ) -> None:
        """
        Record a payment negotiation.

        Args:
            success: Whether a payment proof was produced
            latency_ms: Time taken for selection and signing in milliseconds
            network: Settlement network of the selected requirement
            scheme: Payment scheme of the selected requirement
            amount: Payment amount in atomic units
            error: Error message if negotiation failed
        """
        dims = MetricDimensions(
            network=network,
            scheme=scheme,
            error_type=error[:50] if error else None,
        )

        metrics: dict[AgentMetricName, tuple[float, MetricUnit]] = {
            AgentMetricName.PAYMENT_NEGOTIATION_COUNT: (1, MetricUnit.COUNT),
            AgentMetricName.PAYMENT_NEGOTIATION_LATENCY: (latency_ms, MetricUnit.MILLISECONDS),
        }

        if success:
            metrics[AgentMetricName.PAYMENT_NEGOTIATION_SUCCESS] = (1, MetricUnit.COUNT)
        else:
            metrics[AgentMetricName.PAYMENT_NEGOTIATION_FAILURE] = (1, MetricUnit.COUNT)

        properties: dict[str, Any] = {}
        if network:
            properties["network"] = network
        if amount:
            properties["amount"] = amount
        if error:
            properties["error"] = error

        self.emit_multiple(metrics, dims, properties)

    def record_tool_invocation(
        self,
        tool_name: str,
        success: bool,
        latency_ms: float,
        status_code: Optional[int] = None,
        error: Optional[str] = None,
    ) -> None:
        """
        Record an MCP tool invocation.

        Args:
            tool_name: Name of the tool invoked
            success: The ``ok`` flag of the result envelope
            latency_ms: Time taken for invocation in milliseconds
            status_code: Upstream status reported in the envelope
            error: Error message if the invocation failed
        """
        dims = MetricDimensions(tool_name=tool_name)

        metrics: dict[AgentMetricName, tuple[float, MetricUnit]] = {
            AgentMetricName.TOOL_INVOCATION_COUNT: (1, MetricUnit.COUNT),
            AgentMetricName.TOOL_INVOCATION_LATENCY: (latency_ms, MetricUnit.MILLISECONDS),
        }

        if success:
            metrics[AgentMetricName.TOOL_INVOCATION_SUCCESS] = (1, MetricUnit.COUNT)
        else:
            metrics[AgentMetricName.TOOL_INVOCATION_FAILURE] = (1, MetricUnit.COUNT)

        properties: dict[str, Any] = {"toolName": tool_name, "statusCode": status_code}
        if error:
            properties["error"] = error

        self.emit_multiple(metrics, dims, properties)

    def record_error(
        self,
        error_type: str,
        error_message: str,
        operation: Optional[str] = None,
    ) -> None:
        """
        Record an error.

        Args:
            error_type: Type of error
            error_message: Error message
            operation: Operation that failed
        """
        dims = MetricDimensions(error_type=error_type[:50])

        self.emit(
            AgentMetricName.AGENT_ERROR_COUNT,
            1,
            MetricUnit.COUNT,
            dims,
            {
                "errorType": error_type,
                "errorMessage": error_message[:200],
                "operation": operation,
            },
        )


# Global metrics emitter instance
_metrics_emitter: Optional[MetricsEmitter] = None


def get_metrics_emitter() -> MetricsEmitter:
    """Get the global metrics emitter instance."""
    global _metrics_emitter
    if _metrics_emitter is None:
        _metrics_emitter = MetricsEmitter()
    return _metrics_emitter


def init_metrics(service_name: str = "x402-weather-agent") -> MetricsEmitter:
    """
    Initialize the global metrics emitter.

    Args:
        service_name: Service name for metric attribution

    Returns:
        Configured MetricsEmitter instance
    """
    global _metrics_emitter
    _metrics_emitter = MetricsEmitter(service_name)
    return _metrics_emitter
