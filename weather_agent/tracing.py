"""OpenTelemetry tracing for the x402 weather agent.

Spans are opened for tool invocations, upstream attempts (``upstream.request``)
and payment negotiation (``payment.negotiate``). Outbound httpx calls are
instrumented automatically. Trace ids use the X-Ray format so traces line up
with other AWS services.

Stdout carries the MCP protocol, so the console exporter writes to stderr.
"""

import os
import sys
from functools import wraps
from typing import Any, Awaitable, Callable, Optional, TypeVar, ParamSpec

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from opentelemetry.propagate import set_global_textmap
from opentelemetry.propagators.aws import AwsXRayPropagator
from opentelemetry.sdk.extension.aws.trace import AwsXRayIdGenerator
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.trace import Status, StatusCode

from . import __version__

P = ParamSpec("P")
T = TypeVar("T")

DEFAULT_SERVICE_NAME = "x402-weather-agent"

_tracer: Optional[trace.Tracer] = None
_initialized = False


def _console_export_requested(flag: bool) -> bool:
    return flag or os.getenv("OTEL_CONSOLE_EXPORT", "").lower() == "true"


def _build_provider(
    service_name: str,
    otlp_endpoint: Optional[str],
    console_export: bool,
) -> TracerProvider:
    provider = TracerProvider(
        resource=Resource.create({
            SERVICE_NAME: service_name,
            "service.version": __version__,
            "deployment.environment": os.getenv("ENVIRONMENT", "development"),
        }),
        id_generator=AwsXRayIdGenerator(),
    )

    if otlp_endpoint:
        provider.add_span_processor(
            BatchSpanProcessor(OTLPSpanExporter(endpoint=otlp_endpoint, insecure=True))
        )
    if console_export:
        provider.add_span_processor(
            BatchSpanProcessor(ConsoleSpanExporter(out=sys.stderr))
        )
    return provider


def init_tracing(
    service_name: str = DEFAULT_SERVICE_NAME,
    otlp_endpoint: Optional[str] = None,
    enable_console_export: bool = False,
) -> trace.Tracer:
    """Install the tracer provider and instrument httpx.

    Safe to call more than once; later calls return the first tracer.

    Args:
        service_name: ``service.name`` resource attribute
        otlp_endpoint: OTLP gRPC collector, falling back to
            OTEL_EXPORTER_OTLP_ENDPOINT. No OTLP export when neither is set.
        enable_console_export: Also print finished spans to stderr

    Returns:
        The agent's tracer
    """
    global _tracer, _initialized

    if _initialized and _tracer is not None:
        return _tracer

    set_global_textmap(AwsXRayPropagator())
    trace.set_tracer_provider(
        _build_provider(
            service_name,
            otlp_endpoint or os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT"),
            _console_export_requested(enable_console_export),
        )
    )
    HTTPXClientInstrumentor().instrument()

    _tracer = trace.get_tracer(service_name)
    _initialized = True
    return _tracer


def get_tracer() -> trace.Tracer:
    """Return the agent's tracer, or the API default if tracing is not initialized."""
    if _tracer is None:
        return trace.get_tracer(DEFAULT_SERVICE_NAME)
    return _tracer


def traced(
    name: Optional[str] = None,
    attributes: Optional[dict[str, Any]] = None,
) -> Callable[[Callable[P, Awaitable[T]]], Callable[P, Awaitable[T]]]:
    """Run a coroutine function inside a span named ``name``.

    The span is marked as failed and the exception recorded if the
    coroutine raises; the exception still propagates.
    """
    def decorator(func: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[T]]:
        span_name = name or func.__name__

        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            with get_tracer().start_as_current_span(
                span_name, attributes=attributes, record_exception=False
            ) as span:
                try:
                    result = await func(*args, **kwargs)
                except Exception as e:
                    span.set_status(Status(StatusCode.ERROR, str(e)))
                    span.record_exception(e)
                    raise
                span.set_status(Status(StatusCode.OK))
                return result

        return wrapper

    return decorator


def add_payment_span_attributes(
    span: trace.Span,
    scheme: Optional[str] = None,
    amount: Optional[str] = None,
    asset: Optional[str] = None,
    network: Optional[str] = None,
    recipient: Optional[str] = None,
    status: Optional[str] = None,
) -> None:
    """Set the ``payment.*`` attributes that were given; others are left unset."""
    values = {
        "payment.scheme": scheme,
        "payment.amount": amount,
        "payment.asset": asset,
        "payment.network": network,
        "payment.recipient": recipient,
        "payment.status": status,
    }
    for key, value in values.items():
        if value:
            span.set_attribute(key, value)
