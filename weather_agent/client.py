"""Payment-aware HTTP client for x402 resource servers.

Requests go out through one shared ``httpx.AsyncClient``. When the upstream
answers 402, the client parses the payment challenge, asks the negotiator
for a payment proof, and replays the request exactly once with the proof
attached. Every other status is returned to the caller unchanged.
"""

import asyncio
import logging
import time
from http.cookiejar import CookieJar, DefaultCookiePolicy
from typing import Any, Mapping, Optional

import httpx

from .challenge import PAYMENT_REQUIRED_STATUS, parse_payment_challenge
from .errors import AgentError, PaymentRejectedError, TransportError
from .metrics import get_metrics_emitter
from .negotiator import PaymentNegotiator
from .tracing import get_tracer

logger = logging.getLogger(__name__)


def _drop_empty_params(params: Optional[Mapping[str, Any]]) -> Optional[dict[str, Any]]:
    if not params:
        return None
    return {key: value for key, value in params.items() if value is not None}


class PaymentAwareClient:
    """
    HTTP client that pays for x402-protected resources.

    Example:
        async with PaymentAwareClient(base_url, negotiator) as client:
            response = await client.get("/weather", params={"city": "Beijing"})
    """

    def __init__(
        self,
        base_url: str,
        negotiator: PaymentNegotiator,
        timeout_ms: int = 15000,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the client.

        Args:
            base_url: Base URL of the resource server
            negotiator: Negotiator used to build payment proofs
            timeout_ms: Total time budget for each attempt, in milliseconds
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self.base_url = base_url
        self.negotiator = negotiator
        self.timeout_ms = timeout_ms
        # Upstream cookies are refused so no session leaks between invocations
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout_ms / 1000,
            transport=transport,
            cookies=CookieJar(policy=DefaultCookiePolicy(allowed_domains=[])),
        )

    async def __aenter__(self) -> "PaymentAwareClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def get(self, path: str, params: Optional[Mapping[str, Any]] = None) -> httpx.Response:
        return await self.request("GET", path, params=params)

    async def request(
        self,
        method: str,
        path: str,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
        content: Optional[bytes] = None,
    ) -> httpx.Response:
        """
        Send a request, paying for it if the upstream asks.

        Args:
            method: HTTP method
            path: Path relative to the base URL
            params: Query parameters; None values are omitted
            headers: Extra request headers
            content: Request body

        Returns:
            The upstream response for any status other than 402

        Raises:
            TransportError: If either attempt fails or exceeds the timeout
            ChallengeError: If a 402 carries no usable challenge
            UnsupportedSchemeError: If no registered signer can pay
            SigningError: If the payment proof cannot be built
            PaymentRejectedError: If the paid retry is answered with 402 again
        """
        request = self._client.build_request(
            method,
            path,
            params=_drop_empty_params(params),
            headers=dict(headers) if headers else None,
            content=content,
        )

        response = await self._send(request)
        if response.status_code != PAYMENT_REQUIRED_STATUS:
            return response

        logger.info("Payment required for %s %s", request.method, request.url.path)
        try:
            challenge = parse_payment_challenge(response)
            proof = await self.negotiator.negotiate(challenge)
        except AgentError as e:
            if e.response is None:
                e.response = response
            logger.warning("Payment negotiation failed: %s", e.message)
            raise

        retry_headers = dict(request.headers)
        retry_headers[proof.header_name] = proof.header_value
        retry = self._client.build_request(
            request.method,
            request.url,
            headers=retry_headers,
            content=request.content or None,
        )

        paid_response = await self._send(retry, paid_retry=True)
        if paid_response.status_code == PAYMENT_REQUIRED_STATUS:
            raise PaymentRejectedError(
                "Upstream rejected the payment and answered 402 again",
                response=paid_response,
            )
        return paid_response

    async def _send(self, request: httpx.Request, paid_retry: bool = False) -> httpx.Response:
        metrics = get_metrics_emitter()
        start_time = time.time()

        with get_tracer().start_as_current_span("upstream.request") as span:
            span.set_attribute("http.request.method", request.method)
            span.set_attribute("url.path", request.url.path)
            span.set_attribute("x402.paid_retry", paid_retry)
            try:
                response = await asyncio.wait_for(
                    self._client.send(request),
                    timeout=self.timeout_ms / 1000,
                )
            except (httpx.RequestError, asyncio.TimeoutError) as e:
                if isinstance(e, asyncio.TimeoutError):
                    message = f"Request timed out after {self.timeout_ms} ms"
                else:
                    message = str(e) or type(e).__name__
                metrics.record_upstream_request(
                    status_code=None,
                    latency_ms=(time.time() - start_time) * 1000,
                    path=request.url.path,
                    paid_retry=paid_retry,
                    error=message,
                )
                logger.error("Request to %s failed: %s", request.url, message)
                raise TransportError(message) from e

            span.set_attribute("http.response.status_code", response.status_code)

        metrics.record_upstream_request(
            status_code=response.status_code,
            latency_ms=(time.time() - start_time) * 1000,
            path=request.url.path,
            paid_retry=paid_retry,
        )
        return response
