"""Payment negotiation: turn a 402 challenge into a signed payment proof."""

import base64
import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Optional, Union

from x402 import (
    NoMatchingRequirementsError,
    PaymentPayload,
    PaymentPayloadV1,
    PaymentRequirements,
    PaymentRequirementsV1,
    SchemeNotFoundError,
)

from .challenge import PaymentChallenge
from .errors import AgentError, SigningError, UnsupportedSchemeError
from .metrics import get_metrics_emitter
from .registry import SchemeRegistry
from .tracing import add_payment_span_attributes, get_tracer

logger = logging.getLogger(__name__)

PAYMENT_SIGNATURE_HEADER = "PAYMENT-SIGNATURE"
X_PAYMENT_HEADER = "X-PAYMENT"

Requirement = Union[PaymentRequirements, PaymentRequirementsV1]


@dataclass(frozen=True)
class PaymentProof:
    """A signed payment, ready to attach to the retried request."""
    header_name: str
    header_value: str
    requirement: Requirement
    payload: dict[str, Any]


def encode_payment_header(payload: dict[str, Any]) -> str:
    """Base64-encode the compact JSON form of a payment payload."""
    compact = json.dumps(payload, separators=(",", ":"))
    return base64.b64encode(compact.encode("utf-8")).decode("ascii")


def requirement_amount(requirement: Requirement) -> Optional[str]:
    """Atomic-unit price of a v2 (``amount``) or v1 (``maxAmountRequired``) requirement."""
    return getattr(requirement, "amount", None) or getattr(requirement, "max_amount_required", None)


def _paid_requirement(
    challenge: PaymentChallenge,
    payload: Union[PaymentPayload, PaymentPayloadV1],
) -> Requirement:
    accepted = getattr(payload, "accepted", None)
    if accepted is not None:
        return accepted
    for requirement in challenge.accepts:
        if requirement.scheme == payload.scheme and requirement.network == payload.network:
            return requirement
    return challenge.accepts[0]


class PaymentNegotiator:
    """Signs one of a challenge's requirements with the registered x402 schemes."""

    def __init__(self, registry: SchemeRegistry):
        self.registry = registry
        self._x402 = registry.payment_client()

    async def negotiate(self, challenge: PaymentChallenge) -> PaymentProof:
        """
        Build the payment proof for a challenge.

        The x402 client picks the first requirement whose network has a
        registered scheme. Proof construction is attempted once; any failure
        is terminal for the invocation.

        Args:
            challenge: Parsed 402 payment challenge

        Returns:
            PaymentProof for the selected requirement

        Raises:
            UnsupportedSchemeError: If no registered signer can pay any requirement
            SigningError: If the signer fails to produce a proof
        """
        metrics = get_metrics_emitter()
        start_time = time.time()

        with get_tracer().start_as_current_span("payment.negotiate") as span:
            span.set_attribute("payment.x402_version", challenge.x402_version)
            span.set_attribute("payment.requirements", len(challenge.accepts))

            try:
                try:
                    payload = await self._x402.create_payment_payload(challenge)
                except (NoMatchingRequirementsError, SchemeNotFoundError) as e:
                    offered = ", ".join(f"{r.scheme}/{r.network}" for r in challenge.accepts)
                    raise UnsupportedSchemeError(
                        f"No registered signer supports the offered payment requirements: {offered}"
                    ) from e
                except AgentError:
                    raise
                except Exception as e:
                    raise SigningError(f"Failed to sign payment: {e}") from e
            except AgentError as e:
                status = "unsupported" if isinstance(e, UnsupportedSchemeError) else "signing_failed"
                add_payment_span_attributes(span, status=status)
                metrics.record_payment_negotiation(
                    success=False,
                    latency_ms=(time.time() - start_time) * 1000,
                    error=e.message,
                )
                raise

            requirement = _paid_requirement(challenge, payload)
            add_payment_span_attributes(
                span,
                scheme=requirement.scheme,
                amount=requirement_amount(requirement),
                asset=requirement.asset,
                network=requirement.network,
                recipient=requirement.pay_to,
                status="signed",
            )

        metrics.record_payment_negotiation(
            success=True,
            latency_ms=(time.time() - start_time) * 1000,
            network=requirement.network,
            scheme=requirement.scheme,
            amount=requirement_amount(requirement),
        )
        logger.info(
            "Signed %s payment of %s on %s to %s",
            requirement.scheme,
            requirement_amount(requirement),
            requirement.network,
            requirement.pay_to,
        )

        header_name = PAYMENT_SIGNATURE_HEADER if payload.x402_version >= 2 else X_PAYMENT_HEADER
        wire_payload = payload.model_dump(mode="json", by_alias=True, exclude_none=True)
        return PaymentProof(
            header_name=header_name,
            header_value=encode_payment_header(wire_payload),
            requirement=requirement,
            payload=wire_payload,
        )
