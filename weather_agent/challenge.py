"""x402 payment challenge parsing.

A resource server answers an unpaid request with HTTP 402 and a payment
challenge listing the payment requirements it accepts. Two wire formats
are in use:

- x402 v2 sends the challenge in the ``PAYMENT-REQUIRED`` header as
  Base64-encoded JSON.
- x402 v1 sends the challenge as the JSON response body.

If both are present, the header wins. The decoded object is validated
into the x402 SDK's ``PaymentRequired`` / ``PaymentRequiredV1`` models.
"""

import base64
import binascii
import json
from typing import Any, Optional, Union

import httpx
from x402 import PaymentRequired, PaymentRequiredV1

from .errors import ChallengeError

PAYMENT_REQUIRED_STATUS = 402
PAYMENT_REQUIRED_HEADER = "PAYMENT-REQUIRED"

PaymentChallenge = Union[PaymentRequired, PaymentRequiredV1]


def _decode_header_challenge(response: httpx.Response) -> Optional[dict[str, Any]]:
    header_value = response.headers.get(PAYMENT_REQUIRED_HEADER)
    if not header_value:
        return None
    try:
        payload = json.loads(base64.b64decode(header_value))
    except (binascii.Error, ValueError):
        return None
    if not isinstance(payload, dict):
        return None
    payload.setdefault("x402Version", 2)
    return payload


def _decode_body_challenge(response: httpx.Response) -> Optional[dict[str, Any]]:
    try:
        payload = response.json()
    except ValueError:
        return None
    if not isinstance(payload, dict) or "accepts" not in payload:
        return None
    payload.setdefault("x402Version", 1)
    return payload


def parse_payment_challenge(response: httpx.Response) -> PaymentChallenge:
    """
    Parse the payment challenge carried by a 402 response.

    Args:
        response: The 402 response from the resource server

    Returns:
        PaymentRequired (v2) or PaymentRequiredV1 with at least one requirement

    Raises:
        ChallengeError: If no usable challenge is present. The error carries
            the original response.
    """
    payload = _decode_header_challenge(response) or _decode_body_challenge(response)
    if payload is None:
        raise ChallengeError(
            "402 response did not carry a payment challenge",
            response=response,
        )

    model = PaymentRequiredV1 if payload.get("x402Version") == 1 else PaymentRequired
    try:
        challenge = model.model_validate(payload)
    except (TypeError, ValueError) as e:
        raise ChallengeError(f"Malformed payment challenge: {e}", response=response) from e

    if not challenge.accepts:
        raise ChallengeError(
            "Payment challenge does not contain any payment requirements",
            response=response,
        )
    return challenge
