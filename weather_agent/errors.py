"""Error types for the x402 weather agent.

Only ``CredentialError`` and ``ConfigurationError`` may abort the process.
Every other error is caught at the tool boundary and folded into a failed
result envelope.
Errors raised after the upstream answered keep that response on
``.response`` so the envelope can report its status, headers and body.
"""

from typing import Optional

import httpx


class AgentError(Exception):
    """Base class for all weather agent errors."""

    def __init__(self, message: str, response: Optional[httpx.Response] = None):
        super().__init__(message)
        self.message = message
        self.response = response


class CredentialError(AgentError):
    """A wallet secret is malformed, or no secret was configured at all."""


class ChallengeError(AgentError):
    """A 402 response did not carry a usable payment challenge."""


class UnsupportedSchemeError(AgentError):
    """No registered signer can satisfy any requirement in the challenge."""


class SigningError(AgentError):
    """Building the payment proof failed."""


class PaymentRejectedError(AgentError):
    """The upstream answered 402 again after the paid retry."""


class TransportError(AgentError):
    """Connection failure or timeout while talking to the upstream."""


class SerializationError(AgentError):
    """A result envelope could not be rendered as JSON."""


class ConfigurationError(AgentError):
    """An environment setting could not be parsed."""
