"""x402 Weather Agent - MCP tools that pay for weather data via x402."""

__version__ = "1.0.0"

from .challenge import PaymentChallenge, parse_payment_challenge
from .client import PaymentAwareClient
from .errors import (
    AgentError,
    ChallengeError,
    ConfigurationError,
    CredentialError,
    PaymentRejectedError,
    SerializationError,
    SigningError,
    TransportError,
    UnsupportedSchemeError,
)
from .metrics import get_metrics_emitter, init_metrics, MetricsEmitter, AgentMetricName
from .negotiator import PaymentNegotiator, PaymentProof
from .registry import SchemeRegistry, build_scheme_registry
from .results import build_failure_result, build_success_result, to_text
from .signers import NetworkFamily, EvmSigner, SvmSigner, create_evm_signer, create_svm_signer
from .server import create_server, main, serve

__all__ = [
    "__version__",
    # Challenge parsing
    "PaymentChallenge",
    "parse_payment_challenge",
    # Payment stack
    "NetworkFamily",
    "EvmSigner",
    "SvmSigner",
    "create_evm_signer",
    "create_svm_signer",
    "SchemeRegistry",
    "build_scheme_registry",
    "PaymentNegotiator",
    "PaymentProof",
    "PaymentAwareClient",
    # Results
    "build_success_result",
    "build_failure_result",
    "to_text",
    # Errors
    "AgentError",
    "ChallengeError",
    "ConfigurationError",
    "CredentialError",
    "PaymentRejectedError",
    "SerializationError",
    "SigningError",
    "TransportError",
    "UnsupportedSchemeError",
    # Metrics
    "get_metrics_emitter",
    "init_metrics",
    "MetricsEmitter",
    "AgentMetricName",
    # Server
    "create_server",
    "main",
    "serve",
]
