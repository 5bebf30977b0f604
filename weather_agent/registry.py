"""Scheme registry: which network families this agent can pay on."""

import logging
from typing import Iterator, Optional

from x402 import x402Client

from .config import AgentConfig
from .errors import CredentialError, UnsupportedSchemeError
from .signers import NetworkFamily, SignerCapability, create_evm_signer, create_svm_signer
from .tracing import traced

logger = logging.getLogger(__name__)

NO_CREDENTIALS_MESSAGE = "At least one of EVM_PRIVATE_KEY or SVM_PRIVATE_KEY must be provided"


class SchemeRegistry:
    """Maps each network family to the signer that pays on it.

    Populated once during startup and read-only afterwards.
    """

    def __init__(self) -> None:
        self._signers: dict[NetworkFamily, SignerCapability] = {}

    def register(self, family: NetworkFamily, signer: SignerCapability) -> None:
        """Register the signer for a family, replacing any earlier one."""
        self._signers[family] = signer
        logger.info("Registered %s exact-scheme signer for %s", family.value.upper(), signer.address)

    def get(self, family: Optional[NetworkFamily]) -> Optional[SignerCapability]:
        if family is None:
            return None
        return self._signers.get(family)

    def resolve(self, family: Optional[NetworkFamily]) -> SignerCapability:
        signer = self.get(family)
        if signer is None:
            name = family.value if family is not None else "unknown"
            raise UnsupportedSchemeError(f"No signer registered for {name} networks")
        return signer

    def families(self) -> list[NetworkFamily]:
        return list(self._signers)

    def payment_client(self) -> x402Client:
        """Build an x402 client with the exact scheme of every registered family."""
        client = x402Client()
        for signer in self._signers.values():
            signer.register_schemes(client)
        return client

    def __contains__(self, family: object) -> bool:
        return family in self._signers

    def __iter__(self) -> Iterator[SignerCapability]:
        return iter(self._signers.values())

    def __len__(self) -> int:
        return len(self._signers)


@traced(name="registry.build")
async def build_scheme_registry(agent_config: AgentConfig) -> SchemeRegistry:
    """
    Build the scheme registry from the configured wallet secrets.

    Args:
        agent_config: Configuration holding the EVM and SVM secrets

    Returns:
        SchemeRegistry with one signer per configured secret

    Raises:
        CredentialError: If no secret is configured, or a secret is malformed
    """
    if not agent_config.evm_private_key.strip() and not agent_config.svm_private_key.strip():
        raise CredentialError(NO_CREDENTIALS_MESSAGE)

    registry = SchemeRegistry()

    evm_signer = create_evm_signer(agent_config.evm_private_key)
    if evm_signer is not None:
        registry.register(evm_signer.family, evm_signer)

    svm_signer = await create_svm_signer(agent_config.svm_private_key)
    if svm_signer is not None:
        registry.register(svm_signer.family, svm_signer)

    if not registry:
        raise CredentialError(NO_CREDENTIALS_MESSAGE)

    return registry
