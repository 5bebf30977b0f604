"""Signer capabilities for the x402 ``exact`` payment scheme.

A signer wraps one wallet secret for one settlement network family and
knows how to register the x402 SDK's exact-scheme client for that family:

- EvmSigner signs EIP-3009 TransferWithAuthorization payloads through
  ``x402.mechanisms.evm`` with a local eth-account key.
- SvmSigner builds partially signed SPL transfers through
  ``x402.mechanisms.svm`` with a solders keypair.

Signers are created once at startup by ``create_evm_signer`` and
``create_svm_signer`` and never change afterwards.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Protocol

import base58
from eth_account import Account
from solders.keypair import Keypair
from x402 import x402Client
from x402.mechanisms.evm import EthAccountSigner
from x402.mechanisms.evm.exact.register import register_exact_evm_client
from x402.mechanisms.svm import KeypairSigner
from x402.mechanisms.svm.exact import register_exact_svm_client

from .errors import CredentialError

logger = logging.getLogger(__name__)


class NetworkFamily(str, Enum):
    """Settlement network families a signer can pay on."""
    EVM = "evm"
    SVM = "svm"


class SignerCapability(Protocol):
    """Registers the payment scheme for one network family on an x402 client."""

    family: NetworkFamily
    address: str

    def register_schemes(self, client: x402Client) -> None: ...


@dataclass(frozen=True)
class EvmSigner:
    """EIP-3009 signer backed by a local EVM account."""

    address: str
    signer: EthAccountSigner = field(repr=False)
    family: NetworkFamily = field(default=NetworkFamily.EVM, init=False)

    def register_schemes(self, client: x402Client) -> None:
        register_exact_evm_client(client, self.signer)


@dataclass(frozen=True)
class SvmSigner:
    """SPL token transfer signer backed by a Solana keypair."""

    address: str
    signer: KeypairSigner = field(repr=False)
    family: NetworkFamily = field(default=NetworkFamily.SVM, init=False)

    def register_schemes(self, client: x402Client) -> None:
        register_exact_svm_client(client, self.signer)


def create_evm_signer(secret: Optional[str]) -> Optional[EvmSigner]:
    """
    Create an EVM signer from a hex-encoded private key.

    Args:
        secret: Hex private key (with or without 0x prefix), or None/empty

    Returns:
        EvmSigner, or None if no secret was supplied

    Raises:
        CredentialError: If the secret is present but not a valid private key
    """
    if not secret or not secret.strip():
        return None
    try:
        account = Account.from_key(secret.strip())
    except Exception as e:
        raise CredentialError("EVM_PRIVATE_KEY is not a valid hex-encoded private key") from e
    logger.debug("Loaded EVM signer %s", account.address)
    return EvmSigner(address=account.address, signer=EthAccountSigner(account))


async def create_svm_signer(secret: Optional[str]) -> Optional[SvmSigner]:
    """
    Create an SVM signer from a base58-encoded 64-byte secret key.

    Args:
        secret: Base58 secret key, or None/empty

    Returns:
        SvmSigner, or None if no secret was supplied

    Raises:
        CredentialError: If the secret is present but malformed
    """
    if not secret or not secret.strip():
        return None
    try:
        keypair = Keypair.from_bytes(base58.b58decode(secret.strip()))
    except Exception as e:
        raise CredentialError("SVM_PRIVATE_KEY is not a valid base58-encoded 64-byte secret key") from e
    logger.debug("Loaded SVM signer %s", keypair.pubkey())
    return SvmSigner(address=str(keypair.pubkey()), signer=KeypairSigner(keypair))
