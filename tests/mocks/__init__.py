"""
Test mocks for the weather agent test suite.

Available Mocks:
- ResourceServerMock: x402 resource server for httpx.MockTransport
- ResourceServerMockConfig: Configuration for the resource server mock
- evm_requirement / svm_requirement: Payment requirement builders

Usage:
    from tests.mocks import ResourceServerMock, ResourceServerMockConfig

    # v1 challenge in the response body
    mock = ResourceServerMock(ResourceServerMockConfig(x402_version=1))
    transport = httpx.MockTransport(mock.handler)
"""

from .resource_server_mock import (
    TEST_EVM_ADDRESS,
    TEST_EVM_PRIVATE_KEY,
    TEST_RECIPIENT,
    TEST_SVM_FEE_PAYER,
    TEST_SVM_RECIPIENT,
    USDC_BASE_SEPOLIA,
    USDC_SOLANA_DEVNET,
    ResourceServerMock,
    ResourceServerMockConfig,
    evm_requirement,
    svm_requirement,
)

__all__ = [
    "TEST_EVM_ADDRESS",
    "TEST_EVM_PRIVATE_KEY",
    "TEST_RECIPIENT",
    "TEST_SVM_FEE_PAYER",
    "TEST_SVM_RECIPIENT",
    "USDC_BASE_SEPOLIA",
    "USDC_SOLANA_DEVNET",
    "ResourceServerMock",
    "ResourceServerMockConfig",
    "evm_requirement",
    "svm_requirement",
]
