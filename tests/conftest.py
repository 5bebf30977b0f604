"""
Pytest configuration and fixtures for weather agent tests.

This module provides shared fixtures for testing the weather agent,
including the x402 resource server mock for local testing without a
running resource server.

Usage:
    # In your test file, fixtures are automatically available

    @pytest.mark.asyncio
    async def test_something(resource_server, make_client):
        async with make_client() as client:
            response = await client.get("/weather")
        assert response.status_code == 200
        assert len(resource_server.requests) == 2
"""

import os
from typing import Callable, Optional

import httpx
import pytest

from tests.mocks import (
    TEST_EVM_PRIVATE_KEY,
    ResourceServerMock,
    ResourceServerMockConfig,
)
from weather_agent.client import PaymentAwareClient
from weather_agent.config import AgentConfig
from weather_agent.negotiator import PaymentNegotiator
from weather_agent.registry import SchemeRegistry
from weather_agent.signers import EvmSigner, NetworkFamily, create_evm_signer


# ============================================================================
# Resource Server Mock Fixtures
# ============================================================================

@pytest.fixture
def resource_server_config() -> ResourceServerMockConfig:
    """
    Create a resource server mock configuration.

    Override this fixture (or parametrize it indirectly) to customize the mock.

    Returns:
        ResourceServerMockConfig with default values (x402 v2, EVM requirement)
    """
    return ResourceServerMockConfig()


@pytest.fixture
def resource_server(resource_server_config: ResourceServerMockConfig) -> ResourceServerMock:
    """Create a resource server mock for testing."""
    return ResourceServerMock(config=resource_server_config)


# ============================================================================
# Payment Stack Fixtures
# ============================================================================

@pytest.fixture
def evm_signer() -> EvmSigner:
    """EVM signer for the well-known test account."""
    signer = create_evm_signer(TEST_EVM_PRIVATE_KEY)
    assert signer is not None
    return signer


@pytest.fixture
def evm_registry(evm_signer: EvmSigner) -> SchemeRegistry:
    """Registry holding only the EVM signer."""
    registry = SchemeRegistry()
    registry.register(NetworkFamily.EVM, evm_signer)
    return registry


@pytest.fixture
def negotiator(evm_registry: SchemeRegistry) -> PaymentNegotiator:
    return PaymentNegotiator(evm_registry)


@pytest.fixture
def make_client(
    resource_server: ResourceServerMock,
    negotiator: PaymentNegotiator,
) -> Callable[..., PaymentAwareClient]:
    """
    Factory for payment-aware clients wired to the resource server mock.

    Usage:
        async with make_client() as client:
            ...

        # Custom transport (e.g. one that raises httpx.ConnectTimeout)
        async with make_client(transport=httpx.MockTransport(handler)) as client:
            ...
    """
    def factory(
        transport: Optional[httpx.AsyncBaseTransport] = None,
        client_negotiator: Optional[PaymentNegotiator] = None,
        timeout_ms: int = 15000,
    ) -> PaymentAwareClient:
        return PaymentAwareClient(
            resource_server.config.base_url,
            client_negotiator or negotiator,
            timeout_ms=timeout_ms,
            transport=transport or httpx.MockTransport(resource_server.handler),
        )

    return factory


@pytest.fixture
def agent_config(resource_server: ResourceServerMock) -> AgentConfig:
    """Agent configuration with an EVM secret, pointed at the mock."""
    return AgentConfig(
        evm_private_key=TEST_EVM_PRIVATE_KEY,
        resource_server_url=resource_server.config.base_url,
        endpoint_path=resource_server.config.path,
    )


# ============================================================================
# Environment-based Fixtures
# ============================================================================

@pytest.fixture
def resource_server_url() -> str:
    """
    Get a live resource server URL from environment.

    This fixture is used for integration tests that require
    a real x402 resource server.

    Returns:
        Resource server URL from RESOURCE_SERVER_URL environment variable

    Raises:
        pytest.skip: If RESOURCE_SERVER_URL is not set
    """
    url = os.environ.get("RESOURCE_SERVER_URL")
    if not url:
        pytest.skip("RESOURCE_SERVER_URL not set - skipping integration tests")
    return url


# ============================================================================
# Pytest Configuration
# ============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: mark test as integration test (requires a live resource server)",
    )
    config.addinivalue_line(
        "markers",
        "slow: mark test as slow running",
    )


def pytest_collection_modifyitems(config, items):
    """
    Modify test collection to skip integration tests by default.

    Integration tests are skipped unless the --run-integration flag is passed.
    """
    if config.getoption("--run-integration", default=False):
        return

    skip_integration = pytest.mark.skip(
        reason="Integration tests skipped. Use --run-integration to run."
    )

    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


def pytest_addoption(parser):
    """Add custom command line options."""
    parser.addoption(
        "--run-integration",
        action="store_true",
        default=False,
        help="Run integration tests (requires a live resource server)",
    )
