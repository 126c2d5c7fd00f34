"""Simulated chain fixtures.

Pool has 1000 USDC and 2000 WETH with 1000 LP tokens minted, USDC being token0.
"""

import pytest

from eth_lp_cycle.config import LiquidityCycleConfig
from eth_lp_cycle.testing import SimulatedChainClient


@pytest.fixture()
def client() -> SimulatedChainClient:
    """In-memory chain with our hot wallet as the signer."""
    return SimulatedChainClient()


@pytest.fixture()
def usdc(client) -> str:
    return client.create_token("USDC")


@pytest.fixture()
def weth(client) -> str:
    return client.create_token("WETH")


@pytest.fixture()
def pool(client, usdc, weth) -> str:
    """USDC-WETH pool."""
    return client.create_pool(
        usdc,
        weth,
        reserve0=1000 * 10**18,
        reserve1=2000 * 10**18,
        total_supply=1000 * 10**18,
        token0=usdc,
    )


@pytest.fixture()
def config(client) -> LiquidityCycleConfig:
    """Default policy against the simulated router and factory."""
    return client.create_config()
