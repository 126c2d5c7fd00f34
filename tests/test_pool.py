"""Pool lookup and token ordering."""

import pytest

from eth_lp_cycle.exceptions import PoolNotFoundError
from eth_lp_cycle.pool import UnmatchedToken, derive_token1, fetch_pool_state, resolve_pool
from eth_lp_cycle.testing import SimulatedChainClient


def test_resolve_pool(client: SimulatedChainClient, config, usdc, weth, pool):
    """Factory knows the pair in either order."""
    assert resolve_pool(client, config.factory_address, usdc, weth) == pool
    assert resolve_pool(client, config.factory_address, weth, usdc) == pool


def test_resolve_pool_missing(client: SimulatedChainClient, config, usdc, pool):
    """Unknown pair gives the zero address, we do not create pools."""
    dai = client.create_token("DAI")
    with pytest.raises(PoolNotFoundError):
        resolve_pool(client, config.factory_address, usdc, dai)
    assert client.transactions == []


def test_fetch_pool_state_follows_pool_token_order(client: SimulatedChainClient, usdc, weth, pool):
    """Reserves are in the pool's order regardless of the caller order."""
    state = fetch_pool_state(client, pool, weth, usdc)
    assert state.address == pool
    assert state.token0 == usdc
    assert state.token1 == weth
    assert state.reserve0 == 1000 * 10**18
    assert state.reserve1 == 2000 * 10**18
    assert state.total_supply == 1000 * 10**18
    assert state.get_reserve_for_token(weth) == 2000 * 10**18
    assert state.get_reserve_for_token(usdc.lower()) == 1000 * 10**18


def test_fetch_pool_state_reversed_pool(client: SimulatedChainClient):
    """Pool has the caller's second token as token0."""
    token_a = client.create_token("AAA")
    token_b = client.create_token("BBB")
    pool = client.create_pool(token_a, token_b, reserve0=5, reserve1=7, total_supply=6, token0=token_b)
    state = fetch_pool_state(client, pool, token_a, token_b)
    assert state.token0 == token_b
    assert state.token1 == token_a
    assert state.get_reserve_for_token(token_b) == 5


def test_get_reserve_for_unknown_token(client: SimulatedChainClient, usdc, weth, pool):
    state = fetch_pool_state(client, pool, usdc, weth)
    with pytest.raises(UnmatchedToken):
        state.get_reserve_for_token(client.create_token("DAI"))


def test_derive_token1(usdc, weth):
    """token1 is token_b if token0 is token_a, token_a otherwise."""
    assert derive_token1(usdc, usdc, weth) == weth
    assert derive_token1(weth, usdc, weth) == usdc
    # Pools may report addresses in a different case
    assert derive_token1(usdc.lower(), usdc, weth) == weth


def test_derive_token1_unmatched(client: SimulatedChainClient, usdc, weth):
    with pytest.raises(UnmatchedToken):
        derive_token1(client.create_token("DAI"), usdc, weth)
